"""Question set loading for an interview session."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import ValidationError as PydanticValidationError

from .collaborator import DataCollaborator
from .errors import LoadFatalError
from .models import InterviewMeta, Question


__all__ = ["FALLBACK_QUESTIONS", "LoadedInterview", "QuestionSetLoader"]


logger = logging.getLogger(__name__)


FALLBACK_QUESTIONS: tuple[Question, ...] = (
    Question(
        id="q1",
        text="What experience do you have with React and other modern JavaScript frameworks?",
        order_number=1,
    ),
    Question(
        id="q2",
        text="Can you describe a challenging project you worked on and how you overcame obstacles?",
        order_number=2,
    ),
    Question(
        id="q3",
        text="How do you stay updated with the latest industry trends and technologies?",
        order_number=3,
    ),
    Question(
        id="q4",
        text="Describe your approach to debugging a complex issue in a large codebase.",
        order_number=4,
    ),
    Question(
        id="q5",
        text="How do you handle feedback and criticism of your work?",
        order_number=5,
    ),
)


@dataclass(frozen=True)
class LoadedInterview:
    """Metadata and ordered questions for one interview."""

    meta: InterviewMeta
    questions: tuple[Question, ...]
    used_fallback: bool = False


class QuestionSetLoader:
    """
    Resolves interview metadata and its ordered questions.

    Runs once per session, before any question is shown. Every failure is
    fatal for the session: the caller gets LoadFatalError and redirects away.

    Example:
        >>> loader = QuestionSetLoader(backend)
        >>> loaded = await loader.load("iv-1")
        >>> [q.order_number for q in loaded.questions]
        [1, 2, 3]
    """

    def __init__(self, collaborator: DataCollaborator) -> None:
        self._collaborator = collaborator

    async def load(self, interview_id: str) -> LoadedInterview:
        """
        Fetch metadata and questions for ``interview_id``.

        Args:
            interview_id: Interview to load.

        Returns:
            LoadedInterview with questions sorted by order_number. An interview
            without questions gets FALLBACK_QUESTIONS.

        Raises:
            LoadFatalError: If the id is empty, the interview does not exist,
                or any fetch fails.
        """
        if not (interview_id or "").strip():
            raise LoadFatalError("Interview not found.", interview_id=interview_id)

        try:
            meta = await self._collaborator.fetch_interview_meta(interview_id)
        except Exception as e:
            logger.error("Error loading interview %s: %s", interview_id, e)
            raise LoadFatalError(
                "Failed to load interview details.", interview_id=interview_id, cause=e
            ) from e

        if meta is None:
            logger.warning("Interview %s not found", interview_id)
            raise LoadFatalError("Interview not found.", interview_id=interview_id)

        try:
            raw_questions = await self._collaborator.fetch_questions(interview_id)
            questions = [
                q if isinstance(q, Question) else Question.model_validate(q)
                for q in raw_questions
            ]
        except PydanticValidationError as e:
            logger.error("Malformed questions for interview %s: %s", interview_id, e)
            raise LoadFatalError(
                "Failed to load interview questions.", interview_id=interview_id, cause=e
            ) from e
        except Exception as e:
            logger.error("Error loading questions for %s: %s", interview_id, e)
            raise LoadFatalError(
                "Failed to load interview questions.", interview_id=interview_id, cause=e
            ) from e

        if not questions:
            logger.info(
                "Interview %s has no questions, using %d fallback questions",
                interview_id,
                len(FALLBACK_QUESTIONS),
            )
            return LoadedInterview(meta=meta, questions=FALLBACK_QUESTIONS, used_fallback=True)

        # sorted() is stable, so equal order numbers keep insertion order
        ordered = tuple(sorted(questions, key=lambda q: q.order_number))
        logger.info("Loaded %d questions for interview %s", len(ordered), interview_id)
        return LoadedInterview(meta=meta, questions=ordered)
