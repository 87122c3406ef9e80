"""
Interview Session State Machine.

Sequences one participant through an interview's questions:

    AWAITING_NAME -> ACTIVE(current_index, is_recording) -> COMPLETED

Local transitions are synchronous and all-or-nothing: a rejected transition
raises ValidationError and mutates nothing. Backend writes are detached
through the ResponsePersistenceGateway, so a failing backend never blocks or
reverts the live session.

Thread Safety:
    This class is NOT thread-safe. All calls must come from the event loop
    that opened the session.

Last Grunted: 10/19/2026
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from .capture import AnswerCaptureSimulator
from .errors import ValidationError
from .gateway import ResponsePersistenceGateway
from .loader import QuestionSetLoader
from .models import (
    InterviewSession,
    ParticipantKind,
    Question,
    SessionResultSnapshot,
)
from .store import SessionResultStore, SessionStore


__all__ = [
    "SessionPhase",
    "NavigationTarget",
    "Navigation",
    "InterviewSessionMachine",
]


logger = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    """Top-level phase of an interview session."""

    AWAITING_NAME = "awaiting_name"
    ACTIVE = "active"
    COMPLETED = "completed"


class NavigationTarget(str, Enum):
    """Where the UI goes once a session is finished."""

    LANDING = "landing"
    FEEDBACK = "feedback"


@dataclass(frozen=True)
class Navigation:
    """Navigation hand-off returned by ``finish()``."""

    target: NavigationTarget
    path: str


def _format_utc_timestamp(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def _new_session_id(now: datetime) -> str:
    return f"int_{now.strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:6]}"


class InterviewSessionMachine:
    """
    Drives one interview session from identification to completion.

    Build it with ``open()``, which loads the questions before anything can
    be shown. Answers are written best-effort; the local session is the
    source of truth for the live flow.

    Example:
        >>> machine = await InterviewSessionMachine.open(
        ...     "iv-1",
        ...     loader=QuestionSetLoader(backend),
        ...     gateway=ResponsePersistenceGateway(backend),
        ...     identity_store=SessionStore(kv),
        ...     result_store=SessionResultStore(kv),
        ... )
        >>> machine.submit_name("Jane Doe")
        >>> await machine.start_recording()
        >>> machine.submit_answer()
    """

    def __init__(
        self,
        session: InterviewSession,
        *,
        gateway: ResponsePersistenceGateway,
        identity_store: SessionStore,
        result_store: SessionResultStore,
        simulator: Optional[AnswerCaptureSimulator] = None,
        name_submitted: bool = False,
    ) -> None:
        if len(session.responses) != len(session.questions):
            raise ValueError("responses must have one slot per question")
        self._session = session
        self._gateway = gateway
        self._identity_store = identity_store
        self._result_store = result_store
        self._simulator = simulator or AnswerCaptureSimulator()
        self._name_submitted = name_submitted
        self._applying = False

    @classmethod
    async def open(
        cls,
        interview_id: str,
        *,
        loader: QuestionSetLoader,
        gateway: ResponsePersistenceGateway,
        identity_store: SessionStore,
        result_store: SessionResultStore,
        simulator: Optional[AnswerCaptureSimulator] = None,
        participant_kind: Optional[ParticipantKind] = None,
    ) -> "InterviewSessionMachine":
        """
        Load an interview and start a session for it.

        A stored identity issued for this interview makes the participant a
        candidate who skips name entry. Without one the participant is a
        company previewer unless ``participant_kind`` says otherwise.

        Args:
            interview_id: Interview to open.
            loader: Question set loader; runs exactly once here.
            gateway: Persistence gateway for answers and completion.
            identity_store: Store holding the access-gate identity.
            result_store: Store receiving the completion snapshot.
            simulator: Answer capture simulator (default timings if omitted).
            participant_kind: Force a participant kind instead of inferring it.

        Returns:
            A ready InterviewSessionMachine.

        Raises:
            LoadFatalError: If the interview cannot be loaded. No session exists.
        """
        loaded = await loader.load(interview_id)
        identity = identity_store.resolve(interview_id)

        kind = participant_kind
        if kind is None:
            kind = ParticipantKind.CANDIDATE if identity else ParticipantKind.COMPANY_PREVIEWER

        participant_id: Optional[str] = None
        participant_name = ""
        identified = False
        if kind == ParticipantKind.CANDIDATE and identity is not None:
            participant_id = identity.participant_id
            participant_name = identity.participant_name
            identified = True

        now = datetime.now(timezone.utc)
        session = InterviewSession(
            session_id=_new_session_id(now),
            interview_id=interview_id,
            participant_kind=kind,
            participant_id=participant_id,
            participant_name=participant_name,
            meta=loaded.meta,
            questions=loaded.questions,
            responses=[""] * len(loaded.questions),
            started_at=_format_utc_timestamp(now),
        )

        logger.info(
            "Opened session %s for interview %s (%s, %d questions%s)",
            session.session_id,
            interview_id,
            kind.value,
            len(loaded.questions),
            ", identified" if identified else "",
        )
        return cls(
            session,
            gateway=gateway,
            identity_store=identity_store,
            result_store=result_store,
            simulator=simulator,
            name_submitted=identified,
        )

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def session(self) -> InterviewSession:
        """The live session record. Treat as read-only."""
        return self._session

    @property
    def phase(self) -> SessionPhase:
        if self._session.is_completed:
            return SessionPhase.COMPLETED
        if not self._name_submitted:
            return SessionPhase.AWAITING_NAME
        return SessionPhase.ACTIVE

    @property
    def current_question(self) -> Question:
        return self._session.questions[self._session.current_index]

    @property
    def is_last_question(self) -> bool:
        return self._session.current_index == len(self._session.questions) - 1

    @property
    def is_recording(self) -> bool:
        return self._session.is_recording

    @property
    def can_submit(self) -> bool:
        """Whether ``submit_answer()`` would currently be accepted."""
        return (
            self.phase == SessionPhase.ACTIVE
            and not self._applying
            and not self._session.is_recording
            and bool(self._session.transcript_draft.strip())
        )

    @property
    def progress(self) -> tuple[int, int]:
        """Answered questions and total questions."""
        answered = sum(1 for response in self._session.responses if response)
        return (answered, len(self._session.questions))

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def submit_name(self, name: str) -> None:
        """
        Accept the participant's display name and begin at question 1.

        Raises:
            ValidationError: If the name is blank or was already submitted.
        """
        if self.phase != SessionPhase.AWAITING_NAME:
            raise ValidationError("Name has already been submitted.")

        trimmed = (name or "").strip()
        if not trimmed:
            raise ValidationError("Please enter your name to begin the interview.")

        self._session.participant_name = trimmed
        self._name_submitted = True
        logger.info("Session %s: participant '%s' starting", self._session.session_id, trimmed)

    def start_recording(self) -> Optional[asyncio.Task[None]]:
        """
        Start the simulated capture for the current question.

        Returns:
            The reveal task, or None if a recording is already in progress.

        Raises:
            ValidationError: If the session is not active.
        """
        if self.phase != SessionPhase.ACTIVE:
            raise ValidationError("Recording is only possible during an active interview.")

        if self._session.is_recording:
            return None

        task = self._simulator.start(
            self._session.current_index,
            on_text=self._on_transcript,
            on_finished=self._on_recording_finished,
        )
        if task is None:
            return None

        self._session.is_recording = True
        self._session.transcript_draft = ""
        return task

    def submit_answer(self) -> SessionPhase:
        """
        Record the current draft as the answer and advance.

        The answer is persisted in the background. On the last question the
        session completes, the completion status is persisted in the
        background and the result snapshot is written.

        Returns:
            The phase after the transition.

        Raises:
            ValidationError: If the session is not active, a recording is in
                progress, a submission is being applied, the draft is empty,
                or no event loop is running to carry the background writes.
        """
        if self.phase != SessionPhase.ACTIVE:
            raise ValidationError("No active question to answer.")
        if self._applying:
            raise ValidationError("A submission is already being applied.")
        if self._session.is_recording:
            raise ValidationError("Wait for the recording to finish before submitting.")
        if not self._session.transcript_draft.strip():
            raise ValidationError("Record an answer before submitting.")
        try:
            asyncio.get_running_loop()
        except RuntimeError as e:
            raise ValidationError("Answers can only be submitted from a running event loop.") from e

        self._applying = True
        try:
            session = self._session
            index = session.current_index
            question = session.questions[index]
            text = session.transcript_draft

            session.responses[index] = text
            self._gateway.schedule(
                self._gateway.record_answer(self._persistence_participant_id, question.id, text)
            )

            if index == len(session.questions) - 1:
                session.is_completed = True
                session.completed_at = _format_utc_timestamp(datetime.now(timezone.utc))
                self._gateway.schedule(
                    self._gateway.mark_completed(self._persistence_participant_id)
                )
                self._write_snapshot()
                logger.info(
                    "Session %s completed (%d answers)",
                    session.session_id,
                    len(session.responses),
                )
            else:
                session.current_index = index + 1
                session.transcript_draft = ""
                logger.info(
                    "Session %s: answered question %d/%d",
                    session.session_id,
                    index + 1,
                    len(session.questions),
                )
        finally:
            self._applying = False

        return self.phase

    def finish(self) -> Navigation:
        """
        Leave a completed session.

        Candidates have their stored identity cleared and go to the landing
        page. Company previewers go to the feedback report for the interview.

        Raises:
            ValidationError: If the session is not completed.
        """
        if self.phase != SessionPhase.COMPLETED:
            raise ValidationError("The interview is not complete yet.")

        if self._session.participant_kind == ParticipantKind.CANDIDATE:
            try:
                self._identity_store.clear()
            except Exception as e:
                logger.error("Failed to clear stored identity: %s", e)
            return Navigation(target=NavigationTarget.LANDING, path="/")

        return Navigation(
            target=NavigationTarget.FEEDBACK,
            path=f"/feedback/{self._session.interview_id}",
        )

    async def drain(self) -> None:
        """Wait for pending background writes."""
        results = await self._gateway.drain()
        failures = [r for r in results if not r.ok]
        if failures:
            logger.warning(
                "Session %s: %d of %d writes failed",
                self._session.session_id,
                len(failures),
                len(results),
            )

    async def close(self) -> None:
        """Tear the session down: stop any reveal and flush pending writes."""
        self._simulator.cancel()
        self._session.is_recording = False
        await self.drain()
        logger.debug("Session %s closed", self._session.session_id)

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def get_status(self) -> dict[str, Any]:
        """Current session state for a UI shell."""
        session = self._session
        answered, total = self.progress
        completed = session.is_completed
        return {
            "session_id": session.session_id,
            "interview_id": session.interview_id,
            "phase": self.phase.value,
            "participant_kind": session.participant_kind.value,
            "participant_name": session.participant_name or None,
            "job_title": session.meta.job_title if session.meta else None,
            "current_index": session.current_index,
            "total_questions": total,
            "answered": answered,
            "current_question": None if completed else self.current_question.text,
            "is_last_question": self.is_last_question,
            "transcript_draft": session.transcript_draft,
            "is_recording": session.is_recording,
            "is_completed": completed,
            "can_submit": self.can_submit,
            "started_at": session.started_at,
            "completed_at": session.completed_at,
        }

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    @property
    def _persistence_participant_id(self) -> Optional[str]:
        # Previews are never persisted
        if self._session.participant_kind != ParticipantKind.CANDIDATE:
            return None
        return self._session.participant_id

    def _on_transcript(self, text: str) -> None:
        if self._session.is_recording:
            self._session.transcript_draft = text

    def _on_recording_finished(self) -> None:
        self._session.is_recording = False

    def _write_snapshot(self) -> None:
        session = self._session
        snapshot = SessionResultSnapshot(
            participant_name=session.participant_name,
            job_title=session.meta.job_title if session.meta else None,
            questions=[q.text for q in session.questions],
            responses=list(session.responses),
        )
        try:
            self._result_store.write(snapshot)
        except Exception as e:
            logger.error("Failed to write session result snapshot: %s", e)
