"""Feedback report built from the completed-session snapshot."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from .models import SessionResultSnapshot
from .store import SessionResultStore


__all__ = ["QuestionAnswer", "FeedbackReport", "build_feedback_report", "load_feedback_report"]


class QuestionAnswer(BaseModel):
    """One question with the answer given to it."""
    number: int = Field(..., ge=1)
    question: str
    response: str


class FeedbackReport(BaseModel):
    """Question-by-question record of a completed interview."""
    candidate_name: str
    job_title: Optional[str] = None
    items: list[QuestionAnswer] = Field(default_factory=list)
    answered_count: int = 0
    total_questions: int = 0


def build_feedback_report(snapshot: SessionResultSnapshot) -> FeedbackReport:
    """Pair each question with its response; missing responses read as empty."""
    items = [
        QuestionAnswer(
            number=i + 1,
            question=question,
            response=snapshot.responses[i] if i < len(snapshot.responses) else "",
        )
        for i, question in enumerate(snapshot.questions)
    ]
    return FeedbackReport(
        candidate_name=snapshot.participant_name,
        job_title=snapshot.job_title,
        items=items,
        answered_count=sum(1 for item in items if item.response.strip()),
        total_questions=len(items),
    )


def load_feedback_report(result_store: SessionResultStore) -> Optional[FeedbackReport]:
    """Read the stored snapshot and build its report, or None if nothing was stored."""
    snapshot = result_store.read()
    if snapshot is None:
        return None
    return build_feedback_report(snapshot)
