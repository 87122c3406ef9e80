"""
Pydantic models for interview sessions.

Defines the tagged records exchanged with the data collaborator (questions,
interview metadata, response records), the persisted participant identity,
the session result snapshot read by the feedback report, and the live
session state owned by the state machine.

Last Grunted: 10/19/2026
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


DEFAULT_JOB_TITLE = "Job Position"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ParticipantKind(str, Enum):
    """Who is taking the interview."""

    CANDIDATE = "candidate"
    COMPANY_PREVIEWER = "company_previewer"


class Question(BaseModel):
    """
    One interview question.

    Accepts raw collaborator rows, where the text lives under ``question``
    and the position under ``order_number``.

    Example:
        >>> Question.model_validate({"id": "q1", "question": "Why us?", "order_number": 1})
        Question(id='q1', text='Why us?', order_number=1)
    """
    id: str = Field(..., min_length=1, description="Opaque question identifier")
    text: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("text", "question"),
        description="Question text shown to the participant",
    )
    order_number: int = Field(
        ...,
        ge=1,
        validation_alias=AliasChoices("order_number", "orderNumber"),
        description="1-based presentation order",
    )

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, (int, float)):
            return str(value)
        return value


class InterviewMeta(BaseModel):
    """
    Interview and job metadata loaded alongside the questions.

    Job fields fall back to defaults when the interview has no joined job row.
    """
    id: str = Field(..., min_length=1, description="Interview identifier")
    title: str = Field(default="", description="Interview title")
    job_title: str = Field(default=DEFAULT_JOB_TITLE, description="Title of the job posting")
    job_description: str = Field(default="", description="Job posting description")
    status: str = Field(default="active", description="Interview status, e.g. 'active'")

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "InterviewMeta":
        """
        Build metadata from a backend row with an optional nested ``jobs`` object.

        Args:
            row: Row as returned by the hosted backend.

        Returns:
            Validated InterviewMeta.
        """
        job = row.get("jobs") or {}
        return cls(
            id=str(row.get("id") or ""),
            title=row.get("title") or "",
            job_title=job.get("title") or DEFAULT_JOB_TITLE,
            job_description=job.get("description") or "",
            status=row.get("status") or "active",
        )


class ParticipantIdentity(BaseModel):
    """Identity written by the access gate before a session begins."""
    participant_id: str = Field(..., min_length=1)
    participant_name: str = Field(..., min_length=1)
    interview_id: str = Field(..., min_length=1)


class ResponseRecord(BaseModel):
    """One persisted answer."""
    participant_id: str
    question_id: str
    text: str
    recorded_at: str = Field(default_factory=_utc_now)


class SessionResultSnapshot(BaseModel):
    """
    Questions and answers of a completed session.

    Serialised with camelCase keys so the feedback view reads the same
    document the interview flow wrote.
    """
    participant_name: str = Field(..., alias="candidateName")
    job_title: Optional[str] = Field(default=None, alias="jobTitle")
    questions: list[str] = Field(default_factory=list)
    responses: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class InterviewSession(BaseModel):
    """
    Live state of one pass through an interview.

    Mutated only by InterviewSessionMachine. ``questions`` and the length of
    ``responses`` are fixed once the session is built.

    Example:
        >>> session = InterviewSession(
        ...     session_id="int_20261019_103000_a1b2c3",
        ...     interview_id="iv-1",
        ...     participant_kind=ParticipantKind.COMPANY_PREVIEWER,
        ...     questions=(question,),
        ...     responses=[""],
        ...     started_at="2026-10-19T10:30:00.000Z",
        ... )
    """
    session_id: str = Field(..., description="Unique session identifier")
    interview_id: str = Field(..., min_length=1, description="Interview being taken")
    participant_kind: ParticipantKind
    participant_id: Optional[str] = Field(
        default=None,
        description="Backend participant id, candidates only",
    )
    participant_name: str = Field(default="", description="Display name once entered")
    meta: Optional[InterviewMeta] = None
    questions: tuple[Question, ...] = Field(..., min_length=1)
    responses: list[str] = Field(default_factory=list)
    current_index: int = Field(default=0, ge=0)
    transcript_draft: str = ""
    is_recording: bool = False
    is_completed: bool = False
    started_at: str = Field(default_factory=_utc_now)
    completed_at: Optional[str] = None
