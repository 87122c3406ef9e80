"""Access gate: admits a candidate to an interview by access code and password."""

from __future__ import annotations

import logging

from .collaborator import PARTICIPANT_STATUS_PENDING, DataCollaborator
from .errors import AccessDeniedError, InterviewUnavailableError, ValidationError
from .models import ParticipantIdentity
from .store import SessionStore


__all__ = ["AccessGate"]


logger = logging.getLogger(__name__)


class AccessGate:
    """
    Registers a candidate and stores their identity for the interview flow.

    Example:
        >>> gate = AccessGate(backend, SessionStore(kv))
        >>> identity = await gate.join("ABC123", "secret", "Jane Doe")
        >>> identity.interview_id
        'iv-1'
    """

    def __init__(self, collaborator: DataCollaborator, session_store: SessionStore) -> None:
        self._collaborator = collaborator
        self._session_store = session_store

    async def join(self, access_code: str, password: str, candidate_name: str) -> ParticipantIdentity:
        """
        Validate credentials, create a pending participant and remember it.

        Access codes are case-insensitive and matched upper-cased.

        Raises:
            ValidationError: If any field is blank.
            AccessDeniedError: If no interview matches the code and password.
            InterviewUnavailableError: If the interview is not active.
            CollaboratorError: If the backend call fails.
        """
        name = (candidate_name or "").strip()
        code = (access_code or "").strip().upper()
        if not name:
            raise ValidationError("Please enter your full name.")
        if not code or not password:
            raise ValidationError("Access code and password are required.")

        interview = await self._collaborator.find_interview_by_access(code, password)
        if interview is None:
            logger.info("Access denied for code %s", code)
            raise AccessDeniedError()

        if interview.status != "active":
            logger.info("Interview %s is %s, refusing join", interview.id, interview.status)
            raise InterviewUnavailableError()

        participant_id = await self._collaborator.create_participant(
            name, interview.id, PARTICIPANT_STATUS_PENDING
        )
        identity = ParticipantIdentity(
            participant_id=participant_id,
            participant_name=name,
            interview_id=interview.id,
        )
        self._session_store.remember(identity)
        logger.info("Candidate %s joined interview %s", participant_id, interview.id)
        return identity
