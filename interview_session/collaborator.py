"""
Data collaborator contract and implementations.

The hosted backend owns interviews, questions, participants and responses.
The session core only talks to it through ``DataCollaborator``:

    - InMemoryDataCollaborator: seeded dictionaries, for tests and local demos
    - RestDataCollaborator: PostgREST-style HTTP API via httpx

Rows are coerced into Question / InterviewMeta here so nothing downstream
handles untyped data.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Iterable, Optional, Protocol

import httpx

from .errors import CollaboratorError
from .models import InterviewMeta, Question, ResponseRecord


__all__ = [
    "DataCollaborator",
    "InMemoryDataCollaborator",
    "RestDataCollaborator",
    "PARTICIPANT_STATUS_PENDING",
    "PARTICIPANT_STATUS_COMPLETED",
]


logger = logging.getLogger(__name__)


PARTICIPANT_STATUS_PENDING = "pending"
PARTICIPANT_STATUS_COMPLETED = "completed"


class DataCollaborator(Protocol):
    """Async access to the hosted interview backend."""

    async def fetch_interview_meta(self, interview_id: str) -> Optional[InterviewMeta]:
        """Return interview metadata, or None when the interview does not exist."""

    async def fetch_questions(self, interview_id: str) -> list[Question]:
        """Return the interview's questions (possibly empty)."""

    async def insert_response(self, participant_id: str, question_id: str, text: str) -> None:
        """Append one response record."""

    async def update_participant_status(self, participant_id: str, status: str) -> None:
        """Set the participant's status."""

    async def find_interview_by_access(
        self, access_code: str, password: str
    ) -> Optional[InterviewMeta]:
        """Return the interview matching an access code and password."""

    async def create_participant(self, name: str, interview_id: str, status: str) -> str:
        """Register a participant and return its id."""


class InMemoryDataCollaborator:
    """
    In-memory backend.

    Operations named in ``fail_operations`` raise CollaboratorError, which lets
    tests exercise backend failures without a network.

    Example:
        >>> backend = InMemoryDataCollaborator(
        ...     interviews=[InterviewMeta(id="iv-1", title="Screen", job_title="Engineer")],
        ...     questions={"iv-1": [Question(id="a", text="Why?", order_number=1)]},
        ... )
        >>> await backend.fetch_questions("iv-1")
    """

    def __init__(
        self,
        interviews: Iterable[InterviewMeta] = (),
        questions: Optional[dict[str, list[Question]]] = None,
        access_codes: Optional[dict[tuple[str, str], str]] = None,
        fail_operations: Iterable[str] = (),
    ) -> None:
        self.interviews: dict[str, InterviewMeta] = {meta.id: meta for meta in interviews}
        self.questions: dict[str, list[Question]] = dict(questions or {})
        self.access_codes: dict[tuple[str, str], str] = dict(access_codes or {})
        self.fail_operations: set[str] = set(fail_operations)
        self.responses: list[ResponseRecord] = []
        self.participants: dict[str, dict[str, str]] = {}

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_operations:
            raise CollaboratorError(operation, "simulated backend failure")

    async def fetch_interview_meta(self, interview_id: str) -> Optional[InterviewMeta]:
        self._maybe_fail("fetch_interview_meta")
        return self.interviews.get(interview_id)

    async def fetch_questions(self, interview_id: str) -> list[Question]:
        self._maybe_fail("fetch_questions")
        return list(self.questions.get(interview_id, []))

    async def insert_response(self, participant_id: str, question_id: str, text: str) -> None:
        self._maybe_fail("insert_response")
        self.responses.append(
            ResponseRecord(participant_id=participant_id, question_id=question_id, text=text)
        )

    async def update_participant_status(self, participant_id: str, status: str) -> None:
        self._maybe_fail("update_participant_status")
        participant = self.participants.get(participant_id)
        if participant is None:
            raise CollaboratorError(
                "update_participant_status", f"unknown participant '{participant_id}'"
            )
        participant["status"] = status

    async def find_interview_by_access(
        self, access_code: str, password: str
    ) -> Optional[InterviewMeta]:
        self._maybe_fail("find_interview_by_access")
        interview_id = self.access_codes.get((access_code, password))
        if interview_id is None:
            return None
        return self.interviews.get(interview_id)

    async def create_participant(self, name: str, interview_id: str, status: str) -> str:
        self._maybe_fail("create_participant")
        participant_id = uuid.uuid4().hex
        self.participants[participant_id] = {
            "name": name,
            "interview_id": interview_id,
            "status": status,
        }
        return participant_id


class RestDataCollaborator:
    """
    Hosted backend reached over a PostgREST-style HTTP API.

    Tables used: ``interviews`` (joined to ``jobs``), ``interview_questions``,
    ``candidates`` and ``candidate_responses``. Every non-2xx response and
    every transport error is raised as CollaboratorError.
    """

    INTERVIEW_SELECT = "id,title,status,job_id,jobs:job_id(title,description)"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")
        if not api_key:
            raise ValueError("api_key is required")
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self.base_url}/rest/v1",
            headers=self._headers,
            timeout=self.timeout_seconds,
            transport=self._transport,
        )

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, str]] = None,
        json: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        try:
            async with self._client() as client:
                response = await client.request(
                    method, path, params=params, json=json, headers=headers
                )
        except httpx.HTTPError as e:
            raise CollaboratorError(operation, str(e)) from e

        if response.status_code >= 400:
            raise CollaboratorError(
                operation, f"HTTP {response.status_code}: {response.text[:160]}"
            )
        if not response.content:
            return None
        return response.json()

    async def fetch_interview_meta(self, interview_id: str) -> Optional[InterviewMeta]:
        rows = await self._request(
            "fetch_interview_meta",
            "GET",
            "/interviews",
            params={"id": f"eq.{interview_id}", "select": self.INTERVIEW_SELECT},
        )
        if not rows:
            return None
        return InterviewMeta.from_row(rows[0])

    async def fetch_questions(self, interview_id: str) -> list[Question]:
        rows = await self._request(
            "fetch_questions",
            "GET",
            "/interview_questions",
            params={
                "interview_id": f"eq.{interview_id}",
                "select": "*",
                "order": "order_number.asc",
            },
        )
        return [Question.model_validate(row) for row in rows or []]

    async def insert_response(self, participant_id: str, question_id: str, text: str) -> None:
        await self._request(
            "insert_response",
            "POST",
            "/candidate_responses",
            json={
                "candidate_id": participant_id,
                "question_id": question_id,
                "response": text,
            },
        )
        logger.debug("Inserted response for participant %s", participant_id)

    async def update_participant_status(self, participant_id: str, status: str) -> None:
        await self._request(
            "update_participant_status",
            "PATCH",
            "/candidates",
            params={"id": f"eq.{participant_id}"},
            json={"status": status},
        )

    async def find_interview_by_access(
        self, access_code: str, password: str
    ) -> Optional[InterviewMeta]:
        rows = await self._request(
            "find_interview_by_access",
            "GET",
            "/interviews",
            params={
                "access_code": f"eq.{access_code}",
                "password": f"eq.{password}",
                "select": self.INTERVIEW_SELECT,
            },
        )
        if not rows:
            return None
        return InterviewMeta.from_row(rows[0])

    async def create_participant(self, name: str, interview_id: str, status: str) -> str:
        rows = await self._request(
            "create_participant",
            "POST",
            "/candidates",
            json={"name": name, "interview_id": interview_id, "status": status},
            headers={"Prefer": "return=representation"},
        )
        if not rows or "id" not in rows[0]:
            raise CollaboratorError("create_participant", "backend returned no participant id")
        return str(rows[0]["id"])
