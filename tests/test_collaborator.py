"""
Tests for the REST data collaborator using httpx.MockTransport.
"""

from __future__ import annotations

import json
from typing import Callable

import httpx
import pytest

from interview_session import CollaboratorError, RestDataCollaborator


def make_rest(handler: Callable[[httpx.Request], httpx.Response]) -> RestDataCollaborator:
    return RestDataCollaborator(
        base_url="https://backend.test/",
        api_key="anon-key",
        transport=httpx.MockTransport(handler),
    )


class TestRestReads:
    """Tests for interview and question reads."""

    @pytest.mark.asyncio
    async def test_fetch_interview_meta(self) -> None:
        """Interview rows are joined with their job and sent with auth headers."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json=[
                    {
                        "id": "iv-1",
                        "title": "Screen",
                        "status": "active",
                        "jobs": {"title": "Engineer", "description": "Build"},
                    }
                ],
            )

        meta = await make_rest(handler).fetch_interview_meta("iv-1")

        assert meta is not None
        assert meta.job_title == "Engineer"
        request = seen[0]
        assert request.url.path == "/rest/v1/interviews"
        assert request.url.params["id"] == "eq.iv-1"
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["Authorization"] == "Bearer anon-key"

    @pytest.mark.asyncio
    async def test_fetch_interview_meta_not_found(self) -> None:
        """An empty result means no interview."""
        meta = await make_rest(lambda request: httpx.Response(200, json=[])).fetch_interview_meta("x")

        assert meta is None

    @pytest.mark.asyncio
    async def test_fetch_questions(self) -> None:
        """Question rows are coerced and ordered by the backend."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json=[
                    {"id": 7, "interview_id": "iv-1", "question": "First", "order_number": 1},
                    {"id": 8, "interview_id": "iv-1", "question": "Second", "order_number": 2},
                ],
            )

        questions = await make_rest(handler).fetch_questions("iv-1")

        assert [(q.id, q.text) for q in questions] == [("7", "First"), ("8", "Second")]
        assert seen[0].url.params["order"] == "order_number.asc"

    @pytest.mark.asyncio
    async def test_http_error_raises_collaborator_error(self) -> None:
        """Non-2xx responses raise CollaboratorError."""
        rest = make_rest(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(CollaboratorError) as exc_info:
            await rest.fetch_questions("iv-1")

        assert exc_info.value.operation == "fetch_questions"
        assert "500" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_transport_error_raises_collaborator_error(self) -> None:
        """Connection failures raise CollaboratorError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(CollaboratorError):
            await make_rest(handler).fetch_interview_meta("iv-1")


class TestRestWrites:
    """Tests for response, status and participant writes."""

    @pytest.mark.asyncio
    async def test_insert_response(self) -> None:
        """Responses are posted to candidate_responses."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201)

        await make_rest(handler).insert_response("cand-1", "q-1", "My answer")

        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/rest/v1/candidate_responses"
        assert json.loads(request.content) == {
            "candidate_id": "cand-1",
            "question_id": "q-1",
            "response": "My answer",
        }

    @pytest.mark.asyncio
    async def test_update_participant_status(self) -> None:
        """Status updates patch the candidate row."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        await make_rest(handler).update_participant_status("cand-1", "completed")

        request = seen[0]
        assert request.method == "PATCH"
        assert request.url.params["id"] == "eq.cand-1"
        assert json.loads(request.content) == {"status": "completed"}

    @pytest.mark.asyncio
    async def test_create_participant_returns_id(self) -> None:
        """The new participant id comes from the returned representation."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json=[{"id": "cand-9", "status": "pending"}])

        participant_id = await make_rest(handler).create_participant("Jane", "iv-1", "pending")

        assert participant_id == "cand-9"
        assert seen[0].headers["Prefer"] == "return=representation"

    @pytest.mark.asyncio
    async def test_create_participant_without_id(self) -> None:
        """A representation without an id is an error."""
        rest = make_rest(lambda request: httpx.Response(201, json=[]))

        with pytest.raises(CollaboratorError):
            await rest.create_participant("Jane", "iv-1", "pending")

    @pytest.mark.asyncio
    async def test_find_interview_by_access(self) -> None:
        """Access lookups filter on code and password."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"id": "iv-1", "status": "active", "jobs": None}])

        meta = await make_rest(handler).find_interview_by_access("ABC123", "secret")

        assert meta is not None
        assert meta.id == "iv-1"
        assert seen[0].url.params["access_code"] == "eq.ABC123"
        assert seen[0].url.params["password"] == "eq.secret"


class TestRestConfig:
    """Tests for constructor validation."""

    def test_requires_base_url_and_key(self) -> None:
        """Both the base URL and the key are mandatory."""
        with pytest.raises(ValueError):
            RestDataCollaborator(base_url="", api_key="k")
        with pytest.raises(ValueError):
            RestDataCollaborator(base_url="https://x", api_key="")
