"""
Unit tests for the response persistence gateway.
"""

from __future__ import annotations

import pytest

from interview_session import InMemoryKeyValueStore, ResponsePersistenceGateway
from tests.mock_data import make_backend, register_candidate


class TestRecordAnswer:
    """Tests for record_answer."""

    @pytest.mark.asyncio
    async def test_inserts_response(self) -> None:
        """A participant answer is written to the backend."""
        backend = make_backend()
        gateway = ResponsePersistenceGateway(backend)

        result = await gateway.record_answer("cand-1", "qa-1", "My answer")

        assert result.ok is True
        assert result.skipped is False
        assert len(backend.responses) == 1
        assert backend.responses[0].text == "My answer"

    @pytest.mark.asyncio
    async def test_missing_participant_skips(self) -> None:
        """No participant id means no write and no error."""
        backend = make_backend()
        gateway = ResponsePersistenceGateway(backend)

        result = await gateway.record_answer(None, "qa-1", "My answer")

        assert result.ok is True
        assert result.skipped is True
        assert backend.responses == []

    @pytest.mark.asyncio
    async def test_failure_is_returned_not_raised(self) -> None:
        """Backend failures come back as a failed result."""
        backend = make_backend(fail_operations=["insert_response"])
        gateway = ResponsePersistenceGateway(backend)

        result = await gateway.record_answer("cand-1", "qa-1", "My answer")

        assert result.ok is False
        assert "insert_response" in (result.detail or "")


class TestMarkCompleted:
    """Tests for mark_completed."""

    @pytest.mark.asyncio
    async def test_updates_status(self) -> None:
        """The participant status becomes completed."""
        backend = make_backend()
        register_candidate(backend, InMemoryKeyValueStore())
        gateway = ResponsePersistenceGateway(backend)

        result = await gateway.mark_completed("cand-1")

        assert result.ok is True
        assert backend.participants["cand-1"]["status"] == "completed"

    @pytest.mark.asyncio
    async def test_unknown_participant_fails_quietly(self) -> None:
        """An unknown participant yields a failed result."""
        gateway = ResponsePersistenceGateway(make_backend())

        result = await gateway.mark_completed("nobody")

        assert result.ok is False

    @pytest.mark.asyncio
    async def test_missing_participant_skips(self) -> None:
        """No participant id skips the status write."""
        gateway = ResponsePersistenceGateway(make_backend())

        result = await gateway.mark_completed(None)

        assert result.skipped is True


class TestScheduling:
    """Tests for schedule / drain."""

    @pytest.mark.asyncio
    async def test_drain_collects_scheduled_results(self) -> None:
        """Scheduled writes are tracked until drained."""
        backend = make_backend(fail_operations=["update_participant_status"])
        gateway = ResponsePersistenceGateway(backend)

        gateway.schedule(gateway.record_answer("cand-1", "qa-1", "a"))
        gateway.schedule(gateway.mark_completed("cand-1"))
        assert gateway.pending_count == 2

        results = await gateway.drain()

        assert sorted(r.operation for r in results) == ["mark_completed", "record_answer"]
        assert [r.ok for r in results if r.operation == "mark_completed"] == [False]
        assert gateway.pending_count == 0

    @pytest.mark.asyncio
    async def test_drain_without_pending(self) -> None:
        """Draining with nothing scheduled returns no results."""
        gateway = ResponsePersistenceGateway(make_backend())

        assert await gateway.drain() == []
