"""
Unit tests for the question set loader.
"""

from __future__ import annotations

from typing import Any

import pytest

from interview_session import (
    FALLBACK_QUESTIONS,
    InMemoryDataCollaborator,
    LoadFatalError,
    QuestionSetLoader,
)
from tests.mock_data import INTERVIEW_ID, make_backend, make_meta, make_questions


class RawRowBackend(InMemoryDataCollaborator):
    """Backend returning raw question rows instead of Question models."""

    def __init__(self, rows: list[dict[str, Any]]) -> None:
        super().__init__(interviews=[make_meta()])
        self.rows = rows

    async def fetch_questions(self, interview_id: str) -> list[Any]:  # type: ignore[override]
        return self.rows


class TestQuestionSetLoader:
    """Tests for QuestionSetLoader.load."""

    @pytest.mark.asyncio
    async def test_loads_meta_and_questions(self) -> None:
        """Metadata and questions come back together."""
        loaded = await QuestionSetLoader(make_backend()).load(INTERVIEW_ID)

        assert loaded.meta.job_title == "Frontend Engineer"
        assert [q.id for q in loaded.questions] == ["qa-1", "qa-2", "qa-3"]
        assert loaded.used_fallback is False

    @pytest.mark.asyncio
    async def test_sorts_by_order_number(self) -> None:
        """Questions are ordered ascending by order_number."""
        questions = make_questions(["c", "a", "b"], order_numbers=[30, 10, 20])
        loaded = await QuestionSetLoader(make_backend(questions=questions)).load(INTERVIEW_ID)

        assert [q.text for q in loaded.questions] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_equal_order_numbers_keep_backend_order(self) -> None:
        """Ties keep the order the backend returned."""
        questions = make_questions(["first", "second", "third"], order_numbers=[1, 1, 1])
        loaded = await QuestionSetLoader(make_backend(questions=questions)).load(INTERVIEW_ID)

        assert [q.text for q in loaded.questions] == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_empty_questions_use_fallback(self) -> None:
        """No questions yields the fallback set."""
        loaded = await QuestionSetLoader(make_backend(questions=[])).load(INTERVIEW_ID)

        assert loaded.questions == FALLBACK_QUESTIONS
        assert loaded.used_fallback is True
        assert [q.id for q in loaded.questions] == ["q1", "q2", "q3", "q4", "q5"]

    @pytest.mark.asyncio
    async def test_raw_rows_are_coerced(self) -> None:
        """Untyped rows become Question models."""
        backend = RawRowBackend(
            [
                {"id": 2, "question": "Second", "order_number": 2},
                {"id": 1, "question": "First", "order_number": 1},
            ]
        )
        loaded = await QuestionSetLoader(backend).load(INTERVIEW_ID)

        assert [(q.id, q.text) for q in loaded.questions] == [("1", "First"), ("2", "Second")]

    @pytest.mark.asyncio
    async def test_malformed_row_is_fatal(self) -> None:
        """A row without question text fails the load."""
        backend = RawRowBackend([{"id": 1, "order_number": 1}])

        with pytest.raises(LoadFatalError, match="questions"):
            await QuestionSetLoader(backend).load(INTERVIEW_ID)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("interview_id", ["", "   "])
    async def test_blank_id_is_fatal(self, interview_id: str) -> None:
        """An empty interview id never reaches the backend."""
        with pytest.raises(LoadFatalError):
            await QuestionSetLoader(make_backend()).load(interview_id)

    @pytest.mark.asyncio
    async def test_missing_interview_is_fatal(self) -> None:
        """Unknown interviews fail with 'Interview not found.'."""
        with pytest.raises(LoadFatalError, match="Interview not found"):
            await QuestionSetLoader(make_backend()).load("iv-missing")

    @pytest.mark.asyncio
    async def test_fetch_error_keeps_cause(self) -> None:
        """Backend errors are wrapped with their cause."""
        backend = make_backend(fail_operations=["fetch_interview_meta"])

        with pytest.raises(LoadFatalError) as exc_info:
            await QuestionSetLoader(backend).load(INTERVIEW_ID)

        assert exc_info.value.cause is not None
        assert exc_info.value.interview_id == INTERVIEW_ID
