"""
Unit tests for the simulated answer capture.
"""

from __future__ import annotations

import asyncio

import pytest

from interview_session.capture import (
    DEFAULT_TICK_SECONDS,
    DEFAULT_TRAILING_PAUSE_SECONDS,
    FALLBACK_ANSWER,
    SAMPLE_ANSWERS,
    AnswerCaptureSimulator,
    iter_reveal,
)
from tests.mock_data import SteppedSleep, instant_sleep


class TestIterReveal:
    """Tests for iter_reveal."""

    def test_prefixes_grow_by_one(self) -> None:
        """Every prefix is one character longer than the previous."""
        assert list(iter_reveal("abc")) == ["a", "ab", "abc"]

    def test_empty_answer_yields_nothing(self) -> None:
        """An empty answer has no prefixes."""
        assert list(iter_reveal("")) == []


class TestAnswerPool:
    """Tests for answer selection."""

    def test_defaults(self) -> None:
        """Default timings and pool come from the module constants."""
        simulator = AnswerCaptureSimulator()

        assert simulator.tick_seconds == DEFAULT_TICK_SECONDS == 0.03
        assert simulator.trailing_pause_seconds == DEFAULT_TRAILING_PAUSE_SECONDS == 0.5
        assert len(SAMPLE_ANSWERS) == 5
        assert simulator.answer_for(0) == SAMPLE_ANSWERS[0]

    def test_out_of_range_uses_fallback(self) -> None:
        """Indexes outside the pool get the generic answer."""
        simulator = AnswerCaptureSimulator()

        assert simulator.answer_for(5) == FALLBACK_ANSWER
        assert simulator.answer_for(-1) == FALLBACK_ANSWER

    def test_negative_durations_rejected(self) -> None:
        """Tick and pause must be non-negative."""
        with pytest.raises(ValueError):
            AnswerCaptureSimulator(tick_seconds=-0.1)


class TestReveal:
    """Tests for start / cancel."""

    @pytest.mark.asyncio
    async def test_reveal_calls_back_in_order(self) -> None:
        """Callbacks receive every prefix then a single finish."""
        simulator = AnswerCaptureSimulator(sleep=instant_sleep, answers=["ok!"])
        texts: list[str] = []
        finished: list[bool] = []

        task = simulator.start(0, on_text=texts.append, on_finished=lambda: finished.append(True))
        assert task is not None
        assert simulator.is_recording is True
        await task

        assert texts == ["o", "ok", "ok!"]
        assert finished == [True]
        assert simulator.is_recording is False

    @pytest.mark.asyncio
    async def test_second_start_is_ignored(self) -> None:
        """Only one reveal runs at a time."""
        sleep = SteppedSleep()
        simulator = AnswerCaptureSimulator(sleep=sleep, answers=["xy"])
        texts: list[str] = []

        first = simulator.start(0, on_text=texts.append, on_finished=lambda: None)
        second = simulator.start(0, on_text=texts.append, on_finished=lambda: None)

        assert first is not None
        assert second is None

        await sleep.release(3)
        await first
        assert texts == ["x", "xy"]

    @pytest.mark.asyncio
    async def test_cancel_stops_reveal(self) -> None:
        """cancel() ends the reveal without calling on_finished."""
        sleep = SteppedSleep()
        simulator = AnswerCaptureSimulator(sleep=sleep, answers=["long answer"])
        finished: list[bool] = []

        task = simulator.start(0, on_text=lambda _: None, on_finished=lambda: finished.append(True))
        await sleep.release(2)
        simulator.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert finished == []
        assert simulator.is_recording is False

    @pytest.mark.asyncio
    async def test_cancel_when_idle_is_noop(self) -> None:
        """Cancelling without a reveal does nothing."""
        simulator = AnswerCaptureSimulator()
        simulator.cancel()

        assert simulator.is_recording is False
