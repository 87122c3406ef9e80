"""
Simulated answer capture.

Stands in for a speech-to-text device: a predetermined answer is revealed
one character per tick, then recording stops after a short trailing pause.
The reveal runs as an asyncio task whose ``sleep`` is injectable, so tests
can step it tick by tick instead of waiting on the wall clock.

Usage:
    simulator = AnswerCaptureSimulator()
    task = simulator.start(0, on_text=print, on_finished=lambda: None)
    await task
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterator, Optional, Sequence


__all__ = [
    "SAMPLE_ANSWERS",
    "FALLBACK_ANSWER",
    "DEFAULT_TICK_SECONDS",
    "DEFAULT_TRAILING_PAUSE_SECONDS",
    "AnswerCaptureSimulator",
    "iter_reveal",
]


logger = logging.getLogger(__name__)


DEFAULT_TICK_SECONDS = 0.03
DEFAULT_TRAILING_PAUSE_SECONDS = 0.5

SAMPLE_ANSWERS: tuple[str, ...] = (
    "I have over 5 years of experience with React and have also worked extensively with Vue.js and Angular. I've built multiple production applications using these frameworks and understand the core concepts of component-based architecture, state management, and modern JavaScript features.",
    "One of the most challenging projects I worked on was a real-time collaboration tool. We faced performance issues with simultaneous edits. I implemented a custom conflict resolution algorithm based on operational transformation which solved our issues and improved performance by 40%.",
    "I subscribe to several newsletters like JavaScript Weekly and follow influential developers on Twitter. I also dedicate time each week to explore new libraries and techniques, and I attend local meetups and conferences when possible.",
    "When debugging complex issues, I first isolate the problem by creating a minimal reproduction. Then I use browser dev tools, logging, and breakpoints to trace the issue. I also use tools like React DevTools for component-specific debugging.",
    "I view feedback as an opportunity to grow. I try to separate myself from my work and consider the feedback objectively. I ask clarifying questions to fully understand the concerns, then prioritize and implement improvements based on the input.",
)

FALLBACK_ANSWER = (
    "Thank you for the question. I believe my skills and experience make me "
    "a good fit for this position."
)


SleepFn = Callable[[float], Awaitable[None]]


def iter_reveal(answer: str) -> Iterator[str]:
    """
    Yield each growing prefix of ``answer``, one character longer per tick.

    Example:
        >>> list(iter_reveal("abc"))
        ['a', 'ab', 'abc']
    """
    for end in range(1, len(answer) + 1):
        yield answer[:end]


class AnswerCaptureSimulator:
    """
    Single-flight, tick-driven answer reveal.

    Starting while a reveal is in flight is a no-op. A reveal is only
    interrupted by ``cancel()``, which belongs to session teardown.
    """

    def __init__(
        self,
        tick_seconds: float = DEFAULT_TICK_SECONDS,
        trailing_pause_seconds: float = DEFAULT_TRAILING_PAUSE_SECONDS,
        sleep: SleepFn = asyncio.sleep,
        answers: Sequence[str] = SAMPLE_ANSWERS,
        fallback_answer: str = FALLBACK_ANSWER,
    ) -> None:
        if tick_seconds < 0 or trailing_pause_seconds < 0:
            raise ValueError("tick and pause durations must be non-negative")
        self.tick_seconds = tick_seconds
        self.trailing_pause_seconds = trailing_pause_seconds
        self._sleep = sleep
        self._answers = tuple(answers)
        self._fallback_answer = fallback_answer
        self._recording = False
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def is_recording(self) -> bool:
        """Whether a reveal is in flight."""
        return self._recording

    def answer_for(self, question_index: int) -> str:
        """Return the pooled answer for a question index, or the generic fallback."""
        if 0 <= question_index < len(self._answers):
            return self._answers[question_index]
        return self._fallback_answer

    def start(
        self,
        question_index: int,
        on_text: Callable[[str], None],
        on_finished: Callable[[], None],
    ) -> Optional[asyncio.Task[None]]:
        """
        Begin revealing the answer for ``question_index``.

        Must be called from a running event loop.

        Args:
            question_index: Index of the question being answered.
            on_text: Receives each growing prefix.
            on_finished: Called once the full answer and trailing pause elapsed.

        Returns:
            The reveal task, or None if a reveal was already in flight.
        """
        if self._recording:
            logger.debug("Recording already in progress, ignoring start")
            return None

        answer = self.answer_for(question_index)
        self._recording = True
        self._task = asyncio.get_running_loop().create_task(
            self._reveal(answer, on_text, on_finished)
        )
        logger.info(
            "Recording started for question %d (%d characters)",
            question_index + 1,
            len(answer),
        )
        return self._task

    async def _reveal(
        self,
        answer: str,
        on_text: Callable[[str], None],
        on_finished: Callable[[], None],
    ) -> None:
        try:
            for prefix in iter_reveal(answer):
                await self._sleep(self.tick_seconds)
                on_text(prefix)
            await self._sleep(self.trailing_pause_seconds)
        except asyncio.CancelledError:
            logger.info("Recording cancelled")
            self._recording = False
            raise
        self._recording = False
        on_finished()
        logger.debug("Recording finished")

    def cancel(self) -> None:
        """Cancel an in-flight reveal. Does nothing when idle."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._recording = False
