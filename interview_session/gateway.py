"""
Best-effort persistence of answers and completion status.

Writes never raise: every failure is logged and returned as a failed
PersistenceResult. ``schedule`` detaches a write from the transition that
triggered it; the state machine never awaits it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Coroutine, Optional

from .collaborator import PARTICIPANT_STATUS_COMPLETED, DataCollaborator


__all__ = ["PersistenceResult", "ResponsePersistenceGateway"]


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersistenceResult:
    """Outcome of one persistence attempt."""

    operation: str
    ok: bool
    skipped: bool = False
    detail: str | None = None


class ResponsePersistenceGateway:
    """
    Sends finalized answers and completion status to the data collaborator.

    Example:
        >>> gateway = ResponsePersistenceGateway(backend)
        >>> gateway.schedule(gateway.record_answer("cand-1", "q1", "My answer"))
        >>> await gateway.drain()
    """

    def __init__(self, collaborator: DataCollaborator) -> None:
        self._collaborator = collaborator
        self._pending: set[asyncio.Task[PersistenceResult]] = set()

    @property
    def pending_count(self) -> int:
        """Number of detached writes still running."""
        return len(self._pending)

    async def record_answer(
        self,
        participant_id: Optional[str],
        question_id: str,
        text: str,
    ) -> PersistenceResult:
        """
        Append one response record.

        Skipped silently when ``participant_id`` is None (company previews and
        candidates without a backend id).
        """
        operation = "record_answer"
        if participant_id is None:
            logger.debug("No participant id, skipping answer persistence")
            return PersistenceResult(operation=operation, ok=True, skipped=True)

        try:
            await self._collaborator.insert_response(participant_id, question_id, text)
        except Exception as e:  # noqa: BLE001 - persistence must never throw
            logger.error("Error saving response for question %s: %s", question_id, e)
            return PersistenceResult(operation=operation, ok=False, detail=str(e))

        logger.info("Saved response for participant %s, question %s", participant_id, question_id)
        return PersistenceResult(operation=operation, ok=True)

    async def mark_completed(self, participant_id: Optional[str]) -> PersistenceResult:
        """Set the participant's status to completed. Skipped without a participant id."""
        operation = "mark_completed"
        if participant_id is None:
            logger.debug("No participant id, skipping completion status")
            return PersistenceResult(operation=operation, ok=True, skipped=True)

        try:
            await self._collaborator.update_participant_status(
                participant_id, PARTICIPANT_STATUS_COMPLETED
            )
        except Exception as e:  # noqa: BLE001 - persistence must never throw
            logger.error("Error updating status for participant %s: %s", participant_id, e)
            return PersistenceResult(operation=operation, ok=False, detail=str(e))

        logger.info("Participant %s marked completed", participant_id)
        return PersistenceResult(operation=operation, ok=True)

    def schedule(
        self, write: Coroutine[object, object, PersistenceResult]
    ) -> asyncio.Task[PersistenceResult]:
        """
        Run a write detached from the caller.

        The task is tracked until it finishes so it is not garbage collected
        mid-flight and so ``drain`` can wait for it.
        """
        task = asyncio.get_running_loop().create_task(write)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> list[PersistenceResult]:
        """Wait for every pending write and return their results."""
        if not self._pending:
            return []
        tasks = list(self._pending)
        return list(await asyncio.gather(*tasks))
