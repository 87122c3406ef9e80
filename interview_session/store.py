"""
Persisted key-value state for interview sessions.

The access gate and the interview flow share a small key-value store (the
browser-local storage of a web client). Participant identity lives under
three keys and the completed-session snapshot under a fourth:

    candidateId       participant id assigned by the access gate
    candidateName     participant display name
    interviewId       interview the identity was issued for
    interviewResults  JSON snapshot read by the feedback report

Identity keys are written on join and cleared when a candidate finishes.
The snapshot is overwritten every time a session completes.

Thread Safety:
    Stores are NOT thread-safe. Use one instance per event loop.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Protocol

from pydantic import ValidationError as PydanticValidationError

from .errors import StoreError
from .models import ParticipantIdentity, SessionResultSnapshot


__all__ = [
    "CANDIDATE_ID_KEY",
    "CANDIDATE_NAME_KEY",
    "INTERVIEW_ID_KEY",
    "INTERVIEW_RESULTS_KEY",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "SessionStore",
    "SessionResultStore",
]


logger = logging.getLogger(__name__)


CANDIDATE_ID_KEY = "candidateId"
CANDIDATE_NAME_KEY = "candidateName"
INTERVIEW_ID_KEY = "interviewId"
INTERVIEW_RESULTS_KEY = "interviewResults"

IDENTITY_KEYS = (CANDIDATE_ID_KEY, CANDIDATE_NAME_KEY, INTERVIEW_ID_KEY)


class KeyValueStore(Protocol):
    """String key-value storage shared by the access gate and the interview flow."""

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent."""

    def set(self, key: str, value: str) -> None:
        """Store a value, overwriting any previous one."""

    def delete(self, key: str) -> None:
        """Remove a key. Removing an absent key is not an error."""


class InMemoryKeyValueStore:
    """Dictionary-backed store, one per process."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        """Return a copy of all stored keys."""
        return dict(self._data)


class JsonFileKeyValueStore:
    """
    Key-value store persisted as a single JSON object on disk.

    The whole document is rewritten on every mutation.

    Example:
        >>> kv = JsonFileKeyValueStore(Path("./output/session_state.json"))
        >>> kv.set("candidateName", "Jane Doe")
        >>> kv.get("candidateName")
        'Jane Doe'
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(self.path, e) from e

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StoreError(self.path, e) from e
        except OSError as e:
            raise StoreError(self.path, e) from e

        if not isinstance(data, dict):
            raise StoreError(self.path, ValueError("store document is not a JSON object"))
        return {str(k): str(v) for k, v in data.items()}

    def _write_all(self, data: dict[str, str]) -> None:
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise StoreError(self.path, e) from e

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)
        logger.debug("Stored key %s in %s", key, self.path)

    def delete(self, key: str) -> None:
        data = self._read_all()
        if key not in data:
            return
        del data[key]
        self._write_all(data)
        logger.debug("Deleted key %s from %s", key, self.path)


class SessionStore:
    """
    Reads and clears the participant identity left by the access gate.

    Example:
        >>> store = SessionStore(kv)
        >>> identity = store.resolve("iv-1")
        >>> if identity is None:
        ...     pass  # ask for a name
    """

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv

    def resolve(self, interview_id: str) -> Optional[ParticipantIdentity]:
        """
        Return the stored identity if it was issued for ``interview_id``.

        A missing key, an unreadable store or an identity issued for another
        interview returns None, which sends the participant through manual
        name entry.
        """
        try:
            participant_id = self._kv.get(CANDIDATE_ID_KEY)
            participant_name = self._kv.get(CANDIDATE_NAME_KEY)
            stored_interview_id = self._kv.get(INTERVIEW_ID_KEY)
        except StoreError as e:
            logger.warning("Stored participant identity unreadable: %s", e)
            return None

        if not (participant_id and participant_name and stored_interview_id):
            logger.debug("No stored participant identity")
            return None

        if stored_interview_id != interview_id:
            logger.info(
                "Stored identity belongs to interview %s, not %s",
                stored_interview_id,
                interview_id,
            )
            return None

        return ParticipantIdentity(
            participant_id=participant_id,
            participant_name=participant_name,
            interview_id=stored_interview_id,
        )

    def remember(self, identity: ParticipantIdentity) -> None:
        """Persist the identity issued by the access gate."""
        self._kv.set(CANDIDATE_ID_KEY, identity.participant_id)
        self._kv.set(CANDIDATE_NAME_KEY, identity.participant_name)
        self._kv.set(INTERVIEW_ID_KEY, identity.interview_id)
        logger.info(
            "Stored identity for participant %s (interview %s)",
            identity.participant_id,
            identity.interview_id,
        )

    def clear(self) -> None:
        """Remove all identity keys so the next interview needs a fresh join."""
        for key in IDENTITY_KEYS:
            self._kv.delete(key)
        logger.info("Cleared stored participant identity")


class SessionResultStore:
    """Writes and reads the completed-session snapshot."""

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv

    def write(self, snapshot: SessionResultSnapshot) -> None:
        """Overwrite the stored snapshot."""
        self._kv.set(INTERVIEW_RESULTS_KEY, snapshot.model_dump_json(by_alias=True))
        logger.info(
            "Wrote session result snapshot for '%s' (%d questions)",
            snapshot.participant_name,
            len(snapshot.questions),
        )

    def read(self) -> Optional[SessionResultSnapshot]:
        """
        Return the stored snapshot, or None if none has been written.

        Raises:
            StoreError: If the stored document is not a valid snapshot.
        """
        raw = self._kv.get(INTERVIEW_RESULTS_KEY)
        if raw is None:
            return None
        try:
            return SessionResultSnapshot.model_validate_json(raw)
        except PydanticValidationError as e:
            raise StoreError(INTERVIEW_RESULTS_KEY, e) from e
