"""
Durable session slot implementations.

The slot is a single fixed key holding the full JSON-serialized session:
overwritten wholesale on save, read wholesale on restore, removed on reset.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional, Union

from ...application.ports.repositories.session_repo import SessionRepository
from ...core.exceptions import SessionStorageError
from ...domain.entities.session import SessionState
from ...domain.errors import InvalidPatientDataError

logger = logging.getLogger(__name__)


def _decode(raw: str) -> Optional[SessionState]:
    """Parse a stored value; anything that is not a session counts as no session."""
    try:
        return SessionState.from_dict(json.loads(raw))
    except (ValueError, TypeError, RecursionError, InvalidPatientDataError) as e:
        # json.JSONDecodeError is a ValueError; deep nesting raises RecursionError
        logger.warning(f"Discarding unreadable stored session: {e}")
        return None


def _encode(state: SessionState) -> str:
    return json.dumps(state.to_dict(), ensure_ascii=False)


class FileSessionRepository(SessionRepository):
    """Slot stored as ``<storage_dir>/<key>.json``."""

    def __init__(self, storage_dir: Union[str, Path], key: str) -> None:
        self.path = Path(storage_dir) / f"{key}.json"

    def load(self) -> Optional[SessionState]:
        if not self.path.exists():
            return None
        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SessionStorageError(
                f"Failed to read session slot: {e}", {"path": str(self.path)}
            ) from e
        return _decode(raw)

    def save(self, state: SessionState) -> bool:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(_encode(state), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise SessionStorageError(
                f"Failed to write session slot: {e}", {"path": str(self.path)}
            ) from e
        return True

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise SessionStorageError(
                f"Failed to remove session slot: {e}", {"path": str(self.path)}
            ) from e


class InMemorySessionRepository(SessionRepository):
    """Slot kept in a dict of raw strings, for tests and ephemeral runs."""

    def __init__(self, key: str = "apitherapy_current_session", raw: Optional[str] = None) -> None:
        self.key = key
        self.slots: Dict[str, str] = {}
        self.save_count = 0
        if raw is not None:
            self.slots[key] = raw

    @property
    def raw(self) -> Optional[str]:
        return self.slots.get(self.key)

    def load(self) -> Optional[SessionState]:
        raw = self.slots.get(self.key)
        if raw is None:
            return None
        return _decode(raw)

    def save(self, state: SessionState) -> bool:
        self.slots[self.key] = _encode(state)
        self.save_count += 1
        return True

    def clear(self) -> None:
        self.slots.pop(self.key, None)
