"""
Session repository interface for the durable session slot.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ....domain.entities.session import SessionState


class SessionRepository(ABC):
    """Abstract durable slot holding exactly one serialized session."""

    @abstractmethod
    def load(self) -> Optional[SessionState]:
        """Return the stored session, or None when the slot is empty or unreadable as a session.

        Raises SessionStorageError when the slot itself cannot be read.
        """
        pass

    @abstractmethod
    def save(self, state: SessionState) -> bool:
        """Overwrite the slot with the full serialized state.

        Raises SessionStorageError when the write fails.
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove the slot wholesale. Clearing an empty slot is not an error."""
        pass
