"""
Storage adapters for the durable session slot.
"""

from .local_session_storage import FileSessionRepository, InMemorySessionRepository

__all__ = [
    "FileSessionRepository",
    "InMemorySessionRepository",
]
