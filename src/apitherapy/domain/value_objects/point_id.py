"""
Point ID value object: opaque key into the anatomical point catalog.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PointId:
    """Immutable treatment point identifier value object."""

    value: str

    def __post_init__(self) -> None:
        """Validate point ID."""
        if not isinstance(self.value, str):
            raise ValueError("Point ID must be a string")

        if not self.value.strip():
            raise ValueError("Point ID cannot be empty")

    def __str__(self) -> str:
        """String representation."""
        return self.value

    def __eq__(self, other: Any) -> bool:
        """Equality comparison."""
        if not isinstance(other, PointId):
            return False
        return self.value == other.value

    def __hash__(self) -> int:
        """Hash for use in sets and dictionaries."""
        return hash(self.value)
