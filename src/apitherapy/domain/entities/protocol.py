"""Static catalog entities: anatomical treatment points and protocols."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class TreatmentPoint:
    """Anatomical sting point on the body model."""

    id: str
    name: str
    position: Tuple[float, float, float]
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "position": list(self.position),
            "description": self.description,
        }


@dataclass(frozen=True)
class Protocol:
    """Named bundle of recommended treatment points. Never mutated at runtime."""

    id: str
    name: str
    description: str
    recommended_points: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the durable slot's camelCase keys."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "recommendedPoints": list(self.recommended_points),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Protocol":
        if not isinstance(data, dict) or not data.get("id"):
            raise ValueError("Protocol payload must be an object with an id")
        points = data.get("recommendedPoints", [])
        if not isinstance(points, list):
            raise ValueError("recommendedPoints must be a list")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            description=str(data.get("description", "")),
            recommended_points=tuple(str(p) for p in points),
        )
