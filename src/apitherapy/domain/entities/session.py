"""Treatment session state and the finalized session summary."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..enums.workflow import TreatmentStep
from .patient import PatientRecord
from .protocol import Protocol

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    """In-progress caretaker session.

    ``applied_points`` keeps first-toggle order and never holds duplicates.
    ``selected_protocol`` is only ever set while ``patient`` is set.
    """

    patient: Optional[PatientRecord] = None
    selected_protocol: Optional[Protocol] = None
    applied_points: List[str] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "SessionState":
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.patient is None and self.selected_protocol is None and not self.applied_points

    def toggle_point(self, point_id: str) -> bool:
        """Flip membership of ``point_id``. Returns True when the point is now applied."""
        if point_id in self.applied_points:
            self.applied_points = [p for p in self.applied_points if p != point_id]
            return False
        self.applied_points = [*self.applied_points, point_id]
        return True

    def derive_step(self) -> TreatmentStep:
        """Phase implied by the state alone (the summary phase is never derived)."""
        if self.patient is None:
            return TreatmentStep.INTAKE
        if self.selected_protocol is None:
            return TreatmentStep.SELECTION
        return TreatmentStep.INTERACTIVE_MAP

    def to_dict(self) -> Dict[str, Any]:
        return {
            "patient": self.patient.to_dict() if self.patient else None,
            "selectedProtocol": self.selected_protocol.to_dict() if self.selected_protocol else None,
            "appliedPoints": list(self.applied_points),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SessionState":
        """Rebuild a state from its serialized form.

        Raises ValueError (or InvalidPatientDataError) when the payload is not
        a session. Invariant violations inside an otherwise valid payload are
        repaired rather than rejected.
        """
        if not isinstance(data, dict):
            raise ValueError("Session payload must be an object")

        raw_patient = data.get("patient")
        raw_protocol = data.get("selectedProtocol")
        raw_points = data.get("appliedPoints", [])
        if raw_points is None:
            raw_points = []
        if not isinstance(raw_points, list) or not all(isinstance(p, str) for p in raw_points):
            raise ValueError("appliedPoints must be a list of point ids")

        patient = PatientRecord.from_dict(raw_patient) if raw_patient is not None else None
        protocol = Protocol.from_dict(raw_protocol) if raw_protocol is not None else None

        if protocol is not None and patient is None:
            logger.warning("Stored session has a protocol without a patient; dropping protocol")
            protocol = None

        points: List[str] = []
        for point_id in raw_points:
            if point_id not in points:
                points.append(point_id)
        if len(points) != len(raw_points):
            logger.warning("Stored session had duplicate applied points; collapsed them")

        return cls(patient=patient, selected_protocol=protocol, applied_points=points)


@dataclass(frozen=True)
class TreatmentSummary:
    """Read-only record of a finalized session."""

    reference_id: str
    patient: PatientRecord
    protocol: Protocol
    applied_points: Tuple[Tuple[str, str], ...]
    started_at: datetime
    ended_at: datetime
    duration_minutes: int

    @property
    def sting_count(self) -> int:
        return len(self.applied_points)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reference_id": self.reference_id,
            "patient": self.patient.to_dict(),
            "protocol": self.protocol.to_dict(),
            "applied_points": [
                {"id": point_id, "name": name} for point_id, name in self.applied_points
            ],
            "sting_count": self.sting_count,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat(),
            "duration_minutes": self.duration_minutes,
        }
