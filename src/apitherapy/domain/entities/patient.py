"""Patient record entity entered by the caretaker during intake."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from ..enums.workflow import Severity
from ..errors import InvalidPatientDataError


@dataclass
class PatientRecord:
    """Caretaker-entered demographic and clinical fields."""

    full_name: str
    age: int
    condition: str = ""
    severity: Severity = Severity.MODERATE
    allergies_confirmed: bool = False
    notes: str = ""

    def __post_init__(self) -> None:
        """Validate patient data."""
        self._validate_patient_data()

    def _validate_patient_data(self) -> None:
        """Validate field types and ranges. Completeness is checked separately."""
        if not isinstance(self.full_name, str):
            raise InvalidPatientDataError("full_name", self.full_name)

        if len(self.full_name) > 120:
            raise InvalidPatientDataError("full_name", self.full_name[:50])

        # bool is an int subclass, reject it explicitly
        if isinstance(self.age, bool) or not isinstance(self.age, int) or not 0 <= self.age <= 120:
            raise InvalidPatientDataError("age", self.age)

        if not isinstance(self.severity, Severity):
            try:
                self.severity = Severity.parse(self.severity)
            except ValueError:
                raise InvalidPatientDataError("severity", self.severity) from None

        self.condition = self.condition or ""
        self.notes = self.notes or ""

    def is_complete(self) -> bool:
        """A record may start a session once named and screened for venom allergies."""
        return bool(self.full_name.strip()) and self.allergies_confirmed

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the durable slot's camelCase keys."""
        return {
            "fullName": self.full_name,
            "age": self.age,
            "condition": self.condition,
            "severity": self.severity.value,
            "allergiesConfirmed": self.allergies_confirmed,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatientRecord":
        if not isinstance(data, dict):
            raise InvalidPatientDataError("patient", data)
        return cls(
            full_name=data.get("fullName", ""),
            age=data.get("age", 0),
            condition=data.get("condition", ""),
            severity=data.get("severity", Severity.MODERATE.value),
            allergies_confirmed=bool(data.get("allergiesConfirmed", False)),
            notes=data.get("notes", ""),
        )
