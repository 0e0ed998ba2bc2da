"""
Pydantic schemas for the treatment session endpoints.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...domain.entities.patient import PatientRecord
from ...domain.enums.workflow import AppView, Severity


class PatientIntakeRequest(BaseModel):
    """Intake form. Accepts both snake_case and the stored camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    full_name: str = Field(..., alias="fullName", min_length=1, max_length=120, description="Patient full name")
    age: int = Field(..., ge=0, le=120, description="Patient age (0-120)")
    condition: str = Field("", max_length=500, description="Primary condition")
    severity: Severity = Field(Severity.MODERATE, description="mild, moderate or severe")
    allergies_confirmed: bool = Field(
        ..., alias="allergiesConfirmed", description="Venom allergy screening completed (must be true)"
    )
    notes: str = Field("", max_length=2000, description="Free-text caretaker notes")

    @field_validator("full_name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Full name cannot be empty")
        return v.strip()

    @field_validator("severity", mode="before")
    @classmethod
    def validate_severity(cls, v: Any) -> Severity:
        return Severity.parse(v)

    @field_validator("allergies_confirmed")
    @classmethod
    def validate_allergies(cls, v: bool) -> bool:
        if not v:
            raise ValueError("Venom allergy screening must be confirmed before treatment")
        return v

    def to_record(self) -> PatientRecord:
        return PatientRecord(
            full_name=self.full_name,
            age=self.age,
            condition=self.condition,
            severity=self.severity,
            allergies_confirmed=self.allergies_confirmed,
            notes=self.notes,
        )


class ProtocolSelectRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    protocol_id: str = Field(..., alias="protocolId", min_length=1, description="Catalog protocol id")


class ResetRequest(BaseModel):
    confirm: bool = Field(False, description="Must be true to clear the current session")


class ViewRequest(BaseModel):
    view: AppView = Field(..., description="Top-level view now in focus")


class SessionStateResponse(BaseModel):
    """Current session state, phase and autosave indicator."""

    state: Dict[str, Any]
    step: str
    active_view: str
    autosave_active: bool
    is_saving: bool
    last_saved_at: Optional[str] = None


class ToggleResponse(BaseModel):
    point_id: str
    applied: bool
    applied_points: List[str]


class RecommendationResponse(BaseModel):
    protocol_id: str
    protocol_name: str
    reasoning: str
    source: str
