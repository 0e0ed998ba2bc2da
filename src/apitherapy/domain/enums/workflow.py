"""
Treatment flow phase and top-level view enums.
"""

from enum import Enum


class TreatmentStep(str, Enum):
    """Phases of the caretaker treatment flow."""
    INTAKE = "intake"                     # Patient form
    SELECTION = "selection"               # Protocol selection
    INTERACTIVE_MAP = "interactive_map"   # Point mapping on the body model
    SUMMARY = "summary"                   # Finalized session record


class AppView(str, Enum):
    """Top-level views; autosave only runs while TREATMENT is in focus."""
    LOGIN = "login"
    TREATMENT = "treatment"
    ONBOARDING = "onboarding"
    REPORTING = "reporting"
    ADMIN = "admin"


class Severity(str, Enum):
    """Caretaker-assessed condition severity."""
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"

    @classmethod
    def parse(cls, value: str) -> "Severity":
        """Accept any casing ('Moderate', 'moderate')."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())
