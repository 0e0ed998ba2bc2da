"""
Domain entities package.
"""

from .patient import PatientRecord
from .protocol import Protocol, TreatmentPoint
from .session import SessionState, TreatmentSummary

__all__ = [
    "PatientRecord",
    "Protocol",
    "TreatmentPoint",
    "SessionState",
    "TreatmentSummary",
]
