"""
Protocol recommendation service interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ....domain.entities.patient import PatientRecord


@dataclass(frozen=True)
class ProtocolRecommendation:
    """A catalog protocol suggested for a patient, with the reasoning behind it."""

    protocol_id: str
    reasoning: str
    source: str  # "ai" or "rules"


class ProtocolRecommendationService(ABC):
    """Abstract interface for protocol recommendation."""

    @abstractmethod
    async def recommend(self, patient: PatientRecord) -> ProtocolRecommendation:
        """
        Recommend one catalog protocol for the patient.

        Args:
            patient: Submitted patient record

        Returns:
            ProtocolRecommendation whose protocol_id is always a catalog id
        """
        pass
