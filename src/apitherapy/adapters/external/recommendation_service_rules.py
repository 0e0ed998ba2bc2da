"""
Keyword-based implementation of ProtocolRecommendationService.

Used when Azure OpenAI is not configured, and as the fallback when the AI
recommendation fails.
"""

import logging
import re

from ...application.ports.services.recommendation_service import (
    ProtocolRecommendation,
    ProtocolRecommendationService,
)
from ...core.constants import DEFAULT_PROTOCOL_ID, PROTOCOL_KEYWORDS, find_protocol
from ...domain.entities.patient import PatientRecord

logger = logging.getLogger(__name__)


class KeywordProtocolRecommendationService(ProtocolRecommendationService):
    """Matches the patient's condition and notes against protocol keywords."""

    async def recommend(self, patient: PatientRecord) -> ProtocolRecommendation:
        return self.recommend_sync(patient)

    def recommend_sync(self, patient: PatientRecord) -> ProtocolRecommendation:
        text = f"{patient.condition} {patient.notes}".lower()
        for protocol_id, keywords in PROTOCOL_KEYWORDS:
            matched = next((kw for kw in keywords if re.search(rf"\b{re.escape(kw)}", text)), None)
            if matched:
                protocol = find_protocol(protocol_id)
                logger.info(f"Keyword '{matched}' selected protocol {protocol_id}")
                return ProtocolRecommendation(
                    protocol_id=protocol_id,
                    reasoning=(
                        f"The patient's condition mentions '{matched}', which the "
                        f"{protocol.name} addresses at {patient.severity.value} severity."
                    ),
                    source="rules",
                )

        default = find_protocol(DEFAULT_PROTOCOL_ID)
        return ProtocolRecommendation(
            protocol_id=DEFAULT_PROTOCOL_ID,
            reasoning=f"Could not determine a specific protocol, defaulting to {default.name}.",
            source="rules",
        )
