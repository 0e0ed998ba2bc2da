"""Recommend a protocol for the patient of the current session."""

import logging

from ...domain.errors import PreconditionViolationError
from ..ports.services.recommendation_service import (
    ProtocolRecommendation,
    ProtocolRecommendationService,
)
from ..session_store import SessionStore

logger = logging.getLogger(__name__)


class RecommendProtocolUseCase:
    """Use case for suggesting a catalog protocol for the submitted patient."""

    def __init__(self, store: SessionStore, service: ProtocolRecommendationService):
        self._store = store
        self._service = service

    async def execute(self) -> ProtocolRecommendation:
        patient = self._store.state.patient
        if patient is None:
            raise PreconditionViolationError(
                "recommend a protocol", "patient intake must be submitted first"
            )

        recommendation = await self._service.recommend(patient)
        logger.info(
            f"Recommended {recommendation.protocol_id} for session patient "
            f"(source={recommendation.source})"
        )
        return recommendation
