"""FastAPI dependency providers.

The session store is the composition root of the caretaker session: one
instance per process, owned here and injected into the routers.
"""

import logging
from functools import lru_cache

from ..adapters.external.recommendation_service_openai import OpenAIProtocolRecommendationService
from ..adapters.external.recommendation_service_rules import KeywordProtocolRecommendationService
from ..adapters.storage.local_session_storage import FileSessionRepository
from ..application.autosave import AutosaveIndicator, ThreadingScheduler
from ..application.ports.services.recommendation_service import ProtocolRecommendationService
from ..application.session_store import SessionStore
from ..core.config import get_settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_session_store() -> SessionStore:
    """Get the process-wide session store, restored from the durable slot."""
    settings = get_settings()
    repository = FileSessionRepository(
        settings.session.storage_dir, settings.session.storage_key
    )
    indicator = AutosaveIndicator(
        ThreadingScheduler(), settle_seconds=settings.session.autosave_settle_seconds
    )
    return SessionStore(repository, indicator)


@lru_cache()
def get_recommendation_service() -> ProtocolRecommendationService:
    """Azure OpenAI recommender when configured, keyword rules otherwise."""
    settings = get_settings()
    if settings.azure_openai.is_configured:
        logger.info("Using Azure OpenAI protocol recommendations")
        return OpenAIProtocolRecommendationService()
    logger.info("Azure OpenAI not configured, using keyword protocol recommendations")
    return KeywordProtocolRecommendationService()
