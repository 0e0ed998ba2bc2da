"""
Azure OpenAI implementation of ProtocolRecommendationService.

The model only picks among catalog protocols. Any answer that cannot be parsed,
or that names a protocol outside the catalog, falls back to the keyword rules.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

from ...application.ports.services.recommendation_service import (
    ProtocolRecommendation,
    ProtocolRecommendationService,
)
from ...core.ai_client import AzureAIClient
from ...core.exceptions import ExternalServiceError
from ...core.constants import PROTOCOLS, find_point, find_protocol
from ...domain.entities.patient import PatientRecord
from .recommendation_service_rules import KeywordProtocolRecommendationService

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are an assistant to a certified apitherapy practitioner. "
    "Choose exactly one protocol from the catalog for the patient. "
    'Respond with JSON only: {"protocolId": "<catalog id>", "reasoning": "<one or two sentences>"}.'
)


def _catalog_text() -> str:
    lines = []
    for protocol in PROTOCOLS:
        points = ", ".join(
            find_point(point_id).name if find_point(point_id) else point_id
            for point_id in protocol.recommended_points
        )
        lines.append(f"- {protocol.id}: {protocol.name}. {protocol.description} Points: {points}")
    return "\n".join(lines)


def _extract_json(content: str) -> Optional[Dict[str, Any]]:
    """Parse the model output, tolerating a fenced or prefixed JSON object."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", content, re.DOTALL)
        if not match:
            return None
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError:
            return None
    return data if isinstance(data, dict) else None


class OpenAIProtocolRecommendationService(ProtocolRecommendationService):
    """Asks the configured Azure OpenAI deployment to pick a protocol."""

    def __init__(
        self,
        client: Optional[AzureAIClient] = None,
        fallback: Optional[KeywordProtocolRecommendationService] = None,
    ) -> None:
        self._client = client or AzureAIClient()
        self._fallback = fallback or KeywordProtocolRecommendationService()

    def _build_prompt(self, patient: PatientRecord) -> str:
        return (
            f"Catalog:\n{_catalog_text()}\n\n"
            f"Patient:\n"
            f"- Age: {patient.age}\n"
            f"- Condition: {patient.condition or 'not stated'}\n"
            f"- Severity: {patient.severity.value}\n"
            f"- Notes: {patient.notes or 'none'}"
        )

    async def recommend(self, patient: PatientRecord) -> ProtocolRecommendation:
        messages = [
            {"role": "system", "content": _SYSTEM_PROMPT},
            {"role": "user", "content": self._build_prompt(patient)},
        ]
        try:
            response = await self._client.chat(messages, max_tokens=300)
            content = response.choices[0].message.content or ""
        except ExternalServiceError as e:
            logger.warning(f"Protocol recommendation request failed, using keyword rules: {e.message}")
            return await self._fallback.recommend(patient)

        data = _extract_json(content)
        if data is None:
            logger.warning("Protocol recommendation was not valid JSON, using keyword rules")
            return await self._fallback.recommend(patient)

        protocol_id = str(data.get("protocolId") or "").strip()
        if find_protocol(protocol_id) is None:
            logger.warning(f"Model suggested unknown protocol '{protocol_id}', using keyword rules")
            return await self._fallback.recommend(patient)

        reasoning = str(data.get("reasoning") or "").strip() or "Suggested by the assistant."
        logger.info(f"Model recommended protocol {protocol_id}")
        return ProtocolRecommendation(protocol_id=protocol_id, reasoning=reasoning, source="ai")
