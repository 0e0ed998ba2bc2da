"""
Protocol recommendation tests: keyword rules and the Azure OpenAI adapter.
"""

from types import SimpleNamespace

import pytest

from apitherapy.adapters.external.recommendation_service_openai import (
    OpenAIProtocolRecommendationService,
)
from apitherapy.adapters.external.recommendation_service_rules import (
    KeywordProtocolRecommendationService,
)
from apitherapy.application.use_cases.recommend_protocol import RecommendProtocolUseCase
from apitherapy.core.constants import find_protocol
from apitherapy.core.exceptions import OpenAIError
from apitherapy.domain.entities.patient import PatientRecord
from apitherapy.domain.errors import PreconditionViolationError


def _patient(condition="", notes="", severity="moderate"):
    return PatientRecord(
        full_name="Test", age=60, condition=condition, severity=severity,
        allergies_confirmed=True, notes=notes,
    )


class FakeAIClient:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.messages = None

    async def chat(self, messages, **kwargs):
        self.messages = messages
        if self.error is not None:
            raise self.error
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))])


@pytest.mark.parametrize(
    "condition,notes,expected",
    [
        ("Rheumatoid arthritis", "", "p1"),
        ("Knee pain", "", "p1"),
        ("Lower back pain", "", "p3"),
        ("", "history of sciatica", "p3"),
        ("Multiple sclerosis", "", "p2"),
        ("Chronic fatigue", "", "p2"),
        ("Migraine", "", "p2"),
    ],
)
@pytest.mark.asyncio
async def test_keyword_rules(condition, notes, expected):
    result = await KeywordProtocolRecommendationService().recommend(_patient(condition, notes))
    assert result.protocol_id == expected
    assert result.source == "rules"


@pytest.mark.asyncio
async def test_keyword_default_reasoning():
    result = await KeywordProtocolRecommendationService().recommend(_patient("Migraine"))
    assert result.reasoning == (
        "Could not determine a specific protocol, defaulting to Immune Modulation Protocol."
    )


@pytest.mark.asyncio
async def test_keywords_match_word_starts_only():
    # "back" inside "piggybacked" does not start a word
    result = await KeywordProtocolRecommendationService().recommend(_patient("Piggybacked"))
    assert result.protocol_id == "p2"


@pytest.mark.asyncio
async def test_ai_recommendation_is_used_when_valid():
    client = FakeAIClient('{"protocolId": "p3", "reasoning": "Lumbar focus."}')
    service = OpenAIProtocolRecommendationService(client=client)

    result = await service.recommend(_patient("Herniated lumbar disc", severity="severe"))

    assert result.protocol_id == "p3"
    assert result.reasoning == "Lumbar focus."
    assert result.source == "ai"
    prompt = client.messages[1]["content"]
    assert "Herniated lumbar disc" in prompt
    assert "severe" in prompt
    assert "p1: Arthritis Relief Protocol" in prompt


@pytest.mark.asyncio
async def test_ai_json_inside_code_fence():
    client = FakeAIClient('```json\n{"protocolId": "p1", "reasoning": "Joints."}\n```')
    result = await OpenAIProtocolRecommendationService(client=client).recommend(_patient())
    assert result.protocol_id == "p1"
    assert result.source == "ai"


@pytest.mark.parametrize(
    "client",
    [
        FakeAIClient('{"protocolId": "p9", "reasoning": "Made up."}'),
        FakeAIClient("I would suggest the arthritis protocol."),
        FakeAIClient("[1, 2]"),
        FakeAIClient(error=OpenAIError("deployment not found")),
    ],
)
@pytest.mark.asyncio
async def test_ai_failures_fall_back_to_rules(client):
    service = OpenAIProtocolRecommendationService(client=client)
    result = await service.recommend(_patient("Osteoarthritis of the hip"))
    assert result.protocol_id == "p1"
    assert result.source == "rules"


@pytest.mark.asyncio
async def test_use_case_requires_patient(store):
    use_case = RecommendProtocolUseCase(store, KeywordProtocolRecommendationService())
    with pytest.raises(PreconditionViolationError):
        await use_case.execute()


@pytest.mark.asyncio
async def test_use_case_recommends_for_session_patient(store):
    store.submit_patient(_patient("Lupus"))
    result = await RecommendProtocolUseCase(store, KeywordProtocolRecommendationService()).execute()
    assert find_protocol(result.protocol_id).name == "Immune Modulation Protocol"
