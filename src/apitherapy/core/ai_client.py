"""
Simple Azure OpenAI client wrapper for protocol recommendation.

Connects directly to Azure OpenAI via AsyncAzureOpenAI using the deployment
configured in ``Settings.azure_openai``. Retries and fallbacks are handled
by the callers.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

import openai
from openai import AsyncAzureOpenAI

from .config import AzureOpenAISettings, get_settings
from .exceptions import OpenAIError


class AzureAIClient:
    """Thin wrapper around AsyncAzureOpenAI chat completions."""

    def __init__(self, settings: Optional[AzureOpenAISettings] = None) -> None:
        """
        Initialize AzureAIClient.

        If settings are omitted, values are loaded from application settings.
        """
        settings = settings or get_settings().azure_openai

        if not settings.endpoint or not settings.api_key:
            raise ValueError(
                "Azure OpenAI endpoint and API key must be configured. "
                "Set AZURE_OPENAI_ENDPOINT and AZURE_OPENAI_API_KEY."
            )

        if not settings.deployment_name:
            raise ValueError(
                "Azure OpenAI deployment name is required. "
                "Set AZURE_OPENAI_DEPLOYMENT_NAME."
            )

        self._deployment_name = settings.deployment_name
        self._temperature = settings.temperature
        self._client = AsyncAzureOpenAI(
            api_key=settings.api_key,
            api_version=settings.api_version,
            # Azure SDK does not expect a trailing slash
            azure_endpoint=settings.endpoint.rstrip("/"),
        )

    async def chat(
        self,
        messages: Sequence[Dict[str, str]],
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ):
        """Generic chat completion against the configured deployment.

        SDK failures are re-raised as ``OpenAIError``.
        """
        try:
            return await self._client.chat.completions.create(
                model=self._deployment_name,
                messages=list(messages),
                temperature=self._temperature if temperature is None else temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
        except openai.OpenAIError as e:
            raise OpenAIError(str(e), {"deployment": self._deployment_name}) from e
