# File: voxredact/features/generation/data/remote_llm_adapter.py
import logging
from typing import Any, Dict, Optional

import httpx

from voxredact.core.cancellation import CancellationToken
from voxredact.core.common.enums import LlmProvider
from voxredact.core.config.settings import settings
from voxredact.core.errors import MissingCredentialError
from voxredact.core.http import cancellable_client, raise_for_service
from voxredact.features.recordings.domain.models import ApiKeys
from ..domain.interfaces import IGenerator
from ..domain.models import ProviderConfig

logger = logging.getLogger(__name__)

DISPLAY_NAMES = {
    LlmProvider.OPENAI: "OpenAI",
    LlmProvider.GEMINI: "Gemini",
    LlmProvider.MISTRAL: "Mistral",
}


def has_api_key_for(api_keys: ApiKeys, provider: str) -> bool:
    try:
        return bool(api_keys.key_for(LlmProvider(provider)))
    except ValueError:
        return False


class RemoteGenerationClient(IGenerator):
    """
    Direct REST calls to OpenAI, Gemini or Mistral. One client per call so
    that cancellation can close it.
    """

    def __init__(
        self,
        temperature: float = settings.LLM_TEMPERATURE,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.temperature = temperature
        self.timeout = timeout
        self.transport = transport

    def generate(
        self,
        text: str,
        config: ProviderConfig,
        api_keys: ApiKeys,
        token: Optional[CancellationToken] = None,
    ) -> str:
        try:
            provider = LlmProvider(config.provider)
        except ValueError:
            raise ValueError(f"Unsupported LLM provider: {config.provider}")

        token = token or CancellationToken()
        api_key = api_keys.key_for(provider)
        if not api_key:
            raise MissingCredentialError(DISPLAY_NAMES[provider])

        full_prompt = config.build_prompt(text)
        logger.info(f"Processing with {provider.value}/{config.model}")

        if provider == LlmProvider.GEMINI:
            return self._call_gemini(full_prompt, config.model, api_key, token)
        base = settings.OPENAI_API_BASE if provider == LlmProvider.OPENAI else settings.MISTRAL_API_BASE
        return self._call_chat_completions(
            DISPLAY_NAMES[provider], base, full_prompt, config.model, api_key, token
        )

    def _call_chat_completions(
        self, service: str, base_url: str, prompt: str, model: str, api_key: str, token: CancellationToken
    ) -> str:
        body = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
        }
        with cancellable_client(token, timeout=self.timeout, transport=self.transport) as client:
            response = client.post(
                f"{base_url.rstrip('/')}/v1/chat/completions",
                headers={"Authorization": f"Bearer {api_key}"},
                json=body,
            )
            raise_for_service(service, response)
            data = response.json()
        return _first(data, "choices", 0, "message", "content")

    def _call_gemini(self, prompt: str, model: str, api_key: str, token: CancellationToken) -> str:
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": self.temperature},
        }
        with cancellable_client(token, timeout=self.timeout, transport=self.transport) as client:
            response = client.post(
                f"{settings.GEMINI_API_BASE.rstrip('/')}/v1beta/models/{model}:generateContent",
                params={"key": api_key},
                json=body,
            )
            raise_for_service("Gemini", response)
            data = response.json()
        return _first(data, "candidates", 0, "content", "parts", 0, "text")


def _first(data: Any, *path: Any) -> str:
    """Walks a nested response; missing pieces yield an empty string."""
    node = data
    for key in path:
        try:
            node = node[key]
        except (KeyError, IndexError, TypeError):
            return ""
    return node or ""
