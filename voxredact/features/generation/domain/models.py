# File: voxredact/features/generation/domain/models.py
from dataclasses import dataclass
from typing import Dict, List

from voxredact.core.common.enums import LlmProvider


@dataclass(frozen=True)
class ProviderConfig:
    """
    Which remote model processes the transcript, and with what instruction.
    """
    provider: LlmProvider
    model: str
    prompt: str

    def build_prompt(self, text: str) -> str:
        return f"{self.prompt}\n\nText to process:\n{text}"


AVAILABLE_MODELS: Dict[LlmProvider, List[str]] = {
    LlmProvider.OPENAI: ["gpt-4o", "gpt-4-turbo", "gpt-4", "gpt-3.5-turbo"],
    LlmProvider.GEMINI: ["gemini-2.0-flash", "gemini-1.5-pro", "gemini-1.5-flash", "gemini-pro"],
    LlmProvider.MISTRAL: ["mistral-large-latest", "mistral-medium-latest", "mistral-small-latest"],
}


def validate_model(provider: str, model: str) -> bool:
    try:
        return model in AVAILABLE_MODELS[LlmProvider(provider)]
    except ValueError:
        return False


def provider_from_model(model: str) -> LlmProvider:
    if model.startswith("gpt-") or model.startswith("text-"):
        return LlmProvider.OPENAI
    if model.startswith("gemini-"):
        return LlmProvider.GEMINI
    if model.startswith("mistral-"):
        return LlmProvider.MISTRAL
    return LlmProvider.OPENAI
