# File: voxredact/features/recordings/domain/models.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from voxredact.core.common.enums import LlmProvider, RecordingState
from voxredact.features.transcription.domain.models import TranscriptionSegment


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    llm_provider: LlmProvider
    llm_model: str
    llm_prompt: str
    description: Optional[str] = None
    enable_anonymization: bool = True
    enable_generation: bool = True
    custom_fields: List[Dict[str, str]] = field(default_factory=list)
    sensitive_words: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Recording:
    """
    Read-only snapshot of a recording row. The pipeline never mutates it;
    changes go through IRecordingRepository.update_recording.
    """
    id: str
    project_id: str
    status: RecordingState = RecordingState.PENDING
    audio_path: Optional[str] = None
    audio_duration: Optional[int] = None
    custom_field_values: Dict[str, Any] = field(default_factory=dict)
    transcription: Optional[str] = None
    transcription_data: Optional[List[TranscriptionSegment]] = None
    transcription_source: Optional[str] = None
    anonymized_transcription: Optional[str] = None
    pii_mappings: Optional[Dict[str, str]] = None
    llm_output: Optional[str] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class ApiKeys:
    openai_key: Optional[str] = None
    gemini_key: Optional[str] = None
    mistral_key: Optional[str] = None

    def key_for(self, provider: LlmProvider) -> Optional[str]:
        return {
            LlmProvider.OPENAI: self.openai_key,
            LlmProvider.GEMINI: self.gemini_key,
            LlmProvider.MISTRAL: self.mistral_key,
        }.get(LlmProvider(provider))
