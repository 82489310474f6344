# File: voxredact/features/transcription/data/whisper_adapter.py
import logging
import re
import time
from typing import List, Optional

import numpy as np
import whisper

from voxredact.core.cancellation import CancellationToken
from voxredact.core.common.enums import TranscriptionSource
from voxredact.core.config.settings import settings
from voxredact.core.errors import ModelUnavailableError
from voxredact.core.model_lifecycle.service import LocalModelService
from voxredact.core.model_lifecycle.types import LocalCapability, ModelType
from voxredact.features.audio.service.api import load_waveform
from ..domain.interfaces import ILocalTranscriber
from ..domain.models import TranscriptionResult, TranscriptionSegment

logger = logging.getLogger(__name__)

LOCAL_SPEAKER = "Speaker 1"
# Whisper returns one block; sentences are spread out at this fixed step
SENTENCE_STEP_MS = 5000
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")


def build_whisper_service(model_name: str = settings.WHISPER_MODEL_NAME) -> LocalModelService:
    device = settings.WHISPER_DEVICE

    def loader():
        logger.debug(f"Loading Whisper {model_name} on {device}...")
        return whisper.load_model(model_name, device=device, download_root=str(settings.MODELS_DIR))

    return LocalModelService(ModelType.WHISPER, loader)


def split_into_segments(text: str) -> List[TranscriptionSegment]:
    if not text or not text.strip():
        return [TranscriptionSegment(LOCAL_SPEAKER, 0, "[No speech detected]")]

    sentences = [s.strip() for s in _SENTENCE_BREAK.split(text) if s.strip()]
    if not sentences:
        return [TranscriptionSegment(LOCAL_SPEAKER, 0, text.strip())]

    return [
        TranscriptionSegment(LOCAL_SPEAKER, index * SENTENCE_STEP_MS, sentence)
        for index, sentence in enumerate(sentences)
    ]


class WhisperTranscriber(ILocalTranscriber):
    def __init__(self, model_service: LocalModelService, capability: LocalCapability):
        self.model_service = model_service
        self.capability = capability
        self.device = settings.WHISPER_DEVICE

    def is_available(self) -> bool:
        return self.capability.is_supported

    def transcribe(self, waveform: np.ndarray, language: str) -> str:
        if not self.capability.is_supported:
            raise ModelUnavailableError(f"Local transcription unavailable: {self.capability.reason}")

        model = self.model_service.ensure_loaded()
        if model is None:
            raise ModelUnavailableError("Whisper model is not loaded")

        start = time.time()
        result_raw = model.transcribe(
            waveform.astype(np.float32, copy=False),
            language=language,
            fp16=(self.device == "cuda"),
        )
        text = result_raw.get("text", "")
        logger.info(f"Whisper finished in {time.time() - start:.1f}s: {len(text)} chars")
        return text

    def transcribe_file(
        self,
        audio_path: str,
        language: Optional[str] = None,
        token: Optional[CancellationToken] = None,
    ) -> TranscriptionResult:
        token = token or CancellationToken()
        language = language or settings.TRANSCRIPTION_LANGUAGE

        token.raise_if_cancelled()
        samples = load_waveform(audio_path)
        logger.info(
            f"Waveform: {len(samples)} samples ({samples.duration_seconds:.1f}s at {samples.sample_rate} Hz)"
        )

        token.raise_if_cancelled()
        text = self.transcribe(samples.samples, language)

        return TranscriptionResult(
            full_text=text.strip(),
            segments=split_into_segments(text),
            source=TranscriptionSource.LOCAL,
        )
