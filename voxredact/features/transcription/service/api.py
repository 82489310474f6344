import logging
import os
import shutil

from voxredact.core.config.settings import Settings, settings as default_settings
from voxredact.core.model_lifecycle.types import LocalCapability, Supported, Unsupported
from ..data.mistral_adapter import MistralTranscriptionClient
from ..data.whisper_adapter import WhisperTranscriber, build_whisper_service
from .hybrid import HybridTranscriber

logger = logging.getLogger(__name__)


def probe_local_transcription(settings: Settings = default_settings) -> LocalCapability:
    """
    Decides once, at startup, whether on-device transcription can run.
    The result is injected; nothing re-probes per call.
    """
    if not settings.LOCAL_TRANSCRIPTION_ENABLED:
        return Unsupported("local transcription disabled by configuration")

    name = settings.WHISPER_MODEL_NAME
    checkpoint = settings.MODELS_DIR / f"{name}.pt"
    if not (os.path.isfile(name) or checkpoint.is_file()):
        return Unsupported(f"Whisper model '{name}' not found in {settings.MODELS_DIR}")

    detail = f"whisper {name} on {settings.WHISPER_DEVICE}"
    if shutil.which(settings.FFMPEG_BINARY) is None:
        # WAV recordings still work without ffmpeg
        detail += " (ffmpeg missing: WAV input only)"
    return Supported(detail)


def build_hybrid_transcriber(settings: Settings = default_settings) -> HybridTranscriber:
    """
    Standalone API: wires the local Whisper path and the Mistral fallback.
    """
    capability = probe_local_transcription(settings)
    if capability.is_supported:
        logger.info(f"Local transcription available: {capability.detail}")
        local = WhisperTranscriber(build_whisper_service(settings.WHISPER_MODEL_NAME), capability)
    else:
        logger.info(f"Local transcription unavailable: {capability.reason}")
        local = None
    return HybridTranscriber(local=local, remote=MistralTranscriptionClient(base_url=settings.MISTRAL_API_BASE))
