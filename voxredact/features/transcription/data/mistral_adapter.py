# File: voxredact/features/transcription/data/mistral_adapter.py
import logging
import math
import mimetypes
from pathlib import Path
from typing import Any, List, Optional

import httpx

from voxredact.core.cancellation import CancellationToken
from voxredact.core.common.enums import TranscriptionSource
from voxredact.core.config.settings import settings
from voxredact.core.errors import MissingCredentialError
from voxredact.core.http import cancellable_client, raise_for_service
from ..domain.interfaces import IRemoteTranscriber
from ..domain.models import TranscriptionResult, TranscriptionSegment

logger = logging.getLogger(__name__)

SERVICE_NAME = "Mistral transcription"


def _to_millis(seconds: float) -> int:
    # Half-up, not banker's rounding: 0.0125 s -> 13 ms
    return int(math.floor(seconds * 1000 + 0.5))


def parse_transcription_response(data: Any) -> List[TranscriptionSegment]:
    """
    Normalizes the API payload into segments.
    Prefers `segments`, then a bare `text`, then a placeholder.
    """
    if isinstance(data, dict) and isinstance(data.get("segments"), list):
        segments = []
        for index, seg in enumerate(data["segments"]):
            segments.append(TranscriptionSegment(
                speaker=seg.get("speaker") or f"Speaker {index % 2 + 1}",
                timestamp=_to_millis(seg.get("start") or 0),
                text=(seg.get("text") or "").strip(),
            ))
        return segments

    if isinstance(data, dict) and isinstance(data.get("text"), str):
        return [TranscriptionSegment("Speaker 1", 0, data["text"].strip())]

    if isinstance(data, str):
        return [TranscriptionSegment("Speaker 1", 0, data.strip())]

    return [TranscriptionSegment("Speaker 1", 0, "[Unexpected transcription format]")]


class MistralTranscriptionClient(IRemoteTranscriber):
    """
    Voxtral batch transcription with speaker diarization.
    """

    def __init__(
        self,
        base_url: str = settings.MISTRAL_API_BASE,
        model: str = settings.REMOTE_TRANSCRIPTION_MODEL,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.transport = transport

    def transcribe_file(
        self,
        audio_path: str,
        api_key: str,
        sensitive_words: Optional[List[str]] = None,
        token: Optional[CancellationToken] = None,
    ) -> TranscriptionResult:
        if not api_key:
            raise MissingCredentialError("Mistral")
        token = token or CancellationToken()

        path = Path(audio_path)
        if not path.exists():
            raise FileNotFoundError(f"Audio not found: {path}")

        form = {
            "model": self.model,
            "diarize": "true",
            "timestamp_granularities[]": "segment",
        }
        if sensitive_words:
            form["context_bias"] = ",".join(sensitive_words[:settings.MAX_CONTEXT_BIAS_WORDS])

        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        logger.info(f"Sending {path.name} to {SERVICE_NAME} ({self.model})")

        with open(path, "rb") as audio_file:
            with cancellable_client(token, self.base_url, self.timeout, self.transport) as client:
                response = client.post(
                    "/v1/audio/transcriptions",
                    headers={"Authorization": f"Bearer {api_key}"},
                    data=form,
                    files={"file": (path.name, audio_file, content_type)},
                )
                raise_for_service(SERVICE_NAME, response)
                payload = response.json()

        segments = parse_transcription_response(payload)
        full_text = " ".join(seg.text for seg in segments)
        logger.info(f"Transcription complete: {len(segments)} segments, {len(full_text)} chars")

        return TranscriptionResult(full_text=full_text, segments=segments, source=TranscriptionSource.REMOTE)
