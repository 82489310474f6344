# File: voxredact/features/transcription/service/hybrid.py
import logging
from typing import List, Optional

from voxredact.core.cancellation import CancellationToken
from voxredact.core.errors import (
    FormatError,
    MissingCredentialError,
    PipelineCancelledError,
    UnsupportedEncodingError,
)
from voxredact.features.audio.service.api import check_wav_header
from ..domain.interfaces import ILocalTranscriber, IRemoteTranscriber
from ..domain.models import TranscriptionResult

logger = logging.getLogger(__name__)


class HybridTranscriber:
    """
    Local first, remote as the fallback.

    Local is tried only when it is available and the caller did not force the
    remote path. Other local failures fall through to the remote service,
    which needs a Mistral key. Cancellation and unreadable WAV data are not
    failures of the local engine and propagate; a `.wav` header is checked
    before it is uploaded.
    """

    def __init__(self, local: Optional[ILocalTranscriber], remote: IRemoteTranscriber):
        self.local = local
        self.remote = remote

    @property
    def local_available(self) -> bool:
        return self.local is not None and self.local.is_available()

    def transcribe(
        self,
        audio_path: str,
        mistral_key: Optional[str],
        sensitive_words: Optional[List[str]] = None,
        force_remote: bool = False,
        language: Optional[str] = None,
        token: Optional[CancellationToken] = None,
    ) -> TranscriptionResult:
        token = token or CancellationToken()
        token.raise_if_cancelled()

        if not force_remote and self.local_available:
            try:
                return self.local.transcribe_file(audio_path, language=language, token=token)
            except (PipelineCancelledError, FormatError, UnsupportedEncodingError):
                # A broken recording is broken for the remote service too
                raise
            except Exception as e:
                logger.warning(f"Local transcription failed, falling back to remote: {e}")

        token.raise_if_cancelled()
        check_wav_header(audio_path)
        if not mistral_key:
            raise MissingCredentialError(
                "Mistral",
                "Mistral API key not configured. Add it in Settings to enable transcription.",
            )
        return self.remote.transcribe_file(audio_path, mistral_key, sensitive_words, token=token)
