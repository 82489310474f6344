from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np

from voxredact.core.cancellation import CancellationToken
from .models import TranscriptionResult


class ILocalTranscriber(ABC):
    """
    Contract for on-device ASR. Availability is decided once at startup.
    """
    @abstractmethod
    def is_available(self) -> bool:
        pass

    @abstractmethod
    def transcribe(self, waveform: np.ndarray, language: str) -> str:
        """
        Transcribes 16 kHz mono float32 samples.

        Returns:
            The recognized text as one block.
        """
        pass

    @abstractmethod
    def transcribe_file(
        self,
        audio_path: str,
        language: Optional[str] = None,
        token: Optional[CancellationToken] = None,
    ) -> TranscriptionResult:
        pass


class IRemoteTranscriber(ABC):
    """
    Contract for API-based ASR with diarization.
    """
    @abstractmethod
    def transcribe_file(
        self,
        audio_path: str,
        api_key: str,
        sensitive_words: Optional[List[str]] = None,
        token: Optional[CancellationToken] = None,
    ) -> TranscriptionResult:
        pass
