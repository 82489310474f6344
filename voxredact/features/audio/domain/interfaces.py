from abc import ABC, abstractmethod
from pathlib import Path


class IAudioConverter(ABC):
    """
    Contract for turning arbitrary recorded audio into PCM WAV.
    """
    @abstractmethod
    def convert_to_wav(self, source_path: Path, output_dir: Path, sample_rate: int = 16000) -> Path:
        """
        Converts the given audio file to mono 16-bit PCM WAV.

        Args:
            source_path: Path to the recorded audio (m4a, webm, mp3...).
            output_dir: Directory where the WAV file should be written.
            sample_rate: Output sample rate in Hz.

        Returns:
            Path of the written WAV file.
        """
        pass
