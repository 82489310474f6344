# File: voxredact/features/audio/domain/models.py
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class WavFormat:
    """
    The fields of a `fmt ` chunk the decoder cares about.
    """
    audio_format: int
    num_channels: int
    sample_rate: int
    bits_per_sample: int

    @property
    def is_pcm(self) -> bool:
        return self.audio_format == 1


@dataclass(frozen=True, eq=False)
class AudioSamples:
    """
    Mono float32 samples in [-1.0, 1.0] at a known rate.
    Produced by the decoder and handed once to a speech model.
    """
    samples: np.ndarray
    sample_rate: int
    channels: int = 1

    def __len__(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration_seconds(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return len(self) / self.sample_rate
