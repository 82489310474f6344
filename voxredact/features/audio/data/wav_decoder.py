# File: voxredact/features/audio/data/wav_decoder.py
"""
RIFF/WAVE decoding and linear resampling.

Produces the input a speech model expects: mono float32 in [-1.0, 1.0] at
16 kHz. Only integer PCM (format tag 1) at 8, 16 or 32 bits is accepted.
"""
import logging
import struct
from pathlib import Path
from typing import Tuple, Union

import numpy as np

from voxredact.core.config.settings import settings
from voxredact.core.errors import FormatError, UnsupportedEncodingError
from ..domain.models import AudioSamples, WavFormat

logger = logging.getLogger(__name__)

PCM_FORMAT = 1

# bits -> (numpy dtype, offset, scale)
_PCM_LAYOUTS = {
    8: ("u1", 128.0, 128.0),
    16: ("<i2", 0.0, 32768.0),
    32: ("<i4", 0.0, 2147483648.0),
}


def is_wav_bytes(data: bytes) -> bool:
    """True if the buffer starts with a RIFF....WAVE header."""
    return len(data) >= 12 and data[0:4] == b"RIFF" and data[8:12] == b"WAVE"


def is_wav_extension(path: Union[str, Path]) -> bool:
    return str(path).lower().endswith(".wav")


def _walk_chunks(data: bytes) -> Tuple[WavFormat, int, int]:
    """
    Walks the chunk list and returns (format, payload_start, payload_length).
    Stops at the first `data` chunk.
    """
    if len(data) < 12 or data[0:4] != b"RIFF":
        raise FormatError(f"Not a valid WAV file: expected RIFF header, got {data[0:4]!r}")
    if data[8:12] != b"WAVE":
        raise FormatError(f"Not a valid WAV file: expected WAVE format, got {data[8:12]!r}")

    fmt = None
    offset = 12
    while offset < len(data) - 8:
        chunk_id = data[offset:offset + 4]
        (chunk_size,) = struct.unpack_from("<I", data, offset + 4)

        if chunk_id == b"fmt ":
            if offset + 24 > len(data):
                raise FormatError("Truncated fmt chunk")
            audio_format, num_channels, sample_rate = struct.unpack_from("<HHI", data, offset + 8)
            (bits_per_sample,) = struct.unpack_from("<H", data, offset + 22)
            fmt = WavFormat(audio_format, num_channels, sample_rate, bits_per_sample)

        elif chunk_id == b"data":
            if fmt is None:
                raise FormatError("data chunk found before fmt chunk")
            start = offset + 8
            return fmt, start, min(chunk_size, len(data) - start)

        offset += 8 + chunk_size
        # Chunks are word-aligned
        if chunk_size % 2 != 0:
            offset += 1

    raise FormatError("No data chunk found in WAV file.")


def read_wav_header(data: bytes) -> WavFormat:
    fmt, _, _ = _walk_chunks(data)
    return fmt


def decode(data: bytes) -> AudioSamples:
    """
    Parses a WAV buffer into mono float32 samples at the file's own rate.

    Channels are averaged into one value per frame. A trailing partial frame
    is dropped without error.
    """
    fmt, start, length = _walk_chunks(data)

    if not fmt.is_pcm:
        raise UnsupportedEncodingError(
            f"Unsupported WAV format: expected PCM (1), got {fmt.audio_format}. "
            "Only uncompressed PCM WAV files are supported for local transcription."
        )
    if fmt.bits_per_sample not in _PCM_LAYOUTS:
        raise UnsupportedEncodingError(f"Unsupported PCM bit depth: {fmt.bits_per_sample}")
    if fmt.num_channels == 0:
        raise FormatError("WAV fmt chunk declares zero channels")
    if fmt.sample_rate == 0:
        raise FormatError("WAV fmt chunk declares a zero sample rate")

    dtype, bias, scale = _PCM_LAYOUTS[fmt.bits_per_sample]
    frame_bytes = (fmt.bits_per_sample // 8) * fmt.num_channels
    total_frames = length // frame_bytes

    raw = np.frombuffer(data, dtype=dtype, count=total_frames * fmt.num_channels, offset=start)
    frames = (raw.astype(np.float64) - bias) / scale
    mono = frames.reshape(total_frames, fmt.num_channels).sum(axis=1) / fmt.num_channels

    logger.debug(
        f"Decoded WAV: {total_frames} frames, {fmt.num_channels}ch, "
        f"{fmt.bits_per_sample}bit @ {fmt.sample_rate} Hz"
    )
    return AudioSamples(samples=mono.astype(np.float32), sample_rate=fmt.sample_rate)


def resample(samples: AudioSamples, from_rate: int, to_rate: int) -> AudioSamples:
    """
    Linear-interpolation resampler.

    Equal rates return the very same object. Output length is
    floor(n / (from_rate / to_rate)).
    """
    if from_rate <= 0 or to_rate <= 0:
        raise ValueError(f"Sample rates must be positive, got {from_rate} -> {to_rate}")
    if from_rate == to_rate:
        return samples

    source = samples.samples
    n = source.shape[0]
    ratio = from_rate / to_rate
    out_len = int(np.floor(n / ratio))
    if out_len == 0:
        return AudioSamples(samples=np.zeros(0, dtype=np.float32), sample_rate=to_rate)

    positions = np.arange(out_len, dtype=np.float64) * ratio
    floor_idx = np.minimum(np.floor(positions).astype(np.int64), n - 1)
    ceil_idx = np.minimum(floor_idx + 1, n - 1)
    frac = positions - floor_idx

    src = source.astype(np.float64)
    out = src[floor_idx] * (1.0 - frac) + src[ceil_idx] * frac
    return AudioSamples(samples=out.astype(np.float32), sample_rate=to_rate)


def decode_for_model(data: bytes, target_rate: int = settings.TARGET_SAMPLE_RATE) -> AudioSamples:
    """Decode, then bring the samples to the model's rate."""
    decoded = decode(data)
    return resample(decoded, decoded.sample_rate, target_rate)
