import struct
from pathlib import Path

import numpy as np
import pytest

from voxredact.core.errors import FormatError, UnsupportedEncodingError
from voxredact.features.audio.data import wav_decoder
from voxredact.features.audio.domain.interfaces import IAudioConverter
from voxredact.features.audio.domain.models import AudioSamples
from voxredact.features.audio.service.api import load_waveform


def pcm16(*values):
    return struct.pack(f"<{len(values)}h", *values)


# --- decode ---

def test_decode_16bit_mono_sample_count(wav_builder):
    n = 1234
    rng = np.random.default_rng(7)
    values = rng.integers(-32768, 32767, size=n, dtype=np.int16)
    data = wav_builder(values.tobytes())

    decoded = wav_decoder.decode(data)

    assert len(decoded) == n
    assert decoded.samples.dtype == np.float32
    assert decoded.sample_rate == 16000
    assert decoded.channels == 1
    assert np.all(decoded.samples >= -1.0) and np.all(decoded.samples <= 1.0)


def test_decode_16bit_normalization(wav_builder):
    decoded = wav_decoder.decode(wav_builder(pcm16(0, 16384, -32768, 32767)))
    np.testing.assert_allclose(decoded.samples, [0.0, 0.5, -1.0, 32767 / 32768], rtol=0, atol=1e-7)


def test_decode_8bit_is_offset_binary(wav_builder):
    decoded = wav_decoder.decode(wav_builder(bytes([128, 0, 255, 192]), bits=8))
    np.testing.assert_allclose(decoded.samples, [0.0, -1.0, 127 / 128, 0.5], atol=1e-7)


def test_decode_32bit(wav_builder):
    payload = struct.pack("<3i", 2 ** 30, -(2 ** 31), 0)
    decoded = wav_decoder.decode(wav_builder(payload, bits=32))
    np.testing.assert_allclose(decoded.samples, [0.5, -1.0, 0.0], atol=1e-7)


def test_decode_stereo_is_downmixed(wav_builder):
    # Interleaved L/R frames
    payload = pcm16(16384, -16384, 16384, 16384, -32768, 0)
    decoded = wav_decoder.decode(wav_builder(payload, channels=2))

    assert len(decoded) == 3
    np.testing.assert_allclose(decoded.samples, [0.0, 0.5, -0.5], atol=1e-7)


def test_trailing_partial_frame_is_dropped(wav_builder):
    decoded = wav_decoder.decode(wav_builder(pcm16(100, 200) + b"\x01"))
    assert len(decoded) == 2


def test_declared_data_size_larger_than_file(wav_builder):
    data = bytearray(wav_builder(pcm16(1, 2, 3)))
    # Patch the data chunk size to claim far more than is present
    data_offset = bytes(data).index(b"data")
    struct.pack_into("<I", data, data_offset + 4, 10_000)

    decoded = wav_decoder.decode(bytes(data))
    assert len(decoded) == 3


def test_odd_sized_chunk_is_padded(wav_builder):
    odd_chunk = b"LIST" + struct.pack("<I", 3) + b"abc" + b"\x00"
    decoded = wav_decoder.decode(wav_builder(pcm16(16384), extra_chunks=odd_chunk))
    np.testing.assert_allclose(decoded.samples, [0.5])


def test_bad_riff_magic_raises_format_error(wav_builder):
    data = b"RIFX" + wav_builder(pcm16(1))[4:]
    with pytest.raises(FormatError):
        wav_decoder.decode(data)


def test_bad_wave_magic_raises_format_error(wav_builder):
    data = bytearray(wav_builder(pcm16(1)))
    data[8:12] = b"AVI "
    with pytest.raises(FormatError):
        wav_decoder.decode(bytes(data))


def test_missing_data_chunk_raises_format_error():
    fmt = struct.pack("<HHIIHH", 1, 1, 16000, 32000, 2, 16)
    body = b"WAVE" + b"fmt " + struct.pack("<I", len(fmt)) + fmt + b"JUNK" + struct.pack("<I", 4) + b"\x00" * 4
    data = b"RIFF" + struct.pack("<I", len(body)) + body
    with pytest.raises(FormatError, match="No data chunk"):
        wav_decoder.decode(data)


def test_non_pcm_raises_unsupported_encoding(wav_builder):
    with pytest.raises(UnsupportedEncodingError, match="expected PCM"):
        wav_decoder.decode(wav_builder(b"\x00" * 8, bits=32, audio_format=3))


def test_unsupported_bit_depth(wav_builder):
    with pytest.raises(UnsupportedEncodingError, match="bit depth"):
        wav_decoder.decode(wav_builder(b"\x00" * 6, bits=24))


def test_zero_channels_raises_format_error(wav_builder):
    with pytest.raises(FormatError):
        wav_decoder.decode(wav_builder(pcm16(1, 2), channels=0))


def test_header_helpers(wav_builder):
    data = wav_builder(pcm16(1, 2), channels=1, sample_rate=8000)

    fmt = wav_decoder.read_wav_header(data)
    assert (fmt.audio_format, fmt.num_channels, fmt.sample_rate, fmt.bits_per_sample) == (1, 1, 8000, 16)
    assert wav_decoder.is_wav_bytes(data)
    assert not wav_decoder.is_wav_bytes(b"ID3\x03" + b"\x00" * 20)
    assert wav_decoder.is_wav_extension("recording.WAV")
    assert not wav_decoder.is_wav_extension("recording.m4a")


# --- resample ---

def test_resample_identity_returns_same_object():
    samples = AudioSamples(np.array([0.1, -0.2, 0.3], dtype=np.float32), 44100)
    result = wav_decoder.resample(samples, 44100, 44100)
    assert result is samples
    np.testing.assert_array_equal(result.samples, samples.samples)


def test_resample_ratio_halves_length():
    samples = AudioSamples(np.zeros(16000, dtype=np.float32), 16000)
    result = wav_decoder.resample(samples, 16000, 8000)
    assert len(result) == 8000
    assert result.sample_rate == 8000


def test_resample_linear_interpolation_clamps_last_index():
    samples = AudioSamples(np.array([0.0, 1.0, 2.0, 3.0], dtype=np.float32), 2)
    result = wav_decoder.resample(samples, 2, 4)
    np.testing.assert_allclose(result.samples, [0.0, 0.5, 1.0, 1.5, 2.0, 2.5, 3.0, 3.0])


def test_resample_rejects_non_positive_rates():
    samples = AudioSamples(np.zeros(4, dtype=np.float32), 16000)
    with pytest.raises(ValueError):
        wav_decoder.resample(samples, 0, 16000)


def test_decode_for_model_brings_audio_to_16k(wav_builder):
    data = wav_builder(pcm16(*([1000] * 8000)), sample_rate=8000)
    result = wav_decoder.decode_for_model(data)
    assert result.sample_rate == 16000
    assert len(result) == 16000
    assert result.duration_seconds == pytest.approx(1.0)


# --- load_waveform ---

class FakeConverter(IAudioConverter):
    def __init__(self, wav_bytes: bytes):
        self.wav_bytes = wav_bytes
        self.calls = []

    def convert_to_wav(self, source_path: Path, output_dir: Path, sample_rate: int = 16000) -> Path:
        self.calls.append((source_path, output_dir, sample_rate))
        out = output_dir / f"{source_path.stem}.wav"
        out.write_bytes(self.wav_bytes)
        return out


def test_load_waveform_reads_wav_directly(tmp_path, wav_builder):
    path = tmp_path / "take1.wav"
    path.write_bytes(wav_builder(pcm16(0, 16384, -16384)))

    result = load_waveform(str(path))
    np.testing.assert_allclose(result.samples, [0.0, 0.5, -0.5])


def test_load_waveform_converts_and_cleans_up(tmp_path, wav_builder):
    path = tmp_path / "take2.m4a"
    path.write_bytes(b"\x00\x00\x00\x20ftypM4A ")
    converter = FakeConverter(wav_builder(pcm16(16384, 16384)))

    result = load_waveform(str(path), converter=converter)

    assert len(result) == 2
    assert len(converter.calls) == 1
    output_dir = converter.calls[0][1]
    assert not output_dir.exists()


def test_load_waveform_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_waveform(str(tmp_path / "nope.wav"))
