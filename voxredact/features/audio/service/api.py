import logging
import tempfile
from pathlib import Path
from typing import Optional

from voxredact.core.config.settings import settings
from ..domain.interfaces import IAudioConverter
from ..domain.models import AudioSamples, WavFormat
from ..data import wav_decoder
from ..data.ffmpeg_converter import FFmpegAudioConverter

logger = logging.getLogger(__name__)


def load_waveform(audio_path: str, converter: Optional[IAudioConverter] = None) -> AudioSamples:
    """
    Standalone API: reads any recording as 16 kHz mono float32.

    WAV files are parsed directly. Anything else goes through ffmpeg into a
    temporary WAV that is removed afterwards, whether decoding succeeds or not.
    """
    path = Path(audio_path)
    if not path.exists():
        raise FileNotFoundError(f"Audio not found: {path}")

    data = path.read_bytes()
    if wav_decoder.is_wav_extension(path) or wav_decoder.is_wav_bytes(data):
        return wav_decoder.decode_for_model(data, settings.TARGET_SAMPLE_RATE)

    converter = converter or FFmpegAudioConverter()
    settings.TEMP_DIR.mkdir(parents=True, exist_ok=True)
    with tempfile.TemporaryDirectory(dir=settings.TEMP_DIR) as tmp:
        logger.info(f"{path.name} is not WAV, converting before decode")
        wav_path = converter.convert_to_wav(path, Path(tmp), settings.TARGET_SAMPLE_RATE)
        return wav_decoder.decode_for_model(wav_path.read_bytes(), settings.TARGET_SAMPLE_RATE)


def check_wav_header(audio_path: str) -> Optional[WavFormat]:
    """
    Validates the RIFF/WAVE header of a `.wav` recording without decoding it.
    Returns None for other containers. Raises FormatError for a broken header.
    """
    path = Path(audio_path)
    if not wav_decoder.is_wav_extension(path) or not path.exists():
        return None
    return wav_decoder.read_wav_header(path.read_bytes())
