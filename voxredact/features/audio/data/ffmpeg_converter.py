import logging
import subprocess
from pathlib import Path

from voxredact.core.config.settings import settings
from voxredact.core.errors import AudioConversionError
from ..domain.interfaces import IAudioConverter

logger = logging.getLogger(__name__)


class FFmpegAudioConverter(IAudioConverter):
    def convert_to_wav(self, source_path: Path, output_dir: Path, sample_rate: int = 16000) -> Path:
        if not source_path.exists():
            raise FileNotFoundError(f"Audio not found: {source_path}")

        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / f"{source_path.stem}.wav"

        # -ac 1: downmix to mono
        # -acodec pcm_s16le: 16-bit integer PCM, the only thing the decoder reads
        cmd = [
            settings.FFMPEG_BINARY,
            "-y",
            "-i", str(source_path),
            "-vn",
            "-ac", "1",
            "-ar", str(sample_rate),
            "-acodec", "pcm_s16le",
            str(output_path)
        ]

        logger.info(f"Converting audio to WAV: {' '.join(cmd)}")

        try:
            subprocess.run(
                cmd,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE
            )
        except FileNotFoundError as e:
            raise AudioConversionError(f"ffmpeg binary not found: {settings.FFMPEG_BINARY}") from e
        except subprocess.CalledProcessError as e:
            error_msg = e.stderr.decode(errors="replace") if e.stderr else str(e)
            logger.error(f"FFmpeg failed: {error_msg}")
            raise AudioConversionError(f"Audio conversion failed: {error_msg}") from e

        return output_path
