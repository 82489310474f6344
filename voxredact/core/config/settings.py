# File: voxredact/core/config/settings.py

import os
import shutil
from pathlib import Path


class Settings:
    # --- Paths ---
    # voxredact/core/config/settings.py -> config -> core -> voxredact -> ROOT
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent.parent
    DATA_DIR: Path = Path(os.getenv("VOXREDACT_DATA_DIR", str(BASE_DIR / "data")))
    AUDIO_DIR: Path = DATA_DIR / "audio"
    TEMP_DIR: Path = DATA_DIR / "tmp"
    MODELS_DIR: Path = Path(os.getenv("VOXREDACT_MODELS_DIR", str(BASE_DIR / "models")))

    # --- Database ---
    @property
    def DATABASE_URL(self) -> str:
        # On-device default is a SQLite file next to the audio data.
        # Read at access time so tests can repoint it before the engine is built.
        url = os.getenv("VOXREDACT_DATABASE_URL")
        if url:
            return url
        return f"sqlite:///{self.DATA_DIR / 'voxredact.db'}"

    # --- External Tools ---
    FFMPEG_BINARY: str = os.getenv("FFMPEG_BINARY_PATH", shutil.which("ffmpeg") or "ffmpeg")

    # --- Local Model ---
    LOCAL_TRANSCRIPTION_ENABLED: bool = os.getenv("VOXREDACT_LOCAL_TRANSCRIPTION", "true").lower() == "true"
    WHISPER_MODEL_NAME: str = os.getenv("WHISPER_MODEL_NAME", "small")
    WHISPER_DEVICE: str = "cuda" if os.getenv("USE_CUDA", "false").lower() == "true" else "cpu"
    TRANSCRIPTION_LANGUAGE: str = os.getenv("TRANSCRIPTION_LANGUAGE", "nl")
    TARGET_SAMPLE_RATE: int = 16000

    # --- Remote Services ---
    MISTRAL_API_BASE: str = os.getenv("MISTRAL_API_BASE", "https://api.mistral.ai")
    OPENAI_API_BASE: str = os.getenv("OPENAI_API_BASE", "https://api.openai.com")
    GEMINI_API_BASE: str = os.getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com")
    REMOTE_TRANSCRIPTION_MODEL: str = os.getenv("REMOTE_TRANSCRIPTION_MODEL", "voxtral-mini-latest")
    REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "300"))
    LLM_TEMPERATURE: float = 0.7
    MAX_CONTEXT_BIAS_WORDS: int = 100

    def ensure_dirs(self):
        """Creates necessary data directories if they don't exist."""
        self.DATA_DIR.mkdir(parents=True, exist_ok=True)
        self.AUDIO_DIR.mkdir(parents=True, exist_ok=True)
        self.TEMP_DIR.mkdir(parents=True, exist_ok=True)
        self.MODELS_DIR.mkdir(parents=True, exist_ok=True)


settings = Settings()
