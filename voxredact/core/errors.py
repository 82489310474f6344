# File: voxredact/core/errors.py
"""
Error taxonomy shared by every feature.

Format and encoding errors are local to one recording; the pipeline turns
any of these into the recording's `error` state instead of crashing the host.
"""
from typing import Optional


class VoxRedactError(Exception):
    """Base error for the voxredact processing core."""


# --- Audio ---

class AudioError(VoxRedactError):
    """Raised when audio bytes cannot be turned into samples."""


class FormatError(AudioError):
    """Bad RIFF/WAVE header, truncated fmt chunk, or missing data chunk."""


class UnsupportedEncodingError(AudioError):
    """Non-PCM audio or a PCM bit depth we cannot read."""


# Older name used by callers that think in container terms.
UnsupportedFormatError = UnsupportedEncodingError


class AudioConversionError(AudioError):
    """Raised when ffmpeg fails to produce a PCM WAV file."""


# --- Tokenizer ---

class TokenizerError(VoxRedactError):
    """Base error for tokenizer loading and encoding."""


class TokenizerNotInitializedError(TokenizerError):
    """The tokenizer was used before a definition was loaded."""


class MalformedDefinitionError(TokenizerError):
    """The tokenizer definition JSON does not have the expected structure."""


# --- Local models ---

class ModelError(VoxRedactError):
    """Base error for the local inference runtime."""


class ModelUnavailableError(ModelError):
    """Local inference is not supported here or the model could not be loaded."""


class ModelBusyError(ModelError):
    """Another caller is loading the model right now. Safe to retry."""


# --- Remote services ---

class MissingCredentialError(VoxRedactError):
    """A remote call needs an API key that is not configured."""

    def __init__(self, provider: str, message: Optional[str] = None):
        self.provider = provider
        super().__init__(message or f"{provider} API key not configured. Add it in Settings.")


class RemoteServiceError(VoxRedactError):
    """Non-2xx response from a transcription or generation service."""

    def __init__(self, service: str, status_code: int, body: str):
        self.service = service
        self.status_code = status_code
        self.body = body
        super().__init__(f"{service} API error ({status_code}): {body}")


# --- Pipeline ---

class PipelineAbortedError(VoxRedactError):
    """The referenced recording or project does not exist."""


class PipelineCancelledError(VoxRedactError):
    """The caller cancelled processing through its CancellationToken."""

    def __init__(self, message: str = "Processing cancelled"):
        super().__init__(message)
