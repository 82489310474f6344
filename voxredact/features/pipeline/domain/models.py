# File: voxredact/features/pipeline/domain/models.py
from dataclasses import dataclass
from typing import Optional

from voxredact.core.common.enums import RecordingState, TranscriptionSource


@dataclass(frozen=True)
class PipelineOptions:
    """
    skip_transcription: reuse an existing transcript instead of re-sending audio.
    force_remote_transcription: never try the on-device model.
    """
    skip_transcription: bool = False
    force_remote_transcription: bool = False


@dataclass(frozen=True)
class PipelineOutcome:
    state: RecordingState
    transcription_source: Optional[TranscriptionSource] = None
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == RecordingState.DONE
