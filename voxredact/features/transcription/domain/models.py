# File: voxredact/features/transcription/domain/models.py
from dataclasses import dataclass, field
from typing import Any, Dict, List

from voxredact.core.common.enums import TranscriptionSource


@dataclass(frozen=True)
class TranscriptionSegment:
    """
    One speaker turn. `timestamp` is the start offset in milliseconds.
    """
    speaker: str
    timestamp: int
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"speaker": self.speaker, "timestamp": self.timestamp, "text": self.text}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptionSegment":
        return cls(speaker=data["speaker"], timestamp=int(data["timestamp"]), text=data["text"])


@dataclass(frozen=True)
class TranscriptionResult:
    """
    The complete output of a transcription engine.
    """
    full_text: str
    segments: List[TranscriptionSegment] = field(default_factory=list)
    source: TranscriptionSource = TranscriptionSource.REMOTE
