# File: voxredact/core/common/enums.py

from enum import Enum, unique


@unique
class RecordingState(str, Enum):
    PENDING = "pending"
    TRANSCRIBING = "transcribing"
    ANONYMIZING = "anonymizing"
    PROCESSING = "processing"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (RecordingState.DONE, RecordingState.ERROR)

    @classmethod
    def can_transition(cls, src: "RecordingState", dst: "RecordingState") -> bool:
        """
        Forward moves only. Later stages may be skipped, and `error` is
        reachable from every non-terminal state. Terminal states go nowhere.
        """
        src, dst = cls(src), cls(dst)
        if src.is_terminal:
            return False
        if dst == cls.ERROR:
            return True
        return _ORDER.index(dst) > _ORDER.index(src)


_ORDER = [
    RecordingState.PENDING,
    RecordingState.TRANSCRIBING,
    RecordingState.ANONYMIZING,
    RecordingState.PROCESSING,
    RecordingState.DONE,
]


@unique
class TranscriptionSource(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


@unique
class LlmProvider(str, Enum):
    OPENAI = "openai"
    GEMINI = "gemini"
    MISTRAL = "mistral"
