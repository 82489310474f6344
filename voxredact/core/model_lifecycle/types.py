# File: voxredact/core/model_lifecycle/types.py

from dataclasses import dataclass
from enum import Enum
from typing import Union


class ModelType(str, Enum):
    WHISPER = "whisper"


class ModelState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"


class LoadResult(str, Enum):
    LOADED = "loaded"
    ALREADY_LOADED = "already_loaded"
    BUSY = "busy"


@dataclass(frozen=True)
class Supported:
    """Local inference can run here."""
    detail: str = ""

    @property
    def is_supported(self) -> bool:
        return True


@dataclass(frozen=True)
class Unsupported:
    """Local inference cannot run here, and why."""
    reason: str

    @property
    def is_supported(self) -> bool:
        return False


LocalCapability = Union[Supported, Unsupported]
