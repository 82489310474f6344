from abc import ABC, abstractmethod
from typing import Any, Optional

from .models import ApiKeys, Project, Recording

# Fields the processing core is allowed to write
WRITABLE_FIELDS = frozenset({
    "status",
    "transcription",
    "transcription_data",
    "transcription_source",
    "anonymized_transcription",
    "pii_mappings",
    "llm_output",
    "error_message",
})


class IRecordingRepository(ABC):
    """
    Persistence boundary for the pipeline. Storage owns the schema; the
    pipeline only reads snapshots and writes the fields in WRITABLE_FIELDS.
    """
    @abstractmethod
    def get_recording(self, recording_id: str) -> Optional[Recording]:
        pass

    @abstractmethod
    def get_project(self, project_id: str) -> Optional[Project]:
        pass

    @abstractmethod
    def update_recording(self, recording_id: str, **fields: Any) -> None:
        """
        Writes the given fields in one transaction and bumps `updated_at`.
        Raises PipelineAbortedError if the recording no longer exists.
        """
        pass

    @abstractmethod
    def get_api_keys(self) -> ApiKeys:
        """Returns the stored keys; every key is None when nothing is configured."""
        pass
