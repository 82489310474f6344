from threading import Lock
from typing import Optional

from voxredact.core.cancellation import CancellationToken
from voxredact.features.generation.data.remote_llm_adapter import RemoteGenerationClient
from voxredact.features.pii.service.redactor import PiiRedactor
from voxredact.features.recordings.data.repository import SqlRecordingRepository
from voxredact.features.transcription.service.api import build_hybrid_transcriber
from ..domain.models import PipelineOptions, PipelineOutcome
from .orchestrator import ProcessingPipeline

_pipeline: Optional[ProcessingPipeline] = None
_pipeline_lock = Lock()


def get_pipeline() -> ProcessingPipeline:
    """
    The process-wide pipeline, wired to the SQL store, the hybrid transcriber
    and the remote generator. Built on first use so the local-model probe
    runs once.
    """
    global _pipeline
    with _pipeline_lock:
        if _pipeline is None:
            _pipeline = ProcessingPipeline(
                repository=SqlRecordingRepository(),
                transcriber=build_hybrid_transcriber(),
                redactor=PiiRedactor(),
                generator=RemoteGenerationClient(),
            )
    return _pipeline


def process_recording(
    recording_id: str,
    project_id: str,
    skip_transcription: bool = False,
    force_remote_transcription: bool = False,
    token: Optional[CancellationToken] = None,
) -> PipelineOutcome:
    """
    Standalone API: runs the full pipeline for one recording.
    """
    options = PipelineOptions(
        skip_transcription=skip_transcription,
        force_remote_transcription=force_remote_transcription,
    )
    return get_pipeline().run(recording_id, project_id, options, token)


def retry_processing(recording_id: str, token: Optional[CancellationToken] = None) -> PipelineOutcome:
    return get_pipeline().retry(recording_id, token)
