# File: voxredact/features/pipeline/service/orchestrator.py
import logging
import time
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Dict, Iterator, Optional, Tuple

from voxredact.core.cancellation import CancellationToken
from voxredact.core.common.enums import RecordingState, TranscriptionSource
from voxredact.core.config.settings import settings
from voxredact.core.errors import PipelineAbortedError
from voxredact.features.generation.domain.interfaces import IGenerator
from voxredact.features.generation.domain.models import ProviderConfig
from voxredact.features.pii.service.redactor import PiiRedactor
from voxredact.features.recordings.domain.interfaces import IRecordingRepository
from voxredact.features.recordings.domain.models import Project, Recording
from voxredact.features.transcription.service.hybrid import HybridTranscriber
from ..domain.models import PipelineOptions, PipelineOutcome

logger = logging.getLogger(__name__)


class _RunState:
    """Where one run currently is. Starts at `pending` regardless of the stored status."""

    def __init__(self, recording_id: str):
        self.recording_id = recording_id
        self.state = RecordingState.PENDING
        self.source: Optional[TranscriptionSource] = None


class ProcessingPipeline:
    """
    Transcription -> anonymization -> generation for one recording.

    Every stage persists its output before the next one starts, so a failed
    run leaves its partial results behind for inspection and for a retry with
    `skip_transcription`. Runs for the same recording id are serialized.
    """

    def __init__(
        self,
        repository: IRecordingRepository,
        transcriber: HybridTranscriber,
        redactor: PiiRedactor,
        generator: IGenerator,
    ):
        self.repo = repository
        self.transcriber = transcriber
        self.redactor = redactor
        self.generator = generator

        self._locks_guard = Lock()
        self._run_locks: Dict[str, Tuple[Lock, int]] = {}

    # --- Public API ---

    def run(
        self,
        recording_id: str,
        project_id: str,
        options: Optional[PipelineOptions] = None,
        token: Optional[CancellationToken] = None,
    ) -> PipelineOutcome:
        options = options or PipelineOptions()
        token = token or CancellationToken()

        with self._recording_lock(recording_id):
            # 1. Resolve inputs. Nothing is written if these fail.
            recording = self.repo.get_recording(recording_id)
            if recording is None:
                raise PipelineAbortedError(f"Recording {recording_id} not found")
            project = self.repo.get_project(project_id)
            if project is None:
                raise PipelineAbortedError(f"Project {project_id} not found")

            reuse_transcript = options.skip_transcription and bool(recording.transcription)
            if not reuse_transcript and not recording.audio_path:
                raise PipelineAbortedError(f"Recording {recording_id} has no audio to transcribe")

            run = _RunState(recording_id)
            started = time.time()
            logger.info(f"[Pipeline] Starting for recording {recording_id}")

            try:
                self._execute(run, recording, project, options, reuse_transcript, token)
            except Exception as e:
                message = str(e) or e.__class__.__name__
                logger.error(f"[Pipeline] Failed after {time.time() - started:.1f}s: {message}")
                self._record_error(run, message)
                return PipelineOutcome(RecordingState.ERROR, run.source, message)

            logger.info(f"[Pipeline] Completed in {time.time() - started:.1f}s")
            return PipelineOutcome(run.state, run.source)

    def retry(self, recording_id: str, token: Optional[CancellationToken] = None) -> PipelineOutcome:
        """
        The "Retry Processing" action: re-runs the pipeline, reusing the stored
        transcript when there is one so the audio is not sent again.
        """
        recording = self.repo.get_recording(recording_id)
        if recording is None:
            raise PipelineAbortedError(f"Recording {recording_id} not found")

        options = PipelineOptions(skip_transcription=bool(recording.transcription))
        logger.info(f"[Pipeline] Retrying {recording_id} (skip_transcription={options.skip_transcription})")
        return self.run(recording_id, recording.project_id, options, token)

    # --- Stages ---

    def _execute(
        self,
        run: _RunState,
        recording: Recording,
        project: Project,
        options: PipelineOptions,
        reuse_transcript: bool,
        token: CancellationToken,
    ) -> None:
        api_keys = self.repo.get_api_keys()

        # Step 1: Transcription
        token.raise_if_cancelled()
        if reuse_transcript:
            logger.info("[Pipeline] Step 1/3: Transcription skipped, reusing stored transcript")
            transcript = recording.transcription
            if recording.transcription_source:
                run.source = TranscriptionSource(recording.transcription_source)
        else:
            logger.info("[Pipeline] Step 1/3: Transcription")
            self._advance(run, RecordingState.TRANSCRIBING)
            result = self.transcriber.transcribe(
                self._resolve_audio_path(recording.audio_path),
                api_keys.mistral_key,
                project.sensitive_words,
                force_remote=options.force_remote_transcription,
                token=token,
            )
            run.source = result.source
            transcript = result.full_text
            self.repo.update_recording(
                run.recording_id,
                transcription=result.full_text,
                transcription_data=result.segments,
                transcription_source=result.source,
            )
            logger.info(f"[Pipeline] Transcription done ({result.source.value}): {len(result.segments)} segments")

        # Step 2: Anonymization
        token.raise_if_cancelled()
        mapping = None
        anonymized_text = None
        if project.enable_anonymization and project.enable_generation:
            logger.info("[Pipeline] Step 2/3: Anonymization")
            self._advance(run, RecordingState.ANONYMIZING)
            redacted = self.redactor.anonymize(transcript)
            anonymized_text = redacted.anonymized_text
            mapping = redacted.mapping
            self.repo.update_recording(
                run.recording_id,
                anonymized_transcription=anonymized_text,
                pii_mappings=mapping,
            )
            logger.info(f"[Pipeline] Anonymization done: {len(mapping)} PII items")
        else:
            logger.info("[Pipeline] Step 2/3: Anonymization skipped")

        # Step 3: Generation
        token.raise_if_cancelled()
        if not project.enable_generation:
            logger.info("[Pipeline] Step 3/3: Generation disabled")
            self._advance(run, RecordingState.DONE)
            return

        logger.info(f"[Pipeline] Step 3/3: LLM ({project.llm_provider.value}/{project.llm_model})")
        self._advance(run, RecordingState.PROCESSING)

        text_to_process = anonymized_text if anonymized_text else transcript
        output = self.generator.generate(
            text_to_process,
            ProviderConfig(project.llm_provider, project.llm_model, project.llm_prompt),
            api_keys,
            token=token,
        )
        if mapping is not None:
            output = self.redactor.reverse(output, mapping)

        token.raise_if_cancelled()
        self._advance(run, RecordingState.DONE, llm_output=output)

    # --- Helpers ---

    def _advance(self, run: _RunState, state: RecordingState, **fields) -> None:
        if not RecordingState.can_transition(run.state, state):
            raise RuntimeError(f"Illegal recording transition {run.state.value} -> {state.value}")
        self.repo.update_recording(run.recording_id, status=state, **fields)
        run.state = state

    def _record_error(self, run: _RunState, message: str) -> None:
        try:
            self._advance(run, RecordingState.ERROR, error_message=message)
        except Exception:
            # The recording may have been deleted mid-run; nothing left to mark.
            logger.exception(f"[Pipeline] Could not record error state for {run.recording_id}")

    @staticmethod
    def _resolve_audio_path(audio_path: str) -> str:
        # Stored paths are relative to the audio directory unless absolute
        path = Path(audio_path)
        if not path.is_absolute():
            path = settings.AUDIO_DIR / path
        return str(path)

    @contextmanager
    def _recording_lock(self, recording_id: str) -> Iterator[None]:
        with self._locks_guard:
            lock, users = self._run_locks.get(recording_id, (None, 0))
            if lock is None:
                lock = Lock()
            self._run_locks[recording_id] = (lock, users + 1)

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._locks_guard:
                _, users = self._run_locks[recording_id]
                if users <= 1:
                    del self._run_locks[recording_id]
                else:
                    self._run_locks[recording_id] = (lock, users - 1)
