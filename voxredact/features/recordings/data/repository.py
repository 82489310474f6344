# File: voxredact/features/recordings/data/repository.py
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from voxredact.core.common.enums import LlmProvider, RecordingState
from voxredact.core.database.connection import SessionLocal
from voxredact.core.errors import PipelineAbortedError
from voxredact.features.transcription.domain.models import TranscriptionSegment
from ..domain.interfaces import IRecordingRepository, WRITABLE_FIELDS
from ..domain.models import ApiKeys, Project, Recording
from .sql_models import ApiKeysModel, ProjectModel, RecordingModel, utc_now

logger = logging.getLogger(__name__)


def _to_column(name: str, value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if name == "transcription_data" and value is not None:
        return [s.to_dict() if isinstance(s, TranscriptionSegment) else dict(s) for s in value]
    if name == "pii_mappings" and value is not None:
        return dict(value)
    return value


class SqlRecordingRepository(IRecordingRepository):
    def get_recording(self, recording_id: str) -> Optional[Recording]:
        with SessionLocal() as db:
            row = db.query(RecordingModel).filter(RecordingModel.id == recording_id).first()
            return self._to_recording(row) if row else None

    def get_project(self, project_id: str) -> Optional[Project]:
        with SessionLocal() as db:
            row = db.query(ProjectModel).filter(ProjectModel.id == project_id).first()
            return self._to_project(row) if row else None

    def update_recording(self, recording_id: str, **fields: Any) -> None:
        unknown = set(fields) - WRITABLE_FIELDS
        if unknown:
            raise ValueError(f"Recording fields not writable by the pipeline: {sorted(unknown)}")

        with SessionLocal() as db:
            try:
                row = db.query(RecordingModel).filter(RecordingModel.id == recording_id).first()
                if row is None:
                    raise PipelineAbortedError(f"Recording {recording_id} not found")

                for name, value in fields.items():
                    setattr(row, name, _to_column(name, value))
                row.updated_at = utc_now()
                db.commit()
            except Exception:
                db.rollback()
                raise

        logger.debug(f"Recording {recording_id} updated: {sorted(fields)}")

    def get_api_keys(self) -> ApiKeys:
        with SessionLocal() as db:
            row = db.query(ApiKeysModel).order_by(ApiKeysModel.created_at).first()
            if row is None:
                return ApiKeys()
            return ApiKeys(
                openai_key=row.openai_key or None,
                gemini_key=row.gemini_key or None,
                mistral_key=row.mistral_key or None,
            )

    # --- Seeding helpers (used by the host application and tests) ---

    def create_project(
        self,
        name: str,
        llm_provider: LlmProvider,
        llm_model: str,
        llm_prompt: str,
        description: Optional[str] = None,
        enable_anonymization: bool = True,
        enable_generation: bool = True,
        custom_fields: Optional[List[Dict[str, str]]] = None,
        sensitive_words: Optional[List[str]] = None,
    ) -> str:
        with SessionLocal() as db:
            project = ProjectModel(
                name=name,
                description=description,
                llm_provider=LlmProvider(llm_provider).value,
                llm_model=llm_model,
                llm_prompt=llm_prompt,
                enable_anonymization=enable_anonymization,
                enable_generation=enable_generation,
                custom_fields=custom_fields or [],
                sensitive_words=sensitive_words or [],
            )
            db.add(project)
            db.commit()
            db.refresh(project)
            return project.id

    def create_recording(
        self,
        project_id: str,
        audio_path: Optional[str] = None,
        audio_duration: Optional[int] = None,
        custom_field_values: Optional[Dict[str, Any]] = None,
        transcription: Optional[str] = None,
    ) -> str:
        with SessionLocal() as db:
            recording = RecordingModel(
                project_id=project_id,
                status=RecordingState.PENDING.value,
                audio_path=audio_path,
                audio_duration=audio_duration,
                custom_field_values=custom_field_values or {},
                transcription=transcription,
            )
            db.add(recording)
            db.commit()
            db.refresh(recording)
            return recording.id

    def save_api_keys(self, keys: ApiKeys) -> None:
        """Upserts the single credentials row."""
        with SessionLocal() as db:
            row = db.query(ApiKeysModel).order_by(ApiKeysModel.created_at).first()
            if row is None:
                row = ApiKeysModel()
                db.add(row)
            row.openai_key = keys.openai_key
            row.gemini_key = keys.gemini_key
            row.mistral_key = keys.mistral_key
            db.commit()

    # --- Mapping ---

    @staticmethod
    def _to_project(row: ProjectModel) -> Project:
        return Project(
            id=row.id,
            name=row.name,
            description=row.description,
            llm_provider=LlmProvider(row.llm_provider),
            llm_model=row.llm_model,
            llm_prompt=row.llm_prompt,
            enable_anonymization=bool(row.enable_anonymization),
            enable_generation=bool(row.enable_generation),
            custom_fields=list(row.custom_fields or []),
            sensitive_words=list(row.sensitive_words or []),
        )

    @staticmethod
    def _to_recording(row: RecordingModel) -> Recording:
        segments = None
        if row.transcription_data is not None:
            segments = [TranscriptionSegment.from_dict(s) for s in row.transcription_data]
        return Recording(
            id=row.id,
            project_id=row.project_id,
            status=RecordingState(row.status),
            audio_path=row.audio_path,
            audio_duration=row.audio_duration,
            custom_field_values=dict(row.custom_field_values or {}),
            transcription=row.transcription,
            transcription_data=segments,
            transcription_source=row.transcription_source,
            anonymized_transcription=row.anonymized_transcription,
            pii_mappings=dict(row.pii_mappings) if row.pii_mappings is not None else None,
            llm_output=row.llm_output,
            error_message=row.error_message,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
