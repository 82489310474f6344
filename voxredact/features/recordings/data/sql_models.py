import uuid
from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship
from voxredact.core.database.base import Base


def utc_now():
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class ProjectModel(Base):
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    # 'openai' | 'gemini' | 'mistral'
    llm_provider = Column(String, nullable=False)
    llm_model = Column(String, nullable=False)
    llm_prompt = Column(Text, nullable=False)

    enable_anonymization = Column(Boolean, nullable=False, default=True)
    enable_generation = Column(Boolean, nullable=False, default=True)

    # [{"name": ..., "type": "text" | "number" | "date"}]
    custom_fields = Column(JSON, default=list)
    # Context-bias words sent to remote transcription
    sensitive_words = Column(JSON, default=list)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    recordings = relationship("RecordingModel", back_populates="project", cascade="all, delete-orphan")


class RecordingModel(Base):
    __tablename__ = "recordings"

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)

    status = Column(String, nullable=False, default="pending")
    audio_path = Column(String, nullable=True)
    audio_duration = Column(Integer, nullable=True)  # seconds
    custom_field_values = Column(JSON, default=dict)

    transcription = Column(Text, nullable=True)
    # [{"speaker": ..., "timestamp": ms, "text": ...}]
    transcription_data = Column(JSON, nullable=True)
    transcription_source = Column(String, nullable=True)  # 'local' | 'remote'

    anonymized_transcription = Column(Text, nullable=True)
    # {"<email 1>": "jane@example.com", ...}
    pii_mappings = Column(JSON, nullable=True)

    llm_output = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    project = relationship("ProjectModel", back_populates="recordings")


class ApiKeysModel(Base):
    """
    Single-row table of provider credentials.
    """
    __tablename__ = "api_keys"

    id = Column(String(36), primary_key=True, default=new_id)
    openai_key = Column(String, nullable=True)
    gemini_key = Column(String, nullable=True)
    mistral_key = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)
