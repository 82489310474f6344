# File: tests/conftest.py

import os
import struct
import tempfile

import pytest
import sqlalchemy
from sqlalchemy import text

# 1. Point every path and the database at a scratch directory BEFORE settings load
_SCRATCH = tempfile.mkdtemp(prefix="voxredact-tests-")
os.environ["VOXREDACT_DATA_DIR"] = _SCRATCH
os.environ["VOXREDACT_MODELS_DIR"] = os.path.join(_SCRATCH, "models")
os.environ["VOXREDACT_DATABASE_URL"] = f"sqlite:///{os.path.join(_SCRATCH, 'test.db')}"
os.environ["VOXREDACT_LOCAL_TRANSCRIPTION"] = "false"

from sqlalchemy_utils import database_exists, create_database  # noqa: E402

from voxredact.core.config.settings import settings  # noqa: E402
from voxredact.core.database.connection import engine, SessionLocal  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def global_setup():
    """
    Runs once per test session.
    Ensures the DB exists and all tables are registered and created.
    """
    settings.ensure_dirs()

    if not database_exists(engine.url):
        create_database(engine.url)

    from voxredact.core.database.base import Base
    import voxredact.features.recordings.data.sql_models  # noqa: F401

    Base.metadata.create_all(bind=engine)

    yield


@pytest.fixture(scope="function", autouse=True)
def clean_db(global_setup):
    """
    Runs before EVERY test. Empties every table.
    """
    from voxredact.core.database.base import Base
    Base.metadata.create_all(bind=engine)

    with engine.connect() as conn:
        trans = conn.begin()
        table_names = sqlalchemy.inspect(engine).get_table_names()
        if table_names:
            # Disable FK checks so tables can be emptied in any order
            conn.execute(text("PRAGMA foreign_keys = OFF;"))
            for table in table_names:
                conn.execute(text(f'DELETE FROM "{table}";'))
            conn.execute(text("PRAGMA foreign_keys = ON;"))
        trans.commit()

    yield


@pytest.fixture(scope="function")
def db_session():
    """
    Provides a session for the test to inspect rows directly.
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def build_wav(payload: bytes, channels: int = 1, sample_rate: int = 16000, bits: int = 16,
              audio_format: int = 1, extra_chunks: bytes = b"") -> bytes:
    """Assembles a minimal RIFF/WAVE file around a raw PCM payload."""
    block_align = channels * bits // 8
    fmt = struct.pack("<HHIIHH", audio_format, channels, sample_rate,
                      sample_rate * block_align, block_align, bits)
    body = b"WAVE" + b"fmt " + struct.pack("<I", len(fmt)) + fmt + extra_chunks
    body += b"data" + struct.pack("<I", len(payload)) + payload
    return b"RIFF" + struct.pack("<I", len(body)) + body


@pytest.fixture
def wav_builder():
    return build_wav
