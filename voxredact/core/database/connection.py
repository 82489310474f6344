# File: voxredact/core/database/connection.py

from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from voxredact.core.config.settings import settings

# check_same_thread=False is needed for SQLite: recordings may be processed
# from worker threads of the host application.
connect_args = {"check_same_thread": False} if "sqlite" in settings.DATABASE_URL else {}

# SQLite will not create missing parent folders for its file
if settings.DATABASE_URL.startswith("sqlite:///") and ":memory:" not in settings.DATABASE_URL:
    Path(settings.DATABASE_URL[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)

engine = create_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
    connect_args=connect_args
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Dependency for obtaining a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
