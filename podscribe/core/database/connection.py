# File: podscribe/core/database/connection.py

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from podscribe.core.config.settings import settings

# check_same_thread=False is needed only for SQLite: worker threads share the engine
connect_args = {"check_same_thread": False} if "sqlite" in settings.DATABASE_URL else {}

if settings.DATABASE_URL.startswith("sqlite:///"):
    settings.ensure_dirs()

engine = create_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
    connect_args=connect_args
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None):
    """Registers the feature models and creates their tables."""
    from podscribe.core.database.base import Base
    import podscribe.core.jobs.models  # noqa: F401
    import podscribe.features.transcription.data.sql_models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
