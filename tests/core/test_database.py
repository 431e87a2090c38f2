# File: tests/core/test_database.py

from sqlalchemy import inspect, text
from podscribe.core.database.connection import SessionLocal, engine


def test_database_connection():
    """
    Simple smoke test to ensure DB is reachable and configured.
    """
    with SessionLocal() as db:
        # Simple query valid in both Postgres and SQLite
        result = db.execute(text("SELECT 1"))
        assert result.scalar() == 1


def test_owned_tables_exist():
    tables = set(inspect(engine).get_table_names())
    assert {"asr_jobs", "transcripts", "transcript_segments"} <= tables
