# File: tests/conftest.py

import os
import sys
import tempfile
from pathlib import Path

import pytest
import sqlalchemy
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy_utils import database_exists, create_database

# 1. Add project root to path
sys.path.append(os.getcwd())

# 2. Point data, temp dirs and the database at a throwaway location BEFORE settings load
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="podscribe-tests-"))
os.environ.setdefault("PODSCRIBE_DATA_DIR", str(_TEST_ROOT / "data"))
os.environ.setdefault("ASR_TEMP_ROOT", str(_TEST_ROOT / "tmp"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_ROOT / 'data' / 'test.db'}")

# 3. Import Settings
from podscribe.core.config.settings import settings

settings.ensure_dirs()

# 4. Create Test Engine
connect_args = {"check_same_thread": False} if "sqlite" in settings.DATABASE_URL else {}
TEST_ENGINE = create_engine(settings.DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=TEST_ENGINE)


@pytest.fixture(scope="session", autouse=True)
def global_setup():
    """
    Runs once per test session.
    Ensures DB exists and tables are created.
    """
    if not database_exists(TEST_ENGINE.url):
        create_database(TEST_ENGINE.url)

    from podscribe.core.database.connection import init_db
    init_db(bind=TEST_ENGINE)

    yield


@pytest.fixture(scope="function", autouse=True)
def clean_db(global_setup):
    """
    Runs before EVERY test.
    Detects DB type and cleans tables appropriately.
    """
    with TEST_ENGINE.connect() as conn:
        trans = conn.begin()

        is_sqlite = "sqlite" in str(TEST_ENGINE.url)

        inspector = sqlalchemy.inspect(TEST_ENGINE)
        table_names = inspector.get_table_names()

        if table_names:
            if is_sqlite:
                conn.execute(text("PRAGMA foreign_keys = OFF;"))
                for table in table_names:
                    conn.execute(text(f'DELETE FROM "{table}";'))
                conn.execute(text("PRAGMA foreign_keys = ON;"))
            else:
                conn.execute(text("SET session_replication_role = 'replica';"))
                for table in table_names:
                    conn.execute(text(f'TRUNCATE TABLE "{table}" CASCADE;'))
                conn.execute(text("SET session_replication_role = 'origin';"))

        trans.commit()

    yield


@pytest.fixture(scope="function")
def session_factory():
    """Sessions bound to the test engine, for repositories under test."""
    return TestingSessionLocal


@pytest.fixture(scope="function")
def db_session():
    """
    Provides a session for the test to use.
    """
    session = TestingSessionLocal()
    yield session
    session.close()
