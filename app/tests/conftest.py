import os
import subprocess
import sys
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url

_default_test_database = Path(tempfile.gettempdir()) / "timesheet_test.db"
TEST_DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{_default_test_database}")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from app import database  # noqa: E402
from app.core.clock import get_clock  # noqa: E402
from app.main import app  # noqa: E402


class StepClock:
    """Deterministic clock; time only moves when a test calls advance()."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def _ensure_database_exists(database_url: str) -> None:
    url = make_url(database_url)

    if url.drivername.startswith("sqlite"):
        if url.database and url.database != ":memory:":
            Path(url.database).unlink(missing_ok=True)
        return

    if not url.drivername.startswith("postgresql"):
        return

    db_name = url.database
    admin_url = url.set(database="postgres")
    admin_engine = create_engine(admin_url, isolation_level="AUTOCOMMIT")

    try:
        with admin_engine.connect() as conn:
            exists = conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": db_name},
            ).scalar()
            if not exists:
                safe_db_name = db_name.replace('"', '""')
                conn.execute(text(f'CREATE DATABASE "{safe_db_name}"'))
    finally:
        admin_engine.dispose()


def _clear_tables() -> None:
    with database.engine.begin() as conn:
        if conn.dialect.name == "postgresql":
            conn.execute(text('TRUNCATE TABLE "timesheet_entries" RESTART IDENTITY CASCADE'))
            return
        for table in reversed(database.Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(scope="session", autouse=True)
def _prepare_test_database() -> None:
    _ensure_database_exists(TEST_DATABASE_URL)

    env = os.environ.copy()
    env["DATABASE_URL"] = TEST_DATABASE_URL

    subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        check=True,
        cwd=Path(__file__).resolve().parents[2],
        env=env,
    )

    database.configure_database()


@pytest.fixture(scope="function", autouse=True)
def _clear_tables_between_tests():
    _clear_tables()
    yield
    _clear_tables()


@pytest.fixture
def clock():
    return StepClock(datetime(2024, 1, 15, 9, 0, 0))


@pytest.fixture
def app_clock(clock):
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield clock
    finally:
        app.dependency_overrides.pop(get_clock, None)
