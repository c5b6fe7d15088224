import os
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)

Base = declarative_base()

DATABASE_URL = ""
engine = None
_configured_database_url = None


def _get_database_url() -> str:
    return os.getenv("DATABASE_URL", "sqlite:///./timesheet.db")


def _connect_args(database_url: str) -> dict:
    if make_url(database_url).drivername.startswith("sqlite"):
        # TestClient runs handlers on a worker thread
        return {"check_same_thread": False}
    return {}


def configure_database() -> None:
    global DATABASE_URL, engine, _configured_database_url

    database_url = _get_database_url()

    if engine is not None and _configured_database_url == database_url:
        return

    if engine is not None:
        engine.dispose()

    engine = create_engine(database_url, connect_args=_connect_args(database_url))
    SessionLocal.configure(bind=engine)
    DATABASE_URL = database_url
    _configured_database_url = database_url


configure_database()


def get_db():
    configure_database()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(db: Optional[Session] = None) -> Iterator[Session]:
    """
    If db is provided, yield it untouched. Caller owns the transaction.
    If db is None, open a session, commit on success, roll back on failure, close.
    """
    if db is not None:
        yield db
        return

    configure_database()
    owned = SessionLocal()
    try:
        yield owned
        owned.commit()
    except Exception:
        owned.rollback()
        raise
    finally:
        owned.close()
