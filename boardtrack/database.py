# boardtrack/database.py

from sqlalchemy import text
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from .config import settings


def build_engine(url: str):
    """
    Create an engine for the given URL.

    SQLite needs check_same_thread=False because FastAPI serves sync
    routes from a threadpool; in-memory SQLite additionally needs a
    single shared connection or every session sees an empty database.
    """
    kwargs = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


engine = build_engine(settings.database_url)


def create_db_and_tables(bind=None) -> None:
    # Import models so they register on SQLModel.metadata
    from . import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


def ping(bind=None) -> bool:
    """Connectivity check used by the sync poller."""
    with (bind or engine).connect() as conn:
        conn.execute(text("SELECT 1"))
    return True


def get_session():
    with Session(engine) as session:
        yield session
