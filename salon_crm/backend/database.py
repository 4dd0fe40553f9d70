"""Engine, session factory and declarative base."""
from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import URL
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from salon_crm.backend.config import get_settings


def get_database_url() -> str:
    s = get_settings()
    if s.database_url:
        return s.database_url
    url = URL.create(
        "postgresql+psycopg2",
        username=s.postgres_user,
        password=s.postgres_password,
        host=s.postgres_host,
        port=s.postgres_port,
        database=s.postgres_db,
    )
    return url.render_as_string(hide_password=False)


@lru_cache
def get_engine():
    s = get_settings()
    return create_engine(
        get_database_url(),
        pool_pre_ping=True,
        pool_size=max(1, s.db_pool_size),
        pool_recycle=1800,
    )


def get_test_engine():
    """Fresh in-memory SQLite shared across threads (TestClient runs handlers in a threadpool)."""
    return create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


class Base(DeclarativeBase):
    pass


# app_settings stores JSONB on Postgres; SQLite test databases get plain JSON.
@compiles(JSONB, "sqlite")
def _jsonb_as_sqlite_json(_element, _compiler, **_kw):
    return "JSON"


def get_session_factory(engine=None) -> sessionmaker:
    return sessionmaker(bind=engine or get_engine(), autoflush=False)


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for request handlers and RQ jobs. Uncommitted work is rolled back on error."""
    sess = get_session_factory()()
    try:
        yield sess
    except Exception:
        sess.rollback()
        raise
    finally:
        sess.close()
