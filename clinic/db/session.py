"""
Database engine and session factory.

The engine is built lazily from DATABASE_URL on first use, and rebuilt if
the variable changes, so tests can point the app at SQLite before anything
touches the database.
"""

import logging
import os
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./clinic.db"

Base = declarative_base()

# Engine and sessionmaker for the most recently seen DATABASE_URL
_state: Dict[str, Any] = {"url": None, "engine": None, "factory": None}


def get_database_url() -> str:
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def _engine_options(url: URL) -> Dict[str, Any]:
    """Per-dialect engine keyword arguments."""
    if url.drivername.startswith("postgres"):
        return {
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,
            "pool_recycle": 3600,
            "connect_args": {
                "application_name": "clinic_scheduling",
                "connect_timeout": 10,
            },
        }
    if url.drivername.startswith("sqlite"):
        options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            # One shared connection, otherwise each session sees an empty db
            options["poolclass"] = StaticPool
        return options
    return {}


def get_engine() -> Engine:
    """Return the engine for the current DATABASE_URL."""
    database_url = get_database_url()
    if _state["engine"] is None or _state["url"] != database_url:
        if _state["engine"] is not None:
            _state["engine"].dispose()
        url = make_url(database_url)
        engine = create_engine(database_url, echo=False, **_engine_options(url))
        _state.update(url=database_url, engine=engine, factory=None)
        logger.debug(
            "SQLAlchemy engine created",
            extra={
                "context": {
                    "url": url.render_as_string(hide_password=True),
                    "dialect": engine.dialect.name,
                }
            },
        )
    return _state["engine"]


def get_sessionmaker() -> sessionmaker:
    engine = get_engine()
    if _state["factory"] is None:
        _state["factory"] = sessionmaker(
            bind=engine, autoflush=False, expire_on_commit=False
        )
    return _state["factory"]


def SessionLocal() -> Session:
    """New session bound to the current engine."""
    return get_sessionmaker()()


def create_tables() -> None:
    # Model modules register their tables on Base.metadata when imported
    from clinic.db import base  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def drop_tables() -> None:
    from clinic.db import base  # noqa: F401

    Base.metadata.drop_all(bind=get_engine())
