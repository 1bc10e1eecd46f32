# app/db/session.py
from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)


def _mask(dsn: str) -> str:
    if "://" in dsn and "@" in dsn:
        i = dsn.index("://") + 3
        j = dsn.rindex("@")
        if j > i:
            return dsn[:i] + "***:***" + dsn[j:]
    return dsn


def _ensure_sqlite_dir(dsn: str) -> None:
    url = make_url(dsn)
    if url.get_backend_name() != "sqlite":
        return
    database = url.database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)


def create_db_engine(dsn: str) -> Engine:
    _ensure_sqlite_dir(dsn)
    logger.info("DB DSN (masked): %s", _mask(dsn))
    return create_engine(
        dsn,
        pool_pre_ping=True,   # handles stale connections
        echo=False,
        future=True,
    )


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
    )
