"""Database engine builder.

Engine policy:
- PostgreSQL: psycopg2 driver unless the URL names one; pool_pre_ping=True;
  pool mode from QCARD_DB_POOL (queuepool default)
- DigitalOcean managed host: sslmode=require via connect_args unless the URL names one
- Production: SQLite is refused (file databases don't survive redeploys)
- SQLite: check_same_thread=False, StaticPool for in-memory URLs, and
  PRAGMA foreign_keys=ON on every connection so ON DELETE CASCADE/SET NULL
  behave exactly like PostgreSQL
- ENV: QCARD_DB_POOL=queuepool|nullpool
- ENV: QCARD_DB_POOL_SIZE / QCARD_DB_MAX_OVERFLOW (queuepool only)
"""

import logging
import os
from typing import Any

from sqlalchemy import Engine, NullPool, StaticPool, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from qcard_api.config.env import is_production_env, resolve_database_url
from qcard_api.db.url_policy import (
    get_sslmode_from_url,
    is_digitalocean_host,
    is_sqlite_url,
    mask_password,
    with_postgres_driver,
)

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """Turn on FK enforcement for a fresh SQLite connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _is_memory_sqlite(url: str) -> bool:
    return url in {"sqlite://", "sqlite:///:memory:"} or "mode=memory" in url


def _build_sqlite_engine(url: str) -> Engine:
    """Build a SQLite engine with FK enforcement."""
    kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if _is_memory_sqlite(url):
        kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **kwargs)
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def build_engine(database_url: str | None = None) -> Engine:
    """
    Build SQLAlchemy engine.

    Args:
        database_url: Database URL. If None, resolved via resolve_database_url().

    Returns:
        SQLAlchemy Engine instance.

    Raises:
        RuntimeError: If a SQLite URL is used in production.
        ValueError: If QCARD_DB_POOL holds an unknown value.

    Examples:
        >>> engine = build_engine("sqlite://")
        >>> engine.pool.__class__.__name__
        'StaticPool'
    """
    url = database_url or resolve_database_url()

    if is_sqlite_url(url):
        if is_production_env():
            raise RuntimeError(
                "PRODUCTION GUARDRAIL: SQLite database URL is not allowed in production. "
                "Fix: Set DATABASE_URL to the managed PostgreSQL connection string "
                "(or DATABASE_HOST/DATABASE_USERNAME/DATABASE_PASSWORD)."
            )
        engine = _build_sqlite_engine(url)
    else:
        url = with_postgres_driver(url)
        connect_args: dict[str, Any] = {}
        if is_digitalocean_host(url) and get_sslmode_from_url(url) is None:
            connect_args["sslmode"] = "require"

        app_name = os.getenv("QCARD_DB_APPLICATION_NAME", "qcard-api")
        if app_name:
            connect_args["application_name"] = app_name

        pool_mode = os.getenv("QCARD_DB_POOL", "queuepool").lower()

        if pool_mode == "nullpool":
            engine = create_engine(
                url,
                poolclass=NullPool,
                pool_pre_ping=True,
                connect_args=connect_args,
            )
        elif pool_mode == "queuepool":
            pool_size = int(os.getenv("QCARD_DB_POOL_SIZE", "5"))
            max_overflow = int(os.getenv("QCARD_DB_MAX_OVERFLOW", "10"))
            engine = create_engine(
                url,
                pool_pre_ping=True,
                pool_size=pool_size,
                max_overflow=max_overflow,
                connect_args=connect_args,
            )
        else:
            raise ValueError(
                f"Invalid QCARD_DB_POOL value: {pool_mode}. "
                "Must be 'nullpool' or 'queuepool'."
            )

    logger.debug(
        "Database engine created: pool=%s, url=%s",
        engine.pool.__class__.__name__,
        mask_password(url),
    )
    return engine


def build_sessionmaker(engine: Engine) -> sessionmaker[Session]:
    """
    Build SQLAlchemy sessionmaker.

    Args:
        engine: SQLAlchemy Engine instance.

    Returns:
        sessionmaker instance configured with autocommit=False, autoflush=False.
    """
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
