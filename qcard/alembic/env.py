"""Alembic environment configuration.

  - URL resolution: DATABASE_URL_MIGRATIONS > resolve_database_url()
    (DATABASE_URL, DigitalOcean DATABASE_* parts, dev SQLite fallback).
  - Online migration uses build_engine(), so the production SQLite ban and
    the sslmode checks in url_policy apply to migrations too.
"""

import os
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context

# Add apps/api to path so qcard_api imports resolve.
sys.path.insert(0, str(Path(__file__).parent.parent / "apps" / "api"))

from qcard_api.config.env import resolve_database_url  # noqa: E402
from qcard_api.db.engine import build_engine  # noqa: E402
from qcard_api.db.models import Base  # noqa: E402

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

database_url = os.getenv("DATABASE_URL_MIGRATIONS") or resolve_database_url()

# Offline mode reads the URL back from the config.
config.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (SQL generation, no DB connection)."""
    context.configure(
        url=database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=database_url.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode (direct DB connection).

    Raises:
        RuntimeError: Production guardrail failure (SQLite in production, sslmode)
    """
    connectable = build_engine(database_url)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
