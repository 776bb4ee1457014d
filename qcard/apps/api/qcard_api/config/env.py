"""Environment variable resolution utilities.

Canonical env names + legacy fallbacks + fail-fast validation.
"""

import os
from typing import Optional

from qcard_api.db.url_policy import (
    build_managed_postgres_url,
    ensure_sslmode,
    is_sqlite_url,
    normalize_sqlite_url,
)

DEV_DATABASE_URL = "sqlite:///./dev.db"
DEFAULT_APP_URL = "http://localhost:3001"


def get_qcard_env() -> str:
    """Get QCard environment name.

    Priority:
    1. QCARD_ENV (canonical)
    2. NODE_ENV (legacy deployments)
    3. Default: "local"

    Returns:
        Environment name (lowercase)
    """
    return (os.getenv("QCARD_ENV") or os.getenv("NODE_ENV") or "local").lower()


def is_production_env() -> bool:
    """True when QCARD_ENV (or legacy NODE_ENV) is prod/production."""
    return get_qcard_env() in {"prod", "production"}


def _managed_database_parts() -> Optional[dict[str, Optional[str]]]:
    """Return DATABASE_HOST/USERNAME/PASSWORD (+PORT/NAME) if all required parts are set."""
    host = os.getenv("DATABASE_HOST")
    username = os.getenv("DATABASE_USERNAME")
    password = os.getenv("DATABASE_PASSWORD")
    if not (host and username and password):
        return None
    return {
        "host": host,
        "username": username,
        "password": password,
        "port": os.getenv("DATABASE_PORT"),
        "database": os.getenv("DATABASE_NAME"),
    }


def resolve_database_url() -> str:
    """Resolve the runtime database URL.

    Priority:
    1. DATABASE_URL pointing at PostgreSQL (sslmode=require added for
       DigitalOcean managed hosts that don't name one)
    2. DATABASE_HOST / DATABASE_PORT / DATABASE_USERNAME / DATABASE_PASSWORD /
       DATABASE_NAME when DATABASE_URL is unset or still names SQLite
       (SQLite -> PostgreSQL provider switch)
    3. DATABASE_URL naming SQLite
    4. Development fallback: sqlite:///./dev.db

    Returns:
        SQLAlchemy database URL

    Raises:
        RuntimeError: If nothing is configured in production
    """
    url = os.getenv("DATABASE_URL")
    parts = _managed_database_parts()

    if url and not is_sqlite_url(url):
        # SQLAlchemy only accepts the "postgresql" dialect name.
        if url.startswith("postgres://"):
            url = "postgresql://" + url[len("postgres://"):]
        return ensure_sslmode(url)

    if parts:
        return build_managed_postgres_url(**parts)

    if url:
        return normalize_sqlite_url(url)

    if is_production_env():
        raise RuntimeError(
            "DATABASE_URL environment variable is required in production (QCARD_ENV=prod/production). "
            "Set DATABASE_URL, or DATABASE_HOST/DATABASE_USERNAME/DATABASE_PASSWORD for a managed database."
        )
    return DEV_DATABASE_URL


def get_app_url() -> str:
    """Get the public application URL (used for casting code links).

    Canonical: NEXT_PUBLIC_APP_URL
    Fallback: APP_URL, then http://localhost:3001

    Returns:
        Base URL without trailing slash
    """
    url = os.getenv("NEXT_PUBLIC_APP_URL") or os.getenv("APP_URL") or DEFAULT_APP_URL
    return url.rstrip("/")


def get_admin_token() -> str:
    """Get operator admin token.

    Required: ADMIN_TOKEN

    Raises:
        ValueError: If ADMIN_TOKEN is not set
    """
    token = os.getenv("ADMIN_TOKEN")
    if not token:
        raise ValueError(
            "ADMIN_TOKEN is required for operator endpoints. "
            "Set ADMIN_TOKEN in your deployment configuration."
        )
    return token


def get_auth_secret() -> Optional[str]:
    """Get the upstream auth layer secret.

    Canonical: NEXTAUTH_SECRET
    Fallback (backward compat): AUTH_SECRET

    Returns:
        Secret value or None when unset
    """
    return os.getenv("NEXTAUTH_SECRET") or os.getenv("AUTH_SECRET")


def get_cors_origins() -> list[str]:
    """Get CORS allowlist.

    CORS_ALLOWED_ORIGINS is comma-separated; without it only localhost
    variants of the web app are allowed.
    """
    cors_origins_env = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if cors_origins_env:
        return [origin.strip() for origin in cors_origins_env.split(",") if origin.strip()]
    return [
        "http://localhost:3000",
        "http://localhost:3001",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:3001",
    ]


def is_json_logging_enabled() -> bool:
    """QCARD_JSON_LOGS=false disables structured logging (default: enabled)."""
    return os.getenv("QCARD_JSON_LOGS", "true").lower() != "false"
