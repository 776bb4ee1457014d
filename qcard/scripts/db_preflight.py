#!/usr/bin/env python3
"""
Database Deployment Preflight Validator.

Run right before a deploy (or as the release phase command) to confirm the
runtime will get a usable, encrypted database connection.

Usage:
    python scripts/db_preflight.py

Exit Codes:
    0: PASS (all checks passed, warnings allowed)
    1: FAIL (validation failed)

Environment Variables:
    DATABASE_URL / DATABASE_HOST, DATABASE_USERNAME, DATABASE_PASSWORD:
        resolved exactly as the API does (config/env.py)
    QCARD_ENV: Environment name ("prod"/"production" enables strict checks)
    NEXTAUTH_SECRET: Shared secret of the web app's auth layer (warned if unset)
"""

import argparse
import sys
from pathlib import Path

# Add apps/api to path so qcard_api imports resolve.
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "apps" / "api"))

from qcard_api.config.env import get_auth_secret, is_production_env, resolve_database_url  # noqa: E402
from qcard_api.db.url_policy import (  # noqa: E402
    get_sslmode_from_url,
    is_digitalocean_host,
    is_sqlite_url,
    mask_password,
)

ENCRYPTED_SSLMODES = frozenset({"require", "verify-ca", "verify-full"})


def validate_database_url(url: str, production: bool) -> tuple[bool, list[str]]:
    """
    Validate the resolved database URL.

    Returns:
        (is_valid, error_messages)
    """
    errors = []

    if production and is_sqlite_url(url):
        errors.append(
            "ERROR: SQLite database URL is not allowed in production. "
            "Fix: Set DATABASE_URL to the managed PostgreSQL connection string."
        )

    if is_digitalocean_host(url):
        sslmode = get_sslmode_from_url(url)
        if sslmode not in ENCRYPTED_SSLMODES:
            errors.append(
                f"ERROR: DigitalOcean database URL has sslmode={sslmode or '(none)'}. "
                "Fix: Use sslmode=require (or verify-ca / verify-full)."
            )

    return len(errors) == 0, errors


def collect_warnings() -> list[str]:
    warnings = []
    if not get_auth_secret():
        warnings.append(
            "WARNING: NEXTAUTH_SECRET is not set. "
            "The web app cannot sign sessions that forward X-User-ID."
        )
    return warnings


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Database Deployment Preflight Validator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/db_preflight.py
  QCARD_ENV=production python scripts/db_preflight.py
        """,
    )
    parser.parse_args(argv)

    production = is_production_env()
    try:
        database_url = resolve_database_url()
    except RuntimeError as e:
        print(f"ERROR: {e}")
        print("FAIL: Database URL could not be resolved")
        return 1

    print(f"INFO: Environment: {'production' if production else 'non-production'}")
    print(f"INFO: Database URL: {mask_password(database_url)}")

    for warning in collect_warnings():
        print(warning)

    url_valid, url_errors = validate_database_url(database_url, production)
    if not url_valid:
        print("FAIL: Database preflight validation failed")
        print()
        for error in url_errors:
            print(error)
        return 1

    print("PASS: Database preflight validation successful")
    return 0


if __name__ == "__main__":
    sys.exit(main())
