"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
# Inject sys.path for reliable pytest imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))  # => .../apps/api

import os

# The app module builds its engine at import time; keep it off disk.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("QCARD_JSON_LOGS", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from qcard_api.db.engine import build_engine, build_sessionmaker
from qcard_api.db.enums import TenantType, UserRole
from qcard_api.db.models import Base, Studio, User
from qcard_api.db.session import get_db
from qcard_api.main import app
from qcard_api.services import accounts
from qcard_api.services.catalog import ensure_default_catalog


@pytest.fixture(scope="function")
def db_session() -> Session:
    """
    Create a fresh in-memory SQLite database for each test.

    The engine comes from build_engine(), so foreign keys (and therefore
    ON DELETE CASCADE / SET NULL) are enforced exactly as in production.
    """
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)

    SessionLocal = build_sessionmaker(engine)
    session = SessionLocal()

    try:
        yield session
        session.rollback()
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def test_client(db_session: Session):
    """TestClient with db_session dependency override."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close - db_session fixture will handle it

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app, raise_server_exceptions=False)
    yield client
    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict[str, str]:
    """Identity header the upstream auth layer forwards."""
    return {"X-User-ID": user.id}


def make_studio_account(db: Session, email: str = "studio@example.com", **kwargs) -> tuple[User, Studio]:
    user, _ = accounts.register_account(
        db,
        email=email,
        first_name=kwargs.pop("first_name", "Sam"),
        last_name=kwargs.pop("last_name", "Studio"),
        account_type=TenantType.STUDIO,
        **kwargs,
    )
    return user, accounts.get_studio_for_user(db, user)


def make_talent_account(db: Session, email: str = "talent@example.com", **kwargs) -> User:
    user, _ = accounts.register_account(
        db,
        email=email,
        first_name=kwargs.pop("first_name", "Tara"),
        last_name=kwargs.pop("last_name", "Talent"),
        account_type=TenantType.TALENT,
        **kwargs,
    )
    return user


@pytest.fixture
def studio_account(db_session: Session) -> tuple[User, Studio]:
    """Registered STUDIO user and its studio."""
    return make_studio_account(db_session)


@pytest.fixture
def talent_user(db_session: Session) -> User:
    """Registered TALENT user (has a profile)."""
    return make_talent_account(db_session)


@pytest.fixture
def admin_user(db_session: Session) -> User:
    user = make_talent_account(db_session, email="admin@example.com", first_name="Ada", last_name="Admin")
    return accounts.set_user_role(db_session, user.email, UserRole.ADMIN)


@pytest.fixture
def super_admin_user(db_session: Session) -> User:
    user = make_talent_account(db_session, email="root@example.com", first_name="Sue", last_name="Root")
    return accounts.set_user_role(db_session, user.email, UserRole.SUPER_ADMIN)


@pytest.fixture
def seeded_catalog(db_session: Session) -> dict[str, int]:
    """Default plans, feature flags, regions, regional plans and discount tiers."""
    return ensure_default_catalog(db_session)
