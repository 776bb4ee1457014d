"""seed_default_catalog

Default subscription plans, feature flags, regions, regional plans and
multi-region discount tiers. Same rows as POST /v1/admin/setup-defaults;
existing rows are left untouched.

Revision ID: b2d4f6a8c012
Revises: a1c3e5f7b901
Create Date: 2026-10-19 09:30:00.000000

"""
from alembic import op
from sqlalchemy.orm import Session

from qcard_api.services.catalog import ensure_default_catalog


# revision identifiers, used by Alembic.
revision = 'b2d4f6a8c012'
down_revision = 'a1c3e5f7b901'
branch_labels = None
depends_on = None


def upgrade() -> None:
    session = Session(bind=op.get_bind())
    try:
        ensure_default_catalog(session)
    finally:
        session.close()


def downgrade() -> None:
    # Seed rows may be referenced by live subscriptions; nothing is removed.
    pass
