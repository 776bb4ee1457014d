"""studio_notes

Private notes a studio keeps about talent profiles.

Revision ID: c3e5a7b9d123
Revises: b2d4f6a8c012
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op

from qcard_api.db.models import StudioNote


# revision identifiers, used by Alembic.
revision = 'c3e5a7b9d123'
down_revision = 'b2d4f6a8c012'
branch_labels = None
depends_on = None


def upgrade() -> None:
    # The baseline creates every current table, so fresh databases already have it.
    StudioNote.__table__.create(bind=op.get_bind(), checkfirst=True)


def downgrade() -> None:
    StudioNote.__table__.drop(bind=op.get_bind(), checkfirst=True)
