"""initial_schema

Baseline: every table, enum-as-text column, unique constraint and
ON DELETE rule declared in qcard_api.db.models.

Revision ID: a1c3e5f7b901
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op

from qcard_api.db.models import Base


# revision identifiers, used by Alembic.
revision = 'a1c3e5f7b901'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # checkfirst: databases bootstrapped with create_all() before Alembic
    # was introduced only get the missing tables.
    Base.metadata.create_all(bind=op.get_bind(), checkfirst=True)


def downgrade() -> None:
    Base.metadata.drop_all(bind=op.get_bind())
