"""create schedules

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "schedules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("course_code", sa.String(length=50), nullable=False),
        sa.Column("descriptive_title", sa.String(length=200), nullable=False),
        sa.Column("units", sa.String(length=10), nullable=False),
        sa.Column("days", sa.String(length=50), nullable=False),
        sa.Column("time", sa.String(length=50), nullable=False),
        sa.Column("room", sa.String(length=100), nullable=False),
        sa.Column("instructor", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_schedules_course_code", "schedules", ["course_code"])
    op.create_index("ix_schedules_descriptive_title", "schedules", ["descriptive_title"])
    op.create_index("ix_schedules_email", "schedules", ["email"])


def downgrade() -> None:
    op.drop_index("ix_schedules_email", table_name="schedules")
    op.drop_index("ix_schedules_descriptive_title", table_name="schedules")
    op.drop_index("ix_schedules_course_code", table_name="schedules")
    op.drop_table("schedules")
