"""create timesheet entries

Revision ID: 3b9e6c1d2a47
Revises:
Create Date: 2026-10-17 09:12:44.201563

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b9e6c1d2a47'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CATEGORY_LABELS = (
    "Ticket",
    "Koordinasi & kegiatan pendukung lainnya",
    "Meeting",
    "Adhoc/project",
    "Development & Testing",
    "Other",
)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "timesheet_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=True),
        sa.Column("category", sa.Enum(*CATEGORY_LABELS, name="category"), nullable=False),
        sa.Column("ticket_activity_number", sa.String(), nullable=True),
        sa.Column("number_of_line_items", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("duration_seconds", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("number_of_line_items >= 0", name="ck_timesheet_entries_line_items_nonnegative"),
        sa.CheckConstraint(
            "(end_time IS NULL) = (duration_seconds IS NULL)",
            name="ck_timesheet_entries_end_time_duration_together",
        ),
        sa.CheckConstraint(
            "duration_seconds IS NULL OR duration_seconds >= 0",
            name="ck_timesheet_entries_duration_nonnegative",
        ),
    )
    op.create_index("ix_timesheet_entries_id", "timesheet_entries", ["id"], unique=False)
    op.create_index("ix_timesheet_entries_category", "timesheet_entries", ["category"], unique=False)
    op.create_index("ix_timesheet_entries_created_at", "timesheet_entries", ["created_at"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_timesheet_entries_created_at", table_name="timesheet_entries")
    op.drop_index("ix_timesheet_entries_category", table_name="timesheet_entries")
    op.drop_index("ix_timesheet_entries_id", table_name="timesheet_entries")
    op.drop_table("timesheet_entries")
    sa.Enum(name="category").drop(op.get_bind(), checkfirst=True)
