"""Initial schema: report templates and saved salary calculations

Revision ID: s001
Revises:
Create Date: 2026-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "s001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    # === report_templates ===
    op.create_table(
        "report_templates",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False, comment="Display name of the template"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("definition", JSON_TYPE, nullable=False, comment="Layout document: page_size, orientation, header, sections, footer"),
        sa.Column("created_by", sa.String(64), nullable=True, comment="External user id of the operator who created this record"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_report_templates_created_by", "report_templates", ["created_by"])

    # === salary_calculations ===
    op.create_table(
        "salary_calculations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("worker_id", sa.String(64), nullable=False, comment="Worker parameter id in the external system"),
        sa.Column("worker_name", sa.String(255), nullable=True),
        sa.Column("period", sa.String(20), nullable=False, server_default="monthly", comment="Period type: monthly|weekly|daily"),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("month", sa.Integer(), nullable=True),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False, comment="Payable amount after all adjustments"),
        sa.Column("total_hours", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("uses_calendar_hours", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("input_data", JSON_TYPE, nullable=False, comment="CalculationInput as submitted"),
        sa.Column("result_data", JSON_TYPE, nullable=False, comment="CalculationResult as computed"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(64), nullable=True, comment="External user id of the operator who created this record"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("period IN ('monthly', 'weekly', 'daily')", name="valid_period"),
        sa.CheckConstraint("month IS NULL OR (month BETWEEN 1 AND 12)", name="valid_month"),
    )
    op.create_index("ix_salary_calculations_created_by", "salary_calculations", ["created_by"])
    op.create_index(
        "ix_salary_calculations_worker_created",
        "salary_calculations",
        ["worker_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_table("salary_calculations")
    op.drop_table("report_templates")
