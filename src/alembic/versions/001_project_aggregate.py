"""Create project aggregate tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel

from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _text(length: int) -> sqlmodel.sql.sqltypes.AutoString:
    return sqlmodel.sql.sqltypes.AutoString(length=length)


def upgrade() -> None:
    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("owner_id", _text(255), nullable=False),
        sa.Column("name", _text(200), nullable=False),
        sa.Column("description", _text(2000), nullable=False),
        sa.Column("status", _text(20), nullable=False),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_projects_owner_id", "projects", ["owner_id"])
    op.create_index("ix_projects_created_at", "projects", ["created_at"])

    op.create_table(
        "project_contacts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("owner_id", _text(255), nullable=False),
        sa.Column("name", _text(200), nullable=False),
        sa.Column("email", _text(320), nullable=False),
        sa.Column("phone", _text(50), nullable=True),
        sa.Column("address", _text(500), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", name="uq_project_contacts_project_id"),
    )
    op.create_index("ix_project_contacts_project_id", "project_contacts", ["project_id"])
    op.create_index("ix_project_contacts_owner_id", "project_contacts", ["owner_id"])

    op.create_table(
        "project_financials",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("owner_id", _text(255), nullable=False),
        sa.Column("expenses", sa.Float(), nullable=False),
        sa.Column("profits", sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", name="uq_project_financials_project_id"),
    )
    op.create_index("ix_project_financials_project_id", "project_financials", ["project_id"])
    op.create_index("ix_project_financials_owner_id", "project_financials", ["owner_id"])

    op.create_table(
        "project_status_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("owner_id", _text(255), nullable=False),
        sa.Column("status", _text(20), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_project_status_history_project_id", "project_status_history", ["project_id"]
    )
    op.create_index("ix_project_status_history_owner_id", "project_status_history", ["owner_id"])

    op.create_table(
        "project_financial_reports",
        sa.Column("project_id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("owner_id", _text(255), nullable=False),
        sa.Column("project_name", _text(200), nullable=False),
        sa.Column("project_status", _text(20), nullable=False),
        sa.Column("expenses", sa.Float(), nullable=False),
        sa.Column("profits", sa.Float(), nullable=False),
        sa.Column("net_profit", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("project_id"),
    )
    op.create_index(
        "ix_project_financial_reports_owner_id", "project_financial_reports", ["owner_id"]
    )


def downgrade() -> None:
    op.drop_table("project_financial_reports")
    op.drop_table("project_status_history")
    op.drop_table("project_financials")
    op.drop_table("project_contacts")
    op.drop_table("projects")
