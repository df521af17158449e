"""Tables that make up one project aggregate.

The five tables are written independently (no cross-table transaction), so
there are no foreign keys between them: contact, financials and history rows
may outlive a deleted project. Every row carries owner_id.
"""

from datetime import datetime

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel

from src.dashboard.models.base import utc_now
from src.dashboard.models.enums import ProjectStatus


class Project(SQLModel, table=True):
    """Project core record."""

    __tablename__ = "projects"

    id: int | None = Field(default=None, primary_key=True)
    owner_id: str = Field(max_length=255, index=True)
    name: str = Field(max_length=200)
    description: str = Field(default="", max_length=2000)
    status: str = Field(default=ProjectStatus.PENDING.value, max_length=20)
    images: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)


class ProjectContact(SQLModel, table=True):
    """Client contact, exactly one per project."""

    __tablename__ = "project_contacts"
    __table_args__ = (UniqueConstraint("project_id", name="uq_project_contacts_project_id"),)

    id: int | None = Field(default=None, primary_key=True)
    project_id: int = Field(index=True)
    owner_id: str = Field(max_length=255, index=True)
    name: str = Field(default="", max_length=200)
    email: str = Field(default="", max_length=320)
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=500)


class ProjectFinancials(SQLModel, table=True):
    """Expenses and profits, exactly one row per project."""

    __tablename__ = "project_financials"
    __table_args__ = (UniqueConstraint("project_id", name="uq_project_financials_project_id"),)

    id: int | None = Field(default=None, primary_key=True)
    project_id: int = Field(index=True)
    owner_id: str = Field(max_length=255, index=True)
    expenses: float = Field(default=0)
    profits: float = Field(default=0)


class ProjectStatusHistory(SQLModel, table=True):
    """Append-only log of status values a project has held."""

    __tablename__ = "project_status_history"

    id: int | None = Field(default=None, primary_key=True)
    project_id: int = Field(index=True)
    owner_id: str = Field(max_length=255, index=True)
    status: str = Field(max_length=20)
    timestamp: datetime = Field(default_factory=utc_now)


class ProjectFinancialReport(SQLModel, table=True):
    """Denormalized financial projection, one upserted row per project."""

    __tablename__ = "project_financial_reports"

    project_id: int = Field(primary_key=True, sa_column_kwargs={"autoincrement": False})
    owner_id: str = Field(max_length=255, index=True)
    project_name: str = Field(default="", max_length=200)
    project_status: str = Field(default=ProjectStatus.PENDING.value, max_length=20)
    expenses: float = Field(default=0)
    profits: float = Field(default=0)
    net_profit: float = Field(default=0)
    created_at: datetime = Field(default_factory=utc_now)
