"""Project aggregate schemas: drafts, patches and read shapes."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.dashboard.models.enums import ProjectStatus


def _strip_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Project name cannot be empty or whitespace only")
    return v


def _blank_to_none(v: str | None) -> str | None:
    if v is not None:
        v = v.strip()
        if not v:
            return None
    return v


class ContactFields(BaseModel):
    """Client contact supplied on create, or as a whole on update."""

    name: str = Field(default="", max_length=200)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=500)

    @field_validator("phone", "address")
    @classmethod
    def validate_optional_text(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class FinancialsFields(BaseModel):
    expenses: float = Field(default=0, ge=0)
    profits: float = Field(default=0, ge=0)


class FinancialsPatch(BaseModel):
    """Partial financials update. Omitted values keep their stored value."""

    expenses: float | None = Field(default=None, ge=0)
    profits: float | None = Field(default=None, ge=0)


class ProjectDraft(BaseModel):
    """Everything needed to create a project aggregate."""

    name: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)
    status: ProjectStatus = ProjectStatus.PENDING
    images: list[str] = Field(default_factory=list)
    contact: ContactFields
    financials: FinancialsFields = Field(default_factory=FinancialsFields)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _strip_name(v)


class ProjectPatch(BaseModel):
    """Partial update. Fields left as None are not touched."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    status: ProjectStatus | None = None
    images: list[str] | None = None
    contact: ContactFields | None = None
    financials: FinancialsPatch | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is not None:
            v = _strip_name(v)
        return v

    def core_fields(self) -> dict[str, object]:
        """Project-row columns present in this patch."""
        fields: dict[str, object] = {}
        if self.name is not None:
            fields["name"] = self.name
        if self.description is not None:
            fields["description"] = self.description
        if self.images is not None:
            fields["images"] = list(self.images)
        if self.status is not None:
            fields["status"] = self.status.value
        return fields

    def financial_values(self) -> dict[str, float]:
        """Financial columns present in this patch (empty if none)."""
        if self.financials is None:
            return {}
        return self.financials.model_dump(exclude_none=True)

    @property
    def touches_report(self) -> bool:
        return self.name is not None or self.status is not None or bool(self.financial_values())


class ContactRead(BaseModel):
    """Stored contact. Empty when the contact row is missing."""

    name: str = ""
    email: str = ""
    phone: str | None = None
    address: str | None = None

    model_config = {"from_attributes": True}


class FinancialsRead(BaseModel):
    expenses: float = 0
    profits: float = 0

    model_config = {"from_attributes": True}


class ProjectAggregate(BaseModel):
    """A project as assembled from its core, contact and financials rows."""

    id: int
    owner_id: str
    name: str
    description: str
    status: ProjectStatus
    images: list[str]
    contact: ContactRead
    financials: FinancialsRead
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_rows(
        cls,
        project: Mapping[str, Any],
        contact: Mapping[str, Any] | None = None,
        financials: Mapping[str, Any] | None = None,
    ) -> "ProjectAggregate":
        """Assemble an aggregate; a missing contact or financials row reads as defaults."""
        return cls(
            id=project["id"],
            owner_id=project["owner_id"],
            name=project["name"],
            description=project.get("description") or "",
            status=ProjectStatus(project["status"]),
            images=list(project.get("images") or []),
            contact=ContactRead.model_validate(dict(contact)) if contact else ContactRead(),
            financials=(
                FinancialsRead.model_validate(dict(financials)) if financials else FinancialsRead()
            ),
            created_at=project["created_at"],
            updated_at=project["updated_at"],
        )


class StatusHistoryEntry(BaseModel):
    project_id: int
    owner_id: str
    status: ProjectStatus
    timestamp: datetime

    model_config = {"from_attributes": True}


class FinancialReportRow(BaseModel):
    """One row of the financial-report projection."""

    project_id: int
    owner_id: str
    project_name: str
    project_status: ProjectStatus
    expenses: float
    profits: float
    net_profit: float
    created_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def derive(
        cls,
        *,
        project_id: int,
        owner_id: str,
        name: str,
        status: ProjectStatus | str,
        expenses: float,
        profits: float,
        created_at: datetime,
    ) -> "FinancialReportRow":
        """Build the projection row; net_profit is always profits - expenses."""
        return cls(
            project_id=project_id,
            owner_id=owner_id,
            project_name=name,
            project_status=ProjectStatus(status),
            expenses=expenses,
            profits=profits,
            net_profit=profits - expenses,
            created_at=created_at,
        )

    def to_store_row(self) -> dict[str, Any]:
        row = self.model_dump()
        row["project_status"] = self.project_status.value
        return row


class ProjectStats(BaseModel):
    total: int = 0
    pending: int = 0
    in_work: int = 0
    done: int = 0


class FinancialSummary(BaseModel):
    total_expenses: float = 0
    total_profits: float = 0
    net_profit: float = 0


class StatusCountPoint(BaseModel):
    """Number of projects in each status right after one history entry."""

    timestamp: datetime
    pending: int
    in_work: int
    done: int
