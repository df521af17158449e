"""Repository for the project aggregate (owner-scoped).

A project is spread over five tables. Reads assemble them; writes are
handed to the ConsistencyCoordinator, which sequences the per-table calls.
"""

from __future__ import annotations

import builtins
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.dashboard.core.cache import ReportProjectionCache, get_report_cache
from src.dashboard.core.config import get_settings
from src.dashboard.core.exceptions import (
    FetchError,
    NotAuthenticated,
    ProjectValidationError,
    StoreError,
    StoreErrorKind,
)
from src.dashboard.core.invalidation import (
    QueryInvalidationBus,
    financial_reports_key,
    get_invalidation_bus,
    projects_key,
)
from src.dashboard.core.logging import get_logger
from src.dashboard.schemas.project import (
    FinancialReportRow,
    FinancialSummary,
    ProjectAggregate,
    ProjectDraft,
    ProjectPatch,
    ProjectStats,
    StatusCountPoint,
    StatusHistoryEntry,
)
from src.dashboard.services import analytics
from src.dashboard.services.consistency import ConsistencyCoordinator
from src.dashboard.store.base import RecordStore, Row, Table

logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def _validate(
    schema: type[SchemaT], data: SchemaT | Mapping[str, Any]
) -> SchemaT:
    """Validate input locally; nothing reaches the store if this fails."""
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise ProjectValidationError(
            f"Invalid {schema.__name__}", e.errors(include_url=False)
        ) from e


def _require_owner(owner_id: str | None) -> str:
    if not owner_id:
        raise NotAuthenticated()
    return owner_id


def _by_project(rows: list[Row]) -> dict[int, Row]:
    return {row["project_id"]: row for row in rows}


class ProjectAggregateRepository:
    """Owner-scoped reads and writes of whole project aggregates."""

    def __init__(
        self,
        store: RecordStore,
        bus: QueryInvalidationBus | None = None,
        cache: ReportProjectionCache | None = None,
    ):
        self.store = store
        self.bus = bus or get_invalidation_bus()
        if cache is None:
            # The cache has to hear this bus, or reads outlive writes
            if self.bus is get_invalidation_bus():
                cache = get_report_cache()
            else:
                cache = ReportProjectionCache(self.bus, prefix=get_settings().report_cache_prefix)
        self.cache = cache
        self.coordinator = ConsistencyCoordinator(store, self.bus)

    async def _read(self, table: Table, filters: Mapping[str, Any]) -> builtins.list[Row]:
        try:
            return await self.store.get(table, filters)
        except StoreError as e:
            raise FetchError(e.kind, e.message, table=e.table) from e

    async def list(self, owner_id: str | None) -> builtins.list[ProjectAggregate]:
        """List the owner's projects, newest first.

        An unresolved identity yields an empty list rather than an error so a
        logged-out viewer simply sees no projects.

        Raises:
            FetchError: If the store cannot be read.
        """
        if not owner_id:
            logger.debug("No owner identity, returning no projects")
            return []

        self.bus.consume_stale(projects_key(owner_id))
        scope = {"owner_id": owner_id}
        try:
            projects = await self._read(Table.PROJECTS, scope)
            contacts = _by_project(await self._read(Table.CONTACTS, scope))
            financials = _by_project(await self._read(Table.FINANCIALS, scope))
        except FetchError as e:
            if e.kind == StoreErrorKind.NOT_AUTHENTICATED:
                return []
            raise

        projects.sort(key=lambda p: (p["created_at"], p["id"]), reverse=True)
        return [
            ProjectAggregate.from_rows(p, contacts.get(p["id"]), financials.get(p["id"]))
            for p in projects
        ]

    async def get(self, owner_id: str | None, project_id: int) -> ProjectAggregate | None:
        """Get one project, or None if it does not exist for this owner."""
        if not owner_id:
            return None

        rows = await self._read(Table.PROJECTS, {"id": project_id, "owner_id": owner_id})
        if not rows:
            return None
        scope = {"project_id": project_id, "owner_id": owner_id}
        contacts = await self._read(Table.CONTACTS, scope)
        financials = await self._read(Table.FINANCIALS, scope)
        return ProjectAggregate.from_rows(
            rows[0],
            contacts[0] if contacts else None,
            financials[0] if financials else None,
        )

    async def create(
        self, owner_id: str | None, draft: ProjectDraft | Mapping[str, Any]
    ) -> ProjectAggregate:
        """Validate a draft and create the aggregate.

        Raises:
            NotAuthenticated: No owner identity.
            ProjectValidationError: Empty name, bad email or negative amounts.
            StoreError: The project row itself could not be inserted.
            PartialSyncError: A later step failed; earlier rows remain.
        """
        owner_id = _require_owner(owner_id)
        draft = _validate(ProjectDraft, draft)
        return await self.coordinator.create(owner_id, draft)

    async def update(
        self,
        owner_id: str | None,
        project_id: int,
        patch: ProjectPatch | Mapping[str, Any],
    ) -> None:
        """Apply a partial update. Safe to retry after a PartialSyncError."""
        owner_id = _require_owner(owner_id)
        patch = _validate(ProjectPatch, patch)
        await self.coordinator.update(owner_id, project_id, patch)

    async def remove(self, owner_id: str | None, project_id: int) -> None:
        owner_id = _require_owner(owner_id)
        await self.coordinator.remove(owner_id, project_id)

    async def refetch(self, owner_id: str | None) -> builtins.list[ProjectAggregate]:
        """Drop every cached view for the owner and re-read the projects."""
        if owner_id:
            await self.bus.invalidate(projects_key(owner_id))
            await self.bus.invalidate(financial_reports_key(owner_id))
        return await self.list(owner_id)

    async def financial_reports(self, owner_id: str | None) -> builtins.list[FinancialReportRow]:
        """The owner's financial-report projection, served through the cache."""
        if not owner_id:
            return []

        async def load() -> builtins.list[FinancialReportRow]:
            # A report can outlive its project when a removal stops partway
            existing = {p["id"] for p in await self._read(Table.PROJECTS, {"owner_id": owner_id})}
            rows = await self._read(Table.FINANCIAL_REPORTS, {"owner_id": owner_id})
            return [
                FinancialReportRow.model_validate(row)
                for row in rows
                if row["project_id"] in existing
            ]

        return await self.cache.get(owner_id, load)

    async def status_history(
        self, owner_id: str | None, project_id: int | None = None
    ) -> builtins.list[StatusHistoryEntry]:
        """Status history in timestamp order, limited to projects that still exist."""
        if not owner_id:
            return []

        project_filter: dict[str, Any] = {"owner_id": owner_id}
        history_filter: dict[str, Any] = {"owner_id": owner_id}
        if project_id is not None:
            project_filter["id"] = project_id
            history_filter["project_id"] = project_id

        existing = {p["id"] for p in await self._read(Table.PROJECTS, project_filter)}
        rows = await self._read(Table.STATUS_HISTORY, history_filter)
        entries = [
            StatusHistoryEntry.model_validate(row) for row in rows if row["project_id"] in existing
        ]
        entries.sort(key=lambda e: e.timestamp)
        return entries

    async def stats(self, owner_id: str | None) -> ProjectStats:
        return analytics.project_stats(await self.list(owner_id))

    async def summary(self, owner_id: str | None) -> FinancialSummary:
        return analytics.financial_summary(await self.financial_reports(owner_id))

    async def timeline(self, owner_id: str | None) -> builtins.list[StatusCountPoint]:
        return analytics.status_timeline(await self.status_history(owner_id))
