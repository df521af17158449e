"""Sequencing of the multi-table writes behind one project mutation.

The store has no cross-table transaction, so each mutation is a fixed list
of named steps awaited one after another. Nothing is rolled back:

- a failure before any write committed re-raises the StoreError as-is;
- a failure after a write committed raises PartialSyncError naming the step.

Read views are invalidated whenever at least one write committed, including
when a later step failed.
"""

from collections.abc import Awaitable
from enum import Enum
from typing import Any, TypeVar

from src.dashboard.core.exceptions import PartialSyncError, StoreError, StoreErrorKind
from src.dashboard.core.invalidation import (
    QueryInvalidationBus,
    financial_reports_key,
    projects_key,
)
from src.dashboard.core.logging import get_logger
from src.dashboard.models.base import utc_now
from src.dashboard.schemas.project import (
    FinancialReportRow,
    ProjectAggregate,
    ProjectDraft,
    ProjectPatch,
)
from src.dashboard.store.base import RecordStore, Row, Table

logger = get_logger(__name__)

T = TypeVar("T")


class SyncStep(str, Enum):
    """Named steps of the create, update and delete sequences."""

    # create
    INSERT_PROJECT = "insert_project"
    SEED_STATUS_HISTORY = "seed_status_history"
    INSERT_CONTACT = "insert_contact"
    INSERT_FINANCIALS = "insert_financials"
    UPSERT_REPORT = "upsert_report"
    # update
    READ_PROJECT = "read_project"
    RECORD_STATUS_CHANGE = "record_status_change"
    UPDATE_PROJECT = "update_project"
    UPSERT_CONTACT = "upsert_contact"
    UPSERT_FINANCIALS = "upsert_financials"
    READ_REPORT = "read_report"
    READ_FINANCIALS = "read_financials"
    # delete
    DELETE_PROJECT = "delete_project"
    DELETE_REPORT = "delete_report"


READ_STEPS = frozenset({SyncStep.READ_PROJECT, SyncStep.READ_REPORT, SyncStep.READ_FINANCIALS})


class _StepRunner:
    """Runs the steps of one mutation and tags failures with the step."""

    def __init__(self, operation: str, owner_id: str, project_id: int | None = None):
        self.operation = operation
        self.owner_id = owner_id
        self.project_id = project_id
        self.completed: list[SyncStep] = []

    @property
    def wrote(self) -> bool:
        return any(step not in READ_STEPS for step in self.completed)

    async def run(self, step: SyncStep, call: Awaitable[T]) -> T:
        try:
            result = await call
        except StoreError as e:
            logger.warning(
                "Project mutation step failed",
                operation=self.operation,
                step=step.value,
                project_id=self.project_id,
                kind=e.kind.value,
                completed_steps=[s.value for s in self.completed],
            )
            if not self.wrote:
                raise
            raise PartialSyncError(step, e, self.completed, self.project_id) from e
        self.completed.append(step)
        return result


class ConsistencyCoordinator:
    """Keeps project, contact, financials, status history and report rows in step."""

    def __init__(self, store: RecordStore, bus: QueryInvalidationBus):
        self.store = store
        self.bus = bus

    async def create(self, owner_id: str, draft: ProjectDraft) -> ProjectAggregate:
        """Insert all rows of a new aggregate.

        A failed first insert leaves nothing behind. Any later failure leaves
        the rows written so far in place; re-running create would add a second
        project, so callers must not retry blindly.
        """
        runner = _StepRunner("create", owner_id)
        now = utc_now()
        logger.info("Creating project", name=draft.name)

        try:
            project = await runner.run(
                SyncStep.INSERT_PROJECT,
                self.store.insert(
                    Table.PROJECTS,
                    {
                        "owner_id": owner_id,
                        "name": draft.name,
                        "description": draft.description,
                        "status": draft.status.value,
                        "images": list(draft.images),
                        "created_at": now,
                        "updated_at": now,
                    },
                ),
            )
            project_id = runner.project_id = project["id"]
            scope = {"project_id": project_id, "owner_id": owner_id}

            await runner.run(
                SyncStep.SEED_STATUS_HISTORY,
                self.store.insert(
                    Table.STATUS_HISTORY,
                    {**scope, "status": draft.status.value, "timestamp": now},
                ),
            )
            contact = await runner.run(
                SyncStep.INSERT_CONTACT,
                self.store.insert(Table.CONTACTS, {**scope, **draft.contact.model_dump()}),
            )
            financials = await runner.run(
                SyncStep.INSERT_FINANCIALS,
                self.store.insert(Table.FINANCIALS, {**scope, **draft.financials.model_dump()}),
            )
            report = FinancialReportRow.derive(
                project_id=project_id,
                owner_id=owner_id,
                name=draft.name,
                status=draft.status,
                expenses=draft.financials.expenses,
                profits=draft.financials.profits,
                created_at=project["created_at"],
            )
            await runner.run(
                SyncStep.UPSERT_REPORT,
                self.store.upsert(Table.FINANCIAL_REPORTS, report.to_store_row(), "project_id"),
            )
        except PartialSyncError:
            await self._publish(owner_id)
            raise

        await self._publish(owner_id)
        logger.info("Project created", project_id=project_id)
        return ProjectAggregate.from_rows(project, contact, financials)

    async def update(self, owner_id: str, project_id: int, patch: ProjectPatch) -> None:
        """Apply a partial update across the aggregate's tables.

        The current status is read fresh on every call, so retrying after a
        partial failure only records a status change if one is still pending.
        """
        runner = _StepRunner("update", owner_id, project_id)
        project_scope = {"id": project_id, "owner_id": owner_id}
        scope = {"project_id": project_id, "owner_id": owner_id}
        now = utc_now()

        try:
            rows = await runner.run(
                SyncStep.READ_PROJECT, self.store.get(Table.PROJECTS, project_scope)
            )
            if not rows:
                raise StoreError(
                    StoreErrorKind.NOT_FOUND,
                    f"Project {project_id} not found",
                    table=Table.PROJECTS.value,
                )
            current = rows[0]

            core_patch: dict[str, Any] = patch.core_fields()
            if patch.status is not None and patch.status.value != current["status"]:
                # History first, so a status value is never stored without its entry
                await runner.run(
                    SyncStep.RECORD_STATUS_CHANGE,
                    self.store.insert(
                        Table.STATUS_HISTORY,
                        {**scope, "status": patch.status.value, "timestamp": now},
                    ),
                )
            core_patch["updated_at"] = now
            await runner.run(
                SyncStep.UPDATE_PROJECT,
                self._update_existing(project_scope, core_patch),
            )

            if patch.contact is not None:
                await runner.run(
                    SyncStep.UPSERT_CONTACT,
                    self.store.upsert(
                        Table.CONTACTS, {**scope, **patch.contact.model_dump()}, "project_id"
                    ),
                )

            financials: Row | None = None
            if financial_values := patch.financial_values():
                financials = await runner.run(
                    SyncStep.UPSERT_FINANCIALS,
                    self.store.upsert(
                        Table.FINANCIALS, {**scope, **financial_values}, "project_id"
                    ),
                )

            if patch.touches_report:
                await self._refresh_report(runner, current, patch, financials)
        except PartialSyncError:
            await self._publish(owner_id)
            raise

        await self._publish(owner_id)
        logger.info(
            "Project updated",
            project_id=project_id,
            steps=[s.value for s in runner.completed],
        )

    async def remove(self, owner_id: str, project_id: int) -> None:
        """Delete the project row, then its report row.

        Contact, financials and history rows are left behind; reads only
        consider projects that still exist.
        """
        runner = _StepRunner("delete", owner_id, project_id)

        try:
            deleted = await runner.run(
                SyncStep.DELETE_PROJECT,
                self.store.delete(Table.PROJECTS, {"id": project_id, "owner_id": owner_id}),
            )
            if not deleted:
                raise StoreError(
                    StoreErrorKind.NOT_FOUND,
                    f"Project {project_id} not found",
                    table=Table.PROJECTS.value,
                )
            await runner.run(
                SyncStep.DELETE_REPORT,
                self.store.delete(
                    Table.FINANCIAL_REPORTS, {"project_id": project_id, "owner_id": owner_id}
                ),
            )
        except PartialSyncError:
            await self._publish(owner_id)
            raise

        await self._publish(owner_id)
        logger.info("Project deleted", project_id=project_id)

    async def _update_existing(self, project_scope: dict[str, Any], values: Row) -> int:
        """Update the project row, failing if it vanished since it was read."""
        changed = await self.store.update(Table.PROJECTS, project_scope, values)
        if not changed:
            raise StoreError(
                StoreErrorKind.NOT_FOUND,
                f"Project {project_scope['id']} not found",
                table=Table.PROJECTS.value,
            )
        return changed

    async def _refresh_report(
        self,
        runner: _StepRunner,
        current: Row,
        patch: ProjectPatch,
        financials: Row | None,
    ) -> None:
        """Re-derive the report row from the patch merged over what is stored.

        Values come from the patch when given, otherwise from the existing
        report row. A missing report row is rebuilt from the project row read
        at the start of the update and the stored financials.
        """
        owner_id = runner.owner_id
        scope = {"project_id": current["id"], "owner_id": owner_id}

        existing = await runner.run(
            SyncStep.READ_REPORT, self.store.get(Table.FINANCIAL_REPORTS, scope)
        )
        if existing:
            base = existing[0]
            name = base["project_name"]
            status = base["project_status"]
            expenses = base["expenses"]
            profits = base["profits"]
            created_at = base["created_at"]
        else:
            name = current["name"]
            status = current["status"]
            created_at = current["created_at"]
            expenses = profits = 0.0
            if financials is None:
                stored = await runner.run(
                    SyncStep.READ_FINANCIALS, self.store.get(Table.FINANCIALS, scope)
                )
                if stored:
                    expenses = stored[0]["expenses"]
                    profits = stored[0]["profits"]

        if patch.name is not None:
            name = patch.name
        if patch.status is not None:
            status = patch.status.value
        if financials is not None:
            expenses = financials["expenses"]
            profits = financials["profits"]

        report = FinancialReportRow.derive(
            project_id=current["id"],
            owner_id=owner_id,
            name=name,
            status=status,
            expenses=expenses,
            profits=profits,
            created_at=created_at,
        )
        await runner.run(
            SyncStep.UPSERT_REPORT,
            self.store.upsert(Table.FINANCIAL_REPORTS, report.to_store_row(), "project_id"),
        )

    async def _publish(self, owner_id: str) -> None:
        await self.bus.invalidate(projects_key(owner_id))
        await self.bus.invalidate(financial_reports_key(owner_id))
