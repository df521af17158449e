"""SqlRecordStore and the project API against PostgreSQL."""

import pytest
from httpx import AsyncClient

from src.dashboard.core.exceptions import StoreError, StoreErrorKind
from src.dashboard.core.invalidation import QueryInvalidationBus
from src.dashboard.models.enums import ProjectStatus
from src.dashboard.schemas import ProjectPatch
from src.dashboard.services.consistency import ConsistencyCoordinator
from src.dashboard.store import SqlRecordStore
from src.dashboard.store.base import Table
from tests.factories import ProjectDraftFactory, generate_owner_id

pytestmark = pytest.mark.integration


class TestSqlRecordStore:
    async def test_insert_assigns_id_and_defaults(self, sql_store: SqlRecordStore):
        owner = generate_owner_id()

        row = await sql_store.insert(Table.PROJECTS, {"owner_id": owner, "name": "Site"})

        assert row["id"] is not None
        assert row["status"] == "pending"
        assert row["images"] == []
        assert await sql_store.get(Table.PROJECTS, {"owner_id": owner}) == [row]

    async def test_upsert_overwrites_only_supplied_columns(self, sql_store: SqlRecordStore):
        owner = generate_owner_id()
        row = {"project_id": 1, "owner_id": owner, "expenses": 100, "profits": 300}
        await sql_store.upsert(Table.FINANCIALS, row, "project_id")

        stored = await sql_store.upsert(
            Table.FINANCIALS, {"project_id": 1, "owner_id": owner, "expenses": 150}, "project_id"
        )

        assert stored["expenses"] == 150
        assert stored["profits"] == 300
        assert len(await sql_store.get(Table.FINANCIALS, {"owner_id": owner})) == 1

    async def test_upsert_onto_other_owners_row_conflicts(self, sql_store: SqlRecordStore):
        owner, intruder = generate_owner_id(), generate_owner_id()
        await sql_store.upsert(
            Table.FINANCIAL_REPORTS,
            {"project_id": 7, "owner_id": owner, "project_name": "Site"},
            "project_id",
        )

        with pytest.raises(StoreError) as exc_info:
            await sql_store.upsert(
                Table.FINANCIAL_REPORTS,
                {"project_id": 7, "owner_id": intruder, "project_name": "Stolen"},
                "project_id",
            )

        assert exc_info.value.kind == StoreErrorKind.CONFLICT
        [report] = await sql_store.get(Table.FINANCIAL_REPORTS, {"owner_id": owner})
        assert report["project_name"] == "Site"

    async def test_unique_contact_per_project(self, sql_store: SqlRecordStore):
        owner = generate_owner_id()
        contact = {"project_id": 1, "owner_id": owner, "email": "a@b.com"}
        await sql_store.insert(Table.CONTACTS, contact)

        with pytest.raises(StoreError) as exc_info:
            await sql_store.insert(Table.CONTACTS, contact)

        assert exc_info.value.kind == StoreErrorKind.CONFLICT
        # Session is usable again after the rollback
        assert len(await sql_store.get(Table.CONTACTS, {"owner_id": owner})) == 1

    async def test_update_and_delete_are_owner_scoped(self, sql_store: SqlRecordStore):
        owner, other = generate_owner_id(), generate_owner_id()
        row = await sql_store.insert(Table.PROJECTS, {"owner_id": owner, "name": "Site"})

        changed = await sql_store.update(
            Table.PROJECTS, {"id": row["id"], "owner_id": other}, {"name": "x"}
        )

        assert changed == 0
        assert await sql_store.delete(Table.PROJECTS, {"id": row["id"], "owner_id": other}) == 0
        assert await sql_store.delete(Table.PROJECTS, {"id": row["id"], "owner_id": owner}) == 1


class TestCoordinatorOnPostgres:
    async def test_create_and_update(self, sql_store: SqlRecordStore):
        owner = generate_owner_id()
        coordinator = ConsistencyCoordinator(sql_store, QueryInvalidationBus())

        project = await coordinator.create(owner, ProjectDraftFactory.build())
        await coordinator.update(owner, project.id, ProjectPatch(status=ProjectStatus.DONE))

        [report] = await sql_store.get(Table.FINANCIAL_REPORTS, {"owner_id": owner})
        assert report["project_status"] == "done"
        assert report["net_profit"] == 200
        history = await sql_store.get(Table.STATUS_HISTORY, {"owner_id": owner})
        assert [h["status"] for h in history] == ["pending", "done"]


class TestProjectsApi:
    async def test_round_trip(self, client: AsyncClient):
        headers = {"X-Owner-Id": generate_owner_id()}
        draft = ProjectDraftFactory.build().model_dump(mode="json")

        created = await client.post("/api/v1/projects", json=draft, headers=headers)
        assert created.status_code == 201
        project_id = created.json()["id"]

        updated = await client.patch(
            f"/api/v1/projects/{project_id}", json={"status": "in-work"}, headers=headers
        )
        assert updated.json()["status"] == "in-work"

        deleted = await client.delete(f"/api/v1/projects/{project_id}", headers=headers)
        assert deleted.status_code == 204
        assert (await client.get("/api/v1/projects", headers=headers)).json() == []
