"""RecordStore backed by PostgreSQL through an async SQLAlchemy session."""

from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import delete, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from src.dashboard.core.exceptions import StoreError, StoreErrorKind
from src.dashboard.core.logging import get_logger
from src.dashboard.models import (
    Project,
    ProjectContact,
    ProjectFinancialReport,
    ProjectFinancials,
    ProjectStatusHistory,
)
from src.dashboard.store.base import RecordStore, Row, Table, require_owner

logger = get_logger(__name__)

TABLE_MODELS: dict[Table, type[SQLModel]] = {
    Table.PROJECTS: Project,
    Table.CONTACTS: ProjectContact,
    Table.FINANCIALS: ProjectFinancials,
    Table.STATUS_HISTORY: ProjectStatusHistory,
    Table.FINANCIAL_REPORTS: ProjectFinancialReport,
}


class SqlRecordStore(RecordStore):
    """RecordStore over the project tables.

    Every operation commits immediately, so a multi-step mutation is only as
    atomic as each single statement.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _model(self, table: Table) -> type[SQLModel]:
        try:
            return TABLE_MODELS[Table(table)]
        except (KeyError, ValueError):
            raise StoreError(StoreErrorKind.UNKNOWN, f"Unknown table '{table}'") from None

    def _where(self, model: type[SQLModel], table: Table, filters: Mapping[str, Any]) -> list:
        require_owner(filters, table)
        columns = model.__table__.c  # type: ignore[attr-defined]
        clauses = []
        for key, value in filters.items():
            if key not in columns:
                raise StoreError(
                    StoreErrorKind.UNKNOWN, f"Unknown column '{key}'", table=table.value
                )
            clauses.append(columns[key] == value)
        return clauses

    @asynccontextmanager
    async def _guard(self, table: Table) -> AsyncGenerator[None]:
        """Translate SQLAlchemy failures into StoreError and roll back."""
        try:
            yield
        except StoreError:
            raise
        except IntegrityError as e:
            await self.session.rollback()
            raise StoreError(StoreErrorKind.CONFLICT, str(e.orig), table=table.value) from e
        except (OperationalError, InterfaceError, OSError, TimeoutError) as e:
            await self.session.rollback()
            raise StoreError(StoreErrorKind.NETWORK, str(e), table=table.value) from e
        except DBAPIError as e:
            await self.session.rollback()
            kind = StoreErrorKind.NETWORK if e.connection_invalidated else StoreErrorKind.UNKNOWN
            raise StoreError(kind, str(e), table=table.value) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Unexpected database error", table=table.value)
            raise StoreError(StoreErrorKind.UNKNOWN, str(e), table=table.value) from e

    async def get(self, table: Table, filters: Mapping[str, Any]) -> list[Row]:
        model = self._model(table)
        clauses = self._where(model, table, filters)
        primary_key = model.__table__.primary_key.columns  # type: ignore[attr-defined]
        async with self._guard(table):
            result = await self.session.execute(
                select(model).where(*clauses).order_by(*primary_key)
            )
            return [row.model_dump() for row in result.scalars().all()]

    async def insert(self, table: Table, row: Mapping[str, Any]) -> Row:
        model = self._model(table)
        require_owner(row, table)
        entity = model(**row)
        async with self._guard(table):
            self.session.add(entity)
            await self.session.commit()
            await self.session.refresh(entity)
            return entity.model_dump()

    async def update(
        self, table: Table, filters: Mapping[str, Any], patch: Mapping[str, Any]
    ) -> int:
        model = self._model(table)
        clauses = self._where(model, table, filters)
        if "owner_id" in patch and patch["owner_id"] != filters["owner_id"]:
            raise StoreError(
                StoreErrorKind.CONFLICT, "owner_id cannot be reassigned", table=table.value
            )
        async with self._guard(table):
            result = await self.session.execute(update(model).where(*clauses).values(**patch))
            await self.session.commit()
            return result.rowcount  # type: ignore[attr-defined]

    async def upsert(self, table: Table, row: Mapping[str, Any], conflict_key: str) -> Row:
        model = self._model(table)
        owner_id = require_owner(row, table)
        sa_table = model.__table__  # type: ignore[attr-defined]

        # Fill column defaults for the insert branch; the update branch only
        # overwrites what the caller supplied.
        values = model(**row).model_dump()
        if values.get("id") is None:
            values.pop("id", None)
        stmt = pg_insert(sa_table).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[conflict_key],
            set_={key: stmt.excluded[key] for key in row if key != conflict_key},
            where=sa_table.c.owner_id == owner_id,
        ).returning(*sa_table.c)

        async with self._guard(table):
            result = await self.session.execute(stmt)
            stored = result.mappings().one_or_none()
            await self.session.commit()

        if stored is None:
            # Conflicting row exists under a different owner
            raise StoreError(
                StoreErrorKind.CONFLICT,
                f"{conflict_key}={row.get(conflict_key)} belongs to another owner",
                table=table.value,
            )
        return dict(stored)

    async def delete(self, table: Table, filters: Mapping[str, Any]) -> int:
        model = self._model(table)
        clauses = self._where(model, table, filters)
        async with self._guard(table):
            result = await self.session.execute(delete(model).where(*clauses))
            await self.session.commit()
            return result.rowcount  # type: ignore[attr-defined]
