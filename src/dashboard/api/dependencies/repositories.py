"""Session, store and repository dependencies."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.dashboard.core.db import get_session
from src.dashboard.repositories import ProjectAggregateRepository
from src.dashboard.store import RecordStore, SqlRecordStore


async def get_db_session() -> AsyncGenerator[AsyncSession]:
    async with get_session() as session:
        yield session


DBSession = Annotated[AsyncSession, Depends(get_db_session)]


def get_record_store(session: DBSession) -> RecordStore:
    return SqlRecordStore(session)


Store = Annotated[RecordStore, Depends(get_record_store)]


def get_project_repository(store: Store) -> ProjectAggregateRepository:
    """Repository wired to the process-wide invalidation bus and report cache."""
    return ProjectAggregateRepository(store)


ProjectRepo = Annotated[ProjectAggregateRepository, Depends(get_project_repository)]
