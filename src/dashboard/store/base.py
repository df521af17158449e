"""RecordStore contract: owner-scoped row operations on one table at a time."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import Enum
from typing import Any

from src.dashboard.core.exceptions import StoreError, StoreErrorKind

Row = dict[str, Any]

OWNER_KEY = "owner_id"


class Table(str, Enum):
    """Table names are the only wire contract with the persistence layer."""

    PROJECTS = "projects"
    CONTACTS = "project_contacts"
    FINANCIALS = "project_financials"
    STATUS_HISTORY = "project_status_history"
    FINANCIAL_REPORTS = "project_financial_reports"


def require_owner(values: Mapping[str, Any], table: Table) -> str:
    """Return the owner_id carried by a filter or row.

    Raises:
        StoreError: not_authenticated if owner_id is missing or empty.
    """
    owner_id = values.get(OWNER_KEY)
    if not owner_id:
        raise StoreError(
            StoreErrorKind.NOT_AUTHENTICATED,
            "owner_id is required on every filter and row",
            table=table.value,
        )
    return owner_id


class RecordStore(ABC):
    """Async persistence for the project tables.

    Each call commits on its own; nothing spans tables. Every filter and
    row must carry owner_id. Failures are raised as StoreError.
    """

    @abstractmethod
    async def get(self, table: Table, filters: Mapping[str, Any]) -> list[Row]:
        """Rows matching all equality filters, ordered by primary key."""

    @abstractmethod
    async def insert(self, table: Table, row: Mapping[str, Any]) -> Row:
        """Insert a row and return it as stored (including generated id)."""

    @abstractmethod
    async def update(
        self, table: Table, filters: Mapping[str, Any], patch: Mapping[str, Any]
    ) -> int:
        """Apply patch to matching rows. Returns the number of rows changed."""

    @abstractmethod
    async def upsert(self, table: Table, row: Mapping[str, Any], conflict_key: str) -> Row:
        """Insert row, or overwrite the supplied columns of the row sharing conflict_key."""

    @abstractmethod
    async def delete(self, table: Table, filters: Mapping[str, Any]) -> int:
        """Delete matching rows. Returns the number of rows removed."""
