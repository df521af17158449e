from src.dashboard.store.base import OWNER_KEY, RecordStore, Row, Table, require_owner
from src.dashboard.store.sql import SqlRecordStore

__all__ = [
    "OWNER_KEY",
    "RecordStore",
    "Row",
    "SqlRecordStore",
    "Table",
    "require_owner",
]
