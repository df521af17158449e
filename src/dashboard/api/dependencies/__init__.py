"""FastAPI dependency injection definitions.

Re-exports all dependencies:
    from src.dashboard.api.dependencies import CurrentOwner, ProjectRepo
"""

from src.dashboard.api.dependencies.owner import CurrentOwner, get_owner_id
from src.dashboard.api.dependencies.repositories import (
    DBSession,
    ProjectRepo,
    Store,
    get_db_session,
    get_project_repository,
    get_record_store,
)

__all__ = [
    # Identity
    "CurrentOwner",
    "get_owner_id",
    # Database
    "DBSession",
    "get_db_session",
    # Store / repositories
    "ProjectRepo",
    "Store",
    "get_project_repository",
    "get_record_store",
]
