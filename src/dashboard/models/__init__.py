"""Model exports.

Import from here: `from src.dashboard.models import Project, ProjectStatus`
"""

from src.dashboard.models.base import utc_now
from src.dashboard.models.enums import ProjectStatus
from src.dashboard.models.project import (
    Project,
    ProjectContact,
    ProjectFinancialReport,
    ProjectFinancials,
    ProjectStatusHistory,
)

__all__ = [
    # Enums
    "ProjectStatus",
    # Tables
    "Project",
    "ProjectContact",
    "ProjectFinancialReport",
    "ProjectFinancials",
    "ProjectStatusHistory",
    # Helpers
    "utc_now",
]
