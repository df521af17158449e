"""Repository exports.

Import from here: `from src.dashboard.repositories import ProjectAggregateRepository`
"""

from src.dashboard.repositories.project_aggregate import ProjectAggregateRepository

__all__ = ["ProjectAggregateRepository"]
