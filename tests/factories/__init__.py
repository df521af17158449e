"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import ProjectDraftFactory, generate_owner_id
"""

from tests.factories.base import BaseFactory, generate_owner_id
from tests.factories.project import ContactFactory, FinancialsFactory, ProjectDraftFactory

__all__ = [
    # Base
    "BaseFactory",
    "generate_owner_id",
    # Project
    "ContactFactory",
    "FinancialsFactory",
    "ProjectDraftFactory",
]
