"""Shared enums for models."""

from enum import Enum


class ProjectStatus(str, Enum):
    """Lifecycle status of a project."""

    PENDING = "pending"
    IN_WORK = "in-work"
    DONE = "done"
