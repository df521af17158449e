"""Test doubles for external collaborators."""

from tests.fakes.memory_store import InMemoryRecordStore

__all__ = ["InMemoryRecordStore"]
