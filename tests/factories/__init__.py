"""Test data factories for the Mood Garden leaderboard.

Factories return plain dicts shaped like the rows the stat store yields.
"""

from tests.factories.stat_factory import InMemoryStatStore, StatRecordFactory

__all__ = [
    "InMemoryStatStore",
    "StatRecordFactory",
]
