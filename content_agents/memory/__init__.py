"""
Persistence components for Content Agents.
"""

from .history import HistoryStore
from .storage import HISTORY_KEY, LAST_RUNS_KEY, InMemoryStorage, JsonFileStorage, Storage

__all__ = [
    'HistoryStore',
    'HISTORY_KEY',
    'LAST_RUNS_KEY',
    'InMemoryStorage',
    'JsonFileStorage',
    'Storage',
]
