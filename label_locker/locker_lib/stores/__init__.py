"""Record stores for label state."""
from .base_store import LabelStore
from .memory_store import InMemoryLabelStore
from .sqlite_store import SQLiteLabelStore

__all__ = [
    'LabelStore',
    'InMemoryLabelStore',
    'SQLiteLabelStore',
]
