"""
Persistence layer for clipqueue state.

JSON files in a data directory: output settings and conversion history.
Explicit save/load only - no auto-persistence.
"""

from .errors import LoadError, PersistenceError, SaveError, SchemaError
from .store import HISTORY_FILE, SETTINGS_FILE, JsonStateStore

__all__ = [
    "JsonStateStore",
    "SETTINGS_FILE",
    "HISTORY_FILE",
    "PersistenceError",
    "SchemaError",
    "LoadError",
    "SaveError",
]
