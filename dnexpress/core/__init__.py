from .config import get_settings, Settings
from .database import build_persistence, NullPersistence, SqlSnapshotPersistence
from .store import EntityStore

__all__ = [
    "get_settings", "Settings",
    "build_persistence", "NullPersistence", "SqlSnapshotPersistence",
    "EntityStore",
]
