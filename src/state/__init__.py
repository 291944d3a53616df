"""
Local service state: the stored JSON document, its settings sub-record,
and the schema migration applied after a restore.
"""

from .local_store import LocalStateStore
from .migration import MigrationError, MigrationRunner
from .models import Settings, StoreDocument

__all__ = ["LocalStateStore", "MigrationError", "MigrationRunner", "Settings", "StoreDocument"]
