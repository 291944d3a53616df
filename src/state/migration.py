"""
Schema migration for the stored document.

Documents written by old releases keep subscriptions, collections and
artifacts as id-keyed mappings and use `display-name`. The v2 schema
stores plain lists and `displayName`. The migration is gated on
`schemaVersion`, so running it again on an up-to-date document does
nothing.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from .local_store import LocalStateStore
from .models import ARTIFACTS_KEY, COLLECTIONS_KEY, SCHEMA_VERSION_KEY, SUBS_KEY


logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = "2.0"


class MigrationError(RuntimeError):
    """Raised when the stored document cannot be brought to the current schema."""


def _as_list(value: Any, what: str) -> List[Dict[str, Any]]:
    if value is None:
        return []
    if isinstance(value, dict):
        items = list(value.values())
    elif isinstance(value, list):
        items = list(value)
    else:
        raise MigrationError(f"{what} must be a list or mapping, got {type(value).__name__}")
    for item in items:
        if not isinstance(item, dict):
            raise MigrationError(f"{what} entries must be objects")
    return items


def _migrate_display_name(item: Dict[str, Any]) -> None:
    display_name = item.pop("display-name", None)
    if display_name and not item.get("displayName"):
        item["displayName"] = display_name


def migrate_v2(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of `doc` converted to the v2 layout."""
    out = dict(doc)

    subs = [dict(s) for s in _as_list(doc.get(SUBS_KEY), SUBS_KEY)]
    for sub in subs:
        sub.setdefault("source", "remote")
        _migrate_display_name(sub)
    out[SUBS_KEY] = subs

    collections = [dict(c) for c in _as_list(doc.get(COLLECTIONS_KEY), COLLECTIONS_KEY)]
    for collection in collections:
        _migrate_display_name(collection)
    out[COLLECTIONS_KEY] = collections

    out[ARTIFACTS_KEY] = [dict(a) for a in _as_list(doc.get(ARTIFACTS_KEY), ARTIFACTS_KEY)]
    return out


class MigrationRunner:
    """Brings the document held by `store` to CURRENT_SCHEMA_VERSION."""

    def __init__(self, store: LocalStateStore) -> None:
        self._store = store

    def run(self) -> bool:
        """Migrate in place. Returns True if the document was rewritten."""
        try:
            doc = self._store.read_document()
        except ValueError as ex:
            raise MigrationError("Stored document cannot be read for migration") from ex

        version = doc.get(SCHEMA_VERSION_KEY)
        if version == CURRENT_SCHEMA_VERSION:
            return False

        if not version:
            logger.info("Migrating document to schema v2")
            doc = migrate_v2(doc)
        doc[SCHEMA_VERSION_KEY] = CURRENT_SCHEMA_VERSION
        self._store.write_document(doc)
        logger.info("Migration complete", extra={"schema_version": CURRENT_SCHEMA_VERSION})
        return True


__all__ = ["MigrationRunner", "MigrationError", "migrate_v2", "CURRENT_SCHEMA_VERSION"]
