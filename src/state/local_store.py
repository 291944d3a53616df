from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict

from .models import SETTINGS_KEY, Settings, StoreDocument


logger = logging.getLogger(__name__)

ENV_DATA_FILE = "SUB_STORE_DATA_FILE"
ENV_DATA_DIR = "SUB_STORE_DATA_DIR"
DEFAULT_FILE_NAME = "sub-store.json"


def _dump_document(doc: Dict[str, Any]) -> str:
    # Same layout as the Gist backup: two-space indented JSON
    return json.dumps(doc, indent=2, ensure_ascii=False)


def _load_document(blob: str) -> Dict[str, Any]:
    try:
        raw = json.loads(blob)
    except (TypeError, ValueError) as ex:
        raise ValueError("Stored document is not valid JSON") from ex
    if not isinstance(raw, dict):
        raise ValueError("Stored document must be a JSON object")
    return raw


class LocalStateStore:
    """
    File-backed store for the whole service document.

    Usage
    - `read_all()` / `write_all(blob)` move the serialized document (the
      backup blob) in and out unchanged.
    - `read_settings()` / `write_settings(settings)` touch only the
      `settings` sub-record and preserve everything else.
    - `read_document()` / `write_document(doc)` give structured access.

    Every write goes to a temp file in the same directory followed by
    `os.replace`, so readers never observe a partial document. Calls within
    one process are serialized by a lock; nothing coordinates separate
    processes.
    """

    def __init__(self, path: os.PathLike[str] | str) -> None:
        self._path = Path(path)
        self._lock = threading.RLock()

    @classmethod
    def from_env(cls) -> "LocalStateStore":
        explicit = os.environ.get(ENV_DATA_FILE)
        if explicit:
            return cls(explicit)
        base = os.environ.get(ENV_DATA_DIR)
        if base:
            return cls(Path(base) / DEFAULT_FILE_NAME)
        return cls(Path(".data") / DEFAULT_FILE_NAME)

    @property
    def path(self) -> Path:
        return self._path

    # -------- Whole document --------
    def read_all(self) -> str:
        """Return the serialized document; an empty document if none is stored yet."""
        with self._lock:
            try:
                return self._path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return _dump_document(StoreDocument.empty().to_json_dict())

    def write_all(self, blob: str) -> None:
        """Replace the stored document with `blob` verbatim.

        Raises ValueError (and writes nothing) if `blob` is not a JSON object.
        """
        _load_document(blob)
        with self._lock:
            self._replace(blob)
        logger.debug("Local document replaced", extra={"path": str(self._path), "bytes": len(blob)})

    def read_document(self) -> Dict[str, Any]:
        return _load_document(self.read_all())

    def write_document(self, doc: Dict[str, Any]) -> None:
        with self._lock:
            self._replace(_dump_document(doc))

    # -------- Settings sub-record --------
    def read_settings(self) -> Settings:
        raw = self.read_document().get(SETTINGS_KEY) or {}
        if not isinstance(raw, dict):
            raise ValueError("settings must be a JSON object")
        return Settings.model_validate(raw)

    def write_settings(self, settings: Settings) -> None:
        with self._lock:
            doc = self.read_document()
            doc[SETTINGS_KEY] = settings.to_json_dict()
            self.write_document(doc)

    # -------- Internal --------
    def _replace(self, text: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


__all__ = ["LocalStateStore", "ENV_DATA_FILE", "ENV_DATA_DIR"]
