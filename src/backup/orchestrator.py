from __future__ import annotations

import logging
import time
from contextlib import AbstractContextManager
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from common.errors import BackupFailedError, ConfigurationError
from common.gist import GIST_BACKUP_FILE_NAME, GIST_BACKUP_KEY, GistClient
from state.local_store import LocalStateStore
from state.migration import MigrationRunner
from state.models import Settings


logger = logging.getLogger(__name__)


class BackupAction(str, Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"
    NOOP = "noop"

    @classmethod
    def parse(cls, raw: Any) -> "BackupAction":
        """Map a request value to an action. Anything unrecognized is NOOP."""
        if raw == cls.UPLOAD.value:
            return cls.UPLOAD
        if raw == cls.DOWNLOAD.value:
            return cls.DOWNLOAD
        return cls.NOOP


class RemoteBackupClient(Protocol):
    def upload(self, name: str, content: str) -> Any: ...

    def download(self, name: str) -> str: ...


class Migrator(Protocol):
    def run(self) -> Any: ...


ClientFactory = Callable[[str], "AbstractContextManager[RemoteBackupClient]"]


def _now_ms() -> int:
    return int(time.time() * 1000)


def default_client_factory(token: str) -> GistClient:
    return GistClient(token, key=GIST_BACKUP_KEY)


class SyncTimeIntent:
    """
    Commit-intent / compensate step around an upload.

    `commit(now)` persists the new syncTime before the upload starts;
    `compensate()` restores and persists the value seen before the commit.
    """

    def __init__(self, store: LocalStateStore, settings: Settings) -> None:
        self._store = store
        self._settings = settings
        self.previous: Optional[int] = settings.sync_time
        self.committed: Optional[int] = None

    def commit(self, now: int) -> None:
        self._settings.sync_time = now
        self._store.write_settings(self._settings)
        self.committed = now

    def compensate(self) -> None:
        self._settings.sync_time = self.previous
        self._store.write_settings(self._settings)
        self.committed = None


class BackupOrchestrator:
    """
    Mirrors the local document to the backup Gist and restores it back.

    Upload
    - Requires a GitHub token in settings (ConfigurationError otherwise,
      raised before any write).
    - Persists `syncTime = now` first, then uploads the full document. If
      anything fails after that commit, the previous syncTime is written
      back and BackupFailedError is raised.

    Download
    - Requires a token as well. Fetches the backup, replaces the local
      document with it in full (settings included), then runs the
      migration once. A failed fetch writes nothing and skips migration.
      Migration errors propagate unwrapped, after the overwrite.

    Notes
    - No locking between concurrent invocations: two overlapping uploads
      can interleave their settings writes and defeat the rollback.
    """

    def __init__(
        self,
        store: LocalStateStore,
        *,
        client_factory: ClientFactory = default_client_factory,
        migrator: Optional[Migrator] = None,
        clock: Callable[[], int] = _now_ms,
        file_name: str = GIST_BACKUP_FILE_NAME,
    ) -> None:
        self._store = store
        self._client_factory = client_factory
        self._migrator = migrator if migrator is not None else MigrationRunner(store)
        self._clock = clock
        self._file_name = file_name

    def run(self, action: BackupAction) -> None:
        if action is BackupAction.UPLOAD:
            self.upload()
        elif action is BackupAction.DOWNLOAD:
            self.download()
        else:
            logger.info("Ignoring unrecognized backup action")

    def upload(self) -> None:
        settings = self._load_authorized_settings()
        intent = SyncTimeIntent(self._store, settings)
        intent.commit(self._clock())

        logger.info("Uploading backup", extra={"file": self._file_name})
        try:
            content = self._store.read_all()
            with self._client_factory(settings.gist_token) as client:
                client.upload(self._file_name, content)
        except Exception as exc:
            logger.warning(
                "Backup upload failed; restoring previous syncTime",
                extra={"error": str(exc), "sync_time": intent.previous},
            )
            intent.compensate()
            raise BackupFailedError("upload", exc) from exc

        logger.info("Backup uploaded", extra={"sync_time": intent.committed})

    def download(self) -> None:
        settings = self._load_authorized_settings()

        logger.info("Restoring backup", extra={"file": self._file_name})
        try:
            with self._client_factory(settings.gist_token) as client:
                content = client.download(self._file_name)
            self._store.write_all(content)
        except Exception as exc:
            logger.warning("Backup download failed", extra={"error": str(exc)})
            raise BackupFailedError("download", exc) from exc

        self._migrator.run()
        logger.info("Backup restored")

    def _load_authorized_settings(self) -> Settings:
        settings = self._store.read_settings()
        if not settings.gist_token:
            raise ConfigurationError()
        return settings


__all__ = [
    "BackupAction",
    "BackupOrchestrator",
    "RemoteBackupClient",
    "SyncTimeIntent",
    "default_client_factory",
]
