from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from common.errors import BackupFailedError, ServiceError
from common.gist import DEFAULT_API_BASE, GIST_BACKUP_KEY, GistClient
from common.logging_utils import configure_logging
from common.responses import failed, success
from state.local_store import LocalStateStore

from .orchestrator import BackupAction, BackupOrchestrator


logger = logging.getLogger(__name__)

ENV_GIST_API_BASE = "SUB_STORE_GIST_API_BASE"
ENV_LOG_LEVEL = "SUB_STORE_LOG_LEVEL"


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in (None, "") else default


def _build_orchestrator(store: LocalStateStore) -> BackupOrchestrator:
    api_base = _getenv(ENV_GIST_API_BASE, DEFAULT_API_BASE)

    def client_factory(token: str) -> GistClient:
        return GistClient(token, key=GIST_BACKUP_KEY, api_base=api_base)

    return BackupOrchestrator(store, client_factory=client_factory)


def run_once(
    action: Any,
    *,
    store: Optional[LocalStateStore] = None,
    orchestrator: Optional[BackupOrchestrator] = None,
) -> Dict[str, Any]:
    """
    Run one backup action and return an API Gateway proxy response.

    - `action` is the raw request value; "upload" and "download" run the
      matching path, anything else succeeds without touching state.
    - Classified errors keep their code (GIST_TOKEN_NOT_FOUND,
      BACKUP_FAILED). Anything else, such as a migration failure after a
      restore, is reported as BACKUP_FAILED.
    """
    parsed = BackupAction.parse(action)
    if orchestrator is None:
        orchestrator = _build_orchestrator(store or LocalStateStore.from_env())

    try:
        orchestrator.run(parsed)
    except ServiceError as e:
        logger.error("Backup action failed", extra={"action": parsed.value, "code": e.code, "details": e.details})
        return failed(e)
    except Exception as e:
        logger.exception("Backup action failed unexpectedly", extra={"action": parsed.value})
        return failed(BackupFailedError(parsed.value, e))
    return success()


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """AWS Lambda entry for `GET /api/utils/backup?action=upload|download`.

    Environment:
    - SUB_STORE_DATA_FILE or SUB_STORE_DATA_DIR: local document location
    - SUB_STORE_GIST_API_BASE (default: https://api.github.com)
    - SUB_STORE_LOG_LEVEL (default: INFO)
    """
    configure_logging(_getenv(ENV_LOG_LEVEL, "INFO"))
    params = (event or {}).get("queryStringParameters") or {}
    return run_once(params.get("action"))
