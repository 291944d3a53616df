from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

from common.errors import InternalServerError, RequestInvalidError, ServiceError
from common.logging_utils import configure_logging
from common.responses import failed, json_response
from state.local_store import LocalStateStore


logger = logging.getLogger(__name__)

ENV_LOG_LEVEL = "SUB_STORE_LOG_LEVEL"


def get_storage(store: LocalStateStore) -> Dict[str, Any]:
    """Return the whole local document."""
    return store.read_document()


def replace_storage(store: LocalStateStore, body: Any) -> None:
    """Replace the whole local document with `body` (JSON text or mapping)."""
    if isinstance(body, (str, bytes)):
        try:
            body = json.loads(body)
        except ValueError as ex:
            raise RequestInvalidError("INVALID_STORAGE", "Storage body is not valid JSON", str(ex)) from ex
    if not isinstance(body, dict):
        raise RequestInvalidError("INVALID_STORAGE", "Storage body must be a JSON object")
    store.write_document(body)
    logger.info("Local document replaced via storage API", extra={"keys": sorted(body)})


def lambda_handler(event: Dict[str, Any], context: Any, *, store: Optional[LocalStateStore] = None) -> Dict[str, Any]:
    """AWS Lambda entry for `GET|POST /api/storage`.

    GET returns the raw document (not wrapped in the success envelope);
    POST replaces it and answers with an empty 200.
    """
    configure_logging(os.environ.get(ENV_LOG_LEVEL) or "INFO")
    store = store or LocalStateStore.from_env()
    method = str((event or {}).get("httpMethod") or "GET").upper()
    try:
        if method == "GET":
            return json_response(200, get_storage(store))
        if method == "POST":
            replace_storage(store, (event or {}).get("body"))
            return json_response(200, None)
        return failed(RequestInvalidError("METHOD_NOT_ALLOWED", f"Method {method} not allowed"), 405)
    except ServiceError as e:
        return failed(e)
    except ValueError as e:
        logger.exception("Local document is unreadable")
        return failed(InternalServerError("STORAGE_UNREADABLE", "Stored document is unreadable", str(e)))
