from __future__ import annotations

import json
from typing import Any, Dict, Optional

from .errors import ServiceError


JSON_HEADERS = {"Content-Type": "application/json; charset=utf-8"}


def json_response(status_code: int, body: Any) -> Dict[str, Any]:
    # API Gateway proxy integration shape; None means an empty body
    return {
        "statusCode": status_code,
        "headers": dict(JSON_HEADERS),
        "body": json.dumps(body, ensure_ascii=False) if body is not None else "",
    }


def success(data: Any = None, status_code: int = 200) -> Dict[str, Any]:
    """Wrap `data` in the `{"status": "success", "data": ...}` envelope."""
    return json_response(status_code, {"status": "success", "data": data})


def failed(error: ServiceError, status_code: Optional[int] = None) -> Dict[str, Any]:
    """
    Wrap a classified error in the failure envelope:
    `{"status": "failed", "error": {code, type, message, details}}`.

    Status defaults to the error's own `status_code`.
    """
    code = status_code if status_code is not None else error.status_code
    return json_response(code, {"status": "failed", "error": error.to_dict()})


__all__ = ["json_response", "success", "failed"]
