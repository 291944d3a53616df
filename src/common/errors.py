from __future__ import annotations

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """
    Base error surfaced to API callers.

    Carries a stable machine-readable `code`, a human-readable `message`
    and optional `details` (usually the underlying cause). `type` and
    `status_code` are fixed per subclass.
    """

    type = "ServiceError"
    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "type": self.type,
            "message": self.message,
            "details": self.details,
        }


class RequestInvalidError(ServiceError):
    type = "RequestInvalidError"
    status_code = 400


class InternalServerError(ServiceError):
    type = "InternalServerError"
    status_code = 500


class ConfigurationError(RequestInvalidError):
    """No GitHub token configured; raised before any mutation."""

    def __init__(self, message: str = "GitHub Token is required for backup!") -> None:
        super().__init__("GIST_TOKEN_NOT_FOUND", message)


class BackupFailedError(InternalServerError):
    """An upload or download to the Gist failed; `cause` is the original error."""

    def __init__(self, action: str, cause: BaseException) -> None:
        super().__init__(
            "BACKUP_FAILED",
            f"Failed to {action} data to gist!",
            f"Reason: {cause}",
        )
        self.action = action
        self.cause = cause


__all__ = [
    "ServiceError",
    "RequestInvalidError",
    "InternalServerError",
    "ConfigurationError",
    "BackupFailedError",
]
