from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import httpx


logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.github.com"

# Gists are located by description; the backup lives in a single file.
GIST_BACKUP_KEY = "Auto Generated Sub-Store Backup"
GIST_BACKUP_FILE_NAME = "Sub-Store"

_RETRYABLE = (429, 500, 502, 503, 504)
# POST /gists is not idempotent: a retried create can leave two backup gists
_RETRYABLE_METHODS = frozenset({"GET", "PATCH"})
LIST_PAGE_SIZE = 100


class GistError(RuntimeError):
    """Base error for the Gist client."""


class GistApiError(GistError):
    """GitHub answered with a 4xx/5xx or an unexpected payload."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GistNotFoundError(GistError):
    """No backup gist (or no backup file inside it) exists yet."""


class GistClient:
    """
    Minimal GitHub Gist client used as the remote backup store.

    Notes
    - The backup gist is identified by its description (`key`), so the
      first upload creates a private gist and later uploads PATCH it.
    - `download` follows the file's `raw_url`, which also works for files
      too large to be inlined in the gist JSON.
    - Transport errors, 429 and 5xx are retried with exponential backoff for
      GET and PATCH only; a failed create (POST) is raised on the first error.
      4xx answers are raised immediately with GitHub's `message`.
    """

    def __init__(
        self,
        token: str,
        *,
        key: str = GIST_BACKUP_KEY,
        api_base: str = DEFAULT_API_BASE,
        timeout: float = 30.0,
        max_attempts: int = 4,
        client: Optional[httpx.Client] = None,
    ) -> None:
        if not token:
            raise ValueError("token is required")
        self._key = key
        self._api_base = api_base.rstrip("/")
        self._max_attempts = max(1, max_attempts)
        self._owns_client = client is None
        self._client = client or httpx.Client(base_url=self._api_base, timeout=timeout)
        self._headers = {
            "Authorization": f"token {token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": "sub-store-sync",
        }

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "GistClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --------------- Public API ---------------
    def locate(self) -> Optional[str]:
        """Return the id of the gist whose description equals `key`, or None.

        Walks every page of `GET /gists` via the `Link: rel="next"` header.
        """
        url: Optional[str] = f"{self._api_base}/gists?per_page={LIST_PAGE_SIZE}"
        while url:
            resp = self._request("GET", url)
            gists = resp.json()
            if not isinstance(gists, list):
                raise GistApiError("Malformed gist listing from GitHub")
            for g in gists:
                if isinstance(g, dict) and g.get("description") == self._key:
                    return str(g.get("id"))
            url = resp.links.get("next", {}).get("url")
        return None

    def upload(self, name: str, content: str) -> Dict[str, Any]:
        """Create or update the backup gist so that file `name` holds `content`."""
        files = {name: {"content": content}}
        gist_id = self.locate()
        if gist_id is None:
            logger.info("Creating backup gist", extra={"file": name})
            body: Dict[str, Any] = {"description": self._key, "public": False, "files": files}
            resp = self._request("POST", f"{self._api_base}/gists", json=body)
        else:
            logger.info("Updating backup gist", extra={"gist_id": gist_id, "file": name})
            resp = self._request("PATCH", f"{self._api_base}/gists/{gist_id}", json={"files": files})
        return resp.json()

    def download(self, name: str) -> str:
        """Return the raw content of file `name` in the backup gist."""
        gist_id = self.locate()
        if gist_id is None:
            raise GistNotFoundError(f"No gist found with description {self._key!r}")

        gist = self._request("GET", f"{self._api_base}/gists/{gist_id}").json()
        files = gist.get("files") if isinstance(gist, dict) else None
        entry = files.get(name) if isinstance(files, dict) else None
        if not isinstance(entry, dict):
            raise GistNotFoundError(f"File {name!r} not found in gist {gist_id}")

        raw_url = entry.get("raw_url")
        if not raw_url:
            # Small files are inlined; fall back to the embedded content
            content = entry.get("content")
            if isinstance(content, str):
                return content
            raise GistApiError(f"File {name!r} in gist {gist_id} has no content")
        return self._request("GET", raw_url).text

    # --------------- Internal ---------------
    def _request(self, method: str, url: str, *, json: Optional[Dict[str, Any]] = None) -> httpx.Response:
        max_attempts = self._max_attempts if method in _RETRYABLE_METHODS else 1
        attempt = 0
        backoff = 1.0
        last_exc: Optional[Exception] = None
        while attempt < max_attempts:
            try:
                resp = self._client.request(method, url, json=json, headers=self._headers)
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                last_exc = exc
            else:
                if resp.status_code < 400:
                    return resp
                if resp.status_code not in _RETRYABLE:
                    raise GistApiError(
                        f"HTTP {resp.status_code} from GitHub: {self._error_message(resp)}",
                        status_code=resp.status_code,
                    )
                last_exc = GistApiError(
                    f"HTTP {resp.status_code} from GitHub", status_code=resp.status_code
                )

            attempt += 1
            if attempt < max_attempts:
                logger.warning(
                    "Retrying GitHub request",
                    extra={"method": method, "attempt": attempt, "error": str(last_exc)},
                )
                time.sleep(backoff)
                backoff = min(backoff * 2, 8.0)

        if last_exc is not None:
            raise GistError(f"{method} request failed after {attempt} attempt(s): {last_exc}") from last_exc
        raise GistError(f"{method} request failed after {attempt} attempt(s) (unknown error)")

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            return resp.text[:200]
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            return body["message"]
        return resp.text[:200]


__all__ = [
    "GistClient",
    "GistError",
    "GistApiError",
    "GistNotFoundError",
    "GIST_BACKUP_KEY",
    "GIST_BACKUP_FILE_NAME",
]
