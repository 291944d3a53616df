"""
Common utilities for sub-store-sync.

Modules:
- gist: GitHub Gist client used as the remote backup store
- errors: classified errors surfaced to API callers
- responses: success/failed response envelopes
- logging_utils: JSON line logging for the handlers
"""

__all__ = [
    "errors",
    "gist",
    "logging_utils",
    "responses",
]
