from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


SETTINGS_KEY = "settings"
SUBS_KEY = "subs"
COLLECTIONS_KEY = "collections"
ARTIFACTS_KEY = "artifacts"
SCHEMA_VERSION_KEY = "schemaVersion"


class Settings(BaseModel):
    """
    Service settings sub-record of the stored document.

    Fields
    - gistToken: GitHub token used for Gist backup (None if not configured).
    - syncTime: last successful upload, milliseconds since epoch. Advisory
      only; never used to detect conflicts.

    Notes
    - Other settings keys (avatar, artifact store, ...) are kept as extra
      fields so a read-modify-write never drops them.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    gist_token: Optional[str] = Field(default=None, alias="gistToken")
    sync_time: Optional[int] = Field(default=None, alias="syncTime")

    def to_json_dict(self) -> Dict[str, Any]:
        # Unset token/syncTime stay absent; extra keys are kept as stored, nulls included
        out = self.model_dump(by_alias=True)
        for key in ("gistToken", "syncTime"):
            if out.get(key) is None:
                out.pop(key, None)
        return out


class StoreDocument(BaseModel):
    """
    The whole local state: settings, subscriptions, collections and artifacts.

    Serialized as one JSON object; this is what gets backed up to the Gist.
    Unknown top-level keys are preserved.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    settings: Settings = Field(default_factory=Settings)
    subs: Any = Field(default_factory=list, description="Subscriptions")
    collections: Any = Field(default_factory=list, description="Subscription collections")
    artifacts: Any = Field(default_factory=list, description="Sync artifacts")
    schema_version: Optional[str] = Field(default=None, alias=SCHEMA_VERSION_KEY)

    @classmethod
    def empty(cls) -> "StoreDocument":
        return cls()

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


__all__ = [
    "Settings",
    "StoreDocument",
    "SETTINGS_KEY",
    "SUBS_KEY",
    "COLLECTIONS_KEY",
    "ARTIFACTS_KEY",
    "SCHEMA_VERSION_KEY",
]
