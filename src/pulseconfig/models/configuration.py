"""Configuration versions and validate/apply results."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from pulseconfig.models.errors import Finding

_HASH_PREFIX_LENGTH = 8


class ConfigurationVersion(BaseModel):
    """A previously applied configuration document (server-side, immutable)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    applied_ts: datetime = Field(alias="appliedTs")
    file_hash: str = Field(default="", alias="fileHash")
    actor: str | None = None
    note: str | None = None

    @property
    def content_hash_prefix(self) -> str:
        return self.file_hash[:_HASH_PREFIX_LENGTH]


class ValidationOutcome(BaseModel):
    """Result of a dry-run validation of a document."""

    is_valid: bool = Field(alias="isValid")
    errors: list[Finding] = []
    warnings: list[str] = []

    model_config = ConfigDict(populate_by_name=True)


class ApplyResult(BaseModel):
    """Server response to an apply, plus the echoed version when known."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    config_version_id: str = Field(alias="configVersionId")
    added: int = 0
    updated: int = 0
    removed: int = 0
    warnings: list[str] = []
    version: ConfigurationVersion | None = None


class VersionContent(BaseModel):
    """A version's metadata together with its document text."""

    version: ConfigurationVersion
    text: str


class VersionDownload(BaseModel):
    """Text of a version and the filename it should be saved under."""

    filename: str
    text: str
