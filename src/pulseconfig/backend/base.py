"""Abstract interface to the server-side configuration operations."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pulseconfig.models.configuration import (
    ApplyResult,
    ConfigurationVersion,
    ValidationOutcome,
)
from pulseconfig.models.errors import Finding


class BackendError(Exception):
    """A transport or server failure while talking to the configuration backend.

    ``findings`` holds whatever structured findings could be unwrapped from
    the error payload (possibly none).
    """

    def __init__(
        self,
        message: str,
        *,
        findings: list[Finding] | None = None,
        status_code: int | None = None,
    ) -> None:
        self.message = message
        self.findings = findings or []
        self.status_code = status_code
        super().__init__(message)


class VersionNotFoundError(KeyError):
    """Raised when a configuration version ID is unknown to the backend."""


class ConfigurationBackend(ABC):
    """Validate, apply and version-history operations over a document."""

    @abstractmethod
    async def validate(self, text: str) -> ValidationOutcome:
        """Dry-run the document; nothing is persisted."""

    @abstractmethod
    async def apply(
        self, text: str, *, actor: str | None = None, note: str | None = None
    ) -> ApplyResult: ...

    @abstractmethod
    async def list_versions(self) -> list[ConfigurationVersion]:
        """Return all applied versions in no particular order."""

    @abstractmethod
    async def get_version(self, version_id: str) -> str:
        """Return the document text of a version."""

    @abstractmethod
    async def get_current(self) -> str:
        """Return the text of the active configuration."""

    async def aclose(self) -> None:  # noqa: B027
        """Release any held resources."""
