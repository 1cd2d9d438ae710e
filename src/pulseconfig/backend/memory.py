"""In-memory configuration backend for offline editing and tests."""

from __future__ import annotations

import asyncio
import hashlib
import secrets
from datetime import UTC, datetime
from typing import Any

from pulseconfig.backend.base import BackendError, ConfigurationBackend, VersionNotFoundError
from pulseconfig.models.configuration import (
    ApplyResult,
    ConfigurationVersion,
    ValidationOutcome,
)
from pulseconfig.models.errors import Finding
from pulseconfig.parser.loader import TrackedLoader, YAMLSafetyError, YAMLSyntaxError

_LIST_SECTIONS = ("groups", "targets")
_ALREADY_APPLIED = "Configuration already applied - no changes made"


def _content_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _structural_findings(data: Any) -> list[Finding]:
    """Shape checks only: the root is a mapping and list sections hold mappings."""
    if data is None:
        return [Finding(message="Configuration document is empty")]
    if not isinstance(data, dict):
        return [Finding(message="Configuration root must be a mapping")]
    findings: list[Finding] = []
    for section in _LIST_SECTIONS:
        entries = data.get(section)
        if entries is None:
            continue
        if not isinstance(entries, list):
            findings.append(Finding(message=f"'{section}' must be a list", path=section))
            continue
        for i, entry in enumerate(entries):
            if not isinstance(entry, dict):
                findings.append(
                    Finding(
                        message=f"Entry {i} of '{section}' must be a mapping",
                        path=f"{section}[{i}]",
                    )
                )
    return findings


class InMemoryBackend(ConfigurationBackend):
    """Validates with ruamel.yaml and keeps applied versions in a list.

    Applying a document identical to an existing version returns that version
    instead of creating a new one. ``latency`` (seconds) delays every call.
    """

    def __init__(self, *, latency: float = 0.0) -> None:
        self._loader = TrackedLoader()
        self._latency = latency
        self._versions: list[ConfigurationVersion] = []
        self._contents: dict[str, str] = {}

    async def _pause(self) -> None:
        if self._latency:
            await asyncio.sleep(self._latency)

    def check(self, text: str) -> list[Finding]:
        """Synchronous validation used by both validate and apply."""
        if not text.strip():
            return [Finding(message="YAML content cannot be empty")]
        try:
            data = self._loader.load_string(text)
        except YAMLSafetyError as exc:
            return [Finding(message=str(exc))]
        except YAMLSyntaxError as exc:
            return [Finding(message=str(exc), line=exc.line, column=exc.column)]
        return _structural_findings(data)

    async def validate(self, text: str) -> ValidationOutcome:
        await self._pause()
        findings = self.check(text)
        return ValidationOutcome(is_valid=not findings, errors=findings)

    async def apply(
        self, text: str, *, actor: str | None = None, note: str | None = None
    ) -> ApplyResult:
        await self._pause()
        findings = self.check(text)
        if findings:
            raise BackendError("Configuration validation failed", findings=findings, status_code=400)

        file_hash = _content_hash(text)
        for version in self._versions:
            if version.file_hash == file_hash:
                return ApplyResult(
                    config_version_id=version.id,
                    warnings=[_ALREADY_APPLIED],
                    version=version,
                )

        version = ConfigurationVersion(
            id=secrets.token_hex(16),
            applied_ts=datetime.now(UTC),
            file_hash=file_hash,
            actor=actor,
            note=note,
        )
        self._versions.append(version)
        self._contents[version.id] = text
        return ApplyResult(config_version_id=version.id, version=version)

    async def list_versions(self) -> list[ConfigurationVersion]:
        await self._pause()
        return list(self._versions)

    async def get_version(self, version_id: str) -> str:
        await self._pause()
        try:
            return self._contents[version_id]
        except KeyError:
            raise VersionNotFoundError(f"Configuration version '{version_id}' not found") from None

    async def get_current(self) -> str:
        await self._pause()
        if not self._versions:
            raise BackendError("No configuration has been applied yet", status_code=404)
        return self._contents[self._versions[-1].id]
