"""Read-only view model over previously applied configuration versions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pulseconfig.backend.base import ConfigurationBackend, VersionNotFoundError
from pulseconfig.models.configuration import ConfigurationVersion, VersionContent, VersionDownload
from pulseconfig.service.workflow import ValidationWorkflow

_SHORT_ID_LENGTH = 8


def download_filename(
    version_id: str, applied_ts: datetime | None, override_name: str | None = None
) -> str:
    """Filename a version is saved under.

    ``config-YYYY-MM-DD.yaml`` from the applied date, unless overridden;
    ``configuration-<id>.yaml`` when the applied date is unknown.
    """
    if override_name:
        return override_name
    if applied_ts is not None:
        return f"config-{applied_ts.date().isoformat()}.yaml"
    return f"configuration-{version_id}.yaml"


def sort_versions(versions: list[ConfigurationVersion]) -> list[ConfigurationVersion]:
    """Newest first; versions applied at the same instant keep their order."""
    return sorted(versions, key=lambda v: v.applied_ts, reverse=True)


@dataclass
class VersionRow:
    """One line of a version-history table."""

    version: ConfigurationVersion
    is_current: bool
    label: str
    short_id: str
    hash_display: str
    actor: str
    note: str


class VersionHistory:
    """Lists, downloads and restores applied versions."""

    def __init__(self, backend: ConfigurationBackend) -> None:
        self._backend = backend

    async def list(self) -> list[ConfigurationVersion]:
        """All versions, newest first. The first element is the current one."""
        return sort_versions(await self._backend.list_versions())

    async def rows(self) -> list[VersionRow]:
        versions = await self.list()
        total = len(versions)
        return [
            VersionRow(
                version=v,
                is_current=index == 0,
                label="CURRENT" if index == 0 else f"v{total - index}",
                short_id=v.id[:_SHORT_ID_LENGTH],
                hash_display=f"{v.content_hash_prefix}..." if v.file_hash else "—",
                actor=v.actor or "System",
                note=v.note or "—",
            )
            for index, v in enumerate(versions)
        ]

    async def get(self, version_id: str) -> VersionContent:
        """Metadata and text of one version.

        Raises :class:`VersionNotFoundError` if the ID is not in the version list.
        """
        for version in await self._backend.list_versions():
            if version.id == version_id:
                text = await self._backend.get_version(version_id)
                return VersionContent(version=version, text=text)
        raise VersionNotFoundError(f"Configuration version '{version_id}' not found")

    async def download(self, version_id: str, override_name: str | None = None) -> VersionDownload:
        content = await self.get(version_id)
        return VersionDownload(
            filename=download_filename(version_id, content.version.applied_ts, override_name),
            text=content.text,
        )

    async def restore(self, version_id: str, workflow: ValidationWorkflow) -> None:
        """Load a version's text into *workflow* as a new edit."""
        content = await self.get(version_id)
        workflow.edit(content.text)
