"""Version history endpoints."""

from __future__ import annotations

from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from pulseconfig.api.deps import get_version_history
from pulseconfig.api.schemas import VersionListResponse, VersionResponse
from pulseconfig.backend.base import BackendError, VersionNotFoundError
from pulseconfig.service.history import VersionHistory

router = APIRouter()


def _content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name and an RFC 5987 UTF-8 name."""
    fallback = "".join(
        ch if 32 <= ord(ch) < 127 and ch not in '"\\' else "_" for ch in filename
    )
    encoded = quote(filename, safe="")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"


@router.get("", response_model=VersionListResponse)
async def list_versions(
    history: VersionHistory = Depends(get_version_history),  # noqa: B008
) -> VersionListResponse:
    """All applied versions, newest (current) first."""
    try:
        rows = await history.rows()
    except BackendError as exc:
        raise HTTPException(status_code=502, detail=exc.message) from None
    return VersionListResponse(
        versions=[
            VersionResponse(
                id=row.version.id,
                label=row.label,
                is_current=row.is_current,
                applied_ts=row.version.applied_ts,
                file_hash=row.version.file_hash,
                hash_display=row.hash_display,
                actor=row.actor,
                note=row.note,
            )
            for row in rows
        ]
    )


@router.get("/{version_id}/download", response_class=PlainTextResponse)
async def download_version(
    version_id: str,
    filename: str | None = None,
    history: VersionHistory = Depends(get_version_history),  # noqa: B008
) -> PlainTextResponse:
    """Download a version's YAML as an attachment."""
    try:
        download = await history.download(version_id, override_name=filename)
    except VersionNotFoundError:
        raise HTTPException(
            status_code=404, detail=f"Configuration version '{version_id}' not found"
        ) from None
    except BackendError as exc:
        raise HTTPException(status_code=502, detail=exc.message) from None
    return PlainTextResponse(
        download.text,
        media_type="application/x-yaml",
        headers={"Content-Disposition": _content_disposition(download.filename)},
    )
