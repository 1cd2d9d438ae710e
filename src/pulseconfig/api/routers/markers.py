"""Stateless marker endpoints: turn findings into annotations for any text."""

from __future__ import annotations

from fastapi import APIRouter

from pulseconfig.api.schemas import (
    MarkersRequest,
    MarkersResponse,
    ResolveRequest,
    ResolveResponse,
)
from pulseconfig.parser.resolver import resolve
from pulseconfig.service.markers import assemble

router = APIRouter()


@router.post("", response_model=MarkersResponse)
async def assemble_markers(body: MarkersRequest) -> MarkersResponse:
    """One fixed-width annotation per finding, in input order."""
    return MarkersResponse(annotations=assemble(body.text, body.findings))


@router.post("/resolve", response_model=ResolveResponse)
async def resolve_path(body: ResolveRequest) -> ResolveResponse:
    """Resolve a logical path to a position; unknown paths give line 1, column 1."""
    return ResolveResponse(path=body.path, position=resolve(body.text, body.path))
