"""API request/response Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from pulseconfig.models.configuration import ConfigurationVersion
from pulseconfig.models.errors import Annotation, Finding, ResolvedPosition
from pulseconfig.service.workflow import WorkflowState


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = ""
    backend: str = ""


# ---------------------------------------------------------------------------
# Session schemas
# ---------------------------------------------------------------------------


class SessionCreateRequest(BaseModel):
    """Request body for POST /sessions."""

    text: str = Field(default="", description="Initial YAML document")
    metadata: dict[str, str] = Field(default_factory=dict)


class SessionResponse(BaseModel):
    """Single session info."""

    session_id: str
    created_at: datetime
    last_accessed_at: datetime
    state: WorkflowState
    revision: int
    metadata: dict[str, str] = Field(default_factory=dict)


class SessionListResponse(BaseModel):
    """Response for GET /sessions."""

    sessions: list[SessionResponse]


class DocumentRequest(BaseModel):
    """Request body for PUT /sessions/{session_id}/document."""

    text: str = Field(description="YAML configuration content")


class DocumentResponse(BaseModel):
    """Current document of a session."""

    text: str
    revision: int


class ApplyRequest(BaseModel):
    """Request body for POST /sessions/{session_id}/apply."""

    actor: str | None = None
    note: str | None = None


class WorkflowResponse(BaseModel):
    """Workflow state and the annotations of its last run.

    Annotations are serialised with their camelCase editor aliases.
    """

    state: WorkflowState
    revision: int
    annotations: list[Annotation] = []
    error: str | None = None
    warnings: list[str] = []
    applied_version: ConfigurationVersion | None = None


# ---------------------------------------------------------------------------
# Stateless marker schemas
# ---------------------------------------------------------------------------


class MarkersRequest(BaseModel):
    """Request body for POST /markers."""

    text: str
    findings: list[Finding] = []


class MarkersResponse(BaseModel):
    """Response for POST /markers."""

    annotations: list[Annotation]


class ResolveRequest(BaseModel):
    """Request body for POST /markers/resolve."""

    text: str
    path: str


class ResolveResponse(BaseModel):
    """Response for POST /markers/resolve."""

    path: str
    position: ResolvedPosition


# ---------------------------------------------------------------------------
# Version history schemas
# ---------------------------------------------------------------------------


class VersionResponse(BaseModel):
    """One row of the version history, newest first."""

    id: str
    label: str
    is_current: bool
    applied_ts: datetime
    file_hash: str
    hash_display: str
    actor: str
    note: str


class VersionListResponse(BaseModel):
    """Response for GET /versions."""

    versions: list[VersionResponse]
