"""Session-scoped endpoints: document editing, validate, apply and restore."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from pulseconfig.api.deps import (
    get_session_manager,
    get_version_history,
    is_session_list_disabled,
)
from pulseconfig.api.schemas import (
    ApplyRequest,
    DocumentRequest,
    DocumentResponse,
    SessionCreateRequest,
    SessionListResponse,
    SessionResponse,
    WorkflowResponse,
)
from pulseconfig.backend.base import BackendError, VersionNotFoundError
from pulseconfig.service.history import VersionHistory
from pulseconfig.service.session_manager import SessionInfo, SessionManager, SessionNotFoundError
from pulseconfig.service.workflow import (
    EmptyDocumentError,
    ValidationWorkflow,
    WorkflowError,
)

router = APIRouter()


# -- helpers -----------------------------------------------------------------


def _get_workflow(session_id: str, mgr: SessionManager) -> ValidationWorkflow:
    """Resolve session_id to its workflow, raise 404 if missing/expired."""
    try:
        return mgr.get_workflow(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found") from None


def _session_response(info: SessionInfo) -> SessionResponse:
    """Convert a SessionInfo dataclass to a Pydantic response."""
    return SessionResponse(**asdict(info))


def _workflow_response(workflow: ValidationWorkflow) -> WorkflowResponse:
    snap = workflow.snapshot()
    return WorkflowResponse(
        state=snap.state,
        revision=snap.revision,
        annotations=snap.annotations,
        error=snap.error,
        warnings=snap.warnings,
        applied_version=snap.applied_version,
    )


def _refused(exc: WorkflowError) -> HTTPException:
    """Map a refused validate/apply to 400 (empty document) or 409 (state)."""
    status = 400 if isinstance(exc, EmptyDocumentError) else 409
    return HTTPException(status_code=status, detail=str(exc))


# -- session CRUD ------------------------------------------------------------


@router.post("", response_model=SessionResponse, status_code=201)
async def create_session(
    body: SessionCreateRequest | None = None,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> SessionResponse:
    """Open a new editor session."""
    if body is None:
        body = SessionCreateRequest()
    info = mgr.create_session(text=body.text, metadata=body.metadata)
    return _session_response(info)


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> SessionListResponse:
    """List all active sessions."""
    if is_session_list_disabled():
        raise HTTPException(status_code=403, detail="Session listing is disabled")
    sessions = mgr.list_sessions()
    return SessionListResponse(sessions=[_session_response(s) for s in sessions])


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> SessionResponse:
    """Get info for a specific session."""
    try:
        info = mgr.get_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found") from None
    return _session_response(info)


@router.delete("/{session_id}", status_code=204)
async def close_session(
    session_id: str,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> None:
    """Close a session and discard its document."""
    try:
        mgr.close_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found") from None


# -- document ----------------------------------------------------------------


@router.get("/{session_id}/document", response_model=DocumentResponse)
async def get_document(
    session_id: str,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> DocumentResponse:
    workflow = _get_workflow(session_id, mgr)
    return DocumentResponse(text=workflow.text, revision=workflow.revision)


@router.put("/{session_id}/document", response_model=WorkflowResponse)
async def edit_document(
    session_id: str,
    body: DocumentRequest,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> WorkflowResponse:
    """Replace the document text; discards annotations and any pending result."""
    workflow = _get_workflow(session_id, mgr)
    workflow.edit(body.text)
    return _workflow_response(workflow)


@router.post("/{session_id}/document/current", response_model=WorkflowResponse)
async def load_current_document(
    session_id: str,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> WorkflowResponse:
    """Load the server's active configuration into the session."""
    workflow = _get_workflow(session_id, mgr)
    try:
        await workflow.load_current()
    except BackendError as exc:
        raise HTTPException(status_code=502, detail=exc.message) from None
    return _workflow_response(workflow)


# -- workflow ----------------------------------------------------------------


@router.get("/{session_id}/workflow", response_model=WorkflowResponse)
async def get_workflow(
    session_id: str,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> WorkflowResponse:
    return _workflow_response(_get_workflow(session_id, mgr))


@router.post("/{session_id}/validate", response_model=WorkflowResponse)
async def validate_document(
    session_id: str,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> WorkflowResponse:
    """Validate the session's document against the configuration server.

    Validation findings are reported in the response body, not as an error
    status: an invalid document still yields 200 with state ``invalid``.
    """
    workflow = _get_workflow(session_id, mgr)
    try:
        await workflow.validate()
    except WorkflowError as exc:
        raise _refused(exc) from None
    return _workflow_response(workflow)


@router.post("/{session_id}/apply", response_model=WorkflowResponse)
async def apply_document(
    session_id: str,
    body: ApplyRequest | None = None,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> WorkflowResponse:
    """Apply the session's document as the new active configuration."""
    workflow = _get_workflow(session_id, mgr)
    if body is None:
        body = ApplyRequest()
    try:
        await workflow.apply(actor=body.actor, note=body.note)
    except WorkflowError as exc:
        raise _refused(exc) from None
    return _workflow_response(workflow)


@router.post("/{session_id}/restore/{version_id}", response_model=WorkflowResponse)
async def restore_version(
    session_id: str,
    version_id: str,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
    history: VersionHistory = Depends(get_version_history),  # noqa: B008
) -> WorkflowResponse:
    """Load a previously applied version into the session as a new edit."""
    workflow = _get_workflow(session_id, mgr)
    try:
        await history.restore(version_id, workflow)
    except VersionNotFoundError:
        raise HTTPException(
            status_code=404, detail=f"Configuration version '{version_id}' not found"
        ) from None
    except BackendError as exc:
        raise HTTPException(status_code=502, detail=exc.message) from None
    return _workflow_response(workflow)
