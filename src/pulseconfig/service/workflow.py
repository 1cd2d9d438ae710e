"""Validate/apply/edit state machine for one open configuration document.

Each validate or apply call is tagged with the document revision it was
issued against. When the response arrives after the document has been edited,
it describes text the user no longer has, so it is dropped without touching
state or annotations.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol

from pulseconfig.backend.base import BackendError, ConfigurationBackend
from pulseconfig.models.configuration import ConfigurationVersion
from pulseconfig.models.errors import Annotation, Finding
from pulseconfig.service.markers import MarkerAssembler

logger = logging.getLogger("pulseconfig.workflow")


class WorkflowState(StrEnum):
    IDLE = "idle"
    VALIDATING = "validating"
    VALID = "valid"
    INVALID = "invalid"
    APPLYING = "applying"
    APPLIED = "applied"
    FAILED = "failed"


_BUSY_STATES = frozenset({WorkflowState.VALIDATING, WorkflowState.APPLYING})
_APPLY_FROM = frozenset({WorkflowState.IDLE, WorkflowState.VALID})


class WorkflowError(Exception):
    """Base class for requests the workflow refuses to send."""


class RequestInFlightError(WorkflowError):
    """A validate or apply call is already pending for this document."""


class InvalidTransitionError(WorkflowError):
    """The requested operation is not allowed from the current state."""


class EmptyDocumentError(WorkflowError):
    """The document has no content to validate or apply."""


class AnnotationSurface(Protocol):
    """An editor component able to display annotations."""

    def set_annotations(self, annotations: list[Annotation]) -> None: ...

    def clear_annotations(self) -> None: ...


class NullSurface:
    """Surface that displays nothing; the workflow still keeps annotations."""

    def set_annotations(self, annotations: list[Annotation]) -> None:
        pass

    def clear_annotations(self) -> None:
        pass


@dataclass
class Document:
    """Document text plus a revision counter bumped on every edit."""

    text: str = ""
    revision: int = 0


@dataclass
class WorkflowSnapshot:
    """Point-in-time view of a workflow (returned to API callers)."""

    state: WorkflowState
    revision: int
    annotations: list[Annotation]
    error: str | None
    warnings: list[str] = field(default_factory=list)
    applied_version: ConfigurationVersion | None = None


class ValidationWorkflow:
    """Owns the document, its annotations and the validate/apply state."""

    def __init__(
        self,
        backend: ConfigurationBackend,
        *,
        text: str = "",
        surface: AnnotationSurface | None = None,
        assembler: MarkerAssembler | None = None,
    ) -> None:
        self._backend = backend
        self._surface: AnnotationSurface = surface or NullSurface()
        self._assembler = assembler or MarkerAssembler()
        self._document = Document(text=text)
        self._state = WorkflowState.IDLE
        self._annotations: list[Annotation] = []
        self._error: str | None = None
        self._warnings: list[str] = []
        self._applied_version: ConfigurationVersion | None = None

    # -- read access ---------------------------------------------------------

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def text(self) -> str:
        return self._document.text

    @property
    def revision(self) -> int:
        return self._document.revision

    @property
    def annotations(self) -> list[Annotation]:
        return list(self._annotations)

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def applied_version(self) -> ConfigurationVersion | None:
        return self._applied_version

    def snapshot(self) -> WorkflowSnapshot:
        return WorkflowSnapshot(
            state=self._state,
            revision=self._document.revision,
            annotations=list(self._annotations),
            error=self._error,
            warnings=list(self._warnings),
            applied_version=self._applied_version,
        )

    # -- edits ---------------------------------------------------------------

    def edit(self, text: str) -> None:
        """Replace the document text. Always returns the workflow to Idle."""
        self._document.text = text
        self._document.revision += 1
        self._state = WorkflowState.IDLE
        self._error = None
        self._warnings = []
        self._applied_version = None
        self._set_annotations([])

    async def load_current(self) -> None:
        """Load the server's active configuration into the editor."""
        self.edit(await self._backend.get_current())

    # -- validate / apply ----------------------------------------------------

    async def validate(self) -> WorkflowState:
        """Validate the current text and return the resulting state."""
        generation = self._begin(WorkflowState.VALIDATING)
        text = self._document.text
        try:
            outcome = await self._backend.validate(text)
        except asyncio.CancelledError:
            self._cancelled(generation, "validate")
            raise
        except BackendError as exc:
            if self._is_stale(generation, "validate"):
                return self._state
            self._fail(exc.message)
            return self._state
        except Exception as exc:
            if self._is_stale(generation, "validate"):
                return self._state
            logger.exception("Unexpected error while validating revision %d", generation)
            self._fail(str(exc) or exc.__class__.__name__)
            return self._state

        if self._is_stale(generation, "validate"):
            return self._state
        self._warnings = list(outcome.warnings)
        findings = list(outcome.errors)
        if not findings and not outcome.is_valid:
            findings = [Finding(message="Validation failed")]
        if findings:
            self._state = WorkflowState.INVALID
            self._set_annotations(self._assembler.assemble(text, findings))
        else:
            self._state = WorkflowState.VALID
            self._set_annotations([])
        logger.info(
            "Revision %d validated: %s (%d findings)", generation, self._state, len(findings)
        )
        return self._state

    async def apply(self, *, actor: str | None = None, note: str | None = None) -> WorkflowState:
        """Apply the current text and return the resulting state."""
        generation = self._begin(WorkflowState.APPLYING, allowed=_APPLY_FROM)
        text = self._document.text
        try:
            result = await self._backend.apply(text, actor=actor, note=note)
        except asyncio.CancelledError:
            self._cancelled(generation, "apply")
            raise
        except BackendError as exc:
            if self._is_stale(generation, "apply"):
                return self._state
            self._fail(exc.message, text=text, findings=exc.findings)
            return self._state
        except Exception as exc:
            if self._is_stale(generation, "apply"):
                return self._state
            logger.exception("Unexpected error while applying revision %d", generation)
            self._fail(str(exc) or exc.__class__.__name__)
            return self._state

        if self._is_stale(generation, "apply"):
            return self._state
        self._state = WorkflowState.APPLIED
        self._warnings = list(result.warnings)
        self._applied_version = result.version
        self._set_annotations([])
        logger.info("Revision %d applied as version %s", generation, result.config_version_id)
        return self._state

    # -- internal ------------------------------------------------------------

    def _begin(
        self,
        target: WorkflowState,
        allowed: frozenset[WorkflowState] | None = None,
    ) -> int:
        """Check the request may be sent, enter *target* and return its generation."""
        if self._state in _BUSY_STATES:
            raise RequestInFlightError(
                f"Cannot start {target.value}: a request is already {self._state.value}"
            )
        if allowed is not None and self._state not in allowed:
            raise InvalidTransitionError(f"Cannot apply a document in state '{self._state.value}'")
        if not self._document.text.strip():
            raise EmptyDocumentError("Configuration content is empty")
        self._state = target
        self._error = None
        return self._document.revision

    def _is_stale(self, generation: int, operation: str) -> bool:
        if generation == self._document.revision:
            return False
        logger.debug(
            "Discarding %s response for revision %d (document is at revision %d)",
            operation,
            generation,
            self._document.revision,
        )
        return True

    def _cancelled(self, generation: int, operation: str) -> None:
        """A pending request was cancelled; release the busy state it holds."""
        if not self._is_stale(generation, operation):
            self._fail(f"{operation.capitalize()} request was cancelled")

    def _fail(
        self,
        message: str,
        *,
        text: str = "",
        findings: list[Finding] | None = None,
    ) -> None:
        self._state = WorkflowState.FAILED
        self._error = message
        logger.warning("Request failed: %s", message)
        if findings:
            self._set_annotations(self._assembler.assemble(text, findings))
        else:
            self._set_annotations([])

    def _set_annotations(self, annotations: list[Annotation]) -> None:
        self._annotations = annotations
        if annotations:
            self._surface.set_annotations(list(annotations))
        else:
            self._surface.clear_annotations()
