"""Pydantic domain models for pulseconfig."""

from pulseconfig.models.configuration import (
    ApplyResult,
    ConfigurationVersion,
    ValidationOutcome,
    VersionContent,
    VersionDownload,
)
from pulseconfig.models.errors import (
    ANNOTATION_WIDTH,
    FALLBACK_POSITION,
    Annotation,
    Finding,
    ResolvedPosition,
    Severity,
)

__all__ = [
    "ANNOTATION_WIDTH",
    "FALLBACK_POSITION",
    "Annotation",
    "ApplyResult",
    "ConfigurationVersion",
    "Finding",
    "ResolvedPosition",
    "Severity",
    "ValidationOutcome",
    "VersionContent",
    "VersionDownload",
]
