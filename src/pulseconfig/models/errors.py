"""Findings, resolved positions and editor annotations."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Width of every annotation span, so zero-width matches stay visible.
ANNOTATION_WIDTH = 10


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ResolvedPosition(BaseModel):
    """A 1-indexed line/column location inside a document."""

    model_config = ConfigDict(frozen=True)

    line: int = Field(default=1, ge=1)
    column: int = Field(default=1, ge=1)


FALLBACK_POSITION = ResolvedPosition(line=1, column=1)


class Finding(BaseModel):
    """A single validation outcome item as reported by the server.

    The location is given by an explicit ``line``/``column``, by a logical
    ``path`` into the document, or not at all.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    message: str
    path: str | None = None
    line: int | None = None
    column: int | None = None
    value: Any = None
    severity: Severity = Severity.ERROR

    @field_validator("path")
    @classmethod
    def _blank_path_is_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v

    @property
    def has_coordinates(self) -> bool:
        return self.line is not None


class Annotation(BaseModel):
    """A renderer-ready diagnostic with a resolved line/column span."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    start_line: int = Field(alias="startLine")
    start_column: int = Field(alias="startColumn")
    end_line: int = Field(alias="endLine")
    end_column: int = Field(alias="endColumn")
    message: str
    severity: Severity = Severity.ERROR

    @classmethod
    def at(cls, position: ResolvedPosition, message: str, severity: Severity) -> Annotation:
        """Build a fixed-width annotation starting at *position*."""
        return cls(
            start_line=position.line,
            start_column=position.column,
            end_line=position.line,
            end_column=position.column + ANNOTATION_WIDTH,
            message=message,
            severity=severity,
        )
