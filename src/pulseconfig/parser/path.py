"""Logical paths: dotted/bracketed references into the document hierarchy."""

from __future__ import annotations

import re
from dataclasses import dataclass

# Prefixes emitted by JSON-schema validators ("#/targets/0") and JSONPath ("$.").
_PATH_PREFIXES = ("#/", "$.", "#", "/")

_SEGMENT_RE = re.compile(r"^(?P<name>[^\[\]]+?)(?:\[(?P<index>\d+)\])?$")


class InvalidPathError(ValueError):
    """Raised when a string cannot be parsed as a logical path."""


@dataclass(frozen=True)
class PathSegment:
    """A plain key (``name``) or an indexed list reference (``name[index]``)."""

    name: str
    index: int | None = None

    def __str__(self) -> str:
        return self.name if self.index is None else f"{self.name}[{self.index}]"


@dataclass(frozen=True)
class LogicalPath:
    """An immutable sequence of path segments, e.g. ``targets[2].name``."""

    segments: tuple[PathSegment, ...]

    @classmethod
    def parse(cls, raw: str) -> LogicalPath:
        """Parse ``targets[2].name`` (or ``#/targets[2]/name``) into segments.

        A bare numeric component (``targets/2``) is folded into the preceding
        segment as its index.
        """
        text = raw.strip()
        for prefix in _PATH_PREFIXES:
            if text.startswith(prefix):
                text = text[len(prefix) :]
                break
        if not text:
            raise InvalidPathError(f"Empty logical path: {raw!r}")

        segments: list[PathSegment] = []
        for part in re.split(r"[./]", text):
            part = part.strip()
            if not part:
                raise InvalidPathError(f"Empty segment in logical path: {raw!r}")
            if part.isdecimal():
                if not segments or segments[-1].index is not None:
                    raise InvalidPathError(f"Index without a list key in path: {raw!r}")
                segments[-1] = PathSegment(segments[-1].name, int(part))
                continue
            match = _SEGMENT_RE.match(part)
            if match is None:
                raise InvalidPathError(f"Malformed segment {part!r} in path: {raw!r}")
            index = match.group("index")
            segments.append(
                PathSegment(match.group("name"), int(index) if index is not None else None)
            )
        return cls(tuple(segments))

    def __str__(self) -> str:
        return ".".join(str(s) for s in self.segments)

    def __len__(self) -> int:
        return len(self.segments)
