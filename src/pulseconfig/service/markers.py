"""Marker assembly: raw findings + current text -> editor annotations."""

from __future__ import annotations

from collections.abc import Iterable

from pulseconfig.models.errors import FALLBACK_POSITION, Annotation, Finding, ResolvedPosition
from pulseconfig.parser.resolver import PathResolver


class MarkerAssembler:
    """Turns findings into one fixed-width annotation each.

    Location precedence per finding: explicit line/column, then logical path,
    then the top of the document.
    """

    def __init__(self, resolver: PathResolver | None = None) -> None:
        self._resolver = resolver or PathResolver()

    def assemble(self, text: str, findings: Iterable[Finding]) -> list[Annotation]:
        return [
            Annotation.at(self.locate(text, f), f.message, f.severity) for f in findings
        ]

    def locate(self, text: str, finding: Finding) -> ResolvedPosition:
        if finding.has_coordinates:
            return ResolvedPosition(
                line=max(finding.line or 1, 1),
                column=max(finding.column or 1, 1),
            )
        if finding.path is not None:
            return self._resolver.resolve(text, finding.path)
        return FALLBACK_POSITION


_default_assembler = MarkerAssembler()


def assemble(text: str, findings: Iterable[Finding]) -> list[Annotation]:
    """Module-level shortcut for :meth:`MarkerAssembler.assemble`."""
    return _default_assembler.assemble(text, findings)
