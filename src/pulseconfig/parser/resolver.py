"""Path resolution: maps a logical path onto a line/column in live document text.

The resolver works on raw, possibly invalid text (the user may be mid-edit),
so it never parses YAML. It walks the lines top to bottom keeping a *search
floor* that only advances: each segment is searched for at or below the line
where the previous segment was found, so an earlier duplicate key elsewhere in
the file cannot hijack a later, more specific path.

Any segment that cannot be located makes the whole path resolve to the
fallback position ``{1, 1}``; resolution never raises.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from pulseconfig.models.errors import FALLBACK_POSITION, ResolvedPosition
from pulseconfig.parser.path import InvalidPathError, LogicalPath

# ``key: |``, ``key: >-``, ``- |2`` ... with any trailing comment already removed.
_BLOCK_SCALAR_RE = re.compile(r"(?:^-|:)\s+[|>][0-9+-]*$")

# Characters after which a quote opens a quoted scalar.
_QUOTE_OPENERS = " \t-:[{,"


@dataclass(frozen=True)
class _Line:
    """A structural (non-blank, non-comment, non-scalar-content) line."""

    number: int  # 0-based line index in the document
    indent: int  # column of the first non-whitespace character
    content: str  # stripped text
    is_item: bool  # starts with the ``-`` list marker
    key_indent: int  # indent of the mapping key, past a leading ``- ``
    body: str  # content without a leading list marker


def _split_item(content: str) -> tuple[bool, str, int]:
    """Return ``(is_item, body, marker_width)`` for a stripped line."""
    if content == "-":
        return True, "", 1
    if content.startswith(("- ", "-\t")):
        body = content[1:].lstrip()
        return True, body, len(content) - len(body)
    return False, content, 0


def _strip_comment(content: str) -> str:
    """Drop a trailing ``# comment`` (a ``#`` after whitespace, outside quotes)."""
    quote: str | None = None
    for i, ch in enumerate(content):
        if quote is not None:
            if ch == quote:
                quote = None
        elif ch in "\"'" and (i == 0 or content[i - 1] in _QUOTE_OPENERS):
            quote = ch
        elif ch == "#" and i > 0 and content[i - 1] in " \t":
            return content[:i].rstrip()
    return content


def _scan_lines(text: str) -> list[_Line]:
    """Collect structural lines, skipping blanks, comments and block scalars."""
    lines: list[_Line] = []
    block_parent: int | None = None
    for number, raw in enumerate(text.splitlines()):
        content = raw.strip()
        indent = len(raw) - len(raw.lstrip())
        if block_parent is not None:
            if not content or indent > block_parent:
                continue
            block_parent = None
        if not content or content.startswith("#"):
            continue
        is_item, body, marker_width = _split_item(content)
        key_indent = indent + marker_width
        lines.append(
            _Line(
                number=number,
                indent=indent,
                content=content,
                is_item=is_item,
                key_indent=key_indent,
                body=body,
            )
        )
        structure = _strip_comment(content)
        if _BLOCK_SCALAR_RE.search(structure):
            # ``- |`` scalars belong to the dash; ``[- ]key: |`` to the key.
            bare_item = is_item and not structure.lstrip("- ").rstrip("|>0123456789+- ")
            block_parent = indent if bare_item else key_indent
    return lines


def _key_pattern(name: str) -> str:
    escaped = re.escape(name)
    return rf"(?:{escaped}|\"{escaped}\"|'{escaped}')\s*:(?:\s|$)"


class PathResolver:
    """Resolves :class:`LogicalPath` references against document text."""

    def resolve(self, text: str, path: LogicalPath | str) -> ResolvedPosition:
        """Return the position of *path* in *text*, or ``{1, 1}`` if not found."""
        if isinstance(path, str):
            try:
                path = LogicalPath.parse(path)
            except InvalidPathError:
                return FALLBACK_POSITION
        if not path.segments:
            return FALLBACK_POSITION

        lines = _scan_lines(text)
        floor = 0
        start = 0
        for segment in path.segments:
            key_pos = self._find_key(lines, segment.name, start)
            if key_pos is None:
                return FALLBACK_POSITION
            floor = key_pos
            start = key_pos + 1
            if segment.index is not None:
                item_pos = self._find_item(lines, key_pos, segment.index)
                if item_pos is None:
                    return FALLBACK_POSITION
                floor = item_pos
                # The item line may itself carry the next key (``- name: x``).
                start = item_pos

        line = lines[floor]
        return ResolvedPosition(line=line.number + 1, column=line.indent + 1)

    # -- internal ------------------------------------------------------------

    @staticmethod
    def _find_key(lines: list[_Line], name: str, start: int) -> int | None:
        block_key = re.compile("^" + _key_pattern(name))
        flow_key = re.compile(r"[{,]\s*" + _key_pattern(name))
        for pos in range(start, len(lines)):
            body = lines[pos].body
            if block_key.match(body):
                return pos
            if body.startswith("{") and flow_key.search(body):
                return pos
        return None

    @staticmethod
    def _find_item(lines: list[_Line], key_pos: int, index: int) -> int | None:
        introducer = lines[key_pos].key_indent
        item_indent: int | None = None
        count = -1
        for pos in range(key_pos + 1, len(lines)):
            line = lines[pos]
            if line.indent < introducer:
                break
            if line.indent == introducer and not line.is_item:
                break
            if not line.is_item:
                continue
            if item_indent is None:
                item_indent = line.indent
            if line.indent < item_indent:
                break
            if line.indent > item_indent:
                continue  # nested list inside an item
            count += 1
            if count == index:
                return pos
        return None


_default_resolver = PathResolver()


def resolve(text: str, path: LogicalPath | str) -> ResolvedPosition:
    """Module-level shortcut for :meth:`PathResolver.resolve`."""
    return _default_resolver.resolve(text, path)
