"""YAML loader with safety limits and positioned syntax errors."""

from __future__ import annotations

import re
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.error import MarkedYAMLError, YAMLError

# ---------------------------------------------------------------------------
# Safety limits
# ---------------------------------------------------------------------------

_MAX_DOCUMENT_SIZE = 5_000_000  # 5M characters
_MAX_NODE_COUNT = 50_000
_MAX_DEPTH = 20

# Regex to detect YAML anchor definitions (&name).
# Matches & at line start or after whitespace/sequence indicators, followed by
# an anchor name, but NOT inside quoted strings (good-enough heuristic).
_ANCHOR_RE = re.compile(r"(?:^|[\s\-:])&(\w+)", re.MULTILINE)


class YAMLSafetyError(Exception):
    """Raised when YAML input violates safety constraints.

    Distinct from syntax errors: these indicate potentially malicious input
    (e.g., billion-laughs anchors, excessive nesting, oversized documents).
    """


class YAMLSyntaxError(Exception):
    """Raised when the text is not well-formed YAML.

    ``line`` and ``column`` are 1-indexed, or ``None`` when the parser did not
    report a location.
    """

    def __init__(self, message: str, line: int | None = None, column: int | None = None) -> None:
        self.line = line
        self.column = column
        super().__init__(message)


class TrackedLoader:
    """Loads configuration YAML into plain Python values.

    Uses ruamel.yaml, whose errors carry the mark where parsing failed.
    """

    def __init__(self) -> None:
        self._yaml = YAML()
        self._yaml.preserve_quotes = True

    # -- safety checks -------------------------------------------------------

    @staticmethod
    def _check_yaml_safety(content: str) -> None:
        """Pre-parse safety checks on raw YAML text.

        Raises ``YAMLSafetyError`` if the content contains anchors/aliases
        (not used in monitoring configuration) or exceeds the maximum size.
        """
        if len(content) > _MAX_DOCUMENT_SIZE:
            raise YAMLSafetyError(
                f"YAML document exceeds maximum size "
                f"({len(content):,} chars > {_MAX_DOCUMENT_SIZE:,} limit)"
            )
        if _ANCHOR_RE.search(content):
            raise YAMLSafetyError("YAML anchors/aliases are not supported in configuration files")

    @staticmethod
    def _check_node_count(data: Any, limit: int = _MAX_NODE_COUNT) -> None:
        """Post-parse defense-in-depth: reject too many nodes or too deep nesting."""
        count = 0
        stack: list[tuple[Any, int]] = [(data, 0)]
        while stack:
            node, depth = stack.pop()
            count += 1
            if count > limit:
                raise YAMLSafetyError(f"YAML document exceeds maximum node count ({limit:,})")
            if depth > _MAX_DEPTH:
                raise YAMLSafetyError(f"YAML document exceeds maximum nesting depth ({_MAX_DEPTH})")
            if isinstance(node, dict):
                stack.extend((child, depth + 1) for child in node.values())
            elif isinstance(node, list):
                stack.extend((child, depth + 1) for child in node)

    # -- public loading API --------------------------------------------------

    def load_string(self, content: str) -> Any:
        """Parse YAML text and return plain dicts/lists/scalars.

        Raises ``YAMLSafetyError`` or ``YAMLSyntaxError``. An empty document
        loads as ``None``.
        """
        self._check_yaml_safety(content)
        try:
            data = self._yaml.load(content)
        except MarkedYAMLError as exc:
            mark = exc.problem_mark or exc.context_mark
            problem = exc.problem or exc.context or str(exc)
            if mark is None:
                raise YAMLSyntaxError(f"Invalid YAML: {problem}") from exc
            raise YAMLSyntaxError(
                f"Invalid YAML: {problem}", line=mark.line + 1, column=mark.column + 1
            ) from exc
        except YAMLError as exc:
            raise YAMLSyntaxError(f"Invalid YAML: {exc}") from exc
        if data is None:
            return None
        self._check_node_count(data)
        return self._to_plain_value(data)

    def _to_plain_value(self, data: Any) -> Any:
        """Convert ruamel.yaml CommentedMap/Seq to plain Python dict/list."""
        if isinstance(data, CommentedMap | dict):
            return {str(k): self._to_plain_value(v) for k, v in data.items()}
        if isinstance(data, CommentedSeq | list):
            return [self._to_plain_value(item) for item in data]
        return data
