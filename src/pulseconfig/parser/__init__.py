"""Text-level parsing for pulseconfig: logical paths, resolution, YAML loading."""

from pulseconfig.parser.loader import TrackedLoader, YAMLSafetyError, YAMLSyntaxError
from pulseconfig.parser.path import InvalidPathError, LogicalPath, PathSegment
from pulseconfig.parser.resolver import PathResolver, resolve

__all__ = [
    "InvalidPathError",
    "LogicalPath",
    "PathResolver",
    "PathSegment",
    "TrackedLoader",
    "YAMLSafetyError",
    "YAMLSyntaxError",
    "resolve",
]
