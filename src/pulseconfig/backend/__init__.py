"""Configuration backends: the server-side validate/apply/version operations."""

from __future__ import annotations

from pulseconfig.backend.base import BackendError, ConfigurationBackend, VersionNotFoundError
from pulseconfig.backend.http import HttpBackend
from pulseconfig.backend.memory import InMemoryBackend
from pulseconfig.settings import Settings

__all__ = [
    "BackendError",
    "ConfigurationBackend",
    "HttpBackend",
    "InMemoryBackend",
    "VersionNotFoundError",
    "create_backend",
]


def create_backend(settings: Settings) -> ConfigurationBackend:
    """Pick the backend implementation once, from settings."""
    if settings.backend == "memory":
        return InMemoryBackend()
    return HttpBackend(settings.backend_url, timeout=settings.backend_timeout_seconds)
