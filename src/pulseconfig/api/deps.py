"""Dependency injection for FastAPI: SessionManager and VersionHistory singletons."""

from __future__ import annotations

from pulseconfig.service.history import VersionHistory
from pulseconfig.service.session_manager import SessionManager

_session_manager: SessionManager | None = None
_version_history: VersionHistory | None = None
_disable_session_list: bool = False


def init_session_manager(
    manager: SessionManager, *, disable_session_list: bool = False
) -> None:
    """Set the global SessionManager (called at app startup).

    The version history shares the manager's backend.
    """
    global _session_manager, _version_history, _disable_session_list  # noqa: PLW0603
    _session_manager = manager
    _version_history = VersionHistory(manager.backend)
    _disable_session_list = disable_session_list


def get_session_manager() -> SessionManager:
    """FastAPI ``Depends`` provider for SessionManager."""
    if _session_manager is None:
        raise RuntimeError("SessionManager not initialised, call init_session_manager() first")
    return _session_manager


def get_version_history() -> VersionHistory:
    """FastAPI ``Depends`` provider for VersionHistory."""
    if _version_history is None:
        raise RuntimeError("VersionHistory not initialised, call init_session_manager() first")
    return _version_history


def is_session_list_disabled() -> bool:
    """Return True when the GET /sessions endpoint is suppressed."""
    return _disable_session_list


def reset_session_manager() -> None:
    """Clear the global singletons (for tests)."""
    global _session_manager, _version_history, _disable_session_list  # noqa: PLW0603
    _session_manager = None
    _version_history = None
    _disable_session_list = False
