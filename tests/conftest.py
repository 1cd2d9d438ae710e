"""Shared test fixtures for the pulseconfig editor service."""

from __future__ import annotations

import pytest

from pulseconfig.backend.memory import InMemoryBackend
from pulseconfig.parser.loader import TrackedLoader
from pulseconfig.parser.resolver import PathResolver
from pulseconfig.service.markers import MarkerAssembler
from pulseconfig.service.session_manager import SessionManager


@pytest.fixture
def loader() -> TrackedLoader:
    return TrackedLoader()


@pytest.fixture
def resolver() -> PathResolver:
    return PathResolver()


@pytest.fixture
def assembler() -> MarkerAssembler:
    return MarkerAssembler()


@pytest.fixture
def memory_backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def session_manager(memory_backend: InMemoryBackend) -> SessionManager:
    """SessionManager with long TTL and no cleanup thread (for tests)."""
    return SessionManager(memory_backend, ttl_seconds=3600, cleanup_interval=9999)


# Line numbers referenced by the resolver tests:
#   5 groups, 8 second group item, 10 targets, 11/15/20 target items,
#   14 first host, 18 second host, 24 port
SAMPLE_CONFIG_YAML = """\
version: 1
defaults:
  interval_seconds: 10
  timeout_ms: 1500
groups:
  - id: plant
    name: "Plant"
  - id: office
    name: "Office"
targets:
  - name: "Router"
    group: plant
    type: icmp
    host: 192.168.1.1
  - name: "Web Services"
    group: office
    type: http
    host: www.example.com
    http_path: /health
  - name: "Database"
    group: office
    type: tcp
    host: db.local
    port: 5432
"""

# Structurally invalid: ``targets`` holds a scalar entry at index 1.
INVALID_CONFIG_YAML = """\
version: 1
targets:
  - name: "Router"
    host: 192.168.1.1
  - just-a-string
"""
