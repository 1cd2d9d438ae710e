"""Integration tests for the FastAPI REST API."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from pulseconfig.api.app import create_app
from pulseconfig.api.deps import init_session_manager, reset_session_manager
from pulseconfig.backend.memory import InMemoryBackend
from pulseconfig.service.session_manager import SessionManager
from pulseconfig.settings import Settings
from tests.conftest import INVALID_CONFIG_YAML, SAMPLE_CONFIG_YAML


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def app(backend: InMemoryBackend):
    settings = Settings(backend="memory", session_ttl_seconds=3600, session_cleanup_interval=9999)
    app = create_app(settings=settings)
    # Manually init SessionManager (ASGITransport doesn't trigger lifespan)
    mgr = SessionManager(
        backend,
        ttl_seconds=settings.session_ttl_seconds,
        cleanup_interval=settings.session_cleanup_interval,
    )
    init_session_manager(mgr)
    yield app
    reset_session_manager()


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def _session(client: AsyncClient, text: str = SAMPLE_CONFIG_YAML) -> str:
    response = await client.post("/sessions", json={"text": text})
    assert response.status_code == 201
    return response.json()["session_id"]


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealthEndpoint:
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["backend"] == "memory"
        assert "version" in data

    async def test_timing_header(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert float(response.headers["X-Request-Duration-Ms"]) >= 0


# ---------------------------------------------------------------------------
# Session endpoints
# ---------------------------------------------------------------------------


class TestSessionEndpoints:
    async def test_create_session(self, client: AsyncClient) -> None:
        response = await client.post("/sessions")
        assert response.status_code == 201
        data = response.json()
        assert "session_id" in data
        assert data["state"] == "idle"
        assert data["revision"] == 0

    async def test_create_session_with_metadata(self, client: AsyncClient) -> None:
        response = await client.post("/sessions", json={"metadata": {"env": "test"}})
        assert response.status_code == 201
        assert response.json()["metadata"] == {"env": "test"}

    async def test_list_sessions(self, client: AsyncClient) -> None:
        await client.post("/sessions")
        await client.post("/sessions")
        response = await client.get("/sessions")
        assert response.status_code == 200
        assert len(response.json()["sessions"]) == 2

    async def test_list_sessions_disabled(self, client: AsyncClient, backend) -> None:
        init_session_manager(SessionManager(backend), disable_session_list=True)
        response = await client.get("/sessions")
        assert response.status_code == 403

    async def test_get_session(self, client: AsyncClient) -> None:
        sid = await _session(client)
        response = await client.get(f"/sessions/{sid}")
        assert response.status_code == 200
        assert response.json()["session_id"] == sid

    async def test_get_missing_session(self, client: AsyncClient) -> None:
        response = await client.get("/sessions/nonexist123")
        assert response.status_code == 404

    async def test_delete_session(self, client: AsyncClient) -> None:
        sid = await _session(client)
        response = await client.delete(f"/sessions/{sid}")
        assert response.status_code == 204
        response = await client.get(f"/sessions/{sid}")
        assert response.status_code == 404

    async def test_delete_missing_session(self, client: AsyncClient) -> None:
        response = await client.delete("/sessions/nonexist123")
        assert response.status_code == 404


# ---------------------------------------------------------------------------
# Document & workflow
# ---------------------------------------------------------------------------


class TestDocumentFlow:
    async def test_get_document(self, client: AsyncClient) -> None:
        sid = await _session(client)
        response = await client.get(f"/sessions/{sid}/document")
        assert response.status_code == 200
        assert response.json() == {"text": SAMPLE_CONFIG_YAML, "revision": 0}

    async def test_edit_document(self, client: AsyncClient) -> None:
        sid = await _session(client)
        response = await client.put(f"/sessions/{sid}/document", json={"text": "a: 1\n"})
        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "idle"
        assert data["revision"] == 1

    async def test_document_missing_session(self, client: AsyncClient) -> None:
        response = await client.get("/sessions/nonexist123/document")
        assert response.status_code == 404

    async def test_validate_valid(self, client: AsyncClient) -> None:
        sid = await _session(client)
        response = await client.post(f"/sessions/{sid}/validate")
        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "valid"
        assert data["annotations"] == []

    async def test_validate_invalid_returns_annotations(self, client: AsyncClient) -> None:
        sid = await _session(client, INVALID_CONFIG_YAML)
        response = await client.post(f"/sessions/{sid}/validate")
        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "invalid"
        [annotation] = data["annotations"]
        assert annotation["startLine"] == 5
        assert annotation["startColumn"] == 3
        assert annotation["endColumn"] == 13
        assert annotation["severity"] == "error"

    async def test_workflow_endpoint(self, client: AsyncClient) -> None:
        sid = await _session(client, INVALID_CONFIG_YAML)
        await client.post(f"/sessions/{sid}/validate")
        response = await client.get(f"/sessions/{sid}/workflow")
        assert response.status_code == 200
        assert response.json()["state"] == "invalid"

    async def test_edit_clears_annotations(self, client: AsyncClient) -> None:
        sid = await _session(client, INVALID_CONFIG_YAML)
        await client.post(f"/sessions/{sid}/validate")
        response = await client.put(
            f"/sessions/{sid}/document", json={"text": SAMPLE_CONFIG_YAML}
        )
        assert response.json()["annotations"] == []

    async def test_validate_empty_document(self, client: AsyncClient) -> None:
        sid = await _session(client, "   ")
        response = await client.post(f"/sessions/{sid}/validate")
        assert response.status_code == 400

    async def test_apply(self, client: AsyncClient) -> None:
        sid = await _session(client)
        response = await client.post(
            f"/sessions/{sid}/apply", json={"actor": "alice", "note": "initial"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "applied"
        assert data["applied_version"]["actor"] == "alice"
        assert "appliedTs" in data["applied_version"]

    async def test_apply_without_body(self, client: AsyncClient) -> None:
        sid = await _session(client)
        response = await client.post(f"/sessions/{sid}/apply")
        assert response.status_code == 200
        assert response.json()["state"] == "applied"

    async def test_apply_rejected_is_failed(self, client: AsyncClient) -> None:
        sid = await _session(client, INVALID_CONFIG_YAML)
        response = await client.post(f"/sessions/{sid}/apply")
        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "failed"
        assert data["error"] == "Configuration validation failed"
        assert len(data["annotations"]) == 1

    async def test_apply_after_invalid_conflicts(self, client: AsyncClient) -> None:
        sid = await _session(client, INVALID_CONFIG_YAML)
        await client.post(f"/sessions/{sid}/validate")
        response = await client.post(f"/sessions/{sid}/apply")
        assert response.status_code == 409

    async def test_load_current(self, client: AsyncClient) -> None:
        applier = await _session(client)
        await client.post(f"/sessions/{applier}/apply")
        sid = await _session(client, "")
        response = await client.post(f"/sessions/{sid}/document/current")
        assert response.status_code == 200
        document = (await client.get(f"/sessions/{sid}/document")).json()
        assert document["text"] == SAMPLE_CONFIG_YAML

    async def test_load_current_without_versions(self, client: AsyncClient) -> None:
        sid = await _session(client, "")
        response = await client.post(f"/sessions/{sid}/document/current")
        assert response.status_code == 502


# ---------------------------------------------------------------------------
# Versions
# ---------------------------------------------------------------------------


class TestVersions:
    async def test_list_and_download(self, client: AsyncClient) -> None:
        sid = await _session(client)
        await client.post(f"/sessions/{sid}/apply", json={"actor": "alice"})

        response = await client.get("/versions")
        assert response.status_code == 200
        [row] = response.json()["versions"]
        assert row["label"] == "CURRENT"
        assert row["is_current"] is True
        assert row["actor"] == "alice"
        assert row["hash_display"].endswith("...")

        download = await client.get(f"/versions/{row['id']}/download")
        assert download.status_code == 200
        assert download.text == SAMPLE_CONFIG_YAML
        disposition = download.headers["content-disposition"]
        assert disposition.startswith("attachment;")
        assert 'filename="config-' in disposition

    async def test_download_override_name(self, client: AsyncClient) -> None:
        sid = await _session(client)
        applied = (await client.post(f"/sessions/{sid}/apply")).json()
        vid = applied["applied_version"]["id"]
        download = await client.get(f"/versions/{vid}/download", params={"filename": "plant.yaml"})
        assert 'filename="plant.yaml"' in download.headers["content-disposition"]

    async def test_download_non_ascii_name(self, client: AsyncClient) -> None:
        sid = await _session(client)
        applied = (await client.post(f"/sessions/{sid}/apply")).json()
        vid = applied["applied_version"]["id"]
        download = await client.get(f"/versions/{vid}/download", params={"filename": "設定.yaml"})
        assert download.status_code == 200
        disposition = download.headers["content-disposition"]
        assert 'filename="__.yaml"' in disposition
        assert "filename*=UTF-8''%E8%A8%AD%E5%AE%9A.yaml" in disposition

    async def test_download_name_with_quote(self, client: AsyncClient) -> None:
        sid = await _session(client)
        applied = (await client.post(f"/sessions/{sid}/apply")).json()
        vid = applied["applied_version"]["id"]
        download = await client.get(f"/versions/{vid}/download", params={"filename": 'a"b.yaml'})
        assert download.status_code == 200
        disposition = download.headers["content-disposition"]
        assert 'filename="a_b.yaml"' in disposition
        assert "filename*=UTF-8''a%22b.yaml" in disposition

    async def test_download_missing(self, client: AsyncClient) -> None:
        response = await client.get("/versions/missing/download")
        assert response.status_code == 404

    async def test_restore(self, client: AsyncClient) -> None:
        sid = await _session(client)
        applied = (await client.post(f"/sessions/{sid}/apply")).json()
        vid = applied["applied_version"]["id"]

        other = await _session(client, "targets: []\n")
        response = await client.post(f"/sessions/{other}/restore/{vid}")
        assert response.status_code == 200
        assert response.json()["state"] == "idle"
        document = (await client.get(f"/sessions/{other}/document")).json()
        assert document == {"text": SAMPLE_CONFIG_YAML, "revision": 1}

    async def test_restore_missing_version(self, client: AsyncClient) -> None:
        sid = await _session(client)
        response = await client.post(f"/sessions/{sid}/restore/missing")
        assert response.status_code == 404


# ---------------------------------------------------------------------------
# Stateless markers
# ---------------------------------------------------------------------------


class TestMarkers:
    async def test_assemble(self, client: AsyncClient) -> None:
        response = await client.post(
            "/markers",
            json={
                "text": SAMPLE_CONFIG_YAML,
                "findings": [
                    {"message": "bad host", "path": "targets[1].host"},
                    {"message": "syntax", "line": 2, "column": 3},
                    {"message": "somewhere"},
                ],
            },
        )
        assert response.status_code == 200
        annotations = response.json()["annotations"]
        assert [(a["startLine"], a["startColumn"]) for a in annotations] == [
            (18, 5),
            (2, 3),
            (1, 1),
        ]

    async def test_resolve(self, client: AsyncClient) -> None:
        response = await client.post(
            "/markers/resolve", json={"text": SAMPLE_CONFIG_YAML, "path": "targets[2].port"}
        )
        assert response.status_code == 200
        assert response.json()["position"] == {"line": 24, "column": 5}

    async def test_resolve_unknown_path(self, client: AsyncClient) -> None:
        response = await client.post(
            "/markers/resolve", json={"text": SAMPLE_CONFIG_YAML, "path": "nowhere[3]"}
        )
        assert response.json()["position"] == {"line": 1, "column": 1}
