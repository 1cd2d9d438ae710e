"""HTTP client for the monitoring server's configuration API."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from pulseconfig.backend.base import BackendError, ConfigurationBackend, VersionNotFoundError
from pulseconfig.models.configuration import (
    ApplyResult,
    ConfigurationVersion,
    ValidationOutcome,
)
from pulseconfig.models.errors import Finding

logger = logging.getLogger("pulseconfig.backend")

_APPLY_PATH = "/api/configuration/apply"
_VERSIONS_PATH = "/api/configuration/versions"
_CURRENT_PATH = "/api/configuration/current"
_TEXT_HEADERS = {"Content-Type": "text/plain"}

# Statuses the server uses to reject a document it could not validate.
_REJECTED_STATUSES = (400, 422)


def _coerce_finding(item: Any) -> Finding:
    """Best-effort conversion of one entry of an ``errors`` array."""
    if isinstance(item, dict):
        try:
            return Finding.model_validate(item)
        except ValidationError:
            message = item.get("message") or item.get("Message")
            return Finding(message=str(message) if message else str(item))
    return Finding(message=str(item))


def _findings_from(errors: Any) -> list[Finding]:
    if isinstance(errors, list):
        return [_coerce_finding(item) for item in errors]
    if isinstance(errors, dict):
        # ASP.NET ProblemDetails style: {"targets[0].host": ["msg", ...]}
        findings: list[Finding] = []
        for key, messages in errors.items():
            if not isinstance(messages, list):
                messages = [messages]
            findings.extend(Finding(message=str(m), path=str(key) or None) for m in messages)
        return findings
    return []


def unwrap_error(response: httpx.Response) -> tuple[str, list[Finding]]:
    """Extract ``(message, findings)`` from an error response.

    Understands the server's ``{message, errors}`` payload, optionally nested
    under ``details`` or ``detail``. Falls back to the raw response text and
    never raises.
    """
    raw = response.text.strip() or f"HTTP {response.status_code}"
    try:
        payload = response.json()
    except ValueError:
        return raw, []
    try:
        if not isinstance(payload, dict):
            return raw, []
        data = payload.get("details") or payload.get("detail") or payload
        if isinstance(data, str):
            return data, []
        if not isinstance(data, dict):
            return raw, []
        message = data.get("message") or payload.get("message") or data.get("title") or raw
        return str(message), _findings_from(data.get("errors"))
    except (TypeError, ValueError, AttributeError):
        return raw, []


class HttpBackend(ConfigurationBackend):
    """Talks to ``/api/configuration/*`` on the monitoring server."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url, timeout=timeout, headers=headers
        )

    # -- transport -----------------------------------------------------------

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        logger.debug("API request: %s %s", method, url)
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.ConnectError as exc:
            raise BackendError(
                f"Cannot connect to configuration server at {self._base_url}"
            ) from exc
        except httpx.TimeoutException as exc:
            raise BackendError("Request to configuration server timed out") from exc
        except httpx.HTTPError as exc:
            raise BackendError(f"Request failed: {exc}") from exc
        logger.debug("API response: %s %s - %d", method, url, response.status_code)
        return response

    @staticmethod
    def _raise_for(response: httpx.Response) -> None:
        if response.is_success:
            return
        message, findings = unwrap_error(response)
        logger.warning("Configuration server error %d: %s", response.status_code, message)
        raise BackendError(message, findings=findings, status_code=response.status_code)

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise BackendError(
                "Configuration server returned a malformed response",
                status_code=response.status_code,
            ) from exc

    # -- operations ----------------------------------------------------------

    async def validate(self, text: str) -> ValidationOutcome:
        response = await self._request(
            "POST",
            _APPLY_PATH,
            params={"dryRun": "true"},
            content=text.encode("utf-8"),
            headers=_TEXT_HEADERS,
        )
        if response.status_code in _REJECTED_STATUSES:
            message, findings = unwrap_error(response)
            return ValidationOutcome(
                is_valid=False, errors=findings or [Finding(message=message)]
            )
        self._raise_for(response)
        warnings: list[str] = []
        if response.content:
            data = self._json(response)
            if isinstance(data, dict):
                warnings = [str(w) for w in data.get("warnings") or []]
        return ValidationOutcome(is_valid=True, warnings=warnings)

    async def apply(
        self, text: str, *, actor: str | None = None, note: str | None = None
    ) -> ApplyResult:
        headers = dict(_TEXT_HEADERS)
        if actor:
            headers["X-Actor"] = actor
        if note:
            headers["X-Note"] = note
        response = await self._request(
            "POST", _APPLY_PATH, content=text.encode("utf-8"), headers=headers
        )
        self._raise_for(response)
        try:
            result = ApplyResult.model_validate(self._json(response))
        except ValidationError as exc:
            raise BackendError("Configuration server returned a malformed apply result") from exc

        try:
            versions = await self.list_versions()
        except BackendError as exc:
            logger.warning(
                "Applied %s but could not fetch its version: %s", result.config_version_id, exc
            )
            return result
        for version in versions:
            if version.id == result.config_version_id:
                return result.model_copy(update={"version": version})
        return result

    async def list_versions(self) -> list[ConfigurationVersion]:
        response = await self._request("GET", _VERSIONS_PATH)
        self._raise_for(response)
        data = self._json(response)
        if not isinstance(data, list):
            raise BackendError("Configuration server returned a malformed version list")
        try:
            return [ConfigurationVersion.model_validate(item) for item in data]
        except ValidationError as exc:
            raise BackendError("Configuration server returned a malformed version list") from exc

    async def get_version(self, version_id: str) -> str:
        response = await self._request(
            "GET", f"{_VERSIONS_PATH}/{version_id}", headers={"Accept": "text/plain"}
        )
        if response.status_code == 404:
            raise VersionNotFoundError(f"Configuration version '{version_id}' not found")
        self._raise_for(response)
        return response.text

    async def get_current(self) -> str:
        response = await self._request("GET", _CURRENT_PATH, headers={"Accept": "text/plain"})
        self._raise_for(response)
        return response.text

    async def aclose(self) -> None:
        await self._client.aclose()
