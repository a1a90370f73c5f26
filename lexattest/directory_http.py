"""
Remote certificate directory over HTTP.

Endpoints (relative to base_url):
    GET /certificates/{id}  -> certificate object, 404 if unknown
    GET /certificates       -> list of certificate objects, or
                               {"certificates": [...]}

Responses are validated against the same JSON Schema as certificate files.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx

from lexattest.certificates import (
    CERTIFICATE_FILE_SCHEMA,
    CERTIFICATE_SCHEMA,
    Certificate,
    validate_certificates,
)
from lexattest.errors import (
    ERROR_CONNECTION_FAILED,
    ERROR_HTTP,
    ERROR_INVALID_JSON,
    ERROR_TIMEOUT,
    DirectoryError,
)

logger = logging.getLogger(__name__)


class RemoteCertificateDirectory:
    """Certificate directory served by an HTTP endpoint.

    Implements the CertificateDirectory protocol. Every call is a fresh
    request; nothing is cached.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_s: float = 10.0,
        headers: dict[str, str] | None = None,
    ) -> None:
        """
        Args:
            base_url: Base URL of the directory service.
            timeout_s: Request timeout in seconds.
            headers: Additional headers (e.g. Authorization) for every request.
        """
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._headers = headers or {}

    def _get(self, path: str) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            with httpx.Client(timeout=self._timeout_s) as client:
                return client.get(
                    url,
                    headers={"Accept": "application/json", **self._headers},
                )
        except httpx.TimeoutException as e:
            raise DirectoryError(
                f"Directory request timed out after {self._timeout_s}s",
                error_code=ERROR_TIMEOUT,
                details={"url": url, "timeout_s": self._timeout_s},
            ) from e
        except httpx.ConnectError as e:
            raise DirectoryError(
                f"Failed to connect to {url}",
                error_code=ERROR_CONNECTION_FAILED,
                details={"url": url},
            ) from e
        except httpx.HTTPError as e:
            raise DirectoryError(
                f"HTTP error: {e}",
                error_code=ERROR_HTTP,
                details={"url": url, "error": str(e)},
            ) from e

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        if response.status_code >= 400:
            raise DirectoryError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                error_code=ERROR_HTTP,
                details={
                    "url": str(response.request.url),
                    "status_code": response.status_code,
                },
            )
        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise DirectoryError(
                "Directory response was not valid JSON",
                error_code=ERROR_INVALID_JSON,
                details={
                    "url": str(response.request.url),
                    "body_preview": response.text[:200] if response.text else "",
                },
            ) from e

    def lookup(self, certificate_id: str) -> Certificate | None:
        response = self._get(f"/certificates/{quote(certificate_id, safe='')}")
        if response.status_code == 404:
            logger.debug("Remote certificate lookup %s: miss", certificate_id)
            return None
        data = self._json(response)
        validate_certificates(data, CERTIFICATE_SCHEMA)
        return Certificate.from_dict(data)

    def list(self) -> list[Certificate]:
        data = self._json(self._get("/certificates"))
        if isinstance(data, list):
            data = {"certificates": data}
        validate_certificates(data, CERTIFICATE_FILE_SCHEMA)
        return [Certificate.from_dict(item) for item in data["certificates"]]
