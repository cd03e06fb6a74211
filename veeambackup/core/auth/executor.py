"""Authenticated HTTP calls against a Veeam REST API."""
from __future__ import annotations
import json as jsonlib
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import requests

from .exceptions import HTTPStatusError, RequestFailed
from .session import REQUEST_TIMEOUT, SessionManager
from .token import parse_error_body

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiResponse:
    """Successful (2xx) API response."""
    status_code: int
    content: bytes
    url: str = ""
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", "replace")

    def json(self) -> Any:
        if not self.content:
            return None
        return jsonlib.loads(self.content)


class RequestExecutor:
    """Sends requests with a valid bearer token and the service's headers.

    Usage:
        executor = RequestExecutor(session)
        resp = executor.get("/api/v1/backupInfrastructure/repositories")
        repositories = resp.json()["data"]
    """

    def __init__(self, session: SessionManager):
        self.session = session

    @property
    def service(self) -> str:
        return self.session.service

    def build_api_url(self, endpoint: str) -> str:
        """Build the absolute URL of an API endpoint.

        Azure embeds the API version in the path (``/api/v8.1/...``); VBR
        endpoints already carry their ``/api/v1`` prefix.
        """
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"
        if self.session.profile.versioned_path:
            return f"{self.session.base_url}/api/v{self.session.api_version}{endpoint}"
        return f"{self.session.base_url}{endpoint}"

    def request(
        self,
        method: str,
        url: str,
        body: Any = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> ApiResponse:
        """Execute one authenticated request.

        Args:
            method: HTTP method
            url: Absolute URL
            body: Request body; bytes and str are sent as-is, anything else as JSON
            params: Query parameters

        Returns:
            ApiResponse for 2xx responses

        Raises:
            HTTPStatusError: On non-2xx response (carries status and body)
            RequestFailed: On transport error
            AuthenticationFailed: If no valid token could be obtained
        """
        token = self.session.get_valid_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            self.session.profile.version_header: self.session.api_version,
        }

        data = _encode_body(body)
        if data is not None:
            headers["Content-Type"] = "application/json"

        method = method.upper()
        try:
            resp = requests.request(
                method,
                url,
                params=params,
                data=data,
                headers=headers,
                timeout=REQUEST_TIMEOUT,
                verify=self.session.verify_tls,
            )
        except requests.RequestException as e:
            raise RequestFailed(self.service, url, str(e)) from e

        self._handle_error(resp, url)
        logger.debug(f"{self.service} {method} {url} -> {resp.status_code}")
        return ApiResponse(
            status_code=resp.status_code,
            content=resp.content or b"",
            url=url,
            headers=dict(resp.headers or {}),
        )

    def do_request(self, method: str, url: str, body: Any = None) -> bytes:
        """Execute one authenticated request and return the raw response body."""
        return self.request(method, url, body).content

    def get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> ApiResponse:
        return self.request("GET", self.build_api_url(endpoint), params=params)

    def post(self, endpoint: str, body: Any = None) -> ApiResponse:
        return self.request("POST", self.build_api_url(endpoint), body)

    def put(self, endpoint: str, body: Any = None) -> ApiResponse:
        return self.request("PUT", self.build_api_url(endpoint), body)

    def delete(self, endpoint: str) -> ApiResponse:
        return self.request("DELETE", self.build_api_url(endpoint))

    def _handle_error(self, resp: requests.Response, url: str) -> None:
        """Raise HTTPStatusError for any non-2xx response."""
        if 200 <= resp.status_code < 300:
            return
        content = resp.content or b""
        logger.warning(f"{self.service} API error {resp.status_code} for {url}")
        raise HTTPStatusError(resp.status_code, content, url, parse_error_body(content))


def _encode_body(body: Any) -> Optional[bytes]:
    if body is None:
        return None
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    return jsonlib.dumps(body).encode("utf-8")
