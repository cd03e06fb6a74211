"""Pytest shared fixtures for session-layer tests."""
import json
import pathlib
import sys
import threading
import time
from datetime import timedelta
from typing import Optional
from urllib.parse import parse_qs

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from veeambackup.core.auth import AZURE, VBR, CredentialSource, SessionManager, TokenState
from veeambackup.core.auth.token import utcnow


# ─────────────────────────────────────────────────────────────────────────────
# Stub HTTP layer
# ─────────────────────────────────────────────────────────────────────────────
class StubResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload=None, status_code: int = 200, text: Optional[str] = None, headers=None):
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self._payload = payload
        self.status_code = status_code
        self.text = text
        self.content = text.encode("utf-8")
        self.headers = headers or {"Content-Type": "application/json"}

    def json(self):
        if self._payload is not None:
            return self._payload
        return json.loads(self.text)


def token_payload(access: str = "A1", refresh: str = "R1", minutes: int = 60) -> dict:
    """Token endpoint body expiring `minutes` from now."""
    expires = utcnow() + timedelta(minutes=minutes)
    return {
        "access_token": access,
        "token_type": "bearer",
        "refresh_token": refresh,
        "expires_in": minutes * 60,
        ".expires": expires.strftime("%Y-%m-%dT%H:%M:%S.%f0Z"),
        ".issued": utcnow().strftime("%Y-%m-%dT%H:%M:%S.%f0Z"),
        "username": "admin",
    }


def token_state(access: str = "A0", refresh: str = "R0", minutes: float = 60) -> TokenState:
    return TokenState(access, refresh, utcnow() + timedelta(minutes=minutes))


class FakeVeeamServer:
    """Records HTTP calls and replays queued responses.

    Token endpoint POSTs pop from `token_responses`, DELETEs from
    `logout_responses`, everything else from `api_responses`.
    """

    def __init__(self):
        self.calls = []
        self.token_responses = []
        self.logout_responses = []
        self.api_responses = []
        self.token_delay = 0.0
        self._lock = threading.Lock()

    def queue_token(self, payload=None, status_code: int = 200, text: Optional[str] = None):
        self.token_responses.append(StubResponse(payload, status_code, text))

    def queue_api(self, payload=None, status_code: int = 200, text: Optional[str] = None):
        self.api_responses.append(StubResponse(payload, status_code, text))

    def queue_logout(self, status_code: int = 204, text: str = ""):
        self.logout_responses.append(StubResponse(None, status_code, text))

    @property
    def grants(self) -> list:
        return [
            _form(call["kwargs"].get("data")).get("grant_type")
            for call in self.calls
            if call["method"] == "POST" and call["url"].endswith("/api/oauth2/token")
        ]

    @property
    def api_calls(self) -> list:
        return [call for call in self.calls if not call["url"].endswith("/api/oauth2/token")]

    def _record(self, method, url, kwargs, queue):
        with self._lock:
            self.calls.append({"method": method, "url": url, "kwargs": kwargs})
            if not queue:
                raise AssertionError(f"Unexpected {method} {url}")
            response = queue.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def post(self, url, *args, **kwargs):
        if url.endswith("/api/oauth2/token"):
            if self.token_delay:
                time.sleep(self.token_delay)
            return self._record("POST", url, kwargs, self.token_responses)
        return self._record("POST", url, kwargs, self.api_responses)

    def delete(self, url, *args, **kwargs):
        return self._record("DELETE", url, kwargs, self.logout_responses)

    def request(self, method, url, *args, **kwargs):
        if url.endswith("/api/oauth2/token"):
            raise AssertionError("Token endpoint must not be called through requests.request")
        return self._record(method.upper(), url, kwargs, self.api_responses)


def _form(data) -> dict:
    if isinstance(data, dict):
        return data
    if isinstance(data, str):
        return {k: v[0] for k, v in parse_qs(data).items()}
    return {}


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from reaching a real Veeam server.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _unexpected(*args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP call in unit test: {args} {kwargs.get('url', '')}")

    for name in ("get", "post", "put", "delete", "request"):
        monkeypatch.setattr(requests, name, _unexpected)


@pytest.fixture()
def server(monkeypatch):
    """Fake Veeam server wired into requests."""
    fake = FakeVeeamServer()
    monkeypatch.setattr(requests, "post", fake.post)
    monkeypatch.setattr(requests, "delete", fake.delete)
    monkeypatch.setattr(requests, "request", fake.request)
    return fake


# ─────────────────────────────────────────────────────────────────────────────
# Sessions
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def azure_credentials():
    return CredentialSource(hostname="https://vba.example.com/", username="admin", password="secret")


@pytest.fixture()
def vbr_credentials():
    return CredentialSource(hostname="https://vbr.example.com", username="administrator", password="secret")


@pytest.fixture()
def azure_session(azure_credentials):
    return SessionManager(azure_credentials, AZURE)


@pytest.fixture()
def vbr_session(vbr_credentials):
    return SessionManager(vbr_credentials, VBR)


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (requires a running Veeam server)"
    )
