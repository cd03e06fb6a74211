"""OAuth2 session management for one Veeam service.

Handles the Password grant, the Refresh_token grant, token caching and logout.
"""
from __future__ import annotations
import logging
import threading
from typing import Dict

import requests

from .credentials import CredentialSource, ServiceProfile
from .exceptions import AuthenticationFailed, NoRefreshToken, RequestFailed, VeeamError
from .token import TokenState, parse_error_body, parse_token_response

REQUEST_TIMEOUT = 30

logger = logging.getLogger(__name__)


class SessionManager:
    """Keeps a valid access token for one Veeam service.

    Features:
    - Password grant authentication
    - Refresh_token grant renewal 5 minutes ahead of expiry
    - Fallback to a full authentication when the refresh is rejected
    - Renewals serialized per session; valid tokens are served without locking

    Usage:
        session = SessionManager(CredentialSource("https://vba.local", "admin", "pwd"), AZURE)
        session.authenticate()
        token = session.get_valid_token()
    """

    def __init__(self, credentials: CredentialSource, profile: ServiceProfile):
        """Initialize session manager.

        Args:
            credentials: Connection settings for the service
            profile: Header and URL conventions of the service
        """
        self.credentials = credentials
        self.profile = profile
        self.api_version = credentials.resolved_api_version(profile)
        self.base_url = credentials.base_url(profile)
        self.token_url = credentials.token_url(profile)
        self._state = TokenState()
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"SessionManager(service={self.service!r}, base_url={self.base_url!r})"

    @property
    def service(self) -> str:
        return self.profile.name

    @property
    def token_state(self) -> TokenState:
        """Current token snapshot. Replaced wholesale, never mutated."""
        return self._state

    @property
    def verify_tls(self) -> bool:
        return self.credentials.verify_tls

    def authenticate(self) -> str:
        """Authenticate with username/password and store the new tokens.

        Returns:
            Access token

        Raises:
            AuthenticationFailed: Credentials rejected or token response unusable
            RequestFailed: Token endpoint unreachable
        """
        with self._lock:
            return self._authenticate()

    def refresh(self) -> str:
        """Renew the tokens with the stored refresh token.

        Returns:
            Access token

        Raises:
            NoRefreshToken: No refresh token stored
            AuthenticationFailed: Refresh rejected or token response unusable
            RequestFailed: Token endpoint unreachable
        """
        with self._lock:
            return self._refresh()

    def get_valid_token(self) -> str:
        """Return an access token valid for at least the next 5 minutes.

        Tries one refresh, then one full authentication. Only a failed
        authentication is raised; refresh errors are logged and recovered.
        """
        state = self._state
        if state.is_fresh():
            return state.access_token

        with self._lock:
            # Another caller may have renewed while we waited
            state = self._state
            if state.is_fresh():
                return state.access_token

            if state.has_refresh_token:
                try:
                    return self._refresh()
                except VeeamError as e:
                    logger.warning(f"{self.service} token refresh failed, re-authenticating: {e}")

            return self._authenticate()

    def logout(self) -> bool:
        """Revoke the session on the server and forget the tokens.

        Failures are logged, never raised.

        Returns:
            True if the server confirmed the logout (or there was nothing to revoke)
        """
        with self._lock:
            state = self._state
            if not state.access_token:
                return True

            self._state = TokenState()
            headers = {"Authorization": f"Bearer {state.access_token}"}
            if self.profile.version_on_token_call:
                headers[self.profile.version_header] = self.api_version

            try:
                resp = requests.delete(
                    self.token_url, headers=headers, timeout=REQUEST_TIMEOUT, verify=self.verify_tls
                )
            except requests.RequestException as e:
                logger.warning(f"{self.service} logout request failed: {e}")
                return False

            if resp.status_code != 204:
                logger.warning(f"{self.service} logout failed with status {resp.status_code}: {resp.text}")
                return False

            logger.info(f"{self.service} session closed")
            return True

    def is_authenticated(self) -> bool:
        """True iff a token is held and has not expired (no safety margin)."""
        return self._state.is_valid()

    def _authenticate(self) -> str:
        data = {
            "grant_type": "Password",
            "username": self.credentials.username,
            "password": self.credentials.password,
        }
        self._state = self._request_token(data)
        logger.info(f"Authenticated with {self.service} at {self.base_url}")
        return self._state.access_token

    def _refresh(self) -> str:
        state = self._state
        if not state.has_refresh_token:
            raise NoRefreshToken(self.service)

        data = {
            "grant_type": "Refresh_token",
            "refresh_token": state.refresh_token,
        }
        self._state = self._request_token(data)
        logger.debug(f"Refreshed {self.service} access token")
        return self._state.access_token

    def _token_headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }
        if self.profile.version_on_token_call:
            headers[self.profile.version_header] = self.api_version
        return headers

    def _request_token(self, data: Dict[str, str]) -> TokenState:
        """POST a grant to the token endpoint and parse the response."""
        try:
            resp = requests.post(
                self.token_url,
                data=data,
                headers=self._token_headers(),
                timeout=REQUEST_TIMEOUT,
                verify=self.verify_tls,
            )
        except requests.RequestException as e:
            raise RequestFailed(self.service, self.token_url, str(e)) from e

        if resp.status_code != 200:
            error = parse_error_body(resp.text)
            if error is not None and (error.title or error.detail):
                raise AuthenticationFailed(
                    self.service, resp.status_code, title=error.title, detail=error.detail, body=resp.text
                )
            raise AuthenticationFailed(self.service, resp.status_code, body=resp.text)

        try:
            return parse_token_response(resp.json())
        except (ValueError, TypeError, AttributeError) as e:
            raise AuthenticationFailed(
                self.service, resp.status_code, body=resp.text, reason=f"failed to parse token response: {e}"
            ) from e
