"""Veeam session-layer exceptions for error handling."""
from __future__ import annotations
from typing import Optional

from .token import ErrorResponse


class VeeamError(Exception):
    """Base exception for all Veeam session operations."""
    pass


class AuthenticationFailed(VeeamError):
    """Token endpoint rejected the credentials or returned an unusable token.

    Attributes:
        service: Service name ("azure", "vbr")
        status_code: HTTP status code (None when the response was unusable)
        title: Error title from a structured error body
        detail: Error detail from a structured error body
        body: Raw response body text
    """

    def __init__(
        self,
        service: str,
        status_code: Optional[int] = None,
        title: str = "",
        detail: str = "",
        body: str = "",
        reason: str = "",
    ):
        self.service = service
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.body = body
        if reason:
            message = f"{service} authentication failed: {reason}"
        elif title or detail:
            message = f"{service} authentication failed: {title} ({detail})"
        else:
            message = f"{service} authentication failed with status {status_code}: {body}"
        super().__init__(message)


class NoRefreshToken(VeeamError):
    """Refresh requested but the session holds no refresh token."""

    def __init__(self, service: str):
        self.service = service
        super().__init__(f"no {service} refresh token available")


class RequestFailed(VeeamError):
    """Transport-level failure (connection, TLS, timeout).

    Attributes:
        service: Service name
        url: Target URL
        reason: Underlying error text
    """

    def __init__(self, service: str, url: str, reason: str):
        self.service = service
        self.url = url
        self.reason = reason
        super().__init__(f"{service} request to {url} failed: {reason}")


class HTTPStatusError(VeeamError):
    """Non-2xx response from a Veeam REST API.

    Attributes:
        status_code: HTTP status code
        body: Raw response bytes
        url: Request URL
        error: Decoded error body, if the service returned one
    """

    def __init__(self, status_code: int, body: bytes, url: str, error: Optional[ErrorResponse] = None):
        self.status_code = status_code
        self.body = body
        self.url = url
        self.error = error
        if error is not None and (error.title or error.detail):
            message = f"[{status_code}] {url}: {error.title} ({error.detail})"
        else:
            message = f"[{status_code}] {url}: API request failed with status {status_code}"
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500


class UnconfiguredService(VeeamError):
    """No configured service handles a resource type.

    Attributes:
        resource_type: Resource or data-source type name
        service: Service the resource belongs to (None if unknown)
        block: Provider configuration block to add (None if unknown)
        unsupported: The block is set but the service has no client yet
    """

    def __init__(
        self,
        resource_type: str,
        service: Optional[str] = None,
        block: Optional[str] = None,
        unsupported: bool = False,
    ):
        self.resource_type = resource_type
        self.service = service
        self.block = block
        self.unsupported = unsupported
        if unsupported:
            message = f"{service} service not supported yet; cannot use {resource_type}"
        elif block:
            message = f"{service} client not configured; set provider \"{block}\" block to use {resource_type}"
        else:
            message = f"unknown resource type: {resource_type}"
        super().__init__(message)
