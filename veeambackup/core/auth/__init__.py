"""Veeam REST session layer.

Architecture:
- token.py: Token state and token/error payload parsing
- credentials.py: Connection settings and per-service conventions
- session.py: Password/Refresh_token grants and token caching
- executor.py: Authenticated HTTP calls with uniform error handling
- exceptions.py: Typed exceptions for error handling

Usage:
    from veeambackup.core.auth import AZURE, CredentialSource, RequestExecutor, SessionManager

    session = SessionManager(CredentialSource("https://vba.local", "admin", "password"), AZURE)
    session.authenticate()

    executor = RequestExecutor(session)
    accounts = executor.get("/accounts/azure/service").json()
"""
from .token import (
    EXPIRY_MARGIN,
    ErrorResponse,
    TokenState,
    parse_error_body,
    parse_timestamp,
    parse_token_response,
)
from .credentials import (
    AZURE,
    PROFILES,
    TOKEN_PATH,
    VBR,
    CredentialSource,
    ServiceProfile,
)
from .exceptions import (
    AuthenticationFailed,
    HTTPStatusError,
    NoRefreshToken,
    RequestFailed,
    UnconfiguredService,
    VeeamError,
)
from .session import REQUEST_TIMEOUT, SessionManager
from .executor import ApiResponse, RequestExecutor

__all__ = [
    # Tokens
    "EXPIRY_MARGIN",
    "ErrorResponse",
    "TokenState",
    "parse_error_body",
    "parse_timestamp",
    "parse_token_response",

    # Credentials
    "AZURE",
    "PROFILES",
    "TOKEN_PATH",
    "VBR",
    "CredentialSource",
    "ServiceProfile",

    # Exceptions
    "AuthenticationFailed",
    "HTTPStatusError",
    "NoRefreshToken",
    "RequestFailed",
    "UnconfiguredService",
    "VeeamError",

    # Session and requests
    "REQUEST_TIMEOUT",
    "SessionManager",
    "ApiResponse",
    "RequestExecutor",
]
