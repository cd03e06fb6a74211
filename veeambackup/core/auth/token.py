"""Token state and OAuth2 token/error payload parsing."""
from __future__ import annotations
import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

# Renew this long before the server-side expiry
EXPIRY_MARGIN = timedelta(minutes=5)

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)
_FRACTION_RE = re.compile(r"\.(\d+)")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenState:
    """Access/refresh token pair with its absolute expiry.

    An empty access token means the session never authenticated (or logged out).
    """
    access_token: str = ""
    refresh_token: str = ""
    expires_at: datetime = _EPOCH

    @property
    def has_refresh_token(self) -> bool:
        return bool(self.refresh_token)

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """True iff a token exists and has not expired yet."""
        now = now or utcnow()
        return bool(self.access_token) and now < self.expires_at

    def is_fresh(self, now: Optional[datetime] = None) -> bool:
        """True iff the token stays valid for at least EXPIRY_MARGIN."""
        now = now or utcnow()
        return bool(self.access_token) and now + EXPIRY_MARGIN < self.expires_at


@dataclass(frozen=True)
class ErrorResponse:
    """Structured error body returned by both Veeam services."""
    detail: str = ""
    title: str = ""
    status: Optional[int] = None
    type: str = ""
    trace_id: str = ""
    errors: Dict[str, Any] = field(default_factory=dict)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp as emitted by the Veeam services.

    Handles a trailing ``Z`` and the 7-digit fractional seconds of .NET.
    Naive timestamps are taken as UTC.

    Raises:
        ValueError: If the value is not a timestamp
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_token_response(payload: Dict[str, Any], now: Optional[datetime] = None) -> TokenState:
    """Build a TokenState from a token endpoint response.

    Uses ``.expires`` when present, else ``expires_in`` seconds from now.

    Raises:
        ValueError: If the access token or the expiry is missing or malformed
    """
    access_token = payload.get("access_token") or ""
    if not access_token:
        raise ValueError("token response has no access_token")

    expires = payload.get(".expires")
    if expires:
        expires_at = parse_timestamp(str(expires))
    elif payload.get("expires_in") is not None:
        expires_at = (now or utcnow()) + timedelta(seconds=int(payload["expires_in"]))
    else:
        raise ValueError("token response has no expiry")

    return TokenState(
        access_token=access_token,
        refresh_token=payload.get("refresh_token") or "",
        expires_at=expires_at,
    )


def parse_error_body(body: bytes | str) -> Optional[ErrorResponse]:
    """Decode a structured error body, or None if the body is not one."""
    if isinstance(body, bytes):
        body = body.decode("utf-8", "replace")
    if not body:
        return None
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None

    status = data.get("status")
    errors = data.get("errors")
    return ErrorResponse(
        detail=str(data.get("detail") or ""),
        title=str(data.get("title") or ""),
        status=status if isinstance(status, int) else None,
        type=str(data.get("type") or ""),
        trace_id=str(data.get("traceId") or ""),
        errors=errors if isinstance(errors, dict) else {},
    )
