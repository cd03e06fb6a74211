"""Per-service credentials and URL/header conventions."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import urlsplit, urlunsplit

TOKEN_PATH = "/api/oauth2/token"


@dataclass(frozen=True)
class ServiceProfile:
    """How one Veeam service expects to be addressed.

    Attributes:
        name: Service name used for routing ("azure", "vbr")
        block: Provider configuration block that enables the service
        default_api_version: API version used when none is configured
        default_port: Port used when none is configured (None keeps the URL as given)
        version_header: Header carrying the API version on data calls
        version_on_token_call: Whether the token endpoint also needs the version header
        versioned_path: Whether data URLs embed the version (``/api/v{version}``)
        force_https: Strip any scheme from the hostname and always use https
    """
    name: str
    block: str
    default_api_version: str
    default_port: Optional[int]
    version_header: str
    version_on_token_call: bool
    versioned_path: bool
    force_https: bool


AZURE = ServiceProfile(
    name="azure",
    block="azure",
    default_api_version="8.1",
    default_port=None,
    version_header="X-API-Version",
    version_on_token_call=False,
    versioned_path=True,
    force_https=False,
)

VBR = ServiceProfile(
    name="vbr",
    block="vbr",
    default_api_version="1.3-rev1",
    default_port=9419,
    version_header="x-api-version",
    version_on_token_call=True,
    versioned_path=False,
    force_https=True,
)

PROFILES: Dict[str, ServiceProfile] = {AZURE.name: AZURE, VBR.name: VBR}


@dataclass(frozen=True)
class CredentialSource:
    """Static connection settings for one service, fixed for the process lifetime."""
    hostname: str
    username: str
    password: str = field(repr=False)
    port: Optional[int] = None
    api_version: str = ""
    verify_tls: bool = True

    def resolved_api_version(self, profile: ServiceProfile) -> str:
        return self.api_version or profile.default_api_version

    def base_url(self, profile: ServiceProfile) -> str:
        """Scheme, host, port and any base path of the service, without a trailing slash."""
        url = self.hostname.strip().rstrip("/")
        if "://" not in url:
            url = f"https://{url}"
        parts = urlsplit(url)
        scheme = "https" if profile.force_https else parts.scheme
        netloc = parts.netloc
        port = self.port or profile.default_port

        # The port belongs to the netloc, ahead of any base path
        if port and not _has_port(netloc):
            netloc = f"{netloc}:{port}"
        return urlunsplit((scheme, netloc, parts.path, "", ""))

    def token_url(self, profile: ServiceProfile) -> str:
        return f"{self.base_url(profile)}{TOKEN_PATH}"


def _has_port(host: str) -> bool:
    # Bracketed IPv6 literals contain colons of their own
    if host.startswith("["):
        return "]:" in host
    return ":" in host
