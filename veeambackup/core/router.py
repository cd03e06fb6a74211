"""Routing of resource types to the Veeam service that implements them."""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Union

from .auth import RequestExecutor, SessionManager, UnconfiguredService

# Known services and the provider block that configures each one
SERVICE_BLOCKS: Dict[str, str] = {
    "azure": "azure",
    "vbr": "vbr",
    "aws": "aws",
}

VBR_PORT = "9419"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceClient:
    """Session manager and request executor of one configured service."""
    session: SessionManager
    executor: RequestExecutor

    @classmethod
    def create(cls, session: SessionManager) -> "ServiceClient":
        return cls(session=session, executor=RequestExecutor(session))

    @property
    def service(self) -> str:
        return self.session.service

    def build_api_url(self, endpoint: str) -> str:
        return self.executor.build_api_url(endpoint)

    def do_request(self, method: str, url: str, body=None) -> bytes:
        return self.executor.do_request(method, url, body)


def service_for(resource_type: str) -> Optional[str]:
    """Return the service a resource type belongs to, or None.

    ``_``-delimited tokens are checked first, leftmost wins, so
    ``veeambackup_vbr_azure_cloud_credential`` belongs to vbr. Otherwise the
    earliest substring match wins, the longer name breaking ties.
    """
    for token in resource_type.split("_"):
        if token in SERVICE_BLOCKS:
            return token

    best: Optional[str] = None
    best_pos = -1
    for name in SERVICE_BLOCKS:
        pos = resource_type.find(name)
        if pos < 0:
            continue
        if best is None or pos < best_pos or (pos == best_pos and len(name) > len(best)):
            best, best_pos = name, pos
    return best


class ServiceRouter:
    """Maps resource and data-source types to configured service clients."""

    def __init__(self, clients: Mapping[str, ServiceClient], unsupported: Iterable[str] = ()):
        """Initialize router.

        Args:
            clients: Configured service clients keyed by service name
            unsupported: Services whose block is set but which have no client yet
        """
        self._clients: Dict[str, ServiceClient] = dict(clients)
        self._unsupported = frozenset(unsupported)

    @property
    def services(self) -> list[str]:
        return sorted(self._clients)

    def get(self, service: str) -> Optional[ServiceClient]:
        return self._clients.get(service)

    def resolve(self, resource_type: str) -> ServiceClient:
        """Return the client responsible for a resource type.

        Raises:
            UnconfiguredService: The owning service is unknown or was not configured
        """
        service = service_for(resource_type)
        if service is None:
            raise UnconfiguredService(resource_type)

        client = self._clients.get(service)
        if client is None:
            raise UnconfiguredService(
                resource_type, service, SERVICE_BLOCKS[service], unsupported=service in self._unsupported
            )

        logger.debug(f"Routing {resource_type} to {service}")
        return client


def detect_service_type(hostname: str, port: Union[str, int, None] = None) -> str:
    """Guess which service a hostname/port points at ("vbr", "azure" or "unknown").

    Diagnostics only; never used to pick credentials.
    """
    port = "" if port is None else str(port).strip()
    if port == VBR_PORT or f":{VBR_PORT}" in (hostname or ""):
        return "vbr"
    if port in ("", "80", "443"):
        return "azure"
    return "unknown"
