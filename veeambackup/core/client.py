"""Provider façade: one client object giving access to every configured Veeam service."""
from __future__ import annotations
import logging
from typing import Any, Dict, Iterable, Optional

from veeambackup.config.settings import ProviderConfig
from veeambackup.core.auth import (
    AZURE,
    PROFILES,
    VBR,
    CredentialSource,
    ServiceProfile,
    SessionManager,
    UnconfiguredService,
    VeeamError,
)
from veeambackup.core.router import SERVICE_BLOCKS, ServiceClient, ServiceRouter

logger = logging.getLogger(__name__)


class VeeamClient:
    """Unified client for all configured Veeam services.

    Built once at provider configuration and passed to resources and data
    sources, which only ever ask it for a service client or a request.

    Usage:
        with VeeamClient.from_config(load_settings()) as client:
            vbr = client.client_for("veeambackup_vbr_repository")
            body = vbr.do_request("GET", vbr.build_api_url("/api/v1/backupInfrastructure/repositories"))
    """

    def __init__(self, clients: Optional[Dict[str, ServiceClient]] = None, unsupported: Iterable[str] = ()):
        """Initialize façade from already authenticated service clients.

        Args:
            clients: Service clients keyed by service name
            unsupported: Services whose block is set but which have no client yet
        """
        self._clients: Dict[str, ServiceClient] = dict(clients or {})
        self.router = ServiceRouter(self._clients, unsupported)

    @classmethod
    def from_config(cls, config: ProviderConfig) -> "VeeamClient":
        """Create a session per configured service and authenticate each one.

        Raises:
            AuthenticationFailed: A service rejected its credentials
            RequestFailed: A service was unreachable
        """
        clients: Dict[str, ServiceClient] = {}
        try:
            for profile in PROFILES.values():
                credentials = getattr(config, profile.block)
                if credentials is None:
                    continue
                clients[profile.name] = _open_service(profile, credentials)
        except VeeamError:
            for opened in clients.values():
                opened.session.logout()
            raise

        unsupported = []
        if config.aws is not None:
            logger.warning(f"AWS block for {config.aws.hostname} ignored: AWS backup service is not supported yet")
            unsupported.append("aws")

        return cls(clients, unsupported)

    @property
    def services(self) -> list[str]:
        """Names of the configured services."""
        return self.router.services

    @property
    def azure(self) -> Optional[ServiceClient]:
        return self._clients.get(AZURE.name)

    @property
    def vbr(self) -> Optional[ServiceClient]:
        return self._clients.get(VBR.name)

    def client_for(self, resource_type: str) -> ServiceClient:
        """Return the service client for a resource or data-source type.

        Raises:
            UnconfiguredService: Service unknown or not configured
        """
        return self.router.resolve(resource_type)

    def request(self, resource_type: str, method: str, url: str, body: Any = None) -> bytes:
        """Perform an authenticated request on behalf of a resource type.

        Returns:
            Raw response body

        Raises:
            UnconfiguredService: Service unknown or not configured
            HTTPStatusError: Non-2xx response
            RequestFailed: Transport error
            AuthenticationFailed: No valid token could be obtained
        """
        return self.client_for(resource_type).do_request(method, url, body)

    def get_azure_client(self) -> ServiceClient:
        return self._require(AZURE.name)

    def get_vbr_client(self) -> ServiceClient:
        return self._require(VBR.name)

    def close(self) -> None:
        """Log out of every service. Failures are logged, never raised."""
        for name, client in self._clients.items():
            if not client.session.logout():
                logger.warning(f"Could not close {name} session cleanly")

    def __enter__(self) -> "VeeamClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require(self, service: str) -> ServiceClient:
        client = self._clients.get(service)
        if client is None:
            raise UnconfiguredService(service, service, SERVICE_BLOCKS[service])
        return client


def _open_service(profile: ServiceProfile, credentials: CredentialSource) -> ServiceClient:
    session = SessionManager(credentials, profile)
    try:
        session.authenticate()
    except VeeamError as e:
        logger.error(f"Failed to authenticate with {profile.name} service: {e}")
        raise
    return ServiceClient.create(session)
