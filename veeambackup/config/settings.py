"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from veeambackup.core.auth import CredentialSource

SECRETS_DIR = "/run/secrets"

logger = logging.getLogger(__name__)


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path(SECRETS_DIR) / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info(f"Loaded {secret_name} from {SECRETS_DIR}")
                return secret_value
        except OSError as e:
            logger.warning(f"Failed to read {SECRETS_DIR}/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def _env_flag(var_name: str, default: bool = False) -> bool:
    value = os.environ.get(var_name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("true", "1", "yes")


def _env_port(var_name: str) -> Optional[int]:
    value = os.environ.get(var_name, "").strip()
    if not value:
        return None
    try:
        port = int(value)
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be a port number, got {value!r}.") from None
    if not 0 < port < 65536:
        raise RuntimeError(f"Environment variable {var_name} must be a port number, got {value!r}.")
    return port


def _require(var_name: str, value: str | None, block: str) -> str:
    if value:
        return value
    raise RuntimeError(f"Environment variable {var_name} is required when the {block} block is configured.")


@dataclass(frozen=True)
class AWSConfig:
    """Connection settings reserved for the AWS backup service."""
    hostname: str
    access_key: str = ""
    secret_key: str = field(default="", repr=False)


@dataclass
class ProviderConfig:
    """Provider configuration container. A service is enabled iff its block is set."""
    azure: Optional[CredentialSource] = None
    vbr: Optional[CredentialSource] = None
    aws: Optional[AWSConfig] = None

    @property
    def configured_blocks(self) -> list[str]:
        return [name for name in ("azure", "vbr", "aws") if getattr(self, name) is not None]


def _load_service_block(block: str) -> Optional[CredentialSource]:
    """Build the credential source of one service from VEEAM_<BLOCK>_* variables."""
    prefix = f"VEEAM_{block.upper()}"
    hostname = os.environ.get(f"{prefix}_HOSTNAME", "").strip()
    if not hostname:
        return None

    username = _require(f"{prefix}_USERNAME", os.environ.get(f"{prefix}_USERNAME", "").strip(), block)
    password = _require(
        f"{prefix}_PASSWORD",
        _load_secret_from_file(f"veeam_{block}_password", f"{prefix}_PASSWORD"),
        block,
    )

    return CredentialSource(
        hostname=hostname,
        username=username,
        password=password,
        port=_env_port(f"{prefix}_PORT"),
        api_version=os.environ.get(f"{prefix}_API_VERSION", "").strip(),
        verify_tls=not _env_flag(f"{prefix}_INSECURE_SKIP_VERIFY"),
    )


def _load_aws_block() -> Optional[AWSConfig]:
    hostname = os.environ.get("VEEAM_AWS_HOSTNAME", "").strip()
    if not hostname:
        return None
    return AWSConfig(
        hostname=hostname,
        access_key=os.environ.get("VEEAM_AWS_ACCESS_KEY", ""),
        secret_key=_load_secret_from_file("veeam_aws_secret_key", "VEEAM_AWS_SECRET_KEY") or "",
    )


def load_settings() -> ProviderConfig:
    """Load provider settings from environment and /run/secrets."""
    config = ProviderConfig(
        azure=_load_service_block("azure"),
        vbr=_load_service_block("vbr"),
        aws=_load_aws_block(),
    )

    for block in ("azure", "vbr"):
        source = getattr(config, block)
        if source is not None and not source.verify_tls:
            logger.warning(f"TLS certificate verification disabled for the {block} block")

    logger.info(f"Configured blocks: {', '.join(config.configured_blocks) or 'none'}")
    return config
