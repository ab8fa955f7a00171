"""
Module holding provider credentials and service settings.

The credential variants mirror the camelCase payloads the credential service
accepts. ``CloudConfig`` keeps all three variants side by side so switching
the active provider never discards what was entered for the others.
"""
import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, ClassVar, Dict, Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PROVIDERS = ("s3", "gcp", "azure")


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


@dataclass
class ProviderConfig:
    """Base class for a provider's credential variant."""
    provider: ClassVar[str] = ""
    required_fields: ClassVar[Tuple[str, ...]] = ()

    def missing_fields(self) -> list:
        """Return the names of required fields that are empty."""
        return [name for name in self.required_fields if not getattr(self, name)]

    def is_configured(self) -> bool:
        return not self.missing_fields()

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the camelCase wire shape, tagged with the provider.

        Empty optional values are left out.
        """
        payload: Dict[str, Any] = {"provider": self.provider}
        for f in fields(self):
            value = getattr(self, f.name)
            if value:
                payload[_camel_case(f.name)] = value
        return payload

    @classmethod
    def from_payload(cls, data: Optional[Dict[str, Any]]) -> "ProviderConfig":
        """Build a variant from a camelCase or snake_case mapping.

        Unknown keys (including ``provider``) are ignored.
        """
        data = data or {}
        kwargs = {}
        for f in fields(cls):
            for key in (f.name, _camel_case(f.name)):
                if data.get(key) is not None:
                    kwargs[f.name] = data[key]
                    break
        return cls(**kwargs)


@dataclass
class S3Config(ProviderConfig):
    provider: ClassVar[str] = "s3"
    required_fields: ClassVar[Tuple[str, ...]] = (
        "bucket", "region", "access_key_id", "secret_access_key"
    )

    bucket: str = ""
    region: str = "us-east-1"
    access_key_id: str = ""
    secret_access_key: str = ""
    session_token: Optional[str] = None
    endpoint: Optional[str] = None


@dataclass
class GCPConfig(ProviderConfig):
    provider: ClassVar[str] = "gcp"
    required_fields: ClassVar[Tuple[str, ...]] = ("bucket", "project_id", "key_file")

    bucket: str = ""
    project_id: str = ""
    key_file: str = ""  # service-account JSON content


@dataclass
class AzureConfig(ProviderConfig):
    provider: ClassVar[str] = "azure"
    required_fields: ClassVar[Tuple[str, ...]] = ("account_name", "container_name")

    account_name: str = ""
    container_name: str = ""
    account_key: Optional[str] = None
    sas_token: Optional[str] = None

    def missing_fields(self) -> list:
        missing = super().missing_fields()
        if not self.account_key and not self.sas_token:
            missing.append("account_key or sas_token")
        return missing


PROVIDER_CONFIGS = {
    "s3": S3Config,
    "gcp": GCPConfig,
    "azure": AzureConfig,
}


def is_configured(provider: str, config: Optional[ProviderConfig]) -> bool:
    """Check the required-field predicate for a provider.

    Args:
        provider: Provider name
        config: Credential variant to check

    Returns:
        True if every required field of the provider is non-empty
    """
    expected = PROVIDER_CONFIGS.get(provider)
    if expected is None or not isinstance(config, expected):
        return False
    return config.is_configured()


@dataclass
class CloudConfig:
    """In-memory store of provider credentials with one active provider."""
    provider: str = "s3"
    s3: S3Config = field(default_factory=S3Config)
    gcp: GCPConfig = field(default_factory=GCPConfig)
    azure: AzureConfig = field(default_factory=AzureConfig)

    def __post_init__(self):
        if self.provider not in PROVIDERS:
            raise ValueError(f"Unknown provider: {self.provider}")

    @property
    def active(self) -> ProviderConfig:
        """Credential variant of the active provider."""
        return getattr(self, self.provider)

    def select_provider(self, name: str) -> None:
        """Switch the active provider, keeping every variant's values.

        Args:
            name: One of ``s3``, ``gcp``, ``azure``
        """
        if name not in PROVIDERS:
            raise ValueError(f"Unknown provider: {name}")
        self.provider = name
        logger.debug(f"Active provider set to {name}")

    def is_configured(self) -> bool:
        return is_configured(self.provider, self.active)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CloudConfig":
        """Build a store from a loaded JSON config.

        Args:
            data: Mapping with ``provider`` and per-provider sections

        Returns:
            CloudConfig instance
        """
        return cls(
            provider=data.get("provider", "s3"),
            s3=S3Config.from_payload(data.get("s3")),
            gcp=GCPConfig.from_payload(data.get("gcp")),
            azure=AzureConfig.from_payload(data.get("azure")),
        )


def load_config(config_file: Optional[Path] = None) -> dict:
    """Load configuration from a JSON file.

    Args:
        config_file: Path to config file

    Returns:
        Dictionary of configuration values
    """
    if not config_file:
        return {}

    try:
        with open(config_file) as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Error loading config file: {e}")
        return {}


@dataclass
class ServerSettings:
    """Settings for the credential service."""
    port: int = 3001
    cors_origin: str = "http://localhost:3000"
    rate_limit_window_ms: int = 15 * 60 * 1000
    rate_limit_max_requests: int = 100
    environment: str = "development"

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "ServerSettings":
        """Load settings from environment variables, after reading ``.env``.

        Args:
            env_file: Optional dotenv file; defaults to ``.env`` lookup

        Returns:
            ServerSettings instance
        """
        load_dotenv(env_file)
        return cls(
            port=int(os.getenv("PORT", "3001")),
            cors_origin=os.getenv("CORS_ORIGIN", "http://localhost:3000"),
            rate_limit_window_ms=int(os.getenv("RATE_LIMIT_WINDOW_MS", "900000")),
            rate_limit_max_requests=int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100")),
            environment=os.getenv("ENVIRONMENT", "development"),
        )
