"""Configuration management for the Spheron provider."""

import os
from typing import Optional
from dataclasses import dataclass, field


@dataclass
class ApiConfig:
    """Spheron API configuration."""
    base_url: str = "https://api-v2.spheron.network"
    token: Optional[str] = None
    request_timeout: int = 30
    deployment_timeout: int = 900  # 15 minutes


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


@dataclass
class ProviderConfig:
    """Provider-specific configuration."""
    type_name: str = "spheron"
    default_region: str = "any"
    cluster_provider: str = "DOCKERHUB"
    protocol: str = "akash"


@dataclass
class Config:
    """Main configuration class."""
    api: ApiConfig = field(default_factory=ApiConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables."""
        config = cls()

        # API config
        config.api.base_url = os.getenv('SPHERON_API_URL', config.api.base_url)
        config.api.token = os.getenv('SPHERON_TOKEN')
        config.api.request_timeout = int(os.getenv('SPHERON_REQUEST_TIMEOUT', str(config.api.request_timeout)))
        config.api.deployment_timeout = int(
            os.getenv('SPHERON_DEPLOYMENT_TIMEOUT', str(config.api.deployment_timeout))
        )

        # Logging config
        config.logging.level = os.getenv('LOG_LEVEL', config.logging.level)
        config.logging.file_path = os.getenv('LOG_FILE_PATH')

        # Provider config
        config.provider.default_region = os.getenv('SPHERON_DEFAULT_REGION', config.provider.default_region)

        return config


# Global configuration instance
config = Config.from_env()
