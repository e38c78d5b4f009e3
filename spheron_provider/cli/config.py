"""CLI configuration management."""

import json
import logging
from pathlib import Path
from typing import Dict, Any

from spheron_provider.exceptions import ConfigurationError
from spheron_provider.provider import SpheronProvider

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / '.spheron-provider' / 'config.json'


def load_cli_config(config_path: Path) -> Dict[str, Any]:
    """Load CLI configuration from file."""

    default_config = {
        'token': None,
        'api_url': None,
    }

    if not config_path.exists():
        return default_config

    try:
        with open(config_path, 'r') as f:
            config = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        return default_config

    # Merge with defaults
    merged_config = default_config.copy()
    merged_config.update(config)

    return merged_config


def save_cli_config(config_path: Path, config: Dict[str, Any]) -> None:
    """Save CLI configuration to file."""

    # Ensure directory exists
    config_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)
    except OSError as e:
        raise ConfigurationError(f"Failed to save config to {config_path}: {e}") from e

    # The file holds an API token
    config_path.chmod(0o600)


def mask_token(token: str) -> str:
    if not token:
        return token
    return f"{token[:4]}...{token[-4:]}" if len(token) > 12 else "****"


def get_provider(ctx_config: Dict[str, Any]) -> SpheronProvider:
    """Build a configured provider from CLI context settings."""

    provider = SpheronProvider()
    diagnostics = provider.configure(
        token=ctx_config.get('token'),
        api_url=ctx_config.get('api_url')
    )

    if diagnostics.has_error():
        error = diagnostics.errors[0]
        raise ConfigurationError(
            f"{error.summary}. Use 'spheron-provider configure' or the --token option.",
            config_key='token'
        )

    return provider
