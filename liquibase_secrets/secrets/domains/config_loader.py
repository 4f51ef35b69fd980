"""Configuration loader for liquibase-secrets.

The config file is optional. It only tunes secret naming and the Key Vault
DNS suffix; identity credentials are never read from it.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ResolverError
from .keyvault_client import DEFAULT_DNS_SUFFIX
from .models import SecretNaming
from .preferences import get_preference

logger = logging.getLogger(__name__)


class ConfigError(ResolverError):
    """Configuration error exception."""
    pass


@dataclass(frozen=True)
class ResolverSettings:
    """Settings assembled from the optional config file."""
    dns_suffix: str = DEFAULT_DNS_SUFFIX
    naming: SecretNaming = field(default_factory=SecretNaming)
    source: Optional[str] = None


def default_config_path() -> Path:
    return Path.home() / ".config" / "liquibase-secrets" / "config.yml"


def _get_config_path() -> Optional[str]:
    """
    Locate the config file.

    Priority order:
    1. User preference (stored in ~/.config/liquibase-secrets/preferences.json)
    2. Default location: ~/.config/liquibase-secrets/config.yml

    Returns:
        Absolute path to the config file, or None when neither exists
    """
    config_path_pref = get_preference("config_path")
    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.exists():
            logger.info(f"Using config from preference: {config_path}")
            return str(config_path)
        logger.warning(f"Config path from preference doesn't exist: {config_path}")

    default_config = default_config_path()
    if default_config.exists():
        logger.info(f"Using default config location: {default_config}")
        return str(default_config)

    logger.debug("No config file found, using built-in defaults")
    return None


def _section(config: Dict[str, Any], name: str, config_path: str) -> Dict[str, Any]:
    section = config.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' in {config_path} must be a mapping")
    return section


def _string(section: Dict[str, Any], key: str, default: str, label: str) -> str:
    value = section.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{label}' must be a non-empty string")
    return value.strip()


def load_config(config_path: Optional[str] = None) -> ResolverSettings:
    """
    Load settings from a YAML file, falling back to built-in defaults.

    Args:
        config_path: Explicit file to load (skips preference/default lookup)

    Returns:
        ResolverSettings

    Raises:
        ConfigError: If the file cannot be read or contains invalid values
    """
    if config_path is None:
        config_path = _get_config_path()
        if config_path is None:
            return ResolverSettings()

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {config_path}: {e}")

    if config is None:
        logger.debug(f"Config file at {config_path} is empty, using built-in defaults")
        return ResolverSettings(source=config_path)

    if not isinstance(config, dict):
        raise ConfigError(f"Config file at {config_path} must contain a mapping")

    unknown = sorted(set(config) - {"keyvault", "secrets"})
    if unknown:
        raise ConfigError(
            f"Unknown section(s) in config at {config_path}: {', '.join(unknown)}\n"
            f"Supported format:\n"
            f"keyvault:\n"
            f"  dns_suffix: vault.azure.net\n"
            f"secrets:\n"
            f"  application: liquibase\n"
            f"  license_key: liquibase-license-key\n"
            f"  changelog_file: changelog-file"
        )

    keyvault = _section(config, "keyvault", config_path)
    secrets = _section(config, "secrets", config_path)
    defaults = SecretNaming()

    settings = ResolverSettings(
        dns_suffix=_string(keyvault, "dns_suffix", DEFAULT_DNS_SUFFIX, "keyvault.dns_suffix"),
        naming=SecretNaming(
            application=_string(secrets, "application", defaults.application, "secrets.application"),
            license_key=_string(secrets, "license_key", defaults.license_key, "secrets.license_key"),
            changelog_file=_string(
                secrets, "changelog_file", defaults.changelog_file, "secrets.changelog_file"
            ),
        ),
        source=config_path,
    )

    logger.info(f"Configuration loaded successfully from {config_path}")
    logger.debug(f"Using Key Vault DNS suffix: {settings.dns_suffix}")
    return settings
