"""
mg2tf - Configuration Management

Supports loading configuration from:
1. YAML config file (--config)
2. Environment variables (AZURE_*, MG2TF_*)
3. Command-line arguments (highest priority)

Config file example:
```yaml
tenant_id: ${AZURE_TENANT_ID}
subscription_id: ${AZURE_SUBSCRIPTION_ID}
output: "./account_groups.tf"

render:
  resource_type: prismacloud_account_group
  description: "Made by Terraform"
  strip_prefix: "az-ps-"
```
"""
import logging
import os
import re
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .constants import ENV_ACCESS_TOKEN, ENV_SUBSCRIPTION_ID, ENV_TENANT_ID
from .render import RenderSettings
from .utils import ConfigError

logger = logging.getLogger(__name__)


# Default config file locations (checked in order)
DEFAULT_CONFIG_PATHS = [
    './mg2tf-config.yaml',
    './mg2tf-config.yml',
    '~/.mg2tf/config.yaml',
    '~/.mg2tf/config.yml',
]

# Mapping from config keys to env vars
ENV_VAR_MAPPING = {
    'tenant_id': ENV_TENANT_ID,
    'subscription_id': ENV_SUBSCRIPTION_ID,
    'access_token': ENV_ACCESS_TOKEN,
    'log_level': 'MG2TF_LOG_LEVEL',
    'output': 'MG2TF_OUTPUT',
}

# Config key -> env var named in error messages
REQUIRED_KEYS = {
    'subscription_id': ENV_SUBSCRIPTION_ID,
    'tenant_id': ENV_TENANT_ID,
    'access_token': ENV_ACCESS_TOKEN,
}


@dataclass(frozen=True)
class Credentials:
    """Values needed to call the management groups API."""
    subscription_id: str
    tenant_id: str
    access_token: str

    def __repr__(self) -> str:
        return (f"Credentials(subscription_id={self.subscription_id!r}, "
                f"tenant_id={self.tenant_id!r}, access_token='***')")


def _substitute_env_vars(value: Any) -> Any:
    """Substitute ${ENV_VAR} patterns in string values."""
    if isinstance(value, str):
        # Pattern: ${VAR_NAME} or ${VAR_NAME:-default}
        pattern = r'\$\{([^}:]+)(?::-([^}]*))?\}'

        def replace(match):
            var_name = match.group(1)
            default = match.group(2) or ''
            return os.environ.get(var_name, default)

        return re.sub(pattern, replace, value)
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def _get_nested(data: Dict, key_path: str, default: Any = None) -> Any:
    """Get a nested value from a dict using dot notation."""
    keys = key_path.split('.')
    value = data
    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value


def _set_nested(data: Dict, key_path: str, value: Any) -> None:
    """Set a nested value in a dict using dot notation."""
    keys = key_path.split('.')
    for key in keys[:-1]:
        data = data.setdefault(key, {})
    data[keys[-1]] = value


def load_config_file(config_path: str) -> Dict[str, Any]:
    """Load configuration from a YAML file."""
    path = Path(config_path).expanduser()

    if not path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    # The file may hold a token; warn if others can read it
    file_mode = path.stat().st_mode
    if file_mode & (stat.S_IRWXG | stat.S_IRWXO):
        logger.warning(f"Config file {config_path} has loose permissions. "
                       f"Consider: chmod 600 {config_path}")

    logger.info(f"Loading config from {path}")

    try:
        with open(path) as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file {config_path} is not valid YAML: {e}", original_error=e) from e

    if not isinstance(config, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping at the top level")

    return _substitute_env_vars(config)


def find_default_config() -> Optional[str]:
    """Find a config file in default locations."""
    for path in DEFAULT_CONFIG_PATHS:
        expanded = Path(path).expanduser()
        if expanded.exists():
            return str(expanded)
    return None


def load_env_config() -> Dict[str, Any]:
    """Load configuration from environment variables."""
    config: Dict[str, Any] = {}

    for config_key, env_var in ENV_VAR_MAPPING.items():
        value = os.environ.get(env_var)
        if value is not None:
            _set_nested(config, config_key, value)

    return config


def merge_configs(*configs: Dict[str, Any]) -> Dict[str, Any]:
    """Merge multiple config dicts. Later configs override earlier ones."""
    result: Dict[str, Any] = {}

    for config in configs:
        for key, value in config.items():
            if isinstance(value, dict) and isinstance(result.get(key), dict):
                result[key] = merge_configs(result[key], value)
            elif value is not None:
                result[key] = value

    return result


def args_to_config(args) -> Dict[str, Any]:
    """Convert argparse args to config dict format."""
    config: Dict[str, Any] = {}

    arg_mapping = {
        'tenant': 'tenant_id',
        'subscription': 'subscription_id',
        'output': 'output',
        'log_level': 'log_level',
    }

    for arg_name, config_key in arg_mapping.items():
        value = getattr(args, arg_name, None)
        if value is not None:
            _set_nested(config, config_key, value)

    return config


def load_config(args) -> Dict[str, Any]:
    """
    Load configuration from all sources and merge them.

    Priority (highest to lowest):
    1. CLI arguments
    2. Config file (--config or default location)
    3. Environment variables

    Returns merged config dict.
    """
    configs = []

    env_config = load_env_config()
    if env_config:
        logger.debug("Loaded config from environment variables")
        configs.append(env_config)

    config_path = getattr(args, 'config', None)
    if config_path:
        configs.append(load_config_file(config_path))
    else:
        default_config = find_default_config()
        if default_config:
            logger.info(f"Found default config file: {default_config}")
            configs.append(load_config_file(default_config))

    configs.append(args_to_config(args))

    return merge_configs(*configs)


def require_credentials(config: Dict[str, Any], need_token: bool = True) -> Credentials:
    """
    Pull the tenant, subscription and token out of the merged config.

    Without ``need_token`` (reading a saved listing) only the tenant ID is
    required, since it names the synthetic root group.

    Raises:
        ConfigError: naming every missing value
    """
    required = REQUIRED_KEYS if need_token else {'tenant_id': ENV_TENANT_ID}
    missing: List[str] = [
        env_var for key, env_var in required.items()
        if not str(config.get(key) or '').strip()
    ]
    if missing:
        raise ConfigError(
            f"must specify environment variables: {', '.join(missing)}. "
            "Use command `az account get-access-token` to get this info."
        )

    return Credentials(
        subscription_id=str(config.get('subscription_id') or '').strip(),
        tenant_id=str(config['tenant_id']).strip(),
        access_token=str(config.get('access_token') or '').strip(),
    )


def render_settings(config: Dict[str, Any]) -> RenderSettings:
    """Rendering literals from the ``render`` section, defaults where unset."""
    defaults = RenderSettings()
    return RenderSettings(
        resource_type=_get_nested(config, 'render.resource_type', defaults.resource_type),
        description=_get_nested(config, 'render.description', defaults.description),
        strip_prefix=_get_nested(config, 'render.strip_prefix', defaults.strip_prefix),
    )


def generate_sample_config() -> str:
    """Generate a sample config file content."""
    return '''# mg2tf Configuration
#
# Environment variable substitution supported:
#   ${VAR_NAME}           - required env var
#   ${VAR_NAME:-default}  - env var with default value

# =============================================================================
# Azure Settings
# =============================================================================

# Tenant ID (also names the tenant root management group)
tenant_id: ${AZURE_TENANT_ID}

# Subscription ID of the signed-in context
subscription_id: ${AZURE_SUBSCRIPTION_ID}

# Access token (always use env var, never put tokens in config files!)
# Obtain with: az account get-access-token --query accessToken -o tsv
# access_token: ${AZURE_ACCESS_TOKEN}


# =============================================================================
# Output Settings
# =============================================================================

# Write Terraform to this file instead of standard output
# output: "./account_groups.tf"

# Logging level: DEBUG, INFO, WARNING, ERROR
log_level: INFO


# =============================================================================
# Rendering Settings
# =============================================================================
render:
  # Terraform resource type of each account group
  resource_type: prismacloud_account_group

  # Description set on every account group
  description: "Made by Terraform"

  # Display name prefix removed from resource names (case-insensitive)
  strip_prefix: "az-ps-"
'''
