"""Environment variable handling for configuration."""

import os
from typing import Any


class EnvConfig:
    """Environment variable configuration."""

    # Mapping of environment variables to configuration paths
    ENV_MAPPING = {
        'AVALANCHE_REPORT_DATA_DIR': ('data_dir',),
        'AVALANCHE_REPORT_BASE_URL': ('base_url',),
        'AVALANCHE_REPORT_LISTEN_ADDRESS': ('listen_address',),
        'AVALANCHE_REPORT_ANALYTICS_BATCH_RATE': ('analytics_batch_rate',),
        'AVALANCHE_REPORT_DEFAULT_LANGUAGE': ('default_language',),
        'AVALANCHE_REPORT_SECRETS_DIR': ('secrets_dir',),
        'AVALANCHE_REPORT_LOG_LEVEL': ('logging', 'level'),
        'AVALANCHE_REPORT_LOG_FILE': ('logging', 'file'),
        'AVALANCHE_REPORT_PUBLISHED_FOLDER_ID': ('google_drive', 'published_folder_id'),
        'AVALANCHE_REPORT_ADMIN_ENABLED': ('admin', 'enabled'),
    }

    # Environment variable naming the YAML configuration file
    CONFIG_FILE_VAR = 'AVALANCHE_REPORT_CONFIG'

    @staticmethod
    def get_env_value(env_var: str, default: Any | None = None) -> Any | None:
        """Get value from environment variable with default."""
        return os.getenv(env_var, default)

    @staticmethod
    def _set_nested_value(config: dict[str, Any], path: tuple[str, ...], value: Any) -> None:
        """Set value in nested dictionary using path tuple."""
        current = config
        for part in path[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[path[-1]] = value

    @classmethod
    def update_config_from_env(cls, config: dict[str, Any]) -> None:
        """Update configuration dictionary with environment variables.

        Args:
            config: Configuration dictionary to update
        """
        for env_var, path in cls.ENV_MAPPING.items():
            value = cls.get_env_value(env_var)
            if value is not None:
                cls._set_nested_value(config, path, value)
