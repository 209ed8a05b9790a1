"""Configuration management for Daywatch."""

import copy
import secrets
from datetime import tzinfo
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml  # type: ignore[import-untyped]
from jsonschema import ValidationError, validate  # type: ignore[import-untyped]


class ConfigManager:
    """Manage application configuration."""

    DEFAULT_CONFIG = {
        "version": "1.0",
        "general": {
            "data_dir": "~/.daywatch/data",
            "timezone": "local",
        },
        "storage": {
            "backend": "csv",
            "remote": {
                "url": None,
                "table": "records",
                "api_key": None,
                "timeout": 10,
            },
        },
        "identity": {
            "mode": "anonymous",
            "share_base_url": "http://localhost:8000/",
        },
        "stopwatch": {
            "interval": 1.0,
        },
        "auth": {
            "secret_key": None,
            "token_expiry_hours": 24,
        },
        "api": {
            "host": "localhost",
            "port": 8000,
            "cors": {
                "enabled": True,
                "origins": ["http://localhost:3000", "http://localhost:5173"],
            },
            "advanced": {
                "reload": False,
                "log_level": "info",
                "access_log": True,
            },
        },
        "advanced": {
            "log_level": "WARNING",
            "log_file": None,
        },
    }

    CONFIG_SCHEMA = {
        "type": "object",
        "properties": {
            "version": {"type": "string"},
            "general": {
                "type": "object",
                "properties": {
                    "data_dir": {"type": "string"},
                    "timezone": {"type": "string"},
                },
            },
            "storage": {
                "type": "object",
                "properties": {
                    "backend": {"type": "string", "enum": ["local", "csv", "remote"]},
                    "remote": {
                        "type": "object",
                        "properties": {
                            "url": {"type": ["string", "null"]},
                            "table": {"type": "string", "minLength": 1},
                            "api_key": {"type": ["string", "null"]},
                            "timeout": {"type": "number", "exclusiveMinimum": 0},
                        },
                    },
                },
            },
            "identity": {
                "type": "object",
                "properties": {
                    "mode": {"type": "string", "enum": ["anonymous", "authenticated"]},
                    "share_base_url": {"type": "string"},
                },
            },
            "stopwatch": {
                "type": "object",
                "properties": {
                    "interval": {"type": "number", "exclusiveMinimum": 0, "maximum": 60},
                },
            },
            "auth": {
                "type": "object",
                "properties": {
                    "secret_key": {"type": ["string", "null"]},
                    "token_expiry_hours": {"type": "integer", "minimum": 1, "maximum": 8760},
                },
            },
            "api": {
                "type": "object",
                "properties": {
                    "host": {"type": "string"},
                    "port": {"type": "integer", "minimum": 1, "maximum": 65535},
                    "cors": {
                        "type": "object",
                        "properties": {
                            "enabled": {"type": "boolean"},
                            "origins": {
                                "type": "array",
                                "items": {"type": "string"},
                            },
                        },
                    },
                    "advanced": {
                        "type": "object",
                        "properties": {
                            "reload": {"type": "boolean"},
                            "log_level": {"type": "string"},
                            "access_log": {"type": "boolean"},
                        },
                    },
                },
            },
            "advanced": {
                "type": "object",
                "properties": {
                    "log_level": {
                        "type": "string",
                        "enum": ["DEBUG", "INFO", "WARNING", "ERROR"],
                    },
                    "log_file": {"type": ["string", "null"]},
                },
            },
        },
        "required": ["version"],
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to config file. Defaults to ~/.daywatch/config.yml
        """
        if config_path is None:
            config_path = Path.home() / ".daywatch" / "config.yml"
        self.config_path = config_path
        self._config: dict[str, Any] = {}
        self._load_or_create()

    def _load_or_create(self) -> None:
        """Load existing config or create default."""
        if self.config_path.exists():
            with open(self.config_path, encoding="utf-8") as f:
                loaded_config = yaml.safe_load(f) or {}
            # Merge with defaults to ensure all keys exist
            self._config = self._merge_with_defaults(loaded_config)
            try:
                self.validate()
            except ValueError as e:
                # Back up the broken file and fall back to defaults
                backup_path = self.config_path.with_suffix(".yml.backup")
                self.config_path.rename(backup_path)
                self._config = copy.deepcopy(self.DEFAULT_CONFIG)
                self.save()
                raise ValueError(
                    f"Config validation failed, backed up to {backup_path}. "
                    f"Using defaults. Error: {e}"
                )
        else:
            self._config = copy.deepcopy(self.DEFAULT_CONFIG)
            self.save()

    def _merge_with_defaults(self, config: dict[str, Any]) -> dict[str, Any]:
        """Merge config with defaults to ensure all keys exist."""
        result = copy.deepcopy(self.DEFAULT_CONFIG)
        self._deep_merge(result, config)
        return result

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> None:
        """Deep merge override into base dictionary (in-place)."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., 'storage.backend')
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            >>> config.get('identity.mode')
            'anonymous'
            >>> config.get('nonexistent.key', 'default')
            'default'
        """
        keys = key.split(".")
        value: Any = self._config
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
            if value is None:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key: Configuration key in dot notation
            value: Value to set

        Raises:
            ValueError: If configuration is invalid after setting
        """
        self.override(key, value)
        self.validate()
        self.save()

    def override(self, key: str, value: Any) -> None:
        """Set a value for this process only, without validating or saving."""
        keys = key.split(".")
        config = self._config
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value

    def validate(self) -> bool:
        """Validate configuration against schema.

        Raises:
            ValueError: If configuration is invalid
        """
        try:
            validate(instance=self._config, schema=self.CONFIG_SCHEMA)
            return True
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e.message}")

    def save(self) -> None:
        """Save configuration to file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(
                self._config, f, default_flow_style=False, sort_keys=False, allow_unicode=True
            )

    def reset(self) -> None:
        """Reset to default configuration."""
        self._config = copy.deepcopy(self.DEFAULT_CONFIG)
        self.save()

    def to_dict(self) -> dict[str, Any]:
        """Get a copy of the full configuration."""
        return copy.deepcopy(self._config)

    @property
    def data_dir(self) -> Path:
        """Resolved data directory."""
        return Path(self.get("general.data_dir", "~/.daywatch/data")).expanduser()

    @property
    def state_file(self) -> Path:
        """Local key-value store file inside the data directory."""
        return self.data_dir / "local.json"

    def get_timezone(self) -> Optional[tzinfo]:
        """Timezone used for calendar-day bucketing.

        Returns:
            ZoneInfo for a configured IANA name, or None for system local time

        Raises:
            ValueError: If the configured zone is unknown
        """
        name = self.get("general.timezone", "local")
        if name == "local":
            return None
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {name}")

    def ensure_secret_key(self) -> str:
        """Ensure the token signing key exists, generate if needed.

        Returns:
            The secret key
        """
        secret_key: Optional[str] = self.get("auth.secret_key")
        if not secret_key:
            # 256 bits
            secret_key = secrets.token_urlsafe(32)
            self.set("auth.secret_key", secret_key)
        return secret_key
