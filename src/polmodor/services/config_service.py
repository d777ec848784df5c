"""Configuration service for Polmodor.

The single source of truth for ``config.json``. It loads and saves
configuration, offers dot-key access for the ``config`` commands, and tells
subscribers (the session clock) when timer settings change.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir, user_data_dir
from pydantic import BaseModel, ValidationError

from polmodor.models.config_models import AppConfig, TimerSettings
from polmodor.utils.logger import get_logger

logger = get_logger(__name__)

SettingsListener = Callable[[TimerSettings], None]


def coerce_value(value: Any) -> Any:
    """Convert a command-line string to bool/int/float/None where it looks like one."""
    if not isinstance(value, str):
        return value
    lowered = value.lower()
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    if lowered in ("none", "null"):
        return None
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


class ConfigService:
    """Service for managing application configuration."""

    def __init__(self, config_dir: Path | None = None):
        """Initialize the config service."""
        self.config_dir = Path(config_dir or user_config_dir("polmodor"))
        self.config_path = self.config_dir / "config.json"
        self.data_dir = Path(user_data_dir("polmodor"))

        self._config: AppConfig | None = None
        self._listeners: list[SettingsListener] = []

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def load_config(self) -> AppConfig:
        """Load configuration from storage."""
        if self._config is not None:
            return self._config

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self._config = AppConfig.model_validate_json(f.read())
        except FileNotFoundError:
            # First run
            self._config = AppConfig()
            self.save_config()
        except (OSError, ValidationError) as e:
            raise RuntimeError(f"Failed to load config: {e}") from e

        return self._config

    def save_config(self) -> None:
        """Save the current configuration to storage."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(self.config.model_dump_json(indent=4))

            # Set file permissions
            self.config_path.chmod(0o600)
        except OSError as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def timer_settings(self) -> TimerSettings:
        return self.config.timer

    def live_status_directory(self) -> Path:
        directory = self.config.live_status.directory
        if directory:
            return Path(directory).expanduser()
        return self.data_dir / "live"

    def has(self, key: str) -> bool:
        """True if *key* names a setting (not a section)."""
        value: Any = self.config
        for k in key.split("."):
            if not isinstance(value, BaseModel) or k not in type(value).model_fields:
                return False
            value = getattr(value, k)
        return not isinstance(value, BaseModel)

    def get(self, key: str) -> Any:
        """Get a configuration value by dot-separated key, or None."""
        return self._lookup(self.config, key)

    def set(self, key: str, value: Any) -> Any:
        """Set a configuration value by dot-separated key.

        String values are coerced first. Returns the stored (validated) value.

        Raises:
            KeyError: If the key does not exist
            ValueError: If the value does not validate
        """
        keys = key.split(".")
        config_dict = self.config.model_dump()

        current = config_dict
        for k in keys[:-1]:
            if not isinstance(current.get(k), dict):
                raise KeyError(key)
            current = current[k]
        if keys[-1] not in current or isinstance(current[keys[-1]], dict):
            raise KeyError(key)

        current[keys[-1]] = coerce_value(value)

        # Reload config from the modified dictionary
        self._config = AppConfig(**config_dict)
        self.save_config()
        logger.info("config %s set to %r", key, self.get(key))

        self._notify(keys[0])
        return self.get(key)

    def reset(self, key: str | None = None) -> None:
        """Reset one key, or the whole configuration, to defaults."""
        if key is None:
            self._config = AppConfig()
            self.save_config()
            logger.info("config reset to defaults")
            self._notify("timer")
            return

        default_value = self._lookup(AppConfig(), key)
        if isinstance(default_value, BaseModel):
            config_dict = self.config.model_dump()
            config_dict[key] = default_value.model_dump()
            self._config = AppConfig(**config_dict)
            self.save_config()
            self._notify(key)
            return
        self.set(key, default_value)

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        """Call *listener* with the new timer settings after each change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, section: str) -> None:
        if section != "timer":
            return
        settings = self.timer_settings()
        for listener in list(self._listeners):
            try:
                listener(settings)
            except Exception:
                logger.warning("settings listener failed", exc_info=True)

    @staticmethod
    def _lookup(config: BaseModel, key: str) -> Any:
        value: Any = config
        for k in key.split("."):
            if isinstance(value, BaseModel) and k in type(value).model_fields:
                value = getattr(value, k)
            else:
                return None
        return value


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Get a cached ConfigService instance."""
    config_service = ConfigService()
    config_service.load_config()
    return config_service
