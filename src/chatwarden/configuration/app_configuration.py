from __future__ import annotations
from pathlib import Path
import fcntl
import os
from typing import Any, Dict
import yaml

from chatwarden.configuration.moderation_settings import ModerationSettings
from chatwarden.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()
DEFAULT_DB_PATH = Path("./data/moderation.db")
DEFAULT_LOGS_DIR = Path("./logs")


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml``, exposes dictionary-like
    access helpers, and resolves moderation tuning through :class:`ModerationSettings`.
    Uses fcntl file locks for safe concurrent access across processes.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.warning("[APP CONFIGURATION] Config file %s not found, using defaults.", self.config_path)
            return {}
        except (OSError, yaml.YAMLError) as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            if data is not None:
                logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
            return {}
        return data

    def _section(self, key: str) -> Dict[str, Any]:
        value = self._data.get(key, {})
        return value if isinstance(value, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping.

        The returned dict is the internal cache (shallow reference). Callers
        should not mutate it; use get(...) or the provided convenience
        properties instead.
        """
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def moderation(self) -> ModerationSettings:
        """Return the moderation tuning wrapped in a ModerationSettings helper."""
        return ModerationSettings(self._section("moderation"))

    @property
    def database_path(self) -> Path:
        """Return the SQLite database path.

        ``CHATWARDEN_DB_PATH`` in the environment wins over ``database.path``.
        """
        if env_path := os.getenv("CHATWARDEN_DB_PATH"):
            return Path(env_path)
        value = self._section("database").get("path")
        return Path(value) if value else DEFAULT_DB_PATH

    @property
    def logs_dir(self) -> Path:
        """Directory for the session log files (``logging.dir``, default ``./logs``)."""
        value = self._section("logging").get("dir")
        return Path(value) if value else DEFAULT_LOGS_DIR

    @property
    def log_max_bytes(self) -> int:
        return int(self._section("logging").get("max_bytes", 10 * 1024 * 1024))

    @property
    def log_backup_count(self) -> int:
        return int(self._section("logging").get("backup_count", 5))

    @property
    def behavior_sweep_interval(self) -> float:
        """Seconds between sweeps of the behavior cache and idle clusters (default 600)."""
        return float(self._section("scheduler").get("behavior_sweep_seconds", 600.0))

    @property
    def rule_maintenance_interval(self) -> float:
        """Seconds between adaptive-rule maintenance passes (default 3600)."""
        return float(self._section("scheduler").get("rule_maintenance_seconds", 3600.0))

    @property
    def action_expiry_interval(self) -> float:
        """Seconds between expiry sweeps over timed moderation actions (default 300)."""
        return float(self._section("scheduler").get("action_expiry_seconds", 300.0))


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
