from pathlib import Path

import pytest
import yaml

from chatwarden.configuration.app_configuration import DEFAULT_DB_PATH, DEFAULT_LOGS_DIR, AppConfig
from chatwarden.configuration.moderation_settings import ModerationSettings


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "app_config.yml"


def test_app_config_reload_parses_yaml(config_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("CHATWARDEN_DB_PATH", raising=False)
    config_payload = {
        "database": {"path": "/tmp/chatwarden/test.db"},
        "scheduler": {"behavior_sweep_seconds": 30, "rule_maintenance_seconds": 90, "action_expiry_seconds": 15},
        "moderation": {"analysis_timeout_seconds": 2.5, "spam_cluster_min_authors": 4},
    }
    config_path.write_text(yaml.safe_dump(config_payload), encoding="utf-8")

    config = AppConfig(config_path)

    assert config.get("database") == {"path": "/tmp/chatwarden/test.db"}
    assert config.database_path == Path("/tmp/chatwarden/test.db")
    assert config.behavior_sweep_interval == 30.0
    assert config.rule_maintenance_interval == 90.0
    assert config.action_expiry_interval == 15.0

    moderation = config.moderation
    assert moderation.analysis_timeout_seconds == pytest.approx(2.5)
    assert moderation.spam_cluster_min_authors == 4
    assert moderation.spam_cluster_min_messages == 5


def test_app_config_missing_file_returns_defaults(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("CHATWARDEN_DB_PATH", raising=False)

    config = AppConfig(tmp_path / "does_not_exist.yml")

    assert config.data == {}
    assert config.database_path == DEFAULT_DB_PATH
    assert config.behavior_sweep_interval == 600.0
    assert config.rule_maintenance_interval == 3600.0
    assert config.action_expiry_interval == 300.0
    assert config.moderation.as_dict() == {}


def test_app_config_malformed_yaml_returns_defaults(config_path: Path) -> None:
    config_path.write_text("moderation: [unclosed", encoding="utf-8")

    config = AppConfig(config_path)

    assert config.data == {}


def test_app_config_non_mapping_is_ignored(config_path: Path) -> None:
    config_path.write_text("- just\n- a list\n", encoding="utf-8")

    config = AppConfig(config_path)

    assert config.data == {}
    assert config.moderation.behavior_history_limit == 50


def test_app_config_non_mapping_section_falls_back(config_path: Path) -> None:
    config_path.write_text("moderation: 12\nscheduler: nope\n", encoding="utf-8")

    config = AppConfig(config_path)

    assert config.moderation.as_dict() == {}
    assert config.behavior_sweep_interval == 600.0


def test_environment_overrides_database_path(config_path: Path, monkeypatch) -> None:
    config_path.write_text("database:\n  path: ./data/from_file.db\n", encoding="utf-8")
    monkeypatch.setenv("CHATWARDEN_DB_PATH", "/tmp/from_env.db")

    config = AppConfig(config_path)

    assert config.database_path == Path("/tmp/from_env.db")


def test_app_config_reload_picks_up_changes(config_path: Path) -> None:
    config_path.write_text("moderation:\n  recent_violation_days: 7\n", encoding="utf-8")
    config = AppConfig(config_path)
    assert config.moderation.recent_violation_days == 7

    config_path.write_text("moderation:\n  recent_violation_days: 14\n", encoding="utf-8")
    config.reload()

    assert config.moderation.recent_violation_days == 14


def test_moderation_settings_defaults() -> None:
    settings = ModerationSettings()

    assert settings.analysis_timeout_seconds == 5.0
    assert settings.behavior_cache_ttl_seconds == 1800.0
    assert settings.behavior_history_limit == 50
    assert settings.cluster_retention_seconds == 86400.0
    assert settings.spam_cluster_min_messages == 5
    assert settings.spam_cluster_min_authors == 3
    assert settings.recent_violation_days == 30
    assert settings.get("missing", "fallback") == "fallback"


def test_logging_section(config_path: Path) -> None:
    config_path.write_text("logging:\n  dir: /var/log/chatwarden\n  max_bytes: 4096\n  backup_count: 2\n", encoding="utf-8")

    config = AppConfig(config_path)

    assert config.logs_dir == Path("/var/log/chatwarden")
    assert config.log_max_bytes == 4096
    assert config.log_backup_count == 2


def test_logging_section_defaults(tmp_path: Path) -> None:
    config = AppConfig(tmp_path / "missing.yml")

    assert config.logs_dir == DEFAULT_LOGS_DIR
    assert config.log_max_bytes == 10 * 1024 * 1024
    assert config.log_backup_count == 5
