"""
Configuration management for ChatWarden.

- **app_configuration.py**: YAML configuration loader guarded by an fcntl
  shared lock. Exposes the database path, background task intervals and the
  moderation tuning section. Falls back to defaults on missing or malformed
  config files.

- **moderation_settings.py**: Typed accessors for the ``moderation`` section
  (analysis timeout, behavior cache TTL, cluster retention and spam-cluster
  thresholds).
"""
