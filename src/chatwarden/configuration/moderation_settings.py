from typing import Any, Dict


class ModerationSettings:
    """Helper exposing typed accessors for the ``moderation`` config section.

    Every property falls back to the built-in default when the key is absent,
    so an empty mapping yields a fully usable configuration.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for `key` or `default` if missing."""
        return self.data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        return self.data

    @property
    def analysis_timeout_seconds(self) -> float:
        """Budget for one message's analysis before the fallback decision is used."""
        return float(self.data.get("analysis_timeout_seconds", 5.0))

    @property
    def behavior_cache_ttl_seconds(self) -> float:
        return float(self.data.get("behavior_cache_ttl_seconds", 1800.0))

    @property
    def behavior_history_limit(self) -> int:
        """How many of a user's most recent analyses feed the behavior snapshot."""
        return int(self.data.get("behavior_history_limit", 50))

    @property
    def cluster_retention_seconds(self) -> float:
        return float(self.data.get("cluster_retention_seconds", 86400.0))

    @property
    def spam_cluster_min_messages(self) -> int:
        return int(self.data.get("spam_cluster_min_messages", 5))

    @property
    def spam_cluster_min_authors(self) -> int:
        return int(self.data.get("spam_cluster_min_authors", 3))

    @property
    def recent_violation_days(self) -> int:
        return int(self.data.get("recent_violation_days", 30))
