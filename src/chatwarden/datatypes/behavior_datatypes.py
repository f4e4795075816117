"""
Behavioral layer types: user behavior snapshots, content clusters and
self-tuning filter rules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Set, Tuple

from chatwarden.datatypes.analysis_datatypes import ContentAnalysisResult, ContentSimilarity, Room
from chatwarden.util.time_utils import utcnow


class TrustTrend(Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"

    def __str__(self) -> str:
        return self.value


class ClusterType(Enum):
    SPAM = "spam"
    LEGITIMATE = "legitimate"
    PROMOTIONAL = "promotional"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


class RuleType(Enum):
    PATTERN = "pattern"
    KEYWORD = "keyword"
    SEMANTIC = "semantic"

    def __str__(self) -> str:
        return self.value


class RuleContext(Enum):
    GLOBAL = "global"
    WORK = "work"
    BOTH = "both"

    def __str__(self) -> str:
        return self.value

    def applies_to(self, room: Room) -> bool:
        return self is RuleContext.BOTH or self.value == room.value


@dataclass(frozen=True, slots=True)
class SuspiciousActivity:
    rapid_posting: bool = False
    repetitive_content: bool = False
    link_spamming: bool = False
    negative_engagement: bool = False


@dataclass(frozen=True, slots=True)
class UserBehaviorPattern:
    """Derived, cache-only snapshot of a user's recent behavior.

    Attributes:
        message_frequency: Analyzed messages in the last hour.
        report_frequency: Reports received per message.
        avg_sentiment: Mean sentiment score of recent messages (0-100).
        content_variety: Percentage of distinct messages among recent ones.
        engagement_quality: The user's community engagement sub-score.
        link_ratio: Share of recent messages carrying at least one URL.
        reports_filed: Reports this user has filed.
        risk_score: 0-100 weighted sum of the suspicious-activity flags.
    """

    human_id: str
    message_frequency: int
    report_frequency: float
    avg_sentiment: float
    content_variety: float
    engagement_quality: float
    link_ratio: float
    reports_filed: int
    suspicious_activity: SuspiciousActivity
    risk_score: float
    trust_trend: TrustTrend
    computed_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class ContentCluster:
    """A group of near-duplicate messages. Updated in place, never merged."""

    cluster_id: str
    content_hashes: List[str] = field(default_factory=list)
    semantic_hashes: List[str] = field(default_factory=list)
    cluster_type: ClusterType = ClusterType.UNKNOWN
    confidence: int = 50
    first_seen: datetime = field(default_factory=utcnow)
    last_seen: datetime = field(default_factory=utcnow)
    message_count: int = 1
    author_ids: Set[str] = field(default_factory=set)

    @property
    def unique_authors(self) -> int:
        return len(self.author_ids)


@dataclass(slots=True)
class RulePerformance:
    total_triggers: int = 0
    confirmed_positives: int = 0
    false_positives: int = 0
    overrides: int = 0


@dataclass(slots=True)
class AdaptiveFilterRule:
    """A detector whose confidence moves with moderator feedback.

    Attributes:
        id: Rule id; flags emitted by the rule are tagged ``adaptive_<id>``.
        rule_type: pattern (regex), keyword (substring) or semantic (word overlap).
        pattern: The rule body.
        confidence: 0-100; a rule only flags above 60.
        applicable_languages: Empty means every language.
        context: Rooms the rule runs in.
    """

    id: str
    rule_type: RuleType
    pattern: str
    confidence: int
    applicable_languages: Tuple[str, ...] = ()
    context: RuleContext = RuleContext.BOTH
    is_active: bool = True
    performance: RulePerformance = field(default_factory=RulePerformance)
    created_at: datetime = field(default_factory=utcnow)
    last_updated: datetime = field(default_factory=utcnow)

    @property
    def true_positive_rate(self) -> float:
        judged = self.performance.confirmed_positives + self.performance.false_positives
        return self.performance.confirmed_positives / judged if judged else 0.0

    @property
    def false_positive_rate(self) -> float:
        judged = self.performance.confirmed_positives + self.performance.false_positives
        return self.performance.false_positives / judged if judged else 0.0


@dataclass(frozen=True, slots=True)
class ClusterAnalysis:
    is_duplicate: bool = False
    cluster_id: str | None = None
    cluster_type: ClusterType | None = None
    similarity_score: float = 0.0

    @property
    def is_spam_duplicate(self) -> bool:
        return self.is_duplicate and self.cluster_type is ClusterType.SPAM


@dataclass(frozen=True, slots=True)
class AdvancedAnalysis:
    """Analyzer output after the behavioral layer adjusted it."""

    analysis: ContentAnalysisResult
    fingerprint: ContentSimilarity
    user_behavior_risk: float
    cluster_analysis: ClusterAnalysis
    adaptive_flags: Tuple[str, ...] = ()
