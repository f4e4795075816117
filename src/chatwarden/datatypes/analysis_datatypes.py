"""
Content analysis value types.

This module defines the score bundle the content analyzer produces for every
message, the similarity fingerprint used for duplicate detection, and the
request context a caller hands to the moderation pipeline.

Key Features:
- `ContentAnalysisResult`: immutable five-score bundle with languages, URLs,
  semantic tags, and the analyzer's advisory risk level.
- `ContentSimilarity`: hash-based fingerprint of one message.
- `ModerationContext`: room, first-message flag, language and account age.
- `ModerationAnalysisRecord` / `ContentSimilarityRecord`: the persisted forms.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Tuple

from chatwarden.util.time_utils import new_id, utcnow

ANALYSIS_VERSION = "1.0"


class Room(Enum):
    """Chat room a message was posted to; ``work`` is moderated more strictly."""

    GLOBAL = "global"
    WORK = "work"

    def __str__(self) -> str:
        return self.value


class RiskLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    def __str__(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]


_RISK_RANK = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2, RiskLevel.CRITICAL: 3}


class RecommendedAction(Enum):
    """Advisory action attached to an analysis; the decision engine has the final word."""

    APPROVE = "approve"
    AUTO_WARN = "auto_warn"
    REVIEW = "review"
    AUTO_HIDE = "auto_hide"
    AUTO_BAN = "auto_ban"

    def __str__(self) -> str:
        return self.value


class UrlReputation(Enum):
    SAFE = "safe"
    SUSPICIOUS = "suspicious"
    MALICIOUS = "malicious"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


class SentimentLabel(Enum):
    VERY_NEGATIVE = "very_negative"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    POSITIVE = "positive"
    VERY_POSITIVE = "very_positive"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ExtractedUrl:
    """A URL found in a message together with its domain reputation.

    Attributes:
        url: The URL exactly as it appeared in the text.
        domain: Lower-cased host name, or ``"invalid"`` if the URL could not be parsed.
        reputation: Reputation tier of the domain.
        reputation_score: 0-100, higher is more dangerous.
    """

    url: str
    domain: str
    reputation: UrlReputation
    reputation_score: int


@dataclass(frozen=True, slots=True)
class SemanticCategory:
    category: str
    confidence: float


@dataclass(frozen=True, slots=True)
class SentimentAnalysis:
    """Word-level sentiment estimate; ``score`` lies in [-1, 1]."""

    label: SentimentLabel
    confidence: int
    score: float


@dataclass(frozen=True, slots=True)
class ContentAnalysisResult:
    """Multi-signal score bundle produced once per analyzed message.

    All five scores are clamped to [0, 100]. For ``sentiment_score`` 0 is very
    negative, 50 neutral and 100 very positive; for the others higher means
    more problematic.
    """

    toxicity_score: float
    sentiment_score: float
    spam_score: float
    scam_score: float
    promotional_score: float
    detected_languages: Tuple[str, ...] = ("en",)
    flagged_patterns: Tuple[str, ...] = ()
    extracted_urls: Tuple[ExtractedUrl, ...] = ()
    semantic_categories: Tuple[SemanticCategory, ...] = ()
    risk_level: RiskLevel = RiskLevel.LOW
    recommended_action: RecommendedAction = RecommendedAction.APPROVE
    analysis_version: str = ANALYSIS_VERSION
    processing_time_ms: float = 0.0

    @property
    def primary_language(self) -> str:
        return self.detected_languages[0] if self.detected_languages else "en"


@dataclass(frozen=True, slots=True)
class ContentSimilarity:
    """Deterministic fingerprint of a message used for clustering.

    ``similarity_score``, ``is_spam_cluster`` and ``duplicate_group`` are
    filled in by the behavioral layer once the fingerprint has been compared
    against known clusters; the analyzer leaves them at their defaults.
    """

    content_hash: str
    semantic_hash: str
    word_count: int
    unique_word_ratio: int
    uppercase_ratio: int
    url_count: int
    similarity_score: float = 0.0
    is_spam_cluster: bool = False
    duplicate_group: str | None = None


@dataclass(slots=True)
class AnalysisContext:
    """Context the analyzer uses for its own advisory risk assessment."""

    room: Room = Room.GLOBAL
    author_trust_score: float | None = None
    is_first_message: bool = False


@dataclass(slots=True)
class ModerationContext:
    """Request context supplied by the transport when a message is posted.

    Attributes:
        room: Room the message was posted in.
        is_first_message: True for the author's first message ever.
        language: Language hint used to pick toxicity and sentiment tables.
        account_created_at: When the author's account was created, if known.
        previous_messages: Recent message texts, when the transport has them.
    """

    room: Room = Room.GLOBAL
    is_first_message: bool = False
    language: str = "en"
    account_created_at: datetime | None = None
    previous_messages: List[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ModerationAnalysisRecord:
    """Persisted, append-only form of one analysis."""

    content_id: str
    author_id: str
    content_text: str
    result: ContentAnalysisResult
    language: str = "en"
    content_type: str = "message"
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True, slots=True)
class ContentSimilarityRecord:
    """Persisted fingerprint of one message."""

    content_id: str
    author_id: str
    similarity: ContentSimilarity
    content_type: str = "message"
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
