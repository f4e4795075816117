"""
Enforcement actions, decisions and appeals.

This module defines the ActionType enum and the records the decision engine
produces: the immutable `ModerationAction`, the `ModerationDecision` returned
to the transport, the `DecisionEvidence` snapshot stored with each action, and
the appeal and report records.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List

from chatwarden.datatypes.trust_datatypes import TrustLevel
from chatwarden.util.time_utils import new_id, utcnow


class ActionType(Enum):
    """Enumeration of supported moderation actions."""

    APPROVE = "approve"
    WARN = "warn"
    HIDE = "hide"
    DELETE = "delete"
    REVIEW = "review"
    TEMP_BAN = "temp_ban"
    PERM_BAN = "perm_ban"
    SHADOW_BAN = "shadow_ban"
    RESTORE = "restore"

    def __str__(self) -> str:
        return self.value


# Actions counted against a user's recent violation history
VIOLATION_ACTIONS = frozenset({ActionType.WARN, ActionType.HIDE, ActionType.TEMP_BAN, ActionType.PERM_BAN})
BAN_ACTIONS = frozenset({ActionType.TEMP_BAN, ActionType.PERM_BAN})
RESTRICTING_ACTIONS = frozenset({ActionType.TEMP_BAN, ActionType.SHADOW_BAN, ActionType.WARN})


class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    def __str__(self) -> str:
        return self.value


class ModeratorType(Enum):
    AUTO = "auto"
    HUMAN = "human"

    def __str__(self) -> str:
        return self.value


class TargetType(Enum):
    MESSAGE = "message"
    HUMAN = "human"

    def __str__(self) -> str:
        return self.value


class AppealStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ModerationAction:
    """An enforcement record; never edited once written.

    A later ``restore`` action supersedes an earlier one by pointing at it
    through ``overridden_action_id``.

    Attributes:
        target_id: The content or human the action applies to.
        subject_id: The author the action counts against.
        action_type: What was done.
        severity: Severity of the underlying violation.
        reason: Human-readable explanation.
        duration_hours / expires_at: Set for timed actions only.
        evidence: Snapshot of the decision evidence.
        analysis_id: Analysis the action was derived from, if any.
        is_active: Cleared by the store once ``expires_at`` has passed.
    """

    target_id: str
    subject_id: str
    action_type: ActionType
    severity: Severity
    reason: str
    target_type: TargetType = TargetType.MESSAGE
    moderator_type: ModeratorType = ModeratorType.AUTO
    moderator_id: str | None = None
    duration_hours: int | None = None
    expires_at: datetime | None = None
    evidence: Dict[str, Any] = field(default_factory=dict)
    analysis_id: str | None = None
    is_appeal: bool = False
    is_override: bool = False
    overridden_action_id: str | None = None
    is_active: bool = True
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class AnalysisScores:
    toxicity: float = 0.0
    spam: float = 0.0
    scam: float = 0.0
    promotional: float = 0.0
    sentiment: float = 50.0


@dataclass(slots=True)
class UserFactors:
    trust_score: float = 50.0
    violation_history: int = 0
    account_age_days: int = 0
    behavior_risk: float = 0.0


@dataclass(slots=True)
class ContentFactors:
    is_duplicate: bool = False
    has_urls: bool = False
    language_detected: str = "unknown"
    flagged_patterns: List[str] = field(default_factory=list)


@dataclass(slots=True)
class ContextFactors:
    room: str = "global"
    is_first_message: bool = False
    time_of_day: str = "unknown"


@dataclass(slots=True)
class DecisionEvidence:
    """Everything the fused risk score was computed from."""

    analysis_scores: AnalysisScores = field(default_factory=AnalysisScores)
    user_factors: UserFactors = field(default_factory=UserFactors)
    content_factors: ContentFactors = field(default_factory=ContentFactors)
    context_factors: ContextFactors = field(default_factory=ContextFactors)

    @classmethod
    def neutral(cls, room: str = "global", is_first_message: bool = False) -> "DecisionEvidence":
        """All-neutral bundle used by the failure fallback."""
        return cls(context_factors=ContextFactors(room=room, is_first_message=is_first_message))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class ModerationDecision:
    """Verdict returned to the transport for one message.

    ``persisted`` is False when the verdict could not be written to the store;
    the verdict itself is still authoritative.
    """

    action: ActionType
    reason: str
    severity: Severity
    requires_human_review: bool
    confidence: int
    risk_score: float
    evidence: DecisionEvidence
    duration_hours: int | None = None
    analysis_id: str | None = None
    action_id: str | None = None
    queue_item_id: str | None = None
    persisted: bool = False


@dataclass(slots=True)
class UserModerationStatus:
    is_banned: bool
    is_shadow_banned: bool
    is_restricted: bool
    trust_level: TrustLevel
    requires_review: bool
    max_daily_messages: int
    active_restrictions: List[ModerationAction] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ModerationAppeal:
    """A user's challenge to an earlier action, kept for audit."""

    original_action_id: str
    appellant_id: str
    reason: str
    status: AppealStatus
    additional_context: str | None = None
    new_action_id: str | None = None
    queue_item_id: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class AppealResult:
    accepted: bool
    review_required: bool
    reason: str
    new_action: ModerationAction | None = None
    appeal_id: str | None = None


@dataclass(frozen=True, slots=True)
class ContentReport:
    """A report one user filed against a piece of content."""

    content_id: str
    reporter_id: str
    reported_user_id: str
    category: str = "other"
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
