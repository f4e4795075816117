"""
Per-user trust profile types.

A `UserTrustScore` is created lazily the first time a user takes part in a
moderation event and is mutated by every later event. Its ``trust_level`` and
``max_daily_messages`` are always derived from the numeric score and the
ban/warning counters (see ``chatwarden.engine.trust_scoring``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from chatwarden.util.time_utils import utcnow


class TrustLevel(Enum):
    NEW = "new"
    BASIC = "basic"
    TRUSTED = "trusted"
    VETERAN = "veteran"
    RESTRICTED = "restricted"
    SUSPENDED = "suspended"

    def __str__(self) -> str:
        return self.value


class TrustEventType(Enum):
    """Events that mutate a trust profile."""

    MESSAGE_POSTED = "message_posted"
    REPORT_RECEIVED = "report_received"
    REPORT_MADE = "report_made"
    MODERATION_ACTION = "moderation_action"
    REVIEW_CLEARED = "review_cleared"

    def __str__(self) -> str:
        return self.value


NEUTRAL_SCORE = 50


@dataclass(slots=True)
class UserTrustScore:
    """Long-lived reputation record for one human identity.

    Attributes:
        human_id: Identity the record belongs to.
        overall_trust_score: 0-100 reputation, the main input to risk fusion.
        content_quality_score: 0-100, lowered by reports received.
        community_engagement_score: 0-100.
        report_accuracy_score: 0-100.
        total_messages / total_reports_received / total_reports_made: Counters.
        warnings_count / temp_bans_count: Enforcement counters.
        days_without_violation: Reset to 0 by every violation.
        last_violation_at: Timestamp of the latest violation.
        trust_level / max_daily_messages: Derived limits.
        requires_review: Set by temp bans and restricted levels, cleared by human review.
        can_report_users: False while suspended.
    """

    human_id: str
    overall_trust_score: int = NEUTRAL_SCORE
    content_quality_score: int = NEUTRAL_SCORE
    community_engagement_score: int = NEUTRAL_SCORE
    report_accuracy_score: int = NEUTRAL_SCORE
    total_messages: int = 0
    total_reports_received: int = 0
    total_reports_made: int = 0
    warnings_count: int = 0
    temp_bans_count: int = 0
    days_without_violation: int = 0
    last_violation_at: datetime | None = None
    trust_level: TrustLevel = TrustLevel.TRUSTED
    requires_review: bool = False
    max_daily_messages: int = 300
    can_report_users: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
