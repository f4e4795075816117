"""
Trust profile mutation.

`apply_trust_event` changes counters and scores for one event and
`derive_trust_limits` recomputes the trust level and message limit from the
resulting numbers. The level is never set from the event type directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from chatwarden.datatypes.action_datatypes import ActionType, VIOLATION_ACTIONS
from chatwarden.datatypes.trust_datatypes import TrustEventType, TrustLevel, UserTrustScore

# (minimum overall score, level, max daily messages), checked top-down
TRUST_LEVEL_TABLE = (
    (71, TrustLevel.VETERAN, 500),
    (41, TrustLevel.TRUSTED, 300),
    (21, TrustLevel.BASIC, 200),
    (0, TrustLevel.NEW, 50),
)

RESTRICTED_MAX_DAILY_MESSAGES = 25
RESTRICTED_MIN_TEMP_BANS = 3
RESTRICTED_MIN_WARNINGS = 10
SUSPENDED_MAX_SCORE = 10

REPORT_RECEIVED_PENALTY = 2
REPORT_RECEIVED_QUALITY_PENALTY = 3
WARN_PENALTY = 5
TEMP_BAN_PENALTY = 15


@dataclass(frozen=True, slots=True)
class TrustLimits:
    trust_level: TrustLevel
    max_daily_messages: int
    forces_review: bool
    can_report_users: bool


def clamp_score(value: int) -> int:
    return max(0, min(100, value))


def derive_trust_limits(overall_trust_score: int, temp_bans_count: int, warnings_count: int) -> TrustLimits:
    """Pure mapping from score and enforcement counters to a trust level.

    Repeat offenders (more than 3 temp bans or more than 10 warnings) are
    restricted whatever their score; a restricted user at 10 or below is
    suspended.
    """
    if temp_bans_count > RESTRICTED_MIN_TEMP_BANS or warnings_count > RESTRICTED_MIN_WARNINGS:
        if overall_trust_score <= SUSPENDED_MAX_SCORE:
            return TrustLimits(TrustLevel.SUSPENDED, 0, True, False)
        return TrustLimits(TrustLevel.RESTRICTED, RESTRICTED_MAX_DAILY_MESSAGES, True, True)

    for minimum, level, max_daily in TRUST_LEVEL_TABLE:
        if overall_trust_score >= minimum:
            return TrustLimits(level, max_daily, False, True)
    return TrustLimits(TrustLevel.NEW, 50, False, True)


def apply_trust_event(
    score: UserTrustScore,
    event_type: TrustEventType,
    details: Mapping[str, Any] | None,
    now: datetime,
) -> UserTrustScore:
    """Mutate ``score`` in place for one event and re-derive its limits."""
    details = details or {}

    if event_type is TrustEventType.MESSAGE_POSTED:
        score.total_messages += 1
    elif event_type is TrustEventType.REPORT_RECEIVED:
        score.total_reports_received += 1
        score.overall_trust_score = clamp_score(score.overall_trust_score - REPORT_RECEIVED_PENALTY)
        score.content_quality_score = clamp_score(score.content_quality_score - REPORT_RECEIVED_QUALITY_PENALTY)
    elif event_type is TrustEventType.REPORT_MADE:
        score.total_reports_made += 1
    elif event_type is TrustEventType.MODERATION_ACTION:
        _apply_moderation_action(score, details.get("action"), now)
    elif event_type is TrustEventType.REVIEW_CLEARED:
        score.requires_review = False

    limits = derive_trust_limits(score.overall_trust_score, score.temp_bans_count, score.warnings_count)
    score.trust_level = limits.trust_level
    score.max_daily_messages = limits.max_daily_messages
    score.can_report_users = limits.can_report_users
    if limits.forces_review:
        score.requires_review = True
    score.updated_at = now
    return score


def _apply_moderation_action(score: UserTrustScore, action: ActionType | str | None, now: datetime) -> None:
    if action is None:
        return
    action = ActionType(action)

    if action is ActionType.WARN:
        score.warnings_count += 1
        score.overall_trust_score = clamp_score(score.overall_trust_score - WARN_PENALTY)
    elif action is ActionType.TEMP_BAN:
        score.temp_bans_count += 1
        score.overall_trust_score = clamp_score(score.overall_trust_score - TEMP_BAN_PENALTY)
        score.requires_review = True

    if action in VIOLATION_ACTIONS:
        score.days_without_violation = 0
        score.last_violation_at = now
