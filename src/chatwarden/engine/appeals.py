"""Appeal merit rules and the restore action an accepted appeal produces."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Sequence

from chatwarden.datatypes.action_datatypes import (
    BAN_ACTIONS,
    ActionType,
    ModerationAction,
    ModeratorType,
    Severity,
)
from chatwarden.datatypes.trust_datatypes import UserTrustScore

AUTO_APPROVE_MIN_TRUST = 70
AUTO_APPROVE_MIN_REASON_LENGTH = 20
AUTO_REJECT_BAN_WINDOW_DAYS = 30


class AppealVerdict(Enum):
    AUTO_APPROVE = "auto_approve"
    AUTO_REJECT = "auto_reject"
    HUMAN_REVIEW = "human_review"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class AppealMerit:
    is_minor_violation: bool
    is_trusted_user: bool
    has_clean_history: bool
    has_reasonable_reason: bool
    is_severe_violation: bool
    has_recent_bans: bool

    @property
    def verdict(self) -> AppealVerdict:
        if self.is_minor_violation and self.is_trusted_user and self.has_clean_history and self.has_reasonable_reason:
            return AppealVerdict.AUTO_APPROVE
        if self.is_severe_violation and self.has_recent_bans:
            return AppealVerdict.AUTO_REJECT
        return AppealVerdict.HUMAN_REVIEW


def analyze_appeal_merit(
    original: ModerationAction,
    trust: UserTrustScore | None,
    history: Sequence[ModerationAction],
    reason: str,
    now: datetime,
) -> AppealMerit:
    """Score an appeal against the appellant's trust and enforcement history.

    A missing trust record never counts as trusted. The ban-history check
    spans the whole history; the recent-ban check only the last 30 days.
    """
    bans = [action for action in history if action.action_type in BAN_ACTIONS]
    window_start = now - timedelta(days=AUTO_REJECT_BAN_WINDOW_DAYS)
    return AppealMerit(
        is_minor_violation=original.severity is Severity.LOW,
        is_trusted_user=trust is not None and trust.overall_trust_score > AUTO_APPROVE_MIN_TRUST,
        has_clean_history=not bans,
        has_reasonable_reason=len(reason.strip()) > AUTO_APPROVE_MIN_REASON_LENGTH,
        is_severe_violation=original.severity is Severity.CRITICAL,
        has_recent_bans=any(action.created_at > window_start for action in bans),
    )


def build_restore_action(original: ModerationAction, reason: str) -> ModerationAction:
    """New ``restore`` action that overrides ``original`` without touching it."""
    return ModerationAction(
        target_id=original.target_id,
        subject_id=original.subject_id,
        action_type=ActionType.RESTORE,
        severity=Severity.LOW,
        reason=reason,
        target_type=original.target_type,
        moderator_type=ModeratorType.AUTO,
        evidence=dict(original.evidence),
        analysis_id=original.analysis_id,
        is_appeal=True,
        is_override=True,
        overridden_action_id=original.id,
    )
