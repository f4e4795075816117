"""
Risk fusion: the Decision Engine's authoritative score and its action table.

The fused score combines the (room-adjusted) content scores with the author's
trust, behavior risk, recent violations and a handful of additive bumps. It
is not capped at 100; the threshold table is evaluated top-down with ``>=``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

from chatwarden.datatypes.action_datatypes import (
    ActionType,
    AnalysisScores,
    ContentFactors,
    ContextFactors,
    DecisionEvidence,
    Severity,
    UserFactors,
)
from chatwarden.datatypes.analysis_datatypes import ContentAnalysisResult, Room
from chatwarden.datatypes.trust_datatypes import NEUTRAL_SCORE

# Multipliers applied to content scores for the work room
WORK_ROOM_MODIFIERS = {"spam": 1.3, "scam": 1.2, "toxicity": 1.1, "promotional": 1.5}

TRUST_PENALTY_FACTOR = 0.6
VIOLATION_BUMP = 5.0
SPAM_DUPLICATE_BUMP = 20.0
NEW_ACCOUNT_BUMP = 10.0
NEW_ACCOUNT_MAX_AGE_DAYS = 1

TEMP_BAN_MIN_VIOLATIONS = 3
TEMP_BAN_HOURS_PER_VIOLATION = 24
TEMP_BAN_MAX_HOURS = 168


@dataclass(slots=True)
class FusionInputs:
    """Everything the fused score is computed from, besides the analysis itself."""

    room: Room = Room.GLOBAL
    trust_score: float = NEUTRAL_SCORE
    behavior_risk: float = 0.0
    recent_violations: int = 0
    is_spam_duplicate: bool = False
    is_duplicate: bool = False
    is_first_message: bool = False
    account_age_days: int = 0


@dataclass(slots=True)
class ActionPlan:
    action: ActionType
    severity: Severity
    requires_human_review: bool
    duration_hours: int | None = None


def apply_context_modifiers(analysis: ContentAnalysisResult, room: Room) -> AnalysisScores:
    """Return the content scores with the room's multipliers applied, capped at 100."""
    scores = AnalysisScores(
        toxicity=analysis.toxicity_score,
        spam=analysis.spam_score,
        scam=analysis.scam_score,
        promotional=analysis.promotional_score,
        sentiment=analysis.sentiment_score,
    )
    if room is Room.WORK:
        for name, factor in WORK_ROOM_MODIFIERS.items():
            setattr(scores, name, min(100.0, getattr(scores, name) * factor))
    return scores


def fuse_risk(scores: AnalysisScores, inputs: FusionInputs) -> float:
    trust_penalty = max(0.0, (NEUTRAL_SCORE - inputs.trust_score) * TRUST_PENALTY_FACTOR)
    risk = (
        scores.toxicity * 0.25
        + scores.spam * 0.15
        + scores.scam * 0.15
        + scores.promotional * 0.05
        + trust_penalty * 0.3
        + inputs.behavior_risk * 0.1
    )
    risk += VIOLATION_BUMP * inputs.recent_violations
    if inputs.is_spam_duplicate:
        risk += SPAM_DUPLICATE_BUMP
    if inputs.is_first_message and inputs.account_age_days < NEW_ACCOUNT_MAX_AGE_DAYS:
        risk += NEW_ACCOUNT_BUMP
    return round(risk, 2)


def select_action(risk: float, recent_violations: int = 0) -> ActionPlan:
    """Map a fused score onto the enforcement table."""
    if risk >= 85:
        return ActionPlan(ActionType.PERM_BAN, Severity.CRITICAL, True)
    if risk >= 70:
        if recent_violations >= TEMP_BAN_MIN_VIOLATIONS:
            hours = min(TEMP_BAN_MAX_HOURS, TEMP_BAN_HOURS_PER_VIOLATION * recent_violations)
            return ActionPlan(ActionType.TEMP_BAN, Severity.HIGH, False, hours)
        return ActionPlan(ActionType.HIDE, Severity.HIGH, False)
    if risk >= 50:
        return ActionPlan(ActionType.REVIEW, Severity.MEDIUM, True)
    if risk >= 30:
        return ActionPlan(ActionType.WARN, Severity.LOW, False)
    return ActionPlan(ActionType.APPROVE, Severity.LOW, False)


def decision_confidence(risk: float) -> int:
    # halves round up
    return max(0, min(100, math.floor(100 - risk * 0.5 + 0.5)))


def time_of_day(moment: datetime) -> str:
    hour = moment.hour
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 22:
        return "evening"
    return "night"


def account_age_days(created_at: datetime | None, now: datetime) -> int:
    """Whole days since ``created_at``; an unknown creation time counts as 0."""
    if created_at is None:
        return 0
    return max(0, (now - created_at).days)


def build_evidence(
    analysis: ContentAnalysisResult,
    scores: AnalysisScores,
    inputs: FusionInputs,
    now: datetime,
) -> DecisionEvidence:
    return DecisionEvidence(
        analysis_scores=scores,
        user_factors=UserFactors(
            trust_score=inputs.trust_score,
            violation_history=inputs.recent_violations,
            account_age_days=inputs.account_age_days,
            behavior_risk=inputs.behavior_risk,
        ),
        content_factors=ContentFactors(
            is_duplicate=inputs.is_duplicate,
            has_urls=bool(analysis.extracted_urls),
            language_detected=analysis.primary_language,
            flagged_patterns=list(analysis.flagged_patterns),
        ),
        context_factors=ContextFactors(
            room=str(inputs.room),
            is_first_message=inputs.is_first_message,
            time_of_day=time_of_day(now),
        ),
    )


def describe_decision(plan: ActionPlan, risk: float, analysis: ContentAnalysisResult) -> str:
    if plan.action is ActionType.APPROVE:
        return f"Content approved (risk {risk:.1f})"
    patterns = ", ".join(analysis.flagged_patterns) or "no specific pattern"
    return f"{plan.action} at risk {risk:.1f}: {patterns}"


def fused_decision(
    analysis: ContentAnalysisResult,
    inputs: FusionInputs,
    now: datetime,
) -> Tuple[float, ActionPlan, DecisionEvidence]:
    """Score ``analysis`` against ``inputs`` and pick the action."""
    scores = apply_context_modifiers(analysis, inputs.room)
    risk = fuse_risk(scores, inputs)
    plan = select_action(risk, inputs.recent_violations)
    return risk, plan, build_evidence(analysis, scores, inputs, now)
