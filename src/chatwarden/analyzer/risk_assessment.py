"""Mapping from a 0-100 risk score to an advisory risk level and action."""

from __future__ import annotations

from typing import Iterable, Tuple

from chatwarden.datatypes.analysis_datatypes import RecommendedAction, RiskLevel

ThresholdTable = Tuple[Tuple[float, RiskLevel, RecommendedAction], ...]

# Evaluated top-down, first threshold the score reaches wins
RISK_THRESHOLDS: ThresholdTable = (
    (85.0, RiskLevel.CRITICAL, RecommendedAction.AUTO_BAN),
    (70.0, RiskLevel.HIGH, RecommendedAction.AUTO_HIDE),
    (50.0, RiskLevel.MEDIUM, RecommendedAction.REVIEW),
    (30.0, RiskLevel.LOW, RecommendedAction.AUTO_WARN),
)

# The behavioral re-assessment is stricter and has no warn band
BEHAVIOR_RISK_THRESHOLDS: ThresholdTable = (
    (80.0, RiskLevel.CRITICAL, RecommendedAction.AUTO_BAN),
    (60.0, RiskLevel.HIGH, RecommendedAction.AUTO_HIDE),
    (40.0, RiskLevel.MEDIUM, RecommendedAction.REVIEW),
)

TOXICITY_PATTERN_TAG = "toxicity_pattern"


def classify_risk(score: float, thresholds: ThresholdTable = RISK_THRESHOLDS) -> Tuple[RiskLevel, RecommendedAction]:
    for threshold, level, action in thresholds:
        if score >= threshold:
            return level, action
    return RiskLevel.LOW, RecommendedAction.APPROVE


def classify_behavior_risk(score: float) -> Tuple[RiskLevel, RecommendedAction]:
    """Level and action for the behavioral layer's fused score."""
    return classify_risk(score, BEHAVIOR_RISK_THRESHOLDS)


def apply_toxicity_floor(
    level: RiskLevel,
    action: RecommendedAction,
    flagged_patterns: Iterable[str],
) -> Tuple[RiskLevel, RecommendedAction]:
    """A direct toxic phrase match is never rated below medium risk."""
    if TOXICITY_PATTERN_TAG in flagged_patterns and level.rank < RiskLevel.MEDIUM.rank:
        return RiskLevel.MEDIUM, RecommendedAction.REVIEW
    return level, action
