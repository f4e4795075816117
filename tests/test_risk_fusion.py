from datetime import datetime, timedelta, timezone

import pytest

from chatwarden.datatypes.action_datatypes import ActionType, AnalysisScores, Severity
from chatwarden.datatypes.analysis_datatypes import ContentAnalysisResult, ExtractedUrl, Room, UrlReputation
from chatwarden.engine.risk_fusion import (
    FusionInputs,
    account_age_days,
    apply_context_modifiers,
    decision_confidence,
    describe_decision,
    fuse_risk,
    fused_decision,
    select_action,
    time_of_day,
)

NOW = datetime(2024, 5, 1, 14, 0, tzinfo=timezone.utc)


def make_result(**scores) -> ContentAnalysisResult:
    values = {"toxicity_score": 0, "sentiment_score": 50, "spam_score": 0, "scam_score": 0, "promotional_score": 0}
    values.update(scores)
    return ContentAnalysisResult(**values)


def test_work_room_multiplies_and_caps_scores():
    result = make_result(toxicity_score=50, spam_score=80, scam_score=50, promotional_score=40)

    scores = apply_context_modifiers(result, Room.WORK)

    assert scores.toxicity == pytest.approx(55.0)
    assert scores.spam == pytest.approx(100.0)
    assert scores.scam == pytest.approx(60.0)
    assert scores.promotional == pytest.approx(60.0)
    assert scores.sentiment == 50


def test_global_room_leaves_scores_untouched():
    scores = apply_context_modifiers(make_result(spam_score=80), Room.GLOBAL)

    assert scores.spam == 80


def test_fuse_risk_weights():
    scores = AnalysisScores(toxicity=35, spam=40, scam=30, promotional=25)

    assert fuse_risk(scores, FusionInputs()) == pytest.approx(20.5)


def test_fuse_risk_trust_penalty_only_below_neutral():
    scores = AnalysisScores()

    assert fuse_risk(scores, FusionInputs(trust_score=90)) == 0.0
    assert fuse_risk(scores, FusionInputs(trust_score=0)) == pytest.approx(9.0)


def test_fuse_risk_additive_bumps():
    scores = AnalysisScores()
    inputs = FusionInputs(
        behavior_risk=50,
        recent_violations=2,
        is_spam_duplicate=True,
        is_first_message=True,
        account_age_days=0,
    )

    assert fuse_risk(scores, inputs) == pytest.approx(5 + 10 + 20 + 10)


def test_first_message_from_old_account_gets_no_bump():
    inputs = FusionInputs(is_first_message=True, account_age_days=3)

    assert fuse_risk(AnalysisScores(), inputs) == 0.0


@pytest.mark.parametrize(
    ("risk", "violations", "action", "severity", "review", "hours"),
    [
        (85, 0, ActionType.PERM_BAN, Severity.CRITICAL, True, None),
        (84.9, 0, ActionType.HIDE, Severity.HIGH, False, None),
        (70, 3, ActionType.TEMP_BAN, Severity.HIGH, False, 72),
        (75, 10, ActionType.TEMP_BAN, Severity.HIGH, False, 168),
        (50, 0, ActionType.REVIEW, Severity.MEDIUM, True, None),
        (49.99, 0, ActionType.WARN, Severity.LOW, False, None),
        (30, 0, ActionType.WARN, Severity.LOW, False, None),
        (29.99, 0, ActionType.APPROVE, Severity.LOW, False, None),
    ],
)
def test_select_action_thresholds(risk, violations, action, severity, review, hours):
    plan = select_action(risk, violations)

    assert plan.action is action
    assert plan.severity is severity
    assert plan.requires_human_review is review
    assert plan.duration_hours == hours


def test_decision_confidence_is_clamped():
    assert decision_confidence(0) == 100
    assert decision_confidence(50) == 75
    assert decision_confidence(250) == 0


@pytest.mark.parametrize("risk, expected", [(1, 100), (3, 99), (5, 98), (20.5, 90)])
def test_decision_confidence_rounds_halves_up(risk, expected):
    assert decision_confidence(risk) == expected


@pytest.mark.parametrize(
    ("hour", "label"),
    [(5, "morning"), (11, "morning"), (12, "afternoon"), (17, "evening"), (22, "night"), (3, "night")],
)
def test_time_of_day(hour, label):
    assert time_of_day(NOW.replace(hour=hour)) == label


def test_account_age_days():
    assert account_age_days(None, NOW) == 0
    assert account_age_days(NOW - timedelta(days=3, hours=5), NOW) == 3
    assert account_age_days(NOW + timedelta(days=1), NOW) == 0


def test_describe_decision():
    result = make_result(flagged_patterns=("spam_pattern",))

    assert describe_decision(select_action(10), 10, result) == "Content approved (risk 10.0)"
    assert describe_decision(select_action(35), 35, result) == "warn at risk 35.0: spam_pattern"
    assert describe_decision(select_action(35), 35, make_result()) == "warn at risk 35.0: no specific pattern"


def test_fused_decision_builds_evidence():
    result = make_result(
        toxicity_score=35,
        spam_score=40,
        scam_score=30,
        promotional_score=25,
        detected_languages=("fr",),
        extracted_urls=(ExtractedUrl("https://github.com", "github.com", UrlReputation.SAFE, 10),),
        flagged_patterns=("spam_pattern",),
    )
    inputs = FusionInputs(trust_score=50, behavior_risk=0, is_first_message=True, account_age_days=0)

    risk, plan, evidence = fused_decision(result, inputs, NOW)

    assert risk == pytest.approx(30.5)
    assert plan.action is ActionType.WARN
    assert evidence.analysis_scores.spam == 40
    assert evidence.user_factors.trust_score == 50
    assert evidence.content_factors.has_urls is True
    assert evidence.content_factors.language_detected == "fr"
    assert evidence.content_factors.flagged_patterns == ["spam_pattern"]
    assert evidence.context_factors.room == "global"
    assert evidence.context_factors.is_first_message is True
    assert evidence.context_factors.time_of_day == "afternoon"
    assert evidence.to_dict()["user_factors"]["account_age_days"] == 0
