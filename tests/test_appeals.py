from datetime import datetime, timedelta, timezone

from chatwarden.datatypes.action_datatypes import ActionType, ModerationAction, Severity
from chatwarden.datatypes.trust_datatypes import UserTrustScore
from chatwarden.engine.appeals import AppealVerdict, analyze_appeal_merit, build_restore_action

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
GOOD_REASON = "I was quoting the rules back to someone"


def make_action(action_type=ActionType.WARN, severity=Severity.LOW, days_ago: int = 1, **kwargs):
    return ModerationAction(
        target_id="m1",
        subject_id="alice",
        action_type=action_type,
        severity=severity,
        reason="flagged",
        created_at=NOW - timedelta(days=days_ago),
        **kwargs,
    )


def trusted(score: int = 75) -> UserTrustScore:
    return UserTrustScore(human_id="alice", overall_trust_score=score)


def test_minor_violation_by_trusted_user_is_auto_approved():
    original = make_action()

    merit = analyze_appeal_merit(original, trusted(), [original], GOOD_REASON, NOW)

    assert merit.verdict is AppealVerdict.AUTO_APPROVE


def test_trust_of_exactly_seventy_is_not_enough():
    original = make_action()

    merit = analyze_appeal_merit(original, trusted(70), [original], GOOD_REASON, NOW)

    assert merit.is_trusted_user is False
    assert merit.verdict is AppealVerdict.HUMAN_REVIEW


def test_missing_trust_record_is_never_trusted():
    original = make_action()

    merit = analyze_appeal_merit(original, None, [original], GOOD_REASON, NOW)

    assert merit.verdict is AppealVerdict.HUMAN_REVIEW


def test_short_reason_goes_to_review():
    original = make_action()

    merit = analyze_appeal_merit(original, trusted(), [original], "   sorry, my bad!     ", NOW)

    assert merit.has_reasonable_reason is False
    assert merit.verdict is AppealVerdict.HUMAN_REVIEW


def test_any_past_ban_blocks_auto_approval():
    original = make_action()
    old_ban = make_action(ActionType.TEMP_BAN, Severity.HIGH, days_ago=400)

    merit = analyze_appeal_merit(original, trusted(), [original, old_ban], GOOD_REASON, NOW)

    assert merit.has_clean_history is False
    assert merit.has_recent_bans is False
    assert merit.verdict is AppealVerdict.HUMAN_REVIEW


def test_critical_violation_with_recent_ban_is_auto_rejected():
    original = make_action(ActionType.PERM_BAN, Severity.CRITICAL)

    merit = analyze_appeal_merit(original, trusted(95), [original], GOOD_REASON, NOW)

    assert merit.verdict is AppealVerdict.AUTO_REJECT


def test_critical_violation_without_recent_ban_goes_to_review():
    original = make_action(ActionType.HIDE, Severity.CRITICAL)
    old_ban = make_action(ActionType.TEMP_BAN, Severity.HIGH, days_ago=45)

    merit = analyze_appeal_merit(original, trusted(), [original, old_ban], GOOD_REASON, NOW)

    assert merit.verdict is AppealVerdict.HUMAN_REVIEW


def test_restore_action_overrides_original():
    original = make_action(evidence={"risk": 35}, analysis_id="a1")

    restore = build_restore_action(original, "Appeal accepted")

    assert restore.action_type is ActionType.RESTORE
    assert restore.overridden_action_id == original.id
    assert restore.is_appeal is True
    assert restore.is_override is True
    assert restore.target_id == original.target_id
    assert restore.subject_id == original.subject_id
    assert restore.analysis_id == "a1"
    assert restore.evidence == {"risk": 35}
    assert restore.evidence is not original.evidence
    assert restore.id != original.id
