from datetime import timedelta

import pytest

from chatwarden.behavior.behavioral_layer import AdaptiveBehavioralLayer
from chatwarden.datatypes.action_datatypes import ActionType, ModerationAction, Severity
from chatwarden.datatypes.analysis_datatypes import (
    ContentAnalysisResult,
    ContentSimilarity,
    ContentSimilarityRecord,
    ModerationAnalysisRecord,
    ModerationContext,
    RecommendedAction,
    RiskLevel,
)
from chatwarden.datatypes.behavior_datatypes import (
    AdaptiveFilterRule,
    ClusterAnalysis,
    ClusterType,
    RuleType,
    TrustTrend,
)
from chatwarden.datatypes.trust_datatypes import UserTrustScore
from chatwarden.util.time_utils import utcnow


def make_result(**scores) -> ContentAnalysisResult:
    values = {"toxicity_score": 0, "sentiment_score": 50, "spam_score": 0, "scam_score": 0, "promotional_score": 0}
    values.update(scores)
    return ContentAnalysisResult(**values)


def make_fingerprint(content_hash: str = "hash", url_count: int = 0, duplicate_group: str | None = None):
    return ContentSimilarity(
        content_hash=content_hash,
        semantic_hash=content_hash,
        word_count=3,
        unique_word_ratio=100,
        uppercase_ratio=0,
        url_count=url_count,
        duplicate_group=duplicate_group,
    )


# --------------------------------------------------------------------------
# analyze_advanced
# --------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_analyze_advanced_attaches_cluster_to_fingerprint(behavioral_layer):
    advanced = await behavioral_layer.analyze_advanced("hello everyone good morning", "alice", ModerationContext())

    assert advanced.user_behavior_risk == 0.0
    assert advanced.cluster_analysis.is_duplicate is False
    assert advanced.fingerprint.duplicate_group == advanced.cluster_analysis.cluster_id
    assert advanced.fingerprint.is_spam_cluster is False
    assert advanced.adaptive_flags == ()
    assert advanced.analysis.risk_level is RiskLevel.LOW


@pytest.mark.asyncio
async def test_repeat_of_spam_cluster_raises_spam_score(behavioral_layer, behavior_state):
    text = "hello everyone good morning"
    first = await behavioral_layer.analyze_advanced(text, "alice", ModerationContext())
    behavior_state.clusters.classify(first.cluster_analysis.cluster_id, ClusterType.SPAM)

    second = await behavioral_layer.analyze_advanced(text, "bob", ModerationContext())

    assert second.cluster_analysis.is_spam_duplicate is True
    assert second.analysis.spam_score > first.analysis.spam_score
    assert second.analysis.spam_score == first.analysis.spam_score + 40
    assert "duplicate_content" in second.analysis.flagged_patterns
    assert second.fingerprint.is_spam_cluster is True


@pytest.mark.asyncio
async def test_adaptive_rule_match_is_flagged(behavioral_layer):
    advanced = await behavioral_layer.analyze_advanced("hodl to the moon", "alice", ModerationContext())

    assert advanced.adaptive_flags == ("adaptive_crypto_pump",)
    assert "adaptive_crypto_pump" in advanced.analysis.flagged_patterns
    assert advanced.analysis.spam_score == 15


@pytest.mark.asyncio
async def test_separate_states_do_not_share_clusters(store, analyzer):
    first_layer = AdaptiveBehavioralLayer(store, analyzer)
    second_layer = AdaptiveBehavioralLayer(store, analyzer)

    await first_layer.analyze_advanced("same words here", "alice", ModerationContext())
    result = await second_layer.analyze_advanced("same words here", "bob", ModerationContext())

    assert result.cluster_analysis.is_duplicate is False
    assert len(first_layer.state.clusters) == 1
    assert len(second_layer.state.clusters) == 1


# --------------------------------------------------------------------------
# adjust_scores
# --------------------------------------------------------------------------

def test_adjust_scores_high_behavior_risk_adds_spam():
    adjusted = AdaptiveBehavioralLayer.adjust_scores(make_result(spam_score=10), 80, ClusterAnalysis(), [])

    assert adjusted.spam_score == 30
    assert adjusted.risk_level is RiskLevel.LOW
    assert adjusted.recommended_action is RecommendedAction.APPROVE


def test_adjust_scores_caps_spam_and_rederives_risk():
    base = make_result(toxicity_score=100, spam_score=100, scam_score=100)

    adjusted = AdaptiveBehavioralLayer.adjust_scores(
        base, 100, ClusterAnalysis(is_duplicate=True, cluster_type=ClusterType.SPAM), ["adaptive_x"]
    )

    assert adjusted.spam_score == 100
    assert adjusted.risk_level is RiskLevel.CRITICAL
    assert adjusted.recommended_action is RecommendedAction.AUTO_BAN
    assert adjusted.flagged_patterns == ("duplicate_content", "adaptive_x")


@pytest.mark.parametrize(
    "scores, expected_level, expected_action",
    [
        ({"toxicity_score": 100, "spam_score": 100, "scam_score": 80}, RiskLevel.HIGH, RecommendedAction.AUTO_HIDE),
        ({"toxicity_score": 100, "spam_score": 100, "scam_score": 40}, RiskLevel.HIGH, RecommendedAction.AUTO_HIDE),
        ({"toxicity_score": 100, "spam_score": 40, "scam_score": 20}, RiskLevel.MEDIUM, RecommendedAction.REVIEW),
        ({"toxicity_score": 100, "spam_score": 20}, RiskLevel.LOW, RecommendedAction.APPROVE),
    ],
)
def test_adjust_scores_uses_behavioral_thresholds(scores, expected_level, expected_action):
    # fused scores 75, 65, 45 and 35
    adjusted = AdaptiveBehavioralLayer.adjust_scores(make_result(**scores), 0, ClusterAnalysis(), [])

    assert adjusted.risk_level is expected_level
    assert adjusted.recommended_action is expected_action


def test_adjust_scores_keeps_toxicity_floor():
    base = make_result(toxicity_score=40, flagged_patterns=("toxicity_pattern",))

    adjusted = AdaptiveBehavioralLayer.adjust_scores(base, 0, ClusterAnalysis(), [])

    assert adjusted.risk_level is RiskLevel.MEDIUM


def test_adjust_scores_non_spam_duplicate_only_flags():
    adjusted = AdaptiveBehavioralLayer.adjust_scores(
        make_result(), 0, ClusterAnalysis(is_duplicate=True, cluster_type=ClusterType.UNKNOWN), []
    )

    assert adjusted.spam_score == 0
    assert adjusted.flagged_patterns == ("duplicate_content",)


# --------------------------------------------------------------------------
# analyze_user_behavior
# --------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_rapid_posting_is_flagged(store, behavioral_layer):
    for index in range(12):
        await store.create_moderation_analysis(
            ModerationAnalysisRecord(content_id=f"m{index}", author_id="alice", content_text="hi", result=make_result())
        )

    pattern = await behavioral_layer.analyze_user_behavior("alice")

    assert pattern.message_frequency == 12
    assert pattern.suspicious_activity.rapid_posting is True
    assert pattern.risk_score == 25.0


@pytest.mark.asyncio
async def test_repetitive_link_posting_is_flagged(store, behavioral_layer):
    for index in range(4):
        await store.create_content_similarity(
            ContentSimilarityRecord(content_id=f"m{index}", author_id="alice", similarity=make_fingerprint(url_count=1))
        )

    pattern = await behavioral_layer.analyze_user_behavior("alice")

    assert pattern.content_variety == pytest.approx(25.0)
    assert pattern.link_ratio == pytest.approx(1.0)
    assert pattern.suspicious_activity.repetitive_content is True
    assert pattern.suspicious_activity.link_spamming is True
    assert pattern.risk_score == 65.0


@pytest.mark.asyncio
async def test_trust_lowers_behavior_risk(store, behavioral_layer):
    await store.save_user_trust_score(UserTrustScore(human_id="alice", overall_trust_score=80))
    for index in range(12):
        await store.create_moderation_analysis(
            ModerationAnalysisRecord(content_id=f"m{index}", author_id="alice", content_text="hi", result=make_result())
        )

    pattern = await behavioral_layer.analyze_user_behavior("alice")

    assert pattern.risk_score == 0.0


@pytest.mark.asyncio
async def test_negative_engagement_from_sentiment(store, behavioral_layer):
    await store.create_moderation_analysis(
        ModerationAnalysisRecord(
            content_id="m1", author_id="alice", content_text="awful", result=make_result(sentiment_score=0)
        )
    )

    pattern = await behavioral_layer.analyze_user_behavior("alice")

    assert pattern.suspicious_activity.negative_engagement is True
    assert pattern.risk_score == 20.0


@pytest.mark.asyncio
async def test_behavior_snapshot_is_cached(store, behavioral_layer):
    first = await behavioral_layer.analyze_user_behavior("alice")
    for index in range(12):
        await store.create_moderation_analysis(
            ModerationAnalysisRecord(content_id=f"m{index}", author_id="alice", content_text="hi", result=make_result())
        )

    second = await behavioral_layer.analyze_user_behavior("alice")

    assert second is first
    assert second.message_frequency == 0


@pytest.mark.asyncio
async def test_trust_trend_from_recent_actions(store, behavioral_layer):
    assert (await behavioral_layer.analyze_user_behavior("nobody")).trust_trend is TrustTrend.STABLE

    for index in range(3):
        await store.create_moderation_action(
            ModerationAction(f"m{index}", "alice", ActionType.WARN, Severity.LOW, "warned")
        )
    await store.create_moderation_action(
        ModerationAction("m9", "bob", ActionType.REVIEW, Severity.MEDIUM, "queued")
    )
    await store.create_moderation_action(
        ModerationAction(
            "old", "carol", ActionType.WARN, Severity.LOW, "old", created_at=utcnow() - timedelta(days=90)
        )
    )

    assert (await behavioral_layer.analyze_user_behavior("alice")).trust_trend is TrustTrend.DECLINING
    assert (await behavioral_layer.analyze_user_behavior("bob")).trust_trend is TrustTrend.IMPROVING
    assert (await behavioral_layer.analyze_user_behavior("carol")).trust_trend is TrustTrend.STABLE


# --------------------------------------------------------------------------
# Feedback and maintenance
# --------------------------------------------------------------------------

async def _seed_flagged_analysis(store, behavior_state, content_hash: str = "seeded"):
    cluster = behavior_state.clusters.assign(make_fingerprint(content_hash), "alice")
    record = await store.create_moderation_analysis(
        ModerationAnalysisRecord(
            content_id="m1",
            author_id="alice",
            content_text="hodl",
            result=make_result(flagged_patterns=("adaptive_crypto_pump",)),
        )
    )
    await store.create_content_similarity(
        ContentSimilarityRecord(
            content_id="m1",
            author_id="alice",
            similarity=make_fingerprint(content_hash, duplicate_group=cluster.cluster_id),
        )
    )
    return record, cluster.cluster_id


@pytest.mark.asyncio
async def test_confirmed_feedback_updates_rule_and_marks_cluster_spam(store, behavioral_layer, behavior_state):
    record, cluster_id = await _seed_flagged_analysis(store, behavior_state)
    action = ModerationAction("m1", "alice", ActionType.HIDE, Severity.HIGH, "hidden", analysis_id=record.id)

    await behavioral_layer.learn_from_feedback(record.id, action, was_correct=True)

    rule = behavior_state.rules.get("crypto_pump")
    assert rule.performance.confirmed_positives == 1
    assert rule.confidence == 77
    assert behavior_state.clusters.get(cluster_id).cluster_type is ClusterType.SPAM


@pytest.mark.asyncio
async def test_rejected_feedback_marks_cluster_legitimate(store, behavioral_layer, behavior_state):
    record, cluster_id = await _seed_flagged_analysis(store, behavior_state)
    action = ModerationAction("m1", "alice", ActionType.HIDE, Severity.HIGH, "hidden", is_override=True)

    await behavioral_layer.learn_from_feedback(record.id, action, was_correct=False)

    rule = behavior_state.rules.get("crypto_pump")
    assert rule.performance.false_positives == 1
    assert rule.performance.overrides == 1
    assert behavior_state.clusters.get(cluster_id).cluster_type is ClusterType.LEGITIMATE


@pytest.mark.asyncio
async def test_feedback_for_unknown_analysis_is_ignored(behavioral_layer, behavior_state):
    action = ModerationAction("m1", "alice", ActionType.WARN, Severity.LOW, "warned")

    await behavioral_layer.learn_from_feedback("missing", action, was_correct=True)

    assert behavior_state.rules.get("crypto_pump").performance.confirmed_positives == 0


@pytest.mark.asyncio
async def test_added_rule_takes_part_in_analysis(behavioral_layer):
    behavioral_layer.add_rule(
        AdaptiveFilterRule(id="nitro", rule_type=RuleType.KEYWORD, pattern="free nitro", confidence=90)
    )

    advanced = await behavioral_layer.analyze_advanced("grab your free nitro", "alice", ModerationContext())

    assert "adaptive_nitro" in advanced.adaptive_flags


@pytest.mark.asyncio
async def test_sweep_and_maintenance_report_counts(behavioral_layer, behavior_state):
    await behavioral_layer.analyze_user_behavior("alice")
    behavior_state.rules.get("crypto_pump").confidence = 10

    swept = await behavioral_layer.sweep_behavior_patterns()
    retired = await behavioral_layer.maintain_rules()

    assert swept == {"evicted_patterns": 0, "pruned_clusters": 0}
    assert retired == 1
    assert behavior_state.rules.get("crypto_pump").is_active is False
