"""
Behavioral/adaptive layer.

Enriches the content analyzer's output with three signals: the author's
recent behavior, near-duplicate clustering, and adaptive filter rules. It
then adjusts the spam score and re-derives the risk level from a fused score
that replaces the analyzer's own assessment.

All mutable state (behavior cache, clusters, rules) lives in a
:class:`BehaviorState` handed in by the caller, so separate layers never
share it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import timedelta
from statistics import mean
from typing import Dict, Sequence

from chatwarden.analyzer.content_analyzer import ContentAnalyzer
from chatwarden.analyzer.risk_assessment import apply_toxicity_floor, classify_behavior_risk
from chatwarden.behavior.adaptive_rules import AdaptiveRuleBook, rule_ids_from_flags
from chatwarden.behavior.clustering import ContentClusterIndex
from chatwarden.behavior.ttl_cache import TTLCache
from chatwarden.configuration.moderation_settings import ModerationSettings
from chatwarden.database.store import ModerationStore
from chatwarden.datatypes.action_datatypes import ActionType, ModerationAction
from chatwarden.datatypes.analysis_datatypes import (
    AnalysisContext,
    ContentAnalysisResult,
    ModerationContext,
)
from chatwarden.datatypes.behavior_datatypes import (
    AdaptiveFilterRule,
    AdvancedAnalysis,
    ClusterAnalysis,
    ClusterType,
    SuspiciousActivity,
    TrustTrend,
    UserBehaviorPattern,
)
from chatwarden.util.logger import get_logger
from chatwarden.util.time_utils import utcnow

logger = get_logger("behavioral_layer")

RAPID_POSTING_PER_HOUR = 10
REPETITIVE_VARIETY = 30
LINK_SPAM_RATIO = 0.5
NEGATIVE_SENTIMENT = 30
NEGATIVE_REPORT_FREQUENCY = 0.2

FLAG_WEIGHTS = {
    "rapid_posting": 25,
    "repetitive_content": 30,
    "link_spamming": 35,
    "negative_engagement": 20,
}

HIGH_BEHAVIOR_RISK = 70
BEHAVIOR_SPAM_BUMP = 20
SPAM_CLUSTER_BUMP = 40
ADAPTIVE_FLAG_BUMP = 15
TREND_ACTIONS = frozenset({ActionType.WARN, ActionType.HIDE, ActionType.TEMP_BAN})


@dataclass(slots=True)
class BehaviorState:
    """The three mutable caches of one behavioral layer instance."""

    behavior_cache: TTLCache[UserBehaviorPattern]
    clusters: ContentClusterIndex
    rules: AdaptiveRuleBook

    @classmethod
    def create(cls, settings: ModerationSettings | None = None) -> "BehaviorState":
        settings = settings or ModerationSettings()
        return cls(
            behavior_cache=TTLCache(ttl_seconds=settings.behavior_cache_ttl_seconds),
            clusters=ContentClusterIndex(
                spam_min_messages=settings.spam_cluster_min_messages,
                spam_min_authors=settings.spam_cluster_min_authors,
            ),
            rules=AdaptiveRuleBook(),
        )


class BehavioralLayer(ABC):
    """Interface between the content analyzer and the decision engine."""

    @abstractmethod
    async def analyze_advanced(self, text: str, author_id: str, context: ModerationContext) -> AdvancedAnalysis:
        ...

    @abstractmethod
    async def learn_from_feedback(self, analysis_id: str, action: ModerationAction, was_correct: bool) -> None:
        ...

    async def sweep_behavior_patterns(self) -> Dict[str, int]:
        return {}

    async def maintain_rules(self) -> int:
        return 0


class AdaptiveBehavioralLayer(BehavioralLayer):
    """Behavior model, clustering and adaptive rules over a :class:`ModerationStore`."""

    def __init__(
        self,
        store: ModerationStore,
        analyzer: ContentAnalyzer,
        state: BehaviorState | None = None,
        settings: ModerationSettings | None = None,
    ) -> None:
        self._store = store
        self._analyzer = analyzer
        self._settings = settings or ModerationSettings()
        self.state = state or BehaviorState.create(self._settings)

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def analyze_advanced(self, text: str, author_id: str, context: ModerationContext) -> AdvancedAnalysis:
        trust = await self._store.get_user_trust_score(author_id)
        base = await self._analyzer.analyze(
            text,
            context.language,
            AnalysisContext(
                room=context.room,
                author_trust_score=trust.overall_trust_score if trust else None,
                is_first_message=context.is_first_message,
            ),
        )
        behavior = await self.analyze_user_behavior(author_id)
        fingerprint = self._analyzer.analyze_content_similarity(text)

        # Cluster and rule state change below; no await until both are done
        cluster_analysis = self.state.clusters.assign(fingerprint, author_id, base)
        adaptive_flags = self.state.rules.apply(text.strip(), context.room, context.language)

        adjusted = self.adjust_scores(base, behavior.risk_score, cluster_analysis, adaptive_flags)
        fingerprint = replace(
            fingerprint,
            similarity_score=cluster_analysis.similarity_score,
            is_spam_cluster=cluster_analysis.cluster_type is ClusterType.SPAM,
            duplicate_group=cluster_analysis.cluster_id,
        )

        logger.debug(
            "[BEHAVIOR] author=%s behavior_risk=%.1f duplicate=%s cluster=%s adaptive=%s",
            author_id, behavior.risk_score, cluster_analysis.is_duplicate,
            cluster_analysis.cluster_type, adaptive_flags,
        )
        return AdvancedAnalysis(
            analysis=adjusted,
            fingerprint=fingerprint,
            user_behavior_risk=behavior.risk_score,
            cluster_analysis=cluster_analysis,
            adaptive_flags=tuple(adaptive_flags),
        )

    async def analyze_user_behavior(self, human_id: str) -> UserBehaviorPattern:
        """Return the cached behavior snapshot for ``human_id`` or rebuild it from the store."""
        cached = self.state.behavior_cache.get(human_id)
        if cached is not None:
            return cached

        now = utcnow()
        limit = self._settings.behavior_history_limit
        trust = await self._store.get_user_trust_score(human_id)
        analyses = await self._store.get_analyses_for_author(human_id, limit=limit)
        fingerprints = await self._store.get_content_similarities_for_author(human_id, limit=limit)
        reports_filed = await self._store.get_reports_by_reporter(human_id)
        actions = await self._store.get_moderation_actions_for_user(human_id)

        hour_ago = now - timedelta(hours=1)
        message_frequency = sum(1 for record in analyses if record.created_at >= hour_ago)

        if fingerprints:
            content_variety = len({record.similarity.content_hash for record in fingerprints}) / len(fingerprints) * 100
            link_ratio = sum(1 for record in fingerprints if record.similarity.url_count > 0) / len(fingerprints)
        else:
            content_variety, link_ratio = 100.0, 0.0

        avg_sentiment = mean(record.result.sentiment_score for record in analyses) if analyses else 50.0
        report_frequency = (
            trust.total_reports_received / trust.total_messages if trust and trust.total_messages else 0.0
        )

        suspicious = SuspiciousActivity(
            rapid_posting=message_frequency > RAPID_POSTING_PER_HOUR,
            repetitive_content=content_variety < REPETITIVE_VARIETY,
            link_spamming=link_ratio > LINK_SPAM_RATIO,
            negative_engagement=avg_sentiment < NEGATIVE_SENTIMENT or report_frequency > NEGATIVE_REPORT_FREQUENCY,
        )
        risk = float(sum(weight for flag, weight in FLAG_WEIGHTS.items() if getattr(suspicious, flag)))
        if trust is not None:
            risk -= trust.overall_trust_score / 2
        risk = max(0.0, min(100.0, risk))

        pattern = UserBehaviorPattern(
            human_id=human_id,
            message_frequency=message_frequency,
            report_frequency=report_frequency,
            avg_sentiment=avg_sentiment,
            content_variety=content_variety,
            engagement_quality=float(trust.community_engagement_score) if trust else 50.0,
            link_ratio=link_ratio,
            reports_filed=len(reports_filed),
            suspicious_activity=suspicious,
            risk_score=risk,
            trust_trend=self._trust_trend(actions, now),
            computed_at=now,
        )
        self.state.behavior_cache.set(human_id, pattern)
        return pattern

    def _trust_trend(self, actions: Sequence[ModerationAction], now) -> TrustTrend:
        window_start = now - timedelta(days=self._settings.recent_violation_days)
        recent = [action for action in actions if action.created_at >= window_start]
        if not recent:
            return TrustTrend.STABLE
        negative = sum(1 for action in recent if action.action_type in TREND_ACTIONS)
        if negative > 2:
            return TrustTrend.DECLINING
        if negative == 0:
            return TrustTrend.IMPROVING
        return TrustTrend.STABLE

    @staticmethod
    def adjust_scores(
        base: ContentAnalysisResult,
        behavior_risk: float,
        cluster_analysis: ClusterAnalysis,
        adaptive_flags: Sequence[str],
    ) -> ContentAnalysisResult:
        """Raise the spam score from behavioral signals and re-derive the risk level.

        The returned level and action replace the analyzer's; they come from
        ``toxicity*0.3 + spam*0.25 + scam*0.25 + behavior_risk*0.2`` mapped
        through the behavioral 80/60/40 table.
        """
        spam = base.spam_score
        flagged = list(base.flagged_patterns)

        if behavior_risk > HIGH_BEHAVIOR_RISK:
            spam += BEHAVIOR_SPAM_BUMP
        if cluster_analysis.is_duplicate:
            if cluster_analysis.cluster_type is ClusterType.SPAM:
                spam += SPAM_CLUSTER_BUMP
            flagged.append("duplicate_content")
        if adaptive_flags:
            spam += ADAPTIVE_FLAG_BUMP * len(adaptive_flags)
            flagged.extend(adaptive_flags)
        spam = min(100, spam)

        fused = base.toxicity_score * 0.3 + spam * 0.25 + base.scam_score * 0.25 + behavior_risk * 0.2
        level, action = apply_toxicity_floor(*classify_behavior_risk(fused), flagged)

        return replace(
            base,
            spam_score=spam,
            flagged_patterns=tuple(flagged),
            risk_level=level,
            recommended_action=action,
        )

    # ------------------------------------------------------------------
    # Feedback and maintenance
    # ------------------------------------------------------------------

    async def learn_from_feedback(self, analysis_id: str, action: ModerationAction, was_correct: bool) -> None:
        """Update rule performance and cluster labels from a moderator verdict.

        Calling this twice for the same analysis counts the verdict twice;
        callers are expected to send each verdict once.
        """
        record = await self._store.get_moderation_analysis(analysis_id)
        if record is None:
            logger.warning("[BEHAVIOR] Feedback for unknown analysis %s ignored", analysis_id)
            return

        rule_ids = rule_ids_from_flags(record.result.flagged_patterns)
        updated = self.state.rules.record_feedback(rule_ids, was_correct, is_override=action.is_override)

        content_is_bad = (action.action_type not in (ActionType.APPROVE, ActionType.RESTORE)) == was_correct
        cluster_type = ClusterType.SPAM if content_is_bad else ClusterType.LEGITIMATE

        similarity = await self._store.get_content_similarity(record.content_id)
        classified = False
        if similarity is not None:
            cluster_id = similarity.similarity.duplicate_group
            if cluster_id and self.state.clusters.classify(cluster_id, cluster_type):
                classified = True
            else:
                cluster = self.state.clusters.find_by_content_hash(similarity.similarity.content_hash)
                if cluster is not None:
                    classified = self.state.clusters.classify(cluster.cluster_id, cluster_type)

        logger.info(
            "[BEHAVIOR] Feedback for analysis %s (correct=%s): %d rules updated, cluster %s",
            analysis_id, was_correct, updated, cluster_type if classified else "unchanged",
        )

    def add_rule(self, rule: AdaptiveFilterRule) -> AdaptiveFilterRule:
        return self.state.rules.add_rule(rule)

    async def sweep_behavior_patterns(self) -> Dict[str, int]:
        evicted = self.state.behavior_cache.evict_expired()
        pruned = self.state.clusters.prune_idle(self._settings.cluster_retention_seconds)
        logger.info("[BEHAVIOR] Sweep evicted %d behavior snapshots and %d idle clusters", evicted, pruned)
        return {"evicted_patterns": evicted, "pruned_clusters": pruned}

    async def maintain_rules(self) -> int:
        deactivated = self.state.rules.maintain()
        active = sum(1 for rule in self.state.rules.rules() if rule.is_active)
        logger.info("[BEHAVIOR] Rule maintenance: %d active, %d deactivated", active, deactivated)
        return deactivated
