"""
Decision Engine: the moderation entry point the transport calls for every post.

`AutomatedDecisionEngine.moderate_content` runs the behavioral layer, loads the
author's moderation context, fuses everything into one risk score, picks an
action from the threshold table and executes it against the store. Analysis
runs under a time budget; a timeout or unexpected error yields the safe
fallback decision (review, medium severity, confidence 0) and never an
approval.

It also adjudicates appeals, mutates trust profiles, reports a user's current
restrictions, and exposes the review queue to the admin surface.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Any, List, Mapping, Sequence

from chatwarden.behavior.behavioral_layer import BehavioralLayer
from chatwarden.configuration.moderation_settings import ModerationSettings
from chatwarden.database.store import ModerationStore
from chatwarden.datatypes.action_datatypes import (
    RESTRICTING_ACTIONS,
    VIOLATION_ACTIONS,
    ActionType,
    AppealResult,
    AppealStatus,
    DecisionEvidence,
    ModerationAction,
    ModerationAppeal,
    ModerationDecision,
    Severity,
    TargetType,
    UserModerationStatus,
)
from chatwarden.datatypes.analysis_datatypes import (
    ContentSimilarityRecord,
    ModerationAnalysisRecord,
    ModerationContext,
)
from chatwarden.datatypes.behavior_datatypes import AdvancedAnalysis
from chatwarden.datatypes.queue_datatypes import ModerationQueueItem, QueuePriority, QueueStatus, QueueType
from chatwarden.datatypes.trust_datatypes import NEUTRAL_SCORE, TrustEventType, TrustLevel, UserTrustScore
from chatwarden.engine import risk_fusion
from chatwarden.engine.appeals import AppealVerdict, analyze_appeal_merit, build_restore_action
from chatwarden.engine.review_queue import ReviewQueue
from chatwarden.engine.trust_scoring import apply_trust_event
from chatwarden.errors import AnalysisFailure, InvalidInputError, NotFoundError, PersistenceFailure
from chatwarden.util.logger import get_logger
from chatwarden.util.time_utils import utcnow

logger = get_logger("decision_engine")

FALLBACK_REASON = "Moderation system error - requires human review"


@dataclass(slots=True)
class UserModerationContext:
    """The author's standing at the moment a message is scored."""

    trust_score: UserTrustScore | None
    recent_violations: int
    account_age_days: int
    message_count: int

    @property
    def effective_trust(self) -> float:
        return float(self.trust_score.overall_trust_score) if self.trust_score else float(NEUTRAL_SCORE)


@dataclass(slots=True)
class _Assessment:
    decision: ModerationDecision
    advanced: AdvancedAnalysis


class DecisionEngine(ABC):
    """Operations exposed to the transport and the admin/review surfaces."""

    @abstractmethod
    async def moderate_content(
        self, content_id: str, text: str, author_id: str, context: ModerationContext
    ) -> ModerationDecision:
        ...

    @abstractmethod
    async def process_appeal(
        self, action_id: str, appellant_id: str, reason: str, additional_context: str | None = None
    ) -> AppealResult:
        ...

    @abstractmethod
    async def update_user_trust_score(
        self, human_id: str, event_type: TrustEventType, details: Mapping[str, Any] | None = None
    ) -> UserTrustScore:
        ...

    @abstractmethod
    async def check_user_moderation_status(self, human_id: str) -> UserModerationStatus:
        ...

    @abstractmethod
    async def learn_from_feedback(self, analysis_id: str, action: ModerationAction, was_correct: bool) -> None:
        ...


class AutomatedDecisionEngine(DecisionEngine):
    """Fuses analyzer and behavior signals into enforcement decisions.

    Attributes:
        store: Persistence collaborator.
        behavioral_layer: Produces the enriched analysis for each message.
        queue: Review queue over the same store.
    """

    def __init__(
        self,
        store: ModerationStore,
        behavioral_layer: BehavioralLayer,
        settings: ModerationSettings | None = None,
    ) -> None:
        self.store = store
        self.behavioral_layer = behavioral_layer
        self.settings = settings or ModerationSettings()
        self.queue = ReviewQueue(store)

    # ------------------------------------------------------------------
    # Message moderation
    # ------------------------------------------------------------------

    async def moderate_content(
        self,
        content_id: str,
        text: str,
        author_id: str,
        context: ModerationContext,
    ) -> ModerationDecision:
        """Score one message and enforce the resulting decision.

        Args:
            content_id: Identifier of the message being posted.
            text: Message text.
            author_id: The posting human.
            context: Room, first-message flag, language and account age.

        Returns:
            The decision. ``persisted`` tells whether it reached the store.

        Raises:
            InvalidInputError: If ``text`` is empty or not a string.
        """
        if not isinstance(text, str) or not text.strip():
            raise InvalidInputError("content text must be a non-empty string")

        try:
            assessment = await asyncio.wait_for(
                self._assess(text, author_id, context),
                timeout=self.settings.analysis_timeout_seconds,
            )
        except InvalidInputError:
            raise
        except asyncio.TimeoutError:
            logger.error(
                "[DECISION] Analysis of %s exceeded %.1fs, falling back to review",
                content_id, self.settings.analysis_timeout_seconds,
            )
            return await self._fallback(content_id, context)
        except Exception as exc:
            failure = AnalysisFailure(f"analysis of {content_id!r} failed: {exc}")
            logger.error("[DECISION] %s", failure, exc_info=exc)
            return await self._fallback(content_id, context)

        decision = assessment.decision
        try:
            decision = await self._execute(content_id, text, author_id, context, assessment)
        except PersistenceFailure as exc:
            logger.error("[DECISION] Could not persist decision for %s: %s", content_id, exc)

        logger.info(
            "[DECISION] %s by %s -> %s (risk=%.1f, severity=%s, review=%s, persisted=%s)",
            content_id, author_id, decision.action, decision.risk_score,
            decision.severity, decision.requires_human_review, decision.persisted,
        )
        return decision

    async def _assess(self, text: str, author_id: str, context: ModerationContext) -> _Assessment:
        advanced = await self.behavioral_layer.analyze_advanced(text, author_id, context)
        user_context = await self.get_user_moderation_context(author_id, context)

        now = utcnow()
        inputs = risk_fusion.FusionInputs(
            room=context.room,
            trust_score=user_context.effective_trust,
            behavior_risk=advanced.user_behavior_risk,
            recent_violations=user_context.recent_violations,
            is_spam_duplicate=advanced.cluster_analysis.is_spam_duplicate,
            is_duplicate=advanced.cluster_analysis.is_duplicate,
            is_first_message=context.is_first_message,
            account_age_days=user_context.account_age_days,
        )
        risk, plan, evidence = risk_fusion.fused_decision(advanced.analysis, inputs, now)

        decision = ModerationDecision(
            action=plan.action,
            reason=risk_fusion.describe_decision(plan, risk, advanced.analysis),
            severity=plan.severity,
            requires_human_review=plan.requires_human_review,
            confidence=risk_fusion.decision_confidence(risk),
            risk_score=risk,
            evidence=evidence,
            duration_hours=plan.duration_hours,
        )
        return _Assessment(decision=decision, advanced=advanced)

    async def get_user_moderation_context(
        self, human_id: str, context: ModerationContext | None = None
    ) -> UserModerationContext:
        now = utcnow()
        trust = await self.store.get_user_trust_score(human_id)
        actions = await self.store.get_moderation_actions_for_user(human_id)

        window_start = now - timedelta(days=self.settings.recent_violation_days)
        recent_violations = sum(
            1 for action in actions
            if action.created_at > window_start and action.action_type in VIOLATION_ACTIONS
        )
        return UserModerationContext(
            trust_score=trust,
            recent_violations=recent_violations,
            account_age_days=risk_fusion.account_age_days(context.account_created_at if context else None, now),
            message_count=trust.total_messages if trust else 0,
        )

    async def _execute(
        self,
        content_id: str,
        text: str,
        author_id: str,
        context: ModerationContext,
        assessment: _Assessment,
    ) -> ModerationDecision:
        """Persist the analysis and carry out the decision's side effects."""
        decision = assessment.decision
        advanced = assessment.advanced

        analysis_record = await self.store.create_moderation_analysis(
            ModerationAnalysisRecord(
                content_id=content_id,
                author_id=author_id,
                content_text=text,
                result=advanced.analysis,
                language=context.language,
            )
        )
        await self.store.create_content_similarity(
            ContentSimilarityRecord(content_id=content_id, author_id=author_id, similarity=advanced.fingerprint)
        )
        decision = replace(decision, analysis_id=analysis_record.id)

        if decision.action is not ActionType.APPROVE:
            action = await self._record_action(content_id, author_id, decision, analysis_record.id)
            decision = replace(decision, action_id=action.id)

        if decision.requires_human_review:
            item = await self.queue.enqueue(
                content_id,
                decision.severity,
                analysis_id=analysis_record.id,
                flagged_reasons=[decision.reason],
            )
            decision = replace(decision, queue_item_id=item.id)

        await self.update_user_trust_score(
            author_id,
            TrustEventType.MODERATION_ACTION,
            {"action": decision.action, "severity": decision.severity},
        )
        return replace(decision, persisted=True)

    async def _record_action(
        self,
        content_id: str,
        author_id: str,
        decision: ModerationDecision,
        analysis_id: str,
    ) -> ModerationAction:
        now = utcnow()
        expires_at = now + timedelta(hours=decision.duration_hours) if decision.duration_hours else None
        action = await self.store.create_moderation_action(
            ModerationAction(
                target_id=content_id,
                subject_id=author_id,
                action_type=decision.action,
                severity=decision.severity,
                reason=decision.reason,
                duration_hours=decision.duration_hours,
                expires_at=expires_at,
                evidence=decision.evidence.to_dict(),
                analysis_id=analysis_id,
                created_at=now,
            )
        )

        if decision.action is ActionType.HIDE:
            await self.store.hide_message(content_id, decision.reason)
        elif decision.action in (ActionType.TEMP_BAN, ActionType.PERM_BAN):
            # Account-level enforcement belongs to the identity service
            logger.info("[DECISION] %s recorded for %s; account enforcement deferred", decision.action, author_id)
        return action

    async def _fallback(self, content_id: str, context: ModerationContext) -> ModerationDecision:
        decision = ModerationDecision(
            action=ActionType.REVIEW,
            reason=FALLBACK_REASON,
            severity=Severity.MEDIUM,
            requires_human_review=True,
            confidence=0,
            risk_score=0.0,
            evidence=DecisionEvidence.neutral(str(context.room), context.is_first_message),
        )
        try:
            item = await self.queue.enqueue(content_id, Severity.MEDIUM, flagged_reasons=[FALLBACK_REASON])
        except PersistenceFailure as exc:
            logger.error("[DECISION] Could not queue fallback review for %s: %s", content_id, exc)
            return decision
        return replace(decision, queue_item_id=item.id, persisted=True)

    # ------------------------------------------------------------------
    # Appeals
    # ------------------------------------------------------------------

    async def process_appeal(
        self,
        action_id: str,
        appellant_id: str,
        reason: str,
        additional_context: str | None = None,
    ) -> AppealResult:
        """Adjudicate a user's appeal against an earlier action.

        Raises:
            NotFoundError: If ``action_id`` does not name a stored action.
        """
        original = await self.store.get_moderation_action(action_id)
        if original is None:
            raise NotFoundError("moderation action", action_id)

        trust = await self.store.get_user_trust_score(appellant_id)
        history = await self.store.get_moderation_actions_for_user(appellant_id)
        merit = analyze_appeal_merit(original, trust, history, reason, utcnow())
        verdict = merit.verdict

        if verdict is AppealVerdict.AUTO_APPROVE:
            new_action = await self.store.create_moderation_action(
                build_restore_action(original, "Appeal auto-approved for trusted user")
            )
            if original.target_type is TargetType.MESSAGE and await self.store.is_message_hidden(original.target_id):
                await self.store.restore_message(original.target_id)
            appeal = await self._record_appeal(
                original, appellant_id, reason, additional_context, AppealStatus.APPROVED, new_action_id=new_action.id
            )
            result = AppealResult(
                accepted=True,
                review_required=False,
                reason="Appeal automatically approved based on user trust and violation severity",
                new_action=new_action,
                appeal_id=appeal.id,
            )
        elif verdict is AppealVerdict.AUTO_REJECT:
            appeal = await self._record_appeal(original, appellant_id, reason, additional_context, AppealStatus.DENIED)
            result = AppealResult(
                accepted=False,
                review_required=False,
                reason="Appeal rejected due to severity of violation and user history",
                appeal_id=appeal.id,
            )
        else:
            flagged = [f"appeal: {reason.strip()}"]
            if additional_context:
                flagged.append(f"context: {additional_context.strip()}")
            item = await self.queue.enqueue(
                original.id,
                original.severity,
                queue_type=QueueType.APPEAL,
                analysis_id=original.analysis_id,
                flagged_reasons=flagged,
                content_type="action",
            )
            appeal = await self._record_appeal(
                original, appellant_id, reason, additional_context, AppealStatus.PENDING, queue_item_id=item.id
            )
            result = AppealResult(
                accepted=False,
                review_required=True,
                reason="Appeal queued for human review",
                appeal_id=appeal.id,
            )

        logger.info("[APPEALS] Appeal by %s against %s: %s", appellant_id, action_id, verdict)
        return result

    async def _record_appeal(
        self,
        original: ModerationAction,
        appellant_id: str,
        reason: str,
        additional_context: str | None,
        status: AppealStatus,
        new_action_id: str | None = None,
        queue_item_id: str | None = None,
    ) -> ModerationAppeal:
        return await self.store.create_moderation_appeal(
            ModerationAppeal(
                original_action_id=original.id,
                appellant_id=appellant_id,
                reason=reason,
                status=status,
                additional_context=additional_context,
                new_action_id=new_action_id,
                queue_item_id=queue_item_id,
            )
        )

    # ------------------------------------------------------------------
    # Trust and status
    # ------------------------------------------------------------------

    async def update_user_trust_score(
        self,
        human_id: str,
        event_type: TrustEventType,
        details: Mapping[str, Any] | None = None,
    ) -> UserTrustScore:
        """Apply one trust event, creating the profile with neutral defaults if needed."""
        event_type = TrustEventType(event_type)
        score = await self.store.get_user_trust_score(human_id)
        if score is None:
            score = UserTrustScore(human_id=human_id)
            logger.debug("[TRUST] Created trust profile for %s", human_id)

        previous_level = score.trust_level
        score = apply_trust_event(score, event_type, details, utcnow())
        score = await self.store.save_user_trust_score(score)

        if score.trust_level is not previous_level:
            logger.info("[TRUST] %s moved from %s to %s (score %d)",
                        human_id, previous_level, score.trust_level, score.overall_trust_score)
        return score

    async def check_user_moderation_status(self, human_id: str) -> UserModerationStatus:
        active = await self.store.get_active_moderation_actions(human_id)
        trust = await self.store.get_user_trust_score(human_id)

        return UserModerationStatus(
            is_banned=any(action.action_type is ActionType.PERM_BAN for action in active),
            is_shadow_banned=any(action.action_type is ActionType.SHADOW_BAN for action in active),
            is_restricted=any(action.action_type in RESTRICTING_ACTIONS for action in active),
            trust_level=trust.trust_level if trust else TrustLevel.NEW,
            requires_review=trust.requires_review if trust else False,
            max_daily_messages=trust.max_daily_messages if trust else 50,
            active_restrictions=active,
        )

    # ------------------------------------------------------------------
    # Review queue
    # ------------------------------------------------------------------

    async def get_queue_item(self, item_id: str) -> ModerationQueueItem:
        return await self.queue.get(item_id)

    async def list_queue(
        self,
        status: QueueStatus | Sequence[QueueStatus] | None = None,
        priority: QueuePriority | None = None,
        limit: int = 50,
    ) -> List[ModerationQueueItem]:
        return await self.queue.list(status, priority, limit)

    async def assign_queue_item(self, item_id: str, moderator_id: str) -> ModerationQueueItem:
        return await self.queue.assign(item_id, moderator_id)

    async def resolve_queue_item(
        self,
        item_id: str,
        action_taken: str,
        reviewer_id: str,
        notes: str | None = None,
    ) -> ModerationQueueItem:
        return await self.queue.resolve(item_id, action_taken, reviewer_id, notes)

    # ------------------------------------------------------------------
    # Feedback and housekeeping
    # ------------------------------------------------------------------

    async def learn_from_feedback(self, analysis_id: str, action: ModerationAction, was_correct: bool) -> None:
        await self.behavioral_layer.learn_from_feedback(analysis_id, action, was_correct)

    async def cleanup_expired_actions(self) -> int:
        expired = await self.store.expire_moderation_actions()
        if expired:
            logger.info("[DECISION] Expired %d timed moderation actions", expired)
        return expired
