"""
Self-tuning filter rules.

A rule is tested against every message in a room it applies to. Every match
counts as a trigger, but only a rule with confidence above 60 whose false
positives do not outnumber its confirmed positives turns a match into an
``adaptive_<rule_id>`` flag. Moderator feedback moves confidence up by 2 per
confirmation and down by 5 per false positive; a rule whose false positives
exceed twice its confirmations is switched off.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, Iterable, List, Pattern, Sequence
from datetime import datetime

from chatwarden.datatypes.analysis_datatypes import Room
from chatwarden.datatypes.behavior_datatypes import AdaptiveFilterRule, RuleContext, RuleType
from chatwarden.errors import InvalidInputError
from chatwarden.util.logger import get_logger
from chatwarden.util.time_utils import utcnow

logger = get_logger("adaptive_rules")

ADAPTIVE_FLAG_PREFIX = "adaptive_"
FLAG_CONFIDENCE = 60
SEMANTIC_MATCH_THRESHOLD = 0.8
CONFIRMATION_STEP = 2
FALSE_POSITIVE_STEP = 5

# Maintenance retires rules that can no longer earn their keep
MAINTENANCE_MIN_CONFIDENCE = 20
MAINTENANCE_MIN_JUDGED = 10
MAINTENANCE_MAX_FALSE_POSITIVE_RATE = 0.5


def default_rules() -> List[AdaptiveFilterRule]:
    """Seed rules installed in every new rule book."""
    return [
        AdaptiveFilterRule(
            id="crypto_pump",
            rule_type=RuleType.PATTERN,
            pattern=r"(to the moon|diamond hands|hodl)",
            confidence=75,
            applicable_languages=("en",),
            context=RuleContext.BOTH,
        ),
    ]


def word_overlap(first: str, second: str) -> float:
    """Jaccard overlap of the lower-cased word sets of two texts."""
    first_words = set(first.lower().split())
    second_words = set(second.lower().split())
    union = first_words | second_words
    if not union:
        return 0.0
    return len(first_words & second_words) / len(union)


def rule_ids_from_flags(flags: Iterable[str]) -> List[str]:
    return [flag[len(ADAPTIVE_FLAG_PREFIX):] for flag in flags if flag.startswith(ADAPTIVE_FLAG_PREFIX)]


class AdaptiveRuleBook:
    """Owns the adaptive rules and their compiled patterns."""

    def __init__(
        self,
        rules: Sequence[AdaptiveFilterRule] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._rules: Dict[str, AdaptiveFilterRule] = {}
        self._compiled: Dict[str, Pattern[str]] = {}
        self._clock = clock
        for rule in default_rules() if rules is None else rules:
            self.add_rule(rule)

    def __len__(self) -> int:
        return len(self._rules)

    def get(self, rule_id: str) -> AdaptiveFilterRule | None:
        return self._rules.get(rule_id)

    def rules(self) -> List[AdaptiveFilterRule]:
        return list(self._rules.values())

    def add_rule(self, rule: AdaptiveFilterRule) -> AdaptiveFilterRule:
        """Register ``rule``, replacing any rule with the same id.

        Raises:
            InvalidInputError: If a pattern rule's regex does not compile.
        """
        if rule.rule_type is RuleType.PATTERN:
            try:
                self._compiled[rule.id] = re.compile(rule.pattern, re.IGNORECASE)
            except re.error as exc:
                logger.warning("[ADAPTIVE RULES] Rejected rule %s, invalid pattern %r: %s", rule.id, rule.pattern, exc)
                raise InvalidInputError(f"invalid pattern for rule {rule.id!r}: {exc}") from exc
        else:
            self._compiled.pop(rule.id, None)

        self._rules[rule.id] = rule
        logger.debug("[ADAPTIVE RULES] Registered rule %s (%s)", rule.id, rule.rule_type)
        return rule

    def apply(self, text: str, room: Room, language: str = "en") -> List[str]:
        """Test every active rule against ``text`` and return the emitted flags."""
        flags: List[str] = []
        lowered = text.lower()
        for rule in self._rules.values():
            if not rule.is_active or not rule.context.applies_to(room):
                continue
            if rule.applicable_languages and language not in rule.applicable_languages:
                continue
            if not self._matches(rule, text, lowered):
                continue

            rule.performance.total_triggers += 1
            if (
                rule.confidence > FLAG_CONFIDENCE
                and rule.performance.false_positives <= rule.performance.confirmed_positives
            ):
                flags.append(f"{ADAPTIVE_FLAG_PREFIX}{rule.id}")
        return flags

    def record_feedback(self, rule_ids: Iterable[str], was_correct: bool, is_override: bool = False) -> int:
        """Apply one moderator verdict to each listed rule. Returns how many rules were updated.

        Feeding the same verdict twice counts it twice.
        """
        updated = 0
        for rule_id in rule_ids:
            rule = self._rules.get(rule_id)
            if rule is None:
                logger.debug("[ADAPTIVE RULES] Feedback for unknown rule %s ignored", rule_id)
                continue

            if was_correct:
                rule.performance.confirmed_positives += 1
                rule.confidence = min(100, rule.confidence + CONFIRMATION_STEP)
            else:
                rule.performance.false_positives += 1
                rule.confidence = max(0, rule.confidence - FALSE_POSITIVE_STEP)
            if is_override:
                rule.performance.overrides += 1

            if rule.is_active and rule.performance.false_positives > rule.performance.confirmed_positives * 2:
                rule.is_active = False
                logger.info(
                    "[ADAPTIVE RULES] Rule %s deactivated (%d false / %d confirmed)",
                    rule.id, rule.performance.false_positives, rule.performance.confirmed_positives,
                )

            rule.last_updated = self._clock()
            updated += 1
        return updated

    def maintain(self) -> int:
        """Retire active rules with collapsed confidence or a poor judged record.

        Returns:
            Number of rules deactivated.
        """
        deactivated = 0
        for rule in self._rules.values():
            if not rule.is_active:
                continue
            judged = rule.performance.confirmed_positives + rule.performance.false_positives
            if rule.confidence <= MAINTENANCE_MIN_CONFIDENCE or (
                judged >= MAINTENANCE_MIN_JUDGED and rule.false_positive_rate > MAINTENANCE_MAX_FALSE_POSITIVE_RATE
            ):
                rule.is_active = False
                rule.last_updated = self._clock()
                deactivated += 1
                logger.info(
                    "[ADAPTIVE RULES] Maintenance retired rule %s (confidence=%d, fp_rate=%.2f)",
                    rule.id, rule.confidence, rule.false_positive_rate,
                )
        return deactivated

    def _matches(self, rule: AdaptiveFilterRule, text: str, lowered: str) -> bool:
        if rule.rule_type is RuleType.PATTERN:
            return self._compiled[rule.id].search(text) is not None
        if rule.rule_type is RuleType.KEYWORD:
            return rule.pattern.lower() in lowered
        return word_overlap(lowered, rule.pattern) > SEMANTIC_MATCH_THRESHOLD
