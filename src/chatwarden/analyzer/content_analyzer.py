"""
Content analyzer: raw text to a multi-signal score bundle.

`ContentAnalyzer` is the interface the behavioral layer depends on.
`HeuristicContentAnalyzer` implements it with keyword and regex tables, a
closed-class-word language guess, and word-list sentiment. None of these are
trained models. Language detection in particular is low precision: it reports
every language with two or more function-word hits and assumes English
otherwise.
"""

from __future__ import annotations

import hashlib
import time
from abc import ABC, abstractmethod
from typing import List, Tuple
from urllib.parse import urlsplit

from chatwarden.analyzer import patterns
from chatwarden.analyzer.risk_assessment import apply_toxicity_floor, classify_risk
from chatwarden.analyzer.sentiment import score_sentiment
from chatwarden.analyzer.text_metrics import (
    extract_urls,
    has_excessive_capitalization,
    has_excessive_repetition,
    normalize_content,
    split_words,
    uppercase_ratio,
)
from chatwarden.datatypes.analysis_datatypes import (
    AnalysisContext,
    ContentAnalysisResult,
    ContentSimilarity,
    ExtractedUrl,
    RecommendedAction,
    RiskLevel,
    Room,
    SemanticCategory,
    UrlReputation,
)
from chatwarden.errors import InvalidInputError
from chatwarden.util.logger import get_logger

logger = get_logger("content_analyzer")


class ContentAnalyzer(ABC):
    """Signal extraction from raw message text."""

    @abstractmethod
    async def analyze(
        self,
        text: str,
        language: str = "en",
        context: AnalysisContext | None = None,
    ) -> ContentAnalysisResult:
        """Score ``text``; raises InvalidInputError for empty or non-string input."""

    @abstractmethod
    def analyze_content_similarity(self, text: str) -> ContentSimilarity:
        """Deterministic fingerprint of ``text``; does not look at other content."""


class HeuristicContentAnalyzer(ContentAnalyzer):
    """Keyword/regex implementation of :class:`ContentAnalyzer`."""

    version = "1.0"

    async def analyze(
        self,
        text: str,
        language: str = "en",
        context: AnalysisContext | None = None,
    ) -> ContentAnalysisResult:
        if not isinstance(text, str) or not text.strip():
            raise InvalidInputError("content must be a non-empty string")

        started = time.perf_counter()
        context = context or AnalysisContext()
        raw = text.strip()
        normalized = normalize_content(raw)

        toxicity_score, toxic_phrase = self._analyze_toxicity(normalized, language)
        sentiment_score = score_sentiment(normalized, language)
        spam_score, spam_flags = self._analyze_spam(normalized, raw)
        scam_score = self._score_patterns(normalized, patterns.SCAM_PATTERNS, patterns.SCAM_PATTERN_WEIGHT)
        promotional_score = self._score_patterns(
            normalized, patterns.PROMOTIONAL_PATTERNS, patterns.PROMOTIONAL_PATTERN_WEIGHT
        )
        extracted_urls = self._analyze_urls(raw)

        flagged: List[str] = list(spam_flags)
        if scam_score > 0:
            flagged.append("scam_pattern")
        if toxic_phrase:
            flagged.append("toxicity_pattern")
        if any(url.reputation is UrlReputation.MALICIOUS for url in extracted_urls):
            flagged.append("malicious_url")
        elif any(url.reputation is UrlReputation.SUSPICIOUS for url in extracted_urls):
            flagged.append("suspicious_url")

        risk_level, recommended_action = self._assess_risk(
            toxicity_score, spam_score, scam_score, promotional_score, context, flagged
        )

        result = ContentAnalysisResult(
            toxicity_score=toxicity_score,
            sentiment_score=sentiment_score,
            spam_score=spam_score,
            scam_score=scam_score,
            promotional_score=promotional_score,
            detected_languages=tuple(self._detect_languages(normalized)),
            flagged_patterns=tuple(flagged),
            extracted_urls=tuple(extracted_urls),
            semantic_categories=tuple(self._analyze_semantic_categories(normalized)),
            risk_level=risk_level,
            recommended_action=recommended_action,
            analysis_version=self.version,
            processing_time_ms=(time.perf_counter() - started) * 1000,
        )
        logger.debug(
            "[ANALYZER] tox=%s spam=%s scam=%s promo=%s risk=%s flags=%s",
            toxicity_score, spam_score, scam_score, promotional_score, risk_level, flagged,
        )
        return result

    def analyze_content_similarity(self, text: str) -> ContentSimilarity:
        if not isinstance(text, str):
            raise InvalidInputError("content must be a string")

        normalized = normalize_content(text)
        words = split_words(normalized)
        return ContentSimilarity(
            content_hash=hashlib.md5(normalized.encode("utf-8")).hexdigest(),
            semantic_hash=self._semantic_hash(words),
            word_count=len(words),
            unique_word_ratio=round(len(set(words)) / max(len(words), 1) * 100),
            uppercase_ratio=uppercase_ratio(text),
            url_count=len(extract_urls(text)),
        )

    # ------------------------------------------------------------------
    # Sub-scorers
    # ------------------------------------------------------------------

    @staticmethod
    def _analyze_toxicity(normalized: str, language: str) -> Tuple[int, bool]:
        """Return the toxicity score and whether a toxic phrase pattern matched."""
        table = patterns.toxicity_table(language)
        score = sum(patterns.TOXICITY_KEYWORD_WEIGHT for word in table.words if word in normalized)
        phrase_hits = sum(1 for pattern in table.patterns if pattern.search(normalized))
        score += phrase_hits * patterns.TOXICITY_PATTERN_WEIGHT
        return min(score, 100), phrase_hits > 0

    @staticmethod
    def _analyze_spam(normalized: str, raw: str) -> Tuple[int, List[str]]:
        flags: List[str] = []
        hits = sum(1 for pattern in patterns.SPAM_PATTERNS if pattern.search(normalized))
        hits += sum(1 for pattern in patterns.SYMBOL_BURST_PATTERNS if pattern.search(raw))
        score = hits * patterns.SPAM_PATTERN_WEIGHT
        if hits:
            flags.append("spam_pattern")

        if has_excessive_repetition(raw):
            score += patterns.SPAM_REPETITION_WEIGHT
            flags.append("excessive_repetition")

        if has_excessive_capitalization(raw):
            score += patterns.SPAM_CAPS_WEIGHT
            flags.append("excessive_caps")

        return min(score, 100), flags

    @staticmethod
    def _score_patterns(normalized: str, table, weight: int) -> int:
        return min(sum(weight for pattern in table if pattern.search(normalized)), 100)

    @staticmethod
    def _detect_languages(normalized: str) -> List[str]:
        detected = [
            language
            for language, marker in patterns.LANGUAGE_MARKERS.items()
            if len(marker.findall(normalized)) >= patterns.LANGUAGE_MIN_HITS
        ]
        return detected or ["en"]

    @staticmethod
    def _analyze_urls(raw: str) -> List[ExtractedUrl]:
        analyzed: List[ExtractedUrl] = []
        for url in extract_urls(raw):
            try:
                domain = urlsplit(url).hostname
            except ValueError:
                domain = None

            if not domain:
                analyzed.append(ExtractedUrl(url, "invalid", UrlReputation.MALICIOUS, patterns.INVALID_URL_SCORE))
                continue

            domain = domain.lower()
            if _domain_matches(domain, patterns.MALICIOUS_DOMAINS):
                reputation, score = UrlReputation.MALICIOUS, patterns.MALICIOUS_SCORE
            elif _domain_matches(domain, patterns.SUSPICIOUS_DOMAINS):
                reputation, score = UrlReputation.SUSPICIOUS, patterns.SUSPICIOUS_SCORE
            elif _domain_matches(domain, patterns.SAFE_DOMAINS):
                reputation, score = UrlReputation.SAFE, patterns.SAFE_SCORE
            else:
                reputation, score = UrlReputation.UNKNOWN, patterns.UNKNOWN_SCORE
            analyzed.append(ExtractedUrl(url, domain, reputation, score))
        return analyzed

    @staticmethod
    def _analyze_semantic_categories(normalized: str) -> List[SemanticCategory]:
        categories: List[SemanticCategory] = []
        for category, keyword_patterns in patterns.SEMANTIC_KEYWORD_PATTERNS.items():
            matches = sum(1 for pattern in keyword_patterns if pattern.search(normalized))
            confidence = min(matches / len(keyword_patterns) * 100, 100.0)
            if confidence >= patterns.SEMANTIC_MIN_CONFIDENCE:
                categories.append(SemanticCategory(category, round(confidence, 1)))
        return categories

    @staticmethod
    def _assess_risk(
        toxicity: float,
        spam: float,
        scam: float,
        promotional: float,
        context: AnalysisContext,
        flagged: List[str],
    ) -> Tuple[RiskLevel, RecommendedAction]:
        risk = toxicity * 0.4 + scam * 0.3 + spam * 0.2 + promotional * 0.1

        if context.room is Room.WORK and promotional > 30:
            risk += 20
        if context.author_trust_score is not None and context.author_trust_score < 30:
            risk += 15
        if context.is_first_message:
            risk += 10

        level, action = classify_risk(risk)
        return apply_toxicity_floor(level, action, flagged)

    @staticmethod
    def _semantic_hash(words: List[str]) -> str:
        content_words = sorted(word for word in words if len(word) > 2 and word not in patterns.STOP_WORDS)
        return hashlib.md5(" ".join(content_words).encode("utf-8")).hexdigest()


def _domain_matches(domain: str, candidates: Tuple[str, ...]) -> bool:
    return any(domain == candidate or domain.endswith("." + candidate) for candidate in candidates)
