"""Word-list sentiment scoring."""

from __future__ import annotations

from chatwarden.analyzer.patterns import INTENSIFIERS, sentiment_words
from chatwarden.analyzer.text_metrics import normalize_content, split_words
from chatwarden.datatypes.analysis_datatypes import SentimentAnalysis, SentimentLabel


def score_sentiment(normalized: str, language: str = "en") -> int:
    """Return a 0-100 sentiment score where 50 is neutral.

    The score is the share of positive keywords among all emotional keywords
    present in the text. Text without any emotional keyword is neutral.
    """
    positive, negative = sentiment_words(language)
    positive_hits = sum(1 for word in positive if word in normalized)
    negative_hits = sum(1 for word in negative if word in normalized)
    total = positive_hits + negative_hits
    if total == 0:
        return 50
    return round(positive_hits / total * 100)


def perform_sentiment_analysis(text: str, language: str = "en") -> SentimentAnalysis:
    """Token-level sentiment with intensifier doubling.

    Each positive token adds one point and each negative token removes one;
    a preceding intensifier ("very", "really", ...) doubles the contribution.
    The total is divided by the number of emotional tokens, so ``score`` lies
    in [-1, 1] before intensifiers and is clamped there afterwards.
    """
    positive, negative = sentiment_words(language)
    words = split_words(normalize_content(text))

    total = 0
    emotional = 0
    for index, word in enumerate(words):
        multiplier = 2 if index > 0 and words[index - 1] in INTENSIFIERS else 1
        if word in positive:
            total += multiplier
            emotional += 1
        elif word in negative:
            total -= multiplier
            emotional += 1

    normalized_score = total / emotional if emotional else 0.0

    if normalized_score <= -0.6:
        label = SentimentLabel.VERY_NEGATIVE
    elif normalized_score <= -0.2:
        label = SentimentLabel.NEGATIVE
    elif normalized_score >= 0.6:
        label = SentimentLabel.VERY_POSITIVE
    elif normalized_score >= 0.2:
        label = SentimentLabel.POSITIVE
    else:
        label = SentimentLabel.NEUTRAL

    return SentimentAnalysis(
        label=label,
        confidence=min(100, emotional * 10),
        score=max(-1.0, min(1.0, normalized_score)),
    )
