import pytest

from chatwarden.analyzer.sentiment import perform_sentiment_analysis, score_sentiment
from chatwarden.datatypes.analysis_datatypes import SentimentLabel


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("i love this great day", 100),
        ("this is bad and terrible", 0),
        ("good but bad", 50),
        ("just a regular message", 50),
    ],
)
def test_score_sentiment_is_share_of_positive_keywords(text, expected):
    assert score_sentiment(text) == expected


def test_score_sentiment_uses_language_table():
    assert score_sentiment("te odio", "es") == 0
    assert score_sentiment("te odio", "en") == 50


def test_unknown_language_falls_back_to_english():
    assert score_sentiment("great", "xx") == 100


def test_intensifier_doubles_and_clamps():
    result = perform_sentiment_analysis("very good")

    assert result.score == 1.0
    assert result.label is SentimentLabel.VERY_POSITIVE
    assert result.confidence == 10


def test_mixed_tokens_are_neutral():
    result = perform_sentiment_analysis("good bad")

    assert result.score == 0.0
    assert result.label is SentimentLabel.NEUTRAL
    assert result.confidence == 20


def test_negative_token():
    result = perform_sentiment_analysis("That was bad")

    assert result.score == -1.0
    assert result.label is SentimentLabel.VERY_NEGATIVE


def test_no_emotional_tokens():
    result = perform_sentiment_analysis("the meeting is at noon")

    assert result.score == 0.0
    assert result.confidence == 0
    assert result.label is SentimentLabel.NEUTRAL
