import pytest

from chatwarden.analyzer.content_analyzer import HeuristicContentAnalyzer
from chatwarden.datatypes.analysis_datatypes import (
    AnalysisContext,
    RecommendedAction,
    RiskLevel,
    UrlReputation,
)
from chatwarden.errors import InvalidInputError


@pytest.fixture()
def heuristic() -> HeuristicContentAnalyzer:
    return HeuristicContentAnalyzer()


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   \n\t", None, 42])
async def test_analyze_rejects_blank_or_non_string(heuristic, text):
    with pytest.raises(InvalidInputError):
        await heuristic.analyze(text)


@pytest.mark.asyncio
async def test_clean_message_is_low_risk(heuristic):
    result = await heuristic.analyze("hello there")

    assert result.toxicity_score == 0
    assert result.spam_score == 0
    assert result.scam_score == 0
    assert result.promotional_score == 0
    assert result.sentiment_score == 50
    assert result.detected_languages == ("en",)
    assert result.risk_level is RiskLevel.LOW
    assert result.recommended_action is RecommendedAction.APPROVE
    assert result.processing_time_ms >= 0


@pytest.mark.asyncio
async def test_toxic_phrase_is_never_below_medium(heuristic):
    result = await heuristic.analyze("you are stupid")

    assert result.toxicity_score == 40
    assert "toxicity_pattern" in result.flagged_patterns
    assert result.risk_level is RiskLevel.MEDIUM
    assert result.recommended_action is RecommendedAction.REVIEW


@pytest.mark.asyncio
async def test_scam_patterns_add_thirty_each(heuristic):
    result = await heuristic.analyze("You won 5000 dollars, click here to claim")

    assert result.scam_score == 60
    assert "scam_pattern" in result.flagged_patterns


@pytest.mark.asyncio
async def test_spam_and_promotional_patterns(heuristic):
    result = await heuristic.analyze("Limited time offer, use promo code SAVE")

    assert result.spam_score == 40
    assert "spam_pattern" in result.flagged_patterns
    assert result.promotional_score == 25


@pytest.mark.asyncio
async def test_symbol_burst_is_matched_on_raw_text(heuristic):
    result = await heuristic.analyze("Hellooooo!!!")

    assert "spam_pattern" in result.flagged_patterns
    assert "excessive_repetition" not in result.flagged_patterns


@pytest.mark.asyncio
async def test_character_flood_adds_repetition_penalty(heuristic):
    result = await heuristic.analyze("aaaaaaaaaaaa")

    assert "excessive_repetition" in result.flagged_patterns
    assert result.spam_score >= 30


@pytest.mark.asyncio
async def test_shouting_adds_caps_penalty(heuristic):
    result = await heuristic.analyze("THIS IS A HUGE ANNOUNCEMENT")

    assert "excessive_caps" in result.flagged_patterns
    assert result.spam_score == 15


@pytest.mark.asyncio
async def test_url_reputation_tiers(heuristic):
    result = await heuristic.analyze(
        "see https://phishing-site.com/login or http://bit.ly/abc or https://github.com/repo or https://example.org"
    )

    reputations = {url.domain: url.reputation for url in result.extracted_urls}
    assert reputations == {
        "phishing-site.com": UrlReputation.MALICIOUS,
        "bit.ly": UrlReputation.SUSPICIOUS,
        "github.com": UrlReputation.SAFE,
        "example.org": UrlReputation.UNKNOWN,
    }
    assert "malicious_url" in result.flagged_patterns
    assert "suspicious_url" not in result.flagged_patterns


@pytest.mark.asyncio
async def test_subdomain_inherits_domain_reputation(heuristic):
    result = await heuristic.analyze("join https://www.discord.gg/invite now")

    assert result.extracted_urls[0].reputation is UrlReputation.SUSPICIOUS
    assert "suspicious_url" in result.flagged_patterns


@pytest.mark.asyncio
async def test_language_detection_reports_marked_languages(heuristic):
    result = await heuristic.analyze("el perro y la casa con el gato")

    assert "es" in result.detected_languages
    assert "en" not in result.detected_languages
    assert result.primary_language == "es"


@pytest.mark.asyncio
async def test_context_raises_advisory_risk(heuristic):
    text = "Buy now, huge discount"

    plain = await heuristic.analyze(text)
    risky = await heuristic.analyze(
        text, context=AnalysisContext(author_trust_score=20, is_first_message=True)
    )

    assert plain.promotional_score == 50
    assert plain.recommended_action is RecommendedAction.APPROVE
    assert risky.recommended_action is RecommendedAction.AUTO_WARN


@pytest.mark.asyncio
async def test_semantic_categories_need_twenty_percent(heuristic):
    result = await heuristic.analyze("I need help, my code has an error")

    categories = {category.category: category.confidence for category in result.semantic_categories}
    assert categories["help_request"] == pytest.approx(33.3)
    assert "technology" not in categories


def test_fingerprint_ignores_case_and_spacing(heuristic):
    first = heuristic.analyze_content_similarity("Hello   World")
    second = heuristic.analyze_content_similarity("hello world")

    assert first.content_hash == second.content_hash
    assert first.semantic_hash == second.semantic_hash
    assert first.similarity_score == 0.0
    assert first.duplicate_group is None


def test_semantic_hash_ignores_word_order_and_stop_words(heuristic):
    first = heuristic.analyze_content_similarity("the cat and the dog")
    second = heuristic.analyze_content_similarity("dog cat")

    assert first.content_hash != second.content_hash
    assert first.semantic_hash == second.semantic_hash


def test_fingerprint_counts(heuristic):
    fingerprint = heuristic.analyze_content_similarity("AB ab cd cd https://x.io")

    assert fingerprint.word_count == 5
    assert fingerprint.unique_word_ratio == 60
    assert fingerprint.url_count == 1


def test_fingerprint_rejects_non_string(heuristic):
    with pytest.raises(InvalidInputError):
        heuristic.analyze_content_similarity(None)


EVERY_TABLE = (
    "You are stupid, you idiot! You won 5000 dollars, click here to claim. "
    "Limited time offer, use promo code SAVE, buy now huge discount. "
    "Diamond hands, to the moon!!! http://phishing-site.com https://bit.ly/x "
)


@pytest.mark.asyncio
@pytest.mark.parametrize("text, language", [
    ("?", "en"),
    ("a", "xx"),
    ("!!!", "en"),
    ("a" * 5000, "en"),
    ("BUY NOW " * 400, "en"),
    ("🎉" * 300, "en"),
    (EVERY_TABLE, "en"),
    (EVERY_TABLE * 25, "en"),
    (EVERY_TABLE.upper() * 10, "es"),
])
async def test_sub_scores_stay_within_bounds(heuristic, text, language):
    result = await heuristic.analyze(text, language, AnalysisContext(author_trust_score=0, is_first_message=True))

    for score in (
        result.toxicity_score,
        result.sentiment_score,
        result.spam_score,
        result.scam_score,
        result.promotional_score,
    ):
        assert 0 <= score <= 100
