import pytest

from chatwarden.analyzer.text_metrics import (
    extract_urls,
    has_excessive_capitalization,
    has_excessive_repetition,
    is_emoji_heavy,
    is_natural_expression,
    normalize_content,
    shannon_entropy,
    split_words,
    uppercase_ratio,
)


def test_normalize_content_collapses_whitespace_and_lowercases():
    assert normalize_content("  Hello   WORLD\n\tagain ") == "hello world again"


def test_normalize_content_strips_symbols_but_keeps_punctuation():
    assert normalize_content("Hi #there, @you! (ok?)") == "hi there, you! (ok?)"


def test_split_words_ignores_empty_tokens():
    assert split_words("a  b") == ["a", "b"]


def test_shannon_entropy_bounds():
    assert shannon_entropy("") == 0.0
    assert shannon_entropy("aaaa") == 0.0
    assert shannon_entropy("abab") == pytest.approx(1.0)


def test_single_character_flood_is_repetition():
    assert has_excessive_repetition("aaaaaaaaaaaa") is True


def test_elongated_word_with_punctuation_is_not_repetition():
    assert has_excessive_repetition("Hellooooo!!!") is False


@pytest.mark.parametrize("text", ["hahahahaha", "noooooooo", "hmmmmmmm", "wowwwww"])
def test_natural_expressions_are_not_repetition(text):
    assert is_natural_expression(text) is True
    assert has_excessive_repetition(text) is False


def test_emoji_heavy_text_is_not_repetition():
    text = "🎉🎉🎉🎉🎉🎉🎉🎉"
    assert is_emoji_heavy(text) is True
    assert has_excessive_repetition(text) is False


def test_diverse_sentence_is_not_repetition():
    assert has_excessive_repetition("The quick brown fox jumps over the lazy dog") is False


def test_dominant_repeated_word_is_repetition():
    assert has_excessive_repetition("spam spam spam spam spam spam") is True


def test_blank_text_is_not_repetition():
    assert has_excessive_repetition("   ") is False


def test_capitalization_needs_ten_letters():
    assert has_excessive_capitalization("STOP NOW") is False
    assert has_excessive_capitalization("STOP SHOUTING AT ME") is True
    assert has_excessive_capitalization("Stop shouting at me") is False


def test_uppercase_ratio_without_letters_is_zero():
    assert uppercase_ratio("1234 !!") == 0
    assert uppercase_ratio("ABcd") == 50


def test_extract_urls_finds_http_and_https():
    text = "see http://example.com and https://github.com/x thanks"
    assert extract_urls(text) == ["http://example.com", "https://github.com/x"]


def test_period_two_pattern_is_repetition():
    # entropy 1.0, no single-character run
    assert has_excessive_repetition("abababababab") is True


def test_period_three_pattern_needs_low_entropy():
    # "aab" repeated has entropy ~0.92, "abc" repeated ~1.58
    assert has_excessive_repetition("aabaabaabaab") is True
    assert has_excessive_repetition("abcabcabcabc") is False


def test_long_run_with_near_zero_entropy_is_repetition():
    text = "aaaaaaaaaaa aaaaaaaaaaa"

    assert shannon_entropy(normalize_content(text)) < 0.5
    assert has_excessive_repetition(text) is True


@pytest.mark.parametrize("run_length, tails", [
    (12, ["bcdefghi", "bcdebcde", "bcbcbcbc", "bbbbbbbb"]),
    (14, ["bcdefg", "bcdbcd", "bcbcbc", "bbbbbb"]),
])
def test_repetition_is_monotonic_in_entropy(run_length, tails):
    samples = ["a" * run_length + tail for tail in tails]
    samples.sort(key=shannon_entropy, reverse=True)

    results = [has_excessive_repetition(sample) for sample in samples]

    assert results == sorted(results)
    assert results[-1] is True
