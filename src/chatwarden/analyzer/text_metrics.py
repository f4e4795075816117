"""
Structural text metrics: normalization, entropy, repetition and capitalization.

The repetition check is built to leave natural language alone. Diverse text
(Shannon entropy above 2.5 bits per character) always passes, as do
emoji-heavy messages and pure exclamations such as "hahaha" or "noooo".
Long single-character runs, a dominant repeated word, and short repeating
character periods are only penalized when the text's entropy is low enough
to show it carries little information.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from typing import List

from chatwarden.analyzer.patterns import URL_PATTERN

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED_SYMBOLS = re.compile(r"[^\w\s.,!?;:'\"()-]")
_NON_LETTERS = re.compile(r"[^a-z]")

_EMOJI = re.compile(
    "[\U0001F300-\U0001F9FF\U0001F600-\U0001F64F\U0001F680-\U0001F6FF"
    "☀-⛿✀-➿\U0001FA70-\U0001FAFF\U0001F1E0-\U0001F1FF]"
)
_NATURAL_EXPRESSION = re.compile(r"(?:a+h+|h+a+|h+m+|z+z+|y+e+s+|n+o+|w+o+w+|o+h+|u+h+|e+h+)+")

_SINGLE_CHAR_RUN = re.compile(r"(.)\1{5,}")
_PERIOD_TWO = re.compile(r"(..)(..)?\1{3,}")
_PERIOD_THREE = re.compile(r"(...)(...)?(...)??\1{2,}")

EMOJI_HEAVY_RATIO = 0.3
HIGH_ENTROPY = 2.5
SHORT_MESSAGE_LENGTH = 12
CAPS_MIN_LETTERS = 10
CAPS_RATIO = 0.7


def normalize_content(text: str) -> str:
    """Trim, collapse whitespace, strip symbols other than basic punctuation, lowercase."""
    collapsed = _WHITESPACE.sub(" ", text.strip())
    return _DISALLOWED_SYMBOLS.sub("", collapsed).lower()


def split_words(normalized: str) -> List[str]:
    return [word for word in normalized.split(" ") if word]


def shannon_entropy(text: str) -> float:
    """Shannon entropy of ``text`` in bits per character; 0.0 for empty text."""
    if not text:
        return 0.0
    length = len(text)
    return -sum((count / length) * math.log2(count / length) for count in Counter(text).values())


def is_emoji_heavy(text: str) -> bool:
    """True when more than 30% of the non-space characters are emoji."""
    visible = len(_WHITESPACE.sub("", text))
    if visible == 0:
        return False
    return len(_EMOJI.findall(text)) / visible > EMOJI_HEAVY_RATIO


def is_natural_expression(text: str) -> bool:
    """True when the letters of ``text`` spell only elongated exclamations (ahh, hmm, yesss, wow...)."""
    letters = _NON_LETTERS.sub("", text.lower())
    return bool(letters) and _NATURAL_EXPRESSION.fullmatch(letters) is not None


def has_excessive_repetition(text: str) -> bool:
    """Return True when ``text`` is low-information repetition.

    ``text`` is the raw message; emoji density is judged on it and everything
    else on its normalized form.
    """
    if is_emoji_heavy(text):
        return False

    sample = normalize_content(text)
    if not sample or is_natural_expression(sample):
        return False

    entropy = shannon_entropy(sample)

    run = _SINGLE_CHAR_RUN.search(sample)
    if run:
        run_length = len(run.group(0))
        run_share = run_length / len(sample)
        if len(sample) < SHORT_MESSAGE_LENGTH:
            if run_share > 0.75 and entropy < 1.5:
                return True
        elif run_share > 0.5 and entropy < 2.0:
            return True
        if entropy < 0.5 and run_length > 10:
            return True

    if entropy > HIGH_ENTROPY:
        return False

    counts: Counter[str] = Counter()
    counted = 0
    for word in split_words(sample):
        if len(word) <= 2:
            continue
        counted += 1
        counts[word] += 1
        if counts[word] >= 5 and counts[word] / counted > 0.6:
            return True

    if len(sample) >= 8:
        if _PERIOD_TWO.search(sample) and entropy < 2.0:
            return True
        if _PERIOD_THREE.search(sample) and entropy < 1.5:
            return True

    return False


def has_excessive_capitalization(text: str) -> bool:
    """True when more than 70% of at least ten letters are uppercase."""
    letters = [char for char in text if char.isalpha()]
    if len(letters) < CAPS_MIN_LETTERS:
        return False
    return sum(1 for char in letters if char.isupper()) / len(letters) > CAPS_RATIO


def uppercase_ratio(text: str) -> int:
    letters = [char for char in text if char.isalpha()]
    return round(sum(1 for char in letters if char.isupper()) / max(len(letters), 1) * 100)


def extract_urls(text: str) -> List[str]:
    return URL_PATTERN.findall(text)
