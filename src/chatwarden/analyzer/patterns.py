"""
Keyword and regex tables used by the heuristic content analyzer.

Every regex here is matched against the normalized (lower-cased, symbol
stripped) message unless its name says otherwise.
"""

from __future__ import annotations

import re
from typing import Dict, List, NamedTuple, Pattern, Tuple


class ToxicityTable(NamedTuple):
    words: Tuple[str, ...]
    patterns: Tuple[Pattern[str], ...]


def _compile(*expressions: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(expression, re.IGNORECASE) for expression in expressions)


# ---------------------------------------------------------------------------
# Toxicity: keyword hits weigh 15, pattern hits 25
# ---------------------------------------------------------------------------
TOXICITY_KEYWORD_WEIGHT = 15
TOXICITY_PATTERN_WEIGHT = 25

TOXICITY_TABLES: Dict[str, ToxicityTable] = {
    "en": ToxicityTable(
        words=(
            "idiot", "stupid", "moron", "retard", "dumb", "trash", "garbage", "pathetic",
            "loser", "failure", "worthless", "useless", "disgusting", "hate", "kill",
            "die", "death", "murder", "violence", "terror", "threat", "bomb", "gun",
            "weapon", "attack", "destroy", "annihilate",
        ),
        patterns=_compile(
            r"you\s+(are|r)\s+(stupid|dumb|an?\s+idiot)",
            r"kill\s+your?self",
            r"go\s+(die|kill\s+yourself)",
            r"i\s+(hate|despise)\s+you",
            r"\b(fuck|shit|damn)\s+(you|off|this)",
            r"\b(nazi|hitler|genocide|holocaust\s+denial)",
        ),
    ),
    "es": ToxicityTable(
        words=(
            "idiota", "estúpido", "tonto", "basura", "patético", "perdedor",
            "inútil", "odio", "matar", "muerte", "violencia", "amenaza",
        ),
        patterns=_compile(
            r"eres\s+un?\s+(idiota|estúpido|tonto)",
            r"vete\s+a\s+morir",
            r"te\s+odio",
        ),
    ),
    "fr": ToxicityTable(
        words=(
            "idiot", "stupide", "con", "débile", "nul", "pourri", "pathétique",
            "perdant", "inutile", "haine", "tuer", "mort", "violence", "menace",
        ),
        patterns=_compile(
            r"tu\s+es\s+un?\s+(idiot|con|débile)",
            r"va\s+mourir",
            r"je\s+te\s+déteste",
        ),
    ),
    "de": ToxicityTable(
        words=(
            "idiot", "dumm", "blöd", "müll", "pathetic", "verlierer",
            "nutzlos", "hass", "töten", "tod", "gewalt", "drohung",
        ),
        patterns=_compile(
            r"du\s+bist\s+(dumm|blöd|ein\s+idiot)",
            r"geh\s+sterben",
            r"ich\s+hasse\s+dich",
        ),
    ),
    "it": ToxicityTable(words=("idiota", "stupido", "scemo", "spazzatura"), patterns=()),
    "pt": ToxicityTable(words=("idiota", "estúpido", "burro", "lixo"), patterns=()),
    "ru": ToxicityTable(words=("идиот", "глупый", "дурак", "мусор"), patterns=()),
    "ja": ToxicityTable(words=("ばか", "あほ", "くそ", "ゴミ"), patterns=()),
    "ko": ToxicityTable(words=("바보", "멍청이", "쓰레기", "병신"), patterns=()),
    "zh": ToxicityTable(words=("笨蛋", "愚蠢", "垃圾", "白痴"), patterns=()),
}


def toxicity_table(language: str) -> ToxicityTable:
    """Return the table for ``language``, falling back to English."""
    return TOXICITY_TABLES.get((language or "en").lower(), TOXICITY_TABLES["en"])


# ---------------------------------------------------------------------------
# Spam, scam, promotional
# ---------------------------------------------------------------------------
SPAM_PATTERN_WEIGHT = 20
SPAM_REPETITION_WEIGHT = 30
SPAM_CAPS_WEIGHT = 15
SCAM_PATTERN_WEIGHT = 30
PROMOTIONAL_PATTERN_WEIGHT = 25

SPAM_PATTERNS = _compile(
    # Crypto/financial
    r"\b(bitcoin|btc|ethereum|eth|crypto|nft)\s+(investment|trading|profit|signals?)\b",
    r"\b(guaranteed|easy|quick)\s+(money|profit|returns?|income)\b",
    r"\bmake\s+\$?\d+\s*(per|/)\s+(day|hour|week)\b",
    r"\b(join|check)\s+(my|our)\s+(telegram|discord|whatsapp)\s+(group|channel)\b",
    # Generic
    r"\b(click|visit|check)\s+(link|url)\s+(in|below|here)\b",
    r"\b(dm|message|contact)\s+me\s+(for|about|regarding)\b",
    r"\bfollow\s+(me|us)\s+(on|@)\b",
    r"\b(promo|discount|coupon)\s+code\b",
    r"\b(limited|exclusive)\s+(time|offer)\b",
)

# Matched against the raw text; normalization strips emoji
SYMBOL_BURST_PATTERNS = _compile(
    "[\U0001F389\U0001F525\U0001F4B0\U0001F48E\U0001F680\U0001F4C8]{3,}",
    r"!{3,}",
)

SCAM_PATTERNS = _compile(
    r"\b(nigerian|prince|inheritance|beneficiary)\b",
    r"\b(won|lottery|jackpot|prize)\s+\$?\d+",
    r"\b(verify|confirm)\s+(account|identity|payment)\b",
    r"\b(suspended|blocked|frozen)\s+account\b",
    r"\bclick\s+(here|link)\s+to\s+(claim|verify|activate)\b",
    r"\b(phishing|malware|virus)\b",
    r"\b(fake|scam|fraud|steal)\b",
)

PROMOTIONAL_PATTERNS = _compile(
    r"\b(buy|purchase|order)\s+(now|today)\b",
    r"\b(discount|sale|offer|deal)\b",
    r"\b(subscribe|follow|like)\s+(me|us|our)\b",
    r"\b(check\s+out|visit)\s+(my|our)\b",
)


# ---------------------------------------------------------------------------
# Sentiment
# ---------------------------------------------------------------------------
POSITIVE_WORDS: Dict[str, Tuple[str, ...]] = {
    "en": ("good", "great", "awesome", "amazing", "love", "like", "happy", "excellent", "wonderful", "fantastic"),
    "es": ("bueno", "genial", "increíble", "amor", "feliz", "excelente", "maravilloso"),
    "fr": ("bon", "génial", "incroyable", "amour", "heureux", "excellent", "merveilleux"),
}

NEGATIVE_WORDS: Dict[str, Tuple[str, ...]] = {
    "en": ("bad", "terrible", "awful", "hate", "dislike", "sad", "angry", "horrible", "disgusting"),
    "es": ("malo", "terrible", "horrible", "odio", "triste", "enfadado"),
    "fr": ("mauvais", "terrible", "horrible", "déteste", "triste", "en colère"),
}

INTENSIFIERS = frozenset({"very", "extremely", "really", "absolutely", "totally"})


def sentiment_words(language: str) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """Return ``(positive, negative)`` word lists for ``language``, English by default."""
    key = (language or "en").lower()
    return POSITIVE_WORDS.get(key, POSITIVE_WORDS["en"]), NEGATIVE_WORDS.get(key, NEGATIVE_WORDS["en"])


# ---------------------------------------------------------------------------
# Language detection: closed-class words, a language needs two hits
# ---------------------------------------------------------------------------
LANGUAGE_MARKERS: Dict[str, Pattern[str]] = {
    "en": re.compile(r"\b(the|and|or|but|in|on|at|to|for|with|by)\b"),
    "es": re.compile(r"\b(el|la|los|las|y|o|pero|en|de|con|por|para)\b"),
    "fr": re.compile(r"\b(le|la|les|et|ou|mais|dans|de|avec|par|pour)\b"),
    "de": re.compile(r"\b(der|die|das|und|oder|aber|in|von|mit|für)\b"),
    "it": re.compile(r"\b(il|la|i|le|e|o|ma|in|di|con|per)\b"),
    "pt": re.compile(r"\b(o|a|os|as|e|ou|mas|em|de|com|por|para)\b"),
}
LANGUAGE_MIN_HITS = 2


# ---------------------------------------------------------------------------
# URL reputation
# ---------------------------------------------------------------------------
URL_PATTERN = re.compile(r"https?://\S+", re.IGNORECASE)

MALICIOUS_DOMAINS = ("phishing-site.com", "fake-bank.net", "scam-crypto.org")
SUSPICIOUS_DOMAINS = (
    "bit.ly", "tinyurl.com", "short.link", "t.co", "ow.ly",
    "telegram.me", "discord.gg", "whatsapp.com",
)
SAFE_DOMAINS = (
    "github.com", "gitlab.com", "stackoverflow.com", "medium.com",
    "dev.to", "twitter.com", "x.com", "linkedin.com", "youtube.com", "youtu.be",
    "docs.worldcoin.org", "worldcoin.org", "ethereum.org",
)

MALICIOUS_SCORE = 90
SUSPICIOUS_SCORE = 70
SAFE_SCORE = 10
UNKNOWN_SCORE = 50
INVALID_URL_SCORE = 100


# ---------------------------------------------------------------------------
# Semantic categories
# ---------------------------------------------------------------------------
SEMANTIC_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "technology": ("code", "programming", "software", "app", "website", "ai", "ml"),
    "business": ("startup", "company", "product", "market", "sales", "revenue"),
    "help_request": ("help", "problem", "issue", "stuck", "error", "how to"),
    "collaboration": ("team", "together", "collaborate", "partner", "join", "group"),
    "spam": ("free money", "get rich", "click here", "buy now", "limited time"),
}
SEMANTIC_MIN_CONFIDENCE = 20.0

SEMANTIC_KEYWORD_PATTERNS: Dict[str, List[Pattern[str]]] = {
    category: [re.compile(rf"\b{re.escape(keyword)}\b") for keyword in keywords]
    for category, keywords in SEMANTIC_CATEGORIES.items()
}


# ---------------------------------------------------------------------------
# Fingerprinting
# ---------------------------------------------------------------------------
STOP_WORDS = frozenset({"the", "and", "or", "but", "in", "on", "at", "to", "for", "with", "by"})
