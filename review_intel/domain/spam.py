"""
Spam Classifier - Rule-Based Review Spam Detection
==================================================

ARCHITECTURAL DECISION:
- Pure function of (text, rating): no I/O, no clock, deterministic
- Every rule is evaluated; the verdict lists ALL matching reasons in rule order
- Thresholds and lexicons live in a frozen SpamRules value so the settings
  layer can tune them without touching the rules

USAGE:
    verdict = classify_spam("Click here for free money!!!", rating=5)
    verdict.is_spam    # True
    verdict.reasons    # ["Commercial spam keywords"]
"""

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional, Tuple


COMMERCIAL_KEYWORDS: Tuple[str, ...] = (
    r"viagra", r"cialis", r"casino", r"lottery", r"win \$", r"click here",
    r"free money", r"earn \$\d+", r"work from home", r"diet pill",
)

SUSPICIOUS_PHRASES: Tuple[str, ...] = (
    "call me at", "contact me on", "whatsapp me", "dm me", "follow me",
    "check my profile", "visit my website", "this is a test", "testing 123",
    "lorem ipsum",
)

POSITIVE_LEXICON: Tuple[str, ...] = (
    "excellent", "amazing", "wonderful", "fantastic", "perfect",
    "love", "great", "best", "outstanding", "superb",
)

NEGATIVE_LEXICON: Tuple[str, ...] = (
    "terrible", "awful", "horrible", "worst", "disgusting",
    "filthy", "rude", "disaster", "pathetic", "useless",
)

REASON_TOO_SHORT = "Review text too short"
REASON_COMMERCIAL = "Commercial spam keywords"
REASON_URL = "Suspicious URL in review"
REASON_REPEATED_CHAR = "Repeated character spam"
REASON_CAPS = "Excessive caps"
REASON_REPEATED_WORD = "Repeated word pattern"
REASON_MISMATCH_5 = "Rating-sentiment mismatch: 5 stars with very negative text"
REASON_MISMATCH_1 = "Rating-sentiment mismatch: 1 star with very positive text"


@dataclass(frozen=True)
class SpamRules:
    """
    Tunable thresholds for the spam rules.

    Attributes:
        min_length: Minimum trimmed body length
        url_min_length: Non-space characters after http(s):// that make a URL suspicious
        repeat_char_run: Extra repetitions of one character tolerated (6 -> 7 in a row is spam)
        caps_run: Length of an all-caps/whitespace run counted as shouting
        repeat_word_run: Consecutive extra repetitions of a word counted as spam
        mismatch_threshold: Lexicon hits that must be exceeded for a rating mismatch
    """
    min_length: int = 10
    url_min_length: int = 15
    repeat_char_run: int = 6
    caps_run: int = 40
    repeat_word_run: int = 3
    mismatch_threshold: int = 3
    commercial_keywords: Tuple[str, ...] = COMMERCIAL_KEYWORDS
    suspicious_phrases: Tuple[str, ...] = SUSPICIOUS_PHRASES
    positive_lexicon: Tuple[str, ...] = POSITIVE_LEXICON
    negative_lexicon: Tuple[str, ...] = NEGATIVE_LEXICON


DEFAULT_SPAM_RULES = SpamRules()


@dataclass
class SpamVerdict:
    """Result of spam classification."""
    is_spam: bool
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"is_spam": self.is_spam, "reasons": list(self.reasons)}


@dataclass(frozen=True)
class _CompiledRules:
    patterns: Tuple[Tuple["re.Pattern", str], ...]
    positive: "re.Pattern"
    negative: "re.Pattern"


def _word_alternation(words: Tuple[str, ...]) -> str:
    return "|".join(re.escape(w) for w in words)


@lru_cache(maxsize=8)
def _compile(rules: SpamRules) -> _CompiledRules:
    patterns = (
        (re.compile(r"\b(" + "|".join(rules.commercial_keywords) + r")\b", re.IGNORECASE),
         REASON_COMMERCIAL),
        (re.compile(r"https?://[^\s]{%d,}" % rules.url_min_length, re.IGNORECASE), REASON_URL),
        (re.compile(r"(.)\1{%d,}" % rules.repeat_char_run, re.IGNORECASE), REASON_REPEATED_CHAR),
        (re.compile(r"[A-Z\s]{%d,}" % rules.caps_run), REASON_CAPS),
        (re.compile(r"(\b\w+\b)(?:\s+\1){%d,}" % rules.repeat_word_run, re.IGNORECASE),
         REASON_REPEATED_WORD),
    )
    return _CompiledRules(
        patterns=patterns,
        positive=re.compile(r"\b(" + _word_alternation(rules.positive_lexicon) + r")\b", re.IGNORECASE),
        negative=re.compile(r"\b(" + _word_alternation(rules.negative_lexicon) + r")\b", re.IGNORECASE),
    )


def count_lexicon_hits(text: str, rules: SpamRules = DEFAULT_SPAM_RULES) -> Tuple[int, int]:
    """Return (positive, negative) whole-word lexicon occurrence counts."""
    compiled = _compile(rules)
    return len(compiled.positive.findall(text)), len(compiled.negative.findall(text))


def classify_spam(text: Optional[str], rating: int,
                  rules: SpamRules = DEFAULT_SPAM_RULES) -> SpamVerdict:
    """
    Classify a review body as spam or not.

    Args:
        text: Raw review body (may be None or empty).
        rating: Star rating, used only by the rating-sentiment mismatch rule.
        rules: Thresholds and lexicons.

    Returns:
        SpamVerdict whose reasons are every matching rule, in rule order.
    """
    text = text or ""
    compiled = _compile(rules)
    reasons: List[str] = []

    if len(text.strip()) < rules.min_length:
        reasons.append(REASON_TOO_SHORT)

    for pattern, reason in compiled.patterns:
        if pattern.search(text):
            reasons.append(reason)

    lower_text = text.lower()
    for phrase in rules.suspicious_phrases:
        if phrase in lower_text:
            reasons.append(f'Suspicious phrase: "{phrase}"')

    positive, negative = count_lexicon_hits(text, rules)
    if rating == 5 and negative > rules.mismatch_threshold and positive == 0:
        reasons.append(REASON_MISMATCH_5)
    if rating == 1 and positive > rules.mismatch_threshold and negative == 0:
        reasons.append(REASON_MISMATCH_1)

    return SpamVerdict(is_spam=bool(reasons), reasons=reasons)
