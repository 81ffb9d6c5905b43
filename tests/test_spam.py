"""
test_spam.py - Spam Classifier Rules

Each rule on its own, reason ordering, and the rating-sentiment mismatch
thresholds.
"""

import pytest

from review_intel.domain.spam import (
    REASON_CAPS,
    REASON_COMMERCIAL,
    REASON_MISMATCH_1,
    REASON_MISMATCH_5,
    REASON_REPEATED_CHAR,
    REASON_REPEATED_WORD,
    REASON_TOO_SHORT,
    REASON_URL,
    SpamRules,
    classify_spam,
    count_lexicon_hits,
)


class TestIndividualRules:
    """One rule per test."""

    def test_clean_review_is_not_spam(self):
        verdict = classify_spam("Lovely room and friendly staff at the front desk.", 4)
        assert verdict.is_spam is False
        assert verdict.reasons == []

    def test_too_short(self):
        verdict = classify_spam("Too short", 3)
        assert verdict.reasons == [REASON_TOO_SHORT]

    def test_empty_text_is_too_short(self):
        assert classify_spam(None, 3).reasons == [REASON_TOO_SHORT]

    def test_commercial_keywords(self):
        verdict = classify_spam("Click here to claim your prize today", 3)
        assert REASON_COMMERCIAL in verdict.reasons

    @pytest.mark.parametrize("rating", [1, 2, 3, 4, 5])
    def test_url_rule_ignores_rating(self, rating):
        """A long URL is spam whatever the rating."""
        verdict = classify_spam("Visit https://example.com/deals/today for more", rating)
        assert verdict.is_spam
        assert REASON_URL in verdict.reasons

    def test_short_url_is_allowed(self):
        verdict = classify_spam("Booked through http://abc.in and it was fine", 4)
        assert REASON_URL not in verdict.reasons

    def test_repeated_character(self):
        verdict = classify_spam("Sooooooo good hotel stay overall", 4)
        assert REASON_REPEATED_CHAR in verdict.reasons

    def test_excessive_caps(self):
        verdict = classify_spam("THIS HOTEL IS THE WORST PLACE I HAVE EVER STAYED IN MY LIFE", 3)
        assert REASON_CAPS in verdict.reasons

    def test_repeated_word(self):
        verdict = classify_spam("good good good good stay at the hotel", 4)
        assert REASON_REPEATED_WORD in verdict.reasons

    def test_suspicious_phrase(self):
        verdict = classify_spam("Nice stay, whatsapp me for deals on rooms", 4)
        assert verdict.reasons == ['Suspicious phrase: "whatsapp me"']


class TestMismatch:
    """Rating vs lexicon disagreement."""

    def test_one_star_with_glowing_text(self):
        verdict = classify_spam("Excellent amazing wonderful fantastic stay", 1)
        assert verdict.reasons == [REASON_MISMATCH_1]

    def test_five_stars_with_angry_text(self):
        verdict = classify_spam("terrible awful horrible worst experience", 5)
        assert verdict.reasons == [REASON_MISMATCH_5]

    def test_threshold_must_be_exceeded(self):
        """Three positive hits is not more than three."""
        verdict = classify_spam("excellent amazing wonderful stay overall", 1)
        assert verdict.is_spam is False

    def test_any_opposite_word_cancels_mismatch(self):
        verdict = classify_spam("Excellent amazing wonderful fantastic lobby, awful room", 1)
        assert REASON_MISMATCH_1 not in verdict.reasons

    def test_mismatch_only_for_extreme_ratings(self):
        verdict = classify_spam("Excellent amazing wonderful fantastic stay", 2)
        assert verdict.is_spam is False

    def test_custom_threshold(self):
        rules = SpamRules(mismatch_threshold=2)
        verdict = classify_spam("excellent amazing wonderful stay overall", 1, rules)
        assert verdict.reasons == [REASON_MISMATCH_1]


class TestVerdict:
    """Reason ordering and lexicon counting."""

    def test_reasons_follow_rule_order(self):
        verdict = classify_spam("click here https://spam-example.com/offer and dm me", 3)
        assert verdict.reasons == [REASON_COMMERCIAL, REASON_URL, 'Suspicious phrase: "dm me"']

    def test_lexicon_counts_whole_words(self):
        assert count_lexicon_hits("I love it, lovely place") == (1, 0)

    def test_lexicon_is_case_insensitive(self):
        assert count_lexicon_hits("GREAT view, Rude staff") == (1, 1)

    def test_to_dict(self):
        verdict = classify_spam("Too short", 3)
        assert verdict.to_dict() == {"is_spam": True, "reasons": [REASON_TOO_SHORT]}
