"""
Sentiment & Urgency Classifier
==============================

Sentiment is a fixed function of the star rating:
    rating >= 4 -> positive, rating <= 2 -> negative, rating 3 -> neutral

Curated content (festival stays, escalations imported with a label) may carry
a pre-classified sentiment; it is passed through untouched.

Alert-worthiness is a separate predicate so it can be evaluated on stored
reviews (resends, backlog runner) as well as at intake.
"""

from dataclasses import dataclass
from typing import Optional

from .models import Review, Sentiment, Urgency

ALERT_URGENCIES = (Urgency.HIGH.value, Urgency.CRITICAL.value)
ALERT_MAX_RATING = 2


@dataclass(frozen=True)
class Classification:
    sentiment: str
    overridden: bool = False


def sentiment_for_rating(rating: int) -> str:
    """Map a 1..5 star rating to a sentiment label."""
    if rating >= 4:
        return Sentiment.POSITIVE.value
    if rating <= 2:
        return Sentiment.NEGATIVE.value
    return Sentiment.NEUTRAL.value


def classify(rating: int, override: Optional[str] = None) -> Classification:
    """
    Derive the sentiment for a review.

    Args:
        rating: Star rating, 1..5.
        override: Pre-classified sentiment; when given it is used as-is.
    """
    if override:
        return Classification(sentiment=Sentiment(override).value, overridden=True)
    return Classification(sentiment=sentiment_for_rating(rating))


def should_alert(review: Review) -> bool:
    """True when the guest should get a recovery message."""
    return (
        review.rating <= ALERT_MAX_RATING
        or review.sentiment == Sentiment.NEGATIVE.value
        or review.urgency in ALERT_URGENCIES
    )


def requires_action(is_spam: bool, rating: int, sentiment: str) -> bool:
    # Spam never needs staff follow-up.
    if is_spam:
        return False
    return rating <= ALERT_MAX_RATING or sentiment == Sentiment.NEGATIVE.value


def is_urgent(review: Review) -> bool:
    return review.urgency in ALERT_URGENCIES
