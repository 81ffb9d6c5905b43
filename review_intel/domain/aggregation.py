"""
aggregation.py - Review Statistics

Pure functions over a sequence of reviews. Callers decide the scope
(one property, all properties) and filter out spam before calling; nothing
here looks at is_spam.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .models import CATEGORIES, MAX_RATING, MIN_RATING, Review, Sentiment


@dataclass
class ReviewStats:
    """
    Dashboard / listing statistics.

    Attributes:
        total_reviews: Number of reviews in the sequence
        average_rating: Mean rating formatted with one decimal ("0.0" when empty)
        sentiment: Count per sentiment label, all three labels always present
        by_source: Count per source channel (only channels that occur)
    """
    total_reviews: int
    average_rating: str
    sentiment: Dict[str, int]
    by_source: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total_reviews": self.total_reviews,
            "average_rating": self.average_rating,
            "sentiment": dict(self.sentiment),
            "by_source": dict(self.by_source),
        }


def mean_rating(reviews: Sequence[Review], places: int = 1) -> Optional[float]:
    """Arithmetic mean of ratings rounded to `places`, or None when empty."""
    if not reviews:
        return None
    return round(sum(r.rating for r in reviews) / len(reviews), places)


def count_by_source(reviews: Iterable[Review]) -> Dict[str, int]:
    return dict(Counter(r.source for r in reviews))


def compute_stats(reviews: Sequence[Review]) -> ReviewStats:
    """Compute totals, average rating, sentiment and source counts."""
    reviews = list(reviews)
    if reviews:
        average = f"{sum(r.rating for r in reviews) / len(reviews):.1f}"
    else:
        average = "0.0"

    sentiment = {s.value: 0 for s in Sentiment}
    for review in reviews:
        if review.sentiment in sentiment:
            sentiment[review.sentiment] += 1

    return ReviewStats(
        total_reviews=len(reviews),
        average_rating=average,
        sentiment=sentiment,
        by_source=count_by_source(reviews),
    )


def compute_category_breakdown(
    reviews: Sequence[Review],
    categories: Optional[List[str]] = None,
) -> Dict[str, Dict[str, Optional[float]]]:
    """
    Count and average rating per category.

    A review tagged with several categories counts towards each of them.
    avg_rating is None for categories with no reviews.
    """
    breakdown = {}
    for category in categories or CATEGORIES:
        tagged = [r for r in reviews if category in r.categories]
        breakdown[category] = {
            "count": len(tagged),
            "avg_rating": mean_rating(tagged, places=2),
        }
    return breakdown


def rating_distribution(reviews: Iterable[Review]) -> Dict[int, int]:
    """Number of reviews per star value, 1..5 always present."""
    distribution = {star: 0 for star in range(MIN_RATING, MAX_RATING + 1)}
    for review in reviews:
        if review.rating in distribution:
            distribution[review.rating] += 1
    return distribution
