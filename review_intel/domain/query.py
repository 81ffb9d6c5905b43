"""
query.py - Review Listing Filters

Turns a listing request into a filtered, sorted, paginated page over an
in-memory review sequence. Spam reviews never appear in a public listing.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .errors import ValidationError
from .models import CATEGORIES, SENTIMENTS, SOURCES, Review

SORT_DATE_DESC = "date_desc"
SORT_RATING_DESC = "rating_desc"
SORT_RATING_ASC = "rating_asc"
SORT_KEYS = (SORT_DATE_DESC, SORT_RATING_DESC, SORT_RATING_ASC)

DEFAULT_LIMIT = 50
ANY = "all"


@dataclass
class ReviewFilters:
    """
    Listing request.

    None, "" and "all" mean "no constraint" for source, sentiment and category.
    """
    property_id: Optional[str] = None
    source: Optional[str] = None
    sentiment: Optional[str] = None
    category: Optional[str] = None
    sort: str = SORT_DATE_DESC
    limit: int = DEFAULT_LIMIT
    offset: int = 0


@dataclass
class ReviewPage:
    total: int
    reviews: List[Review] = field(default_factory=list)
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
            "reviews": [r.to_dict() for r in self.reviews],
        }


def _is_set(value: Optional[str]) -> bool:
    return bool(value) and value != ANY


def validate_filters(filters: ReviewFilters) -> None:
    if filters.sort not in SORT_KEYS:
        raise ValidationError(f"sort must be one of: {', '.join(SORT_KEYS)}", field="sort")
    if _is_set(filters.category) and filters.category not in CATEGORIES:
        raise ValidationError(f"category must be one of: {', '.join(CATEGORIES)}", field="category")
    if _is_set(filters.source) and filters.source not in SOURCES:
        raise ValidationError(f"source must be one of: {', '.join(SOURCES)}", field="source")
    if _is_set(filters.sentiment) and filters.sentiment not in SENTIMENTS:
        raise ValidationError(f"sentiment must be one of: {', '.join(SENTIMENTS)}", field="sentiment")
    if filters.limit < 1:
        raise ValidationError("limit must be a positive integer", field="limit")
    if filters.offset < 0:
        raise ValidationError("offset must not be negative", field="offset")


def matches(review: Review, filters: ReviewFilters) -> bool:
    """Conjunctive match of one review against every supplied criterion."""
    if review.is_spam:
        return False
    if filters.property_id and review.property_id != filters.property_id:
        return False
    if _is_set(filters.source) and review.source != filters.source:
        return False
    if _is_set(filters.sentiment) and review.sentiment != filters.sentiment:
        return False
    if _is_set(filters.category) and filters.category not in review.categories:
        return False
    return True


def sort_reviews(reviews: List[Review], sort: str = SORT_DATE_DESC) -> List[Review]:
    # sorted() is stable, so ties keep their incoming order
    if sort == SORT_RATING_DESC:
        return sorted(reviews, key=lambda r: r.rating, reverse=True)
    if sort == SORT_RATING_ASC:
        return sorted(reviews, key=lambda r: r.rating)
    return sorted(reviews, key=lambda r: r.created_at, reverse=True)


def list_reviews(reviews: Sequence[Review], filters: ReviewFilters) -> ReviewPage:
    """
    Filter, sort and paginate.

    Returns:
        ReviewPage whose total is the filtered, unpaginated count.
    """
    validate_filters(filters)
    selected = sort_reviews([r for r in reviews if matches(r, filters)], filters.sort)
    page = selected[filters.offset:filters.offset + filters.limit]
    return ReviewPage(
        total=len(selected),
        reviews=page,
        limit=filters.limit,
        offset=filters.offset,
    )
