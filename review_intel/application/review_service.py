"""
Review Service - Intake Pipeline, Moderation and Read Models
============================================================

INTAKE ORDER (submit_review):
    1. Validate input (fail fast, no side effects)
    2. Spam classifier on (text, rating)
    3. Sentiment (curated override respected)
    4. requires_action = not spam and (rating <= 2 or negative)
    5. Persist the review
    6. Recompute the property's aggregate rating (full recompute, per-property lock)
    7. Not spam + alert-worthy + phone present -> notifier; success marks alert_sent

The review is always persisted before the notifier runs, and a notifier
failure never undoes the insert.
"""

import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from ..domain.aggregation import (
    compute_category_breakdown,
    compute_stats,
    count_by_source,
    mean_rating,
    rating_distribution,
)
from ..domain.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    NotifierError,
    ValidationError,
)
from ..domain.models import (
    CATEGORIES,
    DEFAULT_AUTHOR,
    DEFAULT_CATEGORY,
    DEFAULT_SOURCE,
    MAX_RATING,
    MIN_RATING,
    SENTIMENTS,
    SOURCES,
    URGENCIES,
    DeliveryResult,
    GuestAlert,
    Principal,
    Property,
    Review,
    Urgency,
    new_id,
    utcnow,
)
from ..domain.query import ReviewFilters, list_reviews
from ..domain.sentiment import classify, is_urgent, requires_action, should_alert
from ..domain.spam import DEFAULT_SPAM_RULES, SpamRules, classify_spam
from ..infrastructure.messaging import Notifier
from ..infrastructure.persistence import Store

logger = logging.getLogger(__name__)

PROPERTIES = "properties"
REVIEWS = "reviews"

TEXT_MIN_LENGTH = 10
TEXT_MAX_LENGTH = 2000

URGENCY_RANK = {Urgency.CRITICAL.value: 0, Urgency.HIGH.value: 1}


# ── Inputs / Outputs ───────────────────────────────────────────────

@dataclass
class ReviewSubmission:
    """Raw review input as received from the API or an import file."""
    property_id: Optional[str]
    text: Optional[str]
    rating: Any
    author: Optional[str] = None
    author_phone: Optional[str] = None
    source: Optional[str] = None
    categories: Optional[List[str]] = None
    sentiment: Optional[str] = None
    urgency: Optional[str] = None
    urgency_reason: Optional[str] = None
    festival_tag: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReviewSubmission":
        categories = data.get("categories")
        if categories is None and data.get("category"):
            categories = [data["category"]]
        elif isinstance(categories, str):
            categories = [c.strip() for c in categories.split(",") if c.strip()]
        return cls(
            property_id=data.get("property_id"),
            text=data.get("text"),
            rating=data.get("rating"),
            author=data.get("author"),
            author_phone=data.get("author_phone"),
            source=data.get("source"),
            categories=categories,
            sentiment=data.get("sentiment"),
            urgency=data.get("urgency"),
            urgency_reason=data.get("urgency_reason"),
            festival_tag=data.get("festival_tag"),
        )


@dataclass
class AlertOutcome:
    """What happened when the notifier was asked to reach a guest."""
    alert_sent: bool = False
    results: List[DeliveryResult] = field(default_factory=list)
    error: str = ""

    def to_dict(self) -> dict:
        body = {"alert_sent": self.alert_sent, "results": [r.to_dict() for r in self.results]}
        if self.error:
            body["error"] = self.error
        return body


@dataclass
class SubmissionResult:
    """Outcome of submit_review."""
    review: Review
    spam_detected: bool
    spam_reasons: List[str]
    alert_sent: bool
    alert_results: List[DeliveryResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "review": self.review.to_dict(),
            "spam_detected": self.spam_detected,
            "spam_reasons": list(self.spam_reasons),
            "alert_sent": self.alert_sent,
            "alert_results": [r.to_dict() for r in self.alert_results],
        }


# ── Validation ─────────────────────────────────────────────────────

def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_rating(value: Any) -> int:
    message = f"rating must be an integer between {MIN_RATING} and {MAX_RATING}"
    if isinstance(value, bool):
        raise ValidationError(message, field="rating")
    if isinstance(value, int):
        rating = value
    elif isinstance(value, float) and value.is_integer():
        rating = int(value)
    elif isinstance(value, str) and value.strip().isdecimal():
        rating = int(value.strip())
    else:
        raise ValidationError(message, field="rating")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(message, field="rating")
    return rating


def validate_submission(submission: ReviewSubmission) -> Tuple[int, str, List[str]]:
    """
    Validate a submission in the documented order and return the cleaned
    (rating, text, categories). Raises ValidationError on the first violation.
    """
    for name in ("property_id", "text", "rating"):
        if _is_missing(getattr(submission, name)):
            raise ValidationError("property_id, text and rating are required", field=name)

    rating = _parse_rating(submission.rating)

    text = str(submission.text).strip()
    if len(text) < TEXT_MIN_LENGTH:
        raise ValidationError(f"text must be at least {TEXT_MIN_LENGTH} characters", field="text")
    if len(text) > TEXT_MAX_LENGTH:
        raise ValidationError(f"text must be {TEXT_MAX_LENGTH} characters or fewer", field="text")

    categories = list(submission.categories or [])
    for category in categories:
        if category not in CATEGORIES:
            raise ValidationError(f"category must be one of: {', '.join(CATEGORIES)}", field="categories")

    if submission.source and submission.source not in SOURCES:
        raise ValidationError(f"source must be one of: {', '.join(SOURCES)}", field="source")
    if submission.urgency and submission.urgency not in URGENCIES:
        raise ValidationError(f"urgency must be one of: {', '.join(URGENCIES)}", field="urgency")
    if submission.sentiment and submission.sentiment not in SENTIMENTS:
        raise ValidationError(f"sentiment must be one of: {', '.join(SENTIMENTS)}", field="sentiment")

    return rating, text, categories or [DEFAULT_CATEGORY]


# ── Service ────────────────────────────────────────────────────────

class ReviewService:
    """
    Review intake, moderation and listing on top of a Store and a Notifier.

    USAGE:
        service = ReviewService(store, create_notifier(settings.notifier))
        result = service.submit_review(ReviewSubmission(
            property_id="mh001", text="Room was filthy and staff were rude.", rating=1,
            author="Asha", author_phone="9876543210",
        ))
        result.alert_sent   # True once the notifier accepted the message
    """

    def __init__(self, store: Store, notifier: Notifier,
                 spam_rules: SpamRules = DEFAULT_SPAM_RULES):
        self._store = store
        self._notifier = notifier
        self._spam_rules = spam_rules
        self._rating_locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # ── Lookups ────────────────────────────────────────────────────

    def get_property_record(self, property_id: str) -> Property:
        record = self._store.get_by_id(PROPERTIES, property_id)
        if record is None:
            raise NotFoundError(f"Hotel '{property_id}' not found")
        return Property.from_dict(record)

    def get_review(self, review_id: str) -> Review:
        record = self._store.get_by_id(REVIEWS, review_id)
        if record is None:
            raise NotFoundError(f"Review '{review_id}' not found")
        return Review.from_dict(record)

    def _reviews(self, filter: Optional[dict] = None) -> List[Review]:
        return [Review.from_dict(r) for r in self._store.find(REVIEWS, filter)]

    def _public_reviews(self, property_id: Optional[str] = None) -> List[Review]:
        filter: Dict[str, Any] = {"is_spam": {"$ne": True}}
        if property_id:
            filter["property_id"] = property_id
        return self._reviews(filter)

    # ── Intake ─────────────────────────────────────────────────────

    def submit_review(self, submission: ReviewSubmission,
                      principal: Optional[Principal] = None) -> SubmissionResult:
        """Validate, classify, persist and (maybe) alert. See module docstring."""
        rating, text, categories = validate_submission(submission)
        prop = self.get_property_record(submission.property_id)

        verdict = classify_spam(text, rating, self._spam_rules)
        sentiment = classify(rating, submission.sentiment).sentiment

        author = (submission.author or "").strip()
        if not author:
            author = principal.name if principal else DEFAULT_AUTHOR

        review = Review(
            id=new_id(),
            property_id=prop.id,
            property_name=prop.name,
            user_id=principal.id if principal else None,
            author=author,
            author_phone=(submission.author_phone or "").strip(),
            rating=rating,
            text=text,
            source=submission.source or DEFAULT_SOURCE,
            categories=categories,
            sentiment=sentiment,
            urgency=submission.urgency or Urgency.NONE.value,
            urgency_reason=submission.urgency_reason or "",
            festival_tag=submission.festival_tag or "",
            requires_action=requires_action(verdict.is_spam, rating, sentiment),
            is_spam=verdict.is_spam,
            spam_reasons=list(verdict.reasons),
        )
        self._store.insert(REVIEWS, review.to_dict())
        logger.info(
            f"Review {review.id} for {prop.id}: rating={rating} sentiment={sentiment} "
            f"spam={verdict.is_spam}"
        )
        if verdict.is_spam:
            logger.info(f"Review {review.id} flagged as spam: {'; '.join(verdict.reasons)}")

        self.recalculate_property_rating(prop.id)

        outcome = AlertOutcome()
        if not review.is_spam and should_alert(review) and review.author_phone:
            outcome = self._alert_guest(review, prop.name, review.author_phone, review.author)

        return SubmissionResult(
            review=review,
            spam_detected=verdict.is_spam,
            spam_reasons=list(verdict.reasons),
            alert_sent=outcome.alert_sent,
            alert_results=outcome.results,
        )

    def import_reviews(self, rows: List[Dict[str, Any]],
                       principal: Optional[Principal] = None) -> Dict[str, Any]:
        """
        Run every imported row through the intake pipeline.

        Returns:
            Dict with 'added', 'spam' counts and per-row 'errors'
        """
        result = {"added": 0, "spam": 0, "errors": []}
        for index, row in enumerate(rows, start=1):
            try:
                submitted = self.submit_review(ReviewSubmission.from_dict(row), principal)
            except (ValidationError, NotFoundError) as e:
                result["errors"].append(f"Row {index}: {e.message}")
                continue
            result["added"] += 1
            if submitted.spam_detected:
                result["spam"] += 1

        logger.info(f"Review import: {result['added']} added ({result['spam']} spam), "
                    f"{len(result['errors'])} rejected")
        return result

    # ── Aggregate rating ───────────────────────────────────────────

    def _lock_for(self, property_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._rating_locks.setdefault(property_id, threading.Lock())

    def recalculate_property_rating(self, property_id: str) -> Optional[float]:
        """
        Recompute a property's rating from all of its non-spam reviews.

        Keeps the stored rating when there are none. Returns the rating now
        stored, or None for an unknown property.
        """
        with self._lock_for(property_id):
            record = self._store.get_by_id(PROPERTIES, property_id)
            if record is None:
                return None
            new_rating = mean_rating(self._public_reviews(property_id), places=1)
            if new_rating is None:
                return record.get("rating")
            self._store.update_by_id(PROPERTIES, property_id, {"rating": new_rating})
            return new_rating

    # ── Alerts ─────────────────────────────────────────────────────

    def _notify(self, alert: GuestAlert) -> AlertOutcome:
        try:
            results = self._notifier.send_guest_alert(alert)
        except NotifierError as e:
            logger.warning(f"Guest alert to {alert.phone} not sent: {e.message}")
            return AlertOutcome(error=e.message)
        except Exception as e:
            logger.exception(f"Unexpected notifier error for {alert.phone}: {e}")
            return AlertOutcome(error=str(e))

        delivered = any(r.delivered for r in results)
        if not delivered:
            logger.warning(f"Guest alert to {alert.phone} failed on every channel")
        return AlertOutcome(alert_sent=delivered, results=results)

    def _alert_guest(self, review: Review, property_name: str,
                     phone: str, name: str) -> AlertOutcome:
        outcome = self._notify(GuestAlert(
            phone=phone,
            name=name,
            property_name=property_name,
            rating=review.rating,
        ))
        if outcome.alert_sent:
            sent_at = utcnow()
            self._store.update_by_id(REVIEWS, review.id, {
                "alert_sent": True,
                "alert_sent_at": sent_at.isoformat(),
            })
            review.alert_sent = True
            review.alert_sent_at = sent_at
            logger.info(f"Guest alert sent for review {review.id}")
        return outcome

    def resend_alert(self, review_id: str, phone: Optional[str] = None,
                     name: Optional[str] = None) -> AlertOutcome:
        """Explicit moderation resend; overwrites alert_sent/alert_sent_at on success."""
        review = self.get_review(review_id)
        phone = (phone or review.author_phone or "").strip()
        if not phone:
            raise ValidationError("No phone number on file for this review", field="guest_phone")
        try:
            property_name = self.get_property_record(review.property_id).name
        except NotFoundError:
            property_name = review.property_name or review.property_id
        return self._alert_guest(review, property_name, phone, name or review.author)

    def send_direct_alert(self, phone: Optional[str], name: Optional[str] = None,
                          property_name: Optional[str] = None, rating: Any = 1) -> AlertOutcome:
        """Ad-hoc guest alert not tied to a stored review."""
        if _is_missing(phone):
            raise ValidationError("guest_phone is required", field="guest_phone")
        try:
            rating = _parse_rating(rating)
        except ValidationError:
            rating = 1
        return self._notify(GuestAlert(
            phone=phone.strip(),
            name=name or "Valued Guest",
            property_name=property_name or "our hotel",
            rating=rating,
        ))

    def pending_alerts(self) -> List[Review]:
        """Alert-worthy, non-spam reviews with a phone that were never alerted."""
        return [
            r for r in self._public_reviews()
            if should_alert(r) and r.author_phone and not r.alert_sent
        ]

    # ── Moderation ─────────────────────────────────────────────────

    def _set_spam(self, review_id: str, is_spam: bool, reasons: List[str]) -> Review:
        review = self.get_review(review_id)
        updated = self._store.update_by_id(REVIEWS, review_id, {
            "is_spam": is_spam,
            "spam_reasons": reasons,
        })
        if updated is None:
            raise NotFoundError(f"Review '{review_id}' not found")
        self.recalculate_property_rating(review.property_id)
        return Review.from_dict(updated)

    def mark_spam(self, review_id: str, reporter_name: str) -> Review:
        """Flag a review as spam. Repeating it keeps a single, latest reason."""
        review = self._set_spam(review_id, True, [f"Manually reported by {reporter_name}"])
        logger.info(f"Review {review_id} reported as spam by {reporter_name}")
        return review

    def unmark_spam(self, review_id: str) -> Review:
        review = self._set_spam(review_id, False, [])
        logger.info(f"Review {review_id} restored from spam")
        return review

    def delete_review(self, review_id: str, requesting_user_id: Optional[str]) -> None:
        """Delete a review; only its author may do so."""
        review = self.get_review(review_id)
        if not requesting_user_id or review.user_id != requesting_user_id:
            raise AuthorizationError("You can only delete your own reviews")
        self._store.delete_by_id(REVIEWS, review_id)
        logger.info(f"Review {review_id} deleted by {requesting_user_id}")
        self.recalculate_property_rating(review.property_id)

    # ── Properties ─────────────────────────────────────────────────

    def create_property(self, property_id: str, name: str, location: str = "",
                        rating: Optional[float] = None, city: str = "", tagline: str = "",
                        badge: Optional[str] = None) -> Property:
        if _is_missing(property_id) or _is_missing(name):
            raise ValidationError("id and name are required", field="id" if _is_missing(property_id) else "name")
        if rating is None or isinstance(rating, bool) or not MIN_RATING <= float(rating) <= MAX_RATING:
            raise ValidationError(f"rating must be between {MIN_RATING} and {MAX_RATING}", field="rating")
        if self._store.get_by_id(PROPERTIES, property_id) is not None:
            raise ConflictError(f"Hotel '{property_id}' already exists")
        prop = Property(id=property_id, name=name.strip(), location=location, rating=float(rating),
                        city=city, tagline=tagline, badge=badge)
        self._store.insert(PROPERTIES, prop.to_dict())
        logger.info(f"Hotel {prop.id} created: {prop.name}")
        return prop

    def list_properties(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        """Properties with live review counts; search matches name, location or city."""
        props = [Property.from_dict(r) for r in self._store.find(PROPERTIES)]
        if search:
            q = search.lower()
            props = [p for p in props
                     if q in p.name.lower() or q in p.location.lower() or q in p.city.lower()]

        by_property: Dict[str, List[Review]] = {}
        for review in self._public_reviews():
            by_property.setdefault(review.property_id, []).append(review)

        enriched = []
        for prop in sorted(props, key=lambda p: p.name):
            reviews = by_property.get(prop.id, [])
            computed = mean_rating(reviews, places=2)
            enriched.append({
                **prop.to_dict(),
                "review_count": len(reviews),
                "computed_rating": computed if computed is not None else round(prop.rating, 2),
            })
        return enriched

    def get_property(self, property_id: str) -> Dict[str, Any]:
        """Property with live review count and per-category breakdown."""
        prop = self.get_property_record(property_id)
        reviews = self._public_reviews(property_id)
        return {
            **prop.to_dict(),
            "review_count": len(reviews),
            "categories": compute_category_breakdown(reviews, CATEGORIES),
        }

    def property_reviews(self, property_id: str, filters: ReviewFilters) -> Dict[str, Any]:
        """Filtered page for one property plus stats over all its public reviews."""
        prop = self.get_property_record(property_id)
        filters = replace(filters, property_id=property_id)
        public = self._public_reviews(property_id)
        page = list_reviews(public, filters)
        return {
            "property": prop.to_dict(),
            **page.to_dict(),
            "stats": compute_stats(public).to_dict(),
            "source_counts": count_by_source(public),
        }

    def property_stats(self, property_id: str) -> Dict[str, Any]:
        prop = self.get_property_record(property_id)
        reviews = self._public_reviews(property_id)
        overall = mean_rating(reviews, places=2)
        return {
            "property_id": prop.id,
            "property_name": prop.name,
            "total_reviews": len(reviews),
            "overall_rating": overall if overall is not None else prop.rating,
            "rating_distribution": rating_distribution(reviews),
            "by_category": compute_category_breakdown(reviews, CATEGORIES),
        }

    # ── Dashboards ─────────────────────────────────────────────────

    def list_urgent(self) -> List[Review]:
        """Non-spam high/critical reviews, critical first, newest first within a level."""
        urgent = [r for r in self._public_reviews() if is_urgent(r)]
        urgent.sort(key=lambda r: r.created_at, reverse=True)
        urgent.sort(key=lambda r: URGENCY_RANK.get(r.urgency, len(URGENCY_RANK)))
        return urgent

    def list_spam(self) -> List[Review]:
        spam = self._reviews({"is_spam": True})
        return sorted(spam, key=lambda r: r.created_at, reverse=True)

    def dashboard(self) -> Dict[str, Any]:
        public = self._public_reviews()
        return {
            "hotel_count": self._store.count_where(PROPERTIES),
            "stats": compute_stats(public).to_dict(),
            "critical_count": sum(1 for r in public if is_urgent(r)),
            "spam_count": self._store.count_where(REVIEWS, {"is_spam": True}),
            "alert_count": self._store.count_where(REVIEWS, {"alert_sent": True}),
        }

    def health(self) -> Dict[str, int]:
        return {
            "hotels": self._store.count_where(PROPERTIES),
            "reviews": self._store.count_where(REVIEWS),
        }
