"""
Domain Models - Properties, Reviews and Alerts
==============================================

ARCHITECTURAL DECISION:
- Plain dataclasses, no persistence concerns
- Enums with str values so records serialize straight to JSON
- to_dict()/from_dict() convert to and from store documents
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import uuid


class Sentiment(str, Enum):
    """Review sentiment label."""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class Urgency(str, Enum):
    """Guest-recovery severity."""
    NONE = "none"
    HIGH = "high"
    CRITICAL = "critical"


class ReviewSource(str, Enum):
    """Channel the review came in through."""
    GOOGLE = "google"
    TRIPADVISOR = "tripadvisor"
    MAKEMYTRIP = "makemytrip"
    BOOKING = "booking.com"
    AGODA = "agoda"
    INTERNAL = "internal"


class Category(str, Enum):
    """Aspect of the stay a review talks about."""
    FOOD = "food"
    AMBIANCE = "ambiance"
    AMENITIES = "amenities"
    SERVICE = "service"


class Role(str, Enum):
    ADMIN = "Admin"
    MANAGER = "Manager"
    ANALYST = "Analyst"


class DeliveryStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    LOGGED = "logged"


SENTIMENTS = [s.value for s in Sentiment]
URGENCIES = [u.value for u in Urgency]
SOURCES = [s.value for s in ReviewSource]
CATEGORIES = [c.value for c in Category]
ROLES = [r.value for r in Role]

DEFAULT_AUTHOR = "Anonymous"
DEFAULT_SOURCE = ReviewSource.INTERNAL.value
DEFAULT_CATEGORY = Category.SERVICE.value

MIN_RATING = 1
MAX_RATING = 5


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class Property:
    """
    Hotel / resort record.

    Attributes:
        id: Stable unique identifier (e.g. "mh001")
        name: Display name
        location: Human-readable location
        rating: Aggregate rating (1.0-5.0), recomputed from non-spam reviews
        city: Optional city, used by search
        tagline: Optional marketing line
        badge: Optional badge ("Top Rated", ...)
    """
    id: str
    name: str
    location: str = ""
    rating: float = 0.0
    city: str = ""
    tagline: str = ""
    badge: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Property":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            location=data.get("location", ""),
            rating=float(data.get("rating") or 0.0),
            city=data.get("city", ""),
            tagline=data.get("tagline", ""),
            badge=data.get("badge"),
        )


@dataclass
class Review:
    """Guest review with every derived classification field."""
    id: str
    property_id: str
    rating: int
    text: str
    sentiment: str
    property_name: str = ""
    user_id: Optional[str] = None
    author: str = DEFAULT_AUTHOR
    author_phone: str = ""
    source: str = DEFAULT_SOURCE
    categories: List[str] = field(default_factory=lambda: [DEFAULT_CATEGORY])
    urgency: str = Urgency.NONE.value
    urgency_reason: str = ""
    festival_tag: str = ""
    requires_action: bool = False
    is_spam: bool = False
    spam_reasons: List[str] = field(default_factory=list)
    alert_sent: bool = False
    alert_sent_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_urgent(self) -> bool:
        return self.urgency in (Urgency.HIGH.value, Urgency.CRITICAL.value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        d = asdict(self)
        d["alert_sent_at"] = _format_datetime(self.alert_sent_at)
        d["created_at"] = _format_datetime(self.created_at)
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Review":
        return cls(
            id=data["id"],
            property_id=data["property_id"],
            rating=int(data["rating"]),
            text=data.get("text", ""),
            sentiment=data.get("sentiment", Sentiment.NEUTRAL.value),
            property_name=data.get("property_name", ""),
            user_id=data.get("user_id"),
            author=data.get("author") or DEFAULT_AUTHOR,
            author_phone=data.get("author_phone") or "",
            source=data.get("source") or DEFAULT_SOURCE,
            categories=list(data.get("categories") or [DEFAULT_CATEGORY]),
            urgency=data.get("urgency") or Urgency.NONE.value,
            urgency_reason=data.get("urgency_reason") or "",
            festival_tag=data.get("festival_tag") or "",
            requires_action=bool(data.get("requires_action", False)),
            is_spam=bool(data.get("is_spam", False)),
            spam_reasons=list(data.get("spam_reasons") or []),
            alert_sent=bool(data.get("alert_sent", False)),
            alert_sent_at=_parse_datetime(data.get("alert_sent_at")),
            created_at=_parse_datetime(data.get("created_at")) or utcnow(),
        )


@dataclass
class User:
    """Staff account (Admin / Manager / Analyst)."""
    id: str
    username: str
    email: str
    name: str
    password_hash: str
    role: str = Role.ANALYST.value
    phone: str = ""
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["created_at"] = _format_datetime(self.created_at)
        return d

    def to_public_dict(self) -> Dict[str, Any]:
        d = self.to_dict()
        d.pop("password_hash")
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=data["id"],
            username=data["username"],
            email=data["email"],
            name=data.get("name", ""),
            password_hash=data["password_hash"],
            role=data.get("role") or Role.ANALYST.value,
            phone=data.get("phone") or "",
            created_at=_parse_datetime(data.get("created_at")) or utcnow(),
        )


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, supplied by the web layer."""
    id: str
    name: str
    role: str = Role.ANALYST.value


@dataclass(frozen=True)
class GuestAlert:
    """What the notifier needs to reach a guest."""
    phone: str
    name: str
    property_name: str
    rating: int


@dataclass
class DeliveryResult:
    """Outcome of one channel of a guest alert."""
    channel: str
    status: str
    detail: str = ""
    to: str = ""

    @property
    def delivered(self) -> bool:
        return self.status in (DeliveryStatus.SENT.value, DeliveryStatus.LOGGED.value)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
