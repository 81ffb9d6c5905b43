# Domain Layer
# ============
# Pure business logic with no I/O: entities, errors, spam and sentiment
# classification, statistics and listing filters.

from .errors import (
    ReviewIntelError,
    ValidationError,
    NotFoundError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotifierError,
)
from .models import (
    Property,
    Review,
    User,
    Principal,
    GuestAlert,
    DeliveryResult,
    Sentiment,
    Urgency,
    ReviewSource,
    Category,
    Role,
    DeliveryStatus,
)
from .spam import SpamRules, SpamVerdict, DEFAULT_SPAM_RULES, classify_spam
from .sentiment import classify, sentiment_for_rating, should_alert, requires_action, is_urgent
from .aggregation import (
    ReviewStats,
    compute_stats,
    compute_category_breakdown,
    rating_distribution,
    mean_rating,
)
from .query import ReviewFilters, ReviewPage, list_reviews
