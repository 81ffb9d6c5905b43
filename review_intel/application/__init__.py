# Application Layer
# =================
# Use cases that orchestrate the domain with a Store and a Notifier.

from .review_service import (
    ReviewService,
    ReviewSubmission,
    SubmissionResult,
    AlertOutcome,
    validate_submission,
    PROPERTIES,
    REVIEWS,
)
from .account_service import AccountService, require_role, USERS, SESSIONS
