"""
FastAPI Web Application - Review Intelligence API
==================================================

JSON API for hotel review intake, moderation and guest alerting.

ARCHITECTURAL DECISION:
- create_app() wires settings, store and notifier in the lifespan hook, so
  tests can hand in a MemoryStore and a recording notifier
- Every domain error is a ReviewIntelError; one exception handler maps it
  to {"error": ...} with its status code
- Routes that may call a messaging provider are plain `def` handlers and
  run in the threadpool

USAGE:
    uvicorn review_intel.web.app:app --reload
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, File, Header, Query, Request, UploadFile
from fastapi.responses import JSONResponse, PlainTextResponse

from ..application import AccountService, ReviewService, ReviewSubmission, require_role
from ..domain.errors import AuthenticationError, AuthorizationError, ReviewIntelError, ValidationError
from ..domain.models import Principal, Role
from ..domain.query import DEFAULT_LIMIT, SORT_DATE_DESC, ReviewFilters
from ..infrastructure.config import Settings, get_settings
from ..infrastructure.importer import SUPPORTED_EXTENSIONS, ReviewParser
from ..infrastructure.messaging import Notifier, create_notifier
from ..infrastructure.persistence import Store, create_store
from .schemas import (
    LoginRequest,
    PropertyCreateRequest,
    RegisterRequest,
    ReportSpamRequest,
    ReviewSubmitRequest,
    SendAlertRequest,
    SendDirectAlertRequest,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

MODERATOR_ROLES = (Role.ADMIN.value, Role.MANAGER.value)


# ── Dependencies ───────────────────────────────────────────────────

def get_review_service(request: Request) -> ReviewService:
    return request.app.state.reviews


def get_account_service(request: Request) -> AccountService:
    return request.app.state.accounts


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Authorization header must be 'Bearer <token>'")
    return token.strip()


def optional_principal(
    authorization: Optional[str] = Header(None),
    accounts: AccountService = Depends(get_account_service),
) -> Optional[Principal]:
    """Anonymous callers are allowed; a supplied token must still be valid."""
    token = _bearer_token(authorization)
    return accounts.resolve_token(token) if token else None


def current_principal(principal: Optional[Principal] = Depends(optional_principal)) -> Principal:
    if principal is None:
        raise AuthenticationError("Authentication required")
    return principal


def moderator(principal: Principal = Depends(current_principal)) -> Principal:
    return require_role(principal, *MODERATOR_ROLES)


def require_api_key(request: Request, x_api_key: Optional[str] = Header(None)) -> None:
    """X-API-Key guard, active only when API_KEY is configured."""
    expected = request.app.state.settings.api.api_key
    if expected and x_api_key != expected:
        raise AuthenticationError("Invalid or missing API key")


# ── App factory ────────────────────────────────────────────────────

def create_app(settings: Optional[Settings] = None,
               store: Optional[Store] = None,
               notifier: Optional[Notifier] = None) -> FastAPI:
    """
    Build the API. Anything not passed in is created from settings at start-up
    and closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = settings or get_settings()
        for warning in cfg.validate():
            logger.warning(warning)

        owned_store = store is None
        owned_notifier = notifier is None
        app_store = store or create_store(cfg)
        app_notifier = notifier or create_notifier(cfg.notifier)

        reviews = ReviewService(app_store, app_notifier, spam_rules=cfg.spam.to_rules())
        app.state.settings = cfg
        app.state.store = app_store
        app.state.notifier = app_notifier
        app.state.reviews = reviews
        app.state.accounts = AccountService(app_store, cfg.api.password_salt)

        logger.info(f"Review Intel ready (store={type(app_store).__name__}, "
                    f"notifier={type(app_notifier).__name__})")
        yield

        if owned_notifier:
            app_notifier.close()
        if owned_store:
            app_store.close()

    app = FastAPI(
        title="Review Intel",
        description="Hotel review aggregation and guest alerting",
        lifespan=lifespan,
    )

    @app.exception_handler(ReviewIntelError)
    async def review_intel_error_handler(request: Request, exc: ReviewIntelError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:

    # ── Health ─────────────────────────────────────────────────────

    @app.get("/api/health")
    def health(request: Request, reviews: ReviewService = Depends(get_review_service)):
        return {
            "status": "ok",
            "notifier": request.app.state.notifier.channel,
            **reviews.health(),
        }

    # ── Auth ───────────────────────────────────────────────────────

    @app.post("/api/auth/register", status_code=201)
    def register(body: RegisterRequest, accounts: AccountService = Depends(get_account_service)):
        user, token = accounts.register(
            body.username, body.email, body.name, body.password,
            role=body.role, phone=body.phone,
        )
        return {"token": token, "user": user.to_public_dict()}

    @app.post("/api/auth/login")
    def login(body: LoginRequest, accounts: AccountService = Depends(get_account_service)):
        user, token = accounts.login(body.username, body.password)
        return {"token": token, "user": user.to_public_dict()}

    @app.post("/api/auth/logout")
    def logout(authorization: Optional[str] = Header(None),
               accounts: AccountService = Depends(get_account_service)):
        token = _bearer_token(authorization)
        if token:
            accounts.logout(token)
        return {"success": True}

    @app.get("/api/auth/me")
    def me(principal: Principal = Depends(current_principal),
           accounts: AccountService = Depends(get_account_service)):
        return {"user": accounts.get_user(principal.id).to_public_dict()}

    # ── Hotels ─────────────────────────────────────────────────────

    @app.get("/api/hotels")
    def list_hotels(search: Optional[str] = None,
                    reviews: ReviewService = Depends(get_review_service)):
        hotels = reviews.list_properties(search)
        return {"total": len(hotels), "hotels": hotels}

    @app.post("/api/hotels", status_code=201)
    def create_hotel(body: PropertyCreateRequest,
                     principal: Principal = Depends(moderator),
                     reviews: ReviewService = Depends(get_review_service)):
        prop = reviews.create_property(
            body.id, body.name, location=body.location, rating=body.rating,
            city=body.city, tagline=body.tagline, badge=body.badge,
        )
        return {"hotel": prop.to_dict()}

    @app.get("/api/hotels/{property_id}")
    def get_hotel(property_id: str, reviews: ReviewService = Depends(get_review_service)):
        return {"hotel": reviews.get_property(property_id)}

    @app.get("/api/hotels/{property_id}/reviews")
    def hotel_reviews(property_id: str,
                      source: Optional[str] = None,
                      sentiment: Optional[str] = None,
                      category: Optional[str] = None,
                      sort: str = SORT_DATE_DESC,
                      limit: int = DEFAULT_LIMIT,
                      offset: int = 0,
                      reviews: ReviewService = Depends(get_review_service)):
        filters = ReviewFilters(
            property_id=property_id, source=source, sentiment=sentiment,
            category=category, sort=sort, limit=limit, offset=offset,
        )
        return reviews.property_reviews(property_id, filters)

    @app.get("/api/hotels/{property_id}/stats")
    def hotel_stats(property_id: str, reviews: ReviewService = Depends(get_review_service)):
        return reviews.property_stats(property_id)

    # ── Reviews ────────────────────────────────────────────────────

    @app.post("/api/reviews/submit", status_code=201, dependencies=[Depends(require_api_key)])
    def submit_review(body: ReviewSubmitRequest,
                      principal: Optional[Principal] = Depends(optional_principal),
                      reviews: ReviewService = Depends(get_review_service)):
        submission = ReviewSubmission.from_dict(body.model_dump(exclude_none=True))
        result = reviews.submit_review(submission, principal)
        return {"success": True, **result.to_dict()}

    @app.delete("/api/reviews/{review_id}", dependencies=[Depends(require_api_key)])
    def delete_review(review_id: str,
                      principal: Principal = Depends(current_principal),
                      reviews: ReviewService = Depends(get_review_service)):
        reviews.delete_review(review_id, principal.id)
        return {"success": True}

    @app.post("/api/reviews/{review_id}/report-spam", dependencies=[Depends(require_api_key)])
    def report_spam(review_id: str,
                    body: Optional[ReportSpamRequest] = None,
                    principal: Optional[Principal] = Depends(optional_principal),
                    reviews: ReviewService = Depends(get_review_service)):
        reporter = principal.name if principal else ((body.reported_by if body else None) or "Guest")
        review = reviews.mark_spam(review_id, reporter)
        return {"success": True, "review": review.to_dict()}

    @app.post("/api/reviews/{review_id}/unmark-spam", dependencies=[Depends(require_api_key)])
    def unmark_spam(review_id: str,
                    principal: Principal = Depends(moderator),
                    reviews: ReviewService = Depends(get_review_service)):
        review = reviews.unmark_spam(review_id)
        return {"success": True, "review": review.to_dict()}

    @app.get("/api/spam")
    def list_spam(principal: Principal = Depends(current_principal),
                  reviews: ReviewService = Depends(get_review_service)):
        spam = reviews.list_spam()
        return {"total": len(spam), "reviews": [r.to_dict() for r in spam]}

    # ── Alerts ─────────────────────────────────────────────────────

    @app.get("/api/alerts")
    def list_alerts(reviews: ReviewService = Depends(get_review_service)):
        urgent = reviews.list_urgent()
        return {"total": len(urgent), "alerts": [r.to_dict() for r in urgent]}

    @app.post("/api/alerts/send")
    def send_alert(body: SendAlertRequest,
                   principal: Principal = Depends(current_principal),
                   reviews: ReviewService = Depends(get_review_service)):
        outcome = reviews.resend_alert(body.review_id, phone=body.guest_phone, name=body.guest_name)
        return {"success": outcome.alert_sent, **outcome.to_dict()}

    @app.post("/api/alerts/send-direct")
    def send_direct_alert(body: SendDirectAlertRequest,
                          principal: Principal = Depends(current_principal),
                          reviews: ReviewService = Depends(get_review_service)):
        outcome = reviews.send_direct_alert(
            body.guest_phone, name=body.guest_name,
            property_name=body.hotel_name, rating=body.rating,
        )
        return {"success": outcome.alert_sent, **outcome.to_dict()}

    # ── Dashboard ──────────────────────────────────────────────────

    @app.get("/api/dashboard")
    def dashboard(reviews: ReviewService = Depends(get_review_service)):
        return reviews.dashboard()

    # ── Import ─────────────────────────────────────────────────────

    @app.post("/api/import/reviews")
    def import_reviews(file: UploadFile = File(...),
                       principal: Principal = Depends(current_principal),
                       reviews: ReviewService = Depends(get_review_service)):
        """Import reviews from Excel/CSV, in memory (no temp file)."""
        if not file.filename:
            raise ValidationError("No file selected", field="file")
        ext = Path(file.filename).suffix.lower()
        if ext not in SUPPORTED_EXTENSIONS:
            raise ValidationError("Invalid file type. Use .xlsx, .xls, or .csv", field="file")

        try:
            rows, columns = ReviewParser().parse_buffer(file.file.read(), ext)
        except ValueError as e:
            raise ValidationError(str(e), field="file") from e

        result = reviews.import_reviews(rows, principal)
        return {"success": True, "columns": columns, **result}

    # ── WhatsApp webhook ───────────────────────────────────────────

    @app.get("/webhook")
    def verify_webhook(request: Request,
                       mode: Optional[str] = Query(None, alias="hub.mode"),
                       token: Optional[str] = Query(None, alias="hub.verify_token"),
                       challenge: Optional[str] = Query(None, alias="hub.challenge")):
        """Meta subscription handshake."""
        expected = request.app.state.settings.notifier.whatsapp_verify_token
        if mode == "subscribe" and token == expected:
            logger.info("WhatsApp webhook verified")
            return PlainTextResponse(challenge or "")
        raise AuthorizationError("Webhook verification failed")

    @app.post("/webhook")
    async def receive_webhook(request: Request):
        """Incoming guest replies are only logged."""
        try:
            payload = await request.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        for entry in payload.get("entry") or []:
            for change in entry.get("changes") or []:
                for message in (change.get("value") or {}).get("messages") or []:
                    body = (message.get("text") or {}).get("body", "")
                    logger.info(f"Guest reply from +{message.get('from')}: {body}")
        return {"status": "ok"}


app = create_app()
