"""
Account Service - Staff Accounts and Bearer Sessions
====================================================

Staff (Admin / Manager / Analyst) register and log in with a username or
email. Login hands back an opaque token kept in the "sessions" collection;
the web layer resolves it to a Principal on every request.
"""

import hashlib
import logging
import re
import secrets
from typing import Optional, Tuple

from ..domain.errors import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..domain.models import ROLES, Principal, Role, User, new_id, utcnow
from ..infrastructure.persistence import Store

logger = logging.getLogger(__name__)

USERS = "users"
SESSIONS = "sessions"

MIN_PASSWORD_LENGTH = 6
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AccountService:
    """Registration, login and token resolution."""

    def __init__(self, store: Store, password_salt: str = ""):
        self._store = store
        self._salt = password_salt

    def hash_password(self, password: str) -> str:
        return hashlib.sha256((self._salt + password).encode()).hexdigest()

    def _issue_token(self, user: User) -> str:
        token = secrets.token_hex(32)
        self._store.insert(SESSIONS, {
            "id": token,
            "user_id": user.id,
            "created_at": utcnow().isoformat(),
        })
        return token

    def _find_user(self, identifier: str) -> Optional[User]:
        identifier = identifier.strip()
        record = (self._store.find_one(USERS, {"username": identifier})
                  or self._store.find_one(USERS, {"email": identifier.lower()}))
        return User.from_dict(record) if record else None

    def register(self, username: str, email: str, name: str, password: str,
                 role: Optional[str] = None, phone: str = "") -> Tuple[User, str]:
        """
        Create a staff account and log it in.

        Returns:
            (user, token)
        """
        username = (username or "").strip()
        email = (email or "").strip().lower()
        name = (name or "").strip()
        if not username or not email or not name or not password:
            raise ValidationError("username, email, name and password are required")
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("email is not valid", field="email")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"password must be at least {MIN_PASSWORD_LENGTH} characters", field="password")
        role = role or Role.ANALYST.value
        if role not in ROLES:
            raise ValidationError(f"role must be one of: {', '.join(ROLES)}", field="role")

        if self._store.find_one(USERS, {"username": username}):
            raise ConflictError("Username already taken")
        if self._store.find_one(USERS, {"email": email}):
            raise ConflictError("Email already registered")

        user = User(
            id=new_id(),
            username=username,
            email=email,
            name=name,
            password_hash=self.hash_password(password),
            role=role,
            phone=(phone or "").strip(),
        )
        self._store.insert(USERS, user.to_dict())
        logger.info(f"Account created: {username} ({role})")
        return user, self._issue_token(user)

    def login(self, identifier: str, password: str) -> Tuple[User, str]:
        if not identifier or not password:
            raise ValidationError("username and password are required")
        user = self._find_user(identifier)
        if not user or self.hash_password(password) != user.password_hash:
            logger.info(f"Failed login for '{identifier}'")
            raise AuthenticationError("Invalid credentials")
        logger.info(f"Login: {user.username}")
        return user, self._issue_token(user)

    def logout(self, token: str) -> None:
        self._store.delete_by_id(SESSIONS, token)

    def get_user(self, user_id: str) -> User:
        record = self._store.get_by_id(USERS, user_id)
        if record is None:
            raise NotFoundError("User not found")
        return User.from_dict(record)

    def resolve_token(self, token: Optional[str]) -> Principal:
        """Bearer token -> Principal. Raises AuthenticationError when unknown."""
        if not token:
            raise AuthenticationError("Authentication required")
        session = self._store.get_by_id(SESSIONS, token)
        if session is None:
            raise AuthenticationError("Invalid or expired token")
        record = self._store.get_by_id(USERS, session["user_id"])
        if record is None:
            raise AuthenticationError("Invalid or expired token")
        user = User.from_dict(record)
        return Principal(id=user.id, name=user.name, role=user.role)


def require_role(principal: Principal, *roles: str) -> Principal:
    if principal.role not in roles:
        raise AuthorizationError(f"Requires role: {' or '.join(roles)}")
    return principal
