"""
test_accounts.py - Staff Accounts and Sessions
"""

import pytest

from review_intel.application import require_role
from review_intel.domain.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ValidationError,
)
from review_intel.domain.models import Principal


@pytest.fixture
def registered(accounts):
    user, token = accounts.register("priya", "Priya@Example.com", "Priya", "secret123", role="Manager")
    return user, token


class TestRegister:

    def test_register_returns_user_and_token(self, registered, store):
        user, token = registered
        assert user.username == "priya"
        assert user.email == "priya@example.com"
        assert user.role == "Manager"
        assert len(token) == 64
        assert store.get_by_id("sessions", token)["user_id"] == user.id

    def test_password_is_hashed(self, registered):
        user, _ = registered
        assert user.password_hash != "secret123"
        assert len(user.password_hash) == 64

    def test_default_role_is_analyst(self, accounts):
        user, _ = accounts.register("ravi", "ravi@example.com", "Ravi", "secret123")
        assert user.role == "Analyst"

    def test_duplicate_username(self, accounts, registered):
        with pytest.raises(ConflictError):
            accounts.register("priya", "other@example.com", "Other", "secret123")

    def test_duplicate_email(self, accounts, registered):
        with pytest.raises(ConflictError):
            accounts.register("other", "priya@example.com", "Other", "secret123")

    @pytest.mark.parametrize("kwargs", [
        {"username": "", "email": "a@example.com", "name": "A", "password": "secret123"},
        {"username": "a", "email": "not-an-email", "name": "A", "password": "secret123"},
        {"username": "a", "email": "a@example.com", "name": "A", "password": "123"},
        {"username": "a", "email": "a@example.com", "name": "A", "password": "secret123", "role": "Owner"},
    ])
    def test_invalid_input(self, accounts, kwargs):
        with pytest.raises(ValidationError):
            accounts.register(**kwargs)


class TestLogin:

    @pytest.mark.parametrize("identifier", ["priya", "priya@example.com"])
    def test_login_by_username_or_email(self, accounts, registered, identifier):
        user, token = accounts.login(identifier, "secret123")
        assert user.username == "priya"
        assert token != registered[1]

    def test_wrong_password(self, accounts, registered):
        with pytest.raises(AuthenticationError):
            accounts.login("priya", "wrong-password")

    def test_unknown_user(self, accounts):
        with pytest.raises(AuthenticationError):
            accounts.login("nobody", "secret123")


class TestTokens:

    def test_resolve_token(self, accounts, registered):
        user, token = registered
        assert accounts.resolve_token(token) == Principal(id=user.id, name="Priya", role="Manager")

    def test_unknown_token(self, accounts):
        with pytest.raises(AuthenticationError):
            accounts.resolve_token("deadbeef")

    def test_logout_invalidates_token(self, accounts, registered):
        _, token = registered
        accounts.logout(token)
        with pytest.raises(AuthenticationError):
            accounts.resolve_token(token)

    def test_require_role(self):
        manager = Principal(id="u1", name="Priya", role="Manager")
        assert require_role(manager, "Admin", "Manager") is manager
        with pytest.raises(AuthorizationError):
            require_role(Principal(id="u2", name="Ravi", role="Analyst"), "Admin", "Manager")
