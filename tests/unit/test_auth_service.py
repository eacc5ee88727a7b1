"""Unit tests for authentication service."""

import pytest
import pytest_asyncio
from dataclasses import replace
from datetime import datetime, timedelta
from uuid import UUID

from src.car_inspection.application.services.auth_service import AuthenticationService
from src.car_inspection.domain.entities.user import User
from src.car_inspection.domain.exceptions import ValidationError
from src.car_inspection.domain.value_objects.auth import LoginCredentials, PasswordHasher, UserRole
from src.car_inspection.infrastructure.repositories.memory_repositories import (
    InMemoryAuthTokenRepository,
    InMemoryUserRepository,
)
from src.car_inspection.infrastructure.security import JWTTokenIssuer

# Mark all async tests in this module
pytestmark = pytest.mark.asyncio

PASSWORD = "testpassword123"


@pytest.fixture
def user_repo():
    """Create user repository."""
    return InMemoryUserRepository()


@pytest.fixture
def token_repo():
    """Create token repository."""
    return InMemoryAuthTokenRepository()


@pytest.fixture
def token_issuer():
    return JWTTokenIssuer("unit-test-secret", expire_minutes=30)


@pytest.fixture
def auth_service(user_repo, token_repo, token_issuer):
    """Create authentication service backed by in-memory repositories."""
    return AuthenticationService(user_repo, token_repo, token_issuer)


@pytest_asyncio.fixture
async def active_inspector(user_repo):
    """Store an active inspector with a known password."""
    inspector = User(
        email="inspector@example.com",
        name="John Inspector",
        role=UserRole.INSPECTOR,
        user_id=UUID("11111111-1111-1111-1111-111111111111")
    )
    return await user_repo.save(inspector, PasswordHasher.create_password_hash(PASSWORD))


@pytest_asyncio.fixture
async def inactive_user(user_repo):
    user = User(
        email="inactive@example.com",
        name="Jane Inactive",
        user_id=UUID("22222222-2222-2222-2222-222222222222"),
        is_active=False
    )
    return await user_repo.save(user, PasswordHasher.create_password_hash(PASSWORD))


class TestLogin:
    """Test cases for login."""

    async def test_successful_login(self, auth_service, token_issuer, active_inspector):
        """Test successful login with valid credentials."""
        result = await auth_service.login(LoginCredentials(active_inspector.email, PASSWORD))

        assert result.success is True
        assert result.user_id == active_inspector.id
        assert result.role == UserRole.INSPECTOR
        assert result.token is not None
        assert result.token.user_id == active_inspector.id
        assert result.error_message is None

        claims = token_issuer.decode(result.token.token)
        assert claims.user_id == active_inspector.id
        assert claims.role == UserRole.INSPECTOR

    async def test_login_with_unknown_email(self, auth_service):
        result = await auth_service.login(LoginCredentials("nobody@example.com", PASSWORD))

        assert result.success is False
        assert result.error_message == "Invalid email or password"
        assert result.user_id is None
        assert result.token is None

    async def test_login_with_invalid_password(self, auth_service, active_inspector):
        result = await auth_service.login(LoginCredentials(active_inspector.email, "wrongpassword"))

        assert result.success is False
        assert result.error_message == "Invalid email or password"
        assert result.token is None
        assert result.failed_attempts == 1

    async def test_login_with_inactive_account(self, auth_service, inactive_user):
        result = await auth_service.login(LoginCredentials(inactive_user.email, PASSWORD))

        assert result.success is False
        assert result.error_message == "Account is not active"

    async def test_account_lockout_after_max_failed_attempts(self, auth_service, active_inspector):
        """Test account lockout after maximum failed login attempts."""
        credentials = LoginCredentials(active_inspector.email, "wrongpassword")

        for attempt in range(1, AuthenticationService.MAX_FAILED_ATTEMPTS):
            result = await auth_service.login(credentials)
            assert result.success is False
            assert result.failed_attempts == attempt

        result = await auth_service.login(credentials)
        assert result.error_message == "Account locked due to too many failed login attempts"
        assert result.locked_until is not None

        # Even the right password is refused while locked
        result = await auth_service.login(LoginCredentials(active_inspector.email, PASSWORD))
        assert result.success is False
        assert result.error_message == "Account is temporarily locked due to too many failed login attempts"

    async def test_expired_lockout_allows_login(self, auth_service, user_repo, active_inspector):
        await user_repo.update_login_info(
            active_inspector.id,
            failed_attempts=AuthenticationService.MAX_FAILED_ATTEMPTS,
            locked_until=datetime.utcnow() - timedelta(minutes=1)
        )

        result = await auth_service.login(LoginCredentials(active_inspector.email, PASSWORD))

        assert result.success is True
        assert await user_repo.get_failed_attempts(active_inspector.id) == 0

    async def test_case_insensitive_email_login(self, auth_service, active_inspector):
        result = await auth_service.login(LoginCredentials(active_inspector.email.upper(), PASSWORD))

        assert result.success is True
        assert result.user_id == active_inspector.id


class TestTokens:
    """Test cases for token validation and logout."""

    async def test_validate_issued_token(self, auth_service, active_inspector):
        result = await auth_service.login(LoginCredentials(active_inspector.email, PASSWORD))

        user = await auth_service.validate_token(result.token.token)

        assert user is not None
        assert user.id == active_inspector.id

    async def test_validate_garbage_token(self, auth_service):
        assert await auth_service.validate_token("not-a-jwt") is None

    async def test_validate_token_signed_with_other_key(self, auth_service, active_inspector):
        forged = JWTTokenIssuer("another-secret").issue(active_inspector.id, UserRole.ADMIN)

        assert await auth_service.validate_token(forged.token) is None

    async def test_validate_unknown_token(self, auth_service, token_issuer, active_inspector):
        """A correctly signed token that was never stored is rejected."""
        unsaved = token_issuer.issue(active_inspector.id, active_inspector.role)

        assert await auth_service.validate_token(unsaved.token) is None

    async def test_validate_expired_token(self, auth_service, token_repo, token_issuer, active_inspector):
        expired = token_issuer.issue(active_inspector.id, active_inspector.role, timedelta(seconds=-5))
        await token_repo.save_token(expired)

        assert await auth_service.validate_token(expired.token) is None

    async def test_expired_token_removed_on_validation(self, auth_service, token_repo, token_issuer,
                                                       active_inspector):
        expired = [
            token_issuer.issue(active_inspector.id, active_inspector.role, timedelta(seconds=-5))
            for _ in range(50)
        ]
        for token in expired:
            await token_repo.save_token(token)

        for token in expired:
            assert await auth_service.validate_token(token.token) is None

        for token in expired:
            assert await token_repo.find_token(token.token_id) is None

    async def test_token_past_stored_expiry_removed(self, auth_service, token_repo, token_issuer,
                                                    active_inspector):
        """A token whose stored record lapsed before its JWT expiry is dropped from the store."""
        live = token_issuer.issue(active_inspector.id, active_inspector.role)
        await token_repo.save_token(replace(live, expires_at=datetime.utcnow() - timedelta(minutes=1)))

        assert await auth_service.validate_token(live.token) is None
        assert await token_repo.find_token(live.token_id) is None

    async def test_login_prunes_expired_tokens(self, auth_service, token_repo, token_issuer, active_inspector):
        expired = token_issuer.issue(active_inspector.id, active_inspector.role, timedelta(seconds=-5))
        live = token_issuer.issue(active_inspector.id, active_inspector.role)
        await token_repo.save_token(expired)
        await token_repo.save_token(live)

        result = await auth_service.login(LoginCredentials(active_inspector.email, PASSWORD))

        assert result.success
        assert await token_repo.find_token(expired.token_id) is None
        assert await token_repo.find_token(live.token_id) is not None
        assert await token_repo.find_token(result.token.token_id) is not None

    async def test_logout_revokes_token(self, auth_service, active_inspector):
        result = await auth_service.login(LoginCredentials(active_inspector.email, PASSWORD))

        assert await auth_service.logout(result.token.token) is True
        assert await auth_service.validate_token(result.token.token) is None
        assert await auth_service.logout(result.token.token) is False

    async def test_logout_with_invalid_token(self, auth_service):
        assert await auth_service.logout("invalid_token") is False

    async def test_cleanup_expired_tokens(self, auth_service, token_repo, token_issuer, active_inspector):
        await token_repo.save_token(token_issuer.issue(active_inspector.id, active_inspector.role))
        await token_repo.save_token(
            token_issuer.issue(active_inspector.id, active_inspector.role, timedelta(seconds=-5))
        )

        assert await auth_service.cleanup_expired_tokens() == 1


class TestChangePassword:
    """Test cases for password changes."""

    async def test_change_password(self, auth_service, active_inspector):
        changed = await auth_service.change_password(active_inspector.id, PASSWORD, "brand-new-secret")

        assert changed is True
        old = await auth_service.login(LoginCredentials(active_inspector.email, PASSWORD))
        new = await auth_service.login(LoginCredentials(active_inspector.email, "brand-new-secret"))
        assert old.success is False
        assert new.success is True

    async def test_wrong_current_password(self, auth_service, active_inspector):
        assert await auth_service.change_password(active_inspector.id, "not-my-password", "x" * 10) is False

    async def test_new_password_too_short(self, auth_service, active_inspector):
        with pytest.raises(ValidationError):
            await auth_service.change_password(active_inspector.id, PASSWORD, "short")
