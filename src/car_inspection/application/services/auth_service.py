"""Authentication service for user login and bearer tokens."""

from datetime import datetime, timedelta
from typing import Optional, TYPE_CHECKING
from uuid import UUID

from src.car_inspection.domain.value_objects.auth import (
    LoginCredentials,
    LoginResult,
    PasswordHasher,
)
from src.car_inspection.infrastructure.logging import (
    get_logger,
    log_authentication_attempt,
    log_business_rule_violation,
)

if TYPE_CHECKING:
    from src.car_inspection.application.ports.repositories import AuthTokenRepository, UserRepository
    from src.car_inspection.domain.entities.user import User
    from src.car_inspection.infrastructure.security import JWTTokenIssuer


class AuthenticationService:
    """Service for user authentication and token validation."""

    # Account lockout settings
    MAX_FAILED_ATTEMPTS = 5
    LOCKOUT_DURATION_HOURS = 1

    def __init__(
        self,
        user_repository: "UserRepository",
        token_repository: "AuthTokenRepository",
        token_issuer: "JWTTokenIssuer"
    ):
        self._user_repository = user_repository
        self._token_repository = token_repository
        self._token_issuer = token_issuer
        self._logger = get_logger(__name__)

    async def login(self, credentials: LoginCredentials) -> LoginResult:
        """Authenticate a user and issue an access token."""
        email = credentials.email.lower().strip()
        self._logger.info(f"Login attempt for email: {email}")

        user = await self._user_repository.find_by_email(email)
        if not user:
            log_authentication_attempt(self._logger, email, False, failure_reason="user_not_found")
            return LoginResult(success=False, error_message="Invalid email or password")

        lockout_expiry = await self._user_repository.get_lockout_expiry(user.id)
        if lockout_expiry and lockout_expiry > datetime.utcnow():
            log_authentication_attempt(self._logger, email, False,
                                       failure_reason="account_locked",
                                       user_id=str(user.id))
            return LoginResult(
                success=False,
                error_message="Account is temporarily locked due to too many failed login attempts",
                locked_until=lockout_expiry
            )

        if not user.is_active:
            log_authentication_attempt(self._logger, email, False,
                                       failure_reason="account_inactive",
                                       user_id=str(user.id))
            return LoginResult(success=False, error_message="Account is not active")

        password_hash = await self._user_repository.get_password_hash(user.id)
        if not password_hash or not PasswordHasher.verify_password_hash(credentials.password, password_hash):
            return await self._handle_failed_password(user, email)

        await self._user_repository.update_login_info(user.id, failed_attempts=0)
        await self._user_repository.record_login(user.id)

        removed = await self._token_repository.cleanup_expired_tokens()
        if removed:
            self._logger.debug(f"Pruned {removed} expired tokens")

        auth_token = self._token_issuer.issue(user.id, user.role)
        await self._token_repository.save_token(auth_token)

        log_authentication_attempt(self._logger, email, True,
                                   user_id=str(user.id),
                                   role=user.role.value,
                                   token_expires_at=auth_token.expires_at.isoformat())
        return LoginResult(success=True, user_id=user.id, role=user.role, token=auth_token)

    async def validate_token(self, token: str) -> Optional["User"]:
        """Return the active user behind a live token, or None."""
        claims = self._token_issuer.decode(token)
        if claims is None:
            expired_id = self._token_issuer.expired_token_id(token)
            if expired_id:
                await self._token_repository.invalidate_token(expired_id)
            return None

        stored = await self._token_repository.find_token(claims.token_id)
        if not stored:
            self._logger.debug("Token revoked or unknown")
            return None
        if stored.is_expired:
            self._logger.debug(f"Token expired for user {claims.user_id}")
            await self._token_repository.invalidate_token(claims.token_id)
            return None

        user = await self._user_repository.find_by_id(claims.user_id)
        if not user:
            self._logger.warning(f"User {claims.user_id} not found for valid token")
            return None
        if not user.is_active:
            self._logger.debug(f"User {claims.user_id} is inactive")
            return None
        return user

    async def logout(self, token: str) -> bool:
        """Revoke an access token."""
        claims = self._token_issuer.decode(token)
        if claims is None:
            return False
        success = await self._token_repository.invalidate_token(claims.token_id)
        if success:
            self._logger.info(f"User {claims.user_id} logged out")
        else:
            self._logger.warning("Logout failed - token not found or already invalid")
        return success

    async def change_password(self, user_id: UUID, old_password: str, new_password: str) -> bool:
        """Change a user's password after checking the current one.

        Raises:
            ValidationError: If the new password is too short
        """
        current_hash = await self._user_repository.get_password_hash(user_id)
        if not current_hash or not PasswordHasher.verify_password_hash(old_password, current_hash):
            log_business_rule_violation(
                self._logger,
                "password_change_rejected",
                f"Wrong current password for user {user_id}",
                user_id=str(user_id)
            )
            return False

        new_hash = PasswordHasher.create_password_hash(new_password)
        return await self._user_repository.update_password_hash(user_id, new_hash)

    async def cleanup_expired_tokens(self) -> int:
        return await self._token_repository.cleanup_expired_tokens()

    async def _handle_failed_password(self, user: "User", email: str) -> LoginResult:
        failed_attempts = await self._user_repository.get_failed_attempts(user.id) + 1

        if failed_attempts >= self.MAX_FAILED_ATTEMPTS:
            lockout_expiry = datetime.utcnow() + timedelta(hours=self.LOCKOUT_DURATION_HOURS)
            await self._user_repository.update_login_info(
                user.id, failed_attempts=failed_attempts, locked_until=lockout_expiry
            )
            self._logger.warning(f"Account locked for user {user.id} after {failed_attempts} failed attempts")
            log_authentication_attempt(self._logger, email, False,
                                       failure_reason="account_locked_after_failures",
                                       user_id=str(user.id),
                                       failed_attempts=failed_attempts)
            return LoginResult(
                success=False,
                error_message="Account locked due to too many failed login attempts",
                locked_until=lockout_expiry,
                failed_attempts=failed_attempts
            )

        await self._user_repository.update_login_info(user.id, failed_attempts=failed_attempts)
        log_authentication_attempt(self._logger, email, False,
                                   failure_reason="invalid_password",
                                   user_id=str(user.id),
                                   failed_attempts=failed_attempts)
        return LoginResult(
            success=False,
            error_message="Invalid email or password",
            failed_attempts=failed_attempts
        )
