"""Authentication-related value objects and services."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional
from uuid import UUID
import hashlib
import secrets

from ..exceptions import ValidationError


class UserRole(Enum):
    """User role enumeration."""
    ADMIN = "admin"
    INSPECTOR = "inspector"
    USER = "user"


@dataclass(frozen=True)
class RequesterIdentity:
    """Who is performing an operation. Passed explicitly to every service call."""
    user_id: UUID
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_inspector(self) -> bool:
        return self.role == UserRole.INSPECTOR


@dataclass(frozen=True)
class LoginCredentials:
    """Value object for login credentials."""
    email: str
    password: str

    def __post_init__(self) -> None:
        """Validate credentials."""
        if not self.email or not self.email.strip():
            raise ValidationError("Email cannot be empty")
        if "@" not in self.email:
            raise ValidationError("Invalid email format")
        if not self.password:
            raise ValidationError("Password cannot be empty")


@dataclass(frozen=True)
class AuthToken:
    """Issued bearer token and its lifetime."""
    token: str
    token_id: str
    user_id: UUID
    expires_at: datetime
    created_at: datetime

    @property
    def is_expired(self) -> bool:
        """Check if token is expired."""
        return datetime.utcnow() > self.expires_at

    @property
    def time_until_expiry(self) -> timedelta:
        return self.expires_at - datetime.utcnow()


@dataclass(frozen=True)
class LoginResult:
    """Value object for login operation result."""
    success: bool
    user_id: Optional[UUID] = None
    role: Optional[UserRole] = None
    token: Optional[AuthToken] = None
    error_message: Optional[str] = None
    locked_until: Optional[datetime] = None
    failed_attempts: int = 0


class PasswordHasher:
    """PBKDF2-SHA256 password hashing with an embedded salt."""

    ITERATIONS = 100000
    MIN_LENGTH = 8

    @staticmethod
    def hash_password(password: str, salt: Optional[str] = None) -> tuple[str, str]:
        """Hash a password with salt."""
        if salt is None:
            salt = secrets.token_hex(32)

        hashed = hashlib.pbkdf2_hmac(
            'sha256',
            password.encode('utf-8'),
            salt.encode('utf-8'),
            PasswordHasher.ITERATIONS
        )
        return hashed.hex(), salt

    @staticmethod
    def verify_password(password: str, hashed_password: str, salt: str) -> bool:
        new_hash, _ = PasswordHasher.hash_password(password, salt)
        return secrets.compare_digest(new_hash, hashed_password)

    @staticmethod
    def create_password_hash(password: str) -> str:
        """Create a `salt:hash` string for storage."""
        if not password or len(password) < PasswordHasher.MIN_LENGTH:
            raise ValidationError(
                f"Password must be at least {PasswordHasher.MIN_LENGTH} characters long"
            )
        hashed, salt = PasswordHasher.hash_password(password)
        return f"{salt}:{hashed}"

    @staticmethod
    def verify_password_hash(password: str, password_hash: str) -> bool:
        """Verify password against a stored `salt:hash` string."""
        try:
            salt, hashed = password_hash.split(':', 1)
        except ValueError:
            return False
        return PasswordHasher.verify_password(password, hashed, salt)
