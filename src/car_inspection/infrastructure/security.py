"""JWT bearer token issuing and decoding."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID
import secrets

from jose import JWTError, jwt

from src.car_inspection.domain.value_objects.auth import AuthToken, UserRole
from src.car_inspection.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TokenClaims:
    """Verified claims of a decoded access token."""
    user_id: UUID
    role: UserRole
    token_id: str
    expires_at: datetime


class JWTTokenIssuer:
    """Signs and verifies access tokens with python-jose."""

    TOKEN_TYPE = "access_token"

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 30):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    def issue(self, user_id: UUID, role: UserRole, expires_delta: Optional[timedelta] = None) -> AuthToken:
        """Create a signed access token for a user."""
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self._expire_minutes))
        token_id = secrets.token_hex(16)

        to_encode = {
            "sub": str(user_id),
            "role": role.value,
            "jti": token_id,
            "exp": expire,
            "iat": now,
            "type": self.TOKEN_TYPE,
        }
        encoded = jwt.encode(to_encode, self._secret_key, algorithm=self._algorithm)
        return AuthToken(
            token=encoded,
            token_id=token_id,
            user_id=user_id,
            expires_at=expire.replace(tzinfo=None),
            created_at=now.replace(tzinfo=None),
        )

    def decode(self, token: str) -> Optional[TokenClaims]:
        """Verify signature and expiry. Returns None for any invalid token."""
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as e:
            logger.debug(f"Rejected access token: {e}")
            return None

        if payload.get("type") != self.TOKEN_TYPE:
            return None
        try:
            return TokenClaims(
                user_id=UUID(payload["sub"]),
                role=UserRole(payload["role"]),
                token_id=payload["jti"],
                expires_at=datetime.fromtimestamp(payload["exp"], timezone.utc).replace(tzinfo=None),
            )
        except (KeyError, ValueError, TypeError) as e:
            logger.debug(f"Access token has malformed claims: {e}")
            return None

    def expired_token_id(self, token: str) -> Optional[str]:
        """Return the token id of a correctly signed token that has expired."""
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm],
                                 options={"verify_exp": False})
        except JWTError:
            return None

        expires_at = payload.get("exp")
        if payload.get("type") != self.TOKEN_TYPE or not isinstance(expires_at, (int, float)):
            return None
        if expires_at > datetime.now(timezone.utc).timestamp():
            return None
        return payload.get("jti")
