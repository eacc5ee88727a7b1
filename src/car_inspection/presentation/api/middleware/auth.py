"""
Authentication dependencies for the car inspection API.

Bearer tokens are validated through the authentication service; routes
receive either the authenticated ``User`` or the ``RequesterIdentity``
handed to the application services.
"""

from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ....domain.entities.user import User
from ....domain.exceptions import AuthorizationError
from ....domain.value_objects.auth import RequesterIdentity, UserRole
from ....infrastructure.logging import get_logger, log_business_rule_violation
from ....infrastructure.services import get_service_factory


logger = get_logger(__name__)

# Security scheme for bearer token authentication; missing tokens are
# reported by get_bearer_token so they map to 401
security = HTTPBearer(auto_error=False)


class AuthenticationError(Exception):
    """Raised when a request carries no valid bearer token."""
    pass


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """Extract the raw bearer token from the Authorization header.

    Raises:
        AuthenticationError: If the header is missing or empty
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing authentication token")
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_bearer_token),
    service_factory=Depends(get_service_factory)
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    Args:
        token: Bearer token from the Authorization header
        service_factory: Factory providing the authentication service

    Returns:
        User: The authenticated, active user

    Raises:
        AuthenticationError: If the token is invalid, expired or revoked
    """
    async with service_factory.get_auth_service() as auth_service:
        user = await auth_service.validate_token(token)

    if user is None:
        raise AuthenticationError("Invalid or expired authentication token")
    return user


def get_requester(user: User = Depends(get_current_user)) -> RequesterIdentity:
    """Identity of the authenticated caller, as passed to the services."""
    return user.to_identity()


def require_roles(*roles: UserRole) -> Callable[..., RequesterIdentity]:
    """
    Build a dependency that only admits the given roles.

    Args:
        roles: Roles allowed to call the endpoint

    Returns:
        Dependency resolving to the caller's RequesterIdentity
    """
    allowed = frozenset(roles)

    def dependency(requester: RequesterIdentity = Depends(get_requester)) -> RequesterIdentity:
        if requester.role not in allowed:
            log_business_rule_violation(
                logger,
                "role_not_allowed",
                f"Role {requester.role.value} cannot call this endpoint",
                user_id=str(requester.user_id),
                allowed_roles=sorted(role.value for role in allowed)
            )
            raise AuthorizationError("You do not have permission to perform this action")
        return requester

    return dependency
