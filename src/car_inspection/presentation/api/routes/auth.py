"""Authentication endpoints."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from ....domain.entities.user import User
from ....domain.exceptions import ValidationError
from ....domain.value_objects.auth import LoginCredentials
from ....infrastructure.services import get_service_factory
from ..middleware.auth import get_bearer_token, get_current_user

router = APIRouter()


class LoginRequest(BaseModel):
    """Login request model."""
    email: str
    password: str


class LoginResponse(BaseModel):
    """Login response model."""
    success: bool
    token: Optional[str] = None
    token_type: str = "bearer"
    user_id: Optional[str] = None
    role: Optional[str] = None
    expires_at: Optional[datetime] = None
    error_message: Optional[str] = None
    locked_until: Optional[datetime] = None
    failed_attempts: int = 0


class UserProfile(BaseModel):
    """Profile of the authenticated user."""
    id: str
    email: str
    name: str
    phone: Optional[str] = None
    role: str
    is_active: bool
    last_login: Optional[datetime] = None


class ChangePasswordRequest(BaseModel):
    """Change password request model."""
    old_password: str
    new_password: str


class ApiResponse(BaseModel):
    """Generic API response model."""
    success: bool
    message: str


async def get_auth_service(service_factory=Depends(get_service_factory)):
    """Dependency to get authentication service."""
    async with service_factory.get_auth_service() as auth_service:
        yield auth_service


@router.post("/login")
async def login(
    request: LoginRequest,
    response: Response,
    auth_service=Depends(get_auth_service)
) -> LoginResponse:
    """Authenticate a user and return an access token."""
    try:
        credentials = LoginCredentials(email=request.email, password=request.password)
    except ValidationError as e:
        response.status_code = status.HTTP_401_UNAUTHORIZED
        return LoginResponse(success=False, error_message=str(e))

    result = await auth_service.login(credentials)

    if result.success and result.token:
        return LoginResponse(
            success=True,
            token=result.token.token,
            user_id=str(result.user_id),
            role=result.role.value if result.role else None,
            expires_at=result.token.expires_at
        )

    response.status_code = status.HTTP_401_UNAUTHORIZED
    return LoginResponse(
        success=False,
        error_message=result.error_message,
        locked_until=result.locked_until,
        failed_attempts=result.failed_attempts
    )


@router.post("/logout")
async def logout(
    token: str = Depends(get_bearer_token),
    auth_service=Depends(get_auth_service)
) -> ApiResponse:
    """Log out by revoking the current token."""
    success = await auth_service.logout(token)
    return ApiResponse(
        success=success,
        message="Logged out successfully" if success else "Logout failed"
    )


@router.get("/me")
async def get_profile(current_user: User = Depends(get_current_user)) -> UserProfile:
    """Get the current user's profile."""
    return UserProfile(
        id=str(current_user.id),
        email=current_user.email,
        name=current_user.name,
        phone=current_user.phone,
        role=current_user.role.value,
        is_active=current_user.is_active,
        last_login=current_user.last_login
    )


@router.post("/change-password")
async def change_password(
    request: ChangePasswordRequest,
    response: Response,
    current_user: User = Depends(get_current_user),
    auth_service=Depends(get_auth_service)
) -> ApiResponse:
    """Change the current user's password."""
    success = await auth_service.change_password(
        current_user.id,
        request.old_password,
        request.new_password
    )

    if success:
        return ApiResponse(success=True, message="Password changed successfully")

    response.status_code = status.HTTP_400_BAD_REQUEST
    return ApiResponse(
        success=False,
        message="Failed to change password. Please check your old password."
    )
