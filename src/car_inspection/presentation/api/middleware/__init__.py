"""Middleware module for car inspection API."""

from .auth import AuthenticationError, get_current_user, get_requester, require_roles
from .logging import RequestResponseLoggingMiddleware, mask_path

__all__ = [
    "AuthenticationError",
    "get_current_user",
    "get_requester",
    "require_roles",
    "mask_path",
    "RequestResponseLoggingMiddleware"
]
