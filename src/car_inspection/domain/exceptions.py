"""Domain error taxonomy for inspection reports and car parts."""


class DomainError(Exception):
    """Base class for errors raised by the domain and application layers."""

    error_type = "domain_error"


class ValidationError(DomainError, ValueError):
    """Raised for malformed or out-of-range input."""

    error_type = "validation_error"


class AuthorizationError(DomainError):
    """Raised when an authenticated requester is not permitted to act."""

    error_type = "authorization_error"


class NotFoundError(DomainError):
    """Raised for unknown identifiers and for masked unpublished reports."""

    error_type = "not_found"


class ConflictError(DomainError):
    """Raised when the store state changed underneath an operation."""

    error_type = "conflict"
