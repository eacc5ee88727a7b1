"""HTTP request/response logging middleware for FastAPI."""

import logging
import re
import time
from typing import Callable, Optional, Set

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ....infrastructure.logging import (
    clear_correlation_id,
    generate_correlation_id,
    get_logger,
    mask_token,
    set_correlation_id,
)

logger = get_logger(__name__)

# Headers to exclude from logging (sensitive information)
EXCLUDED_HEADERS = {
    'authorization',
    'cookie',
    'set-cookie',
    'x-api-key',
    'x-auth-token',
    'proxy-authorization',
    'www-authenticate',
    'proxy-authenticate'
}

# Content types to exclude from body logging (large/binary content)
EXCLUDED_CONTENT_TYPES = {
    'application/octet-stream',
    'image/',
    'application/pdf',
    'multipart/form-data'
}

# Fields never written to the log when a request body is logged
REDACTED_BODY_FIELDS = re.compile(r'("(?:password|oldPassword|newPassword|old_password|new_password)"\s*:\s*)"[^"]*"')

# Shareable links grant read access to a report, so they are masked in paths
SHAREABLE_LINK_SEGMENT = re.compile(r'(?<=/)[0-9a-fA-F]{64}(?=/|$)')


def mask_path(path: str) -> str:
    """Mask shareable-link tokens appearing as path segments."""
    return SHAREABLE_LINK_SEGMENT.sub(lambda match: mask_token(match.group(0)), path)


class RequestResponseLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log HTTP requests and responses with correlation IDs."""

    def __init__(
        self,
        app: ASGIApp,
        log_request_body: bool = False,
        max_body_size: int = 1024,
        exclude_paths: Optional[Set[str]] = None
    ):
        """
        Initialize the logging middleware.

        Args:
            app: The ASGI application
            log_request_body: Whether to log request bodies
            max_body_size: Maximum body size to log in bytes
            exclude_paths: Set of paths to exclude from logging
        """
        super().__init__(app)
        self.log_request_body = log_request_body
        self.max_body_size = max_body_size
        self.exclude_paths = exclude_paths or {
            '/health',
            '/docs',
            '/redoc',
            '/openapi.json',
            '/favicon.ico'
        }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process the request and response with logging."""
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        correlation_id = request.headers.get("X-Correlation-ID") or generate_correlation_id()
        set_correlation_id(correlation_id)
        path = mask_path(request.url.path)
        start_time = time.time()

        try:
            await self._log_request(request, path, correlation_id)

            response = await call_next(request)

            duration_ms = (time.time() - start_time) * 1000
            response.headers["X-Correlation-ID"] = correlation_id
            self._log_response(request, path, response, duration_ms, correlation_id)
            return response

        except Exception as exc:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {path}",
                extra={
                    "correlation_id": correlation_id,
                    "request_method": request.method,
                    "request_path": path,
                    "duration_ms": round(duration_ms, 2),
                    "error": str(exc),
                    "error_type": type(exc).__name__
                },
                exc_info=True
            )
            raise

        finally:
            clear_correlation_id()

    async def _log_request(self, request: Request, path: str, correlation_id: str) -> None:
        """Log the incoming HTTP request."""
        request_body = None
        if self.log_request_body:
            request_body = await self._get_request_body(request)

        client_host = request.client.host if request.client else 'unknown'

        logger.info(
            f"HTTP Request: {request.method} {path}",
            extra={
                "correlation_id": correlation_id,
                "request_method": request.method,
                "request_path": path,
                "request_query": str(request.query_params) if request.query_params else None,
                "request_headers": self._sanitize_headers(dict(request.headers)),
                "request_body": request_body,
                "client_host": client_host,
                "user_agent": request.headers.get('user-agent', 'unknown'),
                "content_type": request.headers.get('content-type'),
                "content_length": request.headers.get('content-length')
            }
        )

    def _log_response(
        self,
        request: Request,
        path: str,
        response: Response,
        duration_ms: float,
        correlation_id: str
    ) -> None:
        """Log the HTTP response."""
        if response.status_code >= 500:
            log_level = logging.ERROR
        elif response.status_code >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            f"HTTP Response: {request.method} {path} -> {response.status_code} ({duration_ms:.2f}ms)",
            extra={
                "correlation_id": correlation_id,
                "request_method": request.method,
                "request_path": path,
                "response_status": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "content_type": response.headers.get('content-type'),
                "content_length": response.headers.get('content-length')
            }
        )

    def _sanitize_headers(self, headers: dict) -> dict:
        """Remove sensitive headers from logging."""
        return {
            key: "[REDACTED]" if key.lower() in EXCLUDED_HEADERS else value
            for key, value in headers.items()
        }

    async def _get_request_body(self, request: Request) -> str:
        """Get request body for logging if appropriate."""
        content_type = request.headers.get('content-type', '').lower()
        for excluded_type in EXCLUDED_CONTENT_TYPES:
            if excluded_type in content_type:
                return "[BINARY_CONTENT]"

        body = await request.body()
        if len(body) > self.max_body_size:
            return f"[BODY_TOO_LARGE:{len(body)}_bytes]"

        try:
            text = body.decode('utf-8')
        except UnicodeDecodeError:
            return "[BINARY_CONTENT]"
        return REDACTED_BODY_FIELDS.sub(r'\1"[REDACTED]"', text)
