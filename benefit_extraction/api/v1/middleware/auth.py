"""Shared-secret authentication middleware.

Callers authenticate with ``Authorization: Bearer <WORKER_SECRET>``. When no
secret is configured every request is admitted.
"""

import hmac

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from benefit_extraction.config import Settings
from benefit_extraction.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Paths that don't require authentication
EXCLUDED_PATHS = {
    "/health",
    "/health/",
    "/docs",
    "/docs/",
    "/openapi.json",
    "/redoc",
    "/",
}

UNAUTHORIZED_BODY = {"detail": "Unauthorized"}


class SharedSecretMiddleware(BaseHTTPMiddleware):
    """Rejects requests whose bearer token does not match the worker secret."""

    def __init__(self, app, settings: Settings):
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next):
        # Allow OPTIONS requests
        if request.method == "OPTIONS":
            return await call_next(request)

        if request.url.path in EXCLUDED_PATHS:
            return await call_next(request)

        secret = self.settings.worker_secret
        if not secret:
            return await call_next(request)

        auth_header = request.headers.get("Authorization") or ""
        scheme, _, token = auth_header.partition(" ")

        if scheme != "Bearer" or not hmac.compare_digest(token.encode(), secret.encode()):
            LOGGER.warning(f"Unauthorized request to {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content=UNAUTHORIZED_BODY,
                headers={"WWW-Authenticate": "Bearer"},
            )

        return await call_next(request)
