"""Bearer token authentication for the import API."""

import logging
import uuid
from typing import Any, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.utils.security import decode_access_token
from app.utils.tenant_context import clear_all_context, set_caller

logger = logging.getLogger(__name__)


def _optional_uuid(value: Any) -> uuid.UUID | None:
    return uuid.UUID(value) if value else None


class AuthMiddleware(BaseHTTPMiddleware):
    """Binds the caller named by the Authorization header, if any.

    Requests without a usable token still reach the router with an empty
    caller; ``require_role`` on each import route turns that into a 401.
    """

    PUBLIC_PATHS = frozenset({"/health", "/api/docs", "/api/redoc", "/api/openapi.json"})

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        clear_all_context()

        if request.url.path not in self.PUBLIC_PATHS:
            self._bind_caller(request)

        try:
            return await call_next(request)
        finally:
            clear_all_context()

    def _bind_caller(self, request: Request) -> None:
        scheme, _, token = request.headers.get("Authorization", "").partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return

        claims = decode_access_token(token.strip())
        if not claims:
            logger.debug(f"Rejected access token on {request.url.path}")
            return

        try:
            set_caller(
                _optional_uuid(claims.get("sub")),
                tenant_id=_optional_uuid(claims.get("tenant_id")),
                role=claims.get("role") or None,
            )
        except (ValueError, TypeError, AttributeError):
            logger.warning(f"Ignoring access token with malformed claims on {request.url.path}")
            clear_all_context()
