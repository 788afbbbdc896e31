"""Bearer token guard for the fulfillment endpoint.

Validates the access token issued during account linking and attaches
the linked subject to `request.state.user_id` for the intent handler.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from oauth.errors import Unauthorized
from oauth.server import OAuthServer

logger = logging.getLogger(__name__)

PROTECTED_PATHS = ("/fulfillment",)


def unauthorized_response(error_description: str) -> JSONResponse:
    """Return 401 with a Bearer challenge."""
    return JSONResponse(
        {"error": "unauthorized", "error_description": error_description},
        status_code=401,
        headers={"WWW-Authenticate": 'Bearer error="invalid_token"'},
    )


def extract_bearer_token(auth_header: str | None) -> str:
    """Return the token from an `Authorization: Bearer <token>` header."""
    if not auth_header:
        raise Unauthorized("Missing or invalid authorization header")

    scheme, _, token = auth_header.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise Unauthorized("Missing or invalid authorization header")
    return token


class BearerAuthMiddleware(BaseHTTPMiddleware):
    """Reject requests to protected paths without a valid access token."""

    def __init__(self, app, oauth_server: OAuthServer, protected_paths: tuple[str, ...] = PROTECTED_PATHS):
        super().__init__(app)
        self.oauth_server = oauth_server
        self.protected_paths = protected_paths

    def is_protected(self, path: str) -> bool:
        return any(path == p or path.startswith(p.rstrip("/") + "/") for p in self.protected_paths)

    async def dispatch(self, request: Request, call_next):
        if not self.is_protected(request.url.path):
            return await call_next(request)

        try:
            token = extract_bearer_token(request.headers.get("Authorization"))
        except Unauthorized as e:
            logger.info("[AUTH] Request rejected: no Bearer token")
            return unauthorized_response(e.description)

        try:
            access_token = self.oauth_server.verify_token(token)
        except Unauthorized:
            logger.info("[AUTH] Request rejected: invalid or expired token")
            return unauthorized_response("Invalid or expired token")

        request.state.user_id = access_token.subject
        logger.debug(f"[AUTH] Request authorized for subject: {access_token.subject}")
        return await call_next(request)
