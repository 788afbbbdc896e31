"""OAuth 2.0 endpoints for Google Home account linking.

- /auth/authorize: auto-approves and redirects back with a code
- /auth/token: authorization_code and refresh_token grants
"""

import json
import logging

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse

from oauth.errors import InvalidRequest, OAuthError
from oauth.server import OAuthServer

logger = logging.getLogger(__name__)

# Router for OAuth endpoints
router = APIRouter(prefix="/auth", tags=["oauth"])

def init_oauth_routes(app: FastAPI, oauth_server: OAuthServer):
    """Attach the authorization server the OAuth routes of this app use.

    Must be called before the app serves requests.
    """
    app.state.oauth_server = oauth_server


def oauth_error_response(error: OAuthError) -> JSONResponse:
    headers = {"Cache-Control": "no-store"}
    if error.status_code == 401:
        headers["WWW-Authenticate"] = "Basic"
    return JSONResponse(error.to_dict(), status_code=error.status_code, headers=headers)


async def _read_token_params(request: Request) -> dict:
    """Read token request parameters from a form or JSON body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise InvalidRequest("Malformed JSON body")
        if not isinstance(data, dict):
            raise InvalidRequest("Token request body must be an object")
    else:
        data = await request.form()

    return {key: value for key, value in data.items() if isinstance(value, str)}


# ============== Authorization Endpoint ==============

@router.get("/authorize")
async def authorize(
    request: Request,
    client_id: str | None = None,
    redirect_uri: str | None = None,
    state: str | None = None,
    response_type: str | None = None,
):
    """OAuth 2.0 Authorization Endpoint - auto-approves the linking request."""
    try:
        redirect_url = request.app.state.oauth_server.authorize(client_id, redirect_uri, state, response_type)
    except OAuthError as e:
        return PlainTextResponse(e.description, status_code=400)

    return RedirectResponse(url=redirect_url, status_code=302)


# ============== Token Endpoint ==============

@router.post("/token")
async def token(request: Request):
    """OAuth 2.0 Token Endpoint."""
    try:
        data = await _read_token_params(request)
        result = request.app.state.oauth_server.exchange_token(
            grant_type=data.get("grant_type"),
            client_id=data.get("client_id"),
            client_secret=data.get("client_secret"),
            code=data.get("code"),
            redirect_uri=data.get("redirect_uri"),
            refresh_token=data.get("refresh_token"),
        )
    except OAuthError as e:
        logger.info(f"[TOKEN] Token request failed: {e.error} ({e.description})")
        return oauth_error_response(e)

    return JSONResponse(result.to_dict(), headers={"Cache-Control": "no-store"})
