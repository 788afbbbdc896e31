"""OAuth 2.0 authorization-code flow used for Google account linking.

The authorize step auto-approves: there is no login page, every code is
bound to one configured subject. Swap `subject` for a real identity
provider lookup before exposing this to more than one account.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from urllib.parse import urlencode, urlsplit, urlunsplit

from oauth.errors import InvalidClient, InvalidRequest, UnsupportedGrantType
from oauth.stores import AccessToken, CredentialStore

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "deye-user"


@dataclass(frozen=True, slots=True)
class TokenResponse:
    access_token: str
    expires_in: int
    refresh_token: str | None = None
    token_type: str = "Bearer"

    def to_dict(self) -> dict:
        body = {
            "token_type": self.token_type,
            "access_token": self.access_token,
            "expires_in": self.expires_in,
        }
        if self.refresh_token is not None:
            body["refresh_token"] = self.refresh_token
        return body


def construct_redirect_uri(redirect_uri: str, **params: str) -> str:
    """Append query parameters to redirect_uri, keeping any existing query."""
    parts = urlsplit(redirect_uri)
    query = urlencode(params)
    if parts.query:
        query = f"{parts.query}&{query}"
    return urlunsplit(parts._replace(query=query))


def _mask(token: str | None) -> str:
    if not token:
        return "<none>"
    return f"{token[:6]}..."


class OAuthServer:
    """Authorize and token endpoints for the single registered client."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        store: CredentialStore,
        subject: str = DEFAULT_SUBJECT,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.store = store
        self.subject = subject

    def authorize(
        self,
        client_id: str | None,
        redirect_uri: str | None,
        state: str | None,
        response_type: str | None,
    ) -> str:
        """Issue an authorization code and return the redirect URL."""
        if client_id != self.client_id:
            logger.info(f"[OAUTH] Authorize rejected: unknown client_id {client_id!r}")
            raise InvalidClient("Invalid client_id")

        if response_type != "code":
            logger.info(f"[OAUTH] Authorize rejected: response_type {response_type!r}")
            raise InvalidRequest("Invalid response_type")

        if not redirect_uri:
            raise InvalidRequest("Missing redirect_uri")

        auth_code = self.store.create_code(client_id, redirect_uri, self.subject)
        logger.info(f"[OAUTH] Authorization code issued for subject: {auth_code.subject}")

        return construct_redirect_uri(redirect_uri, code=auth_code.code, state=state or "")

    def exchange_token(
        self,
        grant_type: str | None,
        client_id: str | None,
        client_secret: str | None,
        code: str | None = None,
        redirect_uri: str | None = None,
        refresh_token: str | None = None,
    ) -> TokenResponse:
        """Handle a token request for either supported grant type."""
        self._check_client(client_id, client_secret)
        logger.debug(f"[OAUTH] Token request, grant_type: {grant_type}")

        if grant_type == "authorization_code":
            return self._exchange_authorization_code(code, redirect_uri)
        if grant_type == "refresh_token":
            return self._exchange_refresh_token(refresh_token)

        raise UnsupportedGrantType("Grant type not supported")

    def verify_token(self, token: str) -> AccessToken:
        return self.store.lookup_access_token(token)

    def _check_client(self, client_id: str | None, client_secret: str | None) -> None:
        id_ok = secrets.compare_digest((client_id or "").encode(), self.client_id.encode())
        secret_ok = secrets.compare_digest((client_secret or "").encode(), self.client_secret.encode())
        if not (id_ok and secret_ok):
            logger.info("[OAUTH] Token request rejected: invalid client credentials")
            raise InvalidClient("Invalid client credentials")

    def _exchange_authorization_code(self, code: str | None, redirect_uri: str | None) -> TokenResponse:
        auth_code = self.store.redeem_code(code or "", redirect_uri)

        access_token = self.store.issue_access_token(auth_code.subject)
        refresh_token = self.store.issue_refresh_token(auth_code.subject)
        logger.info(
            f"[OAUTH] Tokens issued for subject: {auth_code.subject} "
            f"(access {_mask(access_token.token)})"
        )

        return TokenResponse(
            access_token=access_token.token,
            refresh_token=refresh_token.token,
            expires_in=self.store.access_token_ttl_seconds,
        )

    def _exchange_refresh_token(self, refresh_token: str | None) -> TokenResponse:
        stored = self.store.lookup_refresh_token(refresh_token or "")
        access_token = self.store.issue_access_token(stored.subject)
        logger.info(f"[OAUTH] Access token refreshed for subject: {stored.subject}")

        return TokenResponse(access_token=access_token.token, expires_in=self.store.access_token_ttl_seconds)
