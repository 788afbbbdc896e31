"""In-memory credential store for account linking.

Authorization codes, access tokens and refresh tokens live in plain dicts
owned by one explicitly constructed store. Nothing survives a restart.
Every operation runs without awaiting, so under asyncio each one is
atomic with respect to other in-flight requests.
"""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from typing import Protocol

from oauth.errors import InvalidGrant, Unauthorized

AUTHORIZATION_CODE_TTL_SECONDS = 5 * 60
ACCESS_TOKEN_TTL_SECONDS = 60 * 60
REFRESH_TOKEN_TTL_SECONDS = 30 * 24 * 60 * 60


@dataclass(frozen=True, slots=True, kw_only=True)
class AuthorizationCode:
    code: str
    client_id: str
    redirect_uri: str
    subject: str
    issued_at: float


@dataclass(frozen=True, slots=True, kw_only=True)
class AccessToken:
    token: str
    subject: str
    issued_at: float


@dataclass(frozen=True, slots=True, kw_only=True)
class RefreshToken:
    token: str
    subject: str
    issued_at: float


class CredentialStore(Protocol):
    """Storage used by the authorization flow and the bearer guard."""

    access_token_ttl_seconds: int

    def create_code(self, client_id: str, redirect_uri: str, subject: str) -> AuthorizationCode: ...

    def redeem_code(self, code: str, redirect_uri: str | None) -> AuthorizationCode: ...

    def issue_access_token(self, subject: str) -> AccessToken: ...

    def issue_refresh_token(self, subject: str) -> RefreshToken: ...

    def lookup_access_token(self, token: str) -> AccessToken: ...

    def lookup_refresh_token(self, token: str) -> RefreshToken: ...


def generate_token() -> str:
    """Return a random opaque token with 256 bits of entropy."""
    return secrets.token_hex(32)


class InMemoryCredentialStore:
    def __init__(
        self,
        code_ttl_seconds: int = AUTHORIZATION_CODE_TTL_SECONDS,
        access_token_ttl_seconds: int = ACCESS_TOKEN_TTL_SECONDS,
        refresh_token_ttl_seconds: int | None = REFRESH_TOKEN_TTL_SECONDS,
    ) -> None:
        self.code_ttl_seconds = code_ttl_seconds
        self.access_token_ttl_seconds = access_token_ttl_seconds
        # None disables refresh token expiry
        self.refresh_token_ttl_seconds = refresh_token_ttl_seconds

        self.authorization_codes: dict[str, AuthorizationCode] = {}
        self.access_tokens: dict[str, AccessToken] = {}
        self.refresh_tokens: dict[str, RefreshToken] = {}

    def create_code(self, client_id: str, redirect_uri: str, subject: str) -> AuthorizationCode:
        auth_code = AuthorizationCode(
            code=generate_token(),
            client_id=client_id,
            redirect_uri=redirect_uri,
            subject=subject,
            issued_at=time.time(),
        )
        self.authorization_codes[auth_code.code] = auth_code
        return auth_code

    def redeem_code(self, code: str, redirect_uri: str | None) -> AuthorizationCode:
        """Remove and return an authorization code bound to redirect_uri.

        A redirect URI mismatch leaves the code in place. An expired code is
        removed. Lookup, checks and removal run without awaiting.
        """
        auth_code = self.authorization_codes.get(code) if code else None
        if auth_code is None:
            raise InvalidGrant("Invalid authorization code")

        if auth_code.redirect_uri != redirect_uri:
            raise InvalidGrant("Redirect URI mismatch")

        del self.authorization_codes[code]
        if time.time() - auth_code.issued_at > self.code_ttl_seconds:
            raise InvalidGrant("Authorization code expired")

        return auth_code

    def issue_access_token(self, subject: str) -> AccessToken:
        access_token = AccessToken(token=generate_token(), subject=subject, issued_at=time.time())
        self.access_tokens[access_token.token] = access_token
        return access_token

    def issue_refresh_token(self, subject: str) -> RefreshToken:
        refresh_token = RefreshToken(token=generate_token(), subject=subject, issued_at=time.time())
        self.refresh_tokens[refresh_token.token] = refresh_token
        return refresh_token

    def lookup_access_token(self, token: str) -> AccessToken:
        access_token = self.access_tokens.get(token) if token else None
        if access_token is None:
            raise Unauthorized("Invalid or expired token")

        if time.time() - access_token.issued_at >= self.access_token_ttl_seconds:
            self.access_tokens.pop(token, None)
            raise Unauthorized("Invalid or expired token")

        return access_token

    def lookup_refresh_token(self, token: str) -> RefreshToken:
        refresh_token = self.refresh_tokens.get(token) if token else None
        if refresh_token is None:
            raise InvalidGrant("Invalid refresh token")

        ttl = self.refresh_token_ttl_seconds
        if ttl is not None and time.time() - refresh_token.issued_at >= ttl:
            self.refresh_tokens.pop(token, None)
            raise InvalidGrant("Refresh token expired")

        return refresh_token
