"""OAuth error taxonomy for the account-linking endpoints.

Each error carries the machine-readable `error` code returned to Google
and the HTTP status the endpoints should answer with.
"""


class OAuthError(Exception):
    """Base class for account-linking failures."""

    error = "server_error"
    status_code = 400

    def __init__(self, description: str = ""):
        super().__init__(description or self.error)
        self.description = description

    def to_dict(self) -> dict:
        return {"error": self.error, "error_description": self.description}


class InvalidClient(OAuthError):
    """Unregistered client or mismatched client credentials."""

    error = "invalid_client"
    status_code = 401


class InvalidRequest(OAuthError):
    """Malformed authorize parameters."""

    error = "invalid_request"


class InvalidGrant(OAuthError):
    """Unknown, expired or reused code or refresh token."""

    error = "invalid_grant"


class UnsupportedGrantType(OAuthError):
    error = "unsupported_grant_type"


class Unauthorized(OAuthError):
    """Missing, malformed or expired bearer credential."""

    error = "unauthorized"
    status_code = 401
