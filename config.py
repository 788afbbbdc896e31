"""Config management for the Deye Google Home bridge.

Settings come from the process environment. A local `.env` file is
loaded first (without overriding variables that are already set).
"""
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_FILE = Path(".env")

DEFAULT_DEYE_API_BASE_URL = "https://eu1-developer.deyecloud.com"
DEFAULT_OAUTH_CLIENT_ID = "deye-google-home"
DEFAULT_OAUTH_CLIENT_SECRET = "default-secret"
DEFAULT_AGENT_USER_ID = "deye-user"

TRUE_VALUES = {"1", "true", "yes", "on"}


def _as_int(value: Optional[str], default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Expected an integer setting, got {value!r}")


class Config:
    """Configuration container."""

    def __init__(self, data: dict = None):
        self.data = data or {}

    @property
    def host(self) -> str:
        return self.data.get("HOST") or "0.0.0.0"

    @property
    def port(self) -> int:
        return _as_int(self.data.get("PORT"), 3000)

    @property
    def deye_app_id(self) -> Optional[str]:
        return self.data.get("DEYE_APP_ID")

    @property
    def deye_app_secret(self) -> Optional[str]:
        return self.data.get("DEYE_APP_SECRET")

    @property
    def deye_email(self) -> Optional[str]:
        return self.data.get("DEYE_EMAIL")

    @property
    def deye_password(self) -> Optional[str]:
        return self.data.get("DEYE_PASSWORD")

    @property
    def deye_api_base_url(self) -> str:
        return self.data.get("DEYE_API_BASE_URL") or DEFAULT_DEYE_API_BASE_URL

    @property
    def oauth_client_id(self) -> str:
        return self.data.get("OAUTH_CLIENT_ID") or DEFAULT_OAUTH_CLIENT_ID

    @property
    def oauth_client_secret(self) -> str:
        return self.data.get("OAUTH_CLIENT_SECRET") or DEFAULT_OAUTH_CLIENT_SECRET

    @property
    def agent_user_id(self) -> str:
        return self.data.get("AGENT_USER_ID") or DEFAULT_AGENT_USER_ID

    @property
    def auth_code_ttl_seconds(self) -> int:
        return _as_int(self.data.get("AUTH_CODE_TTL_SECONDS"), 300)

    @property
    def access_token_ttl_seconds(self) -> int:
        return _as_int(self.data.get("ACCESS_TOKEN_TTL_SECONDS"), 3600)

    @property
    def refresh_token_ttl_seconds(self) -> Optional[int]:
        """Refresh token lifetime; 0 means refresh tokens never expire."""
        ttl = _as_int(self.data.get("REFRESH_TOKEN_TTL_SECONDS"), 30 * 24 * 60 * 60)
        return ttl or None

    @property
    def log_level(self) -> str:
        return (self.data.get("LOG_LEVEL") or "INFO").upper()

    @property
    def log_format(self) -> str:
        return (self.data.get("LOG_FORMAT") or "plain").lower()

    @property
    def enable_test_endpoints(self) -> bool:
        return (self.data.get("ENABLE_TEST_ENDPOINTS") or "true").lower() in TRUE_VALUES

    def has_deye_credentials(self) -> bool:
        """Check if config has everything needed to reach Deye Cloud."""
        return bool(self.deye_app_id and self.deye_app_secret and self.deye_email and self.deye_password)

    def uses_default_client_secret(self) -> bool:
        return self.oauth_client_secret == DEFAULT_OAUTH_CLIENT_SECRET


def load_config(env_file: Path = ENV_FILE) -> Config:
    """Load config from the environment (and .env if present)."""
    if env_file.exists():
        load_dotenv(env_file)
    return Config(dict(os.environ))
