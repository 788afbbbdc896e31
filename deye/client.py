"""Async client for the Deye Cloud developer API.

Authenticates with the account's app credentials, caches the returned
access token and exposes the device list, latest-data and control
operations the smart-home handler needs. Calls are not retried.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import time
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://eu1-developer.deyecloud.com"
DEFAULT_TIMEOUT = 15.0

# Deye tokens are valid for 60 days; renew a day early
TOKEN_LIFETIME_SECONDS = 59 * 24 * 60 * 60


class DeyeCloudError(Exception):
    """A Deye Cloud call failed or returned an unsuccessful envelope."""


def hash_password(password: str) -> str:
    """SHA-256 of the password as lowercase hex, as the token API expects."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest().lower()


class DeyeCloudClient:
    """Device gateway backed by the Deye Cloud API."""

    def __init__(
        self,
        app_id: str,
        app_secret: str,
        email: str,
        password: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.app_id = app_id
        self.app_secret = app_secret
        self.email = email
        self.password = password
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http_client = http_client

        self.access_token: str | None = None
        self.token_expiry: float | None = None
        self._auth_lock = asyncio.Lock()

    async def _request(self, method: str, path: str, *, json: dict | None = None,
                       params: dict | None = None, headers: dict | None = None) -> Any:
        """Send a request and unwrap the `{success, data}` envelope."""
        url = f"{self.base_url}{path}"
        try:
            if self._http_client is not None:
                response = await self._http_client.request(method, url, json=json, params=params, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(method, url, json=json, params=params, headers=headers)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            logger.error(f"[DEYE] Request to {path} failed: {e}")
            raise DeyeCloudError(f"Request to {path} failed: {e}") from e
        except ValueError as e:
            logger.error(f"[DEYE] Invalid JSON from {path}: {e}")
            raise DeyeCloudError(f"Invalid JSON from {path}") from e

        if not isinstance(body, dict) or not body.get("success"):
            logger.error(f"[DEYE] Unsuccessful response from {path}: {body}")
            raise DeyeCloudError(f"Deye Cloud call {path} failed: {body}")

        return body.get("data")

    async def authenticate(self) -> str:
        """Obtain a fresh Deye access token."""
        data = await self._request(
            "POST",
            "/v1.0/account/token",
            params={"appId": self.app_id},
            json={
                "appSecret": self.app_secret,
                "email": self.email,
                "password": hash_password(self.password),
            },
            headers={"Content-Type": "application/json"},
        )
        token = data.get("accessToken") if isinstance(data, dict) else None
        if not token:
            raise DeyeCloudError(f"Authentication failed: {data}")

        self.access_token = token
        self.token_expiry = time.time() + TOKEN_LIFETIME_SECONDS
        logger.info("[DEYE] Authenticated with Deye Cloud")
        return token

    async def ensure_valid_token(self) -> str:
        async with self._auth_lock:
            if not self.access_token or not self.token_expiry or time.time() >= self.token_expiry:
                await self.authenticate()
        return self.access_token

    async def get_headers(self) -> dict:
        token = await self.ensure_valid_token()
        return {"Content-Type": "application/json", "Authorization": f"Bearer {token}"}

    async def get_device_list(self, page: int = 1, size: int = 100) -> Any:
        """List the devices on the account."""
        data = await self._request(
            "POST",
            "/v1.0/device/list",
            json={"page": page, "size": size},
            headers=await self.get_headers(),
        )
        return data or []

    async def get_device_status(self, device_sns: list[str] | str) -> Any:
        """Latest data for the given device serial numbers, in one call."""
        if isinstance(device_sns, str):
            device_sns = [device_sns]
        data = await self._request(
            "POST",
            "/v1.0/device/latest",
            json={"deviceSns": list(device_sns)},
            headers=await self.get_headers(),
        )
        return data or []

    async def set_work_mode(self, device_sn: str, mode: int) -> Any:
        return await self._request(
            "POST",
            "/v1.0/order/sys/workMode/update",
            json={"deviceSn": device_sn, "mode": mode},
            headers=await self.get_headers(),
        )

    async def set_battery_mode(self, device_sn: str, mode: int) -> Any:
        return await self._request(
            "POST",
            "/v1.0/order/battery/modeControl",
            json={"deviceSn": device_sn, "mode": mode},
            headers=await self.get_headers(),
        )

    async def set_power_limit(self, device_sn: str, power: int) -> Any:
        return await self._request(
            "POST",
            "/v1.0/order/sys/power/update",
            json={"deviceSn": device_sn, "power": power},
            headers=await self.get_headers(),
        )

    async def get_order_status(self, order_id: str) -> Any:
        """Status of a previously submitted control order."""
        return await self._request(
            "GET",
            f"/v1.0/order/{order_id}",
            headers=await self.get_headers(),
        )
