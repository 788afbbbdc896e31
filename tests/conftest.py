"""
Shared fixtures for the test suite.

- FakeGateway: in-memory stand-in for the Deye Cloud client
- Config / store / OAuth server fixtures
- FastAPI TestClient wired with the fake gateway
- link_account(): runs the authorize + token exchange and returns tokens
"""

from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from config import Config
from deye.client import DeyeCloudError
from main import create_app
from oauth.server import OAuthServer
from oauth.stores import InMemoryCredentialStore

CLIENT_ID = "test-client"
CLIENT_SECRET = "test-secret"
REDIRECT_URI = "https://oauth-redirect.googleusercontent.com/r/test-project"


class FakeGateway:
    """Records calls and returns canned Deye data."""

    def __init__(self, devices=None, statuses=None, failing=()):
        self.devices = devices if devices is not None else []
        self.statuses = statuses if statuses is not None else []
        self.failing = set(failing)
        self.list_error = None
        self.status_error = None
        self.list_calls = 0
        self.status_calls = []
        self.mode_calls = []

    async def get_device_list(self):
        self.list_calls += 1
        if self.list_error:
            raise self.list_error
        return self.devices

    async def get_device_status(self, device_sns):
        self.status_calls.append(list(device_sns))
        if self.status_error:
            raise self.status_error
        return self.statuses

    async def set_work_mode(self, device_sn, mode):
        self.mode_calls.append((device_sn, mode))
        if device_sn in self.failing:
            raise DeyeCloudError(f"Failed to set work mode for {device_sn}")
        return {"orderId": f"order-{device_sn}"}

    async def authenticate(self):
        return "deye-access-token"


@pytest.fixture
def config() -> Config:
    return Config({
        "OAUTH_CLIENT_ID": CLIENT_ID,
        "OAUTH_CLIENT_SECRET": CLIENT_SECRET,
        "AGENT_USER_ID": "deye-user",
    })


@pytest.fixture
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def oauth_server(store) -> OAuthServer:
    return OAuthServer(client_id=CLIENT_ID, client_secret=CLIENT_SECRET, store=store)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway(
        devices={"list": [
            {"deviceSn": "INV001", "deviceName": "Garage Inverter", "productType": "Hybrid Inverter"},
            {"deviceSn": "MTR002", "productType": "Meter"},
        ]},
        statuses=[
            {"deviceSn": "INV001", "data": {"status": 1, "power": 2300}},
        ],
    )


@pytest.fixture
def client(config, gateway, store) -> TestClient:
    app = create_app(config, gateway=gateway, store=store)
    return TestClient(app)


def link_account(client: TestClient, state: str = "state-xyz") -> dict:
    """Run the account-linking flow and return the token response."""
    response = client.get(
        "/auth/authorize",
        params={
            "client_id": CLIENT_ID,
            "redirect_uri": REDIRECT_URI,
            "state": state,
            "response_type": "code",
        },
        follow_redirects=False,
    )
    assert response.status_code == 302
    code = parse_qs(urlparse(response.headers["location"]).query)["code"][0]

    response = client.post("/auth/token", data={
        "grant_type": "authorization_code",
        "code": code,
        "client_id": CLIENT_ID,
        "client_secret": CLIENT_SECRET,
        "redirect_uri": REDIRECT_URI,
    })
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def access_token(client) -> str:
    return link_account(client)["access_token"]
