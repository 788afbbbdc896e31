"""Tests for the in-memory credential store."""

import pytest

from oauth import stores as stores_module
from oauth.errors import InvalidGrant, Unauthorized
from oauth.stores import InMemoryCredentialStore


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch):
    """Freeze time.time() at a value the test can move."""
    now = {"value": 1000.0}
    monkeypatch.setattr(stores_module.time, "time", lambda: now["value"])
    return now


def test_generated_tokens_are_random_hex():
    token = stores_module.generate_token()
    assert len(token) == 64
    int(token, 16)
    assert token != stores_module.generate_token()


def test_create_code_records_binding(store, clock):
    auth_code = store.create_code("client", "https://example.com/cb", "deye-user")

    assert auth_code.client_id == "client"
    assert auth_code.redirect_uri == "https://example.com/cb"
    assert auth_code.subject == "deye-user"
    assert auth_code.issued_at == 1000.0
    assert store.authorization_codes[auth_code.code] is auth_code


def test_redeem_code_is_single_use(store):
    auth_code = store.create_code("client", "https://example.com/cb", "deye-user")

    assert store.redeem_code(auth_code.code, "https://example.com/cb") == auth_code
    with pytest.raises(InvalidGrant):
        store.redeem_code(auth_code.code, "https://example.com/cb")


def test_redeem_unknown_code_fails(store):
    with pytest.raises(InvalidGrant):
        store.redeem_code("nope", "https://example.com/cb")
    with pytest.raises(InvalidGrant):
        store.redeem_code("", "https://example.com/cb")


def test_redirect_mismatch_leaves_code_in_place(store):
    auth_code = store.create_code("client", "https://example.com/cb", "deye-user")

    with pytest.raises(InvalidGrant, match="Redirect URI"):
        store.redeem_code(auth_code.code, "https://other.example.com/cb")
    assert auth_code.code in store.authorization_codes

    assert store.redeem_code(auth_code.code, "https://example.com/cb") == auth_code


def test_code_valid_at_exactly_ttl(store, clock):
    auth_code = store.create_code("client", "https://example.com/cb", "deye-user")
    clock["value"] += 300

    assert store.redeem_code(auth_code.code, "https://example.com/cb").code == auth_code.code


def test_expired_code_fails_and_is_removed(store, clock):
    auth_code = store.create_code("client", "https://example.com/cb", "deye-user")
    clock["value"] += 301

    with pytest.raises(InvalidGrant, match="expired"):
        store.redeem_code(auth_code.code, "https://example.com/cb")
    assert auth_code.code not in store.authorization_codes
    with pytest.raises(InvalidGrant, match="Invalid"):
        store.redeem_code(auth_code.code, "https://example.com/cb")


def test_access_token_accepted_until_one_hour(store, clock):
    access_token = store.issue_access_token("deye-user")

    clock["value"] += 3599
    assert store.lookup_access_token(access_token.token).subject == "deye-user"

    clock["value"] += 1
    with pytest.raises(Unauthorized):
        store.lookup_access_token(access_token.token)
    assert access_token.token not in store.access_tokens


def test_unknown_access_token_fails(store):
    with pytest.raises(Unauthorized):
        store.lookup_access_token("missing")


def test_refresh_token_lookup(store):
    refresh_token = store.issue_refresh_token("deye-user")

    assert store.lookup_refresh_token(refresh_token.token).subject == "deye-user"
    with pytest.raises(InvalidGrant):
        store.lookup_refresh_token("missing")


def test_refresh_token_expires_after_ttl(clock):
    store = InMemoryCredentialStore(refresh_token_ttl_seconds=60)
    refresh_token = store.issue_refresh_token("deye-user")

    clock["value"] += 60
    with pytest.raises(InvalidGrant, match="expired"):
        store.lookup_refresh_token(refresh_token.token)
    assert refresh_token.token not in store.refresh_tokens


def test_refresh_token_without_ttl_never_expires(clock):
    store = InMemoryCredentialStore(refresh_token_ttl_seconds=None)
    refresh_token = store.issue_refresh_token("deye-user")

    clock["value"] += 10 * 365 * 24 * 60 * 60
    assert store.lookup_refresh_token(refresh_token.token) == refresh_token


def test_stores_are_independent():
    first = InMemoryCredentialStore()
    second = InMemoryCredentialStore()
    access_token = first.issue_access_token("deye-user")

    with pytest.raises(Unauthorized):
        second.lookup_access_token(access_token.token)
