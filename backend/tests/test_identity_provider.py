import pytest
import requests

from identity.providers.auth0 import Auth0Client, IdentityProviderError, IdentityProviderUnauthorized
from identity.providers.profile import ExternalIdentityProfile, language_from_locale


class _FakeResponse:
    def __init__(self, status_code: int, payload=None, body_is_json: bool = True):
        self.status_code = status_code
        self._payload = payload
        self._body_is_json = body_is_json

    def json(self):
        if not self._body_is_json:
            raise ValueError("not json")
        return self._payload


def _patch_get(monkeypatch, response=None, exc=None):
    calls = []

    def fake_get(self, url, headers=None, timeout=None):
        calls.append({"url": url, "headers": headers, "timeout": timeout})
        if exc is not None:
            raise exc
        return response

    monkeypatch.setattr(requests.Session, "get", fake_get)
    return calls


PAYLOAD = {
    "sub": "google-oauth2|1234",
    "name": "Grace Hopper",
    "picture": "https://example.com/grace.png",
    "locale": "en-US",
}


def test_get_profile_parses_userinfo(monkeypatch):
    calls = _patch_get(monkeypatch, _FakeResponse(200, PAYLOAD))

    profile = Auth0Client(domain="example.eu.auth0.com", timeout=3).get_profile("tok")

    assert profile == ExternalIdentityProfile(
        external_id="google-oauth2|1234",
        display_name="Grace Hopper",
        picture_uri="https://example.com/grace.png",
        locale="en",
    )
    assert calls[0]["url"] == "https://example.eu.auth0.com/userinfo"
    assert calls[0]["headers"] == {"Authorization": "Bearer tok"}
    assert calls[0]["timeout"] == 3


def test_get_profile_unauthorized(monkeypatch):
    _patch_get(monkeypatch, _FakeResponse(401))
    with pytest.raises(IdentityProviderUnauthorized):
        Auth0Client(domain="example.eu.auth0.com").get_profile("bad")


def test_get_profile_upstream_failure(monkeypatch):
    _patch_get(monkeypatch, _FakeResponse(503))
    with pytest.raises(IdentityProviderError) as ei:
        Auth0Client(domain="example.eu.auth0.com").get_profile("tok")
    assert not isinstance(ei.value, IdentityProviderUnauthorized)


def test_get_profile_transport_error(monkeypatch):
    _patch_get(monkeypatch, exc=requests.ConnectionError("down"))
    with pytest.raises(IdentityProviderError):
        Auth0Client(domain="example.eu.auth0.com").get_profile("tok")


def test_get_profile_malformed_payload(monkeypatch):
    _patch_get(monkeypatch, _FakeResponse(200, {**PAYLOAD, "picture": "http://insecure.example/p.png"}))
    with pytest.raises(IdentityProviderError):
        Auth0Client(domain="example.eu.auth0.com").get_profile("tok")

    _patch_get(monkeypatch, _FakeResponse(200, body_is_json=False))
    with pytest.raises(IdentityProviderError):
        Auth0Client(domain="example.eu.auth0.com").get_profile("tok")


def test_profile_prefers_user_id_and_snapshots():
    profile = ExternalIdentityProfile.from_payload({**PAYLOAD, "user_id": "auth0|legacy", "locale": "pt_BR"})
    assert profile.external_id == "auth0|legacy"
    assert profile.locale == "pt"
    assert profile.to_snapshot() == {
        "name": "Grace Hopper",
        "picture": "https://example.com/grace.png",
        "locale": "pt",
    }
    assert len(profile.identity_hash()) == 64


def test_language_from_locale():
    assert language_from_locale("en-US") == "en"
    assert language_from_locale("FR") == "fr"
    assert language_from_locale(None) == "en"
    assert language_from_locale("--") == "en"
