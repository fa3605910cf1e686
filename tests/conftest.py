import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from login_facebook.models.auth import OAuthConfig
from login_facebook.users.directory import InMemoryUserDirectory
from login_facebook.users.installer import Installer

REDIRECT_URI = "http://testserver/login-facebook/"


class FakeGraphAPI:
    """
    Stand-in for graph.facebook.com served through httpx.MockTransport.

    Records every request; responses can be replaced per test, either with a
    JSON-able object, a (status, body) tuple, or an exception to raise.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token_response: Any = {"access_token": "EAAB-test-token", "token_type": "bearer", "expires_in": 5183944}
        self.profile_response: Any = {
            "id": "1000",
            "name": "Ana Lee",
            "first_name": "Ana",
            "last_name": "Lee",
            "email": "ana@example.com",
        }

    def _respond(self, request: httpx.Request, reply: Any) -> httpx.Response:
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, tuple):
            status_code, body = reply
        else:
            status_code, body = 200, reply
        if isinstance(body, str):
            return httpx.Response(status_code, text=body, request=request)
        return httpx.Response(status_code, content=json.dumps(body).encode(), request=request)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/oauth/access_token"):
            return self._respond(request, self.token_response)
        if request.url.path.endswith("/me"):
            return self._respond(request, self.profile_response)
        return httpx.Response(404, json={"error": {"message": "unknown path"}}, request=request)

    def calls_to(self, suffix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(suffix)]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_graph() -> FakeGraphAPI:
    return FakeGraphAPI()


@pytest.fixture
def make_oauth_config() -> Callable[..., OAuthConfig]:
    def _make(**overrides: Any) -> OAuthConfig:
        values: dict[str, Any] = {
            "app_id": "test-app-id",
            "app_secret": "test-app-secret",
            "redirect_uri": REDIRECT_URI,
            "request_permissions": frozenset({"public_profile", "email"}),
            "request_fields": ("first_name", "last_name", "name", "email"),
            "add_roles": frozenset({"login-facebook"}),
            "disallow_roles": frozenset({"superuser"}),
            "disallow_permissions": frozenset({"page-edit"}),
            "field_mirror_map": {"email": "email"},
        }
        values.update(overrides)
        return OAuthConfig(**values)

    return _make


@pytest.fixture
def oauth_config(make_oauth_config) -> OAuthConfig:
    return make_oauth_config()


@pytest.fixture
def directory(oauth_config: OAuthConfig) -> InMemoryUserDirectory:
    """Directory with the login role and Facebook ID field installed, plus a few site roles."""
    store = InMemoryUserDirectory(identity_field=oauth_config.identity_field)
    Installer(oauth_config, store).install()
    store.create_role("superuser", {"page-edit", "user-admin"})
    store.create_role("editor", {"page-edit"})
    store.create_role("member", {"page-view"})
    return store
