"""
Pytest configuration and shared fixtures for the consent application tests.

Kong is replaced by FakeKong, served through httpx.MockTransport, so the real
GatewayClient code path runs against it.
"""

import json
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi.testclient import TestClient

from config import Settings
from consent.authenticator import DemoAuthenticator
from consent.flow import ConsentFlowController
from consent.gateway import GatewayClient
from consent.sessions import SessionStore

ADMIN_ENDPOINT = "http://kong-admin:8001"
PROXY_ENDPOINT = "https://kong:8443"
API_PATH = "/mock"
PROVISION_KEY = "test-provision-key"
DEMO_CLIENT_ID = "demo-client"
COOKIE_NAME = "kongOAuthConsentApp"


class FakeKong:
    """Minimal Kong Admin API + OAuth 2.0 authorize endpoint."""

    def __init__(self):
        self.applications = {DEMO_CLIENT_ID: "Demo Application"}
        self.authorize_status = 200
        self.authorize_body = {"redirect_uri": "http://cb/?code=ABC"}
        self.fail_with = None
        self.requests: list[httpx.Request] = []

    @property
    def authorize_forms(self) -> list[dict]:
        return [
            {k: v[0] for k, v in parse_qs(r.content.decode()).items()}
            for r in self.requests
            if r.url.path.endswith("/oauth2/authorize")
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with

        if request.method == "GET" and request.url.path == "/oauth2":
            client_id = request.url.params.get("client_id")
            data = [{"name": self.applications[client_id]}] if client_id in self.applications else []
            return httpx.Response(200, json={"data": data})

        if request.method == "POST" and request.url.path == f"{API_PATH}/oauth2/authorize":
            body = self.authorize_body
            if isinstance(body, (dict, list)):
                return httpx.Response(self.authorize_status, json=body)
            return httpx.Response(self.authorize_status, content=body)

        return httpx.Response(404, content=json.dumps({"message": "Not found"}))


@pytest.fixture
def kong() -> FakeKong:
    return FakeKong()


@pytest.fixture
def gateway(kong) -> GatewayClient:
    return GatewayClient(
        admin_endpoint=ADMIN_ENDPOINT,
        proxy_endpoint=PROXY_ENDPOINT,
        api_path=API_PATH,
        provision_key=PROVISION_KEY,
        timeout=2.0,
        transport=httpx.MockTransport(kong.handler),
    )


@pytest.fixture
def store() -> SessionStore:
    return SessionStore(ttl_seconds=1800)


@pytest.fixture
def settings() -> Settings:
    return Settings({
        "DEMO_CLIENT_ID": DEMO_CLIENT_ID,
        "KONG_ADMIN_ENDPOINT": ADMIN_ENDPOINT,
        "KONG_PROXY_ENDPOINT": PROXY_ENDPOINT,
        "API_PATH": API_PATH,
        "PROVISION_KEY": PROVISION_KEY,
        "SESSION_COOKIE_NAME": COOKIE_NAME,
    })


@pytest.fixture
def controller(store, gateway) -> ConsentFlowController:
    return ConsentFlowController(
        store=store,
        gateway=gateway,
        authenticator=DemoAuthenticator(),
        demo_client_id=DEMO_CLIENT_ID,
    )


@pytest.fixture
def consent_app(settings, gateway, store):
    from main import create_app

    return create_app(settings, gateway=gateway, authenticator=DemoAuthenticator(), store=store)


@pytest.fixture
def client(consent_app) -> TestClient:
    return TestClient(consent_app, follow_redirects=False)


CONSENT_PARAMS = {
    "client_id": DEMO_CLIENT_ID,
    "response_type": "code",
    "scopes": "email,phone,address",
}


@pytest.fixture
def logged_in_client(client) -> TestClient:
    """A client that went through GET /consent and POST /login."""
    client.get("/consent", params=CONSENT_PARAMS)
    response = client.post("/login", data={"username": "alice", "password": "secret"})
    assert response.status_code == 303
    return client
