"""Tests for the Kong gateway client."""

import httpx
import pytest

from conftest import PROVISION_KEY
from consent.errors import ApplicationNotFound, GatewayError, ProtocolError, TransportError
from consent.gateway import USER_AGENT
from consent.models import ConsentRequest


@pytest.fixture
def consent_request():
    return ConsentRequest.from_params("demo-client", "code", "email,phone,address")


class TestResolveApplicationName:
    @pytest.mark.asyncio
    async def test_returns_application_name(self, gateway, kong):
        application = await gateway.resolve_application_name("demo-client")

        assert application.application_name == "Demo Application"
        request = kong.requests[0]
        assert str(request.url) == "http://kong-admin:8001/oauth2?client_id=demo-client"
        assert request.headers["User-Agent"] == USER_AGENT

    @pytest.mark.asyncio
    async def test_same_answer_on_repeat(self, gateway):
        first = await gateway.resolve_application_name("demo-client")
        second = await gateway.resolve_application_name("demo-client")
        assert first == second

    @pytest.mark.asyncio
    async def test_unknown_client_is_not_found(self, gateway):
        with pytest.raises(ApplicationNotFound):
            await gateway.resolve_application_name("nope")

    @pytest.mark.asyncio
    async def test_schema_mismatch_is_protocol_error(self, gateway):
        gateway._transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"items": []}))

        with pytest.raises(ProtocolError):
            await gateway.resolve_application_name("demo-client")

    @pytest.mark.asyncio
    async def test_non_json_is_protocol_error(self, gateway):
        gateway._transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>"))

        with pytest.raises(ProtocolError):
            await gateway.resolve_application_name("demo-client")

    @pytest.mark.asyncio
    async def test_http_error_is_protocol_error(self, gateway):
        gateway._transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"data": []}))

        with pytest.raises(ProtocolError, match="500"):
            await gateway.resolve_application_name("demo-client")

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self, gateway, kong):
        kong.fail_with = httpx.ConnectTimeout("timed out")

        with pytest.raises(TransportError, match="Timed out"):
            await gateway.resolve_application_name("demo-client")

    @pytest.mark.asyncio
    async def test_connect_error_is_transport_error(self, gateway, kong):
        kong.fail_with = httpx.ConnectError("connection refused")

        with pytest.raises(TransportError):
            await gateway.resolve_application_name("demo-client")


class TestIssueAuthorizationCode:
    @pytest.mark.asyncio
    async def test_posts_form_and_returns_redirect_uri(self, gateway, kong, consent_request):
        redirect_uri = await gateway.issue_authorization_code(consent_request, "alice")

        assert redirect_uri == "http://cb/?code=ABC"
        request = kong.requests[0]
        assert str(request.url) == "https://kong:8443/mock/oauth2/authorize"
        assert request.headers["Content-Type"].startswith("application/x-www-form-urlencoded")
        assert kong.authorize_forms == [{
            "client_id": "demo-client",
            "response_type": "code",
            "scope": "email phone address",
            "provision_key": PROVISION_KEY,
            "authenticated_userid": "alice",
        }]

    @pytest.mark.asyncio
    async def test_provider_decline_is_returned_verbatim(self, gateway, kong, consent_request):
        kong.authorize_status = 400
        kong.authorize_body = {"redirect_uri": "http://cb/?error=invalid_scope&error_description=bad"}

        redirect_uri = await gateway.issue_authorization_code(consent_request, "alice")

        assert redirect_uri == "http://cb/?error=invalid_scope&error_description=bad"

    @pytest.mark.asyncio
    async def test_missing_redirect_uri_is_protocol_error(self, gateway, kong, consent_request):
        kong.authorize_status = 400
        kong.authorize_body = {"error": "invalid_provision_key"}

        with pytest.raises(ProtocolError, match="400"):
            await gateway.issue_authorization_code(consent_request, "alice")

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self, gateway, kong, consent_request):
        kong.fail_with = httpx.ReadTimeout("timed out")

        with pytest.raises(TransportError):
            await gateway.issue_authorization_code(consent_request, "alice")

    def test_authorize_url_trims_slashes(self):
        from consent.gateway import GatewayClient

        client = GatewayClient("http://admin/", "https://proxy/", "/api/", "key")
        assert client.authorize_url == "https://proxy/api/oauth2/authorize"

    def test_api_path_without_leading_slash(self):
        from consent.gateway import GatewayClient

        client = GatewayClient("http://admin", "https://kong:8443", "mock", "key")
        assert client.authorize_url == "https://kong:8443/mock/oauth2/authorize"

    @pytest.mark.asyncio
    async def test_api_path_without_leading_slash_reaches_kong(self, kong, consent_request):
        from consent.gateway import GatewayClient

        client = GatewayClient(
            "http://kong-admin:8001", "https://kong:8443", "mock", PROVISION_KEY,
            transport=httpx.MockTransport(kong.handler),
        )
        assert await client.issue_authorization_code(consent_request, "alice") == "http://cb/?code=ABC"

    @pytest.mark.asyncio
    async def test_malformed_proxy_url_is_gateway_error(self, kong, consent_request):
        from consent.gateway import GatewayClient

        client = GatewayClient(
            "http://kong-admin:8001", "https://kong:84x3", "/mock", PROVISION_KEY,
            transport=httpx.MockTransport(kong.handler),
        )
        with pytest.raises(GatewayError, match="Invalid Kong URL"):
            await client.issue_authorization_code(consent_request, "alice")
        assert kong.requests == []
