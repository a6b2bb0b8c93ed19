"""Client for the Kong OAuth 2.0 plugin.

Two operations are used by the consent flow:
- resolve_application_name: Kong Admin API, GET /oauth2?client_id=...
- issue_authorization_code: Kong proxy, POST {api_path}/oauth2/authorize

Both are short, bounded calls. Nothing is retried: the authorize call is not
idempotent, and the lookup is cheap to redo on the next page load.
"""

import logging
from typing import Optional

import httpx
from pydantic import BaseModel, ValidationError as SchemaError

from consent.errors import ApplicationNotFound, ProtocolError, TransportError
from consent.models import ClientApplication, ConsentRequest

logger = logging.getLogger(__name__)

USER_AGENT = "kong-oauth2-consent-app"
DEFAULT_TIMEOUT_SECONDS = 2.0


class OAuth2Credential(BaseModel):
    """Partial view of a Kong OAuth 2.0 credential."""

    name: str


class OAuth2Credentials(BaseModel):
    data: list[OAuth2Credential]


class AuthorizeResponse(BaseModel):
    """Partial view of the body returned by Kong's /oauth2/authorize."""

    redirect_uri: str


class GatewayClient:
    """Talks to Kong on behalf of the consent flow.

    Args:
        admin_endpoint: Base URL of the Kong Admin API.
        proxy_endpoint: Base URL of the Kong proxy.
        api_path: Path prefix of the API protected by the OAuth 2.0 plugin.
        provision_key: The plugin's provision key. Never logged.
        timeout: Per-call timeout in seconds.
        verify_tls: Verify the Provider's TLS certificate.
        transport: Optional httpx transport (tests pass an httpx.MockTransport).
    """

    def __init__(
        self,
        admin_endpoint: str,
        proxy_endpoint: str,
        api_path: str,
        provision_key: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        verify_tls: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.admin_endpoint = admin_endpoint.rstrip("/")
        self.proxy_endpoint = proxy_endpoint.rstrip("/")
        api_path = api_path.strip().rstrip("/")
        if api_path and not api_path.startswith("/"):
            api_path = "/" + api_path
        self.api_path = api_path
        self._provision_key = provision_key
        self.timeout = timeout
        self.verify_tls = verify_tls
        self._transport = transport

    @property
    def authorize_url(self) -> str:
        return f"{self.proxy_endpoint}{self.api_path}/oauth2/authorize"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            verify=self.verify_tls,
            headers={"User-Agent": USER_AGENT},
            transport=self._transport,
        )

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            async with self._client() as client:
                return await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"[GATEWAY] Timeout calling {method} {url}")
            raise TransportError(f"Timed out calling Kong at {url}") from e
        except httpx.HTTPError as e:
            logger.warning(f"[GATEWAY] Transport failure calling {method} {url}: {e}")
            raise TransportError(f"Could not reach Kong at {url}: {e}") from e
        except httpx.InvalidURL as e:
            logger.error(f"[GATEWAY] Invalid Kong URL {url}: {e}")
            raise TransportError(f"Invalid Kong URL {url}: {e}") from e

    async def resolve_application_name(self, client_id: str) -> ClientApplication:
        """Look up the application name registered for client_id.

        Raises:
            ApplicationNotFound: no credential matches client_id.
            ProtocolError: the Admin API answered with an unexpected body.
            TransportError: the Admin API could not be reached in time.
        """
        url = f"{self.admin_endpoint}/oauth2"
        response = await self._send("GET", url, params={"client_id": client_id})

        if response.is_error:
            logger.warning(f"[GATEWAY] Admin API returned {response.status_code} for client_id lookup")
            raise ProtocolError(f"Kong Admin API returned HTTP {response.status_code}")

        try:
            creds = OAuth2Credentials.model_validate_json(response.content)
        except SchemaError as e:
            raise ProtocolError(f"Unexpected response from Kong Admin API: {e}") from e

        if not creds.data:
            logger.info(f"[GATEWAY] No OAuth 2.0 application registered for client_id {client_id}")
            raise ApplicationNotFound(f"No application registered for client_id '{client_id}'")

        return ClientApplication(application_name=creds.data[0].name)

    async def issue_authorization_code(self, request: ConsentRequest, user_id: str) -> str:
        """Ask Kong for an authorization code and return its redirect_uri.

        Kong answers 200 with a code or 400 with an OAuth2 error; both carry a
        redirect_uri, which is returned verbatim without being inspected.

        Raises:
            ProtocolError: the body carries no redirect_uri.
            TransportError: the proxy could not be reached in time.
        """
        form = {
            "client_id": request.client_id,
            "response_type": request.response_type,
            "scope": request.provider_scope,
            "provision_key": self._provision_key,
            "authenticated_userid": user_id,
        }
        response = await self._send("POST", self.authorize_url, data=form)

        try:
            body = AuthorizeResponse.model_validate_json(response.content)
        except SchemaError as e:
            logger.warning(f"[GATEWAY] Authorize returned {response.status_code} without a redirect_uri")
            raise ProtocolError(
                f"Unexpected response from Kong authorize endpoint (HTTP {response.status_code})"
            ) from e

        logger.info(f"[GATEWAY] Authorize answered {response.status_code} for client_id {request.client_id}")
        return body.redirect_uri
