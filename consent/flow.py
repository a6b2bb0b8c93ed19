"""Consent/login state machine.

Session states:
- Anonymous: no attributes
- PendingLogin: anonymous, with a stashed consent request (clientID, responseType, scopes)
- Authenticated: authenticated=True and a userID

Each public method handles one inbound request and returns an Outcome
(Redirect, Render or Text). The HTTP layer only translates outcomes into
responses; it never touches the session itself.

Every transition validates input and finishes its upstream calls before it
writes to the session, so a failed transition leaves the session as it was.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urlencode

from consent import sessions
from consent.authenticator import Authenticator
from consent.errors import (
    AuthenticationError,
    GatewayError,
    UpstreamIssuanceError,
    UpstreamLookupError,
)
from consent.gateway import GatewayClient
from consent.models import (
    DEMO_SCOPES,
    SUPPORTED_RESPONSE_TYPE,
    ConsentRequest,
    ConsentView,
    IndexView,
    LoginView,
)
from consent.sessions import Session, SessionStore

logger = logging.getLogger(__name__)

HOME_PATH = "/"
LOGIN_PATH = "/login"
CONSENT_PATH = "/consent"

REDIRECT_KEEP_METHOD = 307
REDIRECT_SEE_OTHER = 303


@dataclass(frozen=True)
class Redirect:
    url: str
    status_code: int = REDIRECT_KEEP_METHOD


@dataclass(frozen=True)
class Render:
    view: Union[IndexView, LoginView, ConsentView]
    status_code: int = 200


@dataclass(frozen=True)
class Text:
    body: str
    status_code: int = 200


Outcome = Union[Redirect, Render, Text]


@dataclass(frozen=True)
class Result:
    """An outcome plus the session token the response must carry."""

    outcome: Outcome
    session_token: str


class ConsentFlowController:
    def __init__(
        self,
        store: SessionStore,
        gateway: GatewayClient,
        authenticator: Authenticator,
        demo_client_id: str = "",
    ):
        self.store = store
        self.gateway = gateway
        self.authenticator = authenticator
        self.demo_client_id = demo_client_id

    # ============== Home ==============

    def index(self) -> Render:
        """Home page with a consent URI to start the demo flow."""
        consent_uri = CONSENT_PATH + "?" + urlencode({
            "client_id": self.demo_client_id,
            "response_type": SUPPORTED_RESPONSE_TYPE,
            "scopes": DEMO_SCOPES,
        })
        return Render(IndexView(consent_uri=consent_uri))

    # ============== Consent ==============

    async def show_consent(
        self,
        token: Optional[str],
        client_id: Optional[str],
        response_type: Optional[str],
        scopes: Optional[str],
    ) -> Result:
        """GET /consent.

        Unauthenticated: stash the request and send the user to login.
        Authenticated: resolve the application name and render the consent view.
        """
        consent = ConsentRequest.from_params(client_id, response_type, scopes)

        async with self.store.open(token) as session:
            if not session.authenticated:
                self._stash(session, consent)
                logger.info(f"[CONSENT] Login required for client_id {consent.client_id}")
                return Result(Redirect(LOGIN_PATH, REDIRECT_KEEP_METHOD), session.token)

            try:
                application = await self.gateway.resolve_application_name(consent.client_id)
            except GatewayError as e:
                logger.error(f"[CONSENT] Application lookup failed for client_id {consent.client_id}: {e}")
                raise UpstreamLookupError(str(e)) from e

            view = ConsentView(
                application_name=application.application_name,
                client_id=consent.client_id,
                response_type=consent.response_type,
                scopes=list(consent.scopes),
            )
            return Result(Render(view), session.token)

    async def grant_consent(
        self,
        token: Optional[str],
        client_id: Optional[str],
        response_type: Optional[str],
        scopes: Optional[str],
    ) -> Result:
        """POST /consent.

        Relays Kong's redirect_uri unchanged, whether it carries a code or an
        OAuth2 error. Only a failed or undecodable call is an error here.
        """
        consent = ConsentRequest.from_params(client_id, response_type, scopes)

        async with self.store.open(token) as session:
            if not session.authenticated:
                self._stash(session, consent)
                logger.info(f"[CONSENT] Consent posted without login, client_id {consent.client_id}")
                return Result(Redirect(LOGIN_PATH, REDIRECT_SEE_OTHER), session.token)

            user_id = self.store.get(session, sessions.USER_ID)
            try:
                redirect_uri = await self.gateway.issue_authorization_code(consent, user_id)
            except GatewayError as e:
                logger.error(f"[CONSENT] Authorization request failed for client_id {consent.client_id}: {e}")
                raise UpstreamIssuanceError(str(e)) from e

            logger.info(f"[CONSENT] Consent relayed for client_id {consent.client_id}")
            return Result(Text("redirect_uri: " + redirect_uri), session.token)

    # ============== Login ==============

    def show_login(self) -> Render:
        return Render(LoginView())

    async def login(self, token: Optional[str], username: str, password: str) -> Result:
        """POST /login.

        On success the session moves to a new token, the stashed consent
        request is consumed and the user is sent back to the consent page built
        from it, not from anything in this form.
        """
        async with self.store.open(token) as session:
            try:
                user_id = await self.authenticator.authenticate(username, password)
            except AuthenticationError as e:
                logger.info(f"[LOGIN] Authentication failed: {e}")
                return Result(Render(LoginView(error=str(e))), session.token)

            # A token handed out before login never becomes an authenticated one
            session = self.store.rotate(session)
            self.store.set(session, sessions.AUTHENTICATED, True)
            self.store.set(session, sessions.USER_ID, user_id)
            pending = self._consume_stash(session)

            if pending is None:
                logger.info("[LOGIN] Authenticated with no pending consent request")
                return Result(Redirect(HOME_PATH, REDIRECT_SEE_OTHER), session.token)

            logger.info(f"[LOGIN] Authenticated, resuming consent for client_id {pending.client_id}")
            return Result(Redirect(pending.consent_uri(), REDIRECT_SEE_OTHER), session.token)

    # ============== Logout ==============

    async def logout(self, token: Optional[str]) -> Result:
        async with self.store.open(token) as session:
            self.store.clear(session)
            logger.info("[LOGIN] Session cleared")
            return Result(Redirect(HOME_PATH, REDIRECT_KEEP_METHOD), session.token)

    # ============== Session helpers ==============

    def _stash(self, session: Session, consent: ConsentRequest) -> None:
        self.store.set(session, sessions.CLIENT_ID, consent.client_id)
        self.store.set(session, sessions.RESPONSE_TYPE, consent.response_type)
        self.store.set(session, sessions.SCOPES, consent.scope_param)

    def _consume_stash(self, session: Session) -> Optional[ConsentRequest]:
        """Remove the stashed consent request from the session and return it."""
        values = [self.store.pop(session, key) for key in sessions.PENDING_CONSENT_KEYS]
        if not all(values):
            return None
        client_id, response_type, scopes = values
        return ConsentRequest(
            client_id=client_id,
            response_type=response_type,
            scopes=tuple(scopes.split(",")),
        )
