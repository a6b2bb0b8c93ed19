"""Kong OAuth 2.0 Consent Application.

The consent half of an OAuth 2.0 Authorization Code Grant in front of Kong:
- authenticates the resource owner (/login)
- shows which application asks for which scopes (/consent)
- asks Kong for an authorization code on the owner's behalf (POST /consent)

Kong issues codes and tokens; this service only records consent.

Run with: uvicorn main:app  (or: kong-consent start)
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from config import SERVICE_NAME, VERSION, Settings, load_settings
from consent.authenticator import Authenticator, create_authenticator
from consent.endpoints import router as consent_router
from consent.errors import ConsentFlowError
from consent.flow import ConsentFlowController
from consent.gateway import GatewayClient
from consent.sessions import SessionStore
from logging_config import setup_logging

logger = logging.getLogger(__name__)


async def consent_error_handler(request: Request, exc: ConsentFlowError) -> PlainTextResponse:
    return PlainTextResponse(exc.message, status_code=exc.status_code)


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[GatewayClient] = None,
    authenticator: Optional[Authenticator] = None,
    store: Optional[SessionStore] = None,
) -> FastAPI:
    """Build the application and its service context.

    Collaborators not passed in are built from settings. The context is
    attached to app.state and handed to request handlers from there.
    """
    settings = settings or load_settings()

    for key in settings.missing():
        logger.warning(f"[STARTUP] {key} is not set, consent requests will fail")

    if gateway is None:
        gateway = GatewayClient(
            admin_endpoint=settings.kong_admin_endpoint,
            proxy_endpoint=settings.kong_proxy_endpoint,
            api_path=settings.api_path,
            provision_key=settings.provision_key,
            timeout=settings.provider_timeout_seconds,
            verify_tls=settings.provider_verify_tls,
        )
        if not settings.provider_verify_tls:
            logger.warning("[STARTUP] TLS certificate verification for Kong is disabled")

    if authenticator is None:
        authenticator = create_authenticator(settings.supabase_url, settings.supabase_anon_key)

    if store is None:
        store = SessionStore(ttl_seconds=settings.session_ttl_seconds, sliding=settings.session_sliding)

    app = FastAPI(
        title="Kong OAuth 2.0 Consent",
        description="Consent application for Kong's OAuth 2.0 authorization code flow",
        version=VERSION,
    )
    app.state.settings = settings
    app.state.consent_flow = ConsentFlowController(
        store=store,
        gateway=gateway,
        authenticator=authenticator,
        demo_client_id=settings.demo_client_id,
    )
    app.add_exception_handler(ConsentFlowError, consent_error_handler)
    app.include_router(consent_router)

    logger.info(f"[STARTUP] {SERVICE_NAME} v{VERSION} ready, Kong admin: {settings.kong_admin_endpoint or 'unset'}")
    return app


settings = load_settings()
setup_logging(settings.log_level, settings.log_format)
app = create_app(settings)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
