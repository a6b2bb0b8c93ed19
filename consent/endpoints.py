"""HTTP endpoints for the consent application.

Routes:
- GET  /         home page with a demo consent URI
- GET  /consent  login redirect or consent page
- POST /consent  request an authorization code from Kong
- GET  /login    login form
- POST /login    authenticate and resume the pending consent request
- GET  /logout   clear the session
- GET  /health   liveness check

Handlers translate controller outcomes into responses and attach the session
cookie. State lives in the controller, which is taken from app.state.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response

from config import Settings
from consent.flow import ConsentFlowController, Outcome, Redirect, Render, Result
from consent.templates import render

logger = logging.getLogger(__name__)

router = APIRouter(tags=["consent"])


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_controller(request: Request) -> ConsentFlowController:
    return request.app.state.consent_flow


def session_token(request: Request, settings: Settings = Depends(get_settings)) -> Optional[str]:
    return request.cookies.get(settings.session_cookie_name)


def to_response(outcome: Outcome) -> Response:
    if isinstance(outcome, Redirect):
        return RedirectResponse(url=outcome.url, status_code=outcome.status_code)
    if isinstance(outcome, Render):
        return HTMLResponse(render(outcome.view), status_code=outcome.status_code)
    return PlainTextResponse(outcome.body, status_code=outcome.status_code)


def with_session(result: Result, settings: Settings) -> Response:
    response = to_response(result.outcome)
    response.set_cookie(
        settings.session_cookie_name,
        result.session_token,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    return response


@router.get("/")
async def index(controller: ConsentFlowController = Depends(get_controller)):
    """Home page. Shows the URI a client application would send the user to."""
    return to_response(controller.index())


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    return {"status": "healthy", "service": settings.service_name}


@router.get("/consent")
async def consent_page(
    client_id: Optional[str] = None,
    response_type: Optional[str] = None,
    scopes: Optional[str] = None,
    token: Optional[str] = Depends(session_token),
    controller: ConsentFlowController = Depends(get_controller),
    settings: Settings = Depends(get_settings),
):
    """Show the consent page, or redirect to login if not authenticated."""
    result = await controller.show_consent(token, client_id, response_type, scopes)
    return with_session(result, settings)


@router.post("/consent")
async def consent_submit(
    client_id: Optional[str] = Form(None),
    response_type: Optional[str] = Form(None),
    scopes: Optional[str] = Form(None),
    token: Optional[str] = Depends(session_token),
    controller: ConsentFlowController = Depends(get_controller),
    settings: Settings = Depends(get_settings),
):
    """Handle consent form submission.

    The body is the redirect_uri returned by Kong. A real deployment would
    redirect the user there; the demo prints it.
    """
    result = await controller.grant_consent(token, client_id, response_type, scopes)
    return with_session(result, settings)


@router.get("/login")
async def login_page(controller: ConsentFlowController = Depends(get_controller)):
    return to_response(controller.show_login())


@router.post("/login")
async def login_submit(
    username: str = Form(""),
    password: str = Form(""),
    token: Optional[str] = Depends(session_token),
    controller: ConsentFlowController = Depends(get_controller),
    settings: Settings = Depends(get_settings),
):
    """Handle login form submission."""
    result = await controller.login(token, username, password)
    return with_session(result, settings)


@router.get("/logout")
async def logout(
    token: Optional[str] = Depends(session_token),
    controller: ConsentFlowController = Depends(get_controller),
    settings: Settings = Depends(get_settings),
):
    result = await controller.logout(token)
    return with_session(result, settings)
