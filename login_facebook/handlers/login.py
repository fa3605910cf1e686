"""Login page handler and rendering of user-visible login failures."""

import html
from uuid import uuid4

import structlog
from fastapi import Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from starlette import status

from login_facebook.auth.orchestrator import LoginOrchestrator
from login_facebook.models.errors import ErrorCode, LoginFailedError
from login_facebook.utils.logging import get_logger

logger = get_logger(__name__)

ERROR_STATUS = {
    ErrorCode.USER_DENIED_CONSENT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.STATE_MISMATCH: status.HTTP_400_BAD_REQUEST,
    ErrorCode.ACCESS_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCode.NETWORK_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.MALFORMED_RESPONSE: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.PROVIDER_REJECTED_CODE: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.PROVIDER_REJECTED_TOKEN: status.HTTP_502_BAD_GATEWAY,
}

ERROR_HTML = '<div class="login-facebook-error"><h2>{why}</h2><p class="error">{message}</p></div>'


async def login_page(request: Request) -> Response:
    """
    GET handler for the login page.

    Without callback parameters this redirects to Facebook. On the callback
    it completes the login and redirects to the configured page, or renders a
    welcome fragment when none is configured.
    """
    orchestrator: LoginOrchestrator = request.app.state.orchestrator
    session = orchestrator.session_for(request.session)

    with structlog.contextvars.bound_contextvars(correlation_id=str(uuid4())):
        outcome = await orchestrator.handle(request.query_params, session)

    if outcome.redirect_url:
        return RedirectResponse(outcome.redirect_url, status_code=status.HTTP_302_FOUND)

    name = ""
    if outcome.profile is not None:
        name = outcome.profile.name or ""
    if not name and outcome.user is not None:
        name = outcome.user.name
    return HTMLResponse(f"<h2>Welcome {html.escape(name)}</h2>")


async def login_failed_handler(request: Request, exc: LoginFailedError) -> HTMLResponse:
    """Render a LoginFailedError as a small HTML fragment; never internal detail."""
    status_code = ERROR_STATUS.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    content = ERROR_HTML.format(why="Facebook Login", message=html.escape(exc.user_message))
    return HTMLResponse(content, status_code=status_code)
