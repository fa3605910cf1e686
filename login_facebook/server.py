"""
Facebook login ASGI application.

Serves the login page (which both starts the OAuth flow and receives the
Facebook callback) and a health endpoint.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from login_facebook import __version__
from login_facebook.auth.client import FacebookOAuthClient
from login_facebook.auth.orchestrator import LoginOrchestrator
from login_facebook.config import Config, get_config
from login_facebook.handlers.health import health_check
from login_facebook.handlers.login import login_failed_handler, login_page
from login_facebook.middleware.security import SecurityHeadersMiddleware
from login_facebook.models.errors import LoginFailedError
from login_facebook.users.directory import InMemoryUserDirectory, UserDirectory
from login_facebook.users.installer import Installer
from login_facebook.utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan (startup and shutdown)."""
    logger.info("Starting Facebook login server", version=__version__)
    config: Config = app.state.config
    logger.info(
        "Configuration loaded",
        environment=config.environment,
        log_level=config.log_level,
        login_path=config.login_path,
        provisioning_mode=config.facebook_provisioning_mode.value,
    )

    installer: Installer = app.state.installer
    actions = installer.check()
    logger.info("Installation checked", actions=actions)
    yield
    logger.info("Shutting down Facebook login server")


def create_app(
    config: Config | None = None,
    directory: UserDirectory | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """
    Build the application.

    ``directory`` defaults to an in-process store; ``transport`` is handed to
    the Graph API client (tests pass an ``httpx.MockTransport``).
    """
    config = config or get_config()
    oauth_config = config.oauth_config
    directory = directory or InMemoryUserDirectory(identity_field=oauth_config.identity_field)

    app = FastAPI(
        title="Facebook Login",
        description="Login with Facebook and provision local users.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.directory = directory
    app.state.installer = Installer(oauth_config, directory)
    app.state.orchestrator = LoginOrchestrator(
        oauth_config, FacebookOAuthClient(oauth_config, transport=transport), directory
    )

    app.add_api_route(config.login_path, login_page, methods=["GET"], include_in_schema=False)
    logger.info("Mounted login page", path=config.login_path)
    app.add_exception_handler(LoginFailedError, login_failed_handler)

    @app.get("/health")
    async def health(request: Request) -> JSONResponse:
        """Health check endpoint."""
        return await health_check(request.app.state.installer, request.app.state.directory)

    app.add_middleware(SecurityHeadersMiddleware, no_store_paths=[config.login_path])
    app.add_middleware(
        SessionMiddleware,
        secret_key=config.session_secret_key.get_secret_value(),
        session_cookie="login_facebook_session",
        same_site="lax",
        https_only=config.session_https_only,
    )

    return app
