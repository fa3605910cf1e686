"""Drives one request to the login page through the Facebook OAuth flow."""

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from authlib.common.urls import add_params_to_uri

from login_facebook.auth.client import FacebookOAuthClient
from login_facebook.auth.session import SessionTracker
from login_facebook.models.auth import ExternalProfile, LocalUser, OAuthConfig
from login_facebook.models.errors import (
    ConfigurationError,
    LoginFacebookError,
    LoginFailedError,
    StateMismatchError,
    UserDeniedConsentError,
)
from login_facebook.users.directory import UserDirectory
from login_facebook.users.provisioner import UserProvisioner
from login_facebook.utils.logging import get_logger

logger = get_logger(__name__)


class LoginState(str, Enum):
    ANONYMOUS = "anonymous"
    AWAITING_CALLBACK = "awaiting_callback"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@dataclass
class LoginOutcome:
    """Where a request to the login page ended up."""

    state: LoginState
    redirect_url: str | None = None
    user: LocalUser | None = None
    profile: ExternalProfile | None = None
    error: LoginFacebookError | None = None


class LoginOrchestrator:
    """
    Decides, per request, whether to start the flow, complete a callback or
    recognise an existing login.

    The flow spans two requests joined by a browser redirect; everything that
    must survive between them lives in the SessionTracker.
    """

    def __init__(
        self,
        config: OAuthConfig,
        client: FacebookOAuthClient,
        directory: UserDirectory,
        provisioner: UserProvisioner | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.directory = directory
        self.provisioner = provisioner or UserProvisioner(config, directory)

    def session_for(self, session: MutableMapping[str, Any]) -> SessionTracker:
        """Wrap a request session, keeping the mirrored profile fields alongside the name."""
        return SessionTracker(session, profile_fields=self.config.field_mirror_map)

    async def handle(self, params: Mapping[str, str], session: SessionTracker) -> LoginOutcome:
        """
        Process one request to the login page.

        Returns an outcome to turn into a response. When login fails and no
        error page is configured, raises LoginFailedError instead.
        """
        current = self.current_login(session)
        if current is not None:
            return current

        try:
            if "error" in params:
                session.verify_and_consume(None)
                raise UserDeniedConsentError(
                    details={
                        "error": params.get("error"),
                        "error_reason": params.get("error_reason"),
                    }
                )
            if "code" in params or "state" in params:
                return await self._complete(params.get("code"), params.get("state"), session)
            return self._begin(session)
        except LoginFacebookError as e:
            return self._fail(e)

    def current_login(self, session: SessionTracker) -> LoginOutcome | None:
        """Outcome for a session already logged in through this flow, without contacting Facebook."""
        user_id = session.logged_in_user_id
        if user_id is None:
            return None
        user = self.directory.get(user_id)
        profile = session.profile
        linked = user is not None and profile is not None and (
            user.external_id == profile.id or user.name == self.config.common_user_name
        )
        if not linked:
            logger.info("stale_login_session_cleared", user_id=user_id)
            session.logout()
            return None
        return LoginOutcome(LoginState.AUTHENTICATED, user=user, profile=profile)

    def _begin(self, session: SessionTracker) -> LoginOutcome:
        state = session.begin_flow()
        url = self.client.build_authorization_url(state)
        logger.info("login_flow_started")
        return LoginOutcome(LoginState.AWAITING_CALLBACK, redirect_url=url)

    async def _complete(self, code: str | None, state: str | None, session: SessionTracker) -> LoginOutcome:
        if not session.verify_and_consume(state) or not code:
            raise StateMismatchError()

        token = await self.client.exchange_code(code)
        profile = await self.client.fetch_profile(token)
        user = self.provisioner.resolve_user(profile)

        session.login(user, profile)
        logger.info("login_succeeded", user_id=user.id, facebook_id=profile.id)
        return LoginOutcome(
            LoginState.AUTHENTICATED,
            redirect_url=self.config.after_login_url,
            user=user,
            profile=profile,
        )

    def _fail(self, error: LoginFacebookError) -> LoginOutcome:
        if isinstance(error, ConfigurationError):
            logger.error("login_configuration_error", error=error.message, details=error.details)
        else:
            logger.warning("login_failed", error_code=error.code.value, error=error.message)

        if self.config.error_login_url:
            url = add_params_to_uri(self.config.error_login_url, [("error", error.code.value.lower())])
            return LoginOutcome(LoginState.FAILED, redirect_url=url, error=error)
        raise LoginFailedError(error.code, error.message, error.details) from error
