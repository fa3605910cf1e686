"""Facebook Graph API client for the OAuth2 authorization-code flow."""

import time
from typing import Any

import httpx
from authlib.common.urls import add_params_to_uri
from pydantic import ValidationError

from login_facebook.models.auth import AccessToken, ExternalProfile, OAuthConfig
from login_facebook.models.errors import (
    MalformedResponseError,
    NetworkError,
    ProviderRejectedCodeError,
    ProviderRejectedTokenError,
)
from login_facebook.utils.logging import get_logger, token_fingerprint

logger = get_logger(__name__)

DIALOG_BASE_URL = "https://www.facebook.com"
GRAPH_BASE_URL = "https://graph.facebook.com"


def _provider_error(payload: Any) -> dict[str, Any] | None:
    """Extract the Graph API ``error`` object from a decoded response body."""
    if isinstance(payload, dict) and "error" in payload:
        error = payload["error"]
        if isinstance(error, dict):
            return error
        return {"message": str(error)}
    return None


def _decode_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise MalformedResponseError(
            "Response body is not valid JSON", {"status_code": response.status_code}
        ) from e


class FacebookOAuthClient:
    """
    Performs the provider side of the login: authorization URL, code exchange
    and profile fetch.

    Nothing here retries. Every call is awaited inside the request handling
    it, so cancelling the request cancels the call.
    """

    def __init__(self, config: OAuthConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.config = config
        self._transport = transport
        self.authorize_endpoint = f"{DIALOG_BASE_URL}/{config.graph_version}/dialog/oauth"
        self.token_endpoint = f"{GRAPH_BASE_URL}/{config.graph_version}/oauth/access_token"
        self.profile_endpoint = f"{GRAPH_BASE_URL}/{config.graph_version}/me"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.config.http_timeout, transport=self._transport)

    def build_authorization_url(self, state: str, scopes: set[str] | frozenset[str] | None = None) -> str:
        """Build the Facebook login dialog URL carrying the anti-forgery state."""
        requested = self.config.request_permissions if scopes is None else scopes
        params = [
            ("client_id", self.config.app_id),
            ("redirect_uri", self.config.redirect_uri),
            ("state", state),
            ("response_type", "code"),
        ]
        if requested:
            params.append(("scope", ",".join(sorted(requested))))
        return add_params_to_uri(self.authorize_endpoint, params)

    async def exchange_code(self, code: str) -> AccessToken:
        """
        Exchange an authorization code for an access token.

        Raises:
            ProviderRejectedCodeError: Facebook answered with an error body or status
            NetworkError: the request could not be completed
            MalformedResponseError: the body is not a token response
        """
        start_time = time.monotonic()
        data = {
            "client_id": self.config.app_id,
            "client_secret": self.config.app_secret.get_secret_value(),
            "code": code,
            "redirect_uri": self.config.redirect_uri,
        }
        try:
            async with self._client() as client:
                response = await client.post(self.token_endpoint, data=data)
        except httpx.RequestError as e:
            logger.error("facebook_token_exchange_network_error", error=str(e))
            raise NetworkError(f"Token exchange failed: {e}") from e

        payload = _decode_json(response)
        error = _provider_error(payload)
        if error is not None or response.status_code >= 400:
            error = error or {}
            logger.warning(
                "facebook_token_exchange_rejected",
                status_code=response.status_code,
                error_type=error.get("type"),
                error_code=error.get("code"),
            )
            raise ProviderRejectedCodeError(
                error.get("message", f"Token endpoint returned HTTP {response.status_code}"),
                {"status_code": response.status_code, "error": error},
            )

        try:
            token = AccessToken.model_validate(payload)
        except ValidationError as e:
            logger.warning("facebook_token_exchange_malformed", error_count=e.error_count())
            raise MalformedResponseError("Token response has no usable access_token") from e

        logger.info(
            "facebook_token_exchanged",
            token_hash=token_fingerprint(token.access_token),
            expires_in=token.expires_in,
            duration_ms=round((time.monotonic() - start_time) * 1000, 2),
        )
        return token

    async def fetch_profile(self, token: AccessToken, fields: tuple[str, ...] | None = None) -> ExternalProfile:
        """
        Fetch the ``/me`` profile with exactly the configured field list.

        Raises:
            ProviderRejectedTokenError: the token is expired or invalid
            NetworkError: the request could not be completed
            MalformedResponseError: the body is not a profile object with an id
        """
        requested = fields if fields is not None else self.config.request_fields
        token_hash = token_fingerprint(token.access_token)
        try:
            async with self._client() as client:
                response = await client.get(
                    self.profile_endpoint,
                    params={"fields": ",".join(requested)},
                    headers={"Authorization": f"Bearer {token.access_token}"},
                )
        except httpx.RequestError as e:
            logger.error("facebook_profile_network_error", token_hash=token_hash, error=str(e))
            raise NetworkError(f"Profile fetch failed: {e}") from e

        payload = _decode_json(response)
        error = _provider_error(payload)
        if error is not None or response.status_code >= 400:
            error = error or {}
            logger.warning(
                "facebook_profile_rejected",
                token_hash=token_hash,
                status_code=response.status_code,
                error_code=error.get("code"),
            )
            raise ProviderRejectedTokenError(
                error.get("message", f"Profile endpoint returned HTTP {response.status_code}"),
                {"status_code": response.status_code, "error": error},
            )

        if not isinstance(payload, dict):
            raise MalformedResponseError("Profile response is not a JSON object")
        try:
            profile = ExternalProfile.model_validate(payload)
        except ValidationError as e:
            logger.warning("facebook_profile_malformed", token_hash=token_hash, error_count=e.error_count())
            raise MalformedResponseError("Profile response has no usable id") from e

        logger.info("facebook_profile_fetched", token_hash=token_hash, fields=sorted(payload))
        return profile
