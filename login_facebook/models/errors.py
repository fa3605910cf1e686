"""Error handling data models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Standardized error codes."""

    # Provider / transport
    NETWORK_ERROR = "NETWORK_ERROR"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    PROVIDER_REJECTED_CODE = "PROVIDER_REJECTED_CODE"
    PROVIDER_REJECTED_TOKEN = "PROVIDER_REJECTED_TOKEN"

    # Callback verification
    STATE_MISMATCH = "STATE_MISMATCH"
    USER_DENIED_CONSENT = "USER_DENIED_CONSENT"

    # Provisioning
    ACCESS_DENIED = "ACCESS_DENIED"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    DUPLICATE_USER = "DUPLICATE_USER"


# Messages shown to the end user. Internal detail never goes here.
USER_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.NETWORK_ERROR: "Facebook could not be reached. Please try again later.",
    ErrorCode.MALFORMED_RESPONSE: "Facebook returned an unexpected response. Please try again later.",
    ErrorCode.PROVIDER_REJECTED_CODE: "Facebook did not accept the login request. Please try again.",
    ErrorCode.PROVIDER_REJECTED_TOKEN: "Your Facebook session has expired. Please log in again.",
    ErrorCode.STATE_MISMATCH: "The login request could not be verified. Please start again.",
    ErrorCode.USER_DENIED_CONSENT: "Facebook login was cancelled.",
    ErrorCode.ACCESS_DENIED: "You are not permitted to log in with Facebook.",
    ErrorCode.CONFIGURATION_ERROR: "Facebook login is temporarily unavailable.",
    ErrorCode.DUPLICATE_USER: "Facebook login is temporarily unavailable.",
}


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: ErrorCode = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(None, description="Additional error context")


class LoginFacebookError(Exception):
    """Base exception for Facebook login errors."""

    def __init__(self, code: ErrorCode, message: str, details: dict[str, Any] | None = None) -> None:
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)

    def to_detail(self) -> ErrorDetail:
        return ErrorDetail(code=self.code, message=self.message, details=self.details)


class NetworkError(LoginFacebookError):
    """Transport failure talking to the provider."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.NETWORK_ERROR, message, details)


class MalformedResponseError(LoginFacebookError):
    """Provider response could not be parsed into the expected shape."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.MALFORMED_RESPONSE, message, details)


class ProviderRejectedCodeError(LoginFacebookError):
    """Provider refused to exchange the authorization code."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.PROVIDER_REJECTED_CODE, message, details)


class ProviderRejectedTokenError(LoginFacebookError):
    """Provider refused the access token (expired or invalid)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.PROVIDER_REJECTED_TOKEN, message, details)


class StateMismatchError(LoginFacebookError):
    """Callback state does not match the pending anti-forgery token."""

    def __init__(self, message: str = "OAuth state mismatch") -> None:
        super().__init__(ErrorCode.STATE_MISMATCH, message)


class UserDeniedConsentError(LoginFacebookError):
    """User declined the provider's consent dialog."""

    def __init__(self, message: str = "User denied consent", details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.USER_DENIED_CONSENT, message, details)


class AccessDeniedError(LoginFacebookError):
    """Resolved user is not allowed to log in with Facebook."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.ACCESS_DENIED, message, details)


class ConfigurationError(LoginFacebookError):
    """Missing installed resource or invalid configuration."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.CONFIGURATION_ERROR, message, details)


class DuplicateUserError(LoginFacebookError):
    """Unique constraint on the user directory was violated."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.DUPLICATE_USER, message, details)


class LoginFailedError(LoginFacebookError):
    """
    Terminal, user-visible login failure.

    Raised by the login orchestrator when no error page is configured; the
    HTTP layer renders ``user_message`` and never the internal message.
    """

    def __init__(self, code: ErrorCode, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code, message, details)
        self.user_message = USER_MESSAGES[code]
