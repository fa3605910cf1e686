"""Data models for the Facebook login service."""

from login_facebook.models.auth import (
    AccessToken,
    ExternalProfile,
    LocalUser,
    OAuthConfig,
    ProvisioningMode,
    UserNameFormat,
)
from login_facebook.models.errors import ErrorCode, ErrorDetail, LoginFacebookError
from login_facebook.models.health import HealthCheckResponse

__all__ = [
    "AccessToken",
    "ErrorCode",
    "ErrorDetail",
    "ExternalProfile",
    "HealthCheckResponse",
    "LocalUser",
    "LoginFacebookError",
    "OAuthConfig",
    "ProvisioningMode",
    "UserNameFormat",
]
