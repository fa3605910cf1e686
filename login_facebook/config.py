"""Configuration management using environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from login_facebook.models.auth import OAuthConfig, ProvisioningMode, UserNameFormat


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_mirror_map(value: str) -> dict[str, str]:
    """Parse ``facebook_field:user_field`` pairs separated by commas."""
    mapping: dict[str, str] = {}
    for pair in _split_csv(value):
        external, sep, local = pair.partition(":")
        if not sep or not external.strip() or not local.strip():
            raise ValueError(f"Invalid field mirror entry '{pair}', expected 'facebook_field:user_field'")
        mapping[external.strip()] = local.strip()
    return mapping


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server Configuration
    server_host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=8080, description="HTTP port", ge=1, le=65535)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    environment: str = Field(default="development", description="Environment name")
    site_url: str = Field(
        default="http://localhost:8080", description="Public base URL used to build the redirect URI"
    )
    login_path: str = Field(default="/login-facebook/", description="Path of the login page")
    session_secret_key: SecretStr = Field(..., description="Secret used to sign session cookies")
    session_https_only: bool = Field(default=False, description="Send the session cookie over HTTPS only")

    # Facebook OAuth
    facebook_app_id: str = Field(..., description="Facebook App ID")
    facebook_app_secret: SecretStr = Field(..., description="Facebook App Secret")
    facebook_graph_version: str = Field(default="v19.0", description="Graph API version")
    facebook_http_timeout: float = Field(
        default=10.0, description="Timeout in seconds for Graph API requests", gt=0
    )
    facebook_request_permissions: str = Field(
        default="public_profile", description="Comma-separated permissions to request"
    )
    facebook_request_fields: str = Field(
        default="id,name,first_name,last_name", description="Comma-separated profile fields to request"
    )

    # Flow control
    facebook_after_login_url: str | None = Field(
        None, description="Where users go after a successful login"
    )
    facebook_error_login_url: str | None = Field(
        None, description="Where users go when login fails"
    )

    # Users, roles and access
    facebook_provisioning_mode: ProvisioningMode = Field(
        default=ProvisioningMode.CREATE_PER_IDENTITY, description="How Facebook users map to local users"
    )
    facebook_common_user_name: str | None = Field(
        None, description="User name shared by all Facebook logins in shared-identity mode"
    )
    facebook_user_name_format: UserNameFormat = Field(
        default=UserNameFormat.FIRST_LAST, description="Name format for newly created users"
    )
    facebook_add_roles: str = Field(default="", description="Comma-separated roles given to new users")
    facebook_disallow_roles: str = Field(
        default="superuser", description="Comma-separated roles that may not log in with Facebook"
    )
    facebook_disallow_permissions: str = Field(
        default="", description="Comma-separated permissions that may not log in with Facebook"
    )
    facebook_field_mirror: str = Field(
        default="", description="Comma-separated 'facebook_field:user_field' pairs to copy on login"
    )

    # Installed resources
    facebook_role_name: str = Field(default="login-facebook", description="Role required for Facebook logins")
    facebook_identity_field: str = Field(
        default="facebook_id", description="User field holding the Facebook ID"
    )

    @property
    def redirect_uri(self) -> str:
        return f"{self.site_url.rstrip('/')}/{self.login_path.lstrip('/')}"

    @property
    def oauth_config(self) -> OAuthConfig:
        """Returns an instance of OAuthConfig for easy access and validation."""
        # The installed login role is always granted to new users
        add_roles = set(_split_csv(self.facebook_add_roles))
        add_roles.add(self.facebook_role_name)

        return OAuthConfig(
            app_id=self.facebook_app_id,
            app_secret=self.facebook_app_secret,
            redirect_uri=self.redirect_uri,
            graph_version=self.facebook_graph_version,
            http_timeout=self.facebook_http_timeout,
            request_permissions=frozenset(_split_csv(self.facebook_request_permissions)),
            request_fields=tuple(_split_csv(self.facebook_request_fields)),
            after_login_url=self.facebook_after_login_url or None,
            error_login_url=self.facebook_error_login_url or None,
            provisioning_mode=self.facebook_provisioning_mode,
            common_user_name=self.facebook_common_user_name or None,
            user_name_format=self.facebook_user_name_format,
            add_roles=frozenset(add_roles),
            disallow_roles=frozenset(_split_csv(self.facebook_disallow_roles)),
            disallow_permissions=frozenset(_split_csv(self.facebook_disallow_permissions)),
            field_mirror_map=_parse_mirror_map(self.facebook_field_mirror),
            identity_field=self.facebook_identity_field,
            role_name=self.facebook_role_name,
        )


@lru_cache
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config()  # type: ignore
