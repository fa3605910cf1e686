from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator


class ProvisioningMode(str, Enum):
    """How Facebook identities map to local users."""

    CREATE_PER_IDENTITY = "create-per-identity"
    SHARED_IDENTITY = "shared-identity"


class UserNameFormat(str, Enum):
    """Name format for newly created users."""

    FIRST_LAST = "first-last"
    LAST_FIRST = "last-first"
    FIRST_ONLY = "first-only"
    LAST_ONLY = "last-only"


class OAuthConfig(BaseModel):
    """Immutable Facebook login settings, built once from the application config."""

    model_config = ConfigDict(frozen=True)

    app_id: str
    app_secret: SecretStr
    redirect_uri: str
    graph_version: str = "v19.0"
    http_timeout: float = 10.0
    request_permissions: frozenset[str] = frozenset({"public_profile"})
    request_fields: tuple[str, ...] = ("id", "name", "first_name", "last_name")
    after_login_url: str | None = None
    error_login_url: str | None = None
    provisioning_mode: ProvisioningMode = ProvisioningMode.CREATE_PER_IDENTITY
    common_user_name: str | None = None
    user_name_format: UserNameFormat = UserNameFormat.FIRST_LAST
    add_roles: frozenset[str] = frozenset()
    disallow_roles: frozenset[str] = frozenset()
    disallow_permissions: frozenset[str] = frozenset()
    field_mirror_map: dict[str, str] = Field(default_factory=dict)
    identity_field: str = "facebook_id"
    role_name: str = "login-facebook"

    @field_validator("request_fields")
    @classmethod
    def _id_first(cls, fields: tuple[str, ...]) -> tuple[str, ...]:
        # Graph API always needs "id"; keep the rest in configured order without repeats
        ordered = ["id"]
        for name in fields:
            if name not in ordered:
                ordered.append(name)
        return tuple(ordered)

    @model_validator(mode="after")
    def _check_policy(self) -> "OAuthConfig":
        if self.provisioning_mode is ProvisioningMode.SHARED_IDENTITY and not self.common_user_name:
            raise ValueError("common_user_name is required in shared-identity mode")
        if self.identity_field in self.field_mirror_map.values():
            raise ValueError(f"field '{self.identity_field}' cannot be a mirror target")
        return self


class AccessToken(BaseModel):
    """Token returned by the authorization-code exchange."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int | None = None


class ExternalProfile(BaseModel):
    """
    Profile returned by the Graph API ``/me`` endpoint.

    Declared attributes are the ones the login flow needs; every other
    requested field is kept as an extra attribute.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    name: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("id")
    @classmethod
    def _id_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("id must not be empty")
        return value

    def get(self, field: str, default: Any = None) -> Any:
        """Value of any requested Facebook field."""
        return self.as_dict().get(field, default)

    def as_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class LocalUser(BaseModel):
    """A user record held by the user directory."""

    id: int
    name: str
    external_id: str | None = None
    roles: set[str] = Field(default_factory=set)
    field_values: dict[str, Any] = Field(default_factory=dict)

    def has_role(self, role: str) -> bool:
        return role in self.roles
