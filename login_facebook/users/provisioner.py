"""Maps a Facebook profile to a local user."""

import json
import re
import unicodedata
from collections.abc import Callable
from typing import Any

from login_facebook.models.auth import ExternalProfile, LocalUser, OAuthConfig, ProvisioningMode, UserNameFormat
from login_facebook.models.errors import AccessDeniedError, ConfigurationError, DuplicateUserError
from login_facebook.users.directory import UserDirectory
from login_facebook.utils.logging import get_logger

logger = get_logger(__name__)

MAX_CREATE_ATTEMPTS = 5

_INVALID_NAME_CHARS = re.compile(r"[^a-z0-9_.-]")


def sanitize_user_name(value: str) -> str:
    """Lowercase ASCII user name: accents folded, spaces and symbols removed."""
    folded = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return _INVALID_NAME_CHARS.sub("", folded.lower()).strip("._-")


def generate_user_name(profile: ExternalProfile, name_format: UserNameFormat) -> str:
    """
    Candidate user name for a new user.

    Missing name parts are skipped. When no part is left, or the parts
    sanitize to nothing, the Facebook ID is used so the result is never empty.
    """
    first, last = profile.first_name, profile.last_name
    if name_format is UserNameFormat.FIRST_LAST:
        parts = [first, last]
    elif name_format is UserNameFormat.LAST_FIRST:
        parts = [last, first]
    elif name_format is UserNameFormat.FIRST_ONLY:
        parts = [first]
    else:
        parts = [last]

    candidate = sanitize_user_name(" ".join(p for p in parts if p))
    return candidate or sanitize_user_name(profile.id) or profile.id


def unique_user_name(base: str, is_taken: Callable[[str], bool]) -> str:
    """Append 1, 2, 3... to ``base`` until ``is_taken`` says the name is free."""
    candidate = base
    n = 0
    while is_taken(candidate):
        n += 1
        candidate = f"{base}{n}"
    return candidate


def _mirror_value(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)):
        return value
    # Graph API returns objects like {"id": ..., "name": "Lisbon, Portugal"} for location fields
    if isinstance(value, dict) and "name" in value:
        return value["name"]
    return json.dumps(value, sort_keys=True)


class UserProvisioner:
    """Find-or-create the local user for a Facebook profile and apply access policy."""

    def __init__(self, config: OAuthConfig, directory: UserDirectory) -> None:
        self.config = config
        self.directory = directory

    def resolve_user(self, profile: ExternalProfile) -> LocalUser:
        """
        Returns the local user for ``profile``.

        Raises:
            ConfigurationError: shared user, role or identity field is missing
            AccessDeniedError: the user exists but may not log in with Facebook
        """
        if self.config.provisioning_mode is ProvisioningMode.SHARED_IDENTITY:
            user = self.directory.get_by_name(self.config.common_user_name or "")
            if user is None:
                logger.error("shared_user_missing", name=self.config.common_user_name)
                raise ConfigurationError(
                    f"Shared user '{self.config.common_user_name}' does not exist"
                )
        else:
            user = self.directory.find_by_field(self.config.identity_field, profile.id)
            if user is None:
                user = self._create_user(profile)
            else:
                logger.info("user_matched", user_id=user.id, facebook_id=profile.id)
            self._mirror_fields(user, profile)

        self._check_access(user)
        return user

    def _create_user(self, profile: ExternalProfile) -> LocalUser:
        if not self.directory.has_field(self.config.identity_field):
            raise ConfigurationError(f"User field '{self.config.identity_field}' is not installed")
        missing = sorted(r for r in self.config.add_roles if self.directory.get_role(r) is None)
        if missing:
            raise ConfigurationError("Roles are not installed", {"roles": missing})

        base = generate_user_name(profile, self.config.user_name_format)
        for _ in range(MAX_CREATE_ATTEMPTS):
            name = unique_user_name(base, lambda n: self.directory.get_by_name(n) is not None)
            try:
                user = self.directory.create(name, external_id=profile.id)
            except DuplicateUserError:
                # Another request may have linked this identity first
                existing = self.directory.find_by_field(self.config.identity_field, profile.id)
                if existing is not None:
                    logger.info("user_create_conflict_resolved", user_id=existing.id)
                    return existing
                continue
            break
        else:
            raise ConfigurationError("Could not allocate a unique user name", {"base": base})

        for role in sorted(self.config.add_roles):
            self.directory.add_role(user, role)
        self.directory.save(user)
        logger.info("user_created", user_id=user.id, name=user.name, roles=sorted(user.roles))
        return user

    def _mirror_fields(self, user: LocalUser, profile: ExternalProfile) -> None:
        changed = []
        for external, local in self.config.field_mirror_map.items():
            value = profile.get(external)
            if value is None:
                continue
            value = _mirror_value(value)
            if user.field_values.get(local) != value:
                user.field_values[local] = value
                changed.append(local)
        if changed:
            self.directory.save(user)
            logger.info("user_fields_mirrored", user_id=user.id, fields=changed)

    def _check_access(self, user: LocalUser) -> None:
        blocked_roles = user.roles & self.config.disallow_roles
        if blocked_roles:
            logger.warning("login_denied_by_role", user_id=user.id, roles=sorted(blocked_roles))
            raise AccessDeniedError("User role does not allow Facebook login", {"roles": sorted(blocked_roles)})

        permissions: set[str] = set()
        for role in user.roles:
            permissions |= self.directory.role_permissions(role)
        blocked_permissions = permissions & self.config.disallow_permissions
        if blocked_permissions:
            logger.warning(
                "login_denied_by_permission", user_id=user.id, permissions=sorted(blocked_permissions)
            )
            raise AccessDeniedError(
                "User permission does not allow Facebook login",
                {"permissions": sorted(blocked_permissions)},
            )
