"""Install, check and remove the directory resources Facebook login relies on."""

from enum import Enum

from login_facebook.models.auth import OAuthConfig
from login_facebook.models.errors import ConfigurationError
from login_facebook.users.directory import UserDirectory
from login_facebook.utils.logging import get_logger

logger = get_logger(__name__)


class InstallMode(int, Enum):
    UNINSTALL = -1
    CHECK = 0
    INSTALL = 1


class Installer:
    """
    Manages the login role and the Facebook ID user field.

    ``install`` refuses to run over existing resources, ``check`` adds
    whatever is missing and is safe to call on every startup, ``uninstall``
    strips the role from users and removes both resources.
    Each call returns the list of actions taken.
    """

    def __init__(self, config: OAuthConfig, directory: UserDirectory) -> None:
        self.role_name = config.role_name
        self.field_name = config.identity_field
        self.directory = directory

    def install(self) -> list[str]:
        return self.execute(InstallMode.INSTALL)

    def check(self) -> list[str]:
        return self.execute(InstallMode.CHECK)

    def uninstall(self) -> list[str]:
        return self.execute(InstallMode.UNINSTALL)

    ensure_resources = check
    remove_resources = uninstall

    def is_installed(self) -> bool:
        return self.directory.get_role(self.role_name) is not None and self.directory.has_field(
            self.field_name
        )

    def execute(self, mode: InstallMode) -> list[str]:
        role_exists = self.directory.get_role(self.role_name) is not None
        field_exists = self.directory.has_field(self.field_name)
        actions: list[str] = []

        if mode is InstallMode.UNINSTALL:
            if role_exists:
                users = self.directory.find_by_role(self.role_name)
                for user in users:
                    self.directory.remove_role(user, self.role_name)
                    self.directory.save(user)
                actions.append(f"Removed role '{self.role_name}' from {len(users)} user(s)")
                self.directory.delete_role(self.role_name)
                actions.append(f"Deleted role - {self.role_name}")
            if field_exists:
                self.directory.remove_field(self.field_name)
                actions.append(f"Deleted field - {self.field_name}")
            logger.info("login_facebook_uninstalled", actions=actions)
            return actions

        if mode is InstallMode.INSTALL:
            if role_exists:
                raise ConfigurationError(f"Failed to install because: Role '{self.role_name}' already exists")
            if field_exists:
                raise ConfigurationError(f"Failed to install because: Field '{self.field_name}' already exists")

        if not role_exists:
            self.directory.create_role(self.role_name)
            actions.append(f"Added role - {self.role_name}")
        if not field_exists:
            self.directory.add_field(self.field_name)
            actions.append(f"Added field to user template - {self.field_name}")

        if actions:
            logger.info("login_facebook_installed", mode=mode.name.lower(), actions=actions)
        return actions
