"""User directory contract and the in-process implementation."""

import threading
from typing import Any, Protocol

from login_facebook.models.auth import LocalUser
from login_facebook.models.errors import ConfigurationError, DuplicateUserError
from login_facebook.utils.logging import get_logger

logger = get_logger(__name__)


class UserDirectory(Protocol):
    """Operations the login flow and installer need from the host's user store."""

    def get(self, user_id: int) -> LocalUser | None: ...

    def get_by_name(self, name: str) -> LocalUser | None: ...

    def find_by_field(self, field: str, value: str) -> LocalUser | None: ...

    def find_by_role(self, role: str) -> list[LocalUser]: ...

    def create(self, name: str, external_id: str | None = None, **field_values: Any) -> LocalUser: ...

    def save(self, user: LocalUser) -> None: ...

    def add_role(self, user: LocalUser, role: str) -> None: ...

    def remove_role(self, user: LocalUser, role: str) -> None: ...

    def get_role(self, role: str) -> set[str] | None: ...

    def create_role(self, role: str, permissions: set[str] | None = None) -> None: ...

    def delete_role(self, role: str) -> None: ...

    def role_permissions(self, role: str) -> set[str]: ...

    def has_field(self, field: str) -> bool: ...

    def add_field(self, field: str) -> None: ...

    def remove_field(self, field: str) -> None: ...


class InMemoryUserDirectory:
    """
    Thread-safe, process-local user store.

    ``create`` enforces uniqueness of user names and of the external identity,
    raising DuplicateUserError on conflict the way a unique index would.
    Users are returned as copies; mutations go through ``save``.
    """

    def __init__(self, identity_field: str = "facebook_id") -> None:
        self.identity_field = identity_field
        self._lock = threading.Lock()
        self._users: dict[int, LocalUser] = {}
        self._roles: dict[str, set[str]] = {}
        self._fields: set[str] = set()
        self._next_id = 1

    def _copy(self, user: LocalUser | None) -> LocalUser | None:
        return user.model_copy(deep=True) if user is not None else None

    def get(self, user_id: int) -> LocalUser | None:
        with self._lock:
            return self._copy(self._users.get(user_id))

    def get_by_name(self, name: str) -> LocalUser | None:
        with self._lock:
            for user in self._users.values():
                if user.name == name:
                    return self._copy(user)
        return None

    def find_by_field(self, field: str, value: str) -> LocalUser | None:
        with self._lock:
            for user in self._users.values():
                current = user.external_id if field == self.identity_field else user.field_values.get(field)
                if current is not None and current == value:
                    return self._copy(user)
        return None

    def find_by_role(self, role: str) -> list[LocalUser]:
        with self._lock:
            return [u.model_copy(deep=True) for u in self._users.values() if role in u.roles]

    def create(self, name: str, external_id: str | None = None, **field_values: Any) -> LocalUser:
        with self._lock:
            for user in self._users.values():
                if user.name == name:
                    raise DuplicateUserError(f"User name '{name}' is taken", {"name": name})
                if external_id is not None and user.external_id == external_id:
                    raise DuplicateUserError(
                        "External identity already linked", {"user_id": user.id}
                    )
            user = LocalUser(
                id=self._next_id, name=name, external_id=external_id, field_values=dict(field_values)
            )
            self._users[user.id] = user
            self._next_id += 1
            logger.debug("directory_user_created", user_id=user.id, name=name)
            return user.model_copy(deep=True)

    def save(self, user: LocalUser) -> None:
        with self._lock:
            if user.id not in self._users:
                raise KeyError(f"Unknown user id {user.id}")
            self._users[user.id] = user.model_copy(deep=True)

    def add_role(self, user: LocalUser, role: str) -> None:
        with self._lock:
            if role not in self._roles:
                raise ConfigurationError(f"Unknown role '{role}'", {"role": role})
            user.roles.add(role)
            if user.id in self._users:
                self._users[user.id].roles.add(role)

    def remove_role(self, user: LocalUser, role: str) -> None:
        with self._lock:
            user.roles.discard(role)
            if user.id in self._users:
                self._users[user.id].roles.discard(role)

    def get_role(self, role: str) -> set[str] | None:
        with self._lock:
            permissions = self._roles.get(role)
            return set(permissions) if permissions is not None else None

    def create_role(self, role: str, permissions: set[str] | None = None) -> None:
        with self._lock:
            self._roles[role] = set(permissions or ())

    def delete_role(self, role: str) -> None:
        with self._lock:
            self._roles.pop(role, None)

    def role_permissions(self, role: str) -> set[str]:
        with self._lock:
            return set(self._roles.get(role, ()))

    def has_field(self, field: str) -> bool:
        with self._lock:
            return field in self._fields

    def add_field(self, field: str) -> None:
        with self._lock:
            self._fields.add(field)

    def remove_field(self, field: str) -> None:
        with self._lock:
            self._fields.discard(field)
            for user in self._users.values():
                user.field_values.pop(field, None)
                if field == self.identity_field:
                    user.external_id = None
