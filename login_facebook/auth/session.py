"""Per-session OAuth state kept between the redirect and the callback."""

import hmac
import json
from collections.abc import Iterable, MutableMapping
from typing import Any

from authlib.common.security import generate_token

from login_facebook.models.auth import ExternalProfile, LocalUser

STATE_KEY = "login_facebook.state"
PROFILE_KEY = "login_facebook.profile"
USER_KEY = "login_facebook.user_id"

# 43 characters from a 62 symbol alphabet, a little over 256 bits
STATE_TOKEN_LENGTH = 43

# Browsers drop cookies over about 4 KB, signature and encoding included
MAX_SESSION_VALUE_BYTES = 256
PROFILE_SESSION_FIELDS = ("id", "name", "first_name", "last_name")


class SessionTracker:
    """
    Wraps the request session (``request.session`` under Starlette's
    SessionMiddleware) with the operations the login flow needs.

    Only one flow can be pending per session. The access token never goes in
    here; the session cookie is signed, not encrypted.

    Only the name fields plus ``profile_fields`` of a profile are kept, and
    any value over MAX_SESSION_VALUE_BYTES once JSON encoded is left out.
    """

    def __init__(self, session: MutableMapping[str, Any], profile_fields: Iterable[str] = ()) -> None:
        self._session = session
        self._profile_fields = tuple(dict.fromkeys((*PROFILE_SESSION_FIELDS, *profile_fields)))

    def begin_flow(self) -> str:
        """Issue a fresh anti-forgery token, replacing any pending one."""
        state = generate_token(STATE_TOKEN_LENGTH)
        self._session[STATE_KEY] = state
        self._session.pop(PROFILE_KEY, None)
        return state

    @property
    def has_pending_flow(self) -> bool:
        return STATE_KEY in self._session

    def verify_and_consume(self, received_state: str | None) -> bool:
        """
        Compare ``received_state`` with the pending token in constant time.

        The pending token is discarded on every call so a callback can never
        be replayed, whether or not it matched.
        """
        expected = self._session.pop(STATE_KEY, None)
        if not expected or not received_state:
            return False
        return hmac.compare_digest(expected.encode(), received_state.encode())

    def store_profile(self, profile: ExternalProfile) -> None:
        data = profile.as_dict()
        kept = {"id": profile.id}
        for field in self._profile_fields:
            if field == "id" or field not in data:
                continue
            if len(json.dumps(data[field]).encode()) > MAX_SESSION_VALUE_BYTES:
                continue
            kept[field] = data[field]
        self._session[PROFILE_KEY] = kept

    @property
    def profile(self) -> ExternalProfile | None:
        data = self._session.get(PROFILE_KEY)
        if not data:
            return None
        return ExternalProfile.model_validate(data)

    def login(self, user: LocalUser, profile: ExternalProfile) -> None:
        self._session.pop(STATE_KEY, None)
        self._session[USER_KEY] = user.id
        self.store_profile(profile)

    @property
    def logged_in_user_id(self) -> int | None:
        return self._session.get(USER_KEY)

    def logout(self) -> None:
        for key in (STATE_KEY, PROFILE_KEY, USER_KEY):
            self._session.pop(key, None)
