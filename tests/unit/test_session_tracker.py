"""Unit tests for the OAuth session tracker."""

import string

from login_facebook.auth.session import MAX_SESSION_VALUE_BYTES, PROFILE_KEY, STATE_KEY, SessionTracker
from login_facebook.models.auth import ExternalProfile, LocalUser


def test_begin_flow_issues_long_random_token():
    session: dict = {}
    tracker = SessionTracker(session)

    first = tracker.begin_flow()
    second = tracker.begin_flow()

    assert first != second
    assert len(first) >= 22  # 22 chars * log2(62) > 128 bits
    assert set(first) <= set(string.ascii_letters + string.digits)
    assert session[STATE_KEY] == second


def test_state_is_single_use():
    tracker = SessionTracker({})
    state = tracker.begin_flow()

    assert tracker.verify_and_consume(state) is True
    assert tracker.verify_and_consume(state) is False


def test_mismatch_discards_pending_state():
    tracker = SessionTracker({})
    state = tracker.begin_flow()

    assert tracker.verify_and_consume("forged") is False
    assert tracker.has_pending_flow is False
    assert tracker.verify_and_consume(state) is False


def test_verify_without_pending_flow_fails():
    tracker = SessionTracker({})
    assert tracker.verify_and_consume("anything") is False
    assert tracker.verify_and_consume(None) is False


def test_new_flow_replaces_previous_token():
    tracker = SessionTracker({})
    old = tracker.begin_flow()
    new = tracker.begin_flow()

    assert tracker.verify_and_consume(old) is False
    # the failed attempt consumed the pending flow as well
    assert tracker.verify_and_consume(new) is False


def test_begin_flow_drops_stale_profile():
    session = {PROFILE_KEY: {"id": "1"}}
    SessionTracker(session).begin_flow()
    assert PROFILE_KEY not in session


def test_login_and_logout_round_trip():
    session: dict = {}
    tracker = SessionTracker(session, profile_fields=["email"])
    tracker.begin_flow()
    profile = ExternalProfile(id="1000", first_name="Ana", email="ana@example.com")

    tracker.login(LocalUser(id=7, name="analee", external_id="1000"), profile)

    assert tracker.logged_in_user_id == 7
    assert tracker.profile == profile
    assert tracker.profile.get("email") == "ana@example.com"
    assert tracker.has_pending_flow is False

    tracker.logout()
    assert tracker.logged_in_user_id is None
    assert tracker.profile is None
    assert session == {}


def test_login_keeps_only_name_and_mirrored_fields():
    session: dict = {}
    tracker = SessionTracker(session, profile_fields=["email"])
    profile = ExternalProfile(
        id="1000",
        name="Ana Lee",
        email="ana@example.com",
        about="x" * 4000,
        friends={"data": [{"id": str(i)} for i in range(100)]},
    )

    tracker.login(LocalUser(id=7, name="analee", external_id="1000"), profile)

    assert session[PROFILE_KEY] == {"id": "1000", "name": "Ana Lee", "email": "ana@example.com"}


def test_oversized_values_are_left_out_but_id_is_kept():
    session: dict = {}
    tracker = SessionTracker(session, profile_fields=["about"])
    profile = ExternalProfile(id="1000", name="A" * (MAX_SESSION_VALUE_BYTES + 1), about="x" * 4000)

    tracker.store_profile(profile)

    assert session[PROFILE_KEY] == {"id": "1000"}
    assert tracker.profile.id == "1000"
