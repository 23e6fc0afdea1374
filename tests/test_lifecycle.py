import pytest

from fitwork.lifecycle import (
    APPLICATION,
    APPLICATION_EVENT_FOR_STATUS,
    GUEST_SPOT,
    INITIAL_APPLICATION_STATUS,
    JOB,
    PROFILE,
    application_event_allowed_for,
)
from fitwork.services.errors import InvalidTransition


def test_initial_application_status_by_type():
    assert INITIAL_APPLICATION_STATUS["apply"] == "pending"
    assert INITIAL_APPLICATION_STATUS["invite"] == "invited"


@pytest.mark.parametrize("terminal", ["accepted", "rejected", "withdrawn"])
def test_terminal_application_states_have_no_exits(terminal):
    assert APPLICATION.is_terminal(terminal)
    assert APPLICATION.allowed_events(terminal) == []
    for event in APPLICATION_EVENT_FOR_STATUS.values():
        with pytest.raises(InvalidTransition):
            APPLICATION.next_state(terminal, event)


def test_close_is_idempotent_and_final():
    assert JOB.next_state("open", "close") == "closed"
    assert JOB.next_state("closed", "close") == "closed"
    assert not JOB.can("closed", "open")


def test_guest_spot_cannot_be_filled_after_cancel():
    assert GUEST_SPOT.next_state("open", "cancel") == "cancelled"
    with pytest.raises(InvalidTransition) as exc:
        GUEST_SPOT.next_state("cancelled", "fill")
    assert exc.value.status_code == 409
    assert "cancelled" in exc.value.message


def test_profile_moderation_requires_submission():
    assert PROFILE.next_state("submitted", "verify") == "verified"
    with pytest.raises(InvalidTransition):
        PROFILE.next_state("draft", "verify")
    with pytest.raises(InvalidTransition):
        PROFILE.next_state("verified", "reject")


def test_fire_updates_status():
    class Obj:
        status = "pending"

    o = Obj()
    assert APPLICATION.fire(o, "shortlist") == "shortlisted"
    assert o.status == "shortlisted"


def test_accept_is_split_by_side():
    assert application_event_allowed_for("studio", "pending", "accept")
    assert not application_event_allowed_for("applicant", "pending", "accept")
    assert application_event_allowed_for("applicant", "invited", "accept")
    assert not application_event_allowed_for("studio", "invited", "accept")
    assert not application_event_allowed_for("applicant", "pending", "shortlist")
    assert application_event_allowed_for("applicant", "offered", "withdraw")
