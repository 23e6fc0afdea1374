import pytest

from fitwork.services import guest_spot_service as gs
from fitwork.services.errors import DuplicateError, InvalidTransition, PermissionDenied

from conftest import make_instructor, make_studio

SPOT = {"title": "Summer guest coach", "style": "pilates", "start_date": "2026-07-01",
        "end_date": "2026-07-14", "travel_covered": True, "location": "Bergen"}


@pytest.fixture
def studio(ctx):
    return make_studio()


@pytest.fixture
def spot(studio):
    return gs.create_guest_spot(studio, SPOT)


def test_create_and_filter(studio, spot):
    assert spot.status == "open"
    assert spot.travel_covered is True
    rows, _ = gs.list_guest_spots({"styles": ["pilates"], "travel_covered": True})
    assert [s.id for s in rows] == [spot.id]
    rows, _ = gs.list_guest_spots({"styles": ["boxing"]})
    assert rows == []


def test_apply_with_proposed_rate(spot):
    app = gs.apply_to_guest_spot(spot, make_instructor(), "Hi", proposed_rate="900 SEK/day")
    assert app.status == "pending"
    assert app.proposed_rate == "900 SEK/day"
    assert spot.applicant_count == 1


def test_invite_after_apply_is_duplicate(studio, spot):
    instructor = make_instructor()
    gs.apply_to_guest_spot(spot, instructor)
    with pytest.raises(DuplicateError):
        gs.invite_to_guest_spot(spot, studio, instructor)


def test_fill_then_cancel_is_refused(studio, spot):
    gs.fill_guest_spot(spot, studio)
    gs.fill_guest_spot(spot, studio)
    assert spot.status == "filled"
    with pytest.raises(InvalidTransition):
        gs.cancel_guest_spot(spot, studio)


def test_invited_instructor_accepts(studio, spot):
    instructor = make_instructor()
    app = gs.invite_to_guest_spot(spot, studio, instructor, "Come teach with us")
    assert app.status == "invited"
    with pytest.raises(PermissionDenied):
        gs.update_application_status(app, studio, "accepted")
    gs.update_application_status(app, instructor, "accepted")
    assert app.status == "accepted"


def test_stats(studio, spot):
    gs.apply_to_guest_spot(spot, make_instructor())
    stats = gs.studio_stats(studio)
    assert stats == {
        "total_guest_spots": 1,
        "open_guest_spots": 1,
        "filled_guest_spots": 0,
        "total_applications": 1,
        "pending_applications": 1,
    }
