import base64
from pathlib import Path

import pytest

from fitwork.services import moderation_service, profile_service
from fitwork.services.errors import InvalidTransition, ValidationError

from conftest import COMPLETE_INSTRUCTOR, make_admin, make_instructor, make_studio, make_user

PNG = "data:image/png;base64," + base64.b64encode(b"\x89PNG\r\n\x1a\nnot-really-a-png").decode()


def _payload(**overrides):
    data = dict(COMPLETE_INSTRUCTOR)
    data.update(overrides)
    return data


@pytest.mark.parametrize("overrides, message", [
    ({"full_name": "  "}, "Full name is required"),
    ({"headline": "Too short"}, "Headline must be at least 10 characters"),
    ({"location": ""}, "Location is required"),
    ({"bio": "x" * 59}, "Bio must be at least 60 characters"),
    ({"experience": []}, "Please add at least one work experience"),
    ({"availability_slots": []}, "Please set your availability"),
    ({"certifications": []}, "Please select at least one certification"),
    ({"fitness_styles": []}, "Please select at least one fitness style"),
])
def test_submit_rejects_incomplete_instructor(ctx, overrides, message):
    user = make_user("instructor")
    with pytest.raises(ValidationError) as exc:
        profile_service.submit(user, _payload(**overrides))
    assert exc.value.message == message
    assert user.profile.status == "draft"
    assert not user.profile.profile_completed


def test_first_failing_check_wins(ctx):
    user = make_user("instructor")
    with pytest.raises(ValidationError) as exc:
        profile_service.submit(user, _payload(headline="short", bio="also short"))
    assert exc.value.message == "Headline must be at least 10 characters"


@pytest.mark.parametrize("field, message", [
    ("availability_slots", "Please set your availability"),
    ("certifications", "Please select at least one certification"),
    ("fitness_styles", "Please select at least one fitness style"),
])
@pytest.mark.parametrize("blanks", [[""], [None], ["  ", None, ""]])
def test_blank_list_entries_do_not_count(ctx, field, message, blanks):
    user = make_user("instructor")
    with pytest.raises(ValidationError) as exc:
        profile_service.submit(user, _payload(**{field: blanks}))
    assert exc.value.message == message
    assert not user.profile.profile_completed


def test_blank_entries_are_dropped_before_storing(ctx):
    user = make_user("instructor")
    p = profile_service.submit(user, _payload(fitness_styles=[" yoga ", "", None],
                                              experience=[{"title": "  "}, {"title": " Coach "}]))
    assert p.fitness_styles == ["yoga"]
    assert [e.title for e in p.experience] == ["Coach"]


def test_headline_length_ignores_surrounding_whitespace(ctx):
    user = make_user("instructor")
    with pytest.raises(ValidationError) as exc:
        profile_service.submit(user, _payload(headline="         a"))
    assert exc.value.message == "Headline must be at least 10 characters"

    p = profile_service.submit(user, _payload(headline="  Mobility coach  "))
    assert p.headline == "Mobility coach"


@pytest.mark.parametrize("overrides, message", [
    ({"headline": 1234567890123}, "Headline must be at least 10 characters"),
    ({"experience": ["Lead instructor"]}, "Each experience entry must be an object"),
    ({"experience": "Lead instructor"}, "experience must be a list"),
    ({"certifications": "RYT-200"}, "certifications must be a list"),
])
def test_malformed_submission_is_a_validation_error(ctx, overrides, message):
    user = make_user("instructor")
    with pytest.raises(ValidationError) as exc:
        profile_service.submit(user, _payload(**overrides))
    assert exc.value.message == message


def test_bio_of_sixty_characters_passes(ctx):
    user = make_user("instructor")
    p = profile_service.submit(user, _payload(bio="x" * 60))
    assert p.status == "submitted"
    assert p.profile_completed is True
    assert p.submitted_at is not None
    assert [e.title for e in p.experience] == ["Lead instructor"]


def test_resubmission_overwrites_fields_and_timestamp(ctx):
    user = make_user("instructor")
    first = profile_service.submit(user, _payload()).submitted_at
    p = profile_service.submit(user, _payload(headline="Strength and conditioning lead"))
    assert p.status == "submitted"
    assert p.headline == "Strength and conditioning lead"
    assert p.submitted_at >= first


def test_save_draft_round_trip(ctx):
    user = make_user("instructor")
    profile_service.save_draft(user, {"full_name": "Sam", "headline": "Hi", "fitness_styles": ["hiit"]})

    p = profile_service.get_profile(user.profile.id)
    assert p.status == "draft"
    assert p.full_name == "Sam"
    assert p.headline == "Hi"
    assert p.fitness_styles == ["hiit"]
    assert p.saved_at is not None
    assert not p.profile_completed


def test_inline_images_are_stored_before_persisting(ctx):
    user = make_user("instructor")
    p = profile_service.submit(user, _payload(profile_photo=PNG, gallery_images=[PNG, "not-a-url", ""]))

    assert p.profile_photo.startswith("/media/fitwork/instructors/")
    assert len(p.gallery_images) == 1
    stored = Path(ctx.config["UPLOAD_FOLDER"]) / p.profile_photo[len("/media/"):]
    assert stored.exists()


def test_studio_submission_needs_name_and_location(ctx):
    user = make_user("studio")
    with pytest.raises(ValidationError) as exc:
        profile_service.submit(user, {"name": "Core Lab", "location": " "})
    assert exc.value.message == "Location is required"

    p = profile_service.submit(user, {"name": "Core Lab", "location": "Oslo", "styles": ["pilates"]})
    assert p.status == "submitted"
    assert p.profile_completed


def test_archived_profile_cannot_be_resubmitted(ctx):
    user = make_user("instructor")
    p = profile_service.ensure_profile(user)
    profile_service.archive_profile(p)
    with pytest.raises(InvalidTransition):
        profile_service.submit(user, _payload())


def test_save_draft_takes_a_verified_profile_back_to_draft(ctx):
    user = make_user("instructor")
    p = profile_service.submit(user, _payload())
    moderation_service.verify(p.id, make_admin())
    assert [r.id for r in profile_service.list_instructors({})[0]] == [p.id]

    p = profile_service.save_draft(user, {"headline": "Reformer pilates specialist"})
    assert p.status == "draft"
    assert p.headline == "Reformer pilates specialist"
    assert profile_service.list_instructors({})[0] == []


def test_archived_profile_cannot_be_saved_as_draft(ctx):
    user = make_user("instructor")
    profile_service.archive_profile(profile_service.ensure_profile(user))
    with pytest.raises(InvalidTransition):
        profile_service.save_draft(user, {"full_name": "Sam"})


def test_status_summary(ctx):
    user = make_user("instructor")
    assert profile_service.profile_status_summary(user)["has_profile"] is False
    profile_service.save_draft(user, {})
    summary = profile_service.profile_status_summary(user)
    assert summary["has_profile"] and summary["is_draft"]
    assert not summary["is_submitted"]


def test_directory_lists_only_verified_completed_instructors(ctx):
    public = make_instructor(years_of_experience=8)
    make_instructor(status="submitted")
    make_instructor(status="verified", completed=False)

    rows, cursor = profile_service.list_instructors({})
    assert [p.id for p in rows] == [public.id]
    assert cursor is None


def test_directory_filters_and_paging(ctx):
    ids = [make_instructor(fitness_styles=["yoga"] if i % 2 else ["boxing"]).id for i in range(5)]

    rows, _ = profile_service.list_instructors({"styles": ["boxing"]})
    assert {p.id for p in rows} == {ids[0], ids[2], ids[4]}

    first, cursor = profile_service.list_instructors({}, limit=2)
    assert len(first) == 2 and cursor
    second, _ = profile_service.list_instructors({}, cursor=cursor, limit=2)
    assert not {p.id for p in first} & {p.id for p in second}


def test_search_and_view_count(ctx):
    p = make_instructor(full_name="Robin Kettlebell")
    make_studio()
    assert [r.id for r in profile_service.search_instructors("kettle")] == [p.id]

    profile_service.increment_view(p.id)
    profile_service.increment_view(p.id)
    assert profile_service.get_profile(p.id).view_count == 2


@pytest.mark.parametrize("filters", [{"min_rating": "high"}, {"min_experience": "lots"}])
def test_non_numeric_directory_filters_are_rejected(ctx, filters):
    with pytest.raises(ValidationError) as exc:
        profile_service.list_instructors(filters)
    assert "must be a number" in exc.value.message
