# fitwork/services/profile_service.py
"""Instructor and studio profiles: drafts, submission, directory queries."""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..lifecycle import PROFILE
from ..models.profile import Profile, ProfileExperience
from ..models.saved import SavedProfile
from ..models.user import User
from . import media_service
from .base import backend_errors, utcnow
from .errors import ValidationError, NotFoundError, PermissionDenied
from .pagination import keyset_page

log = logging.getLogger(__name__)

INSTRUCTOR_FIELDS = (
    "full_name", "headline", "bio", "location", "postal_code", "contact_number",
    "travel_preference", "availability_slots", "certifications", "other_certifications",
    "fitness_styles", "profile_photo", "gallery_images", "open_to_work",
    "open_to_guest_spots", "touring_ready", "guest_spot_rate", "preferred_guest_cities",
    "years_of_experience", "hourly_rate",
)
STUDIO_FIELDS = (
    "name", "tagline", "description", "location", "website", "instagram",
    "styles", "amenities", "images",
)
LIST_FIELDS = {
    "availability_slots", "certifications", "fitness_styles", "gallery_images",
    "preferred_guest_cities", "styles", "amenities", "images",
}

MIN_HEADLINE = 10
MIN_BIO = 60

# Long-form text keeps its own whitespace
UNSTRIPPED_FIELDS = {"bio", "description"}

INSTRUCTOR_SORTS = {
    "recent": (Profile.created_at, lambda p: p.created_at),
    "rating": (func.coalesce(Profile.rating, 0.0), lambda p: p.rating or 0.0),
    "experience": (func.coalesce(Profile.years_of_experience, 0), lambda p: p.years_of_experience or 0),
    "views": (Profile.view_count, lambda p: p.view_count or 0),
}


# -----------------
# Helpers
# -----------------

def _fields_for(profile: Profile):
    return INSTRUCTOR_FIELDS if profile.is_instructor else STUDIO_FIELDS


def _merged(profile: Profile, data: dict, key: str):
    return data[key] if key in data else getattr(profile, key)


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _clean_list(key: str, value) -> list:
    """Drop blank entries; anything but a list is refused."""
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{key} must be a list")
    cleaned = []
    for v in value:
        if isinstance(v, str):
            v = v.strip()
        if v not in (None, ""):
            cleaned.append(v)
    return cleaned


def _clean_experience(value) -> list[dict]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValidationError("experience must be a list")
    entries = []
    for e in value:
        if not isinstance(e, dict):
            raise ValidationError("Each experience entry must be an object")
        title = _text(e.get("title"))
        if title:
            entries.append(dict(e, title=title))
    return entries


def normalize_profile_data(profile: Profile, data) -> dict:
    """Strip text, drop blank list entries and empty experience rows.

    Both validation and persistence read the returned dict.
    """
    if not isinstance(data, dict):
        raise ValidationError("Profile data must be an object")
    out = dict(data)
    for key in _fields_for(profile):
        if key not in out:
            continue
        value = out[key]
        if key in LIST_FIELDS:
            value = _clean_list(key, value)
        elif isinstance(value, str) and key not in UNSTRIPPED_FIELDS:
            value = value.strip()
        out[key] = value
    if "experience" in out:
        out["experience"] = _clean_experience(out["experience"])
    return out


def _experience_entries(profile: Profile, data: dict) -> list:
    if "experience" in data:
        return data["experience"]
    return list(profile.experience)


def validate_instructor_submission(profile: Profile, data: dict) -> None:
    """Required-field checks in fixed order; the first failure wins.

    ``data`` must already have been through ``normalize_profile_data``.
    """
    if not _text(_merged(profile, data, "full_name")):
        raise ValidationError("Full name is required")
    if len(_text(_merged(profile, data, "headline"))) < MIN_HEADLINE:
        raise ValidationError(f"Headline must be at least {MIN_HEADLINE} characters")
    if not _text(_merged(profile, data, "location")):
        raise ValidationError("Location is required")
    if len(_text(_merged(profile, data, "bio"))) < MIN_BIO:
        raise ValidationError(f"Bio must be at least {MIN_BIO} characters")
    if not _experience_entries(profile, data):
        raise ValidationError("Please add at least one work experience")
    if not _merged(profile, data, "availability_slots"):
        raise ValidationError("Please set your availability")
    if not _merged(profile, data, "certifications"):
        raise ValidationError("Please select at least one certification")
    if not _merged(profile, data, "fitness_styles"):
        raise ValidationError("Please select at least one fitness style")


def validate_studio_submission(profile: Profile, data: dict) -> None:
    if not _text(_merged(profile, data, "name")):
        raise ValidationError("Studio name is required")
    if not _text(_merged(profile, data, "location")):
        raise ValidationError("Location is required")


def _upload_images(profile: Profile, data: dict) -> dict:
    """Replace inline image data in ``data`` with stored URLs."""
    out = dict(data)
    uid = profile.user_id
    if profile.is_instructor:
        if "profile_photo" in out:
            out["profile_photo"] = media_service.resolve_image(out["profile_photo"], "instructors", uid, "profile")
        if "gallery_images" in out:
            out["gallery_images"] = media_service.resolve_image_list(out["gallery_images"], "instructors", uid, "gallery")
    elif "images" in out:
        out["images"] = media_service.resolve_image_list(out["images"], "studios", uid, "images")
    return out


def _apply_fields(profile: Profile, data: dict) -> None:
    for key in _fields_for(profile):
        if key in data:
            setattr(profile, key, data[key])

    if profile.is_instructor and "experience" in data:
        profile.experience = [
            ProfileExperience(
                position=i,
                title=e["title"],
                company=e.get("company"),
                period=e.get("period"),
                is_active=bool(e.get("is_active") or e.get("isActive")),
            )
            for i, e in enumerate(data["experience"])
        ]


# -----------------
# Ownership / lookups
# -----------------

def get_profile(profile_id: int) -> Optional[Profile]:
    return db.session.get(Profile, profile_id)


def get_public_profile(profile_id: int) -> Optional[Profile]:
    p = db.session.get(Profile, profile_id)
    return p if p and p.is_public else None


@backend_errors("Failed to create profile")
def ensure_profile(user: User) -> Profile:
    """Return the user's profile, creating an empty draft on first use."""
    if user.profile:
        return user.profile
    if user.role not in ("instructor", "studio"):
        raise PermissionDenied("Only instructors and studios have profiles")
    p = Profile(user_id=user.id, email=user.email, user_type=user.role, status="draft")
    if user.role == "instructor":
        p.full_name = user.display_name
    else:
        p.name = user.display_name
    db.session.add(p)
    db.session.commit()
    log.info("Created draft %s profile for user %s", user.role, user.id)
    return p


def profile_status_summary(user: User) -> dict:
    p = user.profile
    return {
        "has_profile": p is not None,
        "status": p.status if p else None,
        "is_draft": bool(p and p.status == "draft"),
        "is_submitted": bool(p and p.status == "submitted"),
        "is_verified": bool(p and p.status == "verified"),
        "profile_completed": bool(p and p.profile_completed),
    }


# -----------------
# Draft / submit pipeline
# -----------------

@backend_errors("Failed to save profile draft")
def save_draft(user: User, data: dict) -> Profile:
    """Upsert the user's profile as a draft; completeness is not checked."""
    profile = ensure_profile(user)
    next_status = PROFILE.next_state(profile.status, "save_draft")
    data = normalize_profile_data(profile, data)
    data = _upload_images(profile, data)
    _apply_fields(profile, data)
    profile.status = next_status
    profile.saved_at = utcnow()
    db.session.commit()
    log.info("Profile %s saved as draft", profile.id)
    return profile


@backend_errors("Failed to submit profile")
def submit(user: User, data: dict) -> Profile:
    profile = ensure_profile(user)
    next_status = PROFILE.next_state(profile.status, "submit")
    data = normalize_profile_data(profile, data)
    if profile.is_instructor:
        validate_instructor_submission(profile, data)
    else:
        validate_studio_submission(profile, data)

    data = _upload_images(profile, data)
    _apply_fields(profile, data)
    profile.status = next_status
    profile.submitted_at = utcnow()
    profile.profile_completed = True
    db.session.commit()
    log.info("Profile %s submitted for review", profile.id)
    return profile


@backend_errors("Failed to update profile")
def update_profile(profile: Profile, data: dict) -> Profile:
    """Edit fields in place; moderation status is left alone."""
    if profile.status == "archived":
        raise ValidationError("Archived profiles cannot be edited")
    data = normalize_profile_data(profile, data)
    data = _upload_images(profile, data)
    _apply_fields(profile, data)
    db.session.commit()
    return profile


@backend_errors("Failed to archive profile")
def archive_profile(profile: Profile) -> Profile:
    PROFILE.fire(profile, "archive")
    db.session.commit()
    log.info("Profile %s archived", profile.id)
    return profile


@backend_errors("Failed to record profile view")
def increment_view(profile_id: int) -> None:
    db.session.query(Profile).filter(Profile.id == profile_id).update(
        {Profile.view_count: Profile.view_count + 1}, synchronize_session=False
    )
    db.session.commit()


# -----------------
# Directories
# -----------------

def _public(user_type: str):
    return Profile.query.filter(
        Profile.user_type == user_type,
        Profile.status == "verified",
        Profile.profile_completed.is_(True),
    )


def _any_in(values, wanted) -> bool:
    return any(v in wanted for v in (values or []))


def _number(filters: dict, key: str, cast):
    try:
        return cast(filters[key])
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be a number") from None


@backend_errors("Failed to fetch instructors")
def list_instructors(filters: dict | None = None, cursor: str | None = None, limit=None):
    """Verified, completed instructors. Returns ``(profiles, next_cursor)``.

    List-valued filters (styles, certifications) are applied to the fetched
    page, so a filtered page may hold fewer rows than ``limit``.
    """
    f = filters or {}
    q = _public("instructor")
    for flag in ("open_to_work", "open_to_guest_spots", "touring_ready"):
        if f.get(flag) is not None:
            q = q.filter(getattr(Profile, flag).is_(bool(f[flag])))
    if f.get("location"):
        q = q.filter(Profile.location.ilike(f"%{f['location']}%"))
    if f.get("min_rating"):
        q = q.filter(func.coalesce(Profile.rating, 0.0) >= _number(f, "min_rating", float))
    if f.get("min_experience"):
        q = q.filter(func.coalesce(Profile.years_of_experience, 0) >= _number(f, "min_experience", int))

    sort_expr, value_of = INSTRUCTOR_SORTS.get(f.get("sort") or "recent", INSTRUCTOR_SORTS["recent"])
    rows, next_cursor = keyset_page(q, sort_expr, Profile.id, cursor=cursor, limit=limit, value_of=value_of)

    if f.get("styles"):
        rows = [p for p in rows if _any_in(p.fitness_styles, f["styles"])]
    if f.get("certifications"):
        rows = [p for p in rows if _any_in(p.certifications, f["certifications"])]
    return rows, next_cursor


@backend_errors("Failed to fetch studios")
def list_studios(filters: dict | None = None, cursor: str | None = None, limit=None):
    f = filters or {}
    q = _public("studio")
    if f.get("location"):
        q = q.filter(Profile.location.ilike(f"%{f['location']}%"))
    rows, next_cursor = keyset_page(q, Profile.created_at, Profile.id, cursor=cursor, limit=limit,
                                    value_of=lambda p: p.created_at)
    if f.get("styles"):
        rows = [p for p in rows if _any_in(p.styles, f["styles"])]
    return rows, next_cursor


@backend_errors("Failed to search instructors")
def search_instructors(term: str, limit: int = 20) -> list[Profile]:
    needle = (term or "").strip().lower()
    if not needle:
        return []
    candidates = _public("instructor").order_by(Profile.created_at.desc()).limit(100).all()

    def _hit(p: Profile) -> bool:
        return (
            needle in (p.full_name or "").lower()
            or needle in (p.headline or "").lower()
            or any(needle in s.lower() for s in (p.fitness_styles or []))
        )
    return [p for p in candidates if _hit(p)][:limit]


# -----------------
# Saved profiles
# -----------------

@backend_errors("Failed to save profile")
def save_profile(user: User, profile_id: int) -> None:
    if not get_public_profile(profile_id):
        raise NotFoundError("Profile not found")
    if SavedProfile.query.filter_by(user_id=user.id, profile_id=profile_id).first():
        return
    db.session.add(SavedProfile(user_id=user.id, profile_id=profile_id))
    try:
        db.session.commit()
    except IntegrityError:
        # saved concurrently; the row exists either way
        db.session.rollback()


@backend_errors("Failed to unsave profile")
def unsave_profile(user: User, profile_id: int) -> None:
    SavedProfile.query.filter_by(user_id=user.id, profile_id=profile_id).delete()
    db.session.commit()


def is_profile_saved(user: User, profile_id: int) -> bool:
    return SavedProfile.query.filter_by(user_id=user.id, profile_id=profile_id).first() is not None


@backend_errors("Failed to fetch saved profiles")
def saved_profiles(user: User) -> list[Profile]:
    rows = (SavedProfile.query
            .filter_by(user_id=user.id)
            .order_by(SavedProfile.saved_at.desc())
            .all())
    return [r.profile for r in rows if r.profile and r.profile.is_public]
