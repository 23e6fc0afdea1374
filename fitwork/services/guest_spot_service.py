# fitwork/services/guest_spot_service.py
"""Guest spots: short engagements a studio offers to travelling instructors."""
from __future__ import annotations

import logging
from typing import Optional

from ..extensions import db
from ..lifecycle import GUEST_SPOT
from ..models.application import GuestSpotApplication
from ..models.posting import GuestSpot
from ..models.profile import Profile
from . import applications
from .base import backend_errors
from .errors import ConflictError, NotFoundError, PermissionDenied, ValidationError
from .job_service import _parse_date
from .pagination import keyset_page

log = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title", "description", "style", "start_date", "end_date", "compensation",
    "travel_covered", "accommodation_provided", "location", "is_urgent",
)
BOOL_FIELDS = {"travel_covered", "accommodation_provided", "is_urgent"}


def _apply_fields(spot: GuestSpot, data: dict) -> None:
    for key in EDITABLE_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if key in ("start_date", "end_date"):
            value = _parse_date(value)
        elif key in BOOL_FIELDS:
            value = bool(value)
        setattr(spot, key, value)
    if not (spot.title or "").strip():
        raise ValidationError("Title is required")
    if spot.start_date and spot.end_date and spot.end_date < spot.start_date:
        raise ValidationError("End date cannot be before start date")


def _require_owner(spot: GuestSpot, studio: Profile) -> None:
    if studio is None or spot.studio_id != studio.id:
        raise PermissionDenied("You can only manage your own guest spots")


def get_guest_spot(spot_id: int) -> Optional[GuestSpot]:
    return db.session.get(GuestSpot, spot_id)


def get_guest_spot_or_404(spot_id: int) -> GuestSpot:
    spot = db.session.get(GuestSpot, spot_id)
    if not spot:
        raise NotFoundError("Guest spot not found")
    return spot


@backend_errors("Failed to create guest spot")
def create_guest_spot(studio: Profile, data: dict) -> GuestSpot:
    if not studio or not studio.is_studio:
        raise PermissionDenied("Only studios can post guest spots")
    if not studio.profile_completed:
        raise ValidationError("Please complete your studio profile before posting guest spots")

    spot = GuestSpot(studio_id=studio.id, status="open", applicant_count=0)
    _apply_fields(spot, data)
    db.session.add(spot)
    db.session.commit()
    log.info("Guest spot %s created by studio %s", spot.id, studio.id)
    return spot


@backend_errors("Failed to fetch guest spots")
def list_guest_spots(filters: dict | None = None, cursor: str | None = None, limit=None,
                     viewer_profile: Optional[Profile] = None):
    f = filters or {}
    status = f.get("status") or "open"
    studio_id = f.get("studio_id")
    if status != "open":
        if viewer_profile is None or not studio_id or int(studio_id) != viewer_profile.id:
            raise PermissionDenied("Only the owning studio can list guest spots that are not open")

    q = GuestSpot.query
    if status != "all":
        q = q.filter(GuestSpot.status == status)
    if studio_id:
        q = q.filter(GuestSpot.studio_id == int(studio_id))
    if f.get("location"):
        q = q.filter(GuestSpot.location.ilike(f"%{f['location']}%"))
    if f.get("styles"):
        q = q.filter(GuestSpot.style.in_(list(f["styles"])))
    if f.get("travel_covered"):
        q = q.filter(GuestSpot.travel_covered.is_(True))
    if f.get("accommodation_provided"):
        q = q.filter(GuestSpot.accommodation_provided.is_(True))
    if f.get("urgent"):
        q = q.filter(GuestSpot.is_urgent.is_(True))

    return keyset_page(
        q, GuestSpot.created_at, GuestSpot.id, cursor=cursor, limit=limit,
        descending=(f.get("sort") != "oldest"), value_of=lambda s: s.created_at,
    )


@backend_errors("Failed to update guest spot")
def update_guest_spot(spot: GuestSpot, studio: Profile, data: dict) -> GuestSpot:
    _require_owner(spot, studio)
    _apply_fields(spot, data)
    db.session.commit()
    return spot


@backend_errors("Failed to fill guest spot")
def fill_guest_spot(spot: GuestSpot, studio: Profile) -> GuestSpot:
    _require_owner(spot, studio)
    GUEST_SPOT.fire(spot, "fill")
    db.session.commit()
    log.info("Guest spot %s filled", spot.id)
    return spot


@backend_errors("Failed to cancel guest spot")
def cancel_guest_spot(spot: GuestSpot, studio: Profile) -> GuestSpot:
    _require_owner(spot, studio)
    GUEST_SPOT.fire(spot, "cancel")
    db.session.commit()
    log.info("Guest spot %s cancelled", spot.id)
    return spot


@backend_errors("Failed to delete guest spot")
def delete_guest_spot(spot: GuestSpot, studio: Profile) -> None:
    _require_owner(spot, studio)
    if GuestSpotApplication.query.filter_by(guest_spot_id=spot.id).first():
        raise ConflictError("Guest spots with applications cannot be deleted; cancel it instead")
    db.session.delete(spot)
    db.session.commit()


@backend_errors("Failed to fetch studio guest spots")
def studio_guest_spots(studio: Profile) -> list[GuestSpot]:
    return (GuestSpot.query
            .filter_by(studio_id=studio.id)
            .order_by(GuestSpot.created_at.desc())
            .all())


# ---- applications ----

@backend_errors("Failed to apply to guest spot")
def apply_to_guest_spot(spot: GuestSpot, applicant: Profile, message: Optional[str] = None,
                        proposed_rate: Optional[str] = None) -> GuestSpotApplication:
    return applications.apply(spot, applicant, message, proposed_rate=proposed_rate)


@backend_errors("Failed to send invitation")
def invite_to_guest_spot(spot: GuestSpot, studio: Profile, instructor: Profile,
                         message: Optional[str] = None) -> GuestSpotApplication:
    return applications.invite(spot, studio, instructor, message)


def application_status(spot: GuestSpot, applicant_id: int) -> dict:
    return applications.status_for(spot, applicant_id)


def get_application_or_404(application_id: int) -> GuestSpotApplication:
    app = db.session.get(GuestSpotApplication, application_id)
    if not app:
        raise NotFoundError("Application not found")
    return app


@backend_errors("Failed to fetch guest spot applications")
def guest_spot_applications(spot: GuestSpot, studio: Profile) -> list[GuestSpotApplication]:
    _require_owner(spot, studio)
    return applications.for_posting(spot)


@backend_errors("Failed to fetch guest spot applications")
def instructor_applications(applicant: Profile) -> list[GuestSpotApplication]:
    return applications.for_applicant(GuestSpotApplication, applicant)


@backend_errors("Failed to update application")
def update_application_status(application: GuestSpotApplication, actor: Profile,
                              new_status: str) -> GuestSpotApplication:
    return applications.set_status(application, actor, new_status)


@backend_errors("Failed to withdraw application")
def withdraw_application(application: GuestSpotApplication, applicant: Profile) -> GuestSpotApplication:
    return applications.fire(application, applicant, "withdraw")


@backend_errors("Failed to fetch guest spot applications")
def pending_applications(studio: Profile) -> list[GuestSpotApplication]:
    return applications.working_set(GuestSpotApplication, GuestSpot, studio)


@backend_errors("Failed to fetch guest spot statistics")
def studio_stats(studio: Profile) -> dict:
    spots = studio_guest_spots(studio)
    by_status = applications.count_by_status(GuestSpotApplication, GuestSpot, studio)
    return {
        "total_guest_spots": len(spots),
        "open_guest_spots": sum(1 for s in spots if s.status == "open"),
        "filled_guest_spots": sum(1 for s in spots if s.status == "filled"),
        "total_applications": sum(by_status.values()),
        "pending_applications": by_status.get("pending", 0),
    }
