# fitwork/services/moderation_service.py
"""Admin review of submitted profiles."""
import logging
from typing import Optional

from sqlalchemy import func

from ..extensions import db
from ..lifecycle import PROFILE, PROFILE_STATUSES
from ..models.application import JobApplication, GuestSpotApplication
from ..models.posting import Job, GuestSpot
from ..models.profile import Profile
from ..models.user import User
from .base import backend_errors, utcnow
from .errors import NotFoundError, ValidationError

log = logging.getLogger(__name__)


def _get_or_404(profile_id: int) -> Profile:
    p = db.session.get(Profile, profile_id)
    if not p:
        raise NotFoundError("Profile not found")
    return p


@backend_errors("Failed to fetch pending profiles")
def list_pending(user_type: Optional[str] = None) -> list[Profile]:
    """Submitted profiles, oldest submission first."""
    q = Profile.query.filter(Profile.status == "submitted")
    if user_type:
        q = q.filter(Profile.user_type == user_type)
    return q.order_by(Profile.submitted_at.asc(), Profile.id.asc()).all()


@backend_errors("Failed to fetch verified profiles")
def list_verified(user_type: Optional[str] = None) -> list[Profile]:
    q = Profile.query.filter(Profile.status == "verified")
    if user_type:
        q = q.filter(Profile.user_type == user_type)
    return q.order_by(Profile.verified_at.desc()).all()


@backend_errors("Failed to fetch profiles")
def list_all(user_type: Optional[str] = None, status: Optional[str] = None) -> list[Profile]:
    q = Profile.query
    if user_type:
        q = q.filter(Profile.user_type == user_type)
    if status:
        q = q.filter(Profile.status == status)
    return q.order_by(Profile.created_at.desc()).all()


@backend_errors("Failed to verify profile")
def verify(profile_id: int, reviewer: User) -> Profile:
    p = _get_or_404(profile_id)
    PROFILE.fire(p, "verify")
    p.verified_at = utcnow()
    p.rejection_reason = None
    p.reviewed_by_id = reviewer.id
    db.session.commit()
    log.info("Profile %s verified by user %s", p.id, reviewer.id)
    return p


@backend_errors("Failed to reject profile")
def reject(profile_id: int, reason: str, reviewer: User) -> Profile:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A rejection reason is required")
    p = _get_or_404(profile_id)
    PROFILE.fire(p, "reject")
    p.rejected_at = utcnow()
    p.rejection_reason = reason
    p.reviewed_by_id = reviewer.id
    db.session.commit()
    log.info("Profile %s rejected by user %s", p.id, reviewer.id)
    return p


@backend_errors("Failed to fetch profile stats")
def profile_stats() -> dict:
    counts = dict(
        db.session.query(Profile.status, func.count(Profile.id))
        .group_by(Profile.status)
        .all()
    )
    stats = {s: counts.get(s, 0) for s in PROFILE_STATUSES}
    stats["pending"] = stats.pop("submitted")
    stats["total"] = sum(counts.values())
    return stats


@backend_errors("Failed to fetch job stats")
def job_stats() -> dict:
    jobs = dict(db.session.query(Job.status, func.count(Job.id)).group_by(Job.status).all())
    spots = dict(
        db.session.query(GuestSpot.status, func.count(GuestSpot.id)).group_by(GuestSpot.status).all()
    )
    return {
        "total": sum(jobs.values()),
        "open": jobs.get("open", 0),
        "closed": jobs.get("closed", 0),
        "applications": db.session.query(func.count(JobApplication.id)).scalar() or 0,
        "guest_spots": {
            "total": sum(spots.values()),
            "open": spots.get("open", 0),
            "filled": spots.get("filled", 0),
            "cancelled": spots.get("cancelled", 0),
            "applications": db.session.query(func.count(GuestSpotApplication.id)).scalar() or 0,
        },
    }


@backend_errors("Failed to restore profile")
def restore(profile_id: int, reviewer: User) -> Profile:
    """Bring an archived profile back as a draft."""
    p = _get_or_404(profile_id)
    PROFILE.fire(p, "restore")
    p.reviewed_by_id = reviewer.id
    db.session.commit()
    log.info("Profile %s restored by user %s", p.id, reviewer.id)
    return p


@backend_errors("Failed to update users")
def set_users_status(user_ids, status: str, actor: User) -> int:
    """Bulk suspend/unsuspend; admins and the acting user are never touched."""
    if status not in ("active", "suspended"):
        raise ValidationError(f"Unknown user status: {status}")
    ids = sorted({int(i) for i in user_ids or []})
    if not ids:
        raise ValidationError("Select at least one user")
    updated = (User.query
               .filter(User.id.in_(ids),
                       User.id != actor.id,
                       User.role != "admin",
                       User.status != status)
               .update({User.status: status}, synchronize_session=False))
    db.session.commit()
    log.info("User %s set %d user(s) to %s", actor.id, updated, status)
    return updated
