# fitwork/services/applications.py
"""Application records shared by jobs and guest spots.

Both posting kinds use the same lifecycle; only the model and the foreign key
column differ. Callers wrap these helpers with their own fixed error
messages.
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..lifecycle import (
    APPLICATION,
    APPLICATION_EVENT_FOR_STATUS,
    APPLICATION_TERMINAL,
    INITIAL_APPLICATION_STATUS,
    application_event_allowed_for,
)
from ..models.application import JobApplication, GuestSpotApplication
from ..models.profile import Profile
from .errors import DuplicateError, PermissionDenied, ValidationError

log = logging.getLogger(__name__)

_MODELS = {
    "job": (JobApplication, "job_id"),
    "guest_spot": (GuestSpotApplication, "guest_spot_id"),
}
_NOUN = {"job": "job", "guest_spot": "guest spot"}


def model_for(posting):
    return _MODELS[posting.kind]


def find(posting, applicant_id: int):
    model, fk = model_for(posting)
    return model.query.filter(
        getattr(model, fk) == posting.id,
        model.applicant_id == applicant_id,
    ).first()


def status_for(posting, applicant_id: int) -> dict:
    app = find(posting, applicant_id)
    if not app:
        return {"has_applied": False}
    return {"has_applied": True, "application_id": app.id, "status": app.status}


def ensure_open(posting) -> None:
    if posting.status != "open":
        raise ValidationError(f"This {_NOUN[posting.kind]} is no longer accepting applications")


def _create(posting, applicant: Profile, type_: str, duplicate_message: str,
            commit: bool = True, **fields):
    model, fk = model_for(posting)
    if find(posting, applicant.id):
        raise DuplicateError(duplicate_message)

    app = model(
        applicant_id=applicant.id,
        type=type_,
        status=INITIAL_APPLICATION_STATUS[type_],
        **{fk: posting.id},
        **fields,
    )
    db.session.add(app)
    # counter bump rides in the same transaction as the insert
    posting.applicant_count = type(posting).applicant_count + 1
    try:
        if commit:
            db.session.commit()
        else:
            db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateError(duplicate_message) from None
    log.info("%s %s %s for profile %s (%s)", posting.kind, posting.id, type_, applicant.id, app.status)
    return app


def apply(posting, applicant: Profile, message: Optional[str] = None, **fields):
    if not applicant.is_instructor:
        raise PermissionDenied("Only instructors can apply")
    if not applicant.profile_completed:
        raise ValidationError("Please complete your profile before applying")
    ensure_open(posting)
    return _create(
        posting, applicant, "apply",
        f"You have already applied to this {_NOUN[posting.kind]}",
        message=message, **fields,
    )


def invite(posting, studio: Profile, instructor: Profile, message: Optional[str] = None,
           commit: bool = True):
    """Create an invited application. With ``commit=False`` the row is only
    flushed and the caller owns the commit."""
    if posting.studio_id != studio.id:
        raise PermissionDenied("Only the studio that posted this can send invitations")
    if not instructor or not instructor.is_instructor:
        raise ValidationError("Invitations can only be sent to instructors")
    ensure_open(posting)
    return _create(
        posting, instructor, "invite",
        "This instructor has already applied or been invited",
        commit=commit, message=message,
    )


def side_of(application, actor: Profile) -> Optional[str]:
    if actor is None:
        return None
    if application.posting.studio_id == actor.id:
        return "studio"
    if application.applicant_id == actor.id:
        return "applicant"
    return None


def fire(application, actor: Profile, event: str):
    """Move ``application`` along ``event`` on behalf of ``actor``."""
    next_status = APPLICATION.next_state(application.status, event)
    side = side_of(application, actor)
    if side is None or not application_event_allowed_for(side, application.status, event):
        raise PermissionDenied("You cannot change this application")
    previous = application.status
    application.status = next_status
    db.session.commit()
    log.info("Application %s (%s) %s -> %s by profile %s",
             application.id, application.kind, previous, next_status, actor.id)
    return application


def set_status(application, actor: Profile, new_status: str):
    event = APPLICATION_EVENT_FOR_STATUS.get(new_status)
    if not event:
        raise ValidationError(f"Unknown application status: {new_status}")
    return fire(application, actor, event)


def for_posting(posting) -> list:
    return list(posting.applications)


def for_applicant(model, applicant: Profile) -> list:
    return (model.query
            .filter(model.applicant_id == applicant.id)
            .order_by(model.applied_at.desc())
            .all())


def working_set(model, posting_model, studio: Profile) -> list:
    """Open applications on the studio's postings, newest first."""
    return (model.query
            .join(model.posting)
            .filter(posting_model.studio_id == studio.id,
                    model.status.notin_(APPLICATION_TERMINAL))
            .order_by(model.applied_at.desc())
            .all())


def count_by_status(model, posting_model, studio: Profile) -> dict:
    rows = (model.query
            .join(model.posting)
            .filter(posting_model.studio_id == studio.id)
            .with_entities(model.status)
            .all())
    counts: dict = {}
    for (status,) in rows:
        counts[status] = counts.get(status, 0) + 1
    return counts
