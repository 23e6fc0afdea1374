# fitwork/services/job_service.py
"""Job postings and the applications made against them."""
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..lifecycle import JOB
from ..models.application import JobApplication
from ..models.posting import Job
from ..models.profile import Profile
from ..models.saved import SavedJob
from ..models.user import User
from . import applications
from .base import backend_errors
from .errors import ConflictError, NotFoundError, PermissionDenied, ValidationError
from .pagination import keyset_page

log = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "position", "description", "requirements", "start_date", "end_date",
    "compensation", "styles", "location", "is_urgent",
)


def _parse_date(value) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f"Invalid date: {value}") from None


def _apply_fields(job: Job, data: dict) -> None:
    for key in EDITABLE_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if key in ("start_date", "end_date"):
            value = _parse_date(value)
        elif key in ("requirements", "styles"):
            value = [v for v in (value or []) if v]
        elif key == "is_urgent":
            value = bool(value)
        setattr(job, key, value)
    if not (job.position or "").strip():
        raise ValidationError("Position is required")
    if job.start_date and job.end_date and job.end_date < job.start_date:
        raise ValidationError("End date cannot be before start date")


def _require_owner(job: Job, studio: Profile) -> None:
    if studio is None or job.studio_id != studio.id:
        raise PermissionDenied("You can only manage your own job postings")


# -----------------
# Postings
# -----------------

def get_job(job_id: int) -> Optional[Job]:
    return db.session.get(Job, job_id)


def get_job_or_404(job_id: int) -> Job:
    job = db.session.get(Job, job_id)
    if not job:
        raise NotFoundError("Job not found")
    return job


@backend_errors("Failed to create job posting")
def create_job(studio: Profile, data: dict) -> Job:
    if not studio or not studio.is_studio:
        raise PermissionDenied("Only studios can post jobs")
    if not studio.profile_completed:
        raise ValidationError("Please complete your studio profile before posting jobs")

    job = Job(studio_id=studio.id, status="open", applicant_count=0)
    _apply_fields(job, data)
    db.session.add(job)
    db.session.commit()
    log.info("Job %s created by studio %s", job.id, studio.id)
    return job


@backend_errors("Failed to fetch jobs")
def list_jobs(filters: dict | None = None, cursor: str | None = None, limit=None,
              viewer_profile: Optional[Profile] = None):
    """Open jobs by default. Returns ``(jobs, next_cursor)``.

    Other statuses are only listed for the owning studio.
    """
    f = filters or {}
    status = f.get("status") or "open"
    studio_id = f.get("studio_id")
    if status != "open":
        if viewer_profile is None or not studio_id or int(studio_id) != viewer_profile.id:
            raise PermissionDenied("Only the owning studio can list non-open jobs")

    q = Job.query
    if status != "all":
        q = q.filter(Job.status == status)
    if studio_id:
        q = q.filter(Job.studio_id == int(studio_id))
    if f.get("location"):
        q = q.filter(Job.location.ilike(f"%{f['location']}%"))
    if f.get("urgent"):
        q = q.filter(Job.is_urgent.is_(True))

    rows, next_cursor = keyset_page(
        q, Job.created_at, Job.id, cursor=cursor, limit=limit,
        descending=(f.get("sort") != "oldest"), value_of=lambda j: j.created_at,
    )
    if f.get("styles"):
        wanted = set(f["styles"])
        rows = [j for j in rows if wanted.intersection(j.styles or [])]
    return rows, next_cursor


@backend_errors("Failed to update job")
def update_job(job: Job, studio: Profile, data: dict) -> Job:
    _require_owner(job, studio)
    _apply_fields(job, data)
    db.session.commit()
    return job


@backend_errors("Failed to close job")
def close_job(job: Job, studio: Profile) -> Job:
    _require_owner(job, studio)
    JOB.fire(job, "close")
    db.session.commit()
    log.info("Job %s closed", job.id)
    return job


@backend_errors("Failed to delete job")
def delete_job(job: Job, studio: Profile) -> None:
    _require_owner(job, studio)
    if JobApplication.query.filter_by(job_id=job.id).first():
        raise ConflictError("Jobs with applications cannot be deleted; close the job instead")
    db.session.delete(job)
    db.session.commit()
    log.info("Job %s deleted", job.id)


@backend_errors("Failed to fetch studio jobs")
def studio_jobs(studio: Profile) -> list[Job]:
    return Job.query.filter_by(studio_id=studio.id).order_by(Job.created_at.desc()).all()


# -----------------
# Applications
# -----------------

@backend_errors("Failed to apply to job")
def apply_to_job(job: Job, applicant: Profile, message: Optional[str] = None) -> JobApplication:
    return applications.apply(job, applicant, message)


@backend_errors("Failed to send invitation")
def invite_to_job(job: Job, studio: Profile, instructor: Profile,
                  message: Optional[str] = None) -> JobApplication:
    return applications.invite(job, studio, instructor, message)


def application_status(job: Job, applicant_id: int) -> dict:
    return applications.status_for(job, applicant_id)


def get_application_or_404(application_id: int) -> JobApplication:
    app = db.session.get(JobApplication, application_id)
    if not app:
        raise NotFoundError("Application not found")
    return app


@backend_errors("Failed to fetch applications")
def job_applications(job: Job, studio: Profile) -> list[JobApplication]:
    _require_owner(job, studio)
    return applications.for_posting(job)


@backend_errors("Failed to fetch applications")
def instructor_applications(applicant: Profile) -> list[JobApplication]:
    return applications.for_applicant(JobApplication, applicant)


@backend_errors("Failed to update application")
def update_application_status(application: JobApplication, actor: Profile,
                              new_status: str) -> JobApplication:
    return applications.set_status(application, actor, new_status)


@backend_errors("Failed to shortlist application")
def shortlist_application(application: JobApplication, studio: Profile) -> JobApplication:
    return applications.fire(application, studio, "shortlist")


@backend_errors("Failed to accept application")
def accept_application(application: JobApplication, actor: Profile) -> JobApplication:
    return applications.fire(application, actor, "accept")


@backend_errors("Failed to withdraw application")
def withdraw_application(application: JobApplication, applicant: Profile) -> JobApplication:
    return applications.fire(application, applicant, "withdraw")


@backend_errors("Failed to fetch applications")
def pending_applications(studio: Profile) -> list[JobApplication]:
    """The studio's working set: every application not yet settled."""
    return applications.working_set(JobApplication, Job, studio)


@backend_errors("Failed to fetch job statistics")
def studio_stats(studio: Profile) -> dict:
    jobs = studio_jobs(studio)
    by_status = applications.count_by_status(JobApplication, Job, studio)
    return {
        "total_jobs": len(jobs),
        "open_jobs": sum(1 for j in jobs if j.status == "open"),
        "closed_jobs": sum(1 for j in jobs if j.status == "closed"),
        "total_applications": sum(by_status.values()),
        "pending_applications": by_status.get("pending", 0),
    }


# -----------------
# Matching
# -----------------

def match_score(job: Job, instructor: Profile) -> int:
    """0-100 fit of an open job for an instructor."""
    score = 50
    if set(job.styles or []) & set(instructor.fitness_styles or []):
        score += 25
    if set(job.requirements or []) & set(instructor.certifications or []):
        score += 15
    if job.location and instructor.location:
        if instructor.location.lower() in job.location.lower():
            score += 10
    if (instructor.years_of_experience or 0) >= 5:
        score += 5
    return min(100, score)


@backend_errors("Failed to fetch jobs")
def jobs_with_match_score(instructor: Profile, filters: dict | None = None, limit=None) -> list[dict]:
    f = dict(filters or {})
    f["status"] = "open"
    jobs, _ = list_jobs(f, limit=limit)
    scored = []
    for job in jobs:
        status = applications.status_for(job, instructor.id)
        scored.append({
            "job": job,
            "match_score": match_score(job, instructor),
            "has_applied": status["has_applied"],
            "application_status": status.get("status"),
        })
    scored.sort(key=lambda row: row["match_score"], reverse=True)
    return scored


# -----------------
# Saved jobs
# -----------------

@backend_errors("Failed to save job")
def save_job(user: User, job: Job) -> None:
    if SavedJob.query.filter_by(user_id=user.id, job_id=job.id).first():
        return
    db.session.add(SavedJob(user_id=user.id, job_id=job.id))
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()


@backend_errors("Failed to unsave job")
def unsave_job(user: User, job: Job) -> None:
    SavedJob.query.filter_by(user_id=user.id, job_id=job.id).delete()
    db.session.commit()


def is_job_saved(user: User, job_id: int) -> bool:
    return SavedJob.query.filter_by(user_id=user.id, job_id=job_id).first() is not None


@backend_errors("Failed to fetch saved jobs")
def saved_jobs(user: User) -> list[Job]:
    rows = SavedJob.query.filter_by(user_id=user.id).order_by(SavedJob.saved_at.desc()).all()
    return [r.job for r in rows if r.job]
