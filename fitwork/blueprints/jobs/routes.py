# fitwork/blueprints/jobs/routes.py
from flask import jsonify, request
from flask_login import login_required

from ...auth_context import viewer
from ...security import roles_required, profile_required
from ...serializers import application_json, job_json
from ...services import email_service, job_service, profile_service
from ...services.errors import NotFoundError, ValidationError
from ..utils import arg_bool, arg_list, current_profile, json_body, page_args, page_response
from . import jobs_bp

# Studio-side moves the applicant hears about by email
NOTIFY_STATUSES = {"shortlisted", "offered", "accepted", "rejected"}


def _notify(application, actor):
    if actor.id != application.applicant_id and application.status in NOTIFY_STATUSES:
        email_service.send_application_update(application)


# -----------------
# Postings
# -----------------

@jobs_bp.get("")
def list_jobs():
    filters = {
        "status": request.args.get("status"),
        "studio_id": request.args.get("studio_id", type=int),
        "location": request.args.get("location"),
        "urgent": arg_bool("urgent"),
        "styles": arg_list("styles"),
        "sort": request.args.get("sort"),
    }
    rows, next_cursor = job_service.list_jobs(filters, viewer_profile=viewer().profile, **page_args())
    return jsonify(page_response([job_json(j) for j in rows], next_cursor))


@jobs_bp.post("")
@login_required
@roles_required("studio")
def create_job():
    job = job_service.create_job(current_profile(), json_body())
    return jsonify(job_json(job)), 201


@jobs_bp.get("/<int:job_id>")
def job_detail(job_id):
    job = job_service.get_job(job_id)
    if job is None:
        raise NotFoundError("Job not found")
    data = job_json(job)
    ctx = viewer()
    if ctx.profile is not None and ctx.profile.is_instructor:
        data["application"] = job_service.application_status(job, ctx.profile.id)
        data["saved"] = job_service.is_job_saved(ctx.user, job.id)
    return jsonify(data)


@jobs_bp.patch("/<int:job_id>")
@login_required
@roles_required("studio")
def update_job(job_id):
    job = job_service.update_job(job_service.get_job_or_404(job_id), current_profile(), json_body())
    return jsonify(job_json(job))


@jobs_bp.post("/<int:job_id>/close")
@login_required
@roles_required("studio")
def close_job(job_id):
    job = job_service.close_job(job_service.get_job_or_404(job_id), current_profile())
    return jsonify(job_json(job))


@jobs_bp.delete("/<int:job_id>")
@login_required
@roles_required("studio")
def delete_job(job_id):
    job_service.delete_job(job_service.get_job_or_404(job_id), current_profile())
    return "", 204


# -----------------
# Studio views
# -----------------

@jobs_bp.get("/mine")
@login_required
@roles_required("studio")
def my_jobs():
    items = []
    for job in job_service.studio_jobs(current_profile()):
        data = job_json(job)
        data["applications"] = [application_json(a, with_applicant=True) for a in job.applications]
        items.append(data)
    return jsonify({"items": items})


@jobs_bp.get("/stats")
@login_required
@roles_required("studio")
def stats():
    return jsonify(job_service.studio_stats(current_profile()))


@jobs_bp.get("/<int:job_id>/applications")
@login_required
@roles_required("studio")
def job_applications(job_id):
    rows = job_service.job_applications(job_service.get_job_or_404(job_id), current_profile())
    return jsonify({"items": [application_json(a, with_applicant=True) for a in rows]})


@jobs_bp.get("/applications/pending")
@login_required
@roles_required("studio")
def pending_applications():
    rows = job_service.pending_applications(current_profile())
    return jsonify({"items": [application_json(a, with_applicant=True) for a in rows]})


@jobs_bp.post("/<int:job_id>/invite")
@login_required
@roles_required("studio")
def invite(job_id):
    data = json_body()
    instructor = profile_service.get_profile(data.get("instructor_id") or 0)
    if instructor is None:
        raise NotFoundError("Instructor not found")
    app = job_service.invite_to_job(job_service.get_job_or_404(job_id), current_profile(),
                                    instructor, data.get("message"))
    return jsonify(application_json(app)), 201


# -----------------
# Instructor views
# -----------------

@jobs_bp.get("/matches")
@login_required
@roles_required("instructor")
def matches():
    filters = {"location": request.args.get("location"), "styles": arg_list("styles"),
               "urgent": arg_bool("urgent")}
    rows = job_service.jobs_with_match_score(current_profile(), filters, limit=request.args.get("limit"))
    items = []
    for row in rows:
        data = job_json(row["job"])
        data.update(match_score=row["match_score"], has_applied=row["has_applied"],
                    application_status=row["application_status"])
        items.append(data)
    return jsonify({"items": items})


@jobs_bp.post("/<int:job_id>/apply")
@login_required
@roles_required("instructor")
def apply(job_id):
    data = json_body()
    app = job_service.apply_to_job(job_service.get_job_or_404(job_id), current_profile(),
                                   data.get("message"))
    return jsonify(application_json(app)), 201


@jobs_bp.get("/<int:job_id>/application-status")
@login_required
@roles_required("instructor")
def application_status(job_id):
    return jsonify(job_service.application_status(job_service.get_job_or_404(job_id), current_profile().id))


@jobs_bp.get("/applications/mine")
@login_required
@roles_required("instructor")
def my_applications():
    rows = job_service.instructor_applications(current_profile())
    return jsonify({"items": [application_json(a) for a in rows]})


# -----------------
# Application lifecycle
# -----------------

@jobs_bp.post("/applications/<int:application_id>/status")
@login_required
@profile_required
def update_application_status(application_id):
    new_status = (json_body().get("status") or "").strip().lower()
    if not new_status:
        raise ValidationError("A status is required")
    actor = current_profile()
    app = job_service.update_application_status(
        job_service.get_application_or_404(application_id), actor, new_status)
    _notify(app, actor)
    return jsonify(application_json(app))


@jobs_bp.post("/applications/<int:application_id>/shortlist")
@login_required
@roles_required("studio")
def shortlist(application_id):
    actor = current_profile()
    app = job_service.shortlist_application(job_service.get_application_or_404(application_id), actor)
    _notify(app, actor)
    return jsonify(application_json(app))


@jobs_bp.post("/applications/<int:application_id>/accept")
@login_required
@profile_required
def accept(application_id):
    actor = current_profile()
    app = job_service.accept_application(job_service.get_application_or_404(application_id), actor)
    _notify(app, actor)
    return jsonify(application_json(app))


@jobs_bp.post("/applications/<int:application_id>/withdraw")
@login_required
@roles_required("instructor")
def withdraw(application_id):
    app = job_service.withdraw_application(job_service.get_application_or_404(application_id),
                                           current_profile())
    return jsonify(application_json(app))


# -----------------
# Saved jobs
# -----------------

@jobs_bp.get("/saved")
@login_required
@roles_required("instructor", "studio")
def saved_jobs():
    return jsonify({"items": [job_json(j) for j in job_service.saved_jobs(viewer().user)]})


@jobs_bp.post("/<int:job_id>/save")
@login_required
@roles_required("instructor", "studio")
def save_job(job_id):
    job_service.save_job(viewer().user, job_service.get_job_or_404(job_id))
    return jsonify({"saved": True})


@jobs_bp.delete("/<int:job_id>/save")
@login_required
@roles_required("instructor", "studio")
def unsave_job(job_id):
    job_service.unsave_job(viewer().user, job_service.get_job_or_404(job_id))
    return jsonify({"saved": False})
