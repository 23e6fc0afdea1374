# fitwork/blueprints/guest_spots/routes.py
from flask import jsonify, request
from flask_login import login_required

from ...auth_context import viewer
from ...security import roles_required, profile_required
from ...serializers import application_json, guest_spot_json
from ...services import email_service, guest_spot_service as gs, profile_service
from ...services.errors import NotFoundError, ValidationError
from ..utils import arg_bool, arg_list, current_profile, json_body, page_args, page_response
from . import guest_spots_bp


@guest_spots_bp.get("")
def list_guest_spots():
    filters = {
        "status": request.args.get("status"),
        "studio_id": request.args.get("studio_id", type=int),
        "location": request.args.get("location"),
        "styles": arg_list("styles"),
        "travel_covered": arg_bool("travel_covered"),
        "accommodation_provided": arg_bool("accommodation_provided"),
        "urgent": arg_bool("urgent"),
        "sort": request.args.get("sort"),
    }
    rows, next_cursor = gs.list_guest_spots(filters, viewer_profile=viewer().profile, **page_args())
    return jsonify(page_response([guest_spot_json(s) for s in rows], next_cursor))


@guest_spots_bp.post("")
@login_required
@roles_required("studio")
def create_guest_spot():
    spot = gs.create_guest_spot(current_profile(), json_body())
    return jsonify(guest_spot_json(spot)), 201


@guest_spots_bp.get("/<int:spot_id>")
def guest_spot_detail(spot_id):
    spot = gs.get_guest_spot(spot_id)
    if spot is None:
        raise NotFoundError("Guest spot not found")
    data = guest_spot_json(spot)
    ctx = viewer()
    if ctx.profile is not None and ctx.profile.is_instructor:
        data["application"] = gs.application_status(spot, ctx.profile.id)
    return jsonify(data)


@guest_spots_bp.patch("/<int:spot_id>")
@login_required
@roles_required("studio")
def update_guest_spot(spot_id):
    spot = gs.update_guest_spot(gs.get_guest_spot_or_404(spot_id), current_profile(), json_body())
    return jsonify(guest_spot_json(spot))


@guest_spots_bp.post("/<int:spot_id>/fill")
@login_required
@roles_required("studio")
def fill(spot_id):
    return jsonify(guest_spot_json(gs.fill_guest_spot(gs.get_guest_spot_or_404(spot_id), current_profile())))


@guest_spots_bp.post("/<int:spot_id>/cancel")
@login_required
@roles_required("studio")
def cancel(spot_id):
    return jsonify(guest_spot_json(gs.cancel_guest_spot(gs.get_guest_spot_or_404(spot_id), current_profile())))


@guest_spots_bp.delete("/<int:spot_id>")
@login_required
@roles_required("studio")
def delete(spot_id):
    gs.delete_guest_spot(gs.get_guest_spot_or_404(spot_id), current_profile())
    return "", 204


@guest_spots_bp.get("/mine")
@login_required
@roles_required("studio")
def my_guest_spots():
    items = []
    for spot in gs.studio_guest_spots(current_profile()):
        data = guest_spot_json(spot)
        data["applications"] = [application_json(a, with_applicant=True) for a in spot.applications]
        items.append(data)
    return jsonify({"items": items})


@guest_spots_bp.get("/stats")
@login_required
@roles_required("studio")
def stats():
    return jsonify(gs.studio_stats(current_profile()))


@guest_spots_bp.get("/<int:spot_id>/applications")
@login_required
@roles_required("studio")
def spot_applications(spot_id):
    rows = gs.guest_spot_applications(gs.get_guest_spot_or_404(spot_id), current_profile())
    return jsonify({"items": [application_json(a, with_applicant=True) for a in rows]})


@guest_spots_bp.get("/applications/pending")
@login_required
@roles_required("studio")
def pending_applications():
    rows = gs.pending_applications(current_profile())
    return jsonify({"items": [application_json(a, with_applicant=True) for a in rows]})


@guest_spots_bp.post("/<int:spot_id>/invite")
@login_required
@roles_required("studio")
def invite(spot_id):
    data = json_body()
    instructor = profile_service.get_profile(data.get("instructor_id") or 0)
    if instructor is None:
        raise NotFoundError("Instructor not found")
    app = gs.invite_to_guest_spot(gs.get_guest_spot_or_404(spot_id), current_profile(),
                                  instructor, data.get("message"))
    return jsonify(application_json(app)), 201


@guest_spots_bp.post("/<int:spot_id>/apply")
@login_required
@roles_required("instructor")
def apply(spot_id):
    data = json_body()
    app = gs.apply_to_guest_spot(gs.get_guest_spot_or_404(spot_id), current_profile(),
                                 data.get("message"), data.get("proposed_rate"))
    return jsonify(application_json(app)), 201


@guest_spots_bp.get("/applications/mine")
@login_required
@roles_required("instructor")
def my_applications():
    rows = gs.instructor_applications(current_profile())
    return jsonify({"items": [application_json(a) for a in rows]})


@guest_spots_bp.post("/applications/<int:application_id>/status")
@login_required
@profile_required
def update_application_status(application_id):
    new_status = (json_body().get("status") or "").strip().lower()
    if not new_status:
        raise ValidationError("A status is required")
    actor = current_profile()
    app = gs.update_application_status(gs.get_application_or_404(application_id), actor, new_status)
    if actor.id != app.applicant_id and app.status in ("accepted", "rejected", "offered", "shortlisted"):
        email_service.send_application_update(app)
    return jsonify(application_json(app))


@guest_spots_bp.post("/applications/<int:application_id>/withdraw")
@login_required
@roles_required("instructor")
def withdraw(application_id):
    app = gs.withdraw_application(gs.get_application_or_404(application_id), current_profile())
    return jsonify(application_json(app))
