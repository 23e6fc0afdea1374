# fitwork/blueprints/profiles/routes.py
from flask import jsonify, request
from flask_login import login_required

from ...auth_context import viewer
from ...security import roles_required
from ...serializers import profile_json
from ...services import profile_service
from ...services.errors import NotFoundError
from ..utils import arg_bool, arg_list, json_body, page_args, page_response
from . import profiles_bp


# -----------------
# Own profile
# -----------------

@profiles_bp.get("/me")
@login_required
@roles_required("instructor", "studio")
def my_profile():
    p = profile_service.ensure_profile(viewer().user)
    return jsonify(profile_json(p, private=True))


@profiles_bp.get("/me/status")
@login_required
@roles_required("instructor", "studio", "admin")
def my_status():
    return jsonify(profile_service.profile_status_summary(viewer().user))


@profiles_bp.put("/me/draft")
@login_required
@roles_required("instructor", "studio")
def save_draft():
    p = profile_service.save_draft(viewer().user, json_body())
    return jsonify(profile_json(p, private=True))


@profiles_bp.post("/me/submit")
@login_required
@roles_required("instructor", "studio")
def submit():
    p = profile_service.submit(viewer().user, json_body())
    return jsonify(profile_json(p, private=True))


@profiles_bp.patch("/me")
@login_required
@roles_required("instructor", "studio")
def update():
    p = profile_service.ensure_profile(viewer().user)
    p = profile_service.update_profile(p, json_body())
    return jsonify(profile_json(p, private=True))


@profiles_bp.post("/me/archive")
@login_required
@roles_required("instructor", "studio")
def archive():
    p = profile_service.ensure_profile(viewer().user)
    return jsonify(profile_json(profile_service.archive_profile(p), private=True))


# -----------------
# Directory
# -----------------

@profiles_bp.get("/instructors")
def instructors():
    filters = {
        "styles": arg_list("styles"),
        "certifications": arg_list("certifications"),
        "location": request.args.get("location"),
        "min_rating": request.args.get("min_rating"),
        "min_experience": request.args.get("min_experience"),
        "open_to_work": arg_bool("open_to_work"),
        "open_to_guest_spots": arg_bool("open_to_guest_spots"),
        "touring_ready": arg_bool("touring_ready"),
        "sort": request.args.get("sort"),
    }
    rows, next_cursor = profile_service.list_instructors(filters, **page_args())
    return jsonify(page_response([profile_json(p) for p in rows], next_cursor))


@profiles_bp.get("/instructors/search")
def search():
    rows = profile_service.search_instructors(request.args.get("q", ""))
    return jsonify({"items": [profile_json(p) for p in rows]})


@profiles_bp.get("/studios")
def studios():
    filters = {"location": request.args.get("location"), "styles": arg_list("styles")}
    rows, next_cursor = profile_service.list_studios(filters, **page_args())
    return jsonify(page_response([profile_json(p) for p in rows], next_cursor))


@profiles_bp.get("/<int:profile_id>")
def detail(profile_id):
    ctx = viewer()
    own = ctx.profile is not None and ctx.profile.id == profile_id
    p = profile_service.get_profile(profile_id) if (own or ctx.is_admin) else \
        profile_service.get_public_profile(profile_id)
    if p is None:
        raise NotFoundError("Profile not found")
    if not own:
        profile_service.increment_view(p.id)
    return jsonify(profile_json(p, private=own or ctx.is_admin))


# -----------------
# Saved profiles
# -----------------

@profiles_bp.get("/saved")
@login_required
@roles_required("instructor", "studio")
def saved():
    rows = profile_service.saved_profiles(viewer().user)
    return jsonify({"items": [profile_json(p) for p in rows]})


@profiles_bp.post("/<int:profile_id>/save")
@login_required
@roles_required("instructor", "studio")
def save(profile_id):
    profile_service.save_profile(viewer().user, profile_id)
    return jsonify({"saved": True})


@profiles_bp.delete("/<int:profile_id>/save")
@login_required
@roles_required("instructor", "studio")
def unsave(profile_id):
    profile_service.unsave_profile(viewer().user, profile_id)
    return jsonify({"saved": False})
