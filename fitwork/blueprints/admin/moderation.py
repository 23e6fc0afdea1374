# fitwork/blueprints/admin/moderation.py
from flask import jsonify, request
from flask_login import login_required

from ...auth_context import viewer
from ...security import roles_required
from ...serializers import profile_json
from ...services import email_service, moderation_service
from ..utils import json_body
from . import admin_bp


def _user_type_arg():
    value = (request.args.get("user_type") or "").strip().lower()
    return value if value in ("instructor", "studio") else None


@admin_bp.get("/profiles/pending")
@login_required
@roles_required("admin")
def pending():
    rows = moderation_service.list_pending(_user_type_arg())
    return jsonify({"items": [profile_json(p, private=True) for p in rows]})


@admin_bp.get("/profiles/verified")
@login_required
@roles_required("admin")
def verified():
    rows = moderation_service.list_verified(_user_type_arg())
    return jsonify({"items": [profile_json(p, private=True) for p in rows]})


@admin_bp.get("/profiles")
@login_required
@roles_required("admin")
def all_profiles():
    rows = moderation_service.list_all(_user_type_arg(), request.args.get("status") or None)
    return jsonify({"items": [profile_json(p, private=True) for p in rows]})


@admin_bp.post("/profiles/<int:profile_id>/verify")
@login_required
@roles_required("admin")
def verify(profile_id):
    p = moderation_service.verify(profile_id, viewer().user)
    email_service.send_review_result(p)
    return jsonify(profile_json(p, private=True))


@admin_bp.post("/profiles/<int:profile_id>/reject")
@login_required
@roles_required("admin")
def reject(profile_id):
    p = moderation_service.reject(profile_id, json_body().get("reason"), viewer().user)
    email_service.send_review_result(p)
    return jsonify(profile_json(p, private=True))


@admin_bp.post("/profiles/<int:profile_id>/restore")
@login_required
@roles_required("admin")
def restore(profile_id):
    p = moderation_service.restore(profile_id, viewer().user)
    return jsonify(profile_json(p, private=True))


@admin_bp.get("/stats")
@login_required
@roles_required("admin")
def stats():
    return jsonify({
        "profiles": moderation_service.profile_stats(),
        "jobs": moderation_service.job_stats(),
    })
