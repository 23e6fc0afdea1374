# fitwork/blueprints/admin/users_actions.py
from flask import jsonify
from flask_login import login_required

from ...auth_context import viewer
from ...security import roles_required
from ...services import moderation_service
from ..utils import json_body
from . import admin_bp

# ---- BULK suspend / unsuspend ----

def _ids():
    raw = json_body().get("ids") or []
    if isinstance(raw, str):
        raw = raw.split(",")
    return [int(x) for x in raw if str(x).strip().isdigit()]


@admin_bp.post("/users/bulk-suspend")
@login_required
@roles_required("admin")
def users_bulk_suspend():
    updated = moderation_service.set_users_status(_ids(), "suspended", viewer().user)
    return jsonify({"updated": updated})


@admin_bp.post("/users/bulk-unsuspend")
@login_required
@roles_required("admin")
def users_bulk_unsuspend():
    updated = moderation_service.set_users_status(_ids(), "active", viewer().user)
    return jsonify({"updated": updated})
