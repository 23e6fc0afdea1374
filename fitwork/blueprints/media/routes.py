# fitwork/blueprints/media/routes.py
from pathlib import Path

from flask import abort, current_app, jsonify, request, send_from_directory
from flask_login import login_required

from ...security import profile_required
from ...services import media_service
from ...services.errors import ValidationError
from ..utils import current_profile
from . import media_bp


def _root() -> Path:
    return Path(current_app.config["UPLOAD_FOLDER"]).resolve()


@media_bp.get("/<path:filename>")
def serve(filename):
    if not media_service.allowed_ext(filename):
        abort(404)
    # send_from_directory refuses paths that escape the root
    return send_from_directory(_root(), filename, max_age=60 * 60 * 24)


@media_bp.post("/upload")
@login_required
@profile_required
def upload():
    f = request.files.get("file")
    if not f:
        raise ValidationError("No file uploaded")
    me = current_profile()
    owner = "instructors" if me.is_instructor else "studios"
    subdir = "/".join([current_app.config.get("MEDIA_ROOT_FOLDER", "fitwork"), owner, str(me.user_id), "uploads"])
    url = media_service.save_upload(f, subdir)
    current_app.logger.info("Profile %s uploaded %s", me.id, url)
    return jsonify({"url": url}), 201
