from flask import Blueprint

guest_spots_bp = Blueprint("guest_spots", __name__)

from . import routes  # noqa: E402,F401
