from flask import Blueprint

chat_bp = Blueprint("chat", __name__)

from . import routes  # noqa: E402,F401
