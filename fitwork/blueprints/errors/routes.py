import logging

from flask import jsonify, request
from werkzeug.exceptions import HTTPException
from flask_wtf.csrf import CSRFError

from ...extensions import db
from ...services.errors import ServiceError
from . import errors_bp

log = logging.getLogger(__name__)


def json_error(status: int, message: str, **extra):
    body = {"error": message, "status": status}
    body.update(extra)
    return jsonify(body), status


# Service-layer failures carry their own status and a safe message
@errors_bp.app_errorhandler(ServiceError)
def err_service(e: ServiceError):
    if e.status_code >= 500:
        db.session.rollback()
    return json_error(e.status_code, e.message)


# 401 – Unauthorized
@errors_bp.app_errorhandler(401)
def err_401(e):
    return json_error(401, "Sign in required.")


# 403 – Forbidden
@errors_bp.app_errorhandler(403)
def err_403(e):
    return json_error(403, "You do not have access to this resource.")


# 404 – Not Found
@errors_bp.app_errorhandler(404)
def err_404(e):
    return json_error(404, "Not found.", path=request.path)


# 413 – Payload Too Large (uploads)
@errors_bp.app_errorhandler(413)
def err_413(e):
    return json_error(413, "Upload is too large.")


# CSRF – treated as 400 Bad Request
@errors_bp.app_errorhandler(CSRFError)
def err_csrf(e):
    return json_error(400, e.description)


# 500 – Internal Server Error
@errors_bp.app_errorhandler(500)
def err_500(e):
    # a failed DB action must not leave the session in a broken transaction
    db.session.rollback()
    return json_error(500, "Something went wrong.")


# Fallback for other HTTP errors
@errors_bp.app_errorhandler(HTTPException)
def err_http(e: HTTPException):
    return json_error(e.code or 500, e.description or e.name)


# Last resort: any other exception
@errors_bp.app_errorhandler(Exception)
def err_unexpected(e):
    db.session.rollback()
    log.exception("Unhandled error on %s %s", request.method, request.path)
    # Don't leak internals
    return json_error(500, "Something went wrong.")
