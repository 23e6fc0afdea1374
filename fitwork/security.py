# fitwork/security.py
from functools import wraps

from flask import abort

from .auth_context import viewer


def roles_required(*roles):
    """Allow the view only for signed-in, non-suspended users holding one of ``roles``."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            ctx = viewer()
            if ctx.error:
                abort(403)
            if not ctx.is_authenticated:
                abort(401)
            if ctx.role not in roles:
                abort(403)
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def profile_required(fn):
    """The signed-in user must own a profile (instructors and studios)."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        ctx = viewer()
        if ctx.error:
            abort(403)
        if not ctx.is_authenticated:
            abort(401)
        if ctx.profile is None:
            abort(403)
        return fn(*args, **kwargs)
    return wrapper
