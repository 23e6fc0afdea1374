# fitwork/services/base.py
import logging
from datetime import datetime
from functools import wraps

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from .errors import ServiceError

log = logging.getLogger(__name__)


def backend_errors(message: str):
    """Turn database failures into a ServiceError carrying ``message``.

    The session is rolled back first so the request can keep using it.
    Service-level exceptions (validation, permissions, transitions) pass
    through after the rollback.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except ServiceError:
                db.session.rollback()
                raise
            except SQLAlchemyError:
                db.session.rollback()
                log.exception("%s failed", fn.__qualname__)
                raise ServiceError(message) from None
        return wrapper
    return decorator


def utcnow() -> datetime:
    return datetime.utcnow()
