# fitwork/services/errors.py
"""Service-layer exceptions.

Read paths return ``None``/``False`` for missing rows; write paths raise one of
these. ``ServiceError`` wraps backend failures behind a fixed, human-readable
message so callers never see driver details.
"""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    status_code = 400


class PermissionDenied(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class DuplicateError(ServiceError):
    status_code = 409


class InvalidTransition(ServiceError):
    status_code = 409

    def __init__(self, machine: str, state: str, event: str):
        super().__init__(f"Cannot {event} a {machine} that is {state}")
        self.machine = machine
        self.state = state
        self.event = event


class ConflictError(ServiceError):
    """The request is valid but clashes with existing data."""
    status_code = 409
