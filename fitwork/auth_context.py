# fitwork/auth_context.py
"""Per-request viewer context.

Handlers receive the signed-in user and their profile explicitly through a
``ViewerContext`` (stored on ``flask.g.viewer``) instead of reading a shared
cache. ``sign_out()`` is the only way a handler ends the session.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flask import g
from flask_login import logout_user

from .models.user import User
from .models.profile import Profile


@dataclass
class ViewerContext:
    user: Optional[User] = None
    profile: Optional[Profile] = None
    error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return bool(self.user and self.user.is_admin)

    @property
    def role(self) -> Optional[str]:
        return self.user.role if self.user else None

    def sign_out(self) -> None:
        logout_user()
        self.user = None
        self.profile = None
        self.error = None


def build_viewer_context(principal) -> ViewerContext:
    if not getattr(principal, "is_authenticated", False):
        return ViewerContext()
    if principal.is_suspended:
        return ViewerContext(error="Your account is suspended. Contact support.")
    return ViewerContext(user=principal, profile=principal.profile)


def viewer() -> ViewerContext:
    return getattr(g, "viewer", None) or ViewerContext()
