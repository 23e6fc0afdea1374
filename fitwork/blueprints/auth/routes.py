# fitwork/blueprints/auth/routes.py
from datetime import datetime
from typing import Optional

from flask import current_app, jsonify, url_for
from flask_login import login_user
from flask_wtf.csrf import generate_csrf
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from ...auth_context import viewer
from ...extensions import db
from ...models.user import User, PendingRegistration
from ...serializers import profile_json, user_json
from ...services import email_service, profile_service
from ..errors.routes import json_error
from . import auth_bp
from .forms import RegisterForm, LoginForm, EmailLinkForm, form_errors

# -----------------
# Utilities
# -----------------

def _ts() -> URLSafeTimedSerializer:
    secret_key = current_app.config.get("SECRET_KEY")
    salt = current_app.config.get("SIGNIN_LINK_SALT", "email-signin")
    return URLSafeTimedSerializer(secret_key=secret_key, salt=salt)


def issue_signin_token(pending: PendingRegistration) -> str:
    return _ts().dumps({"pid": pending.id, "email": pending.email})


def verify_signin_token(token: str) -> Optional[dict]:
    max_age = current_app.config.get("SIGNIN_LINK_MAX_AGE", 3600)
    try:
        data = _ts().loads(token, max_age=max_age)
        return {"pid": int(data["pid"]), "email": str(data["email"])}
    except (BadSignature, SignatureExpired, KeyError, ValueError, TypeError):
        return None


def _session_payload(user: User):
    return {
        "user": user_json(user),
        "profile": profile_json(user.profile, private=True),
        "profile_status": profile_service.profile_status_summary(user),
    }


def _sign_in(user: User, remember: bool = False):
    login_user(user, remember=remember)
    user.mark_login()
    db.session.commit()
    current_app.logger.info("User %s signed in", user.id)


# -----------------
# Register
# -----------------

@auth_bp.post("/register")
def register():
    form = RegisterForm()
    if not form.validate_on_submit():
        return json_error(400, "Invalid registration details.", fields=form_errors(form))

    user = User(
        email=form.email.data.strip().lower(),
        display_name=form.display_name.data.strip(),
        role=form.role.data,
    )
    user.set_password(form.password.data)
    db.session.add(user)
    db.session.commit()

    # Every instructor/studio starts with an empty draft profile
    profile_service.ensure_profile(user)
    _sign_in(user)
    return jsonify(_session_payload(user)), 201


# -----------------
# Login / Logout
# -----------------

@auth_bp.post("/login")
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        return json_error(400, "Email and password are required.", fields=form_errors(form))

    user = User.query.filter_by(email=form.email.data.strip().lower()).first()
    if not user or not user.check_password(form.password.data):
        return json_error(401, "Invalid email or password.")
    if user.is_suspended:
        return json_error(403, "Your account is suspended. Contact support.")

    _sign_in(user, remember=bool(form.remember.data))
    return jsonify(_session_payload(user))


@auth_bp.post("/logout")
def logout():
    viewer().sign_out()
    return jsonify({"ok": True})


# -----------------
# Email-link sign-in
# -----------------

@auth_bp.post("/email-link")
def request_email_link():
    form = EmailLinkForm()
    if not form.validate_on_submit():
        return json_error(400, "A valid email is required.", fields=form_errors(form))

    role = form.role.data if form.role.data in ("instructor", "studio") else "instructor"
    pending = PendingRegistration(
        email=form.email.data.strip().lower(),
        role=role,
        display_name=(form.display_name.data or "").strip() or None,
    )
    db.session.add(pending)
    db.session.commit()

    link = url_for("auth.consume_email_link", token=issue_signin_token(pending), _external=True)
    email_service.send_signin_link(pending.email, link)
    # Same answer whether or not the email has an account
    return jsonify({"sent": True}), 202


@auth_bp.route("/email-link/<token>", methods=["GET", "POST"])
def consume_email_link(token):
    data = verify_signin_token(token)
    if not data:
        return json_error(400, "This sign-in link is invalid or has expired.")

    pending = db.session.get(PendingRegistration, data["pid"])
    if not pending or pending.email != data["email"] or pending.consumed_at is not None:
        return json_error(400, "This sign-in link has already been used.")

    user = User.query.filter_by(email=pending.email).first()
    created = user is None
    if created:
        user = User(
            email=pending.email,
            display_name=pending.display_name or pending.email.split("@")[0],
            role=pending.role or "instructor",
        )
        db.session.add(user)
    elif user.is_suspended:
        return json_error(403, "Your account is suspended. Contact support.")

    user.is_email_verified = True
    pending.consumed_at = datetime.utcnow()
    db.session.commit()

    if created:
        profile_service.ensure_profile(user)
    _sign_in(user)
    return jsonify(_session_payload(user)), (201 if created else 200)


# -----------------
# Session
# -----------------

@auth_bp.get("/me")
def me():
    ctx = viewer()
    if ctx.error:
        return json_error(403, ctx.error)
    if not ctx.is_authenticated:
        return json_error(401, "Sign in required.")
    return jsonify(_session_payload(ctx.user))


@auth_bp.get("/csrf")
def csrf_token():
    return jsonify({"csrf_token": generate_csrf()})
