# fitwork/blueprints/auth/forms.py
from __future__ import annotations

from flask_babel import lazy_gettext as _l
from flask_wtf import FlaskForm
from wtforms import BooleanField, PasswordField, SelectField, StringField
from wtforms.validators import (
    DataRequired,
    Email,
    Length,
    Optional as Opt,
    Regexp,
    ValidationError,
)

from ...models.user import User


# ---------------------
# Validators / Helpers
# ---------------------

PASSWORD_VALIDATORS = [
    DataRequired(),
    Length(min=8, message=_l("Password must be at least 8 characters.")),
    Regexp(r"^(?=.*[A-Za-z])(?=.*\d).+$", message=_l("Use letters and numbers.")),
]

ROLE_CHOICES = [("instructor", _l("Instructor")), ("studio", _l("Studio"))]


def _email_exists(email: str) -> bool:
    return User.query.filter(User.email == email.lower().strip()).first() is not None


def form_errors(form: FlaskForm) -> dict:
    """Field -> first error message, for JSON responses."""
    return {name: [str(m) for m in msgs][0] for name, msgs in form.errors.items() if msgs}


# -------------
# Auth Forms
# -------------

class RegisterForm(FlaskForm):
    display_name = StringField(_l("Name"), validators=[DataRequired(), Length(max=120)])
    email = StringField(_l("Email"), validators=[DataRequired(), Email(), Length(max=255)])
    role = SelectField(_l("Account type"), choices=ROLE_CHOICES, validators=[DataRequired()])
    password = PasswordField(_l("Password"), validators=PASSWORD_VALIDATORS)

    def validate_email(self, field):
        if _email_exists(field.data):
            raise ValidationError(_l("This email is already registered."))


class LoginForm(FlaskForm):
    email = StringField(_l("Email"), validators=[DataRequired(), Email(), Length(max=255)])
    password = PasswordField(_l("Password"), validators=[DataRequired()])
    remember = BooleanField(_l("Keep me signed in"))


class EmailLinkForm(FlaskForm):
    email = StringField(_l("Email"), validators=[DataRequired(), Email(), Length(max=255)])
    # Only used when the email has no account yet
    role = SelectField(_l("Account type"), choices=ROLE_CHOICES, validators=[Opt()], validate_choice=False)
    display_name = StringField(_l("Name"), validators=[Opt(), Length(max=120)])
