# fitwork/models/user.py
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from ..extensions import db


class User(UserMixin, db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(120))

    # Email-link accounts have no password
    password_hash = db.Column(db.String(255))

    # instructor|studio|admin
    role = db.Column(db.String(20), nullable=False, default="instructor", index=True)

    # active|suspended
    status = db.Column(db.String(20), default="active", index=True)

    is_email_verified = db.Column(db.Boolean, default=False)
    last_login_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    profile = db.relationship(
        "Profile",
        back_populates="user",
        uselist=False,
        foreign_keys="Profile.user_id",
        cascade="all, delete-orphan",
    )

    # --- Auth helpers ---
    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_suspended(self) -> bool:
        return self.status == "suspended"

    def mark_login(self):
        self.last_login_at = datetime.utcnow()

    def __repr__(self):
        return f"<User id={self.id} email={self.email} role={self.role}>"


class PendingRegistration(db.Model):
    """An email-link sign-in request that has not been confirmed yet."""
    __tablename__ = "pending_registration"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    # instructor|studio; ignored when the email already has an account
    role = db.Column(db.String(20), default="instructor")
    display_name = db.Column(db.String(120))
    requested_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    consumed_at = db.Column(db.DateTime)
