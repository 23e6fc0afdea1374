# fitwork/models/profile.py
from datetime import datetime
from ..extensions import db


class Profile(db.Model):
    __tablename__ = "profile"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), index=True)

    # instructor|studio
    user_type = db.Column(db.String(20), nullable=False, index=True)

    # draft|submitted|verified|rejected|archived
    status = db.Column(db.String(20), nullable=False, default="draft", index=True)
    saved_at = db.Column(db.DateTime)
    submitted_at = db.Column(db.DateTime, index=True)
    verified_at = db.Column(db.DateTime)
    rejected_at = db.Column(db.DateTime)
    rejection_reason = db.Column(db.Text)
    reviewed_by_id = db.Column(db.Integer, db.ForeignKey("user.id"))

    # Marketplace eligibility, independent of moderation
    profile_completed = db.Column(db.Boolean, default=False, nullable=False, index=True)

    location = db.Column(db.String(160), index=True)

    # --- Instructor ---
    full_name = db.Column(db.String(160))
    headline = db.Column(db.String(200))
    bio = db.Column(db.Text)
    contact_number = db.Column(db.String(50))
    postal_code = db.Column(db.String(20))
    travel_preference = db.Column(db.String(80))
    availability_slots = db.Column(db.JSON, default=list)
    certifications = db.Column(db.JSON, default=list)
    other_certifications = db.Column(db.Text)
    fitness_styles = db.Column(db.JSON, default=list)
    profile_photo = db.Column(db.String(512))
    gallery_images = db.Column(db.JSON, default=list)
    open_to_work = db.Column(db.Boolean, default=True)
    open_to_guest_spots = db.Column(db.Boolean, default=False)
    touring_ready = db.Column(db.Boolean, default=False)
    guest_spot_rate = db.Column(db.String(60))
    preferred_guest_cities = db.Column(db.JSON, default=list)
    years_of_experience = db.Column(db.Integer)
    hourly_rate = db.Column(db.Float)

    # --- Studio ---
    name = db.Column(db.String(160))
    tagline = db.Column(db.String(200))
    description = db.Column(db.Text)
    website = db.Column(db.String(255))
    instagram = db.Column(db.String(120))
    styles = db.Column(db.JSON, default=list)
    amenities = db.Column(db.JSON, default=list)
    images = db.Column(db.JSON, default=list)

    # --- Signals ---
    rating = db.Column(db.Float, default=0.0)
    view_count = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship("User", back_populates="profile", foreign_keys=[user_id])
    reviewer = db.relationship("User", foreign_keys=[reviewed_by_id])

    experience = db.relationship(
        "ProfileExperience",
        backref="profile",
        order_by="ProfileExperience.position",
        cascade="all, delete-orphan",
    )

    @property
    def is_instructor(self) -> bool:
        return self.user_type == "instructor"

    @property
    def is_studio(self) -> bool:
        return self.user_type == "studio"

    @property
    def is_public(self) -> bool:
        return self.status == "verified" and bool(self.profile_completed)

    @property
    def display_name(self) -> str:
        if self.is_studio:
            return self.name or "Studio"
        return self.full_name or "Instructor"

    @property
    def avatar(self):
        if self.is_studio:
            return (self.images or [None])[0]
        return self.profile_photo

    def __repr__(self):
        return f"<Profile id={self.id} type={self.user_type} status={self.status}>"


class ProfileExperience(db.Model):
    __tablename__ = "profile_experience"

    id = db.Column(db.Integer, primary_key=True)
    profile_id = db.Column(db.Integer, db.ForeignKey("profile.id"), nullable=False, index=True)
    position = db.Column(db.Integer, default=0)  # display order

    title = db.Column(db.String(160), nullable=False)
    company = db.Column(db.String(160))
    period = db.Column(db.String(80))
    is_active = db.Column(db.Boolean, default=False)
