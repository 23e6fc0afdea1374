# fitwork/models/posting.py
from datetime import datetime
from ..extensions import db


class Job(db.Model):
    __tablename__ = "job"

    id = db.Column(db.Integer, primary_key=True)
    studio_id = db.Column(db.Integer, db.ForeignKey("profile.id"), nullable=False, index=True)

    position = db.Column(db.String(200), nullable=False, index=True)
    description = db.Column(db.Text)
    requirements = db.Column(db.JSON, default=list)
    start_date = db.Column(db.Date, index=True)
    end_date = db.Column(db.Date)
    compensation = db.Column(db.String(120))
    styles = db.Column(db.JSON, default=list)
    location = db.Column(db.String(160))
    is_urgent = db.Column(db.Boolean, default=False, index=True)

    applicant_count = db.Column(db.Integer, default=0, nullable=False)
    status = db.Column(db.String(20), default="open", nullable=False, index=True)  # open|closed

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    studio = db.relationship(
        "Profile",
        foreign_keys=[studio_id],
        backref=db.backref("jobs", lazy="dynamic"),
    )
    applications = db.relationship(
        "JobApplication",
        back_populates="posting",
        lazy="selectin",
        order_by="JobApplication.applied_at.desc()",
    )

    kind = "job"

    @property
    def title(self) -> str:
        return self.position

    def __repr__(self):
        return f"<Job id={self.id} studio={self.studio_id} status={self.status}>"


class GuestSpot(db.Model):
    __tablename__ = "guest_spot"

    id = db.Column(db.Integer, primary_key=True)
    studio_id = db.Column(db.Integer, db.ForeignKey("profile.id"), nullable=False, index=True)

    title = db.Column(db.String(200), nullable=False, index=True)
    description = db.Column(db.Text)
    style = db.Column(db.String(120), index=True)
    start_date = db.Column(db.Date, index=True)
    end_date = db.Column(db.Date)
    compensation = db.Column(db.String(120))
    travel_covered = db.Column(db.Boolean, default=False)
    accommodation_provided = db.Column(db.Boolean, default=False)
    location = db.Column(db.String(160))
    is_urgent = db.Column(db.Boolean, default=False, index=True)

    applicant_count = db.Column(db.Integer, default=0, nullable=False)
    status = db.Column(db.String(20), default="open", nullable=False, index=True)  # open|filled|cancelled

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    studio = db.relationship(
        "Profile",
        foreign_keys=[studio_id],
        backref=db.backref("guest_spots", lazy="dynamic"),
    )
    applications = db.relationship(
        "GuestSpotApplication",
        back_populates="posting",
        lazy="selectin",
        order_by="GuestSpotApplication.applied_at.desc()",
    )

    kind = "guest_spot"

    @property
    def styles(self) -> list:
        return [self.style] if self.style else []

    def __repr__(self):
        return f"<GuestSpot id={self.id} studio={self.studio_id} status={self.status}>"
