# fitwork/models/application.py
from datetime import datetime
from ..extensions import db


class JobApplication(db.Model):
    __tablename__ = "job_application"
    __table_args__ = (
        db.UniqueConstraint("applicant_id", "job_id", name="uq_job_application_applicant_job"),
    )

    id = db.Column(db.Integer, primary_key=True)
    job_id = db.Column(db.Integer, db.ForeignKey("job.id"), nullable=False, index=True)
    applicant_id = db.Column(db.Integer, db.ForeignKey("profile.id"), nullable=False, index=True)

    # apply|invite
    type = db.Column(db.String(10), nullable=False, default="apply")
    # pending|invited|shortlisted|offered|accepted|rejected|withdrawn
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    message = db.Column(db.Text)

    applied_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    posting = db.relationship("Job", back_populates="applications")
    applicant = db.relationship(
        "Profile",
        foreign_keys=[applicant_id],
        backref=db.backref("job_applications", lazy="dynamic"),
    )

    kind = "job"

    @property
    def posting_id(self):
        return self.job_id

    def __repr__(self):
        return f"<JobApplication id={self.id} job={self.job_id} status={self.status}>"


class GuestSpotApplication(db.Model):
    __tablename__ = "guest_spot_application"
    __table_args__ = (
        db.UniqueConstraint("applicant_id", "guest_spot_id", name="uq_guest_spot_application_applicant_spot"),
    )

    id = db.Column(db.Integer, primary_key=True)
    guest_spot_id = db.Column(db.Integer, db.ForeignKey("guest_spot.id"), nullable=False, index=True)
    applicant_id = db.Column(db.Integer, db.ForeignKey("profile.id"), nullable=False, index=True)

    type = db.Column(db.String(10), nullable=False, default="apply")
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    message = db.Column(db.Text)
    proposed_rate = db.Column(db.String(60))

    applied_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    posting = db.relationship("GuestSpot", back_populates="applications")
    applicant = db.relationship(
        "Profile",
        foreign_keys=[applicant_id],
        backref=db.backref("guest_spot_applications", lazy="dynamic"),
    )

    kind = "guest_spot"

    @property
    def posting_id(self):
        return self.guest_spot_id

    def __repr__(self):
        return f"<GuestSpotApplication id={self.id} spot={self.guest_spot_id} status={self.status}>"
