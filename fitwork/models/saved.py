# fitwork/models/saved.py
from datetime import datetime
from ..extensions import db


class SavedJob(db.Model):
    __tablename__ = "saved_job"
    __table_args__ = (db.UniqueConstraint("user_id", "job_id", name="uq_saved_job"),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    job_id = db.Column(db.Integer, db.ForeignKey("job.id", ondelete="CASCADE"), nullable=False, index=True)
    saved_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    job = db.relationship("Job")


class SavedProfile(db.Model):
    __tablename__ = "saved_profile"
    __table_args__ = (db.UniqueConstraint("user_id", "profile_id", name="uq_saved_profile"),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    profile_id = db.Column(db.Integer, db.ForeignKey("profile.id", ondelete="CASCADE"), nullable=False, index=True)
    saved_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    profile = db.relationship("Profile")
