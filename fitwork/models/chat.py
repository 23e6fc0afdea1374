# fitwork/models/chat.py
from datetime import datetime
from ..extensions import db


def participant_key(a: int, b: int) -> str:
    """Order-independent identity of a two-party conversation."""
    lo, hi = sorted((int(a), int(b)))
    return f"{lo}:{hi}"


class Conversation(db.Model):
    __tablename__ = "conversation"

    id = db.Column(db.Integer, primary_key=True)
    participant_key = db.Column(db.String(64), unique=True, nullable=False, index=True)

    # Denormalized last-message summary for list views
    last_message_content = db.Column(db.String(280))
    last_message_sender_id = db.Column(db.Integer)
    last_message_type = db.Column(db.String(20))
    last_message_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    members = db.relationship(
        "ConversationMember",
        backref="conversation",
        lazy="selectin",
        cascade="all, delete-orphan",
    )
    messages = db.relationship(
        "ChatMessage",
        backref="conversation",
        lazy="dynamic",
        order_by="ChatMessage.created_at.asc()",
        cascade="all, delete-orphan",
    )

    @property
    def participants(self) -> list[int]:
        return [int(p) for p in self.participant_key.split(":")]

    def member(self, profile_id: int):
        return next((m for m in self.members if m.profile_id == profile_id), None)

    def other_participant(self, profile_id: int):
        return next((p for p in self.participants if p != profile_id), None)

    def unread_for(self, profile_id: int) -> int:
        m = self.member(profile_id)
        return m.unread_count if m else 0

    def __repr__(self):
        return f"<Conversation id={self.id} key={self.participant_key}>"


class ConversationMember(db.Model):
    __tablename__ = "conversation_member"
    __table_args__ = (
        db.UniqueConstraint("conversation_id", "profile_id", name="uq_conversation_member"),
    )

    id = db.Column(db.Integer, primary_key=True)
    conversation_id = db.Column(db.Integer, db.ForeignKey("conversation.id", ondelete="CASCADE"), nullable=False, index=True)
    profile_id = db.Column(db.Integer, db.ForeignKey("profile.id"), nullable=False, index=True)

    display_name = db.Column(db.String(160))
    avatar = db.Column(db.String(512))
    user_type = db.Column(db.String(20))  # instructor|studio
    unread_count = db.Column(db.Integer, default=0, nullable=False)


class ChatMessage(db.Model):
    __tablename__ = "chat_message"

    id = db.Column(db.Integer, primary_key=True)
    conversation_id = db.Column(db.Integer, db.ForeignKey("conversation.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = db.Column(db.Integer, db.ForeignKey("profile.id"), nullable=False, index=True)
    sender_name = db.Column(db.String(160))

    content = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(20), default="text", nullable=False)  # text|job_offer|gig_invite
    read = db.Column(db.Boolean, default=False, nullable=False, index=True)

    # Offer/invite details (title, date, times, rate, location, description).
    # Status is not copied here; it is read from the referenced application.
    payload = db.Column(db.JSON)
    job_application_id = db.Column(db.Integer, db.ForeignKey("job_application.id"), index=True)
    guest_spot_application_id = db.Column(db.Integer, db.ForeignKey("guest_spot_application.id"), index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    job_application = db.relationship("JobApplication")
    guest_spot_application = db.relationship("GuestSpotApplication")

    @property
    def application(self):
        return self.job_application or self.guest_spot_application

    def __repr__(self):
        return f"<ChatMessage id={self.id} conv={self.conversation_id} type={self.type}>"
