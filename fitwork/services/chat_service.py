# fitwork/services/chat_service.py
"""Two-party conversations between studios and instructors.

A message may carry a job offer or gig invite. The offer's status is never
stored on the message; it is read from the application the message points to.
"""
from __future__ import annotations

import logging
from typing import Optional

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..lifecycle import APPLICATION
from ..models.application import JobApplication, GuestSpotApplication
from ..models.chat import ChatMessage, Conversation, ConversationMember, participant_key
from ..models.profile import Profile
from . import applications
from .base import backend_errors, utcnow
from .errors import InvalidTransition, NotFoundError, PermissionDenied, ValidationError
from .pagination import keyset_page

log = logging.getLogger(__name__)

MESSAGE_TYPES = ("text", "job_offer", "gig_invite")
SUMMARY_FOR_TYPE = {
    "job_offer": "📋 Job Offer",
    "gig_invite": "🎯 Gig Invite",
}
OFFER_RESPONSES = {
    "accepted": "accept",
    "declined": "withdraw",
}
# Statuses an offer can be sent on without moving the application
OFFERABLE_AS_IS = frozenset({"invited", "offered"})
OFFER_FIELDS = {
    "job_offer": ("title", "date", "start_time", "end_time", "rate", "location", "class_type", "description"),
    "gig_invite": ("title", "dates", "rate", "location", "description"),
}


def _summary(content: str, type_: str) -> str:
    return SUMMARY_FOR_TYPE.get(type_) or content[:280]


def _clean_payload(type_: str, details: dict) -> dict:
    return {k: (details.get(k) or None) for k in OFFER_FIELDS[type_]}


# -----------------
# Conversations
# -----------------

def get_conversation_for(conversation_id: int, profile: Profile) -> Conversation:
    conv = db.session.get(Conversation, conversation_id)
    if not conv:
        raise NotFoundError("Conversation not found")
    if profile.id not in conv.participants:
        raise PermissionDenied("You are not part of this conversation")
    return conv


def find_conversation(a_id: int, b_id: int) -> Optional[Conversation]:
    return Conversation.query.filter_by(participant_key=participant_key(a_id, b_id)).first()


@backend_errors("Failed to start conversation")
def get_or_create_conversation(a: Profile, b: Profile) -> Conversation:
    if a.id == b.id:
        raise ValidationError("You cannot start a conversation with yourself")
    existing = find_conversation(a.id, b.id)
    if existing:
        return existing

    conv = Conversation(participant_key=participant_key(a.id, b.id))
    conv.members = [
        ConversationMember(profile_id=p.id, display_name=p.display_name,
                           avatar=p.avatar, user_type=p.user_type, unread_count=0)
        for p in (a, b)
    ]
    db.session.add(conv)
    try:
        db.session.commit()
    except IntegrityError:
        # Another request created the pair first; use theirs.
        db.session.rollback()
        existing = find_conversation(a.id, b.id)
        if existing is None:
            raise
        return existing
    log.info("Conversation %s opened between profiles %s and %s", conv.id, a.id, b.id)
    return conv


@backend_errors("Failed to fetch conversations")
def list_conversations(profile: Profile) -> list[Conversation]:
    return (Conversation.query
            .join(ConversationMember, ConversationMember.conversation_id == Conversation.id)
            .filter(ConversationMember.profile_id == profile.id)
            .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
            .all())


@backend_errors("Failed to fetch unread count")
def total_unread(profile: Profile) -> int:
    total = (db.session.query(func.coalesce(func.sum(ConversationMember.unread_count), 0))
             .filter(ConversationMember.profile_id == profile.id)
             .scalar())
    return int(total or 0)


# -----------------
# Messages
# -----------------

@backend_errors("Failed to fetch messages")
def list_messages(conversation: Conversation, cursor: str | None = None, limit=None):
    """Oldest first. Returns ``(messages, next_cursor)``."""
    if limit in (None, ""):
        limit = current_app.config.get("MESSAGE_PAGE_SIZE", 50)
    q = ChatMessage.query.filter(ChatMessage.conversation_id == conversation.id)
    return keyset_page(q, ChatMessage.created_at, ChatMessage.id, cursor=cursor, limit=limit,
                       descending=False, value_of=lambda m: m.created_at)


def _append(conversation: Conversation, sender: Profile, content: str, type_: str,
            payload: Optional[dict] = None, application=None) -> ChatMessage:
    """Stage a message with its summary and unread bump; caller commits."""
    if sender.id not in conversation.participants:
        raise PermissionDenied("You are not part of this conversation")
    if type_ not in MESSAGE_TYPES:
        raise ValidationError(f"Unknown message type: {type_}")
    content = (content or "").strip()
    if not content:
        raise ValidationError("Message cannot be empty")

    now = utcnow()
    msg = ChatMessage(
        conversation_id=conversation.id,
        sender_id=sender.id,
        sender_name=sender.display_name,
        content=content,
        type=type_,
        read=False,
        payload=payload,
        created_at=now,
    )
    if isinstance(application, JobApplication):
        msg.job_application_id = application.id
    elif isinstance(application, GuestSpotApplication):
        msg.guest_spot_application_id = application.id
    db.session.add(msg)

    conversation.last_message_content = _summary(content, type_)
    conversation.last_message_sender_id = sender.id
    conversation.last_message_type = type_
    conversation.last_message_at = now
    conversation.updated_at = now

    recipient = conversation.member(conversation.other_participant(sender.id))
    if recipient is not None:
        recipient.unread_count = ConversationMember.unread_count + 1
    return msg


@backend_errors("Failed to send message")
def send_message(conversation: Conversation, sender: Profile, content: str,
                 type_: str = "text", payload: Optional[dict] = None, application=None) -> ChatMessage:
    """Append a message, refresh the summary and bump the recipient's unread
    counter in one commit."""
    msg = _append(conversation, sender, content, type_, payload, application)
    db.session.commit()
    return msg


def _offerable(application) -> bool:
    """Invites and offers can be (re)sent; anything else must be able to move to offered."""
    return application.status in OFFERABLE_AS_IS or APPLICATION.can(application.status, "offer")


def _stage_offer(conversation: Conversation, studio: Profile, application, type_: str,
                 details: dict) -> ChatMessage:
    if application.posting.studio_id != studio.id:
        raise PermissionDenied("You can only send offers for your own postings")
    if application.applicant_id != conversation.other_participant(studio.id):
        raise ValidationError("The application does not belong to this conversation")
    if not _offerable(application):
        raise InvalidTransition(APPLICATION.name, application.status, "offer")

    payload = _clean_payload(type_, details)
    payload["title"] = payload.get("title") or application.posting.title
    noun = "Job offer" if type_ == "job_offer" else "Gig invite"

    msg = _append(conversation, studio, f"{noun} for {payload['title']}", type_, payload, application)
    if APPLICATION.can(application.status, "offer"):
        application.status = APPLICATION.next_state(application.status, "offer")
    return msg


def _offer(conversation: Conversation, studio: Profile, application, type_: str,
           details: dict) -> ChatMessage:
    msg = _stage_offer(conversation, studio, application, type_, details)
    db.session.commit()
    log.info("%s sent in conversation %s for application %s", type_, conversation.id, application.id)
    return msg


@backend_errors("Failed to send job offer")
def send_job_offer(conversation: Conversation, studio: Profile, application: JobApplication,
                   details: dict) -> ChatMessage:
    return _offer(conversation, studio, application, "job_offer", details)


@backend_errors("Failed to send gig invite")
def send_gig_invite(conversation: Conversation, studio: Profile, application: GuestSpotApplication,
                    details: dict) -> ChatMessage:
    return _offer(conversation, studio, application, "gig_invite", details)


@backend_errors("Failed to respond to offer")
def respond_to_offer(message: ChatMessage, responder: Profile, response: str):
    """Accept or decline an offer by moving its application along."""
    if message.type not in SUMMARY_FOR_TYPE:
        raise ValidationError("This message is not an offer")
    event = OFFER_RESPONSES.get(response)
    if not event:
        raise ValidationError("Response must be 'accepted' or 'declined'")
    application = message.application
    if application is None:
        raise NotFoundError("The offer no longer references an application")
    if application.applicant_id != responder.id:
        raise PermissionDenied("Only the recipient can respond to this offer")
    return applications.fire(application, responder, event)


def get_message_for(message_id: int, profile: Profile) -> ChatMessage:
    msg = db.session.get(ChatMessage, message_id)
    if not msg:
        raise NotFoundError("Message not found")
    if profile.id not in msg.conversation.participants:
        raise PermissionDenied("You are not part of this conversation")
    return msg


@backend_errors("Failed to mark messages as read")
def mark_read(conversation: Conversation, reader: Profile) -> None:
    member = conversation.member(reader.id)
    if member is None:
        raise PermissionDenied("You are not part of this conversation")
    member.unread_count = 0
    (ChatMessage.query
     .filter(ChatMessage.conversation_id == conversation.id,
             ChatMessage.sender_id != reader.id,
             ChatMessage.read.is_(False))
     .update({ChatMessage.read: True}, synchronize_session=False))
    db.session.commit()


@backend_errors("Failed to start conversation")
def start_conversation_with_offer(studio: Profile, instructor: Profile, posting, details: dict,
                                  intro: Optional[str] = None):
    """Invite (if needed), open the conversation and send the offer.

    The conversation is opened first; the invite, the intro and the offer
    then land in a single commit. Returns ``(conversation, message)``.
    """
    if posting.studio_id != studio.id:
        raise PermissionDenied("You can only send offers for your own postings")
    application = applications.find(posting, instructor.id)
    if application is None:
        if not instructor.is_instructor:
            raise ValidationError("Invitations can only be sent to instructors")
        applications.ensure_open(posting)
    elif not _offerable(application):
        raise InvalidTransition(APPLICATION.name, application.status, "offer")

    conversation = get_or_create_conversation(studio, instructor)
    if application is None:
        application = applications.invite(posting, studio, instructor, details.get("message"),
                                          commit=False)
    if intro and intro.strip():
        _append(conversation, studio, intro, "text")
        # settle the unread bump before the offer adds its own
        db.session.flush()
    type_ = "job_offer" if posting.kind == "job" else "gig_invite"
    msg = _stage_offer(conversation, studio, application, type_, details)
    db.session.commit()
    log.info("%s sent in conversation %s for application %s", type_, conversation.id, application.id)
    return conversation, msg
