# fitwork/blueprints/chat/routes.py
from flask import jsonify
from flask_login import login_required

from ...security import profile_required, roles_required
from ...serializers import application_json, conversation_json, message_json
from ...services import chat_service, guest_spot_service, job_service, profile_service
from ...services.errors import NotFoundError, ValidationError
from ..utils import current_profile, json_body, page_args, page_response
from . import chat_bp


@chat_bp.get("/conversations")
@login_required
@profile_required
def conversations():
    me = current_profile()
    rows = chat_service.list_conversations(me)
    return jsonify({"items": [conversation_json(c, me.id) for c in rows]})


@chat_bp.post("/conversations")
@login_required
@profile_required
def open_conversation():
    me = current_profile()
    other = profile_service.get_profile(json_body().get("profile_id") or 0)
    if other is None:
        raise NotFoundError("Profile not found")
    conv = chat_service.get_or_create_conversation(me, other)
    return jsonify(conversation_json(conv, me.id))


@chat_bp.get("/unread")
@login_required
@profile_required
def unread():
    return jsonify({"unread": chat_service.total_unread(current_profile())})


@chat_bp.get("/conversations/<int:conversation_id>/messages")
@login_required
@profile_required
def messages(conversation_id):
    conv = chat_service.get_conversation_for(conversation_id, current_profile())
    rows, next_cursor = chat_service.list_messages(conv, **page_args())
    return jsonify(page_response([message_json(m) for m in rows], next_cursor))


@chat_bp.post("/conversations/<int:conversation_id>/messages")
@login_required
@profile_required
def send(conversation_id):
    me = current_profile()
    conv = chat_service.get_conversation_for(conversation_id, me)
    msg = chat_service.send_message(conv, me, json_body().get("content"))
    return jsonify(message_json(msg)), 201


@chat_bp.post("/conversations/<int:conversation_id>/read")
@login_required
@profile_required
def mark_read(conversation_id):
    me = current_profile()
    chat_service.mark_read(chat_service.get_conversation_for(conversation_id, me), me)
    return jsonify({"ok": True})


@chat_bp.post("/conversations/<int:conversation_id>/job-offer")
@login_required
@roles_required("studio")
def job_offer(conversation_id):
    me = current_profile()
    data = json_body()
    conv = chat_service.get_conversation_for(conversation_id, me)
    application = job_service.get_application_or_404(data.get("application_id") or 0)
    msg = chat_service.send_job_offer(conv, me, application, data.get("details") or {})
    return jsonify(message_json(msg)), 201


@chat_bp.post("/conversations/<int:conversation_id>/gig-invite")
@login_required
@roles_required("studio")
def gig_invite(conversation_id):
    me = current_profile()
    data = json_body()
    conv = chat_service.get_conversation_for(conversation_id, me)
    application = guest_spot_service.get_application_or_404(data.get("application_id") or 0)
    msg = chat_service.send_gig_invite(conv, me, application, data.get("details") or {})
    return jsonify(message_json(msg)), 201


@chat_bp.post("/messages/<int:message_id>/respond")
@login_required
@roles_required("instructor")
def respond(message_id):
    me = current_profile()
    msg = chat_service.get_message_for(message_id, me)
    app = chat_service.respond_to_offer(msg, me, (json_body().get("response") or "").strip().lower())
    return jsonify({"message": message_json(msg), "application": application_json(app)})


@chat_bp.post("/offers")
@login_required
@roles_required("studio")
def start_with_offer():
    """Open (or reuse) a conversation with an instructor and send an offer."""
    me = current_profile()
    data = json_body()
    instructor = profile_service.get_profile(data.get("instructor_id") or 0)
    if instructor is None:
        raise NotFoundError("Instructor not found")
    if data.get("job_id"):
        posting = job_service.get_job_or_404(data["job_id"])
    elif data.get("guest_spot_id"):
        posting = guest_spot_service.get_guest_spot_or_404(data["guest_spot_id"])
    else:
        raise ValidationError("A job or guest spot is required")

    conv, msg = chat_service.start_conversation_with_offer(
        me, instructor, posting, data.get("details") or {}, data.get("intro"))
    return jsonify({"conversation": conversation_json(conv, me.id), "message": message_json(msg)}), 201
