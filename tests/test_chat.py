import pytest
from sqlalchemy.exc import OperationalError

from fitwork.extensions import db
from fitwork.models import ChatMessage, Conversation, JobApplication
from fitwork.services import chat_service, job_service
from fitwork.services.errors import InvalidTransition, PermissionDenied, ServiceError, ValidationError

from conftest import login, make_instructor, make_studio


@pytest.fixture
def pair(ctx):
    return make_studio(), make_instructor()


def test_conversation_is_unique_per_pair(pair):
    studio, instructor = pair
    a = chat_service.get_or_create_conversation(studio, instructor)
    b = chat_service.get_or_create_conversation(instructor, studio)
    assert a.id == b.id
    assert Conversation.query.count() == 1
    assert sorted(a.participants) == sorted([studio.id, instructor.id])


def test_concurrent_duplicate_reuses_existing_row(pair, monkeypatch):
    studio, instructor = pair
    existing = chat_service.get_or_create_conversation(studio, instructor)
    # Simulate a racing request that missed the first lookup
    real_find = chat_service.find_conversation
    calls = []

    def miss_once(a_id, b_id):
        calls.append(1)
        return None if len(calls) == 1 else real_find(a_id, b_id)

    monkeypatch.setattr(chat_service, "find_conversation", miss_once)
    again = chat_service.get_or_create_conversation(studio, instructor)
    assert again.id == existing.id
    assert Conversation.query.count() == 1


def test_send_message_updates_summary_and_unread(pair):
    studio, instructor = pair
    conv = chat_service.get_or_create_conversation(studio, instructor)
    chat_service.send_message(conv, studio, "Hello there")

    assert conv.last_message_content == "Hello there"
    assert conv.last_message_sender_id == studio.id
    assert conv.unread_for(instructor.id) == 1
    assert conv.unread_for(studio.id) == 0
    assert chat_service.total_unread(instructor) == 1

    chat_service.mark_read(conv, instructor)
    assert chat_service.total_unread(instructor) == 0
    assert ChatMessage.query.filter_by(read=False).count() == 0


def test_send_message_is_all_or_nothing(pair, monkeypatch):
    studio, instructor = pair
    conv = chat_service.get_or_create_conversation(studio, instructor)

    def boom():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db.session, "commit", boom)
    with pytest.raises(ServiceError) as exc:
        chat_service.send_message(conv, studio, "Will not arrive")
    assert exc.value.message == "Failed to send message"
    monkeypatch.undo()

    assert ChatMessage.query.count() == 0
    assert conv.unread_for(instructor.id) == 0
    assert conv.last_message_content is None


def test_outsider_and_empty_messages_are_refused(pair):
    studio, instructor = pair
    conv = chat_service.get_or_create_conversation(studio, instructor)
    with pytest.raises(PermissionDenied):
        chat_service.send_message(conv, make_instructor(), "hi")
    with pytest.raises(ValidationError):
        chat_service.send_message(conv, studio, "   ")


def test_job_offer_status_comes_from_application(pair):
    studio, instructor = pair
    job = job_service.create_job(studio, {"position": "Weekend yoga"})
    conv, msg = chat_service.start_conversation_with_offer(
        studio, instructor, job, {"title": "Weekend yoga", "rate": "600"}, intro="Hi Jamie")

    assert msg.type == "job_offer"
    assert msg.content == "Job offer for Weekend yoga"
    assert conv.last_message_content == "📋 Job Offer"
    assert conv.unread_for(instructor.id) == 2
    assert msg.application.status == "invited"

    chat_service.respond_to_offer(msg, instructor, "accepted")
    assert msg.application.status == "accepted"
    assert job_service.application_status(job, instructor.id)["status"] == "accepted"


def test_declining_withdraws_and_only_recipient_responds(pair):
    studio, instructor = pair
    job = job_service.create_job(studio, {"position": "Spin cover"})
    app = job_service.apply_to_job(job, instructor)
    conv = chat_service.get_or_create_conversation(studio, instructor)
    msg = chat_service.send_job_offer(conv, studio, app, {})
    assert app.status == "offered"
    assert msg.payload["title"] == "Spin cover"

    with pytest.raises(PermissionDenied):
        chat_service.respond_to_offer(msg, studio, "accepted")
    chat_service.respond_to_offer(msg, instructor, "declined")
    assert app.status == "withdrawn"


@pytest.mark.parametrize("final_status", ["rejected", "accepted"])
def test_no_offer_on_a_closed_application(pair, final_status):
    studio, instructor = pair
    job = job_service.create_job(studio, {"position": "Barre cover"})
    app = job_service.apply_to_job(job, instructor)
    job_service.update_application_status(app, studio, final_status)
    conv = chat_service.get_or_create_conversation(studio, instructor)

    with pytest.raises(InvalidTransition):
        chat_service.send_job_offer(conv, studio, app, {"rate": "500"})
    with pytest.raises(InvalidTransition):
        chat_service.start_conversation_with_offer(studio, instructor, job, {}, intro="Hello again")

    assert ChatMessage.query.count() == 0
    assert conv.unread_for(instructor.id) == 0
    assert conv.last_message_content is None
    assert app.status == final_status


def test_offer_can_be_resent_while_invited_or_offered(pair):
    studio, instructor = pair
    job = job_service.create_job(studio, {"position": "Pilates mornings"})
    conv, first = chat_service.start_conversation_with_offer(studio, instructor, job, {})
    second = chat_service.send_job_offer(conv, studio, first.application, {"rate": "650"})
    assert second.application.status == "invited"
    assert conv.unread_for(instructor.id) == 2


def test_offer_with_new_invite_is_all_or_nothing(pair, monkeypatch):
    studio, instructor = pair
    job = job_service.create_job(studio, {"position": "Evening spin"})
    conv = chat_service.get_or_create_conversation(studio, instructor)

    def boom():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db.session, "commit", boom)
    with pytest.raises(ServiceError) as exc:
        chat_service.start_conversation_with_offer(studio, instructor, job, {}, intro="Hi")
    assert exc.value.message == "Failed to start conversation"
    monkeypatch.undo()

    assert JobApplication.query.count() == 0
    assert ChatMessage.query.count() == 0
    assert job_service.get_job(job.id).applicant_count == 0
    assert conv.unread_for(instructor.id) == 0


def test_messages_page_oldest_first(pair):
    studio, instructor = pair
    conv = chat_service.get_or_create_conversation(studio, instructor)
    for i in range(3):
        chat_service.send_message(conv, studio if i % 2 == 0 else instructor, f"m{i}")

    first, cursor = chat_service.list_messages(conv, limit=2)
    rest, end = chat_service.list_messages(conv, cursor=cursor, limit=2)
    assert [m.content for m in first + rest] == ["m0", "m1", "m2"]
    assert end is None


def test_chat_over_http(app, client):
    with app.app_context():
        studio = make_studio()
        instructor = make_instructor()
        studio_email, instructor_email, instructor_id = studio.user.email, instructor.user.email, instructor.id

    login(client, studio_email)
    conv = client.post("/chat/conversations", json={"profile_id": instructor_id}).get_json()
    sent = client.post(f"/chat/conversations/{conv['id']}/messages", json={"content": "Hey!"})
    assert sent.status_code == 201

    other = app.test_client()
    login(other, instructor_email)
    assert other.get("/chat/unread").get_json() == {"unread": 1}
    items = other.get(f"/chat/conversations/{conv['id']}/messages").get_json()["items"]
    assert [m["content"] for m in items] == ["Hey!"]
    other.post(f"/chat/conversations/{conv['id']}/read")
    assert other.get("/chat/unread").get_json() == {"unread": 0}
