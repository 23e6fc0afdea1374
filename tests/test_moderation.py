from datetime import datetime, timedelta

import pytest

from fitwork.extensions import db
from fitwork.services import moderation_service
from fitwork.services.errors import InvalidTransition, NotFoundError, ValidationError

from conftest import login, make_admin, make_instructor, make_studio


def test_list_pending_oldest_submission_first(ctx):
    now = datetime.utcnow()
    late = make_instructor(status="submitted", submitted_at=now)
    early = make_instructor(status="submitted", submitted_at=now - timedelta(hours=2))
    middle = make_studio(status="submitted", submitted_at=now - timedelta(hours=1))
    make_instructor(status="draft")

    assert [p.id for p in moderation_service.list_pending()] == [early.id, middle.id, late.id]
    assert [p.id for p in moderation_service.list_pending("studio")] == [middle.id]


def test_verify_stamps_reviewer(ctx):
    admin = make_admin()
    p = make_instructor(status="submitted", submitted_at=datetime.utcnow())
    moderation_service.verify(p.id, admin)
    assert p.status == "verified"
    assert p.verified_at is not None
    assert p.reviewed_by_id == admin.id


def test_verify_requires_submitted(ctx):
    admin = make_admin()
    p = make_instructor(status="draft")
    with pytest.raises(InvalidTransition):
        moderation_service.verify(p.id, admin)
    assert db.session.get(type(p), p.id).status == "draft"


def test_reject_needs_reason(ctx):
    admin = make_admin()
    p = make_instructor(status="submitted", submitted_at=datetime.utcnow())
    with pytest.raises(ValidationError):
        moderation_service.reject(p.id, "   ", admin)

    moderation_service.reject(p.id, "Photo is missing", admin)
    assert p.status == "rejected"
    assert p.rejection_reason == "Photo is missing"
    assert p.rejected_at is not None


def test_unknown_profile(ctx):
    with pytest.raises(NotFoundError):
        moderation_service.verify(9999, make_admin())


def test_profile_stats(ctx):
    make_instructor(status="submitted")
    make_instructor(status="verified")
    make_studio(status="draft")
    stats = moderation_service.profile_stats()
    assert stats["total"] == 3
    assert stats["pending"] == 1
    assert stats["verified"] == 1
    assert stats["draft"] == 1
    assert stats["rejected"] == 0


def test_admin_routes_verify_and_notify(app, client, monkeypatch):
    sent = []
    monkeypatch.setattr("fitwork.services.email_service.send_email",
                        lambda **kw: sent.append(kw) or True)
    with app.app_context():
        admin = make_admin()
        p = make_instructor(status="submitted", submitted_at=datetime.utcnow())
        admin_email, profile_id = admin.email, p.id

    login(client, admin_email)
    pending = client.get("/admin/profiles/pending").get_json()["items"]
    assert [row["id"] for row in pending] == [profile_id]

    resp = client.post(f"/admin/profiles/{profile_id}/verify")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "verified"
    assert sent and sent[0]["template"] == "profile_review.html"

    again = client.post(f"/admin/profiles/{profile_id}/verify")
    assert again.status_code == 409


def test_admin_routes_need_admin(app, client):
    with app.app_context():
        email = make_instructor().user.email
    assert client.get("/admin/profiles/pending").status_code == 401
    login(client, email)
    assert client.get("/admin/profiles/pending").status_code == 403


def test_suspended_user_is_signed_out_of_api(app, client):
    with app.app_context():
        admin = make_admin()
        p = make_instructor()
        admin_email, user_id, email = admin.email, p.user_id, p.user.email

    login(client, email)
    admin_client = client.application.test_client()
    login(admin_client, admin_email)
    assert admin_client.post("/admin/users/bulk-suspend", json={"ids": [user_id]}).get_json()["updated"] == 1

    resp = client.get("/auth/me")
    assert resp.status_code == 403
    assert "suspended" in resp.get_json()["error"]
