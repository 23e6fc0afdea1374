from fitwork.extensions import db
from fitwork.models import PendingRegistration, User

from conftest import PASSWORD, register


def test_register_creates_draft_profile(client):
    data = register(client, role="studio", email="core@example.com", name="Core Lab")
    assert data["user"]["role"] == "studio"
    assert data["profile"]["status"] == "draft"
    assert data["profile"]["name"] == "Core Lab"
    assert data["profile_status"]["is_draft"] is True

    me = client.get("/auth/me").get_json()
    assert me["user"]["email"] == "core@example.com"


def test_register_rejects_duplicates_and_weak_passwords(client):
    register(client, email="dup@example.com")
    client.post("/auth/logout")
    resp = client.post("/auth/register", json={
        "display_name": "Again", "email": "dup@example.com", "role": "instructor", "password": PASSWORD})
    assert resp.status_code == 400
    assert "email" in resp.get_json()["fields"]

    weak = client.post("/auth/register", json={
        "display_name": "Weak", "email": "weak@example.com", "role": "instructor", "password": "short"})
    assert weak.status_code == 400
    assert "password" in weak.get_json()["fields"]


def test_login_logout(client):
    register(client, email="a@example.com")
    client.post("/auth/logout")
    assert client.get("/auth/me").status_code == 401

    bad = client.post("/auth/login", json={"email": "a@example.com", "password": "wrong-pass1"})
    assert bad.status_code == 401
    ok = client.post("/auth/login", json={"email": "a@example.com", "password": PASSWORD})
    assert ok.status_code == 200
    assert client.get("/auth/me").status_code == 200


def test_email_link_signs_in_and_creates_account(app, client, monkeypatch):
    links = []
    monkeypatch.setattr("fitwork.services.email_service.send_signin_link",
                        lambda email, link: links.append(link) or True)

    resp = client.post("/auth/email-link", json={"email": "Link@Example.com", "role": "studio"})
    assert resp.status_code == 202
    assert len(links) == 1

    path = links[0].split("localhost", 1)[1]
    first = client.get(path)
    assert first.status_code == 201
    assert first.get_json()["user"]["role"] == "studio"
    assert first.get_json()["user"]["is_email_verified"] is True

    assert client.get(path).status_code == 400
    with app.app_context():
        assert User.query.filter_by(email="link@example.com").count() == 1
        assert db.session.query(PendingRegistration).one().consumed_at is not None


def test_tampered_link_is_refused(client):
    assert client.get("/auth/email-link/not-a-token").status_code == 400
