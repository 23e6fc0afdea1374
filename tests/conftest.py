import pytest

from fitwork import create_app
from fitwork.config import TestConfig
from fitwork.extensions import db
from fitwork.models import Profile, ProfileExperience, User

PASSWORD = "secret123"

COMPLETE_INSTRUCTOR = {
    "full_name": "Jamie Rivers",
    "headline": "Power yoga and mobility coach",
    "location": "Stockholm",
    "bio": "Certified yoga instructor with a decade of studio and private sessions behind me.",
    "experience": [{"title": "Lead instructor", "company": "Flow Studio", "period": "2019-2024"}],
    "availability_slots": ["mon-am", "wed-pm"],
    "certifications": ["RYT-200"],
    "fitness_styles": ["yoga", "mobility"],
}


@pytest.fixture
def app(tmp_path):
    class Cfg(TestConfig):
        UPLOAD_FOLDER = str(tmp_path / "uploads")
        LOG_DIR = str(tmp_path / "logs")

    app = create_app(Cfg)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """Pushed app context for service-level tests."""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


# ---- factories (need an app context) ----

def make_user(role="instructor", email=None, name=None):
    n = User.query.count() + 1
    user = User(email=email or f"{role}{n}@example.com", display_name=name or f"{role.title()} {n}", role=role)
    user.set_password(PASSWORD)
    db.session.add(user)
    db.session.commit()
    return user


def make_profile(user, status="draft", completed=False, **fields):
    p = Profile(user_id=user.id, email=user.email, user_type=user.role, status=status,
                profile_completed=completed, **fields)
    db.session.add(p)
    db.session.commit()
    return p


def make_instructor(status="verified", completed=True, **fields):
    user = make_user("instructor")
    data = {k: v for k, v in COMPLETE_INSTRUCTOR.items() if k != "experience"}
    data.update(fields)
    p = make_profile(user, status=status, completed=completed, **data)
    p.experience = [ProfileExperience(position=0, title="Lead instructor")]
    db.session.commit()
    return p


def make_studio(status="verified", completed=True, **fields):
    user = make_user("studio")
    data = {"name": f"Studio {user.id}", "location": "Stockholm"}
    data.update(fields)
    return make_profile(user, status=status, completed=completed, **data)


def make_admin():
    return make_user("admin")


# ---- HTTP helpers ----

def login(client, email, password=PASSWORD):
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()


def register(client, role="instructor", email=None, name="New Member"):
    resp = client.post("/auth/register", json={
        "display_name": name,
        "email": email or f"new-{role}@example.com",
        "role": role,
        "password": PASSWORD,
    })
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()
