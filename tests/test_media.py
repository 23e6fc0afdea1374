import base64
import io

import pytest

from fitwork.services import media_service
from fitwork.services.errors import ServiceError, ValidationError

from conftest import login, make_instructor

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"
PNG = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()
CDN = "https://res.cloudinary.com/demo/image/upload/v1/fitwork/a.jpg"


def test_optimized_url_inserts_transforms():
    assert media_service.optimized_url(CDN, width=400, height=300) == \
        "https://res.cloudinary.com/demo/image/upload/q_80,f_auto,w_400,h_300/v1/fitwork/a.jpg"
    assert media_service.optimized_url(CDN, quality=60, fmt="webp") == \
        "https://res.cloudinary.com/demo/image/upload/q_60,f_webp/v1/fitwork/a.jpg"


def test_optimized_url_leaves_other_urls_alone():
    assert media_service.optimized_url("/media/x.png", width=10) == "/media/x.png"
    assert media_service.optimized_url("") == ""


def test_inline_detection():
    assert media_service.is_inline_image(PNG)
    assert not media_service.is_inline_image("https://example.com/a.png")
    assert not media_service.is_inline_image(None)


def test_local_upload_round_trip(app, ctx):
    url = media_service.upload_inline_image(PNG, "instructors", 7, "profile")
    assert url.startswith("/media/fitwork/instructors/7/profile/") and url.endswith(".png")

    resp = app.test_client().get(url)
    assert resp.status_code == 200
    assert resp.data == PNG_BYTES


def test_svg_and_garbage_are_refused(ctx):
    svg = "data:image/svg+xml;base64," + base64.b64encode(b"<svg/>").decode()
    with pytest.raises(ValidationError):
        media_service.upload_inline_image(svg, "x")
    with pytest.raises(ValidationError):
        media_service.upload_inline_image("data:image/png;base64,***", "x")


def test_cloudinary_backend_posts_to_upload_api(ctx, monkeypatch):
    ctx.config.update(MEDIA_BACKEND="cloudinary", CLOUDINARY_CLOUD_NAME="demo",
                      CLOUDINARY_UPLOAD_PRESET="unsigned")
    seen = {}

    class Resp:
        ok = True
        status_code = 200

        def json(self):
            return {"secure_url": CDN}

    def fake_post(url, data, timeout):
        seen.update(url=url, data=data)
        return Resp()

    monkeypatch.setattr(media_service.requests, "post", fake_post)
    assert media_service.upload_inline_image(PNG, "studios", 3, "images") == CDN
    assert seen["url"] == "https://api.cloudinary.com/v1_1/demo/image/upload"
    assert seen["data"]["folder"] == "fitwork/studios/3/images"


def test_cloudinary_needs_configuration(ctx):
    ctx.config.update(MEDIA_BACKEND="cloudinary", CLOUDINARY_CLOUD_NAME=None)
    with pytest.raises(ServiceError):
        media_service.upload_inline_image(PNG, "x")


def test_multipart_upload_endpoint(app, client):
    with app.app_context():
        email = make_instructor().user.email
    login(client, email)
    resp = client.post("/media/upload", data={"file": (io.BytesIO(PNG_BYTES), "me.png")},
                       content_type="multipart/form-data")
    assert resp.status_code == 201
    url = resp.get_json()["url"]
    assert client.get(url).data == PNG_BYTES

    bad = client.post("/media/upload", data={"file": (io.BytesIO(b"x"), "run.exe")},
                      content_type="multipart/form-data")
    assert bad.status_code == 400
