# fitwork/services/media_service.py
"""Object storage for profile and studio images.

Images arrive either as multipart uploads or inline ``data:image/...`` URLs
from the profile editor. Inline data is never persisted on a row: it is
stored first and replaced with its URL. ``MEDIA_BACKEND`` picks local disk
(served from ``/media/``) or Cloudinary.
"""
from __future__ import annotations

import base64
import binascii
import logging
import re
import uuid
from pathlib import Path

import requests
from flask import current_app
from werkzeug.utils import secure_filename

from .errors import ServiceError, ValidationError

log = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r"^data:image/(?P<ext>[a-zA-Z0-9.+-]+);base64,(?P<data>.+)$", re.DOTALL)
CLOUDINARY_API = "https://api.cloudinary.com/v1_1"


def _ensure_base() -> Path:
    base = current_app.config.get("UPLOAD_FOLDER")
    if not base:
        base = Path(current_app.instance_path) / "uploads"
    else:
        base = Path(base)
    base.mkdir(parents=True, exist_ok=True)
    return base


def _allowed_types() -> set:
    return current_app.config.get("ALLOWED_IMAGE_TYPES") or {"png", "jpeg", "jpg", "webp", "gif"}


def allowed_ext(filename: str) -> bool:
    suffix = Path(filename).suffix.lower().lstrip(".")
    return bool(suffix) and suffix in _allowed_types()


def is_inline_image(value) -> bool:
    return isinstance(value, str) and value.startswith("data:image")


def is_cdn_url(url: str) -> bool:
    return "cloudinary.com" in (url or "")


def is_stored_url(value) -> bool:
    return isinstance(value, str) and (value.startswith("http") or value.startswith("/media/"))


def _folder(*parts) -> str:
    root = current_app.config.get("MEDIA_ROOT_FOLDER", "fitwork")
    return "/".join([root, *[str(p) for p in parts if p not in (None, "")]])


# ---- local disk ----

def save_upload(file_storage, subdir: str = "") -> str:
    """
    Saves file to UPLOAD_FOLDER / subdir / <unique safe name>, returns its public URL.
    """
    base = _ensure_base()
    safe_name = secure_filename(file_storage.filename or "")
    if not safe_name:
        raise ValidationError("Empty filename")
    if not allowed_ext(safe_name):
        raise ValidationError(f"Unsupported file type: {safe_name}")

    target_dir = base / subdir if subdir else base
    target_dir.mkdir(parents=True, exist_ok=True)

    dest = target_dir / f"{uuid.uuid4().hex[:12]}_{safe_name}"
    file_storage.save(dest)
    return "/media/" + dest.relative_to(base).as_posix()


def _decode_data_url(data_url: str) -> tuple[str, bytes]:
    m = _DATA_URL_RE.match(data_url or "")
    if not m:
        raise ValidationError("Image data is not a valid base64 data URL")
    ext = m.group("ext").lower()
    if ext == "svg+xml" or ext not in _allowed_types():
        raise ValidationError(f"Unsupported image type: {ext}")
    try:
        raw = base64.b64decode(m.group("data"), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Image data is not valid base64") from None
    return ("jpg" if ext == "jpeg" else ext), raw


def _store_local(data_url: str, folder: str) -> str:
    ext, raw = _decode_data_url(data_url)
    base = _ensure_base()
    target_dir = base / folder
    target_dir.mkdir(parents=True, exist_ok=True)
    dest = target_dir / f"{uuid.uuid4().hex}.{ext}"
    dest.write_bytes(raw)
    return "/media/" + dest.relative_to(base).as_posix()


# ---- Cloudinary ----

def _store_cloudinary(data_url: str, folder: str, resource_type: str = "image") -> str:
    cloud = current_app.config.get("CLOUDINARY_CLOUD_NAME")
    preset = current_app.config.get("CLOUDINARY_UPLOAD_PRESET")
    if not cloud or not preset:
        raise ServiceError("Image storage is not configured")

    resp = requests.post(
        f"{CLOUDINARY_API}/{cloud}/{resource_type}/upload",
        data={"file": data_url, "upload_preset": preset, "folder": folder},
        timeout=30,
    )
    if not resp.ok:
        try:
            detail = resp.json().get("error", {}).get("message")
        except ValueError:
            detail = resp.text[:200]
        log.error("Cloudinary upload failed (%s): %s", resp.status_code, detail)
        raise ServiceError("Failed to upload image")
    return resp.json()["secure_url"]


def upload_inline_image(data_url: str, *folder_parts) -> str:
    """Store one inline image and return the URL to persist instead."""
    folder = _folder(*folder_parts)
    backend = (current_app.config.get("MEDIA_BACKEND") or "local").lower()
    try:
        if backend == "cloudinary":
            return _store_cloudinary(data_url, folder)
        return _store_local(data_url, folder)
    except requests.RequestException:
        log.exception("upload_inline_image failed for folder=%s", folder)
        raise ServiceError("Failed to upload image") from None


def resolve_image(value, *folder_parts):
    if is_inline_image(value):
        return upload_inline_image(value, *folder_parts)
    return value


def resolve_image_list(values, *folder_parts) -> list:
    """Upload inline entries, keep stored URLs, drop anything else."""
    out = []
    for v in values or []:
        if is_inline_image(v):
            out.append(upload_inline_image(v, *folder_parts))
        elif is_stored_url(v):
            out.append(v)
    return out


def optimized_url(url: str, width: int | None = None, height: int | None = None,
                  quality: int = 80, fmt: str = "auto") -> str:
    """Insert resize/quality/format segments into a CDN URL; other URLs pass through."""
    if not url or not is_cdn_url(url):
        return url
    transforms = [f"q_{quality}", f"f_{fmt}"]
    if width:
        transforms.append(f"w_{width}")
    if height:
        transforms.append(f"h_{height}")
    return url.replace("/upload/", f"/upload/{','.join(transforms)}/", 1)
