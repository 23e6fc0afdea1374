# fitwork/blueprints/utils.py
from flask import abort, request

from ..auth_context import viewer

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        abort(400)
    return data


def arg_list(name: str) -> list[str]:
    """``?styles=yoga,hiit`` and ``?styles=yoga&styles=hiit`` both work."""
    out = []
    for raw in request.args.getlist(name):
        out.extend(p.strip() for p in raw.split(",") if p.strip())
    return out


def arg_bool(name: str):
    raw = (request.args.get(name) or "").strip().lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    return None


def page_args() -> dict:
    return {"cursor": request.args.get("cursor") or None, "limit": request.args.get("limit")}


def page_response(items, next_cursor):
    return {"items": items, "next_cursor": next_cursor}


def current_profile():
    """Profile of the signed-in user; 403 when they have none."""
    ctx = viewer()
    if ctx.profile is None:
        abort(403)
    return ctx.profile
