# fitwork/services/pagination.py
"""Keyset ("start after") pagination.

A page is ordered by ``(sort_expr, id)``. The cursor handed back to the client
is a signed token holding the last row's sort value and id; the next page
starts strictly after that pair, so rows inserted meanwhile never shift it.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from flask import current_app
from itsdangerous import URLSafeSerializer, BadSignature
from sqlalchemy import and_, or_

from .errors import ValidationError


def _serializer() -> URLSafeSerializer:
    return URLSafeSerializer(current_app.config["SECRET_KEY"], salt="page-cursor")


def _encode_value(v):
    if isinstance(v, datetime):
        return {"dt": v.isoformat()}
    return v


def _decode_value(v):
    if isinstance(v, dict) and "dt" in v:
        return datetime.fromisoformat(v["dt"])
    return v


def encode_cursor(sort_value, row_id: int) -> str:
    return _serializer().dumps([_encode_value(sort_value), row_id])


def decode_cursor(token: str):
    try:
        value, row_id = _serializer().loads(token)
        return _decode_value(value), int(row_id)
    except (BadSignature, ValueError, TypeError):
        raise ValidationError("Invalid page cursor") from None


def clamp_limit(limit) -> int:
    default = current_app.config.get("PAGE_SIZE", 20)
    maximum = current_app.config.get("MAX_PAGE_SIZE", 100)
    try:
        limit = int(limit) if limit not in (None, "") else default
    except (TypeError, ValueError):
        limit = default
    return max(1, min(limit, maximum))


def keyset_page(query, sort_expr, id_col, *, cursor: Optional[str] = None,
                limit=None, descending: bool = True, value_of=None):
    """Return ``(rows, next_cursor)``; ``next_cursor`` is None on the last page.

    ``value_of(row)`` must return the same value ``sort_expr`` evaluates to.
    """
    limit = clamp_limit(limit)
    if cursor:
        last_value, last_id = decode_cursor(cursor)
        if descending:
            query = query.filter(or_(sort_expr < last_value,
                                     and_(sort_expr == last_value, id_col < last_id)))
        else:
            query = query.filter(or_(sort_expr > last_value,
                                     and_(sort_expr == last_value, id_col > last_id)))

    if descending:
        query = query.order_by(sort_expr.desc(), id_col.desc())
    else:
        query = query.order_by(sort_expr.asc(), id_col.asc())

    rows = query.limit(limit + 1).all()
    has_more = len(rows) > limit
    rows = rows[:limit]
    next_cursor = None
    if has_more and rows:
        last = rows[-1]
        next_cursor = encode_cursor(value_of(last), last.id)
    return rows, next_cursor
