"""Keyset (cursor) pagination.

A cursor is URL-safe base64 over a small JSON document holding the sort key
of the last row a client received. Resuming from it returns rows strictly
after that key in ``(position DESC, id DESC)`` order.
"""

from __future__ import annotations

import base64
import binascii
import json
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TypeVar

from aycl_api.core.errors import HttpError


DEFAULT_LIMIT = 20
MAX_LIMIT = 100

T = TypeVar("T")


@dataclass(frozen=True)
class SortKey:
    position: datetime
    id: uuid.UUID


@dataclass(frozen=True)
class CursorPagination:
    limit: int
    after: SortKey | None


def encode_cursor(key: SortKey) -> str:
    raw = json.dumps({"p": key.position.isoformat(), "id": str(key.id)}, separators=(",", ":"))
    return base64.urlsafe_b64encode(raw.encode()).decode().rstrip("=")


def decode_cursor(cursor: str) -> SortKey:
    padded = cursor + "=" * (-len(cursor) % 4)
    try:
        document = json.loads(base64.urlsafe_b64decode(padded.encode()))
        return SortKey(position=datetime.fromisoformat(document["p"]), id=uuid.UUID(document["id"]))
    except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError) as exc:
        raise HttpError(400, "INVALID_CURSOR", "Cursor is malformed") from exc


def parse_cursor_pagination(limit: int | None, cursor: str | None) -> CursorPagination:
    resolved = DEFAULT_LIMIT if limit is None else max(1, min(limit, MAX_LIMIT))
    return CursorPagination(limit=resolved, after=decode_cursor(cursor) if cursor else None)


def build_page(rows: Sequence[T], limit: int, key: Callable[[T], SortKey]) -> tuple[list[T], str | None]:
    """Trim a ``limit + 1`` fetch to one page and derive the cursor for the next one."""
    items = list(rows[:limit])
    if len(rows) <= limit or not items:
        return items, None
    return items, encode_cursor(key(items[-1]))
