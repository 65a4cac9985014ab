from __future__ import annotations

import base64
import uuid
from datetime import datetime, timezone

import pytest

from aycl_api.core.errors import HttpError
from aycl_api.pagination import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    SortKey,
    build_page,
    decode_cursor,
    encode_cursor,
    parse_cursor_pagination,
)


KEY = SortKey(position=datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc), id=uuid.uuid4())


def test_cursor_is_opaque_and_decodes_to_key() -> None:
    cursor = encode_cursor(KEY)

    assert str(KEY.id) not in cursor
    assert decode_cursor(cursor) == KEY


@pytest.mark.parametrize(
    "cursor",
    [
        "not-base64!!",
        base64.urlsafe_b64encode(b"[1, 2]").decode(),
        base64.urlsafe_b64encode(b'{"p": "yesterday", "id": "x"}').decode(),
        base64.urlsafe_b64encode(b'{"p": "2024-05-01T00:00:00"}').decode(),
    ],
)
def test_malformed_cursor_is_rejected(cursor: str) -> None:
    with pytest.raises(HttpError) as exc_info:
        decode_cursor(cursor)

    assert exc_info.value.status == 400
    assert exc_info.value.code == "INVALID_CURSOR"


def test_limit_defaults_and_bounds() -> None:
    assert parse_cursor_pagination(None, None).limit == DEFAULT_LIMIT
    assert parse_cursor_pagination(0, None).limit == 1
    assert parse_cursor_pagination(5000, None).limit == MAX_LIMIT
    assert parse_cursor_pagination(7, None).after is None
    assert parse_cursor_pagination(7, encode_cursor(KEY)).after == KEY


def test_build_page_emits_cursor_only_when_more_rows_exist() -> None:
    keys = [SortKey(position=KEY.position, id=uuid.uuid4()) for _ in range(3)]

    items, next_cursor = build_page(keys, 2, lambda key: key)
    assert items == keys[:2]
    assert decode_cursor(next_cursor) == keys[1]

    items, next_cursor = build_page(keys[:2], 2, lambda key: key)
    assert items == keys[:2]
    assert next_cursor is None

    assert build_page([], 2, lambda key: key) == ([], None)
