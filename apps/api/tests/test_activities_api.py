from __future__ import annotations

import uuid
from collections.abc import Generator
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from aycl_api.auth.tokens import TokenClaims, create_access_token
from aycl_api.core.config import get_settings
from aycl_api.core.database import Base, get_db
from aycl_api.main import app
from aycl_api.models import Activity, AuditLog


USER_ID = str(uuid.uuid4())


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clear_settings() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    token = create_access_token(TokenClaims(sub=USER_ID, code11="SEL00000001", role="seller"))
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        test_client.headers.update({"Authorization": f"Bearer {token}"})
        yield test_client
    app.dependency_overrides.clear()


def _create(client: TestClient, **overrides) -> dict:
    payload = {"type": "call", "content": "Intro call"}
    payload.update(overrides)
    response = client.post("/activities", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_activity_records_actor_and_audit(client: TestClient, db_session: Session) -> None:
    company_id = str(uuid.uuid4())
    response = client.post(
        "/activities",
        json={"type": "meeting", "company_id": company_id, "content": "Kickoff", "metadata": {"room": "B2"}},
        headers={"X-Correlation-Id": "corr-activity-1"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["type"] == "meeting"
    assert body["actor_id"] == USER_ID
    assert body["company_id"] == company_id
    assert body["metadata"] == {"room": "B2"}
    assert body["occurred_at"]

    entry = db_session.scalar(select(AuditLog).where(AuditLog.action == "activity.create"))
    assert entry is not None
    assert entry.entity == "activity"
    assert entry.entity_id == body["id"]
    assert entry.actor_id == USER_ID
    assert entry.correlation_id == "corr-activity-1"
    assert entry.after_state["content"] == "Kickoff"


def test_create_activity_rejects_unknown_type(client: TestClient, db_session: Session) -> None:
    response = client.post("/activities", json={"type": "fax"})

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert any(detail["loc"][-1] == "type" for detail in body["details"])
    assert db_session.scalar(select(Activity)) is None


def test_get_activity_and_not_found(client: TestClient) -> None:
    created = _create(client)

    found = client.get(f"/activities/{created['id']}")
    assert found.status_code == 200
    assert found.json()["id"] == created["id"]

    missing = client.get(f"/activities/{uuid.uuid4()}")
    assert missing.status_code == 404
    assert missing.json()["code"] == "ACTIVITY_NOT_FOUND"

    malformed = client.get("/activities/not-a-uuid")
    assert malformed.status_code == 400
    assert malformed.json()["code"] == "VALIDATION_ERROR"


def test_patch_activity_changes_supplied_fields_only(client: TestClient, db_session: Session) -> None:
    created = _create(client, metadata={"a": 1})

    response = client.patch(f"/activities/{created['id']}", json={"content": "Follow-up call"})

    assert response.status_code == 200
    body = response.json()
    assert body["content"] == "Follow-up call"
    assert body["type"] == "call"
    assert body["metadata"] == {"a": 1}

    entry = db_session.scalar(select(AuditLog).where(AuditLog.action == "activity.update"))
    assert entry is not None
    assert entry.before_state["content"] == "Intro call"
    assert entry.after_state["content"] == "Follow-up call"


def test_patch_activity_with_empty_body_is_a_no_op(client: TestClient, db_session: Session) -> None:
    created = _create(client)

    response = client.patch(f"/activities/{created['id']}", json={})

    assert response.status_code == 200
    assert response.json() == created
    assert db_session.scalar(select(AuditLog).where(AuditLog.action == "activity.update")) is None


def test_patch_activity_rejects_null_type(client: TestClient) -> None:
    created = _create(client)

    response = client.patch(f"/activities/{created['id']}", json={"type": None})

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_patch_missing_activity_returns_not_found(client: TestClient) -> None:
    response = client.patch(f"/activities/{uuid.uuid4()}", json={"content": "x"})

    assert response.status_code == 404
    assert response.json()["code"] == "ACTIVITY_NOT_FOUND"


def test_delete_activity(client: TestClient, db_session: Session) -> None:
    created = _create(client)

    response = client.delete(f"/activities/{created['id']}")
    assert response.status_code == 204
    assert response.content == b""

    assert client.get(f"/activities/{created['id']}").status_code == 404
    assert client.delete(f"/activities/{created['id']}").json()["code"] == "ACTIVITY_NOT_FOUND"

    entry = db_session.scalar(select(AuditLog).where(AuditLog.action == "activity.delete"))
    assert entry is not None
    assert entry.before_state["id"] == created["id"]


def test_list_activities_pages_with_cursor(client: TestClient) -> None:
    base = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    created_ids = [
        _create(client, content=f"call {index}", occurred_at=(base + timedelta(minutes=index)).isoformat())["id"]
        for index in range(5)
    ]

    seen: list[str] = []
    cursor = None
    pages = 0
    while True:
        params = {"limit": 2}
        if cursor:
            params["cursor"] = cursor
        response = client.get("/activities", params=params)
        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) <= 2
        seen.extend(item["id"] for item in body["data"])
        pages += 1
        cursor = body["nextCursor"]
        if cursor is None:
            break

    assert pages == 3
    assert seen == list(reversed(created_ids))


def test_list_activities_cursor_handles_equal_timestamps(client: TestClient) -> None:
    occurred_at = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc).isoformat()
    created_ids = {_create(client, occurred_at=occurred_at)["id"] for _ in range(3)}

    first = client.get("/activities", params={"limit": 2}).json()
    second = client.get("/activities", params={"limit": 2, "cursor": first["nextCursor"]}).json()

    returned = [item["id"] for item in first["data"] + second["data"]]
    assert len(returned) == 3
    assert set(returned) == created_ids
    assert second["nextCursor"] is None


def test_list_activities_filters(client: TestClient) -> None:
    company_id = str(uuid.uuid4())
    _create(client, type="email", company_id=company_id, content="Proposal sent")
    _create(client, type="call", company_id=company_id)
    _create(client, type="email", content="Newsletter")

    by_company = client.get("/activities", params={"company_id": company_id}).json()["data"]
    assert len(by_company) == 2

    by_type = client.get("/activities", params={"type": "email"}).json()["data"]
    assert {item["content"] for item in by_type} == {"Proposal sent", "Newsletter"}

    by_query = client.get("/activities", params={"query": "proposal"}).json()["data"]
    assert [item["content"] for item in by_query] == ["Proposal sent"]


def test_list_activities_query_matches_wildcards_literally(client: TestClient) -> None:
    _create(client, content="Intro call")
    _create(client, content="Discount 50% agreed")

    percent = client.get("/activities", params={"query": "%"}).json()["data"]
    assert [item["content"] for item in percent] == ["Discount 50% agreed"]

    underscore = client.get("/activities", params={"query": "_"}).json()["data"]
    assert underscore == []


def test_list_activities_date_range(client: TestClient) -> None:
    _create(client, content="old", occurred_at="2024-01-01T00:00:00Z")
    _create(client, content="new", occurred_at="2024-06-01T00:00:00Z")

    response = client.get("/activities", params={"date_from": "2024-03-01T00:00:00Z"})

    assert [item["content"] for item in response.json()["data"]] == ["new"]


def test_list_activities_rejects_bad_cursor(client: TestClient) -> None:
    response = client.get("/activities", params={"cursor": "not-a-cursor"})

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_CURSOR"


def test_list_activities_caps_limit(client: TestClient) -> None:
    response = client.get("/activities", params={"limit": 1000})

    assert response.status_code == 200
    assert response.json() == {"data": [], "nextCursor": None}


def test_unknown_activity_subroute(client: TestClient) -> None:
    response = client.get(f"/activities/{uuid.uuid4()}/attachments")

    assert response.status_code == 404
    assert response.json()["code"] == "ACTIVITY_ROUTE_NOT_FOUND"


def test_list_activities_clamps_small_limit(client: TestClient) -> None:
    _create(client, content="first")
    _create(client, content="second")

    response = client.get("/activities", params={"limit": 0})

    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 1
    assert body["nextCursor"] is not None
