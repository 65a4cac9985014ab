from __future__ import annotations

import uuid
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from aycl_api.auth.tokens import TokenClaims, create_access_token
from aycl_api.core.config import get_settings
from aycl_api.core.database import Base, get_db
from aycl_api.main import app
from aycl_api.models import AuditLog, Referral, User


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
def setup_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    monkeypatch.setenv("REFERRAL_BASE_URL", "https://app.aycl.test/")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def user(db_session: Session) -> User:
    record = User(code11="RES00000001", password_hash="x", role="reseller")
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture()
def client(db_session: Session, user: User) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    token = create_access_token(TokenClaims(sub=str(user.id), code11=user.code11, role="reseller"))
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        test_client.headers.update({"Authorization": f"Bearer {token}"})
        yield test_client
    app.dependency_overrides.clear()


def test_create_and_list_referrals(client: TestClient, user: User, db_session: Session) -> None:
    response = client.post("/referrals", json={"code": "SPRING24"})

    assert response.status_code == 201
    body = response.json()
    assert body["code"] == "SPRING24"
    assert body["owner_user_id"] == str(user.id)

    listed = client.get("/referrals")
    assert listed.status_code == 200
    assert isinstance(listed.json(), list)
    assert [item["code"] for item in listed.json()] == ["SPRING24"]

    entry = db_session.scalar(select(AuditLog).where(AuditLog.action == "referral.create"))
    assert entry is not None
    assert entry.entity_id == body["id"]


def test_create_referral_for_another_owner(client: TestClient) -> None:
    owner = str(uuid.uuid4())

    response = client.post("/referrals", json={"code": "PARTNER1", "owner_user_id": owner})

    assert response.status_code == 201
    assert response.json()["owner_user_id"] == owner


def test_duplicate_referral_code_conflicts(client: TestClient, db_session: Session) -> None:
    assert client.post("/referrals", json={"code": "DUPL1CATE"}).status_code == 201

    response = client.post("/referrals", json={"code": "DUPL1CATE"})

    assert response.status_code == 409
    assert response.json()["code"] == "REFERRAL_CODE_TAKEN"
    assert db_session.scalar(select(func.count(Referral.id))) == 1


def test_referral_code_too_short(client: TestClient) -> None:
    response = client.post("/referrals", json={"code": "abc"})

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_referral_stats_groups_by_owner(client: TestClient, user: User) -> None:
    other = str(uuid.uuid4())
    client.post("/referrals", json={"code": "MINE0001"})
    client.post("/referrals", json={"code": "MINE0002"})
    client.post("/referrals", json={"code": "THEIRS01", "owner_user_id": other})

    response = client.get("/referrals/stats")

    assert response.status_code == 200
    stats = {item["owner_user_id"]: item["codes"] for item in response.json()}
    assert stats == {str(user.id): 2, other: 1}


def test_my_referral_generates_once(client: TestClient, user: User, db_session: Session) -> None:
    first = client.get("/referrals/me")

    assert first.status_code == 200
    body = first.json()
    assert body["code"].startswith("AYCL-")
    assert len(body["code"]) == len("AYCL-") + 8
    assert body["link"] == f"https://app.aycl.test/r/{body['code']}"

    second = client.get("/referrals/me")
    assert second.json() == body

    assert db_session.scalar(select(func.count(Referral.id))) == 1
    db_session.expire_all()
    refreshed = db_session.get(User, user.id)
    assert refreshed.referral_code == body["code"]
    assert refreshed.referral_link == body["link"]
    assert str(refreshed.referral_id) == body["id"]

    created_audits = db_session.scalars(select(AuditLog).where(AuditLog.action == "referral.create")).all()
    assert len(created_audits) == 1


def test_my_referral_links_existing_owned_code(client: TestClient, user: User, db_session: Session) -> None:
    created = client.post("/referrals", json={"code": "OWNED123"}).json()

    response = client.get("/referrals/me")

    assert response.status_code == 200
    assert response.json()["id"] == created["id"]
    assert response.json()["code"] == "OWNED123"
    assert db_session.scalar(select(func.count(Referral.id))) == 1


def test_my_referral_requires_known_user(db_session: Session) -> None:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    token = create_access_token(TokenClaims(sub=str(uuid.uuid4()), code11="RES00000009", role="reseller"))
    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as test_client:
            response = test_client.get("/referrals/me", headers={"Authorization": f"Bearer {token}"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 404
    assert response.json()["code"] == "USER_NOT_FOUND"


def test_unknown_referral_subroute(client: TestClient) -> None:
    response = client.get("/referrals/leaderboard")

    assert response.status_code == 404
    assert response.json()["code"] == "REFERRAL_ROUTE_NOT_FOUND"
