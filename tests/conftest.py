from __future__ import annotations

from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from taskmarket.api.dependencies.auth import get_db
from taskmarket.core.security import create_access_token
from taskmarket.db.models import Account
from taskmarket.db.models.enums import Role
from taskmarket.db.session import Base, build_engine
from taskmarket.main import app
from taskmarket.services.accounts import open_account


@pytest.fixture
def test_engine():
    engine = build_engine("sqlite+pysqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def db_session(test_engine) -> Generator[Session, None, None]:
    with Session(test_engine) as session:
        yield session


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def create_account(db_session: Session) -> Callable[..., Account]:
    def _create_account(
        *,
        email: str,
        role: Role = Role.BUYER,
        password: str = "super-secret-password",
        name: str = "",
    ) -> Account:
        account = open_account(
            db_session,
            email=email,
            name=name or email.split("@")[0],
            password=password,
            role=role,
        )
        db_session.commit()
        db_session.refresh(account)
        return account

    return _create_account


@pytest.fixture
def auth_headers(client: TestClient) -> Callable[[str, str], dict[str, str]]:
    def _auth_headers(email: str, password: str = "super-secret-password") -> dict[str, str]:
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        token = response.json()["access_token"]
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def token_for_account() -> Callable[[Account], str]:
    def _token_for_account(account: Account) -> str:
        token, _ = create_access_token(
            account_id=account.id,
            email=account.email,
            role=account.role.value,
        )
        return token

    return _token_for_account
