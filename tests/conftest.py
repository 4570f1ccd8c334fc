"""Pytest fixtures shared across test modules."""

import os
import threading
import time
import uuid
from collections.abc import Generator
from datetime import datetime
from decimal import Decimal

# Set env vars BEFORE any moneyflow module is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["VAPID_PUBLIC_KEY"] = "test-public-key"
os.environ["VAPID_PRIVATE_KEY"] = "test-private-key"
os.environ["CRON_SECRET_TOKEN"] = "test-cron-secret"
os.environ["ALERT_MAX_CONCURRENCY"] = "1"
os.environ["ALERT_TIMEZONE"] = "UTC"

import pytest
from fastapi.testclient import TestClient
from pywebpush import WebPushException
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from moneyflow.api import deps
from moneyflow.core.security import create_access_token
from moneyflow.db.base import Base
from moneyflow.db.models import Expense, Income, PushSubscription
from moneyflow.main import create_app
from moneyflow.services.alert_generator import AlertGenerator


class FakeResponse:
    def __init__(self, status_code: int):
        self.status_code = status_code
        self.text = ""


def _gone_error() -> WebPushException:
    return WebPushException("Push failed: 410 Gone", response=FakeResponse(410))


class StubTransport:
    """Records sends and replays a configured failure per endpoint."""

    def __init__(self, failures: dict | None = None, on_send=None, delay: float = 0.0):
        self.failures = dict(failures or {})
        self.on_send = on_send
        self.delay = delay
        self.sent: list[tuple[str, bytes]] = []
        self.in_flight = 0
        self.peak_in_flight = 0
        self._lock = threading.Lock()

    def send(self, subscription_info: dict, payload: bytes) -> None:
        endpoint = subscription_info["endpoint"]
        with self._lock:
            self.sent.append((endpoint, payload))
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            self._settle(endpoint)
        finally:
            with self._lock:
                self.in_flight -= 1

    def _settle(self, endpoint: str) -> None:
        if self.delay:
            time.sleep(self.delay)
        if self.on_send is not None:
            self.on_send(endpoint)
        error = self.failures.get(endpoint)
        if error is not None:
            raise error

    @property
    def endpoints(self) -> list[str]:
        return [endpoint for endpoint, _ in self.sent]


@pytest.fixture(scope="session")
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine, expire_on_commit=False)


@pytest.fixture()
def file_session_factory(tmp_path):
    """Sessions on a file database so worker threads get their own connections."""

    engine = create_engine(
        f"sqlite:///{tmp_path / 'notifications.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
    finally:
        engine.dispose()


@pytest.fixture()
def db_session(session_factory) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def clean_tables(db_engine) -> Generator[None, None, None]:
    yield
    with db_engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture()
def transport() -> StubTransport:
    return StubTransport()


@pytest.fixture()
def gone_error():
    """Factory for the error a push service returns for an expired endpoint."""

    return _gone_error


@pytest.fixture()
def user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def add_subscription(db_session):
    def _add(user_id: uuid.UUID, endpoint: str) -> PushSubscription:
        subscription = PushSubscription(
            user_id=user_id,
            endpoint=endpoint,
            p256dh="client-public-key",
            auth="auth-secret",
        )
        db_session.add(subscription)
        db_session.commit()
        return subscription

    return _add


@pytest.fixture()
def add_expense(db_session):
    def _add(
        user_id: uuid.UUID,
        amount: str,
        date: datetime | None = None,
        due_date: datetime | None = None,
        paid_at: datetime | None = None,
        title: str = "Bill",
    ) -> Expense:
        expense = Expense(
            user_id=user_id,
            title=title,
            amount=Decimal(amount),
            date=date,
            due_date=due_date,
            paid_at=paid_at,
        )
        db_session.add(expense)
        db_session.commit()
        return expense

    return _add


@pytest.fixture()
def add_income(db_session):
    def _add(user_id: uuid.UUID, amount: str, date: datetime) -> Income:
        income = Income(user_id=user_id, source="Salary", amount=Decimal(amount), date=date)
        db_session.add(income)
        db_session.commit()
        return income

    return _add


@pytest.fixture()
def auth_headers(user_id) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture()
def client(db_session: Session, session_factory, transport) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_push_transport] = lambda: transport
    app.dependency_overrides[deps.get_alert_generator] = lambda: AlertGenerator(
        session_factory, transport, max_workers=1
    )
    with TestClient(app) as test_client:
        yield test_client
