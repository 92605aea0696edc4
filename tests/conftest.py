"""Pytest fixtures for testing"""

import hashlib
import hmac
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Generator, Optional, Tuple
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from ravehub_gateway.api.main import create_app
from ravehub_gateway.config import settings
from ravehub_gateway.domain.installments import calculate_installment_plan
from ravehub_gateway.infrastructure.database.models import Base, TicketTransaction
from ravehub_gateway.infrastructure.database.repositories import InstallmentRepository, TransactionRepository
from ravehub_gateway.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_TOKEN = "test-admin-token"
ADMIN_PRINCIPAL = "ops@ravehub.test"
MERCADOPAGO_SECRET = "mp-test-secret"
WEBPAY_SECRET = "webpay-test-secret"


@pytest.fixture(autouse=True)
def test_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Known secrets and admin tokens for every test"""
    monkeypatch.setattr(settings, "admin_tokens", {ADMIN_TOKEN: ADMIN_PRINCIPAL})
    monkeypatch.setattr(settings, "mercadopago_webhook_secret", MERCADOPAGO_SECRET)
    monkeypatch.setattr(settings, "webpay_webhook_secret", WEBPAY_SECRET)
    monkeypatch.setattr(settings, "webhook_signature_required", True)


@pytest.fixture(autouse=True)
def revalidation_mock() -> Generator[AsyncMock, None, None]:
    """Never reach the storefront from tests"""
    with patch(
        "ravehub_gateway.infrastructure.clients.revalidation.RevalidationClient.revalidate_event_capacity",
        new_callable=AsyncMock,
    ) as mock:
        mock.return_value = []
        yield mock


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def make_transaction(db: Session) -> Callable[..., TicketTransaction]:
    """Factory for persisted transactions, with an installment schedule when requested"""

    def _make(
        payment_type: str = "full",
        installments: int = 1,
        total_amount: str = "300.00",
        reservation_amount: str = "0",
        payment_status: str = "pending",
        event_id: str = "evt-ultra-2025",
        delivery_mode: str = "automatic",
        download_available_at: Optional[datetime] = None,
    ) -> TicketTransaction:
        transaction = TransactionRepository(db).create_transaction(
            user_id="user-1",
            event_id=event_id,
            ticket_items=[{"zoneId": "vip", "zoneName": "VIP", "quantity": 2, "pricePerTicket": "150.00"}],
            total_amount=Decimal(total_amount),
            currency="CLP",
            payment_method="offline",
            payment_type=payment_type,
            ticket_delivery_mode=delivery_mode,
            tickets_download_available_at=download_available_at,
        )
        transaction.payment_status = payment_status

        if payment_type == "installment" and installments > 1:
            plan = calculate_installment_plan(total_amount, reservation_amount, installments, date(2025, 1, 31))
            InstallmentRepository(db).create_schedule(transaction.id, "CLP", plan.installments)

        db.commit()
        return transaction

    return _make


def _sign(payload: Dict[str, Any], secret: str) -> Tuple[bytes, Dict[str, str]]:
    body = json.dumps(payload).encode()
    signature = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return body, {"X-Signature": signature, "Content-Type": "application/json"}


@pytest.fixture
def sign_payload() -> Callable[[Dict[str, Any], str], Tuple[bytes, Dict[str, str]]]:
    """Serialize a webhook payload and sign it the way the gateway proxy does"""
    return _sign


@pytest.fixture
def session_factory(db: Session) -> sessionmaker:
    """Independent sessions on the test database, e.g. to simulate a concurrent writer"""
    return TestingSessionLocal
