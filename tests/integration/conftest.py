import json
from typing import Any, Dict, Optional

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.services.notification_service import LoggingNotificationService
from src.app.services.payment_provider import CheckoutSession, PaymentProvider
from src.depends import build_engine, get_notification_service, get_payment_provider, get_session
from src.domain.billing_rate import BillingRate
from src.domain.customer import Customer
from src.domain.project import Project


class FakePaymentProvider(PaymentProvider):
    """In-memory provider recording calls; webhooks are parsed without verification"""

    def __init__(self):
        self.calls = []
        self._counter = 0

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}_{self._counter}"

    async def create_customer(self, name: str, email: Optional[str], metadata: Dict[str, str]) -> str:
        self.calls.append(("create_customer", name))
        return self._next_id("cus")

    async def create_recurring_price(self, amount_cents, currency, interval, interval_count, product_name) -> str:
        self.calls.append(("create_recurring_price", amount_cents, interval, interval_count))
        return self._next_id("price")

    async def create_checkout_session(self, customer_id, price_id, cancel_at, metadata) -> CheckoutSession:
        self.calls.append(("create_checkout_session", customer_id, price_id, metadata))
        session_id = self._next_id("cs")
        return CheckoutSession(id=session_id, url=f"https://checkout.stripe.test/{session_id}")

    async def cancel_subscription(self, subscription_id: str) -> None:
        self.calls.append(("cancel_subscription", subscription_id))

    async def expire_checkout_session(self, session_id: str) -> None:
        self.calls.append(("expire_checkout_session", session_id))

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        event = json.loads(payload)
        if not isinstance(event, dict):
            raise ValueError("Webhook payload is not a JSON object")
        return event


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Create a file-backed SQLite database per test"""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'billing_test.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed(session_factory):
    """Customer, project and two rates (5000 and 10000 cents per hour)"""
    async with session_factory() as session:
        customer = Customer(id="cust-1", name="Acme Corp", email="ap@acme.test")
        project = Project(id="proj-1", customer_id=customer.id, name="Website rebuild")
        dev_rate = BillingRate(id="rate-dev", code="DEV", name="Development", unit_label="hour", rate_cents=5000)
        design_rate = BillingRate(
            id="rate-design", code="DESIGN", name="Design", unit_label="hour", rate_cents=10000
        )
        session.add_all([customer, project, dev_rate, design_rate])
        await session.commit()

    return {
        "customer_id": "cust-1",
        "project_id": "proj-1",
        "dev_rate_id": "rate-dev",
        "design_rate_id": "rate-design",
    }


@pytest_asyncio.fixture
async def payment_provider():
    return FakePaymentProvider()


@pytest_asyncio.fixture
async def client(session_factory, payment_provider):
    """Create test client with database session and provider overrides"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    # One session per request, like the real dependency
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_payment_provider] = lambda: payment_provider
    app.dependency_overrides[get_notification_service] = lambda: LoggingNotificationService()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
