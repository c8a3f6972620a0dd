from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.notification_service import create_notification_service
from src.adapter.services.payment_provider import StripePaymentProvider
from src.adapter.services.pdf_service import ReportLabPdfService
from src.app.services.notification_service import NotificationService
from src.app.services.payment_provider import PaymentProvider, PaymentProviderSettings
from src.app.services.pdf_service import PdfService


def build_engine(db_uri: str):
    connect_args = {}
    if db_uri.startswith("sqlite"):
        connect_args = {"timeout": 5}

    new_engine = create_async_engine(db_uri, echo=False, future=True, connect_args=connect_args)

    if db_uri.startswith("sqlite"):
        @event.listens_for(new_engine.sync_engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


engine = build_engine(ApplicationConfig.DB_URI)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

payment_provider_settings = PaymentProviderSettings(
    secret_key=ApplicationConfig.STRIPE_SECRET_KEY,
    webhook_secret=ApplicationConfig.STRIPE_WEBHOOK_SECRET,
    success_url=f"{ApplicationConfig.PORTAL_BASE_URL}?payment_plan=accepted",
    cancel_url=f"{ApplicationConfig.PORTAL_BASE_URL}?payment_plan=cancelled",
)


async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


def get_payment_provider_settings() -> PaymentProviderSettings:
    return payment_provider_settings


def get_payment_provider() -> PaymentProvider:
    return StripePaymentProvider(payment_provider_settings)


def get_notification_service() -> NotificationService:
    return create_notification_service(ApplicationConfig.NOTIFICATION_WEBHOOK_URL)


def get_pdf_service() -> PdfService:
    return ReportLabPdfService()
