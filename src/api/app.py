"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from src.api.error import ClientError, client_error_handler, validation_error_handler
from src.api.middleware import RequestLoggingMiddleware
from src.api.routes import billing_rates, work_entries, agent_costs, invoices, payment_plans, webhooks

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    from src.depends import init_db, engine

    await init_db()
    logger.info("Database tables ready")
    yield
    await engine.dispose()


def create_app(config) -> FastAPI:
    if config.ENABLE_SENTRY and config.DSN_SENTRY:
        import sentry_sdk

        sentry_sdk.init(
            dsn=config.DSN_SENTRY,
            environment=config.SENTRY_ENVIRONMENT,
            traces_sample_rate=0.1,
        )

    app = FastAPI(
        title="Billing Reconciliation Service",
        description="Work ledger invoicing, invoice lifecycle and Stripe-backed payment plans",
        version="1.0.0",
        docs_url=f"{config.API_PREFIX}/docs",
        openapi_url=f"{config.API_PREFIX}/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=config.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if config.ENABLE_LOGGING_MIDDLEWARE:
        app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(ClientError, client_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(billing_rates.router)
    app.include_router(work_entries.router)
    app.include_router(agent_costs.router)
    app.include_router(invoices.router)
    app.include_router(payment_plans.router)
    app.include_router(webhooks.router)

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    return app
