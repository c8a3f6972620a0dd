import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./billing.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))
    ENABLE_SENTRY = data.get("ENABLE_SENTRY", 0)
    DSN_SENTRY = data.get("DSN_SENTRY", "")
    SENTRY_ENVIRONMENT = data.get("SENTRY_ENVIRONMENT", "dev")

    # Stripe
    STRIPE_SECRET_KEY = data.get("STRIPE_SECRET_KEY", os.environ.get("STRIPE_SECRET_KEY"))
    STRIPE_WEBHOOK_SECRET = data.get("STRIPE_WEBHOOK_SECRET", os.environ.get("STRIPE_WEBHOOK_SECRET"))
    PORTAL_BASE_URL = data.get("PORTAL_BASE_URL", "http://localhost:8000/portal")

    # Invoicing
    COMPANY_NAME = data.get("COMPANY_NAME", "Billing Hub")
    COMPANY_ADDRESS = data.get("COMPANY_ADDRESS", "")
    DEFAULT_CURRENCY = data.get("DEFAULT_CURRENCY", "USD")
    DEFAULT_DUE_DAYS = data.get("DEFAULT_DUE_DAYS", 30)
    AGENT_COST_DEFAULT_MARKUP_PERCENT = data.get("AGENT_COST_DEFAULT_MARKUP_PERCENT", 50)
    NOTIFICATION_WEBHOOK_URL = data.get("NOTIFICATION_WEBHOOK_URL", None)

    # Overdue sweep worker
    OVERDUE_SWEEP_ENABLED = bool(data.get("OVERDUE_SWEEP_ENABLED", True))
    OVERDUE_SWEEP_INTERVAL_SECONDS = data.get("OVERDUE_SWEEP_INTERVAL_SECONDS", 3600)  # Hourly
