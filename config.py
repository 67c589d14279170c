import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file)
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./billing.db")
    DB_BUSY_TIMEOUT_SECONDS = data.get("DB_BUSY_TIMEOUT_SECONDS", 30)  # SQLite lock wait
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    AUTH_DISABLED = bool(data.get("AUTH_DISABLED", False))
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))

    # Patient service used to validate patient ids on invoice creation
    PATIENT_SERVICE_URL = data.get("PATIENT_SERVICE_URL", None)
    PATIENT_SERVICE_TIMEOUT = data.get("PATIENT_SERVICE_TIMEOUT", 5.0)  # Seconds

    # Invoice PDF header
    INVOICE_COMPANY_NAME = data.get("INVOICE_COMPANY_NAME", "Health Clinic")
    INVOICE_COMPANY_ADDRESS = data.get("INVOICE_COMPANY_ADDRESS", "")

    # Invoice Reconciliation Configuration
    RECONCILIATION_ENABLED = bool(data.get("RECONCILIATION_ENABLED", True))
    RECONCILIATION_INTERVAL_SECONDS = data.get("RECONCILIATION_INTERVAL_SECONDS", 86400)  # Daily
