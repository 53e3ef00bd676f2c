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
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./test.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    CREATE_TABLES_ON_STARTUP = bool(data.get("CREATE_TABLES_ON_STARTUP", True))
    DEFAULT_CURRENCY = data.get("DEFAULT_CURRENCY", "USD")

    # Plans
    PLAN_FALLBACK_ON_RENEWAL = bool(data.get("PLAN_FALLBACK_ON_RENEWAL", False))

    # Device activation codes (TOTP, 30s steps)
    OTP_VALID_WINDOW = data.get("OTP_VALID_WINDOW", 2)  # Accepted steps on either side
    OTP_ISSUER = data.get("OTP_ISSUER", "Subscription Service")

    # Daily reconciliation sweep
    SWEEP_ENABLED = bool(data.get("SWEEP_ENABLED", True))
    SWEEP_RUN_HOUR_UTC = data.get("SWEEP_RUN_HOUR_UTC", 2)
    SWEEP_LEASE_TTL_SECONDS = data.get("SWEEP_LEASE_TTL_SECONDS", 3600)

    # Notification outbox
    NOTIFICATION_WEBHOOK_URL = data.get("NOTIFICATION_WEBHOOK_URL", None)
    NOTIFICATION_MAX_ATTEMPTS = data.get("NOTIFICATION_MAX_ATTEMPTS", 5)
    NOTIFICATION_RETRY_BACKOFF_SECONDS = data.get("NOTIFICATION_RETRY_BACKOFF_SECONDS", 60)
    NOTIFICATION_DISPATCH_INTERVAL_SECONDS = data.get("NOTIFICATION_DISPATCH_INTERVAL_SECONDS", 30)
    NOTIFICATION_BATCH_SIZE = data.get("NOTIFICATION_BATCH_SIZE", 50)
