import os


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """
    Runtime configuration, read from ``GUESTDESK_*`` environment variables.
    """

    def __init__(self):
        self.database_url = os.environ.get("GUESTDESK_DATABASE_URL", "sqlite:///./guestdesk.db")

        # Fix for postgres:// URLs handed out by some hosting providers
        if self.database_url.startswith("postgres://"):
            self.database_url = self.database_url.replace("postgres://", "postgresql://", 1)

        self.secret_key = os.environ.get("GUESTDESK_SECRET_KEY", "CHANGE_THIS_SECRET_IN_REAL_PROJECT")
        self.algorithm = "HS256"
        # staff and admin sessions; guest sessions end at checkout
        self.access_token_expire_minutes = int(
            os.environ.get("GUESTDESK_ACCESS_TOKEN_EXPIRE_MINUTES", 7 * 24 * 60)
        )

        self.debug = _env_bool("GUESTDESK_DEBUG")
        self.log_level = os.environ.get("GUESTDESK_LOG_LEVEL", "INFO").upper()

        self.rate_limit = os.environ.get("GUESTDESK_RATE_LIMIT", "120/minute")
        self.rate_limit_enabled = _env_bool("GUESTDESK_RATE_LIMIT_ENABLED", True)

        self.breaker_fail_max = int(os.environ.get("GUESTDESK_BREAKER_FAIL_MAX", 3))
        self.breaker_reset_timeout = int(os.environ.get("GUESTDESK_BREAKER_RESET_TIMEOUT", 60))

        self.sweep_interval_seconds = int(os.environ.get("GUESTDESK_SWEEP_INTERVAL_SECONDS", 60 * 60))
        self.complaint_retention_hours = int(os.environ.get("GUESTDESK_COMPLAINT_RETENTION_HOURS", 24))
        self.purge_unresolved_complaints = _env_bool("GUESTDESK_PURGE_UNRESOLVED_COMPLAINTS")
        self.purge_expired_orders = _env_bool("GUESTDESK_PURGE_EXPIRED_ORDERS")


settings = Settings()
