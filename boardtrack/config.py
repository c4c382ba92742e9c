# boardtrack/config.py
import os


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").lower() in ("1", "true", "yes")


class Settings:
    """
    Very simple settings holder.
    Reads everything from environment variables, falling back to
    defaults suitable for a local sqlite install.
    """

    def __init__(self) -> None:
        self.database_url: str = os.getenv("DATABASE_URL", "sqlite:///./boardtrack.db")

        # Auth
        self.secret_key: str = os.getenv("SECRET_KEY", "change-me-in-production")
        self.algorithm: str = "HS256"
        self.access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
        self.initial_admin_email: str = os.getenv("INITIAL_ADMIN_EMAIL", "admin@smw.com")
        self.initial_admin_password: str = os.getenv("INITIAL_ADMIN_PASSWORD", "admin123")

        # Dashboard policy (defaults, not protocol constants)
        self.overdue_days: int = int(os.getenv("OVERDUE_DAYS", "14"))
        self.warranty_window_days: int = int(os.getenv("WARRANTY_WINDOW_DAYS", "30"))

        # Substitute boards
        self.substitute_prefix: str = os.getenv("SUBSTITUTE_PREFIX", "SMW-S-")
        self.enforce_exclusive_substitute: bool = _env_bool("ENFORCE_EXCLUSIVE_SUBSTITUTE", False)

        # Startup / background
        self.seed_demo_data: bool = _env_bool("SEED_DEMO_DATA", True)
        self.sync_poll_seconds: float = float(os.getenv("SYNC_POLL_SECONDS", "5"))

        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
