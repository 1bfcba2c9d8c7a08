from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "VenueBook API"
    # Comma-separated origins for CORS (e.g. https://venuebook.app,https://support.venuebook.app). If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v
    REDIS_URL: str = "redis://localhost:6379/0"

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""

    # Resend HTTP API; when empty, mail goes out over SMTP (MailHog for local)
    RESEND_API_KEY: str = ""
    RESEND_API_URL: str = "https://api.resend.com/emails"
    EMAIL_FROM: str = "Bookings <bookings@venuebook.local>"

    # Local timezone used for "today" and for turning date + time slot into an instant
    TIMEZONE: str = "UTC"

    # per-booking caps; venues with larger courts or halls raise these
    SPORTS_MAX_DURATION_HOURS: int = 4
    EVENT_MAX_TICKETS: int = 10

    BOOKING_RETENTION_DAYS: int = 30
    BOOKING_REF_MAX_ATTEMPTS: int = 10

    # Passwords for the provisioned admin/support accounts (see venuebook.seed)
    ADMIN_SEED_PASSWORD: str = ""
    SUPPORT_SEED_PASSWORD: str = ""


settings = Settings()
