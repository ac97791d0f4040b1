import os
from dataclasses import dataclass, field
from dotenv import load_dotenv


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    # =====================================================
    # ENV
    # =====================================================
    env: str = "development"
    port: int = 8000
    log_level: str = "INFO"

    # =====================================================
    # DATABASE
    # =====================================================
    mongodb_uri: str | None = None

    # =====================================================
    # JWT / COOKIE
    # =====================================================
    jwt_secret: str | None = None
    jwt_algorithm: str = "HS256"
    access_token_minutes: int = 60 * 24
    cookie_name: str = "access_token"
    cookie_secure: bool = False

    # =====================================================
    # CORS
    # =====================================================
    cors_allowed_origins: list[str] = field(default_factory=list)

    # =====================================================
    # ADMIN
    # =====================================================
    # emails allowed to self-register as admin
    admin_emails: list[str] = field(default_factory=list)

    # =====================================================
    # SIGNIN THROTTLE
    # =====================================================
    signin_max_attempts: int = 5
    signin_window_seconds: int = 300

    @property
    def is_production(self) -> bool:
        return (self.env or "").lower() == "production"


def load_settings() -> Settings:
    """Read configuration from the environment (and `.env`) once."""
    load_dotenv()

    env = os.getenv("ENV", "development")

    return Settings(
        env=env,
        port=int(os.getenv("PORT", 8000)),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        mongodb_uri=os.getenv("MONGODB_URI") or os.getenv("MONGO_URI"),
        jwt_secret=os.getenv("JWT_SECRET"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        access_token_minutes=int(os.getenv("ACCESS_TOKEN_MINUTES", 60 * 24)),
        cookie_name=os.getenv("COOKIE_NAME", "access_token"),
        cookie_secure=_as_bool(os.getenv("COOKIE_SECURE"), default=env.lower() == "production"),
        cors_allowed_origins=[
            origin.strip()
            for origin in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")
            if origin.strip()
        ],
        admin_emails=[
            email.strip().lower()
            for email in os.getenv("ADMIN_EMAILS", "").split(",")
            if email.strip()
        ],
        signin_max_attempts=int(os.getenv("SIGNIN_MAX_ATTEMPTS", 5)),
        signin_window_seconds=int(os.getenv("SIGNIN_WINDOW_SECONDS", 300)),
    )


def validate_production_env(settings: Settings) -> None:
    if not settings.is_production:
        return

    required = {
        "JWT_SECRET": settings.jwt_secret,
        "MONGODB_URI": settings.mongodb_uri,
    }

    invalid = []
    for key, value in required.items():
        val = (value or "").strip()
        if not val or val.startswith("CHANGE_THIS"):
            invalid.append(key)

    if invalid:
        raise RuntimeError(f"Production env misconfigured. Invalid keys: {', '.join(sorted(invalid))}")
