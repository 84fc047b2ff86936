import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional

DEFAULT_IDENTITY_STATEMENT = (
    "I am the type of person who chooses presence, leans into challenge, "
    "and communicates with clarity and confidence."
)


class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Database
    DATABASE_URL: Optional[str] = None
    TEST_DATABASE_URL: Optional[str] = None

    # Calendar: "today" is computed in this zone (IANA name)
    TIMEZONE: str = "UTC"

    # Defaults for first-time users
    DEFAULT_IDENTITY: str = DEFAULT_IDENTITY_STATEMENT

    # CORS (comma-separated)
    CORS_ALLOWED_ORIGINS: str = "http://localhost:5173"

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate required configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    Secrets are not logged, only missing keys.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("identity_tracker")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    required_keys = ["DATABASE_URL"] if cfg.ENV.lower() == "production" else []

    missing = [key for key in required_keys if not getattr(cfg, key, None)]
    if missing:
        message = f"Missing required configuration: {', '.join(missing)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True
