import logging
import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from tailorshop.errors import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "TAILOR_"


class PricingSettings(BaseModel):
    fabric_meters: int = Field(2, ge=0)
    lining_surcharge: float = Field(300, ge=0)
    home_visit_surcharge: float = Field(200, ge=0)
    urgent_surcharge: float = Field(500, ge=0)


class Settings(BaseModel):
    database_url: str
    api_key: str
    jwt_secret: Optional[str] = None
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None
    access_token_expire_minutes: int = 1440
    log_level: str = "INFO"
    echo_sql: bool = False
    forward_only_status: bool = False
    tracking_prefix: str = "RT"
    standard_days: int = 14
    urgent_days: int = 7
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"])
    pricing: PricingSettings = Field(default_factory=PricingSettings)

    @property
    def signing_key(self) -> str:
        return self.jwt_secret or self.api_key


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _flag(name: str, default: bool = False) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    """Build settings from the environment (and a local .env file if present).

    The backend endpoint and API key are required; without them the service
    cannot start.
    """
    load_dotenv()

    database_url = _env("DATABASE_URL")
    api_key = _env("API_KEY")
    missing = [n for n, v in (("TAILOR_DATABASE_URL", database_url), ("TAILOR_API_KEY", api_key)) if not v]
    if missing:
        raise ConfigError("Missing backend configuration: %s" % ", ".join(missing))

    pricing = {}
    for key in ("fabric_meters", "lining_surcharge", "home_visit_surcharge", "urgent_surcharge"):
        raw = _env(key.upper())
        if raw is not None:
            pricing[key] = raw

    values = {
        "database_url": database_url,
        "api_key": api_key,
        "jwt_secret": _env("JWT_SECRET"),
        "admin_email": _env("ADMIN_EMAIL"),
        "admin_password": _env("ADMIN_PASSWORD"),
        "log_level": _env("LOG_LEVEL", "INFO").upper(),
        "echo_sql": _flag("ECHO_SQL"),
        "forward_only_status": _flag("FORWARD_ONLY_STATUS"),
        "tracking_prefix": _env("TRACKING_PREFIX", "RT"),
        "pricing": pricing,
    }
    expire = _env("ACCESS_TOKEN_EXPIRE_MINUTES")
    if expire:
        values["access_token_expire_minutes"] = expire
    origins = _env("CORS_ORIGINS")
    if origins:
        values["cors_origins"] = [o.strip() for o in origins.split(",") if o.strip()]

    try:
        settings = Settings(**values)
    except PydanticValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise ConfigError("Invalid configuration: %s" % ", ".join(fields)) from e
    logger.debug("Settings loaded database_url=%s forward_only_status=%s", settings.database_url, settings.forward_only_status)
    return settings
