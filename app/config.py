"""
Application settings loaded from the environment
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime configuration for the Lab Orders API"""

    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    access_token_expire_hours: int = 24
    api_prefix: str = "/api/v1"
    environment: str = "development"
    database_url: str = "sqlite:///./lab_orders.db"
    bcrypt_rounds: int = 12
    rate_limit_enabled: bool = True
    cors_origins: list = field(default_factory=lambda: ["*"])
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    version: str = "1.0.0"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (call load_dotenv first)"""
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            jwt_secret=os.getenv("JWT_SECRET") or None,
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            access_token_expire_hours=int(os.getenv("ACCESS_TOKEN_EXPIRE_HOURS", "24")),
            api_prefix=os.getenv("API_PREFIX", "/api/v1").rstrip("/"),
            environment=os.getenv("ENVIRONMENT", "development"),
            database_url=os.getenv("DATABASE_URL", "sqlite:///./lab_orders.db"),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
            rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", True),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
