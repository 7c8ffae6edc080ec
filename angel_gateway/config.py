"""
Configuration for the Angel One gateway.

Values come from environment variables; a `.env` file in the working
directory is loaded first.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = Path(__file__).parent.parent


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _env_list(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass
class Settings:
    """Gateway server configuration."""

    # Server
    api_title: str = "Angel One API Gateway"
    api_description: str = "HTTP gateway forwarding trading requests to the Angel One SmartAPI"
    api_version: str = "1.0.0"
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "3001")))
    reload: bool = field(default_factory=lambda: _env_bool("RELOAD"))
    environment: str = field(
        default_factory=lambda: os.getenv("ENVIRONMENT", os.getenv("NODE_ENV", "development")).lower()
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "info").lower())

    # CORS
    cors_origins: list[str] = field(
        default_factory=lambda: _env_list("FRONTEND_URL", "http://localhost:3000")
    )

    # Upstream broker
    angel_one_base_url: str = field(
        default_factory=lambda: os.getenv("ANGEL_ONE_BASE_URL", "https://apiconnect.angelbroking.com").rstrip("/")
    )
    upstream_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "30"))
    )
    broker_rate_limit: float = field(default_factory=lambda: float(os.getenv("BROKER_RATE_LIMIT", "10")))

    # Static front-end
    static_dir: Path = field(default_factory=lambda: Path(os.getenv("STATIC_DIR", str(PROJECT_ROOT / "public"))))

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


settings = Settings()
