"""
Configuration

All settings are read from the environment once, validated at startup
and kept immutable for the lifetime of the process.
"""
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

from chatbridge.core.errors import ConfigurationError

# .env next to backend/ or in the working directory
load_dotenv()

PLACEHOLDER_VALUES = {
    "",
    "your_replicate_api_token_here",
    "your_openai_api_key_here",
}

DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://127.0.0.1:5173"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    replicate_api_token: Optional[str]
    openai_api_key: Optional[str]

    replicate_api_base: str = "https://api.replicate.com/v1"
    imagen_model_version: str = "google/imagen-4"
    imagen_model_name: str = "imagen-4"
    poll_interval: float = 5.0
    max_attempts: int = 60
    poll_backoff: float = 1.0
    max_poll_interval: float = 30.0
    http_timeout: float = 60.0

    openai_api_base: str = "https://api.openai.com/v1"
    openai_text_model: str = "gpt-3.5-turbo"
    openai_image_model: str = "dall-e-3"

    db_path: str = "chatbridge.db"
    jwt_secret_key: str = "chatbridge-secret-key-change-in-production"
    frontend_dist: Optional[str] = None
    cors_origins: List[str] = field(default_factory=list)

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.db_path}"

    def missing_credentials(self) -> List[str]:
        missing = []
        if (self.replicate_api_token or "") in PLACEHOLDER_VALUES:
            missing.append("REPLICATE_API_TOKEN")
        if (self.openai_api_key or "") in PLACEHOLDER_VALUES:
            missing.append("OPENAI_API_KEY")
        return missing

    def validate(self) -> "Settings":
        """Raise ConfigurationError naming every missing or invalid setting."""
        missing = self.missing_credentials()
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )
        if self.poll_interval < 0 or self.max_poll_interval < 0:
            raise ConfigurationError("Poll intervals must not be negative")
        if self.max_attempts < 1:
            raise ConfigurationError("IMAGE_MAX_ATTEMPTS must be at least 1")
        if self.poll_backoff < 1.0:
            raise ConfigurationError("IMAGE_POLL_BACKOFF must be >= 1.0")
        return self


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    origins = os.getenv("CHATBRIDGE_CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    return Settings(
        replicate_api_token=os.getenv("REPLICATE_API_TOKEN"),
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        replicate_api_base=os.getenv("REPLICATE_API_BASE", "https://api.replicate.com/v1").rstrip("/"),
        imagen_model_version=os.getenv("IMAGEN_MODEL_VERSION", "google/imagen-4"),
        imagen_model_name=os.getenv("IMAGEN_MODEL_NAME", "imagen-4"),
        poll_interval=_env_float("IMAGE_POLL_INTERVAL", 5.0),
        max_attempts=_env_int("IMAGE_MAX_ATTEMPTS", 60),
        poll_backoff=_env_float("IMAGE_POLL_BACKOFF", 1.0),
        max_poll_interval=_env_float("IMAGE_MAX_POLL_INTERVAL", 30.0),
        http_timeout=_env_float("IMAGE_HTTP_TIMEOUT", 60.0),
        openai_api_base=os.getenv("OPENAI_API_BASE", "https://api.openai.com/v1").rstrip("/"),
        openai_text_model=os.getenv("OPENAI_TEXT_MODEL", "gpt-3.5-turbo"),
        openai_image_model=os.getenv("OPENAI_IMAGE_MODEL", "dall-e-3"),
        db_path=os.getenv("CHATBRIDGE_DB_PATH", "chatbridge.db"),
        jwt_secret_key=os.getenv("JWT_SECRET_KEY", "chatbridge-secret-key-change-in-production"),
        frontend_dist=os.getenv("CHATBRIDGE_FRONTEND_DIST") or None,
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
    )


@lru_cache()
def get_settings() -> Settings:
    return load_settings()
