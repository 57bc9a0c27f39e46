import logging
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    MONGODB_URI: Optional[str] = None
    MONGODB_DB_NAME: str = "isothermica"
    MONGO_MAX_POOL_SIZE: int = 10
    MONGO_SERVER_SELECTION_TIMEOUT_MS: int = 5000
    MONGO_SOCKET_TIMEOUT_MS: int = 45000
    CONTACT_BACKEND: Literal["beanie", "driver"] = "beanie"
    CONNECT_ON_STARTUP: bool = False  # set for always-resident deployments

    # Runtime
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    PORT: int = 8000

    # Security
    ADMIN_KEY: Optional[str] = None
    ALLOWED_ORIGINS: List[str] = [
        "https://isothermica.com.br",
        "https://www.isothermica.com.br",
        "https://isothermica-backend-api-v2.vercel.app",
        "https://isothermica-backend.vercel.app",
        "https://landing-page-six-delta-69.vercel.app",
    ]
    RATE_LIMIT: str = "100 per 15 minutes"
    TRUST_PROXY: bool = True
    MAX_BODY_BYTES: int = 10 * 1024

    # Policies
    ACCEPT_WHEN_DB_OFFLINE: bool = False
    EXPOSE_DB_TEST_ROUTE: bool = True

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def log_settings(settings: Settings) -> None:
    """Log the loaded settings with secrets redacted"""
    uri = settings.MONGODB_URI
    logger.info("[CONFIG] Settings loaded successfully")
    logger.info(f"[CONFIG] Mongo URI: {uri[:10] + '**** (redacted)' if uri else 'NOT SET'}")
    logger.info(f"[CONFIG] Environment: {settings.ENVIRONMENT}")
    logger.info(f"[CONFIG] Contact backend: {settings.CONTACT_BACKEND}")
    logger.info(f"[CONFIG] Admin key configured: {settings.ADMIN_KEY is not None}")
    logger.info(f"[CONFIG] Rate limit: {settings.RATE_LIMIT}")


settings = Settings()
