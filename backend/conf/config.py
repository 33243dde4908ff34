"""Configuration module for the backend."""

import os
from pathlib import Path
from typing import List, Optional


class ConfigMeta(type):
    """Metaclass to prevent direct instantiation and enforce singleton attributes."""

    def __call__(cls, *args: object, **kwargs: object) -> None:
        """Prevent direct instantiation."""
        raise TypeError("Config cannot be instantiated directly. Use class attributes.")


class Config(metaclass=ConfigMeta):
    """Singleton configuration class. Access attributes directly via the class.

    Only bootstrap values (what is needed to reach the secret store and bind
    the listener) come from the environment here. Everything else is resolved
    at runtime through the ConfigurationProvider, with the defaults below as
    fallback.
    """

    # =========================================================================
    # Path Configuration
    # =========================================================================
    BASE_DIR: Path = Path(__file__).parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    ENV_FILE: Path = BASE_DIR / "backend" / ".env"

    # =========================================================================
    # Service Information
    # =========================================================================
    SERVICE_NAME: str = "Chat Backend API"
    SERVICE_DESCRIPTION: str = "AI-powered chat application backend"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"

    # =========================================================================
    # Server Configuration
    # =========================================================================
    FLASK_HOST: str = "0.0.0.0"
    FLASK_PORT: int = 3002
    MAX_CONTENT_LENGTH: int = 10 * 1024 * 1024  # 10 MB request bodies
    TRUST_PROXY_HOPS: int = 1
    CORS_ORIGINS: List[str] = ["*"]

    # =========================================================================
    # Lifecycle Configuration
    # =========================================================================
    SHUTDOWN_GRACE_PERIOD: float = 10.0  # Seconds in-flight requests get on shutdown

    # =========================================================================
    # Secret Store Configuration
    # =========================================================================
    SECRET_STORE_URL: Optional[str] = None
    SECRET_STORE_TOKEN: Optional[str] = None
    SECRET_STORE_TIMEOUT: float = 5.0
    SECRET_STORE_MAX_RETRIES: int = 3

    # =========================================================================
    # Storage Defaults (resolved through the ConfigurationProvider)
    # =========================================================================
    STORAGE_ROOT: str = str(DATA_DIR / "storage")
    STORAGE_CONTAINER: str = "chat-files"

    # =========================================================================
    # Cache Defaults (resolved through the ConfigurationProvider)
    # =========================================================================
    CACHE_TTL_SECONDS: int = 600
    CACHE_CHECK_PERIOD_SECONDS: int = 120
    CACHE_MAX_KEYS: int = 10_000  # 0 disables the limit

    @classmethod
    def load_environment(cls) -> None:
        """Read the bootstrap values from the process environment.

        Called at import time and again after a .env file has been loaded.
        """
        cls.APP_VERSION = os.getenv("APP_VERSION", cls.APP_VERSION)
        cls.ENVIRONMENT = os.getenv("APP_ENV", cls.ENVIRONMENT)
        cls.FLASK_HOST = os.getenv("HOST", cls.FLASK_HOST)
        cls.FLASK_PORT = int(os.getenv("PORT", str(cls.FLASK_PORT)))
        cls.SHUTDOWN_GRACE_PERIOD = float(
            os.getenv("SHUTDOWN_GRACE_PERIOD", str(cls.SHUTDOWN_GRACE_PERIOD))
        )
        cls.SECRET_STORE_URL = os.getenv("SECRET_STORE_URL", cls.SECRET_STORE_URL)
        cls.SECRET_STORE_TOKEN = os.getenv("SECRET_STORE_TOKEN", cls.SECRET_STORE_TOKEN)

        origins = os.getenv("CORS_ORIGINS")
        if origins:
            cls.CORS_ORIGINS = [o.strip() for o in origins.split(",") if o.strip()]


# Populate environment-backed settings after class definition
Config.load_environment()
