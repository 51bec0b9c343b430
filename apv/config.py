from pydantic_settings import BaseSettings
from typing import Optional
import os
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


class Settings(BaseSettings):
    """
    Application settings that can be configured via environment variables
    """

    # App settings
    APP_TITLE: str = "APV"
    APP_DESCRIPTION: str = "APV tutorial web application"
    APP_VERSION: str = "0.1.0"
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    API_RELOAD: bool = os.getenv("API_RELOAD", "true").lower() == "true"

    # Environment settings
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEPLOYMENT_PROFILE: str = os.getenv("DEPLOYMENT_PROFILE", "local")

    # Logging settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")
    LOG_TO_FILE: bool = os.getenv("LOG_TO_FILE", "false").lower() == "true"
    LOG_DIR: str = os.getenv("LOG_DIR", "logs")

    # Database settings
    DATABASE_DSN: Optional[str] = os.getenv("DATABASE_DSN")
    DATABASE_USER: str = os.getenv("DATABASE_USER", "apv")
    DATABASE_PASSWORD: str = os.getenv("DATABASE_PASSWORD", "apv")
    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
    DATABASE_CONNECT_TIMEOUT: int = int(os.getenv("DATABASE_CONNECT_TIMEOUT", "5"))

    # Session settings
    SESSION_START: Optional[bool] = None
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-me")
    SESSION_COOKIE: str = os.getenv("SESSION_COOKIE", "apv_session")

    # Templating settings
    TEMPLATE_DIR: str = os.getenv("TEMPLATE_DIR", os.path.join(PACKAGE_DIR, "templates"))
    PAGE_TITLE: str = os.getenv("PAGE_TITLE", "My First Application")

    @property
    def profile(self):
        # Import here to avoid circular imports
        from apv.core.profiles import get_profile

        return get_profile(self.DEPLOYMENT_PROFILE)

    @property
    def database_dsn(self):
        """Parsed PDO-style DSN, falling back to the profile's host"""
        from apv.core.profiles import DatabaseDSN, parse_pdo_dsn

        if self.DATABASE_DSN:
            return parse_pdo_dsn(self.DATABASE_DSN)
        return DatabaseDSN(host=self.profile.database_host, dbname=self.profile.database_name)

    @property
    def database_host(self) -> str:
        return self.database_dsn.host

    @property
    def pdo_dsn(self) -> str:
        return self.database_dsn.to_pdo()

    @property
    def sqlalchemy_url(self) -> str:
        """SQLAlchemy URL used to build the engine; DATABASE_URL wins when set"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        dsn = self.database_dsn
        return (
            f"postgresql+psycopg2://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}"
            f"@{dsn.host}:{dsn.port}/{dsn.dbname}"
        )

    @property
    def session_enabled(self) -> bool:
        if self.SESSION_START is not None:
            return self.SESSION_START
        return self.profile.session_start

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# Create global settings object
settings = Settings()


def get_settings() -> Settings:
    """
    Return the settings object for dependency injection
    """
    return settings
