from typing import Optional

from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL

from core.exceptions import ConfigError


class Settings(BaseSettings):
    SERVER_NAME: str = "SmartIntern"
    VERSION: str = "1.0.0"
    DESCRIPTION: str = "MCP server for Slack integration, meeting notes, and follow-ups"
    LOGGING_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"

    SLACK_BOT_TOKEN: Optional[str] = None
    SLACK_SIGNING_SECRET: Optional[str] = None
    SLACK_CLIENT_ID: Optional[str] = None
    SLACK_CLIENT_SECRET: Optional[str] = None
    SLACK_REDIRECT_URI: Optional[str] = None

    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "smartintern"
    DB_USER: str = "postgres"
    DB_PASSWORD: Optional[str] = None
    DATABASE_URL: Optional[str] = None

    EVENTS_HOST: str = "0.0.0.0"
    EVENTS_PORT: int = 3001


    class Config:
        env_file = ".env"
        extra = "ignore"



def validate_config(settings: Settings) -> None:
    """Fail fast when the bot cannot talk to Slack or the database"""
    if not settings.SLACK_BOT_TOKEN:
        raise ConfigError("SLACK_BOT_TOKEN is required")
    if not settings.SLACK_SIGNING_SECRET:
        raise ConfigError("SLACK_SIGNING_SECRET is required")
    if not settings.DB_PASSWORD and not settings.DATABASE_URL:
        raise ConfigError("DB_PASSWORD is required")



def build_database_url(settings: Settings) -> str:
    if settings.DATABASE_URL:
        return settings.DATABASE_URL
    url = URL.create(
        "postgresql+asyncpg",
        username=settings.DB_USER,
        password=settings.DB_PASSWORD,
        host=settings.DB_HOST,
        port=settings.DB_PORT,
        database=settings.DB_NAME,
    )
    return url.render_as_string(hide_password=False)



settings = Settings()
