"""Library settings and logging setup."""

import logging
from typing import Optional

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings read from the environment (prefix ``HEXMAP_``) or a .env file."""

    model_config = SettingsConfigDict(env_prefix="HEXMAP_", env_file=".env", extra="ignore")

    # Generation
    max_map_size: int = Field(default=1024, description="Maximum map width or height")
    default_seed: int = Field(default=0, description="Seed used when none is given")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")


settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Route structlog through the standard library and render JSON lines."""
    level = (level or settings.log_level).upper()
    logging.basicConfig(format="%(message)s", level=getattr(logging, level, logging.INFO))
    logging.getLogger().setLevel(getattr(logging, level, logging.INFO))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
