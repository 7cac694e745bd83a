"""Application configuration using environment variables."""
import logging
import os
from functools import lru_cache
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Settings loaded from environment variables."""

    # Logging
    LOG_LEVEL: str = os.getenv("KD_LOG_LEVEL", "INFO").upper()
    DEBUG: bool = os.getenv("KD_DEBUG", "false").lower() == "true"

    # Rules preset applied when no explicit rules config has been set
    RULES_PRESET: str = os.getenv("KD_RULES_PRESET", "standard")

    # Optional override for the static catalog directory (archetypes, recipes, waves)
    DATA_DIR: str = os.getenv("KD_DATA_DIR", "")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: str = None) -> None:
    """
    Configure the kitchen_defense logger hierarchy.

    Args:
        level: Level name to apply; defaults to the KD_LOG_LEVEL setting
    """
    settings = get_settings()
    level_name = (level or settings.LOG_LEVEL).upper()
    if settings.DEBUG and level is None:
        level_name = "DEBUG"

    logging.basicConfig(
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("kitchen_defense").setLevel(getattr(logging, level_name, logging.INFO))
