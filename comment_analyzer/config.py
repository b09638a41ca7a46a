"""
Configuration settings for the YouTube comment analyzer application.
"""

import os
from typing import Dict, Any, Optional
from pathlib import Path
from dotenv import load_dotenv


# Ensure environment variables are loaded
load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Base configuration class."""

    # Application info
    APP_NAME = "YouTube Comment Analyzer"
    APP_VERSION = "0.2.0"

    # Data directories
    BASE_DIR = Path(__file__).resolve().parent.parent.absolute()
    DATA_DIR = BASE_DIR / "data"
    SUMMARIES_DIR = DATA_DIR / "summaries"

    # API keys (server-side only)
    YOUTUBE_API_KEY = os.getenv("YOUTUBE_API_KEY")
    GROQ_API_KEY = os.getenv("GROQ_API_KEY")

    # YouTube Data API
    YOUTUBE_API_BASE_URL = os.getenv("YOUTUBE_API_BASE_URL", "https://www.googleapis.com/youtube/v3")
    REQUEST_TIMEOUT = _env_float("REQUEST_TIMEOUT", 30.0)
    PAGE_SIZE = _env_int("PAGE_SIZE", 100)
    MAX_PAGES = _env_int("MAX_PAGES", 100)
    PAGE_DELAY = _env_float("PAGE_DELAY", 0.1)
    DEFAULT_ESTIMATED_TOTAL = 1000

    # Retry policies
    METADATA_MAX_RETRIES = _env_int("METADATA_MAX_RETRIES", 5)
    METADATA_INITIAL_DELAY = _env_float("METADATA_INITIAL_DELAY", 2.0)
    PAGE_MAX_RETRIES = _env_int("PAGE_MAX_RETRIES", 5)
    PAGE_INITIAL_DELAY = _env_float("PAGE_INITIAL_DELAY", 3.0)
    TRANSLATION_MAX_RETRIES = _env_int("TRANSLATION_MAX_RETRIES", 3)
    TRANSLATION_INITIAL_DELAY = _env_float("TRANSLATION_INITIAL_DELAY", 2.0)
    TRANSLATION_BACKOFF_FACTOR = _env_float("TRANSLATION_BACKOFF_FACTOR", 1.8)
    SUMMARY_MAX_RETRIES = _env_int("SUMMARY_MAX_RETRIES", 3)
    SUMMARY_INITIAL_DELAY = _env_float("SUMMARY_INITIAL_DELAY", 2.0)
    SUMMARY_MAX_DELAY = _env_float("SUMMARY_MAX_DELAY", 10.0)
    RETRY_MAX_DELAY = _env_float("RETRY_MAX_DELAY", 30.0)
    RETRY_BACKOFF_FACTOR = _env_float("RETRY_BACKOFF_FACTOR", 2.0)
    RETRY_JITTER = _env_bool("RETRY_JITTER", True)

    # Translation
    TRANSLATION_BATCH_SIZE = _env_int("TRANSLATION_BATCH_SIZE", 10)
    TRANSLATION_DELAY = _env_float("TRANSLATION_DELAY", 0.5)
    TRANSLATION_TARGET_LANGUAGE = os.getenv("TRANSLATION_TARGET_LANGUAGE", "Chinese")

    # Summarization
    SUMMARY_THRESHOLD = _env_int("SUMMARY_THRESHOLD", 500)
    SUMMARY_BATCH_SIZE = _env_int("SUMMARY_BATCH_SIZE", 500)
    SUMMARY_BATCH_DELAY = _env_float("SUMMARY_BATCH_DELAY", 1.0)
    SUMMARY_MAX_PARALLEL = _env_int("SUMMARY_MAX_PARALLEL", 1)
    SUMMARY_LANGUAGE = os.getenv("SUMMARY_LANGUAGE", "Chinese")
    POPULAR_LIMIT = _env_int("POPULAR_LIMIT", 50)
    RECENT_LIMIT = _env_int("RECENT_LIMIT", 100)
    SENTIMENT_LIMIT = _env_int("SENTIMENT_LIMIT", 100)
    MIXED_SENTIMENT_LIMIT = _env_int("MIXED_SENTIMENT_LIMIT", 50)
    FULL_STRATEGY_LIMIT: Optional[int] = (
        _env_int("FULL_STRATEGY_LIMIT", 0) or None
    )

    # Default models
    LLM_PROVIDER = os.getenv("LLM_PROVIDER", "groq")
    DEFAULT_SUMMARY_MODEL = os.getenv("SUMMARY_MODEL", "llama-3.3-70b-versatile")
    DEFAULT_TRANSLATION_MODEL = os.getenv("TRANSLATION_MODEL", "llama-3.3-70b-versatile")
    SUMMARY_TEMPERATURE = _env_float("SUMMARY_TEMPERATURE", 0.7)
    SUMMARY_MAX_TOKENS = _env_int("SUMMARY_MAX_TOKENS", 8192)
    TRANSLATION_TEMPERATURE = _env_float("TRANSLATION_TEMPERATURE", 0.3)
    TRANSLATION_MAX_TOKENS = _env_int("TRANSLATION_MAX_TOKENS", 4000)

    # Concurrency gate
    MAX_CONCURRENT_JOBS = _env_int("MAX_CONCURRENT_JOBS", 1)
    RETRY_AFTER_SECONDS = _env_int("RETRY_AFTER_SECONDS", 30)

    PUBLIC_URL = os.getenv("PUBLIC_URL", "http://localhost:8000")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def initialize(cls):
        """Initialize the application configuration."""
        # Imported here so that config stays importable by the logger module.
        from comment_analyzer.utils.logger import logging

        # Create necessary directories
        for path in cls.get_paths().values():
            path.mkdir(parents=True, exist_ok=True)

        # Validate required environment variables
        if not cls.YOUTUBE_API_KEY:
            logging.warning("YOUTUBE_API_KEY environment variable not set. Comment collection is unavailable.")
        if not cls.GROQ_API_KEY:
            logging.warning("GROQ_API_KEY environment variable not set. Translation and summaries are unavailable.")

    @classmethod
    def get_paths(cls) -> Dict[str, Path]:
        """Get all application paths."""
        return {
            "base_dir": cls.BASE_DIR,
            "data_dir": cls.DATA_DIR,
            "summaries_dir": cls.SUMMARIES_DIR
        }

    @classmethod
    def retry_settings(cls) -> Dict[str, Any]:
        """Shared retry defaults, overridden per call site."""
        return {
            "max_delay": cls.RETRY_MAX_DELAY,
            "backoff_factor": cls.RETRY_BACKOFF_FACTOR,
            "jitter": cls.RETRY_JITTER,
        }


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True
    LOG_LEVEL = "DEBUG"


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False
    LOG_LEVEL = "INFO"


# Determine which configuration to use based on environment
def get_config():
    """Get the appropriate configuration based on environment."""
    env = os.getenv("ENVIRONMENT", "development").lower()
    if env == "production":
        return ProductionConfig
    else:
        return DevelopmentConfig


# Create a config instance
config = get_config()
