"""
Configuration management for Banana Comics.

Handles environment variables and application settings.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


SUPPORTED_LANGUAGES = ("en", "vi")


@dataclass
class Config:
    """Application configuration."""

    # API Keys
    gemini_api_key: str

    # Story settings
    language: str = "en"
    history_window: int = 6

    # Gemini models
    text_model: str = "gemini-2.5-flash"
    image_model: str = "gemini-2.5-flash-image"
    aspect_ratio: str = "1:1"

    # Illustration retry settings
    max_retries: int = 3
    retry_delay: float = 2.0  # seconds, multiplied by attempt number

    # Output settings
    output_dir: Path = Path("output")

    # Debug settings
    debug: bool = False


class ConfigError(Exception):
    """Configuration error."""
    pass


def load_config(env_file: Optional[str] = None) -> Config:
    """
    Load configuration from environment variables.

    Args:
        env_file: Optional path to .env file

    Returns:
        Config object with validated settings

    Raises:
        ConfigError: If required environment variables are missing
    """
    # Load environment variables from .env file
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    gemini_api_key = os.getenv("GEMINI_API_KEY")
    if not gemini_api_key:
        raise ConfigError(
            "GEMINI_API_KEY environment variable is required. "
            "Get your API key from: https://ai.google.dev/"
        )

    language = os.getenv("LANGUAGE", "en").lower()
    if language not in SUPPORTED_LANGUAGES:
        raise ConfigError(
            f"LANGUAGE must be one of {', '.join(SUPPORTED_LANGUAGES)}"
        )

    history_window = int(os.getenv("HISTORY_WINDOW", "6"))
    if history_window < 1:
        raise ConfigError("HISTORY_WINDOW must be at least 1")

    # Models
    text_model = os.getenv("TEXT_MODEL", "gemini-2.5-flash")
    image_model = os.getenv("IMAGE_MODEL", "gemini-2.5-flash-image")
    aspect_ratio = os.getenv("ASPECT_RATIO", "1:1")

    # Retry settings
    max_retries = int(os.getenv("MAX_RETRIES", "3"))
    if max_retries < 1 or max_retries > 10:
        raise ConfigError("MAX_RETRIES must be between 1 and 10")

    retry_delay = float(os.getenv("RETRY_DELAY", "2.0"))
    if retry_delay < 0:
        raise ConfigError("RETRY_DELAY must not be negative")

    # Output directory
    output_dir = Path(os.getenv("OUTPUT_DIR", "output"))

    # Debug settings
    debug = os.getenv("DEBUG", "false").lower() == "true"

    return Config(
        gemini_api_key=gemini_api_key,
        language=language,
        history_window=history_window,
        text_model=text_model,
        image_model=image_model,
        aspect_ratio=aspect_ratio,
        max_retries=max_retries,
        retry_delay=retry_delay,
        output_dir=output_dir,
        debug=debug,
    )


def validate_config(config: Config) -> None:
    """
    Validate configuration values.

    Args:
        config: Configuration object to validate

    Raises:
        ConfigError: If configuration is invalid
    """
    if not config.gemini_api_key:
        raise ConfigError("A Gemini API key is required")

    if config.language not in SUPPORTED_LANGUAGES:
        raise ConfigError(
            f"Unsupported language '{config.language}'. "
            f"Choose one of: {', '.join(SUPPORTED_LANGUAGES)}"
        )

    if config.max_retries < 1:
        raise ConfigError("max_retries must be at least 1")

    if config.history_window < 1:
        raise ConfigError("history_window must be at least 1")


def get_generation_options(config: Config) -> dict:
    """
    Get Gemini generation options from configuration.

    Args:
        config: Configuration object

    Returns:
        Dictionary with generation options
    """
    return {
        "text_model": config.text_model,
        "image_model": config.image_model,
        "aspect_ratio": config.aspect_ratio,
        "max_retries": config.max_retries,
        "retry_delay": config.retry_delay,
    }

