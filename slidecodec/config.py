"""
config.py — Environment configuration and logging setup.

Settings are read from ``SLIDECODEC_*`` environment variables, optionally
seeded from a ``.env`` file at the project root.
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

ENV_PREFIX = "SLIDECODEC_"


# Load .env file if it exists
def _load_dotenv() -> None:
    env_path = Path(__file__).parent.parent / ".env"
    if not env_path.exists():
        return
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip()
            if key.startswith(ENV_PREFIX) and value and key not in os.environ:
                os.environ[key] = value


_load_dotenv()


def _env(name: str, default: str) -> str:
    return os.environ.get(ENV_PREFIX + name, default)


def _env_bool(name: str, default: bool) -> bool:
    return _env(name, "true" if default else "false").lower() in ("1", "true", "yes")


class Settings:
    """Codec settings loaded from environment variables."""

    def __init__(self):
        # Logging
        self.log_level: str = _env("LOG_LEVEL", "INFO").upper()

        # Extraction
        self.raw_mode: bool = _env_bool("RAW_MODE", False)
        self.background_coverage: float = float(_env("BACKGROUND_COVERAGE", "0.9"))
        self.background_origin_tolerance: float = float(_env("BACKGROUND_ORIGIN_TOLERANCE", "0.1"))
        self.shear_epsilon: float = float(_env("SHEAR_EPSILON", "0.001"))

        # Generation defaults
        self.default_font_family: str = _env("DEFAULT_FONT_FAMILY", "Roboto")
        self.default_font_size: float = float(_env("DEFAULT_FONT_SIZE", "16"))
        self.default_text_color: str = _env("DEFAULT_TEXT_COLOR", "#1e293b")
        self.default_line_weight: float = float(_env("DEFAULT_LINE_WEIGHT", "2"))
        self.bullet_preset: str = _env("BULLET_PRESET", "BULLET_DISC_CIRCLE_SQUARE")
        self.icon_color: str = _env("ICON_COLOR", "#3b82f6")
        self.icon_bg_opacity: float = float(_env("ICON_BG_OPACITY", "0.12"))
        self.wordart_font_size: float = float(_env("WORDART_FONT_SIZE", "48"))
        self.shadow_preset: str = _env("SHADOW_PRESET", "medium")

        # Validation limits
        self.max_slides: int = int(_env("MAX_SLIDES", "100"))
        self.max_elements_per_slide: int = int(_env("MAX_ELEMENTS_PER_SLIDE", "100"))
        self.max_text_length: int = int(_env("MAX_TEXT_LENGTH", "10000"))
        self.min_dimension: float = float(_env("MIN_DIMENSION", "1"))
        self.max_dimension: float = float(_env("MAX_DIMENSION", "5000"))
        self.min_font_size: float = float(_env("MIN_FONT_SIZE", "1"))
        self.max_font_size: float = float(_env("MAX_FONT_SIZE", "400"))


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for scripts and services embedding slidecodec."""
    logging.basicConfig(
        level=(level or get_settings().log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
