#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Settings - Centralized configuration management
"""

from pathlib import Path
from pydantic_settings import BaseSettings

from .constants import (
    IMAGE_FETCH_TIMEOUT,
    COVER_IMAGE_WAIT,
    COVER_SCALE,
    PLACEHOLDER_WIDTH,
    PLACEHOLDER_HEIGHT,
    DOCX_MAX_IMAGE_WIDTH,
    DEFAULT_USER_AGENT,
    LOG_LEVEL,
    OUTPUT_DIR,
)


# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent


class ExportSettings(BaseSettings):
    """Export pipeline settings (overridable through EBOOK_* environment variables)"""

    # ========== Output ==========
    output_dir: Path = BASE_DIR / OUTPUT_DIR

    # ========== Images ==========
    image_fetch_timeout: float = IMAGE_FETCH_TIMEOUT  # per resolution strategy
    cover_image_wait: float = COVER_IMAGE_WAIT  # per image inside the cover element
    cover_scale: int = COVER_SCALE  # snapshot device pixel ratio
    placeholder_width: int = PLACEHOLDER_WIDTH
    placeholder_height: int = PLACEHOLDER_HEIGHT
    docx_max_image_width: int = DOCX_MAX_IMAGE_WIDTH
    user_agent: str = DEFAULT_USER_AGENT

    # ========== Text ==========
    author_prefix: str = "by"  # author line on cover/title pages: "<prefix> <author>"

    # ========== Logging ==========
    log_level: str = LOG_LEVEL

    class Config:
        env_prefix = "EBOOK_"
        env_file = str(BASE_DIR / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Allow extra fields from .env that aren't defined in model

    def ensure_output_dir(self) -> Path:
        """Create the output directory on demand and return it"""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir

    def print_config(self):
        """Print configuration summary"""
        print("\n" + "=" * 70)
        print("EXPORT CONFIGURATION")
        print("=" * 70)
        print(f"Output dir:      {self.output_dir}")
        print(f"Fetch timeout:   {self.image_fetch_timeout}s")
        print(f"Cover wait:      {self.cover_image_wait}s per image")
        print(f"Cover scale:     {self.cover_scale}x")
        print(f"Author prefix:   {self.author_prefix!r}")
        print("=" * 70 + "\n")


# Global settings instance
settings = ExportSettings()
