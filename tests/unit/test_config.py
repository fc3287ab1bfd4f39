"""
Unit Tests for configuration and logging
"""

import logging

from config.logging_config import get_logger
from config.settings import ExportSettings


class TestExportSettings:

    def test_defaults(self):
        settings = ExportSettings(_env_file=None)

        assert settings.image_fetch_timeout == 10.0
        assert settings.cover_image_wait == 3.0
        assert settings.cover_scale == 2
        assert (settings.placeholder_width, settings.placeholder_height) == (400, 300)
        assert settings.docx_max_image_width == 480
        assert settings.author_prefix == "by"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("EBOOK_AUTHOR_PREFIX", "por")
        monkeypatch.setenv("EBOOK_IMAGE_FETCH_TIMEOUT", "2.5")

        settings = ExportSettings(_env_file=None)

        assert settings.author_prefix == "por"
        assert settings.image_fetch_timeout == 2.5

    def test_ensure_output_dir(self, tmp_path):
        settings = ExportSettings(_env_file=None, output_dir=tmp_path / "a" / "b")

        assert settings.ensure_output_dir().is_dir()


class TestLogging:

    def test_get_logger_configures_once(self):
        first = get_logger("ebook_export.test_config")
        second = get_logger("ebook_export.test_config")

        assert first is second
        assert isinstance(first, logging.Logger)
        assert len(first.handlers) == 2
