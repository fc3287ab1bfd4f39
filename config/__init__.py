"""
Configuration module for the ebook export pipeline.
"""
from .constants import *
from .logging_config import setup_logger, get_logger, logger
from .settings import ExportSettings, settings

__all__ = [
    # Logging
    'setup_logger',
    'get_logger',
    'logger',
    # Settings
    'ExportSettings',
    'settings',
    # Constants (all exported via *)
]
