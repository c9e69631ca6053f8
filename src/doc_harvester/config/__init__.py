"""
Configuration module for doc-harvester.

Pydantic settings with YAML file support and environment variable overrides.
"""

from doc_harvester.config.settings import (
    Settings,
    BrowserSettings,
    ScrapeOptions,
    ScraperSettings,
    TimingSettings,
    LoggingSettings,
)
from doc_harvester.config.loader import load_config, get_settings, reset_settings

__all__ = [
    "Settings",
    "BrowserSettings",
    "ScrapeOptions",
    "ScraperSettings",
    "TimingSettings",
    "LoggingSettings",
    "load_config",
    "get_settings",
    "reset_settings",
]
