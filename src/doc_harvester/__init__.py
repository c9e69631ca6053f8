"""
doc-harvester - Adaptive documentation site scraper.

This package explores a documentation site whose navigation structure is
not known in advance: it classifies the site, reveals collapsed navigation,
visits every content page once and assembles an LLM-ready text corpus.
"""

from doc_harvester.config import Settings, load_config
from doc_harvester.utils.logging import setup_logging, get_logger
from doc_harvester.core.exceptions import HarvesterError
from doc_harvester.extraction import ContentExtractor
from doc_harvester.scraper import ScrapeOrchestrator, ScrapeController

__version__ = "0.1.0"
__author__ = "doc-harvester developers"

__all__ = [
    "Settings",
    "load_config",
    "setup_logging",
    "get_logger",
    "HarvesterError",
    "ContentExtractor",
    "ScrapeOrchestrator",
    "ScrapeController",
]
