"""
Scraper module for doc-harvester.

Session state, deduplication, the orchestrated page loop and the control
surface for embedding applications.
"""

from doc_harvester.scraper.dedup import Deduplicator, fingerprint
from doc_harvester.scraper.session import ScrapeSession
from doc_harvester.scraper.orchestrator import (
    ScrapeOrchestrator,
    combine_pages,
    enforce_size_limit,
    TRUNCATION_NOTICE,
    PARTIAL_PREFIX,
)
from doc_harvester.scraper.controller import ControlAck, ScrapeController

__all__ = [
    "Deduplicator",
    "fingerprint",
    "ScrapeSession",
    "ScrapeOrchestrator",
    "combine_pages",
    "enforce_size_limit",
    "TRUNCATION_NOTICE",
    "PARTIAL_PREFIX",
    "ControlAck",
    "ScrapeController",
]
