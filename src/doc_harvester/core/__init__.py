"""
Core module for doc-harvester.

Contains the shared data types, the exception hierarchy and the
progress channel protocol.
"""

from doc_harvester.core.exceptions import (
    HarvesterError,
    ConfigurationError,
    BrowserError,
    ScrapeError,
    TransientActivationFailure,
    NavigationTimeout,
    CrossOriginAccessDenied,
    ContentTooShort,
    ConsecutiveFailureLimitExceeded,
    OutputSizeExceeded,
    SessionAlreadyActive,
    ExtractionError,
    counts_toward_failure_limit,
)
from doc_harvester.core.types import (
    SessionStatus,
    NavigationOutcome,
    NavigationArea,
    ExpandableDescriptor,
    LinkPattern,
    SelectorMatch,
    SiteProfile,
    NavigableItem,
    DiscoveredLink,
    ExtractedPage,
    ScrapeDocument,
    ScrapeStats,
    count_words,
)
from doc_harvester.core.channels import (
    DetailedProgress,
    ContentUpdate,
    ProgressChannel,
    LoggingChannel,
    CompositeChannel,
)

__all__ = [
    # Base
    "HarvesterError",
    "ConfigurationError",
    "BrowserError",
    # Scrape
    "ScrapeError",
    "TransientActivationFailure",
    "NavigationTimeout",
    "CrossOriginAccessDenied",
    "ContentTooShort",
    "ConsecutiveFailureLimitExceeded",
    "OutputSizeExceeded",
    "SessionAlreadyActive",
    # Extraction
    "ExtractionError",
    "counts_toward_failure_limit",
    # Types
    "SessionStatus",
    "NavigationOutcome",
    "NavigationArea",
    "ExpandableDescriptor",
    "LinkPattern",
    "SelectorMatch",
    "SiteProfile",
    "NavigableItem",
    "DiscoveredLink",
    "ExtractedPage",
    "ScrapeDocument",
    "ScrapeStats",
    "count_words",
    # Channels
    "DetailedProgress",
    "ContentUpdate",
    "ProgressChannel",
    "LoggingChannel",
    "CompositeChannel",
]
