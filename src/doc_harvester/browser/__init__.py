"""
Browser module for doc-harvester.

The Environment protocol the scraping core is written against, and its
Playwright implementation with browser lifecycle management.
"""

from doc_harvester.browser.environment import (
    EXPANDED_MARKER,
    HIDDEN_MARKER,
    ElementRef,
    Environment,
    FrameContent,
    ScrollMetrics,
)
from doc_harvester.browser.manager import BrowserManager
from doc_harvester.browser.page_environment import PageEnvironment, PlaywrightElement

__all__ = [
    "EXPANDED_MARKER",
    "HIDDEN_MARKER",
    "ElementRef",
    "Environment",
    "FrameContent",
    "ScrollMetrics",
    "BrowserManager",
    "PageEnvironment",
    "PlaywrightElement",
]
