"""
Shared data types for doc-harvester.

Everything here is plain data. Live element handles only appear on
NavigableItem and are excluded from serialization.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class SessionStatus(str, Enum):
    """Lifecycle states of a scrape session."""

    IDLE = "idle"
    ANALYZING = "analyzing"
    DISCOVERING = "discovering"
    SCRAPING_PAGES = "scraping_pages"
    STOPPING = "stopping"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.FAILED)


class NavigationOutcome(str, Enum):
    """How the navigation engine reached a page."""

    ALREADY_PRESENT = "already_present"
    ACTIVATED = "activated"
    FALLBACK = "fallback"


# Site profile -----------------------------------------------------------------


@dataclass(frozen=True)
class NavigationArea:
    """A region holding a cluster of navigation links."""

    selector: str
    index: int
    link_count: int
    expandable_count: int = 0


@dataclass(frozen=True)
class ExpandableDescriptor:
    """Element that looks like a disclosure toggle, addressed by selector and match index."""

    selector: str
    index: int
    text: str
    tag: str


@dataclass(frozen=True)
class LinkPattern:
    """A generalized href shape shared by several links."""

    pattern: str
    count: int
    examples: tuple[str, ...] = ()


@dataclass(frozen=True)
class SelectorMatch:
    """Best selector found for a structural role such as 'contentArea'."""

    role: str
    selector: str
    count: int


@dataclass(frozen=True)
class SiteProfile:
    """
    Result of analyzing a site's structure.

    Built once per session and never mutated. Holds descriptors only,
    never live handles, so it is safe to log or serialize.
    """

    site_type: str = "unknown"
    navigation_style: str = "unknown"
    content_pattern: str = "unknown"
    navigation_areas: tuple[NavigationArea, ...] = ()
    expandable_elements: tuple[ExpandableDescriptor, ...] = ()
    link_patterns: tuple[LinkPattern, ...] = ()
    special_selectors: tuple[SelectorMatch, ...] = ()
    confidence: int = 0

    def selector_for(self, role: str) -> str | None:
        """Return the selector recorded for a role, if any."""
        for match in self.special_selectors:
            if match.role == role:
                return match.selector
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "site_type": self.site_type,
            "navigation_style": self.navigation_style,
            "content_pattern": self.content_pattern,
            "navigation_areas": [
                {"selector": a.selector, "index": a.index,
                 "link_count": a.link_count, "expandable_count": a.expandable_count}
                for a in self.navigation_areas
            ],
            "expandable_elements": len(self.expandable_elements),
            "link_patterns": [
                {"pattern": p.pattern, "count": p.count} for p in self.link_patterns
            ],
            "special_selectors": {
                m.role: {"selector": m.selector, "count": m.count}
                for m in self.special_selectors
            },
            "confidence": self.confidence,
        }


# Navigation items -------------------------------------------------------------


@dataclass
class NavigableItem:
    """
    A page reachable from the current site.

    `element` is a short-lived handle into the live page. It is valid only
    for the current navigation attempt and is never serialized.
    """

    title: str
    url: str
    href: str
    element: Any = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "url": self.url, "href": self.href}


@dataclass
class DiscoveredLink(NavigableItem):
    """A navigable item with its discovery provenance."""

    selector: str = ""
    nesting_level: int = 0

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["selector"] = self.selector
        data["nesting_level"] = self.nesting_level
        return data


# Extraction results -----------------------------------------------------------


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


@dataclass
class ExtractedPage:
    """Text extracted from one page. Primitive fields only."""

    url: str
    title: str
    content: str
    word_count: int = 0
    sections_count: int = 1
    section_title: str | None = None
    section_url: str | None = None

    def __post_init__(self) -> None:
        if not self.word_count and self.content:
            self.word_count = count_words(self.content)

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "content": self.content,
            "word_count": self.word_count,
            "sections_count": self.sections_count,
            "section_title": self.section_title,
            "section_url": self.section_url,
        }


@dataclass
class ScrapeDocument:
    """The completion payload delivered to the embedding application."""

    url: str
    title: str
    content: str
    word_count: int
    sections_count: int
    partial: bool = False
    truncated: bool = False
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "content": self.content,
            "word_count": self.word_count,
            "sections_count": self.sections_count,
            "partial": self.partial,
            "truncated": self.truncated,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class ScrapeStats:
    """Running counters for a session."""

    expanded_count: int = 0
    found_links: int = 0
    scraped_count: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "expanded_count": self.expanded_count,
            "found_links": self.found_links,
            "scraped_count": self.scraped_count,
        }
