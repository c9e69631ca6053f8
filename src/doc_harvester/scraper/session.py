"""
Scrape session state.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from doc_harvester.core.types import ExtractedPage, ScrapeStats, SessionStatus
from doc_harvester.scraper.dedup import Deduplicator


@dataclass
class ScrapeSession:
    """
    One scrape of one target page.

    Owned by the orchestrator. Pages are appended only through
    ``add_page`` so the scraped counter always equals the page count.
    """

    target: str
    title: str = ""
    status: SessionStatus = SessionStatus.IDLE
    stats: ScrapeStats = field(default_factory=ScrapeStats)
    pages: list[ExtractedPage] = field(default_factory=list)
    stop_requested: bool = False
    active: bool = False
    dedup: Deduplicator = field(default_factory=Deduplicator)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    error_message: str | None = None

    def add_page(self, page: ExtractedPage) -> int:
        """Append a kept page and return its 1-based position."""
        self.pages.append(page)
        self.stats.scraped_count = len(self.pages)
        return self.stats.scraped_count

    def request_stop(self) -> None:
        self.stop_requested = True

    @property
    def elapsed_seconds(self) -> float:
        return (datetime.now(timezone.utc) - self.started_at).total_seconds()

    @property
    def total_words(self) -> int:
        return sum(page.word_count for page in self.pages)
