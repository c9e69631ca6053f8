"""
Progress and completion channels.

The scraping core reports what it is doing through a ProgressChannel. The
embedding application decides what to do with the events: render them,
forward them over a message bus, or just log them. Every payload is plain
data and serializes with ``to_dict()``.
"""

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from doc_harvester.core.types import ExtractedPage, ScrapeDocument
from doc_harvester.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class DetailedProgress:
    """
    Fine-grained activity report.

    Only the fields that changed are set; ``to_dict`` omits the rest.
    """

    current_action: str | None = None
    action: str | None = None
    action_type: str = "info"
    expanded_count: int | None = None
    found_links: int | None = None
    scraped_count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"action_type": self.action_type}
        for key in ("current_action", "action", "expanded_count",
                    "found_links", "scraped_count"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass
class ContentUpdate:
    """A page just added to the session, with a short preview."""

    title: str
    url: str
    preview: str
    word_count: int
    page_number: int

    @classmethod
    def from_page(
        cls,
        page: ExtractedPage,
        page_number: int,
        preview_chars: int = 500,
    ) -> "ContentUpdate":
        preview = page.content[:preview_chars]
        if len(page.content) > preview_chars:
            preview += "..."
        return cls(
            title=page.section_title or page.title,
            url=page.section_url or page.url,
            preview=preview,
            word_count=page.word_count,
            page_number=page_number,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "preview": self.preview,
            "word_count": self.word_count,
            "page_number": self.page_number,
        }


@runtime_checkable
class ProgressChannel(Protocol):
    """Receiver of progress, content and completion events."""

    def progress(self, percent: int, status: str) -> None:
        ...

    def detailed(self, update: DetailedProgress) -> None:
        ...

    def content_update(self, update: ContentUpdate) -> None:
        ...

    def complete(self, document: ScrapeDocument) -> None:
        ...

    def error(self, message: str) -> None:
        ...


class LoggingChannel:
    """Default channel: writes every event to the application log."""

    def progress(self, percent: int, status: str) -> None:
        logger.info(f"[{percent:3d}%] {status}")

    def detailed(self, update: DetailedProgress) -> None:
        message = update.action or update.current_action
        if message:
            logger.debug(message)

    def content_update(self, update: ContentUpdate) -> None:
        logger.info(
            f"Page {update.page_number}: {update.title} ({update.word_count} words)")

    def complete(self, document: ScrapeDocument) -> None:
        logger.info(
            f"Complete: {document.title} "
            f"({document.sections_count} sections, {document.word_count} words)"
        )

    def error(self, message: str) -> None:
        logger.error(message)


class CompositeChannel:
    """Fans every event out to several channels."""

    def __init__(self, *channels: ProgressChannel) -> None:
        self.channels = list(channels)

    def progress(self, percent: int, status: str) -> None:
        for channel in self.channels:
            channel.progress(percent, status)

    def detailed(self, update: DetailedProgress) -> None:
        for channel in self.channels:
            channel.detailed(update)

    def content_update(self, update: ContentUpdate) -> None:
        for channel in self.channels:
            channel.content_update(update)

    def complete(self, document: ScrapeDocument) -> None:
        for channel in self.channels:
            channel.complete(document)

    def error(self, message: str) -> None:
        for channel in self.channels:
            channel.error(message)
