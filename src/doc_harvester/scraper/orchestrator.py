"""
Scrape orchestration.

Drives a session through analysis, discovery and the page loop, and
assembles the captured pages into one document. The page loop is strictly
sequential: every page shares the one live environment.
"""

from dataclasses import replace
from typing import Any

from doc_harvester.browser.environment import Environment
from doc_harvester.config.loader import get_settings
from doc_harvester.config.settings import ScrapeOptions, Settings
from doc_harvester.core.channels import (
    ContentUpdate,
    DetailedProgress,
    LoggingChannel,
    ProgressChannel,
)
from doc_harvester.core.exceptions import (
    ConsecutiveFailureLimitExceeded,
    ContentTooShort,
    OutputSizeExceeded,
    SessionAlreadyActive,
    counts_toward_failure_limit,
)
from doc_harvester.core.types import (
    ExtractedPage,
    NavigableItem,
    ScrapeDocument,
    SessionStatus,
    count_words,
)
from doc_harvester.discovery.analyzer import SiteStructureAnalyzer
from doc_harvester.discovery.expansion import ExpansionEngine
from doc_harvester.discovery.strategies import (
    ComprehensiveStrategy,
    LegacyDiscovery,
    select_strategy,
)
from doc_harvester.extraction.content_extractor import ContentExtractor
from doc_harvester.navigation.engine import NavigationEngine
from doc_harvester.scraper.dedup import Deduplicator
from doc_harvester.scraper.session import ScrapeSession
from doc_harvester.utils.logging import get_logger, get_logger_with_context
from doc_harvester.utils.metrics import (
    EXTRACTION_LATENCY,
    PAGES_DISCARDED,
    PAGES_SCRAPED,
    PAGES_SKIPPED,
    Metrics,
)

logger = get_logger(__name__)


TRUNCATION_NOTICE = "\n\n[Content truncated due to size]"
PARTIAL_PREFIX = "PARTIAL - "
DOCUMENT_TITLE_PREFIX = "Complete Documentation - "

# Progress band covered by the page loop
LOOP_PROGRESS_START = 20
LOOP_PROGRESS_SPAN = 60


def combine_pages(pages: list[ExtractedPage], url: str, page_title: str) -> ScrapeDocument:
    """
    Concatenate pages into one document.

    Each page becomes a ``# section`` block with its URL line, closed by a
    horizontal rule. Word counts are summed from the pages.
    """
    parts = []
    word_count = 0

    for page in pages:
        content = page.content.strip()
        if not content:
            continue

        parts.append(f"\n\n# {page.section_title or 'Section'}\n\n")
        if page.section_url:
            parts.append(f"**Section URL:** {page.section_url}\n\n")
        parts.append(content)
        parts.append("\n\n---\n")
        word_count += page.word_count or count_words(content)

    return ScrapeDocument(
        url=url,
        title=DOCUMENT_TITLE_PREFIX + page_title,
        content="".join(parts),
        word_count=word_count,
        sections_count=len(pages),
    )


def enforce_size_limit(
    document: ScrapeDocument,
    max_chars: int,
    reserve_chars: int = 10000,
) -> ScrapeDocument:
    """
    Truncate an oversized document and append the truncation notice once.

    The word count is recomputed from the truncated content.
    """
    size = len(document.content)
    if size <= max_chars:
        return document

    error = OutputSizeExceeded("Document too large, truncating", size=size, limit=max_chars)
    logger.warning(f"{error}")

    content = document.content[:max(max_chars - reserve_chars, 0)] + TRUNCATION_NOTICE
    return replace(
        document,
        content=content,
        word_count=count_words(content),
        truncated=True,
    )


class ScrapeOrchestrator:
    """
    Runs scrape sessions against one live environment.

    At most one session is active at a time.

    Example:
        >>> orchestrator = ScrapeOrchestrator(env, settings)
        >>> session = orchestrator.open_session("https://docs.example.com")
        >>> document = await orchestrator.run_comprehensive(session)
        >>> print(document.title, document.sections_count)
    """

    def __init__(
        self,
        env: Environment,
        settings: Settings | None = None,
        channel: ProgressChannel | None = None,
    ) -> None:
        self.env = env
        self.settings = settings or get_settings()
        self.channel = channel or LoggingChannel()

        self.extractor = ContentExtractor()
        self.expansion = ExpansionEngine(env, self.settings.timing, self.channel)
        self.navigator = NavigationEngine(env, self.settings.timing, self.channel)

        self.session: ScrapeSession | None = None

    @property
    def active(self) -> bool:
        return self.session is not None and self.session.active

    def resolve_options(
        self,
        options: ScrapeOptions | dict[str, Any] | None = None,
    ) -> ScrapeOptions:
        """Merge request options over the configured defaults."""
        defaults = self.settings.scraper.defaults
        if options is None:
            return defaults
        if isinstance(options, ScrapeOptions):
            return options
        return defaults.model_copy(
            update={k: v for k, v in options.items() if v is not None})

    def open_session(self, target: str) -> ScrapeSession:
        """
        Start a new session.

        Raises:
            SessionAlreadyActive: If a session is still running
        """
        if self.active:
            raise SessionAlreadyActive(
                "A scrape is already in progress",
                status=self.session.status.value,
            )

        self.session = ScrapeSession(
            target=target,
            active=True,
            dedup=Deduplicator(self.settings.scraper.fingerprint_chars),
        )
        logger.info(f"Opened session for {target}")
        return self.session

    def request_stop(self) -> bool:
        """Ask the active session to stop at its next checkpoint."""
        if not self.active:
            return False
        logger.info("Stop requested")
        self.session.request_stop()
        return True

    # -------------------------------------------------------------------------
    # Single page
    # -------------------------------------------------------------------------

    async def run_single_page(
        self,
        session: ScrapeSession,
        options: ScrapeOptions | dict[str, Any] | None = None,
    ) -> ScrapeDocument | None:
        """Extract the current page only."""
        options = self.resolve_options(options)
        scraper = self.settings.scraper

        try:
            self.channel.progress(0, "Starting extraction...")
            if options.wait_for_dynamic:
                self.channel.progress(10, "Waiting for dynamic content...")
                await self.navigator.wait_for_dynamic_content()

            session.status = SessionStatus.SCRAPING_PAGES
            self.channel.progress(20, "Analyzing page structure...")
            page = await self.extractor.extract_page(self.env, options)
            try:
                self.check_length(page)
            except ContentTooShort as e:
                # Still delivered, but sessions only hold meaningful pages
                logger.debug(f"Short page not kept in session: {e}")
            else:
                session.add_page(page)

            self.channel.progress(80, "Processing extracted content...")
            document = ScrapeDocument(
                url=page.url,
                title=page.title,
                content=page.content,
                word_count=page.word_count,
                sections_count=page.sections_count,
            )
            document = enforce_size_limit(
                document, scraper.max_output_chars, scraper.truncation_reserve_chars)

            session.status = SessionStatus.COMPLETED
            self.channel.progress(100, "Complete")
            self.channel.complete(document)
            return document

        except Exception as e:
            self._fail(session, e)
            return None

        finally:
            session.active = False

    # -------------------------------------------------------------------------
    # Comprehensive
    # -------------------------------------------------------------------------

    async def run_comprehensive(
        self,
        session: ScrapeSession,
        options: ScrapeOptions | dict[str, Any] | None = None,
    ) -> ScrapeDocument | None:
        """
        Discover and scrape every page reachable from the current one.

        Returns:
            The delivered document, or None when nothing was delivered
        """
        options = self.resolve_options(options)
        log = get_logger_with_context(__name__, target=session.target)

        try:
            session.title = await self.extractor.extract_title(self.env)
            self.channel.progress(0, "Finding documentation sections...")

            if self.settings.scraper.capture_overview:
                await self._capture_overview(session, options)

            if session.stop_requested:
                return self._finish_stopped(session)

            session.status = SessionStatus.ANALYZING
            self.channel.progress(5, "Analyzing site structure...")
            profile = await SiteStructureAnalyzer(self.env).analyze()
            self.channel.detailed(DetailedProgress(
                current_action=f"Analyzed: {profile.site_type} site with {profile.navigation_style}",
                action=f"Site type: {profile.site_type}, navigation: {profile.navigation_style}",
            ))

            if session.stop_requested:
                return self._finish_stopped(session)

            session.status = SessionStatus.DISCOVERING
            self.channel.progress(10, "Discovering pages...")
            strategy = select_strategy(profile, self.env, self.expansion, self.channel)
            items = await strategy.discover()

            if not items and not isinstance(strategy, ComprehensiveStrategy):
                log.warning(f"{strategy.name} strategy found nothing, trying legacy discovery")
                self.channel.detailed(DetailedProgress(
                    current_action="No pages found - trying comprehensive approach...",
                    action="Falling back to legacy discovery",
                    action_type="warning",
                ))
                items = await LegacyDiscovery(
                    self.env, profile, self.expansion, self.channel).discover()

            session.stats.found_links = len(items)
            session.stats.expanded_count = self.expansion.total_expanded
            log.info(f"Discovered {len(items)} pages")

            if session.stop_requested:
                return self._finish_stopped(session)

            session.status = SessionStatus.SCRAPING_PAGES
            self.channel.progress(LOOP_PROGRESS_START, f"Scraping {len(items)} pages...")
            try:
                await self._scrape_pages(session, items, options)
            except ConsecutiveFailureLimitExceeded as e:
                log.warning(f"Stopping page loop early: {e}")

            if session.stop_requested:
                return self._finish_stopped(session)

            self.channel.progress(90, "Combining all documentation...")
            document = self._assemble(session)
            session.status = SessionStatus.COMPLETED

            log.info(
                f"Scrape complete: {document.sections_count} sections, "
                f"{document.word_count} words"
            )
            self.channel.progress(100, "Complete")
            self.channel.complete(document)
            return document

        except Exception as e:
            self._fail(session, e)
            return None

        finally:
            session.active = False

    async def _capture_overview(self, session: ScrapeSession, options: ScrapeOptions) -> None:
        self.channel.detailed(DetailedProgress(
            current_action="Capturing main page content...",
            expanded_count=0,
        ))

        page = await self.extractor.extract_page(self.env, options)
        try:
            self.check_length(page)
        except ContentTooShort:
            logger.info("Main page content was minimal or empty")
            return

        page.section_title = self.settings.scraper.overview_title
        page.section_url = page.url
        session.dedup.mark_visited(NavigableItem(
            title=page.section_title, url=page.url, href=""))
        self._keep_page(session, page)

    async def _scrape_pages(
        self,
        session: ScrapeSession,
        items: list[NavigableItem],
        options: ScrapeOptions,
    ) -> None:
        """
        Visit every item in order.

        Raises:
            ConsecutiveFailureLimitExceeded: When the failure breaker trips
        """
        total = len(items)
        limit = self.settings.scraper.max_consecutive_failures
        metrics = Metrics.get()
        failures = 0

        for index, item in enumerate(items):
            if session.stop_requested:
                logger.info("Stopping at user request")
                break

            if session.dedup.should_skip(item):
                metrics.increment(PAGES_SKIPPED)
                logger.debug(f"Skipping duplicate: {item.title}")
                continue
            session.dedup.mark_visited(item)

            self.channel.detailed(DetailedProgress(
                current_action=f"Page {index + 1}/{total}: {item.title}",
                action=f"Scraping: {item.title}",
            ))

            try:
                page = await self.scrape_item(item, options)
            except Exception as e:
                if not counts_toward_failure_limit(e):
                    metrics.increment(PAGES_DISCARDED)
                    logger.debug(f"Discarded {item.title!r}: {e}")
                else:
                    failures += 1
                    logger.warning(
                        f"Failed to scrape {item.title!r} "
                        f"({failures} consecutive failures): {e}"
                    )
                    if failures >= limit:
                        raise ConsecutiveFailureLimitExceeded(
                            f"{failures} consecutive page failures", failures=failures)
            else:
                if session.dedup.is_duplicate_content(page.content):
                    metrics.increment(PAGES_DISCARDED)
                    logger.debug(f"Skipping duplicate content for {item.title!r}")
                else:
                    self._keep_page(session, page)
                    failures = 0

            percent = LOOP_PROGRESS_START + int((index + 1) / total * LOOP_PROGRESS_SPAN)
            self.channel.progress(percent, f"Scraped page {index + 1}/{total}")

            if index < total - 1:
                await self.env.wait(self.settings.timing.inter_page_delay_ms)

    async def scrape_item(
        self,
        item: NavigableItem,
        options: ScrapeOptions,
    ) -> ExtractedPage:
        """
        Navigate to one item and extract it.

        Raises:
            NavigationTimeout: If the page could not be reached
            ContentTooShort: If the page has too little text
        """
        try:
            await self.navigator.navigate(item, options)
            with Metrics.get().timer(EXTRACTION_LATENCY):
                page = await self.extractor.extract_page(self.env, options)
        finally:
            # The handle is stale once the page has moved on
            item.element = None

        self.check_length(page)
        page.section_title = item.title
        page.section_url = item.url or page.url
        return page

    def check_length(self, page: ExtractedPage) -> None:
        minimum = self.settings.scraper.min_content_chars
        length = len(page.content.strip())
        if length <= minimum:
            raise ContentTooShort(
                "No meaningful content found", length=length, minimum=minimum, url=page.url)

    def _keep_page(self, session: ScrapeSession, page: ExtractedPage) -> None:
        session.dedup.record_content(page.content)
        number = session.add_page(page)
        Metrics.get().increment(PAGES_SCRAPED)

        title = page.section_title or page.title
        self.channel.content_update(ContentUpdate.from_page(
            page, number, self.settings.scraper.preview_chars))
        self.channel.detailed(DetailedProgress(
            scraped_count=number,
            action=f"Scraped: {title} ({page.word_count} words)",
            action_type="success",
        ))

    def _assemble(self, session: ScrapeSession, partial: bool = False) -> ScrapeDocument:
        scraper = self.settings.scraper
        document = combine_pages(session.pages, session.target, session.title)
        document = enforce_size_limit(
            document, scraper.max_output_chars, scraper.truncation_reserve_chars)

        if partial:
            document = replace(document, title=PARTIAL_PREFIX + document.title, partial=True)
        return document

    def _finish_stopped(self, session: ScrapeSession) -> ScrapeDocument | None:
        """Deliver whatever was captured as a partial document."""
        session.status = SessionStatus.STOPPING

        if not session.pages:
            logger.info("Stopped before any page was captured")
            session.status = SessionStatus.COMPLETED
            return None

        logger.info(f"Sending partial data: {len(session.pages)} sections")
        document = self._assemble(session, partial=True)
        session.status = SessionStatus.COMPLETED
        self.channel.complete(document)
        return document

    def _fail(self, session: ScrapeSession, error: Exception) -> None:
        logger.error(f"Scrape failed: {error}")
        session.status = SessionStatus.FAILED
        session.error_message = str(error)
        self.channel.error(str(error))
