"""
Navigation to discovered pages.

Documentation sites route in many ways: full page loads, history-API
client routing, hash routing, or handlers attached to list items rather
than the anchor itself. The engine clicks the item, watches for any sign
that the page changed, and escalates through alternative activation
tactics before giving up.
"""

from dataclasses import dataclass

from doc_harvester.browser.environment import Environment
from doc_harvester.config.settings import ScrapeOptions, TimingSettings
from doc_harvester.core.channels import DetailedProgress, LoggingChannel, ProgressChannel
from doc_harvester.core.exceptions import NavigationTimeout, TransientActivationFailure
from doc_harvester.core.types import NavigableItem, NavigationOutcome
from doc_harvester.utils.logging import get_logger
from doc_harvester.utils.metrics import (
    FALLBACK_TACTICS,
    NAVIGATION_LATENCY,
    NAVIGATION_TIMEOUTS,
    Metrics,
)
from doc_harvester.utils.urls import path_of, strip_fragment

logger = get_logger(__name__)


MAIN_CONTENT_SELECTORS = [
    "main",
    '[role="main"]',
    ".main-content",
    ".content",
    ".docs-content",
    "#content",
]

LOADING_SELECTOR = '[class*="loading"], [class*="spinner"], [id*="loading"]'

PARENT_TARGET_SELECTOR = 'li, .nav-item, [role="menuitem"]'

POINTER_EVENTS = ("mousedown", "mouseup", "pointerdown", "pointerup")

# Content shorter than this is not evidence of a page change
MIN_CHANGED_CONTENT = 100

MIN_SCROLL_STEP = 100


async def main_content_snapshot(env: Environment) -> str:
    """Text of the first main-content container, or of the body."""
    for selector in MAIN_CONTENT_SELECTORS:
        element = await env.query(selector)
        if element is not None:
            return (await element.text()).strip()

    body = await env.body()
    return (await body.text()).strip() if body is not None else ""


@dataclass
class PageState:
    """What the page looked like before a navigation attempt."""

    location: str
    navigation_count: int
    content: str

    @classmethod
    async def capture(cls, env: Environment) -> "PageState":
        return cls(
            location=await env.location(),
            navigation_count=env.navigation_count(),
            content=await main_content_snapshot(env),
        )


class NavigationEngine:
    """
    Brings the page an item points to into view.

    Example:
        >>> engine = NavigationEngine(env, settings.timing)
        >>> outcome = await engine.navigate(item)
        >>> outcome
        <NavigationOutcome.ACTIVATED: 'activated'>
    """

    def __init__(
        self,
        env: Environment,
        timing: TimingSettings | None = None,
        channel: ProgressChannel | None = None,
    ) -> None:
        self.env = env
        self.timing = timing or TimingSettings()
        self.channel = channel or LoggingChannel()

    async def is_current(self, item: NavigableItem) -> bool:
        """True if the item addresses the page already showing."""
        location = await self.env.location()
        href = item.href.strip()
        if not href or href == "#" or href == path_of(location):
            return True
        return bool(item.url) and strip_fragment(item.url) == strip_fragment(location)

    async def navigate(
        self,
        item: NavigableItem,
        options: ScrapeOptions | None = None,
    ) -> NavigationOutcome:
        """
        Navigate to an item.

        Args:
            item: Discovered page with its live element
            options: Controls the dynamic-content wait after navigation

        Returns:
            How the page was reached

        Raises:
            NavigationTimeout: If no tactic produced a navigation signal
        """
        options = options or ScrapeOptions()

        if await self.is_current(item):
            logger.debug(f"Already on page for {item.title!r}")
            return NavigationOutcome.ALREADY_PRESENT

        self.channel.detailed(DetailedProgress(
            current_action=f"Navigating to: {item.title}",
        ))

        with Metrics.get().timer(NAVIGATION_LATENCY):
            before = await PageState.capture(self.env)

            outcome = None
            if await self._click(item) and await self._poll_for_signal(before):
                outcome = NavigationOutcome.ACTIVATED
            elif await self._fallback(item, before):
                outcome = NavigationOutcome.FALLBACK

            if outcome is None:
                Metrics.get().increment(NAVIGATION_TIMEOUTS)
                logger.warning(f"No navigation or content change detected for {item.title!r}")
                raise NavigationTimeout(
                    "No navigation signal",
                    url=item.url,
                    title=item.title,
                    attempts=self.timing.navigation_poll_attempts,
                )

            logger.debug(f"Reached {item.title!r} ({outcome.value})")
            await self.env.wait(self.timing.post_navigation_settle_ms)

        if options.wait_for_dynamic:
            await self.wait_for_dynamic_content()

        return outcome

    async def _click(self, item: NavigableItem) -> bool:
        element = item.element
        if element is None:
            return False
        try:
            await element.scroll_into_view()
            await self.env.wait(self.timing.pre_activation_ms)
            await element.activate()
        except TransientActivationFailure as e:
            logger.debug(f"Click failed for {item.title!r}: {e}")
        return True

    async def has_signal(self, before: PageState, content_only: bool = False) -> bool:
        """
        True if the page moved on since ``before``.

        After the engine rewrites the location itself, only a content
        change counts: the location and history events it caused are not
        evidence that the site responded.
        """
        if not content_only:
            if await self.env.location() != before.location:
                return True
            if self.env.navigation_count() != before.navigation_count:
                return True
        content = await main_content_snapshot(self.env)
        return len(content) > MIN_CHANGED_CONTENT and content != before.content

    async def _poll_for_signal(self, before: PageState) -> bool:
        for _ in range(self.timing.navigation_poll_attempts):
            await self.env.wait(self.timing.navigation_poll_interval_ms)
            if await self.has_signal(before):
                return True
        return False

    async def _fallback(self, item: NavigableItem, before: PageState) -> bool:
        """Alternative activation tactics, checked for a signal after each."""
        logger.info(f"Trying alternative navigation for {item.title!r}")
        metrics = Metrics.get()
        element = item.element

        if element is not None:
            metrics.increment(FALLBACK_TACTICS)
            try:
                for event_type in POINTER_EVENTS:
                    await element.dispatch_event(event_type)
                    await self.env.wait(self.timing.fallback_event_pause_ms)
            except TransientActivationFailure as e:
                logger.debug(f"Pointer events failed: {e}")
            if await self.has_signal(before):
                return True

            metrics.increment(FALLBACK_TACTICS)
            try:
                await element.press_key("Enter")
                await self.env.wait(self.timing.fallback_pause_ms)
            except TransientActivationFailure as e:
                logger.debug(f"Enter key failed: {e}")
            if await self.has_signal(before):
                return True

            parent = await element.closest(PARENT_TARGET_SELECTOR)
            if parent is not None and not await element.contains(parent):
                metrics.increment(FALLBACK_TACTICS)
                try:
                    await parent.activate()
                    await self.env.wait(self.timing.fallback_pause_ms)
                except TransientActivationFailure as e:
                    logger.debug(f"Parent activation failed: {e}")
                if await self.has_signal(before):
                    return True

        metrics.increment(FALLBACK_TACTICS)
        href = item.href.strip()
        if href.startswith("#"):
            await self.env.set_hash(href[1:])
        elif item.url:
            logger.debug(f"Trying direct navigation to {item.url}")
            await self.env.push_location(item.url)
        await self.env.wait(self.timing.direct_navigation_settle_ms)

        return await self.has_signal(before, content_only=True)

    async def wait_for_dynamic_content(self) -> None:
        """
        Wait for late content: stop when the document grows or no loading
        indicator remains, then scroll through the page for lazy loaders.
        """
        initial_height = (await self.env.scroll_metrics()).scroll_height
        waited = 0

        while waited < self.timing.dynamic_wait_max_ms:
            await self.env.wait(self.timing.dynamic_poll_interval_ms)
            waited += self.timing.dynamic_poll_interval_ms

            if (await self.env.scroll_metrics()).scroll_height > initial_height:
                await self.env.wait(self.timing.dynamic_growth_settle_ms)
                break
            if await self.env.count(LOADING_SELECTOR) == 0:
                break

        await self.trigger_lazy_loading()

    async def trigger_lazy_loading(self) -> None:
        """Scroll down in half-viewport steps, then back to the top."""
        metrics = await self.env.scroll_metrics()
        step = max(metrics.viewport_height // 2, MIN_SCROLL_STEP)

        position = 0
        while position < metrics.scroll_height:
            await self.env.scroll_to(position)
            await self.env.wait(self.timing.lazy_scroll_step_ms)
            position += step

        await self.env.scroll_to(0)
        await self.env.wait(self.timing.lazy_scroll_return_ms)
