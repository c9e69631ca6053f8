"""
Playwright implementation of the Environment capability surface.

Wraps a Playwright Page and its ElementHandles. Element activation uses
the DOM's own click() so collapsed or partially covered navigation
controls can still be driven, which Playwright's actionability checks
would otherwise refuse.
"""

import time
from urllib.parse import urlparse

from playwright.async_api import ElementHandle, Error as PlaywrightError, Frame, Page

from doc_harvester.browser.environment import (
    HIDDEN_MARKER,
    FrameContent,
    ScrollMetrics,
)
from doc_harvester.core.exceptions import BrowserError, TransientActivationFailure
from doc_harvester.utils.logging import get_logger

logger = get_logger(__name__)


# Clone the subtree and mark nodes hidden by computed style. Attributes are
# left as authored.
_SNAPSHOT_JS = """
(root, marker) => {
    const live = [root, ...root.querySelectorAll('*')];
    const flags = live.map(el => {
        const style = window.getComputedStyle(el);
        return style.display === 'none' || style.visibility === 'hidden';
    });
    const clone = root.cloneNode(true);
    const copies = [clone, ...clone.querySelectorAll('*')];
    copies.forEach((el, i) => {
        if (flags[i]) {
            el.setAttribute(marker, '');
        }
    });
    return clone.outerHTML;
}
"""

_LIST_DEPTH_JS = """
(el) => {
    let depth = 0;
    let current = el;
    while (current && current !== document.body) {
        if (current.tagName === 'UL' || current.tagName === 'OL') {
            depth++;
        }
        current = current.parentElement;
    }
    return depth;
}
"""

_COUNT_JS = """
(selector) => {
    try {
        return document.querySelectorAll(selector).length;
    } catch (e) {
        return 0;
    }
}
"""

_MARKERS_JS = """
() => {
    const markers = [];
    if (window.history && window.history.pushState !== undefined) markers.push('history');
    if (window.React) markers.push('React');
    if (window.Vue) markers.push('Vue');
    if (window.Angular || window.angular || window.ng) markers.push('Angular');
    return markers;
}
"""


class PlaywrightElement:
    """ElementRef backed by a Playwright ElementHandle."""

    def __init__(self, handle: ElementHandle) -> None:
        self._handle = handle

    @property
    def handle(self) -> ElementHandle:
        return self._handle

    async def text(self) -> str:
        return await self._handle.text_content() or ""

    async def tag_name(self) -> str:
        return await self._handle.evaluate("el => el.tagName.toLowerCase()")

    async def get_attribute(self, name: str) -> str | None:
        return await self._handle.get_attribute(name)

    async def set_attribute(self, name: str, value: str) -> None:
        await self._handle.evaluate(
            "(el, [name, value]) => el.setAttribute(name, value)", [name, value]
        )

    async def inner_html(self) -> str:
        return await self._handle.inner_html()

    async def snapshot_html(self) -> str:
        return await self._handle.evaluate(_SNAPSHOT_JS, HIDDEN_MARKER)

    async def is_visible(self) -> bool:
        try:
            return await self._handle.is_visible()
        except PlaywrightError:
            return False

    async def is_connected(self) -> bool:
        try:
            return await self._handle.evaluate("el => el.isConnected")
        except PlaywrightError:
            return False

    async def scroll_into_view(self) -> None:
        try:
            await self._handle.evaluate("el => el.scrollIntoView({block: 'center'})")
        except PlaywrightError as e:
            raise TransientActivationFailure(f"Scroll failed: {e}") from e

    async def activate(self) -> None:
        try:
            await self._handle.evaluate("el => el.click()")
        except PlaywrightError as e:
            raise TransientActivationFailure(f"Click failed: {e}") from e

    async def dispatch_event(self, event_type: str) -> None:
        try:
            await self._handle.dispatch_event(event_type)
        except PlaywrightError as e:
            raise TransientActivationFailure(
                f"Dispatch of {event_type} failed: {e}") from e

    async def press_key(self, key: str) -> None:
        try:
            await self._handle.focus()
            await self._handle.dispatch_event("keydown", {"key": key, "bubbles": True})
        except PlaywrightError as e:
            raise TransientActivationFailure(f"Key press {key} failed: {e}") from e

    async def closest(self, selector: str) -> "PlaywrightElement | None":
        try:
            result = await self._handle.evaluate_handle(
                "(el, selector) => el.closest(selector)", selector
            )
        except PlaywrightError:
            return None
        element = result.as_element()
        return PlaywrightElement(element) if element is not None else None

    async def query_all(self, selector: str) -> "list[PlaywrightElement]":
        try:
            handles = await self._handle.query_selector_all(selector)
        except PlaywrightError as e:
            logger.debug(f"Selector {selector!r} failed: {e}")
            return []
        return [PlaywrightElement(h) for h in handles]

    async def contains(self, other: "PlaywrightElement") -> bool:
        try:
            return await self._handle.evaluate(
                "(el, other) => el.contains(other)", other.handle
            )
        except PlaywrightError:
            return False

    async def list_depth(self) -> int:
        return await self._handle.evaluate(_LIST_DEPTH_JS)


class PageEnvironment:
    """
    Environment backed by a Playwright Page.

    Example:
        >>> page = await context.new_page()
        >>> env = PageEnvironment(page)
        >>> await env.open("https://docs.example.com")
    """

    def __init__(self, page: Page) -> None:
        self.page = page
        self._navigations = 0
        page.on("framenavigated", self._on_frame_navigated)

    def _on_frame_navigated(self, frame: Frame) -> None:
        if frame == self.page.main_frame:
            self._navigations += 1

    async def open(self, url: str, wait_until: str = "domcontentloaded") -> None:
        """
        Load the starting page.

        Raises:
            BrowserError: If the page cannot be loaded
        """
        start_time = time.perf_counter()
        try:
            response = await self.page.goto(url, wait_until=wait_until)
        except PlaywrightError as e:
            message = str(e)
            if "timeout" in message.lower():
                raise BrowserError(f"Page load timeout: {message}", url=url) from e
            raise BrowserError(f"Page load failed: {message}", url=url) from e

        if response is not None and response.status >= 400:
            raise BrowserError(
                f"HTTP {response.status} error",
                url=url,
                details={"status_code": response.status},
            )

        elapsed = (time.perf_counter() - start_time) * 1000
        logger.debug(f"Loaded {url} in {elapsed:.0f}ms")

    async def location(self) -> str:
        return self.page.url

    async def title(self) -> str:
        return await self.page.title()

    def navigation_count(self) -> int:
        return self._navigations

    async def query(self, selector: str) -> PlaywrightElement | None:
        try:
            handle = await self.page.query_selector(selector)
        except PlaywrightError as e:
            logger.debug(f"Selector {selector!r} failed: {e}")
            return None
        return PlaywrightElement(handle) if handle is not None else None

    async def query_all(self, selector: str) -> list[PlaywrightElement]:
        try:
            handles = await self.page.query_selector_all(selector)
        except PlaywrightError as e:
            logger.debug(f"Selector {selector!r} failed: {e}")
            return []
        return [PlaywrightElement(h) for h in handles]

    async def count(self, selector: str) -> int:
        return await self.page.evaluate(_COUNT_JS, selector)

    async def body(self) -> PlaywrightElement | None:
        return await self.query("body")

    async def push_location(self, url: str) -> None:
        await self.page.evaluate(
            """(url) => {
                window.history.pushState({}, '', url);
                window.dispatchEvent(new PopStateEvent('popstate', {state: {}}));
            }""",
            url,
        )

    async def set_hash(self, fragment: str) -> None:
        await self.page.evaluate(
            "(fragment) => { window.location.hash = fragment; }", fragment
        )

    async def scroll_metrics(self) -> ScrollMetrics:
        data = await self.page.evaluate(
            """() => ({
                scrollHeight: document.body ? document.body.scrollHeight : 0,
                viewportHeight: window.innerHeight,
                scrollY: window.scrollY,
            })"""
        )
        return ScrollMetrics(
            scroll_height=int(data["scrollHeight"]),
            viewport_height=int(data["viewportHeight"]),
            scroll_y=int(data["scrollY"]),
        )

    async def scroll_to(self, y: int) -> None:
        await self.page.evaluate("(y) => window.scrollTo(0, y)", y)

    async def framework_markers(self) -> set[str]:
        return set(await self.page.evaluate(_MARKERS_JS))

    async def frames(self) -> list[FrameContent]:
        page_origin = _origin(self.page.url)
        result = []

        for frame in self.page.frames:
            if frame == self.page.main_frame:
                continue

            src = frame.url
            # about:blank and srcdoc frames share the parent's origin
            same_origin = src.startswith("about:") or _origin(src) == page_origin
            if not same_origin:
                result.append(FrameContent(src=src, html=None))
                continue

            try:
                html = await frame.evaluate(
                    "() => document.body ? document.body.outerHTML : ''"
                )
            except PlaywrightError as e:
                logger.debug(f"Frame {src} not readable: {e}")
                html = None
            result.append(FrameContent(src=src, html=html))

        return result

    async def wait(self, ms: int) -> None:
        await self.page.wait_for_timeout(ms)


def _origin(url: str) -> tuple[str, str]:
    parsed = urlparse(url)
    return parsed.scheme.lower(), parsed.netloc.lower()
