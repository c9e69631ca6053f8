"""
Tests for the navigation engine.

Each routing style of the fake site answers exactly one tactic, so the
tests show which step of the escalation reached the page.
"""

import pytest

from doc_harvester.config.settings import ScrapeOptions
from doc_harvester.core.exceptions import NavigationTimeout, counts_toward_failure_limit
from doc_harvester.core.types import NavigableItem, NavigationOutcome
from doc_harvester.navigation import NavigationEngine, PageState, main_content_snapshot
from doc_harvester.utils.metrics import (
    FALLBACK_TACTICS,
    NAVIGATION_LATENCY,
    NAVIGATION_TIMEOUTS,
    Metrics,
)
from doc_harvester.utils.urls import resolve_href

from tests.fakes import FakeEnvironment, Route, article, doc_site

INVOICE = ("Get Invoice", "/reference/get-invoice")


def routed_site(trigger: str, **route_options) -> FakeEnvironment:
    text, href = INVOICE
    route = Route(article(text), trigger=trigger, **route_options)
    return FakeEnvironment(doc_site([INVOICE]), routes={href: route})


async def invoice_item(env: FakeEnvironment) -> NavigableItem:
    text, href = INVOICE
    element = await env.query(f'a[href="{href}"]')
    return NavigableItem(
        title=text,
        url=resolve_href(await env.location(), href),
        href=href,
        element=element,
    )


@pytest.fixture
def no_wait() -> ScrapeOptions:
    return ScrapeOptions(wait_for_dynamic=False)


class TestIsCurrent:
    """Tests for already-present detection."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url,href", [
        ("https://docs.example.com/docs", "/docs"),
        ("https://docs.example.com/docs", "#"),
        ("", ""),
        ("https://docs.example.com/docs#intro", "#intro"),
    ])
    async def test_already_present(self, url, href, test_settings):
        env = FakeEnvironment(doc_site([INVOICE]))
        engine = NavigationEngine(env, test_settings.timing)

        outcome = await engine.navigate(NavigableItem("Docs", url, href))

        assert outcome is NavigationOutcome.ALREADY_PRESENT
        assert env.activations == []

    @pytest.mark.asyncio
    async def test_other_page_is_not_current(self, endpoint_site):
        engine = NavigationEngine(endpoint_site)

        assert not await engine.is_current(await invoice_item(endpoint_site))


class TestNavigate:
    """Tests for activation and the fallback chain."""

    @pytest.mark.asyncio
    async def test_click_navigates(self, test_settings, no_wait):
        env = routed_site("click")
        engine = NavigationEngine(env, test_settings.timing)

        outcome = await engine.navigate(await invoice_item(env), no_wait)

        assert outcome is NavigationOutcome.ACTIVATED
        assert await env.location() == "https://docs.example.com/reference/get-invoice"
        assert "Get Invoice" in await main_content_snapshot(env)
        assert Metrics.get().get_counter(FALLBACK_TACTICS) == 0
        assert Metrics.get().get_timing(NAVIGATION_LATENCY).count == 1

    @pytest.mark.asyncio
    async def test_content_change_without_location_change(self, test_settings, no_wait):
        """Client routers that keep the URL are detected by the content change."""
        env = routed_site("click", same_location=True)
        engine = NavigationEngine(env, test_settings.timing)

        outcome = await engine.navigate(await invoice_item(env), no_wait)

        assert outcome is NavigationOutcome.ACTIVATED
        assert await env.location() == "https://docs.example.com/docs"

    @pytest.mark.asyncio
    async def test_full_page_load(self, test_settings, no_wait):
        env = routed_site("click", reload=True, same_location=True, title="Get Invoice")
        engine = NavigationEngine(env, test_settings.timing)

        assert await engine.navigate(await invoice_item(env), no_wait) is NavigationOutcome.ACTIVATED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("trigger,tactics", [
        ("pointer", 1),
        ("enter", 2),
        ("parent", 3),
        ("history", 4),
    ])
    async def test_fallback_tactics(self, trigger, tactics, test_settings, no_wait):
        """Escalation stops at the first tactic the site responds to."""
        env = routed_site(trigger)
        engine = NavigationEngine(env, test_settings.timing)

        outcome = await engine.navigate(await invoice_item(env), no_wait)

        assert outcome is NavigationOutcome.FALLBACK
        assert "Get Invoice" in await main_content_snapshot(env)
        assert Metrics.get().get_counter(FALLBACK_TACTICS) == tactics

    @pytest.mark.asyncio
    async def test_pointer_events_dispatched_in_order(self, test_settings, no_wait):
        env = routed_site("enter")
        engine = NavigationEngine(env, test_settings.timing)

        await engine.navigate(await invoice_item(env), no_wait)

        assert env.events == [
            ("Get Invoice", "mousedown"),
            ("Get Invoice", "mouseup"),
            ("Get Invoice", "pointerdown"),
            ("Get Invoice", "pointerup"),
            ("Get Invoice", "Enter"),
        ]

    @pytest.mark.asyncio
    async def test_timeout(self, test_settings, no_wait):
        """A site that never responds raises after every tactic was tried."""
        env = routed_site("never")
        engine = NavigationEngine(env, test_settings.timing)

        with pytest.raises(NavigationTimeout) as exc_info:
            await engine.navigate(await invoice_item(env), no_wait)

        assert exc_info.value.title == "Get Invoice"
        assert exc_info.value.attempts == 2
        assert counts_toward_failure_limit(exc_info.value)
        assert env.pushed == ["https://docs.example.com/reference/get-invoice"]
        assert Metrics.get().get_counter(NAVIGATION_TIMEOUTS) == 1
        assert Metrics.get().get_counter(FALLBACK_TACTICS) == 4

    @pytest.mark.asyncio
    async def test_location_rewrite_alone_is_not_a_signal(self, test_settings, no_wait):
        """The direct-navigation step changes the URL itself; only new content counts."""
        env = routed_site("never")
        engine = NavigationEngine(env, test_settings.timing)

        with pytest.raises(NavigationTimeout):
            await engine.navigate(await invoice_item(env), no_wait)

        assert await env.location() == "https://docs.example.com/reference/get-invoice"

    @pytest.mark.asyncio
    async def test_unclickable_element(self, test_settings, no_wait):
        """Activation failures fall through to direct navigation."""
        env = routed_site("click")
        env.broken.add("Get Invoice")
        engine = NavigationEngine(env, test_settings.timing)

        outcome = await engine.navigate(await invoice_item(env), no_wait)

        assert outcome is NavigationOutcome.FALLBACK
        assert env.activations == []
        assert "Get Invoice" in await main_content_snapshot(env)

    @pytest.mark.asyncio
    async def test_hash_item_without_element(self, test_settings, no_wait):
        env = FakeEnvironment(
            doc_site([("Webhooks", "#webhooks")]),
            routes={"#webhooks": Route(article("Webhooks"), trigger="history")},
        )
        item = NavigableItem("Webhooks", "https://docs.example.com/docs/webhooks", "#webhooks")
        engine = NavigationEngine(env, test_settings.timing)

        outcome = await engine.navigate(item, no_wait)

        assert outcome is NavigationOutcome.FALLBACK
        assert await env.location() == "https://docs.example.com/docs#webhooks"
        assert env.pushed == []

    @pytest.mark.asyncio
    async def test_dynamic_wait_after_navigation(self, test_settings):
        env = routed_site("click")
        engine = NavigationEngine(env, test_settings.timing)

        await engine.navigate(await invoice_item(env), ScrapeOptions(wait_for_dynamic=True))

        assert env.scrolls[-1] == 0
        assert len(env.scrolls) > 1


class TestPageState:
    """Tests for the before-navigation snapshot."""

    @pytest.mark.asyncio
    async def test_capture(self, endpoint_site):
        state = await PageState.capture(endpoint_site)

        assert state.location == "https://docs.example.com/docs"
        assert state.navigation_count == 0
        assert state.content.startswith("Overview")

    @pytest.mark.asyncio
    async def test_body_fallback(self):
        env = FakeEnvironment("<html><body><p>Plain page</p></body></html>")

        assert await main_content_snapshot(env) == "Plain page"

    @pytest.mark.asyncio
    async def test_short_content_is_not_a_signal(self, endpoint_site):
        engine = NavigationEngine(endpoint_site)
        before = await PageState.capture(endpoint_site)

        endpoint_site.replace_main("<p>Loading</p>")

        assert not await engine.has_signal(before)


class TestDynamicContent:
    """Tests for late-content waits and lazy-loading scrolls."""

    @pytest.mark.asyncio
    async def test_lazy_loading_scroll(self, test_settings):
        env = FakeEnvironment(doc_site([INVOICE]), scroll_height=2000, viewport_height=800)
        engine = NavigationEngine(env, test_settings.timing)

        await engine.trigger_lazy_loading()

        assert env.scrolls == [0, 400, 800, 1200, 1600, 0]

    @pytest.mark.asyncio
    async def test_minimum_scroll_step(self, test_settings):
        env = FakeEnvironment(doc_site([INVOICE]), scroll_height=300, viewport_height=100)
        engine = NavigationEngine(env, test_settings.timing)

        await engine.trigger_lazy_loading()

        assert env.scrolls == [0, 100, 200, 0]

    def engine_with_wait(self, env, test_settings) -> NavigationEngine:
        timing = test_settings.timing.model_copy(update={
            "dynamic_wait_max_ms": 100,
            "dynamic_poll_interval_ms": 10,
        })
        return NavigationEngine(env, timing)

    @pytest.mark.asyncio
    async def test_stops_when_no_loading_indicator(self, test_settings):
        env = FakeEnvironment(doc_site([INVOICE]))

        await self.engine_with_wait(env, test_settings).wait_for_dynamic_content()

        assert env.waits.count(10) == 1

    @pytest.mark.asyncio
    async def test_polls_while_loading(self, test_settings):
        """A spinner that never clears keeps the wait going until the cap."""
        env = FakeEnvironment(doc_site([INVOICE], overview='<div class="loading-spinner"></div>'))

        await self.engine_with_wait(env, test_settings).wait_for_dynamic_content()

        assert env.waits.count(10) == 10

    @pytest.mark.asyncio
    async def test_stops_when_page_grows(self, test_settings):
        env = FakeEnvironment(doc_site([INVOICE], overview='<div class="loading-spinner"></div>'))

        def grow(page: FakeEnvironment) -> None:
            page.scroll_height = 3000

        env.on_wait = grow

        await self.engine_with_wait(env, test_settings).wait_for_dynamic_content()

        assert env.waits.count(10) == 1
        assert env.scrolls == [0, 400, 800, 1200, 1600, 2000, 2400, 2800, 0]
