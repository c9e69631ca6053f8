"""
Tests for disclosure expansion.
"""

import pytest

from doc_harvester.browser.environment import EXPANDED_MARKER
from doc_harvester.discovery import ExpansionEngine, SiteStructureAnalyzer
from doc_harvester.utils.metrics import ACTIVATION_FAILURES, ELEMENTS_EXPANDED, Metrics

from tests.fakes import FakeEnvironment, RecordingChannel

COLLAPSED_NAV = """
<html><body>
<nav class="sidebar"><ul>
    <li><button aria-expanded="false" aria-controls="billing">Billing</button>
        <ul id="billing" hidden><li><a href="/reference/get-invoice">Get Invoice</a></li></ul></li>
    <li><details><summary>Accounts</summary>
        <ul><li><a href="/reference/get-account">Get Account</a></li></ul></details></li>
</ul></nav>
<main><p>Overview</p></main>
</body></html>
"""


@pytest.fixture
def collapsed_nav() -> FakeEnvironment:
    return FakeEnvironment(COLLAPSED_NAV)


@pytest.fixture
def engine(collapsed_nav, test_settings) -> ExpansionEngine:
    return ExpansionEngine(collapsed_nav, test_settings.timing, RecordingChannel())


def element_env(markup: str) -> FakeEnvironment:
    return FakeEnvironment(f"<html><body>{markup}</body></html>")


class TestExpand:
    """Tests for expansion rounds."""

    @pytest.mark.asyncio
    async def test_expands_collapsed_controls(self, engine, collapsed_nav):
        """aria-expanded buttons and closed details are opened."""
        expanded = await engine.expand()

        assert expanded == 2
        assert collapsed_nav.activations == ["Billing", "Accounts"]
        assert not collapsed_nav.soup.find(id="billing").has_attr("hidden")
        assert collapsed_nav.soup.find("details").has_attr("open")
        assert engine.total_expanded == 2
        assert Metrics.get().get_counter(ELEMENTS_EXPANDED) == 2

    @pytest.mark.asyncio
    async def test_idempotent(self, engine, collapsed_nav):
        """A second pass over an expanded tree activates nothing."""
        await engine.expand()

        assert await engine.expand() == 0
        assert collapsed_nav.activations == ["Billing", "Accounts"]
        assert engine.total_expanded == 2

    @pytest.mark.asyncio
    async def test_activated_controls_are_stamped(self, engine, collapsed_nav):
        await engine.expand()

        button = collapsed_nav.soup.find("button")
        assert button.get(EXPANDED_MARKER) == "true"
        assert button["aria-expanded"] == "true"

    @pytest.mark.asyncio
    async def test_stops_at_fixpoint(self, engine):
        """The round after the last activation finds nothing and ends the loop."""
        await engine.expand()

        actions = [e.action for e in engine.channel.detailed_events if e.action]
        assert "Round 1: expanded 2 elements" in actions
        assert "Round 2: expanded 0 elements" in actions
        assert not any(a.startswith("Round 3") for a in actions)

    @pytest.mark.asyncio
    async def test_round_budget(self, collapsed_nav, test_settings):
        """No more rounds than configured are run."""
        timing = test_settings.timing.model_copy(update={"expansion_rounds": 1})
        engine = ExpansionEngine(collapsed_nav, timing, RecordingChannel())

        await engine.expand()

        actions = [e.action for e in engine.channel.detailed_events if e.action]
        assert not any(a.startswith("Round 2") for a in actions)

    @pytest.mark.asyncio
    async def test_scope(self, test_settings):
        """Only controls inside the scope are activated."""
        env = element_env("""
            <nav><ul><li><button aria-expanded="false">Billing</button></li></ul></nav>
            <aside><ul><li><button aria-expanded="false">Accounts</button></li></ul></aside>
        """)
        engine = ExpansionEngine(env, test_settings.timing)

        expanded = await engine.expand(scope=await env.query("nav"))

        assert expanded == 1
        assert env.activations == ["Billing"]

    @pytest.mark.asyncio
    async def test_activation_failure_skipped(self, engine, collapsed_nav):
        """A control that cannot be clicked is skipped; the rest still expand."""
        collapsed_nav.broken.add("Billing")

        expanded = await engine.expand()

        assert expanded == 1
        assert collapsed_nav.activations == ["Accounts"]
        assert Metrics.get().get_counter(ACTIVATION_FAILURES) > 0

    @pytest.mark.asyncio
    async def test_expand_descriptors(self, sidebar_site, test_settings):
        """Controls recorded during analysis are re-resolved and activated."""
        profile = await SiteStructureAnalyzer(sidebar_site).analyze()
        engine = ExpansionEngine(sidebar_site, test_settings.timing)

        expanded = await engine.expand_descriptors(profile.expandable_elements)

        assert expanded == 4
        assert sorted(sidebar_site.activations) == ["Accounts", "Billing", "Orders", "Payments"]


class TestShouldActivate:
    """Tests for the disclosure signature."""

    async def check(self, markup: str, selector: str) -> bool:
        env = element_env(markup)
        element = await env.query(selector)
        return await ExpansionEngine(env).should_activate(element)

    @pytest.mark.asyncio
    async def test_collapsed_aria(self):
        assert await self.check('<button aria-expanded="false">Billing</button>', "button")

    @pytest.mark.asyncio
    async def test_already_expanded(self):
        assert not await self.check('<button aria-expanded="true">Billing</button>', "button")

    @pytest.mark.asyncio
    async def test_stamped(self):
        markup = f'<button aria-expanded="false" {EXPANDED_MARKER}="true">Billing</button>'
        assert not await self.check(markup, "button")

    @pytest.mark.asyncio
    async def test_open_details(self):
        markup = "<details open><summary>Billing</summary></details>"
        assert not await self.check(markup, "summary")

    @pytest.mark.asyncio
    async def test_text_length(self):
        """Empty or long labels are not disclosure controls."""
        assert not await self.check('<button aria-expanded="false"></button>', "button")
        long_label = "Billing " * 8
        assert not await self.check(f'<button aria-expanded="false">{long_label}</button>', "button")

    @pytest.mark.asyncio
    async def test_real_link(self):
        """Links that navigate are never toggled."""
        markup = '<ul><li><a class="collapsed" href="/docs/billing">Billing</a></li></ul>'
        assert not await self.check(markup, "a")

    @pytest.mark.asyncio
    async def test_hash_link_with_collapsed_class(self):
        markup = '<ul><li><a class="collapsed" href="#">Billing</a></li></ul>'
        assert await self.check(markup, "a")

    @pytest.mark.asyncio
    async def test_icon_marker(self):
        assert await self.check("<div class='item'><span>\u203a</span> guides</div>", "div.item")

    @pytest.mark.asyncio
    async def test_hidden_children(self):
        markup = "<ul><li><span>guides</span><ul hidden><li>Intro</li></ul></li></ul>"
        assert await self.check(markup, "span")

    @pytest.mark.asyncio
    async def test_section_header_text(self):
        assert await self.check("<div class='item'>Getting Started</div>", "div.item")
        assert not await self.check("<div class='item'>getting started</div>", "div.item")

    @pytest.mark.asyncio
    async def test_disconnected(self):
        """Elements removed from the page are skipped."""
        env = FakeEnvironment(
            '<html><body><main><button aria-expanded="false">Billing</button></main></body></html>')
        element = await env.query("button")
        env.replace_main("<p>Replaced</p>")

        assert not await ExpansionEngine(env).should_activate(element)
