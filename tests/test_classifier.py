"""
Tests for link classification.

Tests the documentation-link predicates, nesting levels and ordering.
"""

import pytest

from doc_harvester.discovery.classifier import (
    LinkClassifier,
    LinkStructure,
    count_documentation_links,
    gather_link_structure,
    importance_score,
    is_documentation_link,
    is_external,
    is_meaningful_link,
    is_valid_documentation_link,
    is_valid_endpoint,
    looks_like_endpoint,
    nesting_level,
)

from tests.fakes import FakeEnvironment


class TestLinkClassifier:
    """Tests for the composite gate."""

    @pytest.fixture
    def classifier(self) -> LinkClassifier:
        return LinkClassifier("docs.example.com", "/docs")

    def test_accepts_endpoint(self, classifier):
        """Reference endpoints should be accepted."""
        assert classifier.accepts("Get Invoice", "/reference/get-invoice")

    def test_rejects_home(self, classifier):
        """Navigation chrome should be rejected."""
        assert not classifier.accepts("Home", "/")

    def test_word_boundaries(self, classifier):
        """Deny words only match whole words."""
        assert classifier.accepts("Homepage builder API", "/docs/homepage-builder")

    def test_rejects_external(self, classifier):
        assert not classifier.accepts("Get Invoice", "https://other.com/reference/x")

    def test_accepts_subdomain(self, classifier):
        assert classifier.accepts("List Plans", "https://api.docs.example.com/reference/plans")

    @pytest.mark.parametrize("href", ["mailto:help@example.com", "javascript:void(0)", ""])
    def test_rejects_special_hrefs(self, classifier, href):
        assert not classifier.accepts("Contact billing API", href)

    def test_requires_allow_signal_or_doc_path(self, classifier):
        """Plain internal pages outside documentation paths are rejected."""
        assert not classifier.accepts("Pricing", "/pricing")
        assert classifier.accepts("Webhooks", "/docs/webhooks")


class TestPredicates:
    """Tests for the individual predicates."""

    def test_is_external(self):
        assert not is_external("/docs/a", "docs.example.com")
        assert not is_external("https://docs.example.com/a", "docs.example.com")
        assert is_external("https://github.com/acme", "docs.example.com")
        assert is_external("ftp://docs.example.com/file", "docs.example.com")

    def test_is_documentation_link(self):
        assert is_documentation_link("/reference/get-invoice", "/")
        assert is_documentation_link("/billing", "/docs/intro")
        assert not is_documentation_link("#", "/docs")
        assert not is_documentation_link("mailto:a@b.c", "/docs")
        assert not is_documentation_link("/pricing", "/")

    def test_is_meaningful_link(self):
        assert is_meaningful_link("Create Subscription", "/x")
        assert is_meaningful_link("Usage", "/reference/usage")
        assert not is_meaningful_link("Search", "/search")
        assert not is_meaningful_link("42", "/docs/42")
        assert not is_meaningful_link("FAQ", "/faq")

    def test_is_valid_documentation_link(self):
        assert is_valid_documentation_link("Webhooks", "/docs/webhooks", "docs.example.com")
        assert not is_valid_documentation_link("Go", "/docs/go", "docs.example.com")
        assert not is_valid_documentation_link("Privacy", "/privacy", "docs.example.com")
        assert not is_valid_documentation_link("GitHub", "https://github.com/acme", "docs.example.com")
        assert not is_valid_documentation_link("x" * 201, "/docs/a", "docs.example.com")

    def test_looks_like_endpoint(self):
        assert looks_like_endpoint("DELETE a subscription")
        assert looks_like_endpoint("Remove Seat")
        assert looks_like_endpoint("Payment methods")
        assert not looks_like_endpoint("invoices")

    def test_is_valid_endpoint(self):
        assert is_valid_endpoint("Get Invoice", "/reference/get-invoice")
        assert not is_valid_endpoint("Get Invoice", "/docs/get-invoice")
        assert not is_valid_endpoint("Overview", "/reference/overview")
        assert not is_valid_endpoint("Get", "/reference/get")


class TestNestingLevel:
    """Tests for nesting level scoring."""

    def test_list_depth(self):
        assert nesting_level(LinkStructure(list_depth=0), "something lower") == 0
        assert nesting_level(LinkStructure(list_depth=3), "something lower") == 3

    def test_capped_at_three(self):
        assert nesting_level(LinkStructure(list_depth=5), "x") == 3

    def test_nested_container(self):
        structure = LinkStructure(list_depth=1, expanded_ancestor=True)
        assert nesting_level(structure, "something lower") == 2

    def test_endpoint_text(self):
        assert nesting_level(LinkStructure(list_depth=1), "Get Invoice") == 2
        assert nesting_level(LinkStructure(list_depth=0), "Invoice API") == 2

    def test_section_header(self):
        """Short capitalized text at shallow depth is a section."""
        assert nesting_level(LinkStructure(list_depth=0), "Billing") == 1
        assert nesting_level(LinkStructure(list_depth=1), "Invoices") == 1

    @pytest.mark.asyncio
    async def test_gather_link_structure(self):
        """Structure should be read from the live tree."""
        env = FakeEnvironment("""
        <html><body>
        <nav class="sidebar"><ul>
            <li><button aria-expanded="true">Billing</button>
                <ul class="sub-items"><li><a href="/reference/x">Get X</a></li></ul>
            </li>
        </ul></nav>
        </body></html>
        """)
        link = await env.query('a[href="/reference/x"]')

        structure = await gather_link_structure(link)

        assert structure.list_depth == 2
        assert structure.nested_class_ancestor
        assert structure.nested


class TestImportanceScore:
    """Tests for discovery ordering."""

    def test_reference_verb_led(self):
        # 100 reference path + 50 verb-led + 10 action shape
        assert importance_score("Get Invoice", "/reference/get-invoice") == 160

    def test_guide(self):
        assert importance_score("Quickstart", "/docs/quickstart") == 30

    def test_api_in_title(self):
        assert importance_score("Rate limits API", "/limits") == 30

    def test_ordering(self):
        titles = [
            ("About", "/about"),
            ("Quickstart", "/docs/quickstart"),
            ("Get Invoice", "/reference/get-invoice"),
        ]

        ordered = sorted(titles, key=lambda t: -importance_score(*t))

        assert [t[0] for t in ordered] == ["Get Invoice", "Quickstart", "About"]


class TestCountDocumentationLinks:
    """Tests for counting accepted links on a live page."""

    @pytest.mark.asyncio
    async def test_counts_endpoints_only(self, sidebar_site):
        """Hidden endpoint links count; the footer privacy link does not."""
        assert await count_documentation_links(sidebar_site) == 6

    @pytest.mark.asyncio
    async def test_no_links(self):
        env = FakeEnvironment("<html><body><p>Nothing</p></body></html>")

        assert await count_documentation_links(env) == 0

    def test_stricter_than_discovery_gate(self):
        """The diagnostic gate wants an allow signal or a docs path; discovery does not."""
        classifier = LinkClassifier("docs.example.com", "/")

        assert is_valid_documentation_link("Changelog", "/changelog", "docs.example.com")
        assert not classifier.accepts("Changelog", "/changelog")
        assert classifier.accepts("Changelog", "/docs/changelog")
