"""
Tests for exception hierarchy.

Tests custom exceptions, their details, and the failure-breaker policy.
"""

import pytest

from doc_harvester.core.exceptions import (
    HarvesterError,
    ConfigurationError,
    BrowserError,
    ScrapeError,
    TransientActivationFailure,
    NavigationTimeout,
    CrossOriginAccessDenied,
    ContentTooShort,
    ConsecutiveFailureLimitExceeded,
    OutputSizeExceeded,
    SessionAlreadyActive,
    ExtractionError,
    counts_toward_failure_limit,
)


class TestExceptionHierarchy:
    """Tests for exception inheritance."""

    def test_base_exception(self):
        """HarvesterError should be the base for all custom exceptions."""
        exc = HarvesterError("Test error")

        assert isinstance(exc, Exception)
        assert str(exc) == "Test error"
        assert exc.details == {}

    def test_configuration_error(self):
        """ConfigurationError should inherit from HarvesterError."""
        exc = ConfigurationError("Invalid config")

        assert isinstance(exc, HarvesterError)

    def test_browser_error_carries_url(self):
        """BrowserError should record the URL it failed on."""
        exc = BrowserError("Page failed to load", url="https://docs.example.com")

        assert isinstance(exc, HarvesterError)
        assert exc.url == "https://docs.example.com"
        assert exc.details["url"] == "https://docs.example.com"

    @pytest.mark.parametrize("exc_class", [
        TransientActivationFailure,
        NavigationTimeout,
        CrossOriginAccessDenied,
        SessionAlreadyActive,
    ])
    def test_scrape_errors(self, exc_class):
        """Per-page errors should inherit from ScrapeError."""
        exc = exc_class("failure")

        assert isinstance(exc, ScrapeError)
        assert isinstance(exc, HarvesterError)

    def test_extraction_error(self):
        """ExtractionError is not a ScrapeError."""
        exc = ExtractionError("Parse failed", url="https://docs.example.com/a")

        assert isinstance(exc, HarvesterError)
        assert not isinstance(exc, ScrapeError)

    def test_catch_all_with_base(self):
        """All custom exceptions should be catchable with HarvesterError."""
        with pytest.raises(HarvesterError):
            raise ContentTooShort("Too short", length=10, minimum=100)


class TestExceptionDetails:
    """Tests for structured error details."""

    def test_details_in_str(self):
        """Details should be rendered after the message."""
        exc = NavigationTimeout(
            "No navigation signal", url="https://docs.example.com/a", title="A", attempts=10)

        text = str(exc)
        assert text.startswith("No navigation signal (")
        assert "attempts=10" in text
        assert exc.title == "A"

    def test_repr(self):
        """repr should name the class."""
        exc = OutputSizeExceeded("Too large", size=100, limit=10)

        assert repr(exc).startswith("OutputSizeExceeded(")
        assert exc.size == 100
        assert exc.limit == 10

    def test_transient_failure_truncates_element(self):
        """Long element descriptions are clipped in details."""
        exc = TransientActivationFailure("Click failed", element="x" * 200)

        assert len(exc.details["element"]) == 80
        assert exc.element == "x" * 200

    def test_session_already_active_status(self):
        """SessionAlreadyActive should carry the running session's status."""
        exc = SessionAlreadyActive("Busy", status="scraping_pages")

        assert exc.status == "scraping_pages"
        assert exc.details == {"status": "scraping_pages"}

    def test_failure_limit_count(self):
        exc = ConsecutiveFailureLimitExceeded("Too many failures", failures=10)

        assert exc.failures == 10


class TestFailurePolicy:
    """Tests for which per-page errors count toward the breaker."""

    def test_navigation_timeout_counts(self):
        assert counts_toward_failure_limit(NavigationTimeout("No signal"))

    def test_unexpected_error_counts(self):
        assert counts_toward_failure_limit(RuntimeError("boom"))

    @pytest.mark.parametrize("error", [
        TransientActivationFailure("Covered"),
        ContentTooShort("Short", length=5, minimum=100),
        CrossOriginAccessDenied("Restricted"),
        OutputSizeExceeded("Large", size=2, limit=1),
    ])
    def test_benign_errors_do_not_count(self, error):
        """Benign errors are skipped without touching the counter."""
        assert not counts_toward_failure_limit(error)
