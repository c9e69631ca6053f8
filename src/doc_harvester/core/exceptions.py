"""
Custom exceptions for doc-harvester.

Provides a hierarchy of exceptions for precise error handling across
the scraping pipeline. All exceptions inherit from HarvesterError.

Exception Hierarchy:
    HarvesterError (base)
    ├── ConfigurationError
    ├── BrowserError
    ├── ScrapeError
    │   ├── TransientActivationFailure
    │   ├── NavigationTimeout
    │   ├── CrossOriginAccessDenied
    │   ├── ContentTooShort
    │   ├── ConsecutiveFailureLimitExceeded
    │   ├── OutputSizeExceeded
    │   └── SessionAlreadyActive
    └── ExtractionError

Recovery policy, per kind:
    TransientActivationFailure       logged and skipped, never counted
    NavigationTimeout                page skipped, counts toward the breaker
    CrossOriginAccessDenied          placeholder written into the output
    ContentTooShort                  page discarded silently
    ConsecutiveFailureLimitExceeded  soft completion with pages so far
    OutputSizeExceeded               truncation marker appended
    SessionAlreadyActive             no-op acknowledgement
"""

from typing import Any


class HarvesterError(Exception):
    """
    Base exception for all doc-harvester errors.

    Attributes:
        message: Human-readable error description
        details: Optional dictionary with additional context
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(
                f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(HarvesterError):
    """
    Error in configuration loading or validation.

    Raised when:
    - Configuration file is missing or malformed
    - Setting values fail validation
    """

    pass


# =============================================================================
# Browser Errors
# =============================================================================


class BrowserError(HarvesterError):
    """
    Error in the Playwright browser lifecycle or page loading.

    Raised when the browser cannot be launched, a context cannot be
    created, or the target page fails to load.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if url:
            details["url"] = url
        super().__init__(message, details)
        self.url = url


# =============================================================================
# Scrape Errors
# =============================================================================


class ScrapeError(HarvesterError):
    """
    Base error for the discovery, navigation and page loop.

    Anything of this kind that escapes the orchestrator fails the session.
    """

    pass


class TransientActivationFailure(ScrapeError):
    """
    A single click or synthetic event on an element failed.

    Usually a detached or covered element. Callers log it and move on.
    """

    def __init__(
        self,
        message: str,
        element: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if element:
            details["element"] = element[:80]
        super().__init__(message, details)
        self.element = element


class NavigationTimeout(ScrapeError):
    """
    No navigation signal fired after activation and every fallback tactic.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        title: str | None = None,
        attempts: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if url:
            details["url"] = url
        if title:
            details["title"] = title
        if attempts is not None:
            details["attempts"] = attempts
        super().__init__(message, details)
        self.url = url
        self.title = title
        self.attempts = attempts


class CrossOriginAccessDenied(ScrapeError):
    """Embedded frame content could not be read because of its origin."""

    def __init__(
        self,
        message: str,
        src: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if src:
            details["src"] = src
        super().__init__(message, details)
        self.src = src


class ContentTooShort(ScrapeError):
    """Extracted content did not exceed the minimum length."""

    def __init__(
        self,
        message: str,
        length: int,
        minimum: int,
        url: str | None = None,
    ) -> None:
        details: dict[str, Any] = {"length": length, "minimum": minimum}
        if url:
            details["url"] = url
        super().__init__(message, details)
        self.length = length
        self.minimum = minimum
        self.url = url


class ConsecutiveFailureLimitExceeded(ScrapeError):
    """Too many page failures in a row; the loop ends early."""

    def __init__(self, message: str, failures: int) -> None:
        super().__init__(message, {"failures": failures})
        self.failures = failures


class OutputSizeExceeded(ScrapeError):
    """Assembled document is over the output cap."""

    def __init__(self, message: str, size: int, limit: int) -> None:
        super().__init__(message, {"size": size, "limit": limit})
        self.size = size
        self.limit = limit


class SessionAlreadyActive(ScrapeError):
    """A comprehensive scrape is already running against this target."""

    def __init__(self, message: str, status: str | None = None) -> None:
        details = {"status": status} if status else {}
        super().__init__(message, details)
        self.status = status


# =============================================================================
# Extraction Errors
# =============================================================================


class ExtractionError(HarvesterError):
    """
    Error converting page markup into text.

    Raised when the page has neither a content region nor a body to read.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if url:
            details["url"] = url
        super().__init__(message, details)
        self.url = url


# =============================================================================
# Utility Functions
# =============================================================================


def counts_toward_failure_limit(error: Exception) -> bool:
    """
    Check whether a per-page error counts toward the consecutive-failure breaker.

    Args:
        error: The exception raised while processing a page

    Returns:
        True for navigation timeouts and unexpected errors, False for the
        benign kinds that are skipped silently
    """
    return not isinstance(
        error,
        (TransientActivationFailure, ContentTooShort,
         CrossOriginAccessDenied, OutputSizeExceeded),
    )
