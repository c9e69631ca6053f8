"""
Pydantic settings models for doc-harvester.

Every heuristic threshold and wait used while exploring a site lives here
as a named, overridable value. The defaults are the empirically tuned ones
that work across common documentation generators.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class BrowserSettings(BaseModel):
    """Playwright browser configuration."""

    headless: bool = Field(
        default=True,
        description="Run browser in headless mode",
    )
    timeout_ms: int = Field(
        default=30000,
        ge=1000,
        le=120000,
        description="Default timeout for page operations in milliseconds",
    )
    navigation_timeout_ms: int = Field(
        default=60000,
        ge=5000,
        le=180000,
        description="Timeout for the initial page load in milliseconds",
    )
    user_agent: str | None = Field(
        default=None,
        description="Custom user agent string. None uses browser default.",
    )
    viewport_width: int = Field(
        default=1280,
        ge=320,
        le=3840,
        description="Browser viewport width in pixels",
    )
    viewport_height: int = Field(
        default=720,
        ge=240,
        le=2160,
        description="Browser viewport height in pixels",
    )
    ignore_https_errors: bool = Field(
        default=False,
        description="Whether to ignore HTTPS certificate errors",
    )
    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser engine to use",
    )


class ScrapeOptions(BaseModel):
    """Per-request extraction options sent with a start command."""

    include_links: bool = Field(
        default=True,
        description="Render absolute links as [text](href)",
    )
    wait_for_dynamic: bool = Field(
        default=True,
        description="Wait for late-loading content before extracting",
    )
    include_embedded: bool = Field(
        default=True,
        description="Append readable embedded frame content",
    )


class ScraperSettings(BaseModel):
    """Page loop, deduplication and output limits."""

    defaults: ScrapeOptions = Field(
        default_factory=ScrapeOptions,
        description="Options used when a request does not set them",
    )
    capture_overview: bool = Field(
        default=True,
        description="Capture the starting page as 'Main Page Overview' before discovery",
    )
    overview_title: str = Field(
        default="Main Page Overview",
        description="Section title used for the starting page",
    )
    min_content_chars: int = Field(
        default=100,
        ge=0,
        le=10000,
        description="Pages with normalized content at or below this length are discarded",
    )
    max_consecutive_failures: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Consecutive page failures before the loop stops early",
    )
    max_output_chars: int = Field(
        default=50 * 1024 * 1024,
        ge=1024,
        description="Cap on the assembled document length",
    )
    truncation_reserve_chars: int = Field(
        default=10000,
        ge=0,
        description="Headroom left below the cap when truncating",
    )
    fingerprint_chars: int = Field(
        default=500,
        ge=50,
        le=100000,
        description="Leading characters of normalized content used for fingerprints",
    )
    preview_chars: int = Field(
        default=500,
        ge=0,
        le=10000,
        description="Length of content previews in progress updates",
    )


class TimingSettings(BaseModel):
    """
    Waits and polling budgets.

    All values are in milliseconds unless the name says otherwise.
    """

    expansion_rounds: int = Field(
        default=5, ge=1, le=50,
        description="Maximum disclosure-expansion rounds",
    )
    expansion_scroll_settle_ms: int = Field(
        default=200, ge=0,
        description="Wait after scrolling a disclosure control into view",
    )
    expansion_animation_ms: int = Field(
        default=400, ge=0,
        description="Wait after activating a disclosure control",
    )
    expansion_round_pause_ms: int = Field(
        default=1500, ge=0,
        description="Wait between expansion rounds",
    )
    expansion_final_settle_ms: int = Field(
        default=3000, ge=0,
        description="Wait after the last expansion round",
    )
    navigation_poll_attempts: int = Field(
        default=10, ge=1, le=100,
        description="Polls for a navigation signal after activation",
    )
    navigation_poll_interval_ms: int = Field(
        default=800, ge=0,
        description="Interval between navigation polls",
    )
    pre_activation_ms: int = Field(
        default=500, ge=0,
        description="Wait after scrolling a navigation item into view",
    )
    fallback_event_pause_ms: int = Field(
        default=200, ge=0,
        description="Pause between synthetic input events in the fallback chain",
    )
    fallback_pause_ms: int = Field(
        default=500, ge=0,
        description="Pause after each fallback tactic",
    )
    direct_navigation_settle_ms: int = Field(
        default=1000, ge=0,
        description="Wait after mutating the location directly",
    )
    post_navigation_settle_ms: int = Field(
        default=1500, ge=0,
        description="Wait after a navigation signal before extracting",
    )
    inter_page_delay_ms: int = Field(
        default=1000, ge=0,
        description="Delay between pages in the page loop",
    )
    dynamic_wait_max_ms: int = Field(
        default=5000, ge=0,
        description="Upper bound for the dynamic-content wait",
    )
    dynamic_poll_interval_ms: int = Field(
        default=500, ge=1,
        description="Interval while waiting for dynamic content",
    )
    dynamic_growth_settle_ms: int = Field(
        default=1000, ge=0,
        description="Wait after the page height grows",
    )
    lazy_scroll_step_ms: int = Field(
        default=100, ge=0,
        description="Wait between lazy-loading scroll steps",
    )
    lazy_scroll_return_ms: int = Field(
        default=500, ge=0,
        description="Wait after scrolling back to the top",
    )


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum logging level",
    )
    format: str = Field(
        default="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        description="Log message format string",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Date format for log timestamps",
    )
    file_path: Path | None = Field(
        default=None,
        description="Path to log file. None means console only.",
    )
    max_file_size_mb: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum log file size before rotation",
    )
    backup_count: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Number of backup log files to keep",
    )
    log_to_console: bool = Field(
        default=True,
        description="Whether to output logs to console",
    )

    @field_validator("file_path", mode="before")
    @classmethod
    def convert_file_path(cls, v: str | Path | None) -> Path | None:
        """Convert string paths to Path objects."""
        if v is None:
            return None
        return Path(v) if isinstance(v, str) else v


class Settings(BaseModel):
    """
    Root configuration model.

    Loaded from YAML with environment variable overrides.
    """

    browser: BrowserSettings = Field(
        default_factory=BrowserSettings,
        description="Browser/Playwright settings",
    )
    scraper: ScraperSettings = Field(
        default_factory=ScraperSettings,
        description="Page loop and output settings",
    )
    timing: TimingSettings = Field(
        default_factory=TimingSettings,
        description="Heuristic waits and polling budgets",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    model_config = {
        "extra": "forbid",
        "validate_default": True,
    }
