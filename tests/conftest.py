"""
Shared pytest fixtures for doc-harvester tests.

Provides reusable fixtures for:
- Configuration and settings with every wait set to zero
- In-memory documentation sites
- Temporary resources
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from doc_harvester.config import Settings, reset_settings
from doc_harvester.utils.logging import reset_logging
from doc_harvester.utils.metrics import Metrics

from tests.fakes import FakeEnvironment, RecordingChannel, Route, article, doc_site


ENDPOINTS = [
    ("Get Invoice", "/reference/get-invoice"),
    ("Get Account", "/reference/get-account"),
    ("Get Order", "/reference/get-order"),
    ("Get Payment", "/reference/get-payment"),
    ("Get Refund", "/reference/get-refund"),
]


@pytest.fixture(autouse=True)
def reset_global_state():
    """
    Reset metrics, cached settings and logging handlers around each test.

    This ensures tests are isolated and don't share global state.
    """
    Metrics.reset()
    reset_settings()
    yield
    Metrics.reset()
    reset_settings()
    reset_logging()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that's cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_settings() -> Settings:
    """
    Provide settings with zero waits and a short polling budget.

    The starting-page overview is off so page counts match the link list.
    """
    return Settings(
        scraper={"capture_overview": False},
        timing={
            "expansion_scroll_settle_ms": 0,
            "expansion_animation_ms": 0,
            "expansion_round_pause_ms": 0,
            "expansion_final_settle_ms": 0,
            "navigation_poll_attempts": 2,
            "navigation_poll_interval_ms": 0,
            "pre_activation_ms": 0,
            "fallback_event_pause_ms": 0,
            "fallback_pause_ms": 0,
            "direct_navigation_settle_ms": 0,
            "post_navigation_settle_ms": 0,
            "inter_page_delay_ms": 0,
            "dynamic_wait_max_ms": 0,
            "dynamic_poll_interval_ms": 1,
            "dynamic_growth_settle_ms": 0,
            "lazy_scroll_step_ms": 0,
            "lazy_scroll_return_ms": 0,
        },
    )


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def endpoint_site() -> FakeEnvironment:
    """
    A five-page reference site whose links are routed client-side.

    Every endpoint page has distinct content well over the minimum length.
    """
    routes = {href: Route(article(text)) for text, href in ENDPOINTS}
    return FakeEnvironment(doc_site(ENDPOINTS), routes=routes)


@pytest.fixture
def sample_html() -> str:
    """Provide sample HTML for extraction tests."""
    return """
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <title>Billing API</title>
    </head>
    <body>
        <header>
            <nav>
                <a href="/home">Home</a>
                <a href="/docs">Docs</a>
            </nav>
        </header>
        <main>
            <article>
                <h1>Invoices</h1>
                <p>Invoices are generated at the end of every billing period and
                list each subscription charge applied to the account.</p>
                <h2>Fields</h2>
                <ul>
                    <li>id - Unique identifier</li>
                    <li>total - Amount due in cents</li>
                </ul>
                <p>See <a href="/reference/get-invoice">Get Invoice</a> for details.</p>
                <p>Amounts follow <a href="https://www.iso.org/iso-4217-currency-codes.html">ISO 4217</a>.</p>
                <script>window.analytics = {};</script>
            </article>
        </main>
        <footer>
            <p>&copy; 2024 Acme Billing</p>
        </footer>
    </body>
    </html>
    """


SIDEBAR_HTML = """
<html>
<head><title>Acme API Reference</title></head>
<body>
    <nav class="sidebar"><ul>
        <li><button aria-expanded="false" aria-controls="billing">Billing</button>
            <div id="billing" hidden>
                <a href="/reference/get-invoice">Get Invoice</a>
                <a href="/reference/list-invoices">List Invoices</a>
            </div></li>
        <li><button aria-expanded="false" aria-controls="accounts">Accounts</button>
            <div id="accounts" hidden>
                <a href="/reference/get-account">Get Account</a>
                <a href="/reference/create-account">Create Account</a>
            </div></li>
        <li><button aria-expanded="false" aria-controls="orders">Orders</button>
            <div id="orders" hidden>
                <a href="/reference/get-order">Get Order</a>
            </div></li>
        <li><button aria-expanded="false" aria-controls="payments">Payments</button>
            <div id="payments" hidden>
                <a href="/reference/get-payment">Get Payment</a>
            </div></li>
    </ul></nav>
    <main>%s</main>
    <footer><a href="/privacy">Privacy</a></footer>
</body>
</html>
"""


@pytest.fixture
def sidebar_site() -> FakeEnvironment:
    """An API reference with four collapsed sidebar groups and six endpoints."""
    return FakeEnvironment(
        SIDEBAR_HTML % article("Overview"),
        url="https://docs.example.com/reference",
    )
