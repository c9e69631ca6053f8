"""
Tests for CLI module.

Tests command-line interface commands and output helpers.
"""

from datetime import date, datetime, timezone

import pytest
import yaml
from typer.testing import CliRunner

from doc_harvester import __version__
from doc_harvester.cli import app
from doc_harvester.cli.main import format_document, generate_filename
from doc_harvester.config import load_config
from doc_harvester.core.types import ScrapeDocument


@pytest.fixture
def runner() -> CliRunner:
    """Provide a CLI test runner."""
    return CliRunner()


class TestCLI:
    """Tests for CLI commands."""

    def test_cli_help(self, runner: CliRunner):
        """CLI should show help."""
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "Usage" in result.output
        assert "scrape" in result.output
        assert "analyze" in result.output

    def test_version(self, runner: CliRunner):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"v{__version__}" in result.output

    def test_scrape_help(self, runner: CliRunner):
        """Scrape command should show help."""
        result = runner.invoke(app, ["scrape", "--help"])

        assert result.exit_code == 0
        assert "URL" in result.output
        assert "--links" in result.output

    def test_analyze_help(self, runner: CliRunner):
        result = runner.invoke(app, ["analyze", "--help"])

        assert result.exit_code == 0

    def test_scrape_missing_url(self, runner: CliRunner):
        result = runner.invoke(app, ["scrape"])

        assert result.exit_code != 0

    def test_missing_config_file(self, runner: CliRunner, temp_dir):
        """A bad config path fails before any browser is launched."""
        missing = temp_dir / "missing.yaml"

        result = runner.invoke(app, ["analyze", "https://docs.example.com", "--config", str(missing)])

        assert result.exit_code == 1
        assert "Configuration file not found" in result.output

    def test_invalid_command(self, runner: CliRunner):
        result = runner.invoke(app, ["crawl"])

        assert result.exit_code != 0


class TestConfigCommand:
    """Tests for config command."""

    def test_no_flags(self, runner: CliRunner):
        result = runner.invoke(app, ["config"])

        assert result.exit_code == 0
        assert "--show" in result.output

    def test_show(self, runner: CliRunner, temp_dir, monkeypatch):
        """Config show should list every section."""
        monkeypatch.chdir(temp_dir)

        result = runner.invoke(app, ["config", "--show"])

        assert result.exit_code == 0
        for section in ("browser:", "scraper:", "timing:", "logging:"):
            assert section in result.output
        assert "min_content_chars: 100" in result.output

    def test_show_env_override(self, runner: CliRunner, temp_dir, monkeypatch):
        monkeypatch.chdir(temp_dir)
        monkeypatch.setenv("DOC_HARVESTER__SCRAPER__MIN_CONTENT_CHARS", "250")

        result = runner.invoke(app, ["config", "--show"])

        assert "min_content_chars: 250" in result.output

    def test_init(self, runner: CliRunner, temp_dir):
        """Init writes a config file that loads back to the defaults."""
        path = temp_dir / "doc_harvester.yaml"

        result = runner.invoke(app, ["config", "--init", "--output", str(path)])

        assert result.exit_code == 0
        data = yaml.safe_load(path.read_text())
        assert data["scraper"]["min_content_chars"] == 100
        assert data["timing"]["expansion_rounds"] == load_config().timing.expansion_rounds
        assert load_config(path).scraper.max_consecutive_failures == 10

    def test_init_default_path(self, runner: CliRunner, temp_dir, monkeypatch):
        monkeypatch.chdir(temp_dir)

        result = runner.invoke(app, ["config", "--init"])

        assert result.exit_code == 0
        assert (temp_dir / "doc_harvester.yaml").exists()

    def test_init_keeps_existing_file(self, runner: CliRunner, temp_dir):
        """Declining the overwrite prompt leaves the file alone."""
        path = temp_dir / "doc_harvester.yaml"
        path.write_text("scraper:\n  min_content_chars: 50\n")

        result = runner.invoke(app, ["config", "--init", "--output", str(path)], input="n\n")

        assert result.exit_code == 0
        assert path.read_text() == "scraper:\n  min_content_chars: 50\n"


class TestGenerateFilename:
    """Tests for output file names."""

    @pytest.fixture
    def today(self) -> str:
        return date.today().isoformat()

    def test_comprehensive(self, today):
        name = generate_filename("Complete Documentation - Acme API", comprehensive=True)

        assert name == f"COMPLETE_DOCS_Complete_Documentation_-_Acme_API_{today}.txt"

    def test_partial(self, today):
        """The PARTIAL title prefix is replaced by the file prefix."""
        name = generate_filename(
            "PARTIAL - Complete Documentation - Acme API", comprehensive=True, partial=True)

        assert name == f"PARTIAL_Complete_Documentation_-_Acme_API_{today}.txt"

    def test_unsafe_characters(self, today):
        assert generate_filename("Billing: API/v2?") == f"Billing_APIv2_{today}.txt"

    def test_title_length(self, today):
        name = generate_filename("A" * 80)

        assert name == f"{'A' * 50}_{today}.txt"


class TestFormatDocument:
    """Tests for the saved document header."""

    def test_header(self):
        document = ScrapeDocument(
            url="https://docs.example.com",
            title="Complete Documentation - Acme API",
            content="# Get Invoice\n\nReturns an invoice.",
            word_count=6,
            sections_count=1,
            timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        )

        assert format_document(document) == (
            "# Complete Documentation - Acme API\n\n"
            "**URL:** https://docs.example.com\n"
            "**Scraped:** 2024-05-01T12:00:00+00:00\n"
            "**Word Count:** ~6\n"
            "**Sections Found:** 1\n\n"
            "---\n\n"
            "# Get Invoice\n\nReturns an invoice."
        )

    def test_missing_title_and_sections(self):
        document = ScrapeDocument(
            url="https://docs.example.com", title="", content="Text",
            word_count=1, sections_count=0,
        )

        text = format_document(document)

        assert text.startswith("# Webpage Content\n\n")
        assert "**Sections Found:** N/A" in text
