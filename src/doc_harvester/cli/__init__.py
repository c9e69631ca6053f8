"""
CLI module for doc-harvester.

Provides command-line interface using Typer:
- scrape: Scrape one page or a whole documentation site to a text file
- analyze: Show how a site's structure is classified
- config: Configuration management
"""

from doc_harvester.cli.main import app

__all__ = ["app"]
