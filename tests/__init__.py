"""
Test suite for doc-harvester.

Unit tests run against an in-memory page (tests/fakes.py) so discovery,
navigation and the page loop are exercised without a browser.
"""
