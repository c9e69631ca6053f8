"""
Utilities for doc-harvester: logging setup and in-process metrics.
"""

from doc_harvester.utils.logging import (
    setup_logging,
    get_logger,
    get_logger_with_context,
    reset_logging,
)
from doc_harvester.utils.metrics import Metrics, TimingStats

__all__ = [
    "setup_logging",
    "get_logger",
    "get_logger_with_context",
    "reset_logging",
    "Metrics",
    "TimingStats",
]
