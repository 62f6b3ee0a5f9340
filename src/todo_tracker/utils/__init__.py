"""Shared utilities."""

from todo_tracker.utils.logging import get_logger, setup_logging
from todo_tracker.utils.metrics import get_metrics

__all__ = [
    "get_logger",
    "setup_logging",
    "get_metrics",
]
