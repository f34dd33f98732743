"""
Observability module.

This module provides structured logging setup and per-request log context.
"""

from safecommit.observability.logging import setup_logging, LogContext

__all__ = [
    "setup_logging",
    "LogContext",
]
