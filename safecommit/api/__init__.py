"""
API package for SafeCommit.

This package contains all API route handlers.
"""

from safecommit.api import review, health

__all__ = ["review", "health"]
