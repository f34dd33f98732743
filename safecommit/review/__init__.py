"""
Review module.

Provides the review state machine, diff truncation and summary building.
"""

from safecommit.review.reviewer import DiffReviewer, ReviewOutcome, ReviewProvider, ReviewState
from safecommit.review.summary import build_summary
from safecommit.review.truncation import truncate_by_bytes

__all__ = [
    "DiffReviewer",
    "ReviewOutcome",
    "ReviewProvider",
    "ReviewState",
    "build_summary",
    "truncate_by_bytes",
]
