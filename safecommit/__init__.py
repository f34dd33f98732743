"""
SafeCommit: LLM review of staged git diffs.

Backend service plus a pre-commit hook client.
"""

__version__ = "1.0.0"
