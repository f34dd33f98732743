"""
Hook client for SafeCommit.

Reads staged changes with GitPython, calls the review backend and gates
commits on finding severity.
"""

from safecommit.hooks.config import HookSettings
from safecommit.hooks.install import install_hook
from safecommit.hooks.precommit import run_pre_commit

__all__ = ["HookSettings", "install_hook", "run_pre_commit"]
