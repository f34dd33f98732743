"""Installation of the SafeCommit pre-commit hook script."""

import logging
import os
import stat
from pathlib import Path

from safecommit.errors import HookInstallError

logger = logging.getLogger(__name__)

HOOK_NAME = "pre-commit"
HOOK_MARKER = "# Installed by SafeCommit"

HOOK_SCRIPT = f"""#!/bin/sh
{HOOK_MARKER}
# Reviews staged changes before each commit. Skip once with: git commit --no-verify
if command -v safecommit >/dev/null 2>&1; then
  if [ -t 1 ] && (exec </dev/tty) 2>/dev/null; then
    exec safecommit hook run </dev/tty
  fi
  exec safecommit hook run --yes
fi
exit 0
"""


def _normalize(content: str) -> str:
    return content.lstrip("\ufeff").replace("\r\n", "\n")


def install_hook(hooks_dir: Path, force: bool = False) -> bool:
    """
    Write the pre-commit hook into ``hooks_dir``.

    Args:
        hooks_dir: The repository's hooks directory
        force: Replace a hook not installed by SafeCommit

    Returns:
        True if the hook was written, False if an identical hook is present

    Raises:
        HookInstallError: If a different, non-SafeCommit hook exists and
            ``force`` is not set
    """
    hooks_dir = Path(hooks_dir)
    target = hooks_dir / HOOK_NAME

    if target.exists():
        raw = target.read_bytes()
        current = _normalize(raw.decode("utf-8", errors="replace"))
        needs_normalization = raw.startswith(b"\xef\xbb\xbf") or b"\r" in raw
        if current == HOOK_SCRIPT and not needs_normalization:
            return False
        if HOOK_MARKER not in current and not force:
            raise HookInstallError(
                f"{target} already exists and was not installed by SafeCommit; use --force to replace it"
            )

    hooks_dir.mkdir(parents=True, exist_ok=True)
    target.write_text(HOOK_SCRIPT, encoding="utf-8", newline="\n")
    if os.name != "nt":
        mode = target.stat().st_mode
        target.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    logger.info(f"Installed pre-commit hook at {target}")
    return True
