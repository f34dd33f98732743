"""
Hook status file.

The hook records the progress of each run in
``<git-dir>/safecommit/review.json`` so editors can pick up the latest
result. Writing it is best-effort and never affects the commit.
"""

import json
import logging
import secrets
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from safecommit.llm.schemas import ReviewResponse

logger = logging.getLogger(__name__)

STATUS_STARTED = "started"
STATUS_COMPLETED = "completed"
STATUS_ERROR = "error"


def create_run_id() -> str:
    """Millisecond timestamp plus a short random suffix."""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(3)}"


def status_file_path(git_dir: Path) -> Path:
    return Path(git_dir) / "safecommit" / "review.json"


class HookStatusWriter:
    """Writes status updates for one hook run."""

    def __init__(self, git_dir: Path, repo_root: Path, run_id: Optional[str] = None):
        self.path = status_file_path(git_dir)
        self.repo_root = str(repo_root)
        self.run_id = run_id or create_run_id()

    def write(
        self,
        status: str,
        message: Optional[str] = None,
        response: Optional[ReviewResponse] = None,
    ) -> None:
        payload: Dict[str, Any] = {
            "status": status,
            "runId": self.run_id,
            "repoRoot": self.repo_root,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if message:
            payload["message"] = message
        if response is not None:
            payload["response"] = response.to_wire()

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload), encoding="utf-8")
        except OSError as e:
            logger.debug(f"Could not write hook status file {self.path}: {e}")

    def started(self) -> None:
        self.write(STATUS_STARTED)

    def completed(self, response: ReviewResponse) -> None:
        self.write(STATUS_COMPLETED, response=response)

    def error(self, message: str) -> None:
        self.write(STATUS_ERROR, message=message)


def read_status(git_dir: Path) -> Optional[Dict[str, Any]]:
    """Load the last status written for a repository, if any."""
    path = status_file_path(git_dir)
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.debug(f"Unreadable hook status file {path}: {e}")
        return None
