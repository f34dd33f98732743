"""
Pre-commit hook flow.

Reviews the staged diff through the backend and decides the exit status.
Review infrastructure problems never block a commit: an unreachable
backend, a bad response or an unexpected error all exit 0.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

import git

from safecommit.errors import BackendResponseError, BackendUnavailableError
from safecommit.hooks.client import ReviewBackendClient
from safecommit.hooks.config import HookSettings
from safecommit.hooks.git import GitRepository
from safecommit.hooks.status import HookStatusWriter
from safecommit.llm.schemas import ReviewResponse, Summary
from safecommit.review.formatter import format_findings_list
from safecommit.review.truncation import truncate_by_bytes, utf8_length

logger = logging.getLogger(__name__)

EXIT_ALLOW = 0
EXIT_BLOCK = 1

NO_CHANGES_MESSAGE = "SafeCommit: no staged changes to review."
READ_FAILED_MESSAGE = "SafeCommit: failed to read staged diff."
UNAVAILABLE_MESSAGE = "SafeCommit: backend unavailable, skipping review."
INVALID_RESPONSE_MESSAGE = "SafeCommit: invalid response from backend."
UNEXPECTED_MESSAGE = "SafeCommit: unexpected error, skipping review."
INVALID_CONFIG_MESSAGE = "SafeCommit: invalid configuration, skipping review."


@dataclass
class StagedChanges:
    diff: str
    files: List[str]
    truncated: bool = False

    @property
    def empty(self) -> bool:
        return not self.diff.strip()


def read_staged_changes(repo: GitRepository, max_bytes: int) -> StagedChanges:
    """
    Read the staged diff and file list, truncating the diff to ``max_bytes``.

    Raises:
        git.GitCommandError: If git cannot produce the diff
    """
    diff = repo.staged_diff()
    if not diff.strip():
        return StagedChanges(diff="", files=[])
    files = repo.staged_files()
    truncated = utf8_length(diff) > max_bytes
    return StagedChanges(diff=truncate_by_bytes(diff, max_bytes), files=files, truncated=truncated)


def empty_response() -> ReviewResponse:
    """Placeholder response recorded when there is nothing to review."""
    return ReviewResponse(
        request_id="local-no-diff",
        findings=[],
        summary=Summary(total_findings=0, by_severity={}, duration_ms=0),
    )


def build_client(settings: HookSettings) -> ReviewBackendClient:
    return ReviewBackendClient(
        base_url=settings.api_base_url,
        api_key=settings.api_key,
        timeout_seconds=settings.timeout_seconds,
    )


def run_pre_commit(
    settings: HookSettings,
    repo_path: Optional[str] = None,
    confirm: Optional[Callable[[], bool]] = None,
    echo: Callable[[str], None] = print,
    client: Optional[ReviewBackendClient] = None,
) -> int:
    """
    Run the hook once.

    Args:
        settings: Client settings (threshold, limits, backend URL)
        repo_path: Path inside the repository (defaults to the current directory)
        confirm: Asks the user whether to review; ``None`` skips the question
        echo: Output function
        client: Backend client override

    Returns:
        EXIT_BLOCK if any finding is at or above the threshold, else EXIT_ALLOW
    """
    try:
        repo = GitRepository(repo_path)
    except ValueError:
        return EXIT_ALLOW

    if confirm is not None and not confirm():
        return EXIT_ALLOW

    writer = HookStatusWriter(git_dir=repo.git_dir, repo_root=repo.root)
    try:
        return _review_staged(repo, settings, writer, echo, client or build_client(settings))
    except Exception:
        logger.debug("Unexpected hook failure", exc_info=True)
        writer.error(UNEXPECTED_MESSAGE)
        echo(UNEXPECTED_MESSAGE)
        return EXIT_ALLOW


def _review_staged(
    repo: GitRepository,
    settings: HookSettings,
    writer: HookStatusWriter,
    echo: Callable[[str], None],
    client: ReviewBackendClient,
) -> int:
    writer.started()

    try:
        staged = read_staged_changes(repo, settings.max_diff_bytes)
    except git.GitCommandError as e:
        logger.debug(f"git diff failed: {e}")
        writer.error(READ_FAILED_MESSAGE)
        return EXIT_ALLOW

    if staged.empty:
        echo(NO_CHANGES_MESSAGE)
        writer.completed(empty_response())
        return EXIT_ALLOW

    try:
        response = client.review(repo_id=str(repo.root), diff=staged.diff, files=staged.files)
    except BackendUnavailableError:
        echo(UNAVAILABLE_MESSAGE)
        writer.error(UNAVAILABLE_MESSAGE)
        return EXIT_ALLOW
    except BackendResponseError:
        echo(INVALID_RESPONSE_MESSAGE)
        writer.error(INVALID_RESPONSE_MESSAGE)
        return EXIT_ALLOW

    writer.completed(response)

    echo("Found Issues:")
    for line in format_findings_list(response.findings):
        echo(line)

    threshold = settings.fail_on_severity
    if response.has_findings_at_or_above(threshold):
        echo(f"SafeCommit: blocking commit due to severity >= {threshold.value}")
        return EXIT_BLOCK
    return EXIT_ALLOW
