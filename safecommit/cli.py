"""Command-line interface for SafeCommit."""

import json
import sys
from typing import Optional

import click
import git
from pydantic import ValidationError

from safecommit.errors import BackendError, ConfigurationError, HookInstallError
from safecommit.hooks.config import HookSettings
from safecommit.hooks.git import GitRepository
from safecommit.hooks.install import install_hook
from safecommit.hooks.precommit import (
    EXIT_ALLOW,
    INVALID_CONFIG_MESSAGE,
    build_client,
    read_staged_changes,
    run_pre_commit,
)
from safecommit.hooks.status import read_status
from safecommit.llm.schemas import Severity
from safecommit.review.formatter import SEVERITY_COLORS, format_detailed_review

SEVERITY_CHOICES = click.Choice([s.value for s in Severity], case_sensitive=False)


class ReviewCommandError(click.ClickException):
    """Review infrastructure failure in an explicit command (exit 2)."""
    exit_code = 2


def _open_repository(path: Optional[str]) -> GitRepository:
    try:
        return GitRepository(path)
    except ValueError as e:
        raise ReviewCommandError(str(e))


@click.group()
@click.version_option(package_name="safecommit")
def main():
    """SafeCommit: LLM review of staged changes."""


@main.command("serve")
@click.option("--host", default=None, help="Listen host (defaults to HOST)")
@click.option("--port", type=int, default=None, help="Listen port (defaults to PORT)")
@click.option("--reload", is_flag=True, help="Restart on code changes (development only)")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the review backend."""
    from safecommit.main import run

    try:
        run(host=host, port=port, reload=reload)
    except ConfigurationError as e:
        raise click.ClickException(f"Configuration error: {e}")


@main.command("review")
@click.option("--path", "-p", type=click.Path(exists=True, file_okay=False), default=None,
              help="Repository path (defaults to the current directory)")
@click.option("--json", "as_json", is_flag=True, help="Print the raw review response as JSON")
@click.option("--fail-on", type=SEVERITY_CHOICES, default=None,
              help="Exit 1 when a finding is at or above this severity")
def review(path: Optional[str], as_json: bool, fail_on: Optional[str]):
    """Review the staged changes and print the findings."""
    try:
        settings = HookSettings()
    except ValidationError as e:
        raise ReviewCommandError(f"Invalid configuration. {e}")
    repo = _open_repository(path)

    try:
        staged = read_staged_changes(repo, settings.max_diff_bytes)
    except git.GitCommandError as e:
        raise ReviewCommandError(f"Failed to read staged diff. {e}")

    if staged.empty:
        click.echo("SafeCommit: No staged changes to review.")
        return
    if staged.truncated:
        click.secho("SafeCommit: Diff was truncated due to size limits.", fg="yellow", err=True)

    try:
        response = build_client(settings).review(
            repo_id=str(repo.root), diff=staged.diff, files=staged.files
        )
    except BackendError as e:
        raise ReviewCommandError(f"Backend request failed. {e}")

    if as_json:
        click.echo(json.dumps(response.to_wire(), indent=2))
    else:
        for line in format_detailed_review(response).splitlines():
            color = next(
                (c for sev, c in SEVERITY_COLORS.items() if line.lstrip().startswith(f"[{sev.value}]")),
                None,
            )
            click.secho(line, fg=color)

    threshold = Severity(fail_on) if fail_on else settings.fail_on_severity
    if response.has_findings_at_or_above(threshold):
        sys.exit(1)


@main.group("hook")
def hook():
    """Git pre-commit hook commands."""


@hook.command("run")
@click.option("--yes", "-y", is_flag=True, help="Review without asking")
@click.option("--path", "-p", type=click.Path(exists=True, file_okay=False), default=None)
def hook_run(yes: bool, path: Optional[str]):
    """Review staged changes and block the commit on serious findings."""
    try:
        settings = HookSettings()
    except ValidationError as e:
        # A misconfigured client never blocks a commit
        click.echo(INVALID_CONFIG_MESSAGE)
        click.echo(str(e), err=True)
        sys.exit(EXIT_ALLOW)

    confirm = None
    if not yes and sys.stdin.isatty():
        def confirm():
            return click.confirm("SafeCommit: review staged changes before commit?", default=True)

    sys.exit(run_pre_commit(settings, repo_path=path, confirm=confirm, echo=click.echo))


@hook.command("install")
@click.option("--path", "-p", type=click.Path(exists=True, file_okay=False), default=None)
@click.option("--force", is_flag=True, help="Replace an existing pre-commit hook")
def hook_install(path: Optional[str], force: bool):
    """Install the pre-commit hook into the repository."""
    repo = _open_repository(path)
    try:
        installed = install_hook(repo.hooks_dir, force=force)
    except (HookInstallError, OSError) as e:
        raise click.ClickException(f"Failed to install hook. {e}")

    if installed:
        click.echo("SafeCommit: Pre-commit hook installed.")
    else:
        click.echo("SafeCommit: Pre-commit hook already present.")


@hook.command("status")
@click.option("--path", "-p", type=click.Path(exists=True, file_okay=False), default=None)
def hook_status(path: Optional[str]):
    """Print the result of the last hook run as JSON."""
    repo = _open_repository(path)
    status = read_status(repo.git_dir)
    if status is None:
        raise click.ClickException("No hook run recorded for this repository.")
    click.echo(json.dumps(status, indent=2))


if __name__ == "__main__":
    main()
