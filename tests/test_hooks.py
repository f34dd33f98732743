"""Tests for the pre-commit hook client."""

import json
import os
import stat

import pytest
import requests

from safecommit.errors import BackendResponseError, BackendUnavailableError, HookInstallError
from safecommit.hooks.client import REVIEW_PATH, ReviewBackendClient
from safecommit.hooks.config import HookSettings
from safecommit.hooks.git import GitRepository
from safecommit.hooks.install import HOOK_NAME, HOOK_SCRIPT, install_hook
from safecommit.hooks.precommit import (
    EXIT_ALLOW,
    EXIT_BLOCK,
    INVALID_RESPONSE_MESSAGE,
    NO_CHANGES_MESSAGE,
    UNAVAILABLE_MESSAGE,
    read_staged_changes,
    run_pre_commit,
)
from safecommit.hooks.status import STATUS_COMPLETED, STATUS_ERROR, read_status, status_file_path
from safecommit.llm.schemas import Severity

from tests.conftest import VALID_FINDING, backend_session

BASE_URL = "http://safecommit.test"


def response_body(*severities):
    findings = [
        dict(VALID_FINDING, severity=severity, title=f"issue {i}")
        for i, severity in enumerate(severities)
    ]
    by_severity = {"nit": 0, "suggestion": 0, "warning": 0, "critical": 0}
    for severity in severities:
        by_severity[severity] += 1
    return {
        "requestId": "req-1",
        "findings": findings,
        "summary": {"totalFindings": len(findings), "bySeverity": by_severity, "durationMs": 3},
    }


def mock_client(handler, api_key=""):
    return ReviewBackendClient(BASE_URL, api_key=api_key, session=backend_session(handler))


def json_handler(body, status_code=200):
    def handler(request):
        return status_code, body
    return handler


def stage_change(repo_path, name="app.py", content="print('hello')\n"):
    (repo_path / name).write_text(content)
    GitRepository(repo_path).repo.index.add([name])


@pytest.fixture
def hook_settings():
    return HookSettings(_env_file=None, api_base_url=BASE_URL, fail_on_severity="critical")


class Echo:
    def __init__(self):
        self.lines = []

    def __call__(self, line):
        self.lines.append(line)


class TestGitRepository:
    """Test staged diff access."""

    def test_rejects_non_repository(self, tmp_path):
        with pytest.raises(ValueError):
            GitRepository(tmp_path)

    def test_discovers_root_from_subdirectory(self, temp_git_repo):
        sub = temp_git_repo / "pkg"
        sub.mkdir()
        repo = GitRepository(sub)
        assert repo.root.resolve() == temp_git_repo.resolve()

    def test_staged_diff_and_files(self, temp_git_repo):
        stage_change(temp_git_repo)
        repo = GitRepository(temp_git_repo)

        assert "+print('hello')" in repo.staged_diff()
        assert repo.staged_files() == ["app.py"]

    def test_unstaged_changes_are_ignored(self, temp_git_repo):
        (temp_git_repo / "README.md").write_text("changed\n")
        repo = GitRepository(temp_git_repo)

        assert repo.staged_diff().strip() == ""

    def test_read_staged_changes_truncates(self, temp_git_repo):
        stage_change(temp_git_repo, content="x" * 500 + "\n")
        staged = read_staged_changes(GitRepository(temp_git_repo), max_bytes=100)

        assert staged.truncated
        assert len(staged.diff.encode("utf-8")) <= 100
        assert staged.files == ["app.py"]


class TestReviewBackendClient:
    """Test the HTTP client against a fake transport adapter."""

    def test_posts_request_and_parses_response(self):
        seen = {}

        def handler(request):
            seen["url"] = request.url
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.body)
            return 200, response_body("warning")

        response = mock_client(handler, api_key="secret").review("repo", "diff", ["x"])

        assert seen["url"] == f"{BASE_URL}{REVIEW_PATH}"
        assert seen["auth"] == "Bearer secret"
        assert seen["body"] == {"repoId": "repo", "diff": "diff", "files": ["x"]}
        assert response.request_id == "req-1"
        assert response.findings[0].severity is Severity.WARNING

    def test_omits_authorization_without_key(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return 200, response_body()

        mock_client(handler).review("repo", "diff", [])
        assert seen["auth"] is None

    def test_error_status_is_unavailable(self):
        client = mock_client(json_handler({"error": "Failed to review diff"}, status_code=502))

        with pytest.raises(BackendUnavailableError) as exc_info:
            client.review("repo", "diff", ["x"])

        assert exc_info.value.status_code == 502

    def test_connection_failure_is_unavailable(self):
        def handler(request):
            raise requests.exceptions.ConnectionError("connection refused")

        with pytest.raises(BackendUnavailableError):
            mock_client(handler).review("repo", "diff", ["x"])

    def test_timeout_is_unavailable(self):
        def handler(request):
            raise requests.exceptions.ReadTimeout("timed out")

        with pytest.raises(BackendUnavailableError):
            mock_client(handler).review("repo", "diff", ["x"])

    def test_non_json_body_is_response_error(self):
        def handler(request):
            return 200, b"<html>gateway</html>"

        with pytest.raises(BackendResponseError):
            mock_client(handler).review("repo", "diff", ["x"])

    def test_wrong_shape_is_response_error(self):
        with pytest.raises(BackendResponseError):
            mock_client(json_handler({"findings": "none"})).review("repo", "diff", ["x"])


class TestRunPreCommit:
    """Test the hook flow end to end against a temporary repository."""

    def test_no_staged_changes(self, temp_git_repo, hook_settings):
        echo = Echo()

        def handler(request):
            raise AssertionError("backend must not be called")

        code = run_pre_commit(
            hook_settings, repo_path=str(temp_git_repo), echo=echo, client=mock_client(handler)
        )

        assert code == EXIT_ALLOW
        assert echo.lines == [NO_CHANGES_MESSAGE]
        status = read_status(temp_git_repo / ".git")
        assert status["status"] == STATUS_COMPLETED
        assert status["response"]["findings"] == []

    def test_blocks_on_critical_finding(self, temp_git_repo, hook_settings):
        stage_change(temp_git_repo)
        echo = Echo()

        code = run_pre_commit(
            hook_settings,
            repo_path=str(temp_git_repo),
            echo=echo,
            client=mock_client(json_handler(response_body("critical", "nit"))),
        )

        assert code == EXIT_BLOCK
        assert echo.lines[0] == "Found Issues:"
        assert "1. [critical] x:1 - issue 0" in echo.lines
        assert echo.lines[-1] == "SafeCommit: blocking commit due to severity >= critical"
        assert read_status(temp_git_repo / ".git")["status"] == STATUS_COMPLETED

    def test_allows_findings_below_threshold(self, temp_git_repo, hook_settings):
        stage_change(temp_git_repo)
        echo = Echo()

        code = run_pre_commit(
            hook_settings,
            repo_path=str(temp_git_repo),
            echo=echo,
            client=mock_client(json_handler(response_body("warning"))),
        )

        assert code == EXIT_ALLOW
        assert "Found Issues:" in echo.lines

    def test_lower_threshold_blocks_warnings(self, temp_git_repo):
        stage_change(temp_git_repo)
        settings = HookSettings(_env_file=None, api_base_url=BASE_URL, fail_on_severity="WARNING")

        code = run_pre_commit(
            settings,
            repo_path=str(temp_git_repo),
            echo=Echo(),
            client=mock_client(json_handler(response_body("warning"))),
        )

        assert code == EXIT_BLOCK

    def test_empty_findings_print_none(self, temp_git_repo, hook_settings):
        stage_change(temp_git_repo)
        echo = Echo()

        code = run_pre_commit(
            hook_settings,
            repo_path=str(temp_git_repo),
            echo=echo,
            client=mock_client(json_handler(response_body())),
        )

        assert code == EXIT_ALLOW
        assert echo.lines == ["Found Issues:", "1. None"]

    def test_duplicate_findings_printed_once(self, temp_git_repo, hook_settings):
        stage_change(temp_git_repo)
        body = response_body("warning")
        body["findings"].append(dict(body["findings"][0]))
        echo = Echo()

        run_pre_commit(
            hook_settings, repo_path=str(temp_git_repo), echo=echo, client=mock_client(json_handler(body))
        )

        assert echo.lines == ["Found Issues:", "1. [warning] x:1 - issue 0"]

    def test_backend_unavailable_allows_commit(self, temp_git_repo, hook_settings):
        stage_change(temp_git_repo)
        echo = Echo()

        code = run_pre_commit(
            hook_settings,
            repo_path=str(temp_git_repo),
            echo=echo,
            client=mock_client(json_handler({"error": "down"}, status_code=503)),
        )

        assert code == EXIT_ALLOW
        assert echo.lines == [UNAVAILABLE_MESSAGE]
        status = read_status(temp_git_repo / ".git")
        assert status["status"] == STATUS_ERROR
        assert status["message"] == UNAVAILABLE_MESSAGE

    def test_invalid_response_allows_commit(self, temp_git_repo, hook_settings):
        stage_change(temp_git_repo)
        echo = Echo()

        code = run_pre_commit(
            hook_settings,
            repo_path=str(temp_git_repo),
            echo=echo,
            client=mock_client(json_handler({"unexpected": True})),
        )

        assert code == EXIT_ALLOW
        assert echo.lines == [INVALID_RESPONSE_MESSAGE]

    def test_not_a_repository(self, tmp_path, hook_settings):
        echo = Echo()
        assert run_pre_commit(hook_settings, repo_path=str(tmp_path), echo=echo) == EXIT_ALLOW
        assert echo.lines == []

    def test_declined_review_skips_backend(self, temp_git_repo, hook_settings):
        stage_change(temp_git_repo)

        def handler(request):
            raise AssertionError("backend must not be called")

        code = run_pre_commit(
            hook_settings,
            repo_path=str(temp_git_repo),
            confirm=lambda: False,
            echo=Echo(),
            client=mock_client(handler),
        )

        assert code == EXIT_ALLOW
        assert not status_file_path(temp_git_repo / ".git").exists()


class TestInstallHook:
    """Test hook installation."""

    def test_installs_executable_hook(self, tmp_path):
        hooks_dir = tmp_path / "hooks"

        assert install_hook(hooks_dir) is True

        target = hooks_dir / HOOK_NAME
        assert target.read_text(encoding="utf-8") == HOOK_SCRIPT
        if os.name != "nt":
            assert target.stat().st_mode & stat.S_IXUSR

    def test_is_idempotent(self, tmp_path):
        install_hook(tmp_path)
        assert install_hook(tmp_path) is False

    def test_normalizes_bom_and_crlf(self, tmp_path):
        target = tmp_path / HOOK_NAME
        target.write_bytes(b"\xef\xbb\xbf" + HOOK_SCRIPT.replace("\n", "\r\n").encode("utf-8"))

        assert install_hook(tmp_path) is True
        assert target.read_bytes() == HOOK_SCRIPT.encode("utf-8")

    def test_refuses_foreign_hook(self, tmp_path):
        target = tmp_path / HOOK_NAME
        target.write_text("#!/bin/sh\nnpx lint-staged\n")

        with pytest.raises(HookInstallError):
            install_hook(tmp_path)
        assert "lint-staged" in target.read_text()

    def test_force_replaces_foreign_hook(self, tmp_path):
        target = tmp_path / HOOK_NAME
        target.write_text("#!/bin/sh\nnpx lint-staged\n")

        assert install_hook(tmp_path, force=True) is True
        assert target.read_text(encoding="utf-8") == HOOK_SCRIPT


class TestHookSettings:
    """Test client settings."""

    def test_defaults(self, monkeypatch):
        for name in list(os.environ):
            if name.startswith("SAFECOMMIT_"):
                monkeypatch.delenv(name)
        settings = HookSettings(_env_file=None)
        assert settings.api_base_url == "http://localhost:8787"
        assert settings.fail_on_severity is Severity.CRITICAL
        assert settings.max_diff_bytes == 200_000

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("SAFECOMMIT_API_BASE_URL", "https://review.example.com/")
        monkeypatch.setenv("SAFECOMMIT_FAIL_ON_SEVERITY", "Warning")
        settings = HookSettings(_env_file=None)
        assert settings.api_base_url == "https://review.example.com"
        assert settings.fail_on_severity is Severity.WARNING
