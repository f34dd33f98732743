"""Pytest configuration and shared fixtures."""

import asyncio
import json
from pathlib import Path
from typing import Generator, List, Union

import pytest
import requests
from fastapi.testclient import TestClient
from git import Repo
from requests.adapters import BaseAdapter

from safecommit.config import Settings
from safecommit.llm.model import LLMClient
from safecommit.llm.prompts import build_system_prompt
from safecommit.main import create_app
from safecommit.review.reviewer import DiffReviewer


VALID_FINDING = {
    "file": "x",
    "lineStart": 1,
    "lineEnd": 1,
    "severity": "warning",
    "title": "t",
    "message": "m",
    "rationale": "r",
}

VALID_RESPONSE_TEXT = json.dumps({
    "findings": [VALID_FINDING],
    "summary": {
        "totalFindings": 1,
        "bySeverity": {"nit": 0, "suggestion": 0, "warning": 1, "critical": 0},
        "durationMs": 5,
    },
})

EMPTY_RESPONSE_TEXT = json.dumps({
    "findings": [],
    "summary": {"totalFindings": 0, "bySeverity": {}, "durationMs": 0},
})


class Hang:
    """Scripted response that never completes in time."""

    def __init__(self, seconds: float = 5.0):
        self.seconds = seconds


class ScriptedLLMClient(LLMClient):
    """LLM client replaying a fixed list of responses and recording prompts."""

    provider = "scripted"

    def __init__(self, responses: List[Union[str, Exception, Hang]]):
        super().__init__(system_prompt=build_system_prompt(), model_name="scripted-model")
        self.responses = list(responses)
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.responses:
            raise AssertionError("Unexpected extra model call")
        response = self.responses.pop(0)
        if isinstance(response, Hang):
            await asyncio.sleep(response.seconds)
            return VALID_RESPONSE_TEXT
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def calls(self) -> int:
        return len(self.prompts)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        GEMINI_API_KEY="test-key",
        LLM_TIMEOUT_MS=1000,
        DEFAULT_MAX_DIFF_BYTES=200_000,
    )


@pytest.fixture
def make_client(settings):
    """Build a TestClient around a scripted model."""

    def _make(responses, **overrides):
        app_settings = settings.model_copy(update=overrides) if overrides else settings
        llm = ScriptedLLMClient(responses)
        reviewer = DiffReviewer(
            llm_client=llm,
            timeout_ms=app_settings.LLM_TIMEOUT_MS,
            repair_timeout_ms=app_settings.repair_timeout_ms,
        )
        app = create_app(settings=app_settings, reviewer=reviewer, configure_logging=False)
        return TestClient(app), llm

    return _make


@pytest.fixture
def temp_git_repo(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary git repository with one commit.

    Yields:
        Path to repository
    """
    repo_path = tmp_path / "repo"
    repo_path.mkdir()
    repo = Repo.init(repo_path)
    with repo.config_writer() as config:
        config.set_value("user", "name", "Test User")
        config.set_value("user", "email", "test@example.com")

    readme = repo_path / "README.md"
    readme.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    yield repo_path


class FakeBackendAdapter(BaseAdapter):
    """Transport adapter answering requests from a handler function.

    The handler receives the prepared request and returns
    ``(status_code, body)``; a dict body is sent as JSON, bytes verbatim.
    """

    def __init__(self, handler):
        super().__init__()
        self.handler = handler
        self.requests = []

    def send(self, request, **kwargs):
        self.requests.append(request)
        status_code, body = self.handler(request)

        response = requests.Response()
        response.status_code = status_code
        response._content = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
        response.encoding = "utf-8"
        response.request = request
        response.url = request.url
        return response

    def close(self):
        pass


def backend_session(handler) -> requests.Session:
    """Session whose http:// requests are answered by ``handler``."""
    session = requests.Session()
    session.mount("http://", FakeBackendAdapter(handler))
    return session
