"""
HTTP client for the review backend.

The hook makes exactly one request per run; failures are reported to the
caller, which decides whether the commit proceeds.
"""

import logging
from typing import Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter

from safecommit.errors import BackendResponseError, BackendUnavailableError
from safecommit.llm.schemas import ReviewResponse
from safecommit.llm.validation import validate_model

logger = logging.getLogger(__name__)

REVIEW_PATH = "/v1/review/diff"


class ReviewBackendClient:
    """Calls ``POST /v1/review/diff`` and parses the response."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout_seconds: float = 60.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            base_url: Backend root URL
            api_key: Sent as a bearer token when set
            timeout_seconds: Request timeout
            session: Pre-configured session, e.g. with a test adapter mounted
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(max_retries=0)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def review(self, repo_id: str, diff: str, files: List[str]) -> ReviewResponse:
        """
        Request a review of ``diff``.

        Raises:
            BackendUnavailableError: Connection failure, timeout or error status
            BackendResponseError: Body is not JSON or not a review response
        """
        payload = {"repoId": repo_id, "diff": diff, "files": files}
        try:
            response = self.session.post(
                f"{self.base_url}{REVIEW_PATH}",
                json=payload,
                headers=self._get_headers(),
                timeout=self.timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"Review backend unreachable: {e}")
            raise BackendUnavailableError(f"Backend request failed: {e}") from e

        if not response.ok:
            logger.warning(f"Review backend returned HTTP {response.status_code}")
            raise BackendUnavailableError(
                f"HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise BackendResponseError(f"Backend returned invalid JSON: {e}") from e

        parsed = validate_model(ReviewResponse, data)
        if not parsed.ok:
            raise BackendResponseError(f"Backend returned an unexpected body: {parsed.error}")
        return parsed.value
