"""GitHub pull request review client."""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Optional

import aiohttp
from loguru import logger

from pr_approver.config import GITHUB_API_URL

USER_AGENT = "slack-pr-approver"


class ApprovalError(Exception):
    """Raised when GitHub rejects the approval or cannot be reached."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.message = message
        self.status = status
        super().__init__(message)


@dataclass(frozen=True)
class ApprovalResult:
    """The review created by a successful approval."""

    html_url: Optional[str]
    review_id: Optional[int] = None
    state: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ApprovalResult":
        return cls(
            html_url=payload.get("html_url"),
            review_id=payload.get("id"),
            state=payload.get("state"),
        )


def _error_message(payload: Any, status: int, reason: Optional[str]) -> str:
    """Extract GitHub's error message, including any ``errors[]`` details."""
    if not isinstance(payload, dict) or not payload.get("message"):
        return f"HTTP {status} {reason or ''}".strip()

    message = str(payload["message"])
    details = []
    for item in payload.get("errors") or []:
        if isinstance(item, dict):
            item = item.get("message") or item.get("code")
        if item:
            details.append(str(item))
    if details:
        message = f"{message}: {'; '.join(details)}"
    return message


class GitHubClient:
    """Submits pull request approvals through the GitHub REST API.

    Exactly one request is made per ``approve`` call; there are no retries.
    """

    def __init__(
        self,
        token: str,
        api_url: str = GITHUB_API_URL,
        timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._session = session

    def __repr__(self) -> str:
        return f"GitHubClient(api_url={self.api_url!r})"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"token {self._token}",
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
        }

    def reviews_url(self, repository: str, pr_number: int) -> str:
        return f"{self.api_url}/repos/{repository}/pulls/{pr_number}/reviews"

    async def approve(self, repository: str, pr_number: int) -> ApprovalResult:
        """Submit an APPROVE review on a pull request.

        Args:
            repository: Repository in "owner/name" form
            pr_number: Pull request number

        Returns:
            ApprovalResult with the review's browsable URL

        Raises:
            ApprovalError: On any non-2xx response, network failure or timeout
        """
        url = self.reviews_url(repository, pr_number)
        try:
            if self._session is not None:
                return await self._post_review(self._session, url)

            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                return await self._post_review(session, url)

        except ApprovalError as e:
            logger.warning(f"GitHub rejected approval of {repository}#{pr_number}: {e.message}")
            raise
        except asyncio.TimeoutError as e:
            raise ApprovalError(f"Timed out after {self.timeout:.0f}s contacting GitHub") from e
        except aiohttp.ClientError as e:
            raise ApprovalError(f"Network error contacting GitHub: {e}") from e

    async def _post_review(self, session: aiohttp.ClientSession, url: str) -> ApprovalResult:
        async with session.post(url, json={"event": "APPROVE"}, headers=self._headers()) as response:
            body = await response.text()
            try:
                payload = json.loads(body) if body else {}
            except ValueError:
                payload = None

            if not 200 <= response.status < 300:
                raise ApprovalError(
                    _error_message(payload, response.status, response.reason),
                    status=response.status,
                )

            if not isinstance(payload, dict):
                raise ApprovalError("GitHub returned an unreadable response", status=response.status)

        result = ApprovalResult.from_payload(payload)
        logger.info(f"Created review {result.review_id} ({result.state}) at {result.html_url}")
        return result
