"""GitHub API client with rate limiting, retry logic, and App auth support.

Uses httpx.AsyncClient with trio. Fetches single pages of PR comments and
reviews and runs GraphQL queries.
"""

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from email.utils import parsedate_to_datetime
from typing import Any

import httpx
import jwt
import trio

from .config import (
    GITHUB_APP_ID,
    GITHUB_APP_INSTALLATION_ID,
    GITHUB_APP_PRIVATE_KEY_PATH,
    GITHUB_TOKEN,
)
from .errors import GraphQueryFailure, RemoteFetchError
from .repo import PullRequestRef

logger = logging.getLogger(__name__)


@dataclass
class SourcePage:
    """One page of a paginated REST listing."""

    items: list[dict]
    has_next: bool


def has_next_page(response: httpx.Response) -> bool:
    """Check the Link header for a rel="next" entry."""
    return 'rel="next"' in response.headers.get("link", "")


def retry_after_seconds(value: str | None, default: int = 60) -> int:
    """Parse a Retry-After header given as delta-seconds or an HTTP-date."""
    if value is None:
        return default
    try:
        return max(int(value), 0)
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return default
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    return max(int((when - datetime.now(UTC)).total_seconds()), 0)


class GitHubAppAuth:
    """GitHub App authentication manager with automatic token refresh."""

    def __init__(self, app_id: str, private_key_path: str, installation_id: str):
        self.app_id = app_id
        self.installation_id = installation_id

        with open(private_key_path) as f:
            self.private_key = f.read()

        self._token: str | None = None
        self._token_expires_at: datetime | None = None
        self._refresh_lock: trio.Lock | None = None  # Lazy init, needs a running trio loop

    def _generate_jwt(self) -> str:
        """Generate a JWT for GitHub App authentication."""
        now = datetime.now(UTC)
        payload = {
            "iat": int(now.timestamp()) - 60,  # Issued 60s ago (clock skew)
            "exp": int((now + timedelta(minutes=10)).timestamp()),
            "iss": self.app_id,
        }
        return jwt.encode(payload, self.private_key, algorithm="RS256")

    async def _fetch_installation_token(self) -> tuple[str, datetime]:
        """Exchange JWT for an installation access token."""
        jwt_token = self._generate_jwt()

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{GitHubClient.BASE_URL}/app/installations/{self.installation_id}/access_tokens",
                    headers={
                        "Authorization": f"Bearer {jwt_token}",
                        "Accept": "application/vnd.github+json",
                        "X-GitHub-Api-Version": "2022-11-28",
                    },
                    timeout=30.0,
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise RemoteFetchError(f"Installation token exchange failed: {e}") from e

        try:
            data = response.json()
            expires_at = datetime.fromisoformat(data["expires_at"].replace("Z", "+00:00"))
            return data["token"], expires_at
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise RemoteFetchError(f"Unexpected installation token response: {e}") from e

    def _token_valid(self) -> bool:
        return (
            self._token is not None
            and self._token_expires_at is not None
            and self._token_expires_at > datetime.now(UTC) + timedelta(minutes=5)
        )

    async def get_token(self) -> str:
        """Get a valid installation token, refreshing if needed.

        Uses a lock to prevent multiple concurrent refresh attempts.
        """
        if self._refresh_lock is None:
            self._refresh_lock = trio.Lock()

        if self._token_valid():
            return self._token  # type: ignore[return-value]

        async with self._refresh_lock:
            # Another task may have refreshed while we waited
            if not self._token_valid():
                self._token, self._token_expires_at = await self._fetch_installation_token()
            return self._token  # type: ignore[return-value]


class GitHubClient:
    """Async GitHub API client with automatic rate limit handling.

    Supports both PAT and GitHub App authentication.
    """

    BASE_URL = "https://api.github.com"

    def __init__(
        self,
        token: str | None = None,
        app_auth: GitHubAppAuth | None = None,
    ):
        """Initialize the client.

        Args:
            token: Personal access token (PAT) for authentication
            app_auth: GitHubAppAuth instance for App authentication

        If neither is provided, tries to use environment variables:
        - GITHUB_APP_* vars for App auth (preferred)
        - GITHUB_TOKEN for PAT auth (fallback)
        """
        self.app_auth = app_auth
        self.pat_token = token

        if self.app_auth is None and self.pat_token is None:
            if GITHUB_APP_ID and GITHUB_APP_PRIVATE_KEY_PATH and GITHUB_APP_INSTALLATION_ID:
                self.app_auth = GitHubAppAuth(
                    GITHUB_APP_ID,
                    GITHUB_APP_PRIVATE_KEY_PATH,
                    GITHUB_APP_INSTALLATION_ID,
                )
            elif GITHUB_TOKEN:
                self.pat_token = GITHUB_TOKEN
            else:
                raise ValueError(
                    "GitHub auth required. Set GITHUB_TOKEN or "
                    "GITHUB_APP_ID + GITHUB_APP_PRIVATE_KEY_PATH + GITHUB_APP_INSTALLATION_ID"
                )

        self._auth_type = "app" if self.app_auth else "pat"
        self.client: httpx.AsyncClient | None = None
        self._request_count = 0
        self.rate_limit_remaining = 5000
        self.rate_limit_reset = 0

    async def __aenter__(self):
        self.client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers={
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=30.0,
            http2=True,
        )
        return self

    async def __aexit__(self, *args):
        if self.client:
            await self.client.aclose()

    @property
    def auth_type(self) -> str:
        """Return the authentication type being used."""
        return self._auth_type

    @property
    def request_count(self) -> int:
        return self._request_count

    async def _get_auth_header(self) -> str:
        if self.app_auth:
            return f"Bearer {await self.app_auth.get_token()}"
        return f"Bearer {self.pat_token}"

    def _track_rate_limit(self, response: httpx.Response) -> None:
        remaining = response.headers.get("X-RateLimit-Remaining")
        reset = response.headers.get("X-RateLimit-Reset")
        if remaining is not None:
            self.rate_limit_remaining = int(remaining)
        if reset is not None:
            self.rate_limit_reset = int(reset)

    async def _handle_rate_limit(self, response: httpx.Response) -> bool:
        """Handle rate limiting. Returns True if request should be retried."""
        if response.status_code == 403:
            remaining = int(response.headers.get("X-RateLimit-Remaining", 1))
            if remaining == 0:
                reset_time = int(response.headers.get("X-RateLimit-Reset", 0))
                wait_seconds = max(reset_time - time.time(), 60)
                logger.warning(f"Rate limited (primary). Waiting {wait_seconds:.0f}s until reset...")
                await trio.sleep(wait_seconds + 1)
                return True

            if "Retry-After" in response.headers:
                retry_after = retry_after_seconds(response.headers["Retry-After"])
                logger.warning(f"Rate limited (secondary). Waiting {retry_after}s...")
                await trio.sleep(retry_after)
                return True

        if response.status_code == 429:
            retry_after = retry_after_seconds(response.headers.get("Retry-After"))
            logger.warning(f"Rate limited (secondary). Waiting {retry_after}s...")
            await trio.sleep(retry_after)
            return True

        return False

    async def _request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        json: dict | None = None,
        max_retries: int = 3,
    ) -> httpx.Response:
        """Make request with automatic rate limit handling and token refresh.

        Raises RemoteFetchError on HTTP or transport failure.
        """
        if not self.client:
            raise RuntimeError("Client not initialized. Use async context manager.")

        headers = {"Authorization": await self._get_auth_header()}

        for attempt in range(max_retries):
            try:
                response = await self.client.request(method, path, params=params, json=json, headers=headers)
            except httpx.TransportError as e:
                raise RemoteFetchError(f"{method} {path} failed: {e}") from e
            self._request_count += 1
            self._track_rate_limit(response)

            if await self._handle_rate_limit(response):
                continue

            if response.status_code >= 500:
                wait = 2**attempt
                logger.warning(f"Server error {response.status_code}. Retrying in {wait}s...")
                await trio.sleep(wait)
                continue

            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise RemoteFetchError(
                    f"{method} {path} returned {response.status_code}: {response.text[:200]}",
                    status_code=response.status_code,
                ) from e
            return response

        raise RemoteFetchError(f"Max retries exceeded for {path}")

    async def get_page(self, path: str, page: int, per_page: int) -> SourcePage:
        """GET one page of a paginated listing."""
        response = await self._request("GET", path, params={"page": page, "per_page": per_page})
        try:
            items = response.json()
        except ValueError as e:
            raise RemoteFetchError(f"Response from {path} is not JSON: {e}") from e
        if not isinstance(items, list):
            raise RemoteFetchError(f"Expected a list from {path}, got {type(items).__name__}")
        return SourcePage(items=items, has_next=has_next_page(response))

    async def list_review_comments(self, pr: PullRequestRef, page: int, per_page: int) -> SourcePage:
        """Get one page of inline code review comments."""
        path = f"/repos/{pr.owner}/{pr.repo}/pulls/{pr.number}/comments"
        return await self.get_page(path, page, per_page)

    async def list_issue_comments(self, pr: PullRequestRef, page: int, per_page: int) -> SourcePage:
        """Get one page of PR-level comments (issue comments)."""
        path = f"/repos/{pr.owner}/{pr.repo}/issues/{pr.number}/comments"
        return await self.get_page(path, page, per_page)

    async def list_reviews(self, pr: PullRequestRef, page: int, per_page: int) -> SourcePage:
        """Get one page of reviews."""
        path = f"/repos/{pr.owner}/{pr.repo}/pulls/{pr.number}/reviews"
        return await self.get_page(path, page, per_page)

    async def graphql(self, query: str, variables: dict[str, Any]) -> dict:
        """Run a GraphQL query and return its ``data`` payload.

        Raises GraphQueryFailure on transport errors or a GraphQL ``errors`` list.
        """
        try:
            response = await self._request("POST", "/graphql", json={"query": query, "variables": variables})
        except RemoteFetchError as e:
            raise GraphQueryFailure(str(e)) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise GraphQueryFailure(f"GraphQL response is not JSON: {e}") from e

        if not isinstance(payload, dict):
            raise GraphQueryFailure("GraphQL response is not an object")
        if payload.get("errors"):
            messages = "; ".join(err.get("message", "unknown error") for err in payload["errors"])
            raise GraphQueryFailure(f"GraphQL errors: {messages}")
        return payload.get("data") or {}
