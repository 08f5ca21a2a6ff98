"""
GitHub REST transport: pooled HTTP, rate limiting, retries, typed errors.

Failure kinds:
- GitHubAuthError: 401, the token was rejected
- GitHubRateLimitError: 403/429 caused by rate limiting, carries reset time
  and remaining quota
- GitHubAPIError: any other non-2xx status, carries the status code

5xx responses, timeouts and network errors are retried with exponential
backoff before being raised. Callers in the engine treat every failure as
soft and degrade to a neutral result.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from utils.rate_limiter import AsyncRateLimiter, get_rate_limiter

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
GITHUB_MAX_RETRIES = 3


# =============================================================================
# ERRORS
# =============================================================================

class GitHubTransportError(Exception):
    """Base class for GitHub transport failures"""


class GitHubAuthError(GitHubTransportError):
    """401: invalid or revoked personal access token"""

    def __init__(self, message: str = "Invalid Personal Access Token. Please check your settings."):
        super().__init__(message)
        self.status_code = 401


class GitHubRateLimitError(GitHubTransportError):
    """403/429 caused by the rate limit"""

    def __init__(
        self,
        reset_at: Optional[datetime] = None,
        remaining: Optional[int] = None,
        status_code: int = 403,
    ):
        when = reset_at.strftime("%H:%M:%S UTC") if reset_at else "unknown"
        super().__init__(f"Rate limited. Resets at {when}. Remaining: {remaining}")
        self.reset_at = reset_at
        self.remaining = remaining
        self.status_code = status_code


class GitHubAPIError(GitHubTransportError):
    """Any other non-2xx response"""

    def __init__(self, status_code: int, url: str = ""):
        super().__init__(f"GitHub API error: {status_code}" + (f" ({url})" if url else ""))
        self.status_code = status_code
        self.url = url


def is_transient_error(error: BaseException) -> bool:
    """5xx and network failures are retried; everything else is final."""
    if isinstance(error, GitHubAPIError):
        return 500 <= error.status_code < 600
    return isinstance(error, (httpx.TimeoutException, httpx.NetworkError))


# =============================================================================
# TRANSPORT
# =============================================================================

class GitHubTransport:
    """
    Shared GitHub transport.

    Call start() and shutdown() (or use `async with`) to reuse one client
    across many requests.

    Args:
        token: Personal access token (None = anonymous, 60 req/hr)
        base_url: API root
        timeout_seconds: Per-request timeout
        max_retries: Attempts for transient failures
        backoff_base: Multiplier for exponential backoff (0 disables waiting)
        transport: Optional httpx transport (tests inject httpx.MockTransport)
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = GITHUB_API_BASE,
        timeout_seconds: float = 30.0,
        max_retries: int = GITHUB_MAX_RETRIES,
        backoff_base: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        core_limiter: Optional[AsyncRateLimiter] = None,
        search_limiter: Optional[AsyncRateLimiter] = None,
    ):
        self.token = token or None
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout_seconds)
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self._transport = transport
        authenticated = self.token is not None
        self._core_limiter = core_limiter or get_rate_limiter("github_core", authenticated)
        self._search_limiter = search_limiter or get_rate_limiter("github_search", authenticated)
        self._client: Optional[httpx.AsyncClient] = None
        self._start_lock = asyncio.Lock()

    async def __aenter__(self) -> GitHubTransport:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.shutdown()

    async def start(self) -> None:
        """Initialize the shared HTTP client."""
        if self._client and not self._client.is_closed:
            return

        async with self._start_lock:
            if self._client and not self._client.is_closed:
                return
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._build_headers(),
                timeout=self.timeout,
                transport=self._transport,
            )

    async def shutdown(self) -> None:
        """Close the shared HTTP client."""
        if not self._client:
            return
        await self._client.aclose()
        self._client = None

    async def fetch(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a GitHub API resource and return the parsed JSON.

        Args:
            url: Absolute URL or path relative to the API root
            params: Optional query parameters

        Raises:
            GitHubAuthError, GitHubRateLimitError, GitHubAPIError,
            httpx.TimeoutException, httpx.NetworkError
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.backoff_base, min=0, max=10),
            retry=retry_if_exception(is_transient_error),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._fetch_once(url, params)

    async def _fetch_once(self, url: str, params: Optional[Dict[str, Any]]) -> Any:
        if not self._client or self._client.is_closed:
            await self.start()

        if not self._client:
            raise RuntimeError("GitHubTransport client not initialized")

        limiter = self._search_limiter if "/search/" in url else self._core_limiter
        await limiter.acquire()

        logger.debug(f"GitHub API: GET {url} {params or ''}")
        response = await self._client.get(url, params=params)

        remaining = response.headers.get("X-RateLimit-Remaining")
        if remaining and remaining.isdigit() and int(remaining) < 10:
            logger.warning(f"GitHub rate limit low: {remaining} remaining")

        self._raise_for_status(response)
        return response.json()

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return

        if status == 401:
            raise GitHubAuthError()

        if status in (403, 429) and self._is_rate_limited(response):
            raise GitHubRateLimitError(
                reset_at=self._parse_reset(response),
                remaining=self._parse_int(response.headers.get("X-RateLimit-Remaining")),
                status_code=status,
            )

        raise GitHubAPIError(status, str(response.request.url))

    def _is_rate_limited(self, response: httpx.Response) -> bool:
        if response.status_code == 429:
            return True
        if response.headers.get("X-RateLimit-Remaining") == "0":
            return True
        if response.headers.get("Retry-After"):
            return True
        return "rate limit" in response.text.lower()

    def _parse_reset(self, response: httpx.Response) -> Optional[datetime]:
        reset = self._parse_int(response.headers.get("X-RateLimit-Reset"))
        if reset is None:
            return None
        return datetime.fromtimestamp(reset, tz=timezone.utc)

    @staticmethod
    def _parse_int(value: Optional[str]) -> Optional[int]:
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    def _build_headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "issue-radar",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers
