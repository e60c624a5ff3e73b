"""
JSON-over-HTTP transport shared by the Torii and Starknet clients.

Owns the aiohttp session, maps HTTP failures onto Luna error types and
retries only what is worth retrying (network errors, timeouts, 5xx, 429).
"""

import random
import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from agents.tools.luna_errors import (
    StateUnavailableError,
    UpstreamConnectionError,
    RateLimitError,
)
from tools.rate_limiter import RateLimiter

logger = logging.getLogger('JsonHttp')


class JsonPostClient:
    """Async JSON POST client with rate limiting and retry.

    Subclasses set `error_class` to the non-retryable error they raise for
    4xx answers and bad payloads.
    """

    error_class = StateUnavailableError

    def __init__(self, url: str, limiter: RateLimiter, name: str):
        self.url = (url or "").rstrip('/')
        self.limiter = limiter
        self.name = name
        self._session: Optional[aiohttp.ClientSession] = None

        # Retry settings
        self.max_retries = 3
        self.base_delay = 0.5  # seconds; doubles each retry (0.5, 1, 2)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            logger.info(f"{self.name} session opened for {self.url}")

    async def close(self) -> None:
        """Shut down the aiohttp session cleanly."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
        logger.info(f"{self.name} session closed.")

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    # ------------------------------------------------------------------
    # Internal HTTP layer
    # ------------------------------------------------------------------

    async def _raise_for_status(self, resp: aiohttp.ClientResponse) -> None:
        """Map HTTP status codes to Luna error types."""
        if resp.status < 400:
            return
        body = await resp.text()
        if resp.status == 429:
            raise RateLimitError(f"{self.name} rate limited ({resp.status}): {body}")
        elif resp.status >= 500:
            raise UpstreamConnectionError(f"{self.name} server error ({resp.status}): {body}")
        else:
            raise self.error_class(f"{self.name} HTTP {resp.status}: {body}")

    async def _decode(self, resp: aiohttp.ClientResponse) -> Any:
        """Parse the body as JSON whatever the content type says."""
        try:
            return await resp.json(content_type=None)
        except ValueError as e:
            body = await resp.text()
            raise self.error_class(f"{self.name} returned a non-JSON body: {body[:200]!r}") from e

    async def _raw_post(self, body: Dict[str, Any], url: Optional[str] = None,
                        timeout: int = 15) -> Any:
        """Execute a single POST (no retry) and return the decoded JSON."""
        if not self.url and url is None:
            raise self.error_class(f"{self.name} URL is not configured.")
        await self.connect()

        client_timeout = aiohttp.ClientTimeout(total=timeout)
        try:
            async with self._session.post(url or self.url, json=body,
                                          timeout=client_timeout) as resp:
                await self._raise_for_status(resp)
                return await self._decode(resp)
        except aiohttp.ClientError as e:
            raise UpstreamConnectionError(f"{self.name} network error: {e}") from e
        except asyncio.TimeoutError as e:
            raise UpstreamConnectionError(f"{self.name} timed out after {timeout}s") from e

    async def _raw_get(self, url: str, params: Optional[Dict[str, Any]] = None,
                       timeout: int = 15) -> Any:
        await self.connect()
        client_timeout = aiohttp.ClientTimeout(total=timeout)
        try:
            async with self._session.get(url, params=params, timeout=client_timeout) as resp:
                await self._raise_for_status(resp)
                return await self._decode(resp)
        except aiohttp.ClientError as e:
            raise UpstreamConnectionError(f"{self.name} network error: {e}") from e
        except asyncio.TimeoutError as e:
            raise UpstreamConnectionError(f"{self.name} timed out after {timeout}s") from e

    async def _post(self, body: Dict[str, Any], timeout: int = 15) -> Any:
        """POST with rate limiting and retry on transient failures."""
        await self.limiter.acquire()

        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries):
            try:
                return await self._raw_post(body, timeout=timeout)
            except (UpstreamConnectionError, RateLimitError) as e:
                last_error = e
                if attempt < self.max_retries - 1:
                    delay = self.base_delay * (2 ** attempt) + random.uniform(0, 0.25)
                    logger.warning(
                        f"{self.name} request failed (attempt {attempt + 1}/{self.max_retries}), "
                        f"retrying in {delay:.1f}s: {e}"
                    )
                    await asyncio.sleep(delay)
            # Non-retryable errors propagate immediately

        raise last_error  # type: ignore[misc]
