"""SportsRadar NFL API client.

Thin async wrapper around the three SportsRadar NFL v7 endpoints the touchdown
pipeline needs:

- GET /games/{season}/{PRE|REG|PST}/{week}/schedule.json  (week schedule)
- GET /games/{game_id}/statistics.json                     (per-game player stats)
- GET /games/{game_id}/pbp.json                            (per-game play-by-play)

The client returns raw JSON. Normalization happens in
data/processing/payloads.py, never here.

Rate Limiting:

Trial keys allow roughly one request per second and answer HTTP 429 when a
burst arrives. Callers wait initial_request_delay once before each batch of
requests (pause_before_batch), and a 429 is retried up to max_retries times
with exponential backoff:

    delay(n) = min(retry_base_delay * 2 ** (n - 1), retry_max_delay)

With the defaults that is 2s, 4s, 8s. Any other non-2xx status fails the
request immediately.

For beginners:

httpx.AsyncClient: the asynchronous flavour of the httpx client. Calls return
coroutines, so many requests can be in flight at once inside asyncio.gather().

Transport injection: tests pass an httpx.MockTransport so no network traffic
happens; the sleep function is injectable for the same reason.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from httpx import HTTPError, TimeoutException

from ...config.settings import settings
from ...exceptions import MissingApiKeyError, ProviderRequestError, RateLimitExceededError
from ..processing.records import SeasonType

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429


class SportradarClient:
    """Async client for the SportsRadar NFL API.

    Use as an async context manager so the underlying connection pool is
    closed:

        async with SportradarClient() as client:
            schedule = await client.get_week_schedule(2024, SeasonType.REG, 1)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        initial_delay: float | None = None,
        max_retries: int | None = None,
        retry_base_delay: float | None = None,
        retry_max_delay: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize the client, falling back to settings for every option.

        Raises:
            MissingApiKeyError: if no API key is given or configured
        """
        self.api_key = api_key or settings.sportradar_api_key
        if not self.api_key:
            raise MissingApiKeyError(
                "No SportsRadar API key found. Set the SPORTRADAR_API_KEY environment variable"
            )

        self.base_url = (base_url or settings.sportradar_base_url).rstrip("/")
        self.initial_delay = (
            settings.initial_request_delay if initial_delay is None else initial_delay
        )
        self.max_retries = settings.max_retries if max_retries is None else max_retries
        self.retry_base_delay = (
            settings.retry_base_delay if retry_base_delay is None else retry_base_delay
        )
        self.retry_max_delay = (
            settings.retry_max_delay if retry_max_delay is None else retry_max_delay
        )
        self._sleep = sleep

        self.client = httpx.AsyncClient(
            timeout=timeout or settings.request_timeout,
            headers={"Accept": "application/json", "User-Agent": "NFL-Touchdowns/0.1"},
            transport=transport,
        )

        # Requests actually sent, retries included
        self.requests_made = 0

    async def __aenter__(self) -> "SportradarClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def pause_before_batch(self) -> None:
        """Wait initial_request_delay before a batch of requests starts."""
        if self.initial_delay:
            await self._sleep(self.initial_delay)

    def backoff_delay(self, retry: int) -> float:
        """Delay before retry number `retry` (1-based)."""
        return min(self.retry_base_delay * 2 ** (retry - 1), self.retry_max_delay)

    async def _make_api_request(self, endpoint: str) -> Any:
        """GET an endpoint and return its decoded JSON body.

        Raises:
            RateLimitExceededError: 429 on the initial attempt and every retry
            ProviderRequestError: any other non-2xx status or a transport error
        """
        url = f"{self.base_url}{endpoint}"
        params = {"api_key": self.api_key}

        retry = 0
        while True:
            try:
                logger.debug(f"SportsRadar request {endpoint} (attempt {retry + 1})")
                response = await self.client.get(url, params=params)
                self.requests_made += 1
            except TimeoutException as e:
                raise ProviderRequestError(endpoint, message="request timed out") from e
            except HTTPError as e:
                raise ProviderRequestError(endpoint, message=str(e)) from e

            if response.status_code == RATE_LIMIT_STATUS:
                if retry >= self.max_retries:
                    logger.error(f"Rate limit persisted for {endpoint} after {retry} retries")
                    raise RateLimitExceededError(endpoint, RATE_LIMIT_STATUS)
                retry += 1
                delay = self.backoff_delay(retry)
                logger.warning(f"Rate limited on {endpoint}, retrying in {delay:.1f}s")
                await self._sleep(delay)
                continue

            if not response.is_success:
                raise ProviderRequestError(endpoint, response.status_code, response.text[:200] or None)

            try:
                return response.json()
            except ValueError as e:
                raise ProviderRequestError(
                    endpoint, response.status_code, "response was not valid JSON"
                ) from e

    async def get_week_schedule(self, season: int, season_type: SeasonType, week: int) -> Any:
        return await self._make_api_request(
            f"/games/{season}/{season_type.provider_code}/{week}/schedule.json"
        )

    async def get_game_statistics(self, game_id: str) -> Any:
        return await self._make_api_request(f"/games/{game_id}/statistics.json")

    async def get_play_by_play(self, game_id: str) -> Any:
        return await self._make_api_request(f"/games/{game_id}/pbp.json")
