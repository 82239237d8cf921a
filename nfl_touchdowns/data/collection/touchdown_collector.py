"""Week-level touchdown collection.

TouchdownCollector drives one week sync end to end:

1. Fetch the week schedule (a failure here fails the whole week).
2. Fetch the statistics of every game concurrently, request i starting
   i * request_stagger_seconds after the first. Every batch, the schedule
   included, first waits the client's initial_request_delay once.
3. Pause batch_pause_seconds, then fetch every game's play-by-play the same way.
4. Once every request has settled, fold the results into a WeekAggregator one
   game at a time, in schedule order.
5. Hand the WeekTouchdowns result to persistence (sync_week only).

A failed statistics or play-by-play request is logged and counted in
games_failed; the week carries on with whatever the other games returned.

For beginners:

asyncio.gather(..., return_exceptions=True): runs all coroutines
concurrently and returns their results in order, with exceptions returned as
values instead of cancelling the rest. That is the "all settled" fan-out.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from contextlib import AbstractContextManager
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Session

from ...config.settings import settings
from ...database.connection import get_session_context
from ...database.persistence import save_week_touchdowns
from ...exceptions import TouchdownError
from ..processing.aggregator import WeekAggregator
from ..processing.extractor import extract_first_touchdown_scorers, extract_team_touchdowns
from ..processing.payloads import ScheduleGame, parse_game_statistics, parse_play_by_play, parse_week_schedule
from ..processing.records import SeasonType, WeekTouchdowns
from .sportradar_client import SportradarClient

logger = logging.getLogger(__name__)


class TouchdownCollector:
    """Fetches, aggregates and stores NFL touchdowns one week at a time.

    Args:
        client: SportradarClient to fetch with (the caller closes it)
        session_factory: returns a context manager yielding a Session that
            commits on exit; defaults to get_session_context
        stagger_seconds / batch_pause_seconds / week_pause_seconds: pacing,
            from settings by default
        prefer_scoreboard_totals: passed to every WeekAggregator
        sleep: async sleep function, replaceable in tests
    """

    def __init__(
        self,
        client: SportradarClient,
        session_factory: Callable[[], AbstractContextManager[Session]] = get_session_context,
        *,
        stagger_seconds: float | None = None,
        batch_pause_seconds: float | None = None,
        week_pause_seconds: float | None = None,
        prefer_scoreboard_totals: bool | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.client = client
        self.session_factory = session_factory
        self.stagger_seconds = (
            settings.request_stagger_seconds if stagger_seconds is None else stagger_seconds
        )
        self.batch_pause_seconds = (
            settings.batch_pause_seconds if batch_pause_seconds is None else batch_pause_seconds
        )
        self.week_pause_seconds = (
            settings.week_pause_seconds if week_pause_seconds is None else week_pause_seconds
        )
        self.prefer_scoreboard_totals = (
            settings.prefer_scoreboard_totals
            if prefer_scoreboard_totals is None
            else prefer_scoreboard_totals
        )
        self._sleep = sleep

    async def _staggered(self, index: int, request: Callable[[], Awaitable[Any]]) -> Any:
        if index and self.stagger_seconds:
            await self._sleep(index * self.stagger_seconds)
        return await request()

    async def _fetch_all(
        self, games: list[ScheduleGame], fetch: Callable[[str], Awaitable[Any]]
    ) -> list[Any]:
        """Run fetch(game_id) for every game, staggered; exceptions are returned as values."""
        await self.client.pause_before_batch()
        return await asyncio.gather(
            *(
                self._staggered(index, lambda game_id=game.game_id: fetch(game_id))
                for index, game in enumerate(games)
            ),
            return_exceptions=True,
        )

    async def fetch_week(self, season: int, season_type: SeasonType, week: int) -> WeekTouchdowns:
        """Fetch and aggregate one week without touching the database.

        Raises:
            TouchdownError: if the week schedule cannot be fetched
        """
        result = WeekTouchdowns(
            season=season, season_type=season_type, week=week, updated_at=datetime.now(UTC)
        )

        if not season_type.is_valid_week(week):
            logger.warning(
                f"Week {week} is outside {season_type.value} (1-{season_type.max_week}), nothing to fetch"
            )
            return result

        await self.client.pause_before_batch()
        schedule = parse_week_schedule(
            await self.client.get_week_schedule(season, season_type, week)
        )
        result.games_scheduled = len(schedule)
        if not schedule:
            logger.info(f"No games scheduled for {season} {season_type.value} week {week}")
            return result

        logger.info(f"Fetching {len(schedule)} games for {season} {season_type.value} week {week}")
        statistics = await self._fetch_all(schedule, self.client.get_game_statistics)
        if self.batch_pause_seconds:
            await self._sleep(self.batch_pause_seconds)
        play_by_play = await self._fetch_all(schedule, self.client.get_play_by_play)

        aggregator = WeekAggregator(prefer_scoreboard_totals=self.prefer_scoreboard_totals)
        failed_games: set[str] = set()

        for game, raw_statistics, raw_play_by_play in zip(
            schedule, statistics, play_by_play, strict=True
        ):
            if isinstance(raw_statistics, BaseException):
                logger.warning(f"Statistics unavailable for game {game.game_id}: {raw_statistics}")
                failed_games.add(game.game_id)
            else:
                game_statistics = parse_game_statistics(raw_statistics)
                if game_statistics.is_empty:
                    logger.info(f"Game {game.game_id} has no statistics yet (not played)")
                for stats_team, schedule_team in (
                    (game_statistics.home, game.home),
                    (game_statistics.away, game.away),
                ):
                    team_game = extract_team_touchdowns(stats_team, schedule_team)
                    if team_game is not None:
                        aggregator.add_team_game(team_game)

            if isinstance(raw_play_by_play, BaseException):
                logger.warning(f"Play-by-play unavailable for game {game.game_id}: {raw_play_by_play}")
                failed_games.add(game.game_id)
            else:
                result.first_touchdown_scorers.extend(
                    extract_first_touchdown_scorers(
                        game.game_id,
                        parse_play_by_play(raw_play_by_play),
                        game.home.alias,
                        game.away.alias,
                    )
                )

        result.teams = aggregator.summaries()
        result.games_failed = len(failed_games)
        logger.info(
            f"{season} {season_type.value} week {week}: {result.total_touchdowns} touchdowns "
            f"across {len(result.teams)} teams ({result.games_failed} games failed)"
        )
        return result

    async def fetch_week_teams(self, season: int, season_type: SeasonType, week: int) -> set[str]:
        """Abbreviations of the teams scheduled to play in a week; bye teams are absent."""
        await self.client.pause_before_batch()
        schedule = parse_week_schedule(
            await self.client.get_week_schedule(season, season_type, week)
        )
        return {
            team.alias for game in schedule for team in (game.home, game.away) if team.alias
        }

    async def sync_week(self, season: int, season_type: SeasonType, week: int) -> WeekTouchdowns:
        """Fetch one week and upsert it into the database."""
        result = await self.fetch_week(season, season_type, week)
        with self.session_factory() as session:
            save_week_touchdowns(session, result)
        return result

    async def sync_weeks(
        self, season: int, season_type: SeasonType, weeks: Iterable[int]
    ) -> dict[int, WeekTouchdowns | None]:
        """Sync several weeks in order, pausing between them.

        A week that fails is logged and maps to None; the remaining weeks
        still run.
        """
        results: dict[int, WeekTouchdowns | None] = {}
        for position, week in enumerate(weeks):
            if position and self.week_pause_seconds:
                await self._sleep(self.week_pause_seconds)
            try:
                results[week] = await self.sync_week(season, season_type, week)
            except TouchdownError as e:
                logger.error(f"Sync failed for {season} {season_type.value} week {week}: {e}")
                results[week] = None
        return results
