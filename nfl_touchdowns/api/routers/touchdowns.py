"""
NFL touchdown API endpoints.

All routes live under /api/nfl and answer with the {success, data} envelope.

- GET  /touchdowns                stored week summary (live fallback when not stored)
- POST /touchdowns/sync           fetch a week from SportsRadar and store it
- GET  /weeks                     sync status of every stored week
- GET  /touchdown-probabilities   smoothed weekly scoring probability per player
- GET  /first-touchdown-scorers   first scorer of each team in each game
- GET  /first-td-team-stats       how each team's first touchdowns are distributed
- GET  /first-td-predictions      most likely first scorer of each team

Common query parameters: season (defaults to the current NFL season),
seasonType (PRE, REG or POST; default REG) and week (1-based, at most 3/18/5
for PRE/REG/POST; a week outside that range answers 422). Where week is
optional it defaults to the latest synced week that has data.

Week-scoped predictions:
/first-td-predictions and /touchdown-probabilities?week=N only list teams
playing in week N, so teams on a bye are left out. The teams come from the
SportsRadar week schedule (cached) when a key is configured, otherwise from
the stored week.

Live fallback:
When a week has never been synced and a SportsRadar key is configured, GET
/touchdowns fetches the week from the provider without storing it. The
result is kept in the application's TTL cache so repeated page loads do not
hit the provider again.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import contextmanager
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from ...cache import TTLCache
from ...config.settings import settings
from ...data.collection.sportradar_client import SportradarClient
from ...data.collection.touchdown_collector import TouchdownCollector
from ...data.processing.probability import (
    estimate_touchdown_probabilities,
    predict_first_touchdown_scorers,
    summarize_first_touchdown_teams,
)
from ...data.processing.records import (
    DataSource,
    SeasonType,
    WeekTouchdowns,
    current_nfl_season,
)
from ...database import queries
from ...database.connection import get_db
from ...exceptions import MissingApiKeyError
from ..schemas import (
    ApiResponse,
    AvailableWeekResponse,
    FirstTouchdownPredictionResponse,
    FirstTouchdownScorerResponse,
    PlayerProbabilityResponse,
    PlayerTouchdownsResponse,
    SyncResponse,
    TeamFirstTouchdownStatsResponse,
    TeamInfoResponse,
    TeamTouchdownsResponse,
    WeekTouchdownsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ========== DEPENDENCIES ==========


def get_cache(request: Request) -> TTLCache:
    """The application's response cache (created in api/main.py)."""
    return request.app.state.cache


@contextmanager
def _request_transaction(db: Session):
    """Commit/rollback wrapper around the request's session."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


async def get_collector(
    db: Session = Depends(get_db),
) -> AsyncGenerator[TouchdownCollector | None, None]:
    """A TouchdownCollector writing through the request session.

    Yields None when no SportsRadar API key is configured.
    """
    try:
        client = SportradarClient()
    except MissingApiKeyError:
        yield None
        return

    try:
        yield TouchdownCollector(client, session_factory=lambda: _request_transaction(db))
    finally:
        await client.aclose()


def season_param(season: int | None = Query(None, ge=1920, description="Season year")) -> int:
    return season or current_nfl_season()


def season_type_param(
    season_type: SeasonType = Query(
        SeasonType.REG, alias="seasonType", description="PRE, REG or POST"
    ),
) -> SeasonType:
    return season_type


# ========== WEEK HELPERS ==========


def _check_week(season_type: SeasonType, week: int) -> int:
    if not season_type.is_valid_week(week):
        raise HTTPException(
            status_code=422,
            detail=f"week: {season_type.value} weeks run from 1 to {season_type.max_week}",
        )
    return week


def _resolve_week(db: Session, season: int, season_type: SeasonType, week: int | None) -> int:
    """The requested week, or the latest synced week with data (1 before any sync)."""
    if week is None:
        week = queries.get_latest_week(db, season, season_type) or 1
    return _check_week(season_type, week)


async def _teams_playing(
    db: Session,
    cache: TTLCache,
    collector: TouchdownCollector | None,
    season: int,
    season_type: SeasonType,
    week: int,
) -> set[str]:
    """Teams scheduled in a week: provider schedule first, stored week otherwise."""
    if collector is None:
        return queries.get_week_teams(db, season, season_type, week)

    cache_key = ("teams", season, season_type.value, week)
    teams = cache.get(cache_key)
    if teams is None:
        teams = await collector.fetch_week_teams(season, season_type, week)
        cache.set(cache_key, teams)
    return teams


# ========== CONVERSIONS ==========


def _week_response(result: WeekTouchdowns) -> WeekTouchdownsResponse:
    teams = [
        TeamTouchdownsResponse(
            team=TeamInfoResponse(**asdict(team.team)),
            total_touchdowns=team.total_touchdowns,
            players=[
                PlayerTouchdownsResponse(
                    player_id=player.player_id,
                    player_name=player.player_name,
                    position=player.position,
                    team=player.team,
                    rushing=player.rushing,
                    receiving=player.receiving,
                    passing=player.passing,
                    return_touchdowns=player.returns,
                    defensive=player.defensive,
                    total=player.total,
                )
                for player in team.players
            ],
        )
        for team in result.teams
    ]
    return WeekTouchdownsResponse(
        season=result.season,
        season_type=result.season_type.value,
        week=result.week,
        updated_at=result.updated_at,
        source=result.source.value,
        teams=teams,
        first_touchdown_scorers=[
            FirstTouchdownScorerResponse(**asdict(scorer), week=result.week)
            for scorer in result.first_touchdown_scorers
        ],
        games_scheduled=result.games_scheduled,
        games_failed=result.games_failed,
    )


# ========== WEEK TOUCHDOWN ENDPOINTS ==========


@router.get("/touchdowns", response_model=ApiResponse[WeekTouchdownsResponse])
async def get_week_touchdowns(
    season: int = Depends(season_param),
    season_type: SeasonType = Depends(season_type_param),
    week: int | None = Query(None, ge=1, description="Week (default: latest synced week)"),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
    collector: TouchdownCollector | None = Depends(get_collector),
):
    """
    Touchdown summary of one week.

    Order of lookup:
    1. the database (a synced week)
    2. the response cache (a recent live fetch)
    3. a live SportsRadar fetch, if a key is configured and live fallback is on
    4. an empty summary (teams: [])
    """
    week = _resolve_week(db, season, season_type, week)
    stored = queries.load_week_touchdowns(db, season, season_type, week)
    if stored is not None:
        return ApiResponse(data=_week_response(stored))

    cache_key = ("touchdowns", season, season_type.value, week)
    cached = cache.get(cache_key)
    if cached is not None:
        return ApiResponse(data=_week_response(cached))

    if collector is not None and settings.enable_live_fallback:
        logger.info(f"No stored data for {season} {season_type.value} week {week}, fetching live")
        result = await collector.fetch_week(season, season_type, week)
        cache.set(cache_key, result)
        return ApiResponse(data=_week_response(result))

    empty = WeekTouchdowns(
        season=season,
        season_type=season_type,
        week=week,
        updated_at=None,
        source=DataSource.DATABASE,
    )
    return ApiResponse(data=_week_response(empty))


@router.post("/touchdowns/sync", response_model=ApiResponse[SyncResponse])
async def sync_week_touchdowns(
    season: int = Depends(season_param),
    season_type: SeasonType = Depends(season_type_param),
    week: int = Query(..., ge=1, description="Week within the season type"),
    cache: TTLCache = Depends(get_cache),
    collector: TouchdownCollector | None = Depends(get_collector),
):
    """
    Fetch one week from SportsRadar and upsert it.

    Re-running the sync for the same week is safe: rows are updated in place.

    Raises:
        HTTPException: 422 for a week outside the season type, 503 if no
            SportsRadar API key is configured
    """
    _check_week(season_type, week)
    if collector is None:
        raise HTTPException(status_code=503, detail="SportsRadar API key is not configured")

    result = await collector.sync_week(season, season_type, week)
    cache.evict(("touchdowns", season, season_type.value, week))

    return ApiResponse(
        data=SyncResponse(
            season=season,
            season_type=season_type.value,
            week=week,
            has_data=result.has_data,
            teams_synced=len(result.teams),
            players_synced=sum(len(team.players) for team in result.teams),
            first_touchdown_scorers=len(result.first_touchdown_scorers),
            total_touchdowns=result.total_touchdowns,
            games_scheduled=result.games_scheduled,
            games_failed=result.games_failed,
        )
    )


@router.get("/weeks", response_model=ApiResponse[list[AvailableWeekResponse]])
async def get_available_weeks(
    season: int = Depends(season_param),
    season_type: SeasonType = Depends(season_type_param),
    db: Session = Depends(get_db),
):
    """Sync status of every stored week of a season type."""
    weeks = queries.list_weeks(db, season, season_type)
    return ApiResponse(
        data=[
            AvailableWeekResponse(week=week.week, has_data=week.has_data, synced_at=week.synced_at)
            for week in weeks
        ]
    )


# ========== PROBABILITY ENDPOINTS ==========


@router.get(
    "/touchdown-probabilities", response_model=ApiResponse[list[PlayerProbabilityResponse]]
)
async def get_touchdown_probabilities(
    season: int = Depends(season_param),
    season_type: SeasonType = Depends(season_type_param),
    week: int | None = Query(None, ge=1, description="Only teams playing this week"),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
    collector: TouchdownCollector | None = Depends(get_collector),
):
    """
    Weekly touchdown probability of every player who has scored.

    probability = (weeks with a touchdown + 2) / (team games + 5) * 100

    Without week the whole season is listed; with week only players of teams
    playing that week.
    """
    probabilities = estimate_touchdown_probabilities(
        queries.get_player_week_rows(db, season, season_type),
        queries.get_team_games(db, season, season_type),
    )
    if week is not None:
        _check_week(season_type, week)
        teams = await _teams_playing(db, cache, collector, season, season_type, week)
        probabilities = [probability for probability in probabilities if probability.team in teams]
    return ApiResponse(
        data=[PlayerProbabilityResponse(**asdict(probability)) for probability in probabilities]
    )


@router.get(
    "/first-touchdown-scorers", response_model=ApiResponse[list[FirstTouchdownScorerResponse]]
)
async def get_first_touchdown_scorers(
    season: int = Depends(season_param),
    season_type: SeasonType = Depends(season_type_param),
    week: int | None = Query(None, ge=1, description="Limit to one week"),
    db: Session = Depends(get_db),
):
    """First touchdown scorers of a week, or of the whole season when week is omitted."""
    if week is not None:
        _check_week(season_type, week)
    records = queries.get_first_touchdown_records(db, season, season_type, week)
    return ApiResponse(
        data=[
            FirstTouchdownScorerResponse(
                game_id=record.game_id,
                team=record.team_abbreviation,
                player_id=record.player_id,
                player_name=record.player_name,
                position=record.position,
                touchdown_type=record.touchdown_type,
                quarter=record.quarter or 0,
                clock=record.clock or "",
                score_at_td=record.score_at_td or "",
                week=record.week,
            )
            for record in records
        ]
    )


@router.get(
    "/first-td-team-stats", response_model=ApiResponse[list[TeamFirstTouchdownStatsResponse]]
)
async def get_first_td_team_stats(
    season: int = Depends(season_param),
    season_type: SeasonType = Depends(season_type_param),
    db: Session = Depends(get_db),
):
    """Per team: first touchdowns recorded and the top three first scorers."""
    stats = summarize_first_touchdown_teams(
        queries.get_first_scorer_rows(db, season, season_type),
        queries.get_team_display_names(db, season, season_type),
    )
    return ApiResponse(data=[TeamFirstTouchdownStatsResponse(**asdict(team)) for team in stats])


@router.get(
    "/first-td-predictions", response_model=ApiResponse[list[FirstTouchdownPredictionResponse]]
)
async def get_first_td_predictions(
    season: int = Depends(season_param),
    season_type: SeasonType = Depends(season_type_param),
    week: int | None = Query(None, ge=1, description="Week (default: latest synced week)"),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
    collector: TouchdownCollector | None = Depends(get_collector),
):
    """
    Most likely first touchdown scorer of each team playing in a week.

    score = 0.6 * first-scorer frequency + 0.4 * weekly touchdown probability

    Both figures use every stored week of the season. Teams on a bye in the
    requested week are left out.
    """
    week = _resolve_week(db, season, season_type, week)
    teams = await _teams_playing(db, cache, collector, season, season_type, week)
    predictions = predict_first_touchdown_scorers(
        queries.get_first_scorer_rows(db, season, season_type),
        queries.get_player_week_rows(db, season, season_type),
        queries.get_team_games(db, season, season_type),
        queries.get_team_display_names(db, season, season_type),
        teams_playing=teams,
    )
    return ApiResponse(
        data=[FirstTouchdownPredictionResponse(**asdict(prediction)) for prediction in predictions]
    )
