"""Idempotent persistence of a synced week.

save_week_touchdowns() writes a WeekTouchdowns result as four kinds of rows:
week status, team totals, player breakdowns and first touchdown scorers. Each
row is looked up by its natural key first and updated in place when it
exists, so saving the same week twice leaves the database exactly as saving it
once did.

The caller owns the transaction: nothing in here commits.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from ..data.processing.records import (
    FirstTouchdownScorer,
    PlayerTouchdowns,
    TeamTouchdowns,
    WeekTouchdowns,
)
from .models import FirstTouchdownScorerRecord, NflWeek, PlayerTouchdownRecord, TeamTouchdownRecord

logger = logging.getLogger(__name__)


def _apply(record, values: dict) -> None:
    for key, value in values.items():
        setattr(record, key, value)


def upsert_week_status(session: Session, result: WeekTouchdowns) -> NflWeek:
    week = (
        session.query(NflWeek)
        .filter_by(season=result.season, season_type=result.season_type.value, week=result.week)
        .first()
    )
    values = {
        "has_data": result.has_data,
        "games_scheduled": result.games_scheduled,
        "games_failed": result.games_failed,
        "synced_at": result.updated_at,
    }
    if week is None:
        week = NflWeek(
            season=result.season,
            season_type=result.season_type.value,
            week=result.week,
            **values,
        )
        session.add(week)
    else:
        _apply(week, values)
    session.flush()
    return week


def upsert_team_touchdowns(
    session: Session, week: NflWeek, team: TeamTouchdowns
) -> TeamTouchdownRecord:
    abbreviation = team.team.abbreviation
    record = (
        session.query(TeamTouchdownRecord)
        .filter_by(
            season=week.season,
            season_type=week.season_type,
            week=week.week,
            team_abbreviation=abbreviation,
        )
        .first()
    )
    values = {
        "team_display_name": team.team.display_name,
        "team_location": team.team.location,
        "team_mascot": team.team.mascot,
        "total_touchdowns": team.total_touchdowns,
    }
    if record is None:
        record = TeamTouchdownRecord(
            nfl_week=week,
            season=week.season,
            season_type=week.season_type,
            week=week.week,
            team_abbreviation=abbreviation,
            **values,
        )
        session.add(record)
    else:
        _apply(record, values)
    session.flush()
    return record


def upsert_player_touchdowns(
    session: Session, team_record: TeamTouchdownRecord, player: PlayerTouchdowns
) -> PlayerTouchdownRecord:
    record = (
        session.query(PlayerTouchdownRecord)
        .filter_by(
            season=team_record.season,
            season_type=team_record.season_type,
            week=team_record.week,
            team_abbreviation=team_record.team_abbreviation,
            player_id=player.player_id,
        )
        .first()
    )
    values = {
        "player_name": player.player_name,
        "position": player.position,
        "rushing_touchdowns": player.rushing,
        "receiving_touchdowns": player.receiving,
        "passing_touchdowns": player.passing,
        "return_touchdowns": player.returns,
        "defensive_touchdowns": player.defensive,
        "total_touchdowns": player.total,
        "games_appeared": 1,
    }
    if record is None:
        record = PlayerTouchdownRecord(
            nfl_week=team_record.nfl_week,
            team_record=team_record,
            season=team_record.season,
            season_type=team_record.season_type,
            week=team_record.week,
            team_abbreviation=team_record.team_abbreviation,
            player_id=player.player_id,
            **values,
        )
        session.add(record)
    else:
        _apply(record, values)
    return record


def upsert_first_touchdown_scorer(
    session: Session, week: NflWeek, scorer: FirstTouchdownScorer
) -> FirstTouchdownScorerRecord:
    record = (
        session.query(FirstTouchdownScorerRecord)
        .filter_by(
            season=week.season,
            season_type=week.season_type,
            week=week.week,
            game_id=scorer.game_id,
            team_abbreviation=scorer.team,
        )
        .first()
    )
    values = {
        "player_id": scorer.player_id,
        "player_name": scorer.player_name,
        "position": scorer.position,
        "touchdown_type": scorer.touchdown_type,
        "quarter": scorer.quarter,
        "clock": scorer.clock,
        "score_at_td": scorer.score_at_td,
    }
    if record is None:
        record = FirstTouchdownScorerRecord(
            nfl_week=week,
            season=week.season,
            season_type=week.season_type,
            week=week.week,
            game_id=scorer.game_id,
            team_abbreviation=scorer.team,
            **values,
        )
        session.add(record)
    else:
        _apply(record, values)
    return record


def save_week_touchdowns(session: Session, result: WeekTouchdowns) -> NflWeek:
    """Upsert everything one week sync produced.

    Args:
        session: open session; the caller commits
        result: output of TouchdownCollector.fetch_week()

    Returns:
        The week status row
    """
    if result.updated_at is None:
        result.updated_at = datetime.now(UTC)

    week = upsert_week_status(session, result)

    players_saved = 0
    for team in result.teams:
        team_record = upsert_team_touchdowns(session, week, team)
        for player in team.players:
            upsert_player_touchdowns(session, team_record, player)
            players_saved += 1

    for scorer in result.first_touchdown_scorers:
        upsert_first_touchdown_scorer(session, week, scorer)

    session.flush()
    logger.info(
        f"Saved {result.season} {result.season_type.value} week {result.week}: "
        f"{len(result.teams)} teams, {players_saved} players, "
        f"{len(result.first_touchdown_scorers)} first touchdown scorers"
    )
    return week
