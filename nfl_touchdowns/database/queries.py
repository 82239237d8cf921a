"""Read queries over the stored touchdown tables.

These feed the REST endpoints and the probability estimator. Only weeks whose
status row says has_data count towards season figures.
"""

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..data.processing.probability import FirstScorerRow, PlayerWeekRow
from ..data.processing.records import (
    DataSource,
    FirstTouchdownScorer,
    PlayerTouchdowns,
    SeasonType,
    TeamInfo,
    TeamTouchdowns,
    WeekTouchdowns,
)
from .models import FirstTouchdownScorerRecord, NflWeek, PlayerTouchdownRecord, TeamTouchdownRecord


def get_week_status(
    session: Session, season: int, season_type: SeasonType, week: int
) -> NflWeek | None:
    return (
        session.query(NflWeek)
        .filter_by(season=season, season_type=season_type.value, week=week)
        .first()
    )


def _player_from_record(record: PlayerTouchdownRecord) -> PlayerTouchdowns:
    return PlayerTouchdowns(
        player_id=record.player_id,
        player_name=record.player_name,
        position=record.position,
        team=record.team_abbreviation,
        rushing=record.rushing_touchdowns,
        receiving=record.receiving_touchdowns,
        passing=record.passing_touchdowns,
        returns=record.return_touchdowns,
        defensive=record.defensive_touchdowns,
    )


def _scorer_from_record(record: FirstTouchdownScorerRecord) -> FirstTouchdownScorer:
    return FirstTouchdownScorer(
        game_id=record.game_id,
        team=record.team_abbreviation,
        player_id=record.player_id,
        player_name=record.player_name,
        position=record.position,
        touchdown_type=record.touchdown_type,
        quarter=record.quarter or 0,
        clock=record.clock or "",
        score_at_td=record.score_at_td or "",
    )


def load_week_touchdowns(
    session: Session, season: int, season_type: SeasonType, week: int
) -> WeekTouchdowns | None:
    """Rebuild a synced week from the database, or None if it was never synced."""
    status = get_week_status(session, season, season_type, week)
    if status is None:
        return None

    result = WeekTouchdowns(
        season=season,
        season_type=season_type,
        week=week,
        updated_at=status.synced_at or status.updated_at,
        source=DataSource.DATABASE,
        games_scheduled=status.games_scheduled or 0,
        games_failed=status.games_failed or 0,
    )
    if not status.has_data:
        return result

    team_records = (
        session.query(TeamTouchdownRecord)
        .filter_by(week_id=status.id)
        .order_by(TeamTouchdownRecord.total_touchdowns.desc(), TeamTouchdownRecord.team_abbreviation)
        .all()
    )
    for team_record in team_records:
        player_records = (
            session.query(PlayerTouchdownRecord).filter_by(team_record_id=team_record.id).all()
        )
        players = sorted(
            (_player_from_record(record) for record in player_records),
            key=lambda player: (-player.total, player.player_name),
        )
        result.teams.append(
            TeamTouchdowns(
                team=TeamInfo(
                    abbreviation=team_record.team_abbreviation,
                    display_name=team_record.team_display_name,
                    location=team_record.team_location or "",
                    mascot=team_record.team_mascot or "",
                ),
                total_touchdowns=team_record.total_touchdowns,
                players=players,
            )
        )

    result.first_touchdown_scorers = [
        _scorer_from_record(record)
        for record in session.query(FirstTouchdownScorerRecord)
        .filter_by(week_id=status.id)
        .order_by(FirstTouchdownScorerRecord.game_id, FirstTouchdownScorerRecord.team_abbreviation)
    ]
    return result


def list_weeks(session: Session, season: int, season_type: SeasonType) -> list[NflWeek]:
    """All week status rows of a season type, in week order."""
    return (
        session.query(NflWeek)
        .filter_by(season=season, season_type=season_type.value)
        .order_by(NflWeek.week)
        .all()
    )


def get_latest_week(session: Session, season: int, season_type: SeasonType) -> int | None:
    """Highest synced week that has data, or None before the first sync."""
    return (
        session.query(func.max(NflWeek.week))
        .filter(
            NflWeek.season == season,
            NflWeek.season_type == season_type.value,
            NflWeek.has_data.is_(True),
        )
        .scalar()
    )


def get_week_teams(session: Session, season: int, season_type: SeasonType, week: int) -> set[str]:
    """Teams with a stored record in one week."""
    rows = (
        session.query(TeamTouchdownRecord.team_abbreviation)
        .filter_by(season=season, season_type=season_type.value, week=week)
        .all()
    )
    return {abbreviation for (abbreviation,) in rows}


def get_player_week_rows(
    session: Session, season: int, season_type: SeasonType
) -> list[PlayerWeekRow]:
    records = (
        session.query(PlayerTouchdownRecord)
        .join(NflWeek, PlayerTouchdownRecord.week_id == NflWeek.id)
        .filter(
            PlayerTouchdownRecord.season == season,
            PlayerTouchdownRecord.season_type == season_type.value,
            NflWeek.has_data.is_(True),
        )
        .order_by(PlayerTouchdownRecord.week, PlayerTouchdownRecord.id)
        .all()
    )
    return [
        PlayerWeekRow(
            player_id=record.player_id,
            player_name=record.player_name,
            position=record.position,
            team=record.team_abbreviation,
            week=record.week,
            total_touchdowns=record.total_touchdowns,
        )
        for record in records
    ]


def get_team_games(session: Session, season: int, season_type: SeasonType) -> dict[str, int]:
    """Team abbreviation -> number of synced weeks in which the team has a record."""
    rows = (
        session.query(
            TeamTouchdownRecord.team_abbreviation,
            func.count(func.distinct(TeamTouchdownRecord.week)),
        )
        .join(NflWeek, TeamTouchdownRecord.week_id == NflWeek.id)
        .filter(
            TeamTouchdownRecord.season == season,
            TeamTouchdownRecord.season_type == season_type.value,
            NflWeek.has_data.is_(True),
        )
        .group_by(TeamTouchdownRecord.team_abbreviation)
        .all()
    )
    return {abbreviation: games for abbreviation, games in rows}


def get_team_display_names(session: Session, season: int, season_type: SeasonType) -> dict[str, str]:
    rows = (
        session.query(TeamTouchdownRecord.team_abbreviation, TeamTouchdownRecord.team_display_name)
        .filter_by(season=season, season_type=season_type.value)
        .distinct()
        .all()
    )
    return {abbreviation: display_name for abbreviation, display_name in rows}


def get_first_touchdown_records(
    session: Session, season: int, season_type: SeasonType, week: int | None = None
) -> list[FirstTouchdownScorerRecord]:
    query = session.query(FirstTouchdownScorerRecord).filter_by(
        season=season, season_type=season_type.value
    )
    if week is not None:
        query = query.filter_by(week=week)
    return query.order_by(
        FirstTouchdownScorerRecord.week,
        FirstTouchdownScorerRecord.game_id,
        FirstTouchdownScorerRecord.team_abbreviation,
    ).all()


def get_first_scorer_rows(
    session: Session, season: int, season_type: SeasonType
) -> list[FirstScorerRow]:
    return [
        FirstScorerRow(
            team=record.team_abbreviation,
            player_id=record.player_id,
            player_name=record.player_name,
            position=record.position,
            touchdown_type=record.touchdown_type,
            week=record.week,
        )
        for record in get_first_touchdown_records(session, season, season_type)
    ]
