"""Tests for week collection, persistence and reloading."""

import asyncio

import httpx
import pytest
from factories import FakeProvider, scheduled_game, week_schedule

from nfl_touchdowns.data.collection.sportradar_client import SportradarClient
from nfl_touchdowns.data.collection.touchdown_collector import TouchdownCollector
from nfl_touchdowns.data.processing.records import DataSource, SeasonType
from nfl_touchdowns.database.models import (
    FirstTouchdownScorerRecord,
    NflWeek,
    PlayerTouchdownRecord,
    TeamTouchdownRecord,
)
from nfl_touchdowns.database.queries import get_team_games, list_weeks, load_week_touchdowns


def run_collector(provider, session_context, sleep, action, initial_delay=0):
    async def run():
        client = SportradarClient(
            api_key="test-key",
            base_url="https://sportradar.test",
            initial_delay=initial_delay,
            transport=httpx.MockTransport(provider),
            sleep=sleep,
        )
        async with client:
            collector = TouchdownCollector(
                client,
                session_factory=session_context,
                stagger_seconds=0.5,
                batch_pause_seconds=1.0,
                week_pause_seconds=3.0,
                prefer_scoreboard_totals=False,
                sleep=sleep,
            )
            return await action(collector)

    return asyncio.run(run())


# ========== FETCH ==========


def test_fetch_week_aggregates_all_games(session_context, no_sleep):
    result = run_collector(
        FakeProvider(),
        session_context,
        no_sleep,
        lambda c: c.fetch_week(2024, SeasonType.REG, 1),
    )

    totals = {team.team.abbreviation: team.total_touchdowns for team in result.teams}
    assert totals == {"KC": 4, "BUF": 2, "DAL": 1, "PHI": 2}
    assert result.has_data
    assert result.games_scheduled == 2
    assert result.games_failed == 0
    assert result.teams[0].team.display_name == "Kansas City Chiefs"

    for team in result.teams:
        assert team.total_touchdowns == sum(player.total for player in team.players)

    buf = next(team for team in result.teams if team.team.abbreviation == "BUF")
    von_miller = next(player for player in buf.players if player.player_id == "d1")
    assert von_miller.defensive == 1

    first = {scorer.team: scorer for scorer in result.first_touchdown_scorers}
    assert set(first) == {"KC", "BUF", "PHI"}
    assert first["KC"].player_name == "Travis Kelce"
    assert first["KC"].touchdown_type == "receiving"
    assert first["BUF"].quarter == 1
    assert first["BUF"].score_at_td == "KC 0 - BUF 7"


def test_requests_are_staggered_and_batched(session_context, no_sleep):
    provider = FakeProvider()
    run_collector(provider, session_context, no_sleep, lambda c: c.fetch_week(2024, SeasonType.REG, 1))

    assert no_sleep.delays == [0.5, 1.0, 0.5]
    assert provider.paths[0] == "/games/2024/REG/1/schedule.json"
    assert all(path.endswith("statistics.json") for path in provider.paths[1:3])
    assert all(path.endswith("pbp.json") for path in provider.paths[3:5])


def test_initial_delay_once_per_batch(session_context, no_sleep):
    provider = FakeProvider()

    run_collector(
        provider,
        session_context,
        no_sleep,
        lambda c: c.fetch_week(2024, SeasonType.REG, 1),
        initial_delay=1.0,
    )

    # schedule, statistics batch (+ stagger), batch pause, play-by-play batch (+ stagger)
    assert no_sleep.delays == [1.0, 1.0, 0.5, 1.0, 1.0, 0.5]
    assert len(provider.paths) == 5


def test_failed_games_are_counted_and_skipped(session_context, no_sleep):
    provider = FakeProvider(failures=["/games/g2/statistics.json"])

    result = run_collector(
        provider, session_context, no_sleep, lambda c: c.fetch_week(2024, SeasonType.REG, 1)
    )

    assert result.games_failed == 1
    assert {team.team.abbreviation for team in result.teams} == {"KC", "BUF"}
    # Play-by-play of the failed game still yields its first scorer
    assert "PHI" in {scorer.team for scorer in result.first_touchdown_scorers}


def test_empty_week(session_context, no_sleep, db_session):
    provider = FakeProvider(schedule=week_schedule())

    result = run_collector(
        provider, session_context, no_sleep, lambda c: c.sync_week(2024, SeasonType.REG, 5)
    )

    assert not result.has_data
    assert result.teams == []
    (week,) = list_weeks(db_session, 2024, SeasonType.REG)
    assert (week.week, week.has_data) == (5, False)


def test_unplayed_week_has_no_data(session_context, no_sleep, db_session):
    provider = FakeProvider(
        statistics={
            "g1": {"id": "g1", "status": "scheduled"},
            "g2": {"id": "g2", "status": "scheduled"},
        },
        play_by_play={"g1": {"id": "g1", "periods": []}, "g2": {"id": "g2", "periods": []}},
    )

    result = run_collector(
        provider, session_context, no_sleep, lambda c: c.sync_week(2024, SeasonType.REG, 2)
    )

    assert not result.has_data
    assert result.teams == []
    assert result.games_scheduled == 2
    assert result.games_failed == 0
    (week,) = list_weeks(db_session, 2024, SeasonType.REG)
    assert (week.week, week.has_data) == (2, False)
    assert db_session.query(TeamTouchdownRecord).count() == 0
    assert get_team_games(db_session, 2024, SeasonType.REG) == {}


def test_out_of_range_week_makes_no_requests(session_context, no_sleep):
    provider = FakeProvider()

    result = run_collector(
        provider, session_context, no_sleep, lambda c: c.fetch_week(2024, SeasonType.PRE, 4)
    )

    assert not result.has_data
    assert provider.paths == []


def test_week_teams_from_schedule(session_context, no_sleep):
    provider = FakeProvider(schedule=week_schedule(scheduled_game("g3", "KC", "DAL")))

    teams = run_collector(
        provider,
        session_context,
        no_sleep,
        lambda c: c.fetch_week_teams(2024, SeasonType.REG, 2),
        initial_delay=1.0,
    )

    assert teams == {"KC", "DAL"}
    assert provider.paths == ["/games/2024/REG/2/schedule.json"]
    assert no_sleep.delays == [1.0]


# ========== PERSISTENCE ==========


def row_counts(session):
    return {
        model.__tablename__: session.query(model).count()
        for model in (NflWeek, TeamTouchdownRecord, PlayerTouchdownRecord, FirstTouchdownScorerRecord)
    }


def test_sync_is_idempotent(session_context, no_sleep, db_session):
    def sync_once():
        return run_collector(
            FakeProvider(), session_context, no_sleep, lambda c: c.sync_week(2024, SeasonType.REG, 1)
        )

    sync_once()
    first_counts = row_counts(db_session)
    first_totals = dict(
        db_session.query(TeamTouchdownRecord.team_abbreviation, TeamTouchdownRecord.total_touchdowns)
    )

    sync_once()
    db_session.expire_all()

    assert row_counts(db_session) == first_counts
    assert first_counts == {
        "nfl_weeks": 1,
        "nfl_team_touchdowns": 4,
        "nfl_player_touchdowns": 8,
        "nfl_first_touchdown_scorers": 3,
    }
    assert (
        dict(
            db_session.query(
                TeamTouchdownRecord.team_abbreviation, TeamTouchdownRecord.total_touchdowns
            )
        )
        == first_totals
    )


def test_stored_week_round_trip(session_context, no_sleep, db_session):
    synced = run_collector(
        FakeProvider(), session_context, no_sleep, lambda c: c.sync_week(2024, SeasonType.REG, 1)
    )

    stored = load_week_touchdowns(db_session, 2024, SeasonType.REG, 1)

    assert stored.source is DataSource.DATABASE
    assert [(t.team.abbreviation, t.total_touchdowns) for t in stored.teams] == [
        (t.team.abbreviation, t.total_touchdowns) for t in synced.teams
    ]
    kc = stored.teams[0]
    assert [(p.player_name, p.total) for p in kc.players] == [
        ("Patrick Mahomes", 2),
        ("Rashee Rice", 1),
        ("Travis Kelce", 1),
        ("Isiah Pacheco", 0),
    ]
    assert len(stored.first_touchdown_scorers) == 3
    assert get_team_games(db_session, 2024, SeasonType.REG) == {"KC": 1, "BUF": 1, "DAL": 1, "PHI": 1}


def test_unsynced_week_loads_as_none(db_session):
    assert load_week_touchdowns(db_session, 2024, SeasonType.REG, 1) is None


def test_sync_weeks_continues_after_failed_week(session_context, no_sleep, db_session):
    provider = FakeProvider(failures=["/games/2024/REG/1/schedule.json"])

    results = run_collector(
        provider,
        session_context,
        no_sleep,
        lambda c: c.sync_weeks(2024, SeasonType.REG, [1, 2]),
    )

    assert results[1] is None
    assert results[2].has_data
    assert 3.0 in no_sleep.delays
    assert [week.week for week in list_weeks(db_session, 2024, SeasonType.REG)] == [2]


@pytest.mark.parametrize("season_type", [SeasonType.PRE, SeasonType.POST])
def test_provider_season_codes(session_context, no_sleep, season_type):
    provider = FakeProvider(schedule=week_schedule())

    run_collector(provider, session_context, no_sleep, lambda c: c.fetch_week(2024, season_type, 1))

    assert provider.paths == [f"/games/2024/{season_type.provider_code}/1/schedule.json"]
