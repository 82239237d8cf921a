"""Tests for per-game touchdown extraction and first scorer detection."""

from factories import period, pbp_event, play_by_play, scoring_stat, stat_player, team_stats

from nfl_touchdowns.data.processing.extractor import (
    build_team_info,
    extract_first_touchdown_scorers,
    extract_team_touchdowns,
    is_touchdown_event,
)
from nfl_touchdowns.data.processing.payloads import (
    PlayByPlayEvent,
    ScheduleTeam,
    parse_play_by_play,
    parse_team_statistics,
)
from nfl_touchdowns.data.processing.records import TouchdownCategory


def extract(raw_team, schedule_team=None):
    return extract_team_touchdowns(parse_team_statistics(raw_team), schedule_team)


# ========== CATEGORY TOUCHDOWNS ==========


def test_single_player_single_category():
    game = extract(team_stats("KC", rushing=[stat_player("p1", "Isiah Pacheco", touchdowns=3)]))

    assert len(game.increments) == 1
    increment = game.increments[0]
    assert increment.category is TouchdownCategory.RUSHING
    assert increment.touchdowns == 3
    assert increment.key.storage_id == "p1"


def test_zero_touchdown_players_are_appearances_only():
    game = extract(
        team_stats(
            "KC",
            rushing=[stat_player("p1", "Isiah Pacheco", touchdowns=0)],
            passing=[stat_player("q1", "Patrick Mahomes", "QB", touchdowns=2)],
        )
    )

    assert [i.player_name for i in game.increments] == ["Patrick Mahomes"]
    assert {a.player_name for a in game.appearances} == {"Isiah Pacheco", "Patrick Mahomes"}


def test_player_in_several_categories_appears_once():
    game = extract(
        team_stats(
            "KC",
            rushing=[stat_player("p1", "Travis Kelce", "TE", touchdowns=0)],
            receiving=[stat_player("p1", "Travis Kelce", "TE", touchdowns=1)],
        )
    )

    assert len(game.appearances) == 1
    assert [i.category for i in game.increments] == [TouchdownCategory.RECEIVING]


def test_return_and_defensive_buckets():
    game = extract(
        team_stats(
            "BUF",
            kick_returns=[stat_player("r1", "Returner", "WR", touchdowns=1)],
            punt_returns=[stat_player("r2", "Punt Returner", "WR", touchdowns=1)],
            int_returns=[stat_player("d1", "Corner", "CB", touchdowns=1)],
            fumbles=[stat_player("d2", "Linebacker", "LB", return_touchdowns=1)],
        )
    )

    buckets = {i.player_name: i.category for i in game.increments}
    assert buckets == {
        "Returner": TouchdownCategory.RETURN,
        "Punt Returner": TouchdownCategory.RETURN,
        "Corner": TouchdownCategory.DEFENSIVE,
        "Linebacker": TouchdownCategory.DEFENSIVE,
    }


def test_players_without_id_are_keyed_by_name_and_category():
    game = extract(
        team_stats(
            "KC",
            rushing=[stat_player(None, "J. Smith", touchdowns=1)],
            kick_returns=[stat_player(None, "J. Smith", "WR", touchdowns=1)],
        )
    )

    keys = {i.key.storage_id for i in game.increments}
    assert keys == {"KC-J. Smith-rushing", "KC-J. Smith-return"}


def test_team_without_alias_is_skipped():
    assert extract_team_touchdowns(None, None) is None
    assert extract({"market": "Nowhere"}) is None


def test_team_without_statistics_is_skipped():
    # A scheduled game that has not been played has no statistics block
    assert extract_team_touchdowns(None, ScheduleTeam(alias="KC")) is None


def test_schedule_alias_fills_missing_statistics_alias():
    stats = parse_team_statistics({"rushing": {"players": []}, "market": "Kansas City"})

    game = extract_team_touchdowns(stats, ScheduleTeam(alias="KC"))

    assert game.team.abbreviation == "KC"
    assert game.increments == []


def test_team_info_uses_static_metadata_when_payload_lacks_names():
    team = build_team_info("KC", None, None)

    assert team.display_name == "Kansas City Chiefs"
    assert (team.location, team.mascot) == ("Kansas City", "Chiefs")


def test_team_info_prefers_payload_names():
    stats = parse_team_statistics(team_stats("WAS", market="Washington", name="Football Team"))

    assert build_team_info("WAS", stats, None).display_name == "Washington Football Team"


# ========== FIRST TOUCHDOWN SCORERS ==========


def test_touchdown_detection():
    def event(text):
        return PlayByPlayEvent(description=text)

    assert is_touchdown_event(event("P.Mahomes pass to T.Kelce for 12 yards, TOUCHDOWN."))
    assert is_touchdown_event(event("12 yd TD run"))
    assert is_touchdown_event(event("td"))
    assert not is_touchdown_event(event("H.Butker extra point is GOOD"))
    assert not is_touchdown_event(event("STDOUT"))


def test_earlier_quarter_wins_even_when_listed_later():
    pbp = parse_play_by_play(
        play_by_play(
            period(
                2,
                pbp_event(
                    "K.Hunt 1 yard rush, TOUCHDOWN",
                    clock="05:00",
                    home_points=14,
                    statistics=[scoring_stat("rush", "b", "Kareem Hunt", "KC")],
                ),
            ),
            period(
                1,
                pbp_event(
                    "I.Pacheco 3 yard rush, TOUCHDOWN",
                    clock="08:12",
                    home_points=7,
                    statistics=[scoring_stat("rush", "a", "Isiah Pacheco", "KC")],
                ),
            ),
        )
    )

    scorers = extract_first_touchdown_scorers("g1", pbp, "KC", "BUF")

    assert len(scorers) == 1
    scorer = scorers[0]
    assert scorer.player_name == "Isiah Pacheco"
    assert scorer.quarter == 1
    assert scorer.clock == "08:12"
    assert scorer.touchdown_type == "rushing"
    assert scorer.score_at_td == "KC 7 - BUF 0"


def test_one_scorer_per_team():
    pbp = parse_play_by_play(
        play_by_play(
            period(
                1,
                pbp_event("TOUCHDOWN", statistics=[scoring_stat("rush", "a", "Home One", "KC")]),
                pbp_event("TOUCHDOWN", statistics=[scoring_stat("receive", "b", "Away One", "BUF", "WR")]),
                pbp_event("TOUCHDOWN", statistics=[scoring_stat("rush", "c", "Home Two", "KC")]),
            )
        )
    )

    scorers = {s.team: s for s in extract_first_touchdown_scorers("g1", pbp, "KC", "BUF")}

    assert set(scorers) == {"KC", "BUF"}
    assert scorers["KC"].player_name == "Home One"
    assert scorers["BUF"].touchdown_type == "receiving"


def test_details_fallback_and_possession_team():
    pbp = parse_play_by_play(
        play_by_play(
            period(
                1,
                pbp_event(
                    "TOUCHDOWN",
                    details=[{"category": "pass_reception", "players": [{"name": "Stefon Diggs"}]}],
                    possession="BUF",
                ),
            )
        )
    )

    scorers = extract_first_touchdown_scorers("g1", pbp, "KC", "BUF")

    assert len(scorers) == 1
    assert scorers[0].team == "BUF"
    assert scorers[0].touchdown_type == "receiving"
    assert scorers[0].player_id == "BUF-Stefon Diggs"


def test_unresolvable_events_are_skipped():
    pbp = parse_play_by_play(
        play_by_play(
            period(
                1,
                # No player anywhere
                pbp_event("TOUCHDOWN", possession="KC"),
                # Team is neither home nor away
                pbp_event("TOUCHDOWN", statistics=[scoring_stat("rush", "x", "Stranger", "NYJ")]),
                # Not a touchdown
                pbp_event("3 yard rush", statistics=[scoring_stat("rush", "y", "Runner", "KC")]),
                pbp_event("TOUCHDOWN", statistics=[scoring_stat("rush", "z", "Scorer", "KC")]),
            )
        )
    )

    scorers = extract_first_touchdown_scorers("g1", pbp, "KC", "BUF")

    assert [s.player_name for s in scorers] == ["Scorer"]


def test_non_scoring_stat_types_fall_through_to_details():
    pbp = parse_play_by_play(
        play_by_play(
            period(
                3,
                pbp_event(
                    "TOUCHDOWN",
                    statistics=[scoring_stat("kick", "k", "Kicker", "KC", "K")],
                    details=[
                        {
                            "category": "rush",
                            "players": [{"id": "r1", "name": "Runner"}],
                            "start_location": {"alias": "KC"},
                        }
                    ],
                ),
            )
        )
    )

    scorers = extract_first_touchdown_scorers("g1", pbp, "KC", "BUF")

    assert scorers[0].player_id == "r1"
    assert scorers[0].quarter == 3
    assert scorers[0].touchdown_type == "rushing"
