"""Tests for touchdown probability estimation."""

import pytest

from nfl_touchdowns.data.processing.probability import (
    FirstScorerRow,
    PlayerWeekRow,
    estimate_touchdown_probabilities,
    predict_first_touchdown_scorers,
    smoothed_probability,
    summarize_first_touchdown_teams,
)


def player_weeks(player_id, name, team, touchdowns_by_week, position="RB"):
    return [
        PlayerWeekRow(player_id, name, position, team, week, touchdowns)
        for week, touchdowns in touchdowns_by_week.items()
    ]


def first_td(team, player_id, name, week, position="RB", touchdown_type="rushing"):
    return FirstScorerRow(team, player_id, name, position, touchdown_type, week)


# ========== SMOOTHING ==========


def test_smoothing_example():
    assert smoothed_probability(3, 10) == 33.33


@pytest.mark.parametrize(
    ("successes", "trials", "expected"),
    [
        (0, 0, 0.0),
        (0, -3, 0.0),
        (1, 1, 50.0),
        (0, 1, 33.33),
        (17, 17, 86.36),
    ],
)
def test_smoothing_edge_cases(successes, trials, expected):
    assert smoothed_probability(successes, trials) == expected


def test_probability_is_bounded():
    for trials in range(1, 30):
        for successes in range(0, trials + 1):
            assert 0 <= smoothed_probability(successes, trials) <= 100


# ========== WEEKLY PROBABILITIES ==========


def test_team_games_are_the_denominator():
    rows = player_weeks("p1", "Runner", "KC", {1: 1, 2: 0, 3: 2})

    (estimate,) = estimate_touchdown_probabilities(rows, {"KC": 10})

    assert estimate.games_played == 10
    assert estimate.weeks_with_touchdown == 2
    assert estimate.total_touchdowns == 3
    assert estimate.touchdown_probability == round(4 / 15 * 100, 2)


def test_player_weeks_used_when_team_games_unknown():
    rows = player_weeks("p1", "Runner", "KC", {1: 1, 2: 0})

    (estimate,) = estimate_touchdown_probabilities(rows, {})

    assert estimate.games_played == 2


def test_players_without_touchdowns_are_excluded_and_results_sorted():
    rows = (
        player_weeks("a", "Alpha", "KC", {1: 1, 2: 1})
        + player_weeks("b", "Bravo", "KC", {1: 0, 2: 0})
        + player_weeks("c", "Charlie", "KC", {1: 2, 2: 0})
        + player_weeks("d", "Delta", "KC", {1: 1, 2: 0})
    )

    estimates = estimate_touchdown_probabilities(rows, {"KC": 2})

    assert [e.player_name for e in estimates] == ["Alpha", "Charlie", "Delta"]


# ========== FIRST TOUCHDOWN PREDICTIONS ==========


def test_prediction_combines_frequency_and_weekly_probability():
    first_tds = [first_td("KC", "p1", "Runner", 1), first_td("KC", "p1", "Runner", 2)]
    rows = player_weeks("p1", "Runner", "KC", {1: 1, 2: 1, 3: 0, 4: 0})

    (prediction,) = predict_first_touchdown_scorers(first_tds, rows, {"KC": 4}, {"KC": "Kansas City Chiefs"})

    weekly = smoothed_probability(2, 4)
    assert prediction.first_td_frequency == 50.0
    assert prediction.td_probability == weekly
    assert prediction.prediction_score == round(0.6 * 50.0 + 0.4 * weekly, 2)
    assert prediction.probability_percentage == prediction.prediction_score
    assert prediction.team_display_name == "Kansas City Chiefs"


def test_quarterbacks_are_excluded():
    first_tds = [first_td("KC", "q1", "Quarterback", 1, position="QB")] * 3
    rows = player_weeks("q1", "Quarterback", "KC", {1: 1, 2: 1, 3: 1}, position="QB") + player_weeks(
        "w1", "Receiver", "KC", {1: 0, 2: 1, 3: 0}, position="WR"
    )

    (prediction,) = predict_first_touchdown_scorers(first_tds, rows, {"KC": 3})

    assert prediction.player_name == "Receiver"


def test_one_prediction_per_team_ordered_by_team():
    first_tds = [first_td("KC", "k1", "Chief", 1), first_td("BUF", "b1", "Bill", 1)]
    rows = player_weeks("k1", "Chief", "KC", {1: 1}) + player_weeks("b1", "Bill", "BUF", {1: 1})

    predictions = predict_first_touchdown_scorers(first_tds, rows, {"KC": 1, "BUF": 1})

    assert [p.team_abbreviation for p in predictions] == ["BUF", "KC"]
    assert predictions[0].team_display_name == "BUF"


def test_teams_on_a_bye_get_no_prediction():
    first_tds = [first_td("KC", "k1", "Chief", 1), first_td("BUF", "b1", "Bill", 1)]
    rows = player_weeks("k1", "Chief", "KC", {1: 1}) + player_weeks("b1", "Bill", "BUF", {1: 1})
    team_games = {"KC": 1, "BUF": 1}

    (prediction,) = predict_first_touchdown_scorers(first_tds, rows, team_games, teams_playing={"KC", "DAL"})

    assert prediction.team_abbreviation == "KC"
    assert predict_first_touchdown_scorers(first_tds, rows, team_games, teams_playing=set()) == []


def test_ties_keep_the_first_candidate():
    first_tds = [first_td("KC", "a", "First", 1), first_td("KC", "b", "Second", 2)]

    (prediction,) = predict_first_touchdown_scorers(first_tds, [], {"KC": 2})

    assert prediction.player_name == "First"


# ========== FIRST TOUCHDOWN TEAM STATS ==========


def test_team_stats_top_three_with_percentages():
    first_tds = [
        first_td("KC", "a", "Alpha", 1),
        first_td("KC", "a", "Alpha", 2),
        first_td("KC", "a", "Alpha", 3),
        first_td("KC", "b", "Bravo", 4, touchdown_type="receiving"),
        first_td("KC", "c", "Charlie", 5),
        first_td("KC", "d", "Delta", 6),
    ]

    (team,) = summarize_first_touchdown_teams(first_tds, {"KC": "Kansas City Chiefs"})

    assert team.total_games == 6
    assert team.team_display_name == "Kansas City Chiefs"
    assert [s.player_name for s in team.top_scorers] == ["Alpha", "Bravo", "Charlie"]
    assert team.top_scorers[0].count == 3
    assert team.top_scorers[0].percentage == 50.0
    assert team.top_scorers[1].percentage == 16.7
