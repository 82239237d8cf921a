"""Touchdown probability estimation.

Turns stored weekly touchdown records into per-player estimates:

- estimate_touchdown_probabilities(): likelihood a player scores at least one
  touchdown in a given week.
- predict_first_touchdown_scorers(): the most likely first touchdown scorer
  of each team.
- summarize_first_touchdown_teams(): how each team's first touchdowns have
  been distributed among its players.

Smoothing:

A raw ratio (weeks with a touchdown / games played) is extreme for small
samples: a player who scored in his only game would get 100%. The estimate
adds a prior of 2 successes in 5 trials (roughly 40%):

    probability = (S + 2) / (W + 5) * 100

where W is the number of games the player's TEAM played and S the number of
those weeks in which the player scored. Using team games as W counts the
weeks a player sat out as weeks without a touchdown.

Example: scored in 3 of 10 team games -> (3 + 2) / (10 + 5) * 100 = 33.33
"""

from collections import defaultdict
from dataclasses import dataclass, field

PRIOR_SUCCESSES = 2
PRIOR_TRIALS = 5

FIRST_TD_FREQUENCY_WEIGHT = 0.6
TD_PROBABILITY_WEIGHT = 0.4

# First touchdown scorer markets do not list quarterbacks
EXCLUDED_FIRST_TD_POSITIONS = frozenset({"QB"})


@dataclass(frozen=True)
class PlayerWeekRow:
    """One stored player record for one week (input row)."""

    player_id: str
    player_name: str
    position: str | None
    team: str
    week: int
    total_touchdowns: int


@dataclass(frozen=True)
class FirstScorerRow:
    """One stored first touchdown scorer record (input row)."""

    team: str
    player_id: str
    player_name: str
    position: str | None
    touchdown_type: str
    week: int


@dataclass(frozen=True)
class PlayerProbability:
    player_id: str
    player_name: str
    position: str | None
    team: str
    total_touchdowns: int
    games_played: int
    weeks_with_touchdown: int
    touchdown_probability: float


@dataclass(frozen=True)
class FirstTouchdownPrediction:
    team_abbreviation: str
    team_display_name: str
    player_id: str
    player_name: str
    position: str | None
    prediction_score: float
    probability_percentage: float
    first_td_frequency: float
    td_probability: float


@dataclass(frozen=True)
class FirstScorerShare:
    player_id: str
    player_name: str
    position: str | None
    touchdown_type: str
    count: int
    percentage: float


@dataclass
class TeamFirstTouchdownStats:
    team_abbreviation: str
    team_display_name: str
    total_games: int
    top_scorers: list[FirstScorerShare] = field(default_factory=list)


def smoothed_probability(successes: int, trials: int) -> float:
    """Laplace-smoothed weekly scoring probability as a percentage.

    Returns 0 when there are no trials; otherwise clamped to [0, 100] and
    rounded to two decimals.
    """
    if trials <= 0:
        return 0.0
    successes = max(0, successes)
    probability = (successes + PRIOR_SUCCESSES) / (trials + PRIOR_TRIALS) * 100
    return round(min(100.0, max(0.0, probability)), 2)


@dataclass
class _PlayerSeason:
    player_id: str
    player_name: str
    position: str | None
    team: str
    weeks: set[int] = field(default_factory=set)
    scoring_weeks: set[int] = field(default_factory=set)
    total_touchdowns: int = 0


def _group_player_seasons(rows: list[PlayerWeekRow]) -> dict[tuple[str, str], _PlayerSeason]:
    seasons: dict[tuple[str, str], _PlayerSeason] = {}
    for row in rows:
        key = (row.team, row.player_id)
        season = seasons.get(key)
        if season is None:
            season = _PlayerSeason(row.player_id, row.player_name, row.position, row.team)
            seasons[key] = season
        season.weeks.add(row.week)
        season.total_touchdowns += max(0, row.total_touchdowns)
        if row.total_touchdowns > 0:
            season.scoring_weeks.add(row.week)
    return seasons


def _games_played(season: _PlayerSeason, team_games: dict[str, int]) -> int:
    # Fall back to the player's own weeks when the team has no week records
    return team_games.get(season.team) or len(season.weeks)


def estimate_touchdown_probabilities(
    player_weeks: list[PlayerWeekRow], team_games: dict[str, int]
) -> list[PlayerProbability]:
    """Smoothed weekly touchdown probability for every player who scored.

    Args:
        player_weeks: stored player records of the season/season type
        team_games: team abbreviation -> number of weeks the team played

    Returns:
        Players with at least one touchdown, most likely scorers first
    """
    results = []
    for season in _group_player_seasons(player_weeks).values():
        if season.total_touchdowns <= 0:
            continue
        games_played = _games_played(season, team_games)
        weeks_with_touchdown = len(season.scoring_weeks)
        results.append(
            PlayerProbability(
                player_id=season.player_id,
                player_name=season.player_name,
                position=season.position,
                team=season.team,
                total_touchdowns=season.total_touchdowns,
                games_played=games_played,
                weeks_with_touchdown=weeks_with_touchdown,
                touchdown_probability=smoothed_probability(weeks_with_touchdown, games_played),
            )
        )

    results.sort(key=lambda p: (-p.touchdown_probability, -p.total_touchdowns, p.player_name))
    return results


def _is_excluded(position: str | None) -> bool:
    return position is not None and position.upper() in EXCLUDED_FIRST_TD_POSITIONS


def predict_first_touchdown_scorers(
    first_scorers: list[FirstScorerRow],
    player_weeks: list[PlayerWeekRow],
    team_games: dict[str, int],
    team_names: dict[str, str] | None = None,
    teams_playing: set[str] | None = None,
) -> list[FirstTouchdownPrediction]:
    """Most likely first touchdown scorer of each team.

    Score = 60% first-scorer frequency + 40% weekly touchdown probability,
    both percentages of the team's games. The first candidate with the top
    score wins a tie. When teams_playing is given, other teams (on a bye) are
    left out.
    """
    team_names = team_names or {}

    # Candidates in result order: historical first scorers, then everyone else
    candidates: dict[tuple[str, str], dict] = {}
    first_td_counts: dict[tuple[str, str], int] = defaultdict(int)
    for row in first_scorers:
        if _is_excluded(row.position):
            continue
        key = (row.team, row.player_id)
        first_td_counts[key] += 1
        candidates.setdefault(
            key, {"player_name": row.player_name, "position": row.position, "td_probability": 0.0}
        )

    for key, season in _group_player_seasons(player_weeks).items():
        if _is_excluded(season.position):
            continue
        games_played = _games_played(season, team_games)
        candidate = candidates.setdefault(
            key, {"player_name": season.player_name, "position": season.position}
        )
        candidate["td_probability"] = smoothed_probability(len(season.scoring_weeks), games_played)

    best: dict[str, FirstTouchdownPrediction] = {}
    best_scores: dict[str, float] = {}
    for (team, player_id), candidate in candidates.items():
        if teams_playing is not None and team not in teams_playing:
            continue
        total_games = team_games.get(team, 0)
        if total_games <= 0:
            continue

        frequency = first_td_counts.get((team, player_id), 0) / total_games * 100
        td_probability = candidate.get("td_probability", 0.0)
        score = frequency * FIRST_TD_FREQUENCY_WEIGHT + td_probability * TD_PROBABILITY_WEIGHT

        if team in best_scores and score <= best_scores[team]:
            continue
        best_scores[team] = score
        best[team] = FirstTouchdownPrediction(
            team_abbreviation=team,
            team_display_name=team_names.get(team, team),
            player_id=player_id,
            player_name=candidate["player_name"],
            position=candidate["position"],
            prediction_score=round(score, 2),
            probability_percentage=round(min(100.0, score), 2),
            first_td_frequency=round(frequency, 2),
            td_probability=td_probability,
        )

    return [best[team] for team in sorted(best)]


def summarize_first_touchdown_teams(
    first_scorers: list[FirstScorerRow], team_names: dict[str, str] | None = None, top: int = 3
) -> list[TeamFirstTouchdownStats]:
    """Per team: first touchdowns recorded and the players who scored them."""
    team_names = team_names or {}
    by_team: dict[str, dict[tuple[str, str], list[FirstScorerRow]]] = defaultdict(dict)
    for row in first_scorers:
        by_team[row.team].setdefault((row.player_id, row.touchdown_type), []).append(row)

    results = []
    for team in sorted(by_team):
        groups = by_team[team]
        total = sum(len(rows) for rows in groups.values())
        shares = [
            FirstScorerShare(
                player_id=rows[0].player_id,
                player_name=rows[0].player_name,
                position=rows[0].position,
                touchdown_type=rows[0].touchdown_type,
                count=len(rows),
                percentage=round(len(rows) / total * 100, 1),
            )
            for rows in groups.values()
        ]
        shares.sort(key=lambda share: (-share.count, share.player_name))
        results.append(
            TeamFirstTouchdownStats(
                team_abbreviation=team,
                team_display_name=team_names.get(team, team),
                total_games=total,
                top_scorers=shares[:top],
            )
        )
    return results
