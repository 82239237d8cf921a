"""Per-game touchdown extraction.

Two independent operations run on each game of a week:

1. extract_team_touchdowns(): walks one team's statistics categories and turns
   every player line into a touchdown increment for one of the five buckets,
   while separately collecting every player who appeared at all.
2. extract_first_touchdown_scorers(): scans the game's play-by-play once, in
   chronological order, and records the first resolvable touchdown scorer of
   each team.

Both operate on normalized payloads (payloads.py) and never raise on missing
data.
"""

import logging
import re
from dataclasses import dataclass, field

from .payloads import (
    STAT_CATEGORIES,
    PlayByPlay,
    PlayByPlayEvent,
    PlayerStatLine,
    ScheduleTeam,
    TeamStatistics,
)
from .records import (
    UNKNOWN_TOUCHDOWN_TYPE,
    FirstTouchdownScorer,
    PlayerKey,
    TeamInfo,
    TouchdownCategory,
)

logger = logging.getLogger(__name__)

# Default team metadata, used when a payload omits market/name
TEAM_META: dict[str, tuple[str, str]] = {
    "ARI": ("Arizona", "Cardinals"),
    "ATL": ("Atlanta", "Falcons"),
    "BAL": ("Baltimore", "Ravens"),
    "BUF": ("Buffalo", "Bills"),
    "CAR": ("Carolina", "Panthers"),
    "CHI": ("Chicago", "Bears"),
    "CIN": ("Cincinnati", "Bengals"),
    "CLE": ("Cleveland", "Browns"),
    "DAL": ("Dallas", "Cowboys"),
    "DEN": ("Denver", "Broncos"),
    "DET": ("Detroit", "Lions"),
    "GB": ("Green Bay", "Packers"),
    "HOU": ("Houston", "Texans"),
    "IND": ("Indianapolis", "Colts"),
    "JAX": ("Jacksonville", "Jaguars"),
    "KC": ("Kansas City", "Chiefs"),
    "LAC": ("Los Angeles", "Chargers"),
    "LAR": ("Los Angeles", "Rams"),
    "LV": ("Las Vegas", "Raiders"),
    "MIA": ("Miami", "Dolphins"),
    "MIN": ("Minnesota", "Vikings"),
    "NE": ("New England", "Patriots"),
    "NO": ("New Orleans", "Saints"),
    "NYG": ("New York", "Giants"),
    "NYJ": ("New York", "Jets"),
    "PHI": ("Philadelphia", "Eagles"),
    "PIT": ("Pittsburgh", "Steelers"),
    "SF": ("San Francisco", "49ers"),
    "SEA": ("Seattle", "Seahawks"),
    "TB": ("Tampa Bay", "Buccaneers"),
    "TEN": ("Tennessee", "Titans"),
    "WAS": ("Washington", "Commanders"),
}

# "touchdown" anywhere, or "td" as a standalone word ("12 yd TD run", "TD.")
TOUCHDOWN_PATTERN = re.compile(r"touchdown|\btd\b", re.IGNORECASE)

STAT_TYPE_CATEGORIES = {
    "rush": TouchdownCategory.RUSHING,
    "receive": TouchdownCategory.RECEIVING,
    "pass": TouchdownCategory.PASSING,
}

DETAIL_CATEGORIES = {
    "rush": TouchdownCategory.RUSHING,
    "pass_reception": TouchdownCategory.RECEIVING,
}


@dataclass(frozen=True)
class TouchdownIncrement:
    key: PlayerKey
    player_name: str
    position: str | None
    category: TouchdownCategory
    touchdowns: int


@dataclass(frozen=True)
class PlayerAppearance:
    key: PlayerKey
    player_name: str
    position: str | None


@dataclass
class TeamGameTouchdowns:
    """What one team contributed in one game."""

    team: TeamInfo
    increments: list[TouchdownIncrement] = field(default_factory=list)
    appearances: list[PlayerAppearance] = field(default_factory=list)
    scoreboard_touchdowns: int = 0


def build_team_info(
    alias: str, stats_team: TeamStatistics | None, schedule_team: ScheduleTeam | None
) -> TeamInfo:
    """Combine payload metadata with the static table, payload values first."""
    market = (stats_team.market if stats_team else None) or (
        schedule_team.market if schedule_team else None
    )
    name = (stats_team.name if stats_team else None) or (
        schedule_team.name if schedule_team else None
    )
    default_location, default_mascot = TEAM_META.get(alias, (alias, ""))
    location = market or default_location
    mascot = name or default_mascot
    display_name = " ".join(part for part in (location, mascot) if part) or alias
    return TeamInfo(abbreviation=alias, display_name=display_name, location=location, mascot=mascot)


def resolve_player_key(team: str, line: PlayerStatLine, category: TouchdownCategory) -> PlayerKey:
    if line.player_id:
        return PlayerKey(team=team, provider_id=line.player_id)
    return PlayerKey(team=team, fallback_name=line.name, category=category)


def extract_team_touchdowns(
    stats_team: TeamStatistics | None, schedule_team: ScheduleTeam | None = None
) -> TeamGameTouchdowns | None:
    """Extract per-player touchdown increments for one team in one game.

    Returns None when the game has no statistics for the team (not played
    yet) or when neither the statistics nor the schedule identify the team.
    The schedule only fills in names.
    """
    if stats_team is None:
        return None
    alias = stats_team.alias or (schedule_team.alias if schedule_team else None)
    if not alias:
        return None

    result = TeamGameTouchdowns(
        team=build_team_info(alias, stats_team, schedule_team),
        scoreboard_touchdowns=stats_team.scoreboard_touchdowns,
    )

    seen: set[PlayerKey] = set()
    for category_name, _, bucket in STAT_CATEGORIES:
        for line in stats_team.categories.get(category_name, []):
            key = resolve_player_key(alias, line, bucket)
            if key not in seen:
                seen.add(key)
                result.appearances.append(
                    PlayerAppearance(key=key, player_name=line.name, position=line.position)
                )
            if line.touchdowns <= 0:
                continue
            result.increments.append(
                TouchdownIncrement(
                    key=key,
                    player_name=line.name,
                    position=line.position,
                    category=bucket,
                    touchdowns=line.touchdowns,
                )
            )

    return result


def is_touchdown_event(event: PlayByPlayEvent) -> bool:
    return bool(TOUCHDOWN_PATTERN.search(event.description))


@dataclass
class _ResolvedScore:
    player_id: str | None = None
    player_name: str | None = None
    position: str | None = None
    team: str | None = None
    touchdown_type: str = UNKNOWN_TOUCHDOWN_TYPE


def resolve_scoring_play(event: PlayByPlayEvent) -> _ResolvedScore:
    """Resolve scorer and team of a touchdown event.

    Order: structured statistics, then details (team from field location),
    then the possession at the start of the play for the team only.
    """
    resolved = _ResolvedScore()

    for stat in event.statistics:
        category = STAT_TYPE_CATEGORIES.get(stat.stat_type or "")
        if category is None:
            continue
        resolved.player_name = stat.player.name
        resolved.player_id = stat.player.player_id
        resolved.position = stat.player.position
        resolved.team = stat.team_alias
        resolved.touchdown_type = category.value
        break

    if not resolved.player_name:
        for detail in event.details:
            category = DETAIL_CATEGORIES.get(detail.category or "")
            if category is None or not detail.players:
                continue
            player = detail.players[0]
            resolved.player_name = player.name
            resolved.player_id = player.player_id
            resolved.position = player.position
            resolved.team = detail.location_alias
            resolved.touchdown_type = category.value
            break

    if not resolved.team:
        resolved.team = event.possession_alias

    return resolved


def extract_first_touchdown_scorers(
    game_id: str, play_by_play: PlayByPlay, home_alias: str | None, away_alias: str | None
) -> list[FirstTouchdownScorer]:
    """First touchdown scorer of each team, at most one per team.

    play_by_play.events is already in chronological order, so the first
    resolvable event per team wins and is never overwritten.
    """
    teams = {alias for alias in (home_alias, away_alias) if alias}
    first_scorers: dict[str, FirstTouchdownScorer] = {}

    for event in play_by_play.events:
        if len(first_scorers) == len(teams):
            break
        if not is_touchdown_event(event):
            continue

        resolved = resolve_scoring_play(event)
        if not resolved.player_name or resolved.team not in teams:
            continue
        if resolved.team in first_scorers:
            continue

        first_scorers[resolved.team] = FirstTouchdownScorer(
            game_id=game_id,
            team=resolved.team,
            player_id=resolved.player_id or f"{resolved.team}-{resolved.player_name}",
            player_name=resolved.player_name,
            position=resolved.position,
            touchdown_type=resolved.touchdown_type,
            quarter=event.quarter,
            clock=event.clock,
            score_at_td=(
                f"{home_alias or ''} {event.home_points} - {away_alias or ''} {event.away_points}"
            ),
        )

    logger.debug(f"Game {game_id}: resolved {len(first_scorers)} first touchdown scorers")
    return list(first_scorers.values())
