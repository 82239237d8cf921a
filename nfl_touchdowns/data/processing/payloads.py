"""Normalization of raw SportsRadar payloads.

SportsRadar responses are deeply nested JSON whose shape varies between
endpoints, seasons and even games: arrays go missing, counts arrive as strings,
fumble touchdowns are spread over several differently named fields. This
module is the single place that deals with that. Every parse_* function takes
whatever JSON the client returned and produces Pydantic models in which every
field exists and every count is a non-negative integer.

The rest of the pipeline (extractor, aggregator) only ever sees these models.

Rules applied at ingestion:
- missing arrays become empty lists, missing objects become empty dicts
- missing, non-numeric or non-finite counts become 0
- negative counts become 0 (a data artifact must never reduce a counter)
- nothing in here raises on a shape mismatch
"""

import math
from typing import Any

from pydantic import BaseModel, Field

from .records import TouchdownCategory

# Provider category blocks and the bucket each one feeds.
# The tuple holds the keys the provider has used for the block.
STAT_CATEGORIES: list[tuple[str, tuple[str, ...], TouchdownCategory]] = [
    ("rushing", ("rushing",), TouchdownCategory.RUSHING),
    ("receiving", ("receiving",), TouchdownCategory.RECEIVING),
    ("passing", ("passing",), TouchdownCategory.PASSING),
    ("kick_returns", ("kick_returns",), TouchdownCategory.RETURN),
    ("punt_returns", ("punt_returns",), TouchdownCategory.RETURN),
    ("misc_returns", ("misc_returns",), TouchdownCategory.RETURN),
    ("int_returns", ("int_returns", "interception_returns"), TouchdownCategory.DEFENSIVE),
    ("fumbles", ("fumbles",), TouchdownCategory.DEFENSIVE),
]

# Fumble touchdowns are reported under any of these fields, summed together
FUMBLE_TOUCHDOWN_FIELDS = ("return_touchdowns", "own_rec_tds", "opp_rec_tds", "ez_rec_tds")

PLAYER_ID_FIELDS = ("id", "sr_id", "player_id")


def safe_count(value: Any) -> int:
    """Convert a provider count to a non-negative int, defaulting to 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return 0
    if isinstance(value, int | float) and math.isfinite(value):
        return max(0, int(value))
    return 0


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _alias(value: Any) -> str | None:
    """Uppercase team abbreviation from a team-like object."""
    team = _as_dict(value)
    for key in ("alias", "abbreviation", "abbr"):
        alias = _as_text(team.get(key))
        if alias:
            return alias.upper()
    return None


# ========== GAME STATISTICS ==========


class PlayerStatLine(BaseModel):
    """One player's line inside one statistics category."""

    player_id: str | None = None
    name: str = "Unknown Player"
    position: str | None = None
    touchdowns: int = Field(default=0, ge=0)


class TeamStatistics(BaseModel):
    """One team's block of a game statistics payload."""

    alias: str | None = None
    market: str | None = None
    name: str | None = None
    scoreboard_touchdowns: int = Field(default=0, ge=0)
    # Canonical category name -> player lines, every category always present
    categories: dict[str, list[PlayerStatLine]] = Field(default_factory=dict)


class GameStatistics(BaseModel):
    home: TeamStatistics | None = None
    away: TeamStatistics | None = None

    @property
    def is_empty(self) -> bool:
        """True for a game that has not been played yet."""
        return self.home is None and self.away is None


def touchdown_count(raw_player: dict, category: str, bucket: TouchdownCategory) -> int:
    """Touchdowns a player line contributes to its category."""
    if category == "fumbles":
        return sum(safe_count(raw_player.get(field)) for field in FUMBLE_TOUCHDOWN_FIELDS)
    for field in ("touchdowns", f"{bucket.value}_touchdowns"):
        if field in raw_player:
            return safe_count(raw_player[field])
    return 0


def parse_player_line(raw: Any, category: str, bucket: TouchdownCategory) -> PlayerStatLine:
    player = _as_dict(raw)
    player_id = next(
        (_as_text(player.get(key)) for key in PLAYER_ID_FIELDS if _as_text(player.get(key))),
        None,
    )
    return PlayerStatLine(
        player_id=player_id,
        name=_as_text(player.get("name")) or _as_text(player.get("full_name")) or "Unknown Player",
        position=_as_text(player.get("position")),
        touchdowns=touchdown_count(player, category, bucket),
    )


def parse_team_statistics(raw: Any) -> TeamStatistics | None:
    """Normalize the home or away block of a statistics payload."""
    team = _as_dict(raw)
    if not team:
        return None

    categories: dict[str, list[PlayerStatLine]] = {}
    for category, provider_keys, bucket in STAT_CATEGORIES:
        block = next((_as_dict(team.get(key)) for key in provider_keys if key in team), {})
        categories[category] = [
            parse_player_line(player, category, bucket)
            for player in _as_list(block.get("players"))
            if isinstance(player, dict)
        ]

    return TeamStatistics(
        alias=_alias(team),
        market=_as_text(team.get("market")),
        name=_as_text(team.get("name")),
        scoreboard_touchdowns=safe_count(_as_dict(team.get("touchdowns")).get("total")),
        categories=categories,
    )


def parse_game_statistics(raw: Any) -> GameStatistics:
    """Normalize a /games/{id}/statistics.json response."""
    payload = _as_dict(raw)
    statistics = _as_dict(payload.get("statistics")) or payload
    return GameStatistics(
        home=parse_team_statistics(statistics.get("home")),
        away=parse_team_statistics(statistics.get("away")),
    )


# ========== SCHEDULE ==========


class ScheduleTeam(BaseModel):
    alias: str | None = None
    market: str | None = None
    name: str | None = None


class ScheduleGame(BaseModel):
    game_id: str
    status: str | None = None
    home: ScheduleTeam = Field(default_factory=ScheduleTeam)
    away: ScheduleTeam = Field(default_factory=ScheduleTeam)


def _schedule_team(raw: Any) -> ScheduleTeam:
    team = _as_dict(raw)
    return ScheduleTeam(
        alias=_alias(team), market=_as_text(team.get("market")), name=_as_text(team.get("name"))
    )


def parse_week_schedule(raw: Any) -> list[ScheduleGame]:
    """Normalize a week schedule; games without an id are dropped."""
    payload = _as_dict(raw)
    games = _as_list(_as_dict(payload.get("week")).get("games")) or _as_list(payload.get("games"))

    schedule = []
    for game in games:
        game = _as_dict(game)
        game_id = _as_text(game.get("id"))
        if not game_id:
            continue
        schedule.append(
            ScheduleGame(
                game_id=game_id,
                status=_as_text(game.get("status")),
                home=_schedule_team(game.get("home")),
                away=_schedule_team(game.get("away")),
            )
        )
    return schedule


# ========== PLAY-BY-PLAY ==========


class EventPlayer(BaseModel):
    player_id: str | None = None
    name: str | None = None
    position: str | None = None


class EventStatistic(BaseModel):
    stat_type: str | None = None
    player: EventPlayer = Field(default_factory=EventPlayer)
    team_alias: str | None = None


class EventDetail(BaseModel):
    category: str | None = None
    players: list[EventPlayer] = Field(default_factory=list)
    location_alias: str | None = None


class PlayByPlayEvent(BaseModel):
    """A single play-by-play event annotated with its chronological position."""

    quarter: int = 0
    sequence: int = 0  # Order of the event within its quarter, as ingested
    description: str = ""
    clock: str = ""
    home_points: int = 0
    away_points: int = 0
    statistics: list[EventStatistic] = Field(default_factory=list)
    details: list[EventDetail] = Field(default_factory=list)
    possession_alias: str | None = None

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.quarter, self.sequence)


class PlayByPlay(BaseModel):
    """Flattened play-by-play; events are always in chronological order."""

    events: list[PlayByPlayEvent] = Field(default_factory=list)


def _event_player(raw: Any) -> EventPlayer:
    player = _as_dict(raw)
    return EventPlayer(
        player_id=_as_text(player.get("id")) or _as_text(player.get("sr_id")),
        name=_as_text(player.get("name")),
        position=_as_text(player.get("position")),
    )


def _parse_event(raw: dict, quarter: int, sequence: int) -> PlayByPlayEvent:
    statistics = [
        EventStatistic(
            stat_type=_as_text(stat.get("stat_type")),
            player=_event_player(stat.get("player")),
            team_alias=_alias(stat.get("team")),
        )
        for stat in map(_as_dict, _as_list(raw.get("statistics")))
    ]

    details = []
    for detail in map(_as_dict, _as_list(raw.get("details"))):
        # The first location block present decides the team, as the provider fills one or the other
        location = _as_dict(detail.get("start_location")) or _as_dict(detail.get("end_location"))
        details.append(
            EventDetail(
                category=_as_text(detail.get("category")),
                players=[_event_player(player) for player in _as_list(detail.get("players"))],
                location_alias=_alias(location),
            )
        )

    possession = _as_dict(_as_dict(raw.get("start_situation")).get("possession"))
    return PlayByPlayEvent(
        quarter=quarter,
        sequence=sequence,
        description=str(raw.get("description") or ""),
        clock=str(raw.get("clock") or ""),
        home_points=safe_count(raw.get("home_points")),
        away_points=safe_count(raw.get("away_points")),
        statistics=statistics,
        details=details,
        possession_alias=_alias(possession),
    )


def parse_play_by_play(raw: Any) -> PlayByPlay:
    """Flatten periods -> drives -> events and sort them chronologically.

    The provider does not guarantee that periods arrive in order, so each
    event gets a (quarter, sequence) key here and the list is sorted once.
    """
    events = []
    for index, period in enumerate(_as_list(_as_dict(raw).get("periods"))):
        period = _as_dict(period)
        quarter = safe_count(period.get("number")) or safe_count(period.get("sequence")) or index + 1
        sequence = 0
        for drive in _as_list(period.get("pbp")):
            for event in _as_list(_as_dict(drive).get("events")):
                if not isinstance(event, dict):
                    continue
                events.append(_parse_event(event, quarter, sequence))
                sequence += 1

    events.sort(key=lambda event: event.sort_key)
    return PlayByPlay(events=events)
