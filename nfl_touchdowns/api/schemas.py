"""
Pydantic schemas for API responses.

Every endpoint answers with the same envelope:

    {"success": true, "data": ...}        on success
    {"success": false, "error": "..."}    on failure

Field names go over the wire in camelCase (playerId, totalTouchdowns, ...),
which is what the front end consumes. Python code uses snake_case names;
the alias generator converts them. The player "return" counter is spelled
return_touchdowns in Python because `return` is a keyword.

Key Pydantic Concepts:
- alias_generator=to_camel: snake_case attribute -> camelCase JSON key
- populate_by_name=True: models can still be built with the Python names
- Generic envelope: ApiResponse[WeekTouchdownsResponse] documents the payload
  type of each endpoint in the OpenAPI schema
"""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for all response bodies: camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ========== ENVELOPE ==========


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    data: T


class ErrorResponse(CamelModel):
    success: bool = False
    error: str


# ========== WEEK TOUCHDOWNS ==========


class TeamInfoResponse(CamelModel):
    abbreviation: str  # "KC"
    display_name: str  # "Kansas City Chiefs"
    location: str
    mascot: str


class PlayerTouchdownsResponse(CamelModel):
    player_id: str
    player_name: str
    position: str | None = None
    team: str
    rushing: int = 0
    receiving: int = 0
    passing: int = 0
    return_touchdowns: int = Field(default=0, alias="return")
    defensive: int = 0
    total: int = 0


class TeamTouchdownsResponse(CamelModel):
    team: TeamInfoResponse
    total_touchdowns: int
    players: list[PlayerTouchdownsResponse]


class FirstTouchdownScorerResponse(CamelModel):
    game_id: str
    team: str
    player_id: str
    player_name: str
    position: str | None = None
    touchdown_type: str
    quarter: int
    clock: str
    score_at_td: str
    week: int | None = None


class WeekTouchdownsResponse(CamelModel):
    season: int
    season_type: str
    week: int
    updated_at: datetime | None = None
    source: str
    teams: list[TeamTouchdownsResponse]
    first_touchdown_scorers: list[FirstTouchdownScorerResponse] = []
    games_scheduled: int = 0
    games_failed: int = 0


class AvailableWeekResponse(CamelModel):
    week: int
    has_data: bool
    synced_at: datetime | None = None


class SyncResponse(CamelModel):
    """Outcome of one week sync."""

    season: int
    season_type: str
    week: int
    has_data: bool
    teams_synced: int
    players_synced: int
    first_touchdown_scorers: int
    total_touchdowns: int
    games_scheduled: int
    games_failed: int


# ========== PROBABILITIES ==========


class PlayerProbabilityResponse(CamelModel):
    player_id: str
    player_name: str
    position: str | None = None
    team: str
    total_touchdowns: int
    games_played: int
    weeks_with_touchdown: int
    touchdown_probability: float  # Percentage (0-100)


class FirstTouchdownPredictionResponse(CamelModel):
    team_abbreviation: str
    team_display_name: str
    player_id: str
    player_name: str
    position: str | None = None
    prediction_score: float
    probability_percentage: float
    first_td_frequency: float
    td_probability: float


class FirstScorerShareResponse(CamelModel):
    player_id: str
    player_name: str
    position: str | None = None
    touchdown_type: str
    count: int
    percentage: float


class TeamFirstTouchdownStatsResponse(CamelModel):
    team_abbreviation: str
    team_display_name: str
    total_games: int
    top_scorers: list[FirstScorerShareResponse]
