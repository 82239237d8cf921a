"""Domain value types shared by the extractor, the aggregator and persistence.

These are plain dataclasses: they hold data that has already been normalized
(see payloads.py), so nothing in here needs to guess whether a field exists.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum, StrEnum


class SeasonType(StrEnum):
    """Partition of an NFL season; week numbering restarts in each one."""

    PRE = "PRE"
    REG = "REG"
    POST = "POST"

    @property
    def max_week(self) -> int:
        return {"PRE": 3, "REG": 18, "POST": 5}[self.value]

    @property
    def provider_code(self) -> str:
        # SportsRadar spells the postseason "PST" in its URLs
        return "PST" if self is SeasonType.POST else self.value

    def is_valid_week(self, week: int) -> bool:
        return 1 <= week <= self.max_week


class TouchdownCategory(StrEnum):
    """The five mutually exclusive buckets a touchdown is classified into."""

    RUSHING = "rushing"
    RECEIVING = "receiving"
    PASSING = "passing"
    RETURN = "return"
    DEFENSIVE = "defensive"


UNKNOWN_TOUCHDOWN_TYPE = "unknown"

# Regular season starts in September; earlier months belong to the previous season
SEASON_START_MONTH = 9


def current_nfl_season(today: date | None = None) -> int:
    today = today or date.today()
    return today.year if today.month >= SEASON_START_MONTH else today.year - 1


class DataSource(Enum):
    SPORTRADAR = "sportradar"
    DATABASE = "database"


@dataclass(frozen=True)
class PlayerKey:
    """Identity of a player within one team's statistics.

    When the provider supplies an id, the key is that id. Some categories omit
    ids, so the key falls back to (team, name, category); the category is part
    of the fallback so two id-less players with the same name in different
    categories never merge.
    """

    team: str
    provider_id: str | None = None
    fallback_name: str | None = None
    category: TouchdownCategory | None = None

    @property
    def storage_id(self) -> str:
        if self.provider_id:
            return self.provider_id
        category = self.category.value if self.category else "unknown"
        return f"{self.team}-{self.fallback_name or 'unknown'}-{category}"


@dataclass(frozen=True)
class TeamInfo:
    abbreviation: str
    display_name: str
    location: str
    mascot: str


@dataclass
class PlayerTouchdowns:
    """Running touchdown breakdown of one player for one team and week."""

    player_id: str
    player_name: str
    position: str | None
    team: str
    rushing: int = 0
    receiving: int = 0
    passing: int = 0
    returns: int = 0
    defensive: int = 0

    @property
    def total(self) -> int:
        return self.rushing + self.receiving + self.passing + self.returns + self.defensive

    def add(self, category: TouchdownCategory, touchdowns: int) -> None:
        """Increment one bucket; negative increments are ignored."""
        if touchdowns <= 0:
            return
        attribute = "returns" if category is TouchdownCategory.RETURN else category.value
        setattr(self, attribute, getattr(self, attribute) + touchdowns)


@dataclass
class TeamTouchdowns:
    team: TeamInfo
    total_touchdowns: int
    players: list[PlayerTouchdowns] = field(default_factory=list)


@dataclass(frozen=True)
class FirstTouchdownScorer:
    """The chronologically earliest touchdown scorer of a team in one game."""

    game_id: str
    team: str
    player_id: str
    player_name: str
    position: str | None
    touchdown_type: str
    quarter: int
    clock: str
    score_at_td: str


@dataclass
class WeekTouchdowns:
    """Everything one week sync produced, ready for persistence or display."""

    season: int
    season_type: SeasonType
    week: int
    updated_at: datetime
    source: DataSource = DataSource.SPORTRADAR
    teams: list[TeamTouchdowns] = field(default_factory=list)
    first_touchdown_scorers: list[FirstTouchdownScorer] = field(default_factory=list)
    games_scheduled: int = 0
    games_failed: int = 0

    @property
    def has_data(self) -> bool:
        return bool(self.teams)

    @property
    def total_touchdowns(self) -> int:
        return sum(team.total_touchdowns for team in self.teams)
