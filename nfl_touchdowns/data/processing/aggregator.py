"""Week-level touchdown aggregation.

Folds the per-game extraction results of every game in a week into one
running accumulator per team. The aggregator is a plain in-memory object
owned by a single week sync; nothing is shared between syncs.
"""

import logging
from dataclasses import dataclass, field

from .extractor import TeamGameTouchdowns
from .records import PlayerKey, PlayerTouchdowns, TeamInfo, TeamTouchdowns

logger = logging.getLogger(__name__)


@dataclass
class TeamAccumulator:
    team: TeamInfo
    players: dict[PlayerKey, PlayerTouchdowns] = field(default_factory=dict)
    scoreboard_touchdowns: int = 0

    def player(self, key: PlayerKey, name: str, position: str | None) -> PlayerTouchdowns:
        """Running record for a player, created with zero counts on first sight."""
        record = self.players.get(key)
        if record is None:
            record = PlayerTouchdowns(
                player_id=key.storage_id,
                player_name=name,
                position=position,
                team=self.team.abbreviation,
            )
            self.players[key] = record
        return record

    @property
    def player_total(self) -> int:
        return sum(player.total for player in self.players.values())


class WeekAggregator:
    """Accumulates touchdown increments across all games of one week.

    Args:
        prefer_scoreboard_totals: when True, a team's total is the provider
            scoreboard total if that is larger than the sum over its players.
            The mismatch is logged either way.
    """

    def __init__(self, prefer_scoreboard_totals: bool = False):
        self.prefer_scoreboard_totals = prefer_scoreboard_totals
        self._teams: dict[str, TeamAccumulator] = {}

    def __len__(self) -> int:
        return len(self._teams)

    def add_team_game(self, game: TeamGameTouchdowns) -> None:
        """Fold one team's contribution from one game into the week."""
        abbreviation = game.team.abbreviation
        accumulator = self._teams.get(abbreviation)
        if accumulator is None:
            accumulator = TeamAccumulator(team=game.team)
            self._teams[abbreviation] = accumulator

        # Scoreboard totals are per game, so they add up across the week
        accumulator.scoreboard_touchdowns += game.scoreboard_touchdowns

        for increment in game.increments:
            record = accumulator.player(increment.key, increment.player_name, increment.position)
            record.add(increment.category, increment.touchdowns)

        for appearance in game.appearances:
            accumulator.player(appearance.key, appearance.player_name, appearance.position)

    def summaries(self) -> list[TeamTouchdowns]:
        """Team summaries ordered by total touchdowns, players by their totals."""
        teams = []
        for abbreviation, accumulator in self._teams.items():
            total = accumulator.player_total
            scoreboard = accumulator.scoreboard_touchdowns
            if scoreboard > total:
                logger.warning(
                    f"{abbreviation}: scoreboard reports {scoreboard} touchdowns "
                    f"but player categories add up to {total}"
                )
                if self.prefer_scoreboard_totals:
                    total = scoreboard

            players = sorted(
                accumulator.players.values(), key=lambda player: (-player.total, player.player_name)
            )
            teams.append(TeamTouchdowns(team=accumulator.team, total_touchdowns=total, players=players))

        teams.sort(key=lambda team: (-team.total_touchdowns, team.team.abbreviation))
        return teams
