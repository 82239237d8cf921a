"""SQLAlchemy database models for the NFL touchdown tracker.

Four tables hold everything a week sync produces:

1. nfl_weeks: one status row per (season, season_type, week). A week that was
   synced but had no games is a valid row with has_data = False.
2. nfl_team_touchdowns: one row per team per week with the team's total.
3. nfl_player_touchdowns: one row per player per team per week with the five
   category counters. Players who appeared without scoring are stored too,
   with zero counters, so they count as "played, did not score" later.
4. nfl_first_touchdown_scorers: at most one row per team per game.

For beginners:

Natural Keys: Every table carries a UniqueConstraint over the columns that
identify a row in the real world (e.g. season + season_type + week + team).
Re-syncing a week looks rows up by that key and updates them in place, so a
sync can run any number of times without creating duplicates.

Cascade Deletes: Deleting an NflWeek deletes its team, player and first
scorer rows (cascade="all, delete-orphan" on the relationships and
ondelete="CASCADE" on the foreign keys).

Timestamps: created_at and updated_at are maintained by the database.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class NflWeek(Base):
    """Sync status of one week of one season type."""

    __tablename__ = "nfl_weeks"

    id = Column(Integer, primary_key=True, index=True)

    season = Column(Integer, nullable=False)  # 2024
    season_type = Column(String(4), nullable=False)  # "PRE", "REG", "POST"
    week = Column(Integer, nullable=False)  # 1-based within the season type

    has_data = Column(Boolean, nullable=False, default=False)
    games_scheduled = Column(Integer, nullable=False, default=0)
    games_failed = Column(Integer, nullable=False, default=0)
    synced_at = Column(DateTime)

    teams = relationship(
        "TeamTouchdownRecord", back_populates="nfl_week", cascade="all, delete-orphan"
    )
    players = relationship(
        "PlayerTouchdownRecord", back_populates="nfl_week", cascade="all, delete-orphan"
    )
    first_touchdown_scorers = relationship(
        "FirstTouchdownScorerRecord", back_populates="nfl_week", cascade="all, delete-orphan"
    )

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("season", "season_type", "week", name="uq_nfl_week"),
        Index("idx_nfl_week_season", "season", "season_type"),
    )


class TeamTouchdownRecord(Base):
    """Touchdown total of one team in one week."""

    __tablename__ = "nfl_team_touchdowns"

    id = Column(Integer, primary_key=True, index=True)
    week_id = Column(Integer, ForeignKey("nfl_weeks.id", ondelete="CASCADE"), nullable=False)

    # Denormalized natural key, so queries do not need the week join
    season = Column(Integer, nullable=False)
    season_type = Column(String(4), nullable=False)
    week = Column(Integer, nullable=False)

    team_abbreviation = Column(String(5), nullable=False)  # "KC"
    team_display_name = Column(String(60), nullable=False)  # "Kansas City Chiefs"
    team_location = Column(String(40))  # "Kansas City"
    team_mascot = Column(String(40))  # "Chiefs"

    total_touchdowns = Column(Integer, nullable=False, default=0)

    nfl_week = relationship("NflWeek", back_populates="teams")
    # Orphan handling is left to NflWeek, the owner of every player row
    players = relationship("PlayerTouchdownRecord", back_populates="team_record", cascade="all")

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint(
            "season", "season_type", "week", "team_abbreviation", name="uq_nfl_team_week"
        ),
        Index("idx_nfl_team_season", "season", "season_type", "team_abbreviation"),
    )


class PlayerTouchdownRecord(Base):
    """Touchdown breakdown of one player for one team in one week."""

    __tablename__ = "nfl_player_touchdowns"

    id = Column(Integer, primary_key=True, index=True)
    week_id = Column(Integer, ForeignKey("nfl_weeks.id", ondelete="CASCADE"), nullable=False)
    team_record_id = Column(
        Integer, ForeignKey("nfl_team_touchdowns.id", ondelete="CASCADE"), nullable=False
    )

    season = Column(Integer, nullable=False)
    season_type = Column(String(4), nullable=False)
    week = Column(Integer, nullable=False)
    team_abbreviation = Column(String(5), nullable=False)

    player_id = Column(String(100), nullable=False)  # SportsRadar id or "TEAM-Name-category"
    player_name = Column(String(100), nullable=False)
    position = Column(String(10))

    rushing_touchdowns = Column(Integer, nullable=False, default=0)
    receiving_touchdowns = Column(Integer, nullable=False, default=0)
    passing_touchdowns = Column(Integer, nullable=False, default=0)
    return_touchdowns = Column(Integer, nullable=False, default=0)
    defensive_touchdowns = Column(Integer, nullable=False, default=0)
    total_touchdowns = Column(Integer, nullable=False, default=0)

    # Always 1: a row exists only for a week the player appeared in
    games_appeared = Column(Integer, nullable=False, default=1)

    nfl_week = relationship("NflWeek", back_populates="players")
    team_record = relationship("TeamTouchdownRecord", back_populates="players")

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint(
            "season",
            "season_type",
            "week",
            "team_abbreviation",
            "player_id",
            name="uq_nfl_player_week",
        ),
        Index("idx_nfl_player_season", "season", "season_type", "player_id"),
    )


class FirstTouchdownScorerRecord(Base):
    """First touchdown scorer of one team in one game."""

    __tablename__ = "nfl_first_touchdown_scorers"

    id = Column(Integer, primary_key=True, index=True)
    week_id = Column(Integer, ForeignKey("nfl_weeks.id", ondelete="CASCADE"), nullable=False)

    season = Column(Integer, nullable=False)
    season_type = Column(String(4), nullable=False)
    week = Column(Integer, nullable=False)
    game_id = Column(String(64), nullable=False)
    team_abbreviation = Column(String(5), nullable=False)

    player_id = Column(String(100), nullable=False)
    player_name = Column(String(100), nullable=False)
    position = Column(String(10))
    touchdown_type = Column(String(20), nullable=False)  # category value or "unknown"
    quarter = Column(Integer)
    clock = Column(String(10))  # "12:34"
    score_at_td = Column(String(30))  # "KC 7 - BUF 0"

    nfl_week = relationship("NflWeek", back_populates="first_touchdown_scorers")

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint(
            "season",
            "season_type",
            "week",
            "game_id",
            "team_abbreviation",
            name="uq_nfl_first_td",
        ),
        Index("idx_nfl_first_td_team", "season", "season_type", "team_abbreviation"),
    )
