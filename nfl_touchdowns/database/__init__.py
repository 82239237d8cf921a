"""Database package initialization."""

from .connection import SessionLocal, engine, get_db, get_session_context
from .models import (
    Base,
    FirstTouchdownScorerRecord,
    NflWeek,
    PlayerTouchdownRecord,
    TeamTouchdownRecord,
)

__all__ = [
    "Base",
    "FirstTouchdownScorerRecord",
    "NflWeek",
    "PlayerTouchdownRecord",
    "SessionLocal",
    "TeamTouchdownRecord",
    "engine",
    "get_db",
    "get_session_context",
]
