"""Data package initialization."""

from .processing.records import SeasonType, WeekTouchdowns
from .collection.touchdown_collector import TouchdownCollector

__all__ = [
    "SeasonType",
    "TouchdownCollector",
    "WeekTouchdowns",
]
