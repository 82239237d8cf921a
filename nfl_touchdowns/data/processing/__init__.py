"""Payload normalization, touchdown extraction, aggregation and probabilities."""

from .aggregator import WeekAggregator
from .probability import (
    estimate_touchdown_probabilities,
    predict_first_touchdown_scorers,
    smoothed_probability,
    summarize_first_touchdown_teams,
)
from .records import SeasonType, TouchdownCategory, WeekTouchdowns

__all__ = [
    "SeasonType",
    "TouchdownCategory",
    "WeekAggregator",
    "WeekTouchdowns",
    "estimate_touchdown_probabilities",
    "predict_first_touchdown_scorers",
    "smoothed_probability",
    "summarize_first_touchdown_teams",
]
