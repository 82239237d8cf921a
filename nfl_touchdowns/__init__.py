"""NFL touchdown aggregation: provider sync, weekly summaries and probabilities."""

__version__ = "0.1.0"
