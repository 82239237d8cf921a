"""Data collection package."""

from .sportradar_client import SportradarClient
from .touchdown_collector import TouchdownCollector

__all__ = ["SportradarClient", "TouchdownCollector"]
