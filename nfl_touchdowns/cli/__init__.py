"""CLI interface for the NFL touchdown tracker."""

from .sync_touchdowns import app as main

__all__ = ["main"]
