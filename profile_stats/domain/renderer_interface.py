"""Renderer interface (port) for turning a snapshot into image artifacts.

This is the port in hexagonal architecture that the infrastructure layer implements.
"""
from abc import ABC, abstractmethod
from pathlib import Path
from profile_stats.domain.models import StatsSnapshot


class IStatsRenderer(ABC):
    """Abstract interface for snapshot rendering."""

    @abstractmethod
    def generate_overview(self, snapshot: StatsSnapshot) -> Path:
        """Render the overview card (stars, forks, contributions, lines, views).

        Args:
            snapshot: Snapshot produced by the statistics engine

        Returns:
            Path of the written artifact
        """
        pass

    @abstractmethod
    def generate_languages(self, snapshot: StatsSnapshot) -> Path:
        """Render the ranked language breakdown."""
        pass

    @abstractmethod
    def generate_contributions_grid(self, snapshot: StatsSnapshot) -> Path:
        """Render the daily contribution calendar."""
        pass
