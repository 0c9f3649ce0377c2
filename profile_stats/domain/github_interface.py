"""GitHub API interface (port) consumed by the statistics engine.

This is the anti-corruption layer that shields the domain from GitHub API specifics.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from profile_stats.domain.models import (
    CalendarWeek,
    ContributorActivity,
    RepositoryOverviewPage,
    TrafficView,
)


class IGitHubClient(ABC):
    """Abstract interface for GitHub API operations.

    Every method raises GitHubAPIError on failure.
    """

    @abstractmethod
    async def query_repository_page(
        self,
        owned_cursor: Optional[str],
        contributed_cursor: Optional[str],
        include_contributed: bool = True
    ) -> RepositoryOverviewPage:
        """Fetch the next page of owned and contributed repositories.

        Args:
            owned_cursor: Cursor after which to read owned repositories, None for the first page
            contributed_cursor: Cursor after which to read contributed repositories
            include_contributed: Whether to query the contributed collection at all

        Returns:
            The combined page
        """
        pass

    @abstractmethod
    async def query_contribution_years(self) -> List[int]:
        """Fetch the years in which the viewer has recorded contributions."""
        pass

    @abstractmethod
    async def query_year_total(self, start: datetime, end: datetime) -> int:
        """Fetch the total contribution count in the window [start, end)."""
        pass

    @abstractmethod
    async def query_contribution_calendar(self, login: str) -> List[CalendarWeek]:
        """Fetch the contribution calendar (about one year of days) of a user."""
        pass

    @abstractmethod
    async def fetch_traffic_views(self, repository: str) -> List[TrafficView]:
        """Fetch the daily traffic views of a repository."""
        pass

    @abstractmethod
    async def fetch_contributor_activity(self, repository: str) -> List[ContributorActivity]:
        """Fetch per-contributor weekly line changes of a repository."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections."""
        pass
