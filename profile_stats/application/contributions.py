"""Total contributions across every active year."""
import logging
from typing import List
from profile_stats.application.concurrency import gather_strict
from profile_stats.domain.github_interface import IGitHubClient
from profile_stats.domain.models import ContributionYearWindow


logger = logging.getLogger(__name__)


class YearlyContributionTotalizer:
    """Sums the per-year contribution totals of the authenticated user.

    Fails as a whole when the year list or any single year cannot be
    fetched; a partial sum is never returned.
    """

    def __init__(self, github_client: IGitHubClient):
        self._github_client = github_client

    async def windows(self) -> List[ContributionYearWindow]:
        """Fetch the active years and turn each into a UTC window."""
        years = await self._github_client.query_contribution_years()
        return [ContributionYearWindow.for_year(year) for year in sorted(set(years))]

    async def total(self) -> int:
        """Query every year window concurrently and sum the totals.

        Returns:
            Total contributions, 0 when the user has no recorded years

        Raises:
            GitHubAPIError: When the year list or any yearly total fails
        """
        windows = await self.windows()
        if not windows:
            logger.info("No contribution years recorded")
            return 0

        totals = await gather_strict(*(
            self._github_client.query_year_total(window.start, window.end)
            for window in windows
        ))
        for window, count in zip(windows, totals):
            logger.debug(f"{window.year}: {count} contributions")

        total = sum(totals)
        logger.info(f"Totalled {total} contributions over {len(windows)} years")
        return total
