"""Stats service orchestrating the whole aggregation run."""
import logging
import time
from typing import AbstractSet, Optional, Sequence, Tuple
from profile_stats.application.concurrency import gather_strict
from profile_stats.application.contributions import YearlyContributionTotalizer
from profile_stats.application.fan_out import FanOutExecutor, FanOutResult
from profile_stats.application.language_aggregator import finalize_languages
from profile_stats.application.pagination import PaginationWalker, RepositoryWalkResult
from profile_stats.domain.exceptions import AggregationError, GitHubAPIError
from profile_stats.domain.github_interface import IGitHubClient
from profile_stats.domain.models import CalendarWeek, StatsSnapshot


logger = logging.getLogger(__name__)


class StatsService:
    """Application service producing one StatsSnapshot per run.

    Runs the yearly totals, the calendar fetch and the pagination walk
    concurrently; the fan-out starts once the repository list is final.
    Any required step failing cancels its siblings and surfaces as a single
    AggregationError.
    """

    def __init__(
        self,
        github_client: IGitHubClient,
        login: str,
        include_contributed: bool = True,
        excluded_repos: AbstractSet[str] = frozenset(),
        excluded_langs: AbstractSet[str] = frozenset(),
        language_limit: Optional[int] = 10,
        max_concurrency: int = 10,
        request_timeout: Optional[float] = 30.0,
        max_pages: int = 50
    ):
        """Initialize stats service.

        Args:
            github_client: GitHub API client implementation
            login: User whose contribution calendar is fetched
            include_contributed: Also walk repositories the user contributed to
            excluded_repos: Repository identifiers to leave out
            excluded_langs: Lower-cased language names to leave out
            language_limit: Number of ranked languages kept in the snapshot
            max_concurrency: Fan-out concurrency bound
            request_timeout: Seconds allowed per fan-out request
            max_pages: Pagination iteration cap
        """
        self._github_client = github_client
        self._login = login
        self._language_limit = language_limit
        self._walker = PaginationWalker(
            github_client,
            include_contributed=include_contributed,
            excluded_repos=excluded_repos,
            excluded_langs=excluded_langs,
            max_pages=max_pages
        )
        self._fan_out = FanOutExecutor(
            github_client,
            max_concurrency=max_concurrency,
            request_timeout=request_timeout
        )
        self._totalizer = YearlyContributionTotalizer(github_client)

    async def collect_stats(self) -> StatsSnapshot:
        """Collect every statistic and assemble the snapshot.

        Returns:
            The complete StatsSnapshot

        Raises:
            AggregationError: When any required step fails
        """
        start_time = time.time()
        logger.info(f"Collecting GitHub statistics for {self._login}")

        try:
            total_contributions, calendar, (walk, fan_out) = await gather_strict(
                self._totalizer.total(),
                self.fetch_calendar(),
                self._walk_then_fan_out()
            )
        except GitHubAPIError as e:
            logger.error(f"Aggregation failed: {e}")
            raise AggregationError(f"Failed to collect GitHub statistics: {e}") from e

        snapshot = self._assemble(walk, fan_out, total_contributions, calendar)

        duration = time.time() - start_time
        logger.info(
            f"Collected stats for {snapshot.name} in {duration:.2f} seconds: "
            f"{len(snapshot.repos)} repos, {snapshot.stargazers} stars, "
            f"{snapshot.total_contributions} contributions"
        )
        return snapshot

    async def fetch_calendar(self) -> Tuple[CalendarWeek, ...]:
        """Fetch the contribution calendar of the configured login."""
        weeks = await self._github_client.query_contribution_calendar(self._login)
        logger.info(f"Fetched contribution calendar with {len(weeks)} weeks")
        return tuple(weeks)

    async def _walk_then_fan_out(self) -> Tuple[RepositoryWalkResult, FanOutResult]:
        walk = await self._walker.walk()
        fan_out = await self._fan_out.run(walk.repos)
        return walk, fan_out

    def _assemble(
        self,
        walk: Optional[RepositoryWalkResult],
        fan_out: Optional[FanOutResult],
        total_contributions: Optional[int],
        calendar: Optional[Sequence[CalendarWeek]]
    ) -> StatsSnapshot:
        missing = [
            label
            for label, value in (
                ("repositories", walk),
                ("views and lines changed", fan_out),
                ("total contributions", total_contributions),
                ("contribution calendar", calendar),
            )
            if value is None
        ]
        if missing:
            raise AggregationError(f"Cannot assemble snapshot, missing: {', '.join(missing)}")

        return StatsSnapshot(
            name=walk.name,
            stargazers=walk.stargazers,
            forks=walk.forks,
            total_contributions=total_contributions,
            languages=finalize_languages(walk.languages, self._language_limit),
            repos=walk.repos,
            lines_changed=fan_out.lines_changed,
            views=fan_out.views,
            contribution_calendar=tuple(calendar)
        )

    async def close(self) -> None:
        """Close connections."""
        await self._github_client.close()
