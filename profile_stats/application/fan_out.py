"""Concurrent per-repository traffic and line-change collection."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple, TypeVar
from profile_stats.application.concurrency import gather_strict
from profile_stats.domain.exceptions import GitHubAPIError
from profile_stats.domain.github_interface import IGitHubClient
from profile_stats.domain.models import ContributorActivity, TrafficView


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class FanOutResult:
    """Reduced fan-out totals plus the repositories that were dropped."""
    views: int
    lines_changed: Tuple[int, int]
    failed_views: Tuple[str, ...] = ()
    failed_lines: Tuple[str, ...] = ()


def sum_views(results: Sequence[Sequence[TrafficView]]) -> int:
    """Sum daily view counts across repositories."""
    return sum(view.count for views in results for view in views)


def sum_lines_changed(results: Sequence[Sequence[ContributorActivity]]) -> Tuple[int, int]:
    """Sum added and deleted lines across weeks, contributors and repositories."""
    added = 0
    deleted = 0
    for activities in results:
        for activity in activities:
            for week in activity.weeks:
                added += week.added
                deleted += week.deleted
    return added, deleted


class FanOutExecutor:
    """Issues per-repository requests concurrently and tolerates failures.

    A failed repository is logged and left out of the sum; it never aborts
    the run. Per-task results are collected first and folded afterwards, so
    no accumulator is shared between tasks.
    """

    def __init__(
        self,
        github_client: IGitHubClient,
        max_concurrency: int = 10,
        request_timeout: Optional[float] = 30.0
    ):
        """Initialize the executor.

        Args:
            github_client: GitHub API client implementation
            max_concurrency: Maximum number of requests in flight
            request_timeout: Seconds allowed per repository request, None for no limit
        """
        self._github_client = github_client
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._request_timeout = request_timeout

    async def run(self, repos: Sequence[str]) -> FanOutResult:
        """Collect views and line changes for every repository.

        Args:
            repos: Final repository identifier list from the pagination walk

        Returns:
            FanOutResult with both reductions
        """
        (views, failed_views), (lines, failed_lines) = await gather_strict(
            self.total_views(repos),
            self.lines_changed(repos)
        )
        return FanOutResult(
            views=views,
            lines_changed=lines,
            failed_views=failed_views,
            failed_lines=failed_lines
        )

    async def total_views(self, repos: Sequence[str]) -> Tuple[int, Tuple[str, ...]]:
        """Returns the total traffic views and the repositories that failed."""
        results, failed = await self._collect(
            repos, self._github_client.fetch_traffic_views, "traffic views"
        )
        views = sum_views(results)
        logger.info(f"Counted {views} views across {len(results)}/{len(repos)} repositories")
        return views, failed

    async def lines_changed(self, repos: Sequence[str]) -> Tuple[Tuple[int, int], Tuple[str, ...]]:
        """Returns (added, deleted) lines and the repositories that failed."""
        results, failed = await self._collect(
            repos, self._github_client.fetch_contributor_activity, "contributor activity"
        )
        lines = sum_lines_changed(results)
        logger.info(
            f"Counted {lines[0]} added / {lines[1]} deleted lines across "
            f"{len(results)}/{len(repos)} repositories"
        )
        return lines, failed

    async def _collect(
        self,
        repos: Sequence[str],
        fetch: Callable[[str], Awaitable[List[T]]],
        kind: str
    ) -> Tuple[List[List[T]], Tuple[str, ...]]:
        outcomes = await gather_strict(*(self._fetch_one(fetch, repo, kind) for repo in repos))

        results: List[List[T]] = []
        failed: List[str] = []
        for repo, outcome in zip(repos, outcomes):
            if outcome is None:
                failed.append(repo)
            else:
                results.append(outcome)

        if failed:
            logger.warning(f"Dropped {kind} of {len(failed)} repositories: {', '.join(failed)}")
        return results, tuple(failed)

    async def _fetch_one(
        self,
        fetch: Callable[[str], Awaitable[List[T]]],
        repo: str,
        kind: str
    ) -> Optional[List[T]]:
        async with self._semaphore:
            try:
                return await asyncio.wait_for(fetch(repo), timeout=self._request_timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Timed out fetching {kind} for {repo}")
            except GitHubAPIError as e:
                logger.warning(f"Failed to fetch {kind} for {repo}: {e}")
        return None
