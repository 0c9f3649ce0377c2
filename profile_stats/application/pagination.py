"""Cursor-driven walk over the owned and contributed repository collections."""
import logging
from dataclasses import dataclass, field
from typing import AbstractSet, Iterable, List, Tuple
from profile_stats.application.language_aggregator import LanguageMap, merge_languages
from profile_stats.domain.exceptions import GitHubAPIError
from profile_stats.domain.github_interface import IGitHubClient
from profile_stats.domain.models import PaginationState, RepositoryRecord


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepositoryWalkResult:
    """Everything the pagination walk accumulates."""
    name: str
    repos: Tuple[str, ...] = ()
    stargazers: int = 0
    forks: int = 0
    languages: LanguageMap = field(default_factory=dict)
    pages: int = 0


class PaginationWalker:
    """Walks both repository collections page by page until neither has more.

    Requests are strictly sequential because each cursor comes from the
    previous response. Any query failure aborts the walk.
    """

    def __init__(
        self,
        github_client: IGitHubClient,
        include_contributed: bool = True,
        excluded_repos: AbstractSet[str] = frozenset(),
        excluded_langs: AbstractSet[str] = frozenset(),
        max_pages: int = 50
    ):
        """Initialize the walker.

        Args:
            github_client: GitHub API client implementation
            include_contributed: Query the contributed collection as well as owned repositories
            excluded_repos: Repository identifiers to skip
            excluded_langs: Lower-cased language names to skip
            max_pages: Upper bound on the number of combined queries
        """
        self._github_client = github_client
        self._include_contributed = include_contributed
        self._excluded_repos = excluded_repos
        self._excluded_langs = excluded_langs
        self._max_pages = max_pages

    async def walk(self) -> RepositoryWalkResult:
        """Fetch every page and fold it into the running totals.

        Returns:
            RepositoryWalkResult with the final repository list and histogram

        Raises:
            GitHubAPIError: When a query fails or pagination does not terminate
        """
        state = PaginationState.initial(self._include_contributed)
        result = None

        while not state.is_complete:
            if result is not None and result.pages >= self._max_pages:
                logger.error(f"Pagination still unfinished after {result.pages} pages")
                raise GitHubAPIError(
                    f"pagination did not terminate within {self._max_pages} pages"
                )

            page = await self._github_client.query_repository_page(
                PaginationState.as_query_cursor(state.owned_cursor),
                PaginationState.as_query_cursor(state.contributed_cursor),
                include_contributed=state.contributed_has_more
            )
            contributed = page.contributed if state.contributed_has_more else None

            if result is None:
                result = RepositoryWalkResult(name=page.name)

            # Contributed records are folded first; owned ones are applied on top
            records: List[RepositoryRecord] = []
            if contributed is not None:
                records.extend(contributed.records)
            if state.owned_has_more:
                records.extend(page.owned.records)
            result = self._fold(result, records)

            next_state = state.advance(page.owned, contributed)
            self._check_cursor_advanced(state, next_state)
            state = next_state

            logger.info(
                f"Fetched repository page {result.pages}: "
                f"{len(result.repos)} repositories so far"
            )

        logger.info(
            f"Pagination complete after {result.pages} pages: "
            f"{len(result.repos)} repositories, {len(result.languages)} languages"
        )
        return result

    def _fold(
        self,
        result: RepositoryWalkResult,
        records: Iterable[RepositoryRecord]
    ) -> RepositoryWalkResult:
        repos = list(result.repos)
        seen = set(repos)
        stargazers = result.stargazers
        forks = result.forks
        languages = result.languages

        for record in records:
            identifier = record.name_with_owner
            if identifier in self._excluded_repos:
                logger.debug(f"Skipping excluded repository {identifier}")
                continue
            if identifier in seen:
                logger.debug(f"Skipping duplicate repository {identifier}")
                continue
            seen.add(identifier)
            repos.append(identifier)
            stargazers += record.stargazer_count
            forks += record.fork_count
            languages = merge_languages(languages, record.language_edges, self._excluded_langs)

        return RepositoryWalkResult(
            name=result.name,
            repos=tuple(repos),
            stargazers=stargazers,
            forks=forks,
            languages=languages,
            pages=result.pages + 1
        )

    @staticmethod
    def _check_cursor_advanced(state: PaginationState, next_state: PaginationState) -> None:
        """A side that still has pages must have moved to a new cursor."""
        if next_state.owned_has_more and next_state.owned_cursor == state.owned_cursor:
            raise GitHubAPIError("owned repositories reported more pages without a new cursor")
        if (next_state.contributed_has_more
                and next_state.contributed_cursor == state.contributed_cursor):
            raise GitHubAPIError("contributed repositories reported more pages without a new cursor")
