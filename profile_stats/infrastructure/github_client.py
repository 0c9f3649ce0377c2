"""GitHub GraphQL and REST API client implementation with retry logic."""
import asyncio
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional
import aiohttp
from gql import gql, Client
from gql.client import AsyncClientSession
from gql.transport.aiohttp import AIOHTTPTransport
from gql.transport.exceptions import TransportError, TransportQueryError, TransportServerError
from graphql import DocumentNode
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential
)
from profile_stats.domain.exceptions import GitHubAPIError, RateLimitException, StatsPendingException
from profile_stats.domain.github_interface import IGitHubClient
from profile_stats.domain.models import (
    CalendarWeek,
    ContributionDay,
    ContributorActivity,
    LanguageEdge,
    RepositoryOverviewPage,
    RepositoryPage,
    RepositoryRecord,
    TrafficView,
    WeeklyCodeChange,
)
from profile_stats.infrastructure.configuration import DEFAULT_API_URL


logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE_COLOR = "#ededed"
_USER_AGENT = "profile-stats/0.1"

_REPOSITORY_FIELDS = """
    fragment RepositoryFields on Repository {
        nameWithOwner
        stargazers {
            totalCount
        }
        forkCount
        languages(first: 10, orderBy: {field: SIZE, direction: DESC}) {
            edges {
                size
                node {
                    name
                    color
                }
            }
        }
    }
"""

_OWNED_REPOSITORIES = """
        repositories(
            first: 100
            orderBy: {field: UPDATED_AT, direction: DESC}
            isFork: false
            after: $ownedCursor
        ) {
            pageInfo {
                hasNextPage
                endCursor
            }
            nodes {
                ...RepositoryFields
            }
        }
"""

_CONTRIBUTED_REPOSITORIES = """
        repositoriesContributedTo(
            first: 100
            includeUserRepositories: false
            orderBy: {field: UPDATED_AT, direction: DESC}
            contributionTypes: [COMMIT, PULL_REQUEST, REPOSITORY, PULL_REQUEST_REVIEW]
            after: $contributedCursor
        ) {
            pageInfo {
                hasNextPage
                endCursor
            }
            nodes {
                ...RepositoryFields
            }
        }
"""


def _timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def _parse_repository(node: Dict[str, Any]) -> RepositoryRecord:
    edges = []
    for edge in (node.get("languages") or {}).get("edges") or []:
        language = edge["node"]
        edges.append(LanguageEdge(
            name=language["name"],
            size=int(edge["size"]),
            color=language.get("color") or DEFAULT_LANGUAGE_COLOR
        ))
    return RepositoryRecord(
        name_with_owner=node["nameWithOwner"],
        fork_count=int(node.get("forkCount") or 0),
        stargazer_count=int((node.get("stargazers") or {}).get("totalCount") or 0),
        language_edges=tuple(edges)
    )


def _parse_repository_page(connection: Optional[Dict[str, Any]]) -> RepositoryPage:
    if connection is None:
        return RepositoryPage()
    page_info = connection.get("pageInfo") or {}
    return RepositoryPage(
        records=tuple(_parse_repository(node) for node in connection.get("nodes") or [] if node),
        has_next_page=bool(page_info.get("hasNextPage")),
        end_cursor=page_info.get("endCursor")
    )


def parse_repository_overview(result: Dict[str, Any]) -> RepositoryOverviewPage:
    """Transform a repositories-overview response into domain entities."""
    try:
        viewer = result["viewer"]
        return RepositoryOverviewPage(
            name=viewer.get("name") or viewer.get("login") or "No Name",
            owned=_parse_repository_page(viewer.get("repositories")),
            contributed=_parse_repository_page(viewer.get("repositoriesContributedTo"))
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise GitHubAPIError(f"Malformed repositories overview response: {e!r}") from e


def parse_contribution_years(result: Dict[str, Any]) -> List[int]:
    try:
        years = result["viewer"]["contributionsCollection"]["contributionYears"]
        return [int(year) for year in years or []]
    except (KeyError, TypeError, ValueError) as e:
        raise GitHubAPIError(f"Malformed contribution years response: {e!r}") from e


def parse_year_total(result: Dict[str, Any]) -> int:
    try:
        collection = result["viewer"]["contributionsCollection"]
        return int(collection["contributionCalendar"]["totalContributions"])
    except (KeyError, TypeError, ValueError) as e:
        raise GitHubAPIError(f"Malformed contributions response: {e!r}") from e


def parse_contribution_calendar(result: Dict[str, Any]) -> List[CalendarWeek]:
    try:
        user = result["user"]
        if user is None:
            raise GitHubAPIError("User not found for contribution calendar")
        weeks = user["contributionsCollection"]["contributionCalendar"]["weeks"]
        return [
            CalendarWeek(days=tuple(
                ContributionDay(
                    date=date.fromisoformat(day["date"]),
                    contribution_count=int(day["contributionCount"]),
                    color=day["color"]
                )
                for day in week["contributionDays"]
            ))
            for week in weeks
        ]
    except (KeyError, TypeError, ValueError) as e:
        raise GitHubAPIError(f"Malformed contribution calendar response: {e!r}") from e


def parse_traffic_views(payload: Any, repository: str) -> List[TrafficView]:
    """Transform a /traffic/views payload; an empty payload has no views."""
    if not payload:
        return []
    try:
        return [
            TrafficView(
                timestamp=datetime.fromisoformat(view["timestamp"].replace("Z", "+00:00")),
                count=int(view["count"]),
                uniques=int(view.get("uniques") or 0)
            )
            for view in payload.get("views") or []
        ]
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise GitHubAPIError(f"Malformed traffic views payload: {e!r}", repository=repository) from e


def parse_contributor_activity(payload: Any, repository: str) -> List[ContributorActivity]:
    """Transform a /stats/contributors payload into per-contributor weeks."""
    if not payload:
        return []
    if not isinstance(payload, list):
        raise GitHubAPIError("Contributor statistics payload is not a list", repository=repository)
    try:
        return [
            ContributorActivity(
                login=(entry.get("author") or {}).get("login"),
                weeks=tuple(
                    WeeklyCodeChange(added=int(week.get("a", 0)), deleted=int(week.get("d", 0)))
                    for week in entry.get("weeks") or []
                )
            )
            for entry in payload
        ]
    except (AttributeError, TypeError, ValueError) as e:
        raise GitHubAPIError(f"Malformed contributor statistics payload: {e!r}", repository=repository) from e


class GitHubClient(IGitHubClient):
    """GitHub API client with retry mechanisms and per-request timeouts.

    Implements the IGitHubClient port, providing an anti-corruption layer
    between the domain and GitHub's API. GraphQL queries go through one gql
    session and REST resources through one aiohttp session; both are opened
    lazily and shared by concurrent callers.
    """

    CONTRIBUTION_YEARS_QUERY = gql("""
        query ContributionYears {
            viewer {
                contributionsCollection {
                    contributionYears
                }
            }
        }
    """)

    CONTRIBUTIONS_BY_YEAR_QUERY = gql("""
        query ContributionsByYear($from: DateTime!, $to: DateTime!) {
            viewer {
                contributionsCollection(from: $from, to: $to) {
                    contributionCalendar {
                        totalContributions
                    }
                }
            }
        }
    """)

    CONTRIBUTION_CALENDAR_QUERY = gql("""
        query ContributionCalendar($login: String!) {
            user(login: $login) {
                contributionsCollection {
                    contributionCalendar {
                        weeks {
                            contributionDays {
                                date
                                contributionCount
                                color
                            }
                        }
                    }
                }
            }
        }
    """)

    REPOS_OVERVIEW_QUERY = gql(
        "query ReposOverview($ownedCursor: String, $contributedCursor: String) {"
        " viewer { login name "
        + _OWNED_REPOSITORIES
        + _CONTRIBUTED_REPOSITORIES
        + " } }"
        + _REPOSITORY_FIELDS
    )

    OWNED_REPOS_QUERY = gql(
        "query OwnedRepos($ownedCursor: String) {"
        " viewer { login name "
        + _OWNED_REPOSITORIES
        + " } }"
        + _REPOSITORY_FIELDS
    )

    def __init__(
        self,
        access_token: str,
        api_url: str = DEFAULT_API_URL,
        request_timeout: float = 30.0,
        graphql_retry_attempts: int = 3,
        rest_retry_attempts: int = 5
    ):
        """Initialize GitHub client.

        Args:
            access_token: GitHub personal access token
            api_url: Base URL of the GitHub API
            request_timeout: Seconds allowed per request
            graphql_retry_attempts: Attempts per GraphQL query (failures there are fatal)
            rest_retry_attempts: Attempts per REST request (failures there are tolerated)
        """
        self._access_token = access_token
        self._api_url = api_url.rstrip("/")
        self._request_timeout = request_timeout
        self._graphql_retry_attempts = graphql_retry_attempts
        self._rest_retry_attempts = rest_retry_attempts
        self._transport: Optional[AIOHTTPTransport] = None
        self._client: Optional[Client] = None
        self._session: Optional[AsyncClientSession] = None
        self._http: Optional[aiohttp.ClientSession] = None
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> 'GitHubClient':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._access_token}",
            "User-Agent": _USER_AGENT,
        }

    async def _init_client(self) -> AsyncClientSession:
        """Initialize the GraphQL session (lazy initialization)."""
        async with self._lock:
            if self._session is None:
                self._transport = AIOHTTPTransport(
                    url=f"{self._api_url}/graphql",
                    headers=self._headers(),
                    timeout=int(self._request_timeout)
                )
                self._client = Client(
                    transport=self._transport,
                    fetch_schema_from_transport=False,
                    execute_timeout=self._request_timeout
                )
                self._session = await self._client.connect_async(reconnecting=False)
            return self._session

    async def _init_http(self) -> aiohttp.ClientSession:
        """Initialize the REST session (lazy initialization)."""
        async with self._lock:
            if self._http is None:
                self._http = aiohttp.ClientSession(
                    headers={**self._headers(), "Accept": "application/vnd.github+json"},
                    timeout=aiohttp.ClientTimeout(total=self._request_timeout)
                )
            return self._http

    def _retrying(self, attempts: int) -> AsyncRetrying:
        return AsyncRetrying(
            retry=retry_if_exception_type((
                RateLimitException,
                StatsPendingException,
                asyncio.TimeoutError,
                aiohttp.ClientConnectionError
            )),
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=1, min=1, max=30),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True
        )

    async def _execute_query(
        self,
        document: DocumentNode,
        variables: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Execute GraphQL query with retry logic.

        Args:
            document: Parsed gql document
            variables: Values for the document's variables

        Returns:
            Query result dictionary

        Raises:
            GitHubAPIError: When the query keeps failing or GitHub reports errors
        """
        try:
            async for attempt in self._retrying(self._graphql_retry_attempts):
                with attempt:
                    return await self._execute_once(document, variables)
        except (asyncio.TimeoutError, aiohttp.ClientError) as e:
            logger.error(f"GraphQL request failed: {e!r}")
            raise GitHubAPIError(f"GraphQL request failed: {e!r}") from e

    async def _execute_once(
        self,
        document: DocumentNode,
        variables: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        session = await self._init_client()
        try:
            return await session.execute(document, variable_values=variables)
        except TransportQueryError as e:
            logger.error(f"GraphQL query returned errors: {e}")
            if "rate limit" in str(e).lower():
                raise RateLimitException(str(e)) from e
            raise GitHubAPIError(f"GraphQL query returned errors: {e}") from e
        except TransportServerError as e:
            if "rate limit" in str(e).lower():
                raise RateLimitException(str(e), status=e.code) from e
            raise GitHubAPIError(f"GraphQL request failed: {e}", status=e.code) from e
        except TransportError as e:
            raise GitHubAPIError(f"GraphQL transport error: {e}") from e

    async def _get_json(self, path: str, repository: str) -> Any:
        """GET a REST resource with retry logic; returns None for 204."""
        try:
            async for attempt in self._retrying(self._rest_retry_attempts):
                with attempt:
                    return await self._get_once(path, repository)
        except (asyncio.TimeoutError, aiohttp.ClientError) as e:
            raise GitHubAPIError(f"REST request failed: {e!r}", repository=repository) from e

    async def _get_once(self, path: str, repository: str) -> Any:
        http = await self._init_http()
        async with http.get(f"{self._api_url}{path}") as response:
            if response.status == 202:
                raise StatsPendingException(
                    "Statistics are still being computed", status=202, repository=repository
                )
            if response.status == 204:
                return None
            if response.status >= 400:
                text = await response.text(errors="replace")
                if response.status in (403, 429) and "rate limit" in text.lower():
                    raise RateLimitException(
                        "GitHub API rate limit exceeded", status=response.status, repository=repository
                    )
                raise GitHubAPIError(
                    f"GitHub API request failed: {text[:200]}",
                    status=response.status,
                    repository=repository
                )
            try:
                return await response.json(content_type=None)
            except ValueError as e:
                raise GitHubAPIError(
                    "Response is not valid JSON", status=response.status, repository=repository
                ) from e

    async def query_repository_page(
        self,
        owned_cursor: Optional[str],
        contributed_cursor: Optional[str],
        include_contributed: bool = True
    ) -> RepositoryOverviewPage:
        if include_contributed:
            result = await self._execute_query(
                self.REPOS_OVERVIEW_QUERY,
                {"ownedCursor": owned_cursor, "contributedCursor": contributed_cursor}
            )
        else:
            result = await self._execute_query(self.OWNED_REPOS_QUERY, {"ownedCursor": owned_cursor})
        return parse_repository_overview(result)

    async def query_contribution_years(self) -> List[int]:
        result = await self._execute_query(self.CONTRIBUTION_YEARS_QUERY)
        return parse_contribution_years(result)

    async def query_year_total(self, start: datetime, end: datetime) -> int:
        result = await self._execute_query(
            self.CONTRIBUTIONS_BY_YEAR_QUERY,
            {"from": _timestamp(start), "to": _timestamp(end)}
        )
        return parse_year_total(result)

    async def query_contribution_calendar(self, login: str) -> List[CalendarWeek]:
        result = await self._execute_query(self.CONTRIBUTION_CALENDAR_QUERY, {"login": login})
        return parse_contribution_calendar(result)

    async def fetch_traffic_views(self, repository: str) -> List[TrafficView]:
        payload = await self._get_json(f"/repos/{repository}/traffic/views", repository)
        return parse_traffic_views(payload, repository)

    async def fetch_contributor_activity(self, repository: str) -> List[ContributorActivity]:
        payload = await self._get_json(f"/repos/{repository}/stats/contributors", repository)
        return parse_contributor_activity(payload, repository)

    async def close(self) -> None:
        """Close the GraphQL client, transport and REST session."""
        if self._client is not None and self._session is not None:
            await self._client.close_async()
        self._session = None
        self._client = None
        self._transport = None
        if self._http is not None:
            await self._http.close()
            self._http = None
