"""Domain models representing core business entities."""
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Optional, Tuple


START_CURSOR = "start"


@dataclass(frozen=True)
class LanguageEdge:
    """One (language, byte size) pair attributed to a single repository."""
    name: str
    size: int
    color: str


@dataclass(frozen=True)
class RepositoryRecord:
    """Immutable entity for one repository read from a repository page.

    Records are never merged; the walker folds them into running totals.
    """
    name_with_owner: str
    fork_count: int
    stargazer_count: int
    language_edges: Tuple[LanguageEdge, ...] = ()

    @property
    def owner(self) -> str:
        """Returns the owner part of the identifier."""
        return self.name_with_owner.split("/", 1)[0]

    @property
    def name(self) -> str:
        """Returns the repository name without its owner."""
        return self.name_with_owner.split("/", 1)[-1]


@dataclass(frozen=True)
class RepositoryPage:
    """One page of a repository collection (owned or contributed)."""
    records: Tuple[RepositoryRecord, ...] = ()
    has_next_page: bool = False
    end_cursor: Optional[str] = None


@dataclass(frozen=True)
class RepositoryOverviewPage:
    """Response of one combined repositories-overview query."""
    name: str
    owned: RepositoryPage
    contributed: RepositoryPage = field(default_factory=RepositoryPage)


@dataclass(frozen=True)
class PaginationState:
    """Cursor positions of the owned and contributed collections.

    Cursors hold ``START_CURSOR`` until the first page of a collection is
    consumed. The state is terminal once neither side has more pages.
    """
    owned_cursor: str = START_CURSOR
    contributed_cursor: str = START_CURSOR
    owned_has_more: bool = True
    contributed_has_more: bool = True

    @classmethod
    def initial(cls, include_contributed: bool = True) -> 'PaginationState':
        """Returns the state before any page has been fetched."""
        return cls(contributed_has_more=include_contributed)

    @property
    def is_complete(self) -> bool:
        return not (self.owned_has_more or self.contributed_has_more)

    @staticmethod
    def as_query_cursor(cursor: str) -> Optional[str]:
        """Translates a stored cursor into the value sent with a query."""
        return None if cursor == START_CURSOR else cursor

    def advance(
        self,
        owned: RepositoryPage,
        contributed: Optional[RepositoryPage] = None
    ) -> 'PaginationState':
        """Returns the state after consuming the given pages.

        A collection that already reported its last page keeps its cursor,
        so a consumed cursor is never handed out again.

        Args:
            owned: Page of owned repositories just fetched
            contributed: Page of contributed repositories, if queried

        Returns:
            The next PaginationState
        """
        state = self
        if self.owned_has_more:
            state = replace(
                state,
                owned_cursor=owned.end_cursor or state.owned_cursor,
                owned_has_more=owned.has_next_page
            )
        if self.contributed_has_more and contributed is not None:
            state = replace(
                state,
                contributed_cursor=contributed.end_cursor or state.contributed_cursor,
                contributed_has_more=contributed.has_next_page
            )
        return state


@dataclass(frozen=True)
class LanguageAggregate:
    """Running per-language totals, replaced as pages are merged."""
    name: str
    size: int
    occurrences: int
    color: str


@dataclass(frozen=True)
class Language:
    """Finalized language entry with its share of the whole histogram."""
    name: str
    size: int
    occurrences: int
    color: str
    proportion: float


@dataclass(frozen=True)
class ContributionYearWindow:
    """Half-open UTC interval covering one calendar year."""
    year: int
    start: datetime
    end: datetime

    @classmethod
    def for_year(cls, year: int) -> 'ContributionYearWindow':
        return cls(
            year=year,
            start=datetime(year, 1, 1, tzinfo=timezone.utc),
            end=datetime(year + 1, 1, 1, tzinfo=timezone.utc)
        )


@dataclass(frozen=True)
class ContributionDay:
    date: date
    contribution_count: int
    color: str


@dataclass(frozen=True)
class CalendarWeek:
    days: Tuple[ContributionDay, ...] = ()


@dataclass(frozen=True)
class TrafficView:
    """Daily traffic-view entry of a repository."""
    timestamp: datetime
    count: int
    uniques: int = 0


@dataclass(frozen=True)
class WeeklyCodeChange:
    added: int
    deleted: int


@dataclass(frozen=True)
class ContributorActivity:
    """Weekly added/deleted line counts of one contributor to one repository."""
    login: Optional[str]
    weeks: Tuple[WeeklyCodeChange, ...] = ()


@dataclass(frozen=True)
class StatsSnapshot:
    """Immutable aggregate of a user's GitHub activity.

    Built exactly once per run and handed to the renderer.
    """
    name: str
    stargazers: int
    forks: int
    total_contributions: int
    languages: Tuple[Language, ...]
    repos: Tuple[str, ...]
    lines_changed: Tuple[int, int]
    views: int
    contribution_calendar: Tuple[CalendarWeek, ...]

    @property
    def total_lines_changed(self) -> int:
        """Returns added plus deleted lines."""
        return self.lines_changed[0] + self.lines_changed[1]
