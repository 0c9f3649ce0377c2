"""Tests for domain models."""
import dataclasses
from datetime import datetime, timezone
import pytest
from profile_stats.domain.models import (
    START_CURSOR,
    ContributionYearWindow,
    PaginationState,
    RepositoryPage,
    RepositoryRecord,
    StatsSnapshot,
)


def test_repository_record_creation():
    """Test creating an immutable RepositoryRecord entity."""
    repo = RepositoryRecord(
        name_with_owner="facebook/react",
        fork_count=40000,
        stargazer_count=200000
    )

    assert repo.owner == "facebook"
    assert repo.name == "react"
    assert repo.language_edges == ()

    with pytest.raises(dataclasses.FrozenInstanceError):
        repo.fork_count = 1


def test_initial_pagination_state():
    """Both cursors start at the start marker."""
    state = PaginationState.initial()

    assert state.owned_cursor == START_CURSOR
    assert state.contributed_cursor == START_CURSOR
    assert not state.is_complete
    assert PaginationState.as_query_cursor(state.owned_cursor) is None


def test_initial_state_without_contributed():
    """Excluding contributed repositories marks that side as finished."""
    state = PaginationState.initial(include_contributed=False)

    assert state.owned_has_more
    assert not state.contributed_has_more


def test_pagination_state_advance():
    """Test advancing cursors from fetched pages."""
    state = PaginationState.initial()

    state = state.advance(
        RepositoryPage(has_next_page=True, end_cursor="o1"),
        RepositoryPage(has_next_page=False, end_cursor="c1")
    )

    assert state.owned_cursor == "o1"
    assert state.owned_has_more
    assert state.contributed_cursor == "c1"
    assert not state.contributed_has_more
    assert PaginationState.as_query_cursor(state.owned_cursor) == "o1"


def test_finished_side_keeps_its_cursor():
    """A finished collection ignores later pages."""
    state = PaginationState(
        owned_cursor="o2",
        contributed_cursor="c1",
        owned_has_more=True,
        contributed_has_more=False
    )

    state = state.advance(
        RepositoryPage(has_next_page=False, end_cursor="o3"),
        RepositoryPage(has_next_page=True, end_cursor="c9")
    )

    assert state.contributed_cursor == "c1"
    assert not state.contributed_has_more
    assert state.is_complete


def test_contribution_year_window():
    """Test year windows are half-open UTC intervals."""
    window = ContributionYearWindow.for_year(2023)

    assert window.start == datetime(2023, 1, 1, tzinfo=timezone.utc)
    assert window.end == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_snapshot_is_immutable():
    """Test StatsSnapshot cannot be modified after construction."""
    snapshot = StatsSnapshot(
        name="Octo Cat",
        stargazers=7,
        forks=1,
        total_contributions=150,
        languages=(),
        repos=("octo/one",),
        lines_changed=(10, 4),
        views=12,
        contribution_calendar=()
    )

    assert snapshot.total_lines_changed == 14
    with pytest.raises(dataclasses.FrozenInstanceError):
        snapshot.views = 0
