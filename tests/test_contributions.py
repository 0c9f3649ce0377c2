"""Tests for the yearly contribution totalizer."""
import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock
import pytest
from profile_stats.application.contributions import YearlyContributionTotalizer
from profile_stats.domain.exceptions import GitHubAPIError
from profile_stats.domain.github_interface import IGitHubClient


@pytest.fixture
def mock_client():
    return AsyncMock(spec=IGitHubClient)


@pytest.mark.asyncio
async def test_total_sums_every_year(mock_client):
    """Yearly totals {2022: 40, 2023: 110} give 150."""
    totals = {2022: 40, 2023: 110}
    mock_client.query_contribution_years.return_value = [2023, 2022]

    async def year_total(start, end):
        return totals[start.year]

    mock_client.query_year_total.side_effect = year_total

    assert await YearlyContributionTotalizer(mock_client).total() == 150


@pytest.mark.asyncio
async def test_windows_are_half_open_utc_years(mock_client):
    mock_client.query_contribution_years.return_value = [2021]
    mock_client.query_year_total.return_value = 5

    await YearlyContributionTotalizer(mock_client).total()

    mock_client.query_year_total.assert_awaited_once_with(
        datetime(2021, 1, 1, tzinfo=timezone.utc),
        datetime(2022, 1, 1, tzinfo=timezone.utc)
    )


@pytest.mark.asyncio
async def test_no_years_means_zero(mock_client):
    mock_client.query_contribution_years.return_value = []

    assert await YearlyContributionTotalizer(mock_client).total() == 0
    mock_client.query_year_total.assert_not_called()


@pytest.mark.asyncio
async def test_year_list_failure_is_fatal(mock_client):
    mock_client.query_contribution_years.side_effect = GitHubAPIError("Bad credentials", status=401)

    with pytest.raises(GitHubAPIError):
        await YearlyContributionTotalizer(mock_client).total()


@pytest.mark.asyncio
async def test_single_year_failure_aborts_and_cancels_others(mock_client):
    """No partial sum: one failed year fails the whole total."""
    mock_client.query_contribution_years.return_value = [2020, 2021]
    cancelled = asyncio.Event()

    async def year_total(start, end):
        if start.year == 2020:
            raise GitHubAPIError("timeout")
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise
        return 1

    mock_client.query_year_total.side_effect = year_total

    with pytest.raises(GitHubAPIError):
        await YearlyContributionTotalizer(mock_client).total()
    assert cancelled.is_set()
