"""Tests for the fan-out executor."""
import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock
import pytest
from profile_stats.application.fan_out import FanOutExecutor, sum_lines_changed, sum_views
from profile_stats.domain.exceptions import GitHubAPIError
from profile_stats.domain.github_interface import IGitHubClient
from profile_stats.domain.models import ContributorActivity, TrafficView, WeeklyCodeChange


def _views(*counts):
    return [
        TrafficView(timestamp=datetime(2024, 1, day + 1, tzinfo=timezone.utc), count=count)
        for day, count in enumerate(counts)
    ]


def _activity(*weeks, login="octo"):
    return ContributorActivity(
        login=login,
        weeks=tuple(WeeklyCodeChange(added=added, deleted=deleted) for added, deleted in weeks)
    )


@pytest.fixture
def mock_client():
    client = AsyncMock(spec=IGitHubClient)
    client.fetch_traffic_views.return_value = []
    client.fetch_contributor_activity.return_value = []
    return client


@pytest.mark.asyncio
async def test_failed_traffic_fetch_contributes_zero(mock_client):
    """One traffic fetch fails, the other returns [3, 4, 5]."""
    async def views(repo):
        if repo == "octo/bad":
            raise GitHubAPIError("Not Found", status=404, repository=repo)
        return _views(3, 4, 5)

    mock_client.fetch_traffic_views.side_effect = views

    result = await FanOutExecutor(mock_client).run(["octo/bad", "octo/good"])

    assert result.views == 12
    assert result.failed_views == ("octo/bad",)
    assert result.failed_lines == ()


@pytest.mark.asyncio
async def test_lines_changed_sum_every_week_and_contributor(mock_client):
    async def activity(repo):
        if repo == "octo/a":
            return [_activity((10, 1), (5, 2)), _activity((1, 1), login="other")]
        return [_activity((100, 50))]

    mock_client.fetch_contributor_activity.side_effect = activity

    result = await FanOutExecutor(mock_client).run(["octo/a", "octo/b"])

    assert result.lines_changed == (116, 54)


@pytest.mark.asyncio
async def test_failed_activity_fetch_is_tolerated(mock_client):
    async def activity(repo):
        if repo == "octo/a":
            raise GitHubAPIError("Malformed contributor statistics payload", repository=repo)
        return [_activity((7, 3))]

    mock_client.fetch_contributor_activity.side_effect = activity

    result = await FanOutExecutor(mock_client).run(["octo/a", "octo/b"])

    assert result.lines_changed == (7, 3)
    assert result.failed_lines == ("octo/a",)


@pytest.mark.asyncio
async def test_reduction_is_order_independent(mock_client):
    """Results arriving in a different order give the same totals."""
    delays = {"octo/a": 0.03, "octo/b": 0.0, "octo/c": 0.01}
    counts = {"octo/a": (1, 2), "octo/b": (3,), "octo/c": (4, 5, 6)}

    async def views(repo):
        await asyncio.sleep(delays[repo])
        return _views(*counts[repo])

    async def activity(repo):
        await asyncio.sleep(delays[repo])
        return [_activity((len(repo), 1))]

    mock_client.fetch_traffic_views.side_effect = views
    mock_client.fetch_contributor_activity.side_effect = activity

    forward = await FanOutExecutor(mock_client).run(["octo/a", "octo/b", "octo/c"])
    delays = {"octo/a": 0.0, "octo/b": 0.03, "octo/c": 0.01}
    backward = await FanOutExecutor(mock_client).run(["octo/c", "octo/b", "octo/a"])

    assert forward.views == backward.views == 21
    assert forward.lines_changed == backward.lines_changed == (18, 3)


@pytest.mark.asyncio
async def test_slow_repository_times_out(mock_client):
    async def views(repo):
        if repo == "octo/slow":
            await asyncio.sleep(1)
        return _views(2)

    mock_client.fetch_traffic_views.side_effect = views

    result = await FanOutExecutor(mock_client, request_timeout=0.05).run(["octo/slow", "octo/fast"])

    assert result.views == 2
    assert result.failed_views == ("octo/slow",)


@pytest.mark.asyncio
async def test_concurrency_is_bounded(mock_client):
    in_flight = 0
    peak = 0

    async def views(repo):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return _views(1)

    mock_client.fetch_traffic_views.side_effect = views

    views_total, failed = await FanOutExecutor(mock_client, max_concurrency=2).total_views(
        [f"octo/r{i}" for i in range(6)]
    )

    assert views_total == 6
    assert failed == ()
    assert peak == 2


@pytest.mark.asyncio
async def test_unexpected_errors_propagate(mock_client):
    mock_client.fetch_traffic_views.side_effect = RuntimeError("bug")

    with pytest.raises(RuntimeError):
        await FanOutExecutor(mock_client).run(["octo/a"])


@pytest.mark.asyncio
async def test_empty_repository_list(mock_client):
    result = await FanOutExecutor(mock_client).run([])

    assert result.views == 0
    assert result.lines_changed == (0, 0)
    mock_client.fetch_traffic_views.assert_not_called()


def test_reducers():
    assert sum_views([_views(1, 2), [], _views(3)]) == 6
    assert sum_lines_changed([[_activity((1, 2), (3, 4))], [_activity()]]) == (4, 6)
