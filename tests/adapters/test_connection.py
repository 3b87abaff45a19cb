"""
Tests for building a tracker from the workspace connection.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from tracksync.adapters.linear import LinearAdapter, TrackerFactory, WorkspaceConnection, connect_tracker
from tracksync.core.ports.config_provider import LinearConfig


NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def no_http_session():
    with patch("tracksync.adapters.linear.client.requests.Session"):
        yield


class TestWorkspaceConnection:
    """Tests for connection usability checks."""

    def test_usable(self):
        assert WorkspaceConnection(access_token="lin_api_x").unusable_reason(NOW) is None

    @pytest.mark.parametrize(
        "connection,reason",
        [
            (WorkspaceConnection(access_token=None), "No Linear access token"),
            (WorkspaceConnection(access_token="t", is_connected=False), "disconnected"),
            (WorkspaceConnection(access_token="t", integration_status="paused"), "paused"),
            (
                WorkspaceConnection(access_token="t", token_expires_at=NOW - timedelta(minutes=1)),
                "expired",
            ),
        ],
    )
    def test_unusable(self, connection, reason):
        assert reason in connection.unusable_reason(NOW)

    def test_naive_expiry_is_treated_as_utc(self):
        connection = WorkspaceConnection(
            access_token="t", token_expires_at=datetime(2025, 3, 1, 11, 0)
        )
        assert connection.is_expired(NOW)

    def test_from_config(self):
        connection = WorkspaceConnection.from_config(LinearConfig(api_key=""))
        assert connection.access_token is None


class TestConnectTracker:
    def test_no_connection(self):
        result = connect_tracker(None)
        assert result.is_err()
        assert "No active" in result.unwrap_err()

    def test_expired_token_fails_closed(self):
        connection = WorkspaceConnection(access_token="t", token_expires_at=NOW)

        result = connect_tracker(connection, now=NOW)

        assert result.is_err()
        assert "expired" in result.unwrap_err()

    def test_builds_adapter_with_connection_token(self):
        connection = WorkspaceConnection(access_token="lin_api_conn")

        result = connect_tracker(connection, LinearConfig(api_key="ignored", timeout=5), now=NOW)

        adapter = result.unwrap()
        assert isinstance(adapter, LinearAdapter)
        assert adapter.client.api_key == "lin_api_conn"
        assert adapter.client.timeout == 5


class TestTrackerFactory:
    """Tests for the cached tracker factory."""

    def test_caches_successful_build(self):
        calls = []

        def loader():
            calls.append(1)
            return WorkspaceConnection(access_token="lin_api_x")

        factory = TrackerFactory(loader, clock=lambda: NOW)

        first = factory().unwrap()
        second = factory().unwrap()

        assert first is second
        assert len(calls) == 1

    def test_failures_are_not_cached(self):
        connections = [None, WorkspaceConnection(access_token="lin_api_x")]
        factory = TrackerFactory(lambda: connections.pop(0), clock=lambda: NOW)

        assert factory().is_err()
        assert factory().is_ok()

    def test_expired_cached_tracker_is_rebuilt(self):
        clock = {"now": NOW}
        connection = WorkspaceConnection(access_token="lin_api_x", token_expires_at=NOW + timedelta(hours=1))
        factory = TrackerFactory(lambda: connection, clock=lambda: clock["now"])

        assert factory().is_ok()
        clock["now"] = NOW + timedelta(hours=2)

        result = factory()

        assert result.is_err()
        assert "expired" in result.unwrap_err()

    def test_refresh_drops_cache(self):
        factory = TrackerFactory(lambda: WorkspaceConnection(access_token="lin_api_x"), clock=lambda: NOW)
        first = factory().unwrap()

        factory.refresh()

        assert factory().unwrap() is not first
