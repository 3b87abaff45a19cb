"""
Tests for LinearApiClient.

Tests GraphQL API client with mocked HTTP responses.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from tracksync.adapters.linear.client import (
    LinearApiClient,
    LinearRateLimiter,
    calculate_delay,
    get_retry_after,
)
from tracksync.core.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    MalformedResponseError,
    RateLimitError,
    RemoteError,
    RemoteNotFoundError,
    TransientError,
)


def make_response(status_code=200, body=None, headers=None, json_error=False):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.headers = headers or {}
    response.text = "" if body is None else str(body)
    if json_error:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    with patch("tracksync.adapters.linear.client.requests.Session") as session_cls:
        yield session_cls.return_value


@pytest.fixture
def client(session):
    with patch("tracksync.adapters.linear.client.time.sleep"):
        yield LinearApiClient(api_key="lin_api_test", requests_per_second=None, jitter=0)


class TestLinearRateLimiter:
    """Tests for LinearRateLimiter."""

    def test_acquire_token(self):
        limiter = LinearRateLimiter(requests_per_second=100.0, burst_size=10)
        assert limiter.acquire(timeout=1.0) is True

    def test_acquire_depletes_tokens(self):
        limiter = LinearRateLimiter(requests_per_second=100.0, burst_size=5)

        for _ in range(5):
            limiter.acquire(timeout=0.1)

        assert limiter._tokens < 1.0

    def test_acquire_times_out(self):
        limiter = LinearRateLimiter(requests_per_second=0.1, burst_size=1)
        limiter.acquire()

        assert limiter.acquire(timeout=0.01) is False

    def test_update_from_response(self):
        limiter = LinearRateLimiter()
        response = make_response(
            headers={
                "X-RateLimit-Requests-Remaining": "1450",
                "X-RateLimit-Requests-Reset": "1234567890",
            }
        )

        limiter.update_from_response(response)

        assert limiter.stats["linear_remaining"] == 1450
        assert limiter.stats["linear_reset_at"] == 1234567890.0

    def test_rate_halves_on_429(self):
        limiter = LinearRateLimiter(requests_per_second=1.0)

        limiter.update_from_response(make_response(status_code=429))

        assert limiter.requests_per_second == 0.5

    def test_rate_has_a_floor(self):
        limiter = LinearRateLimiter(requests_per_second=0.1)

        limiter.update_from_response(make_response(status_code=429))

        assert limiter.requests_per_second == LinearRateLimiter.MIN_REQUESTS_PER_SECOND

    def test_reset(self):
        limiter = LinearRateLimiter(burst_size=3)
        limiter.acquire()
        limiter.reset()
        assert limiter.stats["total_requests"] == 0
        assert limiter.stats["available_tokens"] == 3.0


class TestBackoff:
    def test_exponential_growth(self):
        assert calculate_delay(0, jitter=0) == 1.0
        assert calculate_delay(1, jitter=0) == 2.0
        assert calculate_delay(3, jitter=0) == 8.0

    def test_capped_at_max_delay(self):
        assert calculate_delay(10, max_delay=5.0, jitter=0) == 5.0

    def test_retry_after_takes_precedence(self):
        assert calculate_delay(3, retry_after=2.0) == 2.0

    def test_jitter_stays_within_bounds(self):
        for _ in range(20):
            assert 0.9 <= calculate_delay(0, jitter=0.1) <= 1.1

    def test_get_retry_after(self):
        assert get_retry_after(make_response(headers={"Retry-After": "3"})) == 3.0
        assert get_retry_after(make_response(headers={"Retry-After": "soon"})) is None
        assert get_retry_after(make_response()) is None


class TestLinearApiClientInit:
    """Tests for LinearApiClient initialization."""

    def test_personal_key_sent_as_is(self, session):
        client = LinearApiClient(api_key="lin_api_test")
        assert client.headers["Authorization"] == "lin_api_test"
        assert client._rate_limiter is not None

    def test_oauth_token_uses_bearer(self, session):
        client = LinearApiClient(api_key="oauth-token", requests_per_second=None)
        assert client.headers["Authorization"] == "Bearer oauth-token"
        assert client._rate_limiter is None

    def test_repr_masks_key(self, session):
        client = LinearApiClient(api_key="lin_api_secretsecret")
        assert "secretsecret" not in repr(client)


class TestExecute:
    """Tests for request execution and error mapping."""

    def test_returns_data(self, client, session):
        session.post.return_value = make_response(body={"data": {"viewer": {"id": "u1"}}})

        data = client.execute("query { viewer { id } }", {"a": 1})

        assert data == {"viewer": {"id": "u1"}}
        payload = session.post.call_args.kwargs["json"]
        assert payload["variables"] == {"a": 1}

    def test_omits_empty_variables(self, client, session):
        session.post.return_value = make_response(body={"data": {}})

        client.execute("query { viewer { id } }")

        assert "variables" not in session.post.call_args.kwargs["json"]

    @pytest.mark.parametrize(
        "status,exc",
        [(401, AuthenticationError), (403, AccessDeniedError), (404, RemoteNotFoundError)],
    )
    def test_http_errors(self, client, session, status, exc):
        session.post.return_value = make_response(status_code=status, body={})

        with pytest.raises(exc):
            client.execute("query")

    def test_retries_server_errors_then_succeeds(self, client, session):
        session.post.side_effect = [
            make_response(status_code=503),
            make_response(status_code=502),
            make_response(body={"data": {"ok": True}}),
        ]

        assert client.execute("query") == {"ok": True}
        assert session.post.call_count == 3

    def test_server_error_after_retries_is_transient(self, client, session):
        session.post.return_value = make_response(status_code=500)

        with pytest.raises(TransientError):
            client.execute("query")
        assert session.post.call_count == client.max_retries + 1

    def test_rate_limit_after_retries(self, client, session):
        session.post.return_value = make_response(status_code=429, headers={"Retry-After": "1"})

        with pytest.raises(RateLimitError) as exc_info:
            client.execute("query")
        assert exc_info.value.retry_after == 1.0

    def test_timeout_is_retried(self, client, session):
        session.post.side_effect = [
            requests.exceptions.Timeout("slow"),
            make_response(body={"data": {"ok": True}}),
        ]

        assert client.execute("query") == {"ok": True}

    def test_connection_error_exhausts_retries(self, client, session):
        session.post.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(TransientError, match="Connection failed"):
            client.execute("query")

    def test_non_json_success_is_malformed(self, client, session):
        session.post.return_value = make_response(json_error=True)

        with pytest.raises(MalformedResponseError):
            client.execute("query")

    def test_missing_data_is_malformed(self, client, session):
        session.post.return_value = make_response(body={"data": None})

        with pytest.raises(MalformedResponseError):
            client.execute("query")

    @pytest.mark.parametrize(
        "error,exc",
        [
            ({"message": "bad key", "extensions": {"code": "AUTHENTICATION_ERROR"}}, AuthenticationError),
            ({"message": "nope", "extensions": {"code": "FORBIDDEN"}}, AccessDeniedError),
            ({"message": "slow", "extensions": {"code": "RATELIMITED"}}, RateLimitError),
            ({"message": "Entity not found"}, RemoteNotFoundError),
            ({"message": "Argument Validation Error"}, RemoteError),
        ],
    )
    def test_graphql_errors(self, client, session, error, exc):
        session.post.return_value = make_response(body={"errors": [error], "data": None})

        with pytest.raises(exc):
            client.execute("query")


class TestConvenienceMethods:
    """Tests for typed API helpers."""

    def test_get_viewer_is_cached(self, client, session):
        session.post.return_value = make_response(body={"data": {"viewer": {"id": "u1"}}})

        client.get_viewer()
        client.get_viewer()

        assert session.post.call_count == 1
        assert client.is_connected

    def test_test_connection_false_on_auth_failure(self, client, session):
        session.post.return_value = make_response(status_code=401, body={})

        assert client.test_connection() is False

    def test_get_teams(self, client, session):
        session.post.return_value = make_response(
            body={"data": {"teams": {"nodes": [{"id": "team-1", "name": "Eng", "key": "ENG"}]}}}
        )

        assert client.get_teams()[0]["key"] == "ENG"

    def test_get_project_missing(self, client, session):
        session.post.return_value = make_response(body={"data": {"project": None}})

        with pytest.raises(RemoteNotFoundError):
            client.get_project("proj-x")

    def test_get_project_issues_follows_pagination(self, client, session):
        page1 = {
            "data": {
                "project": {
                    "issues": {
                        "nodes": [{"id": "iss-1"}],
                        "pageInfo": {"hasNextPage": True, "endCursor": "c1"},
                    }
                }
            }
        }
        page2 = {
            "data": {
                "project": {
                    "issues": {
                        "nodes": [{"id": "iss-2"}],
                        "pageInfo": {"hasNextPage": False, "endCursor": None},
                    }
                }
            }
        }
        session.post.side_effect = [make_response(body=page1), make_response(body=page2)]

        issues = client.get_project_issues("proj-123")

        assert [i["id"] for i in issues] == ["iss-1", "iss-2"]
        second_vars = session.post.call_args_list[1].kwargs["json"]["variables"]
        assert second_vars["after"] == "c1"

    def test_create_issue_unwraps_payload(self, client, session):
        session.post.return_value = make_response(
            body={"data": {"issueCreate": {"success": True, "issue": {"id": "iss-9"}}}}
        )

        assert client.create_issue({"title": "x", "teamId": "team-1"}) == {"id": "iss-9"}

    def test_mutation_failure(self, client, session):
        session.post.return_value = make_response(
            body={"data": {"projectUpdate": {"success": False, "project": None}}}
        )

        with pytest.raises(RemoteError, match="rejected"):
            client.update_project("proj-1", {"name": "x"})

    def test_context_manager_closes_session(self, session):
        with LinearApiClient(api_key="lin_api_test") as c:
            assert c is not None
        session.close.assert_called_once()
