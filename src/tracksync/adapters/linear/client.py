"""
Linear API Client - Low-level GraphQL client for the Linear API.

This handles the raw HTTP communication with Linear.
The LinearAdapter uses this to implement the RemoteTrackerPort.

Linear API documentation:
https://developers.linear.app/docs/graphql/working-with-the-graphql-api
"""

from __future__ import annotations

import logging
import random
import threading
import time
from typing import Any

import requests
from requests.adapters import HTTPAdapter

from tracksync.adapters.linear import queries
from tracksync.core.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    MalformedResponseError,
    RateLimitError,
    RemoteError,
    RemoteNotFoundError,
    TransientError,
)


DEFAULT_API_URL = "https://api.linear.app/graphql"

# Status codes worth retrying: rate limiting and server-side failures
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def calculate_delay(
    attempt: int,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    backoff_factor: float = 2.0,
    jitter: float = 0.1,
    retry_after: float | None = None,
) -> float:
    """
    Calculate the delay before the next retry.

    Args:
        attempt: Zero-based attempt number
        initial_delay: Delay before the first retry
        max_delay: Upper bound for any delay
        backoff_factor: Multiplier applied per attempt
        jitter: Random jitter factor (0.1 = +/-10%)
        retry_after: Server-provided delay, takes precedence when present

    Returns:
        Delay in seconds, never negative
    """
    if retry_after is not None:
        return max(0.0, min(float(retry_after), max_delay))

    delay = min(initial_delay * (backoff_factor**attempt), max_delay)
    if jitter:
        delay += delay * random.uniform(-jitter, jitter)
    return max(0.0, delay)


def get_retry_after(response: requests.Response) -> float | None:
    """Read the Retry-After header (seconds) from a response, if any."""
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class LinearRateLimiter:
    """
    Token bucket rate limiter tuned for the Linear API.

    Linear reports its remaining budget in X-RateLimit-* headers. The limiter
    records those values and halves its own rate whenever a 429 comes back.
    """

    MIN_REQUESTS_PER_SECOND = 0.1

    def __init__(self, requests_per_second: float = 1.0, burst_size: int = 10):
        """
        Initialize the rate limiter.

        Args:
            requests_per_second: Sustained request rate
            burst_size: Maximum tokens that can accumulate
        """
        self.requests_per_second = requests_per_second
        self.burst_size = burst_size

        self._tokens = float(burst_size)
        self._last_refill = time.monotonic()
        self._lock = threading.Lock()

        # Values reported by Linear
        self._requests_remaining: int | None = None
        self._reset_at: float | None = None

        # Stats
        self._total_requests = 0
        self._total_wait_time = 0.0

    def _refill_tokens(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_refill
        self._tokens = min(float(self.burst_size), self._tokens + elapsed * self.requests_per_second)
        self._last_refill = now

    def acquire(self, timeout: float | None = None) -> bool:
        """
        Take one token, waiting for it if necessary.

        Args:
            timeout: Maximum seconds to wait (None = wait indefinitely)

        Returns:
            True if a token was acquired, False on timeout
        """
        start = time.monotonic()

        while True:
            with self._lock:
                self._refill_tokens()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    self._total_requests += 1
                    self._total_wait_time += time.monotonic() - start
                    return True
                wait = (1.0 - self._tokens) / self.requests_per_second

            if timeout is not None:
                remaining = timeout - (time.monotonic() - start)
                if remaining <= 0:
                    return False
                wait = min(wait, remaining)

            time.sleep(wait)

    def update_from_response(self, response: requests.Response) -> None:
        """Record Linear's rate-limit headers and back off on 429."""
        headers = response.headers

        with self._lock:
            remaining = headers.get("X-RateLimit-Requests-Remaining")
            if remaining is not None:
                try:
                    self._requests_remaining = int(remaining)
                except (TypeError, ValueError):
                    pass

            reset = headers.get("X-RateLimit-Requests-Reset")
            if reset is not None:
                try:
                    self._reset_at = float(reset)
                except (TypeError, ValueError):
                    pass

            if response.status_code == 429:
                self.requests_per_second = max(
                    self.MIN_REQUESTS_PER_SECOND, self.requests_per_second * 0.5
                )

    def reset(self) -> None:
        """Reset tokens and statistics."""
        with self._lock:
            self._tokens = float(self.burst_size)
            self._last_refill = time.monotonic()
            self._requests_remaining = None
            self._reset_at = None
            self._total_requests = 0
            self._total_wait_time = 0.0

    @property
    def stats(self) -> dict[str, Any]:
        """Get limiter statistics."""
        with self._lock:
            return {
                "total_requests": self._total_requests,
                "total_wait_time": self._total_wait_time,
                "available_tokens": self._tokens,
                "requests_per_second": self.requests_per_second,
                "linear_remaining": self._requests_remaining,
                "linear_reset_at": self._reset_at,
            }


class LinearApiClient:
    """
    Low-level Linear GraphQL API client.

    Handles authentication, request/response, rate limiting, and error handling.

    Features:
    - API key authentication
    - Automatic retry with exponential backoff for transient failures
    - Rate limiting driven by Linear's response headers
    - Connection pooling for performance
    """

    # Default retry configuration
    DEFAULT_MAX_RETRIES = 3
    DEFAULT_INITIAL_DELAY = 1.0
    DEFAULT_MAX_DELAY = 60.0
    DEFAULT_BACKOFF_FACTOR = 2.0
    DEFAULT_JITTER = 0.1

    # Default rate limiting (Linear allows 1500 requests/hour per key)
    DEFAULT_REQUESTS_PER_SECOND = 1.0
    DEFAULT_BURST_SIZE = 10

    # Connection pool settings
    DEFAULT_POOL_CONNECTIONS = 10
    DEFAULT_POOL_MAXSIZE = 10
    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        jitter: float = DEFAULT_JITTER,
        requests_per_second: float | None = DEFAULT_REQUESTS_PER_SECOND,
        burst_size: int = DEFAULT_BURST_SIZE,
    ):
        """
        Initialize the Linear client.

        Args:
            api_key: Linear API key or OAuth access token
            api_url: GraphQL endpoint
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts for transient failures
            initial_delay: Initial retry delay in seconds
            max_delay: Maximum retry delay in seconds
            backoff_factor: Multiplier for exponential backoff
            jitter: Random jitter factor (0.1 = 10%)
            requests_per_second: Sustained request rate (None disables limiting)
            burst_size: Token bucket capacity
        """
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout
        self.logger = logging.getLogger("LinearApiClient")

        # Retry configuration
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.backoff_factor = backoff_factor
        self.jitter = jitter

        self._rate_limiter: LinearRateLimiter | None = None
        if requests_per_second is not None and requests_per_second > 0:
            self._rate_limiter = LinearRateLimiter(
                requests_per_second=requests_per_second,
                burst_size=burst_size,
            )

        # Personal API keys go in the header as-is, OAuth tokens need Bearer
        authorization = api_key if api_key.startswith("lin_api_") else f"Bearer {api_key}"
        self.headers = {
            "Accept": "application/json",
            "Authorization": authorization,
            "Content-Type": "application/json",
        }

        # Configure session with connection pooling
        self._session = requests.Session()
        self._session.headers.update(self.headers)

        adapter = HTTPAdapter(
            pool_connections=self.DEFAULT_POOL_CONNECTIONS,
            pool_maxsize=self.DEFAULT_POOL_MAXSIZE,
        )
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

        # Cache
        self._viewer: dict | None = None

    def __repr__(self) -> str:
        masked = f"{self.api_key[:8]}..." if len(self.api_key) > 8 else "***"
        return f"LinearApiClient(api_url={self.api_url!r}, api_key={masked!r})"

    # -------------------------------------------------------------------------
    # Core Request Methods
    # -------------------------------------------------------------------------

    def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        operation: str = "graphql",
    ) -> dict[str, Any]:
        """
        Execute a GraphQL document with retry.

        Args:
            query: GraphQL query or mutation
            variables: Variables for the document
            operation: Short name used in logs and error messages

        Returns:
            The response's "data" object

        Raises:
            RemoteError: On transport, HTTP or GraphQL errors
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        last_exception: Exception | None = None

        for attempt in range(self.max_retries + 1):
            if self._rate_limiter is not None:
                self._rate_limiter.acquire()

            try:
                response = self._session.post(self.api_url, json=payload, timeout=self.timeout)
            except requests.exceptions.Timeout as e:
                last_exception = e
                if attempt < self.max_retries:
                    delay = self._delay(attempt)
                    self.logger.warning(f"Timeout on {operation}, retrying in {delay:.2f}s")
                    time.sleep(delay)
                    continue
                raise TransientError(f"Request timed out: {e}", resource=operation, cause=e)
            except requests.exceptions.ConnectionError as e:
                last_exception = e
                if attempt < self.max_retries:
                    delay = self._delay(attempt)
                    self.logger.warning(
                        f"Connection error on {operation}, retrying in {delay:.2f}s"
                    )
                    time.sleep(delay)
                    continue
                raise TransientError(f"Connection failed: {e}", resource=operation, cause=e)

            if self._rate_limiter is not None:
                self._rate_limiter.update_from_response(response)

            # Check for retryable status codes
            if response.status_code in RETRYABLE_STATUS_CODES:
                retry_after = get_retry_after(response)
                delay = self._delay(attempt, retry_after=retry_after)

                if attempt < self.max_retries:
                    self.logger.warning(
                        f"Retryable error {response.status_code} on {operation}, "
                        f"attempt {attempt + 1}/{self.max_retries + 1}, "
                        f"retrying in {delay:.2f}s"
                    )
                    time.sleep(delay)
                    continue

                if response.status_code == 429:
                    raise RateLimitError(
                        f"Linear rate limit exceeded for {operation}",
                        retry_after=retry_after,
                        resource=operation,
                    )
                raise TransientError(
                    f"Linear server error {response.status_code} for {operation}",
                    resource=operation,
                )

            return self._handle_response(response, operation)

        raise TransientError(
            f"Request failed after {self.max_retries + 1} attempts",
            resource=operation,
            cause=last_exception,
        )

    def query(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Execute a GraphQL query."""
        return self.execute(query, variables, operation="query")

    def mutate(self, mutation: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Execute a GraphQL mutation."""
        return self.execute(mutation, variables, operation="mutation")

    def _delay(self, attempt: int, retry_after: float | None = None) -> float:
        return calculate_delay(
            attempt,
            initial_delay=self.initial_delay,
            max_delay=self.max_delay,
            backoff_factor=self.backoff_factor,
            jitter=self.jitter,
            retry_after=retry_after,
        )

    # -------------------------------------------------------------------------
    # Response Handling
    # -------------------------------------------------------------------------

    def _handle_response(self, response: requests.Response, operation: str) -> dict[str, Any]:
        """Handle API response and convert errors to typed exceptions."""
        status = response.status_code

        if status == 401:
            raise AuthenticationError(
                "Linear authentication failed. Check your API key.", resource=operation
            )

        if status == 403:
            raise AccessDeniedError(
                f"Permission denied for {operation}. Check API key permissions.",
                resource=operation,
            )

        if status == 404:
            raise RemoteNotFoundError(f"Not found: {operation}", resource=operation)

        try:
            body = response.json()
        except ValueError as e:
            if not response.ok:
                error_body = response.text[:500] if response.text else ""
                raise RemoteError(
                    f"Linear API error {status}: {error_body}", resource=operation
                ) from e
            raise MalformedResponseError(
                f"Linear returned a non-JSON response for {operation}",
                resource=operation,
                cause=e,
            ) from e

        if not isinstance(body, dict):
            raise MalformedResponseError(
                f"Linear returned an unexpected response for {operation}", resource=operation
            )

        errors = body.get("errors")
        if errors:
            self._raise_graphql_error(errors, operation)

        if not response.ok:
            raise RemoteError(f"Linear API error {status}", resource=operation)

        data = body.get("data")
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"Linear response for {operation} has no data", resource=operation
            )
        return data

    def _raise_graphql_error(self, errors: list[Any], operation: str) -> None:
        """Convert a GraphQL errors array into the matching exception."""
        first = errors[0] if isinstance(errors[0], dict) else {"message": str(errors[0])}
        message = first.get("message") or "Unknown GraphQL error"
        extensions = first.get("extensions") or {}
        code = str(extensions.get("code") or extensions.get("type") or "").upper()

        self.logger.debug(f"GraphQL error on {operation}: {errors}")

        if "AUTHENTICATION" in code:
            raise AuthenticationError(f"Linear authentication failed: {message}", resource=operation)
        if "FORBIDDEN" in code:
            raise AccessDeniedError(f"Linear access denied: {message}", resource=operation)
        if "RATELIMITED" in code or "RATE_LIMITED" in code:
            raise RateLimitError(f"Linear rate limit exceeded: {message}", resource=operation)
        if "not found" in message.lower():
            raise RemoteNotFoundError(message, resource=operation)
        raise RemoteError(f"Linear GraphQL error: {message}", resource=operation)

    def _mutation_payload(self, data: dict[str, Any], field: str, entity: str) -> dict[str, Any]:
        """Unwrap a mutation payload, failing on success: false or a missing entity."""
        payload = data.get(field)
        if not isinstance(payload, dict):
            raise MalformedResponseError(f"Linear response has no {field} payload", resource=field)
        if not payload.get("success"):
            raise RemoteError(f"Linear rejected {field}", resource=field)
        result = payload.get(entity)
        if not isinstance(result, dict):
            raise MalformedResponseError(
                f"Linear {field} payload has no {entity}", resource=field
            )
        return result

    # -------------------------------------------------------------------------
    # Convenience Methods
    # -------------------------------------------------------------------------

    def get_viewer(self) -> dict[str, Any]:
        """Get the currently authenticated user."""
        if self._viewer is None:
            data = self.execute(queries.GET_VIEWER, operation="GetViewer")
            viewer = data.get("viewer")
            self._viewer = viewer if isinstance(viewer, dict) else {}
        return self._viewer

    def test_connection(self) -> bool:
        """Test if the API connection and credentials are valid."""
        try:
            self.get_viewer()
            return True
        except RemoteError:
            return False

    @property
    def is_connected(self) -> bool:
        """Check if the client has successfully connected."""
        return self._viewer is not None

    # -------------------------------------------------------------------------
    # Teams API
    # -------------------------------------------------------------------------

    def get_teams(self) -> list[dict[str, Any]]:
        """Get all teams visible to the API key."""
        data = self.execute(queries.GET_TEAMS, operation="GetLinearTeams")
        return (data.get("teams") or {}).get("nodes") or []

    def get_team_states(self, team_id: str) -> list[dict[str, Any]]:
        """Get the workflow states of a team."""
        data = self.execute(
            queries.GET_TEAM_STATES, {"teamId": team_id}, operation="GetTeamStates"
        )
        team = data.get("team")
        if team is None:
            raise RemoteNotFoundError(f"Team not found: {team_id}", resource=team_id)
        return (team.get("states") or {}).get("nodes") or []

    # -------------------------------------------------------------------------
    # Projects API
    # -------------------------------------------------------------------------

    def get_project(self, project_id: str) -> dict[str, Any]:
        """Get a single project by id."""
        data = self.execute(
            queries.GET_PROJECT, {"projectId": project_id}, operation="GetLinearProject"
        )
        project = data.get("project")
        if project is None:
            raise RemoteNotFoundError(f"Project not found: {project_id}", resource=project_id)
        return project

    def create_project(self, project_input: dict[str, Any]) -> dict[str, Any]:
        """
        Create a new project.

        Args:
            project_input: ProjectCreateInput fields (name and teamIds required)
        """
        data = self.execute(
            queries.CREATE_PROJECT, {"input": project_input}, operation="CreateLinearProject"
        )
        return self._mutation_payload(data, "projectCreate", "project")

    def update_project(self, project_id: str, project_input: dict[str, Any]) -> dict[str, Any]:
        """
        Update an existing project.

        Args:
            project_id: Project id
            project_input: ProjectUpdateInput fields to change
        """
        data = self.execute(
            queries.UPDATE_PROJECT,
            {"projectId": project_id, "input": project_input},
            operation="UpdateLinearProject",
        )
        return self._mutation_payload(data, "projectUpdate", "project")

    def get_project_issues(self, project_id: str) -> list[dict[str, Any]]:
        """Get every issue in a project, following pagination."""
        issues: list[dict[str, Any]] = []
        after: str | None = None

        while True:
            variables: dict[str, Any] = {
                "projectId": project_id,
                "first": queries.ISSUE_PAGE_SIZE,
            }
            if after:
                variables["after"] = after

            data = self.execute(
                queries.GET_PROJECT_ISSUES, variables, operation="GetProjectIssues"
            )
            project = data.get("project")
            if project is None:
                raise RemoteNotFoundError(
                    f"Project not found: {project_id}", resource=project_id
                )

            connection = project.get("issues") or {}
            issues.extend(connection.get("nodes") or [])

            page_info = connection.get("pageInfo") or {}
            after = page_info.get("endCursor")
            if not page_info.get("hasNextPage") or not after:
                return issues

    # -------------------------------------------------------------------------
    # Issues API
    # -------------------------------------------------------------------------

    def get_issue(self, issue_id: str) -> dict[str, Any]:
        """
        Get a single issue.

        Args:
            issue_id: Issue id or identifier (e.g., "ENG-123")
        """
        data = self.execute(queries.GET_ISSUE, {"issueId": issue_id}, operation="GetLinearIssue")
        issue = data.get("issue")
        if issue is None:
            raise RemoteNotFoundError(f"Issue not found: {issue_id}", resource=issue_id)
        return issue

    def create_issue(self, issue_input: dict[str, Any]) -> dict[str, Any]:
        """
        Create a new issue.

        Args:
            issue_input: IssueCreateInput fields (title and teamId required)
        """
        data = self.execute(
            queries.CREATE_ISSUE, {"input": issue_input}, operation="CreateLinearIssue"
        )
        return self._mutation_payload(data, "issueCreate", "issue")

    def update_issue(self, issue_id: str, issue_input: dict[str, Any]) -> dict[str, Any]:
        """
        Update an existing issue.

        Args:
            issue_id: Issue id
            issue_input: IssueUpdateInput fields to change
        """
        data = self.execute(
            queries.UPDATE_ISSUE,
            {"issueId": issue_id, "input": issue_input},
            operation="UpdateLinearIssue",
        )
        return self._mutation_payload(data, "issueUpdate", "issue")

    # -------------------------------------------------------------------------
    # Resource Cleanup
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close the client and release connection pool resources."""
        self._session.close()
        self.logger.debug("Closed HTTP session")

    def __enter__(self) -> LinearApiClient:
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: Any,
    ) -> None:
        """Context manager exit."""
        self.close()
