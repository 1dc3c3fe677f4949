"""LinearClient - Interfaces with the Linear GraphQL API for ticket retrieval."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from linear_agent.exceptions import (
    ApiError,
    AuthError,
    NetworkError,
    NotFoundError,
    RateLimitError,
)
from linear_agent.logging import sanitize_for_log, truncate_output
from linear_agent.tracker.models import Issue, IssueComment, IssueFilter, IssueRef

logger = logging.getLogger("linear_agent.tracker")

LINEAR_API_URL = "https://api.linear.app/graphql"
PAGE_SIZE = 50
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# GraphQL error codes Linear reports for credential problems
AUTH_ERROR_CODES = {"AUTHENTICATION_ERROR", "FORBIDDEN"}
RATE_LIMIT_CODES = {"RATELIMITED"}

REF_FIELDS = """
    identifier
    title
    state { name }
    assignee { name }
"""

SUMMARY_FIELDS = """
    identifier
    title
    description
    priority
    estimate
    url
    state { name }
    assignee { name }
    team { name }
    createdAt
    updatedAt
    labels { nodes { name } }
"""

VIEWER_QUERY = """
query {
    viewer {
        name
    }
}
"""

USERS_QUERY = """
query Users($name: String!) {
    users(filter: { name: { eq: $name } }) {
        nodes {
            id
            name
        }
    }
}
"""

TEAMS_QUERY = """
query Teams($name: String!) {
    teams(filter: { name: { eq: $name } }) {
        nodes {
            id
            name
        }
    }
}
"""

LIST_ISSUES_QUERY = f"""
query Issues($filter: IssueFilter, $first: Int!, $after: String) {{
    issues(filter: $filter, first: $first, after: $after) {{
        nodes {{
            {SUMMARY_FIELDS}
        }}
        pageInfo {{
            hasNextPage
            endCursor
        }}
    }}
}}
"""

ISSUE_QUERY = f"""
query Issue($id: String!) {{
    issue(id: $id) {{
        {SUMMARY_FIELDS}
        comments(first: 100) {{
            nodes {{
                body
                createdAt
                user {{ name }}
            }}
        }}
        parent {{
            {REF_FIELDS}
        }}
        children(first: 100) {{
            nodes {{
                {REF_FIELDS}
            }}
        }}
        relations(first: 100) {{
            nodes {{
                type
                relatedIssue {{
                    {REF_FIELDS}
                }}
            }}
        }}
    }}
}}
"""


def _parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by Linear."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _name_of(node: dict[str, Any] | None) -> str | None:
    """Extract ``name`` from an optional ``{ name }`` object."""
    if not node:
        return None
    return node.get("name")


class LinearClient:
    """Client for the Linear GraphQL API.

    Every call is a single fresh round trip: no caching and no retries.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = LINEAR_API_URL,
        timeout: float = 30.0,
    ) -> None:
        """Initialize Linear client.

        Args:
            api_key: Linear personal API key
            base_url: Linear GraphQL API URL (for testing)
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client for GraphQL API."""
        if self._client is None:
            # Linear personal API keys are sent without a "Bearer" prefix
            self._client = httpx.Client(
                headers={
                    "Authorization": self.api_key,
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> LinearClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Execute a GraphQL query.

        Args:
            query: GraphQL query string
            variables: Query variables

        Returns:
            Response data

        Raises:
            AuthError: If the API key is missing or rejected
            NetworkError: If the request could not be sent
            RateLimitError: If Linear throttled the request
            NotFoundError: If Linear reports a missing entity
            ApiError: For any other failure
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            response = self.client.post(self.base_url, json=payload)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Linear API request timed out: {e}") from e
        except httpx.TransportError as e:
            raise NetworkError(f"Failed to reach Linear API: {e}") from e

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Linear API response (%s): %s",
                response.status_code,
                truncate_output(sanitize_for_log(response.text), 1000),
            )

        if response.status_code in (401, 403):
            raise AuthError(
                f"Linear API rejected the API key ({response.status_code}). "
                "Check LINEAR_API_KEY."
            )
        if response.status_code == 429:
            raise RateLimitError("Linear API rate limit exceeded")

        try:
            data: dict[str, Any] = response.json()
        except ValueError as e:
            raise ApiError(
                f"Linear API returned invalid JSON: {response.status_code} - {response.text}"
            ) from e

        if data.get("errors"):
            self._raise_for_errors(data["errors"])

        if response.status_code != 200:
            raise ApiError(f"Linear API request failed: {response.status_code} - {response.text}")

        return dict(data.get("data") or {})

    def _raise_for_errors(self, errors: list[dict[str, Any]]) -> None:
        """Map GraphQL errors onto the error taxonomy."""
        messages = "; ".join(str(error.get("message", error)) for error in errors)
        codes = {
            str((error.get("extensions") or {}).get("code", "")).upper() for error in errors
        }
        lowered = messages.lower()

        if codes & AUTH_ERROR_CODES or "authentication" in lowered:
            raise AuthError(f"Linear API authentication failed: {messages}")
        if codes & RATE_LIMIT_CODES:
            raise RateLimitError(f"Linear API rate limit exceeded: {messages}")
        if "not found" in lowered:
            raise NotFoundError(messages)
        raise ApiError(f"GraphQL errors: {messages}")

    def viewer_name(self) -> str:
        """Return the name of the authenticated user (connection test)."""
        data = self._graphql(VIEWER_QUERY)
        viewer = data.get("viewer") or {}
        return str(viewer.get("name", ""))

    def _resolve_user(self, name: str) -> str:
        """Resolve a user display name to its id.

        Raises:
            NotFoundError: If no user has that name
        """
        data = self._graphql(USERS_QUERY, {"name": name})
        nodes = (data.get("users") or {}).get("nodes") or []
        if not nodes:
            raise NotFoundError(f"User '{name}' not found")
        return str(nodes[0]["id"])

    def _resolve_team(self, name: str) -> str:
        """Resolve a team name to its id.

        Raises:
            NotFoundError: If no team has that name
        """
        data = self._graphql(TEAMS_QUERY, {"name": name})
        nodes = (data.get("teams") or {}).get("nodes") or []
        if not nodes:
            raise NotFoundError(f"Team '{name}' not found")
        return str(nodes[0]["id"])

    @staticmethod
    def _build_filter(issue_filter: IssueFilter) -> dict[str, Any]:
        """Translate an IssueFilter into Linear's GraphQL IssueFilter input."""
        gql_filter: dict[str, Any] = {}
        if issue_filter.assignee:
            gql_filter["assignee"] = {"name": {"eq": issue_filter.assignee}}
        if issue_filter.team:
            gql_filter["team"] = {"name": {"eq": issue_filter.team}}
        if issue_filter.states:
            gql_filter["state"] = {"name": {"in": sorted(issue_filter.states)}}
        return gql_filter

    def list_issues(self, issue_filter: IssueFilter | None = None) -> list[Issue]:
        """List issues matching every set field of the filter.

        Args:
            issue_filter: Assignee, team and state constraints

        Returns:
            Issues in the order Linear returned them

        Raises:
            NotFoundError: If the assignee or team name does not resolve
        """
        issue_filter = issue_filter or IssueFilter()
        logger.debug("Listing issues with filter: %s", issue_filter)

        if issue_filter.assignee:
            self._resolve_user(issue_filter.assignee)
        if issue_filter.team:
            self._resolve_team(issue_filter.team)

        variables: dict[str, Any] = {
            "filter": self._build_filter(issue_filter),
            "first": PAGE_SIZE,
        }
        issues: list[Issue] = []

        while True:
            data = self._graphql(LIST_ISSUES_QUERY, variables)
            connection = data.get("issues") or {}

            for node in connection.get("nodes") or []:
                issue = self._parse_issue(node)
                if issue_filter.matches(issue):
                    issues.append(issue)

            page_info = connection.get("pageInfo") or {}
            if not page_info.get("hasNextPage") or not page_info.get("endCursor"):
                break
            variables["after"] = page_info["endCursor"]

        logger.info("Found %d issue(s)", len(issues))
        return issues

    def fetch_issue(self, issue_id: str) -> Issue:
        """Fetch one issue with labels, comments, parent, children and relations.

        Args:
            issue_id: Linear identifier (e.g. "LIN-42")

        Returns:
            Issue with its one-hop relationship graph

        Raises:
            NotFoundError: If the issue doesn't exist
        """
        logger.info("Fetching issue %s", issue_id)
        data = self._graphql(ISSUE_QUERY, {"id": issue_id})

        node = data.get("issue")
        if not node:
            raise NotFoundError(f"Ticket {issue_id} not found")

        issue = self._parse_issue(node)

        comment_nodes = (node.get("comments") or {}).get("nodes") or []
        comments = [
            IssueComment(
                body=comment.get("body") or "",
                created_at=_parse_datetime(comment.get("createdAt")) or EPOCH,
                author=_name_of(comment.get("user")),
            )
            for comment in comment_nodes
        ]
        issue.comments = sorted(comments, key=lambda c: c.created_at)

        if node.get("parent"):
            issue.parent = self._parse_ref(node["parent"])

        child_nodes = (node.get("children") or {}).get("nodes") or []
        issue.children = [self._parse_ref(child) for child in child_nodes]

        relation_nodes = (node.get("relations") or {}).get("nodes") or []
        issue.related = [
            self._parse_ref(relation["relatedIssue"])
            for relation in relation_nodes
            if relation.get("relatedIssue")
        ]

        return issue

    @staticmethod
    def _parse_ref(node: dict[str, Any]) -> IssueRef:
        return IssueRef(
            id=node["identifier"],
            title=node.get("title") or "",
            state=_name_of(node.get("state")) or "",
            assignee=_name_of(node.get("assignee")),
        )

    @staticmethod
    def _parse_issue(node: dict[str, Any]) -> Issue:
        label_nodes = (node.get("labels") or {}).get("nodes") or []
        return Issue(
            id=node["identifier"],
            title=node.get("title") or "",
            description=node.get("description") or "",
            state=_name_of(node.get("state")) or "",
            priority=node.get("priority"),
            estimate=float(node["estimate"]) if node.get("estimate") is not None else None,
            url=node.get("url") or "",
            labels=[label["name"] for label in label_nodes],
            assignee=_name_of(node.get("assignee")),
            team=_name_of(node.get("team")),
            created_at=_parse_datetime(node.get("createdAt")),
            updated_at=_parse_datetime(node.get("updatedAt")),
        )
