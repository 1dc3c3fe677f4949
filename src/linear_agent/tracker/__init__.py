"""Issue tracker client - retrieves tickets from Linear."""

from linear_agent.tracker.client import LINEAR_API_URL, LinearClient
from linear_agent.tracker.models import Issue, IssueComment, IssueFilter, IssueRef

__all__ = [
    "LINEAR_API_URL",
    "Issue",
    "IssueComment",
    "IssueFilter",
    "IssueRef",
    "LinearClient",
]
