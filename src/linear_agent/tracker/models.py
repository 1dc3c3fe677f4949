"""Data models for the Linear tracker client."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class IssueComment:
    """A comment on a Linear issue."""

    body: str
    created_at: datetime
    author: str | None = None


@dataclass
class IssueRef:
    """One-hop reference to a parent, child or related issue."""

    id: str  # Linear identifier, e.g. "LIN-42"
    title: str
    state: str = ""
    assignee: str | None = None


@dataclass
class Issue:
    """A Linear issue snapshot fetched once per invocation."""

    id: str  # Linear identifier, e.g. "LIN-42"
    title: str
    description: str = ""
    state: str = ""
    priority: int | None = None
    estimate: float | None = None
    url: str = ""
    labels: list[str] = field(default_factory=list)
    comments: list[IssueComment] = field(default_factory=list)
    parent: IssueRef | None = None
    children: list[IssueRef] = field(default_factory=list)
    related: list[IssueRef] = field(default_factory=list)
    assignee: str | None = None
    team: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class IssueFilter:
    """Filter for listing issues. Unset or empty fields impose no constraint."""

    assignee: str | None = None
    team: str | None = None
    states: set[str] = field(default_factory=set)

    def matches(self, issue: Issue) -> bool:
        """Check an issue against every set field of the filter."""
        if self.states and issue.state not in self.states:
            return False
        if self.assignee and issue.assignee != self.assignee:
            return False
        if self.team and issue.team != self.team:
            return False
        return True
