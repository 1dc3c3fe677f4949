"""Combine a tracker issue and its neighbours into an EnrichedTicket."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from linear_agent.tickets.models import EnrichedTicket, TicketComment, TicketRef
from linear_agent.tracker.models import Issue

UNKNOWN_AUTHOR = "Unknown"


class _Linked(Protocol):
    id: str
    title: str


def _single_line(text: str | None) -> str:
    """Collapse all whitespace runs, including newlines, to single spaces."""
    return " ".join((text or "").split())


def _multi_line(text: str | None) -> str:
    """Normalize line endings to LF and strip surrounding whitespace."""
    return "\n".join((text or "").splitlines()).strip()


def _to_ref(item: _Linked) -> TicketRef:
    # Only id and title are read: a neighbour's own links are never followed.
    return TicketRef(id=item.id.strip(), title=_single_line(item.title))


def _refs(items: Iterable[_Linked], exclude: str) -> tuple[TicketRef, ...]:
    """Reduce neighbours to refs, dropping self-links and repeated ids."""
    seen = {exclude}
    refs = []
    for item in items:
        ref = _to_ref(item)
        if ref.id in seen:
            continue
        seen.add(ref.id)
        refs.append(ref)
    return tuple(refs)


def _unique_labels(labels: Iterable[str]) -> tuple[str, ...]:
    result: list[str] = []
    for label in labels:
        label = _single_line(label)
        if label and label not in result:
            result.append(label)
    return tuple(result)


def assemble(issue: Issue) -> EnrichedTicket:
    """Build the rendering input for an issue.

    Pure and deterministic. Labels keep tracker order, comments are sorted by
    creation time (stable for equal timestamps), and parent, children and
    related issues are reduced to ``(id, title)`` pairs exactly one hop deep.
    Links back to the issue itself and repeated neighbours are dropped, so
    symmetric or cyclic relations terminate.

    Args:
        issue: Issue fetched from the tracker. Neighbours may be ``IssueRef``
            or full ``Issue`` objects; only their id and title are used.

    Returns:
        Frozen enriched ticket.
    """
    issue_id = issue.id.strip()

    comments = sorted(
        (
            TicketComment(
                author=_single_line(comment.author) or UNKNOWN_AUTHOR,
                body=_multi_line(comment.body),
                created_at=comment.created_at,
            )
            for comment in issue.comments
        ),
        key=lambda comment: comment.created_at,
    )

    parent = None
    if issue.parent is not None and issue.parent.id.strip() != issue_id:
        parent = _to_ref(issue.parent)

    return EnrichedTicket(
        id=issue_id,
        title=_single_line(issue.title),
        description=_multi_line(issue.description),
        state=_single_line(issue.state),
        priority=issue.priority,
        estimate=issue.estimate,
        url=(issue.url or "").strip(),
        labels=_unique_labels(issue.labels),
        comments=tuple(comments),
        parent=parent,
        related=_refs(issue.related, exclude=issue_id),
        children=_refs(issue.children, exclude=issue_id),
    )
