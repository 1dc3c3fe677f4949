"""Data models for enriched tickets and implementation plans."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TicketComment:
    """A comment reduced to what the ticket file records."""

    author: str
    body: str
    created_at: datetime


@dataclass(frozen=True)
class TicketRef:
    """A parent, child or related ticket reduced to (id, title)."""

    id: str
    title: str


@dataclass(frozen=True)
class EnrichedTicket:
    """An issue plus display text for its one-hop relationships.

    Used purely as rendering input; also the result of parsing a saved
    ticket file.
    """

    id: str
    title: str
    description: str = ""
    state: str = ""
    priority: int | None = None
    estimate: float | None = None
    url: str = ""
    labels: tuple[str, ...] = ()
    comments: tuple[TicketComment, ...] = ()
    parent: TicketRef | None = None
    related: tuple[TicketRef, ...] = ()
    children: tuple[TicketRef, ...] = ()


@dataclass(frozen=True)
class Plan:
    """LLM-generated implementation plan for one ticket."""

    ticket_id: str
    body: str
    model: str = ""
