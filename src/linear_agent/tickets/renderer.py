"""Markdown rendering for tickets and implementation plans.

The ticket document doubles as the serialization format read back by
``linear_agent.tickets.parser``; every field has a textual form, including
its empty case. A value spelled exactly like its empty marker (a state of
"not set", a single label "none") reads back as empty.
"""

from __future__ import annotations

import re

from linear_agent.tickets.models import EnrichedTicket, Plan, TicketComment, TicketRef

TICKET_TITLE_PREFIX = "# Ticket:"
PLAN_TITLE_PREFIX = "# Implementation Plan:"

METADATA_HEADING = "## Metadata"
DESCRIPTION_HEADING = "## Description"
COMMENTS_HEADING = "## Comments"
RELATED_HEADING = "## Related Tickets"
CHILDREN_HEADING = "## Child Tickets"

METADATA_KEYS = ("Id", "State", "Priority", "Estimate", "URL", "Labels", "Parent")

NOT_SET = "not set"
NO_ITEMS = "none"
EMPTY_SECTION = "None"
EMPTY_DESCRIPTION = "_No description provided._"
CONTINUATION_INDENT = "  "

MAX_ID_LENGTH = 40
MAX_SLUG_LENGTH = 50

_SLUG_PATTERN = re.compile(r"[\W_]+")
_ID_PATTERN = re.compile(r"[^\w-]+")


def format_estimate(estimate: float | None) -> str:
    """Exact text form of an estimate; integral values drop the ".0"."""
    if estimate is None:
        return NOT_SET
    estimate = float(estimate)
    return str(int(estimate)) if estimate.is_integer() else repr(estimate)


def format_ref(ref: TicketRef) -> str:
    return f"{ref.id}: {ref.title}" if ref.title else f"{ref.id}:"


def render_metadata(ticket: EnrichedTicket) -> list[str]:
    """Render the metadata block lines in their fixed order."""
    values = {
        "Id": ticket.id,
        "State": ticket.state or NOT_SET,
        "Priority": str(ticket.priority) if ticket.priority is not None else NOT_SET,
        "Estimate": format_estimate(ticket.estimate),
        "URL": ticket.url or NOT_SET,
        "Labels": ", ".join(ticket.labels) if ticket.labels else NO_ITEMS,
        "Parent": format_ref(ticket.parent) if ticket.parent else NO_ITEMS,
    }
    return [f"{key}: {values[key]}" for key in METADATA_KEYS]


def render_comment(comment: TicketComment) -> list[str]:
    """Render one comment; body lines after the first are indented."""
    header = f"- {comment.author} ({comment.created_at.isoformat()}):"
    if not comment.body:
        return [header]

    first, *rest = comment.body.split("\n")
    lines = [f"{header} {first}"]
    lines.extend(f"{CONTINUATION_INDENT}{line}" if line else "" for line in rest)
    return lines


def _section(heading: str, body: list[str]) -> list[str]:
    return [heading, "", *(body or [EMPTY_SECTION]), ""]


def render_ticket(ticket: EnrichedTicket) -> str:
    """Render an enriched ticket as Markdown.

    Args:
        ticket: Ticket to render.

    Returns:
        Markdown document ending with a newline. Rendering the same ticket
        twice yields identical text.
    """
    comment_lines: list[str] = []
    for comment in ticket.comments:
        comment_lines.extend(render_comment(comment))

    lines = [
        f"{TICKET_TITLE_PREFIX} {ticket.title}",
        "",
        *_section(METADATA_HEADING, render_metadata(ticket)),
        *_section(DESCRIPTION_HEADING, [ticket.description or EMPTY_DESCRIPTION]),
        *_section(COMMENTS_HEADING, comment_lines),
        *_section(RELATED_HEADING, [f"- {format_ref(ref)}" for ref in ticket.related]),
        *_section(CHILDREN_HEADING, [f"- {format_ref(ref)}" for ref in ticket.children]),
    ]
    return "\n".join(lines).rstrip("\n") + "\n"


def render_plan(plan: Plan, ticket: EnrichedTicket) -> str:
    """Render an implementation plan document for a ticket.

    Args:
        plan: Plan returned by the LLM.
        ticket: Ticket the plan was generated for.

    Returns:
        Markdown document with the ticket metadata followed by the plan body.
    """
    lines = [
        f"{PLAN_TITLE_PREFIX} {ticket.title}",
        "",
        *_section(METADATA_HEADING, render_metadata(ticket)),
        "---",
        "",
        plan.body.strip(),
    ]
    return "\n".join(lines) + "\n"


def slugify(title: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Collapse non-alphanumeric runs to ``_`` and truncate.

    Example: ``"Fix login bug!"`` -> ``"Fix_login_bug"``
    """
    slug = _SLUG_PATTERN.sub("_", title).strip("_")
    return slug[:max_length].rstrip("_")


def filename_for(ticket_id: str, title: str) -> str:
    """Derive the Markdown filename for a ticket.

    Pure function of id and title with a bounded length. Tickets that map to
    the same name overwrite each other's files.

    Args:
        ticket_id: Ticket identifier, e.g. "LIN-42".
        title: Ticket title.

    Returns:
        Filename such as ``LIN-42-Fix_login_bug.md``.
    """
    safe_id = _ID_PATTERN.sub("_", ticket_id).strip("_")[:MAX_ID_LENGTH] or "ticket"
    slug = slugify(title)
    if not slug:
        return f"{safe_id}.md"
    return f"{safe_id}-{slug}.md"
