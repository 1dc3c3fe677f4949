"""Ticket enrichment, Markdown rendering, parsing and file output."""

from linear_agent.tickets.assembler import assemble
from linear_agent.tickets.models import EnrichedTicket, Plan, TicketComment, TicketRef
from linear_agent.tickets.parser import TicketParser, parse_ticket, parse_ticket_file
from linear_agent.tickets.renderer import filename_for, render_plan, render_ticket, slugify
from linear_agent.tickets.writer import write_markdown

__all__ = [
    "EnrichedTicket",
    "Plan",
    "TicketComment",
    "TicketParser",
    "TicketRef",
    "assemble",
    "filename_for",
    "parse_ticket",
    "parse_ticket_file",
    "render_plan",
    "render_ticket",
    "slugify",
    "write_markdown",
]
