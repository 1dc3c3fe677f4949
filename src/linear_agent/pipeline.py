"""Ticket pipeline - sequences assemble, render, write and plan generation."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from linear_agent.exceptions import ApiError, NetworkError, NotFoundError, RateLimitError
from linear_agent.logging import get_logger
from linear_agent.tickets import (
    EnrichedTicket,
    assemble,
    filename_for,
    parse_ticket_file,
    render_plan,
    render_ticket,
    write_markdown,
)

if TYPE_CHECKING:
    from linear_agent.config import AppConfig
    from linear_agent.planner import AnthropicClient
    from linear_agent.tracker import Issue, LinearClient

logger = get_logger("pipeline")

# Failures that stay local to one ticket; AuthError and anything else propagate.
TICKET_ERRORS = (NotFoundError, NetworkError, RateLimitError, ApiError, OSError)


@dataclass
class TicketOutcome:
    """Result of processing one ticket.

    Attributes:
        ticket_id: The ticket identifier.
        ticket_path: Written ticket file, if that step succeeded.
        plan_path: Written plan file, if a plan was generated.
        error: Message describing the step that failed, if any.
    """

    ticket_id: str
    ticket_path: Path | None = None
    plan_path: Path | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TicketPipeline:
    """Processes tickets strictly one after another.

    Each ticket fully completes (fetch, render, write, then optionally plan
    generation and plan write) before the next begins.
    """

    def __init__(
        self,
        config: AppConfig,
        tracker: LinearClient | None = None,
        planner: AnthropicClient | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: Resolved configuration (output directories, model, plan flag).
            tracker: Linear client, required for ``process_ids``.
            planner: Anthropic client, required when plans are enabled.
        """
        self.config = config
        self.tracker = tracker
        self.planner = planner

    @property
    def generate_plans(self) -> bool:
        return self.config.generate_plans and self.planner is not None

    def process_issue(self, issue: Issue) -> TicketOutcome:
        """Assemble, render and write one fetched issue, then plan it if enabled.

        Args:
            issue: Issue with its relationships, as returned by ``fetch_issue``.

        Returns:
            Outcome with the written paths or the recorded error.
        """
        ticket = assemble(issue)
        outcome = TicketOutcome(ticket_id=ticket.id)
        markdown = render_ticket(ticket)

        try:
            outcome.ticket_path = write_markdown(
                self.config.tickets_dir, filename_for(ticket.id, ticket.title), markdown
            )
        except OSError as e:
            logger.error("Failed to write ticket %s: %s", ticket.id, e)
            outcome.error = f"Failed to write ticket file: {e}"
            return outcome

        if self.generate_plans:
            self._plan(ticket, markdown, outcome)
        return outcome

    def process_ids(self, ticket_ids: Iterable[str]) -> list[TicketOutcome]:
        """Fetch and process tickets by id, in the given order.

        A failure local to one ticket is recorded on its outcome and the batch
        continues. ``AuthError`` propagates immediately.

        Args:
            ticket_ids: Ticket identifiers such as "LIN-42".

        Returns:
            One outcome per id, in order.
        """
        if self.tracker is None:
            raise ValueError("A tracker client is required to process ticket ids")

        outcomes: list[TicketOutcome] = []
        for ticket_id in ticket_ids:
            logger.info("Processing ticket %s", ticket_id)
            try:
                issue = self.tracker.fetch_issue(ticket_id)
            except TICKET_ERRORS as e:
                logger.error("Failed to fetch ticket %s: %s", ticket_id, e)
                outcomes.append(TicketOutcome(ticket_id=ticket_id, error=str(e)))
                continue
            outcomes.append(self.process_issue(issue))
        return outcomes

    def process_saved_ticket(self, path: Path | str) -> TicketOutcome:
        """Generate a plan for a previously saved ticket file.

        Args:
            path: Ticket Markdown file written by an earlier run.

        Returns:
            Outcome whose ``ticket_path`` is the input file.

        Raises:
            ParseError: If the file is missing or malformed.
        """
        path = Path(path)
        ticket = parse_ticket_file(path)
        outcome = TicketOutcome(ticket_id=ticket.id, ticket_path=path)
        logger.info("Loaded saved ticket %s from %s", ticket.id, path)

        if self.generate_plans:
            self._plan(ticket, render_ticket(ticket), outcome)
        else:
            logger.info("Plan generation disabled; nothing to do for %s", ticket.id)
        return outcome

    def _plan(self, ticket: EnrichedTicket, markdown: str, outcome: TicketOutcome) -> None:
        """Generate and write the plan; failures leave the ticket file in place."""
        if self.planner is None:
            raise ValueError("A planner client is required to generate plans")
        try:
            plan = self.planner.generate_plan(markdown, self.config.model, ticket.id)
            outcome.plan_path = write_markdown(
                self.config.output_dir,
                filename_for(ticket.id, ticket.title),
                render_plan(plan, ticket),
            )
        except TICKET_ERRORS as e:
            logger.error("Plan generation failed for %s: %s", ticket.id, e)
            outcome.error = f"Plan generation failed: {e}"
