"""Unit tests for Markdown rendering and filenames."""

from datetime import datetime, timezone

import pytest

from linear_agent.tickets import (
    EnrichedTicket,
    Plan,
    TicketComment,
    TicketRef,
    assemble,
    filename_for,
    render_plan,
    render_ticket,
    slugify,
)
from linear_agent.tracker import Issue


@pytest.fixture
def lin42() -> EnrichedTicket:
    """The LIN-42 ticket with labels but no estimate."""
    return EnrichedTicket(id="LIN-42", title="Fix login bug", labels=("bug", "urgent"))


@pytest.mark.unit
class TestRenderTicket:
    """Tests for render_ticket."""

    def test_lin42_metadata(self, lin42: EnrichedTicket) -> None:
        """Absent estimate renders as an explicit marker and labels are joined."""
        markdown = render_ticket(lin42)

        assert markdown.startswith("# Ticket: Fix login bug\n")
        assert "Estimate: not set" in markdown.splitlines()
        assert "Labels: bug, urgent" in markdown.splitlines()

    def test_section_order(self, sample_issue: Issue) -> None:
        """Sections appear in their fixed order."""
        markdown = render_ticket(assemble(sample_issue))
        headings = [line for line in markdown.splitlines() if line.startswith("## ")]

        # The description contains its own "## Steps" heading
        assert headings == [
            "## Metadata",
            "## Description",
            "## Steps",
            "## Comments",
            "## Related Tickets",
            "## Child Tickets",
        ]

    def test_empty_ticket_has_every_field(self) -> None:
        """Every field has a textual form, including the empty case."""
        markdown = render_ticket(EnrichedTicket(id="LIN-1", title="Empty"))
        lines = markdown.splitlines()

        assert "State: not set" in lines
        assert "Priority: not set" in lines
        assert "URL: not set" in lines
        assert "Labels: none" in lines
        assert "Parent: none" in lines
        assert "_No description provided._" in lines
        assert lines.count("None") == 3

    def test_comment_rendering(self) -> None:
        """Comments are attributed, timestamped and continuation lines indented."""
        ticket = EnrichedTicket(
            id="LIN-1",
            title="t",
            comments=(
                TicketComment(
                    author="Alice",
                    body="First line\n\nThird line",
                    created_at=datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
                ),
            ),
        )

        lines = render_ticket(ticket).splitlines()
        start = lines.index("- Alice (2024-03-01T12:00:00+00:00): First line")

        assert lines[start + 1] == ""
        assert lines[start + 2] == "  Third line"

    def test_refs_rendered(self) -> None:
        """Related, child and parent refs render as 'id: title'."""
        ticket = EnrichedTicket(
            id="LIN-1",
            title="t",
            parent=TicketRef(id="LIN-0", title="Epic"),
            related=(TicketRef(id="LIN-2", title="Other"),),
            children=(TicketRef(id="LIN-3", title=""),),
        )

        lines = render_ticket(ticket).splitlines()

        assert "Parent: LIN-0: Epic" in lines
        assert "- LIN-2: Other" in lines
        assert "- LIN-3:" in lines

    def test_idempotent(self, sample_issue: Issue) -> None:
        """Rendering the same ticket twice yields identical text."""
        ticket = assemble(sample_issue)

        assert render_ticket(ticket) == render_ticket(ticket)

    def test_ends_with_single_newline(self, lin42: EnrichedTicket) -> None:
        """Output ends with exactly one newline."""
        markdown = render_ticket(lin42)

        assert markdown.endswith("None\n")
        assert not markdown.endswith("\n\n")


@pytest.mark.unit
class TestRenderPlan:
    """Tests for render_plan."""

    def test_plan_document(self, lin42: EnrichedTicket) -> None:
        """Plan document has title, metadata, a rule and the body."""
        plan = Plan(ticket_id="LIN-42", body="\n## Overview\n\nDo the thing.\n\n")

        markdown = render_plan(plan, lin42)
        lines = markdown.splitlines()

        assert lines[0] == "# Implementation Plan: Fix login bug"
        assert "## Metadata" in lines
        assert "Id: LIN-42" in lines
        assert lines.index("---") < lines.index("## Overview")
        assert markdown.endswith("Do the thing.\n")


@pytest.mark.unit
class TestFilenames:
    """Tests for slugify and filename_for."""

    def test_lin42_filename(self) -> None:
        """Filename combines id and slug."""
        assert filename_for("LIN-42", "Fix login bug") == "LIN-42-Fix_login_bug.md"

    def test_slug_collapses_punctuation(self) -> None:
        """Runs of non-alphanumerics become one underscore."""
        assert slugify("Fix: login / SSO -- bug!") == "Fix_login_SSO_bug"

    def test_empty_slug(self) -> None:
        """A title without alphanumerics yields just the id."""
        assert filename_for("LIN-7", "?!") == "LIN-7.md"

    def test_unsafe_id_sanitized(self) -> None:
        """Path separators in the id never reach the filename."""
        name = filename_for("../LIN/9", "Title")

        assert "/" not in name
        assert name == "LIN_9-Title.md"

    def test_length_bounded(self) -> None:
        """Long ids and titles are truncated."""
        name = filename_for("X" * 100, "word " * 100)

        assert len(name) <= 40 + 1 + 50 + len(".md")

    def test_deterministic(self) -> None:
        """Same input, same filename."""
        assert filename_for("LIN-1", "A title") == filename_for("LIN-1", "A title")
