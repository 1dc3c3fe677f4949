"""Unit tests for the ticket enrichment assembler."""

from datetime import datetime, timezone

import pytest

from linear_agent.tickets import TicketRef, assemble
from linear_agent.tracker import Issue, IssueComment, IssueRef


@pytest.mark.unit
class TestAssemble:
    """Tests for assemble."""

    def test_copies_core_fields(self, sample_issue: Issue) -> None:
        """Scalar fields are carried over."""
        ticket = assemble(sample_issue)

        assert ticket.id == "LIN-42"
        assert ticket.title == "Fix login bug"
        assert ticket.state == "In Progress"
        assert ticket.priority == 2
        assert ticket.estimate is None
        assert ticket.url == "https://linear.app/acme/issue/LIN-42"

    def test_labels_keep_tracker_order(self, sample_issue: Issue) -> None:
        """Labels stay in the order returned, without duplicates."""
        sample_issue.labels = ["urgent", "bug", "urgent"]

        assert assemble(sample_issue).labels == ("urgent", "bug")

    def test_comments_sorted_chronologically(self, sample_issue: Issue) -> None:
        """Comments are ordered by creation time."""
        ticket = assemble(sample_issue)

        assert [c.author for c in ticket.comments] == ["Alice", "Bob"]

    def test_equal_timestamps_keep_input_order(self) -> None:
        """Sorting is stable for identical timestamps."""
        at = datetime(2024, 1, 1, tzinfo=timezone.utc)
        issue = Issue(
            id="LIN-1",
            title="t",
            comments=[
                IssueComment(body="one", created_at=at, author="A"),
                IssueComment(body="two", created_at=at, author="B"),
            ],
        )

        assert [c.body for c in assemble(issue).comments] == ["one", "two"]

    def test_missing_author_becomes_unknown(self) -> None:
        """Comments without an author are attributed to Unknown."""
        issue = Issue(
            id="LIN-1",
            title="t",
            comments=[
                IssueComment(body="hi", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
            ],
        )

        assert assemble(issue).comments[0].author == "Unknown"

    def test_relationships_reduced_to_refs(self, sample_issue: Issue) -> None:
        """Parent, children and related become (id, title) pairs."""
        ticket = assemble(sample_issue)

        assert ticket.parent == TicketRef(id="LIN-40", title="Auth epic")
        assert ticket.children == (TicketRef(id="LIN-43", title="Add SSO regression test"),)
        assert ticket.related == (TicketRef(id="LIN-41", title="Session timeout"),)

    def test_one_hop_only(self) -> None:
        """A neighbour's own relationships are never expanded."""
        grandchild = Issue(id="LIN-3", title="Grandchild")
        child = Issue(id="LIN-2", title="Child", children=[grandchild], related=[grandchild])
        issue = Issue(id="LIN-1", title="Root", children=[child])

        ticket = assemble(issue)

        assert ticket.children == (TicketRef(id="LIN-2", title="Child"),)
        assert ticket.related == ()

    def test_cyclic_relations_terminate(self) -> None:
        """Symmetric and self links are dropped without recursion."""
        issue = Issue(id="LIN-1", title="A")
        other = Issue(id="LIN-2", title="B", related=[issue])
        issue.related = [other, IssueRef(id="LIN-1", title="A"), other]
        issue.parent = IssueRef(id="LIN-1", title="A")

        ticket = assemble(issue)

        assert ticket.related == (TicketRef(id="LIN-2", title="B"),)
        assert ticket.parent is None

    def test_whitespace_trimmed(self) -> None:
        """Titles are collapsed to one line and descriptions stripped."""
        issue = Issue(id=" LIN-1 ", title="  Multi\nline   title ", description="\n body \n")

        ticket = assemble(issue)

        assert ticket.id == "LIN-1"
        assert ticket.title == "Multi line title"
        assert ticket.description == "body"

    def test_line_endings_normalized(self) -> None:
        """CRLF and lone CR in tracker text become LF."""
        issue = Issue(
            id="LIN-1",
            title="t",
            description="first\r\nsecond\rthird",
            comments=[
                IssueComment(
                    body="one\r\ntwo\r\n",
                    created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
                    author="A",
                )
            ],
        )

        ticket = assemble(issue)

        assert ticket.description == "first\nsecond\nthird"
        assert ticket.comments[0].body == "one\ntwo"

    def test_deterministic(self, sample_issue: Issue) -> None:
        """Assembling twice yields equal tickets."""
        assert assemble(sample_issue) == assemble(sample_issue)
