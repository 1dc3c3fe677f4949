"""Parser for ticket Markdown files saved by the renderer."""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

from linear_agent.exceptions import ParseError
from linear_agent.tickets.models import EnrichedTicket, TicketComment, TicketRef
from linear_agent.tickets.renderer import (
    CHILDREN_HEADING,
    COMMENTS_HEADING,
    CONTINUATION_INDENT,
    DESCRIPTION_HEADING,
    EMPTY_DESCRIPTION,
    EMPTY_SECTION,
    METADATA_HEADING,
    METADATA_KEYS,
    NO_ITEMS,
    NOT_SET,
    RELATED_HEADING,
    TICKET_TITLE_PREFIX,
)


class TicketParser:
    """Parser for ticket Markdown files.

    Expects the title line, a metadata block with every key in its fixed
    order, and the Description, Comments, Related Tickets and Child Tickets
    sections in that order. Headings are located from the end of the document
    for the list sections, so a description may itself contain Markdown
    headings.
    """

    COMMENT_PATTERN = re.compile(
        r"^- (?P<author>.+?) \((?P<timestamp>\d{4}-\d{2}-\d{2}[T ][^()\s]*)\):(?: (?P<body>.*))?$"
    )
    REF_PATTERN = re.compile(r"^(?P<id>[^\s:]+):(?: (?P<title>.*))?$")

    def parse(self, content: str) -> EnrichedTicket:
        """Parse ticket Markdown into an EnrichedTicket.

        Args:
            content: Markdown produced by ``render_ticket``.

        Returns:
            The reconstructed ticket.

        Raises:
            ParseError: If a section is missing, out of order or malformed.
        """
        lines = content.split("\n")
        title_index = self._first_content_line(lines)
        title_line = lines[title_index]
        if not title_line.startswith(TICKET_TITLE_PREFIX):
            raise ParseError(f"Missing '{TICKET_TITLE_PREFIX}' title line")
        title = title_line[len(TICKET_TITLE_PREFIX) :].strip()

        metadata_at = self._find(lines, METADATA_HEADING, start=title_index + 1)
        if any(line.strip() for line in lines[title_index + 1 : metadata_at]):
            raise ParseError("Unexpected content between title and metadata")
        description_at = self._find(lines, DESCRIPTION_HEADING, start=metadata_at + 1)
        children_at = self._rfind(lines, CHILDREN_HEADING, start=description_at + 1, end=len(lines))
        related_at = self._rfind(lines, RELATED_HEADING, start=description_at + 1, end=children_at)
        comments_at = self._rfind(lines, COMMENTS_HEADING, start=description_at + 1, end=related_at)

        metadata = self._parse_metadata(lines[metadata_at + 1 : description_at])

        description = "\n".join(lines[description_at + 1 : comments_at]).strip()
        if description == EMPTY_DESCRIPTION:
            description = ""

        return EnrichedTicket(
            id=metadata["Id"],
            title=title,
            description=description,
            state=self._optional(metadata["State"]),
            priority=self._parse_priority(metadata["Priority"]),
            estimate=self._parse_estimate(metadata["Estimate"]),
            url=self._optional(metadata["URL"]),
            labels=self._parse_labels(metadata["Labels"]),
            comments=self._parse_comments(lines[comments_at + 1 : related_at]),
            parent=self._parse_parent(metadata["Parent"]),
            related=self._parse_refs(lines[related_at + 1 : children_at], RELATED_HEADING),
            children=self._parse_refs(lines[children_at + 1 :], CHILDREN_HEADING),
        )

    def parse_file(self, path: Path | str) -> EnrichedTicket:
        """Parse a saved ticket file.

        Args:
            path: Path to the ticket Markdown file.

        Returns:
            The reconstructed ticket.

        Raises:
            ParseError: If the file is missing, unreadable or malformed.
        """
        path = Path(path)

        if not path.is_file():
            raise ParseError(f"Ticket file not found: {path}")

        try:
            with path.open(encoding="utf-8", newline="") as handle:
                content = handle.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ParseError(f"Failed to read ticket file {path}: {e}") from e

        try:
            return self.parse(content)
        except ParseError as e:
            raise ParseError(f"{path}: {e}") from e

    @staticmethod
    def _first_content_line(lines: list[str]) -> int:
        for index, line in enumerate(lines):
            if line.strip():
                return index
        raise ParseError("Ticket file is empty")

    @staticmethod
    def _find(lines: list[str], heading: str, start: int) -> int:
        for index in range(start, len(lines)):
            if lines[index].rstrip() == heading:
                return index
        raise ParseError(f"Missing section '{heading}'")

    @staticmethod
    def _rfind(lines: list[str], heading: str, start: int, end: int) -> int:
        for index in range(end - 1, start - 1, -1):
            if lines[index].rstrip() == heading:
                return index
        raise ParseError(f"Missing or misplaced section '{heading}'")

    @staticmethod
    def _section_lines(lines: list[str]) -> list[str]:
        """Drop the blank lines surrounding a section body."""
        start, end = 0, len(lines)
        while start < end and not lines[start].strip():
            start += 1
        while end > start and not lines[end - 1].strip():
            end -= 1
        return lines[start:end]

    def _parse_metadata(self, lines: list[str]) -> dict[str, str]:
        entries = [line for line in lines if line.strip()]
        keys = [line.partition(":")[0].strip() for line in entries]
        if keys != list(METADATA_KEYS):
            raise ParseError(
                f"Metadata must contain {', '.join(METADATA_KEYS)} in order, got {', '.join(keys)}"
            )
        return {key: line.partition(":")[2].strip() for key, line in zip(keys, entries)}

    @staticmethod
    def _optional(value: str) -> str:
        return "" if value == NOT_SET else value

    @staticmethod
    def _parse_priority(value: str) -> int | None:
        if value == NOT_SET:
            return None
        try:
            return int(value)
        except ValueError as e:
            raise ParseError(f"Invalid priority: {value!r}") from e

    @staticmethod
    def _parse_estimate(value: str) -> float | None:
        if value == NOT_SET:
            return None
        try:
            return float(value)
        except ValueError as e:
            raise ParseError(f"Invalid estimate: {value!r}") from e

    @staticmethod
    def _parse_labels(value: str) -> tuple[str, ...]:
        if value == NO_ITEMS:
            return ()
        return tuple(label.strip() for label in value.split(",") if label.strip())

    def _parse_parent(self, value: str) -> TicketRef | None:
        if value == NO_ITEMS:
            return None
        match = self.REF_PATTERN.match(value)
        if not match:
            raise ParseError(f"Invalid parent reference: {value!r}")
        return TicketRef(id=match["id"], title=match["title"] or "")

    def _parse_comments(self, lines: list[str]) -> tuple[TicketComment, ...]:
        body_lines = self._section_lines(lines)
        if body_lines == [EMPTY_SECTION]:
            return ()

        comments: list[tuple[str, datetime, list[str]]] = []
        for line in body_lines:
            match = self.COMMENT_PATTERN.match(line)
            if match:
                try:
                    created_at = datetime.fromisoformat(match["timestamp"])
                except ValueError as e:
                    raise ParseError(f"Invalid comment timestamp: {match['timestamp']!r}") from e
                comments.append((match["author"], created_at, [match["body"] or ""]))
            elif comments:
                if line.startswith(CONTINUATION_INDENT):
                    line = line[len(CONTINUATION_INDENT) :]
                comments[-1][2].append(line)
            else:
                raise ParseError(f"Invalid comment line: {line!r}")

        return tuple(
            TicketComment(author=author, body="\n".join(body).strip(), created_at=created_at)
            for author, created_at, body in comments
        )

    def _parse_refs(self, lines: list[str], heading: str) -> tuple[TicketRef, ...]:
        body_lines = self._section_lines(lines)
        if body_lines == [EMPTY_SECTION]:
            return ()

        refs = []
        for line in body_lines:
            match = self.REF_PATTERN.match(line[2:]) if line.startswith("- ") else None
            if not match:
                raise ParseError(f"Invalid entry in '{heading}': {line!r}")
            refs.append(TicketRef(id=match["id"], title=match["title"] or ""))
        return tuple(refs)


def parse_ticket(content: str) -> EnrichedTicket:
    """Parse ticket Markdown. See ``TicketParser.parse``."""
    return TicketParser().parse(content)


def parse_ticket_file(path: Path | str) -> EnrichedTicket:
    """Parse a saved ticket file. See ``TicketParser.parse_file``."""
    return TicketParser().parse_file(path)
