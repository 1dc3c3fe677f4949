"""Interactive terminal UI: ticket listing, selection and the setup wizard."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import click

from linear_agent.config import (
    DEFAULT_CONFIG_DIR,
    DEFAULT_ENV_FILENAME,
    DEFAULT_MODEL,
    DEFAULT_STATES,
    DEFAULT_TEAM_NAME,
    SUPPORTED_MODELS,
    AppConfig,
    parse_states,
    save_config,
)
from linear_agent.exceptions import InputError
from linear_agent.logging import get_logger
from linear_agent.tracker import Issue

logger = get_logger("ui")

SEPARATOR_WIDTH = 80
MAX_SELECTION_ATTEMPTS = 3
SELECT_ALL = "all"

# Linear priority values
PRIORITY_LABELS = {
    0: "No priority",
    1: "Urgent",
    2: "High",
    3: "Medium",
    4: "Low",
}
PRIORITY_COLORS = {1: "red", 2: "red", 3: "yellow", 4: "green"}


@dataclass
class Selection:
    """Outcome of parsing one selection answer.

    Attributes:
        issues: Chosen issues in the order given, without duplicates.
        errors: One InputError per token that could not be used.
    """

    issues: list[Issue] = field(default_factory=list)
    errors: list[InputError] = field(default_factory=list)


def _format_priority(priority: int | None) -> str:
    if priority is None:
        return click.style("not set", dim=True)
    label = PRIORITY_LABELS.get(priority, str(priority))
    return click.style(label, fg=PRIORITY_COLORS.get(priority))


def display_issues(issues: Sequence[Issue]) -> None:
    """Print a numbered listing of issues."""
    click.echo()
    click.echo("=" * SEPARATOR_WIDTH)
    click.echo(f"Found {len(issues)} ticket(s)")
    click.echo("=" * SEPARATOR_WIDTH)

    for index, issue in enumerate(issues, start=1):
        estimate = f"{issue.estimate:g} points" if issue.estimate is not None else "Not estimated"
        labels = ", ".join(issue.labels) if issue.labels else "None"

        click.echo(
            f"{index}. [{click.style(issue.state or '?', fg='blue')}] "
            f"{click.style(issue.id, bold=True)} {issue.title}"
        )
        click.echo(
            f"   Priority: {_format_priority(issue.priority)} | "
            f"Estimate: {estimate} | Labels: {labels}"
        )
        if issue.url:
            click.echo(f"   URL: {issue.url}")
        click.echo("-" * SEPARATOR_WIDTH)


def parse_selection(raw: str, issues: Sequence[Issue]) -> Selection:
    """Parse a selection answer.

    Tokens are separated by commas. Each token is ``all``, a 1-based index
    into ``issues``, or a ticket id (case-insensitive). Bad tokens are
    recorded as errors without discarding the valid ones.

    Args:
        raw: The user's answer, e.g. ``"1,3"`` or ``"LIN-42, 2"``.
        issues: The listed issues.

    Returns:
        Selection with chosen issues in first-mention order.
    """
    selection = Selection()
    chosen: set[str] = set()
    by_id = {issue.id.lower(): issue for issue in issues}

    def choose(issue: Issue) -> None:
        if issue.id not in chosen:
            chosen.add(issue.id)
            selection.issues.append(issue)

    for token in (part.strip() for part in raw.split(",")):
        if not token:
            continue
        if token.lower() == SELECT_ALL:
            for issue in issues:
                choose(issue)
        elif token.isdigit():
            index = int(token)
            if 1 <= index <= len(issues):
                choose(issues[index - 1])
            else:
                selection.errors.append(
                    InputError(f"Index {index} is out of range (1-{len(issues)})")
                )
        elif token.lower() in by_id:
            choose(by_id[token.lower()])
        else:
            selection.errors.append(InputError(f"Unknown ticket or invalid selection: '{token}'"))

    return selection


def prompt_selection(
    issues: Sequence[Issue],
    generate_plans: bool = False,
    attempts: int = MAX_SELECTION_ATTEMPTS,
) -> list[Issue]:
    """Ask the user which issues to process.

    Invalid tokens are reported and valid ones proceed. If nothing valid was
    chosen the question is repeated, up to ``attempts`` times. An empty answer
    asks whether to process every listed issue.

    Returns:
        The chosen issues, or an empty list if no valid selection was made.
    """
    action = "generate implementation plans for" if generate_plans else "process"
    click.echo()
    click.echo(click.style(f"Select tickets to {action}", fg="blue"))
    click.echo("Enter numbers or ticket ids separated by commas, or 'all'.")

    for _ in range(attempts):
        raw = click.prompt("Selection", default="", show_default=False)

        if not raw.strip():
            if click.confirm(f"No tickets selected. Do you want to {action} all tickets?"):
                return list(issues)
            return []

        selection = parse_selection(raw, issues)
        for error in selection.errors:
            click.echo(click.style(f"Error: {error}", fg="red"), err=True)
            logger.warning("Invalid selection token: %s", error)

        if selection.issues:
            logger.info("Selected tickets: %s", ", ".join(issue.id for issue in selection.issues))
            return selection.issues

        click.echo("No valid tickets selected, please try again.", err=True)

    return []


def setup_wizard(default_path: Path | None = None) -> AppConfig:
    """Interactively collect credentials and settings, optionally saving them.

    Args:
        default_path: Suggested location for the saved .env file.

    Returns:
        The configuration entered by the user.
    """
    click.echo()
    click.echo(click.style("Linear Agent Setup", fg="green", bold=True))
    click.echo(click.style("Let's set up your configuration.", fg="blue"))

    linear_api_key = click.prompt("Linear API Key", hide_input=True)
    anthropic_api_key = click.prompt(
        "Anthropic API Key (leave empty to skip if not using plan generation)",
        default="",
        show_default=False,
        hide_input=True,
    )
    team_name = click.prompt("Linear Team Name", default=DEFAULT_TEAM_NAME)
    user_name = click.prompt("Linear User Name (whose tickets to analyze)")
    states = click.prompt(
        "Linear States to analyze (comma-separated)", default=",".join(DEFAULT_STATES)
    )
    model = click.prompt(
        "Anthropic Model",
        type=click.Choice(SUPPORTED_MODELS),
        default=DEFAULT_MODEL,
    )

    config = AppConfig(
        linear_api_key=linear_api_key.strip(),
        anthropic_api_key=anthropic_api_key.strip() or None,
        team_name=team_name.strip(),
        user_name=user_name.strip(),
        states=parse_states(states) or DEFAULT_STATES,
        model=model,
    )

    if click.confirm("Save this configuration for future use?", default=True):
        suggested = default_path or DEFAULT_CONFIG_DIR / DEFAULT_ENV_FILENAME
        path = click.prompt("Config file path", default=str(suggested), type=click.Path())
        saved = save_config(config, Path(path).expanduser())
        click.echo(click.style(f"Configuration saved to {saved}", fg="green"))

    return config
