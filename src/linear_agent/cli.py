"""CLI entry point for linear-agent.

Fetches Linear tickets, saves them as Markdown and optionally generates
implementation plans with Anthropic models:
- Interactive: list the user's tickets and choose which to process
- ``--ticket-id``: fetch and save a single ticket
- ``--ticket``: generate a plan from a previously saved ticket file
"""

from __future__ import annotations

import sys
from contextlib import ExitStack
from pathlib import Path

import click

from linear_agent import __version__
from linear_agent.config import DEFAULT_OUTPUT_DIR, DEFAULT_TICKETS_DIR, AppConfig, load_config
from linear_agent.exceptions import (
    ApiError,
    AuthError,
    ConfigError,
    LinearAgentError,
    NetworkError,
    NotFoundError,
    ParseError,
    RateLimitError,
)
from linear_agent.logging import get_logger, setup_logging
from linear_agent.pipeline import TicketOutcome, TicketPipeline
from linear_agent.planner import AnthropicClient
from linear_agent.tickets import parse_ticket_file
from linear_agent.tracker import IssueFilter, LinearClient
from linear_agent.ui import display_issues, prompt_selection, setup_wizard
from linear_agent.updates import check_for_updates

logger = get_logger("cli")

EXAMPLES = """\b
Example usage:
  linear-agent --setup                            # Run initial setup
  linear-agent --user "John Doe"                  # Get John's tickets (no plans)
  linear-agent --user "John Doe" --plan           # Generate plans for John's tickets
  linear-agent -u "John Doe" -s "Open"            # Only analyze open tickets
  linear-agent -e ~/.linear-agent/.env            # Use custom .env file
  linear-agent --ticket tickets/LIN-1-Foo.md --plan  # Plan from a saved ticket file
  linear-agent --ticket-id LIN-123                # Fetch and save a specific ticket
"""


def _success(message: str) -> None:
    click.echo(click.style(message, fg="green"))


def _info(message: str) -> None:
    click.echo(click.style(message, fg="blue"))


def _open_planner(config: AppConfig, stack: ExitStack) -> AnthropicClient | None:
    """Create and verify the Anthropic client when plans are requested."""
    if not config.generate_plans:
        return None
    planner = stack.enter_context(AnthropicClient(config.require_anthropic_key()))
    _info("Testing Anthropic API connection...")
    planner.check_connection()
    _success("Anthropic API connection successful")
    return planner


def _open_tracker(config: AppConfig, stack: ExitStack) -> LinearClient:
    """Create and verify the Linear client."""
    tracker = stack.enter_context(LinearClient(config.require_linear_key()))
    _info("Testing Linear API connection...")
    name = tracker.viewer_name()
    _success(f"Linear API connection successful (authenticated as {name or 'unknown'})")
    return tracker


def _report(outcomes: list[TicketOutcome]) -> int:
    """Print per-ticket results and return the exit code."""
    failed = 0
    for outcome in outcomes:
        if outcome.ticket_path is not None:
            _success(f"Ticket {outcome.ticket_id} saved to {outcome.ticket_path.resolve()}")
        if outcome.plan_path is not None:
            _success(f"Implementation plan saved to {outcome.plan_path.resolve()}")
        if outcome.error is not None:
            failed += 1
            message = f"Error ({outcome.ticket_id}): {outcome.error}"
            click.echo(click.style(message, fg="red"), err=True)

    if failed:
        click.echo(f"\n{failed} of {len(outcomes)} ticket(s) failed.", err=True)
        return 1
    _success(f"\nProcessed {len(outcomes)} ticket(s).")
    return 0


def run_saved_ticket(config: AppConfig, ticket_path: Path) -> int:
    """Display a saved ticket and, with ``--plan``, generate its plan."""
    if not config.generate_plans:
        click.echo(
            click.style(
                "Note: Using --ticket without --plan will only display the ticket details",
                fg="yellow",
            )
        )

    _info(f"Loading ticket from {ticket_path}")
    ticket = parse_ticket_file(ticket_path)
    _success("Ticket loaded successfully:")
    click.echo(f"Title: {ticket.title}")
    click.echo(f"ID: {ticket.id}")
    click.echo(f"State: {ticket.state or 'not set'}")

    if not config.generate_plans:
        return 0

    with ExitStack() as stack:
        planner = _open_planner(config, stack)
        pipeline = TicketPipeline(config, planner=planner)
        _info(f"Generating implementation plan for: {ticket.title}")
        return _report([pipeline.process_saved_ticket(ticket_path)])


def run_ticket_id(config: AppConfig, ticket_id: str) -> int:
    """Fetch, save and optionally plan a single ticket."""
    with ExitStack() as stack:
        tracker = _open_tracker(config, stack)
        planner = _open_planner(config, stack)
        pipeline = TicketPipeline(config, tracker=tracker, planner=planner)
        _info(f"Fetching ticket with ID: {ticket_id}...")
        return _report(pipeline.process_ids([ticket_id]))


def run_interactive(config: AppConfig) -> int:
    """List matching tickets, let the user choose, and process the selection."""
    with ExitStack() as stack:
        tracker = _open_tracker(config, stack)
        planner = _open_planner(config, stack)

        issue_filter = IssueFilter(
            assignee=config.user_name or None,
            team=config.team_name or None,
            states=set(config.states),
        )
        who = config.user_name or "all users"
        _info(
            f"Fetching tickets for {who} in team {config.team_name} "
            f"with states: {', '.join(config.states)}"
        )
        issues = tracker.list_issues(issue_filter)

        if not issues:
            click.echo(click.style("No tickets found matching the criteria.", fg="yellow"))
            return 0

        display_issues(issues)
        selected = prompt_selection(issues, generate_plans=config.generate_plans)
        if not selected:
            click.echo("No valid tickets selected.", err=True)
            return 1

        pipeline = TicketPipeline(config, tracker=tracker, planner=planner)
        return _report(pipeline.process_ids([issue.id for issue in selected]))


def run_update_check() -> int:
    """Print whether a newer release is available."""
    _info("Checking for updates...")
    info = check_for_updates(__version__)
    click.echo(f"Current version: {info.current_version}")
    click.echo(f"Latest version: {info.latest_version}")
    if info.update_available:
        _success("A new version is available!")
        click.echo(f"Download it from: {info.release_url}")
    else:
        _success("You are using the latest version!")
    return 0


@click.command(epilog=EXAMPLES)
@click.version_option(version=__version__, prog_name="linear-agent")
@click.option(
    "-e",
    "--env",
    "env_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to .env file (default: ./.env or ~/.linear-agent/.env)",
)
@click.option("-u", "--user", help="Linear user whose tickets to analyze")
@click.option("-t", "--team", help="Linear team name")
@click.option("-s", "--states", help="Comma-separated workflow states, e.g. 'Open,In Progress'")
@click.option("-m", "--model", help="Anthropic model used for plan generation")
@click.option(
    "-o",
    "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_OUTPUT_DIR,
    show_default=True,
    help="Directory for implementation plans",
)
@click.option(
    "--tickets-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_TICKETS_DIR,
    show_default=True,
    help="Directory for ticket files",
)
@click.option(
    "--ticket",
    "ticket_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Previously saved ticket file to process",
)
@click.option("--ticket-id", help="Fetch and save a specific ticket by id, e.g. LIN-123")
@click.option("--plan", is_flag=True, help="Generate implementation plans")
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose output, including raw API responses",
)
@click.option("--setup", is_flag=True, help="Run the interactive setup wizard")
@click.option("--check-update", is_flag=True, help="Check whether a new version is available")
def main(
    env_file: Path | None,
    user: str | None,
    team: str | None,
    states: str | None,
    model: str | None,
    output_dir: Path,
    tickets_dir: Path,
    ticket_path: Path | None,
    ticket_id: str | None,
    plan: bool,
    verbose: bool,
    setup: bool,
    check_update: bool,
) -> None:
    """Linear Agent: fetch Linear tickets and generate implementation plans."""
    try:
        setup_logging(level="DEBUG" if verbose else None, console=verbose)

        if check_update:
            sys.exit(run_update_check())

        _success("Linear Agent: Interactive Implementation Plan Generator")

        if setup:
            setup_wizard()
            sys.exit(0)

        config = load_config(
            env_file,
            user=user,
            team=team,
            states=states,
            model=model,
            output_dir=output_dir,
            tickets_dir=tickets_dir,
            generate_plans=plan,
            verbose=verbose,
        )

        if ticket_path is not None:
            sys.exit(run_saved_ticket(config, ticket_path))
        if ticket_id:
            sys.exit(run_ticket_id(config, ticket_id.strip()))
        sys.exit(run_interactive(config))

    except AuthError as e:
        click.echo(f"Authentication error: {e}", err=True)
        click.echo("Run 'linear-agent --setup' to configure your API keys.", err=True)
        sys.exit(1)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except ParseError as e:
        click.echo(f"Parse error: {e}", err=True)
        sys.exit(1)
    except NotFoundError as e:
        click.echo(f"Not found: {e}", err=True)
        sys.exit(1)
    except RateLimitError as e:
        click.echo(f"Rate limit exceeded: {e}", err=True)
        sys.exit(1)
    except NetworkError as e:
        click.echo(f"Network error: {e}", err=True)
        sys.exit(1)
    except ApiError as e:
        click.echo(f"API error: {e}", err=True)
        sys.exit(1)
    except LinearAgentError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
