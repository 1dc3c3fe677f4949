"""Unit tests for the linear-agent command line."""

import os
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from linear_agent import __version__
from linear_agent.cli import main
from linear_agent.exceptions import NotFoundError
from linear_agent.tickets import Plan, assemble, render_ticket
from linear_agent.tracker import Issue
from linear_agent.updates import UpdateInfo

CONFIG_VARS = (
    "LINEAR_API_KEY",
    "ANTHROPIC_API_KEY",
    "LINEAR_TEAM_NAME",
    "LINEAR_AGENT_USER",
    "LINEAR_AGENT_STATES",
    "ANTHROPIC_MODEL",
)


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Run in an empty directory with no configuration in the environment."""
    with patch.dict(os.environ):
        for name in CONFIG_VARS:
            os.environ.pop(name, None)
        monkeypatch.setattr("linear_agent.config.DEFAULT_CONFIG_DIR", tmp_path / "home")
        monkeypatch.chdir(tmp_path)
        yield tmp_path


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def listed_issues() -> dict[str, Issue]:
    return {f"LIN-{n}": Issue(id=f"LIN-{n}", title=f"Ticket {n}", state="Open") for n in (1, 2, 3)}


@pytest.fixture
def tracker(listed_issues: dict[str, Issue]) -> Iterator[MagicMock]:
    """Patch LinearClient with a mock serving three issues."""
    instance = MagicMock()
    instance.__enter__.return_value = instance
    instance.viewer_name.return_value = "Alice"
    instance.list_issues.return_value = list(listed_issues.values())
    instance.fetch_issue.side_effect = lambda ticket_id: listed_issues[ticket_id]
    with patch("linear_agent.cli.LinearClient", return_value=instance):
        yield instance


@pytest.fixture
def planner() -> Iterator[MagicMock]:
    """Patch AnthropicClient with a mock returning a fixed plan."""
    instance = MagicMock()
    instance.__enter__.return_value = instance
    instance.generate_plan.side_effect = lambda markdown, model, ticket_id: Plan(
        ticket_id=ticket_id, body="Plan body", model=model
    )
    with patch("linear_agent.cli.AnthropicClient", return_value=instance):
        yield instance


@pytest.mark.unit
class TestBasics:
    """Tests for flags that need no API access."""

    def test_version(self, runner: CliRunner) -> None:
        """--version prints the package version."""
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_missing_linear_key(self, runner: CliRunner, workdir: Path) -> None:
        """Without credentials the CLI exits with a setup hint."""
        result = runner.invoke(main, ["--ticket-id", "LIN-1"])

        assert result.exit_code == 1
        assert "Authentication error" in result.output
        assert "--setup" in result.output

    def test_missing_env_file(self, runner: CliRunner, workdir: Path) -> None:
        """An explicit .env path that doesn't exist is a configuration error."""
        result = runner.invoke(main, ["-e", str(workdir / "nope.env"), "--ticket-id", "LIN-1"])

        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_unwritable_log_dir(
        self, runner: CliRunner, workdir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A log directory that cannot be created is reported, not raised."""
        blocker = workdir / "blocker"
        blocker.write_text("not a directory")
        monkeypatch.setenv("LINEAR_AGENT_LOG_DIR", str(blocker / "logs"))

        result = runner.invoke(main, ["--ticket-id", "LIN-1"])

        assert result.exit_code == 1
        assert "Configuration error" in result.output
        assert "log file" in result.output

    def test_check_update(self, runner: CliRunner) -> None:
        """--check-update reports the latest release."""
        info = UpdateInfo(current_version=__version__, latest_version="9.0.0")
        with patch("linear_agent.cli.check_for_updates", return_value=info):
            result = runner.invoke(main, ["--check-update"])

        assert result.exit_code == 0
        assert "A new version is available!" in result.output

    def test_setup_runs_wizard(self, runner: CliRunner, workdir: Path) -> None:
        """--setup runs the wizard and exits."""
        with patch("linear_agent.cli.setup_wizard") as wizard:
            result = runner.invoke(main, ["--setup"])

        assert result.exit_code == 0
        wizard.assert_called_once()


@pytest.mark.unit
class TestTicketId:
    """Tests for --ticket-id."""

    def test_saves_ticket(self, runner: CliRunner, workdir: Path, tracker: MagicMock) -> None:
        """The ticket is fetched and written to the tickets directory."""
        env_file = workdir / "custom.env"
        env_file.write_text("LINEAR_API_KEY=lin_api_test\n")

        result = runner.invoke(main, ["-e", str(env_file), "--ticket-id", "LIN-2"])

        assert result.exit_code == 0, result.output
        tracker.fetch_issue.assert_called_once_with("LIN-2")
        assert (workdir / "tickets" / "LIN-2-Ticket_2.md").exists()

    def test_not_found_exits_nonzero(
        self, runner: CliRunner, workdir: Path, tracker: MagicMock
    ) -> None:
        """An unknown ticket id fails the run."""
        os.environ["LINEAR_API_KEY"] = "lin_api_test"
        tracker.fetch_issue.side_effect = NotFoundError("Ticket LIN-9 not found")

        result = runner.invoke(main, ["--ticket-id", "LIN-9"])

        assert result.exit_code == 1
        assert "LIN-9" in result.output

    def test_invalid_model_keeps_ticket(
        self, runner: CliRunner, workdir: Path, tracker: MagicMock, planner: MagicMock
    ) -> None:
        """A plan failure exits non-zero but the ticket file stays on disk."""
        os.environ["LINEAR_API_KEY"] = "lin_api_test"
        os.environ["ANTHROPIC_API_KEY"] = "sk-ant-test"
        planner.generate_plan.side_effect = NotFoundError("Model 'bogus' not found")

        result = runner.invoke(main, ["--ticket-id", "LIN-1", "--plan", "-m", "bogus"])

        assert result.exit_code == 1
        assert "bogus" in result.output
        assert (workdir / "tickets" / "LIN-1-Ticket_1.md").exists()
        assert not (workdir / "implementation_plans").exists()


@pytest.mark.unit
class TestInteractive:
    """Tests for the interactive listing flow."""

    def test_selection_processes_chosen_tickets(
        self, runner: CliRunner, workdir: Path, tracker: MagicMock
    ) -> None:
        """Choosing '1,3' writes exactly those two tickets."""
        os.environ["LINEAR_API_KEY"] = "lin_api_test"

        result = runner.invoke(main, ["-u", "Alice", "-s", "Open"], input="1,3\n")

        assert result.exit_code == 0, result.output
        issue_filter = tracker.list_issues.call_args.args[0]
        assert issue_filter.assignee == "Alice"
        assert issue_filter.states == {"Open"}
        written = sorted(p.name for p in (workdir / "tickets").iterdir())
        assert written == ["LIN-1-Ticket_1.md", "LIN-3-Ticket_3.md"]

    def test_generates_plans(
        self, runner: CliRunner, workdir: Path, tracker: MagicMock, planner: MagicMock
    ) -> None:
        """With --plan, plans are written to the output directory."""
        os.environ["LINEAR_API_KEY"] = "lin_api_test"
        os.environ["ANTHROPIC_API_KEY"] = "sk-ant-test"

        result = runner.invoke(main, ["--plan", "-o", "plans"], input="2\n")

        assert result.exit_code == 0, result.output
        planner.check_connection.assert_called_once()
        assert (workdir / "plans" / "LIN-2-Ticket_2.md").exists()

    def test_no_valid_selection(
        self, runner: CliRunner, workdir: Path, tracker: MagicMock
    ) -> None:
        """Exhausting the attempts exits non-zero without writing files."""
        os.environ["LINEAR_API_KEY"] = "lin_api_test"

        result = runner.invoke(main, [], input="9\nfoo\n0\n")

        assert result.exit_code == 1
        assert "out of range" in result.output
        assert not (workdir / "tickets").exists()

    def test_no_tickets_found(self, runner: CliRunner, workdir: Path, tracker: MagicMock) -> None:
        """An empty listing ends the run successfully."""
        os.environ["LINEAR_API_KEY"] = "lin_api_test"
        tracker.list_issues.return_value = []

        result = runner.invoke(main, [])

        assert result.exit_code == 0
        assert "No tickets found" in result.output


@pytest.mark.unit
class TestSavedTicket:
    """Tests for --ticket."""

    def test_plan_from_saved_ticket(
        self, runner: CliRunner, workdir: Path, planner: MagicMock, sample_issue: Issue
    ) -> None:
        """A saved ticket file is planned without the tracker."""
        os.environ["ANTHROPIC_API_KEY"] = "sk-ant-test"
        saved = workdir / "LIN-42.md"
        saved.write_text(render_ticket(assemble(sample_issue)), encoding="utf-8")

        with patch("linear_agent.cli.LinearClient") as linear_client:
            result = runner.invoke(main, ["--ticket", str(saved), "--plan"])

        assert result.exit_code == 0, result.output
        linear_client.assert_not_called()
        assert (workdir / "implementation_plans" / "LIN-42-Fix_login_bug.md").exists()

    def test_display_only(self, runner: CliRunner, workdir: Path, sample_issue: Issue) -> None:
        """Without --plan the ticket is only displayed."""
        saved = workdir / "LIN-42.md"
        saved.write_text(render_ticket(assemble(sample_issue)), encoding="utf-8")

        result = runner.invoke(main, ["--ticket", str(saved)])

        assert result.exit_code == 0
        assert "ID: LIN-42" in result.output
        assert "Title: Fix login bug" in result.output

    def test_malformed_ticket(self, runner: CliRunner, workdir: Path) -> None:
        """A malformed file is reported as a parse error."""
        saved = workdir / "bad.md"
        saved.write_text("garbage")

        result = runner.invoke(main, ["--ticket", str(saved)])

        assert result.exit_code == 1
        assert "Parse error" in result.output
