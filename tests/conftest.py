"""Shared pytest fixtures and configuration."""

from datetime import datetime, timezone

import pytest

from linear_agent.tracker import Issue, IssueComment, IssueRef


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")
    config.addinivalue_line("markers", "real: tests against the live Linear API")


@pytest.fixture(autouse=True)
def isolated_log_dir(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Keep log files of every test out of the user's home directory."""
    log_dir = tmp_path / "logs"
    monkeypatch.setenv("LINEAR_AGENT_LOG_DIR", str(log_dir))
    return log_dir


@pytest.fixture
def sample_issue() -> Issue:
    """A fully populated issue with one-hop relationships."""
    return Issue(
        id="LIN-42",
        title="Fix login bug",
        description="Users cannot log in with SSO.\n\n## Steps\n\n1. Open the login page",
        state="In Progress",
        priority=2,
        estimate=None,
        url="https://linear.app/acme/issue/LIN-42",
        labels=["bug", "urgent"],
        comments=[
            IssueComment(
                body="Reproduced on staging.\nLogs attached.",
                created_at=datetime(2024, 3, 2, 9, 30, tzinfo=timezone.utc),
                author="Bob",
            ),
            IssueComment(
                body="Looking into it",
                created_at=datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
                author="Alice",
            ),
        ],
        parent=IssueRef(id="LIN-40", title="Auth epic"),
        children=[IssueRef(id="LIN-43", title="Add SSO regression test")],
        related=[IssueRef(id="LIN-41", title="Session timeout")],
        assignee="Alice",
        team="Engineering",
    )
