"""Release check against the project's GitHub releases."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

import httpx

from linear_agent.exceptions import ApiError, NetworkError
from linear_agent.logging import get_logger

logger = get_logger("updates")

# "owner/name" of the GitHub repository publishing releases; the default is a placeholder
ENV_RELEASES_REPO = "LINEAR_AGENT_RELEASES_REPO"
DEFAULT_RELEASES_REPO = "yourusername/linear-agent"


def releases_repo() -> str:
    return os.environ.get(ENV_RELEASES_REPO) or DEFAULT_RELEASES_REPO


def releases_api_url(repo: str) -> str:
    return f"https://api.github.com/repos/{repo}/releases/latest"


def releases_page(repo: str) -> str:
    return f"https://github.com/{repo}/releases"


@dataclass
class UpdateInfo:
    """Latest release compared with the running version."""

    current_version: str
    latest_version: str
    release_url: str = ""

    @property
    def update_available(self) -> bool:
        return version_tuple(self.latest_version) > version_tuple(self.current_version)


def version_tuple(version: str) -> tuple[int, ...]:
    """Numeric components of a version string, e.g. ``"v1.2.3"`` -> ``(1, 2, 3)``."""
    return tuple(int(part) for part in re.findall(r"\d+", version.lstrip("vV").split("-")[0]))


def check_for_updates(
    current_version: str,
    client: httpx.Client | None = None,
    repo: str | None = None,
) -> UpdateInfo:
    """Fetch the latest release tag and compare it with ``current_version``.

    Args:
        current_version: Running version.
        client: HTTP client to use (for testing). A short-lived one is
            created otherwise.
        repo: GitHub "owner/name" to query. Defaults to
            ``LINEAR_AGENT_RELEASES_REPO`` or the built-in placeholder.

    Returns:
        UpdateInfo for the latest release.

    Raises:
        NetworkError: If GitHub could not be reached.
        ApiError: If the response has no usable tag.
    """
    repo = repo or releases_repo()
    url = releases_api_url(repo)
    owns_client = client is None
    http = client or httpx.Client(
        headers={"User-Agent": "linear-agent-updater", "Accept": "application/vnd.github+json"},
        timeout=10.0,
    )
    try:
        response = http.get(url)
    except httpx.HTTPError as e:
        raise NetworkError(f"Failed to check for updates: {e}") from e
    finally:
        if owns_client:
            http.close()

    if response.status_code != 200:
        raise ApiError(f"Failed to check for updates: HTTP {response.status_code}")

    try:
        release = response.json()
    except ValueError as e:
        raise ApiError("Failed to check for updates: invalid JSON") from e

    tag_name = release.get("tag_name")
    if not tag_name:
        raise ApiError("Failed to extract version from the latest release")

    info = UpdateInfo(
        current_version=current_version,
        latest_version=str(tag_name).lstrip("vV"),
        release_url=release.get("html_url") or releases_page(repo),
    )
    logger.info("Current version %s, latest release %s", current_version, info.latest_version)
    return info
