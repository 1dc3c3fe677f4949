"""Configuration loading for linear-agent.

Settings are merged from (highest precedence first) CLI flags, process
environment variables, a ``.env`` file, and built-in defaults. The result is a
frozen ``AppConfig`` built once per invocation and passed to every component
that needs it.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from dotenv import dotenv_values, load_dotenv

from linear_agent.exceptions import AuthError, ConfigError
from linear_agent.logging import get_logger

logger = get_logger("config")

DEFAULT_ENV_FILENAME = ".env"
DEFAULT_CONFIG_DIR = Path.home() / ".linear-agent"

DEFAULT_TEAM_NAME = "Engineering"
DEFAULT_STATES = ("Open", "In Progress")
DEFAULT_MODEL = "claude-3-7-sonnet-20250219"
DEFAULT_OUTPUT_DIR = "implementation_plans"
DEFAULT_TICKETS_DIR = "tickets"

SUPPORTED_MODELS = (
    "claude-3-7-sonnet-20250219",
    "claude-3-5-sonnet-20240620",
    "claude-3-haiku-20240307",
    "claude-3-opus-20240229",
)

# Environment variable names
ENV_LINEAR_API_KEY = "LINEAR_API_KEY"
ENV_ANTHROPIC_API_KEY = "ANTHROPIC_API_KEY"
ENV_TEAM_NAME = "LINEAR_TEAM_NAME"
ENV_USER_NAME = "LINEAR_AGENT_USER"
ENV_STATES = "LINEAR_AGENT_STATES"
ENV_MODEL = "ANTHROPIC_MODEL"


@dataclass(frozen=True)
class AppConfig:
    """Resolved settings for a single CLI invocation."""

    linear_api_key: str = ""
    anthropic_api_key: str | None = None
    team_name: str = DEFAULT_TEAM_NAME
    user_name: str = ""
    states: tuple[str, ...] = DEFAULT_STATES
    model: str = DEFAULT_MODEL
    output_dir: Path = field(default_factory=lambda: Path(DEFAULT_OUTPUT_DIR))
    tickets_dir: Path = field(default_factory=lambda: Path(DEFAULT_TICKETS_DIR))
    generate_plans: bool = False
    verbose: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AppConfig:
        """Create config from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            Config with every unset variable left at its default.
        """
        env = os.environ if environ is None else environ

        states = DEFAULT_STATES
        if env.get(ENV_STATES):
            states = parse_states(env[ENV_STATES])

        return cls(
            linear_api_key=env.get(ENV_LINEAR_API_KEY, ""),
            anthropic_api_key=env.get(ENV_ANTHROPIC_API_KEY) or None,
            team_name=env.get(ENV_TEAM_NAME) or DEFAULT_TEAM_NAME,
            user_name=env.get(ENV_USER_NAME, ""),
            states=states,
            model=env.get(ENV_MODEL) or DEFAULT_MODEL,
        )

    def require_linear_key(self) -> str:
        """Return the Linear API key.

        Raises:
            AuthError: If no key is configured.
        """
        if not self.linear_api_key:
            raise AuthError(
                f"{ENV_LINEAR_API_KEY} is not set. Run 'linear-agent --setup' "
                "or pass a .env file with --env."
            )
        return self.linear_api_key

    def require_anthropic_key(self) -> str:
        """Return the Anthropic API key.

        Raises:
            AuthError: If no key is configured.
        """
        if not self.anthropic_api_key:
            raise AuthError(
                f"{ENV_ANTHROPIC_API_KEY} is not set; it is required for --plan. "
                "Run 'linear-agent --setup' or add it to your .env file."
            )
        return self.anthropic_api_key

    def to_env(self) -> str:
        """Render the persistent settings as ``.env`` file content."""
        lines = [f"{ENV_LINEAR_API_KEY}={self.linear_api_key}"]
        if self.anthropic_api_key:
            lines.append(f"{ENV_ANTHROPIC_API_KEY}={self.anthropic_api_key}")
        lines.extend(
            [
                f"{ENV_TEAM_NAME}={self.team_name}",
                f"{ENV_USER_NAME}={self.user_name}",
                f"{ENV_STATES}={','.join(self.states)}",
                f"{ENV_MODEL}={self.model}",
            ]
        )
        return "\n".join(lines) + "\n"


def parse_states(raw: str) -> tuple[str, ...]:
    """Split a comma-separated state list, dropping blanks.

    Args:
        raw: Value such as ``"Open, In Progress"``.

    Returns:
        Tuple of trimmed state names.
    """
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def env_file_locations() -> list[Path]:
    """Get standard locations for the .env file, in lookup order."""
    return [
        Path(DEFAULT_ENV_FILENAME),
        DEFAULT_CONFIG_DIR / DEFAULT_ENV_FILENAME,
    ]


def load_env_file(env_file: Path | str | None = None) -> Path | None:
    """Load a .env file into the process environment.

    Variables already present in the environment are not overridden.

    Args:
        env_file: Explicit path. If None, the first existing standard
            location is used.

    Returns:
        Path of the loaded file, or None if no file was found.

    Raises:
        ConfigError: If an explicit path does not exist.
    """
    if env_file is not None:
        env_path = Path(env_file)
        if not env_path.is_file():
            raise ConfigError(f".env file not found: {env_path}")
        load_dotenv(env_path, override=False)
        logger.info("Loaded configuration from %s", env_path)
        return env_path

    for location in env_file_locations():
        if location.is_file():
            load_dotenv(location, override=False)
            logger.info("Loaded configuration from %s", location)
            return location

    logger.debug("No .env file found in %s", [str(p) for p in env_file_locations()])
    return None


def load_config(
    env_file: Path | str | None = None,
    *,
    user: str | None = None,
    team: str | None = None,
    states: str | None = None,
    model: str | None = None,
    output_dir: Path | str | None = None,
    tickets_dir: Path | str | None = None,
    generate_plans: bool = False,
    verbose: bool = False,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Resolve the configuration for one invocation.

    Args:
        env_file: Optional .env path (see ``load_env_file``).
        user: CLI override for the assignee name.
        team: CLI override for the team name.
        states: CLI override, comma-separated state names.
        model: CLI override for the Anthropic model.
        output_dir: Directory for implementation plans.
        tickets_dir: Directory for ticket files.
        generate_plans: Whether plan generation was requested.
        verbose: Whether verbose output was requested.
        environ: Environment mapping to read instead of ``os.environ``.
            When given, no .env file is loaded into the process; the file's
            values are merged underneath the mapping instead.

    Returns:
        The frozen configuration.

    Raises:
        ConfigError: If an explicit .env file is missing.
    """
    if environ is None:
        load_env_file(env_file)
        config = AppConfig.from_env()
    else:
        merged: dict[str, str] = {}
        if env_file is not None:
            env_path = Path(env_file)
            if not env_path.is_file():
                raise ConfigError(f".env file not found: {env_path}")
            merged.update({k: v for k, v in dotenv_values(env_path).items() if v is not None})
        merged.update(environ)
        config = AppConfig.from_env(merged)

    overrides: dict[str, object] = {
        "generate_plans": generate_plans,
        "verbose": verbose,
    }
    if user:
        overrides["user_name"] = user
    if team:
        overrides["team_name"] = team
    if states:
        overrides["states"] = parse_states(states)
    if model:
        overrides["model"] = model
    if output_dir is not None:
        overrides["output_dir"] = Path(output_dir)
    if tickets_dir is not None:
        overrides["tickets_dir"] = Path(tickets_dir)

    return replace(config, **overrides)


def save_config(config: AppConfig, path: Path | str | None = None) -> Path:
    """Save the persistent settings to a .env file.

    Args:
        config: Configuration to save.
        path: Target file. Defaults to ``~/.linear-agent/.env``.

    Returns:
        Path of the written file.

    Raises:
        ConfigError: If the file cannot be written.
    """
    env_path = Path(path) if path is not None else DEFAULT_CONFIG_DIR / DEFAULT_ENV_FILENAME

    try:
        env_path.parent.mkdir(parents=True, exist_ok=True)
        env_path.write_text(config.to_env(), encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to write .env file at {env_path}: {e}") from e

    logger.info("Saved configuration to %s", env_path)
    return env_path
