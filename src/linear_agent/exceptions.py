"""Custom exceptions for linear-agent."""


class LinearAgentError(Exception):
    """Base exception for linear-agent errors."""


class AuthError(LinearAgentError):
    """Missing or rejected API credentials."""


class NetworkError(LinearAgentError):
    """Transport failure or timeout talking to a remote API."""


class NotFoundError(LinearAgentError):
    """User, team, ticket or model could not be resolved."""


class RateLimitError(LinearAgentError):
    """Remote API throttled the request."""


class ApiError(LinearAgentError):
    """Remote API answered with an unexpected error."""


class ParseError(LinearAgentError):
    """Saved ticket file does not match the ticket Markdown format."""


class InputError(LinearAgentError):
    """Interactive selection token could not be used."""


class ConfigError(LinearAgentError):
    """Configuration is invalid or could not be loaded."""
