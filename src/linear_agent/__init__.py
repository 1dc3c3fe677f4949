"""linear-agent - fetch Linear tickets and generate implementation plans."""

__version__ = "0.1.0"
