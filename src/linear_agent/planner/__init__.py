"""Plan generator - turns rendered tickets into implementation plans."""

from linear_agent.planner.client import ANTHROPIC_API_URL, AnthropicClient
from linear_agent.planner.prompts import build_plan_prompt

__all__ = [
    "ANTHROPIC_API_URL",
    "AnthropicClient",
    "build_plan_prompt",
]
