"""Prompt construction for implementation plan generation."""

from __future__ import annotations

PLAN_INSTRUCTIONS = [
    "1. Overview of the solution",
    "2. Technical requirements and dependencies",
    "3. Step-by-step implementation approach",
    "4. Potential challenges and their solutions",
    "5. Testing strategy",
    "6. Estimated effort and complexity",
]


def build_plan_prompt(ticket_markdown: str) -> str:
    """Build the plan request for one ticket.

    Args:
        ticket_markdown: The rendered ticket document.

    Returns:
        Prompt text embedding the ticket verbatim.
    """
    prompt_parts = [
        "You are a software engineering expert helping to create implementation plans "
        "for software development tickets.",
        "",
        "I'll provide you with a ticket from Linear, including its details, comments, "
        "and related tickets.",
        "Based on this information, create a detailed implementation plan that includes:",
        "",
        *PLAN_INSTRUCTIONS,
        "",
        "Here's the ticket information:",
        "",
        ticket_markdown.strip(),
        "",
        "Please provide a detailed implementation plan for this ticket.",
    ]
    return "\n".join(prompt_parts)
