"""AnthropicClient - Generates implementation plans via the Anthropic Messages API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from linear_agent.exceptions import (
    ApiError,
    AuthError,
    NetworkError,
    NotFoundError,
    RateLimitError,
)
from linear_agent.logging import sanitize_for_log, truncate_output
from linear_agent.planner.prompts import build_plan_prompt
from linear_agent.tickets.models import Plan

logger = logging.getLogger("linear_agent.planner")

ANTHROPIC_API_URL = "https://api.anthropic.com/v1"
ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 4000


class AnthropicClient:
    """Client for the Anthropic Messages API.

    One request per plan: no streaming and no retries.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = ANTHROPIC_API_URL,
        timeout: float = 120.0,
    ) -> None:
        """Initialize Anthropic client.

        Args:
            api_key: Anthropic API key
            base_url: API base URL (for testing)
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client for the Messages API."""
        if self._client is None:
            self._client = httpx.Client(
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": ANTHROPIC_VERSION,
                    "content-type": "application/json",
                },
                timeout=self.timeout,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> AnthropicClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(
        self, method: str, path: str, payload: dict[str, Any] | None = None, model: str = ""
    ) -> dict[str, Any]:
        """Send one request and map failures onto the error taxonomy.

        Raises:
            AuthError: If the API key is rejected
            NotFoundError: If the model (or endpoint) does not exist
            RateLimitError: If the request was throttled
            NetworkError: If the request could not be sent
            ApiError: For any other failure
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.client.request(method, url, json=payload)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Anthropic API request timed out: {e}") from e
        except httpx.TransportError as e:
            raise NetworkError(f"Failed to reach Anthropic API: {e}") from e

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Anthropic API response (%s): %s",
                response.status_code,
                truncate_output(sanitize_for_log(response.text), 2000),
            )

        if response.status_code in (401, 403):
            raise AuthError(
                f"Anthropic API rejected the API key ({response.status_code}). "
                "Check ANTHROPIC_API_KEY."
            )
        if response.status_code == 404:
            target = f"Model '{model}'" if model else f"Endpoint {path}"
            raise NotFoundError(f"{target} not found: {self._error_message(response)}")
        if response.status_code == 429:
            raise RateLimitError("Anthropic API rate limit exceeded")
        if response.status_code != 200:
            raise ApiError(
                f"Anthropic API request failed: {response.status_code} - "
                f"{self._error_message(response)}"
            )

        try:
            data: dict[str, Any] = response.json()
        except ValueError as e:
            raise ApiError(f"Anthropic API returned invalid JSON: {response.text}") from e
        return data

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return response.text

    def generate_text(self, model: str, prompt: str, max_tokens: int = DEFAULT_MAX_TOKENS) -> str:
        """Send a single-turn prompt and return the reply text.

        Args:
            model: Anthropic model name
            prompt: User message content
            max_tokens: Output token limit

        Returns:
            Concatenated text blocks of the reply

        Raises:
            ApiError: If the reply contains no text
        """
        payload = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        data = self._request("POST", "/messages", payload, model=model)

        blocks = data.get("content") or []
        text = "".join(
            block.get("text", "") for block in blocks if block.get("type") == "text"
        ).strip()
        if not text:
            raise ApiError(f"Anthropic API returned an empty reply (model {model})")

        usage = data.get("usage") or {}
        logger.info(
            "Generated %d chars with %s (input_tokens=%s, output_tokens=%s, stop_reason=%s)",
            len(text),
            model,
            usage.get("input_tokens"),
            usage.get("output_tokens"),
            data.get("stop_reason"),
        )
        return text

    def generate_plan(self, ticket_markdown: str, model: str, ticket_id: str) -> Plan:
        """Generate an implementation plan for a rendered ticket.

        Args:
            ticket_markdown: Ticket document as written to disk
            model: Anthropic model name
            ticket_id: Identifier recorded on the plan

        Returns:
            Plan whose body is the model's reply
        """
        logger.info("Generating implementation plan for %s with %s", ticket_id, model)
        body = self.generate_text(model, build_plan_prompt(ticket_markdown))
        return Plan(ticket_id=ticket_id, body=body, model=model)

    def check_connection(self) -> list[str]:
        """Verify the API key by listing available models.

        Returns:
            Model ids visible to the key
        """
        data = self._request("GET", "/models")
        return [str(model.get("id")) for model in data.get("data") or []]
