from __future__ import annotations

import logging
import os
from typing import Any, Optional, Tuple

import openai
from openai import OpenAI

from adapters.llm.base import LLMProvider

log = logging.getLogger(__name__)

# Ollama serves an OpenAI-compatible API under /v1 and ignores the key.
DEFAULT_BASE_URL = "http://localhost:11434/v1"
DEFAULT_API_KEY = "ollama"
DEFAULT_MODEL = "llama3"
DEFAULT_TIMEOUT_SEC = 120.0

SYSTEM_PROMPT = (
    "You generate database seed data. "
    "You reply with a single JSON array of objects and nothing else."
)


def _resolve_api_config() -> tuple[str, str, str]:
    """Returns (api_key, base_url, model_id) according to env."""
    api_key = os.getenv("DBSEED_LLM_API_KEY") or DEFAULT_API_KEY
    base_url = os.getenv("DBSEED_LLM_BASE_URL") or DEFAULT_BASE_URL
    model = os.getenv("DBSEED_MODEL") or DEFAULT_MODEL
    return api_key, base_url, model


class OpenAIProvider(LLMProvider):
    """Row generation over any OpenAI-compatible chat endpoint."""

    PROVIDER_ID = "openai"

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        temperature: float = 0.7,
    ) -> None:
        env_key, env_url, env_model = _resolve_api_config()
        self.base_url = base_url or env_url
        self.model = model or env_model
        self.temperature = temperature
        self.client = OpenAI(
            api_key=api_key or env_key, base_url=self.base_url, timeout=timeout
        )
        # last call usage/metadata for tracing
        self._last_usage: dict[str, Any] = {}

    def get_last_usage(self) -> dict[str, Any]:
        """Return metadata of the last LLM call (tokens, cost, response length)."""
        return dict(self._last_usage)

    def _create_chat_completion(self, **kwargs):
        """OpenAI SDK seam for stable unit testing."""
        return self.client.chat.completions.create(**kwargs)

    def _list_models(self):
        """OpenAI SDK seam for ping()."""
        return self.client.models.list()

    def generate_rows(self, *, prompt: str) -> Tuple[str, int, int, float]:
        try:
            completion = self._create_chat_completion(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
            )
        except openai.APITimeoutError as e:
            raise TimeoutError(f"LLM request to {self.base_url} timed out") from e
        except openai.APIConnectionError as e:
            raise ConnectionError(f"cannot reach LLM at {self.base_url}: {e}") from e

        text = completion.choices[0].message.content or ""
        log.debug("model %s returned %d chars", self.model, len(text))

        usage = completion.usage
        prompt_tokens = usage.prompt_tokens if usage else 0
        completion_tokens = usage.completion_tokens if usage else 0
        cost = self._estimate_cost(usage)
        self._last_usage = {
            "kind": "generate_rows",
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "cost_usd": cost,
            "response_length": len(text),
        }
        return (text, prompt_tokens, completion_tokens, cost)

    def ping(self) -> None:
        try:
            self._list_models()
        except openai.APIConnectionError as e:
            raise ConnectionError(
                f"cannot reach LLM at {self.base_url}. Is ollama running? ({e})"
            ) from e

    def _estimate_cost(self, usage: Any) -> float:
        """Estimate cost in USD from token usage; local models are free."""
        if not usage:
            return 0.0

        # Pricing per 1K tokens for hosted models
        pricing = {
            "gpt-4o": {"input": 0.005, "output": 0.015},
            "gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
            "gpt-3.5-turbo": {"input": 0.0005, "output": 0.0015},
        }

        model_pricing = pricing.get(self.model)
        if model_pricing is None:
            return 0.0

        input_cost = (usage.prompt_tokens / 1000) * model_pricing["input"]
        output_cost = (usage.completion_tokens / 1000) * model_pricing["output"]

        return input_cost + output_cost
