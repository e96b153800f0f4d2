from __future__ import annotations

from typing import Protocol, Tuple


class LLMProvider(Protocol):
    PROVIDER_ID: str

    def generate_rows(self, *, prompt: str) -> Tuple[str, int, int, float]:
        """Return (raw_text, token_in, token_out, cost_usd).

        Raises TimeoutError when the call exceeds the client timeout and
        ConnectionError when the endpoint cannot be reached.
        """

    def ping(self) -> None:
        """Raise ConnectionError if the endpoint is not reachable."""
