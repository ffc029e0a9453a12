from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

import httpx

from tavern.infrastructure.resilient_http import post_json_with_retry


@dataclass(frozen=True)
class ChatProvider:
    name: str
    url: str
    model: str
    api_key: str
    extra_headers: tuple[tuple[str, str], ...] = ()


class ChatCompletionClient:
    """OpenAI-compatible chat completion client (synchronous, small surface)."""

    def __init__(
        self,
        timeout: float = 30.0,
        retries: int = 1,
        backoff_seconds: float = 0.5,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._retries = retries
        self._backoff_seconds = backoff_seconds
        self.client = http_client or httpx.Client(timeout=timeout)

    def complete(self, provider: ChatProvider, messages: List[Dict[str, str]]) -> str:
        headers = {"Authorization": f"Bearer {provider.api_key}", "Content-Type": "application/json"}
        headers.update(dict(provider.extra_headers))
        payload = post_json_with_retry(
            self.client,
            provider.url,
            json_body={"model": provider.model, "messages": messages, "stream": False},
            headers=headers,
            retries=self._retries,
            backoff_seconds=self._backoff_seconds,
        )
        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ValueError(f"{provider.name} returned no completion") from exc
        if not isinstance(content, str) or not content.strip():
            raise ValueError(f"{provider.name} returned an empty completion")
        return content

    def close(self) -> None:
        self.client.close()
