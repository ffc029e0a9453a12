from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

import httpx

from tavern.application.dtos import Narration, NarratorSnapshot
from tavern.application.errors import NarratorUnavailableError
from tavern.infrastructure.narrator.chat_completion_client import ChatCompletionClient, ChatProvider
from tavern.infrastructure.narrator.prompt import build_messages
from tavern.infrastructure.resilient_http import CircuitOpenError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderSpec:
    name: str
    env_key: str
    url: str
    model: str
    extra_headers: tuple[tuple[str, str], ...] = ()


# Default fall-through order.
PROVIDER_SPECS: tuple[ProviderSpec, ...] = (
    ProviderSpec("groq", "GROQ_API_KEY", "https://api.groq.com/openai/v1/chat/completions", "llama-3.3-70b-versatile"),
    ProviderSpec(
        "openrouter",
        "OPENROUTER_API_KEY",
        "https://openrouter.ai/api/v1/chat/completions",
        "tngtech/deepseek-r1t2-chimera:free",
        (("HTTP-Referer", "https://github.com/tavern-chronicle"),),
    ),
    ProviderSpec(
        "lovable",
        "LOVABLE_API_KEY",
        "https://ai.gateway.lovable.dev/v1/chat/completions",
        "google/gemini-3-flash-preview",
    ),
    ProviderSpec(
        "gemini",
        "GOOGLE_GEMINI_API_KEY",
        "https://generativelanguage.googleapis.com/v1beta/openai/chat/completions",
        "gemini-2.5-flash",
    ),
)


def configured_providers(
    env: Mapping[str, str] | None = None,
    preferred: Optional[str] = None,
) -> List[ChatProvider]:
    source = os.environ if env is None else env
    providers = [
        ChatProvider(
            name=spec.name,
            url=spec.url,
            model=spec.model,
            api_key=str(source.get(spec.env_key, "")).strip(),
            extra_headers=spec.extra_headers,
        )
        for spec in PROVIDER_SPECS
        if str(source.get(spec.env_key, "") or "").strip()
    ]
    wanted = str(preferred or "").strip().lower()
    if wanted:
        providers.sort(key=lambda provider: 0 if provider.name == wanted else 1)
    return providers


class ProviderChainNarrator:
    """Tries each configured chat provider in order until one answers."""

    def __init__(self, providers: Sequence[ChatProvider], client: ChatCompletionClient | None = None) -> None:
        self.providers = list(providers)
        self.client = client or ChatCompletionClient()

    def provider_names(self) -> List[str]:
        return [provider.name for provider in self.providers]

    def narrate(self, action_text: str, snapshot: NarratorSnapshot, dice_roll: Optional[int] = None) -> Narration:
        if not self.providers:
            raise NarratorUnavailableError(
                "No narrator configured (set GROQ_API_KEY, OPENROUTER_API_KEY, LOVABLE_API_KEY or GOOGLE_GEMINI_API_KEY)"
            )
        messages = build_messages(snapshot, action_text, dice_roll)
        failures: List[str] = []
        for provider in self.providers:
            try:
                content = self.client.complete(provider, messages)
            except (httpx.HTTPError, CircuitOpenError, ValueError) as exc:
                logger.warning("Narrator provider %s failed: %s", provider.name, exc)
                failures.append(f"{provider.name}: {exc}")
                continue
            logger.info("Narrator provider %s succeeded", provider.name)
            return Narration(narrative_text=content, raw_changes=None, provider=provider.name)
        raise NarratorUnavailableError("All narrator providers failed: " + "; ".join(failures))
