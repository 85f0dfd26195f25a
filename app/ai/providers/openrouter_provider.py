from __future__ import annotations

from typing import Any, Sequence

from app.ai.config import AIConfig
from app.ai.types import ChatMessage, ProviderSpec

from .common import bearer_headers, chat_payload, choices_text, extract_generated_text

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"


def build_openrouter_provider(cfg: AIConfig) -> ProviderSpec:
    def build_headers(credential: str) -> dict[str, str]:
        return {
            **bearer_headers(credential),
            "HTTP-Referer": cfg.openrouter_referer,
            "X-Title": cfg.openrouter_title,
        }

    def build_request(messages: Sequence[ChatMessage]) -> dict[str, Any]:
        return {
            "model": cfg.openrouter_model,
            "messages": chat_payload(messages),
            "temperature": cfg.temperature,
            "max_tokens": 2000,
        }

    def parse_response(body: Any) -> str:
        return extract_generated_text(body, preferred=choices_text)

    return ProviderSpec(
        name="OpenRouter",
        endpoint=OPENROUTER_URL,
        credential=cfg.openrouter_api_key,
        build_headers=build_headers,
        build_request=build_request,
        parse_response=parse_response,
    )
