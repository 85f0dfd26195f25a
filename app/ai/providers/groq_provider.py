from __future__ import annotations

from typing import Any, Sequence

from app.ai.config import AIConfig
from app.ai.types import ChatMessage, ProviderSpec

from .common import bearer_headers, chat_payload, choices_text, extract_generated_text

GROQ_URL = "https://api.groq.com/openai/v1/chat/completions"


def build_groq_provider(cfg: AIConfig) -> ProviderSpec:
    def build_request(messages: Sequence[ChatMessage]) -> dict[str, Any]:
        return {
            "model": cfg.groq_model,
            "messages": chat_payload(messages),
            "max_tokens": 4000,
            "temperature": 0.1,
            "stream": False,
        }

    def parse_response(body: Any) -> str:
        return extract_generated_text(body, preferred=choices_text)

    return ProviderSpec(
        name="Groq",
        endpoint=GROQ_URL,
        credential=cfg.groq_api_key,
        build_headers=bearer_headers,
        build_request=build_request,
        parse_response=parse_response,
    )
