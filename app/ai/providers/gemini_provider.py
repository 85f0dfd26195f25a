from __future__ import annotations

from typing import Any, Sequence

from app.ai.config import AIConfig
from app.ai.types import ChatMessage, ProviderSpec

from .common import candidates_text, extract_generated_text, flatten_conversation

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


def _gemini_headers(credential: str) -> dict[str, str]:
    return {"x-goog-api-key": credential}


def build_gemini_provider(cfg: AIConfig) -> ProviderSpec:
    def build_request(messages: Sequence[ChatMessage]) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": flatten_conversation(messages)}]}],
            "generationConfig": {
                "temperature": cfg.temperature,
                "topK": 1,
                "topP": 1,
                "maxOutputTokens": 2048,
            },
        }

    def parse_response(body: Any) -> str:
        return extract_generated_text(body, preferred=candidates_text)

    return ProviderSpec(
        name="Gemini",
        endpoint=f"{GEMINI_BASE_URL}/{cfg.gemini_model}:generateContent",
        credential=cfg.gemini_api_key,
        build_headers=_gemini_headers,
        build_request=build_request,
        parse_response=parse_response,
    )
