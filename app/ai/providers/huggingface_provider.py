from __future__ import annotations

from typing import Any, Sequence

from app.ai.config import AIConfig
from app.ai.types import ChatMessage, ProviderSpec

from .common import bearer_headers, extract_generated_text, flatten_conversation, generated_text

HUGGINGFACE_BASE_URL = "https://api-inference.huggingface.co/models"


def build_huggingface_provider(cfg: AIConfig) -> ProviderSpec:
    def build_request(messages: Sequence[ChatMessage]) -> dict[str, Any]:
        return {
            "inputs": flatten_conversation(messages),
            "parameters": {
                "max_new_tokens": 2000,
                "temperature": cfg.temperature,
                "do_sample": True,
                "return_full_text": False,
            },
        }

    def parse_response(body: Any) -> str:
        return extract_generated_text(body, preferred=generated_text)

    return ProviderSpec(
        name="HuggingFace",
        endpoint=f"{HUGGINGFACE_BASE_URL}/{cfg.huggingface_model}",
        credential=cfg.huggingface_api_key,
        build_headers=bearer_headers,
        build_request=build_request,
        parse_response=parse_response,
    )
