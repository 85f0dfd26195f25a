from __future__ import annotations

import json
from typing import Any, Callable, Sequence

from app.ai.types import ChatMessage

TextExtractor = Callable[[Any], str]


def _dig(value: Any, *path: str | int) -> Any:
    current = value
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or len(current) <= key:
                return None
            current = current[key]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(key)
    return current


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def choices_text(body: Any) -> str:
    return _as_text(_dig(body, "choices", 0, "message", "content")) or _as_text(
        _dig(body, "choices", 0, "text")
    )


def candidates_text(body: Any) -> str:
    parts = _dig(body, "candidates", 0, "content", "parts")
    if not isinstance(parts, list):
        return ""
    return "".join(_as_text(_dig(part, "text")) for part in parts)


def generated_text(body: Any) -> str:
    return _as_text(_dig(body, 0, "generated_text")) or _as_text(_dig(body, "generated_text"))


def output_text(body: Any) -> str:
    return _as_text(_dig(body, "output_text"))


_KNOWN_SHAPES: tuple[TextExtractor, ...] = (choices_text, candidates_text, generated_text, output_text)


def extract_generated_text(body: Any, *, preferred: TextExtractor | None = None) -> str:
    """Pull generated text out of a decoded provider body.

    Falls back to serializing the whole body so the normalizer still has
    something to work with.
    """
    if isinstance(body, str):
        return body
    extractors = [preferred] if preferred else []
    extractors.extend(item for item in _KNOWN_SHAPES if item is not preferred)
    for extractor in extractors:
        text = extractor(body)
        if text:
            return text
    if body is None:
        return ""
    return json.dumps(body, ensure_ascii=False)


def bearer_headers(credential: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {credential}"}


def chat_payload(messages: Sequence[ChatMessage]) -> list[dict[str, str]]:
    return [{"role": m.role, "content": m.content} for m in messages]


def flatten_conversation(messages: Sequence[ChatMessage]) -> str:
    return "\n\n".join(f"{m.role}: {m.content}" for m in messages)
