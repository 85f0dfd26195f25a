from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal, Sequence


Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str


@dataclass(frozen=True)
class ProviderSpec:
    """Declarative description of one AI backend.

    The orchestrator treats every spec the same way: it only ever calls
    ``build_headers``, ``build_request`` and ``parse_response``.
    """

    name: str
    endpoint: str
    credential: str | None
    build_headers: Callable[[str], dict[str, str]]
    build_request: Callable[[Sequence[ChatMessage]], dict[str, Any]]
    parse_response: Callable[[Any], str]

    @property
    def is_configured(self) -> bool:
        return bool(self.credential)

    def headers(self) -> dict[str, str]:
        if not self.credential:
            return {"Content-Type": "application/json"}
        return {"Content-Type": "application/json", **self.build_headers(self.credential)}
