from __future__ import annotations

from app.ai.config import AIConfig, load_ai_config
from app.ai.providers.gemini_provider import build_gemini_provider
from app.ai.providers.groq_provider import build_groq_provider
from app.ai.providers.huggingface_provider import build_huggingface_provider
from app.ai.providers.openrouter_provider import build_openrouter_provider
from app.ai.types import ProviderSpec

# Priority order. New backends are appended here.
PROVIDER_BUILDERS = (
    build_huggingface_provider,
    build_gemini_provider,
    build_openrouter_provider,
    build_groq_provider,
)


def build_provider_registry(cfg: AIConfig | None = None) -> tuple[ProviderSpec, ...]:
    resolved = cfg or load_ai_config()
    return tuple(builder(resolved) for builder in PROVIDER_BUILDERS)
