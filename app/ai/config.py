import os
from dataclasses import dataclass


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


def _credential(name: str) -> str | None:
    value = _env(name)
    if not value or _looks_like_placeholder(value):
        return None
    return value


@dataclass(frozen=True)
class AIConfig:
    timeout_s: float
    rate_limit_retries: int
    rate_limit_delay_s: float
    temperature: float
    huggingface_api_key: str | None
    huggingface_model: str
    gemini_api_key: str | None
    gemini_model: str
    openrouter_api_key: str | None
    openrouter_model: str
    openrouter_referer: str
    openrouter_title: str
    groq_api_key: str | None
    groq_model: str


def load_ai_config() -> AIConfig:
    return AIConfig(
        timeout_s=float(_env("AI_PROVIDER_TIMEOUT_S", "45")),
        rate_limit_retries=int(_env("AI_RATE_LIMIT_RETRIES", "2")),
        rate_limit_delay_s=float(_env("AI_RATE_LIMIT_DELAY_S", "5")),
        temperature=float(_env("AI_TEMPERATURE", "0.3")),
        huggingface_api_key=_credential("HUGGINGFACE_API_KEY"),
        huggingface_model=_env("HUGGINGFACE_MODEL", "mistralai/Mistral-7B-Instruct-v0.3"),
        gemini_api_key=_credential("GEMINI_API_KEY"),
        gemini_model=_env("GEMINI_MODEL", "gemini-1.5-flash-latest"),
        openrouter_api_key=_credential("OPENROUTER_API_KEY"),
        openrouter_model=_env("OPENROUTER_MODEL", "microsoft/wizardlm-2-8x22b"),
        openrouter_referer=_env("OPENROUTER_REFERER", "http://localhost:5173"),
        openrouter_title=_env("OPENROUTER_TITLE", "CV Optimizer AI"),
        groq_api_key=_credential("GROQ_API_KEY"),
        groq_model=_env("GROQ_MODEL", "llama3-8b-8192"),
    )
