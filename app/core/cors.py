from __future__ import annotations

from typing import Any

from app.core.config import Settings, settings


def cors_middleware_options(source: Settings = settings) -> dict[str, Any]:
    """Keyword arguments for ``CORSMiddleware``; the export endpoint needs Content-Disposition exposed."""
    regex = (source.cors_allow_origin_regex or "").strip()
    return {
        "allow_origins": list(source.cors_allowed_origins),
        "allow_origin_regex": regex or None,
        "allow_credentials": source.cors_allow_credentials,
        "allow_methods": ["GET", "POST", "OPTIONS"],
        "allow_headers": ["*"],
        "expose_headers": ["Content-Disposition"],
    }
