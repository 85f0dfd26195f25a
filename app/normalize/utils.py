from __future__ import annotations

import re
from functools import lru_cache

_BULLET_CHARS = "•◦▪▫●○■□◆◇▶►-–—*·"
_BULLET_PATTERN = re.compile(rf"^\s*(?:[{re.escape(_BULLET_CHARS)}]|(?:\d+[\.\)]))\s+")

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
PHONE_RE = re.compile(r"\+?\(?\d{2,3}\)?[\s.-]?\d{3,5}[\s.-]?\d{4}")
LINKEDIN_RE = re.compile(r"linkedin\.com/in/[A-Za-z0-9_-]+", re.IGNORECASE)


def normalize_line(line: str) -> str:
    return re.sub(r"\s+", " ", line).strip()


def strip_bullet_prefix(line: str) -> str:
    return _BULLET_PATTERN.sub("", line).strip()


def contains_any(text: str, markers: tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in markers)


@lru_cache(maxsize=1024)
def term_pattern(term: str) -> re.Pattern[str]:
    # \b does not work around symbols such as "c#" or ".net".
    return re.compile(rf"(?<!\w){re.escape(term.lower())}(?!\w)")


def contains_term(text: str, term: str) -> bool:
    return bool(term_pattern(term).search(text.lower()))
