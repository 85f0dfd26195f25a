from __future__ import annotations

import re
from functools import lru_cache

from app.core.vocabulary import get_vocabulary_value
from app.schemas.job import JobAnalysis

from .utils import contains_any, contains_term, normalize_line, strip_bullet_prefix


@lru_cache(maxsize=4)
def _label_pattern(kind: str) -> re.Pattern[str]:
    labels = sorted(get_vocabulary_value(f"labels.{kind}", []) or [], key=len, reverse=True)
    alternatives = "|".join(re.escape(label) for label in labels)
    return re.compile(
        rf"^\s*(?:{alternatives})(?:\s*[:\-–—]\s*|\s+)(?P<value>\S.*)$",
        re.IGNORECASE | re.MULTILINE,
    )


def _vocabulary_terms() -> list[tuple[str, bool]]:
    groups = get_vocabulary_value("vocabulary", {}) or {}
    terms: list[tuple[str, bool]] = []
    for group in groups.values():
        technical = bool(group.get("technical", False))
        for term in group.get("terms", []) or []:
            terms.append((str(term).lower(), technical))
    return terms


def _limit(name: str, default: int) -> int:
    return int(get_vocabulary_value(f"limits.{name}", default) or default)


def _extract_labeled(text: str, kind: str) -> str | None:
    match = _label_pattern(kind).search(text)
    if match is None:
        return None
    value = match.group("value").strip()
    return value or None


def _section_of(header: str) -> str | None:
    if len(header.split()) > 5:
        return None
    for section in ("requirements", "responsibilities"):
        markers = get_vocabulary_value(f"section_headers.{section}", []) or []
        if any(header.startswith(marker) for marker in markers):
            return section
    return None


def _looks_like_other_header(line: str) -> bool:
    return line.endswith(":") and len(line.split()) <= 4


def _split_header(line: str) -> tuple[str, str]:
    head, sep, rest = line.partition(":")
    if not sep:
        return line.lower().strip(), ""
    return head.lower().strip(), rest.strip()


def analyze_job_description(text: str) -> JobAnalysis:
    """Heuristic, local analysis of a job posting used to enrich the optimization prompt."""
    source = text or ""
    title = _extract_labeled(source, "title") or get_vocabulary_value("defaults.title", "Professional Position")
    company = _extract_labeled(source, "company") or get_vocabulary_value("defaults.company", "Company")

    markers = tuple(get_vocabulary_value("requirement_markers", []) or [])
    terms = _vocabulary_terms()

    keywords: list[str] = []
    skills: list[str] = []
    requirements: list[str] = []
    responsibilities: list[str] = []
    section: str | None = None

    for raw_line in source.splitlines():
        line = normalize_line(raw_line)
        if not line:
            continue

        for term, technical in terms:
            if term in keywords or not contains_term(line, term):
                continue
            keywords.append(term)
            if technical:
                skills.append(term)

        header, inline = _split_header(line)
        next_section = _section_of(header)
        if next_section is not None:
            section = next_section
            # "Requirements: Python, SQL" carries its first item on the heading line.
            cleaned = strip_bullet_prefix(inline)
        elif _looks_like_other_header(line):
            section = None
            continue
        else:
            cleaned = strip_bullet_prefix(line)

        if cleaned:
            if section == "responsibilities":
                responsibilities.append(cleaned)
            elif section == "requirements" or contains_any(cleaned, markers):
                requirements.append(cleaned)

    return JobAnalysis(
        title=title,
        company=company,
        keywords=keywords[: _limit("keywords", 20)],
        requirements=requirements[: _limit("requirements", 15)],
        skills=skills[: _limit("skills", 20)],
        responsibilities=responsibilities[: _limit("responsibilities", 10)],
    )
