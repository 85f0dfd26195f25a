from __future__ import annotations

import json
from typing import Any, Callable

from app.ai.errors import InvalidStructure
from app.schemas.job import JobAnalysis
from app.schemas.resume import ResumeProfile, SkillSet

PLACEHOLDERS: dict[str, str] = {
    "name": "Name not found in résumé",
    "position": "Professional",
    "area": "Professional Area",
    "email": "email@example.com",
    "phone": "(00) 00000-0000",
    "linkedin": "linkedin.com/in/profile",
    "location": "Location",
    "summary": "Professional with experience relevant to the position.",
}
ENTRY_PLACEHOLDER = "Not specified"
SKILL_KEYS = tuple(SkillSet.model_fields)

_REQUIRED_TYPES: tuple[tuple[str, type, str], ...] = (
    ("name", str, "string"),
    ("email", str, "string"),
    ("summary", str, "string"),
    ("experience", list, "list"),
    ("education", list, "list"),
    ("skills", dict, "object"),
)


def extract_json_candidate(raw_text: str) -> str:
    """Slice from the first '{' to the last '}', dropping prose and code fences around it."""
    cleaned = (raw_text or "").strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end > start:
        return cleaned[start : end + 1]
    return cleaned


def _parse(raw_text: str) -> dict[str, Any]:
    candidate = extract_json_candidate(raw_text)
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise InvalidStructure(f"Response is not valid JSON: {exc.msg}", raw_text=raw_text) from exc
    if not isinstance(data, dict):
        raise InvalidStructure("Response JSON is not an object", raw_text=raw_text)
    return data


def _validate_shape(data: dict[str, Any], raw_text: str) -> None:
    problems = [
        f"'{key}' must be a {label}"
        for key, expected, label in _REQUIRED_TYPES
        if not isinstance(data.get(key), expected)
    ]
    if problems:
        raise InvalidStructure("Incomplete résumé data: " + "; ".join(problems), raw_text=raw_text)


def _text(value: Any, placeholder: str) -> str:
    if isinstance(value, bool):
        return placeholder
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return placeholder


def _text_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    items: list[str] = []
    for item in value:
        if isinstance(item, bool):
            continue
        if isinstance(item, (int, float)):
            items.append(str(item))
        elif isinstance(item, str) and item.strip():
            items.append(item.strip())
    return items


def _entries(value: Any, coerce: Callable[[dict[str, Any]], dict[str, Any]]) -> list[dict[str, Any]]:
    # Models sometimes echo instruction strings from the schema into these lists.
    if not isinstance(value, list):
        return []
    return [coerce(item) for item in value if isinstance(item, dict)]


def _experience(item: dict[str, Any]) -> dict[str, Any]:
    return {
        "company": _text(item.get("company"), ENTRY_PLACEHOLDER),
        "position": _text(item.get("position") or item.get("title"), ENTRY_PLACEHOLDER),
        "period": _text(item.get("period"), ENTRY_PLACEHOLDER),
        "location": _text(item.get("location"), ENTRY_PLACEHOLDER),
        "achievements": _text_list(item.get("achievements")),
    }


def _education(item: dict[str, Any]) -> dict[str, Any]:
    return {
        "institution": _text(item.get("institution"), ENTRY_PLACEHOLDER),
        "degree": _text(item.get("degree"), ENTRY_PLACEHOLDER),
        "course": _text(item.get("course"), ENTRY_PLACEHOLDER),
        "year": _text(item.get("year"), ENTRY_PLACEHOLDER),
        "location": _text(item.get("location"), ENTRY_PLACEHOLDER),
        "projects": _text_list(item.get("projects")),
    }


def _certification(item: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": _text(item.get("name"), ENTRY_PLACEHOLDER),
        "institution": _text(item.get("institution"), ENTRY_PLACEHOLDER),
        "year": _text(item.get("year"), ENTRY_PLACEHOLDER),
    }


def _project(item: dict[str, Any]) -> dict[str, Any]:
    link = item.get("link")
    return {
        "name": _text(item.get("name"), ENTRY_PLACEHOLDER),
        "technologies": _text_list(item.get("technologies")),
        "description": _text(item.get("description"), ENTRY_PLACEHOLDER),
        "achievements": _text_list(item.get("achievements")),
        "link": link.strip() if isinstance(link, str) and link.strip() else None,
    }


def _coerce(data: dict[str, Any], job: JobAnalysis | None) -> dict[str, Any]:
    skills = data.get("skills") if isinstance(data.get("skills"), dict) else {}
    position_default = job.title if job is not None else PLACEHOLDERS["position"]
    keywords = _text_list(data.get("keywords"))
    if not keywords and job is not None:
        keywords = list(job.keywords)

    return {
        "name": _text(data.get("name"), PLACEHOLDERS["name"]),
        "position": _text(data.get("position"), position_default),
        "area": _text(data.get("area"), PLACEHOLDERS["area"]),
        "email": _text(data.get("email"), PLACEHOLDERS["email"]),
        "phone": _text(data.get("phone"), PLACEHOLDERS["phone"]),
        "linkedin": _text(data.get("linkedin"), PLACEHOLDERS["linkedin"]),
        "location": _text(data.get("location"), PLACEHOLDERS["location"]),
        "summary": _text(data.get("summary"), PLACEHOLDERS["summary"]),
        "skills": {key: _text_list(skills.get(key)) for key in SKILL_KEYS},
        "experience": _entries(data.get("experience"), _experience),
        "education": _entries(data.get("education"), _education),
        "certifications": _entries(data.get("certifications"), _certification),
        "projects": _entries(data.get("projects"), _project),
        "achievements": _text_list(data.get("achievements")),
        "activities": _text_list(data.get("activities")),
        "keywords": keywords,
    }


def normalize_profile(raw_text: str, *, job: JobAnalysis | None = None) -> ResumeProfile:
    """Turn untrusted provider text into a fully-populated ResumeProfile.

    Raises InvalidStructure when no JSON object can be recovered or the
    minimal shape (name, email, summary, experience, education, skills) is
    wrong. Everything else is coerced, never rejected.
    """
    data = _parse(raw_text)
    _validate_shape(data, raw_text)
    return ResumeProfile.model_validate(_coerce(data, job))
