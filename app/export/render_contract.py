from __future__ import annotations

from typing import Any

from app.schemas.resume import ResumeProfile

RENDER_REQUIRED_FIELDS: tuple[str, ...] = (
    "name",
    "position",
    "area",
    "email",
    "phone",
    "linkedin",
    "location",
    "summary",
    "skills.programming",
    "skills.frameworks",
    "skills.databases",
    "skills.tools",
    "skills.methodologies",
    "skills.languages",
    "experience[].company",
    "experience[].position",
    "experience[].period",
    "experience[].location",
    "experience[].achievements",
    "education[].institution",
    "education[].degree",
    "education[].course",
    "education[].year",
    "education[].location",
    "education[].projects",
    "certifications[].name",
    "certifications[].institution",
    "certifications[].year",
    "projects[].name",
    "projects[].technologies",
    "projects[].description",
    "projects[].achievements",
    "achievements",
    "activities",
    "keywords",
)


class RenderContractError(ValueError):
    def __init__(self, missing: list[str]):
        super().__init__("Profile is missing fields required for export: " + ", ".join(missing))
        self.missing = missing


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _missing_paths(data: Any, parts: list[str], prefix: str) -> list[str]:
    if not parts:
        return [prefix] if _is_missing(data) else []
    head, rest = parts[0], parts[1:]
    if head.endswith("[]"):
        key = head[:-2]
        items = data.get(key) if isinstance(data, dict) else None
        path = f"{prefix}.{key}" if prefix else key
        if not isinstance(items, list):
            return [path]
        missing: list[str] = []
        for index, item in enumerate(items):
            missing.extend(_missing_paths(item, rest, f"{path}[{index}]"))
        return missing
    path = f"{prefix}.{head}" if prefix else head
    if not isinstance(data, dict) or head not in data:
        return [path]
    return _missing_paths(data[head], rest, path)


def check_render_ready(profile: ResumeProfile | dict[str, Any]) -> list[str]:
    """Return the required renderer fields that are absent or blank (empty when export-ready)."""
    data = profile.model_dump() if isinstance(profile, ResumeProfile) else profile
    missing: list[str] = []
    for field_path in RENDER_REQUIRED_FIELDS:
        missing.extend(_missing_paths(data, field_path.split("."), ""))
    return missing
