from __future__ import annotations

from app.normalize.utils import EMAIL_RE, LINKEDIN_RE, PHONE_RE

from .models import ResumeSections

_SECTION_HEADINGS: dict[str, tuple[str, ...]] = {
    "experience": ("experience", "employment", "work history", "experiência", "trabalho", "emprego"),
    "education": ("education", "academic", "educação", "formação", "acadêmica"),
    "skills": ("skills", "competencies", "technologies", "habilidades", "competências", "tecnologias"),
    "projects": ("projects", "portfolio", "projetos"),
}
_BOUNDARY_HEADINGS = (
    "experience", "experiência", "education", "educação", "formação",
    "skills", "habilidades", "competências", "projects", "projetos",
    "certifications", "certificações", "achievements", "conquistas",
)


def _personal_info(text: str) -> str:
    head = " ".join(text.split("\n")[:10]).strip()
    extras: list[str] = []
    if email := EMAIL_RE.search(text):
        extras.append(f"Email: {email.group(0)}")
    if phone := PHONE_RE.search(text):
        extras.append(f"Phone: {phone.group(0)}")
    if linkedin := LINKEDIN_RE.search(text):
        extras.append(f"LinkedIn: {linkedin.group(0)}")
    return " | ".join([head, *extras]) if head else " | ".join(extras)


def _section(lines: list[str], headings: tuple[str, ...]) -> str:
    start = next(
        (index for index, line in enumerate(lines) if any(word in line.lower() for word in headings)),
        -1,
    )
    if start == -1:
        return ""
    end = len(lines)
    for index in range(start + 1, len(lines)):
        lowered = lines[index].strip().lower()
        if lowered and any(lowered.startswith(word) and word not in headings for word in _BOUNDARY_HEADINGS):
            end = index
            break
    return "\n".join(lines[start:end]).strip()


def split_sections(text: str) -> ResumeSections:
    """Best-effort split of résumé text into the sections the prompt cares about."""
    if not text.strip():
        return ResumeSections()
    lines = text.split("\n")
    return ResumeSections(
        personal_info=_personal_info(text),
        **{name: _section(lines, headings) for name, headings in _SECTION_HEADINGS.items()},
    )
