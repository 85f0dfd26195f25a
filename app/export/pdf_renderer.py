from __future__ import annotations

import re
import unicodedata
from io import BytesIO
from urllib.parse import quote
from xml.sax.saxutils import escape

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer

from app.schemas.resume import ResumeProfile

from .render_contract import RenderContractError, check_render_ready

_ACCENT = HexColor("#6B46C1")
_MUTED = HexColor("#6B7280")
_MAX_PROJECTS = 3

_NAME = ParagraphStyle("Name", fontName="Helvetica-Bold", fontSize=18, leading=22, textColor=_ACCENT)
_HEADLINE = ParagraphStyle("Headline", fontName="Helvetica", fontSize=12, leading=15, textColor=HexColor("#374151"))
_CONTACT = ParagraphStyle("Contact", fontName="Helvetica", fontSize=9, leading=12, textColor=_MUTED)
_SECTION = ParagraphStyle("Section", fontName="Helvetica-Bold", fontSize=12, leading=15, textColor=_ACCENT, spaceBefore=8, spaceAfter=3)
_ENTRY = ParagraphStyle("Entry", fontName="Helvetica-Bold", fontSize=10, leading=13)
_BODY = ParagraphStyle("Body", fontName="Helvetica", fontSize=9, leading=12)
_META = ParagraphStyle("Meta", fontName="Helvetica", fontSize=9, leading=12, textColor=_MUTED)
_BULLET = ParagraphStyle("Bullet", parent=_BODY, leftIndent=10)


def _filename_stem(name: str, *, ascii_only: bool) -> str:
    stem = name.strip()
    if ascii_only:
        stem = unicodedata.normalize("NFKD", stem).encode("ascii", "ignore").decode("ascii")
    stem = re.sub(r"\s+", "_", stem)
    stem = re.sub(r"[^\w.-]", "", stem, flags=re.ASCII if ascii_only else 0)
    return stem.strip("._") or "resume"


def export_filename(profile: ResumeProfile) -> str:
    return f"{_filename_stem(profile.name, ascii_only=True)}_CV_Optimized.pdf"


def content_disposition(profile: ResumeProfile) -> str:
    # Header values go out as latin-1; the UTF-8 name rides in filename* (RFC 6266).
    utf8_name = f"{_filename_stem(profile.name, ascii_only=False)}_CV_Optimized.pdf"
    return f"attachment; filename=\"{export_filename(profile)}\"; filename*=UTF-8''{quote(utf8_name)}"


def _p(text: str, style: ParagraphStyle) -> Paragraph:
    return Paragraph(escape(text), style)


def _bullets(items: list[str]) -> list[Paragraph]:
    return [Paragraph(f"• {escape(item)}", _BULLET) for item in items]


def _build_story(profile: ResumeProfile) -> list:
    story: list = [
        _p(profile.name, _NAME),
        _p(f"{profile.position} | {profile.area}", _HEADLINE),
        _p(
            " | ".join([profile.email, profile.phone, f"LinkedIn: {profile.linkedin}", profile.location]),
            _CONTACT,
        ),
        Spacer(1, 4),
        HRFlowable(width="100%", thickness=0.8, color=_ACCENT, spaceAfter=6),
        _p("PROFESSIONAL SUMMARY", _SECTION),
        _p(profile.summary, _BODY),
        _p("SKILLS", _SECTION),
    ]

    skills = profile.skills
    story.extend(
        _bullets(
            [
                f"Programming: {', '.join(skills.programming)}",
                f"Frameworks: {', '.join(skills.frameworks)}",
                f"Databases: {', '.join(skills.databases)}",
                f"Tools: {', '.join(skills.tools)}",
                f"Methodologies: {', '.join(skills.methodologies)}",
                f"Languages: {', '.join(skills.languages)}",
            ]
        )
    )

    story.append(_p("PROFESSIONAL EXPERIENCE", _SECTION))
    for job in profile.experience:
        story.append(_p(f"{job.company} | {job.position}", _ENTRY))
        story.append(_p(f"{job.period} | {job.location}", _META))
        story.extend(_bullets(job.achievements))
        story.append(Spacer(1, 4))

    story.append(_p("EDUCATION", _SECTION))
    for school in profile.education:
        story.append(_p(school.institution, _ENTRY))
        story.append(_p(f"{school.degree} in {school.course} | {school.year}", _BODY))
        story.append(_p(school.location, _META))
        if school.projects:
            story.append(_p("Relevant projects:", _ENTRY))
            story.extend(_bullets(school.projects))
        story.append(Spacer(1, 4))

    if profile.certifications:
        story.append(_p("CERTIFICATIONS", _SECTION))
        story.extend(
            _bullets([f"{cert.name} - {cert.institution} ({cert.year})" for cert in profile.certifications])
        )

    if profile.projects:
        story.append(_p("FEATURED PROJECTS", _SECTION))
        for project in profile.projects[:_MAX_PROJECTS]:
            story.append(_p(project.name, _ENTRY))
            if project.technologies:
                story.append(_p(f"Technologies: {', '.join(project.technologies)}", _META))
            story.append(_p(project.description, _BODY))
            story.extend(_bullets(project.achievements))
            if project.link:
                story.append(_p(f"Link: {project.link}", _META))
            story.append(Spacer(1, 4))

    if profile.achievements:
        story.append(_p("ACHIEVEMENTS AND AWARDS", _SECTION))
        story.extend(_bullets(profile.achievements))

    if profile.activities:
        story.append(_p("ACTIVITIES", _SECTION))
        story.extend(_bullets(profile.activities))

    story.append(_p("ATS KEYWORDS", _SECTION))
    story.append(_p(", ".join(profile.keywords), _BODY))
    return story


def render_profile_pdf(profile: ResumeProfile) -> bytes:
    missing = check_render_ready(profile)
    if missing:
        raise RenderContractError(missing)

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=20 * mm,
        rightMargin=20 * mm,
        topMargin=20 * mm,
        bottomMargin=20 * mm,
        title=f"{profile.name} - CV",
        author=profile.name,
    )
    doc.build(_build_story(profile))
    return buffer.getvalue()
