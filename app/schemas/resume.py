from __future__ import annotations

from pydantic import BaseModel, Field


class SkillSet(BaseModel):
    programming: list[str] = Field(default_factory=list)
    frameworks: list[str] = Field(default_factory=list)
    databases: list[str] = Field(default_factory=list)
    tools: list[str] = Field(default_factory=list)
    methodologies: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)


class ExperienceEntry(BaseModel):
    company: str
    position: str
    period: str
    location: str
    achievements: list[str] = Field(default_factory=list)


class EducationEntry(BaseModel):
    institution: str
    degree: str
    course: str
    year: str
    location: str
    projects: list[str] = Field(default_factory=list)


class Certification(BaseModel):
    name: str
    institution: str
    year: str


class ProjectEntry(BaseModel):
    name: str
    technologies: list[str] = Field(default_factory=list)
    description: str
    achievements: list[str] = Field(default_factory=list)
    link: str | None = None


class ResumeProfile(BaseModel):
    """Canonical optimized résumé handed to previews and the PDF exporter.

    Every string is non-empty and every list is present once a profile has
    gone through ``normalize_profile``.
    """

    name: str
    position: str
    area: str
    email: str
    phone: str
    linkedin: str
    location: str
    summary: str
    skills: SkillSet = Field(default_factory=SkillSet)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    certifications: list[Certification] = Field(default_factory=list)
    projects: list[ProjectEntry] = Field(default_factory=list)
    achievements: list[str] = Field(default_factory=list)
    activities: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
