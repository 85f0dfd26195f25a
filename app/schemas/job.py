from __future__ import annotations

from pydantic import BaseModel, Field


class JobAnalysis(BaseModel):
    title: str
    company: str
    keywords: list[str] = Field(default_factory=list)
    requirements: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    responsibilities: list[str] = Field(default_factory=list)
