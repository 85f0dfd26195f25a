from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from app.parsing.models import ResumeSections
from app.schemas.job import JobAnalysis
from app.schemas.resume import ResumeProfile

AttemptStatus = Literal["success", "skipped", "failed"]


class OptimizeRequest(BaseModel):
    resume_text: str = Field(default="", max_length=200_000)
    job_description: str = Field(min_length=1, max_length=100_000)


class JobAnalyzeRequest(BaseModel):
    job_description: str = Field(min_length=1, max_length=100_000)


class ProviderAttemptOut(BaseModel):
    provider: str
    status: AttemptStatus
    retries: int = 0
    error_code: str | None = None
    latency_ms: int | None = None


class OptimizeResponse(BaseModel):
    profile: ResumeProfile
    provider: str
    job: JobAnalysis
    attempts: list[ProviderAttemptOut] = Field(default_factory=list)
    parsing_warnings: list[str] = Field(default_factory=list)
    sections: ResumeSections | None = None


class ProviderStatus(BaseModel):
    name: str
    configured: bool


class ProvidersResponse(BaseModel):
    providers: list[ProviderStatus]


class ProviderPingOut(BaseModel):
    provider: str
    ok: bool
    retries: int = 0
    error_code: str | None = None
    latency_ms: int | None = None
