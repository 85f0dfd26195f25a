from __future__ import annotations

from app.ai.types import ChatMessage
from app.schemas.job import JobAnalysis

RESUME_JSON_SCHEMA = """{
  "name": "Candidate's real name",
  "position": "Professional title adapted to the target job",
  "area": "Professional area of the target job",
  "email": "Real email",
  "phone": "Real phone",
  "linkedin": "Real LinkedIn handle or URL",
  "location": "Real location",
  "summary": "3-4 line summary connecting the candidate to the job, using its keywords",
  "skills": {
    "programming": ["programming languages"],
    "frameworks": ["frameworks and libraries"],
    "databases": ["databases"],
    "tools": ["tools and software"],
    "methodologies": ["methodologies and practices"],
    "languages": ["spoken languages"]
  },
  "experience": [
    {
      "company": "Real company",
      "position": "Real job title",
      "period": "Real period",
      "location": "Real location",
      "achievements": ["Real responsibilities rewritten with job keywords"]
    }
  ],
  "education": [
    {
      "institution": "Real institution",
      "degree": "Degree",
      "course": "Course name",
      "year": "Completion year",
      "location": "Institution location",
      "projects": ["Academic projects"]
    }
  ],
  "certifications": [
    {"name": "Certification", "institution": "Issuer", "year": "Year"}
  ],
  "projects": [
    {
      "name": "Project name",
      "technologies": ["Technologies used"],
      "description": "Description using job keywords",
      "achievements": ["Results achieved"],
      "link": "Link if mentioned"
    }
  ],
  "achievements": ["Awards and recognitions"],
  "activities": ["Extracurricular activities"],
  "keywords": ["Exact ATS keywords taken from the job description"]
}"""

SYSTEM_PROMPT = (
    "You are a senior recruiter and résumé writer specialised in Applicant Tracking Systems (ATS). "
    "Rewrite the candidate's résumé so it matches the target job as closely as the facts allow.\n\n"
    "RULES:\n"
    "- Keep every professional experience, with its real company, dates and title.\n"
    "- Keep all personal and contact data exactly as written.\n"
    "- Do not invent experiences, employers, degrees or contact data.\n"
    "- Reorder experiences so the most relevant come first.\n"
    "- Enrich descriptions with the job's exact keywords where they are truthful.\n"
    "- Rewrite the summary and professional title to target the job.\n"
    "- Write in the same language as the résumé.\n"
    "- If something is missing from the résumé, use an empty string or an empty list.\n\n"
    "Respond with a single valid JSON object and nothing else."
)


def _bullet_list(items: list[str]) -> str:
    return ", ".join(items) if items else "(none detected)"


def build_job_context(job: JobAnalysis) -> str:
    return (
        f"- Title: {job.title}\n"
        f"- Company: {job.company}\n"
        f"- Keywords: {_bullet_list(job.keywords)}\n"
        f"- Skills: {_bullet_list(job.skills)}\n"
        f"- Requirements: {_bullet_list(job.requirements)}\n"
        f"- Responsibilities: {_bullet_list(job.responsibilities)}"
    )


def build_optimization_messages(
    resume_text: str,
    job_text: str,
    job: JobAnalysis,
) -> list[ChatMessage]:
    resume_block = resume_text.strip() or "(no text could be extracted from the résumé)"
    user = (
        "Optimize this résumé for the target job.\n\n"
        f"ORIGINAL RESUME:\n{resume_block}\n\n"
        f"TARGET JOB DESCRIPTION:\n{job_text.strip()}\n\n"
        f"JOB ANALYSIS:\n{build_job_context(job)}\n\n"
        "STEPS:\n"
        "1. Identify the ATS keywords the job relies on.\n"
        "2. Adapt the professional title to the job.\n"
        "3. Keep every experience but enrich it with the job's keywords.\n"
        "4. Add the technical skills the candidate demonstrably has that the job asks for.\n"
        "5. Rewrite the summary around the job.\n"
        "6. Put the most relevant experiences first.\n\n"
        f"REQUIRED JSON FORMAT:\n{RESUME_JSON_SCHEMA}"
    )
    return [
        ChatMessage(role="system", content=SYSTEM_PROMPT),
        ChatMessage(role="user", content=user),
    ]
