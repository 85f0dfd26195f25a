from __future__ import annotations

import hashlib
import json
import logging
import time
import uuid
from typing import Sequence

from app.ai.errors import AllProvidersExhausted
from app.ai.orchestrator import ProviderAttempt, ProviderOrchestrator
from app.analytics.db import log_optimization_run
from app.core.config import settings
from app.parsing.models import ResumeSections
from app.schemas.optimize import OptimizeResponse, ProviderAttemptOut

logger = logging.getLogger("app.optimizer")


def _short_hash(value: str | None) -> str:
    normalized = (value or "").strip()
    if not normalized:
        return ""
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:12]


def _cap(text: str, limit: int) -> str:
    cleaned = (text or "").strip()
    return cleaned[:limit]


def _log_run(run_id: str, attempts: Sequence[ProviderAttempt]) -> None:
    try:
        log_optimization_run(run_id=run_id, attempts=attempts)
    except Exception:  # pragma: no cover - analytics must not break optimization
        logger.debug("optimization_run_logging_failed", exc_info=True)


def attempts_out(attempts: Sequence[ProviderAttempt]) -> list[ProviderAttemptOut]:
    return [
        ProviderAttemptOut(
            provider=item.provider,
            status=item.status,
            retries=item.retries,
            error_code=item.error_code,
            latency_ms=item.latency_ms,
        )
        for item in attempts
    ]


async def optimize_resume(
    orchestrator: ProviderOrchestrator,
    *,
    resume_text: str,
    job_text: str,
    parsing_warnings: Sequence[str] = (),
    sections: ResumeSections | None = None,
) -> OptimizeResponse:
    run_id = uuid.uuid4().hex
    started_at = time.perf_counter()
    resume = _cap(resume_text, settings.resume_text_max_chars)
    job = _cap(job_text, settings.job_text_max_chars)

    logger.info(
        json.dumps(
            {
                "event": "optimize_request",
                "run_id": run_id,
                "resume_len": len(resume),
                "resume_hash": _short_hash(resume),
                "job_len": len(job),
                "truncated": len(resume) < len((resume_text or "").strip())
                or len(job) < len((job_text or "").strip()),
            }
        )
    )

    try:
        outcome = await orchestrator.run(resume, job)
    except AllProvidersExhausted as exc:
        _log_run(run_id, exc.attempts)
        logger.error(
            json.dumps(
                {
                    "event": "optimize_failed",
                    "run_id": run_id,
                    "error_code": exc.code,
                    "duration_ms": int((time.perf_counter() - started_at) * 1000),
                }
            )
        )
        raise

    _log_run(run_id, outcome.attempts)
    logger.info(
        json.dumps(
            {
                "event": "optimize_complete",
                "run_id": run_id,
                "provider": outcome.provider,
                "duration_ms": int((time.perf_counter() - started_at) * 1000),
            }
        )
    )
    return OptimizeResponse(
        profile=outcome.profile,
        provider=outcome.provider,
        job=outcome.job,
        attempts=attempts_out(outcome.attempts),
        parsing_warnings=list(parsing_warnings),
        sections=sections,
    )
