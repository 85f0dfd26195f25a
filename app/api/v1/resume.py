from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, Response, UploadFile, status
from starlette.concurrency import run_in_threadpool

from app.ai.errors import AllProvidersExhausted
from app.ai.orchestrator import ProviderOrchestrator
from app.api.v1.deps import get_orchestrator
from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.core.security import require_api_key
from app.export.pdf_renderer import content_disposition, render_profile_pdf
from app.export.render_contract import RenderContractError
from app.parsing.parse import UnsupportedDocumentType, parse_upload, source_type_for
from app.schemas.optimize import OptimizeRequest, OptimizeResponse
from app.schemas.resume import ResumeProfile
from app.services.optimizer_service import attempts_out, optimize_resume

router = APIRouter()


def _require_job_text(job_description: str) -> None:
    if not (job_description or "").strip():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Job description must not be blank.",
        )


def _raise_exhausted(exc: AllProvidersExhausted) -> None:
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={
            "message": str(exc),
            "code": exc.code,
            "attempts": [item.model_dump() for item in attempts_out(exc.attempts)],
        },
    ) from exc


@router.post("/resume/optimize", response_model=OptimizeResponse)
@rate_limit()
async def optimize_from_text(
    request: Request,
    payload: OptimizeRequest,
    orchestrator: ProviderOrchestrator = Depends(get_orchestrator),
    _auth: None = Depends(require_api_key),
):
    _ = request
    _require_job_text(payload.job_description)
    try:
        return await optimize_resume(
            orchestrator,
            resume_text=payload.resume_text,
            job_text=payload.job_description,
        )
    except AllProvidersExhausted as exc:
        _raise_exhausted(exc)


@router.post("/resume/optimize/upload", response_model=OptimizeResponse)
@rate_limit()
async def optimize_from_upload(
    request: Request,
    file: UploadFile = File(...),
    job_description: str = Form(...),
    orchestrator: ProviderOrchestrator = Depends(get_orchestrator),
    _auth: None = Depends(require_api_key),
):
    _ = request
    _require_job_text(job_description)
    filename = file.filename or ""
    try:
        source_type_for(filename)
    except UnsupportedDocumentType as exc:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(exc)) from exc

    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File is too large. Maximum size is {settings.max_upload_bytes // (1024 * 1024)} MB.",
        )

    parsed = await run_in_threadpool(parse_upload, content, filename)
    try:
        return await optimize_resume(
            orchestrator,
            resume_text=parsed.text,
            job_text=job_description,
            parsing_warnings=parsed.parsing_warnings,
            sections=parsed.sections,
        )
    except AllProvidersExhausted as exc:
        _raise_exhausted(exc)


@router.post("/resume/export")
@rate_limit()
async def export_pdf(
    request: Request,
    profile: ResumeProfile,
    _auth: None = Depends(require_api_key),
):
    _ = request
    try:
        pdf_bytes = await run_in_threadpool(render_profile_pdf, profile)
    except RenderContractError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": str(exc), "missing": exc.missing},
        ) from exc
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": content_disposition(profile)},
    )
