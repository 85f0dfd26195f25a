from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.core.rate_limit import rate_limit
from app.core.security import require_api_key
from app.normalize.job_analyzer import analyze_job_description
from app.schemas.job import JobAnalysis
from app.schemas.optimize import JobAnalyzeRequest

router = APIRouter()


@router.post("/jobs/analyze", response_model=JobAnalysis)
@rate_limit()
async def analyze_job(
    request: Request,
    payload: JobAnalyzeRequest,
    _auth: None = Depends(require_api_key),
):
    _ = request
    if not payload.job_description.strip():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Job description must not be blank.",
        )
    return analyze_job_description(payload.job_description)
