from fastapi import HTTPException, Request, status

from app.ai.orchestrator import ProviderOrchestrator


def get_orchestrator(request: Request) -> ProviderOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Optimizer is still starting up. Try again shortly.",
        )
    return orchestrator
