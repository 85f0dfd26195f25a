from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.ai.orchestrator import ProviderOrchestrator
from app.api.v1.deps import get_orchestrator
from app.core.rate_limit import rate_limit
from app.core.security import require_api_key
from app.schemas.optimize import ProviderPingOut, ProviderStatus, ProvidersResponse

router = APIRouter()


@router.get("/providers", response_model=ProvidersResponse)
async def list_providers(
    orchestrator: ProviderOrchestrator = Depends(get_orchestrator),
    _: None = Depends(require_api_key),
):
    return ProvidersResponse(
        providers=[
            ProviderStatus(name=spec.name, configured=spec.is_configured)
            for spec in orchestrator.registry
        ]
    )


@router.post("/providers/{name}/ping", response_model=ProviderPingOut)
@rate_limit()
async def ping_provider(
    request: Request,
    name: str,
    orchestrator: ProviderOrchestrator = Depends(get_orchestrator),
    _auth: None = Depends(require_api_key),
):
    _ = request
    provider = orchestrator.find(name)
    if provider is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown provider '{name}'.",
        )
    result = await orchestrator.ping(provider)
    return ProviderPingOut(
        provider=result.provider,
        ok=result.ok,
        retries=result.retries,
        error_code=result.error_code,
        latency_ms=result.latency_ms,
    )
