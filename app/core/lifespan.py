import contextlib
from contextlib import asynccontextmanager
import asyncio
import logging

import httpx

from app.ai.config import load_ai_config
from app.ai.orchestrator import ProviderOrchestrator
from app.ai.registry import build_provider_registry
from app.analytics.db import init_db, purge_old_records

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    cfg = load_ai_config()
    registry = build_provider_registry(cfg)
    client = httpx.AsyncClient(timeout=httpx.Timeout(cfg.timeout_s))
    app.state.orchestrator = ProviderOrchestrator(
        registry,
        client,
        retry_limit=cfg.rate_limit_retries,
        retry_delay_s=cfg.rate_limit_delay_s,
    )
    logger.info(
        "provider_registry providers=%s configured=%s",
        [spec.name for spec in registry],
        [spec.name for spec in registry if spec.is_configured],
    )
    if not any(spec.is_configured for spec in registry):
        logger.warning("provider_registry_empty: no AI provider credential is set")

    init_db()
    purge_old_records()

    stop_event = asyncio.Event()

    async def periodic_purge() -> None:
        while not stop_event.is_set():
            try:
                deleted = purge_old_records()
                if any(deleted.values()):
                    logger.info("analytics_retention_purge deleted=%s", deleted)
            except Exception as exc:  # pragma: no cover - defensive guard
                logger.warning("analytics_retention_purge_failed: %s", exc)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=3600)
            except asyncio.TimeoutError:
                continue

    purge_task = asyncio.create_task(periodic_purge())
    yield
    stop_event.set()
    if not purge_task.done():
        purge_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await purge_task
    await client.aclose()
    app.state.orchestrator = None
