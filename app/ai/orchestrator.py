from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Awaitable, Callable, Sequence

import httpx

from app.ai.errors import (
    AllProvidersExhausted,
    CredentialMissing,
    EmptyResponse,
    ProviderError,
    ProviderHTTPError,
    ProviderRateLimited,
)
from app.ai.prompts import build_optimization_messages
from app.ai.types import ChatMessage, ProviderSpec
from app.normalize.job_analyzer import analyze_job_description
from app.normalize.normalize_profile import normalize_profile
from app.schemas.job import JobAnalysis
from app.schemas.resume import ResumeProfile

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class ProviderAttempt:
    provider: str
    status: str
    retries: int = 0
    error_code: str | None = None
    latency_ms: int | None = None


@dataclass(frozen=True)
class OptimizationOutcome:
    profile: ResumeProfile
    provider: str
    job: JobAnalysis
    attempts: list[ProviderAttempt] = field(default_factory=list)


@dataclass(frozen=True)
class ProviderPing:
    provider: str
    ok: bool
    retries: int = 0
    error_code: str | None = None
    latency_ms: int | None = None


PING_MESSAGES = (ChatMessage(role="user", content="Reply with the single word OK."),)


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class ProviderOrchestrator:
    """Tries each configured provider in registry order until one yields a valid profile.

    Calls are strictly sequential. A 429 is retried ``retry_limit`` times with a
    fixed ``retry_delay_s`` pause; every other failure moves on to the next
    provider. The shared ``client`` owns connection pooling and the default
    timeout; ``timeout_s`` overrides it per provider call.
    """

    def __init__(
        self,
        registry: Sequence[ProviderSpec],
        client: httpx.AsyncClient,
        *,
        retry_limit: int = 2,
        retry_delay_s: float = 5.0,
        timeout_s: float | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._registry = tuple(registry)
        self._client = client
        self._retry_limit = max(0, retry_limit)
        self._retry_delay_s = retry_delay_s
        self._timeout = httpx.Timeout(timeout_s) if timeout_s else httpx.USE_CLIENT_DEFAULT
        self._sleep = sleep

    @property
    def registry(self) -> tuple[ProviderSpec, ...]:
        return self._registry

    def find(self, name: str) -> ProviderSpec | None:
        wanted = name.strip().lower()
        return next((spec for spec in self._registry if spec.name.lower() == wanted), None)

    async def ping(self, provider: ProviderSpec) -> ProviderPing:
        """Send a one-line prompt to a single provider; no normalization, no fallback."""
        if not provider.is_configured:
            return ProviderPing(provider=provider.name, ok=False, error_code=CredentialMissing(provider.name).code)

        started = time.perf_counter()
        try:
            _, retries = await self._send(provider, PING_MESSAGES)
        except ProviderError as exc:
            logger.warning("provider_ping_failed provider=%s code=%s: %s", provider.name, exc.code, exc)
            return ProviderPing(
                provider=provider.name,
                ok=False,
                retries=exc.retries,
                error_code=exc.code,
                latency_ms=_elapsed_ms(started),
            )
        return ProviderPing(provider=provider.name, ok=True, retries=retries, latency_ms=_elapsed_ms(started))

    async def _send(self, provider: ProviderSpec, messages: Sequence[ChatMessage]) -> tuple[str, int]:
        payload = provider.build_request(messages)
        retries = 0
        try:
            while True:
                logger.info("provider_call provider=%s retry=%s", provider.name, retries)
                try:
                    response = await self._client.post(
                        provider.endpoint,
                        headers=provider.headers(),
                        json=payload,
                        timeout=self._timeout,
                    )
                except httpx.TimeoutException as exc:
                    raise ProviderHTTPError(
                        f"{provider.name}: request timed out",
                        provider=provider.name,
                        code="provider_timeout",
                    ) from exc
                except httpx.HTTPError as exc:
                    raise ProviderHTTPError(
                        f"{provider.name}: request failed: {exc}",
                        provider=provider.name,
                        code="provider_unreachable",
                    ) from exc

                if response.status_code == 429:
                    if retries < self._retry_limit:
                        retries += 1
                        logger.warning(
                            "provider_rate_limited provider=%s retry=%s/%s delay_s=%s",
                            provider.name,
                            retries,
                            self._retry_limit,
                            self._retry_delay_s,
                        )
                        await self._sleep(self._retry_delay_s)
                        continue
                    raise ProviderRateLimited(provider.name, body=response.text)

                if not response.is_success:
                    raise ProviderHTTPError(
                        f"{provider.name} error {response.status_code}: {response.text[:200]}",
                        provider=provider.name,
                        status_code=response.status_code,
                        body=response.text,
                    )

                text = provider.parse_response(_decode_body(response))
                if not text or not text.strip():
                    raise EmptyResponse(provider.name)
                return text, retries
        except ProviderError as exc:
            exc.retries = retries
            raise

    async def run(
        self,
        resume_text: str,
        job_text: str,
        *,
        job: JobAnalysis | None = None,
    ) -> OptimizationOutcome:
        analysis = job or analyze_job_description(job_text)
        messages = build_optimization_messages(resume_text, job_text, analysis)
        attempts: list[ProviderAttempt] = []
        last_error: ProviderError | None = None

        for provider in self._registry:
            if not provider.is_configured:
                skip = CredentialMissing(provider.name)
                logger.info("provider_skipped provider=%s reason=%s", provider.name, skip.code)
                attempts.append(ProviderAttempt(provider=provider.name, status="skipped", error_code=skip.code))
                continue

            started = time.perf_counter()
            retries = 0
            try:
                text, retries = await self._send(provider, messages)
                profile = normalize_profile(text, job=analysis)
            except ProviderError as exc:
                exc.provider = exc.provider or provider.name
                retries = max(retries, exc.retries)
                latency_ms = _elapsed_ms(started)
                logger.warning(
                    "provider_failed provider=%s code=%s retries=%s latency_ms=%s: %s",
                    provider.name,
                    exc.code,
                    retries,
                    latency_ms,
                    exc,
                )
                attempts.append(
                    ProviderAttempt(
                        provider=provider.name,
                        status="failed",
                        retries=retries,
                        error_code=exc.code,
                        latency_ms=latency_ms,
                    )
                )
                last_error = exc
                continue

            attempts.append(
                ProviderAttempt(
                    provider=provider.name,
                    status="success",
                    retries=retries,
                    latency_ms=_elapsed_ms(started),
                )
            )
            logger.info(
                json.dumps(
                    {
                        "event": "optimize_success",
                        "provider": provider.name,
                        "retries": retries,
                        "attempts": len(attempts),
                    }
                )
            )
            return OptimizationOutcome(profile=profile, provider=provider.name, job=analysis, attempts=attempts)

        logger.error(
            json.dumps(
                {
                    "event": "optimize_exhausted",
                    "attempts": [asdict(item) for item in attempts],
                    "last_error": str(last_error) if last_error else None,
                }
            )
        )
        raise AllProvidersExhausted(last_error=last_error, attempts=attempts)

    async def optimize(self, resume_text: str, job_text: str) -> ResumeProfile:
        outcome = await self.run(resume_text, job_text)
        return outcome.profile
