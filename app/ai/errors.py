from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from app.ai.orchestrator import ProviderAttempt


class ProviderError(RuntimeError):
    def __init__(self, message: str, *, provider: str | None = None, code: str = "provider_error"):
        super().__init__(message)
        self.provider = provider
        self.code = code
        self.retries = 0


class CredentialMissing(ProviderError):
    def __init__(self, provider: str):
        super().__init__(f"{provider}: credential not configured", provider=provider, code="credential_missing")


class ProviderHTTPError(ProviderError):
    def __init__(
        self,
        message: str,
        *,
        provider: str,
        status_code: int | None = None,
        body: str = "",
        code: str = "provider_http_error",
    ):
        super().__init__(message, provider=provider, code=code)
        self.status_code = status_code
        self.body = body[:500]


class ProviderRateLimited(ProviderHTTPError):
    def __init__(self, provider: str, *, body: str = ""):
        super().__init__(
            f"{provider}: rate limited (HTTP 429)",
            provider=provider,
            status_code=429,
            body=body,
            code="provider_rate_limited",
        )


class EmptyResponse(ProviderError):
    def __init__(self, provider: str):
        super().__init__(f"{provider}: empty response", provider=provider, code="empty_response")


class InvalidStructure(ProviderError):
    def __init__(self, message: str, *, raw_text: str = "", provider: str | None = None):
        super().__init__(message, provider=provider, code="invalid_structure")
        self.raw_text = raw_text


class AllProvidersExhausted(ProviderError):
    def __init__(
        self,
        *,
        last_error: Exception | None,
        attempts: Sequence["ProviderAttempt"] = (),
    ):
        if last_error is None:
            message = "No AI provider is configured. Set at least one provider API key and try again."
        else:
            message = (
                "Could not optimize the résumé: every AI provider failed. "
                f"Last error: {last_error}"
            )
        super().__init__(message, code="all_providers_exhausted")
        self.last_error = last_error
        self.attempts = list(attempts)
