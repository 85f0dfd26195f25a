import asyncio
import json
import sys
import unittest
from pathlib import Path

import httpx

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.ai.errors import AllProvidersExhausted  # noqa: E402
from app.ai.orchestrator import ProviderOrchestrator  # noqa: E402
from app.ai.providers.common import bearer_headers, chat_payload, choices_text, extract_generated_text  # noqa: E402
from app.ai.types import ProviderSpec  # noqa: E402
from app.schemas.resume import ResumeProfile  # noqa: E402

VALID_PROFILE = {
    "name": "Ana Souza",
    "position": "Backend Engineer",
    "email": "ana@example.com",
    "summary": "Backend engineer with Python and SQL.",
    "experience": [{"company": "Acme", "position": "Engineer", "period": "2020-2024"}],
    "education": [],
    "skills": {"programming": ["Python", "SQL"]},
}

RESUME = "Ana Souza\nana@example.com\nBackend engineer at Acme since 2020."
JOB = "Cargo: Backend Engineer\nRequirements:\n- Python\n- SQL"


def _spec(name: str, credential: str | None = "key") -> ProviderSpec:
    return ProviderSpec(
        name=name,
        endpoint=f"https://{name.lower()}.test/v1/chat",
        credential=credential,
        build_headers=bearer_headers,
        build_request=lambda messages: {"messages": chat_payload(messages)},
        parse_response=lambda body: extract_generated_text(body, preferred=choices_text),
    )


def _chat(content: str) -> dict:
    return {"choices": [{"message": {"content": content}}]}


class _ScriptedTransport:
    """Replays a queue of responses per host and records every request."""

    def __init__(self, script: dict[str, list]):
        self.script = {host: list(items) for host, items in script.items()}
        self.calls: list[str] = []
        self.bodies: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        self.calls.append(host)
        self.bodies.append(json.loads(request.content))
        item = self.script[host].pop(0)
        if isinstance(item, Exception):
            raise item
        status, body = item
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)


class OrchestratorTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.sleeps: list[float] = []

    async def _fake_sleep(self, delay: float) -> None:
        self.sleeps.append(delay)

    async def _run(self, registry, script):
        transport = _ScriptedTransport(script)
        async with httpx.AsyncClient(transport=httpx.MockTransport(transport)) as client:
            orchestrator = ProviderOrchestrator(
                registry,
                client,
                retry_limit=2,
                retry_delay_s=5.0,
                sleep=self._fake_sleep,
            )
            try:
                outcome = await orchestrator.run(RESUME, JOB)
            except AllProvidersExhausted as exc:
                return transport, exc
        return transport, outcome

    async def test_rate_limit_then_success_retries_same_provider(self):
        transport, outcome = await self._run(
            [_spec("Alpha"), _spec("Beta")],
            {"alpha.test": [(429, "slow down"), (200, _chat(json.dumps(VALID_PROFILE)))]},
        )
        self.assertEqual(outcome.provider, "Alpha")
        self.assertEqual(outcome.attempts[0].retries, 1)
        self.assertEqual(outcome.attempts[0].status, "success")
        self.assertEqual(self.sleeps, [5.0])
        self.assertEqual(transport.calls, ["alpha.test", "alpha.test"])
        self.assertEqual(outcome.profile.name, "Ana Souza")

    async def test_rate_limit_exhaustion_moves_to_next_provider(self):
        transport, outcome = await self._run(
            [_spec("Alpha"), _spec("Beta")],
            {
                "alpha.test": [(429, ""), (429, ""), (429, "")],
                "beta.test": [(200, _chat(json.dumps(VALID_PROFILE)))],
            },
        )
        self.assertEqual(outcome.provider, "Beta")
        first = outcome.attempts[0]
        self.assertEqual(first.status, "failed")
        self.assertEqual(first.error_code, "provider_rate_limited")
        self.assertEqual(first.retries, 2)
        self.assertEqual(self.sleeps, [5.0, 5.0])
        self.assertEqual(transport.calls.count("alpha.test"), 3)

    async def test_unconfigured_provider_is_never_called(self):
        transport, outcome = await self._run(
            [_spec("Alpha", credential=None), _spec("Beta")],
            {"beta.test": [(200, _chat(json.dumps(VALID_PROFILE)))]},
        )
        self.assertEqual(outcome.provider, "Beta")
        self.assertNotIn("alpha.test", transport.calls)
        self.assertEqual(outcome.attempts[0].status, "skipped")
        self.assertEqual(outcome.attempts[0].error_code, "credential_missing")

    async def test_first_success_stops_the_chain(self):
        transport, outcome = await self._run(
            [_spec("Alpha"), _spec("Beta")],
            {"alpha.test": [(200, _chat(json.dumps(VALID_PROFILE)))], "beta.test": []},
        )
        self.assertEqual(outcome.provider, "Alpha")
        self.assertEqual(transport.calls, ["alpha.test"])
        self.assertEqual(len(outcome.attempts), 1)

    async def test_invalid_structure_falls_through(self):
        _, outcome = await self._run(
            [_spec("Alpha"), _spec("Beta")],
            {
                "alpha.test": [(200, _chat("Sorry, I cannot help with that."))],
                "beta.test": [(200, _chat("```json\n" + json.dumps(VALID_PROFILE) + "\n```"))],
            },
        )
        self.assertEqual(outcome.provider, "Beta")
        self.assertEqual(outcome.attempts[0].error_code, "invalid_structure")

    async def test_empty_and_http_errors_fall_through(self):
        _, outcome = await self._run(
            [_spec("Alpha"), _spec("Beta"), _spec("Gamma")],
            {
                "alpha.test": [(200, _chat("   "))],
                "beta.test": [(500, {"error": "boom"})],
                "gamma.test": [(200, _chat(json.dumps(VALID_PROFILE)))],
            },
        )
        self.assertEqual(outcome.provider, "Gamma")
        self.assertEqual(
            [attempt.error_code for attempt in outcome.attempts],
            ["empty_response", "provider_http_error", None],
        )
        self.assertEqual(self.sleeps, [])

    async def test_timeout_is_reported_and_skipped(self):
        request = httpx.Request("POST", "https://alpha.test/v1/chat")
        _, outcome = await self._run(
            [_spec("Alpha"), _spec("Beta")],
            {
                "alpha.test": [httpx.ReadTimeout("timed out", request=request)],
                "beta.test": [(200, _chat(json.dumps(VALID_PROFILE)))],
            },
        )
        self.assertEqual(outcome.attempts[0].error_code, "provider_timeout")
        self.assertEqual(outcome.provider, "Beta")

    async def test_all_failures_raise_exhausted_with_last_error(self):
        _, exc = await self._run(
            [_spec("Alpha"), _spec("Beta", credential=None), _spec("Gamma")],
            {
                "alpha.test": [(503, "unavailable")],
                "gamma.test": [(200, _chat("not json"))],
            },
        )
        self.assertIsInstance(exc, AllProvidersExhausted)
        self.assertEqual(exc.code, "all_providers_exhausted")
        self.assertEqual(exc.last_error.code, "invalid_structure")
        self.assertEqual([a.status for a in exc.attempts], ["failed", "skipped", "failed"])

    async def test_no_configured_provider_raises_without_network(self):
        transport, exc = await self._run([_spec("Alpha", credential=None), _spec("Beta", credential=None)], {})
        self.assertIsInstance(exc, AllProvidersExhausted)
        self.assertIsNone(exc.last_error)
        self.assertEqual(transport.calls, [])
        self.assertIn("No AI provider is configured", str(exc))

    async def test_prompt_carries_resume_job_and_analysis(self):
        transport, outcome = await self._run(
            [_spec("Alpha")],
            {"alpha.test": [(200, _chat(json.dumps(VALID_PROFILE)))]},
        )
        messages = transport.bodies[0]["messages"]
        self.assertEqual([m["role"] for m in messages], ["system", "user"])
        self.assertIn("Backend engineer at Acme", messages[1]["content"])
        self.assertIn("Cargo: Backend Engineer", messages[1]["content"])
        self.assertEqual(outcome.job.title, "Backend Engineer")

    async def test_optimize_returns_profile(self):
        transport = _ScriptedTransport({"alpha.test": [(200, _chat(json.dumps(VALID_PROFILE)))]})
        async with httpx.AsyncClient(transport=httpx.MockTransport(transport)) as client:
            orchestrator = ProviderOrchestrator([_spec("Alpha")], client, sleep=self._fake_sleep)
            profile = await orchestrator.optimize(RESUME, JOB)
        self.assertIsInstance(profile, ResumeProfile)
        self.assertEqual(profile.skills.programming, ["Python", "SQL"])
        self.assertEqual(profile.experience[0].location, "Not specified")

    async def test_cancelling_run_abandons_the_pending_request(self):
        entered = asyncio.Event()
        cancelled: list[str] = []
        calls: list[str] = []

        async def hanging(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.host)
            entered.set()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.append(request.url.host)
                raise
            return httpx.Response(200, json=_chat(json.dumps(VALID_PROFILE)))

        async with httpx.AsyncClient(transport=httpx.MockTransport(hanging)) as client:
            orchestrator = ProviderOrchestrator([_spec("Alpha"), _spec("Beta")], client, sleep=self._fake_sleep)
            task = asyncio.create_task(orchestrator.run(RESUME, JOB))
            await asyncio.wait_for(entered.wait(), timeout=5)
            task.cancel()
            with self.assertRaises(asyncio.CancelledError):
                await task

        self.assertEqual(calls, ["alpha.test"])
        self.assertEqual(cancelled, ["alpha.test"])

    async def test_wait_for_timeout_cancels_run(self):
        async def hanging(_request: httpx.Request) -> httpx.Response:
            await asyncio.Event().wait()
            return httpx.Response(200, json=_chat("{}"))

        async with httpx.AsyncClient(transport=httpx.MockTransport(hanging)) as client:
            orchestrator = ProviderOrchestrator([_spec("Alpha")], client, sleep=self._fake_sleep)
            with self.assertRaises(asyncio.TimeoutError):
                await asyncio.wait_for(orchestrator.run(RESUME, JOB), timeout=0.05)


class ProviderPingTests(unittest.IsolatedAsyncioTestCase):
    async def _ping(self, spec, script):
        transport = _ScriptedTransport(script)
        async with httpx.AsyncClient(transport=httpx.MockTransport(transport)) as client:
            orchestrator = ProviderOrchestrator([spec], client, sleep=self._no_sleep)
            result = await orchestrator.ping(spec)
        return transport, result

    async def _no_sleep(self, _delay: float) -> None:
        return None

    async def test_ping_success_sends_a_single_short_prompt(self):
        transport, result = await self._ping(_spec("Alpha"), {"alpha.test": [(200, _chat("OK"))]})
        self.assertTrue(result.ok)
        self.assertIsNone(result.error_code)
        self.assertEqual(len(transport.bodies[0]["messages"]), 1)
        self.assertEqual(transport.bodies[0]["messages"][0]["role"], "user")

    async def test_ping_reports_http_failure(self):
        _, result = await self._ping(_spec("Alpha"), {"alpha.test": [(401, "invalid key")]})
        self.assertFalse(result.ok)
        self.assertEqual(result.error_code, "provider_http_error")

    async def test_ping_reports_rate_limit_after_retries(self):
        _, result = await self._ping(_spec("Alpha"), {"alpha.test": [(429, ""), (429, ""), (429, "")]})
        self.assertFalse(result.ok)
        self.assertEqual(result.error_code, "provider_rate_limited")
        self.assertEqual(result.retries, 2)

    async def test_ping_unconfigured_provider_makes_no_call(self):
        transport, result = await self._ping(_spec("Alpha", credential=None), {})
        self.assertFalse(result.ok)
        self.assertEqual(result.error_code, "credential_missing")
        self.assertEqual(transport.calls, [])

    async def test_find_is_case_insensitive(self):
        async with httpx.AsyncClient() as client:
            orchestrator = ProviderOrchestrator([_spec("Alpha"), _spec("Beta")], client)
            self.assertEqual(orchestrator.find(" beta ").name, "Beta")
            self.assertIsNone(orchestrator.find("gamma"))


if __name__ == "__main__":
    unittest.main()
