import json
import os
import sys
import unittest
from io import BytesIO
from pathlib import Path

import httpx
from docx import Document
from fastapi.testclient import TestClient

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("RATE_LIMIT_ENABLED", "0")
os.environ.setdefault("ANALYTICS_ENABLED", "0")
os.environ["API_KEY"] = ""

from app.ai.orchestrator import ProviderOrchestrator  # noqa: E402
from app.ai.providers.common import bearer_headers, chat_payload, choices_text, extract_generated_text  # noqa: E402
from app.ai.types import ProviderSpec  # noqa: E402
from app.api.v1.deps import get_orchestrator  # noqa: E402
from app.main import app  # noqa: E402

PROFILE = {
    "name": "Ana Souza",
    "email": "ana@example.com",
    "summary": "Backend engineer with Python.",
    "experience": [{"company": "Acme", "position": "Engineer", "period": "2020-2024"}],
    "education": [],
    "skills": {"programming": ["Python"]},
}

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


async def _no_sleep(_delay: float) -> None:
    return None


def _orchestrator(handler, registry=None) -> ProviderOrchestrator:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ProviderOrchestrator(
        registry or [_spec("Alpha", credential=None), _spec("Beta")],
        client,
        sleep=_no_sleep,
    )


def _ok(_request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": json.dumps(PROFILE)}}]})


def _unavailable(_request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, text="overloaded")


class ApiTestCase(unittest.TestCase):
    handler = staticmethod(_ok)

    def setUp(self):
        self.orchestrator = _orchestrator(self.handler)
        app.dependency_overrides[get_orchestrator] = lambda: self.orchestrator
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()


class HealthAndProvidersTests(ApiTestCase):
    def test_health(self):
        response = self.client.get("/v1/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "healthy")

    def test_providers_report_configuration(self):
        response = self.client.get("/v1/providers")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json()["providers"],
            [{"name": "Alpha", "configured": False}, {"name": "Beta", "configured": True}],
        )

    def test_ping_configured_provider(self):
        response = self.client.post("/v1/providers/beta/ping")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["provider"], "Beta")
        self.assertTrue(body["ok"])

    def test_ping_unconfigured_provider(self):
        response = self.client.post("/v1/providers/Alpha/ping")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["error_code"], "credential_missing")
        self.assertFalse(response.json()["ok"])

    def test_ping_unknown_provider_is_404(self):
        response = self.client.post("/v1/providers/nope/ping")
        self.assertEqual(response.status_code, 404)

    def test_missing_orchestrator_is_503(self):
        app.dependency_overrides.clear()
        response = self.client.get("/v1/providers")
        self.assertEqual(response.status_code, 503)


class JobAnalyzeApiTests(ApiTestCase):
    def test_analyze_returns_job_analysis(self):
        response = self.client.post("/v1/jobs/analyze", json={"job_description": JOB})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["title"], "Backend Engineer")
        self.assertEqual(body["company"], "Company")
        self.assertIn("python", body["keywords"])

    def test_blank_description_is_rejected(self):
        response = self.client.post("/v1/jobs/analyze", json={"job_description": "   "})
        self.assertEqual(response.status_code, 422)


class OptimizeApiTests(ApiTestCase):
    def test_optimize_from_text(self):
        response = self.client.post(
            "/v1/resume/optimize",
            json={"resume_text": "Ana Souza, engineer at Acme", "job_description": JOB},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["provider"], "Beta")
        self.assertEqual(body["profile"]["name"], "Ana Souza")
        self.assertEqual(body["profile"]["position"], "Backend Engineer")
        self.assertEqual(body["profile"]["phone"], "(00) 00000-0000")
        self.assertEqual([a["status"] for a in body["attempts"]], ["skipped", "success"])
        self.assertEqual(body["job"]["title"], "Backend Engineer")
        self.assertIsNone(body["sections"])

    def test_missing_job_description_is_422(self):
        response = self.client.post("/v1/resume/optimize", json={"resume_text": "Ana"})
        self.assertEqual(response.status_code, 422)

    def test_upload_txt(self):
        response = self.client.post(
            "/v1/resume/optimize/upload",
            files={"file": ("ana.txt", b"Ana Souza\nana@example.com\nSkills\nPython, SQL", "text/plain")},
            data={"job_description": JOB},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["parsing_warnings"], [])
        self.assertEqual(body["sections"]["skills"], "Skills\nPython, SQL")
        self.assertIn("Email: ana@example.com", body["sections"]["personal_info"])

    def test_upload_docx(self):
        document = Document()
        document.add_paragraph("Ana Souza")
        buffer = BytesIO()
        document.save(buffer)
        response = self.client.post(
            "/v1/resume/optimize/upload",
            files={"file": ("ana.docx", buffer.getvalue(), "application/octet-stream")},
            data={"job_description": JOB},
        )
        self.assertEqual(response.status_code, 200)

    def test_upload_broken_pdf_surfaces_warning(self):
        response = self.client.post(
            "/v1/resume/optimize/upload",
            files={"file": ("ana.pdf", b"not a pdf", "application/pdf")},
            data={"job_description": JOB},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["parsing_warnings"]), 1)

    def test_upload_unsupported_type_is_415(self):
        response = self.client.post(
            "/v1/resume/optimize/upload",
            files={"file": ("photo.png", b"\x89PNG", "image/png")},
            data={"job_description": JOB},
        )
        self.assertEqual(response.status_code, 415)

    def test_upload_too_large_is_413(self):
        from app.core.config import settings

        payload = b"a" * (settings.max_upload_bytes + 1)
        response = self.client.post(
            "/v1/resume/optimize/upload",
            files={"file": ("big.txt", payload, "text/plain")},
            data={"job_description": JOB},
        )
        self.assertEqual(response.status_code, 413)


class ExhaustedApiTests(ApiTestCase):
    handler = staticmethod(_unavailable)

    def test_all_providers_failing_is_503_with_attempts(self):
        response = self.client.post(
            "/v1/resume/optimize",
            json={"resume_text": "Ana", "job_description": JOB},
        )
        self.assertEqual(response.status_code, 503)
        detail = response.json()["detail"]
        self.assertEqual(detail["code"], "all_providers_exhausted")
        self.assertEqual(
            [(a["provider"], a["status"], a["error_code"]) for a in detail["attempts"]],
            [("Alpha", "skipped", "credential_missing"), ("Beta", "failed", "provider_http_error")],
        )


class ExportApiTests(ApiTestCase):
    def _profile(self):
        response = self.client.post(
            "/v1/resume/optimize",
            json={"resume_text": "Ana", "job_description": JOB},
        )
        return response.json()["profile"]

    def test_export_returns_pdf(self):
        response = self.client.post("/v1/resume/export", json=self._profile())
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["content-type"], "application/pdf")
        self.assertIn("Ana_Souza_CV_Optimized.pdf", response.headers["content-disposition"])
        self.assertTrue(response.content.startswith(b"%PDF"))

    def test_export_with_non_latin1_name(self):
        profile = self._profile()
        profile["name"] = "Łukasz Nowak"
        response = self.client.post("/v1/resume/export", json=profile)
        self.assertEqual(response.status_code, 200)
        disposition = response.headers["content-disposition"]
        self.assertIn('filename="ukasz_Nowak_CV_Optimized.pdf"', disposition)
        self.assertIn("filename*=UTF-8''%C5%81ukasz_Nowak_CV_Optimized.pdf", disposition)
        self.assertTrue(response.content.startswith(b"%PDF"))

    def test_export_with_blank_field_is_422(self):
        profile = self._profile()
        profile["email"] = ""
        response = self.client.post("/v1/resume/export", json=profile)
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["detail"]["missing"], ["email"])


if __name__ == "__main__":
    unittest.main()
