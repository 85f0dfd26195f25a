from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import httpx
from dotenv import load_dotenv

from app.ai.config import load_ai_config
from app.ai.errors import AllProvidersExhausted
from app.ai.orchestrator import ProviderOrchestrator
from app.ai.registry import build_provider_registry
from app.export.pdf_renderer import export_filename, render_profile_pdf
from app.parsing.parse import parse_document
from app.schemas.resume import ResumeProfile


async def _run(resume_path: str, job_path: str) -> dict:
    parsed = parse_document(resume_path)
    for warning in parsed.parsing_warnings:
        logging.warning("parsing_warning: %s", warning)
    job_text = Path(job_path).read_text(encoding="utf-8")

    cfg = load_ai_config()
    async with httpx.AsyncClient(timeout=httpx.Timeout(cfg.timeout_s)) as client:
        orchestrator = ProviderOrchestrator(
            build_provider_registry(cfg),
            client,
            retry_limit=cfg.rate_limit_retries,
            retry_delay_s=cfg.rate_limit_delay_s,
        )
        outcome = await orchestrator.run(parsed.text, job_text)
    logging.info("optimized_with provider=%s", outcome.provider)
    return outcome.profile.model_dump(mode="json")


def main() -> None:
    parser = argparse.ArgumentParser(description="Optimize a résumé for a job description.")
    parser.add_argument("resume", help="Résumé file (.pdf, .docx or .txt)")
    parser.add_argument("job", help="Text file holding the job description")
    parser.add_argument("--json-out", default="", help="Write the optimized profile JSON here")
    parser.add_argument("--pdf-dir", default="", help="Also export the optimized résumé as PDF into this directory")
    args = parser.parse_args()

    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    try:
        profile_data = asyncio.run(_run(args.resume, args.job))
    except AllProvidersExhausted as exc:
        logging.error("%s", exc)
        sys.exit(2)

    rendered = json.dumps(profile_data, ensure_ascii=False, indent=2)
    if args.json_out:
        out_path = Path(args.json_out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(rendered + "\n", encoding="utf-8")
    else:
        print(rendered)

    if args.pdf_dir:
        profile = ResumeProfile.model_validate(profile_data)
        pdf_dir = Path(args.pdf_dir)
        pdf_dir.mkdir(parents=True, exist_ok=True)
        pdf_path = pdf_dir / export_filename(profile)
        pdf_path.write_bytes(render_profile_pdf(profile))
        logging.info("pdf_written path=%s", pdf_path)


if __name__ == "__main__":
    main()
