from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path

from docx import Document
from pypdf import PdfReader

from .models import ParsedDoc
from .sections import split_sections

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".pdf": "pdf", ".docx": "docx", ".txt": "txt"}


class UnsupportedDocumentType(ValueError):
    pass


def _parse_txt(content: bytes) -> tuple[str, list[str]]:
    return content.decode("utf-8", errors="replace"), []


def _parse_pdf(content: bytes) -> tuple[str, list[str]]:
    warnings: list[str] = []

    try:
        reader = PdfReader(BytesIO(content))
        pages = [(page.extract_text() or "").strip() for page in reader.pages]
        text_parts = [page_text for page_text in pages if page_text]
        if not text_parts:
            warnings.append("No extractable text found in PDF.")
        return "\n".join(text_parts), warnings
    except Exception as exc:
        logger.warning("pdf_parse_failed: %s", exc)
        warnings.append(f"PDF parsing failed: {exc}")
        return "", warnings


def _parse_docx(content: bytes) -> tuple[str, list[str]]:
    warnings: list[str] = []

    try:
        document = Document(BytesIO(content))
        paragraphs = [p.text.strip() for p in document.paragraphs if p.text and p.text.strip()]
        if not paragraphs:
            warnings.append("No extractable text found in DOCX.")
        return "\n".join(paragraphs), warnings
    except Exception as exc:
        logger.warning("docx_parse_failed: %s", exc)
        warnings.append(f"DOCX parsing failed: {exc}")
        return "", warnings


_PARSERS = {"pdf": _parse_pdf, "docx": _parse_docx, "txt": _parse_txt}


def source_type_for(filename: str) -> str:
    extension = Path(filename or "").suffix.lower()
    source_type = SUPPORTED_EXTENSIONS.get(extension)
    if source_type is None:
        raise UnsupportedDocumentType(
            f"Unsupported file type '{extension}'. Supported types: .txt, .pdf, .docx"
        )
    return source_type


def parse_upload(content: bytes, filename: str) -> ParsedDoc:
    """Extract text from an uploaded résumé. Extraction problems surface as warnings, not errors."""
    source_type = source_type_for(filename)
    text, warnings = _PARSERS[source_type](content)
    return ParsedDoc(
        source_type=source_type,
        filename=filename,
        text=text,
        sections=split_sections(text),
        parsing_warnings=warnings,
    )


def parse_document(file_path: str) -> ParsedDoc:
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Input document not found: '{path}'")
    return parse_upload(path.read_bytes(), path.name)
