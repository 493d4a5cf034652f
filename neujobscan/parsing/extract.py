from __future__ import annotations

import logging
import re
from io import BytesIO
from pathlib import Path

from docx import Document
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from neujobscan.core.errors import ValidationError
from neujobscan.normalize.utils import content_digest

from .models import ParsedBlock, ParsedDoc

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES: dict[str, str] = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "text/plain": "txt",
}
_EXTENSION_TYPES = {".pdf": "pdf", ".doc": "doc", ".docx": "docx", ".txt": "txt"}
_PRINTABLE_RUN_RE = re.compile(rb"[\x20-\x7e\t\r\n]{4,}")


def source_type_for(filename: str, content_type: str | None) -> str:
    """Resolve the document type from its MIME type, falling back to the file extension."""
    normalized = (content_type or "").split(";", 1)[0].strip().lower()
    if normalized in ALLOWED_CONTENT_TYPES:
        return ALLOWED_CONTENT_TYPES[normalized]
    if normalized and normalized != "application/octet-stream":
        raise ValidationError(
            f"Unsupported file type '{normalized}'. Allowed: PDF, DOC, DOCX, TXT."
        )
    extension = Path(filename or "").suffix.lower()
    if extension in _EXTENSION_TYPES:
        return _EXTENSION_TYPES[extension]
    raise ValidationError("Unsupported file type. Allowed: PDF, DOC, DOCX, TXT.")


def _parse_txt(content: bytes) -> tuple[str, list[ParsedBlock], list[str]]:
    try:
        return content.decode("utf-8"), [], []
    except UnicodeDecodeError:
        return content.decode("utf-8", errors="replace"), [], ["Text file is not valid UTF-8; some characters were replaced."]


def _parse_pdf(content: bytes) -> tuple[str, list[ParsedBlock], list[str]]:
    warnings: list[str] = []
    blocks: list[ParsedBlock] = []
    try:
        reader = PdfReader(BytesIO(content))
        text_parts: list[str] = []
        for index, page in enumerate(reader.pages, start=1):
            page_text = (page.extract_text() or "").strip()
            if page_text:
                text_parts.append(page_text)
                blocks.append(ParsedBlock(page=index, text=page_text))
    except (PdfReadError, ValueError, OSError) as exc:
        logger.warning("pdf_extract_failed error=%s", exc)
        warnings.append(f"PDF parsing failed: {exc}")
        return "", blocks, warnings
    if not text_parts:
        warnings.append("No extractable text found in PDF.")
    return "\n".join(text_parts), blocks, warnings


def _parse_docx(content: bytes) -> tuple[str, list[ParsedBlock], list[str]]:
    warnings: list[str] = []
    blocks: list[ParsedBlock] = []
    try:
        document = Document(BytesIO(content))
    except Exception as exc:  # noqa: BLE001 - python-docx raises several unrelated types on corrupt input
        logger.warning("docx_extract_failed error=%s", exc)
        warnings.append(f"DOCX parsing failed: {exc}")
        return "", blocks, warnings

    paragraphs = [p.text.strip() for p in document.paragraphs if p.text and p.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                paragraphs.append(" | ".join(dict.fromkeys(cells)))
    blocks.extend(ParsedBlock(text=paragraph) for paragraph in paragraphs)
    if not paragraphs:
        warnings.append("No extractable text found in DOCX.")
    return "\n".join(paragraphs), blocks, warnings


def _parse_doc(content: bytes) -> tuple[str, list[ParsedBlock], list[str]]:
    # OLE2 binary; recover printable ASCII runs only.
    runs = [run.decode("ascii", errors="ignore").strip() for run in _PRINTABLE_RUN_RE.findall(content)]
    lines = [run for run in runs if re.search(r"[A-Za-z]{2,}", run)]
    warnings = ["Legacy .doc files are read on a best-effort basis; convert to DOCX or PDF for best results."]
    if not lines:
        warnings.append("No extractable text found in DOC.")
    return "\n".join(lines), [], warnings


_PARSERS = {"pdf": _parse_pdf, "docx": _parse_docx, "doc": _parse_doc, "txt": _parse_txt}


def extract_document_text(filename: str, content: bytes, content_type: str | None = None) -> ParsedDoc:
    source_type = source_type_for(filename, content_type)
    text, blocks, warnings = _PARSERS[source_type](content)
    seed = text if text.strip() else (filename or "")
    return ParsedDoc(
        doc_id=content_digest(seed),
        source_type=source_type,
        file_name=filename or f"upload.{source_type}",
        text=text,
        blocks=blocks,
        parsing_warnings=warnings,
    )
