"""Plain-text extraction from uploaded resume files."""

from __future__ import annotations

import io
import logging
import re
import time

from pypdf import PdfReader

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.]")


def stored_filename(original_name: str, *, now_ms: int | None = None) -> str:
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
    sanitized = _UNSAFE_FILENAME_CHARS.sub("_", original_name or "resume")
    return f"{timestamp}_{sanitized}"


def extract_resume_text(content: bytes, filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""

    if ext == "pdf":
        try:
            return _extract_from_pdf(content)
        except Exception as exc:
            logger.error("PDF extraction failed filename=%s error=%s", filename, exc)
            return f"[Error parsing file: {filename}]"
    if ext in {"txt", "md"}:
        return content.decode("utf-8", errors="ignore")

    logger.warning("Unsupported resume type filename=%s; storing placeholder text", filename)
    return f"[File content for {filename}]"


def _extract_from_pdf(content: bytes) -> str:
    reader = PdfReader(io.BytesIO(content))
    parts: list[str] = []
    for page in reader.pages:
        page_text = page.extract_text()
        if page_text:
            parts.append(page_text)
    text = "\n\n".join(parts)
    logger.info("PDF text extracted pages=%d chars=%d", len(reader.pages), len(text))
    return text
