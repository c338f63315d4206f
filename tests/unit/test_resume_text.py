from __future__ import annotations

from resume_ranker.core.resume_text import extract_resume_text, stored_filename


def test_stored_filename_is_timestamped_and_sanitized() -> None:
    assert stored_filename("Jane Doe (CV).pdf", now_ms=1700000000000) == "1700000000000_Jane_Doe__CV_.pdf"


def test_plain_text_and_markdown_are_decoded() -> None:
    assert extract_resume_text("Jane Doe\nPython".encode(), "cv.txt") == "Jane Doe\nPython"
    assert extract_resume_text(b"# Jane", "CV.MD") == "# Jane"


def test_unsupported_type_gets_placeholder_text() -> None:
    assert extract_resume_text(b"\x00\x01", "resume.docx") == "[File content for resume.docx]"
    assert extract_resume_text(b"data", "resume") == "[File content for resume]"


def test_unreadable_pdf_gets_error_marker() -> None:
    assert extract_resume_text(b"definitely not a pdf", "broken.pdf") == "[Error parsing file: broken.pdf]"
