import asyncio
import logging
from pathlib import Path
from typing import Optional

from pdfminer.high_level import extract_text as pdf_extract
from docx import Document

from resume_scanner.utils.cancellation import raise_if_cancelled, run_unless_cancelled
from resume_scanner.utils.exceptions import OperationCancelled, TextExtractionError

logging.getLogger("pdfminer").setLevel(logging.ERROR)

TEXT_EXTENSIONS = {".txt", ".text"}


def read_txt(p: Path) -> str:
    return p.read_text(errors="ignore")


def read_docx(p: Path) -> str:
    doc = Document(str(p))
    return "\n".join([para.text for para in doc.paragraphs])


def read_pdf(p: Path) -> str:
    try:
        return pdf_extract(str(p))
    except Exception:
        # fallback to unstructured
        from unstructured.partition.auto import partition
        elems = partition(filename=str(p))
        return "\n".join([e.text for e in elems if hasattr(e, "text") and e.text])


def read_any(p: Path) -> str:
    """Unknown extensions are accepted only when they decode as UTF-8 text."""
    try:
        return p.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise TextExtractionError(
            f"File format '{p.suffix.lower()}' is not supported for automatic text extraction.",
            file_path=str(p),
            extension=p.suffix.lower(),
            cause=e,
        )


def read_file(p: Path) -> str:
    ext = p.suffix.lower()
    if ext == ".pdf":
        return read_pdf(p)
    if ext == ".docx":
        return read_docx(p)
    if ext in TEXT_EXTENSIONS:
        return read_txt(p)
    return read_any(p)


async def extract_text(file_path: str, cancel_event: Optional[asyncio.Event] = None) -> str:
    """
    Extract plain text from a resume file (PDF, DOCX or text).

    Parsing runs in a worker thread. Any failure is raised as TextExtractionError
    with the original exception attached as ``cause``.
    """
    if not file_path or not str(file_path).strip():
        raise TextExtractionError("file_path is null or empty")
    raise_if_cancelled(cancel_event, "text extraction")

    p = Path(file_path)
    try:
        return await run_unless_cancelled(asyncio.to_thread(read_file, p), cancel_event, "text extraction")
    except (OperationCancelled, TextExtractionError):
        raise
    except Exception as e:
        raise TextExtractionError(
            f"Text extraction failed for '{file_path}': {e}",
            file_path=str(file_path),
            extension=p.suffix.lower(),
            cause=e,
        )
