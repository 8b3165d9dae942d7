from __future__ import annotations

import asyncio
import io
from dataclasses import dataclass
from pathlib import PurePath

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

SUPPORTED_EXTENSIONS = (
    ".pdf",
    ".txt",
    ".md",
    ".markdown",
    ".text",
    ".log",
    ".json",
    ".xml",
    ".csv",
    ".html",
    ".htm",
)


class DocumentError(ValueError):
    pass


@dataclass(slots=True, frozen=True)
class ParsedDocument:
    content: str
    filename: str
    file_type: str


def _extension(filename: str) -> str:
    return PurePath(filename.strip()).suffix.lower()


def is_supported_file(filename: str) -> bool:
    return _extension(filename) in SUPPORTED_EXTENSIONS


def get_file_type(filename: str) -> str:
    return _extension(filename).lstrip(".") or "txt"


def _extract_pdf_text(data: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except PdfReadError as exc:
        raise DocumentError(f"Failed to parse PDF: {exc}") from exc
    text = "\n".join(pages).strip()
    if not text:
        raise DocumentError("No text content could be extracted from the PDF. It may be an image-based PDF.")
    return text


async def parse_document(data: bytes, filename: str) -> ParsedDocument:
    file_type = get_file_type(filename)
    if file_type == "pdf":
        content = await asyncio.to_thread(_extract_pdf_text, data)
    else:
        content = data.decode("utf-8", errors="replace")
    return ParsedDocument(content=content, filename=filename, file_type=file_type)
