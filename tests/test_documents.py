from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from nanogpt_bot.services.documents import (  # noqa: E402
    DocumentError,
    get_file_type,
    is_supported_file,
    parse_document,
)


def test_supported_extensions() -> None:
    assert is_supported_file("Notes.MD")
    assert is_supported_file("report.pdf")
    assert not is_supported_file("archive.zip")
    assert not is_supported_file("README")


def test_file_type() -> None:
    assert get_file_type("report.PDF") == "pdf"
    assert get_file_type("data.csv") == "csv"
    assert get_file_type("README") == "txt"


def test_parse_text_document_replaces_invalid_utf8() -> None:
    parsed = asyncio.run(parse_document("café ".encode("utf-8") + b"\xff", "menu.txt"))
    assert parsed.file_type == "txt"
    assert parsed.filename == "menu.txt"
    assert parsed.content.startswith("café ")
    assert parsed.content.endswith("�")


def test_parse_garbage_pdf_raises_document_error() -> None:
    with pytest.raises(DocumentError):
        asyncio.run(parse_document(b"this is not a pdf", "broken.pdf"))
