from __future__ import annotations

import sys
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from nanogpt_bot.segmenter import segment_response  # noqa: E402


def test_short_text_is_returned_unchanged() -> None:
    assert segment_response("hello", 10) == ["hello"]
    assert segment_response("", 10) == [""]


def test_hard_cut_without_break_characters() -> None:
    assert segment_response("abcdefghijklmnop", 10) == ["abcdefghij", "klmnop"]


def test_paragraph_break_is_preferred() -> None:
    text = "a" * 8 + "\n\n" + "b" * 8
    assert segment_response(text, 12) == ["a" * 8, "b" * 8]


def test_space_break_when_no_newline() -> None:
    assert segment_response("hello world again", 12) == ["hello world", "again"]


def test_break_in_first_half_is_ignored() -> None:
    assert segment_response("ab cdefghijklmnop", 10) == ["ab cdefghi", "jklmnop"]


def test_line_break_beats_later_space() -> None:
    assert segment_response("aaaaaa\nbb cc", 10) == ["aaaaaa", "bb cc"]


def test_chunks_cover_text_dropping_only_boundary_whitespace() -> None:
    text = ("lorem  ipsum dolor\tsit amet\n" * 40) + "\n\n" + ("x" * 333)
    chunks = segment_response(text, 50)
    assert all(0 < len(chunk) <= 50 for chunk in chunks)

    position = 0
    for chunk in chunks:
        start = text.find(chunk, position)
        assert start != -1
        assert text[position:start].strip() == ""
        if position == 0:
            assert start == 0
        position = start + len(chunk)
    assert position == len(text)
