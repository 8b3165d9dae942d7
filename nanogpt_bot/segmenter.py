from __future__ import annotations

from typing import List

_BREAK_MARKERS = ("\n\n", "\n", " ")


def _find_break(text: str, max_length: int) -> int:
    half = max_length / 2
    for marker in _BREAK_MARKERS:
        # The marker may start at max_length itself; the chunk ends before it.
        index = text.rfind(marker, 0, max_length + len(marker))
        if index > 0 and index >= half:
            return index
    return max_length


def segment_response(text: str, max_length: int) -> List[str]:
    """Split text into chunks of at most max_length characters.

    Cuts prefer the last paragraph break, then line break, then space found in
    the second half of the window; otherwise the window is cut hard. The tail is
    left-trimmed before the next cut.
    """
    max_length = max(1, int(max_length))
    if len(text) <= max_length:
        return [text]

    chunks: List[str] = []
    remaining = text
    while remaining:
        if len(remaining) <= max_length:
            chunks.append(remaining)
            break
        cut = _find_break(remaining, max_length)
        chunks.append(remaining[:cut])
        remaining = remaining[cut:].lstrip()
    return chunks
