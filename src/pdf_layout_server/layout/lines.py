"""Grouping of free glyphs into text lines and line text assembly."""

import re
from collections.abc import Sequence

from .config import EPS, LINE_GAP
from .models import GlyphRecord, TextLine

# C0 control characters except tab, line feed and carriage return
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
_WHITESPACE = re.compile(r"\s+")
_INVISIBLE_CHARS = re.compile(r"[\u200b\u200c\u200d\ufeff\u00ad\u00a0]")


def normalize_pdf_text(text: str | None) -> str:
    """Replace control characters with spaces, collapse whitespace and trim."""
    cleaned = _CONTROL_CHARS.sub(" ", text or "")
    return _WHITESPACE.sub(" ", cleaned).strip()


def strip_invisible_chars(text: str | None) -> str:
    """Remove zero-width characters, soft hyphens and non-breaking spaces."""
    return _INVISIBLE_CHARS.sub("", text or "")


def group_into_lines(glyphs: Sequence[GlyphRecord], eps: float = EPS) -> list[TextLine]:
    """Group glyphs into lines by vertical proximity.

    Glyphs are sorted by (y_top, x). A glyph joins the current line when its
    y_top is within ``eps`` of the line's anchor, the first glyph's y_top.

    Args:
        glyphs: Glyphs not consumed by a table.
        eps: Vertical tolerance.

    Returns:
        Lines ordered top to bottom.
    """
    if not glyphs:
        return []

    ordered = sorted(glyphs, key=lambda g: (g.y_top, g.x))
    lines = []
    current = TextLine(y=ordered[0].y_top, items=[ordered[0]])
    for glyph in ordered[1:]:
        if abs(glyph.y_top - current.y) <= eps:
            current.items.append(glyph)
        else:
            lines.append(current)
            current = TextLine(y=glyph.y_top, items=[glyph])
    lines.append(current)
    return lines


def build_line_text(glyphs: Sequence[GlyphRecord], line_gap: float = LINE_GAP) -> str:
    """Join glyph texts left to right into one readable string.

    A space is inserted only when the horizontal gap to the previous non-empty
    glyph exceeds ``line_gap``, so kerned or split runs of one word stay joined.
    """
    text = ""
    prev: GlyphRecord | None = None
    for glyph in sorted(glyphs, key=lambda g: g.x):
        value = normalize_pdf_text(glyph.text)
        if not value:
            continue
        if text and prev is not None and glyph.x - prev.right > line_gap:
            text += " "
        text += value
        prev = glyph
    return _WHITESPACE.sub(" ", text).strip()
