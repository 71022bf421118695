"""Borderless quarterly-amounts table heuristic.

Recognizes a header line carrying the quarter labels in order (``1T 2T 3T 4T
Total``) followed, blank lines aside, by a line starting with the value label
(``Importes``) and holding European-formatted numbers. Numbers are assigned to
the header column whose label midpoint is horizontally nearest, so a missing
quarter leaves a blank cell instead of shifting the following values left.
"""

import re
from collections.abc import Sequence

from ..logger import logger
from .config import LayoutConfig
from .lines import build_line_text, normalize_pdf_text
from .models import GlyphRecord, QuarterTableMatch, TextLine

# Number format detection (3.426,64 style)
EUROPEAN_NUMBER_REGEX = re.compile(r"^-?\d{1,3}(?:\.\d{3})*(?:,\d+)?$")


def is_european_number(text: str) -> bool:
    return bool(EUROPEAN_NUMBER_REGEX.match(text.strip()))


def _header_pattern(labels: Sequence[str]) -> re.Pattern:
    return re.compile(
        ".*".join(rf"\b{re.escape(label)}\b" for label in labels), re.IGNORECASE
    )


def _label_midpoints(
    items: Sequence[GlyphRecord], labels: Sequence[str]
) -> list[float | None]:
    ordered = sorted(items, key=lambda g: g.x)
    midpoints: list[float | None] = []
    for label in labels:
        wanted = label.upper()
        match = next(
            (g for g in ordered if normalize_pdf_text(g.text).upper() == wanted), None
        )
        midpoints.append(match.mid_x if match else None)
    return midpoints


def _nearest_column(mid_x: float, midpoints: Sequence[float | None]) -> int:
    best_idx = -1
    best_dist = float("inf")
    for idx, column_mid in enumerate(midpoints):
        if column_mid is None:
            continue
        dist = abs(mid_x - column_mid)
        if dist < best_dist:
            best_dist = dist
            best_idx = idx
    return best_idx


def detect_quarter_table(
    lines: Sequence[TextLine], config: LayoutConfig | None = None
) -> QuarterTableMatch | None:
    """Find the first quarter header / value line pair in ``lines``.

    Args:
        lines: Free text lines of one page, top to bottom.
        config: Optional engine configuration carrying the labels.

    Returns:
        The match with one value per label ('' where no number was aligned),
        or None when the idiom is absent.
    """
    config = config or LayoutConfig()
    labels = config.quarter_labels
    header_regex = _header_pattern(labels)
    value_regex = re.compile(rf"^{re.escape(config.quarter_value_label)}\b", re.IGNORECASE)
    texts = [build_line_text(line.items, config.line_gap) for line in lines]

    for i, line in enumerate(lines):
        if not header_regex.search(texts[i]):
            continue

        midpoints = _label_midpoints(line.items, labels)
        resolved = sum(1 for m in midpoints if m is not None)
        if resolved < 2:
            logger.debug("quarter header without enough anchors", line_index=i, resolved=resolved)
            continue

        j = i + 1
        while j < len(lines) and not texts[j]:
            j += 1
        if j >= len(lines) or not value_regex.search(texts[j]):
            continue

        numeric_items = [
            g for g in lines[j].items if is_european_number(normalize_pdf_text(g.text))
        ]
        if not numeric_items:
            continue

        values = [""] * len(labels)
        for item in numeric_items:
            column = _nearest_column(item.mid_x, midpoints)
            if column >= 0:
                values[column] = normalize_pdf_text(item.text)

        logger.debug(
            "quarter table fallback triggered",
            header_index=i,
            value_index=j,
            values=dict(zip(labels, values)),
        )
        return QuarterTableMatch(
            header_index=i, value_index=j, values=values, column_midpoints=midpoints
        )
    return None
