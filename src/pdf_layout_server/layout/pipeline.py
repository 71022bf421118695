"""Per-page layout reconstruction: tables, quarter fallback and text lines."""

from collections.abc import Iterable

from ..logger import logger
from .config import LayoutConfig
from .lines import group_into_lines
from .models import (
    Block,
    PageContent,
    QuarterTableBlock,
    TableBlock,
    TextLineBlock,
)
from .quarter import detect_quarter_table
from .render import order_blocks, render_block
from .tables import detect_tables
from .transform import extract_segments


def build_page_blocks(page: PageContent, config: LayoutConfig | None = None) -> list[Block]:
    """Reconstruct one page into blocks ordered top to bottom.

    Args:
        page: Decoded glyphs and vector instructions of the page.
        config: Optional engine configuration.

    Returns:
        Table, quarter-table and text-line blocks sorted by top y.
    """
    config = config or LayoutConfig()
    segments = extract_segments(page.instructions, page.height, config)
    detection = detect_tables(segments, page.glyphs, config)

    blocks: list[Block] = [
        TableBlock(y=table.top, table=table)
        for table in sorted(detection.tables, key=lambda t: t.top)
    ]

    free_glyphs = [g for i, g in enumerate(page.glyphs) if i not in detection.consumed]
    lines = group_into_lines(free_glyphs, config.eps)

    skip_lines: set[int] = set()
    match = detect_quarter_table(lines, config)
    if match:
        skip_lines.update((match.header_index, match.value_index))
        blocks.append(
            QuarterTableBlock(
                y=lines[match.header_index].y,
                labels=list(config.quarter_labels),
                value_label=config.quarter_value_label,
                values=match.values,
            )
        )

    blocks.extend(
        TextLineBlock(y=line.y, line=line)
        for i, line in enumerate(lines)
        if i not in skip_lines
    )

    logger.debug(
        "page blocks built",
        page_number=page.page_number,
        segments=len(segments),
        tables=len(detection.tables),
        table_glyphs=len(detection.consumed),
        lines=len(lines),
        quarter_table=match is not None,
    )
    return order_blocks(blocks)


def build_page_html(page: PageContent, config: LayoutConfig | None = None) -> str:
    config = config or LayoutConfig()
    return "".join(
        render_block(block, config.line_gap) for block in build_page_blocks(page, config)
    )


def build_document_html(
    pages: Iterable[PageContent], config: LayoutConfig | None = None
) -> str:
    """Render pages strictly in order into one continuous HTML flow."""
    config = config or LayoutConfig()
    return "".join(build_page_html(page, config) for page in pages)
