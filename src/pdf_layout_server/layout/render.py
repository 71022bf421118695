"""HTML rendering of page blocks."""

from collections.abc import Iterable, Sequence

from .config import LINE_GAP
from .lines import build_line_text
from .models import (
    Block,
    QuarterTableBlock,
    Table,
    TableBlock,
    TextLine,
    TextLineBlock,
)
from .quarter import is_european_number

FONT_STYLE = "font-family:Calibri,Arial,sans-serif;font-size:11pt;"
TABLE_OPEN = (
    '<table border="1" cellspacing="0" cellpadding="4" '
    f'style="border-collapse:collapse;{FONT_STYLE}margin:8px 0;">\n'
)
CELL_STYLE = "border:1px solid #000;padding:4px 6px;"


def escape_html(text: str | None) -> str:
    return (
        str(text or "")
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _cell_alignment(numeric: bool) -> str:
    if numeric:
        return "text-align:right;white-space:nowrap;"
    return "text-align:left;"


def render_text_line(line: TextLine, line_gap: float = LINE_GAP) -> str:
    """Render a line as a paragraph; empty lines render as nothing."""
    text = build_line_text(line.items, line_gap)
    if not text:
        return ""
    return f'<p style="{FONT_STYLE}margin:2px 0;">{escape_html(text)}</p>\n'


def render_table(table: Table, line_gap: float = LINE_GAP) -> str:
    html = TABLE_OPEN
    for row in table.grid:
        html += "  <tr>\n"
        for cell in row:
            text = build_line_text(cell.glyphs, line_gap)
            align = _cell_alignment(is_european_number(text))
            html += f'    <td style="{CELL_STYLE}{align}">{escape_html(text)}</td>\n'
        html += "  </tr>\n"
    html += "</table>\n"
    return html


def render_quarter_table(
    labels: Sequence[str], value_label: str, values: Sequence[str]
) -> str:
    """Render the synthetic quarter table: a label header row and one value row."""
    td_base = f'style="{CELL_STYLE}{FONT_STYLE}'
    html = TABLE_OPEN
    html += "  <tr>\n"
    for header in ["", *labels]:
        html += f'    <th {td_base}text-align:center;">{escape_html(header)}</th>\n'
    html += "  </tr>\n"
    html += "  <tr>\n"
    for idx, text in enumerate([value_label, *values]):
        align = _cell_alignment(numeric=idx > 0)
        html += f'    <td {td_base}{align}">{escape_html(text)}</td>\n'
    html += "  </tr>\n"
    html += "</table>\n"
    return html


def render_block(block: Block, line_gap: float = LINE_GAP) -> str:
    if isinstance(block, TableBlock):
        return render_table(block.table, line_gap)
    if isinstance(block, QuarterTableBlock):
        return render_quarter_table(block.labels, block.value_label, block.values)
    if isinstance(block, TextLineBlock):
        return render_text_line(block.line, line_gap)
    raise TypeError(f"unsupported block kind: {type(block).__name__}")


def order_blocks(blocks: Iterable[Block]) -> list[Block]:
    """Sort blocks top to bottom; ties keep discovery order."""
    return sorted(blocks, key=lambda b: b.y)
