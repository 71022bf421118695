from .config import LayoutConfig
from .models import (
    Annotation,
    Block,
    GlyphRecord,
    Instruction,
    PageContent,
    QuarterTableBlock,
    QuarterTableMatch,
    Segment,
    Table,
    TableBlock,
    TableCell,
    TextLine,
    TextLineBlock,
)
from .transform import TransformTracker, extract_segments
from .grid import build_grid, cluster_values, split_segments
from .tables import detect_tables, edge_covers
from .lines import build_line_text, group_into_lines, normalize_pdf_text
from .quarter import detect_quarter_table, is_european_number
from .render import escape_html, render_block, render_quarter_table, render_table, render_text_line
from .pipeline import build_document_html, build_page_blocks, build_page_html
from .decoder import DecodeError, extract_page, iter_pages, load_document
from .contacts import extract_recipient, extract_subject, extract_to_email, find_first_email

__all__ = [
    # Config
    "LayoutConfig",
    # Models
    "Annotation",
    "Block",
    "GlyphRecord",
    "Instruction",
    "PageContent",
    "QuarterTableBlock",
    "QuarterTableMatch",
    "Segment",
    "Table",
    "TableBlock",
    "TableCell",
    "TextLine",
    "TextLineBlock",
    # Transform tracking
    "TransformTracker",
    "extract_segments",
    # Grid and tables
    "build_grid",
    "cluster_values",
    "split_segments",
    "detect_tables",
    "edge_covers",
    # Lines
    "build_line_text",
    "group_into_lines",
    "normalize_pdf_text",
    # Quarter table fallback
    "detect_quarter_table",
    "is_european_number",
    # Rendering
    "escape_html",
    "render_block",
    "render_quarter_table",
    "render_table",
    "render_text_line",
    # Pipeline
    "build_document_html",
    "build_page_blocks",
    "build_page_html",
    # Decoder
    "DecodeError",
    "extract_page",
    "iter_pages",
    "load_document",
    # Contacts
    "extract_recipient",
    "extract_subject",
    "extract_to_email",
    "find_first_email",
]
