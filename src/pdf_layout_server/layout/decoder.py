"""PDF decoding with PyMuPDF into per-page glyph and vector instruction streams."""

from collections.abc import Iterator
from pathlib import Path

import fitz  # PyMuPDF

from ..logger import logger
from .models import Annotation, GlyphRecord, Instruction, PageContent

# Jumps wider than this many ems split a span into separate text runs
RUN_BREAK_EM = 1.0


class DecodeError(RuntimeError):
    """Raised when PyMuPDF cannot open or read a document."""


def _span_runs(span: dict) -> list[list[dict]]:
    """Split a span's characters into runs at wide horizontal jumps.

    MuPDF merges text drawn separately on one baseline into a single span and
    may bridge the jump with a synthetic space. A wide gap or an over-wide
    space ends the current run; ordinary spaces stay inside it.
    """
    limit = span.get("size", 0) * RUN_BREAK_EM
    runs: list[list[dict]] = [[]]
    prev_x1: float | None = None
    for char in span.get("chars", []):
        x0, _, x1, _ = char["bbox"]
        bridge = not char["c"].strip() and x1 - x0 > limit
        if prev_x1 is not None and (bridge or x0 - prev_x1 > limit):
            runs.append([])
        if not bridge:
            runs[-1].append(char)
        prev_x1 = x1
    return runs


def _glyphs(page: fitz.Page) -> list[GlyphRecord]:
    """Positioned text runs, spaces included, from the raw character dump."""
    glyphs = []
    for block in page.get_text("rawdict")["blocks"]:
        for line in block.get("lines", []):
            for span in line["spans"]:
                for run in _span_runs(span):
                    inked = [c for c in run if c["c"].strip()]
                    if not inked:
                        continue
                    x0, x1 = inked[0]["bbox"][0], inked[-1]["bbox"][2]
                    y0 = min(c["bbox"][1] for c in inked)
                    y1 = max(c["bbox"][3] for c in inked)
                    glyphs.append(
                        GlyphRecord(
                            text="".join(c["c"] for c in run).strip(),
                            x=x0,
                            y_top=y0,
                            width=x1 - x0,
                            height=y1 - y0,
                            font=span.get("font"),
                        )
                    )
    return glyphs


def _instructions(page: fitz.Page, height: float) -> list[Instruction]:
    """Re-express PyMuPDF drawings as bottom-left-origin path operators.

    ``get_drawings`` reports final page coordinates, so no transform operator
    is emitted; the y flip restores the PDF user-space convention.
    """
    ops: list[Instruction] = []

    def move(p: fitz.Point) -> None:
        ops.append(Instruction(op="moveTo", args=[p.x, height - p.y]))

    def line(p: fitz.Point) -> None:
        ops.append(Instruction(op="lineTo", args=[p.x, height - p.y]))

    for path in page.get_drawings():
        current: fitz.Point | None = None
        for item in path.get("items", []):
            kind = item[0]
            if kind == "l":
                start, end = item[1], item[2]
                if current is None or abs(current - start) > 1e-6:
                    move(start)
                line(end)
                current = end
            elif kind == "re":
                rect = fitz.Rect(item[1])
                ops.append(
                    Instruction(
                        op="rectangle",
                        args=[rect.x0, height - rect.y1, rect.width, rect.height],
                    )
                )
                current = None
            elif kind == "qu":
                quad = fitz.Quad(item[1])
                move(quad.ul)
                line(quad.ur)
                line(quad.lr)
                line(quad.ll)
                ops.append(Instruction(op="closePath"))
                current = None
            elif kind == "c":
                # Flattened to its chord so the subpath start survives for closePath
                start, end = item[1], item[-1]
                if current is None or abs(current - start) > 1e-6:
                    move(start)
                line(end)
                current = end
        if path.get("closePath") and current is not None:
            ops.append(Instruction(op="closePath"))
    return ops


def _annotations(page: fitz.Page, height: float) -> list[Annotation]:
    annotations = []
    for link in page.get_links():
        uri = link.get("uri")
        if not uri:
            continue
        rect = fitz.Rect(link["from"])
        annotations.append(
            Annotation(url=uri, rect=[rect.x0, height - rect.y1, rect.x1, height - rect.y0])
        )
    return annotations


def extract_page(page: fitz.Page, page_number: int) -> PageContent:
    """Decode one PyMuPDF page.

    Args:
        page: Open page.
        page_number: 1-based page number.

    Returns:
        PageContent with text-run glyphs, path instructions and link annotations.
    """
    height = page.rect.height
    return PageContent(
        page_number=page_number,
        width=page.rect.width,
        height=height,
        glyphs=_glyphs(page),
        instructions=_instructions(page, height),
        annotations=_annotations(page, height),
    )


def open_document(source: str | Path | bytes) -> fitz.Document:
    """Open a PDF from a path or raw bytes."""
    if isinstance(source, bytes):
        try:
            return fitz.open(stream=source, filetype="pdf")
        except (RuntimeError, ValueError) as e:
            raise DecodeError(f"cannot decode PDF data: {e}") from e

    file_path = Path(source)
    if not file_path.exists():
        raise FileNotFoundError(f"PDF file not found: {file_path}")
    try:
        return fitz.open(file_path)
    except (RuntimeError, ValueError) as e:
        raise DecodeError(f"cannot decode PDF {file_path}: {e}") from e


def iter_pages(source: str | Path | bytes) -> Iterator[PageContent]:
    """Yield decoded pages one at a time, in document order."""
    doc = open_document(source)
    try:
        logger.info("decoding pdf", total_pages=doc.page_count)
        for page_num, page in enumerate(doc):
            try:
                content = extract_page(page, page_num + 1)
            except (RuntimeError, ValueError) as e:
                raise DecodeError(f"cannot decode page {page_num + 1}: {e}") from e
            yield content
    finally:
        doc.close()


def load_document(source: str | Path | bytes) -> list[PageContent]:
    return list(iter_pages(source))
