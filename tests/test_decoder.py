"""Tests for PyMuPDF page decoding."""

import fitz  # PyMuPDF
import pytest

from pdf_layout_server.layout.decoder import (
    DecodeError,
    iter_pages,
    load_document,
    open_document,
)
from pdf_layout_server.layout.grid import split_segments
from pdf_layout_server.layout.pipeline import build_page_blocks, build_page_html
from pdf_layout_server.layout.transform import extract_segments


@pytest.fixture(scope="module")
def small_text_pdf_path(tmp_path_factory):
    """Create a PDF with small print and text drawn apart on one baseline."""
    pdf_path = tmp_path_factory.mktemp("pdfs") / "small.pdf"

    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((100, 100), "Pagar antes del viernes", fontsize=7, fontname="helv")
    page.insert_text((100, 130), "Importe total a pagar", fontsize=6, fontname="helv")
    page.insert_text((50, 200), "Left", fontsize=7, fontname="helv")
    page.insert_text((300, 200), "Right", fontsize=7, fontname="helv")
    doc.save(pdf_path)
    doc.close()

    return pdf_path


@pytest.fixture(scope="module")
def curve_pdf_path(tmp_path_factory):
    """Create a PDF with a closed path made of a line and a curve."""
    pdf_path = tmp_path_factory.mktemp("pdfs") / "curve.pdf"

    doc = fitz.open()
    page = doc.new_page()
    shape = page.new_shape()
    shape.draw_line((100, 100), (200, 100))
    shape.draw_bezier((200, 100), (250, 120), (250, 180), (200, 200))
    shape.finish(closePath=True)
    shape.commit()
    doc.save(pdf_path)
    doc.close()

    return pdf_path


class TestDecoder:
    """Tests for glyph, instruction and annotation extraction."""

    def test_load_document_pages(self, letter_pdf_path):
        """Test that one page is decoded with its dimensions."""
        pages = load_document(letter_pdf_path)
        assert len(pages) == 1
        assert pages[0].page_number == 1
        assert pages[0].height == pytest.approx(842)

    def test_spans_become_text_runs(self, letter_pdf_path):
        """Test that each separately drawn string is one glyph with top-origin coordinates."""
        page = load_document(letter_pdf_path)[0]
        texts = [g.text for g in page.glyphs]
        assert "club@example.es" in texts
        assert "Dto. de Contabilidad" in texts
        assert "Total: 10" in texts

        item = next(g for g in page.glyphs if g.text == "Item")
        assert item.x == pytest.approx(130, abs=1)
        assert item.y_top < 220 < item.y_top + item.height + 1

    def test_small_print_keeps_word_spaces(self, small_text_pdf_path):
        """Test that spaces in 7pt and 6pt text survive decoding and rendering."""
        page = load_document(small_text_pdf_path)[0]
        texts = [g.text for g in page.glyphs]
        assert "Pagar antes del viernes" in texts
        assert "Importe total a pagar" in texts

        html = build_page_html(page)
        assert ">Pagar antes del viernes</p>" in html
        assert ">Importe total a pagar</p>" in html

    def test_text_apart_on_one_baseline_splits(self, small_text_pdf_path):
        """Test that strings drawn far apart on the same baseline stay separate glyphs."""
        page = load_document(small_text_pdf_path)[0]
        left = next(g for g in page.glyphs if g.text == "Left")
        right = next(g for g in page.glyphs if g.text == "Right")
        assert left.x == pytest.approx(50, abs=1)
        assert right.x == pytest.approx(300, abs=1)
        assert not any("Left" in g.text and "Right" in g.text for g in page.glyphs)

    def test_curve_closes_to_subpath_start(self, curve_pdf_path):
        """Test that a closed path ending in a curve closes back to its first point."""
        page = load_document(curve_pdf_path)[0]
        segments = extract_segments(page.instructions, page.height)

        first, last = segments[0], segments[-1]
        assert (first.x0, first.y0, first.x1, first.y1) == pytest.approx(
            (100, 100, 200, 100), abs=0.5
        )
        assert (last.x0, last.y0, last.x1, last.y1) == pytest.approx(
            (200, 200, 100, 100), abs=0.5
        )
        assert any(
            (s.x0, s.y0, s.x1, s.y1) == pytest.approx((200, 100, 200, 200), abs=0.5)
            for s in segments
        )

    def test_drawn_lines_replay_into_rulings(self, letter_pdf_path):
        """Test that drawn lines come back as segments at their drawn positions."""
        page = load_document(letter_pdf_path)[0]
        segments = extract_segments(page.instructions, page.height)
        horizontal, vertical = split_segments(segments, 3)

        assert sorted({round(r.position) for r in horizontal}) == [200, 230, 260]
        assert sorted({round(r.position) for r in vertical}) == [100, 200, 300]
        assert all(round(r.start) == 100 and round(r.end) == 300 for r in horizontal)

    def test_link_annotation_uses_bottom_origin(self, letter_pdf_path):
        """Test that link rectangles are flipped to a bottom-left origin."""
        page = load_document(letter_pdf_path)[0]
        assert len(page.annotations) == 1
        annotation = page.annotations[0]
        assert annotation.url == "https://example.es"
        assert annotation.rect == pytest.approx([50, 842 - 452, 150, 842 - 440], abs=0.5)

    def test_bytes_and_path_sources_agree(self, letter_pdf_path, letter_pdf_bytes):
        """Test that decoding from bytes matches decoding from the file."""
        from_path = load_document(letter_pdf_path)[0]
        from_bytes = load_document(letter_pdf_bytes)[0]
        assert [g.text for g in from_bytes.glyphs] == [g.text for g in from_path.glyphs]

    def test_decoded_page_reconstructs_table(self, letter_pdf_path):
        """Test that the decoded page yields the ruled table with its cell text."""
        page = next(iter_pages(letter_pdf_path))
        tables = [b.table for b in build_page_blocks(page) if b.kind == "table"]

        assert len(tables) == 1
        cells = [[[g.text for g in cell.glyphs] for cell in row] for row in tables[0].grid]
        assert cells == [[["Item"], ["1.234,56"]], [["Other"], ["7,00"]]]


class TestDecodeErrors:
    """Tests for unreadable input."""

    def test_missing_file(self, tmp_path):
        """Test that a missing path raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            open_document(tmp_path / "missing.pdf")

    def test_garbage_bytes(self):
        """Test that non-PDF data raises DecodeError."""
        with pytest.raises(DecodeError):
            load_document(b"this is not a pdf document")

    def test_empty_bytes(self):
        """Test that empty input raises DecodeError."""
        with pytest.raises(DecodeError):
            load_document(b"")
