"""Shared fixtures: a generated one-page letter with a ruled table."""

from pathlib import Path

import fitz  # PyMuPDF
import pytest

TABLE_XS = (100, 200, 300)
TABLE_YS = (200, 230, 260)


@pytest.fixture(scope="session")
def letter_pdf_path(tmp_path_factory) -> Path:
    """Create a letter PDF with recipient, email line, ruled table and signer."""
    tmp_dir = tmp_path_factory.mktemp("pdfs")
    pdf_path = tmp_dir / "letter.pdf"

    doc = fitz.open()
    page = doc.new_page()

    # Recipient block
    page.insert_text((50, 60), "B12345678 ACME S.L.", fontsize=11, fontname="helv")
    page.insert_text((50, 90), "A", fontsize=11, fontname="helv")
    page.insert_text((70, 90), "club@example.es", fontsize=11, fontname="helv")

    # 2x2 ruled table
    for y in TABLE_YS:
        page.draw_line((TABLE_XS[0], y), (TABLE_XS[-1], y))
    for x in TABLE_XS:
        page.draw_line((x, TABLE_YS[0]), (x, TABLE_YS[-1]))
    page.insert_text((130, 220), "Item", fontsize=11, fontname="helv")
    page.insert_text((230, 220), "1.234,56", fontsize=11, fontname="helv")
    page.insert_text((130, 250), "Other", fontsize=11, fontname="helv")
    page.insert_text((230, 250), "7,00", fontsize=11, fontname="helv")

    page.insert_text((100, 300), "Total: 10", fontsize=11, fontname="helv")

    # Signer above the accounting department anchor
    page.insert_text((50, 400), "Juan Pérez", fontsize=11, fontname="helv")
    page.insert_text((50, 415), "Dto. de Contabilidad", fontsize=11, fontname="helv")

    page.insert_link(
        {"kind": fitz.LINK_URI, "from": fitz.Rect(50, 440, 150, 452), "uri": "https://example.es"}
    )

    doc.save(pdf_path)
    doc.close()

    return pdf_path


@pytest.fixture(scope="session")
def letter_pdf_bytes(letter_pdf_path) -> bytes:
    return letter_pdf_path.read_bytes()
