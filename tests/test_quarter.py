"""Tests for the borderless quarterly-amounts table fallback."""

import pytest

from pdf_layout_server.layout.config import LayoutConfig
from pdf_layout_server.layout.models import GlyphRecord, TextLine
from pdf_layout_server.layout.quarter import detect_quarter_table, is_european_number

LABELS = ["1T", "2T", "3T", "4T", "Total"]
DEFAULT_COL_MIDS = [100, 160, 220, 280, 360]


def item_at(text, mid_x, y=20.0):
    """Glyph centred at ``mid_x``, six units per character wide."""
    width = len(text) * 6
    return GlyphRecord(text=text, x=mid_x - width / 2, y_top=y, width=width, height=12)


def header_line(y, mids=DEFAULT_COL_MIDS):
    return TextLine(y=y, items=[item_at(label, mids[i], y) for i, label in enumerate(LABELS)])


def value_line(y, values, mids=DEFAULT_COL_MIDS, label="Importes"):
    """Value line; empty strings leave the column without a glyph."""
    items = [item_at(label, 40, y)]
    items += [item_at(v, mids[i], y) for i, v in enumerate(values) if v]
    return TextLine(y=y, items=items)


def text_line(y, text):
    items = []
    x = 10.0
    for token in text.split(" "):
        items.append(GlyphRecord(text=token, x=x, y_top=y, width=len(token) * 6, height=12))
        x += len(token) * 6 + 10
    return TextLine(y=y, items=items)


class TestEuropeanNumber:
    """Tests for the number format check."""

    @pytest.mark.parametrize("text", ["6.357,63", "26.202,82", "-1.000", "12", "0,5"])
    def test_accepts(self, text):
        """Test European-formatted numbers."""
        assert is_european_number(text)

    @pytest.mark.parametrize("text", ["6,357.63", "1234.56", "abc", "", "12.34"])
    def test_rejects(self, text):
        """Test non-European or non-numeric strings."""
        assert not is_european_number(text)


class TestDetectQuarterTable:
    """Tests for quarter header and value line detection."""

    def test_all_values_present(self):
        """Test nominal detection with five values."""
        lines = [
            text_line(10, "Some other text"),
            header_line(20),
            value_line(30, ["6.357,63", "6.402,12", "6.816,40", "6.626,67", "26.202,82"]),
            text_line(40, "More text"),
        ]
        match = detect_quarter_table(lines)

        assert match is not None
        assert match.header_index == 1
        assert match.value_index == 2
        assert match.values == ["6.357,63", "6.402,12", "6.816,40", "6.626,67", "26.202,82"]
        assert match.column_midpoints == pytest.approx(DEFAULT_COL_MIDS)

    def test_value_label_is_case_insensitive(self):
        """Test that a lowercase value label is accepted."""
        lines = [
            header_line(10),
            value_line(20, ["1.000,00", "2.000,00", "3.000,00", "4.000,00", "10.000,00"], label="importes"),
        ]
        assert detect_quarter_table(lines) is not None

    def test_missing_quarter_does_not_shift_values(self):
        """Test that a blank 2T stays blank and later values keep their columns."""
        lines = [
            header_line(10),
            value_line(20, ["6.357,63", "", "6.816,40", "6.626,67", "26.202,82"]),
        ]
        match = detect_quarter_table(lines)
        assert match.values == ["6.357,63", "", "6.816,40", "6.626,67", "26.202,82"]

    def test_only_first_quarter_and_total(self):
        """Test that numbers under 1T and Total leave the middle quarters blank."""
        lines = [header_line(10), value_line(20, ["1.234,56", "", "", "", "2.000,00"])]
        match = detect_quarter_table(lines)
        assert match.values == ["1.234,56", "", "", "", "2.000,00"]

    def test_numbers_snap_to_nearest_label(self):
        """Test that slightly offset numbers are assigned by nearest midpoint."""
        items = [item_at("Importes", 40, 20)]
        items += [item_at(v, mid, 20) for v, mid in [("1,00", 108), ("3,00", 214), ("9,00", 350)]]
        lines = [header_line(10), TextLine(y=20, items=items)]
        match = detect_quarter_table(lines)
        assert match.values == ["1,00", "", "3,00", "", "9,00"]

    def test_no_header(self):
        """Test that month names instead of quarter labels do not match."""
        lines = [
            text_line(10, "January February March Total"),
            value_line(20, ["1.000,00", "2.000,00", "3.000,00", "4.000,00", "10.000,00"]),
        ]
        assert detect_quarter_table(lines) is None

    def test_value_line_must_follow_header(self):
        """Test that a line not starting with the value label is rejected."""
        lines = [
            header_line(10),
            text_line(20, "SomethingElse 1.000,00 2.000,00 3.000,00 4.000,00 10.000,00"),
        ]
        assert detect_quarter_table(lines) is None

    def test_non_numeric_values(self):
        """Test that a value line without numbers is rejected."""
        lines = [header_line(10), text_line(20, "Importes abc def ghi jkl mno")]
        assert detect_quarter_table(lines) is None

    def test_empty_line_between_header_and_values(self):
        """Test that blank lines between header and value line are skipped."""
        lines = [
            header_line(10),
            TextLine(y=20, items=[]),
            value_line(30, ["6.357,63", "6.402,12", "6.816,40", "6.626,67", "26.202,82"]),
        ]
        match = detect_quarter_table(lines)
        assert match is not None
        assert match.value_index == 2

    def test_single_header_glyph_has_too_few_anchors(self):
        """Test that a header rendered as one glyph cannot anchor columns."""
        lines = [
            TextLine(y=10, items=[item_at("1T 2T 3T 4T Total", 150, 10)]),
            value_line(20, ["6.357,63", "6.402,12", "6.816,40", "6.626,67", "26.202,82"]),
        ]
        assert detect_quarter_table(lines) is None

    def test_header_at_end_of_page(self):
        """Test that a header with no following line does not match."""
        assert detect_quarter_table([header_line(10)]) is None

    def test_custom_labels(self):
        """Test that labels come from the configuration."""
        config = LayoutConfig(quarter_labels=["Q1", "Q2"], quarter_value_label="Amounts")
        header = TextLine(y=10, items=[item_at("Q1", 100, 10), item_at("Q2", 200, 10)])
        values = TextLine(
            y=20,
            items=[item_at("Amounts", 40, 20), item_at("5,00", 200, 20)],
        )
        match = detect_quarter_table([header, values], config)
        assert match.values == ["", "5,00"]
