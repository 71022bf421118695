#!/usr/bin/env python3
"""Verification script for layout reconstruction quality.

Usage:
    python scripts/verify_layout.py <pdf_path> [--pages N] [--html]

Prints the reconstructed blocks of each page for manual verification.
"""

import argparse
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pdf_layout_server.layout import (
    LayoutConfig,
    QuarterTableBlock,
    TableBlock,
    build_line_text,
    build_page_blocks,
    iter_pages,
    render_block,
)


def main():
    parser = argparse.ArgumentParser(description="Verify PDF layout reconstruction")
    parser.add_argument("pdf_path", help="Path to PDF file")
    parser.add_argument(
        "--pages", type=int, default=5, help="Number of pages to display (default: 5)"
    )
    parser.add_argument("--html", action="store_true", help="Print rendered HTML instead")
    args = parser.parse_args()

    pdf_path = Path(args.pdf_path)
    if not pdf_path.exists():
        print(f"Error: File not found: {pdf_path}")
        sys.exit(1)

    config = LayoutConfig.from_env()
    print(f"Reconstructing: {pdf_path}")
    print("=" * 80)

    for page in iter_pages(pdf_path):
        if page.page_number > args.pages:
            break
        blocks = build_page_blocks(page, config)
        print(f"\n--- Page {page.page_number} ({len(blocks)} blocks) ---")

        for block in blocks:
            if args.html:
                print(render_block(block, config.line_gap), end="")
            elif isinstance(block, TableBlock):
                table = block.table
                print(f"  [T] y={block.y:.1f} {table.rows}x{table.cols}")
                for row in table.grid:
                    cells = [build_line_text(c.glyphs, config.line_gap) for c in row]
                    print("      | " + " | ".join(cells) + " |")
            elif isinstance(block, QuarterTableBlock):
                values = ", ".join(
                    f"{label}={value or '(blank)'}"
                    for label, value in zip(block.labels, block.values)
                )
                print(f"  [Q] y={block.y:.1f} {values}")
            else:
                text = build_line_text(block.line.items, config.line_gap)
                if text:
                    print(f"  [P] y={block.y:.1f} {text[:200]}")

    print("\n" + "=" * 80)
    print("Reconstruction complete.")


if __name__ == "__main__":
    main()
