"""Ruled table detection: cell presence, region flood fill and cell assignment."""

from collections import deque
from collections.abc import Sequence

from ..logger import logger
from .config import LayoutConfig
from .grid import build_grid, split_segments
from .models import (
    GlyphRecord,
    Ruling,
    RulingGrid,
    Segment,
    Table,
    TableCell,
    TableDetection,
)

_NEIGHBOURS = ((0, 1), (0, -1), (1, 0), (-1, 0))


def edge_covers(
    candidates: Sequence[Ruling], start: float, end: float, edge_eps: float
) -> bool:
    """Check that rulings sorted by start cover [start, end].

    Gaps up to ``edge_eps`` between consecutive rulings are bridged, so dashed
    or multi-stroke borders still count as one edge.
    """
    reached = start - edge_eps
    for ruling in candidates:
        if ruling.start > reached + edge_eps:
            return False
        reached = max(reached, ruling.end)
        if reached >= end - edge_eps:
            return True
    return reached >= end - edge_eps


def has_edge(
    rulings: Sequence[Ruling],
    start: float,
    end: float,
    position: float,
    eps: float,
    edge_eps: float,
) -> bool:
    candidates = sorted(
        (
            r
            for r in rulings
            if abs(r.position - position) <= eps
            and r.end >= start - edge_eps
            and r.start <= end + edge_eps
        ),
        key=lambda r: r.start,
    )
    return edge_covers(candidates, start, end, edge_eps)


def cell_presence(
    grid: RulingGrid,
    horizontal: Sequence[Ruling],
    vertical: Sequence[Ruling],
    eps: float,
    edge_eps: float,
) -> list[list[bool]]:
    """Mark every grid cell whose four sides are covered by rulings."""
    present = [[False] * grid.cols for _ in range(grid.rows)]
    for r in range(grid.rows):
        y0, y1 = grid.ys[r], grid.ys[r + 1]
        for c in range(grid.cols):
            x0, x1 = grid.xs[c], grid.xs[c + 1]
            present[r][c] = (
                has_edge(horizontal, x0, x1, y0, eps, edge_eps)
                and has_edge(horizontal, x0, x1, y1, eps, edge_eps)
                and has_edge(vertical, y0, y1, x0, eps, edge_eps)
                and has_edge(vertical, y0, y1, x1, eps, edge_eps)
            )
    return present


def find_regions(present: list[list[bool]], min_cells: int = 2) -> list[list[tuple[int, int]]]:
    """Return 4-connected components of present cells with at least ``min_cells``.

    Components are discovered in row-major order of their first cell.
    """
    rows = len(present)
    cols = len(present[0]) if rows else 0
    visited = [[False] * cols for _ in range(rows)]
    regions = []

    for r in range(rows):
        for c in range(cols):
            if not present[r][c] or visited[r][c]:
                continue
            cells = []
            queue = deque([(r, c)])
            visited[r][c] = True
            while queue:
                cr, cc = queue.popleft()
                cells.append((cr, cc))
                for dr, dc in _NEIGHBOURS:
                    nr, nc = cr + dr, cc + dc
                    if (
                        0 <= nr < rows
                        and 0 <= nc < cols
                        and present[nr][nc]
                        and not visited[nr][nc]
                    ):
                        visited[nr][nc] = True
                        queue.append((nr, nc))
            if len(cells) >= min_cells:
                regions.append(cells)
    return regions


def assign_glyphs(
    table: Table,
    grid: RulingGrid,
    row_offset: int,
    col_offset: int,
    glyphs: Sequence[GlyphRecord],
    consumed: set[int],
    eps: float,
) -> None:
    """Move unconsumed glyphs whose midpoint falls inside ``table`` into its cells.

    The owning cell is the first one, row-major, containing the midpoint within
    ``eps``. Assigned glyph indices are added to ``consumed``.
    """
    for idx, glyph in enumerate(glyphs):
        if idx in consumed:
            continue
        mid_x, mid_y = glyph.mid_x, glyph.mid_y
        if (
            mid_x < table.left - eps
            or mid_x > table.right + eps
            or mid_y < table.top - eps
            or mid_y > table.bottom + eps
        ):
            continue

        for r in range(table.rows):
            cy0, cy1 = grid.ys[row_offset + r], grid.ys[row_offset + r + 1]
            if not (cy0 - eps <= mid_y <= cy1 + eps):
                continue
            placed = False
            for c in range(table.cols):
                cx0, cx1 = grid.xs[col_offset + c], grid.xs[col_offset + c + 1]
                if cx0 - eps <= mid_x <= cx1 + eps:
                    table.grid[r][c].glyphs.append(glyph)
                    consumed.add(idx)
                    placed = True
                    break
            if placed:
                break


def _build_table(cells: list[tuple[int, int]], grid: RulingGrid) -> tuple[Table, int, int]:
    r_min = min(r for r, _ in cells)
    r_max = max(r for r, _ in cells)
    c_min = min(c for _, c in cells)
    c_max = max(c for _, c in cells)
    rows = r_max - r_min + 1
    cols = c_max - c_min + 1
    table = Table(
        top=grid.ys[r_min],
        bottom=grid.ys[r_max + 1],
        left=grid.xs[c_min],
        right=grid.xs[c_max + 1],
        rows=rows,
        cols=cols,
        grid=[[TableCell() for _ in range(cols)] for _ in range(rows)],
    )
    return table, r_min, c_min


def detect_tables(
    segments: Sequence[Segment],
    glyphs: Sequence[GlyphRecord],
    config: LayoutConfig | None = None,
) -> TableDetection:
    """Detect ruled tables and distribute glyphs into their cells.

    Args:
        segments: Absolute page segments from the transform tracker.
        glyphs: Page glyphs; indices refer to this sequence.
        config: Optional engine configuration.

    Returns:
        TableDetection with tables in discovery order and the indices of the
        glyphs placed in a table cell. No tables is a normal result.
    """
    config = config or LayoutConfig()
    horizontal, vertical = split_segments(segments, config.eps)
    grid = build_grid(horizontal, vertical, config.eps)

    logger.debug(
        "rulings classified",
        horizontal=len(horizontal),
        vertical=len(vertical),
        x_grid=len(grid.xs) if grid else 0,
        y_grid=len(grid.ys) if grid else 0,
    )
    if grid is None:
        return TableDetection()

    if grid.rows < 1 or grid.cols < 1:
        logger.warn("degenerate ruling grid skipped", rows=grid.rows, cols=grid.cols)
        return TableDetection(grid=grid)

    present = cell_presence(grid, horizontal, vertical, config.eps, config.edge_eps)
    regions = find_regions(present, config.min_table_cells)

    consumed: set[int] = set()
    tables = []
    for cells in regions:
        table, row_offset, col_offset = _build_table(cells, grid)
        assign_glyphs(table, grid, row_offset, col_offset, glyphs, consumed, config.eps)
        tables.append(table)
        logger.debug(
            "table detected",
            rows=table.rows,
            cols=table.cols,
            top=round(table.top, 1),
            left=round(table.left, 1),
            present_cells=len(cells),
        )

    return TableDetection(tables=tables, consumed=consumed, grid=grid)
