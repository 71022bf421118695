"""Replay of the vector instruction stream into absolute line segments."""

from collections.abc import Iterable

import fitz  # PyMuPDF

from ..logger import logger
from .config import LayoutConfig
from .models import Instruction, Segment

# Minimum argument count per known operator
_ARITY = {
    "save": 0,
    "restore": 0,
    "transform": 6,
    "moveTo": 2,
    "lineTo": 2,
    "rectangle": 4,
    "closePath": 0,
}


def compose(old: fitz.Matrix, given: fitz.Matrix) -> fitz.Matrix:
    """Return the matrix that maps a point through ``given`` and then ``old``."""
    return fitz.Matrix(given) * fitz.Matrix(old)


def apply(matrix: fitz.Matrix, x: float, y: float) -> tuple[float, float]:
    point = fitz.Point(x, y) * matrix
    return point.x, point.y


class TransformTracker:
    """Graphics state for one page: current point, subpath start and CTM stack.

    Create one tracker per page; the snapshot stack never outlives the page.
    """

    def __init__(self, page_height: float, config: LayoutConfig | None = None):
        self.page_height = page_height
        self.config = config or LayoutConfig()
        self.ctm = fitz.Matrix(1, 0, 0, 1, 0, 0)
        self.stack: list[fitz.Matrix] = []
        self.cx = self.cy = 0.0
        self.mx = self.my = 0.0
        self.segments: list[Segment] = []

    def _to_page(self, x: float, y: float) -> tuple[float, float]:
        tx, ty = apply(self.ctm, x, y)
        return tx, self.page_height - ty

    def _emit(self, a: tuple[float, float], b: tuple[float, float]) -> None:
        self.segments.append(Segment(x0=a[0], y0=a[1], x1=b[0], y1=b[1]))

    def save(self) -> None:
        self.stack.append(fitz.Matrix(self.ctm))

    def restore(self) -> None:
        if self.stack:
            self.ctm = self.stack.pop()

    def transform(self, a, b, c, d, e, f) -> None:
        self.ctm = compose(self.ctm, fitz.Matrix(a, b, c, d, e, f))

    def move_to(self, x: float, y: float) -> None:
        self.mx, self.my = x, y
        self.cx, self.cy = x, y

    def line_to(self, x: float, y: float) -> None:
        self._emit(self._to_page(self.cx, self.cy), self._to_page(x, y))
        self.cx, self.cy = x, y

    def rectangle(self, x: float, y: float, w: float, h: float) -> None:
        # bottom, right, top, left
        corners = [
            self._to_page(x, y),
            self._to_page(x + w, y),
            self._to_page(x + w, y + h),
            self._to_page(x, y + h),
        ]
        for i, corner in enumerate(corners):
            self._emit(corner, corners[(i + 1) % 4])

    def close_path(self) -> None:
        start = self._to_page(self.cx, self.cy)
        end = self._to_page(self.mx, self.my)
        limit = self.config.close_path_min_distance
        if abs(start[0] - end[0]) > limit or abs(start[1] - end[1]) > limit:
            self._emit(start, end)
        self.cx, self.cy = self.mx, self.my

    def feed(self, instruction: Instruction) -> None:
        """Apply one instruction; unknown or truncated operators are skipped."""
        arity = _ARITY.get(instruction.op)
        if arity is None or len(instruction.args) < arity:
            return
        args = instruction.args[:arity]
        if instruction.op == "save":
            self.save()
        elif instruction.op == "restore":
            self.restore()
        elif instruction.op == "transform":
            self.transform(*args)
        elif instruction.op == "moveTo":
            self.move_to(*args)
        elif instruction.op == "lineTo":
            self.line_to(*args)
        elif instruction.op == "rectangle":
            self.rectangle(*args)
        elif instruction.op == "closePath":
            self.close_path()


def extract_segments(
    instructions: Iterable[Instruction],
    page_height: float,
    config: LayoutConfig | None = None,
) -> list[Segment]:
    """Flatten a page's vector instructions into top-left-origin segments.

    Args:
        instructions: Operators in stream order.
        page_height: Height used to flip the vertical axis.
        config: Optional engine configuration.

    Returns:
        Segments in emission order, rectangles decomposed into four sides.
    """
    tracker = TransformTracker(page_height, config)
    count = 0
    for instruction in instructions:
        tracker.feed(instruction)
        count += 1

    logger.debug(
        "segments extracted",
        instructions=count,
        segments=len(tracker.segments),
        unbalanced_saves=len(tracker.stack),
    )
    return tracker.segments
