"""Tolerances and labels used by the layout engine."""

import os

from pydantic import BaseModel, Field

# Tolerance in PDF points (~1mm) for coordinate clustering and snapping
EPS = 3.0
# Tolerance for merging edge segment gaps (dashed or multi-stroke borders)
EDGE_EPS = 6.0
# Horizontal gap above which two glyphs of a line are separated by a space
LINE_GAP = 2.0
# closePath segments shorter than this on both axes are dropped
CLOSE_PATH_MIN_DISTANCE = 0.5

QUARTER_LABELS = ["1T", "2T", "3T", "4T", "Total"]
QUARTER_VALUE_LABEL = "Importes"


class LayoutConfig(BaseModel):
    """Runtime configuration for one conversion."""

    eps: float = Field(default=EPS, gt=0)
    edge_eps: float = Field(default=EDGE_EPS, gt=0)
    line_gap: float = Field(default=LINE_GAP, ge=0)
    close_path_min_distance: float = Field(default=CLOSE_PATH_MIN_DISTANCE, ge=0)
    min_table_cells: int = Field(default=2, ge=1)
    quarter_labels: list[str] = Field(
        default_factory=lambda: list(QUARTER_LABELS), min_length=2
    )
    quarter_value_label: str = QUARTER_VALUE_LABEL

    @classmethod
    def from_env(cls) -> "LayoutConfig":
        """Build a config, overriding tolerances from ``PDF_LAYOUT_*`` env vars."""
        return cls(
            eps=float(os.getenv("PDF_LAYOUT_EPS", EPS)),
            edge_eps=float(os.getenv("PDF_LAYOUT_EDGE_EPS", EDGE_EPS)),
            line_gap=float(os.getenv("PDF_LAYOUT_LINE_GAP", LINE_GAP)),
        )
