"""Data models shared by the layout engine stages."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class GlyphRecord(BaseModel):
    """One positioned run of decoded text, in page-top-origin coordinates."""

    model_config = ConfigDict(frozen=True)

    text: str
    x: float
    y_top: float
    width: float = 0.0
    height: float = 0.0
    font: str | None = None

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def mid_x(self) -> float:
        return self.x + self.width / 2

    @property
    def mid_y(self) -> float:
        return self.y_top + self.height / 2


class Segment(BaseModel):
    """A straight line segment in absolute page coordinates (y grows downward)."""

    model_config = ConfigDict(frozen=True)

    x0: float
    y0: float
    x1: float
    y1: float

    def is_horizontal(self, eps: float) -> bool:
        return abs(self.y0 - self.y1) <= eps

    def is_vertical(self, eps: float) -> bool:
        return abs(self.x0 - self.x1) <= eps


class Instruction(BaseModel):
    """One vector drawing operator as produced by the decoder.

    ``op`` is deliberately a plain string: operators the tracker does not know
    are carried through and skipped.
    """

    op: str
    args: list[float] = Field(default_factory=list)


class Annotation(BaseModel):
    """A link annotation; ``rect`` is [x0, y0, x1, y1] with a bottom-left origin."""

    url: str
    rect: list[float]


class PageContent(BaseModel):
    """Everything the decoder supplies for one page."""

    page_number: int
    width: float = 0.0
    height: float
    glyphs: list[GlyphRecord] = Field(default_factory=list)
    instructions: list[Instruction] = Field(default_factory=list)
    annotations: list[Annotation] = Field(default_factory=list)


class Ruling(BaseModel):
    """An axis-aligned segment reduced to its extent and constant coordinate."""

    model_config = ConfigDict(frozen=True)

    start: float
    end: float
    position: float


class RulingGrid(BaseModel):
    """Cluster centroids of ruling positions, ascending on each axis."""

    xs: list[float]
    ys: list[float]

    @property
    def rows(self) -> int:
        return len(self.ys) - 1

    @property
    def cols(self) -> int:
        return len(self.xs) - 1


class TableCell(BaseModel):
    glyphs: list[GlyphRecord] = Field(default_factory=list)


class Table(BaseModel):
    """A detected ruled table with a dense rows x cols cell grid."""

    top: float
    left: float
    bottom: float
    right: float
    rows: int
    cols: int
    grid: list[list[TableCell]]


class TableDetection(BaseModel):
    tables: list[Table] = Field(default_factory=list)
    consumed: set[int] = Field(default_factory=set)
    grid: RulingGrid | None = None


class TextLine(BaseModel):
    """Glyphs sharing one vertical band; ``y`` is the first glyph's top."""

    y: float
    items: list[GlyphRecord] = Field(default_factory=list)


class QuarterTableMatch(BaseModel):
    """Result of the borderless quarter-table heuristic."""

    header_index: int
    value_index: int
    values: list[str]
    column_midpoints: list[float | None]


class TableBlock(BaseModel):
    kind: Literal["table"] = "table"
    y: float
    table: Table


class QuarterTableBlock(BaseModel):
    kind: Literal["quarter_table"] = "quarter_table"
    y: float
    labels: list[str]
    value_label: str
    values: list[str]


class TextLineBlock(BaseModel):
    kind: Literal["text"] = "text"
    y: float
    line: TextLine


Block = Annotated[
    Union[TableBlock, QuarterTableBlock, TextLineBlock],
    Field(discriminator="kind"),
]
