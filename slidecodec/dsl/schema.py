"""Pydantic v2 models for the canonical deck document.

This module defines the geometry values shared by both pipelines and the
canonical JSON document produced by extraction and consumed by generation.
Positions and sizes in the document are in points; ``composedTransform`` and
``baseSize`` keep the exact source values in EMUs so a round trip can reuse
them. Everything is dumped with camelCase keys and ``None`` fields omitted.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

ICON_SIZE = 50.0
VIDEO_SIZE = (300.0, 200.0)


class SchemaModel(BaseModel):
    """Base for document models: frozen, camelCase aliases, snake_case access."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Dump with camelCase keys, dropping unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ============================================================================
# Geometry Models
# ============================================================================


class AffineTransform(SchemaModel):
    """2x2 linear map plus translation.

    Maps element space to page space as::

        x' = scale_x * x + shear_x * y + translate_x
        y' = shear_y * x + scale_y * y + translate_y

    Translation is matrix-space (where the element origin lands), not the
    top-left corner of the rendered box.
    """

    scale_x: float = Field(default=1.0, description="Linear a (row 0, col 0)")
    scale_y: float = Field(default=1.0, description="Linear d (row 1, col 1)")
    shear_x: float = Field(default=0.0, description="Linear b (row 0, col 1)")
    shear_y: float = Field(default=0.0, description="Linear c (row 1, col 0)")
    translate_x: float = Field(default=0.0, description="Translation x")
    translate_y: float = Field(default=0.0, description="Translation y")

    @classmethod
    def identity(cls) -> "AffineTransform":
        return cls()

    @property
    def determinant(self) -> float:
        """Determinant of the linear part; negative means one axis is mirrored."""
        return self.scale_x * self.scale_y - self.shear_x * self.shear_y

    def apply(self, x: float, y: float) -> tuple[float, float]:
        """Map a point from element space to page space."""
        return (
            self.scale_x * x + self.shear_x * y + self.translate_x,
            self.shear_y * x + self.scale_y * y + self.translate_y,
        )


class BaseSize(SchemaModel):
    """Unscaled element size in EMUs."""

    width: float = Field(ge=0, description="Width in EMUs")
    height: float = Field(ge=0, description="Height in EMUs")


class ElementGeometry(SchemaModel):
    """Top-left placement, rendered size, rotation and flips of an element."""

    x: float = Field(description="Left of the unrotated box")
    y: float = Field(description="Top of the unrotated box")
    w: float = Field(ge=0, description="Rendered width")
    h: float = Field(ge=0, description="Rendered height")
    rotation: float = Field(default=0.0, ge=0.0, lt=360.0, description="Clockwise degrees")
    flip_h: bool = False
    flip_v: bool = False


# ============================================================================
# Text Models
# ============================================================================


class ParagraphStyle(SchemaModel):
    """Paragraph-level style carried by every run of the paragraph."""

    align: str = Field(default="left", description="left | center | right | justify")
    direction: Optional[str] = None
    spacing_mode: Optional[str] = None
    space_above: Optional[float] = Field(default=None, description="Points")
    space_below: Optional[float] = Field(default=None, description="Points")
    line_spacing: Optional[float] = Field(default=None, description="Percent, 100 = single")
    indent_start: Optional[float] = Field(default=None, description="Points")
    indent_first_line: Optional[float] = Field(default=None, description="Points")


class Bullet(SchemaModel):
    """List membership of a paragraph."""

    list_id: Optional[str] = None
    nesting_level: int = 0
    glyph: Optional[str] = None

    @property
    def is_renderable(self) -> bool:
        """A bullet with neither list nor glyph is treated as no bullet."""
        return bool(self.list_id or self.glyph)


class Link(SchemaModel):
    url: str


class TextRun(SchemaModel):
    """A contiguous span of text sharing one character style."""

    text: str
    color: Optional[str] = None
    font_size: Optional[float] = Field(default=None, description="Points")
    font_family: Optional[str] = None
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    underline: Optional[bool] = None
    strikethrough: Optional[bool] = None
    small_caps: Optional[bool] = None
    baseline_offset: Optional[str] = None
    link: Optional[Link] = None
    paragraph_style: Optional[ParagraphStyle] = None
    bullet: Optional[Bullet] = None


# ============================================================================
# Element Options
# ============================================================================


class ShadowSpec(SchemaModel):
    """Explicit fake-shadow settings; unset values come from the default preset.

    The offset is either polar (``angle`` in degrees, ``distance`` in points)
    or ``offset_x``/``offset_y``. ``color`` may be ``"inherit"`` to reuse the
    element fill.
    """

    angle: Optional[float] = None
    distance: Optional[float] = None
    offset_x: Optional[float] = None
    offset_y: Optional[float] = None
    spread: Optional[float] = None
    opacity: Optional[float] = None
    color: Optional[str] = None


class ElementLink(SchemaModel):
    """Click target of a whole element."""

    url: Optional[str] = None
    slide_index: Optional[int] = Field(default=None, description="0-based target slide")
    relative_link: Optional[str] = Field(
        default=None, description="next-slide, previous-slide, first-slide or last-slide"
    )

    @model_validator(mode="before")
    @classmethod
    def _from_shorthand(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"url": data}
        if isinstance(data, dict) and "slide" in data and "slideIndex" not in data and "slide_index" not in data:
            return {**data, "slideIndex": data["slide"]}
        return data


class ListItem(SchemaModel):
    """One bullet of an ``items`` list; ``indent`` is the nesting level."""

    text: str = ""
    indent: int = 0

    @model_validator(mode="before")
    @classmethod
    def _from_plain(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return data
        return {"text": str(data)}


# ============================================================================
# Element Models
# ============================================================================


class ElementBase(SchemaModel):
    """Fields shared by every element kind."""

    object_id: Optional[str] = None
    x: float = Field(default=0.0, description="Left in points")
    y: float = Field(default=0.0, description="Top in points")
    w: float = Field(default=100.0, description="Width in points")
    h: float = Field(default=100.0, description="Height in points")
    rotation: float = Field(default=0.0, description="Clockwise degrees")
    flip_h: bool = False
    flip_v: bool = False
    z_index: Optional[int] = None
    composed_transform: Optional[AffineTransform] = Field(
        default=None, description="Exact world-space matrix in EMUs, reused on generation"
    )
    base_size: Optional[BaseSize] = Field(default=None, description="Unscaled size in EMUs")
    shadow: Optional[Union[bool, str, ShadowSpec]] = Field(
        default=None, description="true, a preset name, or explicit shadow settings"
    )
    link: Optional[ElementLink] = None


class TextContent(ElementBase):
    """Text and box styling shared by text boxes and shapes."""

    text: str = ""
    color: Optional[str] = None
    font_size: Optional[float] = None
    font_family: Optional[str] = None
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    underline: Optional[bool] = None
    strikethrough: Optional[bool] = None
    small_caps: Optional[bool] = None
    baseline_offset: Optional[str] = None
    align: Optional[str] = None
    indent_start: Optional[float] = None
    line_spacing: Optional[float] = None
    vertical_align: Optional[str] = Field(default=None, description="top | middle | bottom")
    padding_top: Optional[float] = None
    padding_bottom: Optional[float] = None
    padding_left: Optional[float] = None
    padding_right: Optional[float] = None
    text_runs: Optional[list[TextRun]] = None
    fill_color: Optional[str] = None
    border_color: Optional[str] = None
    border_width: Optional[float] = None
    border_dash: Optional[str] = None
    items: Optional[list[ListItem]] = Field(default=None, description="Bullet list; replaces text when set")
    list_style: Optional[str] = Field(default=None, description="Bullet preset name, e.g. bullet, numbered")


class TextElement(TextContent):
    type: Literal["text"] = "text"


class ShapeElement(TextContent):
    type: Literal["shape"] = "shape"
    shape: str = Field(default="RECTANGLE", description="Shape type, e.g. RECTANGLE, ELLIPSE")


class ImageElement(ElementBase):
    type: Literal["image"] = "image"
    url: str = ""
    source_url: Optional[str] = None
    source_type: Optional[str] = Field(default=None, description="chart | raster when not a plain picture")
    original_chart_id: Optional[int] = None
    border_color: Optional[str] = None
    border_width: Optional[float] = None


class TableCell(SchemaModel):
    text: str = ""
    text_runs: Optional[list[TextRun]] = None
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    color: Optional[str] = None
    font_size: Optional[float] = None
    font_family: Optional[str] = None
    align: Optional[str] = None
    fill_color: Optional[str] = None


class TableElement(ElementBase):
    type: Literal["table"] = "table"
    data: list[list[TableCell]] = Field(default_factory=list, description="Rows of cells")

    @property
    def rows(self) -> int:
        return len(self.data)

    @property
    def columns(self) -> int:
        return len(self.data[0]) if self.data else 0


class LineConnection(SchemaModel):
    object_id: str
    site: int = 0


class LineElement(ElementBase):
    type: Literal["line"] = "line"
    line_category: str = "STRAIGHT"
    color: Optional[str] = None
    weight: Optional[float] = Field(default=None, description="Points")
    dash_style: Optional[str] = None
    start_arrow: Optional[str] = None
    end_arrow: Optional[str] = None
    connector: Optional[str] = Field(default=None, description="elbow | bent to split into segments")
    bend_direction: Optional[str] = None
    x1: Optional[float] = None
    y1: Optional[float] = None
    x2: Optional[float] = None
    y2: Optional[float] = None
    start_connect: Optional[LineConnection] = None
    end_connect: Optional[LineConnection] = None


class ChartElement(ElementBase):
    type: Literal["sheetsChart"] = "sheetsChart"
    spreadsheet_id: Optional[str] = None
    chart_id: Optional[int] = None
    embed_type: Optional[str] = None
    content_url: Optional[str] = None


class GroupElement(ElementBase):
    type: Literal["group"] = "group"
    elements: list["Element"] = Field(default_factory=list)


class WordArtElement(TextContent):
    """Large bold centred display text."""

    type: Literal["wordArt"] = "wordArt"


class IconElement(ElementBase):
    """A glyph centred on a tinted circle."""

    type: Literal["icon"] = "icon"
    icon: Optional[str] = Field(default=None, description="Glyph to draw")
    text: Optional[str] = Field(default=None, description="Overrides icon")
    color: Optional[str] = None
    font_size: Optional[float] = None
    bg_opacity: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    @model_validator(mode="before")
    @classmethod
    def _square_by_default(cls, data: Any) -> Any:
        if isinstance(data, dict):
            side = data.get("size") or ICON_SIZE
            data = {"w": side, "h": side, **data}
        return data


class VideoElement(ElementBase):
    type: Literal["video"] = "video"
    source: str = Field(default="YOUTUBE", description="YOUTUBE | DRIVE")
    video_id: Optional[str] = None
    border_color: Optional[str] = None
    border_width: Optional[float] = None

    @model_validator(mode="before")
    @classmethod
    def _defaults(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = {"w": VIDEO_SIZE[0], "h": VIDEO_SIZE[1], **data}
            if "id" in data and "videoId" not in data and "video_id" not in data:
                data["videoId"] = data["id"]
        return data


class UnsupportedElement(ElementBase):
    type: Literal["unsupported"] = "unsupported"
    source_kind: Optional[str] = None
    reason: Optional[str] = None


Element = Annotated[
    Union[
        TextElement,
        ShapeElement,
        ImageElement,
        TableElement,
        LineElement,
        ChartElement,
        GroupElement,
        WordArtElement,
        IconElement,
        VideoElement,
        UnsupportedElement,
    ],
    Field(discriminator="type"),
]

ELEMENT_TYPES = frozenset(
    ("text", "shape", "image", "table", "line", "sheetsChart", "group", "wordArt", "icon", "video", "unsupported")
)

# Reason given to elements whose type no builder knows
UNKNOWN_TYPE_REASON = "unknown element type"

GroupElement.model_rebuild()


# ============================================================================
# Document Models
# ============================================================================


class ThemeConfig(SchemaModel):
    """Document-level theme: named colors and named fonts."""

    colors: dict[str, str] = Field(default_factory=dict)
    fonts: dict[str, str] = Field(default_factory=dict)


class DeckConfig(SchemaModel):
    title: str = "Untitled Presentation"
    raw_mode: bool = False
    source_presentation_id: Optional[str] = None
    theme: ThemeConfig = Field(default_factory=ThemeConfig)


class Slide(SchemaModel):
    background: Optional[str] = None
    background_image: Optional[str] = None
    speaker_notes: Optional[str] = None
    layout_object_id: Optional[str] = None
    elements: list[Element] = Field(default_factory=list)


class DeckDocument(SchemaModel):
    """The canonical JSON document."""

    config: DeckConfig = Field(default_factory=DeckConfig)
    slides: list[Slide] = Field(default_factory=list)
