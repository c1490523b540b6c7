"""Pydantic v2 models for the consumed presentation tree.

The presentation-reading service returns masters, layouts and slides whose
page elements carry exactly one of ``shape``, ``image``, ``table``, ``line``,
``elementGroup``, ``sheetsChart``, ``video`` or ``wordArt``. On parse those
mutually exclusive fields are folded into a single ``payload`` tagged by
``kind`` so the pipelines dispatch on one value instead of probing optional
fields. Unknown fields are ignored.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from slidecodec.units import dimension_to_pt


class SourceModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ============================================================================
# Values
# ============================================================================


class Dimension(SourceModel):
    magnitude: Optional[float] = None
    unit: Optional[str] = None

    def to_pt(self) -> Optional[float]:
        return dimension_to_pt(self.magnitude, self.unit)


class Size(SourceModel):
    width: Optional[Dimension] = None
    height: Optional[Dimension] = None

    @property
    def width_emu(self) -> float:
        return _dimension_emu(self.width)

    @property
    def height_emu(self) -> float:
        return _dimension_emu(self.height)


def _dimension_emu(dimension: Optional[Dimension]) -> float:
    if dimension is None or dimension.magnitude is None:
        return 0.0
    if dimension.unit == "PT":
        return dimension.magnitude * 12700
    return float(dimension.magnitude)


class RawTransform(SourceModel):
    """Transform exactly as received: any field may be omitted when zero."""

    scale_x: Optional[float] = None
    scale_y: Optional[float] = None
    shear_x: Optional[float] = None
    shear_y: Optional[float] = None
    translate_x: Optional[float] = None
    translate_y: Optional[float] = None
    unit: Optional[str] = None


class RgbColor(SourceModel):
    red: Optional[float] = None
    green: Optional[float] = None
    blue: Optional[float] = None


class OpaqueColor(SourceModel):
    rgb_color: Optional[RgbColor] = None
    theme_color: Optional[str] = None


class OptionalColor(SourceModel):
    opaque_color: Optional[OpaqueColor] = None


class SolidFill(SourceModel):
    color: Optional[OpaqueColor] = None
    alpha: Optional[float] = None


class Fill(SourceModel):
    """Any of shapeBackgroundFill, pageBackgroundFill, lineFill, cell fill."""

    property_state: Optional[str] = None
    solid_fill: Optional[SolidFill] = None
    stretched_picture_fill: Optional[dict[str, Any]] = None

    @property
    def rendered(self) -> bool:
        return self.property_state != "NOT_RENDERED"


class Outline(SourceModel):
    outline_fill: Optional[Fill] = None
    weight: Optional[Dimension] = None
    dash_style: Optional[str] = None
    property_state: Optional[str] = None


class Autofit(SourceModel):
    autofit_type: Optional[str] = None
    font_scale: Optional[float] = None
    left_offset: Optional[float] = None
    right_offset: Optional[float] = None
    top_offset: Optional[float] = None
    bottom_offset: Optional[float] = None


class ShapeProperties(SourceModel):
    shape_background_fill: Optional[Fill] = None
    outline: Optional[Outline] = None
    autofit: Optional[Autofit] = None
    content_alignment: Optional[str] = None


class Placeholder(SourceModel):
    type: Optional[str] = None
    index: Optional[int] = None
    parent_object_id: Optional[str] = None


# ============================================================================
# Text
# ============================================================================


class LinkSource(SourceModel):
    url: Optional[str] = None
    slide_index: Optional[int] = None
    page_object_id: Optional[str] = None


class TextStyleSource(SourceModel):
    foreground_color: Optional[OptionalColor] = None
    font_size: Optional[Dimension] = None
    font_family: Optional[str] = None
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    underline: Optional[bool] = None
    strikethrough: Optional[bool] = None
    small_caps: Optional[bool] = None
    baseline_offset: Optional[str] = None
    link: Optional[LinkSource] = None


class TextRunSource(SourceModel):
    content: Optional[str] = None
    style: Optional[TextStyleSource] = None


class ParagraphStyleSource(SourceModel):
    alignment: Optional[str] = None
    direction: Optional[str] = None
    spacing_mode: Optional[str] = None
    space_above: Optional[Dimension] = None
    space_below: Optional[Dimension] = None
    line_spacing: Optional[float] = None
    indent_start: Optional[Dimension] = None
    indent_first_line: Optional[Dimension] = None
    indent_end: Optional[Dimension] = None


class BulletSource(SourceModel):
    list_id: Optional[str] = None
    nesting_level: Optional[int] = None
    glyph: Optional[str] = None


class ParagraphMarkerSource(SourceModel):
    style: Optional[ParagraphStyleSource] = None
    bullet: Optional[BulletSource] = None


class TextElementSource(SourceModel):
    """One entry of the flat marker/run stream."""

    start_index: Optional[int] = None
    end_index: Optional[int] = None
    paragraph_marker: Optional[ParagraphMarkerSource] = None
    text_run: Optional[TextRunSource] = None
    auto_text: Optional[dict[str, Any]] = None


class TextContentSource(SourceModel):
    text_elements: list[TextElementSource] = Field(default_factory=list)


# ============================================================================
# Payloads
# ============================================================================


class ShapePayload(SourceModel):
    kind: Literal["shape"] = "shape"
    shape_type: Optional[str] = None
    text: Optional[TextContentSource] = None
    shape_properties: Optional[ShapeProperties] = None
    placeholder: Optional[Placeholder] = None


class ImagePayload(SourceModel):
    kind: Literal["image"] = "image"
    content_url: Optional[str] = None
    source_url: Optional[str] = None


class TableCellProperties(SourceModel):
    table_cell_background_fill: Optional[Fill] = None


class TableCellSource(SourceModel):
    row_span: Optional[int] = None
    column_span: Optional[int] = None
    text: Optional[TextContentSource] = None
    table_cell_properties: Optional[TableCellProperties] = None


class TableRowSource(SourceModel):
    row_height: Optional[Dimension] = None
    table_cells: list[TableCellSource] = Field(default_factory=list)


class TablePayload(SourceModel):
    kind: Literal["table"] = "table"
    rows: Optional[int] = None
    columns: Optional[int] = None
    table_rows: list[TableRowSource] = Field(default_factory=list)


class LineConnectionSource(SourceModel):
    connected_object_id: Optional[str] = None
    connection_site_index: Optional[int] = None


class LineProperties(SourceModel):
    line_fill: Optional[Fill] = None
    weight: Optional[Dimension] = None
    dash_style: Optional[str] = None
    start_arrow: Optional[str] = None
    end_arrow: Optional[str] = None
    start_connection: Optional[LineConnectionSource] = None
    end_connection: Optional[LineConnectionSource] = None


class LinePayload(SourceModel):
    kind: Literal["line"] = "line"
    line_type: Optional[str] = None
    line_category: Optional[str] = None
    line_properties: Optional[LineProperties] = None


class GroupPayload(SourceModel):
    kind: Literal["group"] = "group"
    children: list["PageElement"] = Field(default_factory=list)


class ChartPayload(SourceModel):
    kind: Literal["chart"] = "chart"
    spreadsheet_id: Optional[str] = None
    chart_id: Optional[int] = None
    content_url: Optional[str] = None


class UnsupportedPayload(SourceModel):
    kind: Literal["unsupported"] = "unsupported"
    source_kind: str = "unknown"


Payload = Annotated[
    Union[
        ShapePayload,
        ImagePayload,
        TablePayload,
        LinePayload,
        GroupPayload,
        ChartPayload,
        UnsupportedPayload,
    ],
    Field(discriminator="kind"),
]

# Service field name -> payload kind
PAYLOAD_FIELDS = {
    "shape": "shape",
    "image": "image",
    "table": "table",
    "line": "line",
    "elementGroup": "group",
    "sheetsChart": "chart",
    "video": "unsupported",
    "wordArt": "unsupported",
}


class PageElement(SourceModel):
    object_id: str = ""
    size: Optional[Size] = None
    transform: Optional[RawTransform] = None
    title: Optional[str] = None
    description: Optional[str] = None
    payload: Optional[Payload] = None

    @model_validator(mode="before")
    @classmethod
    def _fold_payload(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("payload") is not None:
            return data
        for field_name, kind in PAYLOAD_FIELDS.items():
            body = data.get(field_name)
            if body is None:
                continue
            data = dict(data)
            if kind == "unsupported":
                data["payload"] = {"kind": kind, "sourceKind": field_name}
            else:
                data["payload"] = {**body, "kind": kind}
            return data
        return data


GroupPayload.model_rebuild()
PageElement.model_rebuild()


# ============================================================================
# Pages
# ============================================================================


class ThemeColorPair(SourceModel):
    type: str
    color: Optional[RgbColor] = None

    @model_validator(mode="before")
    @classmethod
    def _unwrap_rgb(cls, data: Any) -> Any:
        # Some payloads nest the value one level deeper as {"rgbColor": {...}}
        if isinstance(data, dict):
            color = data.get("color")
            if isinstance(color, dict) and "rgbColor" in color:
                data = {**data, "color": color["rgbColor"]}
        return data


class ColorScheme(SourceModel):
    colors: list[ThemeColorPair] = Field(default_factory=list)


class PageProperties(SourceModel):
    page_background_fill: Optional[Fill] = None
    color_scheme: Optional[ColorScheme] = None


class NotesProperties(SourceModel):
    speaker_notes_object_id: Optional[str] = None


class SlideProperties(SourceModel):
    layout_object_id: Optional[str] = None
    master_object_id: Optional[str] = None
    notes_page: Optional["Page"] = None


class LayoutProperties(SourceModel):
    master_object_id: Optional[str] = None
    name: Optional[str] = None
    display_name: Optional[str] = None


class MasterProperties(SourceModel):
    display_name: Optional[str] = None


class Page(SourceModel):
    object_id: str = ""
    page_type: Optional[str] = None
    page_elements: list[PageElement] = Field(default_factory=list)
    page_properties: Optional[PageProperties] = None
    slide_properties: Optional[SlideProperties] = None
    layout_properties: Optional[LayoutProperties] = None
    master_properties: Optional[MasterProperties] = None
    notes_properties: Optional[NotesProperties] = None


SlideProperties.model_rebuild()


class Presentation(SourceModel):
    presentation_id: Optional[str] = None
    title: Optional[str] = None
    page_size: Optional[Size] = None
    masters: list[Page] = Field(default_factory=list)
    layouts: list[Page] = Field(default_factory=list)
    slides: list[Page] = Field(default_factory=list)

    def layout(self, object_id: Optional[str]) -> Optional[Page]:
        return next((page for page in self.layouts if page.object_id == object_id), None)

    def master(self, object_id: Optional[str]) -> Optional[Page]:
        return next((page for page in self.masters if page.object_id == object_id), None)

    def master_for_slide(self, slide: Page) -> Optional[Page]:
        """Master of a slide: explicit master id, else via the slide's layout."""
        props = slide.slide_properties
        if props is None:
            return self.masters[0] if self.masters else None
        if props.master_object_id:
            master = self.master(props.master_object_id)
            if master is not None:
                return master
        layout = self.layout(props.layout_object_id)
        if layout is not None and layout.layout_properties is not None:
            master = self.master(layout.layout_properties.master_object_id)
            if master is not None:
                return master
        return self.masters[0] if self.masters else None
