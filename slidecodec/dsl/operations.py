"""Atomic mutation operations for the batch-apply service.

Each operation is a frozen model with ``to_request()`` producing the request
JSON the service expects (``{"createShape": {...}}``). Style operations derive
their ``fields`` mask from the style attributes that are set, so a mask can
never name a field the request does not carry.
"""

from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field

from slidecodec.dsl.schema import AffineTransform
from slidecodec.theme.colors import hex_to_rgb


def _pt(value: float) -> dict[str, Any]:
    return {"magnitude": value, "unit": "PT"}


def _rgb_fill(hex_color: str) -> Optional[dict[str, Any]]:
    rgb = hex_to_rgb(hex_color)
    if rgb is None:
        return None
    return {"rgbColor": rgb}


# ============================================================================
# Shared Value Models
# ============================================================================


class OperationModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class TextRange(OperationModel):
    """``FIXED_RANGE`` over ``[start_index, end_index)`` or the whole text."""

    type: str = "FIXED_RANGE"
    start_index: Optional[int] = None
    end_index: Optional[int] = None

    @classmethod
    def all(cls) -> "TextRange":
        return cls(type="ALL")

    @classmethod
    def fixed(cls, start: int, end: int) -> "TextRange":
        return cls(type="FIXED_RANGE", start_index=start, end_index=end)

    def to_api(self) -> dict[str, Any]:
        if self.type == "ALL":
            return {"type": "ALL"}
        return {"type": self.type, "startIndex": self.start_index, "endIndex": self.end_index}


class CellLocation(OperationModel):
    row_index: int
    column_index: int

    def to_api(self) -> dict[str, int]:
        return {"rowIndex": self.row_index, "columnIndex": self.column_index}


class ElementProperties(OperationModel):
    """Placement of a new page element. Transform translation is in points."""

    page_object_id: str
    width: Optional[float] = Field(default=None, description="Points")
    height: Optional[float] = Field(default=None, description="Points")
    transform: AffineTransform = Field(default_factory=AffineTransform)

    def to_api(self) -> dict[str, Any]:
        props: dict[str, Any] = {"pageObjectId": self.page_object_id}
        if self.width is not None and self.height is not None:
            props["size"] = {"width": _pt(self.width), "height": _pt(self.height)}
        props["transform"] = transform_to_api(self.transform)
        return props


def transform_to_api(transform: AffineTransform) -> dict[str, Any]:
    return {
        "scaleX": transform.scale_x,
        "scaleY": transform.scale_y,
        "shearX": transform.shear_x,
        "shearY": transform.shear_y,
        "translateX": transform.translate_x,
        "translateY": transform.translate_y,
        "unit": "PT",
    }


class TextStyle(OperationModel):
    """Character style for ``updateTextStyle``; None means "leave unchanged"."""

    font_size: Optional[float] = None
    font_family: Optional[str] = None
    foreground_color: Optional[str] = Field(default=None, description="Hex literal")
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    underline: Optional[bool] = None
    strikethrough: Optional[bool] = None
    small_caps: Optional[bool] = None
    baseline_offset: Optional[str] = None
    link_url: Optional[str] = None
    link: Optional[dict[str, Any]] = Field(default=None, description="API link object when not a plain URL")

    def to_api(self) -> tuple[dict[str, Any], list[str]]:
        style: dict[str, Any] = {}
        if self.font_size is not None:
            style["fontSize"] = _pt(self.font_size)
        if self.font_family is not None:
            style["fontFamily"] = self.font_family
        if self.foreground_color is not None:
            fill = _rgb_fill(self.foreground_color)
            if fill is not None:
                style["foregroundColor"] = {"opaqueColor": fill}
        for attr, key in (
            ("bold", "bold"),
            ("italic", "italic"),
            ("underline", "underline"),
            ("strikethrough", "strikethrough"),
            ("small_caps", "smallCaps"),
            ("baseline_offset", "baselineOffset"),
        ):
            value = getattr(self, attr)
            if value is not None:
                style[key] = value
        if self.link_url is not None:
            style["link"] = {"url": self.link_url}
        elif self.link is not None:
            style["link"] = dict(self.link)
        return style, list(style)


class ParagraphStyleSpec(OperationModel):
    """Paragraph style for ``updateParagraphStyle``. Lengths are in points."""

    alignment: Optional[str] = None
    direction: Optional[str] = None
    spacing_mode: Optional[str] = None
    indent_start: Optional[float] = None
    indent_first_line: Optional[float] = None
    space_above: Optional[float] = None
    space_below: Optional[float] = None
    line_spacing: Optional[float] = None

    def to_api(self) -> tuple[dict[str, Any], list[str]]:
        style: dict[str, Any] = {}
        if self.alignment is not None:
            style["alignment"] = self.alignment
        if self.direction is not None:
            style["direction"] = self.direction
        if self.spacing_mode is not None:
            style["spacingMode"] = self.spacing_mode
        for attr, key in (
            ("indent_start", "indentStart"),
            ("indent_first_line", "indentFirstLine"),
            ("space_above", "spaceAbove"),
            ("space_below", "spaceBelow"),
        ):
            value = getattr(self, attr)
            if value is not None:
                style[key] = _pt(value)
        if self.line_spacing is not None:
            style["lineSpacing"] = self.line_spacing
        return style, list(style)


# ============================================================================
# Operations
# ============================================================================


class Operation(OperationModel):
    """Base class: ``request_name`` is the batch request key."""

    request_name: ClassVar[str] = ""

    object_id: str

    def body(self) -> dict[str, Any]:
        raise NotImplementedError

    def to_request(self) -> dict[str, Any]:
        return {self.request_name: self.body()}


class CreateSlide(Operation):
    request_name: ClassVar[str] = "createSlide"

    insertion_index: int
    predefined_layout: str = "BLANK"

    def body(self) -> dict[str, Any]:
        return {
            "objectId": self.object_id,
            "insertionIndex": self.insertion_index,
            "slideLayoutReference": {"predefinedLayout": self.predefined_layout},
        }


class UpdatePageProperties(Operation):
    """Slide background: a stretched picture wins over a solid color."""

    request_name: ClassVar[str] = "updatePageProperties"

    background_color: Optional[str] = None
    background_image_url: Optional[str] = None

    def body(self) -> dict[str, Any]:
        if self.background_image_url:
            fill = {"stretchedPictureFill": {"contentUrl": self.background_image_url}}
            fields = "pageBackgroundFill.stretchedPictureFill"
        else:
            fill = {"solidFill": {"color": _rgb_fill(self.background_color or "")}}
            fields = "pageBackgroundFill.solidFill.color"
        return {
            "objectId": self.object_id,
            "pageProperties": {"pageBackgroundFill": fill},
            "fields": fields,
        }


class CreateShape(Operation):
    request_name: ClassVar[str] = "createShape"

    shape_type: str
    element_properties: ElementProperties

    def body(self) -> dict[str, Any]:
        return {
            "objectId": self.object_id,
            "shapeType": self.shape_type,
            "elementProperties": self.element_properties.to_api(),
        }


class CreateImage(Operation):
    request_name: ClassVar[str] = "createImage"

    url: str
    element_properties: ElementProperties

    def body(self) -> dict[str, Any]:
        return {
            "objectId": self.object_id,
            "url": self.url,
            "elementProperties": self.element_properties.to_api(),
        }


class CreateLine(Operation):
    request_name: ClassVar[str] = "createLine"

    line_category: str = "STRAIGHT"
    element_properties: ElementProperties

    def body(self) -> dict[str, Any]:
        return {
            "objectId": self.object_id,
            "lineCategory": self.line_category,
            "elementProperties": self.element_properties.to_api(),
        }


class CreateTable(Operation):
    request_name: ClassVar[str] = "createTable"

    rows: int
    columns: int
    element_properties: ElementProperties

    def body(self) -> dict[str, Any]:
        return {
            "objectId": self.object_id,
            "rows": self.rows,
            "columns": self.columns,
            "elementProperties": self.element_properties.to_api(),
        }


class CreateSheetsChart(Operation):
    request_name: ClassVar[str] = "createSheetsChart"

    spreadsheet_id: str
    chart_id: int
    linking_mode: str = "LINKED"
    element_properties: ElementProperties

    def body(self) -> dict[str, Any]:
        return {
            "objectId": self.object_id,
            "spreadsheetId": self.spreadsheet_id,
            "chartId": self.chart_id,
            "linkingMode": self.linking_mode,
            "elementProperties": self.element_properties.to_api(),
        }


class CreateVideo(Operation):
    request_name: ClassVar[str] = "createVideo"

    source: str = "YOUTUBE"
    video_id: str
    element_properties: ElementProperties

    def body(self) -> dict[str, Any]:
        return {
            "objectId": self.object_id,
            "source": self.source,
            "id": self.video_id,
            "elementProperties": self.element_properties.to_api(),
        }


class UpdatePageElementTransform(Operation):
    """Set-transform: replaces the element's matrix (translation in points)."""

    request_name: ClassVar[str] = "updatePageElementTransform"

    transform: AffineTransform
    apply_mode: str = "ABSOLUTE"

    def body(self) -> dict[str, Any]:
        return {
            "objectId": self.object_id,
            "transform": transform_to_api(self.transform),
            "applyMode": self.apply_mode,
        }


class UpdateShapeProperties(Operation):
    """``shape_properties`` is API JSON; the mask is its top-level keys."""

    request_name: ClassVar[str] = "updateShapeProperties"

    shape_properties: dict[str, Any]

    def body(self) -> dict[str, Any]:
        return {
            "objectId": self.object_id,
            "shapeProperties": self.shape_properties,
            "fields": ",".join(self.shape_properties),
        }


class UpdateLineProperties(Operation):
    request_name: ClassVar[str] = "updateLineProperties"

    line_properties: dict[str, Any]

    def body(self) -> dict[str, Any]:
        return {
            "objectId": self.object_id,
            "lineProperties": self.line_properties,
            "fields": ",".join(self.line_properties),
        }


class UpdateImageProperties(Operation):
    request_name: ClassVar[str] = "updateImageProperties"

    image_properties: dict[str, Any]

    def body(self) -> dict[str, Any]:
        return {
            "objectId": self.object_id,
            "imageProperties": self.image_properties,
            "fields": ",".join(self.image_properties),
        }


class UpdateVideoProperties(Operation):
    request_name: ClassVar[str] = "updateVideoProperties"

    video_properties: dict[str, Any]

    def body(self) -> dict[str, Any]:
        return {
            "objectId": self.object_id,
            "videoProperties": self.video_properties,
            "fields": ",".join(self.video_properties),
        }


class UpdateTableCellProperties(Operation):
    request_name: ClassVar[str] = "updateTableCellProperties"

    cell_location: CellLocation
    table_cell_properties: dict[str, Any]

    def body(self) -> dict[str, Any]:
        return {
            "objectId": self.object_id,
            "tableRange": {
                "location": self.cell_location.to_api(),
                "rowSpan": 1,
                "columnSpan": 1,
            },
            "tableCellProperties": self.table_cell_properties,
            "fields": ",".join(self.table_cell_properties),
        }


class TextOperation(Operation):
    """Operations addressing a shape's text or a table cell's text."""

    cell_location: Optional[CellLocation] = None

    def _target(self) -> dict[str, Any]:
        target: dict[str, Any] = {"objectId": self.object_id}
        if self.cell_location is not None:
            target["cellLocation"] = self.cell_location.to_api()
        return target


class InsertText(TextOperation):
    request_name: ClassVar[str] = "insertText"

    text: str
    insertion_index: int = 0

    def body(self) -> dict[str, Any]:
        return {**self._target(), "text": self.text, "insertionIndex": self.insertion_index}


class UpdateTextStyle(TextOperation):
    request_name: ClassVar[str] = "updateTextStyle"

    style: TextStyle
    text_range: TextRange

    @property
    def fields(self) -> list[str]:
        return self.style.to_api()[1]

    def body(self) -> dict[str, Any]:
        style, fields = self.style.to_api()
        return {
            **self._target(),
            "style": style,
            "textRange": self.text_range.to_api(),
            "fields": ",".join(fields),
        }


class UpdateParagraphStyle(TextOperation):
    request_name: ClassVar[str] = "updateParagraphStyle"

    style: ParagraphStyleSpec
    text_range: TextRange

    @property
    def fields(self) -> list[str]:
        return self.style.to_api()[1]

    def body(self) -> dict[str, Any]:
        style, fields = self.style.to_api()
        return {
            **self._target(),
            "style": style,
            "textRange": self.text_range.to_api(),
            "fields": ",".join(fields),
        }


class CreateParagraphBullets(TextOperation):
    request_name: ClassVar[str] = "createParagraphBullets"

    text_range: TextRange
    bullet_preset: str = "BULLET_DISC_CIRCLE_SQUARE"

    def body(self) -> dict[str, Any]:
        return {
            **self._target(),
            "bulletPreset": self.bullet_preset,
            "textRange": self.text_range.to_api(),
        }


class DeleteParagraphBullets(TextOperation):
    request_name: ClassVar[str] = "deleteParagraphBullets"

    text_range: TextRange

    def body(self) -> dict[str, Any]:
        return {**self._target(), "textRange": self.text_range.to_api()}


class CreateGroup(Operation):
    request_name: ClassVar[str] = "createGroup"

    children_object_ids: list[str]

    def body(self) -> dict[str, Any]:
        return {"objectId": self.object_id, "childrenObjectIds": list(self.children_object_ids)}


RANGED_OPERATIONS = (UpdateTextStyle, UpdateParagraphStyle, CreateParagraphBullets, DeleteParagraphBullets)
