"""Element builders: canonical elements -> mutation operations.

Every builder produces the complete operation list for one element or raises;
``ElementBuilder.build`` turns a raise into a recorded issue and an empty
result, so a failing element never leaves half its operations behind.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from slidecodec.dsl.operations import (
    CellLocation,
    CreateGroup,
    CreateImage,
    CreateLine,
    CreateShape,
    CreateSheetsChart,
    CreateTable,
    CreateVideo,
    ElementProperties,
    InsertText,
    Operation,
    ParagraphStyleSpec,
    TextRange,
    TextStyle,
    UpdateImageProperties,
    UpdateLineProperties,
    UpdatePageElementTransform,
    UpdateParagraphStyle,
    UpdateShapeProperties,
    UpdateTableCellProperties,
    UpdateTextStyle,
    UpdateVideoProperties,
)
from slidecodec.dsl.schema import (
    UNKNOWN_TYPE_REASON,
    AffineTransform,
    ChartElement,
    Element,
    GroupElement,
    IconElement,
    ImageElement,
    LineConnection,
    LineElement,
    ShapeElement,
    TableElement,
    TextContent,
    TextElement,
    UnsupportedElement,
    VideoElement,
    WordArtElement,
)
from slidecodec.errors import IndexMismatchError, IssueKind
from slidecodec.generation.context import GenerationContext
from slidecodec.generation.effects import (
    DEFAULT_SHADOW_COLOR,
    DEFAULT_SHADOW_OPACITY,
    link_to_api,
    resolve_shadow,
    shadow_box,
)
from slidecodec.generation.validation import clamp
from slidecodec.geometry.transform import build_matrix, to_points
from slidecodec.text.codec import RunDefaults, clean_text
from slidecodec.theme.colors import hex_to_rgb, is_sentinel, normalize_color
from slidecodec.theme.palettes import DEFAULT_COLOR
from slidecodec.units import EMU_PER_PT

logger = logging.getLogger(__name__)

CHART_PLACEHOLDER_TEXT = "Chart Unavailable\nNo access to source spreadsheet"
CHART_PLACEHOLDER_FILL = {"red": 0.9, "green": 0.9, "blue": 0.9}
CHART_PLACEHOLDER_OUTLINE = {"red": 0.6, "green": 0.6, "blue": 0.6}
CHART_PLACEHOLDER_TEXT_COLOR = "#666666"

VIDEO_PLACEHOLDER_TEXT = "VIDEO (Missing ID)"

# Black star
DEFAULT_ICON_GLYPH = "\u2605"
# Glyph size relative to the icon height
ICON_GLYPH_RATIO = 0.6

VERTICAL_ALIGNMENT = {"top": "TOP", "middle": "MIDDLE", "bottom": "BOTTOM"}

# Sub-pixel lines collapse to a 1pt horizontal segment
MIN_LINE_EXTENT = 0.1


def _pt(value: float) -> dict[str, Any]:
    return {"magnitude": value, "unit": "PT"}


def _solid(rgb: dict[str, float]) -> dict[str, Any]:
    return {"solidFill": {"color": {"rgbColor": rgb}}}


@dataclass
class PendingConnection:
    """Line endpoint connections, applied after every element of the slide exists."""

    line_id: str
    start: Optional[LineConnection] = None
    end: Optional[LineConnection] = None


@dataclass
class BuildResult:
    operations: list[Operation] = field(default_factory=list)
    object_ids: list[str] = field(default_factory=list)
    connections: list[PendingConnection] = field(default_factory=list)

    def extend(self, other: "BuildResult") -> None:
        self.operations.extend(other.operations)
        self.object_ids.extend(other.object_ids)
        self.connections.extend(other.connections)


class ElementBuilder:
    """Builds the operations for each element kind."""

    def __init__(self, context: GenerationContext):
        self.context = context
        self.settings = context.settings
        self.resolver = context.resolver
        self.codec = context.codec

    def build(self, element: Element, slide_id: str, slide_index: int, path: str) -> BuildResult:
        """Build one element in isolation.

        Args:
            element: The element to build.
            slide_id: Object id of the target slide.
            slide_index: Slide position, used for ids and diagnostics.
            path: Element position after z-ordering (``"3"``, ``"3_1"`` in groups).

        Returns:
            BuildResult; empty when the element failed and was recorded.
        """
        object_id = self.context.ids.element(slide_index, path)
        source_id = element.object_id or object_id
        try:
            result = self._build(element, object_id, slide_id, slide_index, path)
        except IndexMismatchError as exc:
            self.context.record(IssueKind.INDEX_MISMATCH, slide_index, source_id, str(exc))
            return BuildResult()
        except Exception as exc:
            logger.debug(f"Build failure for {source_id}", exc_info=True)
            self.context.record(
                IssueKind.ELEMENT_FAILURE, slide_index, source_id, f"{type(exc).__name__}: {exc}"
            )
            return BuildResult()

        if element.object_id and result.object_ids:
            self.context.id_map[element.object_id] = result.object_ids[0]
        return result

    def _build(
        self,
        element: Element,
        object_id: str,
        slide_id: str,
        slide_index: int,
        path: str,
    ) -> BuildResult:
        if isinstance(element, GroupElement):
            return self._group(element, object_id, slide_id, slide_index, path)
        if isinstance(element, LineElement):
            return self._line(element, object_id, slide_id, slide_index, path)
        if isinstance(element, UnsupportedElement):
            if element.reason == UNKNOWN_TYPE_REASON:
                self.context.record(
                    IssueKind.UNKNOWN_ELEMENT_TYPE,
                    slide_index,
                    element.object_id or object_id,
                    f"No builder for element type {element.source_kind!r}",
                )
                return BuildResult()
            logger.info(
                f"Skipping unsupported element {element.object_id} "
                f"({element.source_kind or 'unknown'}): {element.reason or 'no reason given'}"
            )
            return BuildResult()

        if isinstance(element, TextElement):
            operations = self._text_box(element, object_id, slide_id, "TEXT_BOX", is_shape=False)
        elif isinstance(element, ShapeElement):
            operations = self._text_box(element, object_id, slide_id, element.shape or "RECTANGLE", is_shape=True)
        elif isinstance(element, WordArtElement):
            operations = self._word_art(element, object_id, slide_id)
        elif isinstance(element, IconElement):
            operations = self._icon(element, object_id, slide_id)
        elif isinstance(element, ImageElement):
            operations = self._image(element, object_id, slide_id)
        elif isinstance(element, VideoElement):
            operations = self._video(element, object_id, slide_id)
        elif isinstance(element, TableElement):
            operations = self._table(element, object_id, slide_id)
        elif isinstance(element, ChartElement):
            operations = self._chart(element, object_id, slide_id)
        else:
            raise TypeError(f"No builder for {type(element).__name__}")

        if not operations:
            return BuildResult()
        shadow = self._shadow(element, self.context.ids.element(slide_index, path, "shadow"), slide_id)
        return BuildResult(operations=shadow + operations, object_ids=[object_id])

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def _placement(self, element: Element, slide_id: str) -> ElementProperties:
        """Size and matrix for a new element.

        An extracted ``composedTransform`` is reused verbatim with the base
        size; otherwise the matrix is rebuilt from the box geometry.
        """
        base = element.base_size
        if element.composed_transform is not None and base is not None:
            return ElementProperties(
                page_object_id=slide_id,
                width=base.width / EMU_PER_PT,
                height=base.height / EMU_PER_PT,
                transform=to_points(element.composed_transform),
            )

        base_w = base.width / EMU_PER_PT if base is not None else None
        base_h = base.height / EMU_PER_PT if base is not None else None
        transform = build_matrix(
            element.x,
            element.y,
            element.rotation,
            element.w,
            element.h,
            element.flip_h,
            element.flip_v,
            base_w,
            base_h,
        )
        return ElementProperties(
            page_object_id=slide_id,
            width=base_w if base_w else element.w,
            height=base_h if base_h else element.h,
            transform=transform,
        )

    # ------------------------------------------------------------------
    # Colors
    # ------------------------------------------------------------------

    def _hex(self, token: Optional[str]) -> Optional[str]:
        """Resolved hex for a token, or None for absent/sentinel values."""
        if token is None or is_sentinel(token):
            return None
        return normalize_color(self.resolver.resolve(token)) or DEFAULT_COLOR

    def _rgb(self, token: Optional[str]) -> Optional[dict[str, float]]:
        """API rgb for a token, or None for absent/sentinel values."""
        hex_color = self._hex(token)
        return hex_to_rgb(hex_color) if hex_color else None

    # ------------------------------------------------------------------
    # Shadows and links
    # ------------------------------------------------------------------

    def _shadow(self, element: Element, shadow_id: str, slide_id: str) -> list[Operation]:
        """Fake shadow shape, created before the element so it sits behind it."""
        if isinstance(element, IconElement):
            shape_type = "ELLIPSE"
        elif isinstance(element, ShapeElement):
            shape_type = element.shape or "RECTANGLE"
        elif isinstance(element, (TextElement, WordArtElement)):
            # A text box without a fill has no outline to cast from
            if self._rgb(element.fill_color) is None:
                return []
            shape_type = "RECTANGLE"
        elif isinstance(element, ImageElement):
            shape_type = "RECTANGLE"
        else:
            return []

        spec = resolve_shadow(element.shadow, self.settings.shadow_preset)
        if spec is None:
            return []

        x, y, w, h = shadow_box(element, spec)
        operations: list[Operation] = [
            CreateShape(
                object_id=shadow_id,
                shape_type=shape_type,
                element_properties=ElementProperties(
                    page_object_id=slide_id,
                    width=w,
                    height=h,
                    transform=AffineTransform(translate_x=x, translate_y=y),
                ),
            )
        ]

        color = spec.color or DEFAULT_SHADOW_COLOR
        if color == "inherit":
            color = getattr(element, "fill_color", None) or getattr(element, "color", None) or self.settings.icon_color
        rgb = self._rgb(color)
        if rgb is not None:
            opacity = spec.opacity if spec.opacity is not None else DEFAULT_SHADOW_OPACITY
            operations.append(
                UpdateShapeProperties(
                    object_id=shadow_id,
                    shape_properties={
                        "shapeBackgroundFill": {"solidFill": {"color": {"rgbColor": rgb}, "alpha": opacity}},
                        "outline": {"propertyState": "NOT_RENDERED"},
                    },
                )
            )
        return operations

    def _shape_link(self, element: Element, object_id: str) -> list[Operation]:
        link = link_to_api(element.link)
        if link is None:
            return []
        return [UpdateShapeProperties(object_id=object_id, shape_properties={"link": link})]

    # ------------------------------------------------------------------
    # Text boxes and shapes
    # ------------------------------------------------------------------

    def _text_box(
        self,
        element: TextContent,
        object_id: str,
        slide_id: str,
        shape_type: str,
        is_shape: bool,
    ) -> list[Operation]:
        operations: list[Operation] = [
            CreateShape(
                object_id=object_id,
                shape_type=shape_type,
                element_properties=self._placement(element, slide_id),
            )
        ]

        properties = self._shape_properties(element, is_shape)
        if properties:
            operations.append(UpdateShapeProperties(object_id=object_id, shape_properties=properties))

        defaults = RunDefaults.from_element(element)
        if element.items:
            text_operations = self.codec.encode_list(
                object_id, element.items, defaults, element.align, element.list_style
            )
        else:
            text_operations = self.codec.encode_content(
                object_id, element.text, element.text_runs, defaults, element.align
            )
        operations.extend(text_operations)

        if is_shape:
            operations.extend(self._shape_link(element, object_id))
        else:
            link = link_to_api(element.link)
            if link is not None and text_operations:
                operations.append(
                    UpdateTextStyle(object_id=object_id, style=TextStyle(link=link), text_range=TextRange.all())
                )
        return operations

    def _word_art(self, element: WordArtElement, object_id: str, slide_id: str) -> list[Operation]:
        """Display text: bold, centred and large unless a size is given."""
        display = element.model_copy(
            update={
                "font_size": element.font_size or self.settings.wordart_font_size,
                "bold": True,
                "align": "center",
            }
        )
        return self._text_box(display, object_id, slide_id, "TEXT_BOX", is_shape=False)

    def _icon(self, element: IconElement, object_id: str, slide_id: str) -> list[Operation]:
        """Glyph centred on a circle tinted with the icon color."""
        color = self._hex(element.color) or self._hex(self.settings.icon_color) or DEFAULT_COLOR
        opacity = element.bg_opacity if element.bg_opacity is not None else self.settings.icon_bg_opacity
        glyph = clean_text(element.text or element.icon or "") or DEFAULT_ICON_GLYPH
        font_size = element.font_size or clamp(
            element.h * ICON_GLYPH_RATIO, self.settings.min_font_size, self.settings.max_font_size
        )

        operations: list[Operation] = [
            CreateShape(
                object_id=object_id, shape_type="ELLIPSE", element_properties=self._placement(element, slide_id)
            ),
            UpdateShapeProperties(
                object_id=object_id,
                shape_properties={
                    "shapeBackgroundFill": {"solidFill": {"color": {"rgbColor": hex_to_rgb(color)}, "alpha": opacity}},
                    "outline": {"propertyState": "NOT_RENDERED"},
                },
            ),
            InsertText(object_id=object_id, text=glyph),
            UpdateTextStyle(
                object_id=object_id,
                style=TextStyle(font_size=font_size, foreground_color=color, bold=True),
                text_range=TextRange.all(),
            ),
            UpdateParagraphStyle(
                object_id=object_id,
                style=ParagraphStyleSpec(alignment="CENTER"),
                text_range=TextRange.all(),
            ),
        ]
        return operations + self._shape_link(element, object_id)

    def _shape_properties(self, element: TextContent, is_shape: bool) -> dict[str, Any]:
        properties: dict[str, Any] = {}

        if element.fill_color is not None:
            fill = self._rgb(element.fill_color)
            if fill is not None:
                properties["shapeBackgroundFill"] = _solid(fill)
            else:
                properties["shapeBackgroundFill"] = {"propertyState": "NOT_RENDERED"}

        border = self._rgb(element.border_color)
        if border is not None:
            properties["outline"] = {
                "outlineFill": _solid(border),
                "weight": _pt(element.border_width or self.settings.default_line_weight),
                "dashStyle": element.border_dash or "SOLID",
            }
        elif is_shape:
            # New shapes carry a theme outline unless told otherwise
            properties["outline"] = {"propertyState": "NOT_RENDERED"}

        alignment = VERTICAL_ALIGNMENT.get((element.vertical_align or "").lower())
        if alignment:
            properties["contentAlignment"] = alignment
        return properties

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def _image(self, element: ImageElement, object_id: str, slide_id: str) -> list[Operation]:
        if not element.url:
            raise ValueError("Image has no url")

        operations: list[Operation] = [
            CreateImage(object_id=object_id, url=element.url, element_properties=self._placement(element, slide_id))
        ]
        border = self._rgb(element.border_color)
        if border is not None:
            operations.append(
                UpdateImageProperties(
                    object_id=object_id,
                    image_properties={
                        "outline": {
                            "outlineFill": _solid(border),
                            "weight": _pt(element.border_width or 1.0),
                        }
                    },
                )
            )
        link = link_to_api(element.link)
        if link is not None:
            operations.append(UpdateImageProperties(object_id=object_id, image_properties={"link": link}))
        return operations

    # ------------------------------------------------------------------
    # Videos
    # ------------------------------------------------------------------

    def _video(self, element: VideoElement, object_id: str, slide_id: str) -> list[Operation]:
        placement = self._placement(element, slide_id)
        if not element.video_id:
            logger.info(f"Video {element.object_id} has no id, using placeholder")
            return [
                CreateShape(object_id=object_id, shape_type="RECTANGLE", element_properties=placement),
                UpdateShapeProperties(
                    object_id=object_id,
                    shape_properties={
                        "shapeBackgroundFill": _solid(hex_to_rgb("#000000")),
                        "outline": {"propertyState": "NOT_RENDERED"},
                    },
                ),
                *self.codec.encode_plain(object_id, VIDEO_PLACEHOLDER_TEXT, RunDefaults(color="#ffffff")),
            ]

        operations: list[Operation] = [
            CreateVideo(
                object_id=object_id,
                source=element.source.upper(),
                video_id=element.video_id,
                element_properties=placement,
            )
        ]
        border = self._rgb(element.border_color)
        if border is not None:
            operations.append(
                UpdateVideoProperties(
                    object_id=object_id,
                    video_properties={
                        "outline": {
                            "outlineFill": _solid(border),
                            "weight": _pt(element.border_width or 1.0),
                            "propertyState": "RENDERED",
                        }
                    },
                )
            )
        return operations

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def _table(self, element: TableElement, object_id: str, slide_id: str) -> list[Operation]:
        if not element.data:
            logger.info(f"Skipping empty table {element.object_id}")
            return []
        rows = len(element.data)
        columns = max(len(row) for row in element.data)
        if columns == 0:
            logger.info(f"Skipping table {element.object_id} with no columns")
            return []

        placement = self._placement(element, slide_id)
        origin = AffineTransform(
            translate_x=placement.transform.translate_x,
            translate_y=placement.transform.translate_y,
        )
        operations: list[Operation] = [
            CreateTable(
                object_id=object_id,
                rows=rows,
                columns=columns,
                element_properties=placement.model_copy(update={"transform": origin}),
            ),
            UpdatePageElementTransform(object_id=object_id, transform=placement.transform),
        ]

        fills: list[Operation] = []
        for row_index, row in enumerate(element.data):
            for column_index, cell in enumerate(row):
                location = CellLocation(row_index=row_index, column_index=column_index)
                text = "".join(run.text for run in cell.text_runs) if cell.text_runs else cell.text
                if text.strip():
                    operations.extend(
                        self.codec.encode_content(
                            object_id,
                            cell.text,
                            cell.text_runs,
                            RunDefaults.from_element(cell),
                            cell.align,
                            location,
                        )
                    )
                fill = self._rgb(cell.fill_color)
                if fill is not None:
                    fills.append(
                        UpdateTableCellProperties(
                            object_id=object_id,
                            cell_location=location,
                            table_cell_properties={"tableCellBackgroundFill": _solid(fill)},
                        )
                    )
        return operations + fills

    # ------------------------------------------------------------------
    # Lines
    # ------------------------------------------------------------------

    def _line(
        self,
        element: LineElement,
        object_id: str,
        slide_id: str,
        slide_index: int,
        path: str,
    ) -> BuildResult:
        if (element.connector or "").lower() in ("elbow", "bent"):
            return self._elbow(element, slide_id, slide_index, path)

        if element.composed_transform is not None and element.base_size is not None:
            placement = self._placement(element, slide_id)
        else:
            placement = self._endpoint_placement(element, slide_id)

        operations: list[Operation] = [
            CreateLine(
                object_id=object_id,
                line_category=element.line_category or "STRAIGHT",
                element_properties=placement,
            ),
            UpdateLineProperties(object_id=object_id, line_properties=self._line_properties(element)),
        ]
        connections = []
        if element.start_connect is not None or element.end_connect is not None:
            connections.append(PendingConnection(object_id, element.start_connect, element.end_connect))
        return BuildResult(operations=operations, object_ids=[object_id], connections=connections)

    def _endpoint_placement(self, element: LineElement, slide_id: str) -> ElementProperties:
        """Bounding box of the endpoints; anti-diagonal lines flip vertically."""
        x1, y1, x2, y2 = _endpoints(element)
        width = abs(x2 - x1)
        height = abs(y2 - y1)
        if width < MIN_LINE_EXTENT and height < MIN_LINE_EXTENT:
            width, height = 1.0, 0.0

        left = min(x1, x2)
        top = min(y1, y2)
        if (x2 - x1) * (y2 - y1) < 0:
            transform = AffineTransform(scale_y=-1.0, translate_x=left, translate_y=top + height)
        else:
            transform = AffineTransform(translate_x=left, translate_y=top)
        return ElementProperties(page_object_id=slide_id, width=width, height=height, transform=transform)

    def _line_properties(self, element: LineElement) -> dict[str, Any]:
        properties: dict[str, Any] = {"weight": _pt(element.weight or self.settings.default_line_weight)}
        fill = self._rgb(element.color or DEFAULT_COLOR)
        if fill is not None:
            properties["lineFill"] = _solid(fill)
        if element.dash_style:
            properties["dashStyle"] = element.dash_style
        if element.start_arrow:
            properties["startArrow"] = element.start_arrow
        if element.end_arrow:
            properties["endArrow"] = element.end_arrow
        return properties

    def _elbow(self, element: LineElement, slide_id: str, slide_index: int, path: str) -> BuildResult:
        """Split an elbow connector into two straight segments at its corner."""
        x1, y1, x2, y2 = _endpoints(element)
        if (element.bend_direction or "horizontal-first") == "vertical-first":
            mid_x, mid_y = x1, y2
        else:
            mid_x, mid_y = x2, y1

        straight = {
            "connector": None,
            "line_category": "STRAIGHT",
            "composed_transform": None,
            "base_size": None,
        }
        first = element.model_copy(
            update={
                **straight,
                "x1": x1, "y1": y1, "x2": mid_x, "y2": mid_y,
                "end_arrow": "NONE",
                "end_connect": None,
            }
        )
        second = element.model_copy(
            update={
                **straight,
                "x1": mid_x, "y1": mid_y, "x2": x2, "y2": y2,
                "start_arrow": "NONE",
                "start_connect": None,
            }
        )

        segments = []
        if (x1, y1) != (mid_x, mid_y):
            segments.append((first, "seg1"))
        if (mid_x, mid_y) != (x2, y2):
            segments.append((second, "seg2"))
        if not segments:
            segments.append((element.model_copy(update=straight), "seg1"))

        result = BuildResult()
        for segment, suffix in segments:
            segment_id = self.context.ids.element(slide_index, path, suffix)
            result.extend(self._line(segment, segment_id, slide_id, slide_index, path))
        return result

    # ------------------------------------------------------------------
    # Charts
    # ------------------------------------------------------------------

    def _chart(self, element: ChartElement, object_id: str, slide_id: str) -> list[Operation]:
        placement = self._placement(element, slide_id)
        if element.spreadsheet_id and element.chart_id is not None:
            linking_mode = "NOT_LINKED_IMAGE" if (element.embed_type or "").upper() == "IMAGE" else "LINKED"
            return [
                CreateSheetsChart(
                    object_id=object_id,
                    spreadsheet_id=element.spreadsheet_id,
                    chart_id=element.chart_id,
                    linking_mode=linking_mode,
                    element_properties=placement,
                )
            ]
        if element.content_url:
            return [CreateImage(object_id=object_id, url=element.content_url, element_properties=placement)]

        logger.info(f"Chart {element.object_id} has no source spreadsheet, using placeholder")
        return [
            CreateShape(object_id=object_id, shape_type="RECTANGLE", element_properties=placement),
            UpdateShapeProperties(
                object_id=object_id,
                shape_properties={
                    "shapeBackgroundFill": _solid(CHART_PLACEHOLDER_FILL),
                    "outline": {"outlineFill": _solid(CHART_PLACEHOLDER_OUTLINE), "weight": _pt(1)},
                },
            ),
            InsertText(object_id=object_id, text=CHART_PLACEHOLDER_TEXT),
            UpdateTextStyle(
                object_id=object_id,
                style=TextStyle(font_size=12, foreground_color=CHART_PLACEHOLDER_TEXT_COLOR, bold=True),
                text_range=TextRange.all(),
            ),
        ]

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def _group(
        self,
        element: GroupElement,
        object_id: str,
        slide_id: str,
        slide_index: int,
        path: str,
    ) -> BuildResult:
        """Children first, then the group over their ids."""
        result = BuildResult()
        for child_index, child in enumerate(element.elements):
            result.extend(self.build(child, slide_id, slide_index, f"{path}_{child_index}"))

        children = list(result.object_ids)
        if len(children) < 2:
            logger.info(f"Group {element.object_id} has {len(children)} buildable children, not grouping")
            return result

        result.operations.append(CreateGroup(object_id=object_id, children_object_ids=children))
        result.object_ids = [object_id]
        return result


def _endpoints(element: LineElement) -> tuple[float, float, float, float]:
    x1 = element.x1 if element.x1 is not None else element.x
    y1 = element.y1 if element.y1 is not None else element.y
    x2 = element.x2 if element.x2 is not None else element.x + element.w
    y2 = element.y2 if element.y2 is not None else element.y + element.h
    return x1, y1, x2, y2
