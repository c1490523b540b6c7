"""Extract page elements into canonical document elements.

Groups are flattened: the walk carries the composed world transform down as
an explicit argument, and every leaf records that matrix (``composedTransform``,
EMU) and its unscaled size (``baseSize``, EMU) so generation can reproduce it
exactly.
"""

import logging
from typing import Any, Optional

from slidecodec.dsl.schema import (
    AffineTransform,
    BaseSize,
    ChartElement,
    Element,
    ElementGeometry,
    ImageElement,
    LineConnection,
    LineElement,
    ShapeElement,
    TableCell,
    TableElement,
    TextElement,
    TextRun,
    UnsupportedElement,
)
from slidecodec.dsl.source import (
    ChartPayload,
    GroupPayload,
    ImagePayload,
    LineConnectionSource,
    LinePayload,
    Outline,
    PageElement,
    ShapePayload,
    TableCellSource,
    TablePayload,
    UnsupportedPayload,
)
from slidecodec.errors import IssueKind, UnsupportedGeometryError
from slidecodec.extraction.context import ExtractionContext, SlideScope
from slidecodec.geometry.transform import compose, decompose, has_shear, is_degenerate, resolve_transform
from slidecodec.text.codec import DecodedText
from slidecodec.units import emu_to_pt, round_pt

logger = logging.getLogger(__name__)

CONTENT_ALIGNMENT = {"TOP": "top", "MIDDLE": "middle", "BOTTOM": "bottom"}

UNSUPPORTED_SHAPE_TYPES = ("CUSTOM",)
UNSUPPORTED_LINE_CATEGORIES = ("CURVED",)

CHART_PLACEHOLDER_TEXT = "Chart (Not Extractable)"


class ElementExtractor:
    """Turns one slide's page elements into document elements."""

    def __init__(self, context: ExtractionContext):
        self.context = context

    def extract_all(self, elements: list[PageElement], scope: SlideScope) -> list[Element]:
        """Extract a slide's top-level elements in z-order."""
        result: list[Element] = []
        for element in elements:
            result.extend(self.extract(element, AffineTransform.identity(), scope))
        return result

    def extract(self, element: PageElement, parent: AffineTransform, scope: SlideScope) -> list[Element]:
        """Extract one element (a group yields its flattened children).

        Failures are isolated to the element: they are recorded and the walk
        continues with its siblings.
        """
        try:
            return self._extract(element, parent, scope)
        except UnsupportedGeometryError as exc:
            self.context.record(IssueKind.UNSUPPORTED_GEOMETRY, scope.index, element.object_id, exc.reason)
            return [self._fallback(element, parent, scope, exc.reason)]
        except Exception as exc:
            logger.debug("Element extraction failed", exc_info=True)
            self.context.record(IssueKind.ELEMENT_FAILURE, scope.index, element.object_id, str(exc))
            return []

    def _extract(self, element: PageElement, parent: AffineTransform, scope: SlideScope) -> list[Element]:
        matrix, malformed = resolve_transform(element.transform)
        if malformed:
            self.context.record(
                IssueKind.MALFORMED_GEOMETRY, scope.index, element.object_id, "non-finite transform value"
            )
        world = compose(parent, matrix)
        payload = element.payload

        if isinstance(payload, GroupPayload):
            children: list[Element] = []
            for child in payload.children:
                children.extend(self.extract(child, world, scope))
            return children

        if payload is None:
            logger.debug(f"Skipping element {element.object_id} with no payload")
            return []

        base_size = self._base_size(element, scope)
        self._check_geometry(element, world, base_size)
        common = self._common(element, world, base_size)

        if isinstance(payload, ShapePayload):
            return [self._shape(element, payload, common, scope)]
        if isinstance(payload, ImagePayload):
            return [self._image(payload, common)]
        if isinstance(payload, TablePayload):
            return [self._table(payload, common, scope)]
        if isinstance(payload, LinePayload):
            return [self._line(payload, common, scope)]
        if isinstance(payload, ChartPayload):
            return [self._chart(payload, common)]
        if isinstance(payload, UnsupportedPayload):
            logger.info(f"Element {element.object_id} is a {payload.source_kind}; kept as unsupported")
            return [UnsupportedElement(**common, source_kind=payload.source_kind, reason="unsupported kind")]
        return []

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def _base_size(self, element: PageElement, scope: SlideScope) -> BaseSize:
        if element.size is None:
            self.context.record(IssueKind.MALFORMED_GEOMETRY, scope.index, element.object_id, "missing size")
            return BaseSize(width=0, height=0)
        return BaseSize(width=max(element.size.width_emu, 0.0), height=max(element.size.height_emu, 0.0))

    def _check_geometry(self, element: PageElement, world: AffineTransform, base_size: BaseSize) -> None:
        payload = element.payload
        if isinstance(payload, ShapePayload) and payload.shape_type in UNSUPPORTED_SHAPE_TYPES:
            raise UnsupportedGeometryError(element.object_id, f"freeform shape type {payload.shape_type}")
        if isinstance(payload, LinePayload):
            category = (payload.line_category or "").upper()
            line_type = (payload.line_type or "").upper()
            if category in UNSUPPORTED_LINE_CATEGORIES or line_type.startswith("CURVED"):
                raise UnsupportedGeometryError(element.object_id, "curved connector")
        if is_degenerate(world) and base_size.width > 0 and base_size.height > 0:
            raise UnsupportedGeometryError(element.object_id, "degenerate transform (zero determinant)")

    def _common(self, element: PageElement, world: AffineTransform, base_size: BaseSize) -> dict[str, Any]:
        if has_shear(world, self.context.settings.shear_epsilon):
            logger.warning(f"Element {element.object_id} is sheared; keeping rotation and scale only")
        geometry = decompose(world, base_size)
        return {
            "object_id": element.object_id,
            "x": round_pt(emu_to_pt(geometry.x)),
            "y": round_pt(emu_to_pt(geometry.y)),
            "w": round_pt(emu_to_pt(geometry.w)),
            "h": round_pt(emu_to_pt(geometry.h)),
            "rotation": geometry.rotation,
            "flip_h": geometry.flip_h,
            "flip_v": geometry.flip_v,
            "composed_transform": world,
            "base_size": base_size,
        }

    def _fallback(self, element: PageElement, parent: AffineTransform, scope: SlideScope, reason: str) -> Element:
        matrix, _ = resolve_transform(element.transform)
        world = compose(parent, matrix)
        size = element.size
        base_size = BaseSize(
            width=max(size.width_emu, 0.0) if size else 0.0,
            height=max(size.height_emu, 0.0) if size else 0.0,
        )
        common = self._common(element, world, base_size)

        fallback = self.context.raster_fallback
        if fallback is not None:
            geometry = ElementGeometry(
                x=common["x"],
                y=common["y"],
                w=common["w"],
                h=common["h"],
                rotation=common["rotation"],
                flip_h=common["flip_h"],
            )
            try:
                url = fallback.rasterize(element, scope.index, geometry)
            except Exception as exc:
                logger.debug(f"Rasterizing {element.object_id} failed", exc_info=True)
                self.context.record(
                    IssueKind.ELEMENT_FAILURE,
                    scope.index,
                    element.object_id,
                    f"raster fallback failed: {type(exc).__name__}: {exc}",
                )
                url = None
            if url:
                logger.info(f"Element {element.object_id} rasterized: {reason}")
                return ImageElement(**common, url=url, source_type="raster")

        source_kind = element.payload.kind if element.payload is not None else None
        return UnsupportedElement(**common, source_kind=source_kind, reason=reason)

    # ------------------------------------------------------------------
    # Shapes and text
    # ------------------------------------------------------------------

    def _shape(self, element: PageElement, payload: ShapePayload, common: dict[str, Any], scope: SlideScope) -> Element:
        shape_type = payload.shape_type or "RECTANGLE"
        decoded = DecodedText()
        if payload.text is not None and payload.text.text_elements:
            decoded = scope.codec.decode(payload.text.text_elements)
        first = decoded.first_run

        font_size = first.font_size if first and first.font_size else self._inherit(element, "font_size", scope)
        font_family = first.font_family if first and first.font_family else self._inherit(element, "font_family", scope)
        color = first.color if first and first.color else self._inherit(element, "color", scope)
        color = self.context.resolver.resolve(color, scope.index, element.object_id)
        bold = first.bold if first and first.bold is not None else self._inherit(element, "bold", scope)

        text_fields: dict[str, Any] = {}
        if decoded.plain_text:
            text_fields = {
                "text": decoded.plain_text,
                "font_size": font_size,
                "font_family": font_family,
                "color": color,
                "text_runs": self._runs_for_document(decoded, color),
            }
        text_fields.update(self._padding(payload))

        props = payload.shape_properties
        if props is not None and props.content_alignment in CONTENT_ALIGNMENT:
            text_fields["vertical_align"] = CONTENT_ALIGNMENT[props.content_alignment]

        if shape_type == "TEXT_BOX" and decoded.plain_text:
            paragraph = first.paragraph_style if first else None
            return TextElement(
                **common,
                **text_fields,
                bold=bold or False,
                italic=(first.italic if first else None) or False,
                underline=(first.underline if first else None) or False,
                strikethrough=(first.strikethrough if first else None) or False,
                small_caps=(first.small_caps if first else None) or False,
                baseline_offset=(first.baseline_offset if first else None) or "NONE",
                align=paragraph.align if paragraph else None,
                indent_start=(paragraph.indent_start or 0.0) if paragraph else None,
                line_spacing=(paragraph.line_spacing or 100) if paragraph else None,
            )

        fill = props.shape_background_fill if props else None
        outline = props.outline if props else None
        return ShapeElement(
            **common,
            **text_fields,
            shape=shape_type,
            fill_color=self.context.resolver.resolve_fill(fill, scope.index),
            border_color=self._outline_color(outline, scope),
            border_width=self._outline_weight(outline),
            border_dash=outline.dash_style if outline else None,
        )

    def _inherit(self, element: PageElement, prop: str, scope: SlideScope) -> Any:
        return self.context.placeholders.resolve(element, prop, scope.layout_id, scope.master_id)

    def _runs_for_document(self, decoded: DecodedText, element_color: str) -> Optional[list[TextRun]]:
        """Runs are kept when they carry structure the flat fields cannot."""
        if len(decoded.runs) <= 1 and not decoded.has_bullets:
            return None
        return [run if run.color else run.model_copy(update={"color": element_color}) for run in decoded.runs]

    def _padding(self, payload: ShapePayload) -> dict[str, float]:
        props = payload.shape_properties
        if props is None or props.autofit is None:
            return {}
        autofit = props.autofit
        return {
            "padding_top": emu_to_pt(autofit.top_offset or 0),
            "padding_bottom": emu_to_pt(autofit.bottom_offset or 0),
            "padding_left": emu_to_pt(autofit.left_offset or 0),
            "padding_right": emu_to_pt(autofit.right_offset or 0),
        }

    def _outline_color(self, outline: Optional[Outline], scope: SlideScope) -> str:
        if outline is None or outline.property_state == "NOT_RENDERED":
            return "none"
        if outline.outline_fill is None or outline.outline_fill.solid_fill is None:
            return "none"
        color = self.context.resolver.resolve_opaque(outline.outline_fill.solid_fill.color, scope.index)
        return color or "none"

    def _outline_weight(self, outline: Optional[Outline]) -> float:
        if outline is None or outline.weight is None or not outline.weight.magnitude:
            return 0.0
        return outline.weight.to_pt() or 0.0

    # ------------------------------------------------------------------
    # Other kinds
    # ------------------------------------------------------------------

    def _image(self, payload: ImagePayload, common: dict[str, Any]) -> Element:
        return ImageElement(
            **common,
            url=payload.content_url or payload.source_url or "",
            source_url=payload.source_url,
        )

    def _table(self, payload: TablePayload, common: dict[str, Any], scope: SlideScope) -> Element:
        data = [
            [self._cell(cell, scope) for cell in row.table_cells]
            for row in payload.table_rows
        ]
        return TableElement(**common, data=data)

    def _cell(self, cell: TableCellSource, scope: SlideScope) -> TableCell:
        resolver = self.context.resolver
        props = cell.table_cell_properties
        fill_color = resolver.resolve_fill(props.table_cell_background_fill if props else None, scope.index)

        if cell.text is None or not cell.text.text_elements:
            return TableCell(text="", fill_color=fill_color)

        decoded = scope.codec.decode(cell.text.text_elements)
        first = decoded.first_run
        color = resolver.resolve(first.color if first and first.color else "#000000", scope.index)
        paragraph = scope.codec.first_paragraph_style(cell.text.text_elements)
        return TableCell(
            text=decoded.plain_text.strip(),
            bold=(first.bold if first else None) or False,
            italic=(first.italic if first else None) or False,
            color=color,
            font_size=(first.font_size if first else None) or 12.0,
            font_family=(first.font_family if first else None) or "Arial",
            align=paragraph.align if paragraph else "center",
            text_runs=self._runs_for_document(decoded, color) if len(decoded.runs) > 1 else None,
            fill_color=fill_color,
        )

    def _line(self, payload: LinePayload, common: dict[str, Any], scope: SlideScope) -> Element:
        props = payload.line_properties
        color = "#000000"
        if props is not None and props.line_fill is not None and props.line_fill.solid_fill is not None:
            color = self.context.resolver.resolve_opaque(props.line_fill.solid_fill.color, scope.index) or color
        weight = props.weight.to_pt() if props and props.weight and props.weight.magnitude else 1.0
        return LineElement(
            **common,
            line_category=(payload.line_category or "STRAIGHT").upper(),
            color=color,
            weight=weight,
            dash_style=(props.dash_style if props else None) or "SOLID",
            start_arrow=(props.start_arrow if props else None) or "NONE",
            end_arrow=(props.end_arrow if props else None) or "NONE",
            start_connect=_connection(props.start_connection if props else None),
            end_connect=_connection(props.end_connection if props else None),
        )

    def _chart(self, payload: ChartPayload, common: dict[str, Any]) -> Element:
        content_url = payload.content_url
        if content_url and not payload.spreadsheet_id:
            logger.info(f"Chart {common['object_id']} has no spreadsheet; extracting as image")
            return ImageElement(
                **common, url=content_url, source_type="chart", original_chart_id=payload.chart_id
            )
        if payload.spreadsheet_id:
            return ChartElement(
                **common,
                spreadsheet_id=payload.spreadsheet_id,
                chart_id=payload.chart_id or 0,
                embed_type="IMAGE",
                content_url=content_url,
            )
        logger.info(f"Chart {common['object_id']} has no extractable content; using placeholder")
        return ShapeElement(
            **common,
            shape="RECTANGLE",
            fill_color="#f0f0f0",
            text=CHART_PLACEHOLDER_TEXT,
            font_size=12.0,
            color="#888888",
        )


def _connection(source: Optional[LineConnectionSource]) -> Optional[LineConnection]:
    if source is None or not source.connected_object_id:
        return None
    return LineConnection(object_id=source.connected_object_id, site=source.connection_site_index or 0)
