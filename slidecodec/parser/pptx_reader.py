"""Read local PPTX files into the consumed presentation tree.

A ``.pptx`` is converted into the same JSON shape the presentation service
returns (masters with color schemes, layouts, slides, notes pages and page
elements with matrices, sizes and text streams), then validated into
``Presentation`` so extraction runs unchanged on local files.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Callable, Optional, Union

from pptx import Presentation as open_presentation
from pptx.shapes.base import BaseShape

from slidecodec.dsl.source import Presentation
from slidecodec.parser.style_reader import StyleReader
from slidecodec.parser.theme_parser import ThemeParser
from slidecodec.parser.transform_parser import NAMESPACES, TransformParser, size_json, transform_json

logger = logging.getLogger(__name__)

# OOXML <p:ph type> -> placeholder type; an omitted type means "obj"
PLACEHOLDER_TYPES = {
    "title": "TITLE",
    "body": "BODY",
    "ctrTitle": "CENTERED_TITLE",
    "subTitle": "SUBTITLE",
    "dt": "DATE_AND_TIME",
    "ftr": "FOOTER",
    "sldNum": "SLIDE_NUMBER",
    "obj": "OBJECT",
    "chart": "CHART",
    "tbl": "TABLE",
    "clipArt": "CLIP_ART",
    "dgm": "DIAGRAM",
    "media": "MEDIA",
    "sldImg": "SLIDE_IMAGE",
    "pic": "PICTURE",
}

# Placeholder types whose paragraphs are bulleted unless they opt out
BULLETED_PLACEHOLDERS = ("BODY", "OBJECT")

TITLE_PLACEHOLDERS = ("TITLE", "CENTERED_TITLE")

# Preset geometry names that do not follow the upper-snake rule
PRESET_SHAPE_TYPES = {
    "rect": "RECTANGLE",
    "roundRect": "ROUND_RECTANGLE",
    "ellipse": "ELLIPSE",
    "rtTriangle": "RIGHT_TRIANGLE",
    "line": "STRAIGHT_LINE",
}

LINE_PRESETS = ("line", "straightConnector1")

ImageLocator = Callable[[Any], Optional[str]]


def preset_type(prst: str) -> str:
    """``flowChartProcess`` -> ``FLOW_CHART_PROCESS``, ``star5`` -> ``STAR_5``."""
    if prst in PRESET_SHAPE_TYPES:
        return PRESET_SHAPE_TYPES[prst]
    snake = re.sub(r"(?<!^)(?=[A-Z])", "_", prst)
    snake = re.sub(r"(?<=[A-Za-z])(?=\d)", "_", snake)
    return snake.upper()


@dataclass
class _PageContext:
    page_id: str
    part: Any
    styles: StyleReader
    # Master text styles for placeholders on masters and layouts
    text_styles: Optional[Any] = None
    inherit_bullets: bool = False


class PPTXReader:
    """Reads PPTX files into the presentation tree the pipelines consume.

    Args:
        image_locator: Maps a python-pptx ``Picture`` to a fetchable URL
            (for example after uploading its blob). Without one, pictures
            carry no URL.
    """

    def __init__(self, image_locator: Optional[ImageLocator] = None) -> None:
        self.transform_parser = TransformParser()
        self.theme_parser = ThemeParser()
        self.image_locator = image_locator

    def read(self, source: Union[str, Path, BinaryIO]) -> Presentation:
        """Read a PPTX file.

        Args:
            source: Path to PPTX file or file-like object.

        Returns:
            The parsed presentation tree.
        """
        return Presentation.model_validate(self.read_json(source))

    def read_json(self, source: Union[str, Path, BinaryIO]) -> dict[str, Any]:
        """Read a PPTX file into the service's JSON shape."""
        prs = open_presentation(source)
        name = Path(source).stem if isinstance(source, (str, Path)) else None

        masters: list[dict[str, Any]] = []
        layouts: list[dict[str, Any]] = []
        # Layout part -> (layout id, master id, master styles)
        layout_index: dict[Any, tuple[str, str, StyleReader]] = {}

        for master_number, master in enumerate(prs.slide_masters):
            master_id = f"master{master_number}"
            theme = self.theme_parser.theme_element(master)
            styles = StyleReader(self.theme_parser.font_scheme(theme))
            text_styles = master._element.find("p:txStyles", NAMESPACES)

            masters.append(
                {
                    "objectId": master_id,
                    "pageType": "MASTER",
                    "pageElements": self._elements(
                        master.shapes, _PageContext(master_id, master.part, styles, text_styles)
                    ),
                    "pageProperties": {
                        "pageBackgroundFill": styles.background(master._element),
                        "colorScheme": {"colors": self.theme_parser.color_scheme(theme)},
                    },
                    "masterProperties": {"displayName": self.theme_parser.theme_name(theme) or master.name},
                }
            )

            for layout_number, layout in enumerate(master.slide_layouts):
                layout_id = f"{master_id}_layout{layout_number}"
                layout_index[layout.part] = (layout_id, master_id, styles)
                layouts.append(
                    {
                        "objectId": layout_id,
                        "pageType": "LAYOUT",
                        "pageElements": self._elements(
                            layout.shapes, _PageContext(layout_id, layout.part, styles, text_styles)
                        ),
                        "pageProperties": {"pageBackgroundFill": styles.background(layout._element)},
                        "layoutProperties": {
                            "masterObjectId": master_id,
                            "name": layout.name,
                            "displayName": layout.name,
                        },
                    }
                )

        fallback_styles = StyleReader()
        slides = []
        for slide in prs.slides:
            layout_id, master_id, styles = layout_index.get(
                slide.slide_layout.part, (None, None, fallback_styles)
            )
            slides.append(self._slide(slide, layout_id, master_id, styles))

        logger.info(
            f"Read {name or 'presentation'}: {len(masters)} masters, {len(layouts)} layouts, {len(slides)} slides"
        )
        return {
            "presentationId": name,
            "title": prs.core_properties.title or name,
            "pageSize": size_json(prs.slide_width, prs.slide_height),
            "masters": masters,
            "layouts": layouts,
            "slides": slides,
        }

    def _slide(
        self,
        slide: Any,
        layout_id: Optional[str],
        master_id: Optional[str],
        styles: StyleReader,
    ) -> dict[str, Any]:
        slide_id = f"slide{slide.slide_id}"
        context = _PageContext(slide_id, slide.part, styles, inherit_bullets=True)
        slide_properties: dict[str, Any] = {"layoutObjectId": layout_id, "masterObjectId": master_id}
        if slide.has_notes_slide:
            slide_properties["notesPage"] = self._notes(slide.notes_slide, slide_id, styles)

        return {
            "objectId": slide_id,
            "pageType": "SLIDE",
            "pageElements": self._elements(slide.shapes, context),
            "pageProperties": {"pageBackgroundFill": styles.background(slide._element)},
            "slideProperties": slide_properties,
        }

    def _notes(self, notes_slide: Any, slide_id: str, styles: StyleReader) -> Optional[dict[str, Any]]:
        notes_id = f"{slide_id}_notes"
        placeholder = notes_slide.notes_placeholder
        if placeholder is None:
            return None
        element = self._element(placeholder, _PageContext(notes_id, notes_slide.part, styles))
        return {
            "objectId": notes_id,
            "pageType": "NOTES",
            "pageElements": [element] if element else [],
            "notesProperties": {"speakerNotesObjectId": element["objectId"] if element else None},
        }

    # ------------------------------------------------------------------
    # Page elements
    # ------------------------------------------------------------------

    def _elements(self, shapes: Any, context: _PageContext) -> list[dict[str, Any]]:
        elements = []
        for shape in shapes:
            element = self._element(shape, context)
            if element is not None:
                elements.append(element)
        return elements

    def _element(self, shape: BaseShape, context: _PageContext) -> Optional[dict[str, Any]]:
        """Convert one shape; None for kinds the tree has no place for."""
        xml = shape._element
        tag = xml.tag.rsplit("}", 1)[-1]
        element_id = f"{context.page_id}_{shape.shape_id}"
        values = self.transform_parser.read(shape)

        if tag == "grpSp":
            return {
                "objectId": element_id,
                "transform": transform_json(self.transform_parser.group_matrix(values)),
                "elementGroup": {"children": self._elements(shape.shapes, context)},
            }

        element: dict[str, Any] = {
            "objectId": element_id,
            "size": size_json(values.cx, values.cy),
            "transform": transform_json(self.transform_parser.element_matrix(values)),
        }
        if shape.name:
            element["title"] = shape.name

        if tag == "pic":
            if xml.find("p:nvPicPr/p:nvPr/a:videoFile", NAMESPACES) is not None:
                element["video"] = {}
            else:
                url = self.image_locator(shape) if self.image_locator else None
                element["image"] = {"contentUrl": url, "sourceUrl": url}
            return element

        if tag == "cxnSp":
            element["line"] = self._line(xml, context)
            return element

        if tag == "graphicFrame":
            if getattr(shape, "has_table", False):
                element["table"] = self._table(shape, element_id, context)
                return element
            if getattr(shape, "has_chart", False):
                element["sheetsChart"] = {}
                return element
            logger.debug(f"Skipping graphic frame {element_id} ({shape.name}) with unsupported content")
            return None

        if tag == "sp":
            geometry = xml.find("p:spPr/a:prstGeom", NAMESPACES)
            if geometry is not None and geometry.get("prst") in LINE_PRESETS:
                element["line"] = self._line(xml, context)
            else:
                element["shape"] = self._shape(xml, element_id, context)
            return element

        logger.debug(f"Skipping {tag} element {element_id}")
        return None

    def _shape(self, xml: Any, element_id: str, context: _PageContext) -> dict[str, Any]:
        styles = context.styles
        placeholder = _placeholder(xml)

        if placeholder is not None or _is_text_box(xml):
            shape_type = "TEXT_BOX"
        elif xml.find("p:spPr/a:custGeom", NAMESPACES) is not None:
            shape_type = "CUSTOM"
        else:
            geometry = xml.find("p:spPr/a:prstGeom", NAMESPACES)
            shape_type = preset_type(geometry.get("prst", "rect")) if geometry is not None else "RECTANGLE"

        properties: dict[str, Any] = {
            "shapeBackgroundFill": styles.shape_fill(xml),
            "outline": styles.outline(xml),
        }
        autofit, anchor = styles.body_properties(xml)
        if autofit is not None:
            properties["autofit"] = autofit
        if anchor is not None:
            properties["contentAlignment"] = anchor

        placeholder_type = placeholder["type"] if placeholder else None
        defaults = []
        if context.text_styles is not None:
            style_name = "p:titleStyle" if placeholder_type in TITLE_PLACEHOLDERS else (
                "p:bodyStyle" if placeholder_type else "p:otherStyle"
            )
            master_style = context.text_styles.find(style_name, NAMESPACES)
            if master_style is not None:
                defaults.append(master_style)

        payload: dict[str, Any] = {"shapeType": shape_type, "shapeProperties": properties}
        if placeholder is not None:
            payload["placeholder"] = placeholder
        text = styles.text_content(
            xml.find("p:txBody", NAMESPACES),
            list_id=f"{element_id}_list",
            part=context.part,
            defaults=defaults,
            bulleted=context.inherit_bullets and placeholder_type in BULLETED_PLACEHOLDERS,
        )
        if text is not None:
            payload["text"] = text
        return payload

    def _line(self, xml: Any, context: _PageContext) -> dict[str, Any]:
        geometry = xml.find("p:spPr/a:prstGeom", NAMESPACES)
        prst = geometry.get("prst", "line") if geometry is not None else "line"
        if prst.startswith("bentConnector"):
            category = "BENT"
        elif prst.startswith("curvedConnector"):
            category = "CURVED"
        else:
            category = "STRAIGHT"

        properties = context.styles.line_properties(xml)
        connections = xml.find("p:nvCxnSpPr/p:cNvCxnSpPr", NAMESPACES)
        if connections is not None:
            for tag, key in (("a:stCxn", "startConnection"), ("a:endCxn", "endConnection")):
                connection = connections.find(tag, NAMESPACES)
                if connection is not None and connection.get("id"):
                    properties[key] = {
                        "connectedObjectId": f"{context.page_id}_{connection.get('id')}",
                        "connectionSiteIndex": int(connection.get("idx", "0")),
                    }
        return {"lineType": preset_type(prst), "lineCategory": category, "lineProperties": properties}

    def _table(self, shape: Any, element_id: str, context: _PageContext) -> dict[str, Any]:
        table = shape.table
        rows = []
        for row_index, row in enumerate(table.rows):
            cells = []
            for column_index, cell in enumerate(row.cells):
                tc = cell._tc
                cells.append(
                    {
                        "rowSpan": int(tc.get("rowSpan", "1")),
                        "columnSpan": int(tc.get("gridSpan", "1")),
                        "text": context.styles.text_content(
                            tc.find("a:txBody", NAMESPACES),
                            list_id=f"{element_id}_r{row_index}c{column_index}",
                            part=context.part,
                        ),
                        "tableCellProperties": {"tableCellBackgroundFill": context.styles.cell_fill(tc)},
                    }
                )
            rows.append({"rowHeight": {"magnitude": row.height, "unit": "EMU"}, "tableCells": cells})
        return {"rows": len(table.rows), "columns": len(table.columns), "tableRows": rows}


def _placeholder(xml: Any) -> Optional[dict[str, Any]]:
    ph = xml.find("./*/p:nvPr/p:ph", NAMESPACES)
    if ph is None:
        return None
    return {
        "type": PLACEHOLDER_TYPES.get(ph.get("type", "obj"), "OBJECT"),
        "index": int(ph.get("idx", "0")),
    }


def _is_text_box(xml: Any) -> bool:
    properties = xml.find("p:nvSpPr/p:cNvSpPr", NAMESPACES)
    return properties is not None and properties.get("txBox") in ("1", "true")
