"""Tests for reading local PPTX files into the presentation tree."""

from pathlib import Path
from typing import Any

import pytest
from lxml import etree
from pptx import Presentation as new_presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_CONNECTOR, MSO_SHAPE
from pptx.util import Inches, Pt

from slidecodec.config import Settings
from slidecodec.dsl.schema import LineElement, ShapeElement, TableElement, TextElement
from slidecodec.extraction import ExtractionPipeline
from slidecodec.parser import PPTXReader, StyleReader, ThemeParser, TransformParser
from slidecodec.parser.pptx_reader import preset_type
from slidecodec.parser.style_reader import DEFAULT_GLYPH
from slidecodec.parser.transform_parser import NAMESPACES, Xfrm


def fragment(body: str) -> Any:
    """First child of a wrapper declaring the DrawingML namespaces."""
    root = etree.fromstring(
        f'<a:wrap xmlns:a="{NAMESPACES["a"]}" xmlns:p="{NAMESPACES["p"]}">{body}</a:wrap>'
    )
    return root[0]


@pytest.fixture
def deck_file(tmp_path: Path) -> dict[str, Any]:
    """A one-slide deck saved to disk, with the ids of its shapes."""
    prs = new_presentation()
    slide = prs.slides.add_slide(prs.slide_layouts[6])

    textbox = slide.shapes.add_textbox(Inches(1), Inches(1), Inches(3), Inches(1))
    textbox.text_frame.text = "Hello"
    run = textbox.text_frame.paragraphs[0].runs[0]
    run.font.size = Pt(20)
    run.font.bold = True
    run.font.color.rgb = RGBColor(0x12, 0x34, 0x56)

    oval = slide.shapes.add_shape(MSO_SHAPE.OVAL, Inches(5), Inches(1), Inches(1), Inches(1))
    oval.fill.solid()
    oval.fill.fore_color.rgb = RGBColor(0xFF, 0x00, 0x00)

    table = slide.shapes.add_table(2, 2, Inches(1), Inches(3), Inches(4), Inches(1))
    table.table.cell(0, 0).text = "Q1"

    connector = slide.shapes.add_connector(MSO_CONNECTOR.STRAIGHT, Inches(1), Inches(5), Inches(4), Inches(5))

    group = slide.shapes.add_group_shape()
    grouped = group.shapes.add_shape(MSO_SHAPE.RECTANGLE, Inches(6), Inches(4), Inches(1), Inches(1))
    group.shapes.add_shape(MSO_SHAPE.RECTANGLE, Inches(8), Inches(4), Inches(1), Inches(1))

    slide.notes_slide.notes_text_frame.text = "Remember the demo"

    path = tmp_path / "deck.pptx"
    prs.save(str(path))
    page = f"slide{slide.slide_id}"
    return {
        "path": path,
        "textbox": f"{page}_{textbox.shape_id}",
        "oval": f"{page}_{oval.shape_id}",
        "table": f"{page}_{table.shape_id}",
        "connector": f"{page}_{connector.shape_id}",
        "grouped": f"{page}_{grouped.shape_id}",
    }


class TestReadJson:
    """Tests for the service-shaped tree built from a PPTX."""

    def test_pages(self, deck_file: dict[str, Any]) -> None:
        tree = PPTXReader().read_json(deck_file["path"])

        assert tree["presentationId"] == "deck"
        assert len(tree["masters"]) == 1
        assert len(tree["slides"]) == 1
        slide = tree["slides"][0]
        assert slide["slideProperties"]["masterObjectId"] == "master0"
        assert slide["slideProperties"]["layoutObjectId"] == "master0_layout6"

    def test_master_theme(self, deck_file: dict[str, Any]) -> None:
        master = PPTXReader().read_json(deck_file["path"])["masters"][0]
        tokens = [entry["type"] for entry in master["pageProperties"]["colorScheme"]["colors"]]

        assert "ACCENT1" in tokens
        assert "DARK1" in tokens
        assert master["masterProperties"]["displayName"]

    def test_shape_kinds(self, deck_file: dict[str, Any]) -> None:
        elements = {
            element["objectId"]: element for element in PPTXReader().read_json(deck_file["path"])["slides"][0]["pageElements"]
        }

        assert elements[deck_file["textbox"]]["shape"]["shapeType"] == "TEXT_BOX"
        assert elements[deck_file["oval"]]["shape"]["shapeType"] == "ELLIPSE"
        assert elements[deck_file["table"]]["table"]["rows"] == 2
        assert elements[deck_file["connector"]]["line"]["lineCategory"] == "STRAIGHT"

    def test_text_stream(self, deck_file: dict[str, Any]) -> None:
        slide = PPTXReader().read_json(deck_file["path"])["slides"][0]
        textbox = next(e for e in slide["pageElements"] if e["objectId"] == deck_file["textbox"])
        marker, run = textbox["shape"]["text"]["textElements"]

        assert (marker["startIndex"], marker["endIndex"]) == (0, 6)
        assert run["textRun"]["content"] == "Hello\n"
        assert run["textRun"]["style"]["fontSize"] == {"magnitude": 20.0, "unit": "PT"}
        assert run["textRun"]["style"]["bold"] is True


class TestExtractFromPptx:
    """A local file runs through extraction like a fetched presentation."""

    @pytest.fixture
    def document(self, deck_file: dict[str, Any], settings: Settings) -> Any:
        presentation = PPTXReader().read(deck_file["path"])
        return ExtractionPipeline(settings).run(presentation).document

    def elements(self, document: Any) -> dict[str, Any]:
        return {element.object_id: element for element in document.slides[0].elements}

    def test_text_box(self, document: Any, deck_file: dict[str, Any]) -> None:
        text = self.elements(document)[deck_file["textbox"]]

        assert isinstance(text, TextElement)
        assert text.text == "Hello"
        assert text.font_size == 20.0
        assert text.bold is True
        assert text.color == "#123456"
        assert (text.x, text.y) == (72.0, 72.0)

    def test_shape_table_and_line(self, document: Any, deck_file: dict[str, Any]) -> None:
        elements = self.elements(document)

        oval = elements[deck_file["oval"]]
        assert isinstance(oval, ShapeElement)
        assert oval.shape == "ELLIPSE"
        assert oval.fill_color == "#ff0000"

        table = elements[deck_file["table"]]
        assert isinstance(table, TableElement)
        assert table.data[0][0].text == "Q1"
        assert table.data[1][1].text == ""

        assert isinstance(elements[deck_file["connector"]], LineElement)

    def test_group_children_keep_their_position(self, document: Any, deck_file: dict[str, Any]) -> None:
        grouped = self.elements(document)[deck_file["grouped"]]
        assert grouped.x == pytest.approx(432.0)
        assert grouped.y == pytest.approx(288.0)

    def test_speaker_notes_and_background(self, document: Any) -> None:
        slide = document.slides[0]
        assert slide.speaker_notes == "Remember the demo"
        assert slide.background == "#ffffff"


class TestPresetType:
    @pytest.mark.parametrize(
        "prst, expected",
        [
            ("rect", "RECTANGLE"),
            ("roundRect", "ROUND_RECTANGLE"),
            ("flowChartProcess", "FLOW_CHART_PROCESS"),
            ("star5", "STAR_5"),
            ("rightArrow", "RIGHT_ARROW"),
        ],
    )
    def test_preset_type(self, prst: str, expected: str) -> None:
        assert preset_type(prst) == expected


class TestStyleReader:
    """Tests for DrawingML style conversion."""

    def test_run_style(self) -> None:
        r_pr = fragment(
            '<a:rPr sz="1800" b="1" i="0" u="sng" baseline="30000">'
            '<a:solidFill><a:schemeClr val="tx1"/></a:solidFill><a:latin typeface="+mj-lt"/></a:rPr>'
        )
        style = StyleReader({"major": "Calibri Light"}).run_style([r_pr])

        assert style["fontSize"] == {"magnitude": 18.0, "unit": "PT"}
        assert style["bold"] is True
        assert style["italic"] is False
        assert style["underline"] is True
        assert style["baselineOffset"] == "SUPERSCRIPT"
        assert style["fontFamily"] == "Calibri Light"
        assert style["foregroundColor"] == {"opaqueColor": {"themeColor": "DARK1"}}

    def test_run_style_inherits_from_defaults(self) -> None:
        r_pr = fragment('<a:rPr b="1"/>')
        default = fragment('<a:defRPr sz="2400" b="0"/>')
        style = StyleReader().run_style([r_pr, default])

        assert style["fontSize"]["magnitude"] == 24.0
        assert style["bold"] is True

    def test_paragraph_style(self) -> None:
        p_pr = fragment(
            '<a:pPr algn="ctr" marL="457200" indent="-228600">'
            '<a:lnSpc><a:spcPct val="150000"/></a:lnSpc><a:spcBef><a:spcPts val="600"/></a:spcBef></a:pPr>'
        )
        style = StyleReader().paragraph_style([p_pr])

        assert style["alignment"] == "CENTER"
        assert style["indentStart"] == {"magnitude": 457200.0, "unit": "EMU"}
        assert style["indentFirstLine"] == {"magnitude": 228600.0, "unit": "EMU"}
        assert style["lineSpacing"] == 150.0
        assert style["spaceAbove"] == {"magnitude": 6.0, "unit": "PT"}

    def test_bullets(self) -> None:
        reader = StyleReader()

        assert reader.bullet([fragment("<a:pPr><a:buNone/></a:pPr>")], "l", 0, bulleted=True) is None
        assert reader.bullet([fragment('<a:pPr><a:buChar char="-"/></a:pPr>')], "l", 0, False)["glyph"] == "-"
        assert reader.bullet([fragment('<a:pPr><a:buAutoNum type="arabicPeriod"/></a:pPr>')], "l", 1, False)[
            "glyph"
        ] == "2."
        assert reader.bullet([None], "l", 0, bulleted=True) == {"listId": "l", "nestingLevel": 0, "glyph": DEFAULT_GLYPH}
        assert reader.bullet([None], "l", 0, bulleted=False) is None

    def test_text_content_indices(self) -> None:
        body = fragment("<p:txBody><a:bodyPr/><a:p><a:r><a:t>Hi</a:t></a:r></a:p><a:p/></p:txBody>")
        elements = StyleReader().text_content(body, list_id="l")["textElements"]

        spans = [(e["startIndex"], e["endIndex"]) for e in elements]
        assert spans == [(0, 3), (0, 3), (3, 4), (3, 4)]
        assert [e["textRun"]["content"] for e in elements if "textRun" in e] == ["Hi\n", "\n"]

    def test_fills(self) -> None:
        reader = StyleReader()

        assert reader.fill(fragment("<p:spPr><a:noFill/></p:spPr>")) == {"propertyState": "NOT_RENDERED"}
        gradient = reader.fill(
            fragment('<p:spPr><a:gradFill><a:gsLst><a:gs pos="0"><a:srgbClr val="00FF00"/></a:gs></a:gsLst></a:gradFill></p:spPr>')
        )
        assert gradient == {"solidFill": {"color": {"rgbColor": {"red": 0.0, "green": 1.0, "blue": 0.0}}}}
        assert reader.fill(None) is None

    def test_outline_defaults(self) -> None:
        shape = fragment('<p:sp><p:spPr><a:ln><a:solidFill><a:srgbClr val="000000"/></a:solidFill></a:ln></p:spPr></p:sp>')
        outline = StyleReader().outline(shape)

        assert outline["weight"] == {"magnitude": 12700.0, "unit": "EMU"}
        assert outline["dashStyle"] == "SOLID"


class TestThemeParser:
    def test_color_values(self) -> None:
        parser = ThemeParser()

        assert parser.color_value(fragment('<a:dk1><a:sysClr val="windowText" lastClr="1A1A1A"/></a:dk1>')) == "#1a1a1a"
        assert parser.color_value(fragment('<a:lt1><a:sysClr val="window"/></a:lt1>')) == "#ffffff"
        assert parser.color_value(fragment('<a:accent1><a:hslClr hue="0" sat="100000" lum="50000"/></a:accent1>')) == (
            "#ff0000"
        )

    def test_missing_theme(self) -> None:
        parser = ThemeParser()
        assert parser.color_scheme(None) == []
        assert parser.font_scheme(None) == {}


class TestTransformParser:
    def test_group_matrix_maps_child_space(self) -> None:
        values = Xfrm(x=100, y=200, cx=1000, cy=500, ch_x=50, ch_y=0, ch_cx=500, ch_cy=500)
        matrix = TransformParser().group_matrix(values)

        assert (matrix.scale_x, matrix.scale_y) == (2.0, 1.0)
        assert matrix.apply(50, 0) == (100.0, 200.0)
        assert matrix.apply(550, 500) == (1100.0, 700.0)

    def test_rotation_units(self) -> None:
        xfrm_parent = fragment(
            '<p:sp><p:spPr><a:xfrm rot="5400000" flipH="1"><a:off x="10" y="20"/><a:ext cx="30" cy="40"/></a:xfrm></p:spPr></p:sp>'
        )

        class Shape:
            _element = xfrm_parent

        values = TransformParser().read(Shape())
        assert values.rotation == 90.0
        assert values.flip_h is True
        assert (values.x, values.y, values.cx, values.cy) == (10.0, 20.0, 30.0, 40.0)
