"""Tests for decoding marker/run streams and encoding runs into operations."""

from typing import Any

import pytest

from slidecodec.config import Settings
from slidecodec.dsl.operations import (
    CellLocation,
    CreateParagraphBullets,
    DeleteParagraphBullets,
    InsertText,
    UpdateParagraphStyle,
    UpdateTextStyle,
)
from slidecodec.dsl.schema import Bullet, Link, ParagraphStyle, TextRun
from slidecodec.dsl.source import TextElementSource
from slidecodec.errors import IndexMismatchError
from slidecodec.text.codec import (
    RunDefaults,
    TextStructureCodec,
    clean_text,
    sanitize_link,
)
from slidecodec.theme.resolver import ColorResolver
from slidecodec.units import text_length


def stream(*items: dict[str, Any]) -> list[TextElementSource]:
    return [TextElementSource.model_validate(item) for item in items]


def marker(bullet: Any = None, **style: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"style": style}
    if bullet is not None:
        body["bullet"] = bullet
    return {"paragraphMarker": body}


def run(content: str, **style: Any) -> dict[str, Any]:
    return {"textRun": {"content": content, "style": style}}


@pytest.fixture
def codec(settings: Settings) -> TextStructureCodec:
    """Codec with an empty resolver (hex colors and defaults only)."""
    return TextStructureCodec(ColorResolver(), settings=settings)


class TestDecode:
    """Tests for the marker/run state machine."""

    def test_marker_styles_the_paragraph_that_follows(self, codec: TextStructureCodec) -> None:
        decoded = codec.decode(
            stream(
                marker(),
                run("Header\n"),
                marker(bullet={"listId": "L1"}),
                run("Item\n"),
            )
        )

        assert [r.text for r in decoded.runs] == ["Header\n", "Item"]
        assert decoded.runs[0].bullet is None
        assert decoded.runs[1].bullet is not None
        assert decoded.runs[1].bullet.list_id == "L1"
        assert decoded.plain_text == "Header\nItem"
        assert len(decoded.paragraphs) == 2

    def test_runs_before_any_marker_default_to_left_without_bullet(self, codec: TextStructureCodec) -> None:
        decoded = codec.decode(stream(run("Loose text\n")))

        assert decoded.runs[0].text == "Loose text"
        assert decoded.runs[0].bullet is None
        assert decoded.runs[0].paragraph_style.align == "left"

    def test_every_run_carries_its_paragraph_style(self, codec: TextStructureCodec) -> None:
        decoded = codec.decode(
            stream(
                marker(alignment="CENTER"),
                run("Bold ", bold=True),
                run("plain\n"),
            )
        )
        assert [r.paragraph_style.align for r in decoded.runs] == ["center", "center"]
        assert decoded.runs[0].bold is True

    def test_trailing_newline_only_run_is_dropped(self, codec: TextStructureCodec) -> None:
        decoded = codec.decode(stream(marker(), run("Title", bold=True), run("\n")))
        assert [r.text for r in decoded.runs] == ["Title"]
        assert decoded.plain_text == "Title"

    def test_missing_font_size_is_filled_from_neighbour(self, codec: TextStructureCodec) -> None:
        decoded = codec.decode(
            stream(
                marker(),
                run("Big ", fontSize={"magnitude": 24, "unit": "PT"}),
                run("inherit\n"),
            )
        )
        assert [r.font_size for r in decoded.runs] == [24.0, 24.0]

    def test_run_colors_resolve_through_the_resolver(self, codec: TextStructureCodec) -> None:
        decoded = codec.decode(
            stream(
                marker(),
                run("Red\n", foregroundColor={"opaqueColor": {"rgbColor": {"red": 1}}}),
            )
        )
        assert decoded.runs[0].color == "#ff0000"

    def test_non_bullet_paragraph_drops_inherited_hanging_indent(self, codec: TextStructureCodec) -> None:
        decoded = codec.decode(
            stream(
                marker(
                    bullet={"listId": "L1"},
                    indentStart={"magnitude": 18, "unit": "PT"},
                    indentFirstLine={"magnitude": 0, "unit": "PT"},
                ),
                run("Point\n"),
                marker(),
                run("After\n"),
            )
        )
        bulleted, plain = decoded.runs
        assert bulleted.paragraph_style.indent_first_line == 0
        assert plain.paragraph_style.indent_start == 18
        assert plain.paragraph_style.indent_first_line == 18

    def test_links_are_kept(self, codec: TextStructureCodec) -> None:
        decoded = codec.decode(stream(marker(), run("site\n", link={"url": "https://example.com"})))
        assert decoded.runs[0].link == Link(url="https://example.com")

    def test_plain_text_concatenates_runs(self) -> None:
        elements = stream(marker(), run("Speaker "), run("notes\n"))
        assert TextStructureCodec.plain_text(elements) == "Speaker notes\n"


class TestEncode:
    """Tests for runs -> ordered operations."""

    @pytest.fixture
    def header_item_runs(self, codec: TextStructureCodec) -> list[TextRun]:
        return codec.decode(
            stream(
                marker(),
                run("Header\n", fontSize={"magnitude": 28, "unit": "PT"}),
                marker(bullet={"listId": "L1"}),
                run("Item\n", fontSize={"magnitude": 14, "unit": "PT"}),
            )
        ).runs

    def test_operation_order(self, codec: TextStructureCodec, header_item_runs: list[TextRun]) -> None:
        operations = codec.encode("box", header_item_runs)

        assert [type(op) for op in operations] == [
            InsertText,
            UpdateTextStyle,
            UpdateTextStyle,
            UpdateTextStyle,
            CreateParagraphBullets,
            DeleteParagraphBullets,
            UpdateParagraphStyle,
            UpdateParagraphStyle,
        ]

    def test_ranges_follow_run_boundaries(self, codec: TextStructureCodec, header_item_runs: list[TextRun]) -> None:
        operations = codec.encode("box", header_item_runs)
        insert, header_style, item_style, trailing, create, delete = operations[:6]

        assert insert.text == "Header\nItem"
        assert (header_style.text_range.start_index, header_style.text_range.end_index) == (0, 7)
        assert (item_style.text_range.start_index, item_style.text_range.end_index) == (7, 11)
        assert (create.text_range.start_index, create.text_range.end_index) == (7, 11)
        assert (delete.text_range.start_index, delete.text_range.end_index) == (0, 7)

    def test_trailing_character_gets_last_run_font(
        self, codec: TextStructureCodec, header_item_runs: list[TextRun]
    ) -> None:
        trailing = codec.encode("box", header_item_runs)[3]

        assert (trailing.text_range.start_index, trailing.text_range.end_index) == (11, 12)
        assert trailing.style.font_size == 14
        assert trailing.fields == ["fontSize", "fontFamily"]

    def test_ranges_never_exceed_inserted_length(
        self, codec: TextStructureCodec, header_item_runs: list[TextRun]
    ) -> None:
        operations = codec.encode("box", header_item_runs)
        total = text_length(operations[0].text)
        trailing = operations[3]

        for operation in operations[1:]:
            if operation is trailing:
                continue
            assert operation.text_range.end_index <= total

    def test_round_trip_keeps_text_and_paragraph_offsets(
        self, codec: TextStructureCodec, header_item_runs: list[TextRun]
    ) -> None:
        operations = codec.encode("box", header_item_runs)
        paragraph_starts = sorted(
            op.text_range.start_index
            for op in operations
            if isinstance(op, (CreateParagraphBullets, DeleteParagraphBullets))
        )
        assert operations[0].text == "Header\nItem"
        assert paragraph_starts == [0, len("Header\n")]

    def test_indices_count_utf16_units(self, codec: TextStructureCodec) -> None:
        runs = [TextRun(text="\U0001f600"), TextRun(text=" hi", bold=True)]
        operations = codec.encode("box", runs)
        styles = [op for op in operations if isinstance(op, UpdateTextStyle)]

        assert [(s.text_range.start_index, s.text_range.end_index) for s in styles] == [(0, 2), (2, 5), (5, 6)]

    def test_single_run_has_no_trailing_style(self, codec: TextStructureCodec) -> None:
        runs = [TextRun(text="One", bullet=Bullet(list_id="L1"))]
        operations = codec.encode("box", runs)

        styles = [op for op in operations if isinstance(op, UpdateTextStyle)]
        assert len(styles) == 1
        assert isinstance(operations[-1], UpdateParagraphStyle) is False
        assert any(isinstance(op, CreateParagraphBullets) for op in operations)

    def test_glyphless_bullet_without_list_is_deleted(self, codec: TextStructureCodec) -> None:
        runs = [TextRun(text="A\n", bullet=Bullet()), TextRun(text="B")]
        operations = codec.encode("box", runs)

        assert not any(isinstance(op, CreateParagraphBullets) for op in operations)
        assert sum(isinstance(op, DeleteParagraphBullets) for op in operations) == 2

    def test_defaults_fill_unset_run_style(self, codec: TextStructureCodec) -> None:
        runs = [TextRun(text="a"), TextRun(text="b")]
        defaults = RunDefaults(font_size=20, font_family="Lato", color="#112233", bold=True)
        style = codec.encode("box", runs, defaults)[1].style

        assert style.font_size == 20
        assert style.font_family == "Lato"
        assert style.foreground_color == "#112233"
        assert style.bold is True

    def test_cell_location_is_carried(self, codec: TextStructureCodec) -> None:
        location = CellLocation(row_index=1, column_index=2)
        operations = codec.encode("table", [TextRun(text="a"), TextRun(text="b")], cell_location=location)

        assert all(op.cell_location == location for op in operations)
        assert operations[0].to_request()["insertText"]["cellLocation"] == {"rowIndex": 1, "columnIndex": 2}

    def test_paragraph_style_request_json(self, codec: TextStructureCodec) -> None:
        runs = [
            TextRun(text="Centered\n", paragraph_style=ParagraphStyle(align="center", space_above=6)),
            TextRun(text="Next"),
        ]
        operations = codec.encode("box", runs)
        paragraph = next(op for op in operations if isinstance(op, UpdateParagraphStyle))
        body = paragraph.to_request()["updateParagraphStyle"]

        assert body["style"]["alignment"] == "CENTER"
        assert body["style"]["spaceAbove"] == {"magnitude": 6, "unit": "PT"}
        assert body["fields"] == "alignment,spaceAbove"


class TestEncodePlain:
    """Tests for the single-style path."""

    def test_plain_text_path(self, codec: TextStructureCodec) -> None:
        operations = codec.encode_content("box", "Hello", None, RunDefaults(font_size=30), "center")

        assert [type(op) for op in operations] == [InsertText, UpdateTextStyle, UpdateParagraphStyle]
        assert operations[1].text_range.type == "ALL"
        assert operations[1].style.font_size == 30
        assert operations[2].style.alignment == "CENTER"

    def test_unsafe_characters_are_removed(self, codec: TextStructureCodec) -> None:
        operations = codec.encode_plain("box", "A\u200bB\x07C")
        assert operations[0].text == "ABC"

    def test_empty_text_emits_nothing(self, codec: TextStructureCodec) -> None:
        assert codec.encode_plain("box", "\u200b") == []

    def test_single_plain_run_uses_plain_path(self, codec: TextStructureCodec) -> None:
        operations = codec.encode_content("box", "Hi", [TextRun(text="Hi")])
        assert operations[1].text_range.type == "ALL"


class TestHelpers:
    """Tests for link sanitizing and the mismatch error."""

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("example.com", "https://example.com"),
            ("https://example.com/a", "https://example.com/a"),
            ("mailto:team@example.com", "mailto:team@example.com"),
            ("localhost", None),
            ("  ", None),
            (None, None),
        ],
    )
    def test_sanitize_link(self, url: Any, expected: Any) -> None:
        assert sanitize_link(url) == expected

    def test_clean_text_keeps_newlines(self) -> None:
        assert clean_text("a\nb\ufeff") == "a\nb"

    def test_index_mismatch_message(self) -> None:
        error = IndexMismatchError("obj_s0_e1", 10, 12, run_index=3)
        assert "obj_s0_e1" in str(error)
        assert "run 3" in str(error)
        assert error.expected == 10
        assert error.actual == 12
