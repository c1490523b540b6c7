"""Text structure codec.

Decodes the service's flat stream of paragraph markers and text runs into
paragraphs of styled runs, and encodes runs back into index-exact mutation
operations.

A paragraph marker describes the paragraph that *follows* it::

    [marker M1, run "Header\\n", marker M2, run "Item\\n"]

decodes to "Header\\n" styled by M1 and "Item\\n" styled by M2. Every run
carries its paragraph's style and bullet so runs can be emitted one by one.

All indices are UTF-16 code units, the unit the mutation API counts in.
"""

import logging
import re
from typing import Any, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from slidecodec.config import Settings, get_settings
from slidecodec.dsl.operations import (
    CellLocation,
    CreateParagraphBullets,
    DeleteParagraphBullets,
    InsertText,
    Operation,
    ParagraphStyleSpec,
    TextRange,
    TextStyle,
    UpdateParagraphStyle,
    UpdateTextStyle,
)
from slidecodec.dsl.schema import Bullet, Link, ListItem, ParagraphStyle, TextRun
from slidecodec.dsl.source import (
    Dimension,
    ParagraphMarkerSource,
    TextElementSource,
    TextRunSource,
)
from slidecodec.errors import IndexMismatchError
from slidecodec.theme.colors import normalize_color
from slidecodec.theme.fonts import ThemeFonts
from slidecodec.theme.resolver import ColorResolver
from slidecodec.units import text_length

logger = logging.getLogger(__name__)

# Service alignment enum <-> document alignment
ALIGNMENT_TO_DOCUMENT = {
    "START": "left",
    "CENTER": "center",
    "END": "right",
    "JUSTIFIED": "justify",
}
ALIGNMENT_TO_API = {name: enum for enum, name in ALIGNMENT_TO_DOCUMENT.items()}

# Short list style names -> bullet presets; full preset names pass through
LIST_PRESETS = {
    "bullet": "BULLET_DISC_CIRCLE_SQUARE",
    "disc": "BULLET_DISC_CIRCLE_SQUARE",
    "arrow": "BULLET_ARROW_DIAMOND_DISC",
    "star": "BULLET_STAR_CIRCLE_SQUARE",
    "checkbox": "BULLET_CHECKBOX",
    "diamond": "BULLET_DIAMOND_CIRCLE_SQUARE",
    "number": "NUMBERED_DIGIT_ALPHA_ROMAN",
    "numbered": "NUMBERED_DIGIT_ALPHA_ROMAN",
    "alpha": "NUMBERED_UPPERALPHA_ALPHA_ROMAN",
    "roman": "NUMBERED_UPPERROMAN_UPPERALPHA_DIGIT",
}

# Characters the service rejects or silently drops on insert
_UNSAFE_CHARS = re.compile("[\x00-\x09\x0b\x0c\x0e-\x1f\x7f\u200b-\u200d\ufeff\ufffc\ufffd]")


def clean_text(text: str) -> str:
    return _UNSAFE_CHARS.sub("", text)


def sanitize_link(url: Optional[str]) -> Optional[str]:
    """Make a link URL acceptable to the service, or drop it.

    Scheme-less URLs get ``https://``; anything without a dot (other than
    ``mailto:``) is not a usable URL.
    """
    if not url:
        return None
    url = str(url).strip()
    if not url:
        return None
    if "://" not in url and not url.startswith("mailto:"):
        url = "https://" + url
    if "." in url or url.startswith("mailto:"):
        return url
    return None


def _pt(dimension: Optional[Dimension]) -> Optional[float]:
    return dimension.to_pt() if dimension is not None else None


def _font_size(dimension: Optional[Dimension]) -> Optional[float]:
    if dimension is None or not dimension.magnitude:
        return None
    size = dimension.magnitude if dimension.unit in (None, "PT") else dimension.to_pt()
    return round(size * 10) / 10


class DecodedText(BaseModel):
    """Result of decoding one marker/run stream."""

    model_config = ConfigDict(frozen=True)

    paragraphs: list[list[TextRun]] = Field(default_factory=list)
    runs: list[TextRun] = Field(default_factory=list)
    plain_text: str = ""

    @property
    def first_run(self) -> Optional[TextRun]:
        return self.runs[0] if self.runs else None

    @property
    def has_bullets(self) -> bool:
        return any(run.bullet is not None for run in self.runs)


class RunDefaults(BaseModel):
    """Element-level style used where a run leaves a property unset."""

    model_config = ConfigDict(frozen=True)

    font_size: Optional[float] = None
    font_family: Optional[str] = None
    color: Optional[str] = None
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    underline: Optional[bool] = None

    @classmethod
    def from_element(cls, element: Any) -> "RunDefaults":
        return cls(**{name: getattr(element, name, None) for name in cls.model_fields})


class _IndentState:
    """Indentation carried across paragraphs of one stream."""

    def __init__(self):
        self.indent_start: Optional[float] = None
        self.indent_first_line: Optional[float] = None


class TextStructureCodec:
    """Marker/run stream <-> styled runs <-> mutation operations."""

    def __init__(
        self,
        resolver: ColorResolver,
        slide_index: Optional[int] = None,
        fonts: Optional[ThemeFonts] = None,
        settings: Optional[Settings] = None,
    ):
        self.resolver = resolver
        self.slide_index = slide_index
        self.settings = settings or get_settings()
        self.fonts = fonts or ThemeFonts(None, self.settings.default_font_family)

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def decode(self, text_elements: Sequence[TextElementSource]) -> DecodedText:
        """Decode a flat marker/run stream.

        States: awaiting a marker, or collecting runs for the pending marker.
        A new marker flushes the collected runs with the *previous* pending
        marker (default left/no-bullet if none has been seen yet).

        Args:
            text_elements: The service's ``textElements`` list.

        Returns:
            DecodedText with paragraphs, the flat run list and plain text. A
            single trailing newline is removed from both.
        """
        indent = _IndentState()
        paragraphs: list[list[dict[str, Any]]] = []
        collecting: list[dict[str, Any]] = []
        pending: Optional[ParagraphMarkerSource] = None
        plain_parts: list[str] = []

        for element in text_elements:
            if element.paragraph_marker is not None:
                self._flush(collecting, pending, indent, paragraphs)
                pending = element.paragraph_marker
                collecting = []
            elif element.text_run is not None:
                content = element.text_run.content or ""
                if not content:
                    continue
                plain_parts.append(content)
                collecting.append(self._decode_run(element.text_run))
        self._flush(collecting, pending, indent, paragraphs)

        runs = [run for paragraph in paragraphs for run in paragraph]

        if runs and runs[-1]["text"].endswith("\n"):
            runs[-1]["text"] = runs[-1]["text"][:-1]
            if not runs[-1]["text"] and len(runs) > 1:
                dropped = runs.pop()
                paragraphs[-1] = [run for run in paragraphs[-1] if run is not dropped]
                if not paragraphs[-1]:
                    paragraphs.pop()

        _fill_missing(runs, "font_size")
        _fill_missing(runs, "font_family")

        plain_text = "".join(plain_parts)
        if plain_text.endswith("\n"):
            plain_text = plain_text[:-1]

        built = {id(run): TextRun(**run) for run in runs}
        return DecodedText(
            paragraphs=[[built[id(run)] for run in paragraph] for paragraph in paragraphs],
            runs=[built[id(run)] for run in runs],
            plain_text=plain_text,
        )

    def _flush(
        self,
        collecting: list[dict[str, Any]],
        marker: Optional[ParagraphMarkerSource],
        indent: _IndentState,
        paragraphs: list[list[dict[str, Any]]],
    ) -> None:
        if not collecting:
            return
        if marker is None:
            paragraph_style, bullet = ParagraphStyle(align="left"), None
        else:
            paragraph_style, bullet = self._paragraph_from_marker(marker, indent)
        for run in collecting:
            run["paragraph_style"] = paragraph_style
            run["bullet"] = bullet
        logger.debug(
            f"Paragraph {collecting[0]['text'][:20]!r}: bullet={'yes' if bullet else 'no'}"
        )
        paragraphs.append(list(collecting))

    def _paragraph_from_marker(
        self, marker: ParagraphMarkerSource, indent: _IndentState
    ) -> tuple[ParagraphStyle, Optional[Bullet]]:
        style = marker.style
        explicit_start = _pt(style.indent_start) if style else None
        explicit_first = _pt(style.indent_first_line) if style else None
        if explicit_start is not None:
            indent.indent_start = explicit_start
        if explicit_first is not None:
            indent.indent_first_line = explicit_first

        # A non-bullet paragraph must not keep an inherited hanging indent
        first_line = indent.indent_first_line
        if (
            marker.bullet is None
            and indent.indent_start is not None
            and first_line is not None
            and indent.indent_start > first_line
        ):
            first_line = indent.indent_start

        paragraph_style = ParagraphStyle(
            align=ALIGNMENT_TO_DOCUMENT.get(style.alignment if style else None, "left"),
            direction=style.direction if style else None,
            spacing_mode=style.spacing_mode if style else None,
            space_above=_pt(style.space_above) if style else None,
            space_below=_pt(style.space_below) if style else None,
            line_spacing=(style.line_spacing if style else None) or 100,
            indent_start=indent.indent_start,
            indent_first_line=first_line,
        )

        bullet = None
        if marker.bullet is not None:
            bullet = Bullet(
                list_id=marker.bullet.list_id,
                nesting_level=marker.bullet.nesting_level or 0,
                glyph=marker.bullet.glyph,
            )
        return paragraph_style, bullet

    def _decode_run(self, text_run: TextRunSource) -> dict[str, Any]:
        style = text_run.style
        run: dict[str, Any] = {"text": text_run.content or ""}
        if style is None:
            return run
        run["color"] = self.resolver.resolve_optional(style.foreground_color, self.slide_index)
        run["font_size"] = _font_size(style.font_size)
        run["font_family"] = style.font_family
        run["bold"] = style.bold
        run["italic"] = style.italic
        run["underline"] = style.underline or False
        run["strikethrough"] = style.strikethrough or False
        run["small_caps"] = style.small_caps or False
        run["baseline_offset"] = style.baseline_offset
        if style.link is not None and style.link.url:
            run["link"] = Link(url=style.link.url)
        return run

    @staticmethod
    def plain_text(text_elements: Sequence[TextElementSource]) -> str:
        """Raw concatenation of run contents (speaker notes)."""
        return "".join(
            element.text_run.content or ""
            for element in text_elements
            if element.text_run is not None
        )

    @staticmethod
    def first_paragraph_style(text_elements: Sequence[TextElementSource]) -> Optional[ParagraphStyle]:
        """Style of the first marker that carries one, lengths defaulting to 0."""
        for element in text_elements:
            marker = element.paragraph_marker
            if marker is None or marker.style is None:
                continue
            style = marker.style
            return ParagraphStyle(
                align=ALIGNMENT_TO_DOCUMENT.get(style.alignment, "left"),
                indent_start=_pt(style.indent_start) or 0.0,
                indent_first_line=_pt(style.indent_first_line) or 0.0,
                space_above=_pt(style.space_above) or 0.0,
                space_below=_pt(style.space_below) or 0.0,
                line_spacing=style.line_spacing or 100,
            )
        return None

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def encode(
        self,
        object_id: str,
        runs: Sequence[TextRun],
        defaults: Optional[RunDefaults] = None,
        cell_location: Optional[CellLocation] = None,
    ) -> list[Operation]:
        """Encode styled runs into ordered mutation operations.

        Emits one insert of the concatenated text, one style operation per
        run over its exact range, then bullet creates, bullet deletes and
        paragraph styles for paragraph-start runs, in that order. With more
        than one run the structural trailing character at ``total`` gets the
        last run's font.

        Raises:
            IndexMismatchError: If run ranges do not cover the inserted text
                exactly.
        """
        defaults = defaults or RunDefaults()
        text = "".join(run.text for run in runs)
        total = text_length(text)

        operations: list[Operation] = [
            InsertText(object_id=object_id, text=text, insertion_index=0, cell_location=cell_location)
        ]
        creates: list[Operation] = []
        deletes: list[Operation] = []
        paragraph_styles: list[Operation] = []

        index = 0
        previous_text: Optional[str] = None
        for run_index, run in enumerate(runs):
            length = text_length(run.text)
            if length == 0:
                continue
            start, end = index, index + length
            if end > total:
                raise IndexMismatchError(object_id, total, end, run_index)
            text_range = TextRange.fixed(start, end)

            style = self._run_style(run, defaults)
            if style.to_api()[1]:
                operations.append(
                    UpdateTextStyle(
                        object_id=object_id,
                        style=style,
                        text_range=text_range,
                        cell_location=cell_location,
                    )
                )

            is_paragraph_start = previous_text is None or previous_text.endswith("\n")
            if is_paragraph_start:
                if run.bullet is not None and run.bullet.is_renderable:
                    creates.append(
                        CreateParagraphBullets(
                            object_id=object_id,
                            text_range=text_range,
                            bullet_preset=self.settings.bullet_preset,
                            cell_location=cell_location,
                        )
                    )
                else:
                    deletes.append(
                        DeleteParagraphBullets(
                            object_id=object_id, text_range=text_range, cell_location=cell_location
                        )
                    )
                if run.paragraph_style is not None:
                    spec = paragraph_spec(run.paragraph_style)
                    if spec.to_api()[1]:
                        paragraph_styles.append(
                            UpdateParagraphStyle(
                                object_id=object_id,
                                style=spec,
                                text_range=text_range,
                                cell_location=cell_location,
                            )
                        )

            index = end
            previous_text = run.text

        if index != total:
            raise IndexMismatchError(object_id, total, index)

        if len(runs) > 1:
            last = runs[-1]
            operations.append(
                UpdateTextStyle(
                    object_id=object_id,
                    style=TextStyle(
                        font_size=last.font_size or defaults.font_size or self.settings.default_font_size,
                        font_family=self.fonts.resolve(last.font_family or defaults.font_family),
                    ),
                    text_range=TextRange.fixed(total, total + 1),
                    cell_location=cell_location,
                )
            )

        logger.debug(
            f"Encoded {object_id}: {total} units, {len(creates)} bullet creates, "
            f"{len(deletes)} bullet deletes, {len(paragraph_styles)} paragraph styles"
        )
        return operations + creates + deletes + paragraph_styles

    def encode_plain(
        self,
        object_id: str,
        text: str,
        defaults: Optional[RunDefaults] = None,
        align: Optional[str] = None,
        cell_location: Optional[CellLocation] = None,
    ) -> list[Operation]:
        """Single-style path: insert, style everything, align everything."""
        text = clean_text(text or "")
        if not text:
            return []
        return self._uniform(object_id, text, defaults or RunDefaults(), align, cell_location)

    def encode_list(
        self,
        object_id: str,
        items: Sequence[ListItem],
        defaults: Optional[RunDefaults] = None,
        align: Optional[str] = None,
        list_style: Optional[str] = None,
    ) -> list[Operation]:
        """Bullet list path: one paragraph per item, nesting by leading tabs.

        The service turns leading tabs into nesting levels when the bullets
        are created, so the bullet operation comes last.
        """
        lines = [
            "\t" * max(item.indent, 0) + clean_text(item.text).replace("\n", " ") for item in items
        ]
        if not any(line.strip() for line in lines):
            return []
        operations = self._uniform(object_id, "\n".join(lines), defaults or RunDefaults(), align, None)
        operations.append(
            CreateParagraphBullets(
                object_id=object_id,
                text_range=TextRange.all(),
                bullet_preset=list_preset(list_style, self.settings.bullet_preset),
            )
        )
        return operations

    def _uniform(
        self,
        object_id: str,
        text: str,
        defaults: RunDefaults,
        align: Optional[str],
        cell_location: Optional[CellLocation],
    ) -> list[Operation]:
        operations: list[Operation] = [
            InsertText(object_id=object_id, text=text, insertion_index=0, cell_location=cell_location)
        ]
        style = TextStyle(
            font_size=defaults.font_size or self.settings.default_font_size,
            font_family=self.fonts.resolve(defaults.font_family),
            foreground_color=self._text_color(defaults.color),
            bold=True if defaults.bold else None,
            italic=True if defaults.italic else None,
            underline=True if defaults.underline else None,
        )
        operations.append(
            UpdateTextStyle(
                object_id=object_id, style=style, text_range=TextRange.all(), cell_location=cell_location
            )
        )
        if align:
            operations.append(
                UpdateParagraphStyle(
                    object_id=object_id,
                    style=ParagraphStyleSpec(alignment=ALIGNMENT_TO_API.get(align, "START")),
                    text_range=TextRange.all(),
                    cell_location=cell_location,
                )
            )
        return operations

    def encode_content(
        self,
        object_id: str,
        text: str,
        runs: Optional[Sequence[TextRun]],
        defaults: Optional[RunDefaults] = None,
        align: Optional[str] = None,
        cell_location: Optional[CellLocation] = None,
    ) -> list[Operation]:
        """Per-run encoding when runs carry structure, else the plain path."""
        if runs and (len(runs) > 1 or any(run.bullet is not None for run in runs)):
            return self.encode(object_id, runs, defaults, cell_location)
        return self.encode_plain(object_id, text, defaults, align, cell_location)

    def _run_style(self, run: TextRun, defaults: RunDefaults) -> TextStyle:
        bold = run.bold
        if bold is None and defaults.bold:
            bold = True
        baseline = run.baseline_offset if run.baseline_offset and run.baseline_offset != "NONE" else None
        return TextStyle(
            font_size=run.font_size or defaults.font_size or self.settings.default_font_size,
            font_family=self.fonts.resolve(run.font_family or defaults.font_family),
            foreground_color=self._text_color(run.color or defaults.color),
            bold=bold,
            italic=run.italic,
            underline=run.underline,
            strikethrough=run.strikethrough,
            small_caps=run.small_caps,
            baseline_offset=baseline,
            link_url=sanitize_link(run.link.url) if run.link else None,
        )

    def _text_color(self, color: Optional[str]) -> Optional[str]:
        resolved = self.resolver.resolve(color or self.settings.default_text_color, self.slide_index)
        return normalize_color(resolved)


def list_preset(list_style: Optional[str], default: str) -> str:
    if not list_style:
        return default
    if list_style.upper() in LIST_PRESETS.values():
        return list_style.upper()
    return LIST_PRESETS.get(list_style.lower(), default)


def paragraph_spec(style: ParagraphStyle) -> ParagraphStyleSpec:
    return ParagraphStyleSpec(
        alignment=ALIGNMENT_TO_API.get(style.align, "START") if style.align else None,
        direction=style.direction,
        spacing_mode=style.spacing_mode,
        indent_start=style.indent_start,
        indent_first_line=style.indent_first_line,
        space_above=style.space_above,
        space_below=style.space_below,
        line_spacing=style.line_spacing,
    )


def _fill_missing(runs: list[dict[str, Any]], key: str) -> None:
    """Fill a missing style key from the nearest neighbour, forward then backward."""
    last = None
    for run in runs:
        if run.get(key) is None:
            if last is not None:
                run[key] = last
        else:
            last = run[key]
    last = None
    for run in reversed(runs):
        if run.get(key) is None:
            if last is not None:
                run[key] = last
        else:
            last = run[key]
