"""Validate and normalize a canonical document before generation.

Hand-written documents use a few alternative property names and may exceed
the limits the batch service accepts. This module applies the aliases,
enforces slide/element limits, clamps sizes and font sizes, truncates
oversized text and normalizes hex colors. Elements of an unknown type are
turned into unsupported placeholders rather than failing the document.
"""

import logging
from typing import Any, Optional, Union

from pydantic import ValidationError

from slidecodec.config import Settings, get_settings
from slidecodec.dsl.schema import (
    ELEMENT_TYPES,
    UNKNOWN_TYPE_REASON,
    DeckDocument,
    Element,
    GroupElement,
    LineElement,
    Slide,
    TextRun,
)
from slidecodec.errors import DocumentValidationError
from slidecodec.theme.colors import normalize_color

logger = logging.getLogger(__name__)

ELEMENT_ALIASES = {
    "width": "w",
    "height": "h",
    "fontColor": "color",
    "backgroundColor": "fillColor",
}

SLIDE_ALIASES = {
    "backgroundColor": "background",
    "notes": "speakerNotes",
}

COLOR_FIELDS = ("color", "fill_color", "border_color")


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def apply_aliases(data: dict[str, Any]) -> dict[str, Any]:
    """Rename alias keys in a raw document dict (slides and nested elements)."""
    slides = data.get("slides")
    if not isinstance(slides, list):
        return data
    return {**data, "slides": [_alias_slide(slide) for slide in slides]}


def _alias_slide(slide: Any) -> Any:
    if not isinstance(slide, dict):
        return slide
    slide = _rename(slide, SLIDE_ALIASES)
    elements = slide.get("elements")
    if isinstance(elements, list):
        slide["elements"] = [_alias_element(element) for element in elements]
    return slide


def _alias_element(element: Any) -> Any:
    if not isinstance(element, dict):
        return element
    element = _rename(element, ELEMENT_ALIASES)
    kind = element.get("type")
    if not isinstance(kind, str) or kind not in ELEMENT_TYPES:
        logger.warning(f"Element {element.get('objectId')} has unknown type {kind!r}; it will be skipped")
        element.update(
            type="unsupported",
            sourceKind=kind if isinstance(kind, str) else None,
            reason=UNKNOWN_TYPE_REASON,
        )
    children = element.get("elements")
    if element.get("type") == "group" and isinstance(children, list):
        element["elements"] = [_alias_element(child) for child in children]
    return element


def _rename(data: dict[str, Any], aliases: dict[str, str]) -> dict[str, Any]:
    renamed = dict(data)
    for alias, name in aliases.items():
        if alias in renamed and name not in renamed:
            renamed[name] = renamed.pop(alias)
    return renamed


def validate_document(
    document: Union[DeckDocument, dict[str, Any]],
    settings: Optional[Settings] = None,
) -> DeckDocument:
    """Parse, check limits and normalize a document.

    Args:
        document: A parsed document or raw canonical JSON.
        settings: Limits to enforce; defaults to the cached settings.

    Returns:
        The normalized document.

    Raises:
        DocumentValidationError: If the document is structurally invalid, has
            no slides, or exceeds the slide/element limits.
    """
    settings = settings or get_settings()

    if not isinstance(document, DeckDocument):
        if not isinstance(document, dict):
            raise DocumentValidationError("Document must be a JSON object")
        if not isinstance(document.get("slides"), list):
            raise DocumentValidationError("Document must contain a 'slides' array")
        try:
            document = DeckDocument.model_validate(apply_aliases(document))
        except ValidationError as exc:
            raise DocumentValidationError(f"Invalid document: {exc}") from exc

    if not document.slides:
        raise DocumentValidationError("Document contains no slides")
    if len(document.slides) > settings.max_slides:
        raise DocumentValidationError(
            f"Too many slides: {len(document.slides)} (max {settings.max_slides})"
        )
    for index, slide in enumerate(document.slides):
        if len(slide.elements) > settings.max_elements_per_slide:
            raise DocumentValidationError(
                f"Slide {index} has too many elements: {len(slide.elements)} "
                f"(max {settings.max_elements_per_slide})"
            )

    slides = [_normalize_slide(slide, settings) for slide in document.slides]
    return document.model_copy(update={"slides": slides})


def _normalize_slide(slide: Slide, settings: Settings) -> Slide:
    update: dict[str, Any] = {"elements": [_normalize_element(element, settings) for element in slide.elements]}
    background = normalize_color(slide.background)
    if background is not None:
        update["background"] = background
    return slide.model_copy(update=update)


def _normalize_element(element: Element, settings: Settings) -> Element:
    update: dict[str, Any] = {}

    if not isinstance(element, LineElement):
        update["w"] = clamp(element.w, settings.min_dimension, settings.max_dimension)
        update["h"] = clamp(element.h, settings.min_dimension, settings.max_dimension)

    for field in COLOR_FIELDS:
        value = getattr(element, field, None)
        normalized = normalize_color(value)
        if normalized is not None:
            update[field] = normalized

    font_size = getattr(element, "font_size", None)
    if font_size is not None:
        update["font_size"] = clamp(font_size, settings.min_font_size, settings.max_font_size)

    text = getattr(element, "text", None)
    if isinstance(text, str) and len(text) > settings.max_text_length:
        logger.warning(
            f"Truncating text of {element.object_id} from {len(text)} to {settings.max_text_length} characters"
        )
        update["text"] = text[: settings.max_text_length]

    runs = getattr(element, "text_runs", None)
    if runs:
        update["text_runs"] = [_normalize_run(run, settings) for run in runs]

    if isinstance(element, GroupElement):
        update["elements"] = [_normalize_element(child, settings) for child in element.elements]

    return element.model_copy(update=update)


def _normalize_run(run: TextRun, settings: Settings) -> TextRun:
    update: dict[str, Any] = {}
    if run.font_size is not None:
        update["font_size"] = clamp(run.font_size, settings.min_font_size, settings.max_font_size)
    color = normalize_color(run.color)
    if color is not None:
        update["color"] = color
    return run.model_copy(update=update) if update else run
