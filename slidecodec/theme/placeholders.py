"""Placeholder style inheritance.

An element without explicit text styling inherits from the matching
placeholder on its layout, then on its master, then from hardcoded defaults.
Raw mode skips both placeholder steps: explicit or default only.
"""

import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from slidecodec.dsl.source import Page, PageElement, Presentation, ShapePayload, TextStyleSource
from slidecodec.theme.colors import rgb_to_hex

logger = logging.getLogger(__name__)

INHERITABLE = ("font_size", "font_family", "color", "bold", "italic")

HARDCODED_DEFAULTS: dict[str, Any] = {
    "font_size": 12.0,
    "font_family": "Arial",
    "color": "#000000",
    "bold": False,
    "italic": False,
}


class PlaceholderStyle(BaseModel):
    """Text defaults carried by a placeholder's first run.

    ``color`` is a hex literal or a ``theme:X`` reference, resolved later
    against the slide that inherits it.
    """

    model_config = ConfigDict(frozen=True)

    font_size: Optional[float] = None
    font_family: Optional[str] = None
    color: Optional[str] = None
    bold: Optional[bool] = None
    italic: Optional[bool] = None


def first_run_style(element: PageElement) -> Optional[TextStyleSource]:
    payload = element.payload
    if not isinstance(payload, ShapePayload) or payload.text is None:
        return None
    for text_element in payload.text.text_elements:
        if text_element.text_run is not None:
            return text_element.text_run.style
    return None


def style_defaults(style: Optional[TextStyleSource]) -> PlaceholderStyle:
    """Read the inheritable properties of a run style."""
    if style is None:
        return PlaceholderStyle()
    color = None
    opaque = style.foreground_color.opaque_color if style.foreground_color else None
    if opaque is not None:
        if opaque.rgb_color is not None:
            color = rgb_to_hex(opaque.rgb_color)
        elif opaque.theme_color:
            color = "theme:" + opaque.theme_color
    return PlaceholderStyle(
        font_size=style.font_size.magnitude if style.font_size else None,
        font_family=style.font_family,
        color=color,
        bold=style.bold,
        italic=style.italic,
    )


class PlaceholderIndex:
    """Layout and master placeholder styles keyed by page id and placeholder type."""

    def __init__(self, presentation: Presentation, raw_mode: bool = False):
        self.raw_mode = raw_mode
        self._styles: dict[tuple[str, str], PlaceholderStyle] = {}
        for page in [*presentation.masters, *presentation.layouts]:
            self._index_page(page)
        logger.debug(f"Placeholder index built: {len(self._styles)} entries")

    def _index_page(self, page: Page) -> None:
        for element in page.page_elements:
            payload = element.payload
            if not isinstance(payload, ShapePayload) or payload.placeholder is None:
                continue
            if not payload.placeholder.type:
                continue
            self._styles[(page.object_id, payload.placeholder.type)] = style_defaults(first_run_style(element))

    def lookup(self, page_id: Optional[str], placeholder_type: str) -> Optional[PlaceholderStyle]:
        if not page_id:
            return None
        return self._styles.get((page_id, placeholder_type))

    def resolve(
        self,
        element: PageElement,
        prop: str,
        layout_id: Optional[str] = None,
        master_id: Optional[str] = None,
    ) -> Any:
        """Resolve one inheritable property for an element.

        Walks explicit -> layout placeholder -> master placeholder -> hardcoded
        default and stops at the first non-null value.

        Args:
            element: The slide element.
            prop: One of ``font_size``, ``font_family``, ``color``, ``bold``,
                ``italic``.
            layout_id: The slide's layout object id.
            master_id: The slide's master object id.

        Returns:
            The resolved value; ``color`` may still be a ``theme:X`` reference.
        """
        if prop not in INHERITABLE:
            raise ValueError(f"Not an inheritable property: {prop}")

        explicit = getattr(style_defaults(first_run_style(element)), prop)
        if explicit is not None:
            return explicit

        if not self.raw_mode:
            payload = element.payload
            placeholder = payload.placeholder if isinstance(payload, ShapePayload) else None
            if placeholder is not None and placeholder.type:
                for page_id in (layout_id, master_id):
                    style = self.lookup(page_id, placeholder.type)
                    if style is not None and getattr(style, prop) is not None:
                        return getattr(style, prop)

        return HARDCODED_DEFAULTS[prop]
