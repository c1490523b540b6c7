"""Slide background resolution.

Order: the slide's own page fill, then a full-bleed "background shape" on the
slide, then the layout's background, then the master's, then white. Layout
and master backgrounds are indexed once per invocation; their colors are
resolved per slide because theme fills depend on the slide's scheme chain.
"""

import logging
import math
from typing import Optional

from slidecodec.config import Settings, get_settings
from slidecodec.dsl.source import Fill, Page, PageElement, Presentation, ShapePayload
from slidecodec.geometry.transform import resolve_transform
from slidecodec.theme.resolver import ColorResolver
from slidecodec.units import DEFAULT_PAGE_HEIGHT_EMU, DEFAULT_PAGE_WIDTH_EMU

logger = logging.getLogger(__name__)

DEFAULT_BACKGROUND = "#ffffff"


class BackgroundResolver:
    """Resolves the effective background color of each slide."""

    def __init__(
        self,
        presentation: Presentation,
        resolver: ColorResolver,
        settings: Optional[Settings] = None,
    ):
        self.presentation = presentation
        self.resolver = resolver
        self.settings = settings or get_settings()

        page_size = presentation.page_size
        self.page_width = (page_size.width_emu if page_size else 0) or DEFAULT_PAGE_WIDTH_EMU
        self.page_height = (page_size.height_emu if page_size else 0) or DEFAULT_PAGE_HEIGHT_EMU

        self._index: dict[str, Fill] = {}
        for page in [*presentation.masters, *presentation.layouts]:
            fill = self._page_fill(page) or self._background_shape_fill(page)
            if fill is not None:
                self._index[page.object_id] = fill
        logger.debug(f"Background index built: {len(self._index)} pages")

    def is_background_shape(self, element: PageElement) -> bool:
        """A shape covering at least 90% of the page that starts near the origin."""
        if not isinstance(element.payload, ShapePayload) or element.size is None:
            return False
        matrix, _ = resolve_transform(element.transform)
        width = element.size.width_emu * math.hypot(matrix.scale_x, matrix.shear_y)
        height = element.size.height_emu * math.hypot(matrix.shear_x, matrix.scale_y)

        coverage = self.settings.background_coverage
        tolerance = self.settings.background_origin_tolerance
        covers = width >= self.page_width * coverage and height >= self.page_height * coverage
        near_origin = (
            abs(matrix.translate_x) < self.page_width * tolerance
            and abs(matrix.translate_y) < self.page_height * tolerance
        )
        return covers and near_origin

    def resolve(self, slide: Page, slide_index: int) -> str:
        """Return the slide's background as hex."""
        fill = self._page_fill(slide)
        if fill is not None:
            color = self.resolver.resolve_fill(fill, slide_index)
            if color != "transparent":
                return color

        fill = self._background_shape_fill(slide)
        if fill is not None:
            logger.debug(f"Slide {slide_index} background from full-bleed shape")
            return self.resolver.resolve_fill(fill, slide_index)

        props = slide.slide_properties
        layout_id = props.layout_object_id if props else None
        master = self.presentation.master_for_slide(slide)
        for page_id in (layout_id, master.object_id if master else None):
            if page_id and page_id in self._index:
                color = self.resolver.resolve_fill(self._index[page_id], slide_index)
                if color != "transparent":
                    return color

        return DEFAULT_BACKGROUND

    def _page_fill(self, page: Page) -> Optional[Fill]:
        props = page.page_properties
        if props is None or props.page_background_fill is None:
            return None
        fill = props.page_background_fill
        if fill.property_state in ("NOT_RENDERED", "INHERIT") or fill.solid_fill is None:
            return None
        return fill

    def _background_shape_fill(self, page: Page) -> Optional[Fill]:
        for element in page.page_elements:
            if not self.is_background_shape(element):
                continue
            props = element.payload.shape_properties
            fill = props.shape_background_fill if props else None
            if fill is not None and fill.rendered and fill.solid_fill is not None:
                return fill
        return None
