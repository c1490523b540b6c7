"""Per-invocation extraction state.

Everything that would otherwise be a module-level cache (theme maps,
placeholder index, background index, resolved colors) hangs off one
``ExtractionContext`` built at the start of a run and dropped at the end.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from slidecodec.config import Settings
from slidecodec.dsl.schema import ElementGeometry
from slidecodec.dsl.source import Page, PageElement, Presentation
from slidecodec.errors import ElementIssue, IssueKind
from slidecodec.text.codec import TextStructureCodec
from slidecodec.theme.background import BackgroundResolver
from slidecodec.theme.placeholders import PlaceholderIndex
from slidecodec.theme.resolver import ColorResolver

logger = logging.getLogger(__name__)


class RasterFallback(ABC):
    """Renders an element with no vector reconstruction to an image."""

    @abstractmethod
    def rasterize(self, element: PageElement, slide_index: int, geometry: ElementGeometry) -> Optional[str]:
        """Return an image URL for the element, or None if it cannot be rendered."""


@dataclass
class SlideScope:
    """The slide currently being walked."""

    index: int
    page: Page
    layout_id: Optional[str]
    master_id: Optional[str]
    codec: TextStructureCodec


class ExtractionContext:
    """Caches and diagnostics for one extraction call."""

    def __init__(
        self,
        presentation: Presentation,
        settings: Settings,
        raw_mode: bool,
        raster_fallback: Optional[RasterFallback] = None,
    ):
        self.presentation = presentation
        self.settings = settings
        self.raw_mode = raw_mode
        self.raster_fallback = raster_fallback
        self.resolver = ColorResolver.from_presentation(presentation)
        self.placeholders = PlaceholderIndex(presentation, raw_mode=raw_mode)
        self.backgrounds = BackgroundResolver(presentation, self.resolver, settings)
        self.issues: list[ElementIssue] = []

    def slide_scope(self, index: int, slide: Page) -> SlideScope:
        props = slide.slide_properties
        master = self.presentation.master_for_slide(slide)
        return SlideScope(
            index=index,
            page=slide,
            layout_id=props.layout_object_id if props else None,
            master_id=master.object_id if master else None,
            codec=TextStructureCodec(self.resolver, slide_index=index, settings=self.settings),
        )

    def record(
        self,
        kind: IssueKind,
        slide_index: Optional[int],
        object_id: Optional[str],
        detail: str,
    ) -> None:
        logger.warning(f"{kind.value} on slide {slide_index} element {object_id}: {detail}")
        self.issues.append(
            ElementIssue(kind=kind, slide_index=slide_index, object_id=object_id, detail=detail)
        )

    def all_issues(self) -> list[ElementIssue]:
        return [*self.issues, *self.resolver.issues]
