"""Extraction pipeline: presentation tree -> canonical document."""

import logging
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from slidecodec.config import Settings, get_settings
from slidecodec.dsl.schema import DeckConfig, DeckDocument, Element, Slide, ThemeConfig
from slidecodec.dsl.source import Page, Presentation, ShapePayload
from slidecodec.errors import ElementIssue
from slidecodec.extraction.context import ExtractionContext, RasterFallback
from slidecodec.extraction.elements import ElementExtractor
from slidecodec.text.codec import TextStructureCodec
from slidecodec.theme.palettes import DEFAULT_FONTS

logger = logging.getLogger(__name__)


class ExtractionResult(BaseModel):
    """The canonical document plus everything recorded along the way."""

    model_config = ConfigDict(frozen=True)

    document: DeckDocument
    issues: list[ElementIssue] = Field(default_factory=list)

    def to_json_dict(self) -> dict[str, Any]:
        return self.document.to_json_dict()


class ExtractionPipeline:
    """Walks a presentation and produces the canonical JSON document.

    Each ``run`` builds a fresh ``ExtractionContext``; nothing is shared
    between calls.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        raw_mode: Optional[bool] = None,
        raster_fallback: Optional[RasterFallback] = None,
    ):
        self.settings = settings or get_settings()
        self.raw_mode = self.settings.raw_mode if raw_mode is None else raw_mode
        self.raster_fallback = raster_fallback

    def run(self, presentation: Union[Presentation, dict[str, Any]]) -> ExtractionResult:
        """Extract a presentation.

        Args:
            presentation: The consumed tree, parsed or as the service's JSON.

        Returns:
            ExtractionResult with the document and recorded issues.
        """
        if not isinstance(presentation, Presentation):
            presentation = Presentation.model_validate(presentation)

        logger.info(
            f"Extracting {presentation.presentation_id or 'presentation'}: "
            f"{len(presentation.slides)} slides, raw_mode={self.raw_mode}"
        )
        context = ExtractionContext(presentation, self.settings, self.raw_mode, self.raster_fallback)
        extractor = ElementExtractor(context)

        slides = [
            self._extract_slide(context, extractor, index, page)
            for index, page in enumerate(presentation.slides)
        ]

        document = DeckDocument(
            config=DeckConfig(
                title=presentation.title or f"input {presentation.presentation_id or ''}".strip(),
                raw_mode=self.raw_mode,
                source_presentation_id=presentation.presentation_id,
                theme=ThemeConfig(colors=context.resolver.document_colors(), fonts=dict(DEFAULT_FONTS)),
            ),
            slides=slides,
        )
        issues = context.all_issues()
        logger.info(
            f"Extraction complete: {len(slides)} slides, "
            f"{sum(len(slide.elements) for slide in slides)} elements, {len(issues)} issues"
        )
        return ExtractionResult(document=document, issues=issues)

    def extract(self, presentation: Union[Presentation, dict[str, Any]]) -> dict[str, Any]:
        """Extract straight to canonical JSON."""
        return self.run(presentation).to_json_dict()

    def _extract_slide(
        self,
        context: ExtractionContext,
        extractor: ElementExtractor,
        index: int,
        page: Page,
    ) -> Slide:
        scope = context.slide_scope(index, page)
        elements = extractor.extract_all(page.page_elements, scope)
        elements = [_with_z_index(element, z) for z, element in enumerate(elements)]
        logger.debug(f"Slide {index}: {len(elements)} elements")
        return Slide(
            background=context.backgrounds.resolve(page, index),
            speaker_notes=_speaker_notes(page),
            layout_object_id=scope.layout_id,
            elements=elements,
        )


def _with_z_index(element: Element, z_index: int) -> Element:
    return element.model_copy(update={"z_index": z_index})


def _speaker_notes(slide: Page) -> Optional[str]:
    """Text of the notes page's speaker-notes shape (BODY placeholder)."""
    props = slide.slide_properties
    notes_page = props.notes_page if props else None
    if notes_page is None:
        return None

    notes_id = notes_page.notes_properties.speaker_notes_object_id if notes_page.notes_properties else None
    for element in notes_page.page_elements:
        payload = element.payload
        if not isinstance(payload, ShapePayload) or payload.text is None:
            continue
        is_notes_shape = element.object_id == notes_id if notes_id else (
            payload.placeholder is not None and payload.placeholder.type == "BODY"
        )
        if is_notes_shape:
            text = TextStructureCodec.plain_text(payload.text.text_elements).strip()
            return text or None
    return None
