"""Entry points wiring the pipelines to a presentation service.

The service itself sits behind two small interfaces so the pipelines never
touch transport or credentials: a ``PresentationReader`` that fetches the
presentation tree, and a ``BatchApplier`` that creates a presentation and
applies mutation batches.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Optional, Union

from slidecodec.config import Settings, get_settings
from slidecodec.dsl.schema import DeckDocument
from slidecodec.errors import SlideCodecError
from slidecodec.extraction import ExtractionPipeline, RasterFallback
from slidecodec.generation import GenerationPipeline
from slidecodec.generation.validation import validate_document

logger = logging.getLogger(__name__)

PRESENTATION_URL_RE = re.compile(r"/d/([a-zA-Z0-9_-]+)")
EDIT_URL = "https://docs.google.com/presentation/d/{presentation_id}/edit"


class PresentationReader(ABC):
    """Fetches a presentation as the service's JSON tree."""

    @abstractmethod
    def get_presentation(self, presentation_id: str) -> dict[str, Any]:
        ...


class BatchApplier(ABC):
    """Creates presentations and applies batched mutation requests."""

    @abstractmethod
    def create_presentation(self, title: str) -> tuple[str, str]:
        """Create an empty presentation.

        Returns:
            Tuple of (presentation_id, first_slide_id). The first slide must
            be empty; generation reuses it for slide 0.
        """

    @abstractmethod
    def batch_update(self, presentation_id: str, requests: list[dict[str, Any]]) -> dict[str, Any]:
        """Apply one batch of requests atomically and return the service reply."""

    @abstractmethod
    def set_speaker_notes(self, presentation_id: str, slide_id: str, text: str) -> None:
        """Replace the speaker notes of a slide."""


def presentation_id_from(id_or_url: str) -> str:
    """Reduce a presentation URL to its id; plain ids pass through."""
    value = (id_or_url or "").strip()
    match = PRESENTATION_URL_RE.search(value)
    if match:
        return match.group(1)
    return value


def import_presentation(
    reader: PresentationReader,
    id_or_url: str,
    raw_mode: bool = False,
    settings: Optional[Settings] = None,
    raster_fallback: Optional[RasterFallback] = None,
) -> dict[str, Any]:
    """Extract a presentation to canonical JSON.

    Returns:
        ``{"status": "success", "json": {...}, "issues": [...]}`` or
        ``{"status": "error", "message": ...}``.
    """
    try:
        presentation_id = presentation_id_from(id_or_url)
        if not presentation_id:
            raise ValueError("No presentation id provided")

        logger.info(f"Importing presentation {presentation_id} (raw_mode={raw_mode})")
        tree = reader.get_presentation(presentation_id)
        pipeline = ExtractionPipeline(settings or get_settings(), raw_mode=raw_mode, raster_fallback=raster_fallback)
        result = pipeline.run(tree)
        return {
            "status": "success",
            "json": result.to_json_dict(),
            "issues": [issue.model_dump(mode="json") for issue in result.issues],
        }
    except Exception as exc:
        logger.exception(f"Import failed for {id_or_url}")
        return {"status": "error", "message": str(exc)}


def generate_presentation(
    applier: BatchApplier,
    document: Union[DeckDocument, dict[str, Any]],
    settings: Optional[Settings] = None,
) -> dict[str, Any]:
    """Create a new presentation from a canonical document.

    Main requests are applied first, then line connections, then speaker
    notes.

    Returns:
        ``{"status": "success", "presentationId", "url", "slideCount",
        "issues"}`` or ``{"status": "error", "message": ...}``.
    """
    settings = settings or get_settings()
    try:
        document = validate_document(document, settings)
        presentation_id, first_slide_id = applier.create_presentation(document.config.title)
        logger.info(f"Created presentation {presentation_id} for {len(document.slides)} slides")

        result = GenerationPipeline(settings).run(document, first_slide_id)
        if result.requests:
            applier.batch_update(presentation_id, [op.to_request() for op in result.requests])
        if result.connection_requests:
            logger.info(f"Applying {len(result.connection_requests)} line connections")
            applier.batch_update(presentation_id, [op.to_request() for op in result.connection_requests])
        for note in result.speaker_notes:
            applier.set_speaker_notes(presentation_id, note.slide_id, note.text)

        return {
            "status": "success",
            "presentationId": presentation_id,
            "url": EDIT_URL.format(presentation_id=presentation_id),
            "slideCount": len(document.slides),
            "issues": [issue.model_dump(mode="json") for issue in result.issues],
        }
    except (SlideCodecError, ValueError) as exc:
        logger.error(f"Generation rejected: {exc}")
        return {"status": "error", "message": str(exc)}
    except Exception as exc:
        logger.exception("Generation failed")
        return {"status": "error", "message": str(exc)}
