"""Generation pipeline: canonical document -> ordered mutation operations."""

import logging
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from slidecodec.config import Settings, get_settings
from slidecodec.dsl.operations import CreateSlide, Operation, UpdateLineProperties, UpdatePageProperties
from slidecodec.dsl.schema import DeckDocument, LineConnection, Slide
from slidecodec.errors import ElementIssue
from slidecodec.generation.builders import ElementBuilder, PendingConnection
from slidecodec.generation.context import GenerationContext
from slidecodec.generation.validation import validate_document
from slidecodec.theme.colors import is_sentinel, normalize_color

logger = logging.getLogger(__name__)


class SpeakerNote(BaseModel):
    """Notes text to write once the slide (and its notes page) exists."""

    model_config = ConfigDict(frozen=True)

    slide_index: int
    slide_id: str
    text: str


class GenerationResult(BaseModel):
    """Operations for one document.

    ``requests`` create and style everything; ``connection_requests`` attach
    line endpoints and must be applied after ``requests``.
    """

    model_config = ConfigDict(frozen=True)

    requests: list[Operation] = Field(default_factory=list)
    connection_requests: list[Operation] = Field(default_factory=list)
    speaker_notes: list[SpeakerNote] = Field(default_factory=list)
    issues: list[ElementIssue] = Field(default_factory=list)

    def to_requests(self) -> list[dict[str, Any]]:
        """Batch request JSON, main operations first."""
        return [operation.to_request() for operation in [*self.requests, *self.connection_requests]]


class GenerationPipeline:
    """Turns a canonical document into mutation operations.

    The first slide reuses the presentation's existing slide; every later
    slide is created blank. Elements are emitted in ``zIndex`` order.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def run(
        self,
        document: Union[DeckDocument, dict[str, Any]],
        first_slide_id: str,
    ) -> GenerationResult:
        """Generate operations for a document.

        Args:
            document: Parsed document or raw canonical JSON.
            first_slide_id: Object id of the slide a new presentation starts with.

        Returns:
            GenerationResult with requests, deferred connections, notes and issues.

        Raises:
            DocumentValidationError: If the document fails validation.
        """
        document = validate_document(document, self.settings)
        context = GenerationContext(document, self.settings)
        builder = ElementBuilder(context)

        requests: list[Operation] = []
        connection_requests: list[Operation] = []
        speaker_notes: list[SpeakerNote] = []

        for slide_index, slide in enumerate(document.slides):
            slide_id = first_slide_id if slide_index == 0 else context.ids.slide(slide_index)
            if slide_index > 0:
                requests.append(CreateSlide(object_id=slide_id, insertion_index=slide_index))

            background = self._background(context, slide, slide_id)
            if background is not None:
                requests.append(background)

            context.id_map = {}
            connections: list[PendingConnection] = []
            ordered = sorted(slide.elements, key=lambda element: element.z_index or 0)
            for position, element in enumerate(ordered):
                result = builder.build(element, slide_id, slide_index, str(position))
                requests.extend(result.operations)
                connections.extend(result.connections)

            connection_requests.extend(self._connections(context, connections))

            if slide.speaker_notes and slide.speaker_notes.strip():
                speaker_notes.append(
                    SpeakerNote(slide_index=slide_index, slide_id=slide_id, text=slide.speaker_notes)
                )

        issues = context.all_issues()
        logger.info(
            f"Generated {len(requests)} requests, {len(connection_requests)} connection requests "
            f"for {len(document.slides)} slides ({len(issues)} issues)"
        )
        return GenerationResult(
            requests=requests,
            connection_requests=connection_requests,
            speaker_notes=speaker_notes,
            issues=issues,
        )

    def _background(
        self,
        context: GenerationContext,
        slide: Slide,
        slide_id: str,
    ) -> Optional[UpdatePageProperties]:
        if slide.background_image:
            return UpdatePageProperties(object_id=slide_id, background_image_url=slide.background_image)
        if not slide.background or is_sentinel(slide.background):
            return None
        color = normalize_color(context.resolver.resolve(slide.background))
        if color is None:
            return None
        return UpdatePageProperties(object_id=slide_id, background_color=color)

    def _connections(
        self,
        context: GenerationContext,
        pending: list[PendingConnection],
    ) -> list[Operation]:
        operations: list[Operation] = []
        for connection in pending:
            properties: dict[str, Any] = {}
            if connection.start is not None:
                properties["startConnection"] = _connection(context, connection.start)
            if connection.end is not None:
                properties["endConnection"] = _connection(context, connection.end)
            if properties:
                operations.append(UpdateLineProperties(object_id=connection.line_id, line_properties=properties))
        return operations


def _connection(context: GenerationContext, connection: LineConnection) -> dict[str, Any]:
    return {
        "connectedObjectId": context.id_map.get(connection.object_id, connection.object_id),
        "connectionSiteIndex": connection.site,
    }
