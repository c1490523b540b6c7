"""Generation: canonical document -> mutation operations."""

from slidecodec.generation.builders import BuildResult, ElementBuilder
from slidecodec.generation.context import GenerationContext, IdFactory
from slidecodec.generation.pipeline import GenerationPipeline, GenerationResult, SpeakerNote
from slidecodec.generation.validation import validate_document

__all__ = [
    "BuildResult",
    "ElementBuilder",
    "GenerationContext",
    "GenerationPipeline",
    "GenerationResult",
    "IdFactory",
    "SpeakerNote",
    "validate_document",
]
