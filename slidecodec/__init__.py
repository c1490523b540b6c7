"""slidecodec - lossless slide deck extraction and generation.

Converts a presentation tree into a canonical JSON document and a canonical
document back into ordered mutation operations for a batch-apply service.
"""

from slidecodec.config import Settings, configure_logging, get_settings
from slidecodec.dsl.schema import DeckDocument
from slidecodec.errors import (
    DocumentValidationError,
    ElementIssue,
    IndexMismatchError,
    IssueKind,
    SlideCodecError,
    UnsupportedGeometryError,
)
from slidecodec.extraction import ExtractionPipeline, ExtractionResult, RasterFallback
from slidecodec.generation import GenerationPipeline, GenerationResult
from slidecodec.service import (
    BatchApplier,
    PresentationReader,
    generate_presentation,
    import_presentation,
)

__version__ = "0.1.0"

__all__ = [
    "BatchApplier",
    "DeckDocument",
    "DocumentValidationError",
    "ElementIssue",
    "ExtractionPipeline",
    "ExtractionResult",
    "GenerationPipeline",
    "GenerationResult",
    "IndexMismatchError",
    "IssueKind",
    "PresentationReader",
    "RasterFallback",
    "Settings",
    "SlideCodecError",
    "UnsupportedGeometryError",
    "configure_logging",
    "generate_presentation",
    "get_settings",
    "import_presentation",
]
