"""Extraction: presentation tree -> canonical document."""

from slidecodec.extraction.context import ExtractionContext, RasterFallback
from slidecodec.extraction.pipeline import ExtractionPipeline, ExtractionResult

__all__ = [
    "ExtractionContext",
    "ExtractionPipeline",
    "ExtractionResult",
    "RasterFallback",
]
