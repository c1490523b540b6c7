"""Canonical document, consumed presentation tree and mutation operations."""

from slidecodec.dsl.schema import (
    AffineTransform,
    BaseSize,
    Bullet,
    ChartElement,
    DeckConfig,
    DeckDocument,
    Element,
    ElementGeometry,
    ElementLink,
    GroupElement,
    IconElement,
    ImageElement,
    LineElement,
    ListItem,
    ParagraphStyle,
    ShadowSpec,
    ShapeElement,
    Slide,
    TableCell,
    TableElement,
    TextElement,
    TextRun,
    ThemeConfig,
    UnsupportedElement,
    VideoElement,
    WordArtElement,
)
from slidecodec.dsl.source import PageElement, Presentation, RawTransform

__all__ = [
    "AffineTransform",
    "BaseSize",
    "Bullet",
    "ChartElement",
    "DeckConfig",
    "DeckDocument",
    "Element",
    "ElementGeometry",
    "ElementLink",
    "GroupElement",
    "IconElement",
    "ImageElement",
    "LineElement",
    "ListItem",
    "PageElement",
    "ParagraphStyle",
    "Presentation",
    "RawTransform",
    "ShadowSpec",
    "ShapeElement",
    "Slide",
    "TableCell",
    "TableElement",
    "TextElement",
    "TextRun",
    "ThemeConfig",
    "UnsupportedElement",
    "VideoElement",
    "WordArtElement",
]
