"""PPTX parser module - reads local PowerPoint files into the presentation tree.

This module converts a .pptx into the same structure the presentation
service returns, including:
- Masters with color schemes and fonts from the theme part
- Layouts and slides with placeholders and backgrounds
- Shapes, pictures, connectors, tables and charts with exact matrices
- Group child coordinate spaces folded into group matrices
- Text as paragraph markers and styled runs
- Speaker notes
"""

from slidecodec.parser.pptx_reader import PPTXReader
from slidecodec.parser.style_reader import StyleReader
from slidecodec.parser.theme_parser import ThemeParser
from slidecodec.parser.transform_parser import TransformParser

__all__ = [
    "PPTXReader",
    "StyleReader",
    "ThemeParser",
    "TransformParser",
]
