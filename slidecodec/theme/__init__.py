"""Theme colors, fonts, backgrounds and placeholder inheritance."""

from slidecodec.theme.background import BackgroundResolver
from slidecodec.theme.fonts import ThemeFonts
from slidecodec.theme.placeholders import PlaceholderIndex
from slidecodec.theme.resolver import ColorResolver

__all__ = [
    "BackgroundResolver",
    "ColorResolver",
    "PlaceholderIndex",
    "ThemeFonts",
]
