"""Theme font names (``heading``, ``body``, ``mono``) to font families."""

from typing import Optional

from slidecodec.dsl.schema import ThemeConfig
from slidecodec.theme.palettes import DEFAULT_FONTS


class ThemeFonts:
    """Resolves document font references against the document theme."""

    def __init__(self, theme: Optional[ThemeConfig], default_family: str):
        self.default_family = default_family
        self._fonts = {**DEFAULT_FONTS, "mono": "Roboto Mono"}
        if theme is not None:
            self._fonts.update({name: family for name, family in theme.fonts.items() if family})

    def resolve(self, value: Optional[str]) -> str:
        """Map a theme font name to its family; plain families pass through."""
        if not value:
            return self.default_family
        return self._fonts.get(value, value)
