"""Per-slide theme color resolution.

The same token (``ACCENT1``) means different colors on slides that inherit
from different masters, so every lookup is scoped by slide index. Lookup
order for a theme token:

1. the slide's own scheme chain (master scheme <- layout scheme <- slide scheme)
2. the presentation-level static map (first master's scheme, or the
   document theme on the generation side)
3. the known builtin palette for the slide's master theme name
4. the hardcoded default palette

Unresolvable values fall back to ``#000000`` and are recorded once per token.
All caches live on the instance, which is built fresh per invocation.
"""

import logging
from typing import Optional

from slidecodec.dsl.schema import ThemeConfig
from slidecodec.dsl.source import Fill, OpaqueColor, OptionalColor, Page, Presentation
from slidecodec.errors import ElementIssue, IssueKind
from slidecodec.theme.colors import is_sentinel, normalize_color, rgb_to_hex
from slidecodec.theme.palettes import (
    DEFAULT_COLOR,
    DEFAULT_PALETTE,
    NAME_TO_TOKEN,
    OOXML_SCHEME_ALIASES,
    THEME_TOKENS,
    TOKEN_TO_NAME,
    known_palette,
)

logger = logging.getLogger(__name__)

THEME_PREFIX = "theme:"


def scheme_map(page: Optional[Page]) -> dict[str, str]:
    """Read a page's color scheme into ``{token: hex}``."""
    if page is None or page.page_properties is None or page.page_properties.color_scheme is None:
        return {}
    colors: dict[str, str] = {}
    for pair in page.page_properties.color_scheme.colors:
        if pair.color is None or pair.type not in THEME_TOKENS:
            continue
        colors[pair.type] = rgb_to_hex(pair.color)
    return colors


class ColorResolver:
    """Resolves color tokens to hex, scoped per slide."""

    def __init__(
        self,
        slide_maps: Optional[dict[int, dict[str, str]]] = None,
        static_map: Optional[dict[str, str]] = None,
        slide_theme_names: Optional[dict[int, str]] = None,
        default_theme_name: Optional[str] = None,
        named_colors: Optional[dict[str, str]] = None,
    ):
        """Initialize the resolver.

        Args:
            slide_maps: Slide index -> resolved scheme chain for that slide.
            static_map: Presentation-level ``{token: hex}`` map.
            slide_theme_names: Slide index -> master theme display name.
            default_theme_name: Theme name used when no slide is given.
            named_colors: Extra document color names (``success``, ...) -> hex.
        """
        self._slide_maps = slide_maps or {}
        self._static_map = static_map or {}
        self._slide_theme_names = slide_theme_names or {}
        self._default_theme_name = default_theme_name
        self._named_colors = named_colors or {}
        self._cache: dict[tuple[str, Optional[int]], str] = {}
        self._reported: set[str] = set()
        self.issues: list[ElementIssue] = []

    @classmethod
    def from_presentation(cls, presentation: Presentation) -> "ColorResolver":
        """Build the extraction-side resolver from the source tree."""
        first_master = presentation.masters[0] if presentation.masters else None
        static_map = scheme_map(first_master)

        slide_maps: dict[int, dict[str, str]] = {}
        slide_theme_names: dict[int, str] = {}
        for index, slide in enumerate(presentation.slides):
            master = presentation.master_for_slide(slide)
            layout_id = slide.slide_properties.layout_object_id if slide.slide_properties else None
            chain: dict[str, str] = {}
            chain.update(scheme_map(master))
            chain.update(scheme_map(presentation.layout(layout_id)))
            chain.update(scheme_map(slide))
            slide_maps[index] = chain
            theme_name = _theme_name(master)
            if theme_name:
                slide_theme_names[index] = theme_name

        logger.debug(
            f"Built color maps for {len(slide_maps)} slides "
            f"(static map: {len(static_map)} tokens)"
        )
        return cls(
            slide_maps=slide_maps,
            static_map=static_map,
            slide_theme_names=slide_theme_names,
            default_theme_name=_theme_name(first_master),
        )

    @classmethod
    def from_theme_config(cls, theme: Optional[ThemeConfig]) -> "ColorResolver":
        """Build the generation-side resolver from the document theme."""
        static_map: dict[str, str] = {}
        named: dict[str, str] = {}
        for name, value in (theme.colors if theme else {}).items():
            normalized = normalize_color(value)
            if normalized is None:
                continue
            named[name] = normalized
            token = NAME_TO_TOKEN.get(name)
            if token:
                static_map[token] = normalized
        return cls(static_map=static_map, named_colors=named)

    def resolve(
        self,
        token: Optional[str],
        slide_index: Optional[int] = None,
        object_id: Optional[str] = None,
    ) -> str:
        """Resolve a color value to hex (or a ``transparent``/``none`` sentinel).

        Args:
            token: Hex literal, ``theme:X``, bare token, document color name or
                sentinel.
            slide_index: Slide whose scheme chain applies.
            object_id: Element id recorded if the token cannot be resolved.

        Returns:
            Lowercase ``#rrggbb``, a sentinel, or ``#000000`` when unresolvable.
        """
        if not token:
            return DEFAULT_COLOR
        if is_sentinel(token):
            return token.strip().lower()

        key = (token, slide_index)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        resolved = self._lookup(token.strip(), slide_index)
        if resolved is None:
            self._record_unresolved(token, slide_index, object_id)
            resolved = DEFAULT_COLOR
        self._cache[key] = resolved
        return resolved

    def resolve_opaque(self, color: Optional[OpaqueColor], slide_index: Optional[int] = None) -> Optional[str]:
        """Resolve an API ``opaqueColor`` (rgb or theme token)."""
        if color is None:
            return None
        if color.rgb_color is not None:
            return rgb_to_hex(color.rgb_color)
        if color.theme_color:
            return self.resolve(THEME_PREFIX + color.theme_color, slide_index)
        return None

    def resolve_optional(self, color: Optional[OptionalColor], slide_index: Optional[int] = None) -> Optional[str]:
        if color is None:
            return None
        return self.resolve_opaque(color.opaque_color, slide_index)

    def resolve_fill(self, fill: Optional[Fill], slide_index: Optional[int] = None) -> str:
        """Solid fill color, or ``transparent`` when absent or not rendered."""
        if fill is None or not fill.rendered or fill.solid_fill is None:
            return "transparent"
        return self.resolve_opaque(fill.solid_fill.color, slide_index) or "transparent"

    def document_colors(self) -> dict[str, str]:
        """Theme colors keyed by document name for the canonical config."""
        palette = known_palette(self._default_theme_name)
        colors: dict[str, str] = {}
        for token, name in TOKEN_TO_NAME.items():
            colors[name] = self._static_map.get(token) or palette.get(token) or DEFAULT_PALETTE[token]
        return colors

    def _lookup(self, token: str, slide_index: Optional[int]) -> Optional[str]:
        normalized = normalize_color(token)
        if normalized is not None:
            return normalized

        theme_token = self._as_theme_token(token)
        if theme_token is not None:
            return self._lookup_token(theme_token, slide_index)

        if token in self._named_colors:
            return self._named_colors[token]
        return None

    def _as_theme_token(self, token: str) -> Optional[str]:
        name = token[len(THEME_PREFIX):] if token.startswith(THEME_PREFIX) else token
        if name in THEME_TOKENS:
            return name
        if name in OOXML_SCHEME_ALIASES:
            return OOXML_SCHEME_ALIASES[name]
        if name in NAME_TO_TOKEN and name not in self._named_colors:
            return NAME_TO_TOKEN[name]
        return None

    def _lookup_token(self, token: str, slide_index: Optional[int]) -> Optional[str]:
        if slide_index is not None:
            slide_map = self._slide_maps.get(slide_index, {})
            if token in slide_map:
                return slide_map[token]
        if token in self._static_map:
            return self._static_map[token]
        theme_name = self._slide_theme_names.get(slide_index, self._default_theme_name)
        palette = known_palette(theme_name)
        if token in palette:
            return palette[token]
        return DEFAULT_PALETTE.get(token)

    def _record_unresolved(self, token: str, slide_index: Optional[int], object_id: Optional[str]) -> None:
        if token in self._reported:
            return
        self._reported.add(token)
        logger.warning(f"Unresolvable color token {token!r} on slide {slide_index} ({object_id}); using {DEFAULT_COLOR}")
        self.issues.append(
            ElementIssue(
                kind=IssueKind.UNRESOLVABLE_COLOR,
                slide_index=slide_index,
                object_id=object_id,
                detail=f"token={token}",
            )
        )


def _theme_name(master: Optional[Page]) -> Optional[str]:
    if master is None or master.master_properties is None:
        return None
    return master.master_properties.display_name
