"""Element decorations: fake drop shadows and click-through links.

The batch service cannot write shadows, so a shadow is a semi-transparent
shape created just before the element, offset and grown by the preset.
"""

import math
from typing import Any, Optional, Union

from slidecodec.dsl.schema import ElementBase, ElementLink, ShadowSpec
from slidecodec.text.codec import sanitize_link

SHADOW_PRESETS = {
    # Drop shadows towards the bottom right
    "subtle": ShadowSpec(angle=135, distance=2, spread=0, opacity=0.08, color="#000000"),
    "medium": ShadowSpec(angle=135, distance=4, spread=2, opacity=0.12, color="#000000"),
    "large": ShadowSpec(angle=135, distance=6, spread=4, opacity=0.18, color="#000000"),
    "dramatic": ShadowSpec(angle=135, distance=10, spread=6, opacity=0.25, color="#000000"),
    # Directional
    "bottom": ShadowSpec(angle=90, distance=5, spread=2, opacity=0.15, color="#000000"),
    "top": ShadowSpec(angle=270, distance=5, spread=2, opacity=0.15, color="#000000"),
    "left": ShadowSpec(angle=180, distance=5, spread=2, opacity=0.15, color="#000000"),
    "right": ShadowSpec(angle=0, distance=5, spread=2, opacity=0.15, color="#000000"),
    # Effects
    "glow": ShadowSpec(angle=0, distance=0, spread=12, opacity=0.25, color="inherit"),
    "soft": ShadowSpec(angle=135, distance=3, spread=8, opacity=0.10, color="#000000"),
    "hard": ShadowSpec(angle=135, distance=3, spread=0, opacity=0.20, color="#000000"),
    "floating": ShadowSpec(angle=90, distance=12, spread=8, opacity=0.20, color="#000000"),
}

DEFAULT_SHADOW_OFFSET = 5.0
DEFAULT_SHADOW_SPREAD = 4.0
DEFAULT_SHADOW_OPACITY = 0.15
DEFAULT_SHADOW_COLOR = "#000000"

RELATIVE_LINKS = ("NEXT_SLIDE", "PREVIOUS_SLIDE", "FIRST_SLIDE", "LAST_SLIDE")


def resolve_shadow(
    shadow: Optional[Union[bool, str, ShadowSpec]],
    default_preset: str = "medium",
) -> Optional[ShadowSpec]:
    """Turn an element's ``shadow`` value into concrete settings.

    ``True`` and unknown preset names give the default preset; explicit
    settings are laid over it.
    """
    if shadow is None or shadow is False:
        return None
    base = SHADOW_PRESETS.get(default_preset, SHADOW_PRESETS["medium"])
    if shadow is True:
        return base
    if isinstance(shadow, str):
        return SHADOW_PRESETS.get(shadow.strip().lower(), base)

    overrides = shadow.model_dump(exclude_none=True)
    if ("offset_x" in overrides or "offset_y" in overrides) and not (
        "angle" in overrides or "distance" in overrides
    ):
        # Cartesian offsets replace the preset's polar one
        base = base.model_copy(update={"angle": None, "distance": None})
    return base.model_copy(update=overrides)


def shadow_box(element: ElementBase, spec: ShadowSpec) -> tuple[float, float, float, float]:
    """Left, top, width and height of the shadow shape in points."""
    if spec.angle is not None and spec.distance is not None:
        radians = math.radians(spec.angle)
        dx = spec.distance * math.cos(radians)
        dy = spec.distance * math.sin(radians)
    else:
        dx = spec.offset_x if spec.offset_x is not None else DEFAULT_SHADOW_OFFSET
        dy = spec.offset_y if spec.offset_y is not None else DEFAULT_SHADOW_OFFSET
    spread = spec.spread if spec.spread is not None else DEFAULT_SHADOW_SPREAD
    return (
        element.x + dx - spread / 2.0,
        element.y + dy - spread / 2.0,
        element.w + spread,
        element.h + spread,
    )


def link_to_api(link: Optional[ElementLink]) -> Optional[dict[str, Any]]:
    """API link object: a URL wins over a slide index, then a relative link."""
    if link is None:
        return None
    if link.url:
        url = sanitize_link(link.url)
        return {"url": url} if url else None
    if link.slide_index is not None:
        return {"slideIndex": link.slide_index}
    if link.relative_link:
        relative = link.relative_link.strip().upper().replace("-", "_")
        if not relative.endswith("_SLIDE"):
            relative += "_SLIDE"
        if relative in RELATIVE_LINKS:
            return {"relativeLink": relative}
    return None
