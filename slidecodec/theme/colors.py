"""Color literal helpers shared by extraction, generation and the pptx reader."""

import re
from typing import Any, Optional

HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")
SHORT_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{3})$")

TRANSPARENT = "transparent"
NONE = "none"
SENTINELS = (TRANSPARENT, NONE)


def is_sentinel(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in SENTINELS


def normalize_color(value: Optional[str]) -> Optional[str]:
    """Normalize a hex literal to lowercase ``#rrggbb``.

    Short ``#abc`` forms are expanded. Returns None for anything that is not
    a hex literal.
    """
    if not value:
        return None
    value = value.strip()
    match = HEX_RE.match(value)
    if match:
        return "#" + match.group(1).lower()
    match = SHORT_HEX_RE.match(value)
    if match:
        return "#" + "".join(ch * 2 for ch in match.group(1).lower())
    return None


def rgb_to_hex(rgb: Optional[Any]) -> str:
    """Convert an API ``rgbColor`` (0-1 floats, omitted channels are 0) to hex."""
    if rgb is None:
        return "#000000"
    if isinstance(rgb, dict):
        red, green, blue = rgb.get("red"), rgb.get("green"), rgb.get("blue")
    else:
        red, green, blue = rgb.red, rgb.green, rgb.blue
    channels = [round((channel or 0.0) * 255) for channel in (red, green, blue)]
    return "#" + "".join(f"{max(0, min(255, c)):02x}" for c in channels)


def hex_to_rgb(value: str) -> Optional[dict[str, float]]:
    """Convert a hex literal to an API ``rgbColor`` dict, or None if not hex."""
    normalized = normalize_color(value)
    if normalized is None:
        return None
    return {
        "red": int(normalized[1:3], 16) / 255,
        "green": int(normalized[3:5], 16) / 255,
        "blue": int(normalized[5:7], 16) / 255,
    }
