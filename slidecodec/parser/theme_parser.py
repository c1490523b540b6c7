"""Extract theme colors and fonts from PowerPoint slide masters.

Each master links a theme part whose <a:clrScheme> holds the dark/light
colors and accents, and whose <a:fontScheme> names the heading (major) and
body (minor) fonts.
"""

import colorsys
import logging
from typing import Any, Optional

from lxml import etree
from pptx.opc.constants import RELATIONSHIP_TYPE as RT

from slidecodec.parser.transform_parser import NAMESPACES
from slidecodec.theme.colors import hex_to_rgb
from slidecodec.theme.palettes import OOXML_SCHEME_TOKENS

logger = logging.getLogger(__name__)

# Common system color mappings used when <a:sysClr> has no lastClr
SYSTEM_COLORS = {
    "windowText": "#000000",
    "window": "#ffffff",
    "highlight": "#0078d7",
    "highlightText": "#ffffff",
    "buttonFace": "#f0f0f0",
    "btnText": "#000000",
    "3dDkShadow": "#696969",
    "3dLight": "#e3e3e3",
    "infoText": "#000000",
    "infoBk": "#ffffe1",
}


class ThemeParser:
    """Reads the theme part linked from a slide master."""

    def theme_element(self, slide_master: Any) -> Optional[Any]:
        """Parse the master's theme part, or None when it has none."""
        try:
            part = slide_master.part.part_related_by(RT.THEME)
        except KeyError:
            logger.debug("Slide master has no theme part")
            return None
        return etree.fromstring(part.blob)

    def theme_name(self, theme: Optional[Any]) -> Optional[str]:
        if theme is None:
            return None
        return theme.get("name")

    def color_scheme(self, theme: Optional[Any]) -> list[dict[str, Any]]:
        """Theme colors as the service's ``colorScheme.colors`` entries.

        XML structure example:
            <a:clrScheme name="Office">
                <a:dk1><a:sysClr val="windowText" lastClr="000000"/></a:dk1>
                <a:lt1><a:sysClr val="window" lastClr="FFFFFF"/></a:lt1>
                <a:dk2><a:srgbClr val="1F497D"/></a:dk2>
                <a:accent1><a:srgbClr val="4F81BD"/></a:accent1>
                ...
            </a:clrScheme>
        """
        if theme is None:
            return []
        clr_scheme = theme.find(".//a:clrScheme", NAMESPACES)
        if clr_scheme is None:
            return []

        colors: list[dict[str, Any]] = []
        for xml_name, token in OOXML_SCHEME_TOKENS.items():
            color_elem = clr_scheme.find(f"a:{xml_name}", NAMESPACES)
            if color_elem is None:
                continue
            hex_color = self.color_value(color_elem)
            rgb = hex_to_rgb(hex_color) if hex_color else None
            if rgb is not None:
                colors.append({"type": token, "color": rgb})
        return colors

    def font_scheme(self, theme: Optional[Any]) -> dict[str, str]:
        """Latin typefaces of the major (heading) and minor (body) fonts."""
        fonts: dict[str, str] = {}
        if theme is None:
            return fonts
        for key, path in (("major", ".//a:majorFont/a:latin"), ("minor", ".//a:minorFont/a:latin")):
            latin = theme.find(path, NAMESPACES)
            if latin is not None and latin.get("typeface"):
                fonts[key] = latin.get("typeface")
        return fonts

    def color_value(self, color_elem: Any) -> Optional[str]:
        """Extract a hex color from a scheme color element.

        Handles <a:srgbClr>, <a:sysClr> (lastClr, then the system name) and
        <a:hslClr>.
        """
        srgb = color_elem.find("a:srgbClr", NAMESPACES)
        if srgb is not None and srgb.get("val"):
            return f"#{srgb.get('val').lower()}"

        sys_clr = color_elem.find("a:sysClr", NAMESPACES)
        if sys_clr is not None:
            last_clr = sys_clr.get("lastClr")
            if last_clr:
                return f"#{last_clr.lower()}"
            return SYSTEM_COLORS.get(sys_clr.get("val"))

        hsl_clr = color_elem.find("a:hslClr", NAMESPACES)
        if hsl_clr is not None:
            return self._hsl_to_hex(hsl_clr)
        return None

    def _hsl_to_hex(self, hsl_elem: Any) -> Optional[str]:
        # Hue in 60,000ths of a degree, saturation and luminance in 1000ths of a percent
        try:
            hue = float(hsl_elem.get("hue", "0")) / 60000.0 / 360.0
            sat = float(hsl_elem.get("sat", "0")) / 100000.0
            lum = float(hsl_elem.get("lum", "0")) / 100000.0
        except (TypeError, ValueError):
            return None
        red, green, blue = colorsys.hls_to_rgb(hue, lum, sat)
        return "#" + "".join(f"{round(channel * 255):02x}" for channel in (red, green, blue))
