"""Read fills, outlines and text from PPTX shape XML.

Everything is produced in the presentation service's JSON shape (camelCase
keys, theme tokens for scheme colors, EMU or PT dimensions) so the pipelines
consume a local file exactly like a fetched presentation.
"""

import logging
from typing import Any, Optional

from lxml import etree

from slidecodec.parser.transform_parser import NAMESPACES
from slidecodec.theme.colors import hex_to_rgb
from slidecodec.theme.palettes import OOXML_SCHEME_ALIASES, OOXML_SCHEME_TOKENS
from slidecodec.units import text_length

logger = logging.getLogger(__name__)

R_ID = "{http://schemas.openxmlformats.org/officeDocument/2006/relationships}id"

PRESET_COLORS = {"black": "#000000", "white": "#ffffff", "red": "#ff0000", "green": "#008000", "blue": "#0000ff"}

ALIGNMENT = {"l": "START", "ctr": "CENTER", "r": "END", "just": "JUSTIFIED", "dist": "JUSTIFIED"}

ANCHOR = {"t": "TOP", "ctr": "MIDDLE", "b": "BOTTOM"}

DASH_STYLES = {
    "solid": "SOLID",
    "dash": "DASH",
    "sysDash": "DASH",
    "dot": "DOT",
    "sysDot": "DOT",
    "dashDot": "DASH_DOT",
    "sysDashDot": "DASH_DOT",
    "lgDash": "LONG_DASH",
    "lgDashDot": "LONG_DASH_DOT",
}

ARROWS = {
    "none": "NONE",
    "triangle": "FILL_ARROW",
    "arrow": "OPEN_ARROW",
    "stealth": "STEALTH_ARROW",
    "diamond": "FILL_DIAMOND",
    "oval": "FILL_CIRCLE",
}

# Default text insets in EMU (0.1" left/right, 0.05" top/bottom)
DEFAULT_INSETS = {"lIns": 91440, "rIns": 91440, "tIns": 45720, "bIns": 45720}

VERTICAL_TAB = "\u000b"
DEFAULT_GLYPH = "●"


def _local(element: Any) -> str:
    return etree.QName(element).localname


class StyleReader:
    """Converts DrawingML styling to service JSON.

    Args:
        fonts: Theme fonts (``major``/``minor``) for ``+mj-lt``/``+mn-lt`` references.
    """

    def __init__(self, fonts: Optional[dict[str, str]] = None):
        self.fonts = fonts or {}

    # ------------------------------------------------------------------
    # Colors and fills
    # ------------------------------------------------------------------

    def opaque_color(self, parent: Optional[Any]) -> Optional[dict[str, Any]]:
        """Color of a fill element (``srgbClr``, ``schemeClr``, ``sysClr``, ``prstClr``)."""
        if parent is None:
            return None
        for child in parent:
            tag = _local(child)
            if tag == "srgbClr":
                rgb = hex_to_rgb(child.get("val", ""))
                return {"rgbColor": rgb} if rgb else None
            if tag == "schemeClr":
                value = child.get("val", "")
                token = OOXML_SCHEME_TOKENS.get(value) or OOXML_SCHEME_ALIASES.get(value)
                return {"themeColor": token} if token else None
            if tag == "sysClr":
                rgb = hex_to_rgb(child.get("lastClr", ""))
                return {"rgbColor": rgb} if rgb else None
            if tag == "prstClr":
                rgb = hex_to_rgb(PRESET_COLORS.get(child.get("val", ""), ""))
                return {"rgbColor": rgb} if rgb else None
        return None

    def fill(self, properties: Optional[Any], style_ref: Optional[Any] = None) -> Optional[dict[str, Any]]:
        """Fill JSON from an spPr-like element, falling back to a style reference.

        Gradients are approximated by their first stop.
        """
        if properties is not None:
            if properties.find("a:noFill", NAMESPACES) is not None:
                return {"propertyState": "NOT_RENDERED"}
            solid = properties.find("a:solidFill", NAMESPACES)
            if solid is not None:
                return self._solid(solid)
            gradient_stop = properties.find("a:gradFill/a:gsLst/a:gs", NAMESPACES)
            if gradient_stop is not None:
                return self._solid(gradient_stop)
        if style_ref is not None and style_ref.get("idx", "0") != "0":
            return self._solid(style_ref)
        return None

    def _solid(self, parent: Any) -> Optional[dict[str, Any]]:
        color = self.opaque_color(parent)
        if color is None:
            return None
        fill: dict[str, Any] = {"solidFill": {"color": color}}
        alpha = parent.find(".//a:alpha", NAMESPACES)
        if alpha is not None:
            fill["solidFill"]["alpha"] = float(alpha.get("val", "100000")) / 100000.0
        return fill

    def shape_fill(self, element: Any) -> dict[str, Any]:
        sp_pr = element.find("p:spPr", NAMESPACES)
        fill_ref = element.find("p:style/a:fillRef", NAMESPACES)
        return self.fill(sp_pr, fill_ref) or {"propertyState": "NOT_RENDERED"}

    def outline(self, element: Any) -> dict[str, Any]:
        """Outline JSON from <a:ln>, falling back to the shape style's lnRef."""
        ln = element.find("p:spPr/a:ln", NAMESPACES)
        ln_ref = element.find("p:style/a:lnRef", NAMESPACES)
        outline_fill = self.fill(ln, ln_ref)
        if outline_fill is None or outline_fill.get("propertyState") == "NOT_RENDERED":
            return {"propertyState": "NOT_RENDERED"}

        outline: dict[str, Any] = {"outlineFill": outline_fill, "dashStyle": "SOLID"}
        if ln is not None:
            if ln.get("w"):
                outline["weight"] = {"magnitude": float(ln.get("w")), "unit": "EMU"}
            dash = ln.find("a:prstDash", NAMESPACES)
            if dash is not None:
                outline["dashStyle"] = DASH_STYLES.get(dash.get("val", "solid"), "SOLID")
        outline.setdefault("weight", {"magnitude": 12700.0, "unit": "EMU"})
        return outline

    def line_properties(self, element: Any) -> dict[str, Any]:
        ln = element.find("p:spPr/a:ln", NAMESPACES)
        ln_ref = element.find("p:style/a:lnRef", NAMESPACES)
        properties: dict[str, Any] = {}
        line_fill = self.fill(ln, ln_ref)
        if line_fill is not None:
            properties["lineFill"] = line_fill
        if ln is None:
            return properties

        if ln.get("w"):
            properties["weight"] = {"magnitude": float(ln.get("w")), "unit": "EMU"}
        dash = ln.find("a:prstDash", NAMESPACES)
        if dash is not None:
            properties["dashStyle"] = DASH_STYLES.get(dash.get("val", "solid"), "SOLID")
        head = ln.find("a:headEnd", NAMESPACES)
        if head is not None:
            properties["startArrow"] = ARROWS.get(head.get("type", "none"), "NONE")
        tail = ln.find("a:tailEnd", NAMESPACES)
        if tail is not None:
            properties["endArrow"] = ARROWS.get(tail.get("type", "none"), "NONE")
        return properties

    def background(self, page_element: Any) -> Optional[dict[str, Any]]:
        """``pageBackgroundFill`` of a slide, layout or master, when it sets one."""
        bg = page_element.find("p:cSld/p:bg", NAMESPACES)
        if bg is None:
            return None
        bg_pr = bg.find("p:bgPr", NAMESPACES)
        if bg_pr is not None:
            return self.fill(bg_pr)
        bg_ref = bg.find("p:bgRef", NAMESPACES)
        if bg_ref is not None:
            return self._solid(bg_ref)
        return None

    def cell_fill(self, tc: Any) -> Optional[dict[str, Any]]:
        return self.fill(tc.find("a:tcPr", NAMESPACES))

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def body_properties(self, element: Any) -> tuple[Optional[dict[str, Any]], Optional[str]]:
        """Autofit insets (EMU) and content alignment from <a:bodyPr>."""
        body_pr = element.find("p:txBody/a:bodyPr", NAMESPACES)
        if body_pr is None:
            return None, None
        insets = {name: float(body_pr.get(name, default)) for name, default in DEFAULT_INSETS.items()}
        autofit = {
            "autofitType": "NONE",
            "leftOffset": insets["lIns"],
            "rightOffset": insets["rIns"],
            "topOffset": insets["tIns"],
            "bottomOffset": insets["bIns"],
        }
        if body_pr.find("a:normAutofit", NAMESPACES) is not None:
            autofit["autofitType"] = "TEXT_AUTOFIT"
        elif body_pr.find("a:spAutoFit", NAMESPACES) is not None:
            autofit["autofitType"] = "SHAPE_AUTOFIT"
        return autofit, ANCHOR.get(body_pr.get("anchor", ""))

    def text_content(
        self,
        tx_body: Optional[Any],
        list_id: str,
        part: Any = None,
        defaults: Optional[list[Any]] = None,
        bulleted: bool = False,
    ) -> Optional[dict[str, Any]]:
        """Build the flat ``textElements`` stream for a text body.

        Each paragraph yields its marker followed by its runs; the paragraph's
        newline ends its last run. Indices are UTF-16 code units.

        Args:
            tx_body: The <p:txBody> or <a:txBody> element.
            list_id: List id given to bulleted paragraphs of this body.
            part: Owning part, used to resolve hyperlink relationships.
            defaults: <a:lstStyle>-like elements whose ``lvlNpPr`` supply
                inherited run and paragraph properties, nearest first.
            bulleted: Paragraphs are bulleted unless they say ``buNone``.

        Returns:
            ``{"textElements": [...]}`` or None for an absent body.
        """
        if tx_body is None:
            return None
        styles = [tx_body.find("a:lstStyle", NAMESPACES), *(defaults or [])]
        styles = [style for style in styles if style is not None]

        elements: list[dict[str, Any]] = []
        index = 0
        for paragraph in tx_body.findall("a:p", NAMESPACES):
            p_pr = paragraph.find("a:pPr", NAMESPACES)
            level = int(p_pr.get("lvl", "0")) if p_pr is not None else 0
            level_styles = [
                style.find(f"a:lvl{level + 1}pPr", NAMESPACES) for style in styles
            ]
            level_styles = [style for style in level_styles if style is not None]
            default_runs = [
                default.find("a:defRPr", NAMESPACES) for default in level_styles
            ]
            default_runs = [run for run in default_runs if run is not None]

            parts: list[tuple[str, dict[str, Any]]] = []
            for child in paragraph:
                tag = _local(child)
                if tag in ("r", "fld"):
                    text = child.findtext("a:t", default="", namespaces=NAMESPACES)
                    parts.append((text, self.run_style([child.find("a:rPr", NAMESPACES), *default_runs], part)))
                elif tag == "br":
                    parts.append((VERTICAL_TAB, self.run_style([child.find("a:rPr", NAMESPACES), *default_runs], part)))

            if parts:
                text, style = parts[-1]
                parts[-1] = (text + "\n", style)
            else:
                end_style = self.run_style([paragraph.find("a:endParaRPr", NAMESPACES), *default_runs], part)
                parts.append(("\n", end_style))

            length = sum(text_length(text) for text, _ in parts)
            marker: dict[str, Any] = {"style": self.paragraph_style([p_pr, *level_styles])}
            bullet = self.bullet([p_pr, *level_styles], list_id, level, bulleted)
            if bullet is not None:
                marker["bullet"] = bullet
            elements.append({"startIndex": index, "endIndex": index + length, "paragraphMarker": marker})

            for text, style in parts:
                end = index + text_length(text)
                elements.append(
                    {"startIndex": index, "endIndex": end, "textRun": {"content": text, "style": style}}
                )
                index = end

        return {"textElements": elements}

    def run_style(self, chain: list[Optional[Any]], part: Any = None) -> dict[str, Any]:
        """Run style from an <a:rPr> and its inherited defaults, nearest first."""
        chain = [element for element in chain if element is not None]
        style: dict[str, Any] = {}
        if not chain:
            return style

        size = _first_attr(chain, "sz")
        if size is not None:
            style["fontSize"] = {"magnitude": float(size) / 100.0, "unit": "PT"}
        for attr, key in (("b", "bold"), ("i", "italic")):
            value = _first_attr(chain, attr)
            if value is not None:
                style[key] = value in ("1", "true")
        underline = _first_attr(chain, "u")
        if underline is not None:
            style["underline"] = underline != "none"
        strike = _first_attr(chain, "strike")
        if strike is not None:
            style["strikethrough"] = strike != "noStrike"
        cap = _first_attr(chain, "cap")
        if cap is not None:
            style["smallCaps"] = cap == "small"
        baseline = _first_attr(chain, "baseline")
        if baseline is not None:
            offset = float(baseline)
            style["baselineOffset"] = "SUPERSCRIPT" if offset > 0 else "SUBSCRIPT" if offset < 0 else "NONE"

        typeface = _first_child_attr(chain, "a:latin", "typeface")
        if typeface:
            style["fontFamily"] = self._typeface(typeface)

        for element in chain:
            solid = element.find("a:solidFill", NAMESPACES)
            if solid is not None:
                color = self.opaque_color(solid)
                if color is not None:
                    style["foregroundColor"] = {"opaqueColor": color}
                break

        link = chain[0].find("a:hlinkClick", NAMESPACES)
        if link is not None and link.get(R_ID) and part is not None:
            try:
                style["link"] = {"url": part.target_ref(link.get(R_ID))}
            except KeyError:
                logger.debug(f"Unresolved hyperlink relationship {link.get(R_ID)}")
        return style

    def paragraph_style(self, chain: list[Optional[Any]]) -> dict[str, Any]:
        chain = [element for element in chain if element is not None]
        style: dict[str, Any] = {}
        align = _first_attr(chain, "algn")
        if align in ALIGNMENT:
            style["alignment"] = ALIGNMENT[align]
        if _first_attr(chain, "rtl") in ("1", "true"):
            style["direction"] = "RIGHT_TO_LEFT"

        margin = _first_attr(chain, "marL")
        indent = _first_attr(chain, "indent")
        if margin is not None:
            style["indentStart"] = {"magnitude": float(margin), "unit": "EMU"}
        if margin is not None or indent is not None:
            first_line = float(margin or 0) + float(indent or 0)
            style["indentFirstLine"] = {"magnitude": first_line, "unit": "EMU"}

        for path, key in (("a:spcBef/a:spcPts", "spaceAbove"), ("a:spcAft/a:spcPts", "spaceBelow")):
            points = _first_child_attr(chain, path, "val")
            if points is not None:
                style[key] = {"magnitude": float(points) / 100.0, "unit": "PT"}
        spacing = _first_child_attr(chain, "a:lnSpc/a:spcPct", "val")
        if spacing is not None:
            style["lineSpacing"] = float(spacing) / 1000.0
        return style

    def bullet(
        self,
        chain: list[Optional[Any]],
        list_id: str,
        level: int,
        bulleted: bool,
    ) -> Optional[dict[str, Any]]:
        for element in chain:
            if element is None:
                continue
            if element.find("a:buNone", NAMESPACES) is not None:
                return None
            char = element.find("a:buChar", NAMESPACES)
            if char is not None:
                return {"listId": list_id, "nestingLevel": level, "glyph": char.get("char") or DEFAULT_GLYPH}
            if element.find("a:buAutoNum", NAMESPACES) is not None:
                return {"listId": list_id, "nestingLevel": level, "glyph": f"{level + 1}."}
        if bulleted:
            return {"listId": list_id, "nestingLevel": level, "glyph": DEFAULT_GLYPH}
        return None

    def _typeface(self, typeface: str) -> str:
        if typeface.startswith("+mj"):
            return self.fonts.get("major", typeface)
        if typeface.startswith("+mn"):
            return self.fonts.get("minor", typeface)
        return typeface


def _first_attr(chain: list[Any], name: str) -> Optional[str]:
    for element in chain:
        value = element.get(name)
        if value is not None:
            return value
    return None


def _first_child_attr(chain: list[Any], path: str, name: str) -> Optional[str]:
    for element in chain:
        child = element.find(path, NAMESPACES)
        if child is not None and child.get(name) is not None:
            return child.get(name)
    return None
