"""Theme color tokens, known builtin palettes and the hardcoded defaults."""

from typing import Optional

THEME_TOKENS = (
    "DARK1",
    "LIGHT1",
    "DARK2",
    "LIGHT2",
    "ACCENT1",
    "ACCENT2",
    "ACCENT3",
    "ACCENT4",
    "ACCENT5",
    "ACCENT6",
    "HYPERLINK",
    "FOLLOWED_HYPERLINK",
)

# Theme token -> canonical document color name
TOKEN_TO_NAME = {
    "DARK1": "text",
    "DARK2": "textLight",
    "LIGHT1": "background",
    "LIGHT2": "surface",
    "ACCENT1": "primary",
    "ACCENT2": "secondary",
    "ACCENT3": "accent",
    "ACCENT4": "error",
    "ACCENT5": "accent5",
    "ACCENT6": "accent6",
    "HYPERLINK": "hyperlink",
    "FOLLOWED_HYPERLINK": "followedHyperlink",
}

NAME_TO_TOKEN = {name: token for token, name in TOKEN_TO_NAME.items()}

# OOXML <a:clrScheme> child element -> theme token
OOXML_SCHEME_TOKENS = {
    "dk1": "DARK1",
    "lt1": "LIGHT1",
    "dk2": "DARK2",
    "lt2": "LIGHT2",
    "accent1": "ACCENT1",
    "accent2": "ACCENT2",
    "accent3": "ACCENT3",
    "accent4": "ACCENT4",
    "accent5": "ACCENT5",
    "accent6": "ACCENT6",
    "hlink": "HYPERLINK",
    "folHlink": "FOLLOWED_HYPERLINK",
}

# OOXML schemeClr aliases used in run properties
OOXML_SCHEME_ALIASES = {
    "tx1": "DARK1",
    "bg1": "LIGHT1",
    "tx2": "DARK2",
    "bg2": "LIGHT2",
}

DEFAULT_PALETTE = {
    "DARK1": "#000000",
    "DARK2": "#595959",
    "LIGHT1": "#ffffff",
    "LIGHT2": "#eeeeee",
    "ACCENT1": "#4285f4",
    "ACCENT2": "#34a853",
    "ACCENT3": "#fbbc05",
    "ACCENT4": "#ea4335",
    "ACCENT5": "#46bdc6",
    "ACCENT6": "#7baaf7",
    "HYPERLINK": "#1a73e8",
    "FOLLOWED_HYPERLINK": "#681da8",
}

DEFAULT_COLOR = "#000000"

_SIMPLE_LIGHT = {
    "DARK1": "#000000",
    "LIGHT1": "#ffffff",
    "DARK2": "#595959",
    "LIGHT2": "#eeeeee",
    "ACCENT1": "#4285f4",
    "ACCENT2": "#212121",
    "ACCENT3": "#78909c",
    "ACCENT4": "#ffab40",
    "ACCENT5": "#0097a7",
    "ACCENT6": "#eeff41",
    "HYPERLINK": "#0097a7",
    "FOLLOWED_HYPERLINK": "#0097a7",
}

_SIMPLE_DARK = {
    **_SIMPLE_LIGHT,
    "DARK1": "#ffffff",
    "LIGHT1": "#000000",
    "DARK2": "#eeeeee",
    "LIGHT2": "#595959",
}

_OFFICE = {
    "DARK1": "#000000",
    "LIGHT1": "#ffffff",
    "DARK2": "#44546a",
    "LIGHT2": "#e7e6e6",
    "ACCENT1": "#4472c4",
    "ACCENT2": "#ed7d31",
    "ACCENT3": "#a5a5a5",
    "ACCENT4": "#ffc000",
    "ACCENT5": "#5b9bd5",
    "ACCENT6": "#70ad47",
    "HYPERLINK": "#0563c1",
    "FOLLOWED_HYPERLINK": "#954f72",
}

# Master display name -> palette, for masters that carry no explicit scheme
KNOWN_THEME_PALETTES = {
    "simple light": _SIMPLE_LIGHT,
    "simple dark": _SIMPLE_DARK,
    "office theme": _OFFICE,
}

DEFAULT_FONTS = {
    "heading": "Montserrat",
    "body": "Open Sans",
}


def known_palette(theme_name: Optional[str]) -> dict[str, str]:
    """Palette for a recognized builtin theme name, else an empty map."""
    if not theme_name:
        return {}
    return KNOWN_THEME_PALETTES.get(theme_name.strip().lower(), {})
