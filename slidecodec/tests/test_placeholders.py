"""Tests for placeholder style inheritance and raw mode."""

from typing import Any, Optional

import pytest

from slidecodec.dsl.source import PageElement, Presentation
from slidecodec.theme.placeholders import HARDCODED_DEFAULTS, PlaceholderIndex


def title_element(style: Optional[dict[str, Any]] = None) -> PageElement:
    return PageElement.model_validate(
        {
            "objectId": "slide1_title",
            "shape": {
                "shapeType": "TEXT_BOX",
                "placeholder": {"type": "TITLE"},
                "text": {
                    "textElements": [
                        {"paragraphMarker": {}},
                        {"textRun": {"content": "Hello\n", "style": style}},
                    ]
                },
            },
        }
    )


@pytest.fixture
def presentation(two_master_presentation: dict[str, Any]) -> Presentation:
    return Presentation.model_validate(two_master_presentation)


class TestPlaceholderInheritance:
    """explicit -> layout placeholder -> master placeholder -> hardcoded default."""

    def test_layout_placeholder_supplies_missing_values(self, presentation: Presentation) -> None:
        index = PlaceholderIndex(presentation)
        element = title_element()

        assert index.resolve(element, "font_size", "layoutA", "masterA") == 40
        assert index.resolve(element, "font_family", "layoutA", "masterA") == "Georgia"
        assert index.resolve(element, "bold", "layoutA", "masterA") is True

    def test_unset_everywhere_uses_hardcoded_default(self, presentation: Presentation) -> None:
        index = PlaceholderIndex(presentation)
        assert index.resolve(title_element(), "color", "layoutA", "masterA") == HARDCODED_DEFAULTS["color"]

    def test_explicit_value_wins(self, presentation: Presentation) -> None:
        index = PlaceholderIndex(presentation)
        element = title_element({"fontSize": {"magnitude": 18, "unit": "PT"}})
        assert index.resolve(element, "font_size", "layoutA", "masterA") == 18

    def test_theme_color_stays_a_reference(self, presentation: Presentation) -> None:
        index = PlaceholderIndex(presentation)
        element = title_element({"foregroundColor": {"opaqueColor": {"themeColor": "ACCENT2"}}})
        assert index.resolve(element, "color", "layoutA", "masterA") == "theme:ACCENT2"

    def test_other_layout_has_no_entry(self, presentation: Presentation) -> None:
        index = PlaceholderIndex(presentation)
        assert index.lookup("layoutB", "TITLE") is None
        assert index.resolve(title_element(), "font_size", "layoutB", "masterB") == 12.0

    def test_unknown_property_is_rejected(self, presentation: Presentation) -> None:
        with pytest.raises(ValueError):
            PlaceholderIndex(presentation).resolve(title_element(), "underline")


class TestRawMode:
    """Raw mode skips placeholder inheritance entirely."""

    def test_raw_mode_uses_hardcoded_defaults(self, presentation: Presentation) -> None:
        index = PlaceholderIndex(presentation, raw_mode=True)
        element = title_element()

        assert index.resolve(element, "font_size", "layoutA", "masterA") == 12.0
        assert index.resolve(element, "font_family", "layoutA", "masterA") == "Arial"
        assert index.resolve(element, "bold", "layoutA", "masterA") is False

    def test_raw_mode_keeps_explicit_values(self, presentation: Presentation) -> None:
        index = PlaceholderIndex(presentation, raw_mode=True)
        element = title_element({"fontFamily": "Lato"})
        assert index.resolve(element, "font_family", "layoutA", "masterA") == "Lato"
