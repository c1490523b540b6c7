"""Tests for slide background resolution."""

from typing import Any

import pytest

from slidecodec.config import Settings
from slidecodec.dsl.source import PageElement, Presentation
from slidecodec.theme.background import DEFAULT_BACKGROUND, BackgroundResolver
from slidecodec.theme.resolver import ColorResolver


def solid(red: float = 0.0, green: float = 0.0, blue: float = 0.0) -> dict[str, Any]:
    return {"solidFill": {"color": {"rgbColor": {"red": red, "green": green, "blue": blue}}}}


def rectangle(object_id: str, width: float, height: float, fill: dict[str, Any], x: float = 0.0) -> dict[str, Any]:
    return {
        "objectId": object_id,
        "size": {"width": {"magnitude": width, "unit": "EMU"}, "height": {"magnitude": height, "unit": "EMU"}},
        "transform": {"scaleX": 1, "scaleY": 1, "translateX": x, "unit": "EMU"},
        "shape": {"shapeType": "RECTANGLE", "shapeProperties": {"shapeBackgroundFill": fill}},
    }


def build(data: dict[str, Any], settings: Settings) -> tuple[Presentation, BackgroundResolver]:
    presentation = Presentation.model_validate(data)
    resolver = ColorResolver.from_presentation(presentation)
    return presentation, BackgroundResolver(presentation, resolver, settings)


class TestBackgroundChain:
    """Slide fill, then full-bleed shape, then layout, then master, then white."""

    def test_master_background_per_slide(self, two_master_presentation: dict[str, Any], settings: Settings) -> None:
        presentation, backgrounds = build(two_master_presentation, settings)

        assert backgrounds.resolve(presentation.slides[0], 0) == "#ffffff"
        assert backgrounds.resolve(presentation.slides[1], 1) == "#0000ff"

    def test_slide_fill_wins(self, two_master_presentation: dict[str, Any], settings: Settings) -> None:
        two_master_presentation["slides"][1]["pageProperties"] = {"pageBackgroundFill": solid(green=1)}
        presentation, backgrounds = build(two_master_presentation, settings)

        assert backgrounds.resolve(presentation.slides[1], 1) == "#00ff00"

    def test_not_rendered_slide_fill_is_skipped(
        self, two_master_presentation: dict[str, Any], settings: Settings
    ) -> None:
        two_master_presentation["slides"][0]["pageProperties"] = {
            "pageBackgroundFill": {"propertyState": "NOT_RENDERED"}
        }
        presentation, backgrounds = build(two_master_presentation, settings)

        assert backgrounds.resolve(presentation.slides[0], 0) == "#ffffff"

    def test_full_bleed_shape_is_the_background(
        self, two_master_presentation: dict[str, Any], settings: Settings
    ) -> None:
        two_master_presentation["slides"][0]["pageElements"].insert(
            0, rectangle("bleed", 9144000, 5143500, solid(red=1, green=1))
        )
        presentation, backgrounds = build(two_master_presentation, settings)

        assert backgrounds.resolve(presentation.slides[0], 0) == "#ffff00"

    def test_layout_background_beats_master(self, two_master_presentation: dict[str, Any], settings: Settings) -> None:
        two_master_presentation["layouts"][1]["pageProperties"] = {"pageBackgroundFill": solid(red=0.5)}
        presentation, backgrounds = build(two_master_presentation, settings)

        assert backgrounds.resolve(presentation.slides[1], 1) == "#800000"

    def test_defaults_to_white(self, settings: Settings) -> None:
        presentation, backgrounds = build({"slides": [{"objectId": "s"}]}, settings)
        assert backgrounds.resolve(presentation.slides[0], 0) == DEFAULT_BACKGROUND


class TestBackgroundShapeDetection:
    """A background shape covers at least 90% of the page near the origin."""

    @pytest.fixture
    def backgrounds(self, two_master_presentation: dict[str, Any], settings: Settings) -> BackgroundResolver:
        return build(two_master_presentation, settings)[1]

    def test_covering_shape(self, backgrounds: BackgroundResolver) -> None:
        element = PageElement.model_validate(rectangle("r", 8500000, 4700000, solid()))
        assert backgrounds.is_background_shape(element) is True

    def test_small_shape(self, backgrounds: BackgroundResolver) -> None:
        element = PageElement.model_validate(rectangle("r", 4000000, 4700000, solid()))
        assert backgrounds.is_background_shape(element) is False

    def test_offset_shape(self, backgrounds: BackgroundResolver) -> None:
        element = PageElement.model_validate(rectangle("r", 9144000, 5143500, solid(), x=3000000))
        assert backgrounds.is_background_shape(element) is False

    def test_non_shape_is_never_background(self, backgrounds: BackgroundResolver) -> None:
        element = PageElement.model_validate(
            {
                "objectId": "img",
                "size": {"width": {"magnitude": 9144000}, "height": {"magnitude": 5143500}},
                "image": {"contentUrl": "https://example.com/a.png"},
            }
        )
        assert backgrounds.is_background_shape(element) is False
