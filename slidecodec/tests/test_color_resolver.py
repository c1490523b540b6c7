"""Tests for per-slide theme color resolution."""

from typing import Any

import pytest

from slidecodec.dsl.schema import ThemeConfig
from slidecodec.dsl.source import Fill, Presentation
from slidecodec.errors import IssueKind
from slidecodec.theme.colors import hex_to_rgb, is_sentinel, normalize_color, rgb_to_hex
from slidecodec.theme.palettes import DEFAULT_PALETTE
from slidecodec.theme.resolver import ColorResolver


@pytest.fixture
def resolver(two_master_presentation: dict[str, Any]) -> ColorResolver:
    """Extraction-side resolver over the two-master deck."""
    return ColorResolver.from_presentation(Presentation.model_validate(two_master_presentation))


class TestColorHelpers:
    """Tests for hex literal helpers."""

    @pytest.mark.parametrize(
        "value, expected",
        [("#ABCDEF", "#abcdef"), ("abcdef", "#abcdef"), ("#fff", "#ffffff"), ("primary", None), ("", None)],
    )
    def test_normalize_color(self, value: str, expected: Any) -> None:
        assert normalize_color(value) == expected

    def test_rgb_conversions(self) -> None:
        assert rgb_to_hex({"red": 1.0, "blue": 0.5}) == "#ff0080"
        assert hex_to_rgb("#ff0000") == {"red": 1.0, "green": 0.0, "blue": 0.0}
        assert hex_to_rgb("theme:ACCENT1") is None

    def test_sentinels(self) -> None:
        assert is_sentinel("transparent")
        assert is_sentinel(" None ")
        assert not is_sentinel("#000000")
        assert not is_sentinel(None)


class TestPerSlideResolution:
    """The same token resolves against each slide's own master."""

    def test_different_masters_give_different_colors(self, resolver: ColorResolver) -> None:
        first = resolver.resolve("theme:ACCENT1", slide_index=0)
        second = resolver.resolve("theme:ACCENT1", slide_index=1)

        assert first == "#ff0000"
        assert second == "#0000ff"
        assert first != second

    def test_shared_master_gives_equal_colors(self, two_master_presentation: dict[str, Any]) -> None:
        data = dict(two_master_presentation)
        data["slides"] = [
            two_master_presentation["slides"][0],
            {**two_master_presentation["slides"][0], "objectId": "slide3"},
        ]
        resolver = ColorResolver.from_presentation(Presentation.model_validate(data))

        assert resolver.resolve("ACCENT1", 0) == resolver.resolve("ACCENT1", 1)

    def test_ooxml_alias_tokens(self, resolver: ColorResolver) -> None:
        assert resolver.resolve("tx1", 0) == "#000000"

    def test_static_map_applies_without_slide(self, resolver: ColorResolver) -> None:
        assert resolver.resolve("theme:ACCENT1") == "#ff0000"

    def test_falls_back_to_default_palette(self, resolver: ColorResolver) -> None:
        assert resolver.resolve("theme:ACCENT3", 0) == DEFAULT_PALETTE["ACCENT3"]

    def test_known_builtin_palette_by_theme_name(self) -> None:
        presentation = Presentation.model_validate(
            {
                "masters": [{"objectId": "m", "masterProperties": {"displayName": "Office Theme"}}],
                "slides": [{"objectId": "s", "slideProperties": {"masterObjectId": "m"}}],
            }
        )
        resolver = ColorResolver.from_presentation(presentation)
        assert resolver.resolve("ACCENT2", 0) == "#ed7d31"

    def test_hex_literals_and_sentinels_pass_through(self, resolver: ColorResolver) -> None:
        assert resolver.resolve("#ABC", 0) == "#aabbcc"
        assert resolver.resolve("transparent", 0) == "transparent"
        assert resolver.resolve(None) == "#000000"


class TestUnresolvable:
    """Unknown tokens fall back to black and are recorded once."""

    def test_unknown_token_is_recorded_once(self, resolver: ColorResolver) -> None:
        assert resolver.resolve("brandPurple", 0, object_id="s1_text") == "#000000"
        assert resolver.resolve("brandPurple", 1) == "#000000"

        assert len(resolver.issues) == 1
        issue = resolver.issues[0]
        assert issue.kind == IssueKind.UNRESOLVABLE_COLOR
        assert issue.object_id == "s1_text"
        assert "brandPurple" in issue.detail


class TestFillsAndDocumentColors:
    """Tests for fill resolution and the document theme map."""

    def test_not_rendered_fill_is_transparent(self, resolver: ColorResolver) -> None:
        fill = Fill.model_validate({"propertyState": "NOT_RENDERED", "solidFill": {"color": {"rgbColor": {}}}})
        assert resolver.resolve_fill(fill, 0) == "transparent"
        assert resolver.resolve_fill(None, 0) == "transparent"

    def test_theme_fill_resolves_per_slide(self, resolver: ColorResolver) -> None:
        fill = Fill.model_validate({"solidFill": {"color": {"themeColor": "ACCENT1"}}})
        assert resolver.resolve_fill(fill, 1) == "#0000ff"

    def test_document_colors_use_names(self, resolver: ColorResolver) -> None:
        colors = resolver.document_colors()
        assert colors["primary"] == "#ff0000"
        assert colors["text"] == "#000000"
        assert colors["secondary"] == DEFAULT_PALETTE["ACCENT2"]

    def test_generation_resolver_reads_document_theme(self) -> None:
        resolver = ColorResolver.from_theme_config(
            ThemeConfig(colors={"primary": "#0D9488", "success": "#22c55e", "broken": "nope"})
        )

        assert resolver.resolve("primary") == "#0d9488"
        assert resolver.resolve("theme:ACCENT1") == "#0d9488"
        assert resolver.resolve("success") == "#22c55e"
        assert resolver.resolve("broken") == "#000000"
