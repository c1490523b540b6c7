"""Pytest configuration and fixtures."""

from typing import Any

import pytest

from slidecodec.config import Settings


def rgb(red: float = 0.0, green: float = 0.0, blue: float = 0.0) -> dict[str, float]:
    return {"red": red, "green": green, "blue": blue}


def text_box(object_id: str, text: str, **style: Any) -> dict[str, Any]:
    """A service-shaped TEXT_BOX page element with one paragraph."""
    return {
        "objectId": object_id,
        "size": {
            "width": {"magnitude": 3000000, "unit": "EMU"},
            "height": {"magnitude": 1000000, "unit": "EMU"},
        },
        "transform": {"scaleX": 1, "scaleY": 1, "translateX": 635000, "translateY": 1270000, "unit": "EMU"},
        "shape": {
            "shapeType": "TEXT_BOX",
            "text": {
                "textElements": [
                    {"startIndex": 0, "endIndex": len(text) + 1, "paragraphMarker": {"style": {}}},
                    {
                        "startIndex": 0,
                        "endIndex": len(text) + 1,
                        "textRun": {"content": text + "\n", "style": style},
                    },
                ]
            },
        },
    }


@pytest.fixture
def settings() -> Settings:
    """Fresh settings built from the (test) environment."""
    return Settings()


@pytest.fixture
def two_master_presentation() -> dict[str, Any]:
    """Service JSON for a deck whose two slides inherit from different masters.

    Master A maps ACCENT1 to red, master B maps it to blue. Each slide has a
    text box colored by the ACCENT1 theme token.
    """
    accent_text = {
        "fontSize": {"magnitude": 18, "unit": "PT"},
        "foregroundColor": {"opaqueColor": {"themeColor": "ACCENT1"}},
    }
    return {
        "presentationId": "deck-1",
        "title": "Quarterly Review",
        "pageSize": {
            "width": {"magnitude": 9144000, "unit": "EMU"},
            "height": {"magnitude": 5143500, "unit": "EMU"},
        },
        "masters": [
            {
                "objectId": "masterA",
                "pageType": "MASTER",
                "pageProperties": {
                    "pageBackgroundFill": {"solidFill": {"color": {"rgbColor": rgb(1, 1, 1)}}},
                    "colorScheme": {
                        "colors": [
                            {"type": "DARK1", "color": rgb()},
                            {"type": "LIGHT1", "color": rgb(1, 1, 1)},
                            {"type": "ACCENT1", "color": rgb(red=1)},
                        ]
                    },
                },
                "masterProperties": {"displayName": "Custom A"},
            },
            {
                "objectId": "masterB",
                "pageType": "MASTER",
                "pageProperties": {
                    "pageBackgroundFill": {"solidFill": {"color": {"themeColor": "ACCENT1"}}},
                    "colorScheme": {
                        "colors": [
                            {"type": "DARK1", "color": rgb()},
                            {"type": "ACCENT1", "color": rgb(blue=1)},
                        ]
                    },
                },
                "masterProperties": {"displayName": "Custom B"},
            },
        ],
        "layouts": [
            {
                "objectId": "layoutA",
                "pageType": "LAYOUT",
                "layoutProperties": {"masterObjectId": "masterA", "name": "TITLE"},
                "pageElements": [
                    {
                        "objectId": "layoutA_title",
                        "shape": {
                            "shapeType": "TEXT_BOX",
                            "placeholder": {"type": "TITLE", "index": 0},
                            "text": {
                                "textElements": [
                                    {"paragraphMarker": {"style": {}}},
                                    {
                                        "textRun": {
                                            "content": "Click to add title\n",
                                            "style": {
                                                "fontSize": {"magnitude": 40, "unit": "PT"},
                                                "fontFamily": "Georgia",
                                                "bold": True,
                                            },
                                        }
                                    },
                                ]
                            },
                        },
                    }
                ],
            },
            {
                "objectId": "layoutB",
                "pageType": "LAYOUT",
                "layoutProperties": {"masterObjectId": "masterB", "name": "BLANK"},
            },
        ],
        "slides": [
            {
                "objectId": "slide1",
                "pageType": "SLIDE",
                "slideProperties": {"layoutObjectId": "layoutA", "masterObjectId": "masterA"},
                "pageElements": [text_box("s1_text", "Revenue", **accent_text)],
            },
            {
                "objectId": "slide2",
                "pageType": "SLIDE",
                "slideProperties": {
                    "layoutObjectId": "layoutB",
                    "masterObjectId": "masterB",
                    "notesPage": {
                        "objectId": "slide2_notes",
                        "notesProperties": {"speakerNotesObjectId": "slide2_notes_body"},
                        "pageElements": [
                            {
                                "objectId": "slide2_notes_body",
                                "shape": {
                                    "shapeType": "TEXT_BOX",
                                    "placeholder": {"type": "BODY"},
                                    "text": {
                                        "textElements": [
                                            {"paragraphMarker": {}},
                                            {"textRun": {"content": "Mention the forecast\n"}},
                                        ]
                                    },
                                },
                            }
                        ],
                    },
                },
                "pageElements": [text_box("s2_text", "Costs", **accent_text)],
            },
        ],
    }


@pytest.fixture
def sample_document() -> dict[str, Any]:
    """A small hand-written canonical document."""
    return {
        "config": {
            "title": "Launch Plan",
            "theme": {"colors": {"primary": "#0d9488", "text": "#1e293b"}, "fonts": {"heading": "Inter"}},
        },
        "slides": [
            {
                "background": "#FFFFFF",
                "speakerNotes": "Welcome everyone",
                "elements": [
                    {"type": "text", "x": 40, "y": 30, "w": 600, "h": 60, "text": "Launch Plan", "fontSize": 36},
                    {"type": "shape", "shape": "ELLIPSE", "x": 100, "y": 120, "w": 80, "h": 80, "fillColor": "primary"},
                ],
            },
            {
                "backgroundColor": "#0f172a",
                "elements": [
                    {
                        "type": "table",
                        "x": 40,
                        "y": 40,
                        "w": 400,
                        "h": 120,
                        "data": [
                            [{"text": "Phase"}, {"text": "Owner"}],
                            [{"text": "Beta", "fillColor": "#eeeeee"}, {"text": " "}],
                        ],
                    }
                ],
            },
        ],
    }
