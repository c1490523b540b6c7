"""Tests for the import/generate entry points."""

from typing import Any

import pytest

from slidecodec.config import Settings
from slidecodec.service import (
    BatchApplier,
    PresentationReader,
    generate_presentation,
    import_presentation,
    presentation_id_from,
)


class FakeReader(PresentationReader):
    """Returns a canned presentation and remembers the requested id."""

    def __init__(self, tree: dict[str, Any]):
        self.tree = tree
        self.requested: list[str] = []

    def get_presentation(self, presentation_id: str) -> dict[str, Any]:
        self.requested.append(presentation_id)
        return self.tree


class FailingReader(PresentationReader):
    def get_presentation(self, presentation_id: str) -> dict[str, Any]:
        raise PermissionError(f"No access to {presentation_id}")


class RecordingApplier(BatchApplier):
    """Records every call in order."""

    def __init__(self):
        self.calls: list[tuple[str, Any]] = []

    def create_presentation(self, title: str) -> tuple[str, str]:
        self.calls.append(("create", title))
        return "new-deck", "p"

    def batch_update(self, presentation_id: str, requests: list[dict[str, Any]]) -> dict[str, Any]:
        self.calls.append(("batch", requests))
        return {"presentationId": presentation_id, "replies": [{} for _ in requests]}

    def set_speaker_notes(self, presentation_id: str, slide_id: str, text: str) -> None:
        self.calls.append(("notes", (slide_id, text)))


class TestPresentationId:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("https://docs.google.com/presentation/d/abc_DEF-123/edit#slide=id.p", "abc_DEF-123"),
            ("abc123", "abc123"),
            ("  abc123  ", "abc123"),
            ("", ""),
        ],
    )
    def test_presentation_id_from(self, value: str, expected: str) -> None:
        assert presentation_id_from(value) == expected


class TestImportPresentation:
    """Tests for import_presentation."""

    def test_success_envelope(self, two_master_presentation: dict[str, Any], settings: Settings) -> None:
        reader = FakeReader(two_master_presentation)
        response = import_presentation(
            reader, "https://docs.google.com/presentation/d/deck-1/edit", settings=settings
        )

        assert response["status"] == "success"
        assert reader.requested == ["deck-1"]
        assert response["json"]["config"]["title"] == "Quarterly Review"
        assert len(response["json"]["slides"]) == 2
        assert response["issues"] == []

    def test_raw_mode_is_forwarded(self, two_master_presentation: dict[str, Any], settings: Settings) -> None:
        response = import_presentation(FakeReader(two_master_presentation), "deck-1", raw_mode=True, settings=settings)
        assert response["json"]["config"]["rawMode"] is True

    def test_reader_failure_is_an_error_envelope(self, settings: Settings) -> None:
        response = import_presentation(FailingReader(), "deck-1", settings=settings)

        assert response["status"] == "error"
        assert "No access to deck-1" in response["message"]

    def test_missing_id(self, settings: Settings) -> None:
        response = import_presentation(FakeReader({}), "   ", settings=settings)
        assert response == {"status": "error", "message": "No presentation id provided"}


class TestGeneratePresentation:
    """Tests for generate_presentation."""

    def test_success_envelope(self, sample_document: dict[str, Any], settings: Settings) -> None:
        applier = RecordingApplier()
        response = generate_presentation(applier, sample_document, settings)

        assert response["status"] == "success"
        assert response["presentationId"] == "new-deck"
        assert response["url"] == "https://docs.google.com/presentation/d/new-deck/edit"
        assert response["slideCount"] == 2
        assert applier.calls[0] == ("create", "Launch Plan")

    def test_batches_then_notes(self, sample_document: dict[str, Any], settings: Settings) -> None:
        applier = RecordingApplier()
        generate_presentation(applier, sample_document, settings)

        kinds = [kind for kind, _ in applier.calls]
        assert kinds == ["create", "batch", "notes"]
        assert applier.calls[-1] == ("notes", ("p", "Welcome everyone"))
        first_request = applier.calls[1][1][0]
        assert "updatePageProperties" in first_request

    def test_connections_are_a_second_batch(self, settings: Settings) -> None:
        document = {
            "slides": [
                {
                    "elements": [
                        {"type": "shape", "objectId": "a"},
                        {"type": "line", "x1": 0, "y1": 0, "x2": 10, "y2": 0, "endConnect": {"objectId": "a"}},
                    ]
                }
            ]
        }
        applier = RecordingApplier()
        generate_presentation(applier, document, settings)

        batches = [payload for kind, payload in applier.calls if kind == "batch"]
        assert len(batches) == 2
        assert list(batches[1][0]) == ["updateLineProperties"]
        assert batches[1][0]["updateLineProperties"]["lineProperties"]["endConnection"]["connectedObjectId"] == (
            "obj_s0_e0"
        )

    def test_invalid_document_never_creates(self, settings: Settings) -> None:
        applier = RecordingApplier()
        response = generate_presentation(applier, {"slides": []}, settings)

        assert response["status"] == "error"
        assert "no slides" in response["message"]
        assert applier.calls == []

    def test_issues_are_reported(self, settings: Settings) -> None:
        document = {"slides": [{"elements": [{"type": "image", "objectId": "img"}]}]}
        response = generate_presentation(RecordingApplier(), document, settings)

        assert response["status"] == "success"
        assert response["issues"][0]["kind"] == "ElementFailure"
        assert response["issues"][0]["object_id"] == "img"
