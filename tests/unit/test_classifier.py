"""Unit tests for response classification.

Responses are real ``google.genai.types`` objects built by the conftest
factory fixtures, so the classifier is exercised against the SDK's actual shapes.
"""

import base64

import pytest
from google.genai import types

from retoucher.core.classifier import (
    DESCRIPTION_RULES,
    IMAGE_RULES,
    ContentView,
    GeneratedImagesView,
    apply_rules,
    classify_description_response,
    classify_generated_images,
    classify_image_response,
)
from retoucher.core.errors import (
    BlockedError,
    GenerationStoppedError,
    NoDescriptionError,
    NoImageReturnedError,
)
from retoucher.core.models import ImageOutcome


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


@pytest.mark.unit
class TestRuleOrder:
    """The precedence of the rules is part of the contract."""

    def test_image_rule_order(self):
        assert [rule.name for rule in IMAGE_RULES] == [
            "blocked",
            "image present",
            "abnormal stop",
            "text fallback",
        ]

    def test_description_rule_order(self):
        assert [rule.name for rule in DESCRIPTION_RULES] == [
            "blocked",
            "text present",
            "no description",
        ]


@pytest.mark.unit
class TestContentView:
    """Tests for reading SDK responses into a flat view."""

    def test_reads_all_fields(self, make_content_response, make_image_part, make_text_part):
        response = make_content_response(
            [make_text_part("  note  "), make_image_part(b"img", "image/jpeg")],
            finish_reason="STOP",
        )
        view = ContentView.from_response(response)
        assert view.block_reason is None
        assert view.images == (ImageOutcome("image/jpeg", _b64(b"img")),)
        assert view.finish_reason == "STOP"
        assert view.text == "note"

    def test_empty_response(self):
        view = ContentView.from_response(types.GenerateContentResponse())
        assert view == ContentView()

    def test_block_reason_normalised_to_code(self, make_content_response):
        view = ContentView.from_response(make_content_response(None, block_reason="SAFETY"))
        assert view.block_reason == "SAFETY"


@pytest.mark.unit
class TestClassifyImageResponse:
    """Tests for the four-step image classification."""

    def test_image_returned(self, make_content_response, make_image_part):
        response = make_content_response([make_image_part(b"edited", "image/png")])
        outcome = classify_image_response(response, "edit")
        assert outcome.data_uri == f"data:image/png;base64,{_b64(b'edited')}"

    def test_blocked_wins_over_image(self, make_content_response, make_image_part):
        response = make_content_response(
            [make_image_part(b"edited")],
            block_reason="PROHIBITED_CONTENT",
            block_message="Not allowed.",
        )
        with pytest.raises(BlockedError) as exc_info:
            classify_image_response(response, "edit")
        assert exc_info.value.reason == "PROHIBITED_CONTENT"
        assert exc_info.value.block_message == "Not allowed."
        assert "Reason: PROHIBITED_CONTENT" in str(exc_info.value)
        assert "Not allowed." in str(exc_info.value)

    def test_blocked_without_message(self, make_content_response):
        with pytest.raises(BlockedError, match="Reason: SAFETY"):
            classify_image_response(make_content_response(None, block_reason="SAFETY"), "filter")

    def test_first_image_wins(self, make_content_response, make_image_part, make_text_part):
        response = make_content_response(
            [
                make_text_part("Here you go"),
                make_image_part(b"first", "image/png"),
                make_image_part(b"second", "image/jpeg"),
            ]
        )
        outcome = classify_image_response(response, "filter")
        assert outcome.mime_type == "image/png"
        assert outcome.data == _b64(b"first")

    def test_abnormal_stop(self, make_content_response):
        response = make_content_response([], finish_reason="SAFETY")
        with pytest.raises(GenerationStoppedError) as exc_info:
            classify_image_response(response, "adjustment")
        assert exc_info.value.reason == "SAFETY"
        assert exc_info.value.context == "adjustment"
        assert "adjustment" in str(exc_info.value)
        assert "SAFETY" in str(exc_info.value)

    def test_unspecified_block_reason_is_not_a_block(
        self, make_content_response, make_image_part
    ):
        """Only a concrete block reason counts; the SDK's placeholder value is ignored."""
        response = make_content_response(
            [make_image_part(b"edited")], block_reason="BLOCKED_REASON_UNSPECIFIED"
        )
        assert ContentView.from_response(response).block_reason is None
        assert classify_image_response(response, "edit").data == _b64(b"edited")

    def test_image_wins_over_abnormal_stop(self, make_content_response, make_image_part):
        response = make_content_response([make_image_part(b"partial")], finish_reason="MAX_TOKENS")
        assert classify_image_response(response, "edit").data == _b64(b"partial")

    def test_text_fallback_quotes_text(self, make_content_response, make_text_part):
        response = make_content_response(
            [make_text_part("  I cannot change that person's ethnicity.  ")], finish_reason="STOP"
        )
        with pytest.raises(NoImageReturnedError) as exc_info:
            classify_image_response(response, "edit")
        assert exc_info.value.text == "I cannot change that person's ethnicity."
        assert '"I cannot change that person\'s ethnicity."' in str(exc_info.value)
        assert "for the edit" in str(exc_info.value)

    def test_generic_explanation_without_text(self, make_content_response):
        with pytest.raises(NoImageReturnedError, match="safety filters") as exc_info:
            classify_image_response(make_content_response([]), "background removal")
        assert exc_info.value.text is None
        assert "background removal" in str(exc_info.value)

    def test_no_candidates(self):
        with pytest.raises(NoImageReturnedError):
            classify_image_response(types.GenerateContentResponse(), "edit")


    def test_empty_rule_set_reports_no_image(self):
        with pytest.raises(NoImageReturnedError, match="for the edit"):
            apply_rules((), ContentView(), "edit")


@pytest.mark.unit
class TestClassifyDescriptionResponse:
    """Tests for description classification."""

    def test_trimmed_text(self, make_content_response, make_text_part):
        response = make_content_response([make_text_part("\n A cat on a sofa. \n")])
        assert classify_description_response(response).text == "A cat on a sofa."

    def test_blocked_first(self, make_content_response, make_text_part):
        response = make_content_response([make_text_part("A cat.")], block_reason="SAFETY")
        with pytest.raises(BlockedError):
            classify_description_response(response)

    def test_no_text_reports_finish_reason(self, make_content_response):
        response = make_content_response([], finish_reason="RECITATION")
        with pytest.raises(NoDescriptionError, match="RECITATION") as exc_info:
            classify_description_response(response)
        assert exc_info.value.finish_reason == "RECITATION"

    def test_whitespace_only_text_is_not_a_description(
        self, make_content_response, make_text_part
    ):
        with pytest.raises(NoDescriptionError):
            classify_description_response(make_content_response([make_text_part("   ")]))

    def test_unknown_reason_without_candidates(self):
        with pytest.raises(NoDescriptionError, match="Unknown"):
            classify_description_response(types.GenerateContentResponse())


@pytest.mark.unit
class TestClassifyGeneratedImages:
    """Tests for text-to-image classification."""

    def test_first_generated_image(self, make_images_response):
        outcome = classify_generated_images(make_images_response(b"one", b"two"))
        assert outcome.data_uri == f"data:image/png;base64,{_b64(b'one')}"

    def test_empty_result(self, make_images_response):
        with pytest.raises(NoImageReturnedError, match="image generation"):
            classify_generated_images(make_images_response())

    def test_filtered_reason_reported(self):
        response = types.GenerateImagesResponse(
            generated_images=[types.GeneratedImage(rai_filtered_reason="Filtered: people")]
        )
        with pytest.raises(NoImageReturnedError, match="Filtered: people"):
            classify_generated_images(response)

    def test_view_ignores_entries_without_bytes(self):
        response = types.GenerateImagesResponse(
            generated_images=[
                types.GeneratedImage(rai_filtered_reason="blocked"),
                types.GeneratedImage(image=types.Image(image_bytes=b"ok")),
            ]
        )
        view = GeneratedImagesView.from_response(response)
        assert view.images == (ImageOutcome("image/png", _b64(b"ok")),)
        assert view.filtered_reason == "blocked"
