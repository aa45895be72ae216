"""Unit tests for the pipeline value types."""

import base64

import pytest
from PIL import Image

from retoucher.core.models import Hotspot, ImageOutcome, OperationKind, TextOutcome, TextStyle


@pytest.mark.unit
class TestOperationKind:
    """Tests for OperationKind labels and flags."""

    @pytest.mark.parametrize(
        "kind,label",
        [
            (OperationKind.LOCALIZED_EDIT, "edit"),
            (OperationKind.FILTER, "filter"),
            (OperationKind.ADJUSTMENT, "adjustment"),
            (OperationKind.REMOVE_BACKGROUND, "background removal"),
            (OperationKind.TEXT_REPLACE, "text edit"),
            (OperationKind.DESCRIBE, "description"),
            (OperationKind.GENERATE_FROM_PROMPT, "image generation"),
        ],
    )
    def test_labels(self, kind, label):
        assert kind.label == label

    def test_only_describe_is_text_only(self):
        text_only = [kind for kind in OperationKind if not kind.produces_image]
        assert text_only == [OperationKind.DESCRIBE]

    def test_values_are_wire_names(self):
        assert OperationKind("remove-background") is OperationKind.REMOVE_BACKGROUND


@pytest.mark.unit
class TestHotspot:
    """Tests for Hotspot."""

    def test_valid_hotspot(self):
        hotspot = Hotspot(10, 20)
        assert (hotspot.x, hotspot.y) == (10, 20)

    def test_negative_coordinates_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            Hotspot(-1, 5)

    def test_hotspot_is_immutable(self):
        hotspot = Hotspot(1, 2)
        with pytest.raises(AttributeError):
            hotspot.x = 3


@pytest.mark.unit
class TestTextStyle:
    """Tests for TextStyle normalisation."""

    def test_default_style_is_empty(self):
        assert TextStyle().is_empty()

    def test_blank_strings_count_as_unset(self):
        style = TextStyle(font="  ", size="", color=None)
        assert style.is_empty()
        assert style.normalized().font is None

    def test_whitespace_trimmed(self):
        assert TextStyle(color="  #FF0000 ").normalized().color == "#FF0000"

    def test_flag_alone_makes_style_non_empty(self):
        assert not TextStyle(italic=True).is_empty()

    def test_color_passed_through_verbatim(self):
        """Colour values are not validated or rewritten."""
        assert TextStyle(color="dusty rose").normalized().color == "dusty rose"


@pytest.mark.unit
class TestOutcomes:
    """Tests for ImageOutcome and TextOutcome."""

    def test_data_uri(self):
        outcome = ImageOutcome(mime_type="image/png", data="AAAA")
        assert outcome.data_uri == "data:image/png;base64,AAAA"

    def test_to_pil_decodes_payload(self, png_bytes):
        outcome = ImageOutcome(
            mime_type="image/png", data=base64.b64encode(png_bytes).decode("ascii")
        )
        image = outcome.to_pil()
        assert isinstance(image, Image.Image)
        assert image.size == (4, 4)

    def test_text_outcome(self):
        assert TextOutcome(text="a cat").text == "a cat"
