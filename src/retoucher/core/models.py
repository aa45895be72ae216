"""Value types shared by the editing pipeline."""

import base64
from dataclasses import dataclass
from enum import Enum
from io import BytesIO

from PIL import Image


class OperationKind(str, Enum):
    """Kinds of edit the pipeline can perform."""

    LOCALIZED_EDIT = "localized-edit"
    FILTER = "filter"
    ADJUSTMENT = "adjustment"
    REMOVE_BACKGROUND = "remove-background"
    TEXT_REPLACE = "text-replace"
    DESCRIBE = "describe"
    GENERATE_FROM_PROMPT = "generate-from-prompt"

    @property
    def label(self) -> str:
        """Human-readable context label used in logs and error messages."""
        return _CONTEXT_LABELS[self]

    @property
    def produces_image(self) -> bool:
        return self is not OperationKind.DESCRIBE


_CONTEXT_LABELS = {
    OperationKind.LOCALIZED_EDIT: "edit",
    OperationKind.FILTER: "filter",
    OperationKind.ADJUSTMENT: "adjustment",
    OperationKind.REMOVE_BACKGROUND: "background removal",
    OperationKind.TEXT_REPLACE: "text edit",
    OperationKind.DESCRIBE: "description",
    OperationKind.GENERATE_FROM_PROMPT: "image generation",
}


@dataclass(frozen=True)
class Hotspot:
    """Pixel coordinate marking the focus point of a localized edit."""

    x: int
    y: int

    def __post_init__(self) -> None:
        if self.x < 0 or self.y < 0:
            raise ValueError(f"Hotspot coordinates must be non-negative, got ({self.x}, {self.y})")


@dataclass(frozen=True)
class TextStyle:
    """Optional style hints for replacement text.

    A field left as ``None`` (or blank, or ``False`` for the flags) means the
    model should infer that attribute from the original text. ``color`` is
    passed through verbatim; any colour name or hex string is accepted.
    """

    font: str | None = None
    size: str | None = None
    color: str | None = None
    bold: bool = False
    italic: bool = False

    def normalized(self) -> "TextStyle":
        """Return a copy with surrounding whitespace trimmed and blanks unset."""

        def _clean(value: str | None) -> str | None:
            if value is None:
                return None
            value = value.strip()
            return value or None

        return TextStyle(
            font=_clean(self.font),
            size=_clean(self.size),
            color=_clean(self.color),
            bold=bool(self.bold),
            italic=bool(self.italic),
        )

    def is_empty(self) -> bool:
        style = self.normalized()
        return not (style.font or style.size or style.color or style.bold or style.italic)


@dataclass(frozen=True)
class ImageOutcome:
    """A successfully produced image.

    Attributes:
        mime_type: Mime type reported by the service (e.g. ``image/png``).
        data: Base64 payload of the image.
    """

    mime_type: str
    data: str

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    def to_pil(self) -> Image.Image:
        """Decode the payload into a PIL Image (for callers that need pixels)."""
        image = Image.open(BytesIO(base64.b64decode(self.data)))
        image.load()
        return image


@dataclass(frozen=True)
class TextOutcome:
    """A plain text answer (image descriptions)."""

    text: str
