"""Resolution of raw service responses into a single outcome.

A generation response can carry several signals at once: a block indicator,
image parts, text parts and a finish reason. The classifier reads them into
a flat view and evaluates an ordered tuple of rules against it; the first
rule that matches decides the outcome. The order is the contract:

==  ================  =======================================================
#   Rule              Outcome
==  ================  =======================================================
1   blocked           ``BlockedError`` (wins even if an image is present)
2   image present     ``ImageOutcome`` from the first inline image part
3   abnormal stop     ``GenerationStoppedError`` for a non-``STOP`` reason
4   text fallback     ``NoImageReturnedError`` quoting any returned text
==  ================  =======================================================

Description responses use the blocked rule followed by a text rule, and
text-to-image responses only check for a generated image.

The classifier is synchronous and stateless; it inspects a response that has
already been received.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from retoucher.core.errors import (
    BlockedError,
    GenerationStoppedError,
    NoDescriptionError,
    NoImageReturnedError,
)
from retoucher.core.models import ImageOutcome, TextOutcome

logger = logging.getLogger(__name__)

NOMINAL_FINISH_REASON = "STOP"
_UNSPECIFIED_BLOCK_REASON = "BLOCKED_REASON_UNSPECIFIED"
_DEFAULT_GENERATED_MIME_TYPE = "image/png"

V = TypeVar("V")


# ---------------------------------------------------------------------------
# Response views.
# ---------------------------------------------------------------------------


def _code(value: Any) -> str | None:
    """Normalise an SDK enum (or plain string) to its string code."""
    if value is None:
        return None
    return str(getattr(value, "value", value))


def _to_base64(data: bytes | str) -> str:
    if isinstance(data, str):
        return data
    return base64.b64encode(data).decode("ascii")


@dataclass(frozen=True)
class ContentView:
    """The fields of a content-generation response the rules look at."""

    block_reason: str | None = None
    block_message: str | None = None
    images: tuple[ImageOutcome, ...] = ()
    finish_reason: str | None = None
    text: str | None = None

    @classmethod
    def from_response(cls, response: Any) -> ContentView:
        feedback = getattr(response, "prompt_feedback", None)
        block_reason = _code(getattr(feedback, "block_reason", None))
        if block_reason == _UNSPECIFIED_BLOCK_REASON:
            block_reason = None

        candidates = getattr(response, "candidates", None) or []
        first = candidates[0] if candidates else None
        content = getattr(first, "content", None)
        parts = getattr(content, "parts", None) or []

        images = []
        for part in parts:
            inline_data = getattr(part, "inline_data", None)
            data = getattr(inline_data, "data", None)
            if data:
                mime_type = getattr(inline_data, "mime_type", None) or _DEFAULT_GENERATED_MIME_TYPE
                images.append(ImageOutcome(mime_type=mime_type, data=_to_base64(data)))

        text = getattr(response, "text", None)
        text = text.strip() if isinstance(text, str) else None

        return cls(
            block_reason=block_reason,
            block_message=getattr(feedback, "block_reason_message", None),
            images=tuple(images),
            finish_reason=_code(getattr(first, "finish_reason", None)),
            text=text or None,
        )


@dataclass(frozen=True)
class GeneratedImagesView:
    """The fields of an image-synthesis response the rules look at."""

    images: tuple[ImageOutcome, ...] = ()
    filtered_reason: str | None = None

    @classmethod
    def from_response(cls, response: Any) -> GeneratedImagesView:
        images = []
        filtered_reason = None
        for generated in getattr(response, "generated_images", None) or []:
            image = getattr(generated, "image", None)
            image_bytes = getattr(image, "image_bytes", None)
            if image_bytes:
                mime_type = getattr(image, "mime_type", None) or _DEFAULT_GENERATED_MIME_TYPE
                images.append(ImageOutcome(mime_type=mime_type, data=_to_base64(image_bytes)))
            elif filtered_reason is None:
                filtered_reason = getattr(generated, "rai_filtered_reason", None)
        return cls(images=tuple(images), filtered_reason=filtered_reason)


# ---------------------------------------------------------------------------
# Rules.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClassificationRule(Generic[V]):
    """One predicate → outcome step of a classification.

    ``resolve`` either returns the success outcome or raises the typed failure.
    """

    name: str
    matches: Callable[[V], bool]
    resolve: Callable[[V, str], Any] = field(repr=False)


def _fail(error: Exception) -> Any:
    logger.error(str(error))
    raise error


def _raise_blocked(view: ContentView, context: str) -> Any:
    return _fail(BlockedError(view.block_reason or "", view.block_message))


def _first_image(view: ContentView, context: str) -> ImageOutcome:
    image = view.images[0]
    logger.info(f"Received image data ({image.mime_type}) for {context}")
    return image


def _raise_stopped(view: ContentView, context: str) -> Any:
    return _fail(GenerationStoppedError(view.finish_reason or "", context))


def _raise_no_image(view: ContentView, context: str) -> Any:
    logger.error(f"Model response did not contain an image part for {context}.")
    raise NoImageReturnedError(context, view.text)


def _text_answer(view: ContentView, context: str) -> TextOutcome:
    logger.info(f"Received text ({len(view.text or '')} chars) for {context}")
    return TextOutcome(text=view.text or "")


def _raise_no_description(view: ContentView, context: str) -> Any:
    return _fail(NoDescriptionError(view.finish_reason))


def _is_blocked(view: ContentView) -> bool:
    return bool(view.block_reason)


def _stopped_abnormally(view: ContentView) -> bool:
    return bool(view.finish_reason) and view.finish_reason != NOMINAL_FINISH_REASON


def _always(view: Any) -> bool:
    return True


BLOCKED_RULE: ClassificationRule[ContentView] = ClassificationRule(
    "blocked", _is_blocked, _raise_blocked
)

IMAGE_RULES: tuple[ClassificationRule[ContentView], ...] = (
    BLOCKED_RULE,
    ClassificationRule("image present", lambda view: bool(view.images), _first_image),
    ClassificationRule("abnormal stop", _stopped_abnormally, _raise_stopped),
    ClassificationRule("text fallback", _always, _raise_no_image),
)

DESCRIPTION_RULES: tuple[ClassificationRule[ContentView], ...] = (
    BLOCKED_RULE,
    ClassificationRule("text present", lambda view: bool(view.text), _text_answer),
    ClassificationRule("no description", _always, _raise_no_description),
)


def _first_generated(view: GeneratedImagesView, context: str) -> ImageOutcome:
    image = view.images[0]
    logger.info(f"Received generated image ({image.mime_type}) for {context}")
    return image


def _raise_nothing_generated(view: GeneratedImagesView, context: str) -> Any:
    detail = "This might be due to safety filters or the complexity of the prompt."
    if view.filtered_reason:
        detail = f"The image was filtered. Reason: {view.filtered_reason}"
    return _fail(NoImageReturnedError(context, detail=detail))


GENERATED_IMAGE_RULES: tuple[ClassificationRule[GeneratedImagesView], ...] = (
    ClassificationRule("image generated", lambda view: bool(view.images), _first_generated),
    ClassificationRule("nothing generated", _always, _raise_nothing_generated),
)


def apply_rules(rules: Sequence[ClassificationRule[V]], view: V, context: str) -> Any:
    """Evaluate ``rules`` in order and resolve the first one that matches.

    The built-in rule sets all end with a catch-all rule; the final raise only
    fires for a rule set without one (such as an empty one).
    """
    for rule in rules:
        if rule.matches(view):
            logger.debug(f"Response for {context} classified as '{rule.name}'")
            return rule.resolve(view, context)
    raise NoImageReturnedError(context)


# ---------------------------------------------------------------------------
# Public entry points.
# ---------------------------------------------------------------------------


def classify_image_response(response: Any, context: str) -> ImageOutcome:
    """Resolve an image-producing response to its image or a typed failure.

    Args:
        response: Raw ``GenerateContentResponse``.
        context: Label of the operation that produced it (e.g. ``"filter"``).

    Raises:
        BlockedError, GenerationStoppedError, NoImageReturnedError
    """
    return apply_rules(IMAGE_RULES, ContentView.from_response(response), context)


def classify_description_response(response: Any, context: str = "description") -> TextOutcome:
    """Resolve a description response to its trimmed text.

    Raises:
        BlockedError, NoDescriptionError
    """
    return apply_rules(DESCRIPTION_RULES, ContentView.from_response(response), context)


def classify_generated_images(response: Any, context: str = "image generation") -> ImageOutcome:
    """Resolve a text-to-image response to its first generated image.

    Raises:
        NoImageReturnedError: If the response holds no generated image.
    """
    return apply_rules(GENERATED_IMAGE_RULES, GeneratedImagesView.from_response(response), context)
