"""Exception hierarchy for the editing pipeline.

Every failure an operation can surface derives from :class:`RetoucherError`.
Messages are written to be shown directly to the user and always name the
operation that failed together with any reason code the service reported.
"""


class RetoucherError(Exception):
    """Base class for all editing pipeline failures."""


class ConfigurationError(RetoucherError):
    """Required configuration (the API key) is missing."""


class EncodingError(RetoucherError):
    """The image could not be read or represented as a two-part data URI."""


class TransportError(RetoucherError):
    """The call to the remote service could not be completed."""


class BlockedError(RetoucherError):
    """The service declined to process the request.

    Attributes:
        reason: Block reason code reported by the service (e.g. ``SAFETY``).
        block_message: Optional explanation that accompanied the block.
    """

    def __init__(self, reason: str, block_message: str | None = None) -> None:
        self.reason = reason
        self.block_message = block_message
        super().__init__(f"Request was blocked. Reason: {reason}. {block_message or ''}".rstrip())


class GenerationStoppedError(RetoucherError):
    """Generation ended abnormally without producing an image."""

    def __init__(self, reason: str, context: str) -> None:
        self.reason = reason
        self.context = context
        super().__init__(
            f"Image generation for {context} stopped unexpectedly. Reason: {reason}. "
            "This often relates to safety settings."
        )


class NoImageReturnedError(RetoucherError):
    """The service answered without an image part.

    Attributes:
        context: Label of the operation that produced the response.
        text: Trimmed text the model returned instead, if any.
    """

    def __init__(self, context: str, text: str | None = None, detail: str | None = None) -> None:
        self.context = context
        self.text = text
        if detail is None:
            if text:
                detail = f'The model responded with text: "{text}"'
            else:
                detail = (
                    "This can happen due to safety filters or if the request is too complex. "
                    "Please try rephrasing your prompt to be more direct."
                )
        super().__init__(f"The AI model did not return an image for the {context}. {detail}")


class ImageGenerationError(NoImageReturnedError):
    """Uniform failure raised by text-to-image generation.

    Text-to-image has no finer-grained classification, so every failure on
    that path (transport, configuration and unexpected SDK errors included) is surfaced
    as this type with the original exception chained as ``__cause__``.
    """

    def __init__(self, message: str) -> None:
        RetoucherError.__init__(self, message)
        self.context = "image generation"
        self.text = None


class NoDescriptionError(RetoucherError):
    """A description call returned neither a block nor usable text."""

    def __init__(self, finish_reason: str | None = None) -> None:
        self.finish_reason = finish_reason or "Unknown"
        super().__init__(
            f"The AI model did not return a text description. Reason: {self.finish_reason}. "
            "This can happen due to safety filters."
        )
