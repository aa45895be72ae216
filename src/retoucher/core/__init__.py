"""Core request/response pipeline for AI photo editing.

This module provides the components every editing operation runs through:

- **Image Encoder** (image_encoder.py): image resource → mime type + base64 payload
- **Instruction Compiler** (instructions.py): per-operation natural-language instructions
- **Dispatcher** (dispatcher.py): one ``google-genai`` call per operation
- **Response Classifier** (classifier.py): ordered rules resolving a response
  to an image, text, or a typed failure
- **Operation Facade** (editor.py): :class:`PhotoEditor`, one coroutine per edit kind
- **RetoucherConfig** (config.py): configuration using Pydantic Settings

Architecture Overview
---------------------
Each call is linear and stateless::

    PhotoEditor -> encode_image / compile_* -> Dispatcher -> classify_* -> caller

The only object shared between calls is the ``genai.Client`` owned by
:class:`GenAIClientProvider`, created once on first use.

Usage Example
-------------
    from retoucher.core import ImageResource, TextStyle, create_editor

    editor = create_editor()
    photo = ImageResource.from_path("sign.jpg")
    data_uri = await editor.replace_text(photo, "OPEN", "CLOSED", TextStyle(color="red"))

See Also
--------
- PhotoEditor: operation signatures
- RetoucherConfig: configuration options and environment variables
"""

from retoucher.core.config import RetoucherConfig, config
from retoucher.core.editor import PhotoEditor, create_editor
from retoucher.core.errors import (
    BlockedError,
    ConfigurationError,
    EncodingError,
    GenerationStoppedError,
    ImageGenerationError,
    NoDescriptionError,
    NoImageReturnedError,
    RetoucherError,
    TransportError,
)
from retoucher.core.image_encoder import ImageResource
from retoucher.core.models import Hotspot, ImageOutcome, OperationKind, TextOutcome, TextStyle

__all__ = [
    "BlockedError",
    "ConfigurationError",
    "EncodingError",
    "GenerationStoppedError",
    "Hotspot",
    "ImageGenerationError",
    "ImageOutcome",
    "ImageResource",
    "NoDescriptionError",
    "NoImageReturnedError",
    "OperationKind",
    "PhotoEditor",
    "RetoucherConfig",
    "RetoucherError",
    "TextOutcome",
    "TextStyle",
    "TransportError",
    "config",
    "create_editor",
]
