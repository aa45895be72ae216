"""Operation facade: one coroutine per edit kind.

:class:`PhotoEditor` is the only boundary callers use. Every operation runs
the same linear pipeline::

    encode image  ->  compile instruction  ->  dispatch  ->  classify

and returns the decoded artifact as a string: an image data URI
(``data:<mime>;base64,<payload>``) or, for descriptions, plain text.

Failures from the lower layers propagate untouched, with one exception:
:meth:`PhotoEditor.generate_from_prompt` surfaces every failure, pipeline or not, as
:class:`~retoucher.core.errors.ImageGenerationError`.

The editor keeps no per-call state; concurrent calls are independent and
are neither serialised nor de-duplicated.

Usage
-----
::

    from retoucher.core.editor import create_editor
    from retoucher.core.image_encoder import ImageResource
    from retoucher.core.models import Hotspot

    editor = create_editor()
    photo = ImageResource.from_path("portrait.jpg")
    data_uri = await editor.edit_image(photo, "remove the lamp post", Hotspot(310, 95))
"""

from __future__ import annotations

import logging

from retoucher.core.classifier import (
    classify_description_response,
    classify_generated_images,
    classify_image_response,
)
from retoucher.core.config import RetoucherConfig
from retoucher.core.dispatcher import Dispatcher, GenAIClientProvider
from retoucher.core.errors import ImageGenerationError
from retoucher.core.image_encoder import ImageResource, encode_image
from retoucher.core.instructions import (
    compile_adjustment,
    compile_describe,
    compile_filter,
    compile_generate,
    compile_localized_edit,
    compile_remove_background,
    compile_text_replace,
)
from retoucher.core.models import Hotspot, OperationKind, TextStyle

logger = logging.getLogger(__name__)


class PhotoEditor:
    """Entry point for every editing operation.

    Args:
        dispatcher: Dispatcher bound to the shared service client.
    """

    def __init__(self, dispatcher: Dispatcher) -> None:
        self._dispatcher = dispatcher

    async def _edit(self, kind: OperationKind, image: ImageResource, instruction: str) -> str:
        encoded = await encode_image(image)
        response = await self._dispatcher.generate_content(kind, encoded, instruction)
        return classify_image_response(response, kind.label).data_uri

    async def edit_image(self, image: ImageResource, prompt: str, hotspot: Hotspot) -> str:
        """Apply a localized edit centred on ``hotspot``."""
        logger.info(f"Starting generative edit at: ({hotspot.x}, {hotspot.y})")
        return await self._edit(
            OperationKind.LOCALIZED_EDIT, image, compile_localized_edit(prompt, hotspot)
        )

    async def apply_filter(self, image: ImageResource, prompt: str) -> str:
        """Apply a stylistic filter to the whole image."""
        logger.info(f"Starting filter generation: {prompt}")
        return await self._edit(OperationKind.FILTER, image, compile_filter(prompt))

    async def apply_adjustment(self, image: ImageResource, prompt: str) -> str:
        """Apply a global photorealistic adjustment."""
        logger.info(f"Starting global adjustment generation: {prompt}")
        return await self._edit(OperationKind.ADJUSTMENT, image, compile_adjustment(prompt))

    async def remove_background(self, image: ImageResource) -> str:
        """Cut the subject out onto a transparent background."""
        logger.info("Starting background removal.")
        return await self._edit(
            OperationKind.REMOVE_BACKGROUND, image, compile_remove_background()
        )

    async def replace_text(
        self,
        image: ImageResource,
        old_text: str,
        new_text: str,
        style: TextStyle | None = None,
    ) -> str:
        """Replace ``old_text`` in the image with ``new_text``.

        Args:
            image: Image containing the text.
            old_text: Text to find.
            new_text: Replacement text.
            style: Optional style hints; unset attributes are matched to the
                original text.
        """
        logger.info(f'Starting text edit: replacing "{old_text}" with "{new_text}"')
        compiled = compile_text_replace(old_text, new_text, style)
        return await self._edit(OperationKind.TEXT_REPLACE, image, compiled.instruction)

    async def describe_image(self, image: ImageResource) -> str:
        """Describe the image as a single prompt-ready paragraph."""
        logger.info("Starting image description generation.")
        kind = OperationKind.DESCRIBE
        encoded = await encode_image(image)
        response = await self._dispatcher.generate_content(kind, encoded, compile_describe())
        return classify_description_response(response, kind.label).text

    async def generate_from_prompt(self, prompt: str) -> str:
        """Generate one square PNG from a text prompt.

        Raises:
            ImageGenerationError: For any failure, chained to its cause.
        """
        logger.info(f"Starting image generation from prompt: {prompt}")
        kind = OperationKind.GENERATE_FROM_PROMPT
        try:
            response = await self._dispatcher.generate_images(compile_generate(prompt))
            return classify_generated_images(response, kind.label).data_uri
        except Exception as e:
            logger.error(f"Error during image generation: {e}")
            raise ImageGenerationError(str(e)) from e


def create_editor(config: RetoucherConfig | None = None) -> PhotoEditor:
    """Build a :class:`PhotoEditor` sharing one lazily-created service client."""
    if config is None:
        from retoucher.core.config import config as default_config

        config = default_config
    clients = GenAIClientProvider(config)
    return PhotoEditor(Dispatcher(clients, config))
