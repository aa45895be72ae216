"""Outbound calls to the Gemini API.

The dispatcher turns an encoded image and a compiled instruction into one
``google-genai`` request and returns the raw response untouched; deciding
what the response means is the classifier's job.

Request Shapes
--------------
========================  ===========================  ==========================
Operation                 Model (config field)         Request configuration
========================  ===========================  ==========================
image-producing edits     ``edit_model_id``            modalities IMAGE + TEXT
describe                  ``describe_model_id``        modality TEXT
generate-from-prompt      ``generate_model_id``        1 image, PNG, 1:1
========================  ===========================  ==========================

Image edits ask for TEXT as well as IMAGE so that, when the model declines to
draw, its explanation is still available for the error message.

Client Lifecycle
----------------
A single :class:`google.genai.Client` is shared by every call. It is built by
:class:`GenAIClientProvider` on first use, which is also when a missing API
key is reported.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from retoucher.core.config import RetoucherConfig
from retoucher.core.errors import ConfigurationError, TransportError
from retoucher.core.image_encoder import EncodedImage
from retoucher.core.models import OperationKind

logger = logging.getLogger(__name__)

IMAGE_MODALITIES = (types.Modality.IMAGE, types.Modality.TEXT)
TEXT_MODALITIES = (types.Modality.TEXT,)

GENERATED_IMAGE_COUNT = 1
GENERATED_IMAGE_MIME_TYPE = "image/png"
GENERATED_IMAGE_ASPECT_RATIO = "1:1"

_TRANSPORT_FAILURES = (genai_errors.APIError, httpx.HTTPError)


class GenAIClientProvider:
    """Lazily builds and then reuses one ``genai.Client``.

    Args:
        config: Source of the API key and request timeout.
        client: Ready-made client to use instead of building one.
    """

    def __init__(self, config: RetoucherConfig, client: genai.Client | None = None) -> None:
        self._config = config
        self._client = client

    def get(self) -> genai.Client:
        """Return the shared client, building it on first call.

        Raises:
            ConfigurationError: If no API key is configured.
        """
        if self._client is None:
            if not self._config.api_key:
                raise ConfigurationError(
                    "No API key configured. Set RETOUCHER_API_KEY (or GEMINI_API_KEY)."
                )
            http_options = None
            if self._config.request_timeout is not None:
                # HttpOptions takes milliseconds
                http_options = types.HttpOptions(timeout=int(self._config.request_timeout * 1000))
            self._client = genai.Client(api_key=self._config.api_key, http_options=http_options)
            logger.info("Gemini client initialised")
        return self._client


def build_contents(encoded: EncodedImage | None, instruction: str) -> list[types.Content]:
    """Ordered request parts: the inline image (if any), then the instruction."""
    parts = []
    if encoded is not None:
        parts.append(types.Part.from_bytes(data=encoded.to_bytes(), mime_type=encoded.mime_type))
    parts.append(types.Part.from_text(text=instruction))
    return [types.Content(role="user", parts=parts)]


def build_content_config(kind: OperationKind) -> types.GenerateContentConfig:
    modalities = IMAGE_MODALITIES if kind.produces_image else TEXT_MODALITIES
    return types.GenerateContentConfig(response_modalities=list(modalities))


def build_images_config() -> types.GenerateImagesConfig:
    return types.GenerateImagesConfig(
        number_of_images=GENERATED_IMAGE_COUNT,
        output_mime_type=GENERATED_IMAGE_MIME_TYPE,
        aspect_ratio=GENERATED_IMAGE_ASPECT_RATIO,
    )


class Dispatcher:
    """Sends compiled requests to the service and returns raw responses."""

    def __init__(self, clients: GenAIClientProvider, config: RetoucherConfig) -> None:
        self._clients = clients
        self._config = config

    def model_for(self, kind: OperationKind) -> str:
        if kind is OperationKind.DESCRIBE:
            return self._config.describe_model_id
        if kind is OperationKind.GENERATE_FROM_PROMPT:
            return self._config.generate_model_id
        return self._config.edit_model_id

    async def generate_content(
        self, kind: OperationKind, encoded: EncodedImage, instruction: str
    ) -> types.GenerateContentResponse:
        """Send an image plus instruction and return the raw response.

        Raises:
            ConfigurationError: If the client cannot be built.
            TransportError: If the call cannot be completed.
        """
        client = self._clients.get()
        model = self.model_for(kind)
        logger.info(f"Sending image and {kind.label} instruction to {model}...")
        try:
            response = await client.aio.models.generate_content(
                model=model,
                contents=build_contents(encoded, instruction),
                config=build_content_config(kind),
            )
        except _TRANSPORT_FAILURES as e:
            raise self._transport_error(kind, model, e) from e
        logger.info(f"Received response from model for {kind.label}.")
        return response

    async def generate_images(self, prompt: str) -> types.GenerateImagesResponse:
        """Request exactly one square PNG for ``prompt``.

        Raises:
            ConfigurationError: If the client cannot be built.
            TransportError: If the call cannot be completed.
        """
        kind = OperationKind.GENERATE_FROM_PROMPT
        client = self._clients.get()
        model = self.model_for(kind)
        logger.info(f"Requesting image generation from {model}...")
        try:
            response = await client.aio.models.generate_images(
                model=model,
                prompt=prompt,
                config=build_images_config(),
            )
        except _TRANSPORT_FAILURES as e:
            raise self._transport_error(kind, model, e) from e
        logger.info("Received response from model for image generation.")
        return response

    @staticmethod
    def _transport_error(kind: OperationKind, model: str, error: Any) -> TransportError:
        message = f"Call to {model} for {kind.label} failed: {error}"
        logger.error(message)
        return TransportError(message)
