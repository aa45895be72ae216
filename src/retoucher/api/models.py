"""Pydantic request and response models for the Retoucher API.

Image-carrying endpoints take multipart form uploads, so only the JSON
bodies and the responses are modelled here.  FastAPI uses these models for
validation, serialisation, and OpenAPI documentation generation.

Models
------
GenerateRequest
    Payload for ``POST /api/generate``: the text-to-image prompt.
ImageResponse
    Result of every image-producing endpoint: the edited image as a data URI.
DescriptionResponse
    Result of ``POST /api/describe``.
ErrorResponse
    Body returned for every pipeline failure.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class GenerateRequest(BaseModel):
    """Request body for the ``POST /api/generate`` endpoint.

    Attributes:
        prompt: Description of the image to generate.  Sent to the model
            unchanged.
    """

    prompt: str = Field(
        ...,
        min_length=1,
        description="Text prompt describing the image to generate.",
    )


class ImageResponse(BaseModel):
    """Response body carrying a produced image.

    Attributes:
        image: ``data:<mime>;base64,<payload>`` URI of the image.
    """

    image: str = Field(..., description="Image as a base64 data URI.")


class DescriptionResponse(BaseModel):
    """Response body for ``POST /api/describe``."""

    description: str = Field(..., description="Single-paragraph description of the image.")


class PresetModel(BaseModel):
    """One adjustment preset as served by ``GET /api/presets``."""

    id: str
    name: str
    prompt: str


class PresetsResponse(BaseModel):
    """Response body for ``GET /api/presets``."""

    adjustments: list[PresetModel]


class ErrorResponse(BaseModel):
    """Body returned when an operation fails.

    Attributes:
        error: Exception class name (e.g. ``"BlockedError"``).
        detail: Human-readable message naming the failed operation.
    """

    error: str
    detail: str
