"""Retoucher: FastAPI Application.

This module is the single entry point for the HTTP API.  It defines the
FastAPI ``app`` instance, one route per editing operation, and the
``main()`` CLI function that launches the uvicorn server.

Architecture
------------
The application is a thin, stateless layer over
:class:`~retoucher.core.editor.PhotoEditor`:

- **Images** arrive as multipart uploads and are wrapped in an
  :class:`~retoucher.core.image_encoder.ImageResource` without being
  stored anywhere.
- **The editor** is created once at startup and kept on ``app.state``; it
  owns the single shared Gemini client.
- **Failures** raised by the pipeline are translated to JSON error
  responses by one exception handler.

Endpoints
---------
========  ==========================  ====================================
Method    Path                        Purpose
========  ==========================  ====================================
GET       ``/api/health``             Version and configured models
GET       ``/api/presets``            Adjustment presets
POST      ``/api/edit``               Localized edit at a hotspot
POST      ``/api/filter``             Stylistic filter
POST      ``/api/adjust``             Global adjustment
POST      ``/api/remove-background``  Transparent-background cutout
POST      ``/api/text``               Find and replace text
POST      ``/api/describe``           Prompt-ready description
POST      ``/api/generate``           Text-to-image generation
========  ==========================  ====================================

Usage
-----
CLI (installed entry point)::

    retoucher

Direct invocation::

    python -m retoucher.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from retoucher import __version__
from retoucher.api.models import (
    DescriptionResponse,
    ErrorResponse,
    GenerateRequest,
    ImageResponse,
    PresetModel,
    PresetsResponse,
)
from retoucher.core.config import RetoucherConfig, config
from retoucher.core.editor import PhotoEditor, create_editor
from retoucher.core.errors import (
    BlockedError,
    ConfigurationError,
    EncodingError,
    GenerationStoppedError,
    NoDescriptionError,
    NoImageReturnedError,
    RetoucherError,
    TransportError,
)
from retoucher.core.image_encoder import ImageResource
from retoucher.core.models import Hotspot, TextStyle
from retoucher.core.presets import ADJUSTMENT_PRESETS, contrast_prompt, get_preset

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Error translation.  Checked in order, so subclasses must precede their
# bases (ImageGenerationError is a NoImageReturnedError).
# ---------------------------------------------------------------------------
_ERROR_STATUS: tuple[tuple[type[RetoucherError], int], ...] = (
    (EncodingError, 400),
    (BlockedError, 422),
    (GenerationStoppedError, 422),
    (NoImageReturnedError, 502),
    (NoDescriptionError, 502),
    (TransportError, 502),
    (ConfigurationError, 500),
)

_ERROR_RESPONSES: dict[int | str, dict] = {
    status_code: {"model": ErrorResponse} for status_code in (400, 422, 500, 502)
}


def status_for(error: RetoucherError) -> int:
    """HTTP status code for a pipeline failure."""
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(error, error_type):
            return status_code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the shared :class:`PhotoEditor` on startup.

    The Gemini client itself is built lazily on the first request, so the
    server starts even without an API key configured.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    app.state.config = config
    app.state.editor = create_editor(app.state.config)
    logger.info("PhotoEditor initialised (client created on first call).")
    yield


app = FastAPI(
    title="Retoucher",
    description="AI photo editing API backed by Gemini image models.",
    version=__version__,
    lifespan=lifespan,
)

# Allow cross-origin requests so the editing frontend can be served from a
# different port during development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RetoucherError)
async def handle_pipeline_error(request: Request, exc: RetoucherError) -> JSONResponse:
    """Render a pipeline failure as ``{"error": ..., "detail": ...}``."""
    return JSONResponse(
        status_code=status_for(exc),
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


# ---------------------------------------------------------------------------
# Dependencies and input helpers.
# ---------------------------------------------------------------------------


def get_config(request: Request) -> RetoucherConfig:
    """Return the configuration the running editor was built with."""
    return request.app.state.config


def get_editor(request: Request) -> PhotoEditor:
    """Return the editor created during application startup."""
    return request.app.state.editor


async def _to_resource(upload: UploadFile) -> ImageResource:
    """Read an upload into an in-memory image resource.

    The declared content type is only trusted when it names an image; the
    encoder sniffs the real format otherwise.
    """
    content = await upload.read()
    mime_type = upload.content_type
    if not mime_type or not mime_type.startswith("image/"):
        mime_type = None
    return ImageResource.from_bytes(content, mime_type=mime_type, name=upload.filename)


def _require_text(value: str | None, field_name: str) -> str:
    if value is None or not value.strip():
        raise HTTPException(status_code=400, detail=f"{field_name} must not be empty")
    return value.strip()


def _resolve_adjustment_prompt(
    prompt: str | None, preset_id: str | None, contrast: int | None
) -> str:
    """Pick the adjustment prompt from exactly one of the three inputs.

    Raises:
        HTTPException: 400 when none or several inputs are given, the preset
            is unknown, or the contrast amount is invalid.
    """
    has_prompt = bool(prompt and prompt.strip())
    if sum([has_prompt, bool(preset_id), contrast is not None]) != 1:
        raise HTTPException(
            status_code=400,
            detail="Provide exactly one of prompt, preset_id or contrast",
        )
    if preset_id:
        try:
            return get_preset(preset_id).prompt
        except KeyError as e:
            raise HTTPException(status_code=400, detail=str(e.args[0])) from e
    if contrast is not None:
        try:
            return contrast_prompt(contrast)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
    return _require_text(prompt, "prompt")


# ---------------------------------------------------------------------------
# Informational endpoints.
# ---------------------------------------------------------------------------


@app.get("/api/health")
async def health(app_config: RetoucherConfig = Depends(get_config)) -> dict:
    """Report the version, configured models and whether a key is set."""
    return {
        "version": __version__,
        "models": {
            "edit": app_config.edit_model_id,
            "describe": app_config.describe_model_id,
            "generate": app_config.generate_model_id,
        },
        "api_key_configured": bool(app_config.api_key),
    }


@app.get("/api/presets", response_model=PresetsResponse)
async def presets() -> PresetsResponse:
    """List the built-in adjustment presets."""
    return PresetsResponse(
        adjustments=[PresetModel(**preset.to_dict()) for preset in ADJUSTMENT_PRESETS]
    )


# ---------------------------------------------------------------------------
# Editing endpoints.
# ---------------------------------------------------------------------------


@app.post("/api/edit", response_model=ImageResponse, responses=_ERROR_RESPONSES)
async def edit(
    image: UploadFile = File(...),
    prompt: str = Form(...),
    x: int = Form(..., ge=0),
    y: int = Form(..., ge=0),
    editor: PhotoEditor = Depends(get_editor),
) -> ImageResponse:
    """Apply a localized edit centred on pixel ``(x, y)``."""
    resource = await _to_resource(image)
    result = await editor.edit_image(resource, _require_text(prompt, "prompt"), Hotspot(x, y))
    return ImageResponse(image=result)


@app.post("/api/filter", response_model=ImageResponse, responses=_ERROR_RESPONSES)
async def apply_filter(
    image: UploadFile = File(...),
    prompt: str = Form(...),
    editor: PhotoEditor = Depends(get_editor),
) -> ImageResponse:
    """Apply a stylistic filter to the whole image."""
    resource = await _to_resource(image)
    result = await editor.apply_filter(resource, _require_text(prompt, "prompt"))
    return ImageResponse(image=result)


@app.post("/api/adjust", response_model=ImageResponse, responses=_ERROR_RESPONSES)
async def adjust(
    image: UploadFile = File(...),
    prompt: str | None = Form(None),
    preset_id: str | None = Form(None),
    contrast: int | None = Form(None),
    editor: PhotoEditor = Depends(get_editor),
) -> ImageResponse:
    """Apply a global adjustment given as free text, a preset id, or a contrast amount."""
    adjustment = _resolve_adjustment_prompt(prompt, preset_id, contrast)
    resource = await _to_resource(image)
    result = await editor.apply_adjustment(resource, adjustment)
    return ImageResponse(image=result)


@app.post("/api/remove-background", response_model=ImageResponse, responses=_ERROR_RESPONSES)
async def remove_background(
    image: UploadFile = File(...),
    editor: PhotoEditor = Depends(get_editor),
) -> ImageResponse:
    """Cut the subject out onto a transparent PNG."""
    resource = await _to_resource(image)
    return ImageResponse(image=await editor.remove_background(resource))


@app.post("/api/text", response_model=ImageResponse, responses=_ERROR_RESPONSES)
async def replace_text(
    image: UploadFile = File(...),
    old_text: str = Form(...),
    new_text: str = Form(...),
    font: str | None = Form(None),
    size: str | None = Form(None),
    color: str | None = Form(None),
    bold: bool = Form(False),
    italic: bool = Form(False),
    editor: PhotoEditor = Depends(get_editor),
) -> ImageResponse:
    """Replace text in the image, optionally with style hints."""
    old_text = _require_text(old_text, "old_text")
    new_text = _require_text(new_text, "new_text")
    style = TextStyle(font=font, size=size, color=color, bold=bold, italic=italic).normalized()
    resource = await _to_resource(image)
    result = await editor.replace_text(resource, old_text, new_text, style)
    return ImageResponse(image=result)


@app.post("/api/describe", response_model=DescriptionResponse, responses=_ERROR_RESPONSES)
async def describe(
    image: UploadFile = File(...),
    editor: PhotoEditor = Depends(get_editor),
) -> DescriptionResponse:
    """Describe the image as a prompt for an image generator."""
    resource = await _to_resource(image)
    return DescriptionResponse(description=await editor.describe_image(resource))


@app.post("/api/generate", response_model=ImageResponse, responses=_ERROR_RESPONSES)
async def generate(
    req: GenerateRequest,
    editor: PhotoEditor = Depends(get_editor),
) -> ImageResponse:
    """Generate one square image from a text prompt."""
    prompt = _require_text(req.prompt, "prompt")
    return ImageResponse(image=await editor.generate_from_prompt(prompt))


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~retoucher.core.config.config`
    (``RETOUCHER_SERVER_HOST``, ``RETOUCHER_SERVER_PORT``,
    ``RETOUCHER_LOG_LEVEL``).  Defaults to ``0.0.0.0:7860``.

    This function is registered as the ``retoucher`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "retoucher.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
