"""Shared pytest fixtures for Retoucher tests."""

from __future__ import annotations

from collections.abc import Callable, Generator
from io import BytesIO
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from google.genai import types
from PIL import Image

from retoucher.core.config import RetoucherConfig
from retoucher.core.dispatcher import Dispatcher, GenAIClientProvider
from retoucher.core.editor import PhotoEditor
from retoucher.core.image_encoder import ImageResource


@pytest.fixture
def test_config() -> RetoucherConfig:
    """Create a test configuration that ignores the environment's .env file.

    Returns:
        RetoucherConfig instance for testing
    """
    return RetoucherConfig(
        api_key="test-key",
        edit_model_id="test-edit-model",
        describe_model_id="test-describe-model",
        generate_model_id="test-generate-model",
        _env_file=None,
    )


@pytest.fixture
def png_bytes() -> bytes:
    """A tiny, valid PNG image.

    Returns:
        Encoded PNG bytes of a 4x4 red square
    """
    buffer = BytesIO()
    Image.new("RGB", (4, 4), color=(255, 0, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def jpeg_bytes() -> bytes:
    """A tiny, valid JPEG image."""
    buffer = BytesIO()
    Image.new("RGB", (4, 4), color=(0, 0, 255)).save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def image_resource(png_bytes: bytes) -> ImageResource:
    """An in-memory PNG resource with a declared mime type."""
    return ImageResource.from_bytes(png_bytes, mime_type="image/png", name="photo.png")


@pytest.fixture
def mock_client() -> MagicMock:
    """A stand-in for ``genai.Client`` with async model methods.

    ``client.aio.models.generate_content`` and
    ``client.aio.models.generate_images`` are ``AsyncMock`` instances;
    set their ``return_value`` or ``side_effect`` per test.
    """
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    client.aio.models.generate_images = AsyncMock()
    return client


@pytest.fixture
def dispatcher(test_config: RetoucherConfig, mock_client: MagicMock) -> Dispatcher:
    """Dispatcher bound to the mocked client."""
    return Dispatcher(GenAIClientProvider(test_config, client=mock_client), test_config)


@pytest.fixture
def editor(dispatcher: Dispatcher) -> PhotoEditor:
    """PhotoEditor wired to the mocked client."""
    return PhotoEditor(dispatcher)


def image_part(data: bytes, mime_type: str = "image/png") -> types.Part:
    return types.Part(inline_data=types.Blob(mime_type=mime_type, data=data))


def text_part(text: str) -> types.Part:
    return types.Part(text=text)


def content_response(
    parts: list[types.Part] | None = None,
    finish_reason: str | None = "STOP",
    block_reason: str | None = None,
    block_message: str | None = None,
) -> types.GenerateContentResponse:
    """Build a ``GenerateContentResponse`` with one candidate.

    Args:
        parts: Content parts of the first candidate (None for no candidate).
        finish_reason: Finish reason code of the first candidate.
        block_reason: Prompt-feedback block reason, if the request was blocked.
        block_message: Accompanying block message.
    """
    candidates = None
    if parts is not None:
        candidates = [
            types.Candidate(
                content=types.Content(role="model", parts=parts),
                finish_reason=finish_reason,
            )
        ]
    feedback = None
    if block_reason is not None:
        feedback = types.GenerateContentResponsePromptFeedback(
            block_reason=block_reason,
            block_reason_message=block_message,
        )
    return types.GenerateContentResponse(candidates=candidates, prompt_feedback=feedback)


def images_response(*images: bytes) -> types.GenerateImagesResponse:
    """Build a ``GenerateImagesResponse`` holding the given PNG payloads."""
    return types.GenerateImagesResponse(
        generated_images=[
            types.GeneratedImage(image=types.Image(image_bytes=data, mime_type="image/png"))
            for data in images
        ]
    )


@pytest.fixture
def make_content_response() -> Callable[..., types.GenerateContentResponse]:
    """Factory fixture for content-generation responses."""
    return content_response


@pytest.fixture
def make_images_response() -> Callable[..., types.GenerateImagesResponse]:
    """Factory fixture for image-synthesis responses."""
    return images_response


@pytest.fixture
def make_image_part() -> Callable[..., types.Part]:
    return image_part


@pytest.fixture
def make_text_part() -> Callable[[str], types.Part]:
    return text_part


@pytest.fixture
def test_client(
    editor: PhotoEditor, test_config: RetoucherConfig
) -> Generator[TestClient, None, None]:
    """FastAPI TestClient whose routes use the mocked editor and its config.

    The client is not used as a context manager, so the application
    lifespan (which would build a real editor) does not run.
    """
    from retoucher.api.main import app, get_config, get_editor

    app.dependency_overrides[get_editor] = lambda: editor
    app.dependency_overrides[get_config] = lambda: test_config
    yield TestClient(app)
    app.dependency_overrides.clear()
