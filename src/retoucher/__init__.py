"""Retoucher - AI photo editing through the Gemini API."""

__version__ = "0.1.0"

from retoucher.core.config import RetoucherConfig, config
from retoucher.core.editor import PhotoEditor, create_editor

__all__ = [
    "PhotoEditor",
    "RetoucherConfig",
    "config",
    "create_editor",
]
