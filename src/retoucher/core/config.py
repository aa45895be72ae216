"""Configuration management for Retoucher.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the RETOUCHER_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (RETOUCHER_* prefix)
2. .env file in the project root
3. Default values defined in RetoucherConfig

The API key is the one exception to the prefix rule: it is also read from
``GEMINI_API_KEY`` or ``API_KEY`` so an existing Gemini credential can be
reused as-is.

Example .env file:
    RETOUCHER_API_KEY=your-gemini-api-key
    RETOUCHER_EDIT_MODEL_ID=gemini-2.5-flash-image-preview
    RETOUCHER_REQUEST_TIMEOUT=120
    RETOUCHER_SERVER_PORT=7860

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from retoucher.core.config import config

    print(config.edit_model_id)
    print(config.request_timeout)

Credential Handling
-------------------
The API key is NOT validated here. A missing key is only reported when the
first remote call is made (see ``retoucher.core.dispatcher``), so the
application can start, serve presets and health checks without credentials.

Request Timeout
---------------
``request_timeout`` is unset by default, meaning a hung remote call waits
indefinitely and the caller decides when to give up. Set it to bound every
remote call; an expired timeout surfaces as ``TransportError``.
"""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetoucherConfig(BaseSettings):
    """Main configuration for Retoucher.

    Values are loaded from environment variables with the RETOUCHER_ prefix,
    with fallback to defaults defined here.

    Attributes
    ----------
    Service Settings:
        api_key : str | None
            Credential for the Gemini API (RETOUCHER_API_KEY, GEMINI_API_KEY
            or API_KEY)
        edit_model_id : str
            Multimodal model used for image-producing edits
        describe_model_id : str
            Text-capable model used for image descriptions
        generate_model_id : str
            Image-synthesis model used for text-to-image generation
        request_timeout : float | None
            Timeout in seconds for each remote call (None waits indefinitely)

    Server Settings:
        server_host : str
            Bind address for the HTTP API
        server_port : int
            Port for the HTTP API (1024-65535)
        log_level : str
            Root log level used by the ``retoucher`` entry point

    Examples
    --------
    Create a custom configuration:

        >>> custom_config = RetoucherConfig(
        ...     api_key="test-key",
        ...     request_timeout=60,
        ... )
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RETOUCHER_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Service credential
    api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("RETOUCHER_API_KEY", "GEMINI_API_KEY", "API_KEY"),
        description="API key for the Gemini API",
    )

    # Model identifiers
    edit_model_id: str = Field(
        default="gemini-2.5-flash-image-preview",
        description="Multimodal model for image edits (image + text output)",
    )
    describe_model_id: str = Field(
        default="gemini-2.5-flash",
        description="Text model for image descriptions",
    )
    generate_model_id: str = Field(
        default="imagen-4.0-generate-001",
        description="Image-synthesis model for text-to-image generation",
    )

    request_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Per-call timeout in seconds (unset waits indefinitely)",
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level for the retoucher entry point",
    )


# Global configuration instance, loaded from RETOUCHER_* variables and .env
config = RetoucherConfig()
