"""Pydantic request and response models for the Postforge API.

These models define the JSON schema for every API endpoint.  FastAPI uses
them for request parsing, serialisation, and OpenAPI documentation
generation.  The wire format is camelCase (``imageUrl``, ``fileName``); the
Python attributes are snake_case and mapped through field aliases.

Required-field checks are deliberately *not* expressed in the schema: every
request field is optional here so that :mod:`postforge.api.validation` can
reject incomplete requests with the service's own error message.  Numbers in
the generate body are accepted and rendered as text (``2024``), and any JSON
value is accepted as ``fileName`` so the name check decides whether it is
valid.

Models
------
GeneratePostRequest
    Payload for ``POST /generate-post``.
GeneratePostResponse
    Success body of ``POST /generate-post``.
DeleteImageRequest
    Payload for ``DELETE /delete-image``.
DeleteImageResponse
    Success body of ``DELETE /delete-image``.
ErrorResponse
    Envelope used by every error response.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class GeneratePostRequest(BaseModel):
    """Request body for the ``POST /generate-post`` endpoint.

    Attributes:
        image_url: Background image URL.  Required.
        logo_url: Logo image URL.  Required.
        text01: Text shown before the focus text.  Required.
        focus_text: Highlighted text.  Required.
        text02: Text shown after the focus text.  Required.
        direction: ``"ltr"`` or ``"rtl"``.  Defaults to ``"ltr"``.
        language: Locale tag for the document.  Defaults to ``"en"``.
        focus_text_color: CSS colour of the highlight.  Defaults to
            ``"#FF4500"``.
    """

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    image_url: str | None = Field(
        default=None,
        alias="imageUrl",
        description="Background image URL.",
    )
    logo_url: str | None = Field(
        default=None,
        alias="logoUrl",
        description="Logo image URL, drawn as a 100x100 badge.",
    )
    text01: str | None = Field(
        default=None,
        description="Plain text before the focus text.",
    )
    focus_text: str | None = Field(
        default=None,
        alias="focusText",
        description="Emphasised text rendered as a coloured pill.",
    )
    text02: str | None = Field(
        default=None,
        description="Plain text after the focus text.",
    )
    direction: str | None = Field(
        default=None,
        description="Reading direction: 'ltr' (default) or 'rtl'.",
    )
    language: str | None = Field(
        default=None,
        description="Document language tag (default 'en').",
    )
    focus_text_color: str | None = Field(
        default=None,
        alias="focusTextColor",
        description="CSS colour for the focus pill and accent line (default '#FF4500').",
    )


class GeneratePostResponse(BaseModel):
    """Response body for a successful ``POST /generate-post``."""

    model_config = ConfigDict(populate_by_name=True)

    image_url: str = Field(
        ...,
        alias="imageUrl",
        description="Public URL of the generated JPEG.",
    )
    file_name: str = Field(
        ...,
        alias="fileName",
        description="Bare file name, usable with DELETE /delete-image.",
    )


class DeleteImageRequest(BaseModel):
    """Request body for the ``DELETE /delete-image`` endpoint.

    Attributes:
        file_name: Name of a previously generated image.
    """

    model_config = ConfigDict(populate_by_name=True)

    file_name: Any = Field(
        default=None,
        alias="fileName",
        description="Name of the image to delete, e.g. 'processed_image_1700000000000.jpg'.",
    )


class DeleteImageResponse(BaseModel):
    """Response body for a successful ``DELETE /delete-image``."""

    message: str


class ErrorResponse(BaseModel):
    """Error envelope shared by all endpoints."""

    error: str
