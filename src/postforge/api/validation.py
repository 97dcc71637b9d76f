"""Validation of incoming API requests.

Turns raw request models into the normalized records the pipeline works on,
raising :class:`~postforge.core.errors.ValidationError` subclasses with
messages that are safe to return to the client verbatim.
"""

import logging

from postforge.api.models import GeneratePostRequest
from postforge.core.composer import (
    DEFAULT_DIRECTION,
    DEFAULT_FOCUS_COLOR,
    DEFAULT_LANGUAGE,
    PostContent,
    is_css_color,
)
from postforge.core.errors import InvalidFilenameError, MissingFieldError, ValidationError
from postforge.core.file_store import is_valid_file_name

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "imageUrl, logoUrl, text01, focusText, and text02 are all required."
FILE_NAME_REQUIRED_MESSAGE = "fileName is required."
INVALID_FILE_NAME_MESSAGE = "Invalid file name."

_DIRECTIONS = ("ltr", "rtl")


def normalize_direction(direction: str | None) -> str:
    """Return ``"rtl"`` or ``"ltr"`` for a client-supplied direction.

    Matching is case-insensitive; anything unrecognised falls back to the
    default direction.
    """
    if not direction:
        return DEFAULT_DIRECTION

    value = direction.strip().lower()
    if value not in _DIRECTIONS:
        logger.warning(f"Unknown direction {direction!r}, using {DEFAULT_DIRECTION}")
        return DEFAULT_DIRECTION
    return value


def normalize_focus_color(color: str | None) -> str:
    """Return a CSS-safe accent colour, falling back to the default."""
    if not color:
        return DEFAULT_FOCUS_COLOR

    if not is_css_color(color):
        logger.warning(f"Rejected focusTextColor {color!r}, using {DEFAULT_FOCUS_COLOR}")
        return DEFAULT_FOCUS_COLOR
    return color.strip()


def validate_post_request(request: GeneratePostRequest) -> PostContent:
    """Validate a generate request and apply defaults.

    Args:
        request: Parsed ``POST /generate-post`` body.

    Returns:
        Normalized :class:`PostContent`.

    Raises:
        MissingFieldError: If any of ``imageUrl``, ``logoUrl``, ``text01``,
            ``focusText`` or ``text02`` is absent or empty.
    """
    required = (
        request.image_url,
        request.logo_url,
        request.text01,
        request.focus_text,
        request.text02,
    )
    if not all(required):
        raise MissingFieldError(MISSING_FIELDS_MESSAGE)

    return PostContent(
        image_url=request.image_url,
        logo_url=request.logo_url,
        text01=request.text01,
        focus_text=request.focus_text,
        text02=request.text02,
        direction=normalize_direction(request.direction),
        language=request.language or DEFAULT_LANGUAGE,
        focus_text_color=normalize_focus_color(request.focus_text_color),
    )


def validate_file_name(file_name: object) -> str:
    """Validate a client-supplied image name for deletion.

    Any JSON value may arrive here.  Falsy values count as missing; anything
    else that is not a generated-image name string is invalid.

    Raises:
        ValidationError: If the name is absent or falsy.
        InvalidFilenameError: If the name is not a generated-image name.
    """
    if not file_name:
        raise ValidationError(FILE_NAME_REQUIRED_MESSAGE)

    if not is_valid_file_name(file_name):
        logger.warning(f"Rejected delete of invalid file name: {file_name!r}")
        raise InvalidFilenameError(INVALID_FILE_NAME_MESSAGE)

    return file_name
