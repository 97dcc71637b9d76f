"""Postforge - FastAPI Application.

This module is the single entry point for the web service.  It defines the
application factory, the REST routes, and the ``main()`` CLI function that
launches the uvicorn server.

Architecture
------------
A request flows through one short pipeline:

- **Validation**: :func:`~postforge.api.validation.validate_post_request`
  checks required fields and applies defaults.
- **Composition**: :func:`~postforge.core.composer.compose_post` builds the
  1080x1080 HTML document.
- **Rendering**: the :class:`~postforge.core.renderer.Renderer` stored on
  ``app.state`` captures the document as JPEG bytes.
- **Storage**: :class:`~postforge.core.file_store.ImageStore` writes the
  bytes into the public directory.
- **Static serving**: the public directory is mounted at ``/`` so every
  generated file is reachable at ``/<fileName>``.  Because the mount
  catches every path, a wrong method on an API path (``GET /generate-post``)
  answers 404 rather than 405.

Every error response uses the envelope ``{"error": "<message>"}``.  Internal
details are logged and never returned to the client.

Endpoints
---------
========  ==================  ==========================================
Method    Path                Purpose
========  ==================  ==========================================
POST      ``/generate-post``  Render a post and return its public URL
DELETE    ``/delete-image``   Delete a generated image by file name
GET       ``/<fileName>``     Serve a generated image
========  ==================  ==========================================

Usage
-----
CLI (installed entry point)::

    postforge

Direct invocation::

    python -m postforge.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from postforge import __version__
from postforge.api.models import (
    DeleteImageRequest,
    DeleteImageResponse,
    ErrorResponse,
    GeneratePostRequest,
    GeneratePostResponse,
)
from postforge.api.validation import (
    FILE_NAME_REQUIRED_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    validate_file_name,
    validate_post_request,
)
from postforge.core.composer import compose_post
from postforge.core.config import PostforgeConfig, config
from postforge.core.errors import DeleteFailure, ImageNotFoundError, ValidationError
from postforge.core.file_store import ImageStore
from postforge.core.renderer import PlaywrightRenderer, Renderer

logger = logging.getLogger(__name__)

PROCESS_FAILED_MESSAGE = "Failed to process the image."
FILE_MISSING_MESSAGE = "File does not exist."
DELETE_FAILED_MESSAGE = "Failed to delete the file."
DELETE_SUCCESS_MESSAGE = "File deleted successfully."

# Message returned when a request body cannot be parsed into its model
# (malformed JSON, wrong field types).  Keyed by route path.
_BODY_ERROR_MESSAGES = {
    "/generate-post": MISSING_FIELDS_MESSAGE,
    "/delete-image": FILE_NAME_REQUIRED_MESSAGE,
}

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

router = APIRouter()


# ---------------------------------------------------------------------------
# Application lifecycle - renderer setup and teardown.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    On startup:
        Launches the renderer's browser so the first request does not pay
        the start-up cost.  A launch failure is logged and retried lazily on
        the next capture.

    On shutdown:
        Closes the renderer, terminating the browser process.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    renderer: Renderer = app.state.renderer
    try:
        await renderer.start()
        logger.info("Renderer started.")
    except Exception as e:
        logger.error(f"Renderer failed to start, will retry on first request: {e}", exc_info=True)

    yield

    await renderer.close()


# ---------------------------------------------------------------------------
# Error envelope.
# ---------------------------------------------------------------------------


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors as ``{"error": detail}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Turn unparseable request bodies into the endpoint's 400 response."""
    logger.warning(f"Rejected request body for {request.url.path}: {exc.errors()}")
    message = _BODY_ERROR_MESSAGES.get(request.url.path, "Invalid request.")
    return JSONResponse(status_code=400, content={"error": message})


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@router.post(
    "/generate-post",
    response_model=GeneratePostResponse,
    responses=_ERROR_RESPONSES,
)
async def generate_post(req: GeneratePostRequest, request: Request) -> GeneratePostResponse:
    """Render a post image and publish it in the public directory.

    This endpoint:

    1. Validates required fields and applies defaults.
    2. Composes the 1080x1080 HTML document.
    3. Captures it as a JPEG with the headless browser.
    4. Writes the JPEG as ``processed_image_<millis>.jpg``.

    Args:
        req: Parsed :class:`GeneratePostRequest` payload.
        request: The incoming request, used to build the public URL.

    Returns:
        :class:`GeneratePostResponse` with ``imageUrl`` and ``fileName``.

    Raises:
        HTTPException: 400 if a required field is missing, 500 if rendering
            or writing fails.
    """
    try:
        content = validate_post_request(req)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    renderer: Renderer = request.app.state.renderer
    store: ImageStore = request.app.state.image_store

    try:
        document = compose_post(content)
        jpeg = await renderer.capture(document.html, document.width, document.height)
        stored = await run_in_threadpool(store.save, jpeg)
    except Exception as e:
        logger.error(f"Error processing image: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=PROCESS_FAILED_MESSAGE) from e

    image_url = str(request.url_for("public", path=stored.file_name))
    logger.info(f"Generated {stored.file_name} -> {image_url}")
    return GeneratePostResponse(image_url=image_url, file_name=stored.file_name)


@router.delete(
    "/delete-image",
    response_model=DeleteImageResponse,
    responses=_ERROR_RESPONSES,
)
async def delete_image(req: DeleteImageRequest, request: Request) -> DeleteImageResponse:
    """Delete a previously generated image.

    The file name is checked against ``processed_image_<digits>.jpg`` before
    the file system is touched.

    Args:
        req: Parsed :class:`DeleteImageRequest` payload.
        request: The incoming request.

    Returns:
        :class:`DeleteImageResponse` with a confirmation message.

    Raises:
        HTTPException: 400 for a missing or invalid name, 404 if the file
            does not exist, 500 if removal fails.
    """
    try:
        file_name = validate_file_name(req.file_name)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    store: ImageStore = request.app.state.image_store

    try:
        await run_in_threadpool(store.delete, file_name)
    except ImageNotFoundError as e:
        raise HTTPException(status_code=404, detail=FILE_MISSING_MESSAGE) from e
    except DeleteFailure as e:
        logger.error(f"Error deleting file: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=DELETE_FAILED_MESSAGE) from e

    return DeleteImageResponse(message=DELETE_SUCCESS_MESSAGE)


# ---------------------------------------------------------------------------
# Application factory.
# ---------------------------------------------------------------------------


def create_app(
    app_config: PostforgeConfig | None = None,
    renderer: Renderer | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        app_config: Configuration to use.  Defaults to the global
            :data:`~postforge.core.config.config`.
        renderer: Rendering backend.  Defaults to a
            :class:`PlaywrightRenderer` built from *app_config*.  Tests pass
            a fake here to avoid launching a browser.

    Returns:
        The configured application.
    """
    app_config = app_config or config
    store = ImageStore(app_config.public_dir)
    store.ensure_directory()

    app = FastAPI(
        title="Postforge",
        description="Renders social-media post images from JSON descriptions.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = app_config
    app.state.image_store = store
    app.state.renderer = renderer if renderer is not None else PlaywrightRenderer(app_config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(router)

    # Mounted last: a mount at "/" would otherwise shadow the API routes.
    app.mount("/", StaticFiles(directory=str(store.public_dir)), name="public")

    return app


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host and port from :data:`~postforge.core.config.config` (which
    loads from ``POSTFORGE_SERVER_HOST`` and ``PORT`` /
    ``POSTFORGE_SERVER_PORT``).  Defaults to ``0.0.0.0:3000``.

    This function is registered as the ``postforge`` console script in
    ``pyproject.toml``.  The app is built by uvicorn through
    :func:`create_app`, so importing this module starts nothing and adds no
    directory beyond the one the global config creates.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Configuration: {config.model_dump()}")
    logger.info(f"Server is running on port {config.server_port}")

    uvicorn.run(
        "postforge.api.main:create_app",
        factory=True,
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
