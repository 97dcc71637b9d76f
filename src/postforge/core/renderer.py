"""Headless-browser rasterisation of composed post documents.

This module provides the :class:`Renderer` protocol consumed by the HTTP
layer and :class:`PlaywrightRenderer`, its Chromium-backed implementation.

Key Responsibilities
--------------------
- **Lazy browser launch**: Chromium is started on first use (or eagerly
  via :meth:`PlaywrightRenderer.start` from the app lifespan) and relaunched
  if it crashes or disconnects.
- **Isolated sessions**: every capture runs in a fresh browser context that
  is closed unconditionally afterwards, so cookies, caches and pages never
  leak between requests.
- **Bounded resource use**: a semaphore caps the number of open contexts and
  every capture is subject to a deadline
  (``PostforgeConfig.max_concurrent_renders`` and
  ``PostforgeConfig.render_timeout_seconds``).
- **Uniform failure**: anything that goes wrong inside the browser surfaces
  as :class:`~postforge.core.errors.RenderFailure`.  Remote images that fail
  to load are not errors; the page simply renders without them.

Usage
-----
::

    renderer = PlaywrightRenderer(config)
    await renderer.start()
    jpeg = await renderer.capture(document.html, 1080, 1080)
    await renderer.close()
"""

from __future__ import annotations

import asyncio
import io
import logging
from typing import Protocol

from PIL import Image
from playwright.async_api import Browser, Playwright, async_playwright

from postforge.core.config import PostforgeConfig
from postforge.core.errors import RenderFailure

logger = logging.getLogger(__name__)


class Renderer(Protocol):
    """Capability to turn an HTML document into JPEG bytes of a given size."""

    async def start(self) -> None: ...

    async def capture(self, html: str, width: int, height: int) -> bytes: ...

    async def close(self) -> None: ...


def verify_jpeg(data: bytes, width: int, height: int) -> None:
    """Check that *data* decodes as a JPEG of exactly ``width`` x ``height``.

    Raises:
        RenderFailure: If the bytes are not a JPEG or have the wrong size.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image_format, size = image.format, image.size
    except OSError as e:
        raise RenderFailure("Capture is not a decodable image") from e

    if image_format != "JPEG":
        raise RenderFailure(f"Capture has format {image_format}, expected JPEG")
    if size != (width, height):
        raise RenderFailure(f"Capture is {size[0]}x{size[1]}, expected {width}x{height}")


class PlaywrightRenderer:
    """Renders documents with a shared headless Chromium instance.

    Attributes:
        _config (PostforgeConfig):
            Timeout, concurrency, quality and launch settings.
        _playwright:
            The running Playwright driver, or ``None`` before first use.
        _browser:
            The shared Chromium browser, or ``None`` before first use.
    """

    def __init__(self, config: PostforgeConfig) -> None:
        self._config = config
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._launch_lock = asyncio.Lock()
        self._sessions = asyncio.Semaphore(config.max_concurrent_renders)

    # -- Public interface ---------------------------------------------------

    async def start(self) -> None:
        """Launch the browser ahead of the first request."""
        await self._ensure_browser()

    async def capture(self, html: str, width: int, height: int) -> bytes:
        """Render *html* and return a ``width`` x ``height`` JPEG capture.

        Waiting for a free session counts against the render deadline.

        Raises:
            RenderFailure: On timeout, browser crash or an invalid capture.
        """
        try:
            data = await asyncio.wait_for(
                self._capture_in_session(html, width, height),
                timeout=self._config.render_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error(
                f"Render exceeded {self._config.render_timeout_seconds}s deadline",
                exc_info=True,
            )
            raise RenderFailure("Render timed out") from e
        except Exception as e:
            logger.error(f"Browser failed to render document: {e}", exc_info=True)
            raise RenderFailure(str(e)) from e

        verify_jpeg(data, width, height)
        return data

    async def close(self) -> None:
        """Shut down the browser and the Playwright driver."""
        async with self._launch_lock:
            if self._browser is not None:
                try:
                    await self._browser.close()
                except Exception as e:
                    logger.warning(f"Error closing browser: {e}")
                self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
        logger.info("Renderer closed.")

    # -- Internals ----------------------------------------------------------

    async def _ensure_browser(self) -> Browser:
        async with self._launch_lock:
            if self._browser is not None and self._browser.is_connected():
                return self._browser

            if self._playwright is None:
                self._playwright = await async_playwright().start()

            logger.info("Launching headless Chromium.")
            self._browser = await self._playwright.chromium.launch(
                headless=True,
                args=list(self._config.browser_args),
            )
            return self._browser

    async def _capture_in_session(self, html: str, width: int, height: int) -> bytes:
        async with self._sessions:
            browser = await self._ensure_browser()
            timeout_ms = self._config.render_timeout_seconds * 1000
            context = await browser.new_context(
                viewport={"width": width, "height": height},
                device_scale_factor=1,
            )
            try:
                page = await context.new_page()
                # networkidle gives remote background and logo images a chance to load.
                await page.set_content(html, wait_until="networkidle", timeout=timeout_ms)
                await page.set_viewport_size({"width": width, "height": height})
                return await page.screenshot(
                    type="jpeg",
                    quality=self._config.jpeg_quality,
                    clip={"x": 0, "y": 0, "width": width, "height": height},
                    timeout=timeout_ms,
                )
            finally:
                await context.close()
