"""Tests for postforge.core.renderer - headless browser rendering.

All tests replace ``async_playwright`` with mocks so that no real browser is
launched.  Tests cover:

- The load / viewport / screenshot sequence and its parameters.
- Unconditional context cleanup on success, failure and timeout.
- Conversion of browser errors into RenderFailure.
- Capture verification with Pillow.
- Browser reuse, relaunch after disconnect, and shutdown.
- The concurrent session cap.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from postforge.core.config import PostforgeConfig
from postforge.core.errors import RenderFailure
from postforge.core.renderer import PlaywrightRenderer, verify_jpeg

# ---------------------------------------------------------------------------
# Shared helpers for mocking Playwright.
# ---------------------------------------------------------------------------


class _MockPlaywright:
    """Bundle of mocks standing in for the Playwright object graph."""

    def __init__(self, screenshot: bytes) -> None:
        self.page = AsyncMock()
        self.page.screenshot.return_value = screenshot

        self.context = AsyncMock()
        self.context.new_page.return_value = self.page

        self.browser = MagicMock()
        self.browser.is_connected.return_value = True
        self.browser.new_context = AsyncMock(return_value=self.context)
        self.browser.close = AsyncMock()

        self.driver = MagicMock()
        self.driver.chromium.launch = AsyncMock(return_value=self.browser)
        self.driver.stop = AsyncMock()

        starter = MagicMock()
        starter.start = AsyncMock(return_value=self.driver)
        self.factory = MagicMock(return_value=starter)

    def patch(self):
        return patch("postforge.core.renderer.async_playwright", self.factory)


def _config(temp_dir: Path, **overrides) -> PostforgeConfig:
    settings = {
        "_env_file": None,
        "public_dir": str(temp_dir / "public"),
        "render_timeout_seconds": 5.0,
    }
    settings.update(overrides)
    return PostforgeConfig(**settings)


# ---------------------------------------------------------------------------
# Tests.
# ---------------------------------------------------------------------------


class TestVerifyJpeg:
    """Test verify_jpeg()."""

    def test_accepts_matching_jpeg(self, jpeg_bytes):
        verify_jpeg(jpeg_bytes, 1080, 1080)

    def test_rejects_wrong_size(self, jpeg_bytes):
        with pytest.raises(RenderFailure, match="expected 1000x1000"):
            verify_jpeg(jpeg_bytes, 1000, 1000)

    def test_rejects_garbage(self):
        with pytest.raises(RenderFailure):
            verify_jpeg(b"not an image", 1080, 1080)

    def test_rejects_png(self):
        import io

        from PIL import Image

        buffer = io.BytesIO()
        Image.new("RGB", (1080, 1080)).save(buffer, format="PNG")
        with pytest.raises(RenderFailure, match="expected JPEG"):
            verify_jpeg(buffer.getvalue(), 1080, 1080)


class TestCapture:
    """Test PlaywrightRenderer.capture()."""

    async def test_capture_sequence(self, temp_dir, jpeg_bytes):
        """The document is loaded, sized and captured as a full-quality JPEG."""
        mocks = _MockPlaywright(jpeg_bytes)
        renderer = PlaywrightRenderer(_config(temp_dir))

        with mocks.patch():
            data = await renderer.capture("<html></html>", 1080, 1080)

        assert data == jpeg_bytes
        mocks.browser.new_context.assert_awaited_once_with(
            viewport={"width": 1080, "height": 1080},
            device_scale_factor=1,
        )
        mocks.page.set_content.assert_awaited_once_with(
            "<html></html>", wait_until="networkidle", timeout=5000.0
        )
        mocks.page.set_viewport_size.assert_awaited_once_with({"width": 1080, "height": 1080})
        mocks.page.screenshot.assert_awaited_once_with(
            type="jpeg",
            quality=100,
            clip={"x": 0, "y": 0, "width": 1080, "height": 1080},
            timeout=5000.0,
        )
        mocks.context.close.assert_awaited_once()

    async def test_browser_error_becomes_render_failure(self, temp_dir, jpeg_bytes):
        """Any browser exception surfaces as RenderFailure and the context is closed."""
        mocks = _MockPlaywright(jpeg_bytes)
        mocks.page.set_content.side_effect = RuntimeError("Target crashed")
        renderer = PlaywrightRenderer(_config(temp_dir))

        with mocks.patch():
            with pytest.raises(RenderFailure, match="Target crashed"):
                await renderer.capture("<html></html>", 1080, 1080)

        mocks.context.close.assert_awaited_once()

    async def test_launch_error_becomes_render_failure(self, temp_dir, jpeg_bytes):
        mocks = _MockPlaywright(jpeg_bytes)
        mocks.driver.chromium.launch.side_effect = RuntimeError("Executable doesn't exist")
        renderer = PlaywrightRenderer(_config(temp_dir))

        with mocks.patch():
            with pytest.raises(RenderFailure):
                await renderer.capture("<html></html>", 1080, 1080)

    async def test_timeout_becomes_render_failure(self, temp_dir, jpeg_bytes):
        """A capture exceeding the deadline fails and still releases the context."""
        mocks = _MockPlaywright(jpeg_bytes)

        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        mocks.page.set_content.side_effect = hang
        renderer = PlaywrightRenderer(_config(temp_dir, render_timeout_seconds=0.05))

        with mocks.patch():
            with pytest.raises(RenderFailure, match="timed out"):
                await renderer.capture("<html></html>", 1080, 1080)

        mocks.context.close.assert_awaited_once()

    async def test_invalid_capture_rejected(self, temp_dir):
        mocks = _MockPlaywright(b"\xff\xd8 truncated")
        renderer = PlaywrightRenderer(_config(temp_dir))

        with mocks.patch():
            with pytest.raises(RenderFailure):
                await renderer.capture("<html></html>", 1080, 1080)

    async def test_jpeg_quality_from_config(self, temp_dir, jpeg_bytes):
        mocks = _MockPlaywright(jpeg_bytes)
        renderer = PlaywrightRenderer(_config(temp_dir, jpeg_quality=80))

        with mocks.patch():
            await renderer.capture("<html></html>", 1080, 1080)

        assert mocks.page.screenshot.await_args.kwargs["quality"] == 80


class TestBrowserLifecycle:
    """Test browser launch, reuse and shutdown."""

    async def test_browser_reused_between_captures(self, temp_dir, jpeg_bytes):
        """One browser serves many captures, each in its own context."""
        mocks = _MockPlaywright(jpeg_bytes)
        renderer = PlaywrightRenderer(_config(temp_dir))

        with mocks.patch():
            await renderer.start()
            await renderer.capture("<p>1</p>", 1080, 1080)
            await renderer.capture("<p>2</p>", 1080, 1080)

        assert mocks.driver.chromium.launch.await_count == 1
        assert mocks.browser.new_context.await_count == 2
        assert mocks.context.close.await_count == 2

    async def test_browser_relaunched_after_disconnect(self, temp_dir, jpeg_bytes):
        mocks = _MockPlaywright(jpeg_bytes)
        renderer = PlaywrightRenderer(_config(temp_dir))

        with mocks.patch():
            await renderer.capture("<p>1</p>", 1080, 1080)
            mocks.browser.is_connected.return_value = False
            await renderer.capture("<p>2</p>", 1080, 1080)

        assert mocks.driver.chromium.launch.await_count == 2
        # The driver itself is started only once.
        assert mocks.factory.call_count == 1

    async def test_launch_args_from_config(self, temp_dir, jpeg_bytes):
        mocks = _MockPlaywright(jpeg_bytes)
        renderer = PlaywrightRenderer(_config(temp_dir, browser_args=["--no-sandbox"]))

        with mocks.patch():
            await renderer.start()

        mocks.driver.chromium.launch.assert_awaited_once_with(headless=True, args=["--no-sandbox"])

    async def test_close_stops_browser_and_driver(self, temp_dir, jpeg_bytes):
        mocks = _MockPlaywright(jpeg_bytes)
        renderer = PlaywrightRenderer(_config(temp_dir))

        with mocks.patch():
            await renderer.start()
            await renderer.close()

        mocks.browser.close.assert_awaited_once()
        mocks.driver.stop.assert_awaited_once()

    async def test_close_without_start_is_noop(self, temp_dir):
        renderer = PlaywrightRenderer(_config(temp_dir))
        await renderer.close()


class TestConcurrencyCap:
    """Test the max_concurrent_renders semaphore."""

    async def test_sessions_are_capped(self, temp_dir, jpeg_bytes):
        """No more contexts are open at once than the configured limit."""
        mocks = _MockPlaywright(jpeg_bytes)
        open_sessions = 0
        peak = 0

        async def slow_load(*args, **kwargs):
            nonlocal open_sessions, peak
            open_sessions += 1
            peak = max(peak, open_sessions)
            await asyncio.sleep(0.01)
            open_sessions -= 1

        mocks.page.set_content.side_effect = slow_load
        renderer = PlaywrightRenderer(_config(temp_dir, max_concurrent_renders=2))

        with mocks.patch():
            results = await asyncio.gather(
                *(renderer.capture(f"<p>{i}</p>", 1080, 1080) for i in range(6))
            )

        assert len(results) == 6
        assert peak == 2
