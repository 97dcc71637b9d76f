"""Shared pytest fixtures for Postforge tests."""

import io
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from postforge.api.main import create_app
from postforge.core.composer import PostContent
from postforge.core.config import PostforgeConfig
from postforge.core.errors import RenderFailure


def make_jpeg(width: int = 1080, height: int = 1080, color=(200, 60, 20)) -> bytes:
    """Encode a solid-colour JPEG of the given size."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=color).save(buffer, format="JPEG", quality=90)
    return buffer.getvalue()


class FakeRenderer:
    """In-memory stand-in for :class:`PlaywrightRenderer`.

    Returns a real JPEG of the requested size and records every call, so
    tests can check the pipeline wiring without launching a browser.
    """

    def __init__(self) -> None:
        self.captures: list[tuple[str, int, int]] = []
        self.started = False
        self.closed = False
        self.fail_with: Exception | None = None

    async def start(self) -> None:
        self.started = True

    async def capture(self, html: str, width: int, height: int) -> bytes:
        self.captures.append((html, width, height))
        if self.fail_with is not None:
            raise self.fail_with
        return make_jpeg(width, height)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def public_dir(temp_dir: Path) -> Path:
    """Path of the public directory used by the test configuration."""
    return temp_dir / "public"


@pytest.fixture
def test_config(public_dir: Path) -> PostforgeConfig:
    """Create a test configuration pointing at a temporary public directory.

    Returns:
        PostforgeConfig instance for testing
    """
    return PostforgeConfig(
        _env_file=None,
        public_dir=str(public_dir),
        render_timeout_seconds=5.0,
        max_concurrent_renders=2,
    )


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    """Renderer double that never launches a browser."""
    return FakeRenderer()


@pytest.fixture
def test_client(test_config: PostforgeConfig, fake_renderer: FakeRenderer):
    """FastAPI TestClient wired to the fake renderer and temporary directory.

    The client is used as a context manager so the app lifespan (renderer
    start and close) runs.
    """
    app = create_app(test_config, renderer=fake_renderer)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def post_payload() -> dict:
    """A complete, valid ``POST /generate-post`` body."""
    return {
        "imageUrl": "https://x/a.jpg",
        "logoUrl": "https://x/logo.png",
        "text01": "BREAKING",
        "focusText": "NEWS",
        "text02": "TODAY",
    }


@pytest.fixture
def post_content() -> PostContent:
    """Normalized content with default direction, language and colour."""
    return PostContent(
        image_url="https://x/a.jpg",
        logo_url="https://x/logo.png",
        text01="BREAKING",
        focus_text="NEWS",
        text02="TODAY",
    )


@pytest.fixture
def jpeg_bytes() -> bytes:
    """A valid 1080x1080 JPEG."""
    return make_jpeg()


@pytest.fixture
def render_failure() -> RenderFailure:
    return RenderFailure("browser crashed")
