"""Core functionality for post rendering.

This package holds everything below the HTTP layer:

- **config**: Configuration management using Pydantic Settings
- **composer**: Builds the 1080x1080 post document from validated input
- **renderer**: Rasterises documents to JPEG with headless Chromium
- **file_store**: Writes and deletes generated images in the public directory
- **errors**: Exception hierarchy shared by the modules above

Pipeline Overview
-----------------
::

    PostContent -> compose_post() -> ComposedDocument
                -> Renderer.capture() -> JPEG bytes
                -> ImageStore.save() -> StoredImage
"""

from postforge.core.composer import ComposedDocument, PostContent, compose_post
from postforge.core.config import PostforgeConfig, config
from postforge.core.file_store import ImageStore, StoredImage
from postforge.core.renderer import PlaywrightRenderer, Renderer

__all__ = [
    "ComposedDocument",
    "ImageStore",
    "PlaywrightRenderer",
    "PostContent",
    "PostforgeConfig",
    "Renderer",
    "StoredImage",
    "compose_post",
    "config",
]
