"""Postforge - render social-media post images from JSON descriptions."""

__version__ = "0.1.0"

from postforge.core.config import PostforgeConfig, config

__all__ = [
    "PostforgeConfig",
    "config",
]
