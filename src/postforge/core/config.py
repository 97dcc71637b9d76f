"""Configuration management for Postforge.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the POSTFORGE_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (POSTFORGE_* prefix)
2. .env file in the project root
3. Default values defined in PostforgeConfig

The server port is the one exception to the prefix rule: the conventional
``PORT`` variable used by most hosting platforms is honoured as well, so a
plain ``PORT=8080`` is enough to move the server.

Example .env file:
    POSTFORGE_PUBLIC_DIR=public
    POSTFORGE_RENDER_TIMEOUT_SECONDS=20
    POSTFORGE_MAX_CONCURRENT_RENDERS=2
    PORT=8080

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
The FastAPI app factory uses it unless an explicit configuration is passed,
which is how the test suite points the service at a temporary directory.
Building the global instance creates the default ``public`` directory under
the current working directory (or wherever POSTFORGE_PUBLIC_DIR points).

Usage Example
-------------
    from postforge.core.config import config

    print(config.public_dir)
    print(config.server_port)
"""

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PostforgeConfig(BaseSettings):
    """Main configuration for the Postforge rendering service.

    Attributes
    ----------
    Storage:
        public_dir : Path
            Directory generated images are written to and served from

    Rendering:
        render_timeout_seconds : float
            Deadline for a single render round trip (load + capture)
        max_concurrent_renders : int
            Upper bound on simultaneously open browser contexts
        jpeg_quality : int
            JPEG quality passed to the screenshot call (1-100)
        browser_args : list[str]
            Extra command line flags for the headless Chromium process

    Server:
        server_host : str
            Server bind address (0.0.0.0 for local network)
        server_port : int
            Server port, read from POSTFORGE_SERVER_PORT or PORT
        log_level : str
            Root logging level used by the CLI entry point

    Notes
    -----
    - public_dir is created automatically if it doesn't exist
    - To modify config, set environment variables and restart the application

    Examples
    --------
        >>> custom_config = PostforgeConfig(
        ...     public_dir="/tmp/postforge-public",
        ...     max_concurrent_renders=1,
        ... )
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="POSTFORGE_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Paths
    public_dir: Path = Field(
        default=Path("public"),
        description="Directory generated images are written to and served from",
    )

    # Rendering settings
    render_timeout_seconds: float = Field(
        default=30.0,
        description="Deadline for one render round trip, in seconds",
        gt=0,
    )
    max_concurrent_renders: int = Field(
        default=4,
        description="Maximum number of browser contexts open at the same time",
        ge=1,
        le=64,
    )
    jpeg_quality: int = Field(
        default=100,
        description="JPEG quality of the captured screenshot",
        ge=1,
        le=100,
    )
    browser_args: list[str] = Field(
        default_factory=list,
        description="Extra Chromium launch flags (e.g. --no-sandbox in containers)",
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=3000,
        description="Server port",
        ge=1,
        le=65535,
        validation_alias=AliasChoices("POSTFORGE_SERVER_PORT", "PORT"),
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level for the server process",
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create the public directory.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.public_dir.mkdir(parents=True, exist_ok=True)


# Global configuration instance
# Loads values from environment variables (POSTFORGE_* prefix, plus PORT) and .env file.
config = PostforgeConfig()
