"""Public-directory storage for generated post images.

Generated JPEGs live as plain files in a single flat directory that is also
served over HTTP.  There is no metadata database: the file name pattern
``processed_image_<unix-millis>.jpg`` is the only record the service keeps,
so the pattern doubles as the security gate for deletion.  A name that does
not match exactly is rejected before any file system call is made, which
rules out path traversal (``../``), absolute paths and deletion of unrelated
files sitting in the same directory.

Concurrent generate calls landing on the same millisecond do not clobber
each other: :meth:`ImageStore.save` opens files with exclusive-create and
moves to the next millisecond when a name is taken.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path

from postforge.core.errors import DeleteFailure, ImageNotFoundError, InvalidFilenameError

logger = logging.getLogger(__name__)

FILE_NAME_PREFIX = "processed_image_"
FILE_NAME_SUFFIX = ".jpg"

# ASCII digits only; fullmatch also rejects a trailing newline.
_FILE_NAME_RE = re.compile(r"processed_image_[0-9]+\.jpg")

# Upper bound on name collisions resolved for a single save.
_MAX_NAME_ATTEMPTS = 1000


def is_valid_file_name(file_name: object) -> bool:
    """Return ``True`` if *file_name* is exactly a generated-image name."""
    return isinstance(file_name, str) and _FILE_NAME_RE.fullmatch(file_name) is not None


def file_name_for(timestamp_ms: int) -> str:
    """Return the file name for an image created at *timestamp_ms*."""
    return f"{FILE_NAME_PREFIX}{timestamp_ms}{FILE_NAME_SUFFIX}"


def current_timestamp_ms() -> int:
    """Return the current Unix time in milliseconds."""
    return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class StoredImage:
    """A generated image persisted in the public directory.

    Attributes:
        file_name: Bare file name, e.g. ``processed_image_1700000000000.jpg``.
        path: Absolute path of the file on disk.
        size: Number of bytes written.
    """

    file_name: str
    path: Path
    size: int


class ImageStore:
    """Owns the generated images inside one public directory.

    Attributes:
        public_dir (Path):
            Directory images are written to and served from.
    """

    def __init__(self, public_dir: Path) -> None:
        self.public_dir = Path(public_dir)

    def ensure_directory(self) -> None:
        """Create the public directory if it does not exist yet."""
        self.public_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, file_name: str) -> Path:
        """Return the on-disk path of a validated file name.

        Raises:
            InvalidFilenameError: If *file_name* does not match the pattern.
        """
        if not is_valid_file_name(file_name):
            raise InvalidFilenameError(f"Invalid file name: {file_name!r}")
        return self.public_dir / file_name

    def exists(self, file_name: str) -> bool:
        return self.path_for(file_name).is_file()

    def save(self, data: bytes, timestamp_ms: int | None = None) -> StoredImage:
        """Write JPEG bytes under a fresh timestamp-derived name.

        Args:
            data: Encoded JPEG image.
            timestamp_ms: Creation time in Unix milliseconds.  Defaults to now.

        Returns:
            The :class:`StoredImage` that was written.

        Raises:
            ValueError: If *data* is empty.
            OSError: If the file cannot be written.
        """
        if not data:
            raise ValueError("Refusing to store an empty image")

        self.ensure_directory()
        timestamp = current_timestamp_ms() if timestamp_ms is None else timestamp_ms

        for _ in range(_MAX_NAME_ATTEMPTS):
            file_name = file_name_for(timestamp)
            path = self.public_dir / file_name
            try:
                with open(path, "xb") as handle:
                    handle.write(data)
            except FileExistsError:
                timestamp += 1
                continue

            logger.info(f"Stored {file_name} ({len(data)} bytes)")
            return StoredImage(file_name=file_name, path=path.resolve(), size=len(data))

        raise FileExistsError(f"No free file name near timestamp {timestamp}")

    def delete(self, file_name: str) -> None:
        """Remove a generated image by name.

        The name is checked against the pattern before the file system is
        touched at all.

        Raises:
            InvalidFilenameError: If *file_name* does not match the pattern.
            ImageNotFoundError: If no such file exists.
            DeleteFailure: If the file exists but cannot be removed.
        """
        path = self.path_for(file_name)

        if not path.is_file():
            raise ImageNotFoundError(f"{file_name} does not exist")

        try:
            path.unlink()
        except FileNotFoundError as e:
            # Lost a race with another delete of the same name.
            raise ImageNotFoundError(f"{file_name} does not exist") from e
        except OSError as e:
            raise DeleteFailure(f"Could not delete {file_name}: {e}") from e

        logger.info(f"Deleted {file_name}")
