"""Download directory for fetched images.

Files are named ``img_<nanosecond timestamp>_<random suffix><ext>`` where the
extension comes from the source URL's path (``.jpg`` when it has none).  The
whole directory is emptied at process exit.
"""

from __future__ import annotations

import logging
import posixpath
import random
import time
from pathlib import Path
from urllib.parse import urlsplit

from termweb.errors import FileIOError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".jpg"


def _extension_for(source_url: str) -> str:
    try:
        path = urlsplit(source_url).path
    except ValueError:
        path = source_url
    return posixpath.splitext(path)[1] or DEFAULT_EXTENSION


class DownloadStore:
    """A working directory that holds downloaded image files."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def ensure(self) -> None:
        """Create the directory if it does not exist."""
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FileIOError(f"error creating {self.directory}: {exc}") from exc

    def unique_path(self, source_url: str) -> Path:
        name = f"img_{time.time_ns()}_{random.randrange(10000)}{_extension_for(source_url)}"
        return self.directory / name

    def save(self, source_url: str, data: bytes) -> Path:
        """Write *data* to a fresh file named after *source_url*'s extension.

        Raises:
            FileIOError: If the file cannot be written.
        """
        path = self.unique_path(source_url)
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise FileIOError(f"error saving image: {exc}") from exc
        logger.debug("Saved %s (%d bytes) to %s", source_url, len(data), path)
        return path

    def cleanup(self) -> None:
        """Remove every file in the directory.  Failures are logged, not raised."""
        if not self.directory.is_dir():
            return
        for path in self.directory.glob("*"):
            try:
                path.unlink()
            except OSError as exc:
                logger.warning("Error removing file %s: %s", path, exc)
