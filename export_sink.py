"""File-download sink: saves exported documents into a local directory."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

EXPORT_DIR = os.getenv("EXPORT_DIR", "exports")

_UNSAFE_FILENAME_CHARS = re.compile(r"[\\/\x00-\x1f]")

LOGGER = logging.getLogger(__name__)


class DirectoryDownloadSink:
    """Callable sink ``(data, mime_type, filename)`` that writes into a directory.

    Path separators and control characters in the filename are replaced with
    "_" the way a browser download does, so the file always lands directly in
    the directory. An existing file with the same name is overwritten.
    """

    def __init__(self, directory: str | Path | None = None) -> None:
        self.directory = Path(directory or EXPORT_DIR)
        self.saved: list[Path] = []

    def __call__(self, data: bytes, mime_type: str, filename: str) -> Path:
        name = _UNSAFE_FILENAME_CHARS.sub("_", filename).strip()
        if not name or name in {".", ".."}:
            raise ValueError(f"Invalid export filename: {filename!r}")

        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / name
        with path.open("wb") as fh:
            fh.write(data)

        self.saved.append(path)
        LOGGER.info("Saved %s export (%s bytes) to %s", mime_type, len(data), path)
        return path
